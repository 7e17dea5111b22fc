"""
Appointment shaping and request triage.

The backend owns every state transition. A triage action only reports a
new state once the backend acknowledged it; ``success: false`` surfaces as
``ActionNotApplied``.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from django.utils import timezone

from portal.services.backend import BackendClient, ensure_applied, extract_list, unwrap

STATUS_REQUESTED = 'Requested'
STATUS_APPROVED = 'Approved'
STATUS_CANCELLED = 'Cancelled'
STATUS_COMPLETED = 'Completed'
REQUEST_STATUSES = (STATUS_REQUESTED, STATUS_APPROVED, STATUS_CANCELLED, STATUS_COMPLETED)

DEFAULT_REJECTION_REASON = 'The request was rejected due to unavailability of a suitable slot.'


def _dig(obj, *path):
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def map_appointment(a: dict) -> dict:
    if a.get('appointment_date'):
        date_time = a['appointment_date']
    elif a.get('date') and a.get('time'):
        date_time = f"{a['date']}T{a['time']}"
    else:
        date_time = a.get('date')

    return {
        'id': a.get('appointment_id') or a.get('id') or 0,
        'clinicId': a.get('clinic_id') or _dig(a, 'clinic', 'id') or 0,
        'doctorId': a.get('doctor_id'),
        'patientId': a.get('patient_id'),
        'dateTime': date_time,
        'status': (a.get('status') or '').lower(),
        'notes': a.get('notes'),
        'patientName': _dig(a, 'patient', 'user', 'name') or _dig(a, 'patient', 'name') or a.get('patient_name') or 'Unknown',
        'patientPhone': _dig(a, 'patient', 'user', 'phone') or a.get('patient_phone'),
        'clinicName': _dig(a, 'clinic', 'name'),
    }


def map_request(a: dict) -> dict:
    patient = a.get('patient') or {}
    doctor = a.get('doctor') or {}
    return {
        'id': a.get('id') or a.get('appointment_id'),
        'patientName': patient.get('name') or 'N/A',
        'nationalId': patient.get('national_id'),
        'phone': patient.get('phone') or 'N/A',
        'specialty': doctor.get('specialization') or 'N/A',
        'doctorName': doctor.get('name'),
        'preferredDate': a.get('date') or '',
        'preferredTime': a.get('time') or '',
        'createdAt': a.get('created_at'),
        'status': a.get('status'),
        'note': a.get('notes'),
        'complaint': a.get('notes'),
    }


def _matches(req: dict, search: str) -> bool:
    if not search:
        return True
    return (
        search.lower() in (req.get('patientName') or '').lower()
        or search in (req.get('phone') or '')
        or search in (req.get('nationalId') or '')
        or search in str(req.get('id') or '')
    )


def filter_requests(requests: Iterable[dict], search: str = '', status: Optional[str] = STATUS_REQUESTED) -> list[dict]:
    """Search + status filter of the triage list; ``status='all'`` keeps every status."""
    search = (search or '').strip()
    out = []
    for req in requests:
        if status and status != 'all' and req.get('status') != status:
            continue
        if _matches(req, search):
            out.append(req)
    return out


def status_counts(requests: Iterable[dict]) -> dict:
    counts = {s: 0 for s in REQUEST_STATUSES}
    total = 0
    for req in requests:
        total += 1
        st = req.get('status')
        counts[st] = counts.get(st, 0) + 1
    counts['all'] = total
    return counts


def list_requests(client: BackendClient) -> list[dict]:
    payload = client.get('/secretary/appointments/requests')
    return [map_request(a) for a in extract_list(payload) if isinstance(a, dict)]


def _applied(payload, appointment_id, **state) -> dict:
    ensure_applied(payload)
    record = {'id': appointment_id, **state}
    data = unwrap(payload)
    if isinstance(data, dict) and (data.get('id') or data.get('appointment_id')):
        mapped = map_request(data)
        record.update({k: v for k, v in mapped.items() if v not in (None, '', 'N/A')})
    return record


def approve_request(client: BackendClient, appointment_id) -> dict:
    payload = client.put(f'/secretary/appointments/approve/{appointment_id}')
    return _applied(payload, appointment_id, status=STATUS_APPROVED)


def reject_request(client: BackendClient, appointment_id, reason: Optional[str] = None) -> dict:
    reason = (reason or '').strip() or DEFAULT_REJECTION_REASON
    payload = client.put(f'/secretary/appointments/reject/{appointment_id}', json={'rejection_reason': reason})
    return _applied(payload, appointment_id, status=STATUS_CANCELLED, note=reason)


def reschedule_request(client: BackendClient, appointment_id, appointment_date: str, appointment_time: str) -> dict:
    body = {'appointment_date': appointment_date, 'appointment_time': appointment_time}
    payload = client.put(f'/secretary/appointments/reschedule/{appointment_id}', json=body)
    return _applied(
        payload, appointment_id,
        status=STATUS_APPROVED, preferredDate=appointment_date, preferredTime=appointment_time,
    )


def doctor_appointments(client: BackendClient, path: str = '/doctor/appointments', params=None) -> list[dict]:
    payload = client.get(path, params=params)
    return [map_appointment(a) for a in extract_list(payload, ('appointments', 'data')) if isinstance(a, dict)]


def _local_date(value) -> Optional[date]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00').replace(' ', 'T', 1))
    except ValueError:
        return None
    if timezone.is_aware(parsed):
        parsed = timezone.localtime(parsed)
    return parsed.date()


def doctor_stats(appointments: Iterable[dict], today: Optional[date] = None) -> dict:
    """Today's count, pending requests and distinct patients over mapped appointments."""
    today = today or timezone.localdate()
    todays = pending = 0
    patients = set()
    for a in appointments:
        if _local_date(a.get('dateTime')) == today:
            todays += 1
        if str(a.get('status') or '').lower() in ('pending', 'requested'):
            pending += 1
        key = (str(a['patientId']) if a.get('patientId') else '') or a.get('patientPhone') or a.get('patientName') or ''
        if key:
            patients.add(key)
    return {
        'todayAppointments': todays,
        'pendingRequests': pending,
        'totalPatients': len(patients),
    }
