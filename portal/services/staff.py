from __future__ import annotations

from typing import Optional

from rest_framework.exceptions import NotFound

from portal.services.backend import BackendClient, extract_list, unwrap

ROLE_DOCTOR = 'Doctor'
ROLE_SECRETARY = 'Secretary'

DOCTOR_FIELDS = ('specialization', 'available_days', 'clinic_room', 'start_time', 'end_time', 'slot_duration')
SCHEDULE_IDENTITY_FIELDS = ('name', 'email', 'phone')

CREATE_PATHS = {
    ROLE_DOCTOR: '/clinic/doctors',
    ROLE_SECRETARY: '/clinic/secretaries',
}


def flatten_member(m: dict) -> dict:
    """Lift the nested ``doctor`` record onto the staff member."""
    doctor = m.get('doctor') if isinstance(m.get('doctor'), dict) else {}
    member = {
        'user_id': m.get('user_id') or m.get('id'),
        'clinic_id': m.get('clinic_id'),
        'name': m.get('name'),
        'email': m.get('email'),
        'phone': m.get('phone'),
        'role': m.get('role'),
        'status': m.get('status'),
    }
    for f in DOCTOR_FIELDS:
        value = doctor.get(f)
        member[f] = value if value is not None else m.get(f)
    return member


def list_staff(client: BackendClient, role: Optional[str] = None) -> list[dict]:
    payload = client.get('/clinic/staff')
    members = [flatten_member(m) for m in extract_list(payload, ('data', 'members', 'staff')) if isinstance(m, dict)]
    if role:
        members = [m for m in members if (m.get('role') or '').lower() == role.lower()]
    return members


def create_staff(client: BackendClient, data: dict):
    """Doctors and secretaries are created through separate backend endpoints."""
    data = dict(data)
    role = data.pop('role')
    return client.post(CREATE_PATHS[role], json=data)


def update_staff(client: BackendClient, user_id, data: dict):
    return client.put(f'/clinic/staff/{user_id}', json=data)


def delete_staff(client: BackendClient, user_id):
    return client.delete(f'/clinic/staff/{user_id}')


def list_schedules(client: BackendClient) -> list[dict]:
    payload = client.get('/manager/staff')
    members = [flatten_member(m) for m in extract_list(payload, ('data', 'members')) if isinstance(m, dict)]
    return [m for m in members if m.get('role') == ROLE_DOCTOR]


def update_schedule(client: BackendClient, user_id, schedule: dict) -> dict:
    """The backend's member update requires name, email and phone alongside the schedule."""
    current = next((m for m in list_schedules(client) if str(m.get('user_id')) == str(user_id)), None)
    if current is None:
        raise NotFound('Doctor not found in this clinic.')
    body = {f: current.get(f) for f in SCHEDULE_IDENTITY_FIELDS}
    body.update(schedule)
    payload = client.put(f'/manager/staff/{user_id}', json=body)
    data = unwrap(payload)
    if isinstance(data, dict) and isinstance(data.get('user'), dict):
        data = data['user']
    if isinstance(data, dict) and (data.get('user_id') or data.get('id')):
        return flatten_member(data)
    return {**current, **schedule}


def list_doctors(client: BackendClient) -> list:
    payload = client.get('/clinic/doctors')
    return extract_list(payload, ('doctors', 'data'))


def doctor_time_slots(client: BackendClient, doctor_id, day: str) -> list:
    payload = unwrap(client.get(f'/clinic/doctors/{doctor_id}/time-slots', params={'date': day}))
    if isinstance(payload, dict):
        return payload.get('available_slots') or []
    return []
