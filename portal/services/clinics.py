"""
Clinic settings for managers and the platform admin's view of all clinics.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Optional

from django.utils import timezone

from portal.exceptions import BackendError
from portal.services.backend import BackendClient, ensure_applied, unwrap

logger = logging.getLogger(__name__)

CLINIC_STAT_FIELDS = (
    'employees_count',
    'today_appointments_count',
    'total_patients_count',
    'monthly_revenue',
    'active_doctors_count',
)

USER_GROUPS = ('doctors', 'patients', 'secretaries', 'managers')


def to_number(value, default=0):
    """Backend money fields arrive as numbers or decimal strings."""
    if value is None or value == '':
        return default
    if isinstance(value, (int, float)):
        return value
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    return int(num) if num.is_integer() else num


def _settings_record(payload):
    if isinstance(payload, dict):
        if isinstance(payload.get('data'), dict):
            return payload['data']
        if isinstance(payload.get('clinic'), dict):
            return payload['clinic']
    return payload


def get_settings(client: BackendClient) -> dict:
    return _settings_record(client.get('/manager/clinic/settings'))


def update_settings(client: BackendClient, fields: dict, logo=None) -> dict:
    """JSON ``PUT`` for plain fields; a logo upload goes as multipart ``POST`` with ``_method=PUT``."""
    if logo is None:
        payload = client.put('/manager/clinic/settings', json=fields)
    else:
        data = {k: str(v) for k, v in fields.items()}
        data['_method'] = 'PUT'
        files = {'logo': (logo.name, logo.read(), getattr(logo, 'content_type', None) or 'application/octet-stream')}
        payload = client.post('/manager/clinic/settings', data=data, files=files)
    ensure_applied(payload)
    return _settings_record(payload)


def get_logo(client: BackendClient) -> dict:
    try:
        payload = unwrap(client.get('/manager/clinic/logo'))
    except BackendError as exc:
        if exc.status_code == 429:
            logger.warning('Rate limited while fetching clinic logo; answering with a null logo')
            return {'logo_path': None, 'logo_url': None}
        raise
    payload = payload if isinstance(payload, dict) else {}
    return {'logo_path': payload.get('logo_path'), 'logo_url': payload.get('logo_url')}


def dashboard_stats(client: BackendClient) -> dict:
    payload = unwrap(client.get('/manager/dashboard/stats'))
    payload = payload if isinstance(payload, dict) else {}
    return {f: to_number(payload.get(f)) for f in CLINIC_STAT_FIELDS}


# ---------------------------------------------------------------------------
# Platform admin
# ---------------------------------------------------------------------------

def _parse_day(value) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _parse_moment(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        moment = datetime.fromisoformat(str(value).replace('Z', '+00:00').replace(' ', 'T', 1))
    except ValueError:
        return None
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return moment


def filter_recent_clinics(clinics: list, start_date=None, end_date=None) -> list:
    """Inclusive date range; the end date covers the whole day. Without both bounds nothing is filtered."""
    start, end = _parse_day(start_date), _parse_day(end_date)
    if not (start and end):
        return list(clinics)
    lower = timezone.make_aware(datetime.combine(start, time.min))
    upper = timezone.make_aware(datetime.combine(end, time.max))
    out = []
    for clinic in clinics:
        created = _parse_moment(clinic.get('created_at'))
        if created and lower <= created <= upper:
            out.append(clinic)
    return out


def revenue_change(history: list) -> float:
    """Percent change between the last two revenue points."""
    if not history or len(history) < 2:
        return 0
    latest = to_number((history[-1] or {}).get('revenue'))
    previous = to_number((history[-2] or {}).get('revenue'))
    if not previous:
        return 0
    return round((latest - previous) / previous * 100, 1)


def platform_stats(payload: dict, start_date=None, end_date=None) -> dict:
    stats = dict(unwrap(payload) or {})
    total_clinics = to_number(stats.get('total_clinics'))
    revenue = to_number(stats.get('monthly_revenue'))
    users = to_number(stats.get('active_users'))
    patients = to_number(stats.get('total_patients'))

    def per_clinic(value):
        return round(value / total_clinics, 2) if total_clinics else 0

    history = stats.get('revenue_history') or []
    stats.update({
        'total_clinics': total_clinics,
        'monthly_revenue': revenue,
        'active_users': users,
        'total_patients': patients,
        'revenue_history': history,
        'recent_clinics': filter_recent_clinics(stats.get('recent_clinics') or [], start_date, end_date),
        'averageRevenuePerClinic': per_clinic(revenue),
        'usersPerClinic': per_clinic(users),
        'patientsPerClinic': per_clinic(patients),
        'revenueChange': revenue_change(history),
    })
    return stats


def list_clinics(client: BackendClient, page=1, per_page=10, status=None, search=None) -> dict:
    params = {'page': page, 'per_page': per_page, 'search': search}
    if status and status != 'all':
        params['status'] = status
    payload = client.get('/admin/clinics', params=params)
    paged = payload.get('clinics') if isinstance(payload, dict) else None
    if not isinstance(paged, dict):
        paged = payload if isinstance(payload, dict) else {}
    rows = paged.get('data') or []
    return {
        'clinics': rows,
        'pagination': {
            'current_page': paged.get('current_page', 1),
            'last_page': paged.get('last_page', 1),
            'per_page': paged.get('per_page', per_page),
            'total': paged.get('total', len(rows)),
            'from': paged.get('from'),
            'to': paged.get('to'),
        },
    }


def toggle_clinic_status(client: BackendClient, clinic_id) -> dict:
    payload = ensure_applied(client.patch(f'/admin/clinics/{clinic_id}/toggle-status'))
    clinic = payload.get('clinic') if isinstance(payload, dict) else None
    if not isinstance(clinic, dict):
        clinic = unwrap(payload) if isinstance(unwrap(payload), dict) else {}
    return {
        'clinic_id': clinic.get('clinic_id') or clinic.get('id') or clinic_id,
        'status': clinic.get('status'),
        'message': payload.get('message') if isinstance(payload, dict) else None,
    }


def _user_matches(user: dict, term: str) -> bool:
    term = term.lower()
    return any(term in str(user.get(f) or '').lower() for f in ('name', 'email', 'phone'))


def clinic_analytics(client: BackendClient, clinic_id, search: str = '') -> dict:
    payload = ensure_applied(client.get(f'/admin/clinics/{clinic_id}'))
    users = payload.get('users') or {}
    search = (search or '').strip()
    grouped = {}
    for group in USER_GROUPS:
        members = users.get(group) or []
        grouped[group] = [u for u in members if _user_matches(u, search)] if search else members
    return {
        'clinic': payload.get('clinic'),
        'users': grouped,
        'user_counts': payload.get('user_counts') or {},
        'appointment_stats': payload.get('appointment_stats') or {},
        'subscription': payload.get('subscription'),
    }
