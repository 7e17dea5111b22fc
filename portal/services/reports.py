"""
Billing report shaping: daily cash-desk reports, the clinic's period
report with its collection rate, revenue analytics and the secretary
dashboard bundle.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from django.utils import timezone

from portal.exceptions import BackendError, BackendUnavailable
from portal.services.backend import BackendClient, extract_list, unwrap
from portal.services.clinics import to_number

logger = logging.getLogger(__name__)

SUMMARY_FIELDS = (
    'total_collected',
    'total_partial',
    'total_exempt',
    'total_pending',
    'cash_count',
    'exempt_count',
    'total_transactions',
)

SECRETARY_SECTIONS = {
    'stats': '/secretary/dashboard/stats',
    'todayAppointments': '/secretary/dashboard/today-appointments',
    'waitingRoom': '/secretary/dashboard/waiting-room',
}


def collection_rate(paid, total) -> int:
    paid, total = to_number(paid), to_number(total)
    if not total or total <= 0:
        return 0
    return round(paid / total * 100)


def normalize_daily_report(payload, day: str) -> dict:
    data = unwrap(payload)
    data = data if isinstance(data, dict) else {}
    raw = data.get('summary') if isinstance(data.get('summary'), dict) else {}
    summary = {'date': raw.get('date') or day}
    for f in SUMMARY_FIELDS:
        summary[f] = to_number(raw.get(f))
    summary['total_received'] = summary['total_collected'] + summary['total_partial']

    receivers = []
    for r in data.get('by_receiver') or []:
        receivers.append({
            'receiver_name': r.get('receiver_name') or 'Unknown',
            'total_collected': to_number(r.get('total_collected')),
            'transaction_count': to_number(r.get('transaction_count')),
        })
    return {
        'summary': summary,
        'by_receiver': receivers,
        'payments': data.get('payments') or [],
    }


def daily_report(client: BackendClient, role: Optional[str], day: Optional[str] = None) -> dict:
    """Secretaries read their own desk report; managers read the clinic-wide one."""
    day = day or timezone.localdate().isoformat()
    path = '/secretary/reports/daily' if role == 'Secretary' else '/clinic/payments/daily-report'
    return normalize_daily_report(client.get(path, params={'date': day}), day)


def default_period(today: Optional[date] = None) -> tuple[str, str]:
    today = today or timezone.localdate()
    return today.replace(day=1).isoformat(), today.isoformat()


def clinic_report(client: BackendClient, start_date: Optional[str] = None, end_date: Optional[str] = None) -> dict:
    default_start, default_end = default_period()
    start_date, end_date = start_date or default_start, end_date or default_end
    data = unwrap(client.get('/clinic/reports', params={'start_date': start_date, 'end_date': end_date}))
    data = dict(data) if isinstance(data, dict) else {}
    financial = dict(data.get('financial') or {})
    financial['paid_payments'] = to_number(financial.get('paid_payments'))
    financial['total_payments'] = to_number(financial.get('total_payments'))
    financial['collection_rate'] = collection_rate(financial['paid_payments'], financial['total_payments'])
    data['financial'] = financial
    data['appointments_summary'] = {
        k: to_number(v) for k, v in (data.get('appointments_summary') or {}).items()
    }
    data['period'] = {'start_date': start_date, 'end_date': end_date}
    return data


def revenue_period(days: int) -> str:
    """The backend filters analytics by named period, not by day count."""
    if days <= 7:
        return 'week'
    if days <= 31:
        return 'month'
    return 'quarter'


def revenue_analytics(client: BackendClient, days: int = 7, today: Optional[date] = None) -> list[dict]:
    """Daily revenue for the last ``days`` days, zero-filled where the backend has no entry."""
    today = today or timezone.localdate()
    payload = unwrap(client.get('/clinic/reports/revenue-analytics', params={'period': revenue_period(days)}))
    entries = extract_list(payload, ('daily_revenue', 'revenue_trend', 'analytics'))
    by_date = {}
    for e in entries:
        if isinstance(e, dict) and e.get('date'):
            by_date[str(e['date'])[:10]] = {
                'date': str(e['date'])[:10],
                'revenue': to_number(e.get('revenue', e.get('total'))),
                'transactions': to_number(e.get('transactions', e.get('count'))),
            }
    series = []
    for offset in range(days - 1, -1, -1):
        day = (today - timedelta(days=offset)).isoformat()
        series.append(by_date.get(day) or {'date': day, 'revenue': 0, 'transactions': 0})
    return series


def secretary_dashboard(client: BackendClient) -> dict:
    """Each section is fetched independently; one failing section is reported, not raised."""
    bundle, errors = {}, {}
    for name, path in SECRETARY_SECTIONS.items():
        try:
            bundle[name] = unwrap(client.get(path))
        except BackendError as exc:
            if exc.status_code == 401:
                raise
            bundle[name] = None
            errors[name] = str(exc.detail)
        except BackendUnavailable as exc:
            bundle[name] = None
            errors[name] = str(exc.detail)
    if errors:
        logger.warning(f"Secretary dashboard sections failed: {', '.join(errors)}")
    bundle['errors'] = errors
    return bundle
