import pytest

from portal.models import AuditEvent
from portal.services.clinics import filter_recent_clinics, platform_stats, revenue_change

pytestmark = pytest.mark.django_db

STATS = {
    'success': True,
    'data': {
        'total_clinics': 4,
        'monthly_revenue': '10000.00',
        'active_users': 30,
        'total_patients': 10,
        'revenue_history': [{'month': 'Jan', 'revenue': 8000}, {'month': 'Feb', 'revenue': '10000'}],
        'recent_clinics': [
            {'id': 1, 'name': 'Old', 'created_at': '2026-01-15T10:00:00Z'},
            {'id': 2, 'name': 'Late on the last day', 'created_at': '2026-02-28 21:30:00'},
            {'id': 3, 'name': 'New', 'created_at': '2026-03-01T09:00:00Z'},
        ],
    },
}


def test_platform_stats_derived_figures():
    stats = platform_stats(STATS)
    assert stats['averageRevenuePerClinic'] == 2500
    assert stats['usersPerClinic'] == 7.5
    assert stats['patientsPerClinic'] == 2.5
    assert stats['revenueChange'] == 25.0
    assert len(stats['recent_clinics']) == 3


def test_platform_stats_without_clinics():
    stats = platform_stats({'data': {'total_clinics': 0, 'monthly_revenue': 0}})
    assert stats['averageRevenuePerClinic'] == 0
    assert stats['revenueChange'] == 0
    assert stats['recent_clinics'] == []


@pytest.mark.parametrize('history, change', [
    ([], 0),
    ([{'revenue': 100}], 0),
    ([{'revenue': 0}, {'revenue': 100}], 0),
    ([{'revenue': 300}, {'revenue': 200}], -33.3),
])
def test_revenue_change(history, change):
    assert revenue_change(history) == change


def test_recent_clinics_range_includes_whole_end_day():
    clinics = STATS['data']['recent_clinics']
    picked = filter_recent_clinics(clinics, '2026-02-01', '2026-02-28')
    assert [c['id'] for c in picked] == [2]
    assert filter_recent_clinics(clinics, '2026-02-01', None) == clinics


def test_dashboard_stats_endpoint_filters_by_range(api, backend):
    backend.on('GET', '/admin/dashboard/stats', STATS)
    r = api('admin').get('/api/admin/dashboard/stats', {'start_date': '2026-03-01', 'end_date': '2026-03-31'})
    assert r.status_code == 200
    assert [c['id'] for c in r.data['data']['recent_clinics']] == [3]


def test_platform_endpoints_need_platform_admin(api, backend):
    r = api('manager').get('/api/admin/dashboard/stats')
    assert r.status_code == 403
    assert backend.calls_to('GET', '/admin/dashboard/stats') == []


def test_clinic_list_pagination_and_filters(api, backend):
    backend.on('GET', '/admin/clinics', {'success': True, 'clinics': {
        'data': [{'clinic_id': 1, 'name': 'Cedar'}], 'current_page': 2, 'last_page': 3, 'per_page': 1,
        'total': 3, 'from': 2, 'to': 2,
    }})
    client = api('admin')
    r = client.get('/api/admin/clinics', {'page': 2, 'per_page': 1, 'status': 'all', 'search': 'ced'})
    assert r.status_code == 200
    assert r.data['clinics'] == [{'clinic_id': 1, 'name': 'Cedar'}]
    assert r.data['pagination']['last_page'] == 3
    assert backend.calls_to('GET', '/admin/clinics')[0]['params'] == {'page': 2, 'per_page': 1, 'search': 'ced'}
    client.get('/api/admin/clinics', {'status': 'Inactive'})
    assert backend.calls_to('GET', '/admin/clinics')[1]['params'] == {'page': 1, 'per_page': 10, 'status': 'Inactive'}


def test_toggle_status_is_audited(api, backend):
    backend.on('PATCH', '/admin/clinics/5/toggle-status', {
        'success': True, 'message': 'Clinic deactivated', 'clinic': {'clinic_id': 5, 'status': 'Inactive'},
    })
    r = api('admin').patch('/api/admin/clinics/5/toggle-status')
    assert r.status_code == 200
    assert r.data['data'] == {'clinic_id': 5, 'status': 'Inactive', 'message': 'Clinic deactivated'}
    event = AuditEvent.objects.get(action='clinic_toggle_status')
    assert event.detail == {'status': 'Inactive'}
    assert event.user_id == 9


def test_clinic_detail_filters_users(api, backend):
    backend.on('GET', '/admin/clinics/5', {
        'success': True,
        'clinic': {'clinic_id': 5, 'name': 'Cedar'},
        'users': {
            'doctors': [{'name': 'Dana Doctor', 'email': 'dana@clinic.test'}, {'name': 'Eli', 'email': 'eli@x.test'}],
            'patients': [{'name': 'Paul', 'phone': '0500000004'}],
        },
        'user_counts': {'doctors': 2, 'patients': 1},
    })
    r = api('admin').get('/api/admin/clinics/5', {'search': 'dana'})
    assert r.status_code == 200
    users = r.data['data']['users']
    assert users['doctors'] == [{'name': 'Dana Doctor', 'email': 'dana@clinic.test'}]
    assert users['patients'] == []
    assert users['managers'] == []
    assert r.data['data']['user_counts'] == {'doctors': 2, 'patients': 1}
