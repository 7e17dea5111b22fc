import pytest

from portal.models import AuditEvent
from portal.services.appointments import DEFAULT_REJECTION_REASON, filter_requests, map_request, status_counts

pytestmark = pytest.mark.django_db

REQUESTS = [
    {'id': 1, 'status': 'Requested', 'date': '2026-03-02', 'time': '09:00', 'notes': 'headache',
     'patient': {'name': 'Lina Haddad', 'phone': '0521111111', 'national_id': '200300400'},
     'doctor': {'name': 'Dana Doctor', 'specialization': 'Neurology'}},
    {'id': 2, 'status': 'Requested', 'date': '2026-03-03', 'time': '10:30',
     'patient': {'name': 'Omar Saleh', 'phone': '0532222222', 'national_id': '300400500'},
     'doctor': {'name': 'Dana Doctor', 'specialization': 'Neurology'}},
    {'id': 3, 'status': 'Approved', 'date': '2026-03-01', 'time': '08:00',
     'patient': {'name': 'Lina Haddad', 'phone': '0521111111'}, 'doctor': {}},
]


@pytest.fixture
def requests_list(backend):
    backend.on('GET', '/secretary/appointments/requests', {'success': True, 'data': REQUESTS})
    return backend


def test_request_list_defaults_to_requested(api, requests_list):
    r = api('secretary').get('/api/secretary/appointments/requests')
    assert r.status_code == 200
    assert [row['id'] for row in r.data['data']] == [1, 2]
    assert r.data['counts'] == {'Requested': 2, 'Approved': 1, 'Cancelled': 0, 'Completed': 0, 'all': 3}
    first = r.data['data'][0]
    assert first['patientName'] == 'Lina Haddad'
    assert first['specialty'] == 'Neurology'
    assert first['preferredTime'] == '09:00'


def test_request_list_search_by_name_phone_or_national_id(api, requests_list):
    client = api('secretary')
    by_name = client.get('/api/secretary/appointments/requests', {'search': 'lina', 'status': 'all'})
    assert [row['id'] for row in by_name.data['data']] == [1, 3]
    by_phone = client.get('/api/secretary/appointments/requests', {'search': '0532'})
    assert [row['id'] for row in by_phone.data['data']] == [2]
    by_national_id = client.get('/api/secretary/appointments/requests', {'search': '2003'})
    assert [row['id'] for row in by_national_id.data['data']] == [1]


def test_request_list_rejects_unknown_status(api, requests_list):
    r = api('secretary').get('/api/secretary/appointments/requests', {'status': 'Lost'})
    assert r.status_code == 422
    assert 'status' in r.data['error']['fields']


def test_request_list_is_secretary_only(api, requests_list):
    assert api('manager').get('/api/secretary/appointments/requests').status_code == 403


def test_approve_reports_approved_and_is_audited(api, backend):
    backend.on('PUT', '/secretary/appointments/approve/1', {'success': True, 'message': 'Approved'})
    r = api('secretary').put('/api/secretary/appointments/1/approve')
    assert r.status_code == 200
    assert r.data == {'ok': True, 'data': {'id': 1, 'status': 'Approved'}}
    event = AuditEvent.objects.get(action='appointment_approve')
    assert event.object_id == '1'
    assert event.clinic_id == 7
    assert event.role == 'Secretary'


def test_approve_merges_backend_record(api, backend):
    backend.on('PUT', '/secretary/appointments/approve/2', {'success': True, 'data': {
        **REQUESTS[1], 'status': 'Approved',
    }})
    r = api('secretary').put('/api/secretary/appointments/2/approve')
    assert r.data['data']['status'] == 'Approved'
    assert r.data['data']['patientName'] == 'Omar Saleh'


def test_reject_without_reason_uses_default(api, backend):
    backend.on('PUT', '/secretary/appointments/reject/2', {'success': True})
    r = api('secretary').put('/api/secretary/appointments/2/reject', {}, format='json')
    assert r.status_code == 200
    assert r.data['data'] == {'id': 2, 'status': 'Cancelled', 'note': DEFAULT_REJECTION_REASON}
    sent = backend.calls_to('PUT', '/secretary/appointments/reject/2')[0]
    assert sent['json'] == {'rejection_reason': DEFAULT_REJECTION_REASON}


def test_reject_reason_is_cleaned(api, backend):
    backend.on('PUT', '/secretary/appointments/reject/2', {'success': True})
    r = api('secretary').put('/api/secretary/appointments/2/reject',
                             {'rejection_reason': '<b>Doctor away</b>'}, format='json')
    assert r.data['data']['note'] == 'Doctor away'


def test_reschedule_requires_date_and_time(api, backend):
    r = api('secretary').put('/api/secretary/appointments/2/reschedule',
                             {'appointment_time': '10:00'}, format='json')
    assert r.status_code == 422
    assert r.data['error']['fields'] == {'appointment_date': ['Please enter date and time']}
    assert backend.calls_to('PUT', '/secretary/appointments/reschedule/2') == []


def test_reschedule_sends_new_slot(api, backend):
    backend.on('PUT', '/secretary/appointments/reschedule/2', {'success': True})
    r = api('secretary').put('/api/secretary/appointments/2/reschedule',
                             {'appointment_date': '2026-03-05', 'appointment_time': '11:15:00'}, format='json')
    assert r.status_code == 200
    assert r.data['data'] == {
        'id': 2, 'status': 'Approved', 'preferredDate': '2026-03-05', 'preferredTime': '11:15',
    }
    sent = backend.calls_to('PUT', '/secretary/appointments/reschedule/2')[0]
    assert sent['json'] == {'appointment_date': '2026-03-05', 'appointment_time': '11:15'}


def test_dashboard_reports_failing_sections(api, backend):
    backend.on('GET', '/secretary/dashboard/stats', {'data': {'today': 4}})
    backend.on('GET', '/secretary/dashboard/today-appointments', {'data': [{'id': 1}]})
    backend.on('GET', '/secretary/dashboard/waiting-room', {'message': 'down'}, status=500)
    r = api('secretary').get('/api/secretary/dashboard')
    assert r.status_code == 200
    data = r.data['data']
    assert data['stats'] == {'today': 4}
    assert data['todayAppointments'] == [{'id': 1}]
    assert data['waitingRoom'] is None
    assert set(data['errors']) == {'waitingRoom'}


def test_filter_helpers():
    rows = [map_request(a) for a in REQUESTS]
    assert [r['id'] for r in filter_requests(rows, '', 'Approved')] == [3]
    assert [r['id'] for r in filter_requests(rows, 'omar', 'all')] == [2]
    assert status_counts([])['all'] == 0
    assert rows[2]['specialty'] == 'N/A'
