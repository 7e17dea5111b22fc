import pytest

from portal.models import AuditEvent
from portal.serializers.staff import ScheduleSerializer

pytestmark = pytest.mark.django_db

MEMBERS = [
    {'user_id': 3, 'clinic_id': 7, 'name': 'Dana Doctor', 'email': 'dana@clinic.test', 'phone': '0500000003',
     'role': 'Doctor', 'status': 'Active',
     'doctor': {'specialization': 'Neurology', 'available_days': 'Monday,Tuesday', 'clinic_room': 'A1',
                'start_time': '09:00', 'end_time': '17:00', 'slot_duration': 30}},
    {'user_id': 2, 'clinic_id': 7, 'name': 'Sami Desk', 'email': 'sami@clinic.test', 'phone': '0500000002',
     'role': 'Secretary', 'status': 'Active'},
]

DOCTOR = {
    'role': 'Doctor', 'name': 'New Doctor', 'email': 'new@clinic.test', 'phone': '0551234567',
    'specialization': 'Cardiology', 'available_days': 'Sunday,Monday', 'clinic_room': 'B2',
}


def test_staff_list_flattens_doctor_fields(api, backend):
    backend.on('GET', '/clinic/staff', {'success': True, 'data': MEMBERS})
    r = api('manager').get('/api/clinic/staff')
    assert r.status_code == 200
    doctor = r.data['data'][0]
    assert doctor['specialization'] == 'Neurology'
    assert doctor['slot_duration'] == 30
    assert r.data['data'][1]['specialization'] is None


def test_staff_list_filters_by_role(api, backend):
    backend.on('GET', '/clinic/staff', {'data': MEMBERS})
    r = api('manager').get('/api/clinic/staff', {'role': 'secretary'})
    assert [m['user_id'] for m in r.data['data']] == [2]


def test_create_doctor_uses_doctor_endpoint(api, backend):
    backend.on('POST', '/clinic/doctors', {'success': True, 'message': 'Doctor created', 'data': {'user_id': 12}},
               status=201)
    r = api('manager').post('/api/clinic/staff', DOCTOR, format='json')
    assert r.status_code == 201
    assert r.data['message'] == 'Doctor created'
    sent = backend.calls_to('POST', '/clinic/doctors')[0]['json']
    assert 'role' not in sent
    assert sent['specialization'] == 'Cardiology'
    event = AuditEvent.objects.get(action='staff_create')
    assert event.object_id == '12'
    assert event.detail['role'] == 'Doctor'


def test_create_secretary_needs_no_doctor_fields(api, backend):
    backend.on('POST', '/clinic/secretaries', {'success': True, 'data': {'user_id': 13}}, status=201)
    r = api('manager').post('/api/clinic/staff', {
        'role': 'Secretary', 'name': 'New Desk', 'email': 'desk@clinic.test', 'phone': '0551234568',
    }, format='json')
    assert r.status_code == 201
    assert backend.calls_to('POST', '/clinic/doctors') == []


def test_create_doctor_requires_specialization(api, backend):
    data = {k: v for k, v in DOCTOR.items() if k != 'specialization'}
    r = api('manager').post('/api/clinic/staff', data, format='json')
    assert r.status_code == 422
    assert r.data['error']['fields'] == {'specialization': ['Specialization is required']}


def test_create_staff_with_unknown_role(api, backend):
    r = api('manager').post('/api/clinic/staff', {**DOCTOR, 'role': 'Nurse'}, format='json')
    assert r.status_code == 422
    assert r.data['error']['fields'] == {'role': ['Role must be Doctor or Secretary']}


def test_staff_management_is_manager_only(api, backend):
    assert api('secretary').post('/api/clinic/staff', DOCTOR, format='json').status_code == 403


def test_delete_staff(api, backend):
    backend.on('DELETE', '/clinic/staff/2', {'success': True})
    r = api('manager').delete('/api/clinic/staff/2')
    assert r.status_code == 200
    assert AuditEvent.objects.filter(action='staff_delete', object_id='2').exists()


def test_schedules_list_only_doctors(api, backend):
    backend.on('GET', '/manager/staff', {'data': MEMBERS})
    r = api('manager').get('/api/clinic/schedule')
    assert [m['user_id'] for m in r.data['data']] == [3]


def test_schedule_update_keeps_identity_fields(api, backend):
    backend.on('GET', '/manager/staff', {'data': MEMBERS})
    backend.on('PUT', '/manager/staff/3', {'success': True})
    r = api('manager').put('/api/clinic/schedule/3', {
        'available_days': ['friday', 'Monday', 'monday'],
        'start_time': '08:00', 'end_time': '12:30:00', 'slot_duration': 20,
    }, format='json')
    assert r.status_code == 200
    sent = backend.calls_to('PUT', '/manager/staff/3')[0]['json']
    assert sent == {
        'name': 'Dana Doctor', 'email': 'dana@clinic.test', 'phone': '0500000003',
        'available_days': 'Monday,Friday', 'start_time': '08:00', 'end_time': '12:30', 'slot_duration': 20,
    }
    assert r.data['data']['available_days'] == 'Monday,Friday'
    assert r.data['data']['specialization'] == 'Neurology'


def test_schedule_update_for_unknown_doctor(api, backend):
    backend.on('GET', '/manager/staff', {'data': MEMBERS})
    r = api('manager').put('/api/clinic/schedule/99', {
        'available_days': 'Monday', 'start_time': '08:00', 'end_time': '12:00', 'slot_duration': 20,
    }, format='json')
    assert r.status_code == 404
    assert r.data['error']['code'] == 'not_found'
    assert backend.calls_to('PUT', '/manager/staff/99') == []


@pytest.mark.parametrize('data, field', [
    ({'available_days': 'Monday', 'start_time': '12:00', 'end_time': '09:00', 'slot_duration': 20}, 'end_time'),
    ({'available_days': 'Someday', 'start_time': '08:00', 'end_time': '09:00', 'slot_duration': 20}, 'available_days'),
    ({'available_days': [], 'start_time': '08:00', 'end_time': '09:00', 'slot_duration': 20}, 'available_days'),
    ({'available_days': 'Monday', 'start_time': '08:00', 'end_time': '09:00', 'slot_duration': 2}, 'slot_duration'),
])
def test_schedule_validation(data, field):
    s = ScheduleSerializer(data=data)
    assert not s.is_valid()
    assert field in s.errors


def test_time_slots(api, backend):
    backend.on('GET', '/clinic/doctors/3/time-slots', {'data': {'available_slots': ['09:00', '09:30']}})
    r = api('secretary').get('/api/clinic/doctors/3/time-slots', {'date': '2026-03-02'})
    assert r.status_code == 200
    assert r.data['data'] == ['09:00', '09:30']
    assert r.data['date'] == '2026-03-02'
    assert backend.calls_to('GET', '/clinic/doctors/3/time-slots')[0]['params'] == {'date': '2026-03-02'}


@pytest.mark.parametrize('body', [
    {**DOCTOR, 'role': ['Doctor']},
    {**DOCTOR, 'role': {'name': 'Doctor'}},
    ['Doctor'],
])
def test_create_staff_with_malformed_body_is_422(api, backend, body):
    r = api('manager').post('/api/clinic/staff', body, format='json')
    assert r.status_code == 422
    assert r.data['error']['code'] == 'validation_error'
    assert backend.calls_to('POST', '/clinic/doctors') == []


def test_update_staff_member(api, backend):
    backend.on('PUT', '/clinic/staff/3', {'success': True, 'data': MEMBERS[0]})
    r = api('manager').put('/api/clinic/staff/3', {
        'name': 'Dana Doctor', 'email': 'dana@clinic.test', 'phone': '0500000003', 'status': 'Inactive',
    }, format='json')
    assert r.status_code == 200
    assert r.data['data']['specialization'] == 'Neurology'
    sent = backend.calls_to('PUT', '/clinic/staff/3')[0]['json']
    assert sent == {'name': 'Dana Doctor', 'email': 'dana@clinic.test', 'phone': '0500000003', 'status': 'Inactive'}
    event = AuditEvent.objects.get(action='staff_update')
    assert event.detail == {'fields': ['email', 'name', 'phone', 'status']}


def test_update_staff_member_validates_phone(api, backend):
    r = api('manager').put('/api/clinic/staff/3', {
        'name': 'Dana Doctor', 'email': 'dana@clinic.test', 'phone': '123',
    }, format='json')
    assert r.status_code == 422
    assert r.data['error']['fields'] == {'phone': ['Phone must be in format: 05XXXXXXXX']}
    assert backend.calls_to('PUT', '/clinic/staff/3') == []
