import pytest
import requests
from django.conf import settings
from django.core.cache import cache

from portal.authentication import _cache_key
from portal.exceptions import _first_message, _flatten_fields
from portal.services.backend import BackendClient

pytestmark = pytest.mark.django_db

STATS = '/manager/dashboard/stats'


def test_backend_unreachable_is_503_and_retryable(api, backend):
    backend.on('GET', STATS, requests.ConnectionError('refused'))
    r = api('manager').get('/api/clinic/dashboard/stats')
    assert r.status_code == 503
    assert r.data['error'] == {
        'code': 'backend_unreachable',
        'message': 'Cannot connect to server. Please ensure the backend API is running.',
        'retryable': True,
    }


def test_backend_401_forgets_session_and_redirects(api, backend):
    backend.on('GET', STATS, {'message': 'Unauthenticated.'}, status=401)
    r = api('manager').get('/api/clinic/dashboard/stats')
    assert r.status_code == 401
    assert r.data['error']['redirect'] == '/login'
    assert r.cookies[settings.AUTH_COOKIE_NAME].value == ''
    assert cache.get(_cache_key('tok-manager')) is None


def test_backend_403_keeps_backend_message(api, backend):
    backend.on('GET', STATS, {'message': 'Clinic is inactive'}, status=403)
    r = api('manager').get('/api/clinic/dashboard/stats')
    assert r.status_code == 403
    assert r.data['error'] == {'code': 'forbidden', 'message': 'Clinic is inactive'}


def test_backend_429_asks_to_wait(api, backend):
    backend.on('GET', STATS, {'message': 'Too Many Attempts.'}, status=429)
    r = api('manager').get('/api/clinic/dashboard/stats')
    assert r.status_code == 429
    assert r.data['error']['code'] == 'rate_limited'
    assert r.data['error']['message'].startswith('Too many requests in a short time')
    assert r.data['error']['retryable'] is True


@pytest.mark.parametrize('status', [500, 503])
def test_backend_5xx_names_the_status(api, backend, status):
    backend.on('GET', STATS, {'message': 'SQLSTATE[HY000]'}, status=status)
    r = api('manager').get('/api/clinic/dashboard/stats')
    assert r.status_code == status
    assert r.data['error']['code'] == 'server_error'
    assert r.data['error']['message'] == f'Server error ({status}). Please contact support or try again later.'


def test_other_backend_status_carries_message(api, backend):
    backend.on('GET', STATS, {'message': 'Clinic not found'}, status=404)
    r = api('manager').get('/api/clinic/dashboard/stats')
    assert r.status_code == 404
    assert r.data['error'] == {'code': 'api_error', 'message': 'Clinic not found'}


def test_non_json_error_body_becomes_message(api, backend):
    backend.on('GET', STATS, 'Bad Gateway', status=400)
    r = api('manager').get('/api/clinic/dashboard/stats')
    assert r.status_code == 400
    assert r.data['error']['message'] == 'Bad Gateway'


def test_wrong_role_is_forbidden(api, backend):
    r = api('doctor').get('/api/clinic/dashboard/stats')
    assert r.status_code == 403
    assert r.data['error'] == {'code': 'forbidden', 'message': 'You are not authorized to perform this action.'}
    assert backend.calls_to('GET', STATS) == []


def test_success_false_is_not_applied(api, backend):
    backend.on('PUT', '/secretary/appointments/approve/5', {'success': False, 'message': 'Slot already taken'})
    r = api('secretary').put('/api/secretary/appointments/5/approve')
    assert r.status_code == 409
    assert r.data['error'] == {'code': 'not_applied', 'message': 'Slot already taken'}


def test_dashboard_stats_are_numbers(api, backend):
    backend.on('GET', STATS, {'success': True, 'data': {
        'employees_count': 4, 'monthly_revenue': '1250.50', 'active_doctors_count': '2',
    }})
    r = api('manager').get('/api/clinic/dashboard/stats')
    assert r.status_code == 200
    assert r.data['data'] == {
        'employees_count': 4,
        'today_appointments_count': 0,
        'total_patients_count': 0,
        'monthly_revenue': 1250.5,
        'active_doctors_count': 2,
    }


def test_flatten_fields_joins_nested_keys():
    detail = {'clinic': {'phone': ['bad']}, 'non_field_errors': ['whole form']}
    assert _flatten_fields(detail) == {'clinic.phone': ['bad'], 'non_field_errors': ['whole form']}


def test_single_field_error_reads_as_plain_sentence():
    assert _first_message({'identifier': ['Too short']}) == 'Too short'
    assert _first_message({'name': ['Required'], 'phone': ['Bad']}) == 'name: Required'
    assert _first_message({}) == 'Invalid data.'


def test_backend_client_closes_its_connection_pool(backend, monkeypatch):
    closed = []
    monkeypatch.setattr(requests.Session, 'close', lambda self: closed.append(self))
    backend.on('GET', STATS, {'data': {}})
    client = BackendClient(token='tok-manager')
    client.get(STATS)
    client.get(STATS)
    assert len(closed) == 2
    assert not hasattr(client, 'session')
