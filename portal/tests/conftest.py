import json

import pytest
import requests
from django.conf import settings
from django.core.cache import cache
from rest_framework.test import APIClient

USERS = {
    'tok-manager': {'id': 1, 'name': 'Mona Manager', 'email': 'mona@clinic.test', 'phone': '0500000001',
                    'role': 'Manager', 'clinic_id': 7},
    'tok-secretary': {'id': 2, 'name': 'Sami Desk', 'email': 'sami@clinic.test', 'phone': '0500000002',
                      'role': 'Secretary', 'clinic_id': 7},
    'tok-doctor': {'id': 3, 'name': 'Dana Doctor', 'email': 'dana@clinic.test', 'phone': '0500000003',
                   'role': 'Doctor', 'clinic_id': 7},
    'tok-patient': {'id': 4, 'name': 'Paul Patient', 'email': 'paul@mail.test', 'phone': '0500000004',
                    'role': 'Patient', 'clinic_id': 7},
    'tok-admin': {'id': 9, 'name': 'Ada Admin', 'email': 'ada@platform.test', 'phone': '0500000009',
                  'role': 'Admin', 'is_platform_admin': True},
}


class FakeBackend:
    """Stands in for ``requests.Session.request``; answers by ``(method, path)``.

    A route answer is ``(status, body)``, an exception instance to raise, or
    a callable taking the recorded call and returning one of those.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.on('GET', settings.BACKEND_PROFILE_PATH, self._profile)

    def on(self, method, path, answer=None, status=200):
        if answer is None or isinstance(answer, (dict, list, str)):
            answer = (status, answer if answer is not None else {})
        self.routes[(method.upper(), path)] = answer

    def calls_to(self, method, path):
        return [c for c in self.calls if c['method'] == method.upper() and c['path'] == path]

    def _profile(self, call):
        auth = (call['headers'] or {}).get('Authorization', '')
        user = USERS.get(auth.replace('Bearer ', '', 1))
        if user is None:
            return 401, {'message': 'Unauthenticated.'}
        return 200, {'success': True, 'data': {'user': user}}

    def __call__(self, method, url, **kwargs):
        path = url[len(settings.BACKEND_API_URL):]
        call = {'method': method.upper(), 'path': path, **kwargs}
        self.calls.append(call)
        answer = self.routes.get((call['method'], path), (404, {'message': 'Not found'}))
        if callable(answer):
            answer = answer(call)
        if isinstance(answer, Exception):
            raise answer
        status, body = answer
        resp = requests.Response()
        resp.status_code = status
        resp.reason = 'OK' if status < 400 else 'Error'
        resp.url = url
        if isinstance(body, str):
            resp._content = body.encode('utf-8')
            resp.headers['Content-Type'] = 'text/plain'
        else:
            resp._content = json.dumps(body).encode('utf-8')
            resp.headers['Content-Type'] = 'application/json'
        return resp


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(requests.Session, 'request', fake)
    return fake


@pytest.fixture
def api(backend):
    """``api('manager')`` is an APIClient signed in with that role's bearer token."""
    def make(role=None):
        client = APIClient()
        if role:
            client.credentials(HTTP_AUTHORIZATION=f'Bearer tok-{role}')
        return client
    return make
