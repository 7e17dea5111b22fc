import os
import subprocess
import sys
from datetime import timedelta
from io import StringIO

import pytest
import requests
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.conf import settings
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from portal.models import AuditEvent
from portal.realtime.consumers import UpdatesConsumer
from portal.services.audit import log_action
from portal.services.events import notify_clinic

pytestmark = pytest.mark.django_db


def test_healthz_reports_db_and_backend(client, backend):
    backend.on('GET', settings.BACKEND_HEALTH_PATH, {'status': 'ok'})
    r = client.get('/healthz')
    assert r.status_code == 200
    body = r.json()
    assert body['ok'] is True
    assert body['db'] is True
    assert body['backend']['reachable'] is True
    assert body['backend']['detail'] == 'ok'


def test_healthz_counts_any_http_answer_as_reachable(client, backend):
    r = client.get('/healthz')
    assert r.status_code == 200
    assert r.json()['backend']['detail'] == 'HTTP 404'


def test_healthz_is_503_when_backend_is_down(client, backend):
    backend.on('GET', settings.BACKEND_HEALTH_PATH, requests.ConnectionError('refused'))
    r = client.get('/healthz')
    assert r.status_code == 503
    assert r.json()['backend']['reachable'] is False


def test_check_backend_command(backend):
    backend.on('GET', settings.BACKEND_HEALTH_PATH, {'status': 'ok'})
    out = StringIO()
    call_command('check_backend', stdout=out)
    assert 'Backend reachable' in out.getvalue()


def test_check_backend_command_fails_when_down(backend):
    backend.on('GET', settings.BACKEND_HEALTH_PATH, requests.ConnectionError('refused'))
    with pytest.raises(CommandError):
        call_command('check_backend', stdout=StringIO())


def test_purge_audit_events():
    old = log_action(user=None, action='login', detail={'result': 'fail'})
    AuditEvent.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=120))
    log_action(user=None, action='login', detail={'result': 'fail'})
    out = StringIO()
    call_command('purge_audit_events', '--days', '90', stdout=out)
    assert AuditEvent.objects.count() == 1
    assert 'Purged 1 audit events' in out.getvalue()


def test_purge_audit_events_rejects_zero_days():
    with pytest.raises(CommandError):
        call_command('purge_audit_events', '--days', '0', stdout=StringIO())


def test_updates_socket_receives_clinic_refresh(backend):
    async def scenario():
        communicator = WebsocketCommunicator(UpdatesConsumer.as_asgi(), '/ws/updates/?token=tok-manager')
        connected, _ = await communicator.connect()
        assert connected
        welcome = await communicator.receive_json_from()
        await get_channel_layer().group_send('clinic.7', {
            'type': 'broadcast.refresh', 'kind': 'appointments', 'ts': 'now', 'data': {'id': 1},
        })
        event = await communicator.receive_json_from()
        await communicator.disconnect()
        return welcome, event

    welcome, event = async_to_sync(scenario)()
    assert welcome['type'] == 'welcome'
    assert welcome['groups'] == ['clinic.7']
    assert event['kind'] == 'appointments'
    assert event['data'] == {'id': 1}


def test_updates_socket_joins_platform_group_for_admin(backend):
    async def scenario():
        communicator = WebsocketCommunicator(
            UpdatesConsumer.as_asgi(), '/ws/updates/',
            headers=[(b'cookie', f'{settings.AUTH_COOKIE_NAME}=tok-admin'.encode())],
        )
        connected, _ = await communicator.connect()
        welcome = await communicator.receive_json_from()
        await communicator.disconnect()
        return connected, welcome

    connected, welcome = async_to_sync(scenario)()
    assert connected
    assert welcome['groups'] == ['platform']


def test_updates_socket_rejects_unknown_token(backend):
    async def scenario():
        communicator = WebsocketCommunicator(UpdatesConsumer.as_asgi(), '/ws/updates/?token=revoked')
        result = await communicator.connect()
        await communicator.disconnect()
        return result

    connected, code = async_to_sync(scenario)()
    assert connected is False
    assert code == 4401


def test_notify_without_clinic_is_a_no_op(backend):
    notify_clinic(None, 'appointments')


@pytest.mark.parametrize('code', [
    'import django; django.setup(); import portal.exceptions',
    'import django; django.setup(); from django.core.management import call_command; call_command("check")',
    'import clinic_saas.asgi',
])
def test_project_loads_in_a_fresh_interpreter(code):
    env = {**os.environ, 'DJANGO_SETTINGS_MODULE': 'clinic_saas.settings'}
    done = subprocess.run([sys.executable, '-c', code], cwd=settings.BASE_DIR, env=env,
                          capture_output=True, text=True, timeout=60)
    assert done.returncode == 0, done.stderr
