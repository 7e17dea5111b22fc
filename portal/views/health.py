import time

from django.conf import settings
from django.db import DatabaseError, connections
from django.http import JsonResponse

from portal.exceptions import BackendError, BackendUnavailable
from portal.services.backend import BackendClient


def ping_backend():
    """Returns ``(reachable, latency_ms, detail)``. Any HTTP answer counts as reachable."""
    started = time.monotonic()
    try:
        BackendClient(timeout=min(settings.BACKEND_TIMEOUT, 3)).get(settings.BACKEND_HEALTH_PATH)
        detail = 'ok'
    except BackendError as exc:
        detail = f'HTTP {exc.status_code}'
    except BackendUnavailable as exc:
        return False, None, str(exc.detail)
    return True, round((time.monotonic() - started) * 1000), detail


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        db_ok = bool(row and row[0] == 1)
    except DatabaseError as e:
        return JsonResponse({'ok': False, 'db': False, 'error': str(e)}, status=500)
    reachable, latency, detail = ping_backend()
    status = 200 if db_ok and reachable else 503
    return JsonResponse({
        'ok': db_ok and reachable,
        'db': db_ok,
        'backend': {'reachable': reachable, 'latencyMs': latency, 'detail': detail},
    }, status=status)
