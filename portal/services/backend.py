"""
HTTP client for the clinic REST backend.

All dashboard data lives in the backend; the gateway only forwards the
caller's bearer token and reshapes what comes back. Errors are raised as
DRF exceptions so views can let them propagate to the exception handler.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import requests
from django.conf import settings

from portal.exceptions import ActionNotApplied, BackendError, BackendUnavailable

logger = logging.getLogger(__name__)


def _decode(resp: requests.Response) -> Any:
    if not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError:
        return {'message': resp.text}


def _clean(params: Optional[dict]) -> Optional[dict]:
    if params is None:
        return None
    return {k: v for k, v in params.items() if v not in (None, '')}


class BackendClient:
    def __init__(self, token: Optional[str] = None, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.token = token
        self.base_url = (base_url or settings.BACKEND_API_URL).rstrip('/')
        self.timeout = settings.BACKEND_TIMEOUT if timeout is None else timeout

    def headers(self) -> dict:
        h = {'Accept': 'application/json'}
        if self.token:
            h['Authorization'] = f'Bearer {self.token}'
        return h

    def request(self, method: str, path: str, *, params=None, json=None, data=None, files=None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = requests.request(
                method,
                url,
                params=_clean(params),
                json=json,
                data=data,
                files=files,
                headers=self.headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error(f"Backend unreachable: {method} {path}: {exc}")
            raise BackendUnavailable() from exc

        payload = _decode(resp)
        if not resp.ok:
            if resp.status_code >= 500:
                logger.error(f"Backend {method} {path} failed with HTTP {resp.status_code}")
            raise BackendError(resp.status_code, payload, path)
        return payload

    def get(self, path: str, params=None) -> Any:
        return self.request('GET', path, params=params)

    def post(self, path: str, json=None, data=None, files=None, params=None) -> Any:
        return self.request('POST', path, params=params, json=json, data=data, files=files)

    def put(self, path: str, json=None, data=None, files=None) -> Any:
        return self.request('PUT', path, json=json, data=data, files=files)

    def patch(self, path: str, json=None) -> Any:
        return self.request('PATCH', path, json=json)

    def delete(self, path: str) -> Any:
        return self.request('DELETE', path)


def client_for(request) -> BackendClient:
    """Client carrying the token the caller authenticated with."""
    return BackendClient(token=getattr(request, 'auth', None))


def unwrap(payload: Any) -> Any:
    if isinstance(payload, dict) and 'data' in payload:
        return payload['data']
    return payload


def extract_list(payload: Any, keys: Iterable[str] = ('data',)) -> list:
    """First list found under ``keys`` (looking one ``data`` level deep), or a bare list."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list):
            return value
    inner = payload.get('data')
    if isinstance(inner, dict):
        return extract_list(inner, keys)
    return []


def ensure_applied(payload: Any, default_message: str = 'The action was not applied.') -> Any:
    """Raise ``ActionNotApplied`` when the backend answered ``success: false``."""
    if isinstance(payload, dict) and payload.get('success') is False:
        raise ActionNotApplied(payload.get('message') or default_message)
    return payload
