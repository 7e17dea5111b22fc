"""
Errors raised while talking to the clinic backend and the unified API
exception handler.

Every error leaves the gateway in one envelope,
``{'ok': False, 'error': {'code': ..., 'message': ...}}``, chosen by HTTP
status: 401 sends the dashboard back to login, 403 carries an
authorization message, 422 carries field messages, 429 and 5xx carry a
retry prompt.
"""
from __future__ import annotations

import logging

from django.conf import settings
from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

LOGIN_REDIRECT = '/login'

SESSION_EXPIRED = 'Your session expired. Please login again.'
NOT_AUTHORIZED = 'You are not authorized to perform this action.'
RATE_LIMITED = 'Too many requests in a short time. Please wait a few seconds and try again.'
UNREACHABLE = 'Cannot connect to server. Please ensure the backend API is running.'


def _backend_message(payload) -> str | None:
    if isinstance(payload, dict):
        msg = payload.get('message') or payload.get('error')
        if isinstance(msg, str) and msg:
            return msg
    return None


class BackendError(exceptions.APIException):
    """The backend answered with a non-2xx status."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Backend request failed.'
    default_code = 'api_error'

    def __init__(self, status_code: int, payload=None, path: str = ''):
        self.status_code = status_code
        self.payload = payload if payload is not None else {}
        self.path = path
        super().__init__(_backend_message(self.payload) or f'Backend request failed (HTTP {status_code}).')

    @property
    def errors(self) -> dict:
        errs = self.payload.get('errors') if isinstance(self.payload, dict) else None
        return errs if isinstance(errs, dict) else {}


class BackendUnavailable(exceptions.APIException):
    """The backend could not be reached at all."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = UNREACHABLE
    default_code = 'backend_unreachable'


class ActionNotApplied(exceptions.APIException):
    """The backend acknowledged the call but reported ``success: false``."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The action was not applied.'
    default_code = 'not_applied'


class InvalidBackendResponse(exceptions.APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Invalid response from server.'
    default_code = 'invalid_backend_response'


class InvalidCredentials(exceptions.APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid credentials.'
    default_code = 'invalid_credentials'


def _envelope(code: str, message, http_status: int, **extra) -> Response:
    error = {'code': code, 'message': message}
    error.update(extra)
    return Response({'ok': False, 'error': error}, status=http_status)


def _flatten_fields(detail) -> dict:
    """Turn DRF's nested validation detail into ``{'a.b': ['msg']}``."""
    out: dict[str, list[str]] = {}

    def walk(prefix, value):
        if isinstance(value, dict):
            for k, v in value.items():
                walk(f'{prefix}.{k}' if prefix else str(k), v)
        elif isinstance(value, list) and value and all(not isinstance(v, (dict, list)) for v in value):
            out[prefix or 'non_field_errors'] = [str(v) for v in value]
        elif isinstance(value, list):
            for i, v in enumerate(value):
                walk(f'{prefix}.{i}', v)
        else:
            out[prefix or 'non_field_errors'] = [str(value)]

    walk('', detail)
    return out


def _first_message(fields: dict) -> str:
    """A lone field error reads as its own sentence; with several, the field is named."""
    filled = [(name, messages) for name, messages in fields.items() if messages]
    if not filled:
        return 'Invalid data.'
    name, messages = filled[0]
    if name == 'non_field_errors' or len(filled) == 1:
        return messages[0]
    return f'{name}: {messages[0]}'


def _unauthenticated(message: str) -> Response:
    resp = _envelope('unauthenticated', message, status.HTTP_401_UNAUTHORIZED, redirect=LOGIN_REDIRECT)
    resp.delete_cookie(settings.AUTH_COOKIE_NAME)
    return resp


def _from_backend(exc: BackendError, context) -> Response:
    code = exc.status_code
    message = _backend_message(exc.payload)
    if code == 401:
        from portal.authentication import forget_token
        request = context.get('request')
        forget_token(getattr(request, 'auth', None))
        return _unauthenticated(SESSION_EXPIRED)
    if code == 403:
        return _envelope('forbidden', message or NOT_AUTHORIZED, code)
    if code == 422:
        fields = {k: [str(m) for m in (v if isinstance(v, list) else [v])] for k, v in exc.errors.items()}
        return _envelope('validation_error', message or _first_message(fields), code, fields=fields)
    if code == 429:
        return _envelope('rate_limited', RATE_LIMITED, code, retryable=True)
    if code >= 500:
        logger.error(f"Backend server error {code} on {exc.path}: {exc.payload}")
        return _envelope(
            'server_error',
            f'Server error ({code}). Please contact support or try again later.',
            code,
            retryable=True,
        )
    return _envelope('api_error', message or str(exc.detail), code)


def api_exception_handler(exc, context):
    # rest_framework.views loads DEFAULT_AUTHENTICATION_CLASSES, which import this module
    from rest_framework.views import exception_handler as drf_exception_handler

    if isinstance(exc, BackendError):
        return _from_backend(exc, context)
    if isinstance(exc, BackendUnavailable):
        return _envelope('backend_unreachable', str(exc.detail), exc.status_code, retryable=True)
    if isinstance(exc, exceptions.ValidationError):
        fields = _flatten_fields(exc.detail)
        return _envelope('validation_error', _first_message(fields), status.HTTP_422_UNPROCESSABLE_ENTITY, fields=fields)
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        return _unauthenticated(str(exc.detail))
    if isinstance(exc, exceptions.PermissionDenied):
        detail = str(exc.detail)
        return _envelope('forbidden', detail if detail != exceptions.PermissionDenied.default_detail else NOT_AUTHORIZED, exc.status_code)
    if isinstance(exc, exceptions.Throttled):
        return _envelope('rate_limited', RATE_LIMITED, exc.status_code, retryable=True, wait=exc.wait)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('Unhandled error in %s', getattr(context.get('view'), '__name__', context.get('view')))
        return _envelope('server_error', 'Server error. Please try again later.', 500, retryable=True)
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    code = exc.get_codes() if isinstance(exc, exceptions.APIException) else None
    if not isinstance(code, str):
        code = getattr(exc, 'default_code', None) or 'api_error'
    return _envelope(code, detail, resp.status_code)
