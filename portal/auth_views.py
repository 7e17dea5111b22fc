"""
Login, logout, profile and clinic self-registration.

Credentials are checked by the backend; the gateway keeps the returned
token in an HttpOnly cookie and caches the caller's profile under it.
"""
from __future__ import annotations

import logging

from django.conf import settings
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from portal.authentication import BackendUser, cache_profile, dashboard_path, forget_token, token_from_request
from portal.exceptions import BackendError, BackendUnavailable, InvalidBackendResponse, InvalidCredentials
from portal.serializers.auth import LoginSerializer
from portal.serializers.clinic import ClinicRegistrationSerializer
from portal.serializers.common import nest_form_keys
from portal.services.audit import log_action
from portal.services.backend import BackendClient, unwrap

logger = logging.getLogger(__name__)

CLINIC_DASHBOARD = '/clinic/dashboard'


def _set_auth_cookie(resp: Response, token: str) -> None:
    resp.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        max_age=settings.AUTH_COOKIE_DAYS * 24 * 3600,
        httponly=True,
        samesite='Strict',
        secure=settings.AUTH_COOKIE_SECURE,
    )


def _client_ip(request):
    return request.META.get('REMOTE_ADDR')


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login_view(request):
    """
    Email-or-phone + password login against the backend.

    Both the wrapped (``{success, data: {...}}``) and the flat response
    shapes are accepted. The answer carries the dashboard the caller's role
    lands on.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    try:
        payload = BackendClient().post('/login', json={'login': vd['login'], 'password': vd['password']})
    except BackendError as exc:
        if exc.status_code in (400, 401):
            log_action(user=None, action='login', object_type='user',
                       detail={'result': 'fail', 'login': vd['login'], 'ip': _client_ip(request)})
            raise InvalidCredentials(str(exc.detail))
        raise

    data = unwrap(payload) if isinstance(payload, dict) else None
    token = data.get('token') if isinstance(data, dict) else None
    if not (isinstance(data, dict) and isinstance(data.get('user'), dict) and token):
        logger.error('Login response without user or token')
        raise InvalidBackendResponse('Invalid login response from server', code='invalid_login_response')

    user = BackendUser.from_payload(data)
    cache_profile(token, user)
    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': _client_ip(request)})

    resp = Response({
        'ok': True,
        'token': token,
        'user': user.to_dict(),
        'role': user.role,
        'isPlatformAdmin': user.is_platform_admin,
        'clinic': user.clinic,
        'redirect': dashboard_path(user),
    }, status=200)
    _set_auth_cookie(resp, token)
    return resp

login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def logout_view(request):
    """Always succeeds locally; a failing backend logout is only logged."""
    token = token_from_request(request)
    if token:
        try:
            BackendClient(token=token).post('/auth/logout')
        except (BackendError, BackendUnavailable) as exc:
            logger.info(f"Backend logout failed, clearing local session anyway: {exc.detail}")
        forget_token(token)
    resp = Response({'ok': True, 'redirect': '/login'})
    resp.delete_cookie(settings.AUTH_COOKIE_NAME)
    return resp


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    user = request.user
    return Response({'ok': True, 'data': user.to_dict(), 'redirect': dashboard_path(user)})


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def register_clinic_view(request):
    """
    Public clinic registration (clinic + first manager + optional logo).

    Accepts JSON with nested ``clinic``/``manager`` objects or multipart with
    ``clinic[name]``-style keys; always forwarded to the backend as
    multipart.
    """
    if request.content_type and request.content_type.startswith('multipart/'):
        incoming = nest_form_keys(request.data)
    else:
        incoming = request.data
    s = ClinicRegistrationSerializer(data=incoming)
    s.is_valid(raise_exception=True)

    files = {k: (None, str(v)) for k, v in s.to_form_data().items()}
    logo = s.validated_data.get('logo')
    if logo:
        files['logo'] = (logo.name, logo.read(), logo.content_type)

    payload = BackendClient().post('/register/clinic', files=files)
    data = unwrap(payload) if isinstance(payload, dict) else {}
    data = data if isinstance(data, dict) else {}
    token = data.get('token') or (payload.get('token') if isinstance(payload, dict) else None)
    manager = data.get('manager') or data.get('user')

    clinic_name = s.validated_data['clinic']['name']
    clinic = data.get('clinic') if isinstance(data.get('clinic'), dict) else {}
    log_action(user=None, action='register_clinic', object_type='clinic',
               object_id=clinic.get('clinic_id') or clinic.get('id'),
               detail={'clinic': clinic_name, 'manager_email': s.validated_data['manager']['email'], 'ip': _client_ip(request)})
    logger.info(f"Clinic registered: {clinic_name}")

    resp = Response({'ok': True, 'token': token, 'manager': manager, 'redirect': CLINIC_DASHBOARD}, status=201)
    if token:
        _set_auth_cookie(resp, token)
    return resp

register_clinic_view.cls.throttle_scope = 'register'
