"""
Bearer token authentication against the clinic backend.

The gateway never issues credentials. A token comes from the
``Authorization: Bearer`` header or the ``auth_token`` cookie set at login;
the caller's identity is the backend profile for that token, cached per
token so each dashboard request does not cost an extra round trip.
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings
from django.core.cache import cache
from rest_framework import authentication, exceptions

from portal.exceptions import BackendError, SESSION_EXPIRED
from portal.services.backend import BackendClient, unwrap

logger = logging.getLogger(__name__)

ROLE_ADMIN = 'Admin'
ROLE_MANAGER = 'Manager'
ROLE_DOCTOR = 'Doctor'
ROLE_SECRETARY = 'Secretary'
ROLE_PATIENT = 'Patient'

DASHBOARD_PATHS = {
    ROLE_MANAGER: '/clinic/dashboard',
    ROLE_DOCTOR: '/doctor/dashboard',
    ROLE_SECRETARY: '/reception/dashboard',
    ROLE_PATIENT: '/patient/dashboard',
}


def _normalize_role(value) -> Optional[str]:
    if not value:
        return None
    value = str(value).strip()
    for role in (ROLE_ADMIN, ROLE_MANAGER, ROLE_DOCTOR, ROLE_SECRETARY, ROLE_PATIENT):
        if value.lower() == role.lower():
            return role
    return value


@dataclass
class BackendUser:
    """The authenticated caller as described by the backend profile."""
    id: Optional[int]
    name: str = ''
    email: str = ''
    phone: str = ''
    role: Optional[str] = None
    is_platform_admin: bool = False
    clinic_id: Optional[int] = None
    clinic: Optional[dict] = None
    raw: dict = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_anonymous(self) -> bool:
        return False

    @property
    def pk(self):
        return self.id

    @classmethod
    def from_payload(cls, payload: dict) -> 'BackendUser':
        data = unwrap(payload) or {}
        user = data.get('user') if isinstance(data.get('user'), dict) else data
        clinic = user.get('clinic') or data.get('clinic')
        clinic_id = user.get('clinic_id') or (clinic.get('id') if isinstance(clinic, dict) else None)
        return cls(
            id=user.get('id') or user.get('user_id'),
            name=user.get('name') or '',
            email=user.get('email') or '',
            phone=user.get('phone') or '',
            role=_normalize_role(user.get('role')),
            is_platform_admin=bool(user.get('is_platform_admin') or data.get('is_platform_admin')),
            clinic_id=clinic_id,
            clinic=clinic if isinstance(clinic, dict) else None,
            raw=user,
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'role': self.role,
            'isPlatformAdmin': self.is_platform_admin,
            'clinicId': self.clinic_id,
            'clinic': self.clinic,
        }


def dashboard_path(user: BackendUser) -> str:
    if user.is_platform_admin:
        return '/platform/dashboard'
    return DASHBOARD_PATHS.get(user.role or '', '/dashboard')


def _cache_key(token: str) -> str:
    return 'profile:' + hashlib.sha256(token.encode('utf-8')).hexdigest()


def cache_profile(token: str, user: BackendUser) -> None:
    cache.set(_cache_key(token), user, settings.PROFILE_CACHE_SECONDS)


def forget_token(token: Optional[str]) -> None:
    if token:
        cache.delete(_cache_key(token))


def resolve_backend_user(token: str) -> BackendUser:
    cached = cache.get(_cache_key(token))
    if cached is not None:
        return cached
    try:
        payload = BackendClient(token=token).get(settings.BACKEND_PROFILE_PATH)
    except BackendError as exc:
        if exc.status_code in (401, 403):
            raise exceptions.AuthenticationFailed(SESSION_EXPIRED)
        raise
    user = BackendUser.from_payload(payload)
    cache_profile(token, user)
    return user


def token_from_request(request) -> Optional[str]:
    header = authentication.get_authorization_header(request).split()
    if header and header[0].lower() == b'bearer':
        if len(header) != 2:
            raise exceptions.AuthenticationFailed('Invalid bearer header.')
        return header[1].decode('utf-8', errors='ignore')
    return request.COOKIES.get(settings.AUTH_COOKIE_NAME) or None


class BearerTokenAuthentication(authentication.BaseAuthentication):
    keyword = 'Bearer'

    def authenticate(self, request):
        token = token_from_request(request)
        if not token:
            return None
        return resolve_backend_user(token), token

    def authenticate_header(self, request):
        return self.keyword
