"""
Patient records and the reception lookup autocomplete.

The dashboard fires a lookup on every keystroke. Two things keep the
backend from being hammered: identical identifiers from the same caller
within the debounce window are answered from cache, and a request carrying
an older ``seq`` than the newest one already seen is answered as stale
without calling the backend.
"""
from __future__ import annotations

import hashlib
import logging
import time
import uuid
from typing import Optional

from django.conf import settings
from django.core.cache import cache

from portal.exceptions import BackendError, BackendUnavailable
from portal.services.backend import BackendClient, extract_list

logger = logging.getLogger(__name__)

SEQ_TTL = 300


def _first(*values):
    for v in values:
        if v not in (None, ''):
            return v
    return None


def adapt_lookup_patient(record: dict) -> dict:
    user = record.get('user') if isinstance(record.get('user'), dict) else {}
    patient_id = _first(
        record.get('patient_id'), record.get('patientId'), record.get('id'),
        user.get('id'), record.get('user_id'), record.get('national_id'),
        user.get('phone'), user.get('email'),
    )
    if patient_id is None:
        patient_id = f'patient-{uuid.uuid4().hex[:7]}'
    user_id = _first(user.get('user_id'), user.get('id'), record.get('user_id'))
    return {
        'patientId': str(patient_id),
        'nationalId': _first(record.get('national_id'), record.get('nationalId')),
        'userId': str(user_id) if user_id is not None else None,
        'name': _first(user.get('name'), record.get('name')),
        'phone': _first(user.get('phone'), record.get('phone')),
        'email': _first(user.get('email'), record.get('email')),
        'raw': record,
    }


def _lookup_key(caller, identifier: str) -> str:
    digest = hashlib.sha256(identifier.encode('utf-8')).hexdigest()[:16]
    return f'lookup:{caller}:{digest}'


def is_stale(caller, seq: Optional[int]) -> bool:
    """Record ``seq`` as the caller's newest search, or report it as superseded."""
    if seq is None:
        return False
    key = f'lookup:seq:{caller}'
    newest = cache.get(key)
    if newest is not None and seq < newest:
        return True
    cache.set(key, seq, SEQ_TTL)
    return False


def lookup_patients(client: BackendClient, caller, identifier: str, seq: Optional[int] = None) -> tuple[dict, int]:
    """Returns ``(payload, http_status)``; session and permission failures propagate."""
    if is_stale(caller, seq):
        return {'ok': True, 'stale': True, 'data': []}, 200

    key = _lookup_key(caller, identifier)
    window = settings.PATIENT_LOOKUP_DEBOUNCE_MS / 1000.0
    hit = cache.get(key)
    if hit and time.time() - hit['at'] <= window:
        return hit['result'], 200

    try:
        payload = client.get('/clinic/patients/lookup', params={'identifier': identifier})
    except BackendError as exc:
        if exc.status_code in (401, 403):
            raise
        logger.warning(f"Patient lookup failed with HTTP {exc.status_code}")
        return {'ok': False, 'data': [], 'noResults': True, 'retryable': True}, exc.status_code
    except BackendUnavailable as exc:
        return {'ok': False, 'data': [], 'noResults': True, 'retryable': True}, exc.status_code

    records = extract_list(payload, ('patients', 'data'))
    mapped = [adapt_lookup_patient(r) for r in records[:settings.PATIENT_LOOKUP_LIMIT] if isinstance(r, dict)]
    result = {'ok': True, 'data': mapped, 'noResults': not mapped}
    cache.set(key, {'at': time.time(), 'result': result}, max(1, int(window) + 1))
    return result, 200


def list_patients(client: BackendClient, query: str = '') -> list:
    query = (query or '').strip()
    if query:
        payload = client.get('/clinic/patients/search', params={'query': query})
    else:
        payload = client.get('/clinic/patients')
    return extract_list(payload, ('patients', 'data'))


def create_patient(client: BackendClient, data: dict):
    return client.post('/clinic/patients', json=data)


def get_patient(client: BackendClient, patient_id):
    return client.get(f'/clinic/patients/{patient_id}')


def update_patient(client: BackendClient, patient_id, data: dict):
    return client.put(f'/clinic/patients/{patient_id}', json=data)
