import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from django.db import DatabaseError
from django.utils import timezone

from portal.models import AuditEvent

logger = logging.getLogger(__name__)


def log_action(*, user, action: str, object_type: Optional[str]=None, object_id=None, detail: Optional[Dict[str, Any]]=None) -> Optional[AuditEvent]:
    try:
        return AuditEvent.objects.create(
            user_id=getattr(user, 'id', None),
            user_name=getattr(user, 'name', '') or '',
            role=getattr(user, 'role', '') or '',
            clinic_id=getattr(user, 'clinic_id', None),
            action=action,
            object_type=object_type,
            object_id=str(object_id) if object_id is not None else None,
            detail=detail or {},
        )
    except DatabaseError as exc:
        logger.error(f"Failed to record audit event {action}: {exc}")
        return None


def purge_older_than(days: int) -> int:
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = AuditEvent.objects.filter(created_at__lt=cutoff).delete()
    return deleted
