"""
Refresh events pushed to open dashboards over the ``ws/updates/`` socket.

Every clinic has its own group (``clinic.<id>``); the platform admin
dashboard listens on ``platform``.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

logger = logging.getLogger(__name__)

PLATFORM_GROUP = 'platform'


def clinic_group(clinic_id) -> str:
    return f'clinic.{clinic_id}'


def broadcast(group: str, kind: str, data=None) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    event = {
        'type': 'broadcast.refresh',
        'kind': kind,
        'ts': timezone.now().isoformat(),
        'data': data or {},
    }
    try:
        async_to_sync(channel_layer.group_send)(group, event)
    except Exception as exc:  # channel layer outage must not fail the request
        logger.warning(f"Broadcast {kind} to {group} failed: {exc}")


def notify_clinic(clinic_id, kind: str, data=None) -> None:
    if clinic_id:
        broadcast(clinic_group(clinic_id), kind, data)


def notify_platform(kind: str, data=None) -> None:
    broadcast(PLATFORM_GROUP, kind, data)
