"""
In-app notifications.

The backend returns two shapes: raw database notifications, with the
content under ``data``, and API resources, with ``title`` at the top level.
"""
from typing import Optional

from portal.services.backend import BackendClient, extract_list


def map_notification(raw: dict) -> dict:
    from_resource = 'title' in raw
    data = (raw.get('payload') if from_resource else raw.get('data')) or {}
    source = raw if from_resource else data
    cta = source.get('cta') or {}
    read_at = raw.get('read_at')
    return {
        'id': raw.get('id'),
        'title': source.get('title') or 'Notification',
        'body': source.get('body') or '',
        'category': source.get('category') or 'other',
        'actionLabel': cta.get('label'),
        'href': cta.get('path') or cta.get('url'),
        'createdAt': raw.get('created_at'),
        'readAt': read_at,
        'status': 'read' if read_at else 'unread',
        'payload': data,
    }


def list_notifications(client: BackendClient, status: Optional[str] = None, per_page: int = 20) -> dict:
    params = {'per_page': per_page}
    if status in ('read', 'unread'):
        params['status'] = status
    payload = client.get('/notifications', params=params)
    items = [map_notification(n) for n in extract_list(payload) if isinstance(n, dict)]
    meta = payload.get('meta') if isinstance(payload, dict) else None
    return {
        'data': items,
        'unreadCount': sum(1 for n in items if n['status'] == 'unread'),
        'meta': meta or {},
    }


def mark_read(client: BackendClient, notification_id):
    return client.post(f'/notifications/{notification_id}/read')


def mark_all_read(client: BackendClient):
    return client.post('/notifications/read-all')
