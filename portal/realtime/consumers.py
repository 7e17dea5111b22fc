import json
import logging
from urllib.parse import parse_qs

from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.conf import settings
from django.http import parse_cookie
from rest_framework.exceptions import APIException

from portal.authentication import resolve_backend_user
from portal.services.events import PLATFORM_GROUP, clinic_group

logger = logging.getLogger(__name__)


def _token_from_scope(scope):
    query = parse_qs(scope.get('query_string', b'').decode('utf-8', errors='ignore'))
    if query.get('token'):
        return query['token'][0]
    for name, value in scope.get('headers', []):
        if name == b'cookie':
            cookies = parse_cookie(value.decode('latin-1'))
            return cookies.get(settings.AUTH_COOKIE_NAME) or None
    return None


class UpdatesConsumer(AsyncWebsocketConsumer):
    """Pushes refresh hints to a signed-in dashboard: its clinic group, plus ``platform`` for admins."""

    async def connect(self):
        self.groups_joined = []
        token = _token_from_scope(self.scope)
        if not token:
            await self.close(code=4401)
            return
        try:
            user = await sync_to_async(resolve_backend_user)(token)
        except APIException as exc:
            logger.info(f"WebSocket rejected: {exc.detail}")
            await self.close(code=4401)
            return

        if user.clinic_id:
            self.groups_joined.append(clinic_group(user.clinic_id))
        if user.is_platform_admin:
            self.groups_joined.append(PLATFORM_GROUP)
        for group in self.groups_joined:
            await self.channel_layer.group_add(group, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected", "groups": self.groups_joined}))

    async def disconnect(self, close_code):
        for group in getattr(self, 'groups_joined', []):
            await self.channel_layer.group_discard(group, self.channel_name)

    async def broadcast_refresh(self, event):
        # event: {"type": "broadcast.refresh", "kind": "...", "ts": "...", "data": {...}}
        await self.send(json.dumps(event))
