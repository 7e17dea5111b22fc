from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.services import notifications as svc
from portal.services.backend import client_for, ensure_applied


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notifications(request):
    try:
        per_page = int(request.query_params.get('per_page', 20))
    except (TypeError, ValueError):
        per_page = 20
    per_page = min(max(per_page, 1), 100)
    data = svc.list_notifications(client_for(request), request.query_params.get('status'), per_page)
    return Response({'ok': True, **data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_read(request, notification_id: str):
    ensure_applied(svc.mark_read(client_for(request), notification_id))
    return Response({'ok': True})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_all_read(request):
    ensure_applied(svc.mark_all_read(client_for(request)))
    return Response({'ok': True})
