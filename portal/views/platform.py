from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsPlatformAdmin
from portal.serializers.clinic import ClinicListQuerySerializer, DateRangeQuerySerializer
from portal.services import clinics as svc
from portal.services.audit import log_action
from portal.services.backend import client_for
from portal.services.events import notify_clinic, notify_platform


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def dashboard_stats(request):
    """Platform totals plus per-clinic averages and the month-over-month revenue change."""
    q = DateRangeQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    start, end = q.validated_data.get('start_date'), q.validated_data.get('end_date')
    payload = client_for(request).get('/admin/dashboard/stats')
    return Response({'ok': True, 'data': svc.platform_stats(payload, start, end)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def clinics(request):
    q = ClinicListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    data = svc.list_clinics(client_for(request), vd['page'], vd['per_page'], vd.get('status'), vd.get('search'))
    return Response({'ok': True, **data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def clinic_detail(request, clinic_id: int):
    data = svc.clinic_analytics(client_for(request), clinic_id, request.query_params.get('search', ''))
    return Response({'ok': True, 'data': data})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsPlatformAdmin])
def toggle_status(request, clinic_id: int):
    result = svc.toggle_clinic_status(client_for(request), clinic_id)
    log_action(user=request.user, action='clinic_toggle_status', object_type='clinic', object_id=clinic_id,
               detail={'status': result['status']})
    notify_platform('clinics', {'clinic_id': clinic_id, 'status': result['status']})
    notify_clinic(clinic_id, 'clinic_status', {'status': result['status']})
    return Response({'ok': True, 'data': result})
