from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsFrontDesk, IsManager
from portal.serializers.appointments import TimeSlotQuerySerializer
from portal.serializers.staff import ScheduleSerializer, StaffUpdateSerializer, staff_create_serializer
from portal.services import staff as svc
from portal.services.audit import log_action
from portal.services.backend import client_for, ensure_applied, unwrap
from portal.services.events import notify_clinic


def _changed(request, action: str, user_id, detail=None):
    log_action(user=request.user, action=f'staff_{action}', object_type='user', object_id=user_id, detail=detail or {})
    notify_clinic(request.user.clinic_id, 'staff', {'user_id': user_id, 'action': action})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsManager])
def staff(request):
    client = client_for(request)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.list_staff(client, request.query_params.get('role'))})

    s = staff_create_serializer(request.data)
    s.is_valid(raise_exception=True)
    payload = ensure_applied(svc.create_staff(client, dict(s.validated_data)))
    data = unwrap(payload)
    user_id = None
    if isinstance(data, dict):
        user_id = data.get('user_id') or data.get('id')
    _changed(request, 'create', user_id, {'role': s.validated_data['role'], 'email': s.validated_data['email']})
    return Response({'ok': True, 'data': data, 'message': payload.get('message') if isinstance(payload, dict) else None}, status=201)


@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsManager])
def staff_member(request, user_id: int):
    client = client_for(request)
    if request.method == 'DELETE':
        ensure_applied(svc.delete_staff(client, user_id))
        _changed(request, 'delete', user_id)
        return Response({'ok': True})

    s = StaffUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payload = ensure_applied(svc.update_staff(client, user_id, dict(s.validated_data)))
    _changed(request, 'update', user_id, {'fields': sorted(s.validated_data)})
    data = unwrap(payload)
    if isinstance(data, dict) and (data.get('user_id') or data.get('id')):
        data = svc.flatten_member(data)
    return Response({'ok': True, 'data': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def schedules(request):
    return Response({'ok': True, 'data': svc.list_schedules(client_for(request))})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsManager])
def schedule_detail(request, user_id: int):
    s = ScheduleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    member = svc.update_schedule(client_for(request), user_id, dict(s.validated_data))
    _changed(request, 'schedule_update', user_id, dict(s.validated_data))
    return Response({'ok': True, 'data': member})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def doctors(request):
    return Response({'ok': True, 'data': svc.list_doctors(client_for(request))})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def time_slots(request, doctor_id: int):
    q = TimeSlotQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    day = q.validated_data['date'].isoformat()
    return Response({'ok': True, 'data': svc.doctor_time_slots(client_for(request), doctor_id, day), 'date': day})
