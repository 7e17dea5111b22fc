from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsSecretary
from portal.serializers.appointments import RejectSerializer, RequestListQuerySerializer, RescheduleSerializer
from portal.services import appointments as svc
from portal.services.audit import log_action
from portal.services.backend import client_for
from portal.services.events import notify_clinic
from portal.services.reports import secretary_dashboard


def _applied(request, action: str, record: dict, detail=None):
    log_action(user=request.user, action=f'appointment_{action}', object_type='appointment',
               object_id=record.get('id'), detail=detail or {})
    notify_clinic(request.user.clinic_id, 'appointments', {'id': record.get('id'), 'status': record.get('status')})
    return Response({'ok': True, 'data': record})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSecretary])
def appointment_requests(request):
    """Triage list: ``search`` over name/phone/national id/id, ``status`` defaults to Requested (``all`` for every status)."""
    q = RequestListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    requests_ = svc.list_requests(client_for(request))
    data = svc.filter_requests(requests_, q.validated_data['search'], q.validated_data['status'])
    return Response({'ok': True, 'data': data, 'counts': svc.status_counts(requests_)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsSecretary])
def approve_request(request, appointment_id: int):
    record = svc.approve_request(client_for(request), appointment_id)
    return _applied(request, 'approve', record)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsSecretary])
def reject_request(request, appointment_id: int):
    s = RejectSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    record = svc.reject_request(client_for(request), appointment_id, s.validated_data.get('rejection_reason'))
    return _applied(request, 'reject', record, {'reason': record.get('note')})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsSecretary])
def reschedule_request(request, appointment_id: int):
    s = RescheduleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    record = svc.reschedule_request(client_for(request), appointment_id, vd['appointment_date'], vd['appointment_time'])
    return _applied(request, 'reschedule', record, dict(vd))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsSecretary])
def dashboard(request):
    return Response({'ok': True, 'data': secretary_dashboard(client_for(request))})
