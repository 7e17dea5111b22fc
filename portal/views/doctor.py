from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsDoctor
from portal.serializers.appointments import CompleteSerializer, MedicalRecordSerializer, RescheduleSerializer
from portal.services import appointments as svc
from portal.services.audit import log_action
from portal.services.backend import client_for, ensure_applied, unwrap
from portal.services.events import notify_clinic

LISTS = {
    'all': '/doctor/appointments',
    'today': '/doctor/appointments/today',
    'upcoming': '/doctor/appointments/upcoming',
    'requests': '/doctor/appointments/requests',
}


def _list(request, which: str):
    params = request.query_params.dict() if which == 'all' else None
    data = svc.doctor_appointments(client_for(request), LISTS[which], params=params)
    return Response({'ok': True, 'appointments': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctor])
def appointments(request):
    """All of the doctor's appointments; query parameters are forwarded."""
    return _list(request, 'all')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctor])
def appointments_today(request):
    return _list(request, 'today')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctor])
def appointments_upcoming(request):
    return _list(request, 'upcoming')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctor])
def appointment_requests(request):
    return _list(request, 'requests')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsDoctor])
def dashboard(request):
    data = svc.doctor_appointments(client_for(request))
    return Response({'ok': True, 'data': svc.doctor_stats(data)})


def _changed(request, action: str, appointment_id, payload, detail=None):
    ensure_applied(payload)
    log_action(user=request.user, action=f'appointment_{action}', object_type='appointment',
               object_id=appointment_id, detail=detail or {})
    notify_clinic(request.user.clinic_id, 'appointments', {'id': appointment_id, 'action': action})
    data = unwrap(payload)
    if isinstance(data, dict) and (data.get('appointment_id') or data.get('id')):
        data = svc.map_appointment(data)
    return Response({'ok': True, 'data': data, 'message': payload.get('message') if isinstance(payload, dict) else None})


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsDoctor])
def approve(request, appointment_id: int):
    payload = client_for(request).put(f'/doctor/appointments/approve/{appointment_id}')
    return _changed(request, 'approve', appointment_id, payload)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsDoctor])
def reschedule(request, appointment_id: int):
    s = RescheduleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payload = client_for(request).put(f'/doctor/appointments/reschedule/{appointment_id}', json=dict(s.validated_data))
    return _changed(request, 'reschedule', appointment_id, payload, dict(s.validated_data))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctor])
def complete(request, appointment_id: int):
    s = CompleteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payload = client_for(request).post(f'/doctor/appointments/{appointment_id}/complete', json=dict(s.validated_data))
    return _changed(request, 'complete', appointment_id, payload)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctor])
def medical_record(request):
    s = MedicalRecordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payload = ensure_applied(client_for(request).post('/doctor/medical-records', json=dict(s.validated_data)))
    log_action(user=request.user, action='medical_record_create', object_type='patient',
               object_id=s.validated_data['patient_id'])
    return Response({'ok': True, 'data': unwrap(payload)}, status=201)
