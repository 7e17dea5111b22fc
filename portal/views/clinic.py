from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsFrontDesk, IsManager
from portal.serializers.appointments import ReceptionAppointmentSerializer
from portal.serializers.clinic import ClinicSettingsSerializer
from portal.services import clinics as svc
from portal.services.audit import log_action
from portal.services.backend import client_for, ensure_applied, unwrap
from portal.services.events import notify_clinic


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsManager])
def settings_view(request):
    """Clinic profile; ``PUT`` forwards only the fields that were sent."""
    client = client_for(request)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.get_settings(client)})

    s = ClinicSettingsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    fields = dict(s.validated_data)
    logo = fields.pop('logo', None)
    data = svc.update_settings(client, fields, logo=logo)
    log_action(user=request.user, action='clinic_settings_update', object_type='clinic',
               object_id=request.user.clinic_id, detail={'fields': sorted(fields), 'logo': bool(logo)})
    notify_clinic(request.user.clinic_id, 'clinic_settings')
    return Response({'ok': True, 'data': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def logo(request):
    return Response({'ok': True, 'data': svc.get_logo(client_for(request))})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def dashboard_stats(request):
    return Response({'ok': True, 'data': svc.dashboard_stats(client_for(request))})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def create_appointment(request):
    """Reception books an appointment directly for a known patient."""
    s = ReceptionAppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payload = ensure_applied(client_for(request).post('/clinic/appointments/create', json=dict(s.validated_data)))
    data = unwrap(payload)
    appointment_id = None
    if isinstance(data, dict):
        appointment_id = data.get('appointment_id') or data.get('id')
    log_action(user=request.user, action='appointment_create', object_type='appointment',
               object_id=appointment_id, detail={'patient_id': s.validated_data['patient_id']})
    notify_clinic(request.user.clinic_id, 'appointments', {'id': appointment_id, 'action': 'create'})
    return Response({'ok': True, 'data': data}, status=201)
