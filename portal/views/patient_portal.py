import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.exceptions import BackendError, BackendUnavailable
from portal.permissions import IsPatient
from portal.serializers.appointments import PatientAppointmentRequestSerializer
from portal.services.appointments import map_appointment
from portal.services.audit import log_action
from portal.services.backend import client_for, ensure_applied, extract_list, unwrap
from portal.services.events import notify_clinic
from portal.services.medical import my_history

logger = logging.getLogger(__name__)

PATIENT_STAT_FIELDS = ('upcoming_appointments', 'medical_records', 'prescriptions')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsPatient])
def appointments(request):
    client = client_for(request)
    if request.method == 'GET':
        upcoming = request.query_params.get('upcoming') in ('1', 'true')
        path = '/patient/appointments/upcoming' if upcoming else '/patient/appointments'
        rows = extract_list(client.get(path), ('appointments', 'data'))
        return Response({'ok': True, 'data': [map_appointment(a) for a in rows if isinstance(a, dict)]})

    s = PatientAppointmentRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    body = s.to_backend()
    payload = ensure_applied(client.post('/patient/appointments', json=body))
    data = unwrap(payload)
    mapped = map_appointment(data) if isinstance(data, dict) else data
    log_action(user=request.user, action='appointment_request', object_type='appointment',
               object_id=mapped.get('id') if isinstance(mapped, dict) else None,
               detail={'doctor_id': body['doctor_id'], 'appointment_date': body['appointment_date']})
    clinic_id = mapped.get('clinicId') if isinstance(mapped, dict) else None
    notify_clinic(clinic_id or request.user.clinic_id, 'appointment_requests')
    return Response({'ok': True, 'data': mapped}, status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatient])
def doctors(request):
    rows = extract_list(client_for(request).get('/patient/doctors'), ('doctors', 'data'))
    return Response({'ok': True, 'data': rows})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatient])
def dashboard(request):
    data = unwrap(client_for(request).get('/patient/dashboard/stats'))
    data = data if isinstance(data, dict) else {}
    raw = data.get('stats') if isinstance(data.get('stats'), dict) else data
    stats = {f: raw.get(f) or 0 for f in PATIENT_STAT_FIELDS}
    return Response({'ok': True, 'data': {
        'stats': stats,
        'recent_prescriptions': data.get('recent_prescriptions') or [],
        'next_appointment': data.get('next_appointment'),
    }})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatient])
def medical_history(request):
    """Visits for the signed-in patient; a backend failure shows as an empty history."""
    try:
        visits = my_history(client_for(request))
    except BackendError as exc:
        if exc.status_code == 401:
            raise
        logger.warning(f"Medical history unavailable (HTTP {exc.status_code})")
        visits = []
    except BackendUnavailable:
        visits = []
    return Response({'ok': True, 'data': visits})
