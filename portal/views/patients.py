from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsClinicStaff, IsFrontDesk
from portal.serializers.patients import LookupQuerySerializer, PatientSerializer
from portal.services import patients as svc
from portal.services.audit import log_action
from portal.services.backend import client_for, ensure_applied, unwrap
from portal.services.medical import patient_history


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def lookup(request):
    """
    Reception autocomplete by national id or phone prefix.

    ``seq`` is the dashboard's keystroke counter; answers for superseded
    keystrokes come back as ``stale`` with no data.
    """
    q = LookupQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    payload, status = svc.lookup_patients(
        client_for(request), request.user.id, q.validated_data['identifier'], q.validated_data.get('seq'),
    )
    return Response(payload, status=status)

lookup.cls.throttle_scope = 'lookup'


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def patients(request):
    client = client_for(request)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.list_patients(client, request.query_params.get('query', ''))})

    s = PatientSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payload = ensure_applied(svc.create_patient(client, dict(s.validated_data)))
    data = unwrap(payload)
    log_action(user=request.user, action='patient_create', object_type='patient',
               object_id=data.get('patient_id') if isinstance(data, dict) else None,
               detail={'national_id': s.validated_data['national_id']})
    return Response({'ok': True, 'data': data}, status=201)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def patient_detail(request, patient_id: int):
    client = client_for(request)
    if request.method == 'GET':
        return Response({'ok': True, 'data': unwrap(svc.get_patient(client, patient_id))})

    s = PatientSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    payload = ensure_applied(svc.update_patient(client, patient_id, dict(s.validated_data)))
    log_action(user=request.user, action='patient_update', object_type='patient', object_id=patient_id,
               detail={'fields': sorted(s.validated_data)})
    return Response({'ok': True, 'data': unwrap(payload)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def history(request, patient_id: int):
    return Response({'ok': True, 'data': patient_history(client_for(request), patient_id)})
