from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from portal.permissions import IsFrontDesk
from portal.serializers.payments import PaymentCreateSerializer, PaymentUpdateSerializer
from portal.services import payments as svc
from portal.services.audit import log_action
from portal.services.backend import client_for, unwrap
from portal.services.events import notify_clinic


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def payments(request):
    client = client_for(request)
    if request.method == 'GET':
        return Response({'ok': True, **svc.list_payments(client, request.query_params.dict())})

    s = PaymentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payload = svc.create_payment(client, s.validated_data)
    payment = payload.get('payment') if isinstance(payload, dict) else None
    payment = payment or unwrap(payload)
    payment_id = payment.get('payment_id') if isinstance(payment, dict) else None
    log_action(user=request.user, action='payment_create', object_type='payment', object_id=payment_id,
               detail={'appointment_id': s.validated_data['appointment_id'],
                       'method': s.validated_data['payment_method'],
                       'amount': s.validated_data['amount']})
    notify_clinic(request.user.clinic_id, 'payments', {'payment_id': payment_id})
    return Response({
        'ok': True,
        'data': payment,
        'receipt_number': payload.get('receipt_number') if isinstance(payload, dict) else None,
    }, status=201)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def payment_detail(request, payment_id: int):
    s = PaymentUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payload = svc.update_payment(client_for(request), payment_id, s.validated_data)
    log_action(user=request.user, action='payment_update', object_type='payment', object_id=payment_id,
               detail=s.validated_data)
    notify_clinic(request.user.clinic_id, 'payments', {'payment_id': payment_id})
    payment = payload.get('payment') if isinstance(payload, dict) else None
    return Response({'ok': True, 'data': payment or unwrap(payload)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def pending(request):
    return Response({'ok': True, 'data': svc.pending_payments(client_for(request))})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsFrontDesk])
def patient_payments(request, patient_id: int):
    return Response({'ok': True, 'data': svc.patient_payments(client_for(request), patient_id)})
