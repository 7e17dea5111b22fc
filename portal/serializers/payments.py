from rest_framework import serializers

from portal.serializers.common import CleanCharField
from portal.services.payments import METHODS, STATUSES


class PaymentCreateSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    amount_paid = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=METHODS)
    notes = CleanCharField(max_length=500, required=False, allow_blank=True)
    exemption_reason = CleanCharField(max_length=500, required=False, allow_blank=True)

    def validate_amount(self, v):
        if v <= 0:
            raise serializers.ValidationError('Amount must be greater than 0')
        return v

    def validate(self, attrs):
        method = attrs['payment_method']
        if method == 'Partial':
            paid = attrs.get('amount_paid')
            if paid is None or paid <= 0 or paid >= attrs['amount']:
                raise serializers.ValidationError({'amount_paid': 'Partial payment must be more than 0 and less than the amount'})
        if method == 'Exempt' and not attrs.get('exemption_reason'):
            raise serializers.ValidationError({'exemption_reason': 'Exemption reason is required'})
        return to_json(attrs)


class PaymentUpdateSerializer(serializers.Serializer):
    amount_paid = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, min_value=0)
    payment_method = serializers.ChoiceField(choices=METHODS, required=False)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    notes = CleanCharField(max_length=500, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Nothing to update')
        return to_json(attrs)


class DailyReportQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


def to_json(attrs: dict) -> dict:
    """Decimals go to the backend as numbers."""
    out = {}
    for k, v in attrs.items():
        if v is None:
            continue
        out[k] = float(v) if hasattr(v, 'as_tuple') else v
    return out
