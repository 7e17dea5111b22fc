from django.conf import settings
from rest_framework import serializers

from portal.serializers.common import CleanCharField, ContactEmailField, PhoneField

BLOOD_TYPES = ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']


class LookupQuerySerializer(serializers.Serializer):
    identifier = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    seq = serializers.IntegerField(min_value=0, required=False)

    def validate_identifier(self, v):
        v = (v or '').strip()
        if len(v) < settings.PATIENT_LOOKUP_MIN_LENGTH:
            raise serializers.ValidationError(
                f'Identifier query parameter must be at least {settings.PATIENT_LOOKUP_MIN_LENGTH} characters'
            )
        return v


class PatientSerializer(serializers.Serializer):
    name = CleanCharField(max_length=100)
    national_id = CleanCharField(max_length=20)
    phone = PhoneField()
    email = ContactEmailField(required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=['Male', 'Female'], required=False, allow_null=True)
    address = CleanCharField(max_length=255, required=False, allow_blank=True)
    blood_type = serializers.ChoiceField(choices=BLOOD_TYPES, required=False, allow_blank=True, allow_null=True)
    allergies = CleanCharField(max_length=500, required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs.get('date_of_birth'):
            attrs['date_of_birth'] = attrs['date_of_birth'].isoformat()
        return attrs
