from datetime import datetime, timezone as dt_timezone

from django.utils import timezone
from rest_framework import serializers

from portal.serializers.common import CleanCharField

DATE_TIME_REQUIRED = 'Please enter date and time'
FIELDS_REQUIRED = 'Please fill all required fields.'
_REQUIRED_DT = {'required': DATE_TIME_REQUIRED, 'null': DATE_TIME_REQUIRED, 'blank': DATE_TIME_REQUIRED}
_REQUIRED_FIELDS = {'required': FIELDS_REQUIRED, 'null': FIELDS_REQUIRED, 'blank': FIELDS_REQUIRED}

TIME_PATTERN = r'^([01][0-9]|2[0-3]):[0-5][0-9](:[0-5][0-9])?$'
TIME_MESSAGE = 'Time must be in format HH:MM'


class HourMinuteField(serializers.RegexField):
    """``HH:MM`` or ``HH:MM:SS``; stored as ``HH:MM``."""
    def __init__(self, **kwargs):
        error_messages = {'invalid': TIME_MESSAGE}
        error_messages.update(kwargs.pop('error_messages', {}))
        super().__init__(TIME_PATTERN, error_messages=error_messages, **kwargs)

    def to_internal_value(self, data):
        return super().to_internal_value(data)[:5]


class RequestListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    status = serializers.ChoiceField(
        choices=['Requested', 'Approved', 'Cancelled', 'Completed', 'all'],
        required=False, default='Requested',
    )


class RejectSerializer(serializers.Serializer):
    rejection_reason = CleanCharField(max_length=500, required=False, allow_blank=True, allow_null=True)


class RescheduleSerializer(serializers.Serializer):
    appointment_date = serializers.DateField(error_messages=_REQUIRED_DT)
    appointment_time = HourMinuteField(error_messages=_REQUIRED_DT)

    def validate(self, attrs):
        attrs['appointment_date'] = attrs['appointment_date'].isoformat()
        return attrs


class CompleteSerializer(serializers.Serializer):
    diagnosis = CleanCharField(max_length=2000, required=False, allow_blank=True)
    notes = CleanCharField(max_length=2000, required=False, allow_blank=True)


class MedicalRecordSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField(min_value=1, required=False)
    patient_id = serializers.IntegerField(min_value=1)
    diagnosis = CleanCharField(max_length=2000)
    prescription = CleanCharField(max_length=2000, required=False, allow_blank=True)
    notes = CleanCharField(max_length=2000, required=False, allow_blank=True)
    visit_date = serializers.DateField(required=False)

    def validate(self, attrs):
        if attrs.get('visit_date'):
            attrs['visit_date'] = attrs['visit_date'].isoformat()
        return attrs


class PatientAppointmentRequestSerializer(serializers.Serializer):
    doctor_id = serializers.IntegerField(min_value=1, error_messages=_REQUIRED_FIELDS)
    date = serializers.DateField(error_messages=_REQUIRED_FIELDS)
    time = HourMinuteField(error_messages=_REQUIRED_FIELDS)
    notes = CleanCharField(max_length=1000, required=False, allow_blank=True, default='')

    def to_backend(self) -> dict:
        """Combine date and time (clinic local time) into one ISO timestamp."""
        data = self.validated_data
        local = datetime.combine(data['date'], datetime.strptime(data['time'], '%H:%M').time())
        moment = timezone.make_aware(local)
        return {
            'doctor_id': data['doctor_id'],
            'appointment_date': moment.astimezone(dt_timezone.utc).isoformat().replace('+00:00', 'Z'),
            'notes': data.get('notes', ''),
        }


class ReceptionAppointmentSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField(min_value=1)
    doctor_id = serializers.IntegerField(min_value=1)
    appointment_date = serializers.DateField()
    appointment_time = HourMinuteField()
    notes = CleanCharField(max_length=1000, required=False, allow_blank=True)

    def validate(self, attrs):
        attrs['appointment_date'] = attrs['appointment_date'].isoformat()
        return attrs


class TimeSlotQuerySerializer(serializers.Serializer):
    date = serializers.DateField()
