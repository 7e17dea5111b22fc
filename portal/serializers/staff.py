from rest_framework import serializers

from portal.serializers.common import CleanCharField, ContactEmailField, PhoneField

WEEK_DAYS = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']
ROLE_CHOICES = ['Doctor', 'Secretary']


class StaffBaseSerializer(serializers.Serializer):
    name = CleanCharField(max_length=100, error_messages={'blank': 'Name is required', 'required': 'Name is required'})
    email = ContactEmailField()
    phone = PhoneField()


class DoctorStaffSerializer(StaffBaseSerializer):
    role = serializers.ChoiceField(choices=['Doctor'])
    specialization = CleanCharField(max_length=100, error_messages={'blank': 'Specialization is required', 'required': 'Specialization is required'})
    available_days = CleanCharField(error_messages={'blank': 'Available days is required', 'required': 'Available days is required'})
    clinic_room = CleanCharField(max_length=50, error_messages={'blank': 'Clinic room is required', 'required': 'Clinic room is required'})


class SecretaryStaffSerializer(StaffBaseSerializer):
    role = serializers.ChoiceField(choices=['Secretary'])


STAFF_SERIALIZERS = {
    'Doctor': DoctorStaffSerializer,
    'Secretary': SecretaryStaffSerializer,
}


def staff_create_serializer(data) -> serializers.Serializer:
    """Pick the serializer for the submitted ``role``."""
    if not hasattr(data, 'get'):
        raise serializers.ValidationError({'non_field_errors': ['Invalid data. Expected a dictionary.']})
    role = data.get('role')
    cls = STAFF_SERIALIZERS.get(role) if isinstance(role, str) else None
    if cls is None:
        raise serializers.ValidationError({'role': ['Role must be Doctor or Secretary']})
    return cls(data=data)


class StaffUpdateSerializer(StaffBaseSerializer):
    status = serializers.ChoiceField(choices=['Active', 'Inactive'], required=False)
    specialization = CleanCharField(max_length=100, required=False)
    available_days = CleanCharField(required=False)
    clinic_room = CleanCharField(max_length=50, required=False)


class DaysField(serializers.Field):
    """Accepts a list of week days or a comma separated string; returns ``'Monday,Tuesday'``."""
    default_error_messages = {
        'empty': 'Select at least one day',
        'invalid_day': 'Unknown day: {day}',
        'invalid': 'Days must be a list or a comma separated string',
    }

    def to_internal_value(self, data):
        if isinstance(data, str):
            items = [d.strip() for d in data.split(',')]
        elif isinstance(data, (list, tuple)):
            items = [str(d).strip() for d in data]
        else:
            self.fail('invalid')
        items = [d for d in items if d]
        if not items:
            self.fail('empty')
        days = []
        for d in items:
            name = d.capitalize()
            if name not in WEEK_DAYS:
                self.fail('invalid_day', day=d)
            if name not in days:
                days.append(name)
        return ','.join(sorted(days, key=WEEK_DAYS.index))

    def to_representation(self, value):
        return value


class ScheduleSerializer(serializers.Serializer):
    available_days = DaysField()
    start_time = serializers.TimeField(input_formats=['%H:%M', '%H:%M:%S'])
    end_time = serializers.TimeField(input_formats=['%H:%M', '%H:%M:%S'])
    slot_duration = serializers.IntegerField(min_value=5, max_value=240)

    def validate(self, attrs):
        if attrs['end_time'] <= attrs['start_time']:
            raise serializers.ValidationError({'end_time': 'End time must be after start time'})
        attrs['start_time'] = attrs['start_time'].strftime('%H:%M')
        attrs['end_time'] = attrs['end_time'].strftime('%H:%M')
        return attrs
