from rest_framework import serializers

from portal.serializers.common import CleanCharField, ContactEmailField, PhoneField, validate_logo

PLANS = ['Basic', 'Standard', 'Premium']
CLINIC_STATUSES = ['Active', 'Inactive']


class ClinicSerializer(serializers.Serializer):
    name = CleanCharField(max_length=100, error_messages={'blank': 'Clinic name is required', 'required': 'Clinic name is required'})
    speciality = CleanCharField(max_length=100, required=False, allow_blank=True)
    address = CleanCharField(max_length=255, error_messages={'blank': 'Address is required', 'required': 'Address is required'})
    phone = PhoneField()
    email = ContactEmailField()
    subscription_plan = serializers.ChoiceField(
        choices=PLANS,
        error_messages={'invalid_choice': 'Please select a subscription plan', 'required': 'Please select a subscription plan'},
    )


class ManagerSerializer(serializers.Serializer):
    name = CleanCharField(max_length=100, error_messages={'blank': 'Manager name is required', 'required': 'Manager name is required'})
    email = ContactEmailField()
    phone = PhoneField()
    password = serializers.CharField(min_length=8, trim_whitespace=False, write_only=True,
                                     error_messages={'min_length': 'Password must be at least 8 characters'})
    password_confirmation = serializers.CharField(min_length=8, trim_whitespace=False, write_only=True,
                                                  error_messages={'min_length': 'Password confirmation is required'})

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirmation']:
            raise serializers.ValidationError({'password_confirmation': "Passwords don't match"})
        return attrs


class ClinicRegistrationSerializer(serializers.Serializer):
    clinic = ClinicSerializer()
    manager = ManagerSerializer()
    logo = serializers.FileField(required=False, allow_null=True, validators=[validate_logo])

    def to_form_data(self) -> dict:
        """Flatten to the ``clinic[name]`` keys the backend expects."""
        data = self.validated_data
        form = {}
        for section in ('clinic', 'manager'):
            for key, value in data[section].items():
                if value not in (None, ''):
                    form[f'{section}[{key}]'] = value
        return form


class ClinicSettingsSerializer(serializers.Serializer):
    """Partial update; only the fields sent are forwarded."""
    name = CleanCharField(max_length=100, required=False)
    address = CleanCharField(max_length=255, required=False)
    phone = PhoneField(required=False)
    email = ContactEmailField(required=False)
    subscription_plan = serializers.ChoiceField(choices=PLANS, required=False)
    status = serializers.ChoiceField(choices=CLINIC_STATUSES, required=False)
    logo = serializers.FileField(required=False, allow_null=True, validators=[validate_logo])


class ClinicListQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    per_page = serializers.IntegerField(min_value=1, max_value=100, required=False, default=10)
    status = serializers.ChoiceField(choices=CLINIC_STATUSES + ['all'], required=False)
    search = serializers.CharField(max_length=100, required=False, allow_blank=True)


class DateRangeQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date must be on or after start date'})
        return attrs
