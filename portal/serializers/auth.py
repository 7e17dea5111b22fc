from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    login = serializers.CharField(max_length=100)
    password = serializers.CharField(trim_whitespace=False)

    def validate_login(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Email or phone is required')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required')
        return v
