import bleach
from django.conf import settings
from rest_framework import serializers

PHONE_PATTERN = r'^05[0-9]{8}$'
PHONE_MESSAGE = 'Phone must be in format: 05XXXXXXXX'
EMAIL_MESSAGE = 'Invalid email address'

LOGO_TYPE_MESSAGE = 'Logo must be an image (JPEG, PNG, JPG, GIF, or SVG)'


def clean_text(v):
    return bleach.clean((v or '').strip(), tags=set(), attributes={}, strip=True)


class CleanCharField(serializers.CharField):
    """CharField with markup stripped."""
    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))


class PhoneField(serializers.RegexField):
    def __init__(self, **kwargs):
        kwargs.setdefault('error_messages', {'invalid': PHONE_MESSAGE})
        super().__init__(PHONE_PATTERN, **kwargs)


class ContactEmailField(serializers.EmailField):
    def __init__(self, **kwargs):
        kwargs.setdefault('max_length', 100)
        kwargs.setdefault('error_messages', {'invalid': EMAIL_MESSAGE})
        super().__init__(**kwargs)


def validate_logo(f):
    ctype = getattr(f, 'content_type', '') or ''
    if ctype not in settings.ALLOWED_LOGO_TYPES:
        raise serializers.ValidationError(LOGO_TYPE_MESSAGE)
    max_kb = settings.LOGO_MAX_KB
    if (f.size or 0) > max_kb * 1024:
        limit = f'{max_kb // 1024}MB' if max_kb % 1024 == 0 else f'{max_kb}KB'
        raise serializers.ValidationError(f'Logo size must not exceed {limit}')
    return f


def nest_form_keys(data) -> dict:
    """``{'clinic[name]': 'x'}`` -> ``{'clinic': {'name': 'x'}}``; other keys are kept as they are."""
    out = {}
    for key in data.keys():
        value = data.get(key)
        if '[' in key and key.endswith(']'):
            outer, inner = key[:-1].split('[', 1)
            out.setdefault(outer, {})[inner] = value
        else:
            out[key] = value
    return out
