import os

import bleach
from django.conf import settings
from rest_framework import serializers
from rest_framework.utils import html

from clinic.models import Patient
from clinic.services.storage import get_blob_store


def clean_text(v):
    if v is None:
        return None
    return bleach.clean(v.strip(), strip=True)


class PatientWriteSerializer(serializers.Serializer):
    """Input schema for creating and updating a patient account.

    Pass ``instance`` when updating: the password becomes optional and the
    email uniqueness check skips the instance's own row.
    """
    full_name = serializers.CharField(max_length=255)
    age = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    gender = serializers.ChoiceField(choices=Patient.GENDER_CHOICES, required=False, allow_null=True)
    email = serializers.EmailField(max_length=255)
    phone_number = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=20)
    address = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    password = serializers.CharField(min_length=6, write_only=True, trim_whitespace=False)
    password_confirmation = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, write_only=True, trim_whitespace=False
    )
    profile_img = serializers.ImageField(required=False, allow_null=True, write_only=True)

    # Optional non-text fields where an empty string means null
    BLANK_AS_NULL = ('age', 'gender')

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance is not None:
            pw = self.fields['password']
            pw.required = False
            pw.allow_null = True
            pw.allow_blank = True

    def to_internal_value(self, data):
        # Form input already maps blanks to null in get_value()
        if isinstance(data, dict) and not html.is_html_input(data):
            blanks = [k for k in self.BLANK_AS_NULL if data.get(k) == '']
            if blanks:
                data = dict(data, **{k: None for k in blanks})
        return super().to_internal_value(data)

    def validate_full_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('This field may not be blank.')
        return v

    def validate_email(self, v):
        qs = Patient.objects.filter(email__iexact=v)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError('The email has already been taken.', code='unique')
        return v

    def validate_phone_number(self, v):
        return clean_text(v) or None

    def validate_address(self, v):
        return clean_text(v) or None

    def validate_profile_img(self, v):
        if v is None:
            return None
        ext = os.path.splitext(v.name or '')[1].lower().lstrip('.')
        if ext not in settings.PROFILE_IMAGE_EXTENSIONS:
            raise serializers.ValidationError(
                'The profile img must be a file of type: %s.' % ', '.join(settings.PROFILE_IMAGE_EXTENSIONS)
            )
        if v.size > settings.PROFILE_IMAGE_MAX_KB * 1024:
            raise serializers.ValidationError(
                'The profile img may not be greater than %d kilobytes.' % settings.PROFILE_IMAGE_MAX_KB
            )
        return v

    def validate_password(self, v):
        if v and self.initial_data.get('password_confirmation') != v:
            raise serializers.ValidationError('The password confirmation does not match.', code='confirmed')
        return v

    def validate(self, attrs):
        attrs.pop('password_confirmation', None)
        return attrs


class PatientSerializer(serializers.ModelSerializer):
    profile_img_url = serializers.SerializerMethodField()

    class Meta:
        model = Patient
        exclude = ['password']

    def get_profile_img_url(self, obj):
        return get_blob_store().url(obj.profile_img)
