# accounts/serializers.py
import re

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.utils.translation import gettext as _
from rest_framework import serializers

User = get_user_model()

ALGERIAN_PHONE_RE = re.compile(r'^(?:\+213|0)(\d{9})$')


def normalize_algerian_phone(value):
    """
    Accept +213XXXXXXXXX or 0XXXXXXXXX and return the +213 form.
    Returns None when the number is not a valid Algerian number.
    """
    compact = re.sub(r'[\s.-]', '', value or '')
    match = ALGERIAN_PHONE_RE.match(compact)
    if not match:
        return None
    return f"+213{match.group(1)}"


class UserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'},
        help_text="Enter a strong password. Must be at least 8 characters."
    )

    class Meta:
        model = User
        fields = (
            'id',
            'first_name',
            'last_name',
            'email',
            'phone',
            'preferred_language',
            'password',
            # username, role and verification state are system-managed
        )
        extra_kwargs = {
            'email': {'required': True},
            'first_name': {'required': True},
            'last_name': {'required': True},
        }

    def validate_password(self, value):
        validate_password(value)
        return value

    def validate_phone(self, value):
        if not value:
            return ''
        phone = normalize_algerian_phone(value)
        if not phone:
            raise serializers.ValidationError(
                _("Please enter a valid Algerian phone number (e.g., +213550123456)")
            )
        return phone

    def create(self, validated_data):
        password = validated_data.pop('password')
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        return user


class ProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = (
            'id',
            'first_name',
            'last_name',
            'email',
            'username',
            'phone',
            'role',
            'preferred_language',
            'is_verified',
            'average_rating',
            'total_reviews',
            'date_joined',
        )
        read_only_fields = (
            'id', 'email', 'username', 'role', 'is_verified',
            'average_rating', 'total_reviews', 'date_joined',
        )

    def validate_phone(self, value):
        if not value:
            return ''
        phone = normalize_algerian_phone(value)
        if not phone:
            raise serializers.ValidationError(
                _("Please enter a valid Algerian phone number (e.g., +213550123456)")
            )
        return phone


class PublicUserSerializer(serializers.ModelSerializer):
    """Minimal user card shown on listings, reviews and conversations."""

    class Meta:
        model = User
        fields = ('id', 'first_name', 'last_name', 'role', 'average_rating', 'total_reviews')


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True, style={'input_type': 'password'})
    new_password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate_new_password(self, value):
        request = self.context.get('request')
        validate_password(value, user=request.user if request else None)
        return value


class PasswordResetSerializer(serializers.Serializer):
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})

    def validate_password(self, value):
        validate_password(value, user=self.context.get('user'))
        return value
