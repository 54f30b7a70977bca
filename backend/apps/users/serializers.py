"""
Serializers for User model.

No business logic in serializers - validation only.
"""

from rest_framework import serializers
from apps.users.models import User, UserRole


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model."""

    role = serializers.ChoiceField(choices=UserRole.choices, read_only=True)
    fullName = serializers.CharField(source="full_name", read_only=True)
    displayName = serializers.CharField(source="display_name", read_only=True)
    hourlyRate = serializers.DecimalField(
        source="hourly_rate",
        max_digits=10,
        decimal_places=2,
        read_only=True,
        allow_null=True,
    )
    isActive = serializers.BooleanField(source="is_active", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "fullName",
            "alias",
            "displayName",
            "role",
            "hourlyRate",
            "isActive",
        ]


class UserUpdateSerializer(serializers.Serializer):
    """Payload for PATCH /api/v1/users/{id}."""

    fullName = serializers.CharField(
        max_length=200, required=False, allow_blank=True, source="full_name"
    )
    alias = serializers.CharField(max_length=100, required=False, allow_blank=True)
    hourlyRate = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=0,
        required=False,
        allow_null=True,
        source="hourly_rate",
    )
    isActive = serializers.BooleanField(required=False, source="is_active")


class UserRoleChangeSerializer(serializers.Serializer):
    """Payload for PATCH /api/v1/users/{id}/role."""

    role = serializers.ChoiceField(choices=UserRole.choices, required=True)
