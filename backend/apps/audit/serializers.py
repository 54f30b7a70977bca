"""
Serializers for ActivityLog model.
"""

from rest_framework import serializers
from apps.audit.models import ActivityLog


class ActivityActorSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)
    fullName = serializers.CharField(source="full_name", read_only=True)
    alias = serializers.CharField(read_only=True)
    email = serializers.CharField(read_only=True)


class ActivityLogSerializer(serializers.ModelSerializer):
    """Serializer for ActivityLog."""

    userId = serializers.IntegerField(source="actor_id", read_only=True, allow_null=True)
    user = ActivityActorSerializer(source="actor", read_only=True, allow_null=True)
    entityType = serializers.CharField(source="entity_type", read_only=True)
    entityId = serializers.IntegerField(
        source="entity_id", read_only=True, allow_null=True
    )
    entityName = serializers.CharField(
        source="entity_name", read_only=True, allow_null=True
    )
    details = serializers.JSONField(read_only=True, allow_null=True)
    ipAddress = serializers.CharField(
        source="ip_address", read_only=True, allow_null=True
    )
    userAgent = serializers.CharField(
        source="user_agent", read_only=True, allow_null=True
    )
    requestId = serializers.CharField(
        source="request_id", read_only=True, allow_null=True
    )
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = ActivityLog
        fields = [
            "id",
            "userId",
            "user",
            "action",
            "entityType",
            "entityId",
            "entityName",
            "details",
            "ipAddress",
            "userAgent",
            "requestId",
            "createdAt",
        ]
