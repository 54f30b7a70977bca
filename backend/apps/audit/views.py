"""
Activity log views - query activity log entries.

Read-only - activity logs are append-only. Admin only.
"""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.pagination import LimitOffsetPagination
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from core.exceptions import ValidationError
from core.permissions import IsAdmin
from apps.audit.models import ActivityAction, ActivityLog, EntityType
from apps.audit.serializers import ActivityLogSerializer


def _parse_bound(raw, name, end_of_day=False):
    """Accept a plain date (covering the whole day) or an ISO 8601 datetime."""
    try:
        day = parse_date(raw)
        value = None if day else parse_datetime(raw)
    except ValueError:
        raise ValidationError(f"Invalid {name} value")

    if day is not None:
        return {"created_at__date__lte" if end_of_day else "created_at__date__gte": day}
    if value is None:
        raise ValidationError(f"Invalid {name} format (use ISO 8601)")

    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return {"created_at__lte" if end_of_day else "created_at__gte": value}


def _parse_int(raw, name):
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name} format")


@api_view(["GET"])
@permission_classes([IsAdmin])
def query_activity_log(request):
    """
    GET /api/v1/activity-logs

    Query activity log entries with optional filters.
    """
    params = request.query_params
    queryset = ActivityLog.objects.select_related("actor")

    user_id = params.get("userId")
    if user_id:
        queryset = queryset.filter(actor_id=_parse_int(user_id, "userId"))

    action = params.get("action")
    if action:
        if action not in ActivityAction.values:
            raise ValidationError("Invalid action", {"allowed": ActivityAction.values})
        queryset = queryset.filter(action=action)

    entity_type = params.get("entityType")
    if entity_type:
        if entity_type not in EntityType.values:
            raise ValidationError("Invalid entityType", {"allowed": EntityType.values})
        queryset = queryset.filter(entity_type=entity_type)

    entity_id = params.get("entityId")
    if entity_id:
        queryset = queryset.filter(entity_id=_parse_int(entity_id, "entityId"))

    start_date = params.get("startDate")
    if start_date:
        queryset = queryset.filter(**_parse_bound(start_date, "startDate"))

    end_date = params.get("endDate")
    if end_date:
        queryset = queryset.filter(**_parse_bound(end_date, "endDate", end_of_day=True))

    queryset = queryset.order_by("-created_at", "-id")

    paginator = LimitOffsetPagination()
    paginator.default_limit = 50
    paginator.max_limit = 100

    page = paginator.paginate_queryset(queryset, request)
    serializer = ActivityLogSerializer(page, many=True)

    return paginator.get_paginated_response(serializer.data)


@api_view(["GET"])
@permission_classes([IsAdmin])
def list_actions(request):
    """GET /api/v1/activity-logs/actions - distinct actions present in the log"""
    actions = (
        ActivityLog.objects.order_by("action")
        .values_list("action", flat=True)
        .distinct()
    )
    return Response({"data": list(actions)}, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([IsAdmin])
def list_entity_types(request):
    """GET /api/v1/activity-logs/entity-types - distinct entity types in the log"""
    entity_types = (
        ActivityLog.objects.order_by("entity_type")
        .values_list("entity_type", flat=True)
        .distinct()
    )
    return Response({"data": list(entity_types)}, status=status.HTTP_200_OK)
