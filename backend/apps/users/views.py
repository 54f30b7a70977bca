"""
User views: current user, list users, admin updates (profile, role).

Accounts are provisioned by the identity provider; there is no create endpoint.
"""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.pagination import LimitOffsetPagination
from core.permissions import IsAuthenticatedReadOnly, IsAdmin
from apps.users import services
from apps.users.models import User
from apps.users.serializers import (
    UserSerializer,
    UserUpdateSerializer,
    UserRoleChangeSerializer,
)


@api_view(["GET"])
@permission_classes([IsAuthenticatedReadOnly])
def get_current_user(request):
    """
    GET /api/v1/users/me

    Get current authenticated user.
    """
    serializer = UserSerializer(request.user)
    return Response({"data": serializer.data}, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([IsAuthenticatedReadOnly])
def list_users(request):
    """
    GET /api/v1/users - List all users with pagination.
    """
    paginator = LimitOffsetPagination()
    paginator.default_limit = 50
    paginator.max_limit = 100

    users = User.objects.all().order_by("username")
    page = paginator.paginate_queryset(users, request)

    serializer = UserSerializer(page, many=True)

    return paginator.get_paginated_response(serializer.data)


@api_view(["PATCH"])
@permission_classes([IsAdmin])
def update_user(request, userId):
    """PATCH /api/v1/users/{userId} - Update profile or activation (admin-only)"""
    serializer = UserUpdateSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)

    user = services.update_user(
        request.user.id, userId, dict(serializer.validated_data), request=request
    )
    return Response({"data": UserSerializer(user).data}, status=status.HTTP_200_OK)


@api_view(["PATCH"])
@permission_classes([IsAdmin])
def change_user_role(request, userId):
    """PATCH /api/v1/users/{userId}/role - Change role (admin-only)"""
    serializer = UserRoleChangeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = services.change_user_role(
        request.user.id, userId, serializer.validated_data["role"], request=request
    )
    return Response({"data": UserSerializer(user).data}, status=status.HTTP_200_OK)
