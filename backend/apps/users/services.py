"""
Service-layer functions for the Users app.

This module exists to keep models passive:
- No business logic in models
- No permission logic in models
- Persistence orchestration (create/save) lives here
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Type

from django.db import transaction

from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("full_name", "alias", "hourly_rate", "is_active")


def create_user(
    *,
    user_model: Type[Any],
    username: str,
    email: Optional[str] = None,
    password: Optional[str] = None,
    role: str = "member",
    using: Optional[str] = None,
    **extra_fields: Any,
):
    """Create and persist a user. Accounts from the identity provider have no password."""
    if not username:
        raise ValueError("The username field must be set")

    user = user_model(
        username=username,
        email=email or f"{username}@localhost",
        role=role,
        **extra_fields,
    )
    if password:
        user.set_password(password)
    else:
        user.set_unusable_password()
    if using is None:
        user.save()
    else:
        user.save(using=using)
    return user


def create_superuser(
    *,
    user_model: Type[Any],
    username: str,
    email: Optional[str] = None,
    password: Optional[str] = None,
    using: Optional[str] = None,
    **extra_fields: Any,
):
    """Create an account with the admin role."""
    extra_fields["role"] = "admin"
    return create_user(
        user_model=user_model,
        username=username,
        email=email,
        password=password,
        using=using,
        **extra_fields,
    )


def display_name_for(*, user: Any) -> str:
    """Alias, then full name, then username."""
    return user.alias or user.full_name or user.username


def _get_admin(admin_id):
    from apps.users.models import User, UserRole

    try:
        admin = User.objects.get(id=admin_id)
    except User.DoesNotExist:
        raise NotFoundError(f"User {admin_id} does not exist")

    if admin.role != UserRole.ADMIN:
        raise PermissionDeniedError("Only admin can manage users")

    return admin


def change_user_role(admin_id, user_id, role, request=None):
    """
    Change another user's role.

    Raises:
        ValidationError: If role is not part of the role vocabulary
        NotFoundError: If admin or target user does not exist
        PermissionDeniedError: If the actor is not admin, or demotes themself
    """
    from apps.users.models import User, UserRole
    from apps.audit.models import ActivityAction, EntityType
    from apps.audit.services import log_activity

    if role not in UserRole.values:
        raise ValidationError(f"Invalid role {role!r}", {"allowed": UserRole.values})

    admin = _get_admin(admin_id)

    with transaction.atomic():
        try:
            user = User.objects.select_for_update().get(id=user_id)
        except User.DoesNotExist:
            raise NotFoundError(f"User {user_id} does not exist")

        if user.pk == admin.pk and role != UserRole.ADMIN:
            raise PermissionDeniedError("Admins cannot remove their own admin role")

        old_role = user.role
        if old_role == role:
            return user

        user.role = role
        user.save(update_fields=["role", "updated_at"])

    logger.info(
        "user_role_changed",
        extra={
            "operation": "CHANGE_USER_ROLE",
            "entity_id": str(user.pk),
            "old_role": old_role,
            "new_role": role,
        },
    )
    log_activity(
        actor_id=admin.pk,
        action=ActivityAction.USER_ROLE_CHANGE,
        entity_type=EntityType.USER,
        entity_id=user.pk,
        entity_name=user.display_name,
        details={"oldValue": {"role": old_role}, "newValue": {"role": role}},
        request=request,
    )
    return user


def update_user(admin_id, user_id, changes, request=None):
    """Update profile and activation fields of a user (admin only)."""
    from apps.users.models import User
    from apps.audit.models import ActivityAction, EntityType
    from apps.audit.services import field_changes, log_activity

    unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError("Fields cannot be updated", {"fields": unknown})

    admin = _get_admin(admin_id)

    with transaction.atomic():
        try:
            user = User.objects.select_for_update().get(id=user_id)
        except User.DoesNotExist:
            raise NotFoundError(f"User {user_id} does not exist")

        if user.pk == admin.pk and changes.get("is_active") is False:
            raise PermissionDeniedError("Admins cannot deactivate themselves")

        diff = field_changes(user, changes)
        if not diff:
            return user

        for field, value in changes.items():
            setattr(user, field, value)
        user.save(update_fields=[*changes.keys(), "updated_at"])

    log_activity(
        actor_id=admin.pk,
        action=ActivityAction.USER_UPDATE,
        entity_type=EntityType.USER,
        entity_id=user.pk,
        entity_name=user.display_name,
        details={"changes": diff},
        request=request,
    )
    return user
