"""
Permission classes for role-based access control.

Role is read from request.user (authenticated via JWT).
Role is NEVER read from request body, query parameters, or headers.
"""

from rest_framework import permissions

ADMIN = "admin"
MANAGER = "manager"
MEMBER = "member"
VIEWER = "viewer"

ALL_ROLES = (ADMIN, MANAGER, MEMBER, VIEWER)


def _has_role(request, roles):
    user = request.user
    if not user or not user.is_authenticated:
        return False

    if not getattr(user, "is_active", False):
        return False

    return getattr(user, "role", None) in roles


class IsAdmin(permissions.BasePermission):
    """Allow admin role only."""

    def has_permission(self, request, view):
        return _has_role(request, (ADMIN,))


class IsManagerOrAdmin(permissions.BasePermission):
    """Allow manager or admin roles (project lifecycle)."""

    def has_permission(self, request, view):
        return _has_role(request, (ADMIN, MANAGER))


class IsProjectEditor(permissions.BasePermission):
    """Allow admin, manager, member (tasks, staffing, finances, hours)."""

    def has_permission(self, request, view):
        return _has_role(request, (ADMIN, MANAGER, MEMBER))


class IsAuthenticatedReadOnly(permissions.BasePermission):
    """Allow every role for GET requests."""

    def has_permission(self, request, view):
        if request.method not in permissions.SAFE_METHODS:
            return False

        return _has_role(request, ALL_ROLES)


class ReadOnlyOr(permissions.BasePermission):
    """
    GET for any role, mutations delegated to ``write_permission``.

    Used by endpoints that serve a list and a create on the same URL.
    """

    write_permission = None

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return IsAuthenticatedReadOnly().has_permission(request, view)
        return self.write_permission().has_permission(request, view)


class ReadOrManage(ReadOnlyOr):
    write_permission = IsManagerOrAdmin


class ReadOrManageAdminDelete(ReadOrManage):
    """Project detail: managers may edit, only admins may delete."""

    def has_permission(self, request, view):
        if request.method == "DELETE":
            return IsAdmin().has_permission(request, view)
        return super().has_permission(request, view)


class ReadOrEdit(ReadOnlyOr):
    write_permission = IsProjectEditor
