"""
Project API views.

All mutations flow through the service layer.
Reads are open to every role; writes are gated per resource.
"""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.response import Response
from core.exceptions import ValidationError
from core.permissions import (
    IsAdmin,
    IsAuthenticatedReadOnly,
    IsProjectEditor,
    ReadOrEdit,
    ReadOrManage,
    ReadOrManageAdminDelete,
)
from apps.projects import services
from apps.projects.models import (
    Project,
    ProjectFinance,
    ProjectMember,
    ProjectStatus,
    ProjectTask,
    ProjectWorkHour,
    StaffRole,
)
from apps.projects.serializers import (
    ProjectFinanceBulkSerializer,
    ProjectFinanceSerializer,
    ProjectFinanceWriteSerializer,
    ProjectMemberSerializer,
    ProjectMemberWriteSerializer,
    ProjectSerializer,
    ProjectTaskSerializer,
    ProjectTaskWriteSerializer,
    ProjectWorkHourBulkSerializer,
    ProjectWorkHourSerializer,
    ProjectWriteSerializer,
    StaffRoleBatchSerializer,
    StaffRoleSerializer,
    StaffRoleToggleSerializer,
)


# -----------------------------
# Projects
# -----------------------------


@api_view(["GET", "POST"])
@permission_classes([ReadOrManage])
def list_or_create_projects(request):
    """GET /api/v1/projects - List projects (read-only)"""
    """POST /api/v1/projects - Create project (admin or manager)"""
    if request.method == "GET":
        queryset = Project.objects.all()

        project_status = request.query_params.get("status")
        if project_status:
            if project_status not in ProjectStatus.values:
                raise ValidationError(
                    "Invalid status", {"allowed": ProjectStatus.values}
                )
            queryset = queryset.filter(status=project_status)

        client_name = request.query_params.get("clientName")
        if client_name:
            queryset = queryset.filter(client_name__icontains=client_name)

        paginator = LimitOffsetPagination()
        paginator.default_limit = 10
        paginator.max_limit = 100

        page = paginator.paginate_queryset(
            queryset.order_by("-created_at", "-id"), request
        )
        serializer = ProjectSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    serializer = ProjectWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    project = services.create_project(
        request.user.id, dict(serializer.validated_data), request=request
    )
    return Response(
        {"data": ProjectSerializer(project).data}, status=status.HTTP_201_CREATED
    )


@api_view(["GET"])
@permission_classes([IsAuthenticatedReadOnly])
def preview_next_code(request):
    """
    GET /api/v1/projects/next-code?projectType=...

    Code the next project of this type would receive. No side effects.
    """
    project_type = request.query_params.get("projectType", "")
    code = services.preview_next_code(project_type)
    return Response({"data": {"projectCode": code}}, status=status.HTTP_200_OK)


@api_view(["GET", "PATCH", "DELETE"])
@permission_classes([ReadOrManageAdminDelete])
def project_detail(request, projectId):
    """GET/PATCH/DELETE /api/v1/projects/{projectId}"""
    if request.method == "GET":
        project = services.get_project(projectId)
        return Response(
            {"data": ProjectSerializer(project).data}, status=status.HTTP_200_OK
        )

    if request.method == "PATCH":
        serializer = ProjectWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        project = services.update_project(
            request.user.id, projectId, dict(serializer.validated_data), request=request
        )
        return Response(
            {"data": ProjectSerializer(project).data}, status=status.HTTP_200_OK
        )

    services.delete_project(request.user.id, projectId, request=request)
    return Response(
        {"data": {"success": True, "message": "Project deleted successfully"}},
        status=status.HTTP_200_OK,
    )


# -----------------------------
# Tasks
# -----------------------------


@api_view(["GET", "POST"])
@permission_classes([ReadOrEdit])
def list_or_create_tasks(request, projectId):
    """GET/POST /api/v1/projects/{projectId}/tasks"""
    if request.method == "GET":
        project = services.get_project(projectId)
        serializer = ProjectTaskSerializer(
            ProjectTask.objects.filter(project=project), many=True
        )
        return Response({"data": serializer.data}, status=status.HTTP_200_OK)

    serializer = ProjectTaskWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    task = services.create_task(
        request.user.id, projectId, dict(serializer.validated_data), request=request
    )
    return Response(
        {"data": ProjectTaskSerializer(task).data}, status=status.HTTP_201_CREATED
    )


@api_view(["PATCH", "DELETE"])
@permission_classes([IsProjectEditor])
def task_detail(request, taskId):
    """PATCH/DELETE /api/v1/projects/tasks/{taskId}"""
    if request.method == "PATCH":
        serializer = ProjectTaskWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        task = services.update_task(
            request.user.id, taskId, dict(serializer.validated_data), request=request
        )
        return Response(
            {"data": ProjectTaskSerializer(task).data}, status=status.HTTP_200_OK
        )

    services.delete_task(request.user.id, taskId, request=request)
    return Response({"data": {"success": True}}, status=status.HTTP_200_OK)


# -----------------------------
# Members
# -----------------------------


@api_view(["GET", "POST"])
@permission_classes([ReadOrEdit])
def list_or_create_members(request, projectId):
    """GET/POST /api/v1/projects/{projectId}/members"""
    if request.method == "GET":
        project = services.get_project(projectId)
        serializer = ProjectMemberSerializer(
            ProjectMember.objects.filter(project=project), many=True
        )
        return Response({"data": serializer.data}, status=status.HTTP_200_OK)

    serializer = ProjectMemberWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    member = services.create_member(
        request.user.id, projectId, dict(serializer.validated_data), request=request
    )
    return Response(
        {"data": ProjectMemberSerializer(member).data}, status=status.HTTP_201_CREATED
    )


@api_view(["PATCH", "DELETE"])
@permission_classes([IsProjectEditor])
def member_detail(request, memberId):
    """PATCH/DELETE /api/v1/projects/members/{memberId}"""
    if request.method == "PATCH":
        serializer = ProjectMemberWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        member = services.update_member(
            request.user.id, memberId, dict(serializer.validated_data), request=request
        )
        return Response(
            {"data": ProjectMemberSerializer(member).data}, status=status.HTTP_200_OK
        )

    services.delete_member(request.user.id, memberId, request=request)
    return Response({"data": {"success": True}}, status=status.HTTP_200_OK)


# -----------------------------
# Finances
# -----------------------------


@api_view(["GET", "PUT"])
@permission_classes([ReadOrEdit])
def list_or_upsert_finances(request, projectId):
    """GET/PUT /api/v1/projects/{projectId}/finances"""
    if request.method == "GET":
        project = services.get_project(projectId)
        serializer = ProjectFinanceSerializer(
            ProjectFinance.objects.filter(project=project), many=True
        )
        return Response({"data": serializer.data}, status=status.HTTP_200_OK)

    serializer = ProjectFinanceWriteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    values = dict(serializer.validated_data)
    year_month = values.pop("year_month")
    finance = services.upsert_finance(
        request.user.id, projectId, year_month, values, request=request
    )
    return Response(
        {"data": ProjectFinanceSerializer(finance).data}, status=status.HTTP_200_OK
    )


@api_view(["PUT"])
@permission_classes([IsProjectEditor])
def bulk_update_finances(request):
    """PUT /api/v1/projects/finances/bulk"""
    serializer = ProjectFinanceBulkSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    entries = [dict(entry) for entry in serializer.validated_data["finances"]]
    finances = services.bulk_update_finances(request.user.id, entries, request=request)
    return Response(
        {"data": ProjectFinanceSerializer(finances, many=True).data},
        status=status.HTTP_200_OK,
    )


# -----------------------------
# Work hours
# -----------------------------


@api_view(["GET"])
@permission_classes([IsAuthenticatedReadOnly])
def list_work_hours(request, projectId):
    """GET /api/v1/projects/{projectId}/work-hours"""
    project = services.get_project(projectId)
    serializer = ProjectWorkHourSerializer(
        ProjectWorkHour.objects.filter(project=project), many=True
    )
    return Response({"data": serializer.data}, status=status.HTTP_200_OK)


@api_view(["PUT"])
@permission_classes([IsProjectEditor])
def bulk_update_work_hours(request):
    """PUT /api/v1/projects/work-hours/bulk"""
    serializer = ProjectWorkHourBulkSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    entries = [dict(entry) for entry in serializer.validated_data["workHours"]]
    work_hours = services.bulk_update_work_hours(
        request.user.id, entries, request=request
    )
    return Response(
        {"data": ProjectWorkHourSerializer(work_hours, many=True).data},
        status=status.HTTP_200_OK,
    )


# -----------------------------
# Staff roles
# -----------------------------


@api_view(["GET"])
@permission_classes([IsAuthenticatedReadOnly])
def list_staff_roles(request):
    """GET /api/v1/roles"""
    serializer = StaffRoleSerializer(StaffRole.objects.order_by("code"), many=True)
    return Response({"data": serializer.data}, status=status.HTTP_200_OK)


@api_view(["PATCH"])
@permission_classes([IsAdmin])
def update_staff_role(request, roleId):
    """PATCH /api/v1/roles/{roleId} - Toggle isActive (admin-only)"""
    serializer = StaffRoleToggleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    role = services.update_staff_role(
        request.user.id, roleId, serializer.validated_data["is_active"], request=request
    )
    return Response({"data": StaffRoleSerializer(role).data}, status=status.HTTP_200_OK)


@api_view(["PUT"])
@permission_classes([IsAdmin])
def batch_update_staff_roles(request):
    """PUT /api/v1/roles/batch - Toggle many roles (admin-only)"""
    serializer = StaffRoleBatchSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    items = [dict(item) for item in serializer.validated_data["roles"]]
    roles = services.batch_update_staff_roles(request.user.id, items, request=request)
    return Response(
        {"data": StaffRoleSerializer(roles, many=True).data},
        status=status.HTTP_200_OK,
    )
