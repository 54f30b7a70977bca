"""
Serializers for project models.

Output serializers expose camelCase keys; input serializers map them back to
model field names through ``source`` so services receive snake_case dicts.
No business logic in serializers - validation only.
"""

from rest_framework import serializers
from apps.projects.models import (
    Project,
    ProjectFinance,
    ProjectMember,
    ProjectStatus,
    ProjectTask,
    ProjectWorkHour,
    StaffRole,
    TaskStatus,
)


def _money(**kwargs):
    return serializers.DecimalField(max_digits=15, decimal_places=2, **kwargs)


def _hours(**kwargs):
    return serializers.DecimalField(max_digits=10, decimal_places=2, **kwargs)


class ProjectSerializer(serializers.ModelSerializer):
    """Serializer for Project."""

    projectCode = serializers.CharField(source="code", read_only=True)
    projectName = serializers.CharField(source="name", read_only=True)
    clientName = serializers.CharField(source="client_name", read_only=True)
    projectType = serializers.CharField(source="project_type", read_only=True)
    projectOverview = serializers.CharField(source="overview", read_only=True)
    valueProposition = serializers.CharField(source="value_proposition", read_only=True)
    problemToSolve = serializers.CharField(source="problem_to_solve", read_only=True)
    experienceProvided = serializers.CharField(
        source="experience_provided", read_only=True
    )
    plannedRevenue = _money(source="planned_revenue", read_only=True)
    plannedExpense = _money(source="planned_expense", read_only=True)
    actualRevenue = _money(source="actual_revenue", read_only=True)
    actualExpense = _money(source="actual_expense", read_only=True)
    plannedStartDate = serializers.DateField(source="planned_start_date", read_only=True)
    plannedEndDate = serializers.DateField(source="planned_end_date", read_only=True)
    plannedDurationMonths = serializers.IntegerField(
        source="planned_duration_months", read_only=True
    )
    actualStartDate = serializers.DateField(source="actual_start_date", read_only=True)
    actualEndDate = serializers.DateField(source="actual_end_date", read_only=True)
    createdBy = serializers.IntegerField(source="created_by_id", read_only=True)
    updatedBy = serializers.IntegerField(source="updated_by_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Project
        fields = [
            "id",
            "projectCode",
            "projectName",
            "clientName",
            "projectType",
            "projectOverview",
            "valueProposition",
            "problemToSolve",
            "experienceProvided",
            "plannedRevenue",
            "plannedExpense",
            "actualRevenue",
            "actualExpense",
            "plannedStartDate",
            "plannedEndDate",
            "plannedDurationMonths",
            "actualStartDate",
            "actualEndDate",
            "status",
            "progress",
            "notes",
            "createdBy",
            "updatedBy",
            "createdAt",
            "updatedAt",
        ]


class ProjectWriteSerializer(serializers.Serializer):
    """Payload for project create (POST) and update (PATCH)."""

    projectCode = serializers.CharField(max_length=50, required=False, source="code")
    projectName = serializers.CharField(max_length=255, source="name")
    clientName = serializers.CharField(
        max_length=255, required=False, allow_blank=True, source="client_name"
    )
    projectType = serializers.CharField(
        max_length=100, required=False, allow_blank=True, source="project_type"
    )
    projectOverview = serializers.CharField(
        required=False, allow_blank=True, source="overview"
    )
    valueProposition = serializers.CharField(
        required=False, allow_blank=True, source="value_proposition"
    )
    problemToSolve = serializers.CharField(
        required=False, allow_blank=True, source="problem_to_solve"
    )
    experienceProvided = serializers.CharField(
        required=False, allow_blank=True, source="experience_provided"
    )
    plannedRevenue = _money(required=False, source="planned_revenue")
    plannedExpense = _money(required=False, source="planned_expense")
    actualRevenue = _money(required=False, source="actual_revenue")
    actualExpense = _money(required=False, source="actual_expense")
    plannedStartDate = serializers.DateField(
        required=False, allow_null=True, source="planned_start_date"
    )
    plannedEndDate = serializers.DateField(
        required=False, allow_null=True, source="planned_end_date"
    )
    plannedDurationMonths = serializers.IntegerField(
        required=False, allow_null=True, min_value=0, source="planned_duration_months"
    )
    actualStartDate = serializers.DateField(
        required=False, allow_null=True, source="actual_start_date"
    )
    actualEndDate = serializers.DateField(
        required=False, allow_null=True, source="actual_end_date"
    )
    status = serializers.ChoiceField(choices=ProjectStatus.choices, required=False)
    progress = serializers.IntegerField(required=False, min_value=0, max_value=100)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_projectCode(self, value):
        if not self.partial:
            raise serializers.ValidationError(
                "Project code is generated by the server"
            )
        return value


class ProjectTaskSerializer(serializers.ModelSerializer):
    projectId = serializers.IntegerField(source="project_id", read_only=True)
    taskName = serializers.CharField(source="task_name", read_only=True)
    startDate = serializers.DateField(source="start_date", read_only=True)
    endDate = serializers.DateField(source="end_date", read_only=True)
    durationDays = serializers.IntegerField(source="duration_days", read_only=True)
    estimatedHours = _hours(source="estimated_hours", read_only=True)
    sortOrder = serializers.IntegerField(source="sort_order", read_only=True)

    class Meta:
        model = ProjectTask
        fields = [
            "id",
            "projectId",
            "taskName",
            "assignee",
            "startDate",
            "endDate",
            "durationDays",
            "estimatedHours",
            "progress",
            "status",
            "notes",
            "sortOrder",
        ]


class ProjectTaskWriteSerializer(serializers.Serializer):
    taskName = serializers.CharField(max_length=255, source="task_name")
    assignee = serializers.CharField(max_length=100, required=False, allow_blank=True)
    startDate = serializers.DateField(required=False, allow_null=True, source="start_date")
    endDate = serializers.DateField(required=False, allow_null=True, source="end_date")
    durationDays = serializers.IntegerField(
        required=False, allow_null=True, min_value=0, source="duration_days"
    )
    estimatedHours = _hours(required=False, min_value=0, source="estimated_hours")
    progress = serializers.IntegerField(required=False, min_value=0, max_value=100)
    status = serializers.ChoiceField(choices=TaskStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)
    sortOrder = serializers.IntegerField(required=False, source="sort_order")


class ProjectMemberSerializer(serializers.ModelSerializer):
    projectId = serializers.IntegerField(source="project_id", read_only=True)
    memberName = serializers.CharField(source="member_name", read_only=True)
    memberEmail = serializers.CharField(source="member_email", read_only=True)
    memberClass = serializers.CharField(source="member_class", read_only=True)
    hourlyRate = _hours(source="hourly_rate", read_only=True)
    plannedHours = _hours(source="planned_hours", read_only=True)
    sortOrder = serializers.IntegerField(source="sort_order", read_only=True)

    class Meta:
        model = ProjectMember
        fields = [
            "id",
            "projectId",
            "role",
            "memberName",
            "memberEmail",
            "memberClass",
            "hourlyRate",
            "plannedHours",
            "sortOrder",
        ]


class ProjectMemberWriteSerializer(serializers.Serializer):
    role = serializers.CharField(max_length=50)
    memberName = serializers.CharField(max_length=100, source="member_name")
    memberEmail = serializers.EmailField(
        max_length=100, required=False, allow_blank=True, source="member_email"
    )
    memberClass = serializers.CharField(
        max_length=50, required=False, allow_blank=True, source="member_class"
    )
    hourlyRate = _hours(
        required=False, allow_null=True, min_value=0, source="hourly_rate"
    )
    plannedHours = _hours(
        required=False, allow_null=True, min_value=0, source="planned_hours"
    )
    sortOrder = serializers.IntegerField(required=False, source="sort_order")


class ProjectFinanceSerializer(serializers.ModelSerializer):
    projectId = serializers.IntegerField(source="project_id", read_only=True)
    yearMonth = serializers.CharField(source="year_month", read_only=True)
    plannedRevenue = _money(source="planned_revenue", read_only=True)
    actualRevenue = _money(source="actual_revenue", read_only=True)
    plannedExpense = _money(source="planned_expense", read_only=True)
    actualExpense = _money(source="actual_expense", read_only=True)

    class Meta:
        model = ProjectFinance
        fields = [
            "id",
            "projectId",
            "yearMonth",
            "plannedRevenue",
            "actualRevenue",
            "plannedExpense",
            "actualExpense",
            "notes",
        ]


class ProjectFinanceWriteSerializer(serializers.Serializer):
    yearMonth = serializers.RegexField(
        r"^\d{4}-(0[1-9]|1[0-2])$", source="year_month"
    )
    plannedRevenue = _money(required=False, source="planned_revenue")
    actualRevenue = _money(required=False, source="actual_revenue")
    plannedExpense = _money(required=False, source="planned_expense")
    actualExpense = _money(required=False, source="actual_expense")
    notes = serializers.CharField(required=False, allow_blank=True)


class ProjectFinanceBulkEntrySerializer(ProjectFinanceWriteSerializer):
    projectId = serializers.IntegerField(source="project_id")


class ProjectFinanceBulkSerializer(serializers.Serializer):
    finances = ProjectFinanceBulkEntrySerializer(many=True, allow_empty=False)


class ProjectWorkHourSerializer(serializers.ModelSerializer):
    projectId = serializers.IntegerField(source="project_id", read_only=True)
    memberId = serializers.IntegerField(source="member_id", read_only=True)
    yearMonth = serializers.CharField(source="year_month", read_only=True)
    plannedHours = _hours(source="planned_hours", read_only=True)
    actualHours = _hours(source="actual_hours", read_only=True)

    class Meta:
        model = ProjectWorkHour
        fields = [
            "id",
            "projectId",
            "memberId",
            "yearMonth",
            "plannedHours",
            "actualHours",
            "notes",
        ]


class ProjectWorkHourEntrySerializer(serializers.Serializer):
    projectId = serializers.IntegerField(source="project_id")
    memberId = serializers.IntegerField(source="member_id")
    yearMonth = serializers.RegexField(
        r"^\d{4}-(0[1-9]|1[0-2])$", source="year_month"
    )
    plannedHours = _hours(required=False, min_value=0, source="planned_hours")
    actualHours = _hours(required=False, min_value=0, source="actual_hours")
    notes = serializers.CharField(required=False, allow_blank=True)


class ProjectWorkHourBulkSerializer(serializers.Serializer):
    workHours = ProjectWorkHourEntrySerializer(many=True, allow_empty=False)


class StaffRoleSerializer(serializers.ModelSerializer):
    isActive = serializers.BooleanField(source="is_active", read_only=True)

    class Meta:
        model = StaffRole
        fields = ["id", "code", "name", "isActive"]


class StaffRoleToggleSerializer(serializers.Serializer):
    isActive = serializers.BooleanField(source="is_active")


class StaffRoleBatchEntrySerializer(StaffRoleToggleSerializer):
    id = serializers.IntegerField()


class StaffRoleBatchSerializer(serializers.Serializer):
    roles = StaffRoleBatchEntrySerializer(many=True)
