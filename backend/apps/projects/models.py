"""
Project portfolio models.

Project is the aggregate root: tasks, members, finances and work hours belong
to exactly one project and are removed with it on hard delete. Projects
themselves are soft-deleted (deleted_at) and keep their code forever.
"""

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class ProjectStatus(models.TextChoices):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class TaskStatus(models.TextChoices):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELAYED = "delayed"


class ActiveProjectManager(models.Manager):
    """Hides soft-deleted projects."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


def _money(**kwargs):
    return models.DecimalField(max_digits=15, decimal_places=2, **kwargs)


def _hours(**kwargs):
    return models.DecimalField(max_digits=10, decimal_places=2, **kwargs)


class Project(models.Model):
    """Project aggregate root."""

    code = models.CharField(max_length=50, unique=True, editable=False)
    name = models.CharField(max_length=255)
    client_name = models.CharField(max_length=255, blank=True, default="")
    project_type = models.CharField(max_length=100, blank=True, default="")
    overview = models.TextField(blank=True, default="")
    value_proposition = models.TextField(blank=True, default="")
    problem_to_solve = models.TextField(blank=True, default="")
    experience_provided = models.TextField(blank=True, default="")

    planned_revenue = _money(default=0)
    planned_expense = _money(default=0)
    actual_revenue = _money(default=0)
    actual_expense = _money(default=0)

    planned_start_date = models.DateField(null=True, blank=True)
    planned_end_date = models.DateField(null=True, blank=True)
    planned_duration_months = models.PositiveIntegerField(null=True, blank=True)
    actual_start_date = models.DateField(null=True, blank=True)
    actual_end_date = models.DateField(null=True, blank=True)

    status = models.CharField(
        max_length=20, choices=ProjectStatus.choices, default=ProjectStatus.PLANNING
    )
    progress = models.PositiveSmallIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_projects",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="updated_projects",
    )
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ActiveProjectManager()
    all_objects = models.Manager()

    class Meta:
        db_table = "projects"
        base_manager_name = "all_objects"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(progress__gte=0) & models.Q(progress__lte=100),
                name="project_progress_range",
            ),
            models.CheckConstraint(
                condition=models.Q(
                    status__in=[
                        "planning",
                        "in_progress",
                        "completed",
                        "on_hold",
                        "cancelled",
                    ]
                ),
                name="valid_project_status",
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="idx_project_status"),
            models.Index(fields=["deleted_at"], name="idx_project_deleted"),
        ]

    def __str__(self):
        return f"{self.code} {self.name}"

    @property
    def is_deleted(self):
        return self.deleted_at is not None


class StaffRole(models.Model):
    """Catalog of member roles that can be assigned on a project."""

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=50)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "staff_roles"
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} - {self.name}"


class ProjectMember(models.Model):
    project = models.ForeignKey(
        Project, on_delete=models.CASCADE, related_name="members"
    )
    role = models.CharField(max_length=50)
    member_name = models.CharField(max_length=100)
    member_email = models.EmailField(max_length=100, blank=True, default="")
    member_class = models.CharField(max_length=50, blank=True, default="")
    hourly_rate = _hours(null=True, blank=True)
    planned_hours = _hours(null=True, blank=True)
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "project_members"
        ordering = ["sort_order", "id"]

    def __str__(self):
        return f"{self.member_name} ({self.role})"


class ProjectTask(models.Model):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="tasks")
    task_name = models.CharField(max_length=255)
    assignee = models.CharField(max_length=100, blank=True, default="")
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    duration_days = models.PositiveIntegerField(null=True, blank=True)
    estimated_hours = _hours(default=1)
    progress = models.PositiveSmallIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    status = models.CharField(
        max_length=20, choices=TaskStatus.choices, default=TaskStatus.NOT_STARTED
    )
    notes = models.TextField(blank=True, default="")
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "project_tasks"
        ordering = ["sort_order", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(progress__gte=0) & models.Q(progress__lte=100),
                name="task_progress_range",
            ),
        ]

    def __str__(self):
        return self.task_name


class ProjectFinance(models.Model):
    """Planned and actual money for one project month (YYYY-MM)."""

    project = models.ForeignKey(
        Project, on_delete=models.CASCADE, related_name="finances"
    )
    year_month = models.CharField(max_length=7)
    planned_revenue = _money(default=0)
    actual_revenue = _money(default=0)
    planned_expense = _money(default=0)
    actual_expense = _money(default=0)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "project_finances"
        ordering = ["year_month"]
        constraints = [
            models.UniqueConstraint(
                fields=["project", "year_month"], name="unique_finance_month"
            )
        ]

    def __str__(self):
        return f"{self.project_id} {self.year_month}"


class ProjectWorkHour(models.Model):
    """Planned and actual hours of one member on one project month."""

    project = models.ForeignKey(
        Project, on_delete=models.CASCADE, related_name="work_hours"
    )
    member = models.ForeignKey(
        ProjectMember, on_delete=models.CASCADE, related_name="work_hours"
    )
    year_month = models.CharField(max_length=7)
    planned_hours = _hours(default=0)
    actual_hours = _hours(default=0)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "project_work_hours"
        ordering = ["member_id", "year_month"]
        constraints = [
            models.UniqueConstraint(
                fields=["project", "member", "year_month"],
                name="unique_member_work_month",
            )
        ]

    def __str__(self):
        return f"{self.member_id} {self.year_month}"
