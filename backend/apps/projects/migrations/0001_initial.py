# Project portfolio: projects (soft-deleted, unique code), staff role catalog,
# and the per-project tasks, members, finances and work hours.

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


def _money(**kwargs):
    return models.DecimalField(decimal_places=2, max_digits=15, **kwargs)


def _hours(**kwargs):
    return models.DecimalField(decimal_places=2, max_digits=10, **kwargs)


def _id():
    return (
        "id",
        models.BigAutoField(
            auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
        ),
    )


PROGRESS_VALIDATORS = [
    django.core.validators.MinValueValidator(0),
    django.core.validators.MaxValueValidator(100),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Project",
            fields=[
                _id(),
                ("code", models.CharField(editable=False, max_length=50, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("client_name", models.CharField(blank=True, default="", max_length=255)),
                ("project_type", models.CharField(blank=True, default="", max_length=100)),
                ("overview", models.TextField(blank=True, default="")),
                ("value_proposition", models.TextField(blank=True, default="")),
                ("problem_to_solve", models.TextField(blank=True, default="")),
                ("experience_provided", models.TextField(blank=True, default="")),
                ("planned_revenue", _money(default=0)),
                ("planned_expense", _money(default=0)),
                ("actual_revenue", _money(default=0)),
                ("actual_expense", _money(default=0)),
                ("planned_start_date", models.DateField(blank=True, null=True)),
                ("planned_end_date", models.DateField(blank=True, null=True)),
                (
                    "planned_duration_months",
                    models.PositiveIntegerField(blank=True, null=True),
                ),
                ("actual_start_date", models.DateField(blank=True, null=True)),
                ("actual_end_date", models.DateField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("planning", "Planning"),
                            ("in_progress", "In Progress"),
                            ("completed", "Completed"),
                            ("on_hold", "On Hold"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="planning",
                        max_length=20,
                    ),
                ),
                (
                    "progress",
                    models.PositiveSmallIntegerField(
                        default=0, validators=PROGRESS_VALIDATORS
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_projects",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="updated_projects",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "projects",
                "base_manager_name": "all_objects",
                "indexes": [
                    models.Index(fields=["status"], name="idx_project_status"),
                    models.Index(fields=["deleted_at"], name="idx_project_deleted"),
                ],
                "constraints": [
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
                ],
            },
            managers=[
                ("objects", models.Manager()),
                ("all_objects", models.Manager()),
            ],
        ),
        migrations.CreateModel(
            name="StaffRole",
            fields=[
                _id(),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=50)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "staff_roles",
                "ordering": ["code"],
            },
        ),
        migrations.CreateModel(
            name="ProjectMember",
            fields=[
                _id(),
                ("role", models.CharField(max_length=50)),
                ("member_name", models.CharField(max_length=100)),
                (
                    "member_email",
                    models.EmailField(blank=True, default="", max_length=100),
                ),
                ("member_class", models.CharField(blank=True, default="", max_length=50)),
                ("hourly_rate", _hours(blank=True, null=True)),
                ("planned_hours", _hours(blank=True, null=True)),
                ("sort_order", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="projects.project",
                    ),
                ),
            ],
            options={
                "db_table": "project_members",
                "ordering": ["sort_order", "id"],
            },
        ),
        migrations.CreateModel(
            name="ProjectTask",
            fields=[
                _id(),
                ("task_name", models.CharField(max_length=255)),
                ("assignee", models.CharField(blank=True, default="", max_length=100)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("duration_days", models.PositiveIntegerField(blank=True, null=True)),
                ("estimated_hours", _hours(default=1)),
                (
                    "progress",
                    models.PositiveSmallIntegerField(
                        default=0, validators=PROGRESS_VALIDATORS
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("not_started", "Not Started"),
                            ("in_progress", "In Progress"),
                            ("completed", "Completed"),
                            ("delayed", "Delayed"),
                        ],
                        default="not_started",
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("sort_order", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tasks",
                        to="projects.project",
                    ),
                ),
            ],
            options={
                "db_table": "project_tasks",
                "ordering": ["sort_order", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(progress__gte=0) & models.Q(progress__lte=100),
                        name="task_progress_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProjectFinance",
            fields=[
                _id(),
                ("year_month", models.CharField(max_length=7)),
                ("planned_revenue", _money(default=0)),
                ("actual_revenue", _money(default=0)),
                ("planned_expense", _money(default=0)),
                ("actual_expense", _money(default=0)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="finances",
                        to="projects.project",
                    ),
                ),
            ],
            options={
                "db_table": "project_finances",
                "ordering": ["year_month"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["project", "year_month"], name="unique_finance_month"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProjectWorkHour",
            fields=[
                _id(),
                ("year_month", models.CharField(max_length=7)),
                ("planned_hours", _hours(default=0)),
                ("actual_hours", _hours(default=0)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="work_hours",
                        to="projects.projectmember",
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="work_hours",
                        to="projects.project",
                    ),
                ),
            ],
            options={
                "db_table": "project_work_hours",
                "ordering": ["member_id", "year_month"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["project", "member", "year_month"],
                        name="unique_member_work_month",
                    ),
                ],
            },
        ),
    ]
