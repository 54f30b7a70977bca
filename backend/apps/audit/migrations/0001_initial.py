# Activity logs are append-only immutable records of mutating actions.

from django.conf import settings
import django.core.serializers.json
from django.db import migrations, models
import django.db.models.deletion


ACTION_CHOICES = [
    ("login", "Login"),
    ("logout", "Logout"),
    ("project_create", "Project Create"),
    ("project_update", "Project Update"),
    ("project_delete", "Project Delete"),
    ("project_view", "Project View"),
    ("task_create", "Task Create"),
    ("task_update", "Task Update"),
    ("task_delete", "Task Delete"),
    ("member_create", "Member Create"),
    ("member_update", "Member Update"),
    ("member_delete", "Member Delete"),
    ("finance_update", "Finance Update"),
    ("workhour_update", "Workhour Update"),
    ("report_create", "Report Create"),
    ("report_update", "Report Update"),
    ("report_delete", "Report Delete"),
    ("role_update", "Role Update"),
    ("user_update", "User Update"),
    ("user_role_change", "User Role Change"),
]

ENTITY_TYPE_CHOICES = [
    ("user", "User"),
    ("project", "Project"),
    ("task", "Task"),
    ("member", "Member"),
    ("finance", "Finance"),
    ("workhour", "Workhour"),
    ("project_report", "Project Report"),
    ("role", "Role"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("users", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ActivityLog",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("action", models.CharField(choices=ACTION_CHOICES, max_length=50)),
                (
                    "entity_type",
                    models.CharField(choices=ENTITY_TYPE_CHOICES, max_length=50),
                ),
                ("entity_id", models.BigIntegerField(blank=True, null=True)),
                ("entity_name", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "details",
                    models.JSONField(
                        blank=True,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                        null=True,
                    ),
                ),
                ("ip_address", models.CharField(blank=True, max_length=50, null=True)),
                ("user_agent", models.TextField(blank=True, null=True)),
                ("request_id", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="activity_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "activity_logs",
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.AddIndex(
            model_name="activitylog",
            index=models.Index(fields=["actor"], name="idx_activity_actor"),
        ),
        migrations.AddIndex(
            model_name="activitylog",
            index=models.Index(fields=["action"], name="idx_activity_action"),
        ),
        migrations.AddIndex(
            model_name="activitylog",
            index=models.Index(fields=["entity_type"], name="idx_activity_entity_type"),
        ),
        migrations.AddIndex(
            model_name="activitylog",
            index=models.Index(fields=["created_at"], name="idx_activity_created"),
        ),
    ]
