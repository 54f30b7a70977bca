"""
ActivityLog model - immutable chronological record of mutating actions.

Activity logs are append-only. No update or delete operations, neither on
instances nor through querysets.
"""

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class ActivityAction(models.TextChoices):
    """Closed vocabulary of logged actions. Values are stored verbatim."""

    LOGIN = "login"
    LOGOUT = "logout"

    PROJECT_CREATE = "project_create"
    PROJECT_UPDATE = "project_update"
    PROJECT_DELETE = "project_delete"
    PROJECT_VIEW = "project_view"

    TASK_CREATE = "task_create"
    TASK_UPDATE = "task_update"
    TASK_DELETE = "task_delete"

    MEMBER_CREATE = "member_create"
    MEMBER_UPDATE = "member_update"
    MEMBER_DELETE = "member_delete"

    FINANCE_UPDATE = "finance_update"
    WORKHOUR_UPDATE = "workhour_update"

    REPORT_CREATE = "report_create"
    REPORT_UPDATE = "report_update"
    REPORT_DELETE = "report_delete"

    ROLE_UPDATE = "role_update"

    USER_UPDATE = "user_update"
    USER_ROLE_CHANGE = "user_role_change"


class EntityType(models.TextChoices):
    USER = "user"
    PROJECT = "project"
    TASK = "task"
    MEMBER = "member"
    FINANCE = "finance"
    WORKHOUR = "workhour"
    PROJECT_REPORT = "project_report"
    ROLE = "role"


class ActivityLogQuerySet(models.QuerySet):
    """Blocks bulk mutation paths that bypass Model.save/delete."""

    def update(self, **kwargs):
        raise ValueError("ActivityLog entries are append-only. Updates are not allowed.")

    def delete(self):
        raise ValueError(
            "ActivityLog entries are append-only. Deletions are not allowed."
        )


class ActivityLog(models.Model):
    """ActivityLog model - immutable audit trail."""

    actor = models.ForeignKey(
        "users.User",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activity_logs",
    )
    action = models.CharField(max_length=50, choices=ActivityAction.choices)
    entity_type = models.CharField(max_length=50, choices=EntityType.choices)
    # Not a foreign key: the entity may be deleted after the event is written.
    entity_id = models.BigIntegerField(null=True, blank=True)
    entity_name = models.CharField(max_length=255, null=True, blank=True)
    details = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    ip_address = models.CharField(max_length=50, null=True, blank=True)
    user_agent = models.TextField(null=True, blank=True)
    request_id = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ActivityLogQuerySet.as_manager()

    class Meta:
        db_table = "activity_logs"
        indexes = [
            models.Index(fields=["actor"], name="idx_activity_actor"),
            models.Index(fields=["action"], name="idx_activity_action"),
            models.Index(fields=["entity_type"], name="idx_activity_entity_type"),
            models.Index(fields=["created_at"], name="idx_activity_created"),
        ]
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return (
            f"{self.action} - {self.entity_type}:{self.entity_id} at "
            f"{self.created_at}"
        )

    def save(self, *args, **kwargs):
        """Override save to prevent updates."""
        if self.pk and ActivityLog.objects.filter(pk=self.pk).exists():
            raise ValueError(
                "ActivityLog entries are append-only. Updates are not allowed."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Override delete to prevent deletion."""
        raise ValueError(
            "ActivityLog entries are append-only. Deletions are not allowed."
        )
