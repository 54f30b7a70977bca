"""
Tests for apps.audit.services.log_activity.

Writes are best-effort: failures are logged, never raised.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

from django.db import DatabaseError
from django.test import RequestFactory, TestCase

from apps.audit.models import ActivityAction, ActivityLog, EntityType
from apps.audit.services import client_ip, field_changes, log_activity
from apps.users.models import User
from core.middleware import _request_id_ctx


class LogActivityTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="auditor", role="admin")
        self.factory = RequestFactory()

    def test_entry_round_trips_nested_details(self):
        details = {
            "projectCode": "C2507-001",
            "changes": {"status": {"old": "planning", "new": "in_progress"}},
            "memberIds": [3, 1],
            "totals": {"hours": Decimal("12.50"), "month": date(2025, 2, 1)},
        }

        log_activity(
            actor_id=self.user.id,
            action=ActivityAction.PROJECT_UPDATE,
            entity_type=EntityType.PROJECT,
            entity_id=7,
            entity_name="Alpha",
            details=details,
        )

        entry = ActivityLog.objects.get()
        self.assertEqual(entry.actor_id, self.user.id)
        self.assertEqual(entry.action, "project_update")
        self.assertEqual(entry.entity_type, "project")
        self.assertEqual(entry.entity_id, 7)
        self.assertEqual(entry.details["changes"], details["changes"])
        self.assertEqual(entry.details["memberIds"], [3, 1])
        self.assertEqual(entry.details["totals"], {"hours": "12.50", "month": "2025-02-01"})

    def test_accepts_string_vocabulary_values(self):
        log_activity(self.user.id, "login", "user", entity_id=self.user.id)
        self.assertEqual(ActivityLog.objects.get().action, ActivityAction.LOGIN)

    def test_request_metadata_is_captured(self):
        request = self.factory.post(
            "/api/v1/projects/",
            REMOTE_ADDR="10.0.0.8",
            HTTP_USER_AGENT="Mozilla/5.0",
        )

        log_activity(
            self.user.id, ActivityAction.PROJECT_CREATE, EntityType.PROJECT, request=request
        )

        entry = ActivityLog.objects.get()
        self.assertEqual(entry.ip_address, "10.0.0.8")
        self.assertEqual(entry.user_agent, "Mozilla/5.0")

    def test_request_id_comes_from_context(self):
        token = _request_id_ctx.set("ctx-req-1")
        try:
            log_activity(self.user.id, ActivityAction.LOGOUT, EntityType.USER)
        finally:
            _request_id_ctx.reset(token)

        self.assertEqual(ActivityLog.objects.get().request_id, "ctx-req-1")

    def test_unknown_action_is_logged_not_raised(self):
        with self.assertLogs("apps.audit.services", "ERROR") as logs:
            log_activity(self.user.id, "project_archive", EntityType.PROJECT)

        self.assertFalse(ActivityLog.objects.exists())
        self.assertIn("activity_log_write_failed", logs.output[0])

    def test_storage_failure_is_logged_not_raised(self):
        with patch(
            "apps.audit.services.ActivityLog.objects.create",
            side_effect=DatabaseError("disk full"),
        ):
            with self.assertLogs("apps.audit.services", "ERROR") as logs:
                result = log_activity(
                    self.user.id, ActivityAction.PROJECT_DELETE, EntityType.PROJECT
                )

        self.assertIsNone(result)
        self.assertEqual(logs.records[0].operation, "LOG_ACTIVITY")

    def test_missing_actor_is_stored_without_actor(self):
        with self.assertLogs("apps.audit.services", "WARNING"):
            log_activity(999999, ActivityAction.PROJECT_VIEW, EntityType.PROJECT)

        self.assertIsNone(ActivityLog.objects.get().actor_id)

    def test_long_entity_name_is_truncated(self):
        log_activity(
            self.user.id,
            ActivityAction.PROJECT_CREATE,
            EntityType.PROJECT,
            entity_name="x" * 300,
        )
        self.assertEqual(len(ActivityLog.objects.get().entity_name), 255)


class ClientIpTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def test_forwarded_for_is_used_without_remote_addr(self):
        request = self.factory.get(
            "/", REMOTE_ADDR="", HTTP_X_FORWARDED_FOR="203.0.113.9, 10.0.0.1"
        )
        self.assertEqual(client_ip(request), "203.0.113.9")

    def test_no_request_means_no_ip(self):
        self.assertIsNone(client_ip(None))

    def test_ip_is_capped_at_column_width(self):
        request = self.factory.get("/", REMOTE_ADDR="f" * 80)
        self.assertEqual(len(client_ip(request)), 50)


class FieldChangesTests(TestCase):
    def test_only_differing_fields_are_reported(self):
        user = User(username="u", full_name="Old", alias="A", hourly_rate=Decimal("10.00"))

        diff = field_changes(
            user, {"full_name": "New", "alias": "A", "hourly_rate": Decimal("12.5")}
        )

        self.assertEqual(
            diff,
            {
                "full_name": {"old": "Old", "new": "New"},
                "hourly_rate": {"old": "10.00", "new": "12.5"},
            },
        )
