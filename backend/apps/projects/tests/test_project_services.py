"""
Project lifecycle services: code assignment, conflicts, updates, soft delete.
"""

import threading
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from django.db import connection
from django.test import TestCase, TransactionTestCase

from apps.audit.models import ActivityAction, ActivityLog, EntityType
from apps.projects import services
from apps.projects.codes import next_project_code
from apps.projects.models import Project
from apps.users.models import User
from core.exceptions import (
    DuplicateProjectCodeError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

CUSTOMER = "客戶需求導向"
INTERNAL = "內部專案"
FEB_12_2025 = date(2025, 2, 12)


class CreateProjectTests(TestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="pm", role="manager")

    def _create(self, name, project_type=CUSTOMER, **data):
        return services.create_project(
            self.manager.id,
            {"name": name, "project_type": project_type, **data},
            today=FEB_12_2025,
        )

    def test_codes_follow_type_week_and_sequence(self):
        first = self._create("Alpha")
        second = self._create("Beta")
        internal = self._create("Gamma", project_type=INTERNAL)

        self.assertEqual(first.code, "C2507-001")
        self.assertEqual(second.code, "C2507-002")
        self.assertEqual(internal.code, "I2507-001")

    def test_creation_is_logged_once_with_code(self):
        project = self._create("Alpha", planned_revenue="1200.50")

        entries = ActivityLog.objects.filter(action=ActivityAction.PROJECT_CREATE)
        self.assertEqual(entries.count(), 1)
        entry = entries.get()
        self.assertEqual(entry.actor_id, self.manager.id)
        self.assertEqual(entry.entity_type, EntityType.PROJECT)
        self.assertEqual(entry.entity_id, project.id)
        self.assertEqual(entry.entity_name, "Alpha")
        self.assertEqual(entry.details["projectCode"], "C2507-001")
        self.assertEqual(project.planned_revenue, Decimal("1200.50"))

    def test_created_by_is_recorded(self):
        project = self._create("Alpha")
        self.assertEqual(project.created_by_id, self.manager.id)
        self.assertEqual(project.updated_by_id, self.manager.id)

    def test_name_is_required(self):
        with self.assertRaises(ValidationError):
            self._create("   ")
        self.assertFalse(Project.all_objects.exists())
        self.assertFalse(ActivityLog.objects.exists())

    def test_client_cannot_choose_the_code(self):
        with self.assertRaises(ValidationError):
            self._create("Alpha", code="C2507-999")

    def test_progress_out_of_range_is_rejected(self):
        with self.assertRaises(ValidationError):
            self._create("Alpha", progress=101)

    def test_member_role_cannot_create(self):
        member = User.objects.create_user(username="dev", role="member")
        with self.assertRaises(PermissionDeniedError):
            services.create_project(member.id, {"name": "Alpha"}, today=FEB_12_2025)

    def test_unknown_actor_is_not_found(self):
        with self.assertRaises(NotFoundError):
            services.create_project(999999, {"name": "Alpha"}, today=FEB_12_2025)


class DuplicateCodeTests(TestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="pm", role="manager")

    def test_concurrent_creations_cannot_share_a_code(self):
        # Both requests computed their code before either inserted.
        code_a = next_project_code(CUSTOMER, today=FEB_12_2025)
        code_b = next_project_code(CUSTOMER, today=FEB_12_2025)
        self.assertEqual(code_a, code_b)

        services.insert_project(self.manager, code_a, {"name": "First"})
        with self.assertRaises(DuplicateProjectCodeError) as ctx:
            services.insert_project(self.manager, code_b, {"name": "Second"})

        self.assertEqual(ctx.exception.code, "DUPLICATE_PROJECT_CODE")
        self.assertEqual(ctx.exception.details, {"projectCode": "C2507-001"})
        self.assertEqual(Project.all_objects.filter(code="C2507-001").count(), 1)

    def test_lost_race_is_retried_with_a_fresh_code(self):
        services.insert_project(self.manager, "C2507-001", {"name": "Winner"})

        with patch(
            "apps.projects.services.next_project_code",
            side_effect=["C2507-001", "C2507-002"],
        ):
            project = services.create_project(
                self.manager.id, {"name": "Retried"}, today=FEB_12_2025
            )

        self.assertEqual(project.code, "C2507-002")
        self.assertEqual(
            ActivityLog.objects.filter(action=ActivityAction.PROJECT_CREATE).count(), 1
        )

    def test_second_collision_is_raised(self):
        services.insert_project(self.manager, "C2507-001", {"name": "Winner"})

        with patch(
            "apps.projects.services.next_project_code", return_value="C2507-001"
        ):
            with self.assertLogs("apps.projects.services", "WARNING"):
                with self.assertRaises(DuplicateProjectCodeError):
                    services.create_project(
                        self.manager.id, {"name": "Loser"}, today=FEB_12_2025
                    )

        self.assertEqual(Project.all_objects.count(), 1)
        self.assertFalse(ActivityLog.objects.exists())


class UpdateProjectTests(TestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="pm", role="manager")
        self.project = services.create_project(
            self.manager.id,
            {"name": "Alpha", "project_type": CUSTOMER},
            today=FEB_12_2025,
        )

    def test_update_records_old_and_new_values(self):
        services.update_project(
            self.manager.id, self.project.id, {"status": "in_progress", "progress": 40}
        )

        entry = ActivityLog.objects.get(action=ActivityAction.PROJECT_UPDATE)
        self.assertEqual(entry.entity_id, self.project.id)
        self.assertEqual(entry.details["projectCode"], "C2507-001")
        self.assertEqual(
            entry.details["changes"]["status"],
            {"old": "planning", "new": "in_progress"},
        )
        self.assertEqual(entry.details["changes"]["progress"], {"old": 0, "new": 40})

    def test_code_never_changes(self):
        with self.assertRaises(ValidationError):
            services.update_project(
                self.manager.id, self.project.id, {"code": "C2507-999"}
            )

        self.project.refresh_from_db()
        self.assertEqual(self.project.code, "C2507-001")

    def test_resubmitting_the_same_code_is_allowed(self):
        project = services.update_project(
            self.manager.id, self.project.id, {"code": "C2507-001", "notes": "ok"}
        )
        self.assertEqual(project.code, "C2507-001")
        self.assertEqual(project.notes, "ok")

    def test_noop_update_is_not_logged(self):
        services.update_project(self.manager.id, self.project.id, {"name": "Alpha"})
        self.assertFalse(
            ActivityLog.objects.filter(action=ActivityAction.PROJECT_UPDATE).exists()
        )

    def test_type_change_keeps_the_code(self):
        project = services.update_project(
            self.manager.id, self.project.id, {"project_type": INTERNAL}
        )
        self.assertEqual(project.code, "C2507-001")

    def test_invalid_status_is_rejected(self):
        with self.assertRaises(ValidationError):
            services.update_project(
                self.manager.id, self.project.id, {"status": "archived"}
            )


class DeleteProjectTests(TestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="pm", role="manager")
        self.admin = User.objects.create_superuser(username="root")
        self.project = services.create_project(
            self.manager.id,
            {"name": "Alpha", "project_type": CUSTOMER},
            today=FEB_12_2025,
        )

    def test_delete_is_soft_and_logged(self):
        services.delete_project(self.admin.id, self.project.id)

        self.assertFalse(Project.objects.filter(id=self.project.id).exists())
        self.assertTrue(
            Project.all_objects.get(id=self.project.id).deleted_at is not None
        )
        entry = ActivityLog.objects.get(action=ActivityAction.PROJECT_DELETE)
        self.assertEqual(entry.details, {"projectCode": "C2507-001"})

    def test_deleted_code_is_never_reissued(self):
        services.delete_project(self.admin.id, self.project.id)
        project = services.create_project(
            self.manager.id,
            {"name": "Beta", "project_type": CUSTOMER},
            today=FEB_12_2025,
        )
        self.assertEqual(project.code, "C2507-002")

    def test_deleted_project_is_not_found(self):
        services.delete_project(self.admin.id, self.project.id)
        with self.assertRaises(NotFoundError):
            services.delete_project(self.admin.id, self.project.id)

    def test_manager_cannot_delete(self):
        with self.assertRaises(PermissionDeniedError):
            services.delete_project(self.manager.id, self.project.id)
        self.assertTrue(Project.objects.filter(id=self.project.id).exists())
        self.assertFalse(
            ActivityLog.objects.filter(action=ActivityAction.PROJECT_DELETE).exists()
        )


class SimultaneousCreationTests(TransactionTestCase):
    """Two inserts race for the same code on separate connections."""

    def setUp(self):
        self.manager = User.objects.create_user(username="pm", role="manager")

    def test_only_one_of_two_simultaneous_inserts_gets_the_code(self):
        code = next_project_code(CUSTOMER, today=FEB_12_2025)
        barrier = threading.Barrier(2)
        outcomes = []
        lock = threading.Lock()

        def attempt(name):
            try:
                barrier.wait(timeout=5)
                try:
                    services.insert_project(self.manager, code, {"name": name})
                    outcome = "ok"
                except DuplicateProjectCodeError:
                    outcome = "dup"
                with lock:
                    outcomes.append(outcome)
            finally:
                connection.close()

        threads = [
            threading.Thread(target=attempt, args=(name,)) for name in ("First", "Second")
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        self.assertEqual(sorted(outcomes), ["dup", "ok"])
        self.assertEqual(Project.all_objects.filter(code=code).count(), 1)
