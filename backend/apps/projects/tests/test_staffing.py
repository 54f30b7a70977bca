"""
Tasks, members and the staff role catalog.
"""

from datetime import date

from django.test import TestCase

from apps.audit.models import ActivityAction, ActivityLog, EntityType
from apps.projects import services
from apps.projects.models import ProjectMember, ProjectWorkHour, StaffRole
from apps.users.models import User
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError


class TaskServiceTests(TestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="pm", role="manager")
        self.editor = User.objects.create_user(username="dev", role="member")
        self.admin = User.objects.create_superuser(username="root")
        self.project = services.create_project(
            self.manager.id, {"name": "Alpha"}, today=date(2025, 2, 12)
        )

    def test_task_lifecycle_is_logged(self):
        task = services.create_task(
            self.editor.id, self.project.id, {"task_name": "Design", "progress": 10}
        )
        services.update_task(self.editor.id, task.id, {"progress": 60})
        services.delete_task(self.editor.id, task.id)

        actions = list(
            ActivityLog.objects.filter(entity_type=EntityType.TASK)
            .order_by("id")
            .values_list("action", flat=True)
        )
        self.assertEqual(
            actions,
            [
                ActivityAction.TASK_CREATE,
                ActivityAction.TASK_UPDATE,
                ActivityAction.TASK_DELETE,
            ],
        )
        update = ActivityLog.objects.get(action=ActivityAction.TASK_UPDATE)
        self.assertEqual(update.details["projectCode"], self.project.code)
        self.assertEqual(update.details["changes"]["progress"], {"old": 10, "new": 60})

    def test_task_progress_is_bounded(self):
        with self.assertRaises(ValidationError):
            services.create_task(
                self.editor.id, self.project.id, {"task_name": "Design", "progress": -1}
            )

    def test_viewer_cannot_edit_tasks(self):
        viewer = User.objects.create_user(username="ro", role="viewer")
        with self.assertRaises(PermissionDeniedError):
            services.create_task(viewer.id, self.project.id, {"task_name": "Design"})

    def test_task_on_deleted_project_is_not_found(self):
        services.delete_project(self.admin.id, self.project.id)
        with self.assertRaises(NotFoundError):
            services.create_task(self.editor.id, self.project.id, {"task_name": "X"})

    def test_tasks_of_deleted_project_cannot_be_deleted(self):
        task = services.create_task(self.editor.id, self.project.id, {"task_name": "X"})
        services.delete_project(self.admin.id, self.project.id)
        with self.assertRaises(NotFoundError):
            services.delete_task(self.editor.id, task.id)
        self.assertFalse(
            ActivityLog.objects.filter(action=ActivityAction.TASK_DELETE).exists()
        )


class MemberServiceTests(TestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="pm", role="manager")
        self.project = services.create_project(
            self.manager.id, {"name": "Alpha"}, today=date(2025, 2, 12)
        )

    def test_deleting_member_removes_their_hours(self):
        member = services.create_member(
            self.manager.id,
            self.project.id,
            {"role": "PM", "member_name": "Alice", "hourly_rate": "850"},
        )
        ProjectWorkHour.objects.create(
            project=self.project, member=member, year_month="2025-02"
        )

        services.delete_member(self.manager.id, member.id)

        self.assertFalse(ProjectMember.objects.exists())
        self.assertFalse(ProjectWorkHour.objects.exists())
        entry = ActivityLog.objects.get(action=ActivityAction.MEMBER_DELETE)
        self.assertEqual(entry.entity_id, member.id)
        self.assertEqual(entry.entity_name, "Alice")

    def test_members_of_deleted_project_cannot_be_deleted(self):
        member = services.create_member(
            self.manager.id, self.project.id, {"role": "PM", "member_name": "Alice"}
        )
        admin = User.objects.create_superuser(username="root")
        services.delete_project(admin.id, self.project.id)

        with self.assertRaises(NotFoundError):
            services.delete_member(self.manager.id, member.id)
        self.assertTrue(ProjectMember.objects.filter(id=member.id).exists())

    def test_member_name_is_required(self):
        with self.assertRaises(ValidationError):
            services.create_member(
                self.manager.id, self.project.id, {"role": "PM", "member_name": ""}
            )


class StaffRoleServiceTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser(username="root")
        self.manager = User.objects.create_user(username="pm", role="manager")
        self.pm = StaffRole.objects.get(code="PM")
        self.crew = StaffRole.objects.get(code="CREW")

    def test_default_catalog_is_seeded(self):
        self.assertEqual(
            set(StaffRole.objects.values_list("code", flat=True)),
            {"PM", "PPM", "PMO", "PD", "CREW"},
        )

    def test_toggle_logs_old_and_new_value(self):
        services.update_staff_role(self.admin.id, self.pm.id, False)

        entry = ActivityLog.objects.get(action=ActivityAction.ROLE_UPDATE)
        self.assertEqual(entry.entity_type, EntityType.ROLE)
        self.assertEqual(entry.entity_id, self.pm.id)
        self.assertEqual(
            entry.details,
            {
                "action": "停用",
                "oldValue": {"isActive": True},
                "newValue": {"isActive": False},
            },
        )

    def test_setting_the_current_value_is_not_logged(self):
        services.update_staff_role(self.admin.id, self.pm.id, True)
        self.assertFalse(ActivityLog.objects.exists())

    def test_batch_logs_each_changed_role(self):
        changed = services.batch_update_staff_roles(
            self.admin.id,
            [
                {"id": self.pm.id, "is_active": False},
                {"id": self.crew.id, "is_active": True},
                {"id": 999999, "is_active": False},
            ],
        )

        self.assertEqual([role.id for role in changed], [self.pm.id])
        self.assertEqual(
            ActivityLog.objects.filter(action=ActivityAction.ROLE_UPDATE).count(), 1
        )

    def test_only_admin_manages_roles(self):
        with self.assertRaises(PermissionDeniedError):
            services.update_staff_role(self.manager.id, self.pm.id, False)

    def test_unknown_role_is_not_found(self):
        with self.assertRaises(NotFoundError):
            services.update_staff_role(self.admin.id, 999999, False)
