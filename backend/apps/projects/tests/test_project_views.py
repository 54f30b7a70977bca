"""
API coverage for apps.projects.views: roles, envelopes, error codes.
"""

from unittest.mock import patch

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.audit.models import ActivityAction, ActivityLog
from apps.projects import services
from apps.projects.codes import code_prefix
from apps.projects.models import Project, ProjectMember, StaffRole
from apps.users.models import User

CUSTOMER = "客戶需求導向"


class ProjectViewTests(APITestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="pm", role="manager")
        self.viewer = User.objects.create_user(username="ro", role="viewer")
        self.client.force_authenticate(self.manager)

    def _create(self, name="Alpha", **extra):
        return self.client.post(
            reverse("projects:list-or-create-projects"),
            {"projectName": name, "projectType": CUSTOMER, **extra},
            format="json",
        )

    def test_create_returns_generated_code(self):
        response = self._create()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        prefix = code_prefix(CUSTOMER, timezone.localdate())
        self.assertEqual(response.data["data"]["projectCode"], f"{prefix}-001")
        self.assertEqual(response.data["data"]["projectName"], "Alpha")

    def test_create_rejects_client_supplied_code(self):
        response = self._create(projectCode="C2507-123")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "VALIDATION_ERROR")
        self.assertIn("projectCode", response.data["error"]["details"])

    def test_duplicate_code_maps_to_409(self):
        first = self._create()
        taken = first.data["data"]["projectCode"]

        with patch(
            "apps.projects.services.next_project_code", return_value=taken
        ):
            response = self._create(name="Beta")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "DUPLICATE_PROJECT_CODE")
        self.assertEqual(response.data["error"]["details"], {"projectCode": taken})

    def test_preview_next_code_has_no_side_effects(self):
        url = reverse("projects:preview-next-code")
        first = self.client.get(url, {"projectType": CUSTOMER})
        second = self.client.get(url, {"projectType": CUSTOMER})

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data, second.data)
        self.assertFalse(Project.all_objects.exists())

    def test_viewer_can_read_but_not_create(self):
        self._create()
        self.client.force_authenticate(self.viewer)

        listing = self.client.get(reverse("projects:list-or-create-projects"))
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(listing.data["count"], 1)

        response = self._create(name="Beta")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_filters_by_status(self):
        self._create()
        response = self.client.get(
            reverse("projects:list-or-create-projects"), {"status": "completed"}
        )
        self.assertEqual(response.data["count"], 0)

        response = self.client.get(
            reverse("projects:list-or-create-projects"), {"status": "archived"}
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_patch_cannot_change_code(self):
        created = self._create().data["data"]
        url = reverse("projects:project-detail", args=[created["id"]])

        response = self.client.patch(url, {"projectCode": "Z9999-001"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            Project.objects.get(id=created["id"]).code, created["projectCode"]
        )

    def test_patch_updates_and_logs(self):
        created = self._create().data["data"]
        url = reverse("projects:project-detail", args=[created["id"]])

        response = self.client.patch(url, {"progress": 25}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["data"]["progress"], 25)
        self.assertTrue(
            ActivityLog.objects.filter(action=ActivityAction.PROJECT_UPDATE).exists()
        )

    def test_manager_cannot_delete(self):
        created = self._create().data["data"]
        url = reverse("projects:project-detail", args=[created["id"]])

        response = self.client.delete(url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Project.objects.filter(id=created["id"]).exists())

    def test_delete_then_get_is_not_found(self):
        created = self._create().data["data"]
        url = reverse("projects:project-detail", args=[created["id"]])

        self.client.force_authenticate(User.objects.create_superuser(username="root"))
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_200_OK)
        response = self.client.get(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"]["code"], "NOT_FOUND")

    def test_unauthenticated_is_rejected(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse("projects:list-or-create-projects"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_request_id_is_recorded_on_activity(self):
        self.client.post(
            reverse("projects:list-or-create-projects"),
            {"projectName": "Alpha", "projectType": CUSTOMER},
            format="json",
            HTTP_X_REQUEST_ID="req-123",
            HTTP_USER_AGENT="portfolio-tests",
        )

        entry = ActivityLog.objects.get(action=ActivityAction.PROJECT_CREATE)
        self.assertEqual(entry.request_id, "req-123")
        self.assertEqual(entry.user_agent, "portfolio-tests")
        self.assertEqual(entry.ip_address, "127.0.0.1")


class WorkHourViewTests(APITestCase):
    def setUp(self):
        self.editor = User.objects.create_user(username="dev", role="member")
        manager = User.objects.create_user(username="pm", role="manager")
        self.project = services.create_project(manager.id, {"name": "Alpha"})
        self.member = ProjectMember.objects.create(
            project=self.project, role="PM", member_name="Alice"
        )
        self.client.force_authenticate(self.editor)

    def test_bulk_update_and_list(self):
        response = self.client.put(
            reverse("projects:bulk-update-work-hours"),
            {
                "workHours": [
                    {
                        "projectId": self.project.id,
                        "memberId": self.member.id,
                        "yearMonth": "2025-02",
                        "plannedHours": "40",
                        "actualHours": "36.5",
                    }
                ]
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

        listing = self.client.get(
            reverse("projects:list-work-hours", args=[self.project.id])
        )
        self.assertEqual(len(listing.data["data"]), 1)
        self.assertEqual(listing.data["data"][0]["actualHours"], "36.50")

    def test_bad_month_is_a_validation_error(self):
        response = self.client.put(
            reverse("projects:bulk-update-work-hours"),
            {
                "workHours": [
                    {
                        "projectId": self.project.id,
                        "memberId": self.member.id,
                        "yearMonth": "2025-2",
                    }
                ]
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "VALIDATION_ERROR")


class StaffRoleViewTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser(username="root")
        self.manager = User.objects.create_user(username="pm", role="manager")
        self.role = StaffRole.objects.get(code="PMO")

    def test_any_role_can_list(self):
        self.client.force_authenticate(self.manager)
        response = self.client.get(reverse("roles:list-roles"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["data"]), 5)

    def test_admin_toggles_role(self):
        self.client.force_authenticate(self.admin)
        response = self.client.patch(
            reverse("roles:update-role", args=[self.role.id]),
            {"isActive": False},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["data"]["isActive"])

    def test_manager_cannot_toggle_role(self):
        self.client.force_authenticate(self.manager)
        response = self.client.patch(
            reverse("roles:update-role", args=[self.role.id]),
            {"isActive": False},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
