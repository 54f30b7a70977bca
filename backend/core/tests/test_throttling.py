from unittest.mock import patch

from django.core.cache import cache
from django.urls import reverse
from rest_framework.test import APITestCase
from apps.users.models import User
from core.throttling import MutationUserThrottle


class ThrottleSmokeTest(APITestCase):
    def setUp(self):
        cache.clear()
        self.user = User.objects.create_user(
            username="throttle_user",
            role="manager",
        )
        self.client.force_authenticate(self.user)

    def test_mutation_requests_execute(self):
        url = reverse("projects:list-or-create-projects")

        response = self.client.post(url, {"projectName": "T1"}, format="json")

        self.assertIn(response.status_code, [201, 400])

    def test_writes_are_limited_reads_are_not(self):
        url = reverse("projects:list-or-create-projects")

        with patch.object(MutationUserThrottle, "get_rate", return_value="1/min"):
            first = self.client.post(url, {"projectName": "T1"}, format="json")
            second = self.client.post(url, {"projectName": "T2"}, format="json")
            reads = [self.client.get(url).status_code for _ in range(3)]

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 429)
        self.assertEqual(second.data["error"]["code"], "THROTTLED")
        self.assertEqual(reads, [200, 200, 200])
