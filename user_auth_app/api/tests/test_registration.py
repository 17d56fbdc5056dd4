from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status

from common.exceptions import Conflict
from common.testing import MarketplaceAPITestCase, create_user_with_role
from profiles.models import Profile
from user_auth_app.api.serializers import RegistrationSerializer

User = get_user_model()


class RegistrationTests(MarketplaceAPITestCase):
    def setUp(self):
        super().setUp()
        self.url = reverse("registration")
        self.payload = {
            "name": "Ada Client",
            "email": "ada@mail.de",
            "password": "StrongPassw0rd!",
            "role": "client",
        }

    def test_registration_success(self):
        resp = self.client.post(self.url, self.payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertIn("token", resp.data)
        self.assertEqual(resp.data["user"]["email"], "ada@mail.de")
        self.assertEqual(resp.data["user"]["name"], "Ada Client")
        self.assertEqual(resp.data["user"]["role"], "client")
        self.assertTrue(User.objects.filter(email="ada@mail.de").exists())

    def test_registration_sets_http_only_cookie(self):
        resp = self.client.post(self.url, self.payload, format="json")
        cookie = resp.cookies["token"]
        self.assertEqual(cookie.value, resp.data["token"])
        self.assertTrue(cookie["httponly"])

    def test_registration_creates_profile_with_role(self):
        payload = dict(self.payload, email="free@mail.de", role="freelancer")
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        prof = Profile.objects.get(user_id=resp.data["user"]["id"])
        self.assertEqual(prof.role, "freelancer")
        self.assertEqual(prof.total_orders, 0)

    def test_duplicate_email_400(self):
        first = self.client.post(self.url, self.payload, format="json")
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)

        second = self.client.post(self.url, dict(self.payload, name="Other"), format="json")
        self.assertEqual(second.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", second.data)

    def test_duplicate_email_is_case_insensitive(self):
        create_user_with_role("existing", "client", email="dup@mail.de")
        resp = self.client.post(self.url, dict(self.payload, email="DUP@Mail.de"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", resp.data)

    def test_admin_role_cannot_be_self_assigned(self):
        resp = self.client.post(self.url, dict(self.payload, role="admin"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("role", resp.data)

    def test_short_password_400(self):
        resp = self.client.post(self.url, dict(self.payload, password="abc"), format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", resp.data)

    def test_missing_required_fields_400(self):
        resp = self.client.post(self.url, {"name": "x"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        for f in ("email", "password", "role"):
            self.assertIn(f, resp.data)

    def test_email_taken_after_validation_returns_conflict(self):
        serializer = RegistrationSerializer(data=self.payload)
        self.assertTrue(serializer.is_valid())
        create_user_with_role("ada", Profile.Role.CLIENT, email="ada@mail.de")

        with self.assertRaises(Conflict):
            serializer.save()
        self.assertEqual(User.objects.filter(email="ada@mail.de").count(), 1)
