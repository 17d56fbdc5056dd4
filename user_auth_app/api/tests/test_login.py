from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.authtoken.models import Token

from common.testing import DEFAULT_PASSWORD, MarketplaceAPITestCase, create_user_with_role


class LoginTests(MarketplaceAPITestCase):
    def setUp(self):
        super().setUp()
        self.url = reverse("login")
        self.user = create_user_with_role("exampleUser", "client", email="example@mail.de")

    def test_login_success(self):
        payload = {"email": "example@mail.de", "password": DEFAULT_PASSWORD}
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn("token", resp.data)
        self.assertEqual(resp.data["user"]["email"], "example@mail.de")
        self.assertEqual(resp.data["user"]["id"], self.user.id)
        self.assertEqual(resp.cookies["token"].value, resp.data["token"])

    def test_login_email_is_case_insensitive(self):
        payload = {"email": "EXAMPLE@mail.de", "password": DEFAULT_PASSWORD}
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_wrong_password_and_unknown_user_share_one_message(self):
        wrong = self.client.post(
            self.url, {"email": "example@mail.de", "password": "wrongPassword"}, format="json"
        )
        unknown = self.client.post(
            self.url, {"email": "nobody@mail.de", "password": "whatever123"}, format="json"
        )
        self.assertEqual(wrong.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(unknown.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(wrong.data, unknown.data)
        self.assertEqual(wrong.data, {"detail": "Invalid credentials."})

    def test_login_missing_fields(self):
        resp = self.client.post(self.url, {"email": "example@mail.de"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", resp.data)

    def test_suspended_user_cannot_log_in(self):
        self.user.profile.is_suspended = True
        self.user.profile.save(update_fields=["is_suspended"])
        payload = {"email": "example@mail.de", "password": DEFAULT_PASSWORD}
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_expired_token_is_replaced_on_login(self):
        old = Token.objects.create(user=self.user)
        Token.objects.filter(pk=old.pk).update(created=timezone.now() - timedelta(days=3))
        payload = {"email": "example@mail.de", "password": DEFAULT_PASSWORD}
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertNotEqual(resp.data["token"], old.key)


class TokenAuthenticationTests(MarketplaceAPITestCase):
    def setUp(self):
        super().setUp()
        self.me_url = reverse("me")
        self.user = create_user_with_role("tok", "freelancer")

    def test_token_header_authorizes_protected_calls(self):
        self.auth(self.user)
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["role"], "freelancer")

    def test_bearer_keyword_is_accepted(self):
        token = Token.objects.create(user=self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.key}")
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_cookie_token_authorizes_protected_calls(self):
        token = Token.objects.create(user=self.user)
        self.client.cookies["token"] = token.key
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["id"], self.user.id)

    def test_missing_token_401(self):
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_invalid_token_401(self):
        self.client.credentials(HTTP_AUTHORIZATION="Token not-a-real-token")
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_expired_token_401(self):
        token = self.auth(self.user)
        Token.objects.filter(pk=token.pk).update(created=timezone.now() - timedelta(days=2))
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_suspended_user_token_401(self):
        self.auth(self.user)
        self.user.profile.is_suspended = True
        self.user.profile.save(update_fields=["is_suspended"])
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_inactive_user_token_401(self):
        self.auth(self.user)
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])
        resp = self.client.get(self.me_url)
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_revokes_token_and_clears_cookie(self):
        self.auth(self.user)
        resp = self.client.post(reverse("logout"))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.cookies["token"].value, "")
        self.assertFalse(Token.objects.filter(user=self.user).exists())
        again = self.client.get(self.me_url)
        self.assertEqual(again.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_change_password(self):
        self.auth(self.user)
        resp = self.client.post(
            reverse("change-password"),
            {"current_password": "Sup3r-Secret-pw", "new_password": "An0ther-Secret!"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("An0ther-Secret!"))

    def test_change_password_wrong_current_400(self):
        self.auth(self.user)
        resp = self.client.post(
            reverse("change-password"),
            {"current_password": "nope", "new_password": "An0ther-Secret!"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("current_password", resp.data)
