from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from apps.accounts.models import User


class UserManagerTests(TestCase):
    def test_create_user_normalizes_email(self):
        user = User.objects.create_user("Shopper@EXAMPLE.com", password="pass12345")

        self.assertEqual(user.email, "Shopper@example.com")
        self.assertTrue(user.check_password("pass12345"))
        self.assertFalse(user.is_staff)

    def test_create_user_without_password_is_unusable(self):
        user = User.objects.create_user("guest@example.com")
        self.assertFalse(user.has_usable_password())

    def test_create_superuser_flags(self):
        admin = User.objects.create_superuser("admin@example.com", password="pass12345")
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)

    def test_email_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user("")


class AuthAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user("manager@example.com", password="pass12345")

    def test_token_obtain_and_me(self):
        resp = self.client.post(
            "/api/v1/accounts/token/",
            {"email": "manager@example.com", "password": "pass12345"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn("access", resp.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")
        me = self.client.get("/api/v1/accounts/me/")
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["email"], "manager@example.com")
        self.assertEqual(me.data["managed_enterprises"], [])

    def test_me_requires_authentication(self):
        resp = self.client.get("/api/v1/accounts/me/")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
