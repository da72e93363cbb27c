import jwt
from django.urls import reverse
from django.contrib.auth import get_user_model
from django.test import TestCase

from rest_framework.test import APIClient
from rest_framework import status

from .models import Profile

User = get_user_model()

REGISTER_URL = reverse("register")
LOGIN_URL = reverse("login")
ME_URL = reverse("me")
PROFILE_URL = reverse("profile")


def create_user(**params):
    defaults = {"password": "password123", "name": "Test User"}
    defaults.update(params)
    return User.objects.create_user(**defaults)


class RegistrationAndLoginTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_user_success(self):
        payload = {
            "email": "new@test.com",
            "password": "password123",
            "name": "New User",
        }
        res = self.client.post(REGISTER_URL, payload)

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email="new@test.com")
        self.assertTrue(user.check_password("password123"))
        self.assertNotIn("password", res.data)

    def test_register_without_name_uses_email_prefix(self):
        res = self.client.post(
            REGISTER_URL, {"email": "nameless@test.com", "password": "password123"}
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(User.objects.get(email="nameless@test.com").name, "nameless")

    def test_create_superuser_flags(self):
        admin = User.objects.create_superuser(email="admin@test.com", password="pw")

        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)
        with self.assertRaises(ValueError):
            User.objects.create_superuser(
                email="x@test.com", password="pw", is_staff=False
            )

    def test_register_duplicate_email(self):
        create_user(email="dup@test.com")
        res = self.client.post(
            REGISTER_URL, {"email": "dup@test.com", "password": "password123"}
        )

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", res.data)

    def test_login_token_carries_display_claims(self):
        user = create_user(email="login@test.com", name="Alice", avatar="a.png")
        res = self.client.post(
            LOGIN_URL, {"email": "login@test.com", "password": "password123"}
        )

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        claims = jwt.decode(res.data["access"], options={"verify_signature": False})
        self.assertEqual(str(claims["user_id"]), str(user.id))
        self.assertEqual(claims["name"], "Alice")
        self.assertEqual(claims["avatar"], "a.png")
        self.assertIn("exp", claims)

    def test_login_wrong_password(self):
        create_user(email="login@test.com")
        res = self.client.post(LOGIN_URL, {"email": "login@test.com", "password": "nope"})

        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)


class CurrentUserTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = create_user(email="me@test.com", name="Me")

    def test_me_requires_authentication(self):
        res = self.client.get(ME_URL)
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_current_user(self):
        self.client.force_authenticate(user=self.user)
        res = self.client.get(ME_URL)

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["email"], "me@test.com")
        self.assertEqual(res.data["name"], "Me")

    def test_profile_missing(self):
        self.client.force_authenticate(user=self.user)
        res = self.client.get(PROFILE_URL)

        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_profile_create_then_update(self):
        self.client.force_authenticate(user=self.user)

        res = self.client.post(PROFILE_URL, {"handle": "me-handle", "bio": "hi"})
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["user"], self.user.id)

        res = self.client.post(PROFILE_URL, {"handle": "me-handle", "bio": "updated"})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(Profile.objects.get(user=self.user).bio, "updated")
        self.assertEqual(Profile.objects.count(), 1)

    def test_profile_handle_must_be_unique(self):
        other = create_user(email="other@test.com")
        Profile.objects.create(user=other, handle="taken")
        self.client.force_authenticate(user=self.user)

        res = self.client.post(PROFILE_URL, {"handle": "taken"})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("handle", res.data)
