from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from .authentication import issue_token
from .models import Employee


class EmployeeAuthTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = Employee(name="Dario", email="dario@example.com", is_admin=True)
        self.admin.set_password("barber-pass-1")
        self.admin.save()

        self.stylist = Employee(name="Anna", email="anna@example.com")
        self.stylist.set_password("stylist-pass-1")
        self.stylist.save()

    def test_login_returns_token(self):
        resp = self.client.post(
            "/api/staff/auth/login/",
            {"email": "Dario@Example.com", "password": "barber-pass-1"},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIn("token", resp.data)
        self.assertEqual(resp.data["employee"]["email"], "dario@example.com")
        self.assertNotIn("password", resp.data["employee"])

    def test_login_rejects_bad_password(self):
        resp = self.client.post(
            "/api/staff/auth/login/",
            {"email": "dario@example.com", "password": "wrong"},
            format="json",
        )
        self.assertEqual(resp.status_code, 401)

    def test_inactive_employee_cannot_log_in(self):
        self.stylist.is_active = False
        self.stylist.save()
        resp = self.client.post(
            "/api/staff/auth/login/",
            {"email": "anna@example.com", "password": "stylist-pass-1"},
            format="json",
        )
        self.assertEqual(resp.status_code, 401)

    def test_me_requires_token(self):
        resp = self.client.get("/api/staff/auth/me/")
        self.assertIn(resp.status_code, (401, 403))

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.stylist)}")
        resp = self.client.get("/api/staff/auth/me/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["name"], "Anna")

    def test_garbage_token_is_rejected(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-jwt")
        resp = self.client.get("/api/staff/auth/me/")
        self.assertEqual(resp.status_code, 401)

    def test_change_password(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.stylist)}")
        resp = self.client.post(
            "/api/staff/auth/change-password/",
            {"current_password": "stylist-pass-1", "new_password": "new-secret-99"},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        self.stylist.refresh_from_db()
        self.assertTrue(self.stylist.check_password("new-secret-99"))

    def test_change_password_checks_current(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.stylist)}")
        resp = self.client.post(
            "/api/staff/auth/change-password/",
            {"current_password": "nope", "new_password": "new-secret-99"},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)


class EmployeeAdminTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = Employee.objects.create(name="Dario", email="dario@example.com", is_admin=True)
        self.stylist = Employee.objects.create(name="Anna", email="anna@example.com")

    def test_non_admin_cannot_manage_employees(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.stylist)}")
        resp = self.client.get("/api/staff/employees/")
        self.assertEqual(resp.status_code, 403)

    def test_admin_creates_employee_with_hashed_password(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.admin)}")
        resp = self.client.post(
            "/api/staff/employees/",
            {"name": "Marco", "email": "MARCO@example.com", "password": "marco-pass-1"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        marco = Employee.objects.get(email="marco@example.com")
        self.assertNotEqual(marco.password, "marco-pass-1")
        self.assertTrue(marco.check_password("marco-pass-1"))

    def test_delete_deactivates(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.admin)}")
        resp = self.client.delete(f"/api/staff/employees/{self.stylist.id}/")
        self.assertEqual(resp.status_code, 204)
        self.stylist.refresh_from_db()
        self.assertFalse(self.stylist.is_active)

    def test_toggle_active(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.admin)}")
        resp = self.client.patch(f"/api/staff/employees/{self.stylist.id}/toggle-active/")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.data["is_active"])

    @override_settings(ADMIN_BOOTSTRAP_SECRET="let-me-in")
    def test_bootstrap_secret_header(self):
        resp = self.client.get("/api/staff/employees/", HTTP_X_ADMIN_SECRET="let-me-in")
        self.assertEqual(resp.status_code, 200)

        resp = self.client.get("/api/staff/employees/", HTTP_X_ADMIN_SECRET="guess")
        self.assertIn(resp.status_code, (401, 403))
