# booking/tests/test_api.py

from datetime import time, timedelta
from decimal import Decimal

from django.core import mail
from django.test import override_settings

from booking.models import Booking, Customer, ServiceBundle
from booking.services import links
from notifications.models import EmailLog
from staff.authentication import issue_token

from .base import SalonTestCase


class AvailabilityApiTests(SalonTestCase):
    def test_availability_lists_every_candidate(self):
        self.book(time(10, 0))
        resp = self.client.get(
            "/api/bookings/availability/", {"service": self.service.id, "date": self.day.isoformat()}
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["duration_minutes"], 30)
        self.assertEqual(len(resp.data["slots"]), 35)
        self.assertEqual(resp.data["slots"][0], {"start": "09:00", "end": "09:30", "is_available": True})
        taken = [s["start"] for s in resp.data["slots"] if not s["is_available"]]
        self.assertEqual(taken, ["09:45", "10:00", "10:15"])

    def test_availability_bad_date_is_400(self):
        resp = self.client.get("/api/bookings/availability/", {"service": self.service.id, "date": "03/04/2025"})
        self.assertEqual(resp.status_code, 400)

    def test_availability_needs_exactly_one_target(self):
        resp = self.client.get("/api/bookings/availability/", {"date": self.day.isoformat()})
        self.assertEqual(resp.status_code, 400)

    def test_availability_unknown_service_is_404(self):
        resp = self.client.get("/api/bookings/availability/", {"service": 99999, "date": self.day.isoformat()})
        self.assertEqual(resp.status_code, 404)

    def test_availability_check(self):
        self.book(time(10, 0), employee=self.employee)
        params = {"date": self.day.isoformat(), "start": "10:00", "end": "10:30"}

        resp = self.client.get("/api/bookings/availability/check/", {**params, "employee": self.employee.id})
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.data["is_available"])

        resp = self.client.get("/api/bookings/availability/check/", {**params, "employee": self.admin.id})
        self.assertTrue(resp.data["is_available"])

    def test_availability_check_rejects_reversed_interval(self):
        resp = self.client.get(
            "/api/bookings/availability/check/", {"date": self.day.isoformat(), "start": "11:00", "end": "10:00"}
        )
        self.assertEqual(resp.status_code, 400)

    def test_available_employees(self):
        self.book(time(10, 0), employee=self.employee)
        resp = self.client.get(
            "/api/bookings/availability/employees/",
            {"date": self.day.isoformat(), "start": "10:00", "duration": 30},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["end"], "10:30")
        self.assertNotIn(self.employee.id, resp.data["employee_ids"])
        self.assertIn(self.admin.id, resp.data["employee_ids"])

    def test_available_employees_rejects_negative_duration(self):
        resp = self.client.get(
            "/api/bookings/availability/employees/",
            {"date": self.day.isoformat(), "start": "09:00", "duration": -1000},
        )
        self.assertEqual(resp.status_code, 400)


class PublicBookingApiTests(SalonTestCase):
    def payload(self, **overrides):
        data = {
            "service": self.service.id,
            "booking_date": self.day.isoformat(),
            "start_time": "10:00",
            "customer": dict(self.CUSTOMER),
        }
        data.update(overrides)
        return data

    def test_create_booking(self):
        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.post("/api/bookings/", self.payload(employee=self.employee.id), format="json")

        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["status"], Booking.CONFIRMED)
        self.assertEqual(resp.data["start_time"], "10:00")
        self.assertEqual(resp.data["end_time"], "10:30")
        self.assertEqual(resp.data["target_name"], self.service.name)
        self.assertEqual(resp.data["employee_name"], "Dario")
        self.assertTrue(resp.data["booking_number"].startswith("BK-"))
        self.assertEqual(len(mail.outbox), 1)

    def test_double_booking_is_409(self):
        self.assertEqual(self.client.post("/api/bookings/", self.payload(), format="json").status_code, 201)
        resp = self.client.post("/api/bookings/", self.payload(start_time="10:15"), format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(Booking.objects.count(), 1)

    def test_missing_customer_fields_is_400(self):
        customer = dict(self.CUSTOMER)
        del customer["phone"]
        resp = self.client.post("/api/bookings/", self.payload(customer=customer), format="json")
        self.assertEqual(resp.status_code, 400)

    def test_invalid_phone_is_400(self):
        resp = self.client.post(
            "/api/bookings/", self.payload(customer={**self.CUSTOMER, "phone": "call me"}), format="json"
        )
        self.assertEqual(resp.status_code, 400)

    def test_service_and_bundle_together_is_400(self):
        bundle = ServiceBundle.objects.create(name="Deal", bundle_price=Decimal("10.00"))
        resp = self.client.post("/api/bookings/", self.payload(bundle=bundle.id), format="json")
        self.assertEqual(resp.status_code, 400)

    def test_closed_day_is_409(self):
        resp = self.client.post(
            "/api/bookings/",
            self.payload(booking_date=(self.day + timedelta(days=1)).isoformat()),
            format="json",
        )
        self.assertEqual(resp.status_code, 409)

    def test_unknown_service_is_404(self):
        resp = self.client.post("/api/bookings/", self.payload(service=99999), format="json")
        self.assertEqual(resp.status_code, 404)

    def test_public_cancel_requires_matching_email(self):
        booking = self.book(time(10, 0))
        url = f"/api/bookings/{booking.id}/cancel/"

        resp = self.client.post(url, {"email": "someone@example.com"}, format="json")
        self.assertEqual(resp.status_code, 404)

        resp = self.client.post(url, {"email": "LENA@example.com", "reason": "Travel"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], Booking.CANCELLED)
        self.assertEqual(resp.data["cancellation_reason"], "Travel")

        resp = self.client.post(url, {"email": "lena@example.com"}, format="json")
        self.assertEqual(resp.status_code, 409)

    def test_list_requires_employee(self):
        self.book(time(10, 0))
        resp = self.client.get("/api/bookings/")
        self.assertIn(resp.status_code, (401, 403))

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.employee)}")
        resp = self.client.get("/api/bookings/", {"date": self.day.isoformat()})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["count"], 1)

    def test_employee_cannot_change_status(self):
        booking = self.book(time(10, 0))
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.employee)}")
        resp = self.client.patch(f"/api/bookings/{booking.id}/status/", {"status": "COMPLETED"}, format="json")
        self.assertEqual(resp.status_code, 403)


class AdminBookingApiTests(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.as_admin()

    def test_change_status(self):
        booking = self.book(time(10, 0))
        resp = self.client.patch(
            f"/api/bookings/{booking.id}/status/",
            {"status": "NO_SHOW", "admin_notes": "No call"},
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], Booking.NO_SHOW)
        self.assertEqual(resp.data["admin_notes"], "No call")
        self.assertEqual(Customer.objects.get().no_show_count, 1)

    def test_invalid_transition_is_409(self):
        booking = self.book(time(10, 0))
        self.manager.cancel_booking(booking)
        resp = self.client.patch(f"/api/bookings/{booking.id}/status/", {"status": "CONFIRMED"}, format="json")
        self.assertEqual(resp.status_code, 409)

    def test_unknown_status_is_400(self):
        booking = self.book(time(10, 0))
        resp = self.client.patch(f"/api/bookings/{booking.id}/status/", {"status": "LATE"}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_admin_cancel_without_email(self):
        booking = self.book(time(10, 0))
        resp = self.client.post(f"/api/bookings/{booking.id}/cancel/", {"reason": "Ill"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], Booking.CANCELLED)

    def test_manual_booking_outside_hours(self):
        resp = self.client.post(
            "/api/bookings/manual/",
            {
                "service": self.service.id,
                "booking_date": self.day.isoformat(),
                "start_time": "19:00",
                "customer": {"first_name": "Walk-in", "phone": "079 123 45 67"},
                "admin_notes": "Regular",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["status"], Booking.CONFIRMED)
        self.assertEqual(resp.data["admin_notes"], "Regular")

    def test_manual_booking_needs_contact(self):
        resp = self.client.post(
            "/api/bookings/manual/",
            {
                "service": self.service.id,
                "booking_date": self.day.isoformat(),
                "start_time": "10:00",
                "customer": {"first_name": "Walk-in"},
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 400)

    @override_settings(BOOKING_REQUIRE_EXPLICIT_CONFIRMATION=True)
    def test_confirm_pending(self):
        booking = self.book(time(10, 0))
        resp = self.client.post(f"/api/bookings/{booking.id}/confirm/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["status"], Booking.CONFIRMED)

    def test_delete(self):
        booking = self.book(time(10, 0))
        resp = self.client.delete(f"/api/bookings/{booking.id}/")
        self.assertEqual(resp.status_code, 204)
        self.assertFalse(Booking.objects.exists())

    def test_list_filters(self):
        self.book(time(10, 0), employee=self.employee)
        cancelled = self.book(time(11, 0))
        self.manager.cancel_booking(cancelled)

        resp = self.client.get("/api/bookings/", {"status": "cancelled"})
        self.assertEqual(resp.data["count"], 1)
        resp = self.client.get("/api/bookings/", {"employee": self.employee.id})
        self.assertEqual(resp.data["count"], 1)
        self.assertEqual(resp.data["results"][0]["start_time"], "10:00")


@override_settings(ADMIN_BOOTSTRAP_SECRET="let-me-in")
class BootstrapSecretTests(SalonTestCase):
    def test_secret_header_grants_admin(self):
        resp = self.client.get("/api/customers/", HTTP_X_ADMIN_SECRET="let-me-in")
        self.assertEqual(resp.status_code, 200)

    def test_wrong_secret_is_rejected(self):
        resp = self.client.get("/api/customers/", HTTP_X_ADMIN_SECRET="guess")
        self.assertIn(resp.status_code, (401, 403))


class CatalogApiTests(SalonTestCase):
    def test_public_service_list_hides_inactive(self):
        self.service.active = False
        self.service.save()
        resp = self.client.get("/api/services/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["count"], 0)

    def test_service_formatting(self):
        resp = self.client.get(f"/api/services/{self.service.id}/")
        self.assertEqual(resp.data["price_formatted"], "CHF 35.00")
        self.assertEqual(resp.data["duration_formatted"], "30 min")

    def test_anonymous_cannot_create_service(self):
        resp = self.client.post(
            "/api/services/", {"name": "Shave", "duration_minutes": 15, "price": "20.00"}, format="json"
        )
        self.assertIn(resp.status_code, (401, 403))

    def test_category_with_active_services_cannot_be_deleted(self):
        self.as_admin()
        resp = self.client.delete(f"/api/categories/{self.category.id}/")
        self.assertEqual(resp.status_code, 409)

        self.service.active = False
        self.service.save()
        resp = self.client.delete(f"/api/categories/{self.category.id}/")
        self.assertEqual(resp.status_code, 204)
        self.category.refresh_from_db()
        self.assertFalse(self.category.is_active)

    def test_booked_service_cannot_be_hard_deleted(self):
        self.book(time(10, 0))
        self.as_admin()
        resp = self.client.delete(f"/api/services/{self.service.id}/")
        self.assertEqual(resp.status_code, 409)

    def test_toggle_active(self):
        self.as_admin()
        resp = self.client.patch(f"/api/services/{self.service.id}/toggle-active/")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.data["active"])

    def test_create_bundle(self):
        self.as_admin()
        resp = self.client.post(
            "/api/bundles/",
            {
                "name": "Double Cut",
                "bundle_price": "60.00",
                "items": [{"service": self.service.id, "quantity": 2}],
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["total_duration_minutes"], 60)
        self.assertEqual(Decimal(resp.data["original_price"]), Decimal("70.00"))
        self.assertEqual(len(resp.data["items"]), 1)

    def test_bundle_without_items_is_409(self):
        self.as_admin()
        resp = self.client.post(
            "/api/bundles/", {"name": "Empty", "bundle_price": "10.00", "items": []}, format="json"
        )
        self.assertEqual(resp.status_code, 409)

    def test_business_hours_validation(self):
        self.as_admin()
        resp = self.client.post(
            "/api/business-hours/",
            {"day_of_week": 3, "open_time": "18:00", "close_time": "09:00", "is_open": True},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)


class CustomerApiTests(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.as_admin()

    def test_duplicate_email_is_409(self):
        Customer.objects.create(first_name="Lena", email="lena@example.com")
        resp = self.client.post(
            "/api/customers/", {"first_name": "L", "email": "Lena@Example.com"}, format="json"
        )
        self.assertEqual(resp.status_code, 409)

    def test_detail_includes_recent_bookings(self):
        booking = self.book(time(10, 0))
        resp = self.client.get(f"/api/customers/{booking.customer_id}/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["recent_bookings"][0]["booking_number"], booking.booking_number)

    def test_search(self):
        self.book(time(10, 0))
        Customer.objects.create(first_name="Tom", email="tom@example.com")
        resp = self.client.get("/api/customers/", {"search": "meier"})
        self.assertEqual(resp.data["count"], 1)


class BookingLinkPageTests(SalonTestCase):
    @override_settings(BOOKING_REQUIRE_EXPLICIT_CONFIRMATION=True)
    def test_confirm_link(self):
        booking = self.book(time(10, 0))
        url = f"/bookings/confirm/{links.make_token(booking, links.CONFIRM)}/"

        resp = self.client.get(url)
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Booking confirmed")
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.CONFIRMED)

        resp = self.client.get(url)
        self.assertContains(resp, "Already confirmed")

    def test_cancel_token_cannot_confirm(self):
        booking = self.book(time(10, 0))
        resp = self.client.get(f"/bookings/confirm/{links.make_token(booking, links.CANCEL)}/")
        self.assertEqual(resp.status_code, 400)

    def test_tampered_token(self):
        resp = self.client.get("/bookings/cancel/not-a-token/")
        self.assertEqual(resp.status_code, 400)

    def test_cancel_link_flow(self):
        booking = self.book(time(10, 0))
        url = f"/bookings/cancel/{links.make_token(booking, links.CANCEL)}/"

        resp = self.client.get(url)
        self.assertContains(resp, "Cancel booking")
        self.assertContains(resp, booking.booking_number)

        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.post(url, {"reason": "Plans changed"})
        self.assertContains(resp, "Booking cancelled")
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.CANCELLED)
        self.assertEqual(booking.cancellation_reason, "Plans changed")
        self.assertTrue(EmailLog.objects.filter(booking=booking, email_type=EmailLog.CANCELLATION).exists())

        resp = self.client.get(url)
        self.assertContains(resp, "Already cancelled")
