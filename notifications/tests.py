from datetime import time

from django.core import mail
from django.db import transaction
from django.test import override_settings

from booking.models import Booking
from booking.services.notification_service import NotificationService
from booking.tests.base import SalonTestCase
from staff.authentication import issue_token

from .models import EmailLog


class NotificationServiceTests(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.notifier = NotificationService()

    def test_subjects(self):
        booking = self.book(time(10, 0))
        self.assertEqual(
            self.notifier.subject_for(booking, EmailLog.CONFIRMATION),
            f"Your booking {booking.booking_number} is confirmed",
        )
        self.assertIn(
            booking.booking_date.strftime("%d.%m.%Y"),
            self.notifier.subject_for(booking, EmailLog.REMINDER),
        )

    def test_context_has_links_and_details(self):
        booking = self.book(time(10, 0), employee=self.employee)
        context = self.notifier.build_context(booking, EmailLog.CONFIRMATION_REQUEST)

        self.assertEqual(context["start"], "10:00")
        self.assertEqual(context["end"], "10:30")
        self.assertEqual(context["price"], "CHF 35.00")
        self.assertEqual(context["employee_name"], "Dario")
        self.assertIn("/bookings/confirm/", context["confirm_url"])
        self.assertIn("/bookings/cancel/", context["cancel_url"])

    def test_cancelled_booking_has_no_cancel_link(self):
        booking = self.book(time(10, 0))
        booking = self.manager.cancel_booking(booking, notify_customer=False)
        context = self.notifier.build_context(booking, EmailLog.CANCELLATION)
        self.assertNotIn("cancel_url", context)

    def test_send_now_renders_html_and_text(self):
        booking = self.book(time(10, 0))
        log = self.notifier.send_now(booking, EmailLog.REMINDER)

        self.assertEqual(log.status, EmailLog.SENT)
        self.assertIsNotNone(log.sent_at)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["lena@example.com"])
        self.assertNotIn("<p>", message.body)
        self.assertEqual(message.alternatives[0][1], "text/html")

    def test_rollback_sends_nothing(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            try:
                with transaction.atomic():
                    self.book(time(10, 0))
                    raise RuntimeError("abort")
            except RuntimeError:
                pass
        self.assertEqual(callbacks, [])
        self.assertEqual(len(mail.outbox), 0)
        self.assertFalse(Booking.objects.exists())
        self.assertFalse(EmailLog.objects.exists())

    def test_claimed_row_is_not_sent_again(self):
        booking = self.book(time(10, 0))
        first = EmailLog.objects.get(booking=booking)
        second = EmailLog.objects.get(booking=booking)

        self.assertEqual(self.notifier.deliver(first).status, EmailLog.SENT)
        # stale instance still says PENDING in memory
        self.assertEqual(second.status, EmailLog.PENDING)
        self.assertEqual(self.notifier.deliver(second).status, EmailLog.SENT)
        self.assertEqual(len(mail.outbox), 1)

    def test_row_taken_by_another_sender_is_left_alone(self):
        booking = self.book(time(10, 0))
        log = EmailLog.objects.get(booking=booking)
        EmailLog.objects.filter(pk=log.pk).update(status=EmailLog.SENDING)

        self.assertEqual(self.notifier.deliver(log).status, EmailLog.SENDING)
        self.assertEqual(len(mail.outbox), 0)


class EmailLogApiTests(SalonTestCase):
    def test_admin_can_filter_logs(self):
        with self.captureOnCommitCallbacks(execute=True):
            booking = self.book(time(10, 0))
        with self.captureOnCommitCallbacks(execute=True):
            self.manager.cancel_booking(booking)

        self.as_admin()
        resp = self.client.get("/api/notifications/email-logs/", {"booking": booking.id})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data["count"], 2)

        resp = self.client.get("/api/notifications/email-logs/", {"email_type": "cancellation"})
        self.assertEqual(resp.data["count"], 1)
        self.assertEqual(resp.data["results"][0]["booking_number"], booking.booking_number)
        self.assertEqual(resp.data["results"][0]["status"], EmailLog.SENT)

    def test_employee_cannot_read_logs(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.employee)}")
        resp = self.client.get("/api/notifications/email-logs/")
        self.assertEqual(resp.status_code, 403)

    @override_settings(ADMIN_BOOTSTRAP_SECRET="s3cret")
    def test_logs_are_read_only(self):
        resp = self.client.post(
            "/api/notifications/email-logs/", {"email_type": "REMINDER"}, format="json", HTTP_X_ADMIN_SECRET="s3cret"
        )
        self.assertEqual(resp.status_code, 405)
