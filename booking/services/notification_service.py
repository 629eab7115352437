"""
NotificationService
-------------------
Customer emails for the booking lifecycle, delivered through an outbox.

Flow:
1. enqueue(booking, type) writes an EmailLog row (PENDING) in the caller's
   transaction and schedules delivery with transaction.on_commit. A rolled back
   booking therefore never emails anyone.
2. deliver(log) renders notifications/email/<type>.html, sends it with
   EmailMultiAlternatives (HTML + plain-text fallback) and records the
   outcome: SENT, FAILED (error kept, never raised) or SKIPPED (no address).

Rows left PENDING by a crash between commit and delivery are picked up by
`manage.py deliver_pending_emails`. A row is claimed (PENDING -> SENDING) with a
conditional UPDATE before it is sent, so the on_commit delivery and the cron
job never send the same row twice. A crash mid-send leaves the row SENDING for
an admin to inspect. FAILED rows are not retried.

Dev mode:
- With EMAIL_BACKEND = console.EmailBackend the message is printed in the
  terminal. Switch to SMTP through the EMAIL_* environment variables.
"""

import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import strip_tags

from notifications.models import EmailLog

from . import links
from .catalog import format_duration, format_price

logger = logging.getLogger(__name__)

SUBJECTS = {
    EmailLog.CONFIRMATION: "Your booking {number} is confirmed",
    EmailLog.CONFIRMATION_REQUEST: "Please confirm your booking {number}",
    EmailLog.REMINDER: "Reminder: your appointment on {date}",
    EmailLog.CANCELLATION: "Your booking {number} was cancelled",
    EmailLog.FOLLOW_UP: "Thank you for visiting {salon}",
}

CONFIRMATION_TYPES = (EmailLog.CONFIRMATION, EmailLog.CONFIRMATION_REQUEST)


class NotificationService:
    def subject_for(self, booking, email_type: str) -> str:
        return SUBJECTS[email_type].format(
            number=booking.booking_number,
            date=booking.booking_date.strftime("%d.%m.%Y"),
            salon=settings.SALON_NAME,
        )

    def build_context(self, booking, email_type: str) -> dict:
        target = booking.target
        context = {
            "salon_name": settings.SALON_NAME,
            "email_type": email_type,
            "booking": booking,
            "booking_number": booking.booking_number,
            "customer_name": booking.customer.first_name or booking.customer.full_name,
            "target_name": target.name,
            "date": booking.booking_date.strftime("%A, %d.%m.%Y"),
            "start": booking.start_time.strftime("%H:%M"),
            "end": booking.end_time.strftime("%H:%M"),
            "duration": format_duration(target.duration_minutes),
            "price": format_price(target.price),
            "employee_name": booking.employee.name if booking.employee_id else "",
        }
        if booking.status in ("PENDING", "CONFIRMED"):
            context["cancel_url"] = links.cancel_url(booking)
        if email_type == EmailLog.CONFIRMATION_REQUEST:
            context["confirm_url"] = links.confirm_url(booking)
        return context

    def _create_log(self, booking, email_type: str) -> EmailLog:
        return EmailLog.objects.create(
            booking=booking,
            email_type=email_type,
            recipient_email=(booking.customer.email or "").strip(),
            subject=self.subject_for(booking, email_type),
        )

    def enqueue(self, booking, email_type: str) -> EmailLog:
        """Outbox write; delivery happens after the surrounding transaction commits."""
        log = self._create_log(booking, email_type)
        log_id = log.pk
        transaction.on_commit(lambda: self.deliver(log_id))
        return log

    def send_now(self, booking, email_type: str) -> EmailLog:
        """Create the audit row and deliver immediately (used by the scheduled jobs)."""
        return self.deliver(self._create_log(booking, email_type))

    def deliver(self, log) -> EmailLog:
        """
        Deliver one PENDING row. Never raises for send failures.

        Args:
            log: EmailLog instance or primary key.
        """
        if not isinstance(log, EmailLog):
            log = EmailLog.objects.select_related("booking__customer").filter(pk=log).first()
            if log is None:
                return None
        if log.status != EmailLog.PENDING:
            return log

        # Claim the row; another worker (on_commit vs. cron) may have taken it.
        claimed = EmailLog.objects.filter(pk=log.pk, status=EmailLog.PENDING).update(status=EmailLog.SENDING)
        if not claimed:
            log.refresh_from_db()
            return log
        log.status = EmailLog.SENDING

        booking = log.booking
        if booking is None or not log.recipient_email:
            log.status = EmailLog.SKIPPED
            log.error_message = "No recipient address." if booking is not None else "Booking no longer exists."
            log.save(update_fields=["status", "error_message"])
            logger.info("Email %s (%s) skipped: %s", log.pk, log.email_type, log.error_message)
            return log

        try:
            template = f"notifications/email/{log.email_type.lower()}.html"
            html_body = render_to_string(template, self.build_context(booking, log.email_type))
            message = EmailMultiAlternatives(
                subject=log.subject,
                body=strip_tags(html_body),
                from_email=settings.DEFAULT_FROM_EMAIL,
                to=[log.recipient_email],
            )
            message.attach_alternative(html_body, "text/html")
            message.send(fail_silently=False)
        except Exception as e:
            log.status = EmailLog.FAILED
            log.error_message = str(e)[:2000]
            log.save(update_fields=["status", "error_message"])
            logger.error(
                "Email %s (%s) for booking %s failed: %s",
                log.pk, log.email_type, booking.pk, e, exc_info=True,
            )
            return log

        now = timezone.now()
        log.status = EmailLog.SENT
        log.sent_at = now
        log.save(update_fields=["status", "sent_at"])
        if log.email_type in CONFIRMATION_TYPES:
            type(booking).objects.filter(pk=booking.pk).update(confirmation_sent_at=now)
            booking.confirmation_sent_at = now
        logger.info("Email %s (%s) sent to %s", log.pk, log.email_type, log.recipient_email)
        return log

    def deliver_pending(self) -> dict:
        counts = {EmailLog.SENT: 0, EmailLog.FAILED: 0, EmailLog.SKIPPED: 0}
        for log_id in EmailLog.objects.filter(status=EmailLog.PENDING).order_by("created_at").values_list("id", flat=True):
            log = self.deliver(log_id)
            if log is not None and log.status in counts:
                counts[log.status] += 1
        return counts
