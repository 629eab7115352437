"""
send_reminders.py
-----------------
Django management command to send appointment reminders. Run it hourly
(cron: `0 * * * * python manage.py send_reminders`).

Usage:
    python manage.py send_reminders                # 24h ahead, ±1h window
    python manage.py send_reminders --when 48 --window 2

Behavior:
- Picks CONFIRMED bookings starting between (when - window) and
  (when + window) hours from now that have no reminder yet.
- reminder_sent_at is set only when the email was SENT. A booking with any
  earlier REMINDER attempt (failed or skipped) is not tried again.
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from booking.models import Booking
from booking.services.booking_manager import booking_start
from booking.services.notification_service import NotificationService
from notifications.models import EmailLog


class Command(BaseCommand):
    help = "Send reminder emails for confirmed bookings starting in about N hours."

    def add_arguments(self, parser):
        parser.add_argument("--when", type=int, default=24, help="Hours before the appointment (default 24).")
        parser.add_argument("--window", type=int, default=1, help="Tolerance in hours either side (default 1).")

    def handle(self, *args, **options):
        hours = options["when"]
        window = options["window"]
        now = timezone.now()
        window_start = now + timedelta(hours=hours - window)
        window_end = now + timedelta(hours=hours + window)

        qs = (
            Booking.objects.filter(
                status=Booking.CONFIRMED,
                reminder_sent_at__isnull=True,
                booking_date__gte=timezone.localdate(window_start),
                booking_date__lte=timezone.localdate(window_end),
            )
            .exclude(pk__in=EmailLog.objects.filter(
                email_type=EmailLog.REMINDER, booking__isnull=False,
            ).values("booking_id"))
            .select_related("customer", "service", "bundle", "employee")
        )

        notifier = NotificationService()
        sent = failed = 0
        for booking in qs:
            if not (window_start <= booking_start(booking.booking_date, booking.start_time) <= window_end):
                continue
            log = notifier.send_now(booking, EmailLog.REMINDER)
            if log.status == EmailLog.SENT:
                Booking.objects.filter(pk=booking.pk).update(reminder_sent_at=log.sent_at)
                sent += 1
            else:
                failed += 1

        self.stdout.write(self.style.SUCCESS(
            f"Sent {sent} reminder(s) for the {hours}h window ({failed} not sent)."
        ))
