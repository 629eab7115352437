"""
send_follow_ups.py
------------------
Thank-you emails after a visit. Run daily at 10:00
(cron: `0 10 * * * python manage.py send_follow_ups`).

Picks COMPLETED bookings dated one or two days ago that do not have a SENT
FOLLOW_UP email yet. A FAILED follow-up is retried on the next run while the
booking is still in that range; each attempt gets its own EmailLog row.
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from booking.models import Booking
from booking.services.notification_service import NotificationService
from notifications.models import EmailLog


class Command(BaseCommand):
    help = "Send follow-up emails for bookings completed 1-2 days ago."

    def handle(self, *args, **options):
        today = timezone.localdate()
        qs = (
            Booking.objects.filter(
                status=Booking.COMPLETED,
                booking_date__gte=today - timedelta(days=2),
                booking_date__lte=today - timedelta(days=1),
            )
            .exclude(pk__in=EmailLog.objects.filter(
                email_type=EmailLog.FOLLOW_UP, status=EmailLog.SENT, booking__isnull=False,
            ).values("booking_id"))
            .select_related("customer", "service", "bundle", "employee")
        )

        notifier = NotificationService()
        sent = 0
        for booking in qs:
            if notifier.send_now(booking, EmailLog.FOLLOW_UP).status == EmailLog.SENT:
                sent += 1

        self.stdout.write(self.style.SUCCESS(f"Sent {sent} follow-up email(s)."))
