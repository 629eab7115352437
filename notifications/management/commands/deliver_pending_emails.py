"""
deliver_pending_emails.py
-------------------------
Deliver EmailLog rows still PENDING, e.g. after the process died between a
booking commit and its on_commit delivery. Safe to run from cron every few
minutes.

Usage:
    python manage.py deliver_pending_emails
"""

from django.core.management.base import BaseCommand

from booking.services.notification_service import NotificationService


class Command(BaseCommand):
    help = "Send any outbox emails that are still pending."

    def handle(self, *args, **options):
        counts = NotificationService().deliver_pending()
        self.stdout.write(self.style.SUCCESS(
            "Delivered pending emails: "
            + ", ".join(f"{status.lower()}={n}" for status, n in counts.items())
        ))
