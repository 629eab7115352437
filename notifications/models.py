# notifications/models.py
#
# Purpose:
# - Audit row for every customer email the system tries to send.
#
# Design:
# - Written PENDING inside the booking transaction (outbox), then delivered
#   after commit and moved to SENT / FAILED / SKIPPED.
# - A sender claims a row by flipping PENDING -> SENDING in one UPDATE, so a
#   row is handed to SMTP at most once.
# - booking is SET_NULL so the audit trail survives a hard booking delete.
#
from django.db import models

from booking.models import Booking


class EmailLog(models.Model):
    CONFIRMATION = "CONFIRMATION"
    CONFIRMATION_REQUEST = "CONFIRMATION_REQUEST"
    REMINDER = "REMINDER"
    CANCELLATION = "CANCELLATION"
    FOLLOW_UP = "FOLLOW_UP"

    TYPE_CHOICES = [
        (CONFIRMATION, "Booking confirmation"),
        (CONFIRMATION_REQUEST, "Confirmation request"),
        (REMINDER, "Reminder"),
        (CANCELLATION, "Cancellation"),
        (FOLLOW_UP, "Follow-up"),
    ]

    PENDING = "PENDING"
    SENDING = "SENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (SENDING, "Sending"),
        (SENT, "Sent"),
        (FAILED, "Failed"),
        (SKIPPED, "Skipped"),
    ]

    booking = models.ForeignKey(
        Booking, on_delete=models.SET_NULL, null=True, blank=True, related_name="email_logs"
    )
    email_type = models.CharField(max_length=24, choices=TYPE_CHOICES)
    recipient_email = models.EmailField(blank=True)
    subject = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    sent_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["status", "email_type"], name="emaillog_status_type_idx")]

    def __str__(self) -> str:
        return f"{self.email_type} to {self.recipient_email or '-'} [{self.status}]"
