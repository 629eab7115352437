from django.db import models


class SystemSetting(models.Model):
    """
    Simple key/value settings store, editable by staff at runtime.
    Known keys:
      - BOOKING_INTERVAL_MINUTES (e.g., '15') slot granularity
      - MAX_ADVANCE_BOOKING_DAYS (e.g., '60')
      - MIN_ADVANCE_BOOKING_HOURS (e.g., '24'; '0' disables the check)
    """
    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=200)
    description = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["key"]

    def __str__(self):
        return f"{self.key}={self.value}"
