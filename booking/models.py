# booking/models.py
#
# Purpose:
# - Core domain models for the salon booking system.
#
# Design highlights:
# - ServiceCategory / Service / ServiceBundle / ServiceBundleItem: the catalog.
#   Bundles derive their original price and total duration from their items.
# - Customer: person who books. Public bookings upsert by email, then phone
#   (see booking.services.customers).
# - BusinessHours: one row per weekday, optional break. clean() enforces
#   open < close and a break that sits inside opening hours.
# - BlockedTimeSlot: staff-entered unavailability. employee=None blocks the
#   whole salon.
# - Booking:
#   • targets exactly one Service OR one ServiceBundle (DB check constraint)
#   • status is uppercase PENDING / CONFIRMED / CANCELLED / COMPLETED / NO_SHOW
#   • booking_number is derived, never stored
# - ScheduleLock: one row per calendar day, locked with select_for_update while
#   a booking is being checked and inserted.
#
# Notes for developers:
# - Intervals are half-open [start, end). Two intervals overlap iff
#   a.start < b.end and b.start < a.end (booking.services.slot_utils.overlaps).
# - The partial unique constraint on Booking only catches identical starts for
#   the same employee. Bookings without an employee are NULL there and are not
#   covered; the ScheduleLock serialises those.
#
import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q

from staff.models import Employee


# -------------------------
# Catalog
# -------------------------
class ServiceCategory(models.Model):
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    display_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["display_order", "name"]
        verbose_name_plural = "service categories"

    def __str__(self):
        return self.name


class Service(models.Model):
    """
    A service offered by the salon.

    Rules:
    - price must be > 0
    - duration_minutes must be > 0
    - active controls visibility and bookability
    """
    category = models.ForeignKey(
        ServiceCategory,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="services",
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(1)]  # duration must be >= 1 minute
    )
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],  # price must be > 0
    )
    active = models.BooleanField(default=True)
    display_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["display_order", "name"]

    def __str__(self):
        return f"{self.name} ({self.price})"


class ServiceBundle(models.Model):
    """
    A package of services sold at a single bundle_price.

    valid_from / valid_until are optional calendar bounds; outside them the
    bundle is treated as inactive.
    """
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    bundle_price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    is_active = models.BooleanField(default=True)
    display_order = models.PositiveIntegerField(default=0)
    valid_from = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["display_order", "name"]

    def __str__(self):
        return self.name

    @property
    def original_price(self) -> Decimal:
        total = Decimal("0.00")
        for item in self.items.select_related("service"):
            total += item.service.price * item.quantity
        return total

    @property
    def total_duration_minutes(self) -> int:
        return sum(item.service.duration_minutes * item.quantity for item in self.items.select_related("service"))

    @property
    def discount_percentage(self) -> Decimal:
        original = self.original_price
        if original <= 0:
            return Decimal("0.00")
        pct = (original - self.bundle_price) / original * 100
        return pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def is_valid_on(self, day) -> bool:
        if self.valid_from and day < self.valid_from:
            return False
        if self.valid_until and day > self.valid_until:
            return False
        return True

    def is_bookable_on(self, day) -> bool:
        return self.is_active and self.is_valid_on(day)


class ServiceBundleItem(models.Model):
    bundle = models.ForeignKey(ServiceBundle, on_delete=models.CASCADE, related_name="items")
    service = models.ForeignKey(Service, on_delete=models.PROTECT, related_name="bundle_items")
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    display_order = models.PositiveIntegerField(default=0)
    notes = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["display_order", "id"]

    def __str__(self):
        return f"{self.bundle.name}: {self.quantity} × {self.service.name}"


# -------------------------
# Customer (person who books)
# -------------------------
class Customer(models.Model):
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    notes = models.TextField(blank=True)
    total_bookings = models.PositiveIntegerField(default=0)
    no_show_count = models.PositiveIntegerField(default=0)
    last_visit = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["last_name", "first_name"]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# -------------------------
# Opening hours and blocks
# -------------------------
class BusinessHours(models.Model):
    """
    Opening hours for one weekday (0 = Monday … 6 = Sunday, like date.weekday()).
    A missing row means closed.
    """
    DAY_CHOICES = [
        (0, "Monday"),
        (1, "Tuesday"),
        (2, "Wednesday"),
        (3, "Thursday"),
        (4, "Friday"),
        (5, "Saturday"),
        (6, "Sunday"),
    ]

    day_of_week = models.PositiveSmallIntegerField(choices=DAY_CHOICES, unique=True)
    open_time = models.TimeField()
    close_time = models.TimeField()
    is_open = models.BooleanField(default=True)
    break_start_time = models.TimeField(null=True, blank=True)
    break_end_time = models.TimeField(null=True, blank=True)

    class Meta:
        ordering = ["day_of_week"]
        verbose_name_plural = "business hours"

    def __str__(self):
        if not self.is_open:
            return f"{self.get_day_of_week_display()}: closed"
        return f"{self.get_day_of_week_display()}: {self.open_time:%H:%M}-{self.close_time:%H:%M}"

    def clean(self):
        if self.open_time and self.close_time and self.open_time >= self.close_time:
            raise ValidationError({"close_time": "Closing time must be after opening time."})

        if (self.break_start_time is None) != (self.break_end_time is None):
            raise ValidationError("Break start and end must be given together.")

        if self.break_start_time is not None:
            if self.break_start_time >= self.break_end_time:
                raise ValidationError({"break_end_time": "Break end must be after break start."})
            if self.break_start_time < self.open_time or self.break_end_time > self.close_time:
                raise ValidationError("The break must lie within opening hours.")


class BlockedTimeSlot(models.Model):
    block_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    reason = models.CharField(max_length=255, blank=True)
    employee = models.ForeignKey(
        Employee,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="blocked_slots",
        help_text="Leave empty to block the whole salon.",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["block_date", "start_time"]
        constraints = [
            models.CheckConstraint(
                condition=Q(start_time__lt=F("end_time")),
                name="blockedslot_start_before_end",
            ),
        ]

    def __str__(self):
        who = self.employee.name if self.employee_id else "all staff"
        return f"Blocked {self.block_date} {self.start_time:%H:%M}-{self.end_time:%H:%M} ({who})"


class ScheduleLock(models.Model):
    day = models.DateField(unique=True)

    def __str__(self):
        return f"lock {self.day}"


# -------------------------
# Booking record
# -------------------------
class Booking(models.Model):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (CONFIRMED, "Confirmed"),
        (CANCELLED, "Cancelled"),
        (COMPLETED, "Completed"),
        (NO_SHOW, "No show"),
    ]

    public_id = models.UUIDField(default=uuid.uuid4, editable=False, unique=True)
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name="bookings")
    service = models.ForeignKey(
        Service, on_delete=models.PROTECT, null=True, blank=True, related_name="bookings"
    )
    bundle = models.ForeignKey(
        ServiceBundle, on_delete=models.PROTECT, null=True, blank=True, related_name="bookings"
    )
    employee = models.ForeignKey(
        Employee, on_delete=models.SET_NULL, null=True, blank=True, related_name="bookings"
    )
    booking_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=CONFIRMED,
        help_text="Booking lifecycle status",
    )
    confirmation_sent_at = models.DateTimeField(null=True, blank=True)
    reminder_sent_at = models.DateTimeField(null=True, blank=True)
    customer_notes = models.TextField(blank=True)
    admin_notes = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["booking_date", "start_time"]
        indexes = [
            models.Index(fields=["booking_date", "status"], name="booking_date_status_idx"),
            models.Index(fields=["booking_date"], name="booking_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(service__isnull=False, bundle__isnull=True)
                    | Q(service__isnull=True, bundle__isnull=False)
                ),
                name="booking_exactly_one_target",
            ),
            models.CheckConstraint(
                condition=Q(start_time__lt=F("end_time")),
                name="booking_start_before_end",
            ),
            models.UniqueConstraint(
                fields=["booking_date", "start_time", "employee"],
                condition=~Q(status="CANCELLED"),
                name="uniq_active_booking_slot",
            ),
        ]

    def __str__(self):
        return f"{self.booking_number} {self.customer.full_name} on {self.booking_date} {self.start_time:%H:%M}"

    @property
    def booking_number(self) -> str:
        return f"BK-{self.booking_date:%Y%m%d}-{self.public_id.hex[:8].upper()}"

    @property
    def target(self):
        from .services.targets import target_for_booking

        return target_for_booking(self)

    @property
    def target_name(self) -> str:
        if self.service_id:
            return self.service.name
        return self.bundle.name if self.bundle_id else ""
