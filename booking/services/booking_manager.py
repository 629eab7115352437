"""
booking_manager.py
------------------
Coordinates booking creation and every status change afterwards.

Creation runs in one transaction:
  lock the day (ScheduleLock, select_for_update) -> conflict check ->
  customer upsert -> insert -> customer stats -> email outbox row.
The partial unique constraint on Booking is the last line: an IntegrityError
on insert is reported as SlotUnavailable like any other clash.

Status lifecycle:
  PENDING   -> CONFIRMED | CANCELLED
  CONFIRMED -> COMPLETED | NO_SHOW | CANCELLED
  NO_SHOW   -> COMPLETED   (staff correction)
  CANCELLED, COMPLETED: terminal

Confirmation policy (settings.BOOKING_REQUIRE_EXPLICIT_CONFIRMATION):
- off: online bookings start CONFIRMED; confirming again is a no-op.
- on: online bookings start PENDING and the customer confirms through the
  emailed link within BOOKING_CONFIRMATION_WINDOW_HOURS of booking.
Manual (staff-entered) bookings are always CONFIRMED.
"""

import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from configmgr.services import max_advance_booking_days, min_advance_booking_hours
from notifications.models import EmailLog
from staff.models import Employee

from ..exceptions import (
    BookingWindowViolation,
    InvalidBookingOperation,
    ResourceNotFound,
    SlotUnavailable,
)
from ..models import Booking, Customer, ScheduleLock
from .availability_engine import AvailabilityEngine
from .customers import upsert_customer
from .notification_service import NotificationService
from .slot_utils import add_minutes, overlaps

logger = logging.getLogger(__name__)

TRANSITIONS = {
    Booking.PENDING: {Booking.CONFIRMED, Booking.CANCELLED},
    Booking.CONFIRMED: {Booking.COMPLETED, Booking.NO_SHOW, Booking.CANCELLED},
    Booking.NO_SHOW: {Booking.COMPLETED},
    Booking.CANCELLED: set(),
    Booking.COMPLETED: set(),
}


def can_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, set())


def booking_start(booking_date, start_time):
    """Aware datetime for a local booking date/time."""
    return timezone.make_aware(datetime.combine(booking_date, start_time), timezone.get_current_timezone())


class BookingManager:
    def __init__(self):
        self.availability = AvailabilityEngine()
        self.notifications = NotificationService()

    # -------------------------
    # Creation
    # -------------------------
    def _check_window(self, booking_date, start_time, now=None):
        now = now or timezone.now()
        start_dt = booking_start(booking_date, start_time)
        if start_dt < now:
            raise BookingWindowViolation("Bookings cannot be made in the past.")

        max_days = max_advance_booking_days()
        if booking_date > timezone.localdate(now) + timedelta(days=max_days):
            raise BookingWindowViolation(f"Bookings can be made at most {max_days} days in advance.")

        min_hours = min_advance_booking_hours()
        if min_hours > 0 and start_dt < now + timedelta(hours=min_hours):
            raise BookingWindowViolation(f"Bookings must be made at least {min_hours} hours in advance.")

    def _check_opening_hours(self, booking_date, start_time, end_time):
        hours = self.availability.business_hours_for(booking_date)
        if hours is None:
            raise InvalidBookingOperation("The salon is closed on this day.")
        if start_time < hours.open_time or end_time > hours.close_time:
            raise InvalidBookingOperation("The selected time is outside opening hours.")
        if hours.break_start_time and overlaps(start_time, end_time, hours.break_start_time, hours.break_end_time):
            raise InvalidBookingOperation("The selected time overlaps the break.")

    def create_booking(
        self,
        target,
        booking_date,
        start_time,
        customer_data: dict,
        employee=None,
        customer_notes: str = "",
        manual: bool = False,
    ) -> Booking:
        """
        Create a booking for a ServiceTarget or BundleTarget.

        Args:
            target: booking.services.targets.ServiceTarget | BundleTarget
            booking_date: date
            start_time: time (local)
            customer_data: first_name, last_name, email, phone
            employee: Employee instance or None (any free chair)
            customer_notes: optional string
            manual: staff-entered booking; skips the online booking window and
                opening-hours checks and is always CONFIRMED.

        Raises:
            ResourceNotFound: target or employee not bookable.
            BookingWindowViolation: too early, too late or in the past.
            InvalidBookingOperation: outside opening hours, or past midnight.
            SlotUnavailable: the interval clashes with a booking or block.
        """
        if not target.is_bookable_on(booking_date):
            raise ResourceNotFound(f"{target.kind.capitalize()} not found or inactive.")
        if employee is not None and not (isinstance(employee, Employee) and employee.is_active):
            raise ResourceNotFound("Employee not found or inactive.")

        duration = target.duration_minutes
        if duration <= 0:
            raise InvalidBookingOperation("This bundle has no services.")
        end_time = add_minutes(start_time, duration)
        if end_time is None:
            raise InvalidBookingOperation("Bookings cannot run past midnight.")

        if not manual:
            self._check_window(booking_date, start_time)
            self._check_opening_hours(booking_date, start_time, end_time)

        if manual or not settings.BOOKING_REQUIRE_EXPLICIT_CONFIRMATION:
            status, email_type = Booking.CONFIRMED, EmailLog.CONFIRMATION
        else:
            status, email_type = Booking.PENDING, EmailLog.CONFIRMATION_REQUEST

        employee_id = employee.pk if employee is not None else None
        try:
            with transaction.atomic():
                ScheduleLock.objects.get_or_create(day=booking_date)
                ScheduleLock.objects.select_for_update().get(day=booking_date)

                if not self.availability.is_slot_available(booking_date, start_time, end_time, employee_id):
                    raise SlotUnavailable()

                customer = upsert_customer(customer_data)
                booking = Booking.objects.create(
                    customer=customer,
                    employee=employee,
                    booking_date=booking_date,
                    start_time=start_time,
                    end_time=end_time,
                    status=status,
                    customer_notes=customer_notes or "",
                    **target.booking_fields(),
                )
                Customer.objects.filter(pk=customer.pk).update(
                    total_bookings=F("total_bookings") + 1,
                    last_visit=booking_date,
                )
                self.notifications.enqueue(booking, email_type)
        except IntegrityError as e:
            logger.info("Slot %s %s taken concurrently: %s", booking_date, start_time, e)
            raise SlotUnavailable() from e

        logger.info(
            "Booking %s created: %s %s-%s %s=%s employee=%s status=%s manual=%s",
            booking.pk, booking_date, start_time, end_time, target.kind, target.id, employee_id, status, manual,
        )
        return booking

    # -------------------------
    # Status changes
    # -------------------------
    def _locked(self, booking) -> Booking:
        return Booking.objects.select_for_update().select_related("customer").get(pk=booking.pk)

    @transaction.atomic
    def change_status(self, booking, new_status: str, admin_notes=None) -> Booking:
        """
        Move a booking along the lifecycle table.
        Cancelling and confirming send the same emails as their dedicated paths.
        """
        if new_status not in TRANSITIONS:
            raise InvalidBookingOperation(f"Unknown status {new_status!r}.")
        if new_status == Booking.CANCELLED:
            booking = self.cancel_booking(booking, reason=admin_notes or "")
            if admin_notes is not None:
                booking.admin_notes = admin_notes
                booking.save(update_fields=["admin_notes", "updated_at"])
            return booking

        booking = self._locked(booking)
        old_status = booking.status
        if not can_transition(old_status, new_status):
            raise InvalidBookingOperation(f"Cannot change status from {old_status} to {new_status}.")

        booking.status = new_status
        fields = ["status", "updated_at"]
        if admin_notes is not None:
            booking.admin_notes = admin_notes
            fields.append("admin_notes")
        booking.save(update_fields=fields)

        if new_status == Booking.NO_SHOW:
            Customer.objects.filter(pk=booking.customer_id).update(no_show_count=F("no_show_count") + 1)
        elif old_status == Booking.NO_SHOW:
            Customer.objects.filter(pk=booking.customer_id, no_show_count__gt=0).update(
                no_show_count=F("no_show_count") - 1
            )
        if new_status == Booking.CONFIRMED:
            self.notifications.enqueue(booking, EmailLog.CONFIRMATION)

        logger.info("Booking %s status %s -> %s", booking.pk, old_status, new_status)
        return booking

    @transaction.atomic
    def cancel_booking(self, booking, reason: str = "", notify_customer: bool = True) -> Booking:
        booking = self._locked(booking)
        if booking.status == Booking.CANCELLED:
            raise InvalidBookingOperation("This booking is already cancelled.")
        if not can_transition(booking.status, Booking.CANCELLED):
            raise InvalidBookingOperation(f"A {booking.status.lower()} booking cannot be cancelled.")

        booking.status = Booking.CANCELLED
        booking.cancelled_at = timezone.now()
        booking.cancellation_reason = (reason or "")[:255]
        booking.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])

        if notify_customer:
            self.notifications.enqueue(booking, EmailLog.CANCELLATION)
        logger.info("Booking %s cancelled (reason=%r)", booking.pk, booking.cancellation_reason)
        return booking

    @transaction.atomic
    def confirm_booking(self, booking, via_link: bool = False) -> Booking:
        booking = self._locked(booking)
        if booking.status in (Booking.CANCELLED, Booking.COMPLETED, Booking.NO_SHOW):
            raise InvalidBookingOperation(f"A {booking.status.lower()} booking cannot be confirmed.")

        link_rules = via_link and settings.BOOKING_REQUIRE_EXPLICIT_CONFIRMATION
        if booking.status == Booking.CONFIRMED:
            if link_rules:
                raise InvalidBookingOperation("This booking is already confirmed.")
            return booking

        if link_rules:
            now = timezone.now()
            window = timedelta(hours=settings.BOOKING_CONFIRMATION_WINDOW_HOURS)
            if now - booking.created_at > window:
                raise BookingWindowViolation("The confirmation link has expired.")
            if booking_start(booking.booking_date, booking.start_time) < now:
                raise BookingWindowViolation("This booking is in the past.")

        booking.status = Booking.CONFIRMED
        booking.save(update_fields=["status", "updated_at"])
        self.notifications.enqueue(booking, EmailLog.CONFIRMATION)
        logger.info("Booking %s confirmed (via_link=%s)", booking.pk, via_link)
        return booking

    def delete_booking(self, booking) -> None:
        booking_id = booking.pk
        booking.delete()
        logger.info("Booking %s deleted", booking_id)
