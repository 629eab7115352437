"""
availability_engine.py
----------------------
Answers "is this interval free?" and "which slots are free on this day?".

Scope rule (used everywhere, one implementation):
- employee_id given: that employee's non-cancelled bookings, plus blocks for
  that employee and salon-wide blocks (employee is NULL).
- employee_id omitted: every non-cancelled booking and every block on the day
  (single-chair mode).

All overlap tests use the half-open rule from slot_utils.overlaps. A day is
loaded with two queries and then evaluated in memory, so listing availability
costs the same no matter how many candidate slots there are.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, time

from staff.models import Employee
from configmgr.services import booking_interval_minutes

from ..exceptions import ResourceNotFound
from ..models import BlockedTimeSlot, Booking, BusinessHours, Service, ServiceBundle
from .slot_utils import TimeSlot, generate_slots, mark_slots, overlaps

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    date: date
    target_id: int
    duration_minutes: int
    slots: list[TimeSlot] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "target_id": self.target_id,
            "duration_minutes": self.duration_minutes,
            "slots": [s.as_dict() for s in self.slots],
        }


@dataclass
class _DayLoad:
    # employee id (or None) -> [(start, end), ...]
    bookings: dict = field(default_factory=lambda: defaultdict(list))
    blocks: dict = field(default_factory=lambda: defaultdict(list))

    def bookings_for(self, employee_id=None) -> list[tuple[time, time]]:
        if employee_id is None:
            return [i for rows in self.bookings.values() for i in rows]
        # unassigned bookings occupy the whole salon
        return self.bookings.get(employee_id, []) + self.bookings.get(None, [])

    def blocks_for(self, employee_id=None) -> list[tuple[time, time]]:
        if employee_id is None:
            return [i for rows in self.blocks.values() for i in rows]
        return self.blocks.get(employee_id, []) + self.blocks.get(None, [])

    def busy_for(self, employee_id=None) -> list[tuple[time, time]]:
        return self.bookings_for(employee_id) + self.blocks_for(employee_id)


class AvailabilityEngine:
    def _load_day(self, day: date, exclude_booking_id=None, exclude_block_id=None) -> _DayLoad:
        load = _DayLoad()

        bookings = Booking.objects.filter(booking_date=day).exclude(status=Booking.CANCELLED)
        if exclude_booking_id is not None:
            bookings = bookings.exclude(pk=exclude_booking_id)
        for employee_id, start, end in bookings.values_list("employee_id", "start_time", "end_time"):
            load.bookings[employee_id].append((start, end))

        blocks = BlockedTimeSlot.objects.filter(block_date=day)
        if exclude_block_id is not None:
            blocks = blocks.exclude(pk=exclude_block_id)
        for employee_id, start, end in blocks.values_list("employee_id", "start_time", "end_time"):
            load.blocks[employee_id].append((start, end))

        return load

    # -------------------------
    # Conflict checking
    # -------------------------
    def busy_intervals(self, day: date, employee_id=None, exclude_booking_id=None) -> list[tuple[time, time]]:
        return self._load_day(day, exclude_booking_id).busy_for(employee_id)

    def is_slot_available(self, day: date, start: time, end: time, employee_id=None, exclude_booking_id=None) -> bool:
        for b_start, b_end in self.busy_intervals(day, employee_id, exclude_booking_id):
            if overlaps(start, end, b_start, b_end):
                return False
        return True

    def block_conflicts(self, day: date, start: time, end: time, employee_id=None, exclude_block_id=None) -> dict:
        """
        What a new/edited block on [start, end) would collide with, under the
        same scope rule: {"blocks": bool, "bookings": bool}.
        """
        load = self._load_day(day, exclude_block_id=exclude_block_id)
        return {
            "blocks": any(overlaps(start, end, s, e) for s, e in load.blocks_for(employee_id)),
            "bookings": any(overlaps(start, end, s, e) for s, e in load.bookings_for(employee_id)),
        }

    # -------------------------
    # Opening hours
    # -------------------------
    def business_hours_for(self, day: date):
        """The open BusinessHours row for the weekday, or None when closed/unset."""
        return BusinessHours.objects.filter(day_of_week=day.weekday(), is_open=True).first()

    def candidate_slots(self, day: date, duration_minutes: int) -> list[tuple[time, time]]:
        hours = self.business_hours_for(day)
        if hours is None:
            return []
        return generate_slots(
            hours.open_time,
            hours.close_time,
            duration_minutes,
            booking_interval_minutes(),
            hours.break_start_time,
            hours.break_end_time,
        )

    # -------------------------
    # Queries
    # -------------------------
    def get_availability(self, day: date, service=None, bundle=None, employee_id=None) -> AvailabilityResult:
        """
        Slots for one service or bundle (pass its id) on `day`.

        Raises ResourceNotFound when the target is missing or not bookable on
        that day, or when employee_id names no active employee. A closed day
        yields an empty slot list.
        """
        if service is not None:
            obj = Service.objects.filter(pk=service, active=True).first()
            if obj is None:
                raise ResourceNotFound("Service not found or inactive.")
            target_id, duration = obj.pk, obj.duration_minutes
        elif bundle is not None:
            obj = ServiceBundle.objects.filter(pk=bundle).first()
            if obj is None or not obj.is_bookable_on(day):
                raise ResourceNotFound("Bundle not found or inactive.")
            target_id, duration = obj.pk, obj.total_duration_minutes
        else:
            raise ValueError("Provide a service or a bundle.")

        if employee_id is not None and not Employee.objects.filter(pk=employee_id, is_active=True).exists():
            raise ResourceNotFound("Employee not found or inactive.")

        result = AvailabilityResult(date=day, target_id=target_id, duration_minutes=duration)
        if duration <= 0:
            # bundle without items
            return result

        candidates = self.candidate_slots(day, duration)
        if not candidates:
            return result

        busy = self.busy_intervals(day, employee_id)
        result.slots = mark_slots(candidates, busy)
        return result

    def available_employees(self, day: date, start: time, end: time) -> list[int]:
        """Ids of active employees with nothing overlapping [start, end)."""
        load = self._load_day(day)
        free = []
        for employee_id in Employee.objects.filter(is_active=True).order_by("name").values_list("id", flat=True):
            if not any(overlaps(start, end, b_start, b_end) for b_start, b_end in load.busy_for(employee_id)):
                free.append(employee_id)
        return free

    def employees_availability(self, day: date, duration_minutes: int) -> dict[int, list[TimeSlot]]:
        candidates = self.candidate_slots(day, duration_minutes)
        load = self._load_day(day)
        return {
            employee_id: mark_slots(candidates, load.busy_for(employee_id))
            for employee_id in Employee.objects.filter(is_active=True).order_by("name").values_list("id", flat=True)
        }
