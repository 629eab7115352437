# booking/tests/test_availability.py

from datetime import date, time, timedelta
from decimal import Decimal

from booking.exceptions import ResourceNotFound, SlotUnavailable
from booking.models import BlockedTimeSlot, Booking, ServiceBundle, ServiceBundleItem
from booking.services.availability_engine import AvailabilityEngine
from configmgr.services import set_setting
from staff.models import Employee

from .base import SalonTestCase


class AvailabilityQueryTests(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.engine = AvailabilityEngine()

    def slot_map(self, result):
        return {(s.start, s.end): s.is_available for s in result.slots}

    def test_all_free_day(self):
        result = self.engine.get_availability(self.day, service=self.service.id)

        self.assertEqual(result.duration_minutes, 30)
        self.assertEqual(len(result.slots), 35)
        self.assertTrue(all(s.is_available for s in result.slots))

    def test_existing_booking_marks_every_overlapping_candidate(self):
        self.book(time(10, 0))

        slots = self.slot_map(self.engine.get_availability(self.day, service=self.service.id))

        busy = [key for key, free in slots.items() if not free]
        self.assertEqual(
            sorted(busy),
            [(time(9, 45), time(10, 15)), (time(10, 0), time(10, 30)), (time(10, 15), time(10, 45))],
        )
        self.assertTrue(slots[(time(9, 30), time(10, 0))])
        self.assertTrue(slots[(time(10, 30), time(11, 0))])

    def test_cancelled_booking_frees_the_slot(self):
        booking = self.book(time(10, 0))
        self.manager.cancel_booking(booking, notify_customer=False)

        result = self.engine.get_availability(self.day, service=self.service.id)
        self.assertTrue(all(s.is_available for s in result.slots))

    def test_closed_weekday_is_empty(self):
        self.hours.is_open = False
        self.hours.save()

        result = self.engine.get_availability(self.day, service=self.service.id)
        self.assertEqual(result.slots, [])

    def test_unconfigured_weekday_is_empty(self):
        other_day = self.day + timedelta(days=1)
        result = self.engine.get_availability(other_day, service=self.service.id)
        self.assertEqual(result.slots, [])

    def test_interval_setting_is_used(self):
        set_setting("BOOKING_INTERVAL_MINUTES", 30)
        result = self.engine.get_availability(self.day, service=self.service.id)
        self.assertEqual(len(result.slots), 18)

    def test_break_is_respected(self):
        self.hours.break_start_time = time(12, 0)
        self.hours.break_end_time = time(13, 0)
        self.hours.save()

        result = self.engine.get_availability(self.day, service=self.service.id)
        for slot in result.slots:
            self.assertFalse(slot.start < time(13, 0) and slot.end > time(12, 0))

    def test_blocked_slot_marks_candidates(self):
        BlockedTimeSlot.objects.create(
            block_date=self.day, start_time=time(14, 0), end_time=time(15, 0), reason="Supplier"
        )
        slots = self.slot_map(self.engine.get_availability(self.day, service=self.service.id))
        self.assertFalse(slots[(time(14, 30), time(15, 0))])
        self.assertFalse(slots[(time(13, 45), time(14, 15))])
        self.assertTrue(slots[(time(15, 0), time(15, 30))])

    def test_idempotent(self):
        self.book(time(11, 0))
        first = self.engine.get_availability(self.day, service=self.service.id)
        second = self.engine.get_availability(self.day, service=self.service.id)
        self.assertEqual(first.as_dict(), second.as_dict())

    def test_inactive_or_missing_service_is_not_found(self):
        self.service.active = False
        self.service.save()
        with self.assertRaises(ResourceNotFound):
            self.engine.get_availability(self.day, service=self.service.id)
        with self.assertRaises(ResourceNotFound):
            self.engine.get_availability(self.day, service=999999)

    def test_bundle_uses_total_duration(self):
        bundle = ServiceBundle.objects.create(name="Cut & Beard", bundle_price=Decimal("50.00"))
        ServiceBundleItem.objects.create(bundle=bundle, service=self.service, quantity=2)

        result = self.engine.get_availability(self.day, bundle=bundle.id)
        self.assertEqual(result.duration_minutes, 60)
        self.assertEqual(result.slots[-1].start, time(17, 0))

    def test_expired_bundle_is_not_found(self):
        bundle = ServiceBundle.objects.create(
            name="Summer Deal", bundle_price=Decimal("40.00"), valid_until=date(2000, 1, 1)
        )
        ServiceBundleItem.objects.create(bundle=bundle, service=self.service)
        with self.assertRaises(ResourceNotFound):
            self.engine.get_availability(self.day, bundle=bundle.id)


class ScopeTests(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.engine = AvailabilityEngine()
        self.other = Employee.objects.create(name="Marco", email="marco@example.com")

    def test_employee_scope_ignores_colleagues(self):
        self.book(time(10, 0), employee=self.employee)

        self.assertFalse(self.engine.is_slot_available(self.day, time(10, 0), time(10, 30), self.employee.id))
        self.assertTrue(self.engine.is_slot_available(self.day, time(10, 0), time(10, 30), self.other.id))

    def test_global_scope_sees_every_booking(self):
        self.book(time(10, 0), employee=self.employee)
        self.assertFalse(self.engine.is_slot_available(self.day, time(10, 15), time(10, 45)))

    def test_salon_wide_block_applies_to_every_employee(self):
        BlockedTimeSlot.objects.create(block_date=self.day, start_time=time(9, 0), end_time=time(10, 0))
        self.assertFalse(self.engine.is_slot_available(self.day, time(9, 30), time(10, 0), self.other.id))

    def test_employee_block_only_applies_to_that_employee(self):
        BlockedTimeSlot.objects.create(
            block_date=self.day, start_time=time(9, 0), end_time=time(10, 0), employee=self.employee
        )
        self.assertFalse(self.engine.is_slot_available(self.day, time(9, 0), time(9, 30), self.employee.id))
        self.assertTrue(self.engine.is_slot_available(self.day, time(9, 0), time(9, 30), self.other.id))
        self.assertFalse(self.engine.is_slot_available(self.day, time(9, 0), time(9, 30)))

    def test_exclude_booking(self):
        booking = self.book(time(10, 0), employee=self.employee)
        self.assertTrue(
            self.engine.is_slot_available(
                self.day, time(10, 0), time(10, 30), self.employee.id, exclude_booking_id=booking.id
            )
        )

    def test_available_employees(self):
        self.book(time(10, 0), employee=self.employee)
        free = self.engine.available_employees(self.day, time(10, 0), time(10, 30))
        self.assertIn(self.other.id, free)
        self.assertIn(self.admin.id, free)
        self.assertNotIn(self.employee.id, free)

    def test_employees_availability(self):
        self.book(time(10, 0), employee=self.employee)
        per_employee = self.engine.employees_availability(self.day, 30)

        mine = {(s.start, s.end): s.is_available for s in per_employee[self.employee.id]}
        theirs = {(s.start, s.end): s.is_available for s in per_employee[self.other.id]}
        self.assertFalse(mine[(time(10, 0), time(10, 30))])
        self.assertTrue(theirs[(time(10, 0), time(10, 30))])

    def test_no_overlapping_bookings_per_employee(self):
        for start in (time(9, 0), time(9, 30), time(11, 0)):
            self.book(start, employee=self.employee)
        rows = list(
            Booking.objects.filter(employee=self.employee, booking_date=self.day)
            .exclude(status=Booking.CANCELLED)
            .order_by("start_time")
        )
        for a, b in zip(rows, rows[1:]):
            self.assertLessEqual(a.end_time, b.start_time)

    def test_unassigned_booking_blocks_every_employee(self):
        self.book(time(10, 0))

        self.assertFalse(self.engine.is_slot_available(self.day, time(10, 0), time(10, 30), self.employee.id))
        self.assertNotIn(self.employee.id, self.engine.available_employees(self.day, time(10, 0), time(10, 30)))
        with self.assertRaises(SlotUnavailable):
            self.book(time(10, 15), employee=self.employee)
        self.assertEqual(Booking.objects.filter(booking_date=self.day).count(), 1)
