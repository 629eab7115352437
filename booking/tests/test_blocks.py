# booking/tests/test_blocks.py

from datetime import time, timedelta

from booking.exceptions import InvalidBookingOperation, SlotUnavailable
from booking.models import BlockedTimeSlot
from booking.services.blocks import BlockedSlotService
from staff.models import Employee

from .base import SalonTestCase


class BlockedSlotServiceTests(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.blocks = BlockedSlotService()

    def test_block_prevents_booking(self):
        self.blocks.create(self.day, time(12, 0), time(13, 0), reason="Team lunch")
        with self.assertRaises(SlotUnavailable):
            self.book(time(12, 30))
        # touching the block is fine
        self.assertEqual(self.book(time(13, 0)).start_time, time(13, 0))

    def test_overlapping_blocks_rejected(self):
        self.blocks.create(self.day, time(12, 0), time(13, 0))
        with self.assertRaises(InvalidBookingOperation):
            self.blocks.create(self.day, time(12, 30), time(14, 0))

    def test_blocks_for_different_employees_may_overlap(self):
        other = Employee.objects.create(name="Marco", email="marco@example.com")
        self.blocks.create(self.day, time(12, 0), time(13, 0), employee=self.employee)
        block = self.blocks.create(self.day, time(12, 0), time(13, 0), employee=other)
        self.assertEqual(block.employee, other)

    def test_block_over_existing_booking_rejected(self):
        self.book(time(10, 0), employee=self.employee)
        with self.assertRaises(InvalidBookingOperation):
            self.blocks.create(self.day, time(9, 0), time(11, 0), employee=self.employee)
        with self.assertRaises(InvalidBookingOperation):
            self.blocks.create(self.day, time(9, 0), time(11, 0))

    def test_cancelled_booking_does_not_stop_block(self):
        booking = self.book(time(10, 0))
        self.manager.cancel_booking(booking, notify_customer=False)
        block = self.blocks.create(self.day, time(9, 0), time(11, 0))
        self.assertIsNotNone(block.pk)

    def test_update_excludes_itself(self):
        block = self.blocks.create(self.day, time(12, 0), time(13, 0))
        block = self.blocks.update(block, end_time=time(13, 30), reason="Longer lunch")
        block.refresh_from_db()
        self.assertEqual(block.end_time, time(13, 30))
        self.assertEqual(block.reason, "Longer lunch")

    def test_delete_frees_the_slot(self):
        block = self.blocks.create(self.day, time(12, 0), time(13, 0))
        self.blocks.delete(block)
        self.assertEqual(self.book(time(12, 0)).start_time, time(12, 0))


class BlockedSlotApiTests(SalonTestCase):
    def setUp(self):
        super().setUp()
        self.as_admin()

    def test_create_and_filter(self):
        resp = self.client.post(
            "/api/blocked-slots/",
            {"block_date": self.day.isoformat(), "start_time": "12:00", "end_time": "13:00", "reason": "Lunch"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(resp.data["start_time"], "12:00")
        self.assertIsNone(resp.data["employee"])

        BlockedTimeSlot.objects.create(
            block_date=self.day + timedelta(days=7), start_time=time(9, 0), end_time=time(10, 0)
        )
        resp = self.client.get("/api/blocked-slots/", {"date_to": self.day.isoformat()})
        self.assertEqual(resp.data["count"], 1)

    def test_reversed_interval_is_400(self):
        resp = self.client.post(
            "/api/blocked-slots/",
            {"block_date": self.day.isoformat(), "start_time": "13:00", "end_time": "12:00"},
            format="json",
        )
        self.assertEqual(resp.status_code, 400)

    def test_over_booking_is_409(self):
        self.book(time(12, 0))
        resp = self.client.post(
            "/api/blocked-slots/",
            {"block_date": self.day.isoformat(), "start_time": "12:00", "end_time": "13:00"},
            format="json",
        )
        self.assertEqual(resp.status_code, 409)

    def test_employee_filter_includes_salon_wide(self):
        BlockedTimeSlot.objects.create(block_date=self.day, start_time=time(9, 0), end_time=time(10, 0))
        BlockedTimeSlot.objects.create(
            block_date=self.day, start_time=time(9, 0), end_time=time(10, 0), employee=self.employee
        )
        BlockedTimeSlot.objects.create(
            block_date=self.day, start_time=time(9, 0), end_time=time(10, 0), employee=self.admin
        )
        resp = self.client.get("/api/blocked-slots/", {"employee": self.employee.id})
        self.assertEqual(resp.data["count"], 2)

    def test_requires_admin(self):
        self.client.credentials()
        resp = self.client.get("/api/blocked-slots/")
        self.assertIn(resp.status_code, (401, 403))
