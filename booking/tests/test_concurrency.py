# booking/tests/test_concurrency.py
#
# Two requests racing for the same slot on real connections. TestCase wraps
# everything in one transaction, so these run under TransactionTestCase.

import threading
import unittest
from datetime import time

from django.db import connection
from django.test import TransactionTestCase

from booking.exceptions import SlotUnavailable
from booking.models import Booking

from .base import SalonFixtures


class ConcurrentBookingTests(SalonFixtures, TransactionTestCase):
    def setUp(self):
        if connection.vendor == "sqlite" and connection.is_in_memory_db():
            raise unittest.SkipTest("needs a file-backed test database")
        super().setUp()

    def race(self, *employees):
        barrier = threading.Barrier(len(employees))
        results = []

        def attempt(employee):
            try:
                barrier.wait(timeout=10)
                self.book(time(10, 0), employee=employee)
                results.append("ok")
            except SlotUnavailable as exc:
                results.append(type(exc).__name__)
            finally:
                connection.close()

        threads = [threading.Thread(target=attempt, args=(e,)) for e in employees]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        return sorted(results)

    def test_two_unassigned_requests_get_one_slot(self):
        self.assertEqual(self.race(None, None), ["SlotUnavailable", "ok"])
        self.assertEqual(Booking.objects.count(), 1)

    def test_same_employee_requests_get_one_slot(self):
        self.assertEqual(self.race(self.employee, self.employee), ["SlotUnavailable", "ok"])
        self.assertEqual(Booking.objects.count(), 1)

    def test_unassigned_and_employee_requests_get_one_slot(self):
        self.assertEqual(self.race(None, self.employee), ["SlotUnavailable", "ok"])
        self.assertEqual(Booking.objects.count(), 1)
