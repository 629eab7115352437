# booking/tests/base.py
#
# Shared fixtures for the booking tests: one open weekday a few days ahead,
# a 30-minute service and an active employee.

from datetime import time, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from booking.models import BusinessHours, Service, ServiceCategory
from booking.services.booking_manager import BookingManager
from booking.services.targets import ServiceTarget
from staff.authentication import issue_token
from staff.models import Employee


def next_weekday(weekday: int, min_days: int = 2):
    """First date with the given weekday at least `min_days` from today."""
    day = timezone.localdate() + timedelta(days=min_days)
    while day.weekday() != weekday:
        day += timedelta(days=1)
    return day


class SalonFixtures:
    """setUp and helpers shared by TestCase and TransactionTestCase suites."""

    CUSTOMER = {
        "first_name": "Lena",
        "last_name": "Meier",
        "email": "lena@example.com",
        "phone": "+41 79 123 45 67",
    }

    def setUp(self):
        self.client = APIClient()
        self.day = next_weekday(1)  # a Tuesday
        self.hours = BusinessHours.objects.create(
            day_of_week=self.day.weekday(),
            open_time=time(9, 0),
            close_time=time(18, 0),
            is_open=True,
        )
        self.category = ServiceCategory.objects.create(name="Haircuts")
        self.service = Service.objects.create(
            category=self.category,
            name="Men's Haircut",
            duration_minutes=30,
            price=Decimal("35.00"),
            active=True,
        )
        self.employee = Employee.objects.create(name="Dario", email="dario@example.com")
        self.admin = Employee.objects.create(name="Owner", email="owner@example.com", is_admin=True)
        self.manager = BookingManager()

    def book(self, start, employee=None, customer=None, target=None, **kwargs):
        return self.manager.create_booking(
            target or ServiceTarget(self.service),
            kwargs.pop("day", self.day),
            start,
            customer or dict(self.CUSTOMER),
            employee=employee,
            **kwargs,
        )

    def as_admin(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.admin)}")


class SalonTestCase(SalonFixtures, TestCase):
    pass
