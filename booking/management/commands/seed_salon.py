"""
seed_salon.py
-------------
Seeds (creates or updates) a working salon: categories, services, weekly
opening hours and the default booking settings. Safe to run repeatedly; it
upserts by name / weekday / key.

Usage:
    python manage.py seed_salon
    python manage.py seed_salon --admin-email owner@example.com --admin-password '...'
"""

from datetime import time
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from booking.models import BusinessHours, Service, ServiceCategory
from configmgr import services as settings_service
from staff.models import Employee

CATALOG = {
    "Haircuts": [
        {"name": "Men's Haircut",        "duration_minutes": 30, "price": Decimal("35.00")},
        {"name": "Skin Fade",            "duration_minutes": 45, "price": Decimal("45.00")},
        {"name": "Kids Haircut",         "duration_minutes": 20, "price": Decimal("25.00")},
    ],
    "Beard": [
        {"name": "Beard Trim",           "duration_minutes": 15, "price": Decimal("20.00")},
        {"name": "Hot Towel Shave",      "duration_minutes": 30, "price": Decimal("35.00")},
    ],
    "Care": [
        {"name": "Wash & Style",         "duration_minutes": 20, "price": Decimal("20.00")},
        {"name": "Scalp Treatment",      "duration_minutes": 30, "price": Decimal("40.00")},
    ],
}

# weekday -> (open, close, break_start, break_end); missing weekday = closed
HOURS = {
    0: None,
    1: (time(9, 0), time(18, 0), time(12, 0), time(13, 0)),
    2: (time(9, 0), time(18, 0), time(12, 0), time(13, 0)),
    3: (time(9, 0), time(18, 0), time(12, 0), time(13, 0)),
    4: (time(9, 0), time(20, 0), time(12, 0), time(13, 0)),
    5: (time(8, 0), time(15, 0), None, None),
    6: None,
}


class Command(BaseCommand):
    help = "Seed or update categories, services, business hours and default settings."

    def add_arguments(self, parser):
        parser.add_argument("--admin-email", help="Create/update an admin employee with this email.")
        parser.add_argument("--admin-password", help="Password for --admin-email.")
        parser.add_argument("--admin-name", default="Owner")

    @transaction.atomic
    def handle(self, *args, **options):
        created = updated = 0

        for position, (category_name, items) in enumerate(CATALOG.items()):
            category, _ = ServiceCategory.objects.update_or_create(
                name=category_name,
                defaults={"display_order": position, "is_active": True},
            )
            for order, item in enumerate(items):
                _, is_created = Service.objects.update_or_create(
                    name=item["name"],
                    defaults={**item, "category": category, "display_order": order, "active": True},
                )
                if is_created:
                    created += 1
                else:
                    updated += 1

        for weekday, hours in HOURS.items():
            if hours is None:
                BusinessHours.objects.update_or_create(
                    day_of_week=weekday,
                    defaults={"is_open": False, "open_time": time(9, 0), "close_time": time(18, 0),
                              "break_start_time": None, "break_end_time": None},
                )
                continue
            open_time, close_time, break_start, break_end = hours
            BusinessHours.objects.update_or_create(
                day_of_week=weekday,
                defaults={"is_open": True, "open_time": open_time, "close_time": close_time,
                          "break_start_time": break_start, "break_end_time": break_end},
            )

        for key, value in settings_service.DEFAULTS.items():
            if settings_service.get_setting(key) is None:
                settings_service.set_setting(key, value)

        if options.get("admin_email"):
            employee, _ = Employee.objects.update_or_create(
                email=options["admin_email"].strip().lower(),
                defaults={"name": options["admin_name"], "is_admin": True, "is_active": True},
            )
            if options.get("admin_password"):
                employee.set_password(options["admin_password"])
                employee.save(update_fields=["password", "updated_at"])
            self.stdout.write(f"Admin employee: {employee.email}")

        self.stdout.write(self.style.SUCCESS(f"Seed complete. Created={created}, Updated={updated}"))
