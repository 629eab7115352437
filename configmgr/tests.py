from django.test import TestCase

from .models import SystemSetting
from . import services


class SettingsServiceTests(TestCase):
    def test_defaults_when_unset(self):
        self.assertEqual(services.booking_interval_minutes(), 15)
        self.assertEqual(services.max_advance_booking_days(), 60)
        self.assertEqual(services.min_advance_booking_hours(), 0)

    def test_reads_stored_value(self):
        SystemSetting.objects.create(key="BOOKING_INTERVAL_MINUTES", value=" 30 ")
        self.assertEqual(services.booking_interval_minutes(), 30)

    def test_unparseable_value_falls_back(self):
        SystemSetting.objects.create(key="BOOKING_INTERVAL_MINUTES", value="quarter hour")
        self.assertEqual(services.booking_interval_minutes(), 15)

    def test_zero_interval_falls_back(self):
        SystemSetting.objects.create(key="BOOKING_INTERVAL_MINUTES", value="0")
        self.assertEqual(services.booking_interval_minutes(), 15)

    def test_set_setting_upserts(self):
        services.set_setting("MAX_ADVANCE_BOOKING_DAYS", 30)
        services.set_setting("MAX_ADVANCE_BOOKING_DAYS", 45)
        self.assertEqual(SystemSetting.objects.filter(key="MAX_ADVANCE_BOOKING_DAYS").count(), 1)
        self.assertEqual(services.max_advance_booking_days(), 45)
