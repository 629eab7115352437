from datetime import time, timedelta

from django.utils import timezone

from booking.models import Booking, Customer
from booking.tests.base import SalonTestCase
from staff.authentication import issue_token


class ReportsSummaryTests(SalonTestCase):
    def add(self, day, start, status):
        customer, _ = Customer.objects.get_or_create(first_name="Lena", email="lena@example.com")
        return Booking.objects.create(
            customer=customer,
            service=self.service,
            booking_date=day,
            start_time=start,
            end_time=time(start.hour, 30),
            status=status,
        )

    def test_requires_admin(self):
        resp = self.client.get("/api/reports/summary")
        self.assertIn(resp.status_code, (401, 403))

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_token(self.employee)}")
        self.assertEqual(self.client.get("/api/reports/summary").status_code, 403)

    def test_summary(self):
        today = timezone.localdate()
        self.add(today, time(9, 0), Booking.COMPLETED)
        self.add(today, time(10, 0), Booking.CANCELLED)
        self.add(today - timedelta(days=1), time(9, 0), Booking.COMPLETED)
        self.add(self.day, time(9, 0), Booking.CONFIRMED)
        self.add(self.day, time(10, 0), Booking.PENDING)

        self.as_admin()
        resp = self.client.get("/api/reports/summary")
        self.assertEqual(resp.status_code, 200)

        self.assertEqual(resp.data["today"], 1)
        self.assertEqual(resp.data["upcoming_confirmed"], 1)
        self.assertEqual(resp.data["pending"], 1)
        expected_revenue = "70.00" if (today - timedelta(days=1)).month == today.month else "35.00"
        self.assertEqual(resp.data["revenue_this_month"], expected_revenue)
        self.assertEqual(
            resp.data["cancellations_per_day"], [{"day": today.isoformat(), "count": 1}]
        )
        self.assertEqual(resp.data["top_services"][0]["service_id"], self.service.id)
        self.assertEqual(resp.data["top_services"][0]["count"], 3)
