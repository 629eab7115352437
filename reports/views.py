# reports/views.py

import logging
from datetime import timedelta

from django.db.models import Count, DecimalField, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from rest_framework.response import Response
from rest_framework.views import APIView

from booking.models import Booking
from staff.permissions import IsAdminOrBootstrap

logger = logging.getLogger(__name__)


class ReportsView(APIView):
    """
    GET /api/reports/summary

    Returns JSON with:
    - today: bookings today that are not cancelled
    - upcoming_confirmed: confirmed bookings from today on
    - pending: bookings waiting for customer confirmation
    - revenue_this_month: completed bookings this month (service or bundle price)
    - bookings_per_day: [{ "day": "YYYY-MM-DD", "count": N }, ...]  last 30 days
    - cancellations_per_day: same shape, cancelled only
    - top_services: [{ "service_id": X, "service_name": "...", "count": N }, ...]

    Only accessible by admins.
    """
    permission_classes = [IsAdminOrBootstrap]

    def get(self, request):
        today = timezone.localdate()
        start = today - timedelta(days=30)
        month_start = today.replace(day=1)

        bookings = Booking.objects.all()
        recent = bookings.filter(booking_date__gte=start, booking_date__lte=today)

        bookings_per_day = (
            recent.exclude(status=Booking.CANCELLED)
            .values("booking_date")
            .annotate(count=Count("id"))
            .order_by("booking_date")
        )
        cancellations_per_day = (
            recent.filter(status=Booking.CANCELLED)
            .values("booking_date")
            .annotate(count=Count("id"))
            .order_by("booking_date")
        )
        top_services = (
            recent.exclude(service__isnull=True)
            .values("service", "service__name")
            .annotate(count=Count("id"))
            .order_by("-count", "service__name")[:5]
        )

        revenue = bookings.filter(
            status=Booking.COMPLETED,
            booking_date__gte=month_start,
            booking_date__lte=today,
        ).aggregate(
            total=Sum(
                Coalesce("service__price", "bundle__bundle_price"),
                output_field=DecimalField(max_digits=12, decimal_places=2),
            )
        )["total"] or 0

        data = {
            "today": bookings.filter(booking_date=today).exclude(status=Booking.CANCELLED).count(),
            "upcoming_confirmed": bookings.filter(booking_date__gte=today, status=Booking.CONFIRMED).count(),
            "pending": bookings.filter(status=Booking.PENDING).count(),
            "revenue_this_month": f"{revenue:.2f}",
            "bookings_per_day": [
                {"day": row["booking_date"].isoformat(), "count": row["count"]} for row in bookings_per_day
            ],
            "cancellations_per_day": [
                {"day": row["booking_date"].isoformat(), "count": row["count"]} for row in cancellations_per_day
            ],
            "top_services": [
                {"service_id": row["service"], "service_name": row["service__name"], "count": row["count"]}
                for row in top_services
            ],
        }
        return Response(data)
