# salon_booking/urls.py
from django.contrib import admin
from django.urls import include, path

from booking.urls import link_urlpatterns

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("booking.urls")),
    path("api/staff/", include("staff.urls")),
    path("api/reports/", include("reports.urls")),
    path("api/notifications/", include("notifications.urls")),
    path("bookings/", include(link_urlpatterns)),
]
