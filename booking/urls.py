# booking/urls.py
#
# Purpose:
# - REST API endpoints for the booking app (mounted under /api/ by the project).
# - link_urlpatterns: the HTML pages behind email links, mounted under
#   /bookings/ by the project so the public URLs stay short.

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views_cancel
from .views import (
    BlockedTimeSlotViewSet,
    BookingViewSet,
    BusinessHoursViewSet,
    CustomerViewSet,
    ServiceBundleViewSet,
    ServiceCategoryViewSet,
    ServiceViewSet,
)

# --------------------------
# DRF Router registrations
# --------------------------
router = DefaultRouter()
router.register(r"categories", ServiceCategoryViewSet, basename="category")
router.register(r"services", ServiceViewSet, basename="service")
router.register(r"bundles", ServiceBundleViewSet, basename="bundle")
router.register(r"business-hours", BusinessHoursViewSet, basename="business-hours")
router.register(r"customers", CustomerViewSet, basename="customer")
router.register(r"blocked-slots", BlockedTimeSlotViewSet, basename="blocked-slot")
router.register(r"bookings", BookingViewSet, basename="booking")

urlpatterns = [
    path("", include(router.urls)),
]

link_urlpatterns = [
    path("confirm/<str:token>/", views_cancel.confirm_booking_link, name="booking-confirm-link"),
    path("cancel/<str:token>/", views_cancel.cancel_booking_link, name="booking-cancel-link"),
]
