# booking/views_cancel.py
#
# Purpose:
# - Pages behind the links in customer emails:
#   * GET      /bookings/confirm/<token>/  -> confirm a PENDING booking
#   * GET      /bookings/cancel/<token>/   -> show booking + cancel form
#   * POST     /bookings/cancel/<token>/   -> cancel (optional "reason")
#
# Notes:
# - Tokens are signed (booking.services.links); a tampered or foreign token
#   renders a 400 page.
# - Business rules (confirmation window, terminal states) stay in
#   BookingManager; its errors are shown on the page with their status code.
#
import logging

from django.conf import settings
from django.core import signing
from django.shortcuts import render
from django.views.decorators.http import require_http_methods
from rest_framework.exceptions import APIException

from .models import Booking
from .services import links
from .services.booking_manager import BookingManager

logger = logging.getLogger(__name__)

TEMPLATE = "booking_link.html"


def _page(request, title, message, booking=None, status=200, is_error=False, show_cancel_form=False):
    return render(
        request,
        TEMPLATE,
        {
            "salon_name": settings.SALON_NAME,
            "title": title,
            "message": message,
            "booking": booking,
            "is_error": is_error,
            "show_cancel_form": show_cancel_form,
        },
        status=status,
    )


def _booking_from_token(token, action):
    try:
        public_id = links.read_token(token, action)
    except signing.BadSignature:
        return None
    return Booking.objects.select_related("customer", "service", "bundle").filter(public_id=public_id).first()


@require_http_methods(["GET"])
def confirm_booking_link(request, token):
    booking = _booking_from_token(token, links.CONFIRM)
    if booking is None:
        return _page(request, "Invalid link", "This confirmation link is not valid.", status=400, is_error=True)

    if booking.status == Booking.CONFIRMED:
        return _page(request, "Already confirmed", "Your booking is already confirmed.", booking)

    try:
        booking = BookingManager().confirm_booking(booking, via_link=True)
    except APIException as e:
        logger.info("Confirm link for booking %s rejected: %s", booking.pk, e.detail)
        return _page(request, "Cannot confirm", str(e.detail), booking, status=e.status_code, is_error=True)

    return _page(request, "Booking confirmed", "Thank you! Your booking is confirmed.", booking)


@require_http_methods(["GET", "POST"])
def cancel_booking_link(request, token):
    booking = _booking_from_token(token, links.CANCEL)
    if booking is None:
        return _page(request, "Invalid link", "This cancellation link is not valid.", status=400, is_error=True)

    if request.method == "GET":
        if booking.status == Booking.CANCELLED:
            return _page(request, "Already cancelled", "This booking has already been cancelled.", booking)
        if booking.status not in (Booking.PENDING, Booking.CONFIRMED):
            return _page(request, "Cannot cancel", "This booking can no longer be cancelled.", booking,
                         status=409, is_error=True)
        return _page(request, "Cancel booking", "Do you want to cancel this booking?", booking,
                     show_cancel_form=True)

    reason = (request.POST.get("reason") or "").strip()
    try:
        booking = BookingManager().cancel_booking(booking, reason=reason)
    except APIException as e:
        return _page(request, "Cannot cancel", str(e.detail), booking, status=e.status_code, is_error=True)

    return _page(request, "Booking cancelled", "Your booking has been cancelled. We hope to see you again soon.",
                 booking)
