"""
exceptions.py
-------------
Domain errors raised by the booking services.

They are DRF APIExceptions, so a view can let them propagate and DRF renders
{"detail": "..."} with the matching status code.
"""

from rest_framework import status
from rest_framework.exceptions import APIException, NotFound


class ResourceNotFound(NotFound):
    default_detail = "Resource not found."
    default_code = "not_found"


class InvalidBookingOperation(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This operation is not allowed for the booking in its current state."
    default_code = "invalid_operation"


class SlotUnavailable(InvalidBookingOperation):
    default_detail = "The selected time slot is no longer available."
    default_code = "slot_unavailable"


class BookingWindowViolation(InvalidBookingOperation):
    default_detail = "The selected time is outside the allowed booking window."
    default_code = "booking_window"
