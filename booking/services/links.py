"""
links.py
--------
Signed confirm/cancel links for customer emails (django.core.signing).

The token carries the booking's public uuid and the action, so a cancel link
cannot be replayed as a confirm link. Expiry is a booking rule (see
BookingManager.confirm_booking), not a property of the token.
"""

from django.conf import settings
from django.core import signing
from django.urls import reverse

SALT = "booking.link"
CONFIRM = "confirm"
CANCEL = "cancel"


def make_token(booking, action: str) -> str:
    return signing.dumps({"b": str(booking.public_id), "a": action}, salt=SALT, compress=True)


def read_token(token: str, action: str) -> str:
    """
    Return the booking public id from `token`.

    Raises signing.BadSignature when the token is forged or for another action.
    """
    data = signing.loads(token, salt=SALT)
    if data.get("a") != action or not data.get("b"):
        raise signing.BadSignature("Token action mismatch")
    return data["b"]


def confirm_url(booking) -> str:
    path = reverse("booking-confirm-link", kwargs={"token": make_token(booking, CONFIRM)})
    return f"{settings.PUBLIC_BASE_URL}{path}"


def cancel_url(booking) -> str:
    path = reverse("booking-cancel-link", kwargs={"token": make_token(booking, CANCEL)})
    return f"{settings.PUBLIC_BASE_URL}{path}"
