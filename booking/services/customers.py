"""
customers.py
------------
Find-or-create for the person making a public booking.

Match order: email (case-insensitive), then phone (exact, after trimming).
A match has its name/contact details refreshed from the latest booking form.
"""

import logging

from ..exceptions import InvalidBookingOperation
from ..models import Customer

logger = logging.getLogger(__name__)


def _clean(data: dict) -> dict:
    return {
        "first_name": (data.get("first_name") or "").strip(),
        "last_name": (data.get("last_name") or "").strip(),
        "email": (data.get("email") or "").strip().lower(),
        "phone": (data.get("phone") or "").strip(),
    }


def upsert_customer(data: dict) -> Customer:
    fields = _clean(data)

    customer = None
    if fields["email"]:
        customer = Customer.objects.filter(email__iexact=fields["email"]).order_by("id").first()
    if customer is None and fields["phone"]:
        customer = Customer.objects.filter(phone=fields["phone"]).order_by("id").first()

    if customer is None:
        customer = Customer.objects.create(**fields)
        logger.info("Customer %s created", customer.pk)
        return customer

    changed = []
    for name, value in fields.items():
        if value and getattr(customer, name) != value:
            setattr(customer, name, value)
            changed.append(name)
    if changed:
        customer.save(update_fields=changed + ["updated_at"])
    return customer


def ensure_unique_contact(email: str, phone: str, exclude_id=None) -> None:
    """Admin-side duplicate guard for create/update."""
    email = (email or "").strip()
    phone = (phone or "").strip()
    qs = Customer.objects.all()
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if email and qs.filter(email__iexact=email).exists():
        raise InvalidBookingOperation("A customer with this email already exists.")
    if phone and qs.filter(phone=phone).exists():
        raise InvalidBookingOperation("A customer with this phone number already exists.")
