# booking/services/catalog.py
#
# Purpose:
# - Display helpers for prices and durations (emails, API).
# - Catalog rules that span several rows: bundle creation and category removal.

import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction

from ..exceptions import InvalidBookingOperation
from ..models import Service, ServiceBundle, ServiceBundleItem

logger = logging.getLogger(__name__)


def format_price(price, currency_symbol=None):
    """
    Format prices consistently using the salon currency and exactly two
    decimal places, e.g. "CHF 25.00".
    """
    if currency_symbol is None:
        currency_symbol = getattr(settings, "CURRENCY_SYMBOL", "")
    try:
        price_decimal = Decimal(str(price))
    except (ValueError, TypeError, InvalidOperation):
        price_decimal = Decimal("0")
    return f"{currency_symbol}{price_decimal:.2f}"


def format_duration(duration_minutes):
    """
    "45 min", "1h", "1h 30min"
    """
    if duration_minutes < 60:
        return f"{duration_minutes} min"

    hours = duration_minutes // 60
    minutes = duration_minutes % 60

    if minutes == 0:
        return f"{hours}h"

    return f"{hours}h {minutes}min"


class CatalogService:
    @staticmethod
    @transaction.atomic
    def create_bundle(bundle_data: dict, items: list[dict]) -> ServiceBundle:
        """
        Create a bundle with its items.

        Args:
            bundle_data: ServiceBundle field values (name, bundle_price, ...)
            items: [{"service": <id or Service>, "quantity": 1, "notes": ""}, ...]

        Raises:
            InvalidBookingOperation: no items, or an item references an
            inactive service.
        """
        if not items:
            raise InvalidBookingOperation("A bundle needs at least one service.")

        resolved = []
        for position, item in enumerate(items):
            service = item["service"]
            if not isinstance(service, Service):
                service = Service.objects.filter(pk=service).first()
            if service is None or not service.active:
                raise InvalidBookingOperation("Every bundle service must exist and be active.")
            resolved.append((position, service, item))

        bundle = ServiceBundle.objects.create(**bundle_data)
        for position, service, item in resolved:
            ServiceBundleItem.objects.create(
                bundle=bundle,
                service=service,
                quantity=item.get("quantity", 1),
                display_order=item.get("display_order", position),
                notes=item.get("notes", ""),
            )

        logger.info(
            "Bundle %s created: price=%s original=%s duration=%s",
            bundle.pk, bundle.bundle_price, bundle.original_price, bundle.total_duration_minutes,
        )
        return bundle

    @staticmethod
    def deactivate_category(category) -> None:
        """Soft delete. Refused while the category still has active services."""
        if category.services.filter(active=True).exists():
            raise InvalidBookingOperation("Cannot delete a category that still has active services.")
        category.is_active = False
        category.save(update_fields=["is_active", "updated_at"])
        logger.info("Category %s deactivated", category.pk)
