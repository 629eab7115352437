"""
targets.py
----------
What a booking is for: a single Service or a ServiceBundle.

A booking stores the choice as two nullable foreign keys; everything else in
the code works with the small wrappers below so it never has to check which
column is set.
"""

from dataclasses import dataclass
from decimal import Decimal

from ..exceptions import ResourceNotFound
from ..models import Service, ServiceBundle


@dataclass(frozen=True)
class ServiceTarget:
    service: Service

    kind = "service"

    @property
    def id(self) -> int:
        return self.service.pk

    @property
    def name(self) -> str:
        return self.service.name

    @property
    def duration_minutes(self) -> int:
        return self.service.duration_minutes

    @property
    def price(self) -> Decimal:
        return self.service.price

    def is_bookable_on(self, day) -> bool:
        return self.service.active

    def booking_fields(self) -> dict:
        return {"service": self.service, "bundle": None}


@dataclass(frozen=True)
class BundleTarget:
    bundle: ServiceBundle

    kind = "bundle"

    @property
    def id(self) -> int:
        return self.bundle.pk

    @property
    def name(self) -> str:
        return self.bundle.name

    @property
    def duration_minutes(self) -> int:
        return self.bundle.total_duration_minutes

    @property
    def price(self) -> Decimal:
        return self.bundle.bundle_price

    def is_bookable_on(self, day) -> bool:
        return self.bundle.is_bookable_on(day)

    def booking_fields(self) -> dict:
        return {"service": None, "bundle": self.bundle}


def resolve_target(service_id=None, bundle_id=None):
    """
    Look up the service or bundle by id.

    Exactly one id must be given. Unknown ids raise ResourceNotFound; whether
    the target is active is left to the caller, which knows the booking date.
    """
    if bool(service_id) == bool(bundle_id):
        raise ValueError("Provide exactly one of service or bundle.")

    if service_id:
        service = Service.objects.filter(pk=service_id).first()
        if service is None:
            raise ResourceNotFound("Service not found.")
        return ServiceTarget(service)

    bundle = ServiceBundle.objects.filter(pk=bundle_id).first()
    if bundle is None:
        raise ResourceNotFound("Bundle not found.")
    return BundleTarget(bundle)


def target_for_booking(booking):
    if booking.service_id:
        return ServiceTarget(booking.service)
    return BundleTarget(booking.bundle)
