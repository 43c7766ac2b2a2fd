# Overview: Service-layer operations for delivery zones and shipping fees.

from __future__ import annotations

from flask import current_app

from ..models import DeliveryZone
from ..repositories import DeliveryZoneRepository
from ..validation import ValidationError


# Orders with a subtotal strictly above PHP 300.00 ship free
FREE_SHIPPING_THRESHOLD_CENTS = 30_000

# Fee for a barangay with no zone row: PHP 50.00
DEFAULT_SHIPPING_FEE_CENTS = 5_000


def zone_fee(barangay: str | None, *, zones: DeliveryZoneRepository | None = None) -> int:
    """Mapped fee for the barangay, or the default fee."""
    if not barangay:
        return DEFAULT_SHIPPING_FEE_CENTS
    zones = zones or DeliveryZoneRepository()
    zone = zones.get_by_barangay(barangay.strip())
    if zone is None:
        return DEFAULT_SHIPPING_FEE_CENTS
    return zone.shipping_fee_cents


def resolve_shipping_fee(
    barangay: str | None,
    subtotal_cents: int,
    *,
    zones: DeliveryZoneRepository | None = None,
) -> int:
    """
    Shipping fee for an order.

    0 when subtotal_cents > FREE_SHIPPING_THRESHOLD_CENTS, otherwise the
    barangay's zone fee.
    """
    if subtotal_cents > FREE_SHIPPING_THRESHOLD_CENTS:
        return 0
    return zone_fee(barangay, zones=zones)


def estimate_shipping_fee(subtotal_cents: int) -> int:
    """Fee shown in the cart before a barangay is chosen."""
    if subtotal_cents > FREE_SHIPPING_THRESHOLD_CENTS:
        return 0
    return DEFAULT_SHIPPING_FEE_CENTS


def list_zones() -> list[DeliveryZone]:
    return DeliveryZoneRepository().list()


def upsert_zone(barangay: str, shipping_fee_cents, *, zones: DeliveryZoneRepository | None = None) -> DeliveryZone:
    """Create or update the fee for a barangay."""
    barangay = (barangay or "").strip()
    if not barangay:
        raise ValidationError("barangay is required", field="barangay")
    if (
        isinstance(shipping_fee_cents, bool)
        or not isinstance(shipping_fee_cents, int)
        or shipping_fee_cents < 0
    ):
        raise ValidationError("shipping_fee_cents must be a non-negative integer", field="shipping_fee_cents")

    zones = zones or DeliveryZoneRepository()
    zone = zones.get_by_barangay(barangay)
    if zone is None:
        zone = zones.add(DeliveryZone(barangay=barangay, shipping_fee_cents=shipping_fee_cents))
    else:
        zone.shipping_fee_cents = shipping_fee_cents
    zones.session.commit()

    current_app.logger.info("Delivery zone %s fee set to %s", barangay, shipping_fee_cents)
    return zone
