from __future__ import annotations

from flask import current_app

from ..models import StoreSettings
from ..repositories import SettingsRepository
from ..validation import ValidationError


# Metadata shown on the storefront and receipts. The order counter is not
# listed: only checkout advances it.
EDITABLE_KEYS = ("store_name", "contact_number", "operating_hours", "address")

DEFAULT_STORE_SETTINGS = {
    "store_name": "BAKERIST — Mabini Bakery",
    "contact_number": "+63 912 345 6789",
    "operating_hours": "6:00 AM - 8:00 PM Daily",
    "address": "Mabini, Batangas, Philippines",
}


class SettingsValidationError(ValidationError):
    pass


def get_settings(*, settings: SettingsRepository | None = None) -> StoreSettings:
    settings = settings or SettingsRepository()
    row = settings.get_or_create()
    settings.session.commit()
    return row


def update_settings(patch: dict, *, settings: SettingsRepository | None = None) -> StoreSettings:
    if not isinstance(patch, dict) or not patch:
        raise SettingsValidationError("No settings provided")

    for key, value in patch.items():
        if key not in EDITABLE_KEYS:
            raise SettingsValidationError(f"Setting not editable: {key}", field=key)
        if value is not None and not isinstance(value, str):
            raise SettingsValidationError(f"{key} must be a string", field=key)

    settings = settings or SettingsRepository()
    row = settings.get_or_create()
    for key, value in patch.items():
        setattr(row, key, value.strip() if isinstance(value, str) else None)
    settings.session.commit()

    current_app.logger.info("Store settings updated: %s", ", ".join(sorted(patch)))
    return row


def seed_defaults(*, next_order_number: int | None = None, settings: SettingsRepository | None = None) -> StoreSettings:
    """Fill blank metadata with the defaults. Existing values are kept."""
    settings = settings or SettingsRepository()
    row = settings.get_or_create()
    for key, value in DEFAULT_STORE_SETTINGS.items():
        if not getattr(row, key):
            setattr(row, key, value)
    if next_order_number is not None:
        row.next_order_number = next_order_number
    settings.session.commit()
    return row
