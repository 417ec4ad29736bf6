# studenthome/core/validate.py
"""
Acceptance rules for canonical properties.

A record is persisted only if:
  - MIN_PRICE < price <= MAX_PRICE
  - the title is non-empty
  - the location is known, or a postcode pins it down
"""

from __future__ import annotations

from studenthome.schemas.models import UNKNOWN_LOCATION, Property

MIN_PRICE = 10.0
MAX_PRICE = 15000.0

REASON_PRICE = "price out of range"
REASON_TITLE = "missing title"
REASON_LOCATION = "unknown location"


def validation_reason(prop: Property) -> str | None:
    """First rule the property breaks, or None when it is acceptable."""
    if not (MIN_PRICE < prop.price <= MAX_PRICE):
        return REASON_PRICE
    if not prop.title.strip():
        return REASON_TITLE
    location = (prop.location or "").strip()
    if (not location or location == UNKNOWN_LOCATION) and not prop.postcode:
        return REASON_LOCATION
    return None


def validate(prop: Property) -> bool:
    return validation_reason(prop) is None
