# studenthome/core/extract/shapes.py
"""
Source-shape detection for listing-like dicts.

Public API
----------
- is_listing(obj)           → price plus title/summary/displayAddress
- detect_shape(obj)         → "rightmove" | "catalog" | "loose" | None
- to_raw_record(obj, ctx)   → RawRecord | None
- source_from_url(url)      → provenance tag derived from the host
- origin_of(url)            → "https://host" or None
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from studenthome.schemas.models import (
    CatalogRecord,
    LooseRecord,
    RawRecord,
    RightmoveRecord,
    SourceContext,
)

SOURCE_ORIGINS: dict[str, str] = {
    "rightmove": "https://www.rightmove.co.uk",
    "brightdata-rightmove": "https://www.rightmove.co.uk",
    "zoopla": "https://www.zoopla.co.uk",
    "openrent": "https://www.openrent.co.uk",
}

_HOST_SOURCES = (
    ("rightmove.", "rightmove"),
    ("zoopla.", "zoopla"),
    ("openrent.", "openrent"),
)

_RIGHTMOVE_KEYS = frozenset({"displayAddress", "propertyUrl", "propertyImages", "propertySubType", "propertyTypeFullDescription"})
_CATALOG_KEYS = frozenset({"price_type", "full_address", "source_url", "landlord_name", "property_url", "all_images"})
_TITLE_KEYS = ("title", "name", "summary", "heading", "displayAddress")
_ADDRESS_KEYS = ("address", "location", "city", "full_address", "displayAddress")


def _present(obj: dict[str, Any], key: str) -> bool:
    return obj.get(key) not in (None, "", [], {})


def is_listing(obj: Any) -> bool:
    """A dict that carries a price and something to call it by."""
    if not isinstance(obj, dict) or not _present(obj, "price"):
        return False
    return any(_present(obj, k) for k in ("title", "summary", "displayAddress"))


def detect_shape(obj: Any) -> str | None:
    if not isinstance(obj, dict):
        return None
    keys = set(obj)
    price = obj.get("price")
    if keys & _RIGHTMOVE_KEYS or (isinstance(price, dict) and ("amount" in price or "displayPrices" in price)):
        return "rightmove"
    has_title = any(_present(obj, k) for k in _TITLE_KEYS)
    if keys & _CATALOG_KEYS and has_title:
        return "catalog"
    has_price = _present(obj, "price") or _present(obj, "rent")
    if has_title or (has_price and any(_present(obj, k) for k in _ADDRESS_KEYS)):
        return "loose"
    return None


def to_raw_record(obj: Any, ctx: SourceContext) -> RawRecord | None:
    shape = detect_shape(obj)
    if shape == "rightmove":
        return RightmoveRecord(data=obj, context=ctx)
    if shape == "catalog":
        return CatalogRecord(data=obj, context=ctx)
    if shape == "loose":
        return LooseRecord(data=obj, context=ctx)
    return None


def source_from_url(url: str | None, default: str = "scraped") -> str:
    host = (urlparse(url).netloc if url else "").lower()
    for needle, tag in _HOST_SOURCES:
        if needle in host:
            return tag
    return default


def origin_of(url: str | None) -> str | None:
    if not url:
        return None
    p = urlparse(url)
    if not (p.scheme and p.netloc):
        return None
    return f"{p.scheme}://{p.netloc}"


__all__ = [
    "SOURCE_ORIGINS",
    "is_listing",
    "detect_shape",
    "to_raw_record",
    "source_from_url",
    "origin_of",
]
