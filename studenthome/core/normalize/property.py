# studenthome/core/normalize/property.py


"""
Raw record → canonical Property.

Each source shape has its own adapter that pulls the shape's fields into a
common `_Fields` bag; `_build` then applies the shared rules (price parsing,
location precedence, postcode, images, clamps) once.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from studenthome.schemas.labels import (
    UNAVAILABLE_TOKENS,
    UNFURNISHED_TOKENS,
    normalize_features,
    normalize_features_from_text,
    normalize_property_type,
)
from studenthome.schemas.models import (
    Failed,
    NormalizeOutcome,
    Ok,
    PriceType,
    Property,
    RawRecord,
    Skipped,
    SourceContext,
)

from .address import extract_postcode, resolve_location
from .images import build_images
from .price import parse_price, price_type_from_frequency

logger = logging.getLogger(__name__)

RIGHTMOVE_ORIGIN = "https://www.rightmove.co.uk"
NO_SIGNAL = "no usable signal"

_INT_RE = re.compile(r"\d+")
_STUDIO_RE = re.compile(r"(?i)\bstudio\b")


@dataclass
class _Fields:
    title: Any = None
    price: Any = None
    price_hint: str | None = None
    price_type: Any = None
    explicit_locations: list[Any] = field(default_factory=list)
    full_address: Any = None
    postcode: Any = None
    bedrooms: Any = None
    bathrooms: Any = None
    property_type: Any = None
    furnished: Any = None
    available: Any = None
    description: Any = None
    landlord_name: Any = None
    features: list[Any] = field(default_factory=list)
    images: list[Any] = field(default_factory=list)
    main_image: Any = None
    source: str | None = None
    source_url: Any = None
    university: Any = None


# ---------- Small coercions ----------


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dict | list):
        return None
    s = str(value).strip()
    return s or None


def _first_text(data: dict[str, Any], *keys: str) -> str | None:
    for k in keys:
        s = _text(data.get(k))
        if s:
            return s
    return None


def _first_int(value: Any, *, lo: int, hi: int, default: int = 1) -> int:
    """First integer in `value`, clamped to [lo, hi]; 'studio' counts as one."""
    n: int | None = None
    if isinstance(value, bool):
        n = None
    elif isinstance(value, int | float):
        n = int(value)
    elif isinstance(value, str):
        m = _INT_RE.search(value)
        if m:
            n = int(m.group(0))
        elif _STUDIO_RE.search(value):
            n = 1
    if n is None:
        n = default
    return max(lo, min(hi, n))


def _flag(value: Any, negative_tokens: tuple[str, ...], default: bool = True) -> bool:
    """Explicit bools win; text is True unless it carries a negative token."""
    if isinstance(value, bool):
        return value
    s = _text(value)
    if not s:
        return default
    ls = s.lower()
    return not any(tok in ls for tok in negative_tokens)


def _absolute_url(url: Any, origin: str | None) -> str | None:
    s = _text(url)
    if not s:
        return None
    if s.startswith("//"):
        return "https:" + s
    if s.startswith("/") and origin:
        return origin.rstrip("/") + s
    return s if s.lower().startswith("http") else None


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


# =========================
# Per-shape adapters
# =========================


def _from_rightmove(data: dict[str, Any], ctx: SourceContext) -> _Fields:
    display = _text(data.get("displayAddress"))
    # Rightmove addresses read "street, area, city, outcode"; the city sits second from last
    parts = [p.strip() for p in (display or "").split(",") if p.strip()]
    city_part = parts[-2] if len(parts) >= 2 else None

    block = data.get("propertyImages") if isinstance(data.get("propertyImages"), dict) else {}
    images = _list(data.get("images")) or _list(block.get("images"))
    customer = data.get("customer") if isinstance(data.get("customer"), dict) else {}

    return _Fields(
        title=_first_text(data, "title", "propertyTypeFullDescription", "summary"),
        price=data.get("price"),
        price_hint=_first_text(data, "priceText", "displayPrice"),
        explicit_locations=[data.get("location"), city_part, display],
        full_address=display,
        postcode=display,
        bedrooms=data.get("bedrooms"),
        bathrooms=data.get("bathrooms"),
        property_type=_first_text(data, "propertySubType", "propertyType"),
        furnished=data.get("furnishType") if data.get("furnished") is None else data.get("furnished"),
        available=data.get("displayStatus"),
        description=_first_text(data, "summary", "description"),
        landlord_name=_text(customer.get("branchDisplayName")),
        features=_list(data.get("keyFeatures")) or _list(data.get("features")),
        images=images,
        main_image=block.get("mainImageSrc") or data.get("mainImageSrc"),
        source="rightmove",
        source_url=_absolute_url(data.get("propertyUrl"), RIGHTMOVE_ORIGIN) or ctx.page_url,
        university=data.get("university"),
    )


def _from_catalog(data: dict[str, Any], ctx: SourceContext) -> _Fields:
    features = [f.get("feature_text") if isinstance(f, dict) else f for f in _list(data.get("features"))]
    images = _list(data.get("images")) or _list(data.get("all_images"))
    return _Fields(
        title=_first_text(data, "title", "name"),
        price=data.get("price"),
        price_type=data.get("price_type"),
        explicit_locations=[data.get("location"), data.get("city")],
        full_address=_first_text(data, "full_address", "address"),
        postcode=_first_text(data, "postcode") or _first_text(data, "full_address", "address"),
        bedrooms=data.get("bedrooms"),
        bathrooms=data.get("bathrooms"),
        property_type=data.get("property_type"),
        furnished=data.get("furnished") if data.get("furnished") is not None else data.get("furnished_status"),
        available=data.get("available") if data.get("available") is not None else data.get("availability"),
        description=data.get("description"),
        landlord_name=_first_text(data, "landlord_name", "landlord"),
        features=features,
        images=images,
        main_image=data.get("main_image"),
        source=_text(data.get("source")),
        source_url=_absolute_url(data.get("source_url") or data.get("property_url"), ctx.origin) or ctx.page_url,
        university=data.get("university"),
    )


def _from_loose(data: dict[str, Any], ctx: SourceContext) -> _Fields:
    address = _first_text(data, "address", "displayAddress", "full_address")
    return _Fields(
        title=_first_text(data, "title", "name", "summary", "heading"),
        price=data.get("price") if data.get("price") is not None else data.get("rent"),
        price_type=data.get("price_type") or data.get("frequency"),
        explicit_locations=[data.get("location"), data.get("city"), address],
        full_address=address,
        postcode=_first_text(data, "postcode") or address,
        bedrooms=data.get("bedrooms") if data.get("bedrooms") is not None else data.get("beds"),
        bathrooms=data.get("bathrooms") if data.get("bathrooms") is not None else data.get("baths"),
        property_type=_first_text(data, "property_type", "type", "propertyType"),
        furnished=data.get("furnished"),
        available=data.get("available") if data.get("available") is not None else data.get("status"),
        description=_first_text(data, "description", "summary"),
        landlord_name=_first_text(data, "landlord_name", "landlord", "agent"),
        features=_list(data.get("features")),
        images=_list(data.get("images")),
        main_image=data.get("image") or data.get("main_image"),
        source=_text(data.get("source")),
        source_url=_absolute_url(data.get("url") or data.get("link") or data.get("source_url"), ctx.origin)
        or ctx.page_url,
        university=data.get("university"),
    )


def _from_price_hint(data: dict[str, Any], ctx: SourceContext) -> _Fields:
    return _Fields(
        title=data.get("title"),
        price=data.get("price"),
        explicit_locations=[data.get("location"), data.get("address")],
        full_address=data.get("address"),
        postcode=data.get("address"),
        source_url=ctx.page_url,
        university=ctx.university,
    )


_ADAPTERS = {
    "rightmove": _from_rightmove,
    "catalog": _from_catalog,
    "loose": _from_loose,
    "price_hint": _from_price_hint,
}


# =========================
# Shared rules
# =========================


def _has_signal(f: _Fields) -> bool:
    if _text(f.title):
        return True
    if f.price not in (None, "", {}, []):
        return True
    return any(_text(v) for v in (*f.explicit_locations, f.full_address))


def _build(f: _Fields, ctx: SourceContext) -> Property:
    amount, ptype = parse_price(f.price, hint=f.price_hint)
    price_type: PriceType = price_type_from_frequency(f.price_type, ptype)

    title = _text(f.title) or ""
    description = _text(f.description)
    url = _text(f.source_url)

    location = resolve_location(
        f.explicit_locations,
        free_text=(title, description),
        url=url or ctx.page_url,
    )

    features = normalize_features(f.features)
    for label in normalize_features_from_text(" ".join(p for p in (title, description or "") if p)):
        if label.value not in features:
            features.append(label.value)

    furnished_text = f.furnished if f.furnished is not None else title
    return Property(
        title=title,
        price=amount,
        price_type=price_type,
        location=location,
        postcode=extract_postcode(_text(f.postcode)),
        full_address=_text(f.full_address),
        bedrooms=_first_int(f.bedrooms, lo=1, hi=10),
        bathrooms=_first_int(f.bathrooms, lo=1, hi=5),
        property_type=normalize_property_type(_text(f.property_type)),
        furnished=_flag(furnished_text, UNFURNISHED_TOKENS),
        available=_flag(f.available, UNAVAILABLE_TOKENS),
        description=description,
        landlord_name=_text(f.landlord_name),
        features=features,
        source=f.source or ctx.source,
        source_url=url,
        university=_text(f.university) or ctx.university,
        images=build_images(f.images, origin=ctx.origin, main_image=f.main_image),
    )


# =========================
# Public API
# =========================


def normalize(raw: RawRecord, context: SourceContext | None = None) -> NormalizeOutcome:
    """
    Map one raw record to Ok(Property) | Skipped(reason) | Failed(error).

    `context` overrides the record's own provenance when given. No I/O.
    """
    ctx = context or raw.context
    try:
        adapter = _ADAPTERS[raw.shape]
        fields = adapter(raw.data, ctx)
        if not _has_signal(fields):
            return Skipped(reason=NO_SIGNAL)
        return Ok(record=_build(fields, ctx))
    except (ValidationError, ValueError, TypeError, KeyError, AttributeError) as e:
        logger.debug("normalize failed for %s record: %s", raw.shape, e)
        return Failed(error=f"{type(e).__name__}: {e}")


__all__ = ["normalize", "NO_SIGNAL", "RIGHTMOVE_ORIGIN"]
