# studenthome/core/normalize/__init__.py
from __future__ import annotations

from .address import extract_postcode, humanize_slug, location_from_url, resolve_location
from .images import build_images, canonicalize_image_url, is_rejected_image
from .price import parse_price
from .property import NO_SIGNAL, normalize

__all__ = [
    "normalize",
    "NO_SIGNAL",
    "parse_price",
    "extract_postcode",
    "humanize_slug",
    "location_from_url",
    "resolve_location",
    "build_images",
    "canonicalize_image_url",
    "is_rejected_image",
]
