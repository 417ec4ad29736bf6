# studenthome/core/normalize/images.py
"""
Image URL canonicalization and filtering.

  - "//host/a.jpg"  → "https://host/a.jpg"
  - "/a.jpg"        → "<source origin>/a.jpg"
  - "http://..."    → "https://..."
  - explicit default ports (:443, :80) are dropped
Anything that still does not start with "http" is rejected, as are
placeholder/logo URLs.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urljoin

from studenthome.schemas.models import IMAGE_URL_MAX, PropertyImage

MAX_IMAGES = 20

# URL fragments that mark non-listing artwork
_REJECT_SUBSTRINGS = ("placeholder", "logo")
_DEFAULT_PORT_RE = re.compile(r"^(https?://[^/:?#]+):(?:443|80)(?=[/?#]|$)", re.IGNORECASE)

# Keys under which scrapers stash the URL / caption / primary flag of an image object
_URL_KEYS = ("url", "srcUrl", "image_url", "src", "href")
_ALT_KEYS = ("alt", "alt_text", "caption")
_PRIMARY_KEYS = ("is_primary", "isPrimary", "primary")
_ORDER_KEYS = ("image_order", "order")


def is_rejected_image(url: str) -> bool:
    lu = url.lower()
    return any(s in lu for s in _REJECT_SUBSTRINGS)


def canonicalize_image_url(url: Any, origin: str | None = None) -> str | None:
    """Rewrite to absolute https, or None when the result is unusable."""
    if not isinstance(url, str):
        return None
    u = url.strip()
    if not u:
        return None
    if u.startswith("//"):
        u = "https:" + u
    elif u.startswith("/") and origin:
        u = urljoin(origin.rstrip("/") + "/", u.lstrip("/"))
    if u.lower().startswith("http://"):
        u = "https://" + u[len("http://") :]
    u = _DEFAULT_PORT_RE.sub(r"\1", u)
    if not u.lower().startswith("http"):
        return None
    return u[:IMAGE_URL_MAX]


def _first(obj: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for k in keys:
        v = obj.get(k)
        if v not in (None, ""):
            return v
    return None


def build_images(raw_images: Iterable[Any], *, origin: str | None = None, main_image: Any = None) -> list[PropertyImage]:
    """
    Turn a heterogeneous image list (strings or dicts) into ordered PropertyImages.

    - invalid, placeholder and logo URLs are dropped; duplicates collapse
    - an explicit `main_image` goes first and becomes primary
    - the rest follow their `image_order`/`order` hint; entries without one
      keep their list position
    - at most MAX_IMAGES are kept
    - exactly one primary: the first explicitly-flagged survivor, else the first image
    """
    candidates: list[tuple[str, str | None, bool]] = []

    main_url = canonicalize_image_url(main_image, origin)
    if main_url and not is_rejected_image(main_url):
        candidates.append((main_url, "Main property image", True))

    listed: list[tuple[int, str, str | None, bool]] = []
    for pos, img in enumerate(raw_images or []):
        if isinstance(img, Mapping):
            url = canonicalize_image_url(_first(img, _URL_KEYS), origin)
            alt = _first(img, _ALT_KEYS)
            primary = bool(_first(img, _PRIMARY_KEYS))
            order = _first(img, _ORDER_KEYS)
        else:
            url = canonicalize_image_url(img, origin)
            alt, primary, order = None, False, None
        if not url or is_rejected_image(url):
            continue
        rank = order if isinstance(order, int) and not isinstance(order, bool) else pos
        listed.append((rank, url, str(alt) if alt else None, primary))
    listed.sort(key=lambda c: c[0])
    candidates.extend((url, alt, primary) for _rank, url, alt, primary in listed)

    seen: set[str] = set()
    unique: list[tuple[str, str | None, bool]] = []
    for cand in candidates:
        if cand[0] not in seen:
            seen.add(cand[0])
            unique.append(cand)
    unique = unique[:MAX_IMAGES]

    primary_idx = next((i for i, c in enumerate(unique) if c[2]), 0)
    return [
        PropertyImage(
            url=url,
            alt_text=alt or f"Property image {i + 1}",
            is_primary=(i == primary_idx),
            order=i,
        )
        for i, (url, alt, _primary) in enumerate(unique)
    ]
