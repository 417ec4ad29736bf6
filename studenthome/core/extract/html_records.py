# studenthome/core/extract/html_records.py


"""
Scraped HTML page ({url, text}) → raw listing records.

Order of attempts:
  1) <script id="__NEXT_DATA__"> JSON
  2) window.__INITIAL_STATE__ = {...}; assignments
  3) data-property / data-listing / data-result JSON attributes
  4) fallback: up to 10 "£N pcm|pw|per week|per month" price hints

Listings found in embedded JSON are any objects with a price and a
title/summary/displayAddress, wherever they are nested.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator
from typing import Any

from bs4 import BeautifulSoup

from studenthome.core.normalize.address import address_from_soup, location_from_url
from studenthome.schemas.models import (
    UNKNOWN_LOCATION,
    ExtractedBatch,
    PriceHintRecord,
    RawRecord,
    SourceContext,
    University,
)

from .shapes import SOURCE_ORIGINS, is_listing, origin_of, source_from_url, to_raw_record

logger = logging.getLogger(__name__)

MAX_PRICE_HINTS = 10

# ---------- Regex tables ----------

_HTML_SNIFF_RE = re.compile(r"<\s*(?:html|body|div|script|head)\b", re.IGNORECASE)
_INITIAL_STATE_RE = re.compile(r"window\.__INITIAL_STATE__\s*=\s*")
_PRICE_HINT_RE = re.compile(
    r"£\s?([\d,]+(?:\.\d+)?)\s*(pcm|pw|per\s+week|per\s+month|/\s*week|/\s*month)",
    re.IGNORECASE,
)
_DATA_ATTRS = ("data-property", "data-listing", "data-result")

_decoder = json.JSONDecoder()


def looks_like_html(text: Any) -> bool:
    return isinstance(text, str) and bool(_HTML_SNIFF_RE.search(text))


# ---------- JSON walking ----------


def _walk_listings(obj: Any, _depth: int = 0) -> Iterator[dict[str, Any]]:
    """Yield listing dicts anywhere in `obj`; a listing's own children are not searched."""
    if _depth > 40:
        return
    if isinstance(obj, list):
        for item in obj:
            yield from _walk_listings(item, _depth + 1)
    elif isinstance(obj, dict):
        if is_listing(obj):
            yield obj
            return
        for value in obj.values():
            yield from _walk_listings(value, _depth + 1)


def _next_data(soup: BeautifulSoup) -> list[Any]:
    node = soup.find("script", id="__NEXT_DATA__")
    if not node or not node.string:
        return []
    try:
        return [json.loads(node.string)]
    except json.JSONDecodeError as e:
        logger.debug("__NEXT_DATA__ not JSON: %s", e)
        return []


def _initial_state(soup: BeautifulSoup) -> list[Any]:
    out: list[Any] = []
    for node in soup.find_all("script"):
        text = node.string or ""
        m = _INITIAL_STATE_RE.search(text)
        if not m:
            continue
        try:
            obj, _ = _decoder.raw_decode(text[m.end() :].lstrip())
        except json.JSONDecodeError as e:
            logger.debug("__INITIAL_STATE__ not JSON: %s", e)
            continue
        out.append(obj)
    return out


def _data_attributes(soup: BeautifulSoup) -> list[Any]:
    out: list[Any] = []
    for attr in _DATA_ATTRS:
        for node in soup.find_all(attrs={attr: True}):
            raw = node.get(attr)
            if not isinstance(raw, str):
                continue
            try:
                out.append(json.loads(raw))
            except json.JSONDecodeError:
                continue
    return out


# ---------- Price-hint fallback ----------


def _price_hints(soup: BeautifulSoup, ctx: SourceContext, location: str) -> list[RawRecord]:
    text = soup.get_text(" ", strip=True)
    address = address_from_soup(soup)
    records: list[RawRecord] = []
    for i, m in enumerate(_PRICE_HINT_RE.finditer(text), start=1):
        if i > MAX_PRICE_HINTS:
            break
        records.append(
            PriceHintRecord(
                data={
                    "title": f"Student Property {i} in {location}",
                    "price": m.group(0),
                    "location": location,
                    "address": address,
                },
                context=ctx,
            )
        )
    return records


# ---------- Public API ----------


def university_from_url(url: str | None) -> University | None:
    loc = location_from_url(url)
    if not loc:
        return None
    return University(name=loc, location=loc, source_url=url)


def extract_from_html(
    html: str,
    page_url: str | None = None,
    *,
    source_hint: str | None = None,
    input_file: str | None = None,
) -> ExtractedBatch:
    """Parse one scraped page into raw records plus the university it was scraped for."""
    uni = university_from_url(page_url)
    source = source_hint or source_from_url(page_url)
    ctx = SourceContext(
        source=source,
        origin=origin_of(page_url) or SOURCE_ORIGINS.get(source),
        page_url=page_url,
        university=uni.name if uni else None,
        input_file=input_file,
    )

    soup = BeautifulSoup(html, "lxml")

    records: list[RawRecord] = []
    unrecognized = 0
    seen = 0
    for blob in (*_next_data(soup), *_initial_state(soup), *_data_attributes(soup)):
        for listing in _walk_listings(blob):
            seen += 1
            rec = to_raw_record(listing, ctx)
            if rec is None:
                unrecognized += 1
            else:
                records.append(rec)

    if not records:
        location = location_from_url(page_url) or UNKNOWN_LOCATION
        records = _price_hints(soup, ctx, location)
        seen += len(records)

    logger.debug("page %s: %d records (%d embedded listings)", page_url, len(records), seen)
    return ExtractedBatch(
        records=records,
        universities=[uni] if uni else [],
        items_seen=seen,
        items_unrecognized=unrecognized,
        source_file=input_file,
    )


__all__ = ["extract_from_html", "looks_like_html", "university_from_url", "MAX_PRICE_HINTS"]
