# tests/utils.py
"""
Single source of truth for test data, factories, and canonical payloads.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from studenthome.schemas.models import (
    CatalogRecord,
    LooseRecord,
    Property,
    PropertyImage,
    RightmoveRecord,
    SourceContext,
    University,
)

# -----------------------------
# Global defaults (edit once)
# -----------------------------

DEFAULT_CITY = "Manchester"
DEFAULT_ADDRESS = "42 Oxford Road, Manchester M13 9PL"
DEFAULT_POSTCODE = "M13 9PL"
DEFAULT_IMAGE = "https://media.example.co.uk/p/1.jpg"
RIGHTMOVE_PAGE = "https://www.rightmove.co.uk/student-accommodation/Manchester.html"


# -----------------------------
# Canonical models
# -----------------------------


def make_image(url: str = DEFAULT_IMAGE, *, is_primary: bool = False, order: int = 0, alt_text: str = "") -> PropertyImage:
    return PropertyImage(url=url, is_primary=is_primary, order=order, alt_text=alt_text or f"Property image {order + 1}")


def make_property(**overrides: Any) -> Property:
    """A valid Property; override any field."""
    base: dict[str, Any] = {
        "title": "2 bed flat near campus",
        "price": 150.0,
        "price_type": "weekly",
        "location": DEFAULT_CITY,
        "postcode": DEFAULT_POSTCODE,
        "full_address": DEFAULT_ADDRESS,
        "bedrooms": 2,
        "bathrooms": 1,
        "property_type": "flat",
        "source": "scraped",
        "images": [make_image(is_primary=True)],
    }
    base.update(overrides)
    return Property(**base)


def make_university(name: str = "Manchester", location: str | None = "Manchester") -> University:
    return University(name=name, location=location, source_url=RIGHTMOVE_PAGE)


# -----------------------------
# Raw items (dicts as they appear in input files)
# -----------------------------


def rightmove_item(**overrides: Any) -> dict[str, Any]:
    item: dict[str, Any] = {
        "summary": "Modern 2 bedroom flat close to the university with bills included",
        "displayAddress": "Oxford Road, Fallowfield, Manchester, M14 6HR",
        "price": {"amount": 1200, "frequency": "monthly", "displayPrices": [{"displayPrice": "£1,200 pcm"}]},
        "bedrooms": 2,
        "bathrooms": 1,
        "propertySubType": "Flat",
        "propertyUrl": "/properties/123456#/?channel=RES_LET",
        "customer": {"branchDisplayName": "Campus Lettings, Manchester"},
        "propertyImages": {
            "mainImageSrc": "//media.rightmove.co.uk/main.jpg",
            "images": [
                {"srcUrl": "https://media.rightmove.co.uk/1.jpg"},
                {"srcUrl": "https://media.rightmove.co.uk/placeholder.png"},
                {"srcUrl": "http://media.rightmove.co.uk/2.jpg"},
            ],
        },
    }
    item.update(overrides)
    return item


def catalog_item(**overrides: Any) -> dict[str, Any]:
    item: dict[str, Any] = {
        "title": "Studio in Leeds city centre",
        "price": 165,
        "price_type": "weekly",
        "location": "Leeds",
        "full_address": "1 Park Row, Leeds LS1 5AB",
        "postcode": "LS1 5AB",
        "bedrooms": 1,
        "bathrooms": 1,
        "property_type": "studio",
        "features": ["WiFi", "Gym"],
        "images": [
            {"url": "https://img.example.com/a.jpg", "alt": "Living area", "is_primary": False, "image_order": 0},
            {"url": "https://img.example.com/b.jpg", "alt": "Bedroom", "is_primary": True, "image_order": 1},
        ],
        "source": "comprehensive-scraper",
        "source_url": "https://www.example.com/listing/1",
    }
    item.update(overrides)
    return item


def loose_item(**overrides: Any) -> dict[str, Any]:
    item: dict[str, Any] = {
        "title": "Room in shared house",
        "price": "£550 pcm",
        "address": "12 Hyde Park Road, Leeds LS6 1AB",
        "images": ["/img/1.jpg", "//cdn.example.com/2.jpg"],
        "url": "https://www.openrent.co.uk/property/999",
    }
    item.update(overrides)
    return item


def rightmove_raw(**overrides: Any) -> RightmoveRecord:
    return RightmoveRecord(data=rightmove_item(**overrides), context=SourceContext(source="rightmove"))


def catalog_raw(**overrides: Any) -> CatalogRecord:
    return CatalogRecord(data=catalog_item(**overrides), context=SourceContext(source="comprehensive-scraper"))


def loose_raw(**overrides: Any) -> LooseRecord:
    ctx = SourceContext(source="openrent", origin="https://www.openrent.co.uk")
    return LooseRecord(data=loose_item(**overrides), context=ctx)


# -----------------------------
# Scraped pages
# -----------------------------

NEXT_DATA_HTML = """
<html><head><title>Student accommodation</title></head><body>
<script id="__NEXT_DATA__" type="application/json">
{"props": {"pageProps": {"searchResults": {"properties": [
  {"summary": "Ensuite room, bills included", "price": {"amount": 145, "frequency": "weekly"},
   "displayAddress": "Wilmslow Road, Rusholme, Manchester, M14", "propertyUrl": "/properties/1"},
  {"summary": "Two bed flat", "price": {"amount": 1100, "frequency": "monthly"},
   "displayAddress": "Upper Brook Street, Manchester, M13", "propertyUrl": "/properties/2"}
]}}}}
</script>
</body></html>
"""

INITIAL_STATE_HTML = """
<html><body>
<script>
window.__INITIAL_STATE__ = {"search": {"properties": [
  {"title": "Three bed house", "price": "£1,500 pcm", "displayAddress": "Ecclesall Road, Sheffield, S11"}
]}};
</script>
</body></html>
"""

PRICE_HINT_HTML = """
<html><body>
<div class="card">Cosy room £120 pw</div>
<div class="card">Large room £560 pcm</div>
<div class="card">Deposit £200</div>
</body></html>
"""


def scraped_page(url: str = RIGHTMOVE_PAGE, html: str = NEXT_DATA_HTML) -> dict[str, Any]:
    return {"url": url, "text": html}


# -----------------------------
# Files
# -----------------------------


def write_json(directory: Path, name: str, doc: Any) -> Path:
    path = directory / name
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


def scenario_100_items() -> list[dict[str, Any]]:
    """
    100 catalog-shaped items:
      - 80 valid and distinct
      - 10 with out-of-range prices (50000)
      - 5 exact duplicates of valid items
      - 5 without a title
    """
    cities = ["Manchester", "Leeds", "Bristol", "Nottingham"]
    items: list[dict[str, Any]] = []
    for i in range(80):
        items.append(
            catalog_item(
                title=f"Listing {i}",
                price=100 + i,
                location=cities[i % len(cities)],
                full_address=None,
                postcode=None,
                images=[{"url": f"https://img.example.com/{i}.jpg"}],
            )
        )
    for i in range(10):
        items.append(catalog_item(title=f"Mansion {i}", price=50000, location="London"))
    for i in range(5):
        items.append(dict(items[i]))
    for i in range(5):
        nameless = catalog_item(price=200 + i, location="York")
        nameless.pop("title")
        items.append(nameless)
    return items
