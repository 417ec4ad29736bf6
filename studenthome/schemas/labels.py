# studenthome/schemas/labels.py
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from enum import Enum
from re import Pattern
from typing import TypeVar

T = TypeVar("T")

# =========================
# Known places
# =========================

# Canonical spellings stored in `properties.location`.
UK_CITIES: tuple[str, ...] = (
    "Aberdeen",
    "Aberystwyth",
    "Bangor",
    "Bath",
    "Bedford",
    "Belfast",
    "Birmingham",
    "Bolton",
    "Bournemouth",
    "Bradford",
    "Brighton",
    "Bristol",
    "Cambridge",
    "Canterbury",
    "Cardiff",
    "Chester",
    "Chichester",
    "Colchester",
    "Coventry",
    "Derby",
    "Dundee",
    "Durham",
    "Edinburgh",
    "Exeter",
    "Glasgow",
    "Gloucester",
    "Greenwich",
    "Guildford",
    "Hatfield",
    "Huddersfield",
    "Hull",
    "Keele",
    "Lancaster",
    "Leeds",
    "Leicester",
    "Lincoln",
    "Liverpool",
    "London",
    "Loughborough",
    "Luton",
    "Manchester",
    "Middlesbrough",
    "Newcastle",
    "Newport",
    "Northampton",
    "Norwich",
    "Nottingham",
    "Oxford",
    "Plymouth",
    "Portsmouth",
    "Preston",
    "Reading",
    "Salford",
    "Sheffield",
    "Southampton",
    "Stoke-on-Trent",
    "Sunderland",
    "Swansea",
    "Teesside",
    "Warwick",
    "Winchester",
    "Wolverhampton",
    "Worcester",
    "York",
)

# Alternate spellings seen in addresses and URL slugs → canonical city.
CITY_ALIASES: dict[str, str] = {
    "newcastle upon tyne": "Newcastle",
    "newcastle-upon-tyne": "Newcastle",
    "stoke on trent": "Stoke-on-Trent",
    "stoke": "Stoke-on-Trent",
    "kingston upon hull": "Hull",
    "brighton and hove": "Brighton",
    "brighton & hove": "Brighton",
}

# Listing-page prefixes stripped before resolving a location string.
LOCATION_PREFIXES_RE = re.compile(
    r"^(?:student\s+accommodation\s+in|properties\s+in|flats\s+in|houses\s+in|rooms\s+in|property\s+to\s+rent\s+in)\s*",
    re.IGNORECASE,
)

# =========================
# Features
# =========================


class FeatureLabel(str, Enum):
    bills_included = "Bills included"
    wifi = "WiFi"
    gym = "Gym"
    parking = "Parking"
    garden = "Garden"
    balcony = "Balcony"
    washing_machine = "Washing machine"
    dishwasher = "Dishwasher"
    en_suite = "En-suite"
    study_area = "Study area"
    common_room = "Common room"
    bike_storage = "Bike storage"
    concierge = "24h concierge"
    cinema_room = "Cinema room"
    pets_allowed = "Pets allowed"
    double_bed = "Double bed"


FEATURE_TOKEN_ALIASES: dict[str, FeatureLabel] = {
    "bills included": FeatureLabel.bills_included,
    "all bills included": FeatureLabel.bills_included,
    "inclusive of bills": FeatureLabel.bills_included,
    "wifi": FeatureLabel.wifi,
    "wi-fi": FeatureLabel.wifi,
    "broadband": FeatureLabel.wifi,
    "internet": FeatureLabel.wifi,
    "gym": FeatureLabel.gym,
    "fitness suite": FeatureLabel.gym,
    "parking": FeatureLabel.parking,
    "off street parking": FeatureLabel.parking,
    "garage": FeatureLabel.parking,
    "garden": FeatureLabel.garden,
    "balcony": FeatureLabel.balcony,
    "terrace": FeatureLabel.balcony,
    "washing machine": FeatureLabel.washing_machine,
    "laundry": FeatureLabel.washing_machine,
    "dishwasher": FeatureLabel.dishwasher,
    "en suite": FeatureLabel.en_suite,
    "ensuite": FeatureLabel.en_suite,
    "study area": FeatureLabel.study_area,
    "desk": FeatureLabel.study_area,
    "common room": FeatureLabel.common_room,
    "communal lounge": FeatureLabel.common_room,
    "bike storage": FeatureLabel.bike_storage,
    "cycle store": FeatureLabel.bike_storage,
    "concierge": FeatureLabel.concierge,
    "cinema room": FeatureLabel.cinema_room,
    "pets allowed": FeatureLabel.pets_allowed,
    "pet friendly": FeatureLabel.pets_allowed,
    "double bed": FeatureLabel.double_bed,
}

# =========================
# Property types
# =========================

PROPERTY_TYPE_ALIASES: dict[str, str] = {
    "studio": "studio",
    "studio flat": "studio",
    "flat": "flat",
    "apartment": "flat",
    "maisonette": "flat",
    "penthouse": "flat",
    "house": "house",
    "terraced": "house",
    "semi-detached": "house",
    "detached": "house",
    "bungalow": "house",
    "end of terrace": "house",
    "town house": "house",
    "house share": "shared",
    "flat share": "shared",
    "shared house": "shared",
    "hmo": "shared",
    "room": "room",
    "en suite room": "room",
    "student halls": "halls",
    "halls": "halls",
}

DEFAULT_PROPERTY_TYPE = "flat"

# Markers that mean the opposite of the default True flags.
UNFURNISHED_TOKENS = ("unfurnished",)
UNAVAILABLE_TOKENS = ("let agreed", "under offer", "no longer available", "let stc")

# =========================
# Regex compilation
# =========================


def _compile_map(m: Mapping[str, T]) -> list[tuple[Pattern[str], T]]:
    pats: list[tuple[Pattern[str], T]] = []
    # Longer keys first so "off street parking" beats "parking"
    for key in sorted(m.keys(), key=len, reverse=True):
        escaped = re.escape(key)
        flexible = escaped.replace(r"\ ", r"[ _\-]+")
        pattern = r"(?<![A-Za-z0-9])" + flexible + r"(?![A-Za-z0-9])"
        pats.append((re.compile(pattern, flags=re.IGNORECASE), m[key]))
    return pats


_FEATURE_PATTERNS = _compile_map(FEATURE_TOKEN_ALIASES)
_PROPERTY_TYPE_PATTERNS = _compile_map(PROPERTY_TYPE_ALIASES)

# City names that are also ordinary words ("1 bath", "reading room") only match capitalized.
_CASE_SENSITIVE_CITIES = {"Bath", "Reading"}


def _compile_cities() -> list[tuple[Pattern[str], str]]:
    pats = _compile_map({**{c.lower(): c for c in UK_CITIES if c not in _CASE_SENSITIVE_CITIES}, **CITY_ALIASES})
    for city in _CASE_SENSITIVE_CITIES:
        pats.append((re.compile(r"(?<![A-Za-z0-9])" + city + r"(?![A-Za-z0-9])"), city))
    return pats


_CITY_PATTERNS = _compile_cities()


# =========================
# Normalization helpers
# =========================


def normalize_features_from_text(text: str) -> list[FeatureLabel]:
    """Feature labels in order of first appearance in `text`."""
    hits: list[tuple[int, FeatureLabel]] = []
    for pat, val in _FEATURE_PATTERNS:
        m = pat.search(text)
        if m:
            hits.append((m.start(), val))
    out: list[FeatureLabel] = []
    for _, val in sorted(hits, key=lambda h: h[0]):
        if val not in out:
            out.append(val)
    return out


def normalize_features(values: Iterable[object]) -> list[str]:
    """
    Map raw feature strings to canonical labels; unknown short strings are kept
    as-is so curated exports don't lose information.
    """
    out: list[str] = []
    for v in values:
        s = str(v or "").strip()
        if not s:
            continue
        labels = normalize_features_from_text(s)
        if labels:
            for lab in labels:
                if lab.value not in out:
                    out.append(lab.value)
        elif len(s) <= 60 and s not in out:
            out.append(s)
    return out


def normalize_property_type(text: str | None) -> str:
    if not text:
        return DEFAULT_PROPERTY_TYPE
    for pat, val in _PROPERTY_TYPE_PATTERNS:
        if pat.search(text):
            return val
    return text.strip().lower()[:50] or DEFAULT_PROPERTY_TYPE


def find_city(text: str | None, cities: Iterable[str] | None = None) -> str | None:
    """
    Return the canonical city named in `text`, or None.

    With no explicit `cities`, uses the word-bounded UK list plus aliases.
    With an explicit list, matches are case-insensitive substrings; the longest
    match wins ("Manchester" over "Chester"), then list order.
    """
    if not text:
        return None
    if cities is not None:
        lt = text.lower()
        found: str | None = None
        for city in cities:
            if city and city.lower() in lt and (found is None or len(city) > len(found)):
                found = city
        return found
    best: tuple[int, str] | None = None
    for pat, city in _CITY_PATTERNS:
        m = pat.search(text)
        if m and (best is None or m.start() < best[0]):
            best = (m.start(), city)
    return best[1] if best else None


def is_known_city(location: str | None, cities: Iterable[str] = UK_CITIES) -> bool:
    return bool(location) and location in set(cities)
