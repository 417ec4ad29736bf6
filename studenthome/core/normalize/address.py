# studenthome/core/normalize/address.py

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup

from studenthome.schemas.labels import LOCATION_PREFIXES_RE, find_city
from studenthome.schemas.models import UNKNOWN_LOCATION

# ----------------------------
# Postcode / slug patterns
# ----------------------------
_UK_POSTCODE_RE = re.compile(
    r"\b([A-Z]{1,2}\d[A-Z\d]?)\s?(\d[A-Z]{2})\b",
    re.IGNORECASE,
)
_SLUG_RE = re.compile(r"/student-accommodation/([^/?#]+)", re.IGNORECASE)
_FILE_EXT_RE = re.compile(r"\.(?:html?|php|aspx?|jsp)$", re.IGNORECASE)
_CAMEL_RE = re.compile(r"(?<=[a-z])(?=[A-Z])")


def _clean_space(s: str) -> str:
    return re.sub(r"\s+", " ", s).strip(" ,;|\n\t")


def _join_tokens(*parts: str) -> str | None:
    toks = [p for p in (p.strip(" ,") for p in parts) if p]
    if not toks:
        return None
    return _clean_space(", ".join(toks))


# ----------------------------
# Public API
# ----------------------------


def extract_postcode(text: str | None) -> str | None:
    """
    First UK postcode in `text`, uppercased with a single inner space.

    >>> extract_postcode("42 Oxford Road, Manchester M13 9PL")
    'M13 9PL'
    """
    if not text:
        return None
    m = _UK_POSTCODE_RE.search(text)
    if not m:
        return None
    return f"{m.group(1)} {m.group(2)}".upper()


def humanize_slug(segment: str) -> str:
    """'NewcastleUponTyne.html' → 'Newcastle Upon Tyne'; 'stoke-on-trent' → 'stoke on trent'."""
    s = _FILE_EXT_RE.sub("", unquote(segment))
    s = s.replace("-", " ").replace("_", " ").replace("+", " ")
    s = _CAMEL_RE.sub(" ", s)
    return _clean_space(s)


def location_from_url(url: str | None) -> str | None:
    """Humanized location from a `/student-accommodation/<slug>` path, or None."""
    if not url:
        return None
    m = _SLUG_RE.search(urlparse(url).path or url)
    if not m:
        return None
    human = humanize_slug(m.group(1))
    if not human:
        return None
    return find_city(human) or human


def clean_location_text(text: str | None) -> str | None:
    """
    Reduce a free-text location/address to a city name when one is present,
    else to the first comma part that is not just a postcode or house number.
    """
    if not text:
        return None
    s = _clean_space(LOCATION_PREFIXES_RE.sub("", str(text)))
    if not s or s.lower() == UNKNOWN_LOCATION.lower():
        return None

    # Street names often carry city names ("Oxford Road, Manchester"); the town comes last
    for part in reversed(s.split(",")):
        city = find_city(part)
        if city:
            return city

    for part in s.split(","):
        cleaned = _clean_space(_UK_POSTCODE_RE.sub("", part))
        if cleaned and not re.fullmatch(r"[\d\s]+", cleaned):
            return cleaned
    return None


def resolve_location(
    explicit: Iterable[str | None],
    *,
    free_text: Iterable[str | None] = (),
    url: str | None = None,
) -> str:
    """
    Location precedence:
      1) first explicit location/address field that is set and not "Unknown"
      2) a known UK city named in the title/description/URL text
      3) the humanized `/student-accommodation/<slug>` URL segment
      4) "Unknown"
    """
    for value in explicit:
        loc = clean_location_text(value)
        if loc:
            return loc

    for value in (*free_text, url):
        city = find_city(value)
        if city:
            return city

    return location_from_url(url) or UNKNOWN_LOCATION


def address_from_soup(soup: BeautifulSoup) -> str | None:
    """schema.org PostalAddress first, then address-ish meta tags."""
    for node in soup.select('[itemtype*="schema.org/PostalAddress" i]'):
        fields = [node.select_one(f'[itemprop="{name}" i]') for name in ("streetAddress", "addressLocality", "postalCode")]
        return _join_tokens(*(f.get_text(" ", strip=True) if f else "" for f in fields))

    def meta(*names: str) -> str:
        sel = ",".join([f'meta[name="{n}"], meta[property="{n}"]' for n in names])
        m = soup.select_one(sel)
        if not m:
            return ""
        val = m.get("content", "")
        if isinstance(val, list):
            val = " ".join(x for x in val if isinstance(x, str))
        return (val or "").strip()

    return _join_tokens(
        meta("og:street-address", "street-address"),
        meta("og:locality", "addressLocality", "locality"),
        meta("og:postal-code", "postal-code", "postalCode"),
    )
