# studenthome/core/normalize/price.py
"""
Rent parsing: "£1,200 pcm" → (1200.0, "monthly"); "£150 pw" → (150.0, "weekly").
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from studenthome.schemas.models import PriceType

# ---------- Regex & keyword tables ----------

_NUM_RE = re.compile(r"\d[\d,\u00a0\u2009\u202f]*(?:\.\d+)?")
_MONTHLY_RE = re.compile(r"(?i)\b(?:pcm|per\s+calendar\s+month|p/?m|monthly)\b|month")
_YEARLY_RE = re.compile(r"(?i)\bp\.?a\.?(?![a-z])|per\s+annum|year|annum")
_WEEKLY_RE = re.compile(r"(?i)\b(?:pw|p/?w|weekly)\b|week")

_FREQUENCY_ALIASES: dict[str, PriceType] = {
    "weekly": "weekly",
    "week": "weekly",
    "pw": "weekly",
    "monthly": "monthly",
    "month": "monthly",
    "pcm": "monthly",
    "yearly": "yearly",
    "year": "yearly",
    "annual": "yearly",
    "annually": "yearly",
}

# ---------- Helpers ----------


def clean_number(text: str) -> float | None:
    """Parse the leading numeric run of `text`, dropping £/$ and thousands separators."""
    m = _NUM_RE.search(text)
    if not m:
        return None
    t = m.group(0)
    t = t.replace(",", "").replace("\u00a0", "").replace("\u2009", "").replace("\u202f", "")
    try:
        return float(t)
    except ValueError:
        return None


def price_type_from_text(text: str | None) -> PriceType:
    """Billing period named earliest in `text`; weekly when none is named."""
    if not text:
        return "weekly"
    hits: list[tuple[int, PriceType]] = []
    for pat, ptype in ((_MONTHLY_RE, "monthly"), (_WEEKLY_RE, "weekly"), (_YEARLY_RE, "yearly")):
        m = pat.search(text)
        if m:
            hits.append((m.start(), ptype))
    return min(hits)[1] if hits else "weekly"


def price_type_from_frequency(freq: Any, default: PriceType = "weekly") -> PriceType:
    if not freq:
        return default
    return _FREQUENCY_ALIASES.get(str(freq).strip().lower(), price_type_from_text(str(freq)))


# ---------- Public API ----------


def parse_price(value: Any, *, hint: str | None = None) -> tuple[float, PriceType]:
    """
    Parse a raw price into (amount, price_type).

    Accepts numbers, strings such as "£1,200 pcm", and objects shaped like
    {"amount": 950, "frequency": "monthly", "displayPrices": [...]}.
    `hint` is extra surrounding text consulted for the billing period.
    Unparseable input yields amount 0.0, which validation later rejects.
    """
    if value is None or isinstance(value, bool):
        return 0.0, price_type_from_text(hint)

    if isinstance(value, Mapping):
        amount_raw = value.get("amount", value.get("value"))
        freq = value.get("frequency") or value.get("period")
        display = ""
        prices = value.get("displayPrices")
        if isinstance(prices, list) and prices and isinstance(prices[0], Mapping):
            display = str(prices[0].get("displayPrice") or "")
        if amount_raw is None and display:
            amount, ptype = parse_price(display)
            return amount, price_type_from_frequency(freq, ptype)
        amount, _ = parse_price(amount_raw)
        fallback = price_type_from_text(" ".join(p for p in (display, hint or "") if p))
        return amount, price_type_from_frequency(freq, fallback)

    if isinstance(value, int | float):
        return float(value), price_type_from_text(hint)

    text = str(value)
    amount = clean_number(text)
    context = f"{text} {hint}" if hint else text
    return (amount if amount is not None else 0.0), price_type_from_text(context)
