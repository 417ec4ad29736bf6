# tests/normalize/test_price_parsing.py

from __future__ import annotations

import pytest

from studenthome.core.normalize.price import (
    clean_number,
    parse_price,
    price_type_from_frequency,
    price_type_from_text,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("£1,200 pcm", (1200.0, "monthly")),
        ("£150 pw", (150.0, "weekly")),
        ("£95.50 per week", (95.5, "weekly")),
        ("£7,800 per annum", (7800.0, "yearly")),
        ("£650", (650.0, "weekly")),
    ],
)
def test_parse_price_text(raw, expected):
    assert parse_price(raw) == expected


def test_parse_price_numbers_default_to_weekly_unless_hinted():
    assert parse_price(180) == (180.0, "weekly")
    assert parse_price(900.0, hint="£900 pcm") == (900.0, "monthly")


def test_parse_price_rightmove_object_uses_frequency():
    amount, ptype = parse_price({"amount": 1200, "frequency": "monthly", "displayPrices": [{"displayPrice": "£1,200 pcm"}]})
    assert amount == 1200.0
    assert ptype == "monthly"


def test_parse_price_object_without_amount_falls_back_to_display_price():
    amount, ptype = parse_price({"displayPrices": [{"displayPrice": "£140 pw"}]})
    assert (amount, ptype) == (140.0, "weekly")


@pytest.mark.parametrize("raw", [None, "", "POA", True, {}])
def test_unparseable_price_is_zero(raw):
    amount, _ = parse_price(raw)
    assert amount == 0.0


def test_period_named_first_wins():
    # "pcm" appears before the weekly equivalent
    assert price_type_from_text("£1,300 pcm (£300 pw)") == "monthly"
    assert price_type_from_text("£300 pw (£1,300 pcm)") == "weekly"
    assert price_type_from_text(None) == "weekly"


def test_frequency_aliases():
    assert price_type_from_frequency("Monthly") == "monthly"
    assert price_type_from_frequency("pcm") == "monthly"
    assert price_type_from_frequency("annual") == "yearly"
    assert price_type_from_frequency(None, "monthly") == "monthly"


def test_clean_number_strips_currency_and_separators():
    assert clean_number("£12,500.75 pa") == 12500.75
    assert clean_number("no digits") is None
