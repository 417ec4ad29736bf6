# tests/normalize/test_property_normalizer.py

from __future__ import annotations

from studenthome.core.normalize import NO_SIGNAL, normalize
from studenthome.schemas.models import (
    ALT_TEXT_MAX,
    FEATURES_MAX,
    IMAGE_URL_MAX,
    LOCATION_MAX,
    SOURCE_MAX,
    TITLE_MAX,
    Failed,
    LooseRecord,
    Ok,
    PriceHintRecord,
    Skipped,
    SourceContext,
)
from tests.utils import catalog_raw, loose_raw, rightmove_raw


def _ok(outcome):
    assert isinstance(outcome, Ok), outcome
    return outcome.record


# ---------- Rightmove ----------


def test_rightmove_record_maps_all_fields():
    prop = _ok(normalize(rightmove_raw()))
    assert prop.title.startswith("Modern 2 bedroom flat")
    assert (prop.price, prop.price_type) == (1200.0, "monthly")
    assert prop.location == "Manchester"
    assert prop.postcode == "M14 6HR"
    assert prop.full_address == "Oxford Road, Fallowfield, Manchester, M14 6HR"
    assert prop.bedrooms == 2
    assert prop.property_type == "flat"
    assert prop.landlord_name == "Campus Lettings, Manchester"
    assert prop.source == "rightmove"
    assert prop.source_url == "https://www.rightmove.co.uk/properties/123456#/?channel=RES_LET"
    assert "Bills included" in prop.features


def test_rightmove_images_rewritten_with_main_first():
    prop = _ok(normalize(rightmove_raw()))
    urls = [i.url for i in prop.images]
    assert urls == [
        "https://media.rightmove.co.uk/main.jpg",
        "https://media.rightmove.co.uk/1.jpg",
        "https://media.rightmove.co.uk/2.jpg",
    ]
    assert prop.primary_image() is not None
    assert prop.primary_image().url == urls[0]


def test_rightmove_let_agreed_is_unavailable():
    prop = _ok(normalize(rightmove_raw(displayStatus="Let agreed")))
    assert prop.available is False


# ---------- Catalog ----------


def test_catalog_record_keeps_curated_values():
    prop = _ok(normalize(catalog_raw()))
    assert (prop.price, prop.price_type) == (165.0, "weekly")
    assert prop.location == "Leeds"
    assert prop.postcode == "LS1 5AB"
    assert prop.property_type == "studio"
    assert prop.features == ["WiFi", "Gym"]
    assert prop.source == "comprehensive-scraper"
    assert [i.is_primary for i in prop.images] == [False, True]


def test_catalog_feature_dicts_and_unfurnished_status():
    prop = _ok(
        normalize(
            catalog_raw(
                features=[{"feature_text": "Wi-Fi"}, {"feature_text": "Close to campus"}],
                furnished_status="Unfurnished",
            )
        )
    )
    assert prop.features == ["WiFi", "Close to campus"]
    assert prop.furnished is False


# ---------- Loose ----------


def test_loose_record_resolves_relative_images_against_origin():
    prop = _ok(normalize(loose_raw()))
    assert (prop.price, prop.price_type) == (550.0, "monthly")
    assert prop.location == "Leeds"
    assert prop.postcode == "LS6 1AB"
    assert [i.url for i in prop.images] == [
        "https://www.openrent.co.uk/img/1.jpg",
        "https://cdn.example.com/2.jpg",
    ]
    assert prop.source == "openrent"


def test_location_from_title_when_no_address():
    prop = _ok(normalize(loose_raw(address=None, title="Double room in Nottingham")))
    assert prop.location == "Nottingham"


def test_room_counts_are_clamped_and_parsed():
    prop = _ok(normalize(loose_raw(bedrooms="14 bedrooms", bathrooms=0)))
    assert prop.bedrooms == 10
    assert prop.bathrooms == 1
    studio = _ok(normalize(loose_raw(bedrooms="Studio")))
    assert studio.bedrooms == 1


def test_long_fields_are_truncated():
    prop = _ok(normalize(loose_raw(title="x" * 500, features=[f"feature {i}" for i in range(40)])))
    assert len(prop.title) == TITLE_MAX
    assert len(prop.features) == FEATURES_MAX


def test_overlong_text_fields_fit_their_columns():
    address = "Long Lane " * 20
    prop = _ok(
        normalize(
            loose_raw(
                address=address,
                source="s" * 80,
                url="https://x.test/" + "p" * 3000,
                images=[{"url": "https://cdn.example.com/a.jpg", "caption": "c" * 400}],
            )
        )
    )
    assert prop.location.startswith("Long Lane")
    assert len(prop.location) <= LOCATION_MAX
    assert not prop.location.endswith(" ")
    assert len(prop.source) == SOURCE_MAX
    assert len(prop.images[0].alt_text) == ALT_TEXT_MAX
    assert len(prop.source_url) == IMAGE_URL_MAX


def test_out_of_range_price_still_normalizes():
    prop = _ok(normalize(loose_raw(price=50000)))
    assert prop.price == 50000.0


# ---------- Outcomes ----------


def test_no_signal_is_skipped():
    outcome = normalize(LooseRecord(data={"images": ["https://host/a.jpg"]}))
    assert isinstance(outcome, Skipped)
    assert outcome.reason == NO_SIGNAL


def test_missing_title_still_normalizes_with_empty_title():
    prop = _ok(normalize(loose_raw(title=None)))
    assert prop.title == ""


def test_odd_field_types_are_tolerated():
    prop = _ok(normalize(LooseRecord(data={"title": "Room", "price": 100, "images": "not-a-list", "bedrooms": object()})))
    assert prop.images == []
    assert prop.bedrooms == 1

    prop = _ok(normalize(LooseRecord(data={"title": "Room", "price": 100, "source_url": 12})))
    assert prop.source_url is None


def test_unexpected_errors_become_failed(monkeypatch):
    import studenthome.core.normalize.property as mod

    def boom(*_a, **_k):
        raise ValueError("bad image block")

    monkeypatch.setattr(mod, "build_images", boom)
    outcome = normalize(loose_raw())
    assert isinstance(outcome, Failed)
    assert "bad image block" in outcome.error


def test_context_override_sets_provenance():
    ctx = SourceContext(source="zoopla", university="Leeds")
    prop = _ok(normalize(loose_raw(source=None), ctx))
    assert prop.source == "zoopla"
    assert prop.university == "Leeds"


def test_price_hint_record():
    rec = PriceHintRecord(
        data={"title": "Student Property 1 in Leeds", "price": "£120 pw", "location": "Leeds", "address": None},
        context=SourceContext(source="scraped", page_url="https://x.test/student-accommodation/Leeds.html"),
    )
    prop = _ok(normalize(rec))
    assert (prop.price, prop.price_type) == (120.0, "weekly")
    assert prop.location == "Leeds"
    assert prop.source_url == "https://x.test/student-accommodation/Leeds.html"
