# studenthome/schemas/models.py

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

PriceType = Literal["weekly", "monthly", "yearly"]

TITLE_MAX = 200
ADDRESS_MAX = 300
DESCRIPTION_MAX = 1000
LANDLORD_MAX = 100
LOCATION_MAX = 100
SOURCE_MAX = 50
ALT_TEXT_MAX = 255
IMAGE_URL_MAX = 2000
FEATURES_MAX = 15

UNKNOWN_LOCATION = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _truncate(value: Any, limit: int) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return s[:limit].rstrip()


# =========================
# Canonical records
# =========================


class PropertyImage(BaseModel):
    """A single listing photo, already rewritten to an absolute https URL."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = Field(..., max_length=IMAGE_URL_MAX, description="Absolute https URL.")
    alt_text: str = Field("", description='Defaults to "Property image N" when the source has no caption.')
    is_primary: bool = False
    order: int = Field(0, ge=0)

    @field_validator("alt_text", mode="before")
    @classmethod
    def _clip_alt(cls, v: Any) -> str:
        return _truncate(v, ALT_TEXT_MAX) or ""


class Property(BaseModel):
    """
    Canonical rental listing.

    Produced by the normalizer, checked by the validator, keyed by the
    deduplicator and persisted by the catalog writer. `id` stays None until
    the record has a row in the catalog.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int | None = None
    title: str = ""
    price: float = Field(0.0, description="GBP amount for one `price_type` period.")
    price_type: PriceType = "weekly"
    location: str = UNKNOWN_LOCATION
    postcode: str | None = None
    full_address: str | None = None

    bedrooms: int = Field(1, ge=1, le=10)
    bathrooms: int = Field(1, ge=1, le=5)
    property_type: str = "flat"
    furnished: bool = True
    available: bool = True

    description: str | None = None
    landlord_name: str | None = None
    features: list[str] = Field(default_factory=list)

    source: str = "scraped"
    source_url: str | None = None
    university: str | None = Field(None, description="University the listing was scraped for, when known.")
    images: list[PropertyImage] = Field(default_factory=list)

    scraped_at: datetime = Field(default_factory=_utcnow)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _clip_title(cls, v: Any) -> str:
        return _truncate(v, TITLE_MAX) or ""

    @field_validator("location", mode="before")
    @classmethod
    def _clip_location(cls, v: Any) -> str:
        return _truncate(v, LOCATION_MAX) or UNKNOWN_LOCATION

    @field_validator("source", mode="before")
    @classmethod
    def _clip_source(cls, v: Any) -> str:
        return _truncate(v, SOURCE_MAX) or "scraped"

    @field_validator("source_url", mode="before")
    @classmethod
    def _clip_source_url(cls, v: Any) -> str | None:
        return _truncate(v, IMAGE_URL_MAX)

    @field_validator("full_address", mode="before")
    @classmethod
    def _clip_address(cls, v: Any) -> str | None:
        return _truncate(v, ADDRESS_MAX)

    @field_validator("description", mode="before")
    @classmethod
    def _clip_description(cls, v: Any) -> str | None:
        return _truncate(v, DESCRIPTION_MAX)

    @field_validator("landlord_name", mode="before")
    @classmethod
    def _clip_landlord(cls, v: Any) -> str | None:
        return _truncate(v, LANDLORD_MAX)

    @field_validator("features", mode="before")
    @classmethod
    def _clip_features(cls, v: Any) -> list[str]:
        out: list[str] = []
        for item in v or []:
            s = str(item).strip()
            if s and s not in out:
                out.append(s)
        return out[:FEATURES_MAX]

    @field_validator("price", mode="before")
    @classmethod
    def _round_price(cls, v: Any) -> float:
        try:
            return round(float(v), 2)
        except (TypeError, ValueError):
            return 0.0

    def primary_image(self) -> PropertyImage | None:
        return next((img for img in self.images if img.is_primary), None)

    def summary(self) -> str:
        bits: list[str] = []
        if self.title:
            bits.append(self.title)
        bits.append(f"£{self.price:,.0f} {self.price_type}")
        bits.append(self.location)
        if self.postcode:
            bits.append(self.postcode)
        bits.append(f"{self.bedrooms} bd / {self.bathrooms} ba")
        if self.images:
            bits.append(f"{len(self.images)} images")
        return " | ".join(bits)


class University(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    location: str | None = None
    source_url: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _clip_name(cls, v: Any) -> str:
        return _truncate(v, TITLE_MAX) or ""

    @field_validator("location", mode="before")
    @classmethod
    def _clip_location(cls, v: Any) -> str | None:
        return _truncate(v, LOCATION_MAX)

    @field_validator("source_url", mode="before")
    @classmethod
    def _clip_source_url(cls, v: Any) -> str | None:
        return _truncate(v, IMAGE_URL_MAX)


# =========================
# Raw source shapes
# =========================


class SourceContext(BaseModel):
    """Where a raw record came from; used to resolve relative URLs and provenance."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    source: str = "scraped"
    origin: str | None = Field(None, description="Site origin used for relative links, e.g. https://www.rightmove.co.uk")
    page_url: str | None = None
    university: str | None = None
    input_file: str | None = None


class _RawBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    data: dict[str, Any] = Field(default_factory=dict)
    context: SourceContext = Field(default_factory=SourceContext)


class RightmoveRecord(_RawBase):
    """Rightmove search-result JSON (camelCase, price object, propertyImages block)."""

    shape: Literal["rightmove"] = "rightmove"


class CatalogRecord(_RawBase):
    """Already-flattened export (comprehensive scraper, Bright Data): snake_case fields."""

    shape: Literal["catalog"] = "catalog"


class LooseRecord(_RawBase):
    """Any other listing-like dict: textual price, free address, string image list."""

    shape: Literal["loose"] = "loose"


class PriceHintRecord(_RawBase):
    """Price text spotted in page HTML with no structured listing around it."""

    shape: Literal["price_hint"] = "price_hint"


RawRecord = Annotated[
    RightmoveRecord | CatalogRecord | LooseRecord | PriceHintRecord,
    Field(discriminator="shape"),
]


class ExtractedBatch(BaseModel):
    """Everything pulled out of one input document."""

    records: list[RawRecord] = Field(default_factory=list)
    universities: list[University] = Field(default_factory=list)
    items_seen: int = 0
    items_unrecognized: int = 0
    source_file: str | None = None


# =========================
# Outcomes
# =========================


class Ok(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["ok"] = "ok"
    record: Property


class Skipped(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["skipped"] = "skipped"
    reason: str


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failed"] = "failed"
    error: str


NormalizeOutcome = Ok | Skipped | Failed


class WriteResult(BaseModel):
    imported: int = 0
    errors: int = 0
    images_imported: int = 0
    image_errors: int = 0
    duplicates: int = 0
    interrupted: bool = False


class PriceStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    min: float | None = None
    avg: float | None = None
    max: float | None = None


class PipelineRunResult(BaseModel):
    """
    Aggregate counters for one pipeline invocation.

    `skipped` maps a reason ("invalid: price out of range", "duplicate", ...)
    to its count; `errors` counts persistence failures only.
    """

    files: list[str] = Field(default_factory=list)
    items_seen: int = 0
    normalized: int = 0
    invalid: int = 0
    duplicates_removed: int = 0
    imported: int = 0
    errors: int = 0
    images_imported: int = 0
    universities_imported: int = 0
    skipped: dict[str, int] = Field(default_factory=dict)
    location_breakdown: dict[str, int] = Field(default_factory=dict)
    price_stats: PriceStats = Field(default_factory=PriceStats)
    interrupted: bool = False
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: datetime | None = None

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())

    def count_skip(self, reason: str, n: int = 1) -> None:
        if n:
            self.skipped[reason] = self.skipped.get(reason, 0) + n


class MaintenanceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    operation: str
    examined: int = 0
    changed: int = 0


class CatalogStats(BaseModel):
    """Read-only snapshot of catalog health."""

    model_config = ConfigDict(frozen=True)

    properties: int = 0
    images: int = 0
    universities: int = 0
    top_locations: list[tuple[str, int]] = Field(default_factory=list)
    property_types: dict[str, int] = Field(default_factory=dict)
    price: PriceStats = Field(default_factory=PriceStats)
    with_postcode: int = 0
    with_images: int = 0
    known_city_locations: int = 0
    distinct_locations: int = 0
    available: int = 0
    furnished: int = 0

    @property
    def postcode_coverage(self) -> float:
        return self.with_postcode / self.properties if self.properties else 0.0

    @property
    def image_coverage(self) -> float:
        return self.with_images / self.properties if self.properties else 0.0

    @property
    def avg_images_per_property(self) -> float:
        return self.images / self.properties if self.properties else 0.0


class SearchFilters(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    location: str | None = None
    min_price: float | None = Field(None, ge=0)
    max_price: float | None = Field(None, ge=0)
    price_type: PriceType | None = None
    min_bedrooms: int | None = Field(None, ge=1)
    property_type: str | None = None
    furnished: bool | None = None
    available_only: bool = True
    limit: int = Field(50, ge=1, le=500)
    offset: int = Field(0, ge=0)
