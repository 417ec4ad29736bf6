# studenthome/catalog/tables.py
"""
Catalog tables: properties, property_images, universities.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, ForeignKey, Integer
from sqlmodel import Column, Field, SQLModel

from studenthome.schemas.models import (
    ADDRESS_MAX,
    ALT_TEXT_MAX,
    DESCRIPTION_MAX,
    IMAGE_URL_MAX,
    LANDLORD_MAX,
    LOCATION_MAX,
    SOURCE_MAX,
    TITLE_MAX,
    Property,
    PropertyImage,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UniversityRow(SQLModel, table=True):
    """Universities listings were scraped for"""

    __tablename__ = "universities"

    id: Optional[int] = Field(default=None, primary_key=True, description="Unique university ID")
    name: str = Field(max_length=TITLE_MAX, unique=True, index=True, description="University name")
    location: Optional[str] = Field(default=None, max_length=LOCATION_MAX, description="City the university is in")
    source_url: Optional[str] = Field(default=None, max_length=IMAGE_URL_MAX, description="Search page it was found on")
    created_at: datetime = Field(default_factory=utcnow, description="Insert timestamp")


class PropertyRow(SQLModel, table=True):
    """Canonical student rental listings"""

    __tablename__ = "properties"

    id: Optional[int] = Field(default=None, primary_key=True, description="Unique property ID")

    # Listing details
    title: str = Field(max_length=TITLE_MAX, description="Listing title")
    price: float = Field(description="Rent for one price_type period, GBP")
    price_type: str = Field(default="weekly", max_length=10, description="'weekly', 'monthly' or 'yearly'")
    location: str = Field(default="Unknown", max_length=LOCATION_MAX, index=True, description="Canonical city")
    postcode: Optional[str] = Field(default=None, max_length=10, description="UK postcode, 'M13 9PL' form")
    full_address: Optional[str] = Field(default=None, max_length=ADDRESS_MAX, description="Full street address")
    bedrooms: int = Field(default=1, description="Bedrooms, 1-10")
    bathrooms: int = Field(default=1, description="Bathrooms, 1-5")
    property_type: str = Field(default="flat", max_length=50, description="studio, flat, house, shared, room, halls ...")
    furnished: bool = Field(default=True)
    available: bool = Field(default=True)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX)
    landlord_name: Optional[str] = Field(default=None, max_length=LANDLORD_MAX)
    features: list[str] = Field(default_factory=list, sa_column=Column(JSON), description="Canonical feature labels")

    # Provenance
    source: str = Field(default="scraped", max_length=SOURCE_MAX, description="Scrape source tag")
    source_url: Optional[str] = Field(default=None, max_length=IMAGE_URL_MAX, description="Listing page URL")
    university_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, ForeignKey("universities.id", ondelete="SET NULL"), nullable=True),
        description="University the listing was scraped for",
    )

    # Tracking dates
    scraped_at: datetime = Field(default_factory=utcnow, description="When the listing was scraped")
    created_at: datetime = Field(default_factory=utcnow, description="Insert timestamp")
    updated_at: datetime = Field(default_factory=utcnow, description="Last modification timestamp")


class PropertyImageRow(SQLModel, table=True):
    """Listing photos, ordered"""

    __tablename__ = "property_images"

    id: Optional[int] = Field(default=None, primary_key=True, description="Unique image ID")
    property_id: int = Field(
        sa_column=Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True),
        description="Owning property",
    )
    image_url: str = Field(max_length=IMAGE_URL_MAX, description="Absolute https URL")
    alt_text: Optional[str] = Field(default=None, max_length=ALT_TEXT_MAX)
    is_primary: bool = Field(default=False)
    image_order: int = Field(default=0, description="Display position")
    created_at: datetime = Field(default_factory=utcnow, description="Insert timestamp")


# ---------- Row <-> model conversion ----------


def property_to_row(prop: Property, university_id: Optional[int] = None) -> PropertyRow:
    now = utcnow()
    return PropertyRow(
        title=prop.title,
        price=prop.price,
        price_type=prop.price_type,
        location=prop.location,
        postcode=prop.postcode,
        full_address=prop.full_address,
        bedrooms=prop.bedrooms,
        bathrooms=prop.bathrooms,
        property_type=prop.property_type,
        furnished=prop.furnished,
        available=prop.available,
        description=prop.description,
        landlord_name=prop.landlord_name,
        features=list(prop.features),
        source=prop.source,
        source_url=prop.source_url,
        university_id=university_id,
        scraped_at=prop.scraped_at,
        created_at=now,
        updated_at=now,
    )


def image_to_row(image: PropertyImage, property_id: int) -> PropertyImageRow:
    return PropertyImageRow(
        property_id=property_id,
        image_url=image.url,
        alt_text=image.alt_text,
        is_primary=image.is_primary,
        image_order=image.order,
    )


def row_to_property(
    row: PropertyRow,
    images: Optional[list[PropertyImageRow]] = None,
    university: Optional[str] = None,
) -> Property:
    return Property(
        id=row.id,
        title=row.title,
        price=row.price,
        price_type=row.price_type if row.price_type in ("weekly", "monthly", "yearly") else "weekly",
        location=row.location,
        postcode=row.postcode,
        full_address=row.full_address,
        bedrooms=max(1, min(10, row.bedrooms or 1)),
        bathrooms=max(1, min(5, row.bathrooms or 1)),
        property_type=row.property_type,
        furnished=row.furnished,
        available=row.available,
        description=row.description,
        landlord_name=row.landlord_name,
        features=row.features or [],
        source=row.source,
        source_url=row.source_url,
        university=university,
        images=[
            PropertyImage(url=img.image_url, alt_text=img.alt_text or "", is_primary=img.is_primary, order=max(0, img.image_order))
            for img in sorted(images or [], key=lambda i: (i.image_order, i.id or 0))
        ],
        scraped_at=row.scraped_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
