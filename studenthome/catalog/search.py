# studenthome/catalog/search.py
"""
Read-only listing search for the frontend.
"""

from __future__ import annotations

from collections import defaultdict

from sqlalchemy import func
from sqlmodel import Session, select

from studenthome.schemas.models import Property, SearchFilters

from .tables import PropertyImageRow, PropertyRow, UniversityRow, row_to_property


def search(session: Session, filters: SearchFilters | None = None) -> list[Property]:
    """
    Properties matching `filters`, newest first, each with its images in order.

    `location` is a case-insensitive substring match; price bounds are inclusive.
    """
    f = filters or SearchFilters()
    stmt = select(PropertyRow)
    if f.location:
        stmt = stmt.where(func.lower(PropertyRow.location).contains(f.location.strip().lower()))
    if f.min_price is not None:
        stmt = stmt.where(PropertyRow.price >= f.min_price)
    if f.max_price is not None:
        stmt = stmt.where(PropertyRow.price <= f.max_price)
    if f.price_type:
        stmt = stmt.where(PropertyRow.price_type == f.price_type)
    if f.min_bedrooms is not None:
        stmt = stmt.where(PropertyRow.bedrooms >= f.min_bedrooms)
    if f.property_type:
        stmt = stmt.where(func.lower(PropertyRow.property_type) == f.property_type.strip().lower())
    if f.furnished is not None:
        stmt = stmt.where(PropertyRow.furnished == f.furnished)
    if f.available_only:
        stmt = stmt.where(PropertyRow.available == True)  # noqa: E712

    stmt = stmt.order_by(PropertyRow.created_at.desc(), PropertyRow.id.desc()).offset(f.offset).limit(f.limit)
    rows = session.exec(stmt).all()
    if not rows:
        return []

    ids = [r.id for r in rows]
    images: dict[int, list[PropertyImageRow]] = defaultdict(list)
    for img in session.exec(
        select(PropertyImageRow)
        .where(PropertyImageRow.property_id.in_(ids))
        .order_by(PropertyImageRow.image_order, PropertyImageRow.id)
    ).all():
        images[img.property_id].append(img)

    uni_ids = {r.university_id for r in rows if r.university_id is not None}
    names: dict[int, str] = {}
    if uni_ids:
        for uni in session.exec(select(UniversityRow).where(UniversityRow.id.in_(uni_ids))).all():
            names[uni.id] = uni.name

    return [
        row_to_property(r, images.get(r.id, []), names.get(r.university_id) if r.university_id is not None else None)
        for r in rows
    ]
