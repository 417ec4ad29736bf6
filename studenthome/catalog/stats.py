# studenthome/catalog/stats.py
"""
Read-only catalog health snapshot: counts, coverage and breakdowns.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import distinct, func
from sqlmodel import Session, select

from studenthome.schemas.labels import UK_CITIES
from studenthome.schemas.models import CatalogStats, PriceStats

from .tables import PropertyImageRow, PropertyRow, UniversityRow

TOP_LOCATIONS = 15


def _count(session: Session, stmt) -> int:  # type: ignore[no-untyped-def]
    return int(session.exec(stmt).one() or 0)


def catalog_stats(
    session: Session,
    *,
    top_n: int = TOP_LOCATIONS,
    known_cities: Iterable[str] = UK_CITIES,
) -> CatalogStats:
    properties = _count(session, select(func.count(PropertyRow.id)))
    images = _count(session, select(func.count(PropertyImageRow.id)))
    universities = _count(session, select(func.count(UniversityRow.id)))

    loc_rows = session.exec(
        select(PropertyRow.location, func.count(PropertyRow.id))
        .group_by(PropertyRow.location)
        .order_by(func.count(PropertyRow.id).desc(), PropertyRow.location)
    ).all()
    cities = set(known_cities)
    known = sum(n for loc, n in loc_rows if loc in cities)

    type_rows = session.exec(
        select(PropertyRow.property_type, func.count(PropertyRow.id))
        .group_by(PropertyRow.property_type)
        .order_by(func.count(PropertyRow.id).desc())
    ).all()

    lo, avg, hi = session.exec(select(func.min(PropertyRow.price), func.avg(PropertyRow.price), func.max(PropertyRow.price))).one()

    return CatalogStats(
        properties=properties,
        images=images,
        universities=universities,
        top_locations=[(loc, int(n)) for loc, n in loc_rows[:top_n]],
        property_types={ptype: int(n) for ptype, n in type_rows},
        price=PriceStats(
            count=properties,
            min=float(lo) if lo is not None else None,
            avg=round(float(avg), 2) if avg is not None else None,
            max=float(hi) if hi is not None else None,
        ),
        with_postcode=_count(
            session,
            select(func.count(PropertyRow.id)).where(PropertyRow.postcode.is_not(None), PropertyRow.postcode != ""),
        ),
        with_images=_count(session, select(func.count(distinct(PropertyImageRow.property_id)))),
        known_city_locations=known,
        distinct_locations=len(loc_rows),
        available=_count(session, select(func.count(PropertyRow.id)).where(PropertyRow.available == True)),  # noqa: E712
        furnished=_count(session, select(func.count(PropertyRow.id)).where(PropertyRow.furnished == True)),  # noqa: E712
    )
