# studenthome/catalog/maintenance.py
"""
Idempotent repair jobs over the persisted catalog.

Each job returns MaintenanceResult(operation, examined, changed); running a
job twice in a row reports changed == 0 the second time.

Order used by run_all():
  remove_invalid → normalize_locations → normalize_image_urls →
  remove_duplicates → remove_broken_images (optional) → repair_primary_images
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from studenthome.core.dedupe import DedupeKey, make_key
from studenthome.core.errors import store_error_guard
from studenthome.core.fetch.image_check import ImageChecker
from studenthome.core.normalize.images import canonicalize_image_url
from studenthome.core.validate import validation_reason
from studenthome.schemas.labels import UK_CITIES, find_city
from studenthome.schemas.models import MaintenanceResult

from .tables import PropertyImageRow, PropertyRow, row_to_property, utcnow

logger = logging.getLogger(__name__)


def _delete_properties(session: Session, ids: Sequence[int]) -> None:
    """Images first, then the properties themselves."""
    if not ids:
        return
    session.execute(delete(PropertyImageRow).where(PropertyImageRow.property_id.in_(ids)))
    session.execute(delete(PropertyRow).where(PropertyRow.id.in_(ids)))


def _log(result: MaintenanceResult) -> MaintenanceResult:
    logger.info("%s: examined %d, changed %d", result.operation, result.examined, result.changed)
    return result


class CatalogMaintenance:
    def __init__(self, engine: Engine, *, known_cities: Iterable[str] = UK_CITIES) -> None:
        self.engine = engine
        self.known_cities = tuple(known_cities)

    # ---------- Properties ----------

    def remove_invalid(self) -> MaintenanceResult:
        """Delete rows that fail validation today, with their images."""
        with Session(self.engine) as session, store_error_guard():
            rows = session.exec(select(PropertyRow)).all()
            bad: list[int] = []
            for row in rows:
                reason = validation_reason(row_to_property(row))
                if reason and row.id is not None:
                    logger.debug("invalid property %d: %s", row.id, reason)
                    bad.append(row.id)
            _delete_properties(session, bad)
            session.commit()
        return _log(MaintenanceResult(operation="remove_invalid", examined=len(rows), changed=len(bad)))

    def remove_duplicates(self) -> MaintenanceResult:
        """Keep the earliest row per dedup key (created_at, then id)."""
        with Session(self.engine) as session, store_error_guard():
            rows = session.exec(select(PropertyRow).order_by(PropertyRow.created_at, PropertyRow.id)).all()
            seen: set[DedupeKey] = set()
            dupes: list[int] = []
            for row in rows:
                key = make_key(row.title, row.location, row.price)
                if key in seen:
                    if row.id is not None:
                        dupes.append(row.id)
                else:
                    seen.add(key)
            _delete_properties(session, dupes)
            session.commit()
        return _log(MaintenanceResult(operation="remove_duplicates", examined=len(rows), changed=len(dupes)))

    def normalize_locations(self, known_cities: Iterable[str] | None = None) -> MaintenanceResult:
        """
        Rewrite non-canonical locations to the first known city found as a
        case-insensitive substring of `location`, then of `full_address`.
        Rows with no match are left alone.
        """
        cities = tuple(known_cities) if known_cities is not None else self.known_cities
        exact = set(cities)
        changed = 0
        with Session(self.engine) as session, store_error_guard():
            rows = session.exec(select(PropertyRow)).all()
            for row in rows:
                if row.location in exact:
                    continue
                city = find_city(row.location, cities) or find_city(row.full_address, cities)
                if city and city != row.location:
                    row.location = city
                    row.updated_at = utcnow()
                    session.add(row)
                    changed += 1
            session.commit()
        return _log(MaintenanceResult(operation="normalize_locations", examined=len(rows), changed=changed))

    # ---------- Images ----------

    def normalize_image_urls(self) -> MaintenanceResult:
        """Drop default ports and upgrade http to https on stored image URLs."""
        changed = 0
        with Session(self.engine) as session, store_error_guard():
            images = session.exec(select(PropertyImageRow)).all()
            for img in images:
                fixed = canonicalize_image_url(img.image_url)
                if fixed and fixed != img.image_url:
                    img.image_url = fixed
                    session.add(img)
                    changed += 1
            session.commit()
        return _log(MaintenanceResult(operation="normalize_image_urls", examined=len(images), changed=changed))

    def repair_primary_images(self) -> MaintenanceResult:
        """Exactly one primary per property with images: the lowest image_order."""
        changed = 0
        with Session(self.engine) as session, store_error_guard():
            images = session.exec(
                select(PropertyImageRow).order_by(
                    PropertyImageRow.property_id,
                    PropertyImageRow.image_order,
                    PropertyImageRow.id,
                )
            ).all()
            by_property: dict[int, list[PropertyImageRow]] = defaultdict(list)
            for img in images:
                by_property[img.property_id].append(img)

            for group in by_property.values():
                primaries = [img for img in group if img.is_primary]
                if len(primaries) == 1:
                    continue
                for i, img in enumerate(group):
                    want = i == 0
                    if img.is_primary != want:
                        img.is_primary = want
                        session.add(img)
                changed += 1
            session.commit()
        return _log(MaintenanceResult(operation="repair_primary_images", examined=len(by_property), changed=changed))

    def remove_broken_images(self, checker: ImageChecker) -> MaintenanceResult:
        """HEAD-check every stored image URL; delete the unreachable ones."""
        with Session(self.engine) as session, store_error_guard():
            images = session.exec(select(PropertyImageRow)).all()
            reachable = checker.check_many(img.image_url for img in images)
            broken = [img.id for img in images if img.id is not None and not reachable.get(img.image_url, False)]
            if broken:
                session.execute(delete(PropertyImageRow).where(PropertyImageRow.id.in_(broken)))
            session.commit()
        return _log(MaintenanceResult(operation="remove_broken_images", examined=len(images), changed=len(broken)))

    # ---------- All ----------

    def run_all(self, checker: ImageChecker | None = None) -> list[MaintenanceResult]:
        # rewrites can make two rows share a dedup key, so dedupe after them
        results = [
            self.remove_invalid(),
            self.normalize_locations(),
            self.normalize_image_urls(),
            self.remove_duplicates(),
        ]
        if checker is not None:
            results.append(self.remove_broken_images(checker))
        results.append(self.repair_primary_images())
        return results
