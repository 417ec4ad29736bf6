# studenthome/catalog/writer.py
"""
Catalog writer: persists validated, deduplicated properties.

Per property the row is inserted and committed first, then its images; an
image failure is counted and logged but never rolls back the property.
Per-record store failures are counted and the batch continues.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from studenthome.core.dedupe import DedupeIndex, DedupeKey, make_key
from studenthome.core.errors import StoreError, store_error_guard
from studenthome.core.normalize.images import MAX_IMAGES, is_rejected_image
from studenthome.schemas.models import Property, PropertyImage, University, WriteResult

from .tables import PropertyImageRow, PropertyRow, UniversityRow, image_to_row, property_to_row

logger = logging.getLogger(__name__)


def filter_images(images: Iterable[PropertyImage]) -> list[PropertyImage]:
    """Drop placeholder/logo/non-http URLs, cap the count and settle on one primary."""
    kept = [img for img in images if img.url.lower().startswith("http") and not is_rejected_image(img.url)]
    kept = kept[:MAX_IMAGES]
    primary_idx = next((i for i, img in enumerate(kept) if img.is_primary), 0)
    return [img.model_copy(update={"is_primary": i == primary_idx, "order": i}) for i, img in enumerate(kept)]


class CatalogWriter:
    def __init__(self, engine: Engine, *, should_stop: Callable[[], bool] | None = None) -> None:
        self.engine = engine
        self._should_stop = should_stop or (lambda: False)
        self._uni_by_name: dict[str, int] = {}
        self._uni_by_location: dict[str, int] = {}

    # ---------- Universities ----------

    def _load_universities(self, session: Session) -> None:
        self._uni_by_name.clear()
        self._uni_by_location.clear()
        for row in session.exec(select(UniversityRow).order_by(UniversityRow.id)).all():
            if row.id is None:
                continue
            self._uni_by_name.setdefault(row.name.strip().lower(), row.id)
            if row.location:
                self._uni_by_location.setdefault(row.location.strip().lower(), row.id)

    def _university_for(self, prop: Property) -> int | None:
        if prop.university:
            uid = self._uni_by_name.get(prop.university.strip().lower())
            if uid is not None:
                return uid
        return self._uni_by_location.get(prop.location.strip().lower())

    def write_universities(self, universities: Iterable[University]) -> int:
        """Insert universities whose lower-cased name is not stored yet; returns the count inserted."""
        inserted = 0
        with Session(self.engine) as session:
            existing = {n.strip().lower() for n in session.exec(select(UniversityRow.name)).all()}
            for uni in universities:
                key = uni.name.strip().lower()
                if not key or key in existing:
                    continue
                try:
                    with store_error_guard():
                        session.add(UniversityRow(name=uni.name.strip(), location=uni.location, source_url=uni.source_url))
                        session.commit()
                except StoreError as e:
                    session.rollback()
                    logger.warning("university %r not stored: %s", uni.name, e)
                    continue
                existing.add(key)
                inserted += 1
        if inserted:
            logger.info("stored %d universities", inserted)
        return inserted

    # ---------- Properties ----------

    def existing_keys(self) -> list[DedupeKey]:
        """Dedup keys of every stored property."""
        with Session(self.engine) as session:
            rows = session.exec(select(PropertyRow.title, PropertyRow.location, PropertyRow.price)).all()
        return [make_key(title, location, price) for title, location, price in rows]

    def _write_images(self, session: Session, property_id: int, images: list[PropertyImage]) -> tuple[int, int]:
        if not images:
            return 0, 0
        try:
            with store_error_guard():
                for img in images:
                    session.add(image_to_row(img, property_id))
                session.commit()
        except StoreError as e:
            session.rollback()
            logger.warning("images for property %d not stored: %s", property_id, e)
            return 0, len(images)
        return len(images), 0

    def write(
        self,
        properties: Iterable[Property],
        *,
        index: DedupeIndex | None = None,
        on_written: Callable[[Property], None] | None = None,
    ) -> WriteResult:
        """
        Persist `properties` in order.

        With an `index`, properties whose key it already holds are counted as
        duplicates and skipped; written ones are added to it. `on_written` is
        called with each property once its row is committed.
        """
        result = WriteResult()
        with Session(self.engine, expire_on_commit=False) as session:
            self._load_universities(session)
            for prop in properties:
                if self._should_stop():
                    result.interrupted = True
                    logger.warning("stop requested; %d properties written before interruption", result.imported)
                    break
                if index is not None and prop in index:
                    result.duplicates += 1
                    continue

                row = property_to_row(prop, self._university_for(prop))
                try:
                    with store_error_guard():
                        session.add(row)
                        session.commit()
                        session.refresh(row)
                except StoreError as e:
                    session.rollback()
                    result.errors += 1
                    logger.warning("property %r not stored: %s", prop.title[:60], e)
                    continue

                result.imported += 1
                if index is not None:
                    index.add(prop)
                if on_written is not None:
                    on_written(prop)

                ok, failed = self._write_images(session, row.id, filter_images(prop.images))
                result.images_imported += ok
                result.image_errors += failed

        logger.info(
            "wrote %d properties (%d images), %d errors, %d duplicates",
            result.imported,
            result.images_imported,
            result.errors,
            result.duplicates,
        )
        return result

    def clear_catalog(self) -> dict[str, int]:
        """Delete images, properties and universities, in FK order."""
        counts: dict[str, int] = {}
        with Session(self.engine) as session, store_error_guard():
            for name, model in (
                ("images", PropertyImageRow),
                ("properties", PropertyRow),
                ("universities", UniversityRow),
            ):
                counts[name] = session.execute(delete(model)).rowcount or 0
            session.commit()
        logger.info(
            "cleared catalog: %d images, %d properties, %d universities",
            counts["images"],
            counts["properties"],
            counts["universities"],
        )
        return counts
