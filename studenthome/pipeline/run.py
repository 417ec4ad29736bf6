# studenthome/pipeline/run.py
"""
Import orchestrator (deterministic, single-threaded)

Purpose
-------
Run the catalog pipeline over a list of input files:
  1) Extract    → raw records + universities per file
  2) Normalize  → Ok | Skipped | Failed per record
  3) Validate   → drop records breaking the acceptance rules
  4) Dedupe     → in-batch first, then against keys already in the catalog
  5) Write      → properties, then their images

All input files are read before the store is touched, so a missing or broken
file aborts the run with nothing written.

Public API
----------
run_import(settings, *, engine=None, stop=None) -> PipelineRunResult
consolidate(paths, out_path=None, *, stop=None) -> PipelineRunResult
prepare_batch(batch, result, *, stop=None) -> list[Property]
install_sigint_handler(stop) (context manager)
"""

from __future__ import annotations

import json
import logging
import signal
import threading
from collections import Counter
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy.engine import Engine

from studenthome.catalog.db import init_db, make_engine
from studenthome.catalog.writer import CatalogWriter
from studenthome.core.dedupe import DedupeIndex, dedupe, dedupe_universities
from studenthome.core.errors import store_error_guard
from studenthome.core.extract import load_input_file
from studenthome.core.normalize import normalize
from studenthome.core.validate import validation_reason
from studenthome.inputs.settings import Settings, require_database_url
from studenthome.schemas.models import (
    ExtractedBatch,
    Failed,
    PipelineRunResult,
    PriceStats,
    Property,
    Skipped,
    University,
)

logger = logging.getLogger(__name__)

SKIP_DUPLICATE = "duplicate"
SKIP_UNRECOGNIZED = "unrecognized shape"
SKIP_FAILED = "normalize failed"
SKIP_INVALID_PREFIX = "invalid: "


# ---------- Stop flag ----------


@contextmanager
def install_sigint_handler(stop: threading.Event) -> Iterator[threading.Event]:
    """
    While active, Ctrl-C sets `stop` instead of raising KeyboardInterrupt.
    The record in flight finishes; the run then returns with interrupted=True.
    """
    if threading.current_thread() is not threading.main_thread():
        yield stop
        return

    def _handler(signum, frame):  # type: ignore[no-untyped-def]
        logger.warning("interrupt received; finishing current record")
        stop.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield stop
    finally:
        signal.signal(signal.SIGINT, previous)


# ---------- Stages ----------


def prepare_batch(
    batch: ExtractedBatch,
    result: PipelineRunResult,
    *,
    stop: threading.Event | None = None,
) -> list[Property]:
    """Normalize + validate one batch, counting skips on `result`. Order is preserved."""
    result.items_seen += batch.items_seen
    result.count_skip(SKIP_UNRECOGNIZED, batch.items_unrecognized)

    accepted: list[Property] = []
    for raw in batch.records:
        if stop is not None and stop.is_set():
            result.interrupted = True
            break
        outcome = normalize(raw)
        if isinstance(outcome, Skipped):
            result.count_skip(outcome.reason)
            continue
        if isinstance(outcome, Failed):
            logger.warning("normalize failed (%s): %s", batch.source_file or "-", outcome.error)
            result.count_skip(SKIP_FAILED)
            continue

        result.normalized += 1
        prop = outcome.record
        reason = validation_reason(prop)
        if reason:
            result.invalid += 1
            result.count_skip(SKIP_INVALID_PREFIX + reason)
            logger.debug("rejected %r: %s", prop.title[:60], reason)
            continue
        accepted.append(prop)
    return accepted


def _load_batches(paths: Sequence[str]) -> list[ExtractedBatch]:
    return [load_input_file(p) for p in paths]


def _summarize(result: PipelineRunResult, props: Sequence[Property]) -> PipelineRunResult:
    prices = [p.price for p in props]
    price_stats = PriceStats(
        count=len(prices),
        min=min(prices) if prices else None,
        avg=round(sum(prices) / len(prices), 2) if prices else None,
        max=max(prices) if prices else None,
    )
    breakdown = dict(Counter(p.location for p in props).most_common())
    return result.model_copy(
        update={
            "location_breakdown": breakdown,
            "price_stats": price_stats,
            "finished_at": datetime.now(timezone.utc),
        }
    )


def _all_universities(batches: Iterable[ExtractedBatch]) -> list[University]:
    return dedupe_universities(u for b in batches for u in b.universities)


# ---------- Public API ----------


def run_import(
    settings: Settings,
    *,
    engine: Engine | None = None,
    stop: threading.Event | None = None,
) -> PipelineRunResult:
    """
    Import every file in `settings.inputs` into the catalog.

    Raises SetupError subclasses (missing DB URL, missing/bad input file)
    before anything is written; per-record problems are only counted.
    """
    stop = stop or threading.Event()
    result = PipelineRunResult(files=list(settings.inputs))

    batches = _load_batches(settings.inputs)
    if engine is None:
        engine = make_engine(require_database_url(settings), write_timeout_s=settings.write_timeout_s)
    with store_error_guard():
        init_db(engine)

    writer = CatalogWriter(engine, should_stop=stop.is_set)
    if settings.clean_import:
        writer.clear_catalog()

    result.universities_imported = writer.write_universities(_all_universities(batches))

    index = DedupeIndex(writer.existing_keys())
    logger.info("dedup index seeded with %d stored properties", len(index))

    written: list[Property] = []
    for batch in batches:
        if stop.is_set():
            result.interrupted = True
            break
        accepted = prepare_batch(batch, result, stop=stop)
        unique, in_batch = dedupe(accepted)

        wr = writer.write(unique, index=index, on_written=written.append)
        dupes = in_batch + wr.duplicates
        result.duplicates_removed += dupes
        result.count_skip(SKIP_DUPLICATE, dupes)
        result.imported += wr.imported
        result.errors += wr.errors
        result.images_imported += wr.images_imported
        result.interrupted = result.interrupted or wr.interrupted
        logger.info(
            "%s: %d accepted, %d duplicates, %d imported, %d errors",
            batch.source_file,
            len(accepted),
            dupes,
            wr.imported,
            wr.errors,
        )

    return _summarize(result, written)


def consolidate(
    paths: Sequence[str],
    out_path: str | Path | None = None,
    *,
    stop: threading.Event | None = None,
) -> PipelineRunResult:
    """
    Merge input files into one deduplicated, validated JSON document
    ({"metadata", "properties", "universities"}) without touching the store.
    The output re-imports as catalog-shaped records.
    """
    result = PipelineRunResult(files=list(paths))
    batches = _load_batches(paths)

    index = DedupeIndex()
    kept: list[Property] = []
    for batch in batches:
        if stop is not None and stop.is_set():
            result.interrupted = True
            break
        unique, dupes = index.filter(prepare_batch(batch, result, stop=stop))
        kept.extend(unique)
        result.duplicates_removed += dupes
        result.count_skip(SKIP_DUPLICATE, dupes)

    universities = _all_universities(batches)
    result.imported = len(kept)
    result.universities_imported = len(universities)
    result = _summarize(result, kept)

    if out_path is not None:
        doc = {
            "metadata": {
                "generated_at": result.finished_at.isoformat() if result.finished_at else None,
                "sources": result.files,
                "items_seen": result.items_seen,
                "properties": len(kept),
                "universities": len(universities),
                "duplicates_removed": result.duplicates_removed,
                "invalid": result.invalid,
            },
            "properties": [p.model_dump(mode="json", exclude={"id", "created_at", "updated_at"}) for p in kept],
            "universities": [u.model_dump(mode="json") for u in universities],
        }
        out = Path(out_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("wrote %d properties, %d universities to %s", len(kept), len(universities), out)

    return result
