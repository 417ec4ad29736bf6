# studenthome/core/extract/json_records.py


"""
Input JSON documents → ExtractedBatch.

Accepted document forms:
  - a JSON array of items
  - an object with any of `properties`, `results`, `data` (item arrays)
    and `universities`
  - a single listing object

Items are listing dicts (Rightmove / catalog / loose shapes) or scraped pages
`{url, text}` whose text is HTML. Anything else is counted as unrecognized.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from studenthome.core.errors import InputFileError
from studenthome.schemas.models import ExtractedBatch, RawRecord, SourceContext, University

from .html_records import extract_from_html, looks_like_html
from .shapes import SOURCE_ORIGINS, origin_of, to_raw_record

logger = logging.getLogger(__name__)

PathLike = str | Path

_ITEM_KEYS = ("properties", "results", "data")


# ---------- Helpers ----------


def _is_page(item: Any) -> bool:
    return isinstance(item, dict) and isinstance(item.get("url"), str) and looks_like_html(item.get("text"))


def _item_context(item: dict[str, Any], source_hint: str | None, input_file: str | None) -> SourceContext:
    source = source_hint or (item.get("source") if isinstance(item.get("source"), str) else None) or "scraped"
    url = item.get("source_url") or item.get("url") or item.get("link")
    return SourceContext(
        source=source,
        origin=origin_of(url if isinstance(url, str) else None) or SOURCE_ORIGINS.get(source),
        input_file=input_file,
    )


def _items_of(document: Any) -> list[Any]:
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        items: list[Any] = []
        found = False
        for key in _ITEM_KEYS:
            value = document.get(key)
            if isinstance(value, list):
                items.extend(value)
                found = True
        if found or "universities" in document:
            return items
        return [document]
    return []


def parse_universities(items: Iterable[Any]) -> list[University]:
    """Items shaped {name|university, location|city, url|rightmove_url|source_url}."""
    out: list[University] = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        name = item.get("name") or item.get("university")
        if not isinstance(name, str) or not name.strip():
            continue
        location = item.get("location") or item.get("city")
        url = item.get("url") or item.get("rightmove_url") or item.get("source_url")
        out.append(
            University(
                name=name.strip(),
                location=location.strip() if isinstance(location, str) and location.strip() else None,
                source_url=url if isinstance(url, str) else None,
            )
        )
    return out


# ---------- Public API ----------


def extract_document(
    document: Any,
    *,
    source_hint: str | None = None,
    source_file: str | None = None,
) -> ExtractedBatch:
    """Split a parsed JSON document into raw records and universities."""
    records: list[RawRecord] = []
    universities: list[University] = []
    seen = 0
    unrecognized = 0

    if isinstance(document, dict):
        universities.extend(parse_universities(document.get("universities") or []))

    for item in _items_of(document):
        if _is_page(item):
            page = extract_from_html(item["text"], item["url"], source_hint=source_hint, input_file=source_file)
            records.extend(page.records)
            universities.extend(page.universities)
            seen += page.items_seen
            unrecognized += page.items_unrecognized
            continue

        seen += 1
        rec = to_raw_record(item, _item_context(item, source_hint, source_file)) if isinstance(item, dict) else None
        if rec is None:
            unrecognized += 1
        else:
            records.append(rec)

    if unrecognized:
        logger.info("%s: skipped %d unrecognized item(s)", source_file or "<document>", unrecognized)

    return ExtractedBatch(
        records=records,
        universities=universities,
        items_seen=seen,
        items_unrecognized=unrecognized,
        source_file=source_file,
    )


def extract_records(document: Any, *, source_hint: str | None = None) -> list[RawRecord]:
    return extract_document(document, source_hint=source_hint).records


def load_input_file(path: PathLike, *, source_hint: str | None = None) -> ExtractedBatch:
    """
    Read and extract one input file.

    Raises InputFileError when the file is missing, unreadable or not JSON.
    """
    p = Path(path)
    if not p.is_file():
        raise InputFileError(f"Input file not found: {p}")
    try:
        document = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise InputFileError(f"Cannot read input file {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise InputFileError(f"Input file {p} is not valid JSON: {e}") from e

    batch = extract_document(document, source_hint=source_hint, source_file=str(p))
    logger.info(
        "%s: %d records, %d universities (%d items seen)",
        p.name,
        len(batch.records),
        len(batch.universities),
        batch.items_seen,
    )
    return batch


__all__ = ["extract_document", "extract_records", "load_input_file", "parse_universities"]
