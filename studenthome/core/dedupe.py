# studenthome/core/dedupe.py
"""
Duplicate suppression.

Two listings are the same when their dedup key matches:
    (folded title, folded location, price to 2 decimals)
where folding collapses runs of whitespace and casefolds.
The first occurrence wins. `DedupeIndex` carries keys across batches and can
be seeded from rows already in the catalog, so re-running an import over the
same files adds nothing.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from studenthome.schemas.models import Property, University

DedupeKey = tuple[str, str, str]


def _fold(value: Any) -> str:
    return " ".join(str(value or "").split()).casefold()


def make_key(title: Any, location: Any, price: Any) -> DedupeKey:
    """Key from raw column values; shared by the in-memory pass and catalog maintenance."""
    try:
        amount = f"{float(price):.2f}"
    except (TypeError, ValueError):
        amount = "0.00"
    return (
        _fold(title),
        _fold(location),
        amount,
    )


def dedupe_key(prop: Property) -> DedupeKey:
    return make_key(prop.title, prop.location, prop.price)


class DedupeIndex:
    """Set of keys already accepted, in this run or in the catalog."""

    def __init__(self, keys: Iterable[DedupeKey] = ()) -> None:
        self._keys: set[DedupeKey] = set(keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, prop: object) -> bool:
        return isinstance(prop, Property) and dedupe_key(prop) in self._keys

    def add(self, prop: Property) -> bool:
        """Record `prop`; False when its key was already present."""
        key = dedupe_key(prop)
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def filter(self, properties: Iterable[Property]) -> tuple[list[Property], int]:
        unique: list[Property] = []
        dupes = 0
        for prop in properties:
            if self.add(prop):
                unique.append(prop)
            else:
                dupes += 1
        return unique, dupes


def dedupe(properties: Iterable[Property]) -> tuple[list[Property], int]:
    """Order-preserving dedup of one batch → (unique, duplicate_count)."""
    return DedupeIndex().filter(properties)


def dedupe_universities(universities: Iterable[University]) -> list[University]:
    """Keep the first university per lower-cased name."""
    seen: set[str] = set()
    out: list[University] = []
    for uni in universities:
        key = uni.name.strip().lower()
        if key and key not in seen:
            seen.add(key)
            out.append(uni)
    return out
