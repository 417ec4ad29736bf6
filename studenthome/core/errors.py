# studenthome/core/errors.py
"""
Typed errors + utilities for the catalog pipeline.

Exports
-------
- StudentHomeError, SetupError, MissingConfigError, InputFileError,
  StoreError, ImageCheckError
- SETUP_ERRORS
- classify_store_error(exc)
- store_error_guard()

Setup errors abort a run before any record is touched. Store and image-check
errors are per-record: callers log, count and move on.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

# =========================
# Exception types
# =========================


class StudentHomeError(RuntimeError):
    """Base class for pipeline failures."""


class SetupError(StudentHomeError):
    """Fatal misconfiguration detected at startup."""


class MissingConfigError(SetupError):
    """A required setting (e.g. the database URL) is absent."""


class InputFileError(SetupError):
    """An input file is missing, unreadable, or not valid JSON."""


class StoreError(StudentHomeError):
    """A single catalog read/write failed (constraint violation, dropped connection, ...)."""

    def __init__(self, message: str, *, constraint: bool = False) -> None:
        super().__init__(message)
        self.constraint = constraint


class ImageCheckError(StudentHomeError):
    """HEAD check for an image URL failed or timed out."""


SETUP_ERRORS = (MissingConfigError, InputFileError)

_CONSTRAINT_PATTERN = re.compile(
    r"(unique|duplicate|constraint|foreign key|not null|check constraint)",
    re.IGNORECASE,
)

# =========================
# Classification helpers
# =========================


def classify_store_error(exc: Exception) -> StoreError:
    """
    Map arbitrary exceptions raised while talking to the catalog to a StoreError.

    Heuristics:
      - StoreError → passed through
      - sqlalchemy IntegrityError, or messages naming a constraint → StoreError(constraint=True)
      - fallback → StoreError with the exception type in the message
    """
    if isinstance(exc, StoreError):
        return exc

    msg = f"{type(exc).__name__}: {exc}"

    if isinstance(exc, IntegrityError):
        return StoreError(msg, constraint=True)
    return StoreError(msg, constraint=bool(_CONSTRAINT_PATTERN.search(msg)))


@contextmanager
def store_error_guard() -> Iterator[None]:
    """Context manager to normalize unexpected exceptions from the store layer."""
    try:
        yield
    except StoreError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise classify_store_error(exc) from exc


__all__ = [
    "StudentHomeError",
    "SetupError",
    "MissingConfigError",
    "InputFileError",
    "StoreError",
    "ImageCheckError",
    "SETUP_ERRORS",
    "classify_store_error",
    "store_error_guard",
]
