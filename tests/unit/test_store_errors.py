# tests/unit/test_store_errors.py

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from studenthome.core.errors import (
    SETUP_ERRORS,
    InputFileError,
    MissingConfigError,
    SetupError,
    StoreError,
    classify_store_error,
    store_error_guard,
)


def test_setup_error_hierarchy():
    assert issubclass(MissingConfigError, SetupError)
    assert issubclass(InputFileError, SetupError)
    assert set(SETUP_ERRORS) == {MissingConfigError, InputFileError}


def test_integrity_error_is_a_constraint_failure():
    err = classify_store_error(IntegrityError("INSERT ...", {}, Exception("UNIQUE failed")))
    assert isinstance(err, StoreError)
    assert err.constraint is True


def test_operational_error_is_not_a_constraint_failure():
    err = classify_store_error(OperationalError("SELECT 1", {}, Exception("database is locked")))
    assert err.constraint is False
    assert "OperationalError" in str(err)


def test_store_error_passes_through():
    original = StoreError("x", constraint=True)
    assert classify_store_error(original) is original


def test_guard_wraps_and_chains():
    with pytest.raises(StoreError) as ei:
        with store_error_guard():
            raise RuntimeError("connection dropped")
    assert isinstance(ei.value.__cause__, RuntimeError)
    assert ei.value.constraint is False
