# tests/conftest.py
from __future__ import annotations

import os
from pathlib import Path

import pytest
from sqlmodel import Session

from studenthome.catalog.db import init_db, make_engine
from studenthome.catalog.writer import CatalogWriter
from studenthome.inputs.settings import Settings
from tests.utils import write_json


# -------- Isolation from the developer's environment --------
@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    for name in list(os.environ):
        if name.startswith("STUDENTHOME_"):
            monkeypatch.delenv(name, raising=False)
    yield


# -------- Catalog store (SQLite in memory) --------
@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def writer(engine):
    return CatalogWriter(engine)


# -------- Inputs --------
@pytest.fixture
def input_file(tmp_path: Path):
    """
    Callable factory writing a JSON document to tmp_path.

    Usage:
        path = input_file([...items...])
        path = input_file({"properties": [...]}, name="other.json")
    """

    def _factory(doc, *, name: str = "input.json") -> Path:
        return write_json(tmp_path, name, doc)

    return _factory


@pytest.fixture
def settings_factory():
    def _factory(*inputs: Path, **overrides) -> Settings:
        return Settings(inputs=[str(p) for p in inputs], **overrides)

    return _factory


# -------- Pytest markers --------
def pytest_configure(config):
    config.addinivalue_line("markers", "integration: marks integration tests")
