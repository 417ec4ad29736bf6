# tests/unit/test_settings_loader.py

from __future__ import annotations

import json
import os

import pytest

from studenthome.core.errors import InputFileError, MissingConfigError, SetupError
from studenthome.inputs.settings import Settings, SettingsLoader, load_settings, require_database_url
from studenthome.schemas.labels import UK_CITIES


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = SettingsLoader().load()
    assert cfg.database_url is None
    assert cfg.inputs == []
    assert cfg.clean_import is False
    assert cfg.known_cities == list(UK_CITIES)
    assert cfg.image_check_timeout_s == 5.0
    assert cfg.image_check_workers == 10


def test_default_file_is_picked_up(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "studenthome.json").write_text(json.dumps({"inputs": ["a.json"]}), encoding="utf-8")
    assert load_settings().inputs == ["a.json"]


def test_explicit_missing_file_raises(tmp_path):
    with pytest.raises(InputFileError):
        SettingsLoader().load(tmp_path / "missing.json")


def test_file_must_be_an_object(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(InputFileError):
        SettingsLoader().load(p)


def test_invalid_values_raise_setup_error():
    with pytest.raises(SetupError):
        SettingsLoader().load_json('{"image_check_workers": 0}')
    with pytest.raises(SetupError):
        SettingsLoader().load_json("{oops")


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("STUDENTHOME_DATABASE_URL", "sqlite:///env.db")
    monkeypatch.setenv("STUDENTHOME_INPUTS", f"a.json,b.json{os.pathsep}c.json")
    monkeypatch.setenv("STUDENTHOME_CLEAN_IMPORT", "yes")
    monkeypatch.setenv("STUDENTHOME_KNOWN_CITIES", "Leeds, York")
    monkeypatch.setenv("STUDENTHOME_IMAGE_CHECK_WORKERS", "4")
    cfg = SettingsLoader().load_json('{"database_url": "sqlite:///file.db"}')
    assert cfg.database_url == "sqlite:///env.db"
    assert cfg.inputs == ["a.json", "b.json", "c.json"]
    assert cfg.clean_import is True
    assert cfg.known_cities == ["Leeds", "York"]
    assert cfg.image_check_workers == 4


def test_plain_database_url_fallback(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/studenthome")
    assert SettingsLoader().load_json("{}").database_url == "postgresql://u:p@db/studenthome"


def test_unparseable_env_value_is_ignored(monkeypatch):
    monkeypatch.setenv("STUDENTHOME_CHECK_IMAGES", "maybe")
    monkeypatch.setenv("STUDENTHOME_WRITE_TIMEOUT_S", "soon")
    cfg = SettingsLoader().load_json("{}")
    assert cfg.check_images is False
    assert cfg.write_timeout_s == 30.0


def test_custom_prefix(monkeypatch):
    monkeypatch.setenv("SH_TEST_CONSOLIDATED_OUT", "out/merged.json")
    cfg = SettingsLoader(env_prefix="SH_TEST_").load_json("{}")
    assert cfg.consolidated_out == "out/merged.json"


def test_with_overrides_skips_none_and_unknown_keys():
    loader = SettingsLoader()
    base = Settings(inputs=["a.json"])
    assert loader.with_overrides(base, inputs=None, unknown="x") is base
    cfg = loader.with_overrides(base, database_url="sqlite://", clean_import=True)
    assert cfg.database_url == "sqlite://"
    assert cfg.clean_import is True
    assert base.database_url is None


def test_require_database_url():
    with pytest.raises(MissingConfigError):
        require_database_url(Settings())
    assert require_database_url(Settings(database_url="sqlite://")) == "sqlite://"


def test_log_level_is_normalized_and_checked(monkeypatch):
    assert SettingsLoader().load_json('{"log_level": " debug "}').log_level == "DEBUG"
    with pytest.raises(SetupError):
        SettingsLoader().load_json('{"log_level": "chatty"}')
    monkeypatch.setenv("STUDENTHOME_LOG_LEVEL", "verbose")
    with pytest.raises(SetupError):
        SettingsLoader().load_json("{}")
