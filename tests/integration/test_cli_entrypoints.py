# tests/integration/test_cli_entrypoints.py

from __future__ import annotations

import json

import pytest

import consolidate_cli
import main as import_cli
import maintain_cli
from tests.utils import scenario_100_items

pytestmark = pytest.mark.integration


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run each CLI from an empty directory so no stray config file is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def db_url(workdir):
    return f"sqlite:///{workdir / 'catalog.db'}"


def test_import_success_writes_summary(workdir, db_url, input_file, capsys):
    path = input_file(scenario_100_items())
    summary = workdir / "summary.md"
    code = import_cli.main(["--input", str(path), "--database-url", db_url, "--summary-out", str(summary)])
    assert code == 0
    out = capsys.readouterr().out
    assert "- Imported: 80" in out
    assert "- Imported: 80" in summary.read_text(encoding="utf-8")


def test_import_reads_config_file(workdir, db_url, input_file, capsys):
    path = input_file(scenario_100_items())
    cfg = workdir / "settings.json"
    cfg.write_text(json.dumps({"database_url": db_url, "inputs": [str(path)]}), encoding="utf-8")
    assert import_cli.main(["--config", str(cfg)]) == 0
    assert import_cli.main(["--config", str(cfg), "--clean"]) == 0
    assert "- Imported: 80" in capsys.readouterr().out


def test_import_without_database_url_exits_2(workdir, input_file):
    assert import_cli.main(["--input", str(input_file([]))]) == 2


def test_import_without_inputs_exits_2(workdir, db_url):
    assert import_cli.main(["--database-url", db_url]) == 2


def test_import_missing_input_exits_2(workdir, db_url, capsys):
    assert import_cli.main(["--input", str(workdir / "nope.json"), "--database-url", db_url]) == 2
    assert "Input file not found" in capsys.readouterr().err


def test_import_missing_config_exits_2(workdir):
    assert import_cli.main(["--config", str(workdir / "nope.json")]) == 2


def test_env_database_url(workdir, db_url, input_file, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", db_url)
    assert import_cli.main(["--input", str(input_file(scenario_100_items()))]) == 0


def test_unknown_log_level_exits_2(workdir, db_url, input_file, monkeypatch, capsys):
    monkeypatch.setenv("STUDENTHOME_LOG_LEVEL", "verbose")
    assert import_cli.main(["--input", str(input_file([])), "--database-url", db_url]) == 2
    assert "log level" in capsys.readouterr().err
    assert maintain_cli.main(["--database-url", db_url]) == 2


def test_maintain_all_with_stats(workdir, db_url, input_file, capsys):
    assert import_cli.main(["--input", str(input_file(scenario_100_items())), "--database-url", db_url]) == 0
    capsys.readouterr()

    assert maintain_cli.main(["--database-url", db_url, "--stats"]) == 0
    out = capsys.readouterr().out
    assert "| remove_invalid | 80 | 0 |" in out
    assert "# Catalog Statistics" in out
    assert "- Properties: 80" in out


def test_maintain_single_op_and_stats_only(workdir, db_url, capsys):
    assert maintain_cli.main(["--database-url", db_url, "--op", "remove_duplicates"]) == 0
    assert "| remove_duplicates | 0 | 0 |" in capsys.readouterr().out
    assert maintain_cli.main(["--database-url", db_url, "--op", "none"]) == 0
    out = capsys.readouterr().out
    assert "# Maintenance" not in out
    assert "- Properties: 0" in out


def test_maintain_without_database_url_exits_2(workdir):
    assert maintain_cli.main([]) == 2


def test_consolidate_writes_output(workdir, input_file, capsys):
    path = input_file(scenario_100_items())
    out = workdir / "merged.json"
    assert consolidate_cli.main(["--input", str(path), "--out", str(out)]) == 0
    doc = json.loads(out.read_text(encoding="utf-8"))
    assert len(doc["properties"]) == 80
    assert f"written: {out}" in capsys.readouterr().out


def test_consolidate_without_inputs_exits_2(workdir):
    assert consolidate_cli.main([]) == 2
