# main.py
"""
Entry point: StudentHome catalog import

Purpose
-------
Import scraped student-rental data into the catalog:
  1) Load settings (JSON config + STUDENTHOME_* env overrides + CLI flags).
  2) Read every input file (abort with exit code 2 if one is missing/broken).
  3) Normalize → validate → dedupe → write properties, images, universities.
  4) Print a Markdown run summary (optionally also written to --summary-out).

Ctrl-C stops after the record in flight; the partial summary is still printed.

Usage
-----
    python main.py --input data/scraped_data.json --database-url sqlite:///catalog.db
    python main.py --config studenthome.json --clean
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading

from studenthome.core.errors import SetupError, StoreError
from studenthome.core.log import configure_logging
from studenthome.inputs.settings import SettingsLoader
from studenthome.pipeline.run import install_sigint_handler, run_import
from studenthome.reports.summary import render_run_summary, write_summary

logger = logging.getLogger("studenthome.main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="StudentHome catalog import")
    p.add_argument("--config", type=str, default=None, help="Path to JSON settings file.")
    p.add_argument("--input", action="append", default=None, help="Input JSON file (repeatable; overrides config).")
    p.add_argument("--database-url", type=str, default=None, help="SQLAlchemy URL (overrides config/env).")
    p.add_argument("--clean", action="store_true", help="Wipe the catalog before importing.")
    p.add_argument("--summary-out", type=str, default=None, help="Also write the Markdown summary here.")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()

    loader = SettingsLoader()
    try:
        cfg = loader.load(args.config)
        cfg = loader.with_overrides(
            cfg,
            inputs=args.input,
            database_url=args.database_url,
            clean_import=True if args.clean else None,
        )
        configure_logging(cfg.log_level, cfg.log_file)
        if not cfg.inputs:
            raise SetupError("No input files given (use --input or set 'inputs' in the config).")

        with install_sigint_handler(threading.Event()) as stop:
            result = run_import(cfg, stop=stop)
    except SetupError as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2
    except StoreError as e:
        logger.error("catalog unavailable: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 1

    md = render_run_summary(result)
    print(md)
    if args.summary_out:
        write_summary(args.summary_out, md)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
