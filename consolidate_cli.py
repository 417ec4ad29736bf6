# consolidate_cli.py

from __future__ import annotations

import argparse
import logging
import sys
import threading

from studenthome.core.errors import SetupError
from studenthome.core.log import configure_logging
from studenthome.inputs.settings import SettingsLoader
from studenthome.pipeline.run import consolidate, install_sigint_handler
from studenthome.reports.summary import render_run_summary

logger = logging.getLogger("studenthome.consolidate")


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Merge scraped JSON files into one deduplicated document")
    p.add_argument("--config", type=str, default=None)
    p.add_argument("--input", action="append", default=None, help="Input JSON file (repeatable)")
    p.add_argument("--out", type=str, default=None, help="Output path (default: consolidated_out setting)")
    args = p.parse_args(argv)

    configure_logging()
    loader = SettingsLoader()
    try:
        cfg = loader.load(args.config)
        cfg = loader.with_overrides(cfg, inputs=args.input, consolidated_out=args.out)
        configure_logging(cfg.log_level, cfg.log_file)
        if not cfg.inputs:
            raise SetupError("No input files given (use --input or set 'inputs' in the config).")
        with install_sigint_handler(threading.Event()) as stop:
            result = consolidate(cfg.inputs, cfg.consolidated_out, stop=stop)
    except SetupError as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2

    print(render_run_summary(result, title="Consolidation Summary"))
    print(f"written: {cfg.consolidated_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
