# maintain_cli.py

from __future__ import annotations

import argparse
import logging
import sys

from studenthome.catalog.db import get_session, init_db, make_engine
from studenthome.catalog.maintenance import CatalogMaintenance
from studenthome.catalog.stats import catalog_stats
from studenthome.core.errors import SetupError, StoreError, store_error_guard
from studenthome.core.fetch.image_check import ImageChecker
from studenthome.core.log import configure_logging
from studenthome.inputs.settings import SettingsLoader, require_database_url
from studenthome.reports.summary import render_catalog_stats, render_maintenance

logger = logging.getLogger("studenthome.maintain")

OPERATIONS = (
    "all",
    "remove_invalid",
    "remove_duplicates",
    "normalize_locations",
    "normalize_image_urls",
    "repair_primary_images",
    "remove_broken_images",
    "none",
)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Catalog maintenance and statistics")
    p.add_argument("--config", type=str, default=None)
    p.add_argument("--database-url", type=str, default=None)
    p.add_argument("--op", choices=OPERATIONS, default="all", help="Operation to run ('none' for stats only)")
    p.add_argument("--check-images", action="store_true", help="HEAD-check image URLs during 'all'")
    p.add_argument("--stats", action="store_true", help="Print catalog statistics afterwards")
    args = p.parse_args(argv)

    configure_logging()
    loader = SettingsLoader()
    try:
        cfg = loader.load(args.config)
        cfg = loader.with_overrides(
            cfg,
            database_url=args.database_url,
            check_images=True if args.check_images else None,
        )
        configure_logging(cfg.log_level, cfg.log_file)
        engine = make_engine(require_database_url(cfg), write_timeout_s=cfg.write_timeout_s)
    except SetupError as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2

    try:
        with store_error_guard():
            init_db(engine)
    except StoreError as e:
        logger.error("catalog unavailable: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 1

    maint = CatalogMaintenance(engine, known_cities=cfg.known_cities)
    checker = ImageChecker(timeout_s=cfg.image_check_timeout_s, workers=cfg.image_check_workers)

    try:
        if args.op == "all":
            results = maint.run_all(checker if cfg.check_images else None)
        elif args.op == "remove_broken_images":
            results = [maint.remove_broken_images(checker)]
        elif args.op == "none":
            results = []
        else:
            results = [getattr(maint, args.op)()]
    except StoreError as e:
        logger.error("maintenance aborted: %s", e)
        print(f"error: {e}", file=sys.stderr)
        return 1

    if results:
        print(render_maintenance(results))
    if args.stats or args.op == "none":
        with get_session(engine) as session:
            print(render_catalog_stats(catalog_stats(session, known_cities=cfg.known_cities)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
