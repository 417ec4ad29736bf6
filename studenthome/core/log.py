# studenthome/core/log.py
"""
Logging setup shared by the CLIs.

Library modules only call `logging.getLogger(__name__)`; handlers are attached
once here, by whichever entry point runs first.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

_ROOT = "studenthome"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "(%Y-%m-%d %H:%M:%S)"


def configure_logging(level: str | int | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Attach a stderr handler (and optionally a rotating file handler) to the
    package logger. Safe to call repeatedly; handlers are not duplicated.

    Level and file come from the loaded Settings (STUDENTHOME_LOG_LEVEL,
    STUDENTHOME_LOG_FILE); before they are loaded the level is INFO.
    """
    logger = logging.getLogger(_ROOT)
    lvl = level if level is not None else "INFO"
    logger.setLevel(lvl.strip().upper() if isinstance(lvl, str) else lvl)

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)

    # Avoid duplicate handlers if reloaded in REPL/tests
    if not any(getattr(h, "_studenthome", False) for h in logger.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        stream._studenthome = True  # type: ignore[attr-defined]
        logger.addHandler(stream)

    path = log_file
    if path and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        handler = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
