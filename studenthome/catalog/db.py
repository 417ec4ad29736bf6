# studenthome/catalog/db.py
"""
Engine/session helpers over SQLModel.

Any SQLAlchemy URL works: PostgreSQL in production, SQLite for local runs
and tests ("sqlite://" is an in-memory database shared across sessions).
"""

from __future__ import annotations

import logging

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from studenthome.core.errors import MissingConfigError

from . import tables  # noqa: F401  (registers the table metadata)

logger = logging.getLogger(__name__)


def _enable_sqlite_fks(dbapi_conn, _record) -> None:  # type: ignore[no-untyped-def]
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


def make_engine(database_url: str | None, *, write_timeout_s: float = 30.0, echo: bool = False) -> Engine:
    """
    Build an engine for `database_url`.

    `write_timeout_s` becomes the SQLite busy timeout or the PostgreSQL
    statement_timeout.
    """
    if not database_url:
        raise MissingConfigError("No database URL configured (set STUDENTHOME_DATABASE_URL or DATABASE_URL).")

    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False, "timeout": write_timeout_s}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_fks)
    elif database_url.startswith("postgresql"):
        engine = create_engine(
            database_url,
            echo=echo,
            pool_size=5,
            max_overflow=10,
            connect_args={"options": f"-c statement_timeout={int(write_timeout_s * 1000)}"},
        )
    else:
        engine = create_engine(database_url, echo=echo)

    logger.debug("engine ready: %s", engine.url.render_as_string(hide_password=True))
    return engine


def init_db(engine: Engine) -> None:
    """Create catalog tables that do not exist yet."""
    SQLModel.metadata.create_all(engine)


def get_session(engine: Engine) -> Session:
    return Session(engine, expire_on_commit=False)
