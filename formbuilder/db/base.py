"""SQLAlchemy engine management.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. No declarative models are defined here; this module only
manages connection lifecycle. Repositories issue SQL through ``text()``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import create_engine, event, text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from formbuilder.config import get_config

logger = logging.getLogger(__name__)


# Module-level cached Engine so every repository shares one pool
_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(url: str | None = None) -> Engine:
    """Return a singleton SQLAlchemy Engine for the given URL.

    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions and threads during tests.
    """
    global _ENGINE, _ENGINE_URL
    resolved_url = url or get_config().database.dsn

    if _ENGINE is None or _ENGINE_URL != resolved_url:
        kwargs: dict = {"future": True, "pool_pre_ping": True}
        if resolved_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in resolved_url:
                kwargs["poolclass"] = StaticPool
        engine = create_engine(resolved_url, **kwargs)
        if resolved_url.startswith("sqlite"):
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        _ENGINE = engine
        _ENGINE_URL = resolved_url
        logger.info("db.engine.created dialect=%s", engine.dialect.name)

    return _ENGINE


def dispose_engine() -> None:
    """Drop the cached engine (used by tests that switch databases)."""
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None


def check_database() -> dict:
    """Run ``SELECT 1`` and report store health without raising."""
    try:
        with get_engine().connect() as conn:
            conn.execute(sql_text("SELECT 1")).fetchone()
        return {"status": "ok", "db": True}
    except SQLAlchemyError as e:
        logger.error("Health DB check failed", exc_info=True)
        return {"status": "degraded", "db": False, "reason": type(e).__name__}


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, sortable as text."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
