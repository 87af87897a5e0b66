"""Engine and session management.

One engine per process, built lazily from settings and rebuilt if the
configured URL changes (primarily in tests).
"""

from __future__ import annotations

import logging
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.models import Base

logger = logging.getLogger(__name__)


_engine: Engine | None = None
_engine_url: str | None = None
_session_factory: sessionmaker[Session] | None = None


def build_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine suitable for a threaded web server.

    SQLite connections are shared across request threads, and an in-memory
    SQLite database is pinned to a single connection so every session sees
    the same data.

    Args:
        url: SQLAlchemy database URL.
        echo: Log emitted SQL.

    Returns:
        Configured Engine.
    """

    parsed = make_url(url)
    kwargs: dict = {"echo": echo, "future": True}

    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    return create_engine(url, **kwargs)


def get_engine() -> Engine:
    """Return the process-wide engine for the configured database URL."""

    global _engine, _engine_url, _session_factory

    url = settings.database.url
    if _engine is None or _engine_url != url:
        _engine = build_engine(url, echo=settings.database.echo)
        _engine_url = url
        _session_factory = None
        logger.info(
            "db.engine_created",
            extra={"backend": make_url(url).get_backend_name()},
        )
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Return the sessionmaker bound to the process-wide engine."""

    global _session_factory

    engine = get_engine()
    if _session_factory is None:
        _session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    return _session_factory


def get_db_session() -> Iterator[Session]:
    """FastAPI dependency yielding a session closed after the request."""

    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


def init_db(engine: Engine | None = None) -> None:
    """Create any missing tables."""

    Base.metadata.create_all(engine or get_engine())
