"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import so settings never pick
up a developer's .env file or on-disk database.
"""

import os
from datetime import datetime, timedelta, timezone

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from sqlalchemy.orm import Session, sessionmaker

from app.adapters.packages.sql import SqlPackageRepository
from app.db.models import Base, PackageRow
from app.db.session import build_engine


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingUpdater:
    """Package updater that only remembers what it was asked to refresh."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def update(self, name: str) -> None:
        self.calls.append(name)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def add_package(session):
    """Insert a package row and return it."""

    def _add(
        name: str,
        *,
        display_name: str | None = None,
        class_name: str = "plugin",
        is_active: bool = True,
        last_committed: datetime | None = None,
    ) -> PackageRow:
        row = PackageRow(
            name=name,
            display_name=display_name if display_name is not None else name.replace("-", " ").title(),
            class_name=class_name,
            is_active=is_active,
            last_committed=last_committed,
        )
        session.add(row)
        session.commit()
        return row

    return _add


@pytest.fixture
def repository(session) -> SqlPackageRepository:
    return SqlPackageRepository(session)


@pytest.fixture
def recording_updater() -> RecordingUpdater:
    return RecordingUpdater()
