"""ORM models for the package catalogue and the per-client request counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PackageRow(Base):
    """A plugin or theme known to the gateway.

    Written by the metadata refresh job; the gateway only reads it.
    """

    __tablename__ = "packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    class_name: Mapped[str] = mapped_column(String(16), index=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_committed: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class RequestCounterRow(Base):
    """Update requests counted for one client identity in its current window.

    Timestamps are naive UTC.
    """

    __tablename__ = "requests"

    identity: Mapped[str] = mapped_column("ip_address", String(255), primary_key=True)
    window_start: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
