# backend/app/models/catalog.py
"""
Catalog models: practitioners, session types and purchasable packages.

Only the columns the ledger needs are modelled here. Practitioner profiles,
availability and locations are managed elsewhere.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ulid_helper import generate_ulid
from app.database import Base

from .types import UTCDateTime


class Practitioner(Base):
    """A meditation guide clients can book sessions with."""

    __tablename__ = "practitioners"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Practitioner {self.id} {self.name!r} active={self.is_active}>"


class SessionType(Base):
    """Kind of session a credit can be scoped to (e.g. 60 min 1:1, group sit)."""

    __tablename__ = "session_types"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
    is_group: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    price_usd_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_cad_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<SessionType {self.id} {self.name!r} group={self.is_group}>"


class SessionPackage(Base):
    """A bundle of credits sold together; a null session type means generic credits."""

    __tablename__ = "session_packages"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    session_count: Mapped[int] = mapped_column(Integer, nullable=False)
    session_type_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("session_types.id"), nullable=True
    )
    price_usd_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_cad_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<SessionPackage {self.id} {self.name!r} x{self.session_count}>"
