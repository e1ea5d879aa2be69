# backend/app/models/policy.py
"""
Versioned policy models.

Policies are append-only: publishing a new version deactivates the current
one and inserts a fresh row. At most one row per table is active, enforced by
a partial unique index.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Boolean, Index, Integer, String, Text, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ulid_helper import generate_ulid
from app.database import Base

from .types import JSONType, UTCDateTime


class CancellationPolicy(Base):
    """Time-tiered cancellation rules and late fees (in cents per currency)."""

    __tablename__ = "cancellation_policies"
    __table_args__ = (
        UniqueConstraint("version", name="uq_cancellation_policies_version"),
        Index(
            "uq_cancellation_policies_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    standard_cancellation_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    late_cancellation_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    late_fees: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    grace_cancellations_allowed: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    policy_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(26), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), nullable=False
    )

    def late_fee_cents(self, currency: str) -> Optional[int]:
        """Late fee for ``currency``; None when the policy does not price it."""
        fee = (self.late_fees or {}).get(currency.lower())
        return int(fee) if fee is not None else None

    def __repr__(self) -> str:
        return (
            f"<CancellationPolicy v{self.version} standard={self.standard_cancellation_hours}h "
            f"late={self.late_cancellation_hours}h active={self.is_active}>"
        )


class WaiverPolicy(Base):
    """Liability-waiver text clients accept before booking."""

    __tablename__ = "waiver_policies"
    __table_args__ = (
        UniqueConstraint("version", name="uq_waiver_policies_version"),
        Index(
            "uq_waiver_policies_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    policy_text: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(26), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<WaiverPolicy v{self.version} active={self.is_active}>"
