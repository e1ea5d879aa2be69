# backend/app/models/credit.py
"""
Credit ledger models.

A CreditGrant is one purchase (or refund) worth of session credits. Grants are
never deleted; an exhausted grant simply sits at ``credits_remaining == 0``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ulid_helper import generate_ulid
from app.database import Base

from .types import JSONType, UTCDateTime, utc_now


class CreditSourceType(str, Enum):
    PURCHASE = "purchase"
    CANCELLATION_REFUND = "cancellation_refund"
    ADMIN_ADJUSTMENT = "admin_adjustment"


class CreditGrant(Base):
    """Session credits owned by one client, optionally scoped to a session type."""

    __tablename__ = "credit_grants"
    __table_args__ = (
        CheckConstraint("credits_remaining >= 0", name="ck_credit_grants_remaining_non_negative"),
        CheckConstraint("credits_granted > 0", name="ck_credit_grants_granted_positive"),
        Index("ix_credit_grants_owner_redeemable", "owner_id", "session_type_id", "purchased_at"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    owner_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    session_type_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("session_types.id"), nullable=True
    )
    credits_granted: Mapped[int] = mapped_column(Integer, nullable=False)
    credits_remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    purchased_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)
    expires_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    grace_cancellation_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Source metadata
    source_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default=CreditSourceType.PURCHASE.value
    )
    source_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    package_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("session_packages.id"), nullable=True
    )
    source_booking_id: Mapped[Optional[str]] = mapped_column(String(26), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    grant_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), nullable=False
    )

    @property
    def is_generic(self) -> bool:
        return self.session_type_id is None

    @property
    def unit_value_cents(self) -> int:
        """Cash-equivalent value of one credit from this grant."""
        if self.credits_granted <= 0:
            return 0
        return self.amount_cents // self.credits_granted

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utc_now())

    def __repr__(self) -> str:
        return (
            f"<CreditGrant {self.id} owner={self.owner_id} "
            f"remaining={self.credits_remaining}/{self.credits_granted}>"
        )


class ClientLedgerAccount(Base):
    """Per-client ledger counters (currently the grace-cancellation allowance)."""

    __tablename__ = "client_ledger_accounts"
    __table_args__ = (
        CheckConstraint(
            "grace_cancellations_used >= 0", name="ck_client_ledger_accounts_grace_non_negative"
        ),
    )

    client_id: Mapped[str] = mapped_column(String(26), primary_key=True)
    grace_cancellations_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime, onupdate=func.now(), nullable=True
    )

    def __repr__(self) -> str:
        return f"<ClientLedgerAccount {self.client_id} grace_used={self.grace_cancellations_used}>"


class ProcessedPurchase(Base):
    """Upstream purchase references that have already produced a grant."""

    __tablename__ = "processed_purchases"
    __table_args__ = (
        UniqueConstraint("purchase_reference", name="uq_processed_purchases_reference"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    purchase_reference: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    credit_grant_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("credit_grants.id"), nullable=True
    )
    payload: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    processed_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return f"<ProcessedPurchase {self.purchase_reference} grant={self.credit_grant_id}>"
