# backend/app/models/cancellation.py
"""Immutable record of how a booking cancellation was settled."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ulid_helper import generate_ulid
from app.database import Base

from .types import UTCDateTime, utc_now


class CancellationType(str, Enum):
    STANDARD = "standard"
    LATE = "late"
    LAST_MINUTE = "last_minute"
    GRACE = "grace"


class CancellationRecord(Base):
    """
    One row per cancelled booking.

    Money amounts are integer cents in ``fee_currency`` / ``credit_currency``.
    ``credits_returned`` counts the credit units issued back to the client.
    """

    __tablename__ = "cancellation_records"
    __table_args__ = (UniqueConstraint("booking_id", name="uq_cancellation_records_booking"),)

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    booking_id: Mapped[str] = mapped_column(String(26), ForeignKey("bookings.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    cancelled_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)
    cancellation_type: Mapped[str] = mapped_column(String(20), nullable=False)
    hours_before_start: Mapped[float] = mapped_column(Float, nullable=False)
    fee_charged_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fee_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    credit_returned_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credits_returned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    credit_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    grace_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    refund_grant_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("credit_grants.id"), nullable=True
    )
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    policy_version: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<CancellationRecord booking={self.booking_id} type={self.cancellation_type} "
            f"fee={self.fee_charged_cents} returned={self.credit_returned_cents}>"
        )
