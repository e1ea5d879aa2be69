# backend/app/models/booking.py
"""
Booking model.

A booking is created in ``scheduled`` state and always consumes exactly one
credit from the grant recorded in ``credit_grant_id``. The cancellation
policy version active at booking time is captured so that a later policy
change never alters the terms the client booked under.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.ulid_helper import generate_ulid
from app.database import Base

from .types import UTCDateTime


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionLocation(str, Enum):
    """Where the session takes place."""

    ONLINE = "online"
    IN_PERSON = "in_person"


class Booking(Base):
    """A client's reservation of a practitioner's time, paid with one credit."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_client_status", "client_id", "status"),
        Index("ix_bookings_practitioner_scheduled", "practitioner_id", "scheduled_at"),
    )

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    client_id: Mapped[str] = mapped_column(String(26), nullable=False)
    practitioner_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("practitioners.id"), nullable=False
    )
    session_type_id: Mapped[Optional[str]] = mapped_column(
        String(26), ForeignKey("session_types.id"), nullable=True
    )
    credit_grant_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("credit_grants.id"), nullable=False
    )

    scheduled_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookingStatus.SCHEDULED.value, index=True
    )
    cancellation_policy_version: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Session logistics
    room_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_group: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    session_location: Mapped[str] = mapped_column(
        String(50), nullable=False, default=SessionLocation.ONLINE.value
    )
    physical_location: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime, onupdate=func.now(), nullable=True
    )
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)

    @property
    def is_cancellable(self) -> bool:
        return self.status == BookingStatus.SCHEDULED.value

    def __repr__(self) -> str:
        return f"<Booking {self.id} client={self.client_id} {self.scheduled_at} status={self.status}>"
