# backend/app/schemas/booking.py
"""Booking and cancellation request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from ..models.booking import SessionLocation
from ._strict_base import ORMResponseModel, StrictModel, StrictRequestModel


class BookingCreate(StrictRequestModel):
    """Book a session with one credit from the caller's balance."""

    practitioner_id: str = Field(..., min_length=1, max_length=26)
    scheduled_at: datetime = Field(..., description="Session start (ISO 8601, timezone aware)")
    duration_minutes: int = Field(..., gt=0, description="Session length in minutes")
    session_type_id: Optional[str] = Field(default=None, max_length=26)
    is_group: Optional[bool] = Field(
        default=None, description="Overrides the session type's group flag"
    )
    session_location: SessionLocation = Field(default=SessionLocation.ONLINE)
    physical_location: Optional[str] = Field(
        default=None, max_length=500, description="Address for in-person sessions"
    )
    notes: Optional[str] = Field(default=None, max_length=1000)


class BookingCreateResponse(StrictModel):
    booking_id: str
    status: str
    room_name: str
    credit_grant_id: str
    credits_remaining_after: int


class BookingResponse(ORMResponseModel):
    id: str
    client_id: str
    practitioner_id: str
    session_type_id: Optional[str] = None
    scheduled_at: datetime
    duration_minutes: int
    status: str
    room_name: str
    is_group: bool
    session_location: str
    physical_location: Optional[str] = None
    cancellation_policy_version: Optional[int] = None
    cancelled_at: Optional[datetime] = None


class BookingCancel(StrictRequestModel):
    """Schema for cancelling a booking."""

    reason: Optional[str] = Field(default=None, max_length=500, description="Cancellation reason")
    use_grace: bool = Field(default=False, description="Spend the one-time grace cancellation")

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, v: Optional[str]) -> Optional[str]:
        """Blank reasons are stored as no reason."""
        if v is None:
            return None
        v = v.strip()
        return v or None


class CancellationResponse(StrictModel):
    cancellation_id: str
    booking_id: str
    cancellation_type: str
    hours_before_start: float
    fee_charged_cents: int
    credit_returned_cents: int
    credits_returned: int
    currency: str
    grace_requested: bool
    grace_applied: bool
    policy_version: int
    refund_grant_id: Optional[str] = None
