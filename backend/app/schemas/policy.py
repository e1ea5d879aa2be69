"""Cancellation and waiver policy schemas."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import Field, field_validator

from ._strict_base import ORMResponseModel, StrictRequestModel


class CancellationPolicyCreate(StrictRequestModel):
    """Publish a new cancellation policy version (fees in minor units)."""

    standard_cancellation_hours: int = Field(default=12, ge=0)
    late_cancellation_hours: int = Field(default=5, ge=0)
    late_fees: Dict[str, int] = Field(
        default_factory=lambda: {"usd": 2500, "cad": 3425},
        description="Late fee per currency, in cents",
    )
    grace_cancellations_allowed: int = Field(default=1, ge=0)
    policy_text: Optional[str] = Field(default=None, max_length=20000)

    @field_validator("late_fees")
    @classmethod
    def lowercase_currencies(cls, v: Dict[str, int]) -> Dict[str, int]:
        return {currency.strip().lower(): amount for currency, amount in v.items()}


class CancellationPolicyResponse(ORMResponseModel):
    id: str
    version: int
    standard_cancellation_hours: int
    late_cancellation_hours: int
    late_fees: Dict[str, int]
    grace_cancellations_allowed: int
    policy_text: Optional[str] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime


class WaiverPolicyCreate(StrictRequestModel):
    policy_text: str = Field(..., min_length=1, max_length=50000)


class WaiverPolicyResponse(ORMResponseModel):
    id: str
    version: int
    policy_text: str
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime
