"""Payment webhook envelope and acknowledgement."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ._strict_base import StrictModel


class PurchaseCompletedPayload(BaseModel):
    """Completed checkout as relayed by the payment provider."""

    # Providers add fields over time; unknown keys are ignored, not rejected
    model_config = ConfigDict(extra="ignore")

    purchase_reference: str = Field(..., min_length=1, max_length=255)
    client_id: str = Field(..., min_length=1, max_length=26)
    amount_cents: int = Field(..., ge=0, description="Amount paid, in minor units")
    currency: str = Field(default="usd", min_length=3, max_length=3)
    package_id: Optional[str] = Field(default=None, max_length=26)
    package_size: Optional[int] = Field(default=None, gt=0)
    session_type_id: Optional[str] = Field(default=None, max_length=26)
    purchased_at: Optional[datetime] = None

    @field_validator("currency")
    @classmethod
    def lowercase_currency(cls, v: str) -> str:
        return v.lower()


class PurchaseWebhookResponse(StrictModel):
    received: bool = True
    duplicate: bool = False
    grant_id: Optional[str] = None
    credits_issued: int = 0
