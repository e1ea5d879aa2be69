"""Credit balance schemas."""

from datetime import datetime
from typing import Dict, List, Optional

from ._strict_base import ORMResponseModel, StrictModel


class CreditGrantResponse(ORMResponseModel):
    id: str
    session_type_id: Optional[str] = None
    credits_granted: int
    credits_remaining: int
    purchased_at: datetime
    expires_at: Optional[datetime] = None
    source_type: str
    currency: str
    amount_cents: int
    grace_cancellation_used: bool


class CreditBalanceResponse(StrictModel):
    client_id: str
    total_credits: int
    package_credits: int
    type_specific_credits: int
    by_session_type: Dict[str, int]
    has_used_grace: bool
    credits: List[CreditGrantResponse]
