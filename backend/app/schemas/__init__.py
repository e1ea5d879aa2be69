# backend/app/schemas/__init__.py
"""Pydantic schemas for the session credit ledger API."""

from .booking import (
    BookingCancel,
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    CancellationResponse,
)
from .credits import CreditBalanceResponse, CreditGrantResponse
from .policy import (
    CancellationPolicyCreate,
    CancellationPolicyResponse,
    WaiverPolicyCreate,
    WaiverPolicyResponse,
)
from .webhooks import PurchaseCompletedPayload, PurchaseWebhookResponse

__all__ = [
    "BookingCancel",
    "BookingCreate",
    "BookingCreateResponse",
    "BookingResponse",
    "CancellationPolicyCreate",
    "CancellationPolicyResponse",
    "CancellationResponse",
    "CreditBalanceResponse",
    "CreditGrantResponse",
    "PurchaseCompletedPayload",
    "PurchaseWebhookResponse",
    "WaiverPolicyCreate",
    "WaiverPolicyResponse",
]
