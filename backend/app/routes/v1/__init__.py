# backend/app/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
All new endpoints should be added here.
"""

from . import (
    admin_credits,
    admin_policies,
    bookings,
    cancellation_policy,
    credits,
    webhooks_payments,
)

__all__ = [
    "admin_credits",
    "admin_policies",
    "bookings",
    "cancellation_policy",
    "credits",
    "webhooks_payments",
]
