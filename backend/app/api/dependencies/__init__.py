# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .database import get_db
from .services import (
    get_booking_service,
    get_cancellation_service,
    get_credit_ledger_service,
    get_notification_client,
    get_policy_service,
    get_purchase_issuance_service,
    get_video_client,
)

__all__ = [
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_cancellation_service",
    "get_credit_ledger_service",
    "get_policy_service",
    "get_purchase_issuance_service",
    # Collaborators
    "get_notification_client",
    "get_video_client",
]
