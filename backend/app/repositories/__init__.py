# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the session credit ledger.

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- RepositoryFactory: Factory for creating repository instances
- CreditGrantRepository: Grant lookups and atomic balance updates
- ClientLedgerAccountRepository: Per-client grace counter
- Policy repositories: Append-only cancellation and waiver versions

Usage:
    from app.repositories import RepositoryFactory

    # In a service:
    grants = RepositoryFactory.create_credit_grant_repository(db)
    remaining = grants.consume_one(grant_id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .cancellation_record_repository import CancellationRecordRepository
from .catalog_repository import PractitionerRepository, SessionPackageRepository, SessionTypeRepository
from .credit_grant_repository import CreditGrantRepository
from .factory import RepositoryFactory
from .ledger_account_repository import ClientLedgerAccountRepository
from .policy_repository import CancellationPolicyRepository, WaiverPolicyRepository
from .processed_purchase_repository import ProcessedPurchaseRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "CancellationPolicyRepository",
    "CancellationRecordRepository",
    "ClientLedgerAccountRepository",
    "CreditGrantRepository",
    "PractitionerRepository",
    "ProcessedPurchaseRepository",
    "RepositoryFactory",
    "SessionPackageRepository",
    "SessionTypeRepository",
    "WaiverPolicyRepository",
]
