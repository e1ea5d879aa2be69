# backend/app/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .cancellation_record_repository import CancellationRecordRepository
    from .catalog_repository import (
        PractitionerRepository,
        SessionPackageRepository,
        SessionTypeRepository,
    )
    from .credit_grant_repository import CreditGrantRepository
    from .ledger_account_repository import ClientLedgerAccountRepository
    from .policy_repository import CancellationPolicyRepository, WaiverPolicyRepository
    from .processed_purchase_repository import ProcessedPurchaseRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations in tests.
    """

    @staticmethod
    def create_credit_grant_repository(db: Session) -> "CreditGrantRepository":
        """Create repository for credit grants and balance updates."""
        from .credit_grant_repository import CreditGrantRepository

        return CreditGrantRepository(db)

    @staticmethod
    def create_ledger_account_repository(db: Session) -> "ClientLedgerAccountRepository":
        from .ledger_account_repository import ClientLedgerAccountRepository

        return ClientLedgerAccountRepository(db)

    @staticmethod
    def create_processed_purchase_repository(db: Session) -> "ProcessedPurchaseRepository":
        from .processed_purchase_repository import ProcessedPurchaseRepository

        return ProcessedPurchaseRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_cancellation_policy_repository(db: Session) -> "CancellationPolicyRepository":
        from .policy_repository import CancellationPolicyRepository

        return CancellationPolicyRepository(db)

    @staticmethod
    def create_waiver_policy_repository(db: Session) -> "WaiverPolicyRepository":
        from .policy_repository import WaiverPolicyRepository

        return WaiverPolicyRepository(db)

    @staticmethod
    def create_cancellation_record_repository(db: Session) -> "CancellationRecordRepository":
        from .cancellation_record_repository import CancellationRecordRepository

        return CancellationRecordRepository(db)

    @staticmethod
    def create_practitioner_repository(db: Session) -> "PractitionerRepository":
        from .catalog_repository import PractitionerRepository

        return PractitionerRepository(db)

    @staticmethod
    def create_session_type_repository(db: Session) -> "SessionTypeRepository":
        from .catalog_repository import SessionTypeRepository

        return SessionTypeRepository(db)

    @staticmethod
    def create_session_package_repository(db: Session) -> "SessionPackageRepository":
        from .catalog_repository import SessionPackageRepository

        return SessionPackageRepository(db)
