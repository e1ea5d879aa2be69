"""
Issuance Listener.

Turns completed purchases into credit grants exactly once per upstream
purchase reference. The reference is recorded in ``processed_purchases`` in
the same transaction as the grant, so a replayed or concurrent delivery of the
same event finds the row (or loses on its unique constraint) and is answered
with the original grant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundException, ServiceException, ValidationException
from app.events.purchase_events import PurchaseCompleted
from app.integrations.notification_client import PAYMENT_RECEIPT
from app.models.credit import CreditSourceType
from app.repositories.factory import RepositoryFactory

from .base import BaseService
from .credit_ledger_service import CreditLedgerService
from .notification_dispatch import NotificationSender, dispatch_notification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuanceResult:
    grant_id: Optional[str]
    duplicate: bool
    credits_issued: int = 0


class PurchaseIssuanceService(BaseService):
    """Idempotent purchase → credit grant conversion."""

    def __init__(
        self,
        db: Session,
        notification_client: NotificationSender,
        credit_ledger: Optional[CreditLedgerService] = None,
    ) -> None:
        super().__init__(db)
        self.notification_client = notification_client
        self.credit_ledger = credit_ledger or CreditLedgerService(db)
        self.processed_repository = RepositoryFactory.create_processed_purchase_repository(db)
        self.package_repository = RepositoryFactory.create_session_package_repository(db)

    @BaseService.measure_operation("on_purchase_completed")
    def on_purchase_completed(self, event: PurchaseCompleted) -> IssuanceResult:
        reference = (event.purchase_reference or "").strip()
        if not reference:
            raise ValidationException("purchase_reference is required")

        existing = self.processed_repository.get_by_reference(reference)
        if existing is not None:
            self.logger.info("Purchase %s already processed; ignoring replay", reference)
            return IssuanceResult(grant_id=existing.credit_grant_id, duplicate=True)

        count, session_type_id = self._resolve_scope(event)
        expires_at = None
        if settings.credit_expiry_days:
            expires_at = event.purchased_at + timedelta(days=settings.credit_expiry_days)

        try:
            with self.transaction():
                grant = self.credit_ledger.grant(
                    owner_id=event.client_id,
                    session_type_id=session_type_id,
                    count=count,
                    expires_at=expires_at,
                    source_type=CreditSourceType.PURCHASE,
                    source_reference=reference,
                    package_id=event.package_id,
                    currency=event.currency,
                    amount_cents=event.amount_cents,
                    metadata={"purchase": event.to_dict()},
                    use_transaction=False,
                )
                self.processed_repository.create(
                    purchase_reference=reference,
                    client_id=event.client_id,
                    credit_grant_id=grant.id,
                    payload=event.to_dict(),
                )
        except ServiceException as exc:
            # Race-safe fallback: another delivery of the same purchase won.
            if isinstance(exc.__cause__, IntegrityError):
                winner = self.processed_repository.get_by_reference(reference)
                if winner is not None:
                    self.logger.info("Concurrent delivery of purchase %s lost the race", reference)
                    return IssuanceResult(grant_id=winner.credit_grant_id, duplicate=True)
            raise

        self.log_operation(
            "on_purchase_completed",
            purchase_reference=reference,
            grant_id=grant.id,
            credits=count,
        )
        dispatch_notification(
            self.notification_client,
            PAYMENT_RECEIPT,
            {"purchase_reference": reference, "client_id": event.client_id},
            log=self.logger,
        )
        return IssuanceResult(grant_id=grant.id, duplicate=False, credits_issued=count)

    def _resolve_scope(self, event: PurchaseCompleted) -> Tuple[int, Optional[str]]:
        """Credit count and session-type scope for a purchase."""
        if event.package_id is not None:
            package = self.package_repository.get_by_id(event.package_id)
            if package is None:
                raise NotFoundException(
                    "Session package not found",
                    code="PACKAGE_NOT_FOUND",
                    details={"package_id": event.package_id},
                )
            return event.package_size or package.session_count, package.session_type_id
        if event.package_size is not None:
            return event.package_size, event.session_type_id
        return 1, event.session_type_id
