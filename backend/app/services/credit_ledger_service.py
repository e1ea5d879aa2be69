"""Credit ledger: issuing, redeeming and summarising session credits."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import InsufficientCreditException, ValidationException
from app.models.credit import CreditGrant, CreditSourceType
from app.monitoring.prometheus_metrics import prometheus_metrics
from app.repositories.factory import RepositoryFactory

from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class CreditBalanceSummary:
    total_credits: int = 0
    package_credits: int = 0
    type_specific_credits: int = 0
    by_session_type: Dict[str, int] = field(default_factory=dict)
    grants: List[CreditGrant] = field(default_factory=list)


class CreditLedgerService(BaseService):
    """Owns every change to client credit balances."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.grant_repository = RepositoryFactory.create_credit_grant_repository(db)
        self.account_repository = RepositoryFactory.create_ledger_account_repository(db)

    @BaseService.measure_operation("credit_grant")
    def grant(
        self,
        *,
        owner_id: str,
        session_type_id: Optional[str],
        count: int,
        expires_at: Optional[datetime] = None,
        source_type: CreditSourceType = CreditSourceType.PURCHASE,
        source_reference: Optional[str] = None,
        package_id: Optional[str] = None,
        source_booking_id: Optional[str] = None,
        currency: str = "usd",
        amount_cents: int = 0,
        metadata: Optional[Dict[str, Any]] = None,
        use_transaction: bool = True,
    ) -> CreditGrant:
        """Create a grant of ``count`` credits. ``session_type_id=None`` means generic."""
        if count <= 0:
            raise ValidationException(
                "Credit count must be positive", code="INVALID_CREDIT_COUNT", details={"count": count}
            )
        if amount_cents < 0:
            raise ValidationException("Credit amount must not be negative")

        def _grant() -> CreditGrant:
            return self.grant_repository.create(
                owner_id=owner_id,
                session_type_id=session_type_id,
                credits_granted=count,
                credits_remaining=count,
                purchased_at=datetime.now(timezone.utc),
                expires_at=expires_at,
                source_type=source_type.value,
                source_reference=source_reference,
                package_id=package_id,
                source_booking_id=source_booking_id,
                currency=currency.lower(),
                amount_cents=amount_cents,
                grant_metadata=metadata or {},
            )

        if use_transaction:
            with self.transaction():
                credit_grant = _grant()
        else:
            credit_grant = _grant()

        prometheus_metrics.inc_credits_issued(source_type.value, count)
        self.log_operation(
            "credit_grant",
            owner_id=owner_id,
            grant_id=credit_grant.id,
            count=count,
            source=source_type.value,
        )
        return credit_grant

    @BaseService.measure_operation("credit_consume_one")
    def consume_one(self, grant_id: str, *, use_transaction: bool = True) -> int:
        """
        Atomically take one credit from a grant and return the new balance.

        Raises InsufficientCreditException when the grant is missing or empty.
        """

        def _consume() -> int:
            remaining = self.grant_repository.consume_one(grant_id)
            if remaining is None:
                raise InsufficientCreditException(
                    "Credit grant has no remaining credits", details={"grant_id": grant_id}
                )
            return remaining

        if use_transaction:
            with self.transaction():
                remaining = _consume()
        else:
            remaining = _consume()

        prometheus_metrics.inc_credits_consumed()
        return remaining

    def has_used_grace(self, owner_id: str) -> bool:
        """True once the client has had any cancellation settled under grace."""
        if self.account_repository.grace_used(owner_id) > 0:
            return True
        return self.grant_repository.any_grace_flag(owner_id)

    def grace_remaining(self, owner_id: str, allowed: int) -> int:
        used = self.account_repository.grace_used(owner_id)
        if used == 0 and self.grant_repository.any_grace_flag(owner_id):
            # Grants flagged before per-client counting existed
            used = 1
        return max(0, allowed - used)

    def claim_grace(self, owner_id: str, allowed: int) -> bool:
        """Atomically spend one grace cancellation. Runs inside the caller's transaction."""
        if self.grace_remaining(owner_id, allowed) <= 0:
            return False
        return self.account_repository.claim_grace(owner_id, allowed)

    def mark_grace_used(self, grant_id: str) -> None:
        self.grant_repository.mark_grace_used(grant_id)

    @BaseService.measure_operation("credit_balance_summary")
    def get_balance_summary(self, owner_id: str) -> CreditBalanceSummary:
        """Usable credits split into generic and per-session-type buckets."""
        summary = CreditBalanceSummary()
        for credit_grant in self.grant_repository.get_usable_grants(owner_id=owner_id):
            summary.grants.append(credit_grant)
            summary.total_credits += credit_grant.credits_remaining
            if credit_grant.session_type_id is None:
                summary.package_credits += credit_grant.credits_remaining
            else:
                summary.type_specific_credits += credit_grant.credits_remaining
                summary.by_session_type[credit_grant.session_type_id] = (
                    summary.by_session_type.get(credit_grant.session_type_id, 0)
                    + credit_grant.credits_remaining
                )
        return summary
