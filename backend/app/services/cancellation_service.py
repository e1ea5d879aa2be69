# backend/app/services/cancellation_service.py
"""
Cancellation Evaluator.

Settles a client's cancellation of a scheduled booking: classifies it under
the policy version captured at booking time, writes one immutable
CancellationRecord, marks the booking cancelled and, unless the credit is
forfeited, issues a one-unit refund grant. Grace cancellations are counted per
client and claimed atomically, so two concurrent grace requests cannot both
succeed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import (
    ForbiddenException,
    InvalidStateException,
    NotFoundException,
)
from ..integrations.notification_client import CANCELLATION_NOTICE
from ..models.booking import Booking, BookingStatus
from ..models.cancellation import CancellationRecord
from ..models.credit import CreditGrant, CreditSourceType
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .cancellation_policy_engine import CancellationOutcome, CancellationPolicyEngine
from .credit_ledger_service import CreditLedgerService
from .notification_dispatch import NotificationSender, dispatch_notification
from .policy_service import PolicyService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancellationResult:
    record: CancellationRecord
    outcome: CancellationOutcome
    refund_grant: Optional[CreditGrant]

    @property
    def grace_applied(self) -> bool:
        return self.outcome.grace_applied


class CancellationService(BaseService):
    """Applies the cancellation policy to a client's booking."""

    def __init__(
        self,
        db: Session,
        notification_client: NotificationSender,
        credit_ledger: Optional[CreditLedgerService] = None,
        policy_service: Optional[PolicyService] = None,
        engine: Optional[CancellationPolicyEngine] = None,
    ):
        super().__init__(db)
        self.notification_client = notification_client
        self.credit_ledger = credit_ledger or CreditLedgerService(db)
        self.policy_service = policy_service or PolicyService(db)
        self.engine = engine or CancellationPolicyEngine()
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.grant_repository = RepositoryFactory.create_credit_grant_repository(db)
        self.record_repository = RepositoryFactory.create_cancellation_record_repository(db)

    @BaseService.measure_operation("cancel_booking")
    def cancel(
        self,
        booking_id: str,
        client_id: str,
        *,
        reason: Optional[str] = None,
        use_grace: bool = False,
        now: Optional[datetime] = None,
    ) -> CancellationResult:
        now = now or datetime.now(timezone.utc)
        booking = self._load_cancellable_booking(booking_id, client_id)
        policy = self.policy_service.resolve_policy(booking.cancellation_policy_version)

        consumed_grant = self.grant_repository.get_by_id(booking.credit_grant_id)
        currency = consumed_grant.currency if consumed_grant else "usd"
        unit_value = consumed_grant.unit_value_cents if consumed_grant else 0

        grace_available = bool(use_grace) and (
            self.credit_ledger.grace_remaining(client_id, policy.grace_cancellations_allowed) > 0
        )

        def _evaluate(grace: bool) -> CancellationOutcome:
            return self.engine.evaluate(
                policy=policy,
                scheduled_at=booking.scheduled_at,
                unit_value_cents=unit_value,
                currency=currency,
                grace_requested=bool(use_grace),
                grace_available=grace,
                now=now,
            )

        outcome = _evaluate(grace_available)

        with self.transaction():
            if outcome.grace_applied:
                if self.credit_ledger.claim_grace(client_id, policy.grace_cancellations_allowed):
                    if consumed_grant is not None:
                        self.credit_ledger.mark_grace_used(consumed_grant.id)
                else:
                    self.logger.info(
                        "Grace already used by client %s; applying standard tiers", client_id
                    )
                    outcome = _evaluate(False)

            if not self.booking_repository.mark_cancelled(booking.id, now):
                raise InvalidStateException(
                    "Booking was cancelled concurrently", current_state=booking.status
                )

            refund_grant = None
            if outcome.credits_returned > 0:
                refund_grant = self.credit_ledger.grant(
                    owner_id=client_id,
                    session_type_id=booking.session_type_id,
                    count=outcome.credits_returned,
                    source_type=CreditSourceType.CANCELLATION_REFUND,
                    source_booking_id=booking.id,
                    currency=currency,
                    amount_cents=outcome.credit_returned_cents,
                    metadata={
                        "source": "cancellation_refund",
                        "cancellation_type": outcome.cancellation_type.value,
                        "policy_version": policy.version,
                    },
                    use_transaction=False,
                )

            record = self.record_repository.create(
                booking_id=booking.id,
                user_id=client_id,
                cancelled_at=now,
                cancellation_type=outcome.cancellation_type.value,
                hours_before_start=outcome.hours_before_start,
                fee_charged_cents=outcome.fee_charged_cents,
                fee_currency=currency,
                credit_returned_cents=outcome.credit_returned_cents,
                credits_returned=outcome.credits_returned,
                credit_currency=currency,
                grace_requested=bool(use_grace),
                refund_grant_id=refund_grant.id if refund_grant else None,
                reason=reason,
                policy_version=policy.version,
            )

        prometheus_metrics.inc_cancellation(outcome.cancellation_type.value)
        self.log_operation("cancel_booking", booking_id=booking.id, **outcome.to_payload())
        dispatch_notification(
            self.notification_client,
            CANCELLATION_NOTICE,
            {
                "cancellation_id": record.id,
                "booking_id": booking.id,
                "cancellation_type": outcome.cancellation_type.value,
            },
            log=self.logger,
        )
        return CancellationResult(record=record, outcome=outcome, refund_grant=refund_grant)

    def _load_cancellable_booking(self, booking_id: str, client_id: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        if booking.client_id != client_id:
            raise ForbiddenException("You can only cancel your own bookings")
        if booking.status != BookingStatus.SCHEDULED.value:
            raise InvalidStateException(
                f"Only scheduled bookings can be cancelled (status: {booking.status})",
                current_state=booking.status,
            )
        return booking


__all__ = ["CancellationResult", "CancellationService"]
