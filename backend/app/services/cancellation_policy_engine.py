"""Cancellation tier evaluation against a versioned policy."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from app.core.exceptions import PolicyUnavailableException
from app.models.cancellation import CancellationType
from app.models.policy import CancellationPolicy


@dataclass(frozen=True)
class CancellationOutcome:
    cancellation_type: CancellationType
    hours_before_start: float
    currency: str
    policy_version: int
    fee_charged_cents: int = 0
    credit_returned_cents: int = 0
    credits_returned: int = 0
    grace_requested: bool = False
    policy_basis: str = ""

    @property
    def grace_applied(self) -> bool:
        return self.cancellation_type == CancellationType.GRACE

    def to_payload(self) -> dict[str, object]:
        return {
            "cancellation_type": self.cancellation_type.value,
            "hours_before_start": round(self.hours_before_start, 2),
            "currency": self.currency,
            "policy_version": self.policy_version,
            "fee_charged_cents": int(self.fee_charged_cents),
            "credit_returned_cents": int(self.credit_returned_cents),
            "credits_returned": int(self.credits_returned),
            "grace_requested": self.grace_requested,
            "grace_applied": self.grace_applied,
            "policy_basis": self.policy_basis,
        }


class CancellationPolicyEngine:
    """
    Classifies a cancellation and prices it.

    ``unit_value_cents`` is what the client paid for the credit the booking
    consumed. Standard and grace cancellations return that credit in full; a
    late cancellation charges the policy's late fee for the booking currency in
    full and returns whatever credit value is left; a last-minute cancellation
    forfeits it.
    """

    def evaluate(
        self,
        *,
        policy: CancellationPolicy,
        scheduled_at: datetime,
        unit_value_cents: int,
        currency: str,
        grace_requested: bool = False,
        grace_available: bool = False,
        now: Optional[datetime] = None,
    ) -> CancellationOutcome:
        now = now or datetime.now(timezone.utc)
        scheduled_start = scheduled_at
        if scheduled_start.tzinfo is None:
            scheduled_start = scheduled_start.replace(tzinfo=timezone.utc)
        hours_before_start = (scheduled_start - now).total_seconds() / 3600
        currency = currency.lower()
        unit_value_cents = max(0, int(unit_value_cents))

        base = dict(
            hours_before_start=hours_before_start,
            currency=currency,
            policy_version=policy.version,
            grace_requested=grace_requested,
        )

        if grace_requested and grace_available and policy.grace_cancellations_allowed > 0:
            return CancellationOutcome(
                cancellation_type=CancellationType.GRACE,
                credit_returned_cents=unit_value_cents,
                credits_returned=1,
                policy_basis="Grace cancellation: full credit returned, no fee",
                **base,
            )

        if hours_before_start >= policy.standard_cancellation_hours:
            return CancellationOutcome(
                cancellation_type=CancellationType.STANDARD,
                credit_returned_cents=unit_value_cents,
                credits_returned=1,
                policy_basis=(
                    f">= {policy.standard_cancellation_hours}h before start: full credit returned"
                ),
                **base,
            )

        if hours_before_start >= policy.late_cancellation_hours:
            fee = policy.late_fee_cents(currency)
            if fee is None:
                raise PolicyUnavailableException(
                    f"Cancellation policy v{policy.version} has no late fee for {currency.upper()}",
                    details={"policy_version": policy.version, "currency": currency},
                )
            # The policy fee is always recorded; only the returned value is floored at zero
            returned = max(0, unit_value_cents - fee)
            return CancellationOutcome(
                cancellation_type=CancellationType.LATE,
                fee_charged_cents=fee,
                credit_returned_cents=returned,
                credits_returned=1 if returned > 0 else 0,
                policy_basis=(
                    f"{policy.late_cancellation_hours}-{policy.standard_cancellation_hours}h "
                    "before start: credit returned less late fee"
                ),
                **base,
            )

        return CancellationOutcome(
            cancellation_type=CancellationType.LAST_MINUTE,
            policy_basis=f"< {policy.late_cancellation_hours}h before start: credit forfeited",
            **base,
        )
