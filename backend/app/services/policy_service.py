# backend/app/services/policy_service.py
"""
Policy Store.

Holds the versioned cancellation policy and liability-waiver text. Versions
are append-only: publishing deactivates the current version and inserts the
next one inside a single transaction, so readers always see exactly one
active version (or none before the first publish).
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, PolicyUnavailableException, ValidationException
from ..models.policy import CancellationPolicy, WaiverPolicy
from ..repositories.factory import RepositoryFactory
from ..repositories.policy_repository import CancellationPolicyRepository, WaiverPolicyRepository
from .base import BaseService

logger = logging.getLogger(__name__)

_CURRENCY_RE = re.compile(r"^[a-z]{3}$")


class PolicyService(BaseService):
    """Reads and publishes cancellation and waiver policy versions."""

    def __init__(
        self,
        db: Session,
        cancellation_repository: Optional[CancellationPolicyRepository] = None,
        waiver_repository: Optional[WaiverPolicyRepository] = None,
    ):
        super().__init__(db)
        self.cancellation_repository = (
            cancellation_repository or RepositoryFactory.create_cancellation_policy_repository(db)
        )
        self.waiver_repository = (
            waiver_repository or RepositoryFactory.create_waiver_policy_repository(db)
        )

    # ------------------------------------------------------------------
    # Cancellation policy
    # ------------------------------------------------------------------

    @BaseService.measure_operation("get_active_policy")
    def get_active_policy(self) -> CancellationPolicy:
        """Return the active policy or raise PolicyUnavailableException."""
        policy = self.cancellation_repository.get_active()
        if policy is None:
            raise PolicyUnavailableException()
        return policy

    def find_active_policy(self) -> Optional[CancellationPolicy]:
        """Active policy if one has been published, without raising."""
        return self.cancellation_repository.get_active()

    def resolve_policy(self, captured_version: Optional[int]) -> CancellationPolicy:
        """
        Policy a booking is evaluated under.

        The version captured at booking time wins; bookings that predate the
        first published policy fall back to the active version.
        """
        if captured_version is not None:
            policy = self.cancellation_repository.get_by_version(captured_version)
            if policy is not None:
                return policy
            self.logger.warning(
                "Captured cancellation policy v%s missing; using active policy", captured_version
            )
        return self.get_active_policy()

    @BaseService.measure_operation("publish_policy")
    def publish_policy(
        self,
        *,
        standard_cancellation_hours: int,
        late_cancellation_hours: int,
        late_fees: Dict[str, int],
        grace_cancellations_allowed: int = 1,
        policy_text: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> CancellationPolicy:
        """Deactivate the current version and activate a new one."""
        normalized_fees = self._validate_policy(
            standard_cancellation_hours,
            late_cancellation_hours,
            late_fees,
            grace_cancellations_allowed,
        )

        with self.transaction():
            previous = self.cancellation_repository.deactivate_all()
            policy = self.cancellation_repository.create(
                version=self.cancellation_repository.next_version(),
                standard_cancellation_hours=standard_cancellation_hours,
                late_cancellation_hours=late_cancellation_hours,
                late_fees=normalized_fees,
                grace_cancellations_allowed=grace_cancellations_allowed,
                policy_text=policy_text,
                is_active=True,
                created_by=created_by,
            )

        self.log_operation(
            "publish_policy",
            version=policy.version,
            deactivated=previous,
            created_by=created_by,
        )
        return policy

    def list_policy_history(self) -> List[CancellationPolicy]:
        return self.cancellation_repository.list_history()

    @staticmethod
    def _validate_policy(
        standard_hours: int,
        late_hours: int,
        late_fees: Dict[str, int],
        grace_allowed: int,
    ) -> Dict[str, int]:
        if late_hours < 0:
            raise ValidationException("late_cancellation_hours must be zero or positive")
        if standard_hours < late_hours:
            raise ValidationException(
                "standard_cancellation_hours must be at least late_cancellation_hours",
                details={"standard": standard_hours, "late": late_hours},
            )
        if grace_allowed < 0:
            raise ValidationException("grace_cancellations_allowed must be zero or positive")

        normalized: Dict[str, int] = {}
        for currency, amount in (late_fees or {}).items():
            code = currency.strip().lower()
            if not _CURRENCY_RE.match(code):
                raise ValidationException(f"Invalid currency code: {currency!r}")
            if int(amount) < 0:
                raise ValidationException(f"Late fee for {code} must not be negative")
            normalized[code] = int(amount)
        return normalized

    # ------------------------------------------------------------------
    # Liability waiver
    # ------------------------------------------------------------------

    def get_active_waiver(self) -> WaiverPolicy:
        waiver = self.waiver_repository.get_active()
        if waiver is None:
            raise NotFoundException("No active waiver policy", code="WAIVER_NOT_FOUND")
        return waiver

    @BaseService.measure_operation("publish_waiver")
    def publish_waiver(self, *, policy_text: str, created_by: Optional[str] = None) -> WaiverPolicy:
        text = (policy_text or "").strip()
        if not text:
            raise ValidationException("Waiver text must not be empty")

        with self.transaction():
            self.waiver_repository.deactivate_all()
            waiver = self.waiver_repository.create(
                version=self.waiver_repository.next_version(),
                policy_text=text,
                is_active=True,
                created_by=created_by,
            )

        self.log_operation("publish_waiver", version=waiver.version, created_by=created_by)
        return waiver

    def list_waiver_history(self) -> List[WaiverPolicy]:
        return self.waiver_repository.list_history()
