"""Redemption Selector: decides which grant pays for a booking."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import InsufficientCreditException
from app.models.credit import CreditGrant
from app.repositories.factory import RepositoryFactory

from .base import BaseService

logger = logging.getLogger(__name__)


class RedemptionSelector(BaseService):
    """
    Deterministic grant choice for a booking.

    Generic package credits are spent before type-specific credits, and within
    a scope the oldest purchase goes first. Expired and exhausted grants are never chosen.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.grant_repository = RepositoryFactory.create_credit_grant_repository(db)

    @BaseService.measure_operation("select_grant")
    def select_grant(
        self,
        owner_id: str,
        session_type_id: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> CreditGrant:
        now = now or datetime.now(timezone.utc)

        grant = self.grant_repository.find_redeemable(
            owner_id=owner_id, session_type_id=None, now=now
        )
        if grant is None and session_type_id is not None:
            grant = self.grant_repository.find_redeemable(
                owner_id=owner_id, session_type_id=session_type_id, now=now
            )

        if grant is None:
            self.logger.info(
                "No redeemable credits",
                extra={"owner_id": owner_id, "session_type_id": session_type_id},
            )
            raise InsufficientCreditException(
                details={"owner_id": owner_id, "session_type_id": session_type_id}
            )
        return grant
