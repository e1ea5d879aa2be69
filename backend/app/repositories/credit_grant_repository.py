# backend/app/repositories/credit_grant_repository.py
"""
Credit Grant Repository

Owns every query and mutation against ``credit_grants``. Balance changes are
expressed as single conditional UPDATE statements so concurrent consumers can
never drive a grant below zero; the CHECK constraint is the backstop.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import List, Optional, cast

from sqlalchemy import and_, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryException
from app.models.credit import CreditGrant

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CreditGrantRepository(BaseRepository[CreditGrant]):
    """Repository for credit grant queries and atomic balance updates."""

    def __init__(self, db: Session):
        super().__init__(db, CreditGrant)
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _usable_filter(owner_id: str, now: datetime):
        return and_(
            CreditGrant.owner_id == owner_id,
            CreditGrant.credits_remaining > 0,
            (CreditGrant.expires_at.is_(None) | (CreditGrant.expires_at > now)),
        )

    def find_redeemable(
        self,
        *,
        owner_id: str,
        session_type_id: Optional[str],
        now: Optional[datetime] = None,
    ) -> Optional[CreditGrant]:
        """
        Oldest usable grant in one scope.

        ``session_type_id=None`` means generic (package) credits only; otherwise
        only grants tagged with exactly that session type are considered.
        """
        try:
            now = now or datetime.now(timezone.utc)
            scope = (
                CreditGrant.session_type_id.is_(None)
                if session_type_id is None
                else CreditGrant.session_type_id == session_type_id
            )
            query = (
                self.db.query(CreditGrant)
                .filter(self._usable_filter(owner_id, now), scope)
                .order_by(CreditGrant.purchased_at.asc(), CreditGrant.id.asc())
            )
            return cast(Optional[CreditGrant], query.first())
        except Exception as exc:
            self.logger.error("Failed to find redeemable grant: %s", str(exc))
            raise RepositoryException("Failed to find redeemable grant") from exc

    def get_usable_grants(
        self, *, owner_id: str, now: Optional[datetime] = None
    ) -> List[CreditGrant]:
        """All non-expired grants with a positive balance, oldest first."""
        try:
            now = now or datetime.now(timezone.utc)
            query = (
                self.db.query(CreditGrant)
                .filter(self._usable_filter(owner_id, now))
                .order_by(CreditGrant.purchased_at.asc(), CreditGrant.id.asc())
            )
            return cast(List[CreditGrant], query.all())
        except Exception as exc:
            self.logger.error("Failed to get usable grants: %s", str(exc))
            raise RepositoryException("Failed to get usable grants") from exc

    def consume_one(self, grant_id: str) -> Optional[int]:
        """
        Decrement ``credits_remaining`` by one if it is still positive.

        Returns the new balance, or None when no row was updated (grant missing
        or already exhausted). Never raises for an exhausted grant.
        """
        try:
            stmt = (
                update(CreditGrant)
                .where(CreditGrant.id == grant_id, CreditGrant.credits_remaining > 0)
                .values(credits_remaining=CreditGrant.credits_remaining - 1)
            )
            result = self.db.execute(stmt)
            if result.rowcount != 1:
                return None
            remaining = self.db.execute(
                select(CreditGrant.credits_remaining).where(CreditGrant.id == grant_id)
            ).scalar_one()
            return int(remaining)
        except Exception as exc:
            self.logger.error("Failed to consume credit from grant %s: %s", grant_id, str(exc))
            raise RepositoryException("Failed to consume credit") from exc

    def mark_grace_used(self, grant_id: str) -> None:
        """Flag a grant as the one whose booking was cancelled under grace."""
        try:
            self.db.execute(
                update(CreditGrant)
                .where(CreditGrant.id == grant_id)
                .values(grace_cancellation_used=True)
            )
        except Exception as exc:
            self.logger.error("Failed to flag grace on grant %s: %s", grant_id, str(exc))
            raise RepositoryException("Failed to flag grace usage") from exc

    def any_grace_flag(self, owner_id: str) -> bool:
        """True if any grant of the client carries the grace flag."""
        try:
            return (
                self.db.query(CreditGrant.id)
                .filter(
                    CreditGrant.owner_id == owner_id,
                    CreditGrant.grace_cancellation_used.is_(True),
                )
                .first()
                is not None
            )
        except Exception as exc:
            self.logger.error("Failed to check grace flags: %s", str(exc))
            raise RepositoryException("Failed to check grace flags") from exc


__all__ = ["CreditGrantRepository"]
