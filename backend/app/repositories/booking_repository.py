# backend/app/repositories/booking_repository.py
"""
Booking Repository

Data access for bookings. Status transitions are conditional updates so a
booking can only leave ``scheduled`` once, even under concurrent cancels.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import List, Optional, cast

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryException
from app.models.booking import Booking, BookingStatus

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def mark_cancelled(self, booking_id: str, cancelled_at: datetime) -> bool:
        """Move a scheduled booking to cancelled. False if it was no longer scheduled."""
        try:
            result = self.db.execute(
                update(Booking)
                .where(
                    Booking.id == booking_id,
                    Booking.status == BookingStatus.SCHEDULED.value,
                )
                .values(status=BookingStatus.CANCELLED.value, cancelled_at=cancelled_at)
            )
            return result.rowcount == 1
        except Exception as exc:
            self.logger.error("Failed to cancel booking %s: %s", booking_id, str(exc))
            raise RepositoryException("Failed to cancel booking") from exc

    def list_for_client(
        self, client_id: str, *, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        try:
            query = self.db.query(Booking).filter(Booking.client_id == client_id)
            if status is not None:
                query = query.filter(Booking.status == status.value)
            return cast(List[Booking], query.order_by(Booking.scheduled_at.asc()).all())
        except Exception as exc:
            self.logger.error("Failed to list bookings for %s: %s", client_id, str(exc))
            raise RepositoryException("Failed to list bookings") from exc


__all__ = ["BookingRepository"]
