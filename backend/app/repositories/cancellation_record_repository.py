# backend/app/repositories/cancellation_record_repository.py
"""Cancellation records are insert-only; this repository never updates them."""

from __future__ import annotations

import logging
from typing import List, Optional, cast

from sqlalchemy.orm import Session

from app.models.cancellation import CancellationRecord

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CancellationRecordRepository(BaseRepository[CancellationRecord]):
    def __init__(self, db: Session):
        super().__init__(db, CancellationRecord)

    def get_for_booking(self, booking_id: str) -> Optional[CancellationRecord]:
        return self.find_one_by(booking_id=booking_id)

    def list_for_user(self, user_id: str) -> List[CancellationRecord]:
        return cast(
            List[CancellationRecord],
            self.db.query(CancellationRecord)
            .filter(CancellationRecord.user_id == user_id)
            .order_by(CancellationRecord.cancelled_at.desc())
            .all(),
        )


__all__ = ["CancellationRecordRepository"]
