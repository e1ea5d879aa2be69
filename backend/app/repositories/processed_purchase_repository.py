# backend/app/repositories/processed_purchase_repository.py
"""Set of purchase references that have already been turned into credits."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.models.credit import ProcessedPurchase

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProcessedPurchaseRepository(BaseRepository[ProcessedPurchase]):
    def __init__(self, db: Session):
        super().__init__(db, ProcessedPurchase)

    def get_by_reference(self, purchase_reference: str) -> Optional[ProcessedPurchase]:
        return self.find_one_by(purchase_reference=purchase_reference)


__all__ = ["ProcessedPurchaseRepository"]
