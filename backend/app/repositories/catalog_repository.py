# backend/app/repositories/catalog_repository.py
"""Read access to practitioners, session types and packages."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.models.catalog import Practitioner, SessionPackage, SessionType

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PractitionerRepository(BaseRepository[Practitioner]):
    def __init__(self, db: Session):
        super().__init__(db, Practitioner)

    def get_active(self, practitioner_id: str) -> Optional[Practitioner]:
        practitioner = self.get_by_id(practitioner_id)
        if practitioner is None or not practitioner.is_active:
            return None
        return practitioner


class SessionTypeRepository(BaseRepository[SessionType]):
    def __init__(self, db: Session):
        super().__init__(db, SessionType)


class SessionPackageRepository(BaseRepository[SessionPackage]):
    def __init__(self, db: Session):
        super().__init__(db, SessionPackage)


__all__ = ["PractitionerRepository", "SessionPackageRepository", "SessionTypeRepository"]
