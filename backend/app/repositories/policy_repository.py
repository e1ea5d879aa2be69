# backend/app/repositories/policy_repository.py
"""
Repositories for append-only, versioned policies.

Cancellation and waiver policies share the same lifecycle, so both use
``VersionedPolicyRepository`` bound to their own model.
"""

from __future__ import annotations

import logging
from typing import Generic, List, Optional, Type, TypeVar, Union, cast

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryException
from app.models.policy import CancellationPolicy, WaiverPolicy

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Union[CancellationPolicy, WaiverPolicy])


class VersionedPolicyRepository(BaseRepository[P], Generic[P]):
    def __init__(self, db: Session, model: Type[P]):
        super().__init__(db, model)

    def get_active(self) -> Optional[P]:
        try:
            return cast(
                Optional[P],
                self.db.query(self.model).filter(self.model.is_active.is_(True)).first(),
            )
        except Exception as exc:
            self.logger.error("Failed to load active %s: %s", self.model.__name__, str(exc))
            raise RepositoryException(f"Failed to load active {self.model.__name__}") from exc

    def get_by_version(self, version: int) -> Optional[P]:
        return self.find_one_by(version=version)

    def next_version(self) -> int:
        current = self.db.query(func.max(self.model.version)).scalar()
        return int(current or 0) + 1

    def deactivate_all(self) -> int:
        """Flip the active flag off on every version. Returns rows touched."""
        try:
            result = self.db.execute(
                update(self.model)
                .where(self.model.is_active.is_(True))
                .values(is_active=False)
            )
            return int(result.rowcount or 0)
        except Exception as exc:
            self.logger.error("Failed to deactivate %s: %s", self.model.__name__, str(exc))
            raise RepositoryException(f"Failed to deactivate {self.model.__name__}") from exc

    def list_history(self) -> List[P]:
        """Every version, newest first."""
        return cast(
            List[P],
            self.db.query(self.model).order_by(self.model.version.desc()).all(),
        )


class CancellationPolicyRepository(VersionedPolicyRepository[CancellationPolicy]):
    def __init__(self, db: Session):
        super().__init__(db, CancellationPolicy)


class WaiverPolicyRepository(VersionedPolicyRepository[WaiverPolicy]):
    def __init__(self, db: Session):
        super().__init__(db, WaiverPolicy)


__all__ = [
    "CancellationPolicyRepository",
    "VersionedPolicyRepository",
    "WaiverPolicyRepository",
]
