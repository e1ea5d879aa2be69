# backend/app/repositories/base_repository.py
"""
Base Repository Pattern for the session credit ledger.

Provides the foundation for the ledger repositories:
- Primary-key lookup, insert and delete
- Type safety with generics
- Uniform translation of SQLAlchemy failures into RepositoryException

Repositories never commit. The service layer owns transaction boundaries,
so a booking insert and its credit consumption land in one commit.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Shared data access for one mapped model.

    Attributes:
        db: SQLAlchemy session (owned by the calling service)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    def _failure(self, action: str, exc: SQLAlchemyError) -> RepositoryException:
        self.logger.error("Failed to %s %s: %s", action, self.model.__name__, exc)
        return RepositoryException(f"Failed to {action} {self.model.__name__}: {exc}")

    def get_by_id(self, id: Any) -> Optional[T]:
        """Retrieve an entity by its primary key."""
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise self._failure("retrieve", e) from e

    def create(self, **kwargs: Any) -> T:
        """
        Insert a new entity and flush it so its id and defaults are populated.

        Integrity errors propagate unchanged so callers can detect duplicate
        purchase references and active-version collisions.
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()
            return entity
        except IntegrityError:
            self.logger.warning("Integrity error creating %s", self.model.__name__)
            raise
        except SQLAlchemyError as e:
            raise self._failure("create", e) from e

    def delete(self, id: Any) -> bool:
        """Delete an entity by primary key; False when it does not exist."""
        try:
            entity = self.get_by_id(id)
            if entity is None:
                return False
            self.db.delete(entity)
            self.db.flush()
            return True
        except SQLAlchemyError as e:
            raise self._failure("delete", e) from e

    def find_one_by(self, **kwargs: Any) -> Optional[T]:
        """First entity matching the given column values."""
        try:
            return self.db.query(self.model).filter_by(**kwargs).first()
        except SQLAlchemyError as e:
            raise self._failure("query", e) from e
