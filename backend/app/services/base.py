# backend/app/services/base.py
"""
Base Service Pattern for the session credit ledger.

Every ledger service owns its transaction boundaries. Repositories only
flush; ``transaction()`` commits once at the end so that multi-step ledger
mutations (book + consume, cancel + refund, grant + processed reference)
either land together or not at all.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """Database session, logger, transaction and timing helpers for services."""

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on success, roll back on any error.

        SQLAlchemy errors surface as ServiceException with the original error
        as ``__cause__``; domain exceptions are re-raised unchanged.

        Usage:
            with self.transaction():
                booking = self.booking_repository.create(...)
                self.credit_ledger.consume_one(grant_id, use_transaction=False)
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed")
        except SQLAlchemyError as e:
            self.logger.error("Transaction failed: %s", e)
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {e}") from e
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and export it as a Prometheus observation.

        Usage:
            @BaseService.measure_operation("book")
            def book(self, ...):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                start_time = time.perf_counter()
                error_type = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    self._observe(operation_name, time.perf_counter() - start_time, error_type)

            return cast(F, wrapper)

        return decorator

    def _observe(self, operation_name: str, elapsed: float, error_type: str | None) -> None:
        if elapsed > SLOW_OPERATION_SECONDS:
            self.logger.warning("Slow operation detected: %s took %.2fs", operation_name, elapsed)

        try:
            prometheus_metrics.record_service_operation(
                service=self.__class__.__name__,
                operation=operation_name,
                duration=elapsed,
                status="success" if error_type is None else "error",
                error_type=error_type,
            )
        except Exception as exc:
            # Metrics collection never breaks the operation
            self.logger.debug("Failed to record metrics for %s: %s", operation_name, exc)

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log a completed ledger operation with structured context."""
        self.logger.info("Operation: %s", operation, extra={"operation": operation, **context})
