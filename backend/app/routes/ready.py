"""Readiness probe: the database answers and the ledger can price cancellations."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies.database import get_db
from app.core.exceptions import RepositoryException
from app.repositories.factory import RepositoryFactory
from app.schemas.main_responses import ReadyProbeResponse

router = APIRouter(tags=["internal"])
logger = logging.getLogger(__name__)


@router.get("/ready", response_model=ReadyProbeResponse)
def ready_probe(response_obj: Response, db: Session = Depends(get_db)) -> ReadyProbeResponse:
    try:
        db.execute(text("SELECT 1"))
        policy = RepositoryFactory.create_cancellation_policy_repository(db).get_active()
    except (SQLAlchemyError, RepositoryException) as exc:
        logger.warning("Readiness check failed: %s", exc)
        response_obj.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadyProbeResponse(status="db_not_ready")

    if policy is None:
        # Bookings still work; cancellations answer 503 until a policy is published
        logger.info("Ready without an active cancellation policy")
    return ReadyProbeResponse(
        status="ok", active_policy_version=policy.version if policy else None
    )
