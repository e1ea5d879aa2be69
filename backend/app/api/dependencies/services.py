# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging
from typing import Union

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...integrations import (
    FakeHundredMsClient,
    FakeNotificationClient,
    HundredMsClient,
    NotificationClient,
)
from ...services.booking_service import BookingService
from ...services.cancellation_service import CancellationService
from ...services.credit_ledger_service import CreditLedgerService
from ...services.policy_service import PolicyService
from ...services.purchase_issuance_service import PurchaseIssuanceService
from .database import get_db

logger = logging.getLogger(__name__)

VideoClient = Union[HundredMsClient, FakeHundredMsClient]
Notifier = Union[NotificationClient, FakeNotificationClient]


@lru_cache(maxsize=1)
def get_video_client() -> VideoClient:
    """100ms client, or an in-memory stand-in when video is not configured."""
    access_key = (settings.hundredms_access_key or "").strip()
    secret = settings.hundredms_app_secret
    if not settings.hundredms_enabled or not access_key or secret is None:
        if settings.hundredms_enabled:
            logger.warning("100ms enabled but credentials missing; using fake video client")
        return FakeHundredMsClient()
    return HundredMsClient(
        access_key=access_key,
        app_secret=secret,
        base_url=settings.hundredms_base_url,
        template_id=settings.hundredms_template_id,
        group_template_id=settings.hundredms_group_template_id,
        timeout=settings.outbound_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_notification_client() -> Notifier:
    if not settings.notifications_enabled:
        return FakeNotificationClient()
    return NotificationClient(
        base_url=settings.notifications_base_url,
        api_key=settings.notifications_api_key,
        timeout=settings.outbound_timeout_seconds,
    )


def get_policy_service(db: Session = Depends(get_db)) -> PolicyService:
    return PolicyService(db)


def get_credit_ledger_service(db: Session = Depends(get_db)) -> CreditLedgerService:
    return CreditLedgerService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    video_client: VideoClient = Depends(get_video_client),
    notification_client: Notifier = Depends(get_notification_client),
) -> BookingService:
    """Get BookingService instance with proper dependencies."""
    return BookingService(db, video_client=video_client, notification_client=notification_client)


def get_cancellation_service(
    db: Session = Depends(get_db),
    notification_client: Notifier = Depends(get_notification_client),
) -> CancellationService:
    return CancellationService(db, notification_client=notification_client)


def get_purchase_issuance_service(
    db: Session = Depends(get_db),
    notification_client: Notifier = Depends(get_notification_client),
) -> PurchaseIssuanceService:
    return PurchaseIssuanceService(db, notification_client=notification_client)
