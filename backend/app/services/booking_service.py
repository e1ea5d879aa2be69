# backend/app/services/booking_service.py
"""
Booking Orchestrator.

Creates a booking and redeems exactly one credit for it:

1. verify the practitioner exists
2. pick the grant to spend (fail fast, before any side effect)
3. provision a video room (best effort)
4. insert the booking and consume the credit in one transaction,
   compensating by deleting the booking if consumption fails
5. after commit, request a booking confirmation (best effort)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    InsufficientCreditException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..integrations.notification_client import BOOKING_CONFIRMATION
from ..models.booking import Booking, BookingStatus, SessionLocation
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .credit_ledger_service import CreditLedgerService
from .notification_dispatch import NotificationSender, dispatch_notification
from .policy_service import PolicyService
from .redemption_selector import RedemptionSelector

logger = logging.getLogger(__name__)


class VideoRoomProvider(Protocol):
    def create_room(self, *, name: str, is_group: bool = False) -> Dict[str, Any]: ...


@dataclass(frozen=True)
class BookingResult:
    booking: Booking
    credits_remaining_after: int
    credit_grant_id: str


def build_channel_name(practitioner_id: str, client_id: str, now: datetime) -> str:
    """Room/channel name used when the video provider does not supply one."""
    return f"session-{practitioner_id[:8]}-{client_id[:8]}-{int(now.timestamp() * 1000)}"


class BookingService(BaseService):
    """Books sessions against the client's credit balance."""

    def __init__(
        self,
        db: Session,
        video_client: VideoRoomProvider,
        notification_client: NotificationSender,
        selector: Optional[RedemptionSelector] = None,
        credit_ledger: Optional[CreditLedgerService] = None,
        policy_service: Optional[PolicyService] = None,
    ):
        super().__init__(db)
        self.video_client = video_client
        self.notification_client = notification_client
        self.selector = selector or RedemptionSelector(db)
        self.credit_ledger = credit_ledger or CreditLedgerService(db)
        self.policy_service = policy_service or PolicyService(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.practitioner_repository = RepositoryFactory.create_practitioner_repository(db)
        self.session_type_repository = RepositoryFactory.create_session_type_repository(db)

    @BaseService.measure_operation("book")
    def book(
        self,
        *,
        client_id: str,
        practitioner_id: str,
        scheduled_at: datetime,
        duration_minutes: int,
        session_type_id: Optional[str] = None,
        is_group: Optional[bool] = None,
        session_location: SessionLocation = SessionLocation.ONLINE,
        physical_location: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        now = now or datetime.now(timezone.utc)
        scheduled_at = self._validate_request(scheduled_at, duration_minutes, now)
        physical_location = self._validate_location(session_location, physical_location)

        practitioner = self.practitioner_repository.get_active(practitioner_id)
        if practitioner is None:
            raise NotFoundException(
                "Practitioner not found",
                code="PRACTITIONER_NOT_FOUND",
                details={"practitioner_id": practitioner_id},
            )

        grant = self.selector.select_grant(client_id, session_type_id, now=now)

        if is_group is None:
            is_group = self._session_type_is_group(session_type_id)

        room_name = self._provision_room(practitioner_id, client_id, is_group, now)

        with self.transaction():
            policy = self.policy_service.find_active_policy()
            booking = self.booking_repository.create(
                client_id=client_id,
                practitioner_id=practitioner_id,
                session_type_id=session_type_id,
                credit_grant_id=grant.id,
                scheduled_at=scheduled_at,
                duration_minutes=duration_minutes,
                status=BookingStatus.SCHEDULED.value,
                cancellation_policy_version=policy.version if policy else None,
                room_name=room_name,
                is_group=is_group,
                session_location=SessionLocation(session_location).value,
                physical_location=physical_location,
                notes=notes,
            )
            try:
                remaining = self.credit_ledger.consume_one(grant.id, use_transaction=False)
            except InsufficientCreditException:
                self._compensate(booking.id, grant.id)
                raise
            except RepositoryException as exc:
                self._compensate(booking.id, grant.id)
                raise InsufficientCreditException(
                    "Session credit could not be redeemed", details={"grant_id": grant.id}
                ) from exc

        self.log_operation(
            "book",
            booking_id=booking.id,
            client_id=client_id,
            grant_id=grant.id,
            credits_remaining_after=remaining,
        )
        dispatch_notification(
            self.notification_client,
            BOOKING_CONFIRMATION,
            {"booking_id": booking.id},
            log=self.logger,
        )
        return BookingResult(
            booking=booking, credits_remaining_after=remaining, credit_grant_id=grant.id
        )

    def get_booking_for_client(self, booking_id: str, client_id: str) -> Booking:
        """Load a booking owned by the client."""
        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None or booking.client_id != client_id:
            raise NotFoundException(
                "Booking not found",
                code="BOOKING_NOT_FOUND",
                details={"booking_id": booking_id},
            )
        return booking

    def list_bookings_for_client(
        self, client_id: str, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        """The client's bookings, soonest first, optionally filtered by status."""
        return self.booking_repository.list_for_client(client_id, status=status)

    def _validate_request(
        self, scheduled_at: datetime, duration_minutes: int, now: datetime
    ) -> datetime:
        if scheduled_at.tzinfo is None:
            scheduled_at = scheduled_at.replace(tzinfo=timezone.utc)
        if not settings.min_session_minutes <= duration_minutes <= settings.max_session_minutes:
            raise ValidationException(
                f"Session duration must be between {settings.min_session_minutes} "
                f"and {settings.max_session_minutes} minutes",
                details={"duration_minutes": duration_minutes},
            )
        if scheduled_at <= now:
            raise ValidationException(
                "Sessions must be booked in the future",
                details={"scheduled_at": scheduled_at.isoformat()},
            )
        return scheduled_at

    def _validate_location(
        self, session_location: SessionLocation, physical_location: Optional[str]
    ) -> Optional[str]:
        """Online sessions carry no address; in-person sessions must have one."""
        if SessionLocation(session_location) == SessionLocation.ONLINE:
            return None
        location = (physical_location or "").strip()
        if not location:
            raise ValidationException(
                "In-person sessions need a physical location",
                details={"session_location": SessionLocation.IN_PERSON.value},
            )
        return location

    def _session_type_is_group(self, session_type_id: Optional[str]) -> bool:
        if session_type_id is None:
            return False
        session_type = self.session_type_repository.get_by_id(session_type_id)
        return bool(session_type and session_type.is_group)

    def _provision_room(
        self, practitioner_id: str, client_id: str, is_group: bool, now: datetime
    ) -> str:
        channel_name = build_channel_name(practitioner_id, client_id, now)
        try:
            room = self.video_client.create_room(name=channel_name, is_group=is_group)
        except Exception as exc:
            prometheus_metrics.inc_outbound_failure("video")
            self.logger.warning(
                "Video room provisioning failed, continuing with channel %s: %s",
                channel_name,
                exc,
            )
            return channel_name
        return str(room.get("name") or channel_name)

    def _compensate(self, booking_id: str, grant_id: str) -> None:
        """Remove a booking whose credit could not be consumed."""
        try:
            self.booking_repository.delete(booking_id)
            self.logger.warning(
                "Booking %s removed: credit grant %s could not be consumed", booking_id, grant_id
            )
        except Exception as exc:
            prometheus_metrics.inc_compensation_failure()
            self.logger.critical(
                "Ledger integrity incident: failed to remove booking %s after credit "
                "consumption on grant %s failed: %s",
                booking_id,
                grant_id,
                exc,
            )
