# backend/app/routes/v1/bookings.py
"""
Client booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService and CancellationService.

Endpoints:
    POST / - Book a session, redeeming one credit
    GET / - The caller's bookings, optionally filtered by status
    GET /{booking_id} - Booking details
    POST /{booking_id}/cancel - Cancel a booking under the cancellation policy
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_cancellation_service
from ...auth import AuthenticatedClient, get_current_client
from ...core.exceptions import DomainException
from ...models.booking import BookingStatus
from ...schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingCreateResponse,
    BookingResponse,
    CancellationResponse,
)
from ...services.booking_service import BookingService
from ...services.cancellation_service import CancellationService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Practitioner not found"},
        409: {"description": "No usable session credit"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    current_client: AuthenticatedClient = Depends(get_current_client),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """Book a session, spending one credit from the caller's balance."""
    try:
        result = await asyncio.to_thread(
            booking_service.book,
            client_id=current_client.id,
            practitioner_id=booking_data.practitioner_id,
            scheduled_at=booking_data.scheduled_at,
            duration_minutes=booking_data.duration_minutes,
            session_type_id=booking_data.session_type_id,
            is_group=booking_data.is_group,
            session_location=booking_data.session_location,
            physical_location=booking_data.physical_location,
            notes=booking_data.notes,
        )
    except DomainException as e:
        handle_domain_exception(e)

    return BookingCreateResponse(
        booking_id=result.booking.id,
        status=result.booking.status,
        room_name=result.booking.room_name,
        credit_grant_id=result.credit_grant_id,
        credits_remaining_after=result.credits_remaining_after,
    )


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    booking_status: Optional[BookingStatus] = Query(
        None, alias="status", description="Only bookings in this status"
    ),
    current_client: AuthenticatedClient = Depends(get_current_client),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    """List the caller's bookings, soonest first."""
    bookings = await asyncio.to_thread(
        booking_service.list_bookings_for_client, current_client.id, booking_status
    )
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: str = Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    current_client: AuthenticatedClient = Depends(get_current_client),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Get a booking owned by the caller."""
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking_for_client, booking_id, current_client.id
        )
        return BookingResponse.model_validate(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{booking_id}/cancel",
    response_model=CancellationResponse,
    responses={
        403: {"description": "Booking belongs to another client"},
        404: {"description": "Booking not found"},
        409: {"description": "Booking is not scheduled"},
        503: {"description": "No cancellation policy published"},
    },
)
async def cancel_booking(
    booking_id: str = Path(
        ...,
        description="Booking ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    ),
    cancel_data: BookingCancel = Body(default_factory=BookingCancel),
    current_client: AuthenticatedClient = Depends(get_current_client),
    cancellation_service: CancellationService = Depends(get_cancellation_service),
) -> CancellationResponse:
    """Cancel a booking; fee and returned credit follow the booking's policy version."""
    try:
        result = await asyncio.to_thread(
            cancellation_service.cancel,
            booking_id,
            current_client.id,
            reason=cancel_data.reason,
            use_grace=cancel_data.use_grace,
        )
    except DomainException as e:
        handle_domain_exception(e)

    outcome = result.outcome
    return CancellationResponse(
        cancellation_id=result.record.id,
        booking_id=booking_id,
        cancellation_type=outcome.cancellation_type.value,
        hours_before_start=round(outcome.hours_before_start, 2),
        fee_charged_cents=outcome.fee_charged_cents,
        credit_returned_cents=outcome.credit_returned_cents,
        credits_returned=outcome.credits_returned,
        currency=outcome.currency,
        grace_requested=outcome.grace_requested,
        grace_applied=outcome.grace_applied,
        policy_version=outcome.policy_version,
        refund_grant_id=result.refund_grant.id if result.refund_grant else None,
    )
