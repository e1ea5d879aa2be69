"""BookingService: selection, room provisioning, atomic redemption and compensation."""

from datetime import timedelta
import logging
from unittest.mock import patch

import pytest

from app.core.exceptions import (
    InsufficientCreditException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from app.core.ulid_helper import generate_ulid
from app.integrations.hundredms_client import HundredMsError
from app.integrations.notification_client import BOOKING_CONFIRMATION, NotificationError
from app.models.booking import Booking, BookingStatus, SessionLocation
from app.models.catalog import SessionType
from app.services.booking_service import BookingService, build_channel_name


@pytest.fixture
def service(db, video_client, notification_client):
    return BookingService(db, video_client=video_client, notification_client=notification_client)


def _book(service, client_id, practitioner, t0, **kwargs):
    params = dict(
        client_id=client_id,
        practitioner_id=practitioner.id,
        scheduled_at=t0 + timedelta(days=2),
        duration_minutes=60,
        now=t0,
    )
    params.update(kwargs)
    return service.book(**params)


def test_booking_consumes_the_only_credit(
    db, service, practitioner, make_grant, client_id, t0, notification_client
):
    grant = make_grant(client_id, credits=1)

    result = _book(service, client_id, practitioner, t0)

    assert result.booking.status == BookingStatus.SCHEDULED.value
    assert result.credit_grant_id == grant.id
    assert result.credits_remaining_after == 0
    db.refresh(grant)
    assert grant.credits_remaining == 0
    assert notification_client.sent == [(BOOKING_CONFIRMATION, {"booking_id": result.booking.id})]


def test_booking_captures_active_policy_version(
    service, practitioner, make_grant, client_id, t0, active_policy
):
    make_grant(client_id)

    result = _book(service, client_id, practitioner, t0)

    assert result.booking.cancellation_policy_version == active_policy.version


def test_booking_without_policy_leaves_version_empty(
    service, practitioner, make_grant, client_id, t0
):
    make_grant(client_id)

    result = _book(service, client_id, practitioner, t0)

    assert result.booking.cancellation_policy_version is None


def test_generic_credit_spent_before_type_specific(
    service, practitioner, make_grant, client_id, t0, session_type
):
    specific = make_grant(client_id, session_type_id=session_type.id, purchased_at=t0 - timedelta(days=30))
    generic = make_grant(client_id, purchased_at=t0 - timedelta(days=1))

    result = _book(service, client_id, practitioner, t0, session_type_id=session_type.id)

    assert result.credit_grant_id == generic.id
    assert result.credit_grant_id != specific.id


def test_type_specific_credit_used_when_no_generic(
    service, practitioner, make_grant, client_id, t0, session_type
):
    specific = make_grant(client_id, session_type_id=session_type.id)

    result = _book(service, client_id, practitioner, t0, session_type_id=session_type.id)

    assert result.credit_grant_id == specific.id


def test_type_specific_credit_not_used_without_session_type(
    db, service, practitioner, make_grant, client_id, t0, session_type
):
    make_grant(client_id, session_type_id=session_type.id)

    with pytest.raises(InsufficientCreditException):
        _book(service, client_id, practitioner, t0)

    assert db.query(Booking).count() == 0


def test_no_credit_fails_before_any_side_effect(
    db, service, practitioner, client_id, t0, video_client, notification_client
):
    with pytest.raises(InsufficientCreditException) as exc_info:
        _book(service, client_id, practitioner, t0)

    assert exc_info.value.code == "INSUFFICIENT_CREDIT"
    assert db.query(Booking).count() == 0
    assert video_client.calls == []
    assert notification_client.sent == []


def test_expired_credit_is_not_redeemable(service, practitioner, make_grant, client_id, t0):
    make_grant(client_id, expires_at=t0 - timedelta(hours=1))

    with pytest.raises(InsufficientCreditException):
        _book(service, client_id, practitioner, t0)


def test_unknown_practitioner_is_not_found(service, make_grant, client_id, t0):
    make_grant(client_id)

    with pytest.raises(NotFoundException) as exc_info:
        service.book(
            client_id=client_id,
            practitioner_id=generate_ulid(),
            scheduled_at=t0 + timedelta(days=1),
            duration_minutes=60,
            now=t0,
        )
    assert exc_info.value.code == "PRACTITIONER_NOT_FOUND"


def test_inactive_practitioner_is_not_found(db, service, practitioner, make_grant, client_id, t0):
    make_grant(client_id)
    practitioner.is_active = False
    db.commit()

    with pytest.raises(NotFoundException):
        _book(service, client_id, practitioner, t0)


@pytest.mark.parametrize("duration", [0, 5, 241])
def test_duration_outside_limits_is_rejected(service, practitioner, make_grant, client_id, t0, duration):
    make_grant(client_id)

    with pytest.raises(ValidationException):
        _book(service, client_id, practitioner, t0, duration_minutes=duration)


def test_past_start_is_rejected(service, practitioner, make_grant, client_id, t0):
    make_grant(client_id)

    with pytest.raises(ValidationException):
        _book(service, client_id, practitioner, t0, scheduled_at=t0 - timedelta(minutes=5))


def test_group_flag_comes_from_session_type(
    db, service, practitioner, make_grant, client_id, t0, video_client
):
    group = SessionType(name="Group Session", duration_minutes=90, is_group=True)
    db.add(group)
    db.commit()
    make_grant(client_id, session_type_id=group.id)

    result = _book(service, client_id, practitioner, t0, session_type_id=group.id)

    assert result.booking.is_group is True
    assert video_client.calls[0]["is_group"] is True


def test_video_failure_falls_back_to_channel_name(
    service, practitioner, make_grant, client_id, t0, video_client
):
    make_grant(client_id)
    video_client.error = HundredMsError("upstream down", status_code=502)

    result = _book(service, client_id, practitioner, t0)

    assert result.booking.room_name == build_channel_name(practitioner.id, client_id, t0)
    assert result.booking.room_name.startswith("session-")


def test_notification_failure_does_not_fail_booking(
    db, service, practitioner, make_grant, client_id, t0, notification_client
):
    make_grant(client_id)
    notification_client.error = NotificationError("timeout")

    result = _book(service, client_id, practitioner, t0)

    assert db.get(Booking, result.booking.id) is not None
    assert len(notification_client.sent) == 1


def test_failed_consumption_removes_the_booking(
    db, service, practitioner, make_grant, client_id, t0, notification_client
):
    grant = make_grant(client_id)

    with patch.object(
        service.credit_ledger,
        "consume_one",
        side_effect=InsufficientCreditException("Credit grant has no remaining credits"),
    ):
        with pytest.raises(InsufficientCreditException):
            _book(service, client_id, practitioner, t0)

    assert db.query(Booking).count() == 0
    db.refresh(grant)
    assert grant.credits_remaining == 1
    assert notification_client.sent == []


def test_storage_failure_during_consumption_is_reported_as_insufficient_credit(
    db, service, practitioner, make_grant, client_id, t0, notification_client
):
    make_grant(client_id)

    with patch.object(
        service.credit_ledger,
        "consume_one",
        side_effect=RepositoryException("Failed to consume credit"),
    ):
        with pytest.raises(InsufficientCreditException) as exc_info:
            _book(service, client_id, practitioner, t0)

    assert exc_info.value.code == "INSUFFICIENT_CREDIT"
    assert isinstance(exc_info.value.__cause__, RepositoryException)
    assert db.query(Booking).count() == 0
    assert notification_client.sent == []


def test_failed_compensation_is_logged_as_critical(
    db, service, practitioner, make_grant, client_id, t0, caplog
):
    make_grant(client_id)

    with patch.object(
        service.credit_ledger,
        "consume_one",
        side_effect=InsufficientCreditException(),
    ), patch.object(
        service.booking_repository, "delete", side_effect=RuntimeError("connection lost")
    ):
        with caplog.at_level(logging.CRITICAL):
            with pytest.raises(InsufficientCreditException):
                _book(service, client_id, practitioner, t0)

    critical = [r for r in caplog.records if r.levelno == logging.CRITICAL]
    assert len(critical) == 1
    assert "Ledger integrity incident" in critical[0].getMessage()


def test_list_bookings_for_client_filters_by_status(
    service, practitioner, make_grant, client_id, t0
):
    make_grant(client_id, credits=2)
    later = _book(service, client_id, practitioner, t0, scheduled_at=t0 + timedelta(days=4)).booking
    sooner = _book(service, client_id, practitioner, t0).booking
    later.status = BookingStatus.CANCELLED.value

    everything = service.list_bookings_for_client(client_id)
    scheduled = service.list_bookings_for_client(client_id, BookingStatus.SCHEDULED)

    assert [b.id for b in everything] == [sooner.id, later.id]
    assert [b.id for b in scheduled] == [sooner.id]
    assert service.list_bookings_for_client(generate_ulid()) == []


def test_in_person_booking_stores_address(service, practitioner, make_grant, client_id, t0):
    make_grant(client_id)

    booking = _book(
        service,
        client_id,
        practitioner,
        t0,
        session_location=SessionLocation.IN_PERSON,
        physical_location="  12 Quiet Lane  ",
    ).booking

    assert booking.session_location == "in_person"
    assert booking.physical_location == "12 Quiet Lane"


def test_in_person_booking_without_address_is_rejected_before_spending(
    db, service, practitioner, make_grant, client_id, t0
):
    grant = make_grant(client_id)

    with pytest.raises(ValidationException):
        _book(service, client_id, practitioner, t0, session_location=SessionLocation.IN_PERSON)

    assert db.query(Booking).count() == 0
    db.refresh(grant)
    assert grant.credits_remaining == 1


def test_online_booking_ignores_address(service, practitioner, make_grant, client_id, t0):
    make_grant(client_id)

    booking = _book(service, client_id, practitioner, t0, physical_location="12 Quiet Lane").booking

    assert booking.session_location == "online"
    assert booking.physical_location is None


def test_get_booking_for_client_hides_other_clients_bookings(
    service, practitioner, make_grant, client_id, t0
):
    make_grant(client_id)
    booking = _book(service, client_id, practitioner, t0).booking

    assert service.get_booking_for_client(booking.id, client_id).id == booking.id
    with pytest.raises(NotFoundException):
        service.get_booking_for_client(booking.id, generate_ulid())
