"""PurchaseIssuanceService: purchase events become credit grants exactly once."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from app.core.config import settings
from app.core.exceptions import NotFoundException, ValidationException
from app.events.purchase_events import PurchaseCompleted
from app.integrations.notification_client import PAYMENT_RECEIPT
from app.models.credit import CreditGrant, ProcessedPurchase
from app.services.purchase_issuance_service import PurchaseIssuanceService


@pytest.fixture
def service(db, notification_client):
    return PurchaseIssuanceService(db, notification_client=notification_client)


def test_single_session_purchase_grants_one_typed_credit(
    db, service, client_id, session_type, notification_client
):
    event = PurchaseCompleted(
        purchase_reference="pi_single",
        client_id=client_id,
        amount_cents=10000,
        session_type_id=session_type.id,
    )

    result = service.on_purchase_completed(event)

    assert result.duplicate is False
    assert result.credits_issued == 1
    grant = db.get(CreditGrant, result.grant_id)
    assert grant.session_type_id == session_type.id
    assert grant.credits_remaining == 1
    assert grant.source_reference == "pi_single"
    assert grant.expires_at is None
    assert notification_client.sent[0][0] == PAYMENT_RECEIPT


def test_package_purchase_grants_generic_credits(db, service, client_id, make_package):
    package = make_package(session_count=5)
    event = PurchaseCompleted(
        purchase_reference="pi_pkg",
        client_id=client_id,
        amount_cents=45000,
        package_id=package.id,
    )

    result = service.on_purchase_completed(event)

    grant = db.get(CreditGrant, result.grant_id)
    assert result.credits_issued == 5
    assert grant.is_generic is True
    assert grant.package_id == package.id
    assert grant.unit_value_cents == 9000


def test_package_size_without_catalog_entry(db, service, client_id):
    event = PurchaseCompleted(
        purchase_reference="pi_bundle", client_id=client_id, amount_cents=30000, package_size=3
    )

    result = service.on_purchase_completed(event)

    assert db.get(CreditGrant, result.grant_id).credits_granted == 3


def test_replayed_purchase_is_ignored(db, service, client_id, notification_client):
    event = PurchaseCompleted(purchase_reference="pi_dup", client_id=client_id, amount_cents=10000)

    first = service.on_purchase_completed(event)
    second = service.on_purchase_completed(event)

    assert second.duplicate is True
    assert second.grant_id == first.grant_id
    assert second.credits_issued == 0
    assert db.query(CreditGrant).count() == 1
    assert len(notification_client.sent) == 1


def test_concurrent_delivery_losing_the_race_reports_duplicate(db, service, client_id):
    winner_event = PurchaseCompleted(purchase_reference="pi_race", client_id=client_id)
    winner = service.on_purchase_completed(winner_event)
    winner_row = db.query(ProcessedPurchase).filter_by(purchase_reference="pi_race").one()

    # The loser's pre-check ran before the winner committed.
    with patch.object(
        service.processed_repository, "get_by_reference", side_effect=[None, winner_row]
    ):
        result = service.on_purchase_completed(winner_event)

    assert result.duplicate is True
    assert result.grant_id == winner.grant_id
    assert db.query(CreditGrant).count() == 1


def test_unknown_package_is_not_found(service, client_id):
    event = PurchaseCompleted(
        purchase_reference="pi_missing", client_id=client_id, package_id="01HZZZZZZZZZZZZZZZZZZZZZZZ"
    )

    with pytest.raises(NotFoundException) as exc_info:
        service.on_purchase_completed(event)
    assert exc_info.value.code == "PACKAGE_NOT_FOUND"


def test_blank_reference_is_rejected(service, client_id):
    with pytest.raises(ValidationException):
        service.on_purchase_completed(PurchaseCompleted(purchase_reference="  ", client_id=client_id))


def test_expiry_follows_configuration(db, service, client_id, monkeypatch):
    monkeypatch.setattr(settings, "credit_expiry_days", 30)
    purchased_at = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
    event = PurchaseCompleted(
        purchase_reference="pi_exp", client_id=client_id, purchased_at=purchased_at
    )

    result = service.on_purchase_completed(event)

    assert db.get(CreditGrant, result.grant_id).expires_at == purchased_at + timedelta(days=30)
