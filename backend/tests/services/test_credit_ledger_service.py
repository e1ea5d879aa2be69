"""CreditLedgerService: grants, atomic consumption, grace bookkeeping and balances."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import InsufficientCreditException, ValidationException
from app.core.ulid_helper import generate_ulid
from app.models.credit import CreditSourceType
from app.services.credit_ledger_service import CreditLedgerService
from app.services.redemption_selector import RedemptionSelector


@pytest.fixture
def ledger(db):
    return CreditLedgerService(db)


def test_grant_creates_full_balance(ledger, client_id, session_type):
    grant = ledger.grant(
        owner_id=client_id,
        session_type_id=session_type.id,
        count=4,
        currency="USD",
        amount_cents=40000,
        source_reference="pi_abc",
    )

    assert grant.credits_granted == 4
    assert grant.credits_remaining == 4
    assert grant.currency == "usd"
    assert grant.unit_value_cents == 10000
    assert grant.source_type == CreditSourceType.PURCHASE.value
    assert grant.is_generic is False


@pytest.mark.parametrize("count", [0, -2])
def test_grant_requires_positive_count(ledger, client_id, count):
    with pytest.raises(ValidationException):
        ledger.grant(owner_id=client_id, session_type_id=None, count=count)


def test_grant_rejects_negative_amount(ledger, client_id):
    with pytest.raises(ValidationException):
        ledger.grant(owner_id=client_id, session_type_id=None, count=1, amount_cents=-1)


def test_consume_one_until_exhausted(db, ledger, client_id):
    grant = ledger.grant(owner_id=client_id, session_type_id=None, count=2)

    assert ledger.consume_one(grant.id) == 1
    assert ledger.consume_one(grant.id) == 0
    with pytest.raises(InsufficientCreditException):
        ledger.consume_one(grant.id)

    db.refresh(grant)
    assert grant.credits_remaining == 0


def test_consume_one_unknown_grant(ledger):
    with pytest.raises(InsufficientCreditException):
        ledger.consume_one(generate_ulid())


def test_grace_counter(db, ledger, client_id):
    assert ledger.has_used_grace(client_id) is False
    assert ledger.grace_remaining(client_id, allowed=2) == 2

    assert ledger.claim_grace(client_id, allowed=2) is True
    db.commit()

    assert ledger.has_used_grace(client_id) is True
    assert ledger.grace_remaining(client_id, allowed=2) == 1


def test_balance_summary_splits_generic_and_type_specific(
    ledger, make_grant, client_id, session_type
):
    make_grant(client_id, credits=3)
    make_grant(client_id, credits=2, remaining=1, session_type_id=session_type.id)
    make_grant(client_id, credits=5, expires_at=datetime.now(timezone.utc) - timedelta(days=1))

    summary = ledger.get_balance_summary(client_id)

    assert summary.total_credits == 4
    assert summary.package_credits == 3
    assert summary.type_specific_credits == 1
    assert summary.by_session_type == {session_type.id: 1}
    assert len(summary.grants) == 2


def test_selector_orders_by_scope_then_age(make_grant, db, client_id, session_type):
    now = datetime.now(timezone.utc)
    make_grant(client_id, session_type_id=session_type.id, purchased_at=now - timedelta(days=9))
    old_generic = make_grant(client_id, purchased_at=now - timedelta(days=5))
    make_grant(client_id, purchased_at=now - timedelta(days=1))

    chosen = RedemptionSelector(db).select_grant(client_id, session_type.id, now=now)

    assert chosen.id == old_generic.id


def test_selector_raises_when_nothing_usable(db, client_id):
    with pytest.raises(InsufficientCreditException):
        RedemptionSelector(db).select_grant(client_id)
