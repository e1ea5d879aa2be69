"""
Tier boundaries and pricing for the cancellation policy engine.

Policy under test: >= 12h standard, 5-12h late ($25 / CA$34.25), < 5h last minute.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import PolicyUnavailableException
from app.models.cancellation import CancellationType
from app.models.policy import CancellationPolicy
from app.services.cancellation_policy_engine import CancellationPolicyEngine

NOW = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def policy() -> CancellationPolicy:
    return CancellationPolicy(
        version=3,
        standard_cancellation_hours=12,
        late_cancellation_hours=5,
        late_fees={"usd": 2500, "cad": 3425},
        grace_cancellations_allowed=1,
        is_active=True,
    )


@pytest.fixture
def engine() -> CancellationPolicyEngine:
    return CancellationPolicyEngine()


def _evaluate(engine, policy, hours_out, **kwargs):
    params = dict(unit_value_cents=10000, currency="usd")
    params.update(kwargs)
    return engine.evaluate(
        policy=policy,
        scheduled_at=NOW + timedelta(hours=hours_out),
        now=NOW,
        **params,
    )


class TestTiers:
    def test_well_ahead_is_standard_with_full_return(self, engine, policy):
        outcome = _evaluate(engine, policy, 48)

        assert outcome.cancellation_type == CancellationType.STANDARD
        assert outcome.fee_charged_cents == 0
        assert outcome.credit_returned_cents == 10000
        assert outcome.credits_returned == 1
        assert outcome.policy_version == 3

    def test_exactly_at_standard_boundary_is_standard(self, engine, policy):
        outcome = _evaluate(engine, policy, 12)

        assert outcome.cancellation_type == CancellationType.STANDARD

    def test_seven_hours_out_is_late_with_fee(self, engine, policy):
        outcome = _evaluate(engine, policy, 7)

        assert outcome.cancellation_type == CancellationType.LATE
        assert outcome.fee_charged_cents == 2500
        assert outcome.credit_returned_cents == 7500
        assert outcome.credits_returned == 1
        assert outcome.hours_before_start == pytest.approx(7.0)

    def test_exactly_at_late_boundary_is_late(self, engine, policy):
        outcome = _evaluate(engine, policy, 5)

        assert outcome.cancellation_type == CancellationType.LATE

    def test_just_inside_late_boundary_is_last_minute(self, engine, policy):
        outcome = engine.evaluate(
            policy=policy,
            scheduled_at=NOW + timedelta(hours=5) - timedelta(seconds=1),
            unit_value_cents=10000,
            currency="usd",
            now=NOW,
        )

        assert outcome.cancellation_type == CancellationType.LAST_MINUTE
        assert outcome.fee_charged_cents == 0
        assert outcome.credit_returned_cents == 0
        assert outcome.credits_returned == 0

    def test_late_fee_uses_booking_currency(self, engine, policy):
        outcome = _evaluate(engine, policy, 8, unit_value_cents=13700, currency="CAD")

        assert outcome.currency == "cad"
        assert outcome.fee_charged_cents == 3425
        assert outcome.credit_returned_cents == 13700 - 3425

    def test_late_fee_exceeding_credit_value_is_charged_in_full(self, engine, policy):
        outcome = _evaluate(engine, policy, 8, unit_value_cents=2000)

        assert outcome.fee_charged_cents == 2500
        assert outcome.credit_returned_cents == 0
        assert outcome.credits_returned == 0

    def test_late_fee_recorded_against_zero_value_credit(self, engine, policy):
        outcome = _evaluate(engine, policy, 7, unit_value_cents=0)

        assert outcome.cancellation_type == CancellationType.LATE
        assert outcome.fee_charged_cents == 2500
        assert outcome.credit_returned_cents == 0
        assert outcome.credits_returned == 0

    def test_late_window_without_fee_for_currency_raises(self, engine, policy):
        with pytest.raises(PolicyUnavailableException):
            _evaluate(engine, policy, 8, currency="eur")

    def test_missing_currency_does_not_matter_outside_late_window(self, engine, policy):
        outcome = _evaluate(engine, policy, 30, currency="eur")

        assert outcome.cancellation_type == CancellationType.STANDARD

    def test_naive_start_time_is_treated_as_utc(self, engine, policy):
        outcome = engine.evaluate(
            policy=policy,
            scheduled_at=(NOW + timedelta(hours=7)).replace(tzinfo=None),
            unit_value_cents=10000,
            currency="usd",
            now=NOW,
        )

        assert outcome.cancellation_type == CancellationType.LATE


class TestGrace:
    def test_grace_inside_last_minute_window_returns_everything(self, engine, policy):
        outcome = _evaluate(engine, policy, 2, grace_requested=True, grace_available=True)

        assert outcome.cancellation_type == CancellationType.GRACE
        assert outcome.grace_applied is True
        assert outcome.fee_charged_cents == 0
        assert outcome.credit_returned_cents == 10000
        assert outcome.credits_returned == 1

    def test_grace_requested_but_spent_falls_back_to_tiers(self, engine, policy):
        outcome = _evaluate(engine, policy, 2, grace_requested=True, grace_available=False)

        assert outcome.cancellation_type == CancellationType.LAST_MINUTE
        assert outcome.grace_requested is True
        assert outcome.grace_applied is False

    def test_policy_without_grace_allowance_ignores_request(self, engine, policy):
        policy.grace_cancellations_allowed = 0

        outcome = _evaluate(engine, policy, 7, grace_requested=True, grace_available=True)

        assert outcome.cancellation_type == CancellationType.LATE

    def test_payload_is_json_friendly(self, engine, policy):
        payload = _evaluate(engine, policy, 2, grace_requested=True, grace_available=True).to_payload()

        assert payload["cancellation_type"] == "grace"
        assert payload["grace_applied"] is True
        assert payload["credit_returned_cents"] == 10000
