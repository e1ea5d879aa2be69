"""PolicyService: versioned publishing and active-policy resolution."""

import pytest

from app.core.exceptions import (
    NotFoundException,
    PolicyUnavailableException,
    ValidationException,
)
from app.services.policy_service import PolicyService


@pytest.fixture
def service(db):
    return PolicyService(db)


def _publish(service, **overrides):
    params = dict(
        standard_cancellation_hours=12,
        late_cancellation_hours=5,
        late_fees={"usd": 2500, "cad": 3425},
    )
    params.update(overrides)
    return service.publish_policy(**params)


def test_no_policy_is_unavailable(service):
    with pytest.raises(PolicyUnavailableException) as exc_info:
        service.get_active_policy()
    assert exc_info.value.status_code == 503
    assert service.find_active_policy() is None


def test_publishing_creates_successive_versions(service):
    first = _publish(service)
    second = _publish(service, late_fees={"USD": 3000})

    assert (first.version, second.version) == (1, 2)
    assert first.is_active is False
    assert second.is_active is True
    assert service.get_active_policy().id == second.id
    assert second.late_fees == {"usd": 3000}
    assert [p.version for p in service.list_policy_history()] == [2, 1]


def test_resolve_prefers_captured_version(service):
    first = _publish(service)
    _publish(service)

    assert service.resolve_policy(first.version).id == first.id
    assert service.resolve_policy(None).version == 2
    assert service.resolve_policy(99).version == 2


@pytest.mark.parametrize(
    "overrides",
    [
        {"standard_cancellation_hours": 4, "late_cancellation_hours": 5},
        {"late_cancellation_hours": -1},
        {"grace_cancellations_allowed": -1},
        {"late_fees": {"usd": -100}},
        {"late_fees": {"dollars": 100}},
    ],
)
def test_invalid_policies_are_rejected(service, overrides):
    with pytest.raises(ValidationException):
        _publish(service, **overrides)
    assert service.find_active_policy() is None


def test_waiver_versions(service):
    with pytest.raises(NotFoundException):
        service.get_active_waiver()

    service.publish_waiver(policy_text="v1 text", created_by="admin")
    latest = service.publish_waiver(policy_text="  v2 text  ")

    assert service.get_active_waiver().id == latest.id
    assert latest.version == 2
    assert latest.policy_text == "v2 text"
    assert len(service.list_waiver_history()) == 2


def test_blank_waiver_rejected(service):
    with pytest.raises(ValidationException):
        service.publish_waiver(policy_text="   ")
