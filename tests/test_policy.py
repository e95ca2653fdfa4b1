import pytest

import dispatch.policy as policy_module
from dispatch.policy import (
    DEFAULT_ACTIVE_STATUSES,
    DispatchPolicy,
    default_dispatch_policy,
    parse_statuses,
    policy_from_env,
)
from orders.models import OrderStatus

ENV_VARS = [
    "ASSIGN_MAX_KM",
    "ASSIGN_LOAD_STATUSES",
    "LOCATION_STALE_AFTER_SEC",
    "LOCATION_SUBSCRIBER_BUFFER",
    "COLLABORATOR_TIMEOUT_SEC",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's local .env out of these tests
    monkeypatch.setattr(policy_module, "load_dotenv", lambda *args, **kwargs: False)


def test_defaults():
    p = default_dispatch_policy()
    assert p.max_radius_km == 10.0
    assert p.active_statuses == DEFAULT_ACTIVE_STATUSES
    assert p.stale_after_seconds == 300.0
    assert p.subscriber_buffer_size == 256
    assert p.collaborator_timeout_seconds == 5.0


def test_env_matches_defaults_when_unset():
    assert policy_from_env() == default_dispatch_policy()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ASSIGN_MAX_KM", "8")
    monkeypatch.setenv("ASSIGN_LOAD_STATUSES", "pending, Confirmed")
    monkeypatch.setenv("LOCATION_STALE_AFTER_SEC", "0")
    monkeypatch.setenv("LOCATION_SUBSCRIBER_BUFFER", "32")
    monkeypatch.setenv("COLLABORATOR_TIMEOUT_SEC", "0")

    p = policy_from_env()

    assert p.max_radius_km == 8.0
    assert p.active_statuses == {OrderStatus.PENDING, OrderStatus.CONFIRMED}
    assert p.stale_after_seconds is None
    assert p.subscriber_buffer_size == 32
    assert p.collaborator_timeout_seconds is None


def test_unknown_status_name_is_rejected():
    with pytest.raises(ValueError):
        parse_statuses("Pending,Shipped")


@pytest.mark.parametrize("kwargs", [
    {"max_radius_km": 0},
    {"active_statuses": frozenset()},
    {"stale_after_seconds": -1},
    {"subscriber_buffer_size": 0},
    {"collaborator_timeout_seconds": 0},
])
def test_validate_rejects_nonsense(kwargs):
    with pytest.raises(ValueError):
        DispatchPolicy(**kwargs).validate()


def test_negative_radius_from_env_fails_fast(monkeypatch):
    monkeypatch.setenv("ASSIGN_MAX_KM", "-3")
    with pytest.raises(ValueError):
        policy_from_env()
