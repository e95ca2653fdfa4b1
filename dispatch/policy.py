"""
Purpose: Central configuration for agent assignment and live tracking.
What it does:

Stores all tunable thresholds/caps for picking an agent and fanning out locations:

ASSIGN_MAX_KM = 10
ASSIGN_LOAD_STATUSES = Pending,Confirmed,Picked
LOCATION_STALE_AFTER_SEC = 300
LOCATION_SUBSCRIBER_BUFFER = 256
COLLABORATOR_TIMEOUT_SEC = 5

Rule: No logic here—just parameters so you can tune without rewriting code.
Deployments override the defaults through the environment (or a .env file).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from dotenv import load_dotenv

from orders.models import OrderStatus

DEFAULT_ACTIVE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PICKED})


@dataclass(frozen=True)
class DispatchPolicy:
    """
    Central configuration for agent assignment and location fan-out.
    """

    # --- Assignment radius ---
    # Agents further than this (great-circle, from the restaurant) are never considered.
    max_radius_km: float = 10.0

    # --- Workload ---
    # Order statuses that count towards an agent's current workload.
    active_statuses: FrozenSet[OrderStatus] = field(default_factory=lambda: DEFAULT_ACTIVE_STATUSES)

    # --- Live locations ---
    # An agent silent for longer than this no longer counts as "live".
    # None keeps every location forever.
    stale_after_seconds: Optional[float] = 300.0

    # Per-subscriber buffer. On overflow the oldest undelivered event is dropped.
    subscriber_buffer_size: int = 256

    # --- Collaborators ---
    # Upper bound on any single store call made while assigning.
    # None calls the store inline, unbounded.
    collaborator_timeout_seconds: Optional[float] = 5.0

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.max_radius_km <= 0:
            raise ValueError("max_radius_km must be > 0")

        if not self.active_statuses:
            raise ValueError("active_statuses must name at least one order status")

        if self.stale_after_seconds is not None and self.stale_after_seconds <= 0:
            raise ValueError("stale_after_seconds must be > 0 (or None to disable expiry)")

        if self.subscriber_buffer_size < 1:
            raise ValueError("subscriber_buffer_size must be >= 1")

        if self.collaborator_timeout_seconds is not None and self.collaborator_timeout_seconds <= 0:
            raise ValueError("collaborator_timeout_seconds must be > 0 (or None to call inline)")


def default_dispatch_policy() -> DispatchPolicy:
    """
    Convenience factory for the default policy.
    """
    p = DispatchPolicy()
    p.validate()
    return p


def parse_statuses(raw: str) -> FrozenSet[OrderStatus]:
    """
    "Pending, Confirmed,Picked" -> {PENDING, CONFIRMED, PICKED}.
    Matching is case-insensitive; unknown names raise ValueError.
    """
    by_name = {status.value.lower(): status for status in OrderStatus}
    statuses = set()
    for name in raw.split(","):
        name = name.strip()
        if not name:
            continue
        try:
            statuses.add(by_name[name.lower()])
        except KeyError:
            raise ValueError(f"Unknown order status {name!r} in ASSIGN_LOAD_STATUSES") from None
    return frozenset(statuses)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def policy_from_env() -> DispatchPolicy:
    """
    Read overrides from the environment.
    Example in .env:
    ASSIGN_MAX_KM=8
    ASSIGN_LOAD_STATUSES=Pending,Confirmed
    LOCATION_STALE_AFTER_SEC=0   # 0 disables expiry
    """
    load_dotenv()

    statuses_raw = os.getenv("ASSIGN_LOAD_STATUSES")
    active_statuses = parse_statuses(statuses_raw) if statuses_raw else DEFAULT_ACTIVE_STATUSES

    stale_after = _float_env("LOCATION_STALE_AFTER_SEC", 300.0)
    timeout = _float_env("COLLABORATOR_TIMEOUT_SEC", 5.0)

    p = DispatchPolicy(
        max_radius_km=_float_env("ASSIGN_MAX_KM", 10.0),
        active_statuses=active_statuses,
        stale_after_seconds=stale_after if stale_after > 0 else None,
        subscriber_buffer_size=int(_float_env("LOCATION_SUBSCRIBER_BUFFER", 256)),
        collaborator_timeout_seconds=timeout if timeout > 0 else None,
    )
    p.validate()
    return p
