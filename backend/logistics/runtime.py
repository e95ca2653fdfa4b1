"""
Purpose: One process-wide wiring of the dispatch core for the Django app.
What it does:
Builds the policy (from .env), the ORM-backed store, the live location store,
the broadcast hub and the two services once, and hands the same instances to
every view and to the Socket.IO bridge so they share live state.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

from dispatch import AgentModerationService, AssignmentService, DispatchPolicy, policy_from_env
from tracking import AgentLocationStore, LocationBroadcastHub

from .store import DjangoOrderStore, parse_agent_pk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchRuntime:
    policy: DispatchPolicy
    store: DjangoOrderStore
    location_store: AgentLocationStore
    hub: LocationBroadcastHub
    service: AssignmentService
    moderation: AgentModerationService


@lru_cache(maxsize=1)
def get_runtime() -> DispatchRuntime:
    policy = policy_from_env()
    # store calls run on the service's worker threads whenever a timeout is set
    store = DjangoOrderStore(manage_connections=policy.collaborator_timeout_seconds is not None)
    location_store = AgentLocationStore(stale_after_seconds=policy.stale_after_seconds)
    hub = LocationBroadcastHub(
        location_store,
        buffer_size=policy.subscriber_buffer_size,
        agent_id_parser=parse_agent_pk,
        order_agent_lookup=store.agent_for_order,
    )
    runtime = DispatchRuntime(
        policy=policy,
        store=store,
        location_store=location_store,
        hub=hub,
        service=AssignmentService(store, location_store=location_store, hub=hub, policy=policy),
        moderation=AgentModerationService(store, location_store=location_store, hub=hub),
    )
    logger.info(
        f"[Dispatch] Runtime ready (radius {policy.max_radius_km} km, "
        f"stale after {policy.stale_after_seconds}s, store timeout {policy.collaborator_timeout_seconds}s)"
    )
    return runtime
