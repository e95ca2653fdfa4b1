"""
Purpose: Admin approval / rejection of delivery agents.
What it does:
Applies the agent state machine, persists the new status, forgets the live
location of rejected agents, and broadcasts agentStatusChanged so dashboards
and the agent's own app update without polling.
"""

import logging
from typing import Optional

from agents.models import Agent, AgentId, AgentStatus
from tracking.events import AgentStatusEvent
from tracking.location_store import AgentLocationStore

from .errors import AgentNotFound
from .state_machines.agent_state import apply_admin_decision

logger = logging.getLogger(__name__)


class AgentModerationService:
    def __init__(self, store, location_store: Optional[AgentLocationStore] = None, hub=None):
        self.store = store
        self.hub = hub
        self.location_store = location_store if location_store is not None else getattr(hub, "location_store", None)

    def approve(self, agent_id: AgentId) -> Agent:
        return self.decide(agent_id, "approve")

    def reject(self, agent_id: AgentId) -> Agent:
        return self.decide(agent_id, "reject")

    def decide(self, agent_id: AgentId, decision: str) -> Agent:
        agent = self.store.get_agent(agent_id)
        if agent is None:
            raise AgentNotFound(agent_id)

        updated = apply_admin_decision(agent, decision)
        if updated.status != agent.status:
            stored = self.store.set_agent_status(agent_id, updated.status)
            if stored is None:
                raise AgentNotFound(agent_id)
            updated = stored

        if updated.status == AgentStatus.REJECTED and self.location_store is not None:
            self.location_store.discard(updated.id)

        logger.info(f"[Moderation] Agent {agent_id}: {agent.status.value} -> {updated.status.value}")

        if self.hub is not None:
            self.hub.publish(AgentStatusEvent(agent_id=updated.id, status=updated.status))
        return updated
