"""
Purpose: Workload signal for ranking agents.
What it does:
Counts each agent's currently active orders straight from the store.
No caching: a load is only ever valid for the single decision that asked for it.
"""

from typing import Collection, Dict, Iterable

from agents.models import AgentId
from orders.models import OrderStatus


class WorkloadIndex:
    """
    load_for(agent) = number of orders assigned to the agent whose status is in
    `active_statuses` (deployment-configurable, see DispatchPolicy.active_statuses).
    """

    def __init__(self, store, active_statuses: Collection[OrderStatus]):
        if not active_statuses:
            raise ValueError("WorkloadIndex needs at least one active order status")
        self.store = store
        self.active_statuses = frozenset(active_statuses)

    def load_for(self, agent_id: AgentId) -> int:
        count = self.store.count_active_orders_for_agent(agent_id, self.active_statuses)
        return max(0, int(count))

    def loads_for(self, agent_ids: Iterable[AgentId]) -> Dict[AgentId, int]:
        return {agent_id: self.load_for(agent_id) for agent_id in agent_ids}
