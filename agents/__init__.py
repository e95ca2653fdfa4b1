"""
Delivery agents domain package.

Public API:
- Domain models: Agent, AgentStatus
- Eligibility: filter_eligible_agents, with_live_locations
"""
from .models import Agent, AgentId, AgentStatus
from .selection import filter_eligible_agents, with_live_locations

__all__ = ["Agent",
           "AgentId",
             "AgentStatus",
               "filter_eligible_agents",
               "with_live_locations",
               ]
