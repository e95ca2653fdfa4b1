#Purpose: Non-routing hard eligibility filtering (rule gates).
#Builds the base candidate set before geofencing/scoring.
#Responsibilities:
#admin-approved (status Active)
#has a usable position (live report preferred over the persisted row)
#current workload attached
#
#Output: "rule-qualified agents" (still not ranked, not radius-checked).

from dataclasses import dataclass
from typing import List, Mapping, Optional

from agents.models import Agent, AgentId
from agents.selection import filter_eligible_agents, with_live_locations
from routing.geo import Coordinate


@dataclass(frozen=True)
class CandidateAgent:
    """
    What the AssignmentEngine consumes: an agent reduced to id, position and load.
    `location` is never None here.
    """
    agent_id: AgentId
    location: Coordinate
    workload: int = 0


def locate_eligible_agents(agents: List[Agent], live_locations: Optional[Mapping] = None) -> List[Agent]:
    """
    Active agents that have a position, with live positions overlaid.
    """
    return with_live_locations(filter_eligible_agents(agents), live_locations)


def build_base_candidates(agents: List[Agent], workloads: Mapping[AgentId, int]) -> List[CandidateAgent]:
    """
    Attach workloads to already-located agents.
    An agent missing from `workloads` has no open orders.
    """
    candidates = []
    for agent in agents:
        if agent.location is None:
            continue
        candidates.append(
            CandidateAgent(
                agent_id=agent.id,
                location=agent.location,
                workload=workloads.get(agent.id, 0),
            )
        )
    return candidates
