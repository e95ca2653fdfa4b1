"""
Purpose: The AssignmentEngine, a pure "pick the best agent" decision.
What it does:
Given the restaurant coordinate and rule-qualified agents (position + workload),
keep the ones inside the radius, rank them, and return the winner.

No I/O, no shared state: safe to call from any thread with any inputs.
"Nobody in range" is a normal outcome (NoEligibleAgent), not an exception.
"""

from dataclasses import dataclass
from typing import Sequence, Union

from agents.models import AgentId
from routing.geo import Coordinate
from routing.geofence import geofence_candidates

from .candidate_filter import CandidateAgent
from .scoring import AssignmentCandidate, rank_candidates

DEFAULT_MAX_RADIUS_KM = 10.0


@dataclass(frozen=True)
class AgentSelection:
    agent_id: AgentId
    distance_km: float  # rounded to 2 dp for reporting
    workload: int
    candidates_considered: int = 1


@dataclass(frozen=True)
class NoEligibleAgent:
    radius_km: float
    agents_considered: int = 0


SelectionResult = Union[AgentSelection, NoEligibleAgent]


def select_agent(
    pickup: Coordinate,
    agents: Sequence[CandidateAgent],
    max_radius_km: float = DEFAULT_MAX_RADIUS_KM,
) -> SelectionResult:
    """
    1. distance from the pickup to every agent
    2. drop agents further than max_radius_km (the boundary itself is in range)
    3. nobody left -> NoEligibleAgent carrying the radius
    4. rank by (workload, distance, agent id)
    5. return the head
    """
    in_range = geofence_candidates(pickup, agents, max_radius_km=max_radius_km)

    if not in_range:
        return NoEligibleAgent(radius_km=max_radius_km, agents_considered=len(agents))

    ranked = rank_candidates(
        AssignmentCandidate(
            agent_id=hit.agent.agent_id,
            distance_km=hit.pickup_distance_km,
            workload=hit.agent.workload,
        )
        for hit in in_range
    )
    best = ranked[0]

    return AgentSelection(
        agent_id=best.agent_id,
        distance_km=round(best.distance_km, 2),
        workload=best.workload,
        candidates_considered=len(ranked),
    )
