#Purpose: Ranking/selection model (the "who is best" layer).
#Takes candidates (already eligible and inside the radius) + features (workload, distance)
#Produces an ordered list, best first.
#Ranking rule:
#fewest active orders first (spread the load)
#then closest to the restaurant
#then lowest agent id, so equal candidates always resolve the same way

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from agents.models import AgentId


@dataclass(frozen=True)
class AssignmentCandidate:
    """
    Ephemeral: computed for one assignment attempt, never persisted.
    """
    agent_id: AgentId
    distance_km: float
    workload: int


def ranking_key(candidate: AssignmentCandidate) -> Tuple:
    return (candidate.workload, candidate.distance_km, candidate.agent_id)


def rank_candidates(candidates: Iterable[AssignmentCandidate]) -> List[AssignmentCandidate]:
    """
    Deterministic ordering; independent of the input order.
    Agent ids within one pool must be mutually comparable (all ints or all strings).
    """
    return sorted(candidates, key=ranking_key)
