#Purpose: Radius geofencing logic.
#Builds the "eligible by proximity" set for one pickup point.
#Typical responsibilities:
#Given pickup point + agent positions -> compute great-circle distances
#Apply the max radius threshold (distance_km <= max_radius_km)
#Output: a list of "geo-qualified candidates" with their pickup distance.

from dataclasses import dataclass #for simple data structures
from typing import Any, List, Sequence #for type annotations

from routing.geo import Coordinate, distance_km


@dataclass(frozen=True) #immutable data structure for geofence candidates
class GeofenceCandidate:
    """
    Output of geofencing for a single agent.
    `agent` is whatever the caller passed in (must expose .location),
    carried through untouched so the scoring layer keeps its workload etc.
    """
    agent: Any
    pickup_distance_km: float


def geofence_candidates(
        pickup: Coordinate,
        agents: Sequence[Any],
        *,
        max_radius_km: float,
) -> List[GeofenceCandidate]:
    """
    Keep the agents whose straight-line distance to the pickup is within max_radius_km.

    Args:
        pickup: restaurant coordinate
        agents: objects exposing .location (a Coordinate, never None here)
        max_radius_km: inclusive radius; an agent exactly on the boundary qualifies

    Returns:
        List[GeofenceCandidate] in input order. Ranking is not this module's job.
    """
    #empty agent list edge case
    if not agents:
        return []

    candidates: List[GeofenceCandidate] = []
    for agent in agents:
        distance = distance_km(pickup, agent.location)

        #too far - skip
        if distance > max_radius_km:
            continue

        candidates.append(GeofenceCandidate(agent=agent, pickup_distance_km=distance))

    return candidates
