"""
Purpose: Business rules for which agents may be considered for an assignment at all.
What it does:
Accepts a pool of agents plus the live location snapshot and returns the agents
that are Active and have a usable coordinate, with the freshest coordinate attached.
"""

from dataclasses import replace
from typing import List, Mapping, Optional

from .models import Agent, AgentId


def filter_eligible_agents(agents: List[Agent]) -> List[Agent]:
    """
    Returns only agents an admin has approved (status Active).
    """
    eligible = []

    for agent in agents:
        if not agent.is_active:
            continue

        eligible.append(agent)

    return eligible


def with_live_locations(agents: List[Agent], live_locations: Optional[Mapping[AgentId, object]] = None) -> List[Agent]:
    """
    Overlay live positions onto the persisted ones and drop agents with no position at all.

    `live_locations` maps agent id -> an entry exposing `.coordinate`
    (AgentLocationStore snapshot entries). A live entry always wins over the
    persisted row, since the device pushes far more often than the row is written.
    """
    live_locations = live_locations or {}
    located = []

    for agent in agents:
        live = live_locations.get(agent.id)
        if live is not None:
            agent = replace(agent, location=live.coordinate)

        if agent.location is None:
            continue

        located.append(agent)

    return located
