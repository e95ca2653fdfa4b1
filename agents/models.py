"""
Purpose: Core data models for the delivery agents domain.
What it does:
Defines the structure of an Agent and their status without relying on Django ORM constraints.
The backend adapts its rows into these before handing them to the dispatch core.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from routing.geo import Coordinate, coordinate_or_none

AgentId = Union[int, str]


class AgentStatus(str, Enum):
    """
    Standardizes the state an agent can be in.
    Values match what the admin dashboard and the agents table store.
    """
    PENDING = "Pending"
    ACTIVE = "Active"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class Agent:
    """
    A purely stateless representation of a delivery agent at a specific point in time.
    Workload is deliberately absent: it is derived per decision by the WorkloadIndex.
    """
    id: AgentId
    status: AgentStatus

    # Last persisted position; None until the agent first reports one.
    location: Optional[Coordinate] = None
    name: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == AgentStatus.ACTIVE

    @classmethod
    def new(
        cls,
        agent_id: AgentId,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        status: str | AgentStatus = AgentStatus.PENDING,
        name: Optional[str] = None,
    ) -> Agent:
        if isinstance(status, str):
            status = AgentStatus(status)

        return cls(
            id=agent_id,
            status=status,
            location=coordinate_or_none(lat, lng),
            name=name,
        )
