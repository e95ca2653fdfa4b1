"""
Purpose: The transient events that flow through the LocationBroadcastHub.
What it does:
- LocationEvent: an agent's position at a point in time.
- OrderAssignedEvent: the status-change notification AssignmentService emits.
- AgentStatusEvent: an admin approved or rejected an agent.

Each event knows its Socket.IO event name and its browser-facing payload.
The browser contract uses `lat` / `lng` and camelCase ids
(agentStatusChanged keeps the snake_case payload the dashboard already reads).
Nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from agents.models import AgentId, AgentStatus
from orders.models import OrderId, OrderStatus
from routing.geo import Coordinate


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: Optional[datetime]) -> datetime:
    """
    Naive datetimes are taken to be UTC already; None means "now".
    """
    if moment is None:
        return utcnow()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True)
class LocationEvent:
    event_name = "locationUpdate"

    agent_id: AgentId
    coordinate: Coordinate
    timestamp: datetime = field(default_factory=utcnow)

    def to_wire(self) -> Dict[str, Any]:
        return {"agentId": self.agent_id, "lat": self.coordinate.lat, "lng": self.coordinate.lng}


@dataclass(frozen=True)
class OrderAssignedEvent:
    event_name = "orderAssigned"

    order_id: OrderId
    agent_id: AgentId
    distance_km: float
    status: OrderStatus = OrderStatus.CONFIRMED
    timestamp: datetime = field(default_factory=utcnow)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "orderId": self.order_id,
            "agentId": self.agent_id,
            "distanceKm": self.distance_km,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class AgentStatusEvent:
    event_name = "agentStatusChanged"

    agent_id: AgentId
    status: AgentStatus
    timestamp: datetime = field(default_factory=utcnow)

    def to_wire(self) -> Dict[str, Any]:
        return {"agent_id": self.agent_id, "status": self.status.value}


TrackingEvent = Union[LocationEvent, OrderAssignedEvent, AgentStatusEvent]
