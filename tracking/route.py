"""
Purpose: "Where is my food" read model for the tracking page.
What it does:
For an agent, resolve their current open order and return the three points the
map draws: the agent (live position preferred), the restaurant, and the customer.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from agents.models import AgentId
from dispatch.errors import AgentNotFound, NoActiveOrder
from routing.geo import Coordinate

from .location_store import AgentLocationStore


def _point(coordinate: Optional[Coordinate]) -> Optional[Dict[str, float]]:
    return coordinate.to_wire() if coordinate is not None else None


@dataclass(frozen=True)
class AgentRoute:
    order_id: Any
    agent: Optional[Coordinate]
    restaurant: Optional[Coordinate]
    customer: Optional[Coordinate]
    live: bool = False

    def to_wire(self) -> Dict[str, Any]:
        return {
            "agent": _point(self.agent),
            "restaurant": _point(self.restaurant),
            "user": _point(self.customer),
            "order_id": self.order_id,
            "live": self.live,
        }


def build_agent_route(store, location_store: AgentLocationStore, agent_id: AgentId) -> AgentRoute:
    agent = store.get_agent(agent_id)
    if agent is None:
        raise AgentNotFound(agent_id)

    order = store.current_order_for_agent(agent_id)
    if order is None:
        raise NoActiveOrder(agent_id)

    restaurant = store.get_restaurant(order.restaurant_id) if order.restaurant_id is not None else None

    latest = location_store.get(agent_id)
    live = latest is not None and not location_store.is_stale(latest)

    return AgentRoute(
        order_id=order.id,
        agent=latest.coordinate if live else agent.location,
        restaurant=restaurant.location if restaurant is not None else None,
        customer=order.destination,
        live=live,
    )
