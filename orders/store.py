"""
Purpose: The persistence boundary the dispatch core consumes.
What it does:
- OrderStore: the protocol every backing store implements
  (the Django adapter in backend/logistics/store.py, the in-memory one below).
- InMemoryOrderStore: a thread-safe dict-backed store used by tests and the
  offline simulation script.

Operations:
   - get_order(order_id)
   - get_restaurant(restaurant_id)
   - list_active_agents()
   - count_active_orders_for_agent(agent_id, statuses)
   - update_order_assignment(order_id, agent_id, new_status, expected_status=...)

Rule: Store owns persisted state, dispatch owns decisions.
update_order_assignment is a conditional write: it only applies when the row is
still in expected_status, and reports whether it did. That is the single-writer
guarantee per order; callers never read-then-write.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Collection, Dict, List, Optional, Protocol

from agents.models import Agent, AgentId, AgentStatus
from .models import OPEN_ORDER_STATUSES, Order, OrderId, OrderStatus, Restaurant, RestaurantId


class OrderStore(Protocol):
    def get_order(self, order_id: OrderId) -> Optional[Order]: ...

    def get_restaurant(self, restaurant_id: RestaurantId) -> Optional[Restaurant]: ...

    def list_active_agents(self) -> List[Agent]: ...

    def count_active_orders_for_agent(self, agent_id: AgentId, statuses: Collection[OrderStatus]) -> int: ...

    def update_order_assignment(
        self,
        order_id: OrderId,
        agent_id: AgentId,
        new_status: OrderStatus,
        *,
        expected_status: OrderStatus,
        expected_agent_id: Optional[AgentId] = None,
    ) -> bool: ...


@dataclass
class InMemoryOrderStore:
    """
    In-memory implementation of OrderStore.

    A single lock guards every read and write so conditional updates are atomic,
    the same guarantee a row-level UPDATE ... WHERE status = ... gives the database.
    """
    _orders: Dict[OrderId, Order] = field(default_factory=dict)
    _restaurants: Dict[RestaurantId, Restaurant] = field(default_factory=dict)
    _agents: Dict[AgentId, Agent] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    # --- Seeding ---

    def add_restaurant(self, restaurant: Restaurant) -> None:
        with self._lock:
            self._restaurants[restaurant.id] = restaurant

    def add_order(self, order: Order) -> None:
        with self._lock:
            self._orders[order.id] = order

    def add_agent(self, agent: Agent) -> None:
        with self._lock:
            self._agents[agent.id] = agent

    # --- OrderStore protocol ---

    def get_order(self, order_id: OrderId) -> Optional[Order]:
        with self._lock:
            return self._orders.get(order_id)

    def get_restaurant(self, restaurant_id: RestaurantId) -> Optional[Restaurant]:
        with self._lock:
            return self._restaurants.get(restaurant_id)

    def list_active_agents(self) -> List[Agent]:
        with self._lock:
            return [agent for agent in self._agents.values() if agent.status == AgentStatus.ACTIVE]

    def count_active_orders_for_agent(self, agent_id: AgentId, statuses: Collection[OrderStatus]) -> int:
        statuses = set(statuses)
        with self._lock:
            return sum(
                1 for order in self._orders.values()
                if order.agent_id == agent_id and order.status in statuses
            )

    def update_order_assignment(
        self,
        order_id: OrderId,
        agent_id: AgentId,
        new_status: OrderStatus,
        *,
        expected_status: OrderStatus,
        expected_agent_id: Optional[AgentId] = None,
    ) -> bool:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None or order.status != expected_status:
                return False
            if expected_agent_id is not None and order.agent_id != expected_agent_id:
                return False

            self._orders[order_id] = replace(order, agent_id=agent_id, status=new_status)
            return True

    # --- Admin / fulfillment helpers ---

    def get_agent(self, agent_id: AgentId) -> Optional[Agent]:
        with self._lock:
            return self._agents.get(agent_id)

    def list_agents(self) -> List[Agent]:
        with self._lock:
            return list(self._agents.values())

    def set_agent_status(self, agent_id: AgentId, status: AgentStatus) -> Optional[Agent]:
        with self._lock:
            agent = self._agents.get(agent_id)
            if agent is None:
                return None
            agent = replace(agent, status=status)
            self._agents[agent_id] = agent
            return agent

    def set_order_status(self, order_id: OrderId, status: OrderStatus) -> Optional[Order]:
        """
        Downstream fulfillment (Picked / Delivered / Cancelled) lives outside dispatch;
        this exists so tests and the simulation can move orders along.
        """
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return None
            order = replace(order, status=status)
            self._orders[order_id] = order
            return order

    def current_order_for_agent(self, agent_id: AgentId) -> Optional[Order]:
        """
        Most recently added open order assigned to the agent.
        """
        with self._lock:
            open_orders = [
                order for order in self._orders.values()
                if order.agent_id == agent_id and order.status in OPEN_ORDER_STATUSES
            ]
        return open_orders[-1] if open_orders else None
