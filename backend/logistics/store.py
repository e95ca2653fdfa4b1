"""
Purpose: Django ORM adapter for the dispatch core.
What it does:
Implements the OrderStore operations on top of logistics.Order / logistics.Restaurant
and users.User, converting rows into the frozen domain records the core works with.

The assignment write is a single UPDATE ... WHERE status = <expected>, so two admins
clicking "assign" on the same order can never both win.

With a collaborator timeout the service calls these methods from its own worker
threads, which Django's request signals never see. manage_connections=True makes
every call close broken or expired connections before and after it runs, the
same housekeeping Django does around a request.
"""

import functools
from typing import Any, Collection, List, Optional

from django.contrib.auth import get_user_model
from django.db import close_old_connections, connection
from django.utils import timezone

from agents.models import Agent, AgentStatus
from orders.models import OPEN_ORDER_STATUSES, Order as OrderRecord, OrderStatus, Restaurant as RestaurantRecord

from .models import Order, Restaurant


def parse_agent_pk(value: Any) -> int:
    """
    Agent ids arrive as JSON numbers or strings ("7", 7, 7.0).
    Anything that is not a whole number raises ValueError.
    """
    if isinstance(value, bool):
        raise ValueError("boolean is not an agent id")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value!r} is not a whole number")
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f"unsupported agent id type {type(value).__name__}")


def _pk_or_none(value: Any) -> Optional[int]:
    try:
        return parse_agent_pk(value)
    except (TypeError, ValueError):
        return None


def _db_call(method):
    """
    Bracket one store call with close_old_connections() when the store manages
    its own connections. Skipped inside atomic blocks: closing there would
    break the surrounding transaction.
    """
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if not self.manage_connections or connection.in_atomic_block:
            return method(self, *args, **kwargs)
        close_old_connections()
        try:
            return method(self, *args, **kwargs)
        finally:
            close_old_connections()
    return wrapper


class DjangoOrderStore:
    def __init__(self, manage_connections: bool = False):
        self.User = get_user_model()
        self.manage_connections = manage_connections

    def _agents(self):
        return self.User.objects.filter(role=self.User.Roles.DELIVERY_AGENT)

    # --- OrderStore protocol ---

    @_db_call
    def get_order(self, order_id) -> Optional[OrderRecord]:
        pk = _pk_or_none(order_id)
        if pk is None:
            return None
        row = Order.objects.filter(pk=pk).first()
        return row.to_domain() if row is not None else None

    @_db_call
    def get_restaurant(self, restaurant_id) -> Optional[RestaurantRecord]:
        row = Restaurant.objects.filter(pk=restaurant_id).first()
        return row.to_domain() if row is not None else None

    @_db_call
    def list_active_agents(self) -> List[Agent]:
        return [user.to_agent() for user in self._agents().filter(agent_status=AgentStatus.ACTIVE.value)]

    @_db_call
    def count_active_orders_for_agent(self, agent_id, statuses: Collection[OrderStatus]) -> int:
        return Order.objects.filter(agent_id=agent_id, status__in=[s.value for s in statuses]).count()

    @_db_call
    def update_order_assignment(
        self,
        order_id,
        agent_id,
        new_status: OrderStatus,
        *,
        expected_status: OrderStatus,
        expected_agent_id=None,
    ) -> bool:
        rows = Order.objects.filter(pk=order_id, status=expected_status.value)
        if expected_agent_id is not None:
            rows = rows.filter(agent_id=expected_agent_id)
        updated = rows.update(agent_id=agent_id, status=new_status.value, updated_at=timezone.now())
        return updated == 1

    # --- Admin / tracking helpers ---

    @_db_call
    def get_agent(self, agent_id) -> Optional[Agent]:
        pk = _pk_or_none(agent_id)
        if pk is None:
            return None
        user = self._agents().filter(pk=pk).first()
        return user.to_agent() if user is not None else None

    @_db_call
    def set_agent_status(self, agent_id, status: AgentStatus) -> Optional[Agent]:
        pk = _pk_or_none(agent_id)
        if pk is None:
            return None
        if self._agents().filter(pk=pk).update(agent_status=status.value) != 1:
            return None
        return self.get_agent(pk)

    @_db_call
    def current_order_for_agent(self, agent_id) -> Optional[OrderRecord]:
        row = (
            Order.objects.filter(agent_id=agent_id, status__in=[s.value for s in OPEN_ORDER_STATUSES])
            .order_by("-created_at", "-id")
            .first()
        )
        return row.to_domain() if row is not None else None

    @_db_call
    def agent_for_order(self, order_id) -> Optional[int]:
        pk = _pk_or_none(order_id)
        if pk is None:
            return None
        return Order.objects.filter(pk=pk).values_list("agent_id", flat=True).first()
