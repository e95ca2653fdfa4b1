"""
Purpose: Orchestrator / decision pipeline (the "glue").
What it does:
Accepts an order id, loads the order, its restaurant and the active agents from
the store, asks the AssignmentEngine for the best agent, commits the
assignment with a single conditional update, and announces it through the
LocationBroadcastHub.

Pending --(assign)--> Confirmed is the only transition performed here.
Re-running selection for a Confirmed order is a separate, explicit call (reassign).
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Collection, Optional

from agents.models import AgentId
from orders.models import Order, OrderId, OrderStatus
from routing.geo import Coordinate
from tracking.events import OrderAssignedEvent
from tracking.location_store import AgentLocationStore

from .candidate_filter import build_base_candidates, locate_eligible_agents
from .engine import NoEligibleAgent, select_agent, AgentSelection
from .errors import (
    AlreadyAssigned,
    CollaboratorTimeout,
    CollaboratorUnavailable,
    DispatchError,
    InvalidOrderState,
    NoAgentsAvailable,
    NoAgentsWithinRadius,
    OrderNotFound,
    RestaurantLocationUnavailable,
)
from .policy import DispatchPolicy, default_dispatch_policy
from .state_machines.order_state import can_assign, can_reassign, is_claimed
from .workload import WorkloadIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentResult:
    order_id: OrderId
    agent_id: AgentId
    distance_km: float
    workload: int = 0
    previous_agent_id: Optional[AgentId] = None

    def to_dict(self) -> dict:
        return {"order_id": self.order_id, "agent_id": self.agent_id, "distance_km": self.distance_km}


class AssignmentService:
    """
    Coordinates the assignment of an Order to a delivery agent.

    Every store call is bounded by policy.collaborator_timeout_seconds and runs
    on a small worker pool; expiry surfaces as CollaboratorTimeout. A policy
    timeout of None calls the store inline instead. The assigning write is the
    one exception: once it has started it is awaited, so a caller never gets an
    error for an assignment that landed.
    No retries happen here: retry policy belongs to the caller.
    """

    def __init__(
        self,
        store,
        location_store: Optional[AgentLocationStore] = None,
        hub=None,
        policy: Optional[DispatchPolicy] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.policy = policy or default_dispatch_policy()
        self.store = store
        self.hub = hub

        if location_store is None:
            location_store = hub.location_store if hub is not None else AgentLocationStore(self.policy.stale_after_seconds)
        self.location_store = location_store

        self.workload = WorkloadIndex(store, self.policy.active_statuses)

        self._owns_executor = executor is None and self.policy.collaborator_timeout_seconds is not None
        self._executor = executor
        if self._owns_executor:
            self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="dispatch-store")

    # --- Public API ---

    def assign(self, order_id: OrderId) -> AssignmentResult:
        """
        Pick and commit the best agent for a Pending order.

        Raises OrderNotFound, AlreadyAssigned, InvalidOrderState,
        RestaurantLocationUnavailable, NoAgentsAvailable, NoAgentsWithinRadius,
        CollaboratorTimeout / CollaboratorUnavailable.
        On any failure the order is left exactly as it was.
        """
        order = self._load_order(order_id)

        if not can_assign(order):
            if is_claimed(order):
                logger.info(f"[Dispatch] Order {order.id} already {order.status.value} (agent {order.agent_id}); not re-running selection")
                raise AlreadyAssigned(order.id, order.agent_id, order.status.value)
            raise InvalidOrderState(f"Order {order.id} is {order.status.value}; only Pending orders can be assigned")

        pickup = self._pickup_for(order)
        selection = self._select(order, pickup)

        if not self._commit(order.id, selection.agent_id, expected_status=OrderStatus.PENDING):
            raise self._lost_race(order.id)

        result = AssignmentResult(
            order_id=order.id,
            agent_id=selection.agent_id,
            distance_km=selection.distance_km,
            workload=selection.workload,
        )
        logger.info(
            f"[Dispatch] Order {order.id} assigned to agent {result.agent_id} "
            f"({result.distance_km} km, load {result.workload}, {selection.candidates_considered} in range)"
        )
        self._announce(result)
        return result

    def reassign(self, order_id: OrderId) -> AssignmentResult:
        """
        Explicit admin re-assignment of a Confirmed order to a different agent
        (e.g. the first one went offline). The current agent is excluded from selection.
        """
        order = self._load_order(order_id)

        if not can_reassign(order):
            raise InvalidOrderState(
                f"Order {order.id} is {order.status.value}; only Confirmed orders with an agent can be re-assigned"
            )

        pickup = self._pickup_for(order)
        selection = self._select(order, pickup, exclude=(order.agent_id,))

        committed = self._commit(
            order.id,
            selection.agent_id,
            expected_status=OrderStatus.CONFIRMED,
            expected_agent_id=order.agent_id,
        )
        if not committed:
            raise self._lost_race(order.id)

        result = AssignmentResult(
            order_id=order.id,
            agent_id=selection.agent_id,
            distance_km=selection.distance_km,
            workload=selection.workload,
            previous_agent_id=order.agent_id,
        )
        logger.info(f"[Dispatch] Order {order.id} re-assigned {order.agent_id} -> {result.agent_id} ({result.distance_km} km)")
        self._announce(result)
        return result

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # --- Pipeline steps ---

    def _load_order(self, order_id: OrderId) -> Order:
        if order_id is None or (isinstance(order_id, str) and not order_id.strip()):
            raise OrderNotFound(order_id)

        order = self._call("get_order", self.store.get_order, order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _pickup_for(self, order: Order) -> Coordinate:
        if order.restaurant_id is None:
            logger.info(f"[Dispatch] Order {order.id} has no restaurant reference")
            raise RestaurantLocationUnavailable(order.id, "Order missing restaurant reference")

        restaurant = self._call("get_restaurant", self.store.get_restaurant, order.restaurant_id)
        if restaurant is None or restaurant.location is None:
            logger.info(f"[Dispatch] Restaurant {order.restaurant_id} for order {order.id} has no location")
            raise RestaurantLocationUnavailable(order.id)
        return restaurant.location

    def _select(self, order: Order, pickup: Coordinate, exclude: Collection[AgentId] = ()) -> AgentSelection:
        agents = self._call("list_active_agents", self.store.list_active_agents)
        located = [
            agent for agent in locate_eligible_agents(agents, self.location_store.fresh_snapshot())
            if agent.id not in exclude
        ]
        if not located:
            logger.info(f"[Dispatch] No active agents with a location for order {order.id}")
            raise NoAgentsAvailable()

        # one fresh count per agent, valid for this decision only
        workloads = {
            agent.id: self._call("count_active_orders_for_agent", self.workload.load_for, agent.id)
            for agent in located
        }

        selection = select_agent(pickup, build_base_candidates(located, workloads), self.policy.max_radius_km)
        if isinstance(selection, NoEligibleAgent):
            logger.info(
                f"[Dispatch] No agents within {selection.radius_km} km of order {order.id} "
                f"({selection.agents_considered} located)"
            )
            raise NoAgentsWithinRadius(selection.radius_km)
        return selection

    def _commit(
        self,
        order_id: OrderId,
        agent_id: AgentId,
        *,
        expected_status: OrderStatus,
        expected_agent_id: Optional[AgentId] = None,
    ) -> bool:
        """
        Purpose: The conditional write that makes an assignment real.
        What it does:
            - Same timeout as every other store call while the write is still queued
            - Once the write has started it cannot be taken back, so on timeout we
              wait for it to finish and report what actually happened
        Returns True when the order now carries agent_id.
        """
        return self._call(
            "update_order_assignment",
            self.store.update_order_assignment,
            order_id,
            agent_id,
            OrderStatus.CONFIRMED,
            expected_status=expected_status,
            expected_agent_id=expected_agent_id,
            settle_if_started=True,
        )

    def _lost_race(self, order_id: OrderId) -> DispatchError:
        """
        The conditional update matched nothing: someone else moved the order first.
        """
        current = self._call("get_order", self.store.get_order, order_id)
        if current is None:
            return OrderNotFound(order_id)
        logger.info(f"[Dispatch] Order {order_id} changed underneath us (now {current.status.value}, agent {current.agent_id})")
        return AlreadyAssigned(order_id, current.agent_id, current.status.value)

    def _announce(self, result: AssignmentResult) -> None:
        if self.hub is None:
            return
        event = OrderAssignedEvent(order_id=result.order_id, agent_id=result.agent_id, distance_km=result.distance_km)
        try:
            self.hub.publish(event)
        except Exception:
            # the assignment is committed; notification delivery is best-effort
            logger.exception(f"[Dispatch] Failed to broadcast assignment of order {result.order_id}")

    def _call(
        self,
        operation: str,
        fn: Callable[..., Any],
        *args,
        settle_if_started: bool = False,
        **kwargs,
    ) -> Any:
        """
        Run one store call under the collaborator timeout.

        settle_if_started: for writes. A timed-out call that is already running
        is awaited instead of abandoned; only a call that never started raises
        CollaboratorTimeout.
        """
        timeout = self.policy.collaborator_timeout_seconds
        try:
            if timeout is None or self._executor is None:
                return fn(*args, **kwargs)

            future = self._executor.submit(fn, *args, **kwargs)
            try:
                return future.result(timeout=timeout)
            except FutureTimeoutError:
                if future.cancel() or not settle_if_started:
                    logger.warning(f"[Dispatch] {operation} timed out after {timeout}s")
                    raise CollaboratorTimeout(operation, timeout) from None
                logger.warning(f"[Dispatch] {operation} still running after {timeout}s; waiting for it to settle")
                return future.result()
        except DispatchError:
            raise
        except Exception as exc:
            logger.error(f"[Dispatch] {operation} failed: {exc}")
            raise CollaboratorUnavailable(f"{operation} failed: {exc}") from exc
