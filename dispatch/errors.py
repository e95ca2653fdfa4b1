"""
Purpose: Failure taxonomy for the dispatch core.

- ValidationFailure: bad input, nothing mutated. Retry with different input.
- NotFound: the id does not exist.
- BusinessRuleFailure: expected outcomes (nobody nearby, already assigned...).
  Log them at INFO, never as system errors.
- CollaboratorFailure: the store timed out or blew up. Nothing was applied.

Every class carries a stable `code` the HTTP layer puts on the wire.
InvalidCoordinate lives with the geo primitives (routing.geo) and is re-exported here.
"""

from typing import Optional

from routing.geo import InvalidCoordinate
from dispatch.state_machines.order_state import OrderStateException


class DispatchError(Exception):
    code = "dispatch_error"


class ValidationFailure(DispatchError, ValueError):
    code = "validation_failed"


class InvalidLocationReport(ValidationFailure):
    code = "invalid_location_report"


class NotFound(DispatchError, LookupError):
    code = "not_found"


class OrderNotFound(NotFound):
    code = "order_not_found"

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class AgentNotFound(NotFound):
    code = "agent_not_found"

    def __init__(self, agent_id):
        super().__init__(f"Agent {agent_id} not found")
        self.agent_id = agent_id


class NoActiveOrder(NotFound):
    code = "no_active_order"

    def __init__(self, agent_id):
        super().__init__(f"No active order assigned to agent {agent_id}")
        self.agent_id = agent_id


class BusinessRuleFailure(DispatchError):
    code = "business_rule"


class RestaurantLocationUnavailable(BusinessRuleFailure):
    code = "restaurant_location_unavailable"

    def __init__(self, order_id, reason: str = "Restaurant location unavailable"):
        super().__init__(reason)
        self.order_id = order_id


class NoAgentsAvailable(BusinessRuleFailure):
    code = "no_agents_available"

    def __init__(self, message: str = "No active agents with location available"):
        super().__init__(message)


class NoAgentsWithinRadius(BusinessRuleFailure):
    code = "no_agents_within_radius"

    def __init__(self, radius_km: float):
        super().__init__(f"No active agents within {radius_km:g} km")
        self.radius_km = radius_km


class AlreadyAssigned(BusinessRuleFailure):
    code = "already_assigned"

    def __init__(self, order_id, agent_id=None, status: Optional[str] = None):
        detail = f" to agent {agent_id}" if agent_id is not None else ""
        super().__init__(f"Order {order_id} is already assigned{detail}")
        self.order_id = order_id
        self.agent_id = agent_id
        self.status = status


class InvalidOrderState(BusinessRuleFailure, OrderStateException):
    code = "invalid_order_state"


class CollaboratorFailure(DispatchError):
    code = "collaborator_failure"


class CollaboratorTimeout(CollaboratorFailure):
    code = "collaborator_timeout"

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(f"{operation} did not answer within {timeout_seconds:g}s")
        self.operation = operation
        self.timeout_seconds = timeout_seconds


class CollaboratorUnavailable(CollaboratorFailure):
    code = "collaborator_unavailable"


__all__ = [
    "DispatchError",
    "ValidationFailure",
    "InvalidCoordinate",
    "InvalidLocationReport",
    "NotFound",
    "OrderNotFound",
    "AgentNotFound",
    "NoActiveOrder",
    "BusinessRuleFailure",
    "RestaurantLocationUnavailable",
    "NoAgentsAvailable",
    "NoAgentsWithinRadius",
    "AlreadyAssigned",
    "InvalidOrderState",
    "CollaboratorFailure",
    "CollaboratorTimeout",
    "CollaboratorUnavailable",
]
