from orders.models import Order, OrderStatus


class OrderStateException(Exception):
    """Raised when an invalid state transition is attempted."""
    pass


# The only transitions the dispatch core performs. Picked / Delivered / Cancelled
# belong to fulfillment and are never written from here.
ASSIGNABLE_FROM = OrderStatus.PENDING
REASSIGNABLE_FROM = OrderStatus.CONFIRMED


def can_assign(order: Order) -> bool:
    """
    Pending -> Confirmed is allowed only for orders nobody has claimed yet.
    """
    return order.status == ASSIGNABLE_FROM


def is_claimed(order: Order) -> bool:
    """
    True once an assignment (or fulfillment) has moved the order past Pending.
    Cancelled orders are not "claimed", they are dead.
    """
    return order.status in (OrderStatus.CONFIRMED, OrderStatus.PICKED, OrderStatus.DELIVERED)


def can_reassign(order: Order) -> bool:
    """
    Called before an explicit admin re-assignment.
    Once the agent has picked the food up, moving the order is a fulfillment problem.
    """
    return order.status == REASSIGNABLE_FROM and order.agent_id is not None
