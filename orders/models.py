"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines core data structures:
- Order (id, restaurant reference, delivery destination, status, assigned agent)
- Restaurant (id, name, pickup coordinate)

Defines enums/constants:
- OrderStatus = Pending | Confirmed | Picked | Delivered | Cancelled

Rule: No distance math, no assignment logic. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from routing.geo import Coordinate

OrderId = Union[int, str]
RestaurantId = Union[int, str]


class OrderStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PICKED = "Picked"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


# Statuses an order can still move out of. Used for "current order" lookups.
OPEN_ORDER_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PICKED})


@dataclass(frozen=True)
class Restaurant:
    """
    The pickup side of an order. Location may be unknown (never set by the owner).
    """
    id: RestaurantId
    name: str = ""
    location: Optional[Coordinate] = None


@dataclass(frozen=True)
class Order:
    """
    Represents a single customer order as the dispatch core sees it.
    Frozen: status changes go through the store, never through attribute mutation.
    """

    id: OrderId
    restaurant_id: Optional[RestaurantId] = None
    destination: Optional[Coordinate] = None

    status: OrderStatus = OrderStatus.PENDING
    agent_id: Optional[Union[int, str]] = None
