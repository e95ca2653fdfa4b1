"""
Purpose: Package entry + stable exports.
What it does:

Marks orders as a Python package.

Re-exports the public API so other modules can do:

from orders import Order, OrderStatus, InMemoryOrderStore

Should not contain business logic.

Public API:
- Domain models: Order, Restaurant, OrderStatus
- Persistence boundary: OrderStore, InMemoryOrderStore
"""
from .models import OPEN_ORDER_STATUSES, Order, OrderStatus, Restaurant
from .store import InMemoryOrderStore, OrderStore

__all__ = ["Order",
           "OrderStatus",
             "OPEN_ORDER_STATUSES",
               "Restaurant"
               , "OrderStore"
               , "InMemoryOrderStore"
               ]
