"""
Live tracking package.

Public API:
- Events: LocationEvent, OrderAssignedEvent, AgentStatusEvent
- AgentLocationStore (latest position per agent)
- LocationBroadcastHub / Subscription (fan-out)

The Socket.IO transport lives in tracking.socket_bridge and is imported
explicitly by whoever owns the server.
"""
from .events import AgentStatusEvent, LocationEvent, OrderAssignedEvent
from .location_store import AgentLocation, AgentLocationStore
from .hub import LocationBroadcastHub, Subscription

__all__ = [
    "AgentStatusEvent",
    "LocationEvent",
    "OrderAssignedEvent",
    "AgentLocation",
    "AgentLocationStore",
    "LocationBroadcastHub",
    "Subscription",
]
