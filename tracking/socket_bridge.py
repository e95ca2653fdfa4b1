"""
Purpose: Socket.IO transport for live tracking.
What it does:
Wires a python-socketio Server to the LocationBroadcastHub, keeping the browser
contract the agent and customer pages already speak:

    agent  -> server   agentLocation  {agentId, lat, lng}
    server -> everyone locationUpdate {agentId, lat, lng}   (+ legacy agentLocation alias)
    server -> everyone orderAssigned  {orderId, agentId, distanceKm, status}
    server -> everyone agentStatusChanged {agent_id, status}
    client -> server   trackOrder     {orderId}   -> that order's events, to that client only

The hub knows nothing about sockets. Each subscription is pumped on its own
background task, so one slow client only ever backs up its own buffer.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from dispatch.errors import InvalidLocationReport
from routing.geo import InvalidCoordinate

from .events import LocationEvent
from .hub import LocationBroadcastHub, Subscription

logger = logging.getLogger(__name__)

LEGACY_LOCATION_EVENT = "agentLocation"


class LocationSocketBridge:
    def __init__(self, sio, hub: LocationBroadcastHub):
        self.sio = sio
        self.hub = hub
        self._broadcast_subscription: Optional[Subscription] = None
        self._order_subscriptions: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    # --- Lifecycle ---

    def register(self) -> "LocationSocketBridge":
        self.sio.on("connect", self.on_connect)
        self.sio.on("agentLocation", self.on_agent_location)
        self.sio.on("trackOrder", self.on_track_order)
        self.sio.on("disconnect", self.on_disconnect)
        return self

    def start(self) -> None:
        """Begin relaying hub events to every connected client."""
        with self._lock:
            if self._broadcast_subscription is not None:
                return
            self._broadcast_subscription = self.hub.subscribe()
        self.sio.start_background_task(self.pump, self._broadcast_subscription)

    def stop(self) -> None:
        with self._lock:
            subscriptions = [sub for subs in self._order_subscriptions.values() for sub in subs]
            self._order_subscriptions.clear()
            if self._broadcast_subscription is not None:
                subscriptions.append(self._broadcast_subscription)
                self._broadcast_subscription = None
        for subscription in subscriptions:
            subscription.close()

    # --- Socket.IO handlers ---

    def on_connect(self, sid, environ=None, auth=None):
        logger.info(f"[WebSocket] Client connected: {sid}")

    def on_agent_location(self, sid, data) -> Dict[str, Any]:
        if not isinstance(data, dict):
            return self._reject(sid, "locationError", "payload must be an object {agentId, lat, lng}", InvalidLocationReport.code)

        # socket payloads must carry JSON numbers; numeric strings are rejected
        for name in ("lat", "lng"):
            value = data.get(name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                return self._reject(sid, "locationError", f"{name} must be a number, got {value!r}", InvalidCoordinate.code)

        try:
            self.hub.report_location(data.get("agentId"), data.get("lat"), data.get("lng"))
        except (InvalidLocationReport, InvalidCoordinate) as exc:
            logger.debug(f"[WebSocket] Rejected location from {sid}: {exc}")
            return self._reject(sid, "locationError", str(exc), exc.code)

        return {"ok": True}

    def on_track_order(self, sid, data) -> Dict[str, Any]:
        order_id = data.get("orderId") if isinstance(data, dict) else None
        if order_id is None or order_id == "":
            return self._reject(sid, "trackError", "orderId is required", "invalid_track_request")

        subscription = self.hub.subscribe(order_id=order_id)
        with self._lock:
            self._order_subscriptions.setdefault(sid, []).append(subscription)
        self.sio.start_background_task(self.pump, subscription, sid)

        agent_id = subscription.tracked_agent_id
        if agent_id is not None:
            # give the page a position right away instead of waiting for the next ping
            latest = self.hub.location_store.get(agent_id)
            if latest is not None:
                payload = LocationEvent(agent_id=agent_id, coordinate=latest.coordinate, timestamp=latest.timestamp).to_wire()
                self.sio.emit(LocationEvent.event_name, payload, to=sid)

        logger.info(f"[WebSocket] {sid} tracking order {order_id} (agent {agent_id})")
        return {"ok": True, "agentId": agent_id}

    def on_disconnect(self, sid, reason=None):
        with self._lock:
            subscriptions = self._order_subscriptions.pop(sid, [])
        for subscription in subscriptions:
            subscription.close()
        logger.info(f"[WebSocket] Client disconnected: {sid}")

    # --- Relay ---

    def pump(self, subscription: Subscription, sid: Optional[str] = None) -> None:
        """
        Relay a subscription until it is closed. Runs as a Socket.IO background task.
        """
        for event in subscription:
            payload = event.to_wire()
            try:
                if sid is None:
                    self.sio.emit(event.event_name, payload)
                    if isinstance(event, LocationEvent):
                        self.sio.emit(LEGACY_LOCATION_EVENT, payload)
                else:
                    self.sio.emit(event.event_name, payload, to=sid)
            except Exception:
                logger.exception(f"[WebSocket] Failed to emit {event.event_name} (sid={sid})")

    def tracked_sids(self) -> List[str]:
        with self._lock:
            return list(self._order_subscriptions)

    def _reject(self, sid, event_name: str, message: str, code: str) -> Dict[str, Any]:
        self.sio.emit(event_name, {"error": message, "code": code}, to=sid)
        return {"ok": False, "error": message}
