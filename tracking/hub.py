"""
Purpose: Live location fan-out (the LocationBroadcastHub).
What it does:
- report_location: validate an agent's position, record it in the
  AgentLocationStore, and hand the event to every matching subscriber.
- publish: fan out status events (order assigned, agent approved/rejected).
- subscribe: open an independent, filtered, bounded event stream.

Delivery model:
- Broadcast: every current subscriber sees every matching event.
- Per agent, a subscriber sees events in the order they were reported.
  Nothing is promised across agents.
- Each subscription buffers into its own deque(maxlen=buffer_size). When a slow
  consumer falls behind, its oldest undelivered event is dropped. Producers and
  other subscribers never wait on it.
- No consumer code ever runs inside the hub; consumers pull from their
  Subscription on their own thread (see tracking/socket_bridge.py).
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Iterator, List, Optional, Set

from dispatch.errors import InvalidLocationReport
from routing.geo import Coordinate

from .events import AgentStatusEvent, LocationEvent, OrderAssignedEvent, TrackingEvent, as_utc
from .location_store import AgentLocationStore

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 256

# Throttle location logs (log every 60 seconds per agent, not on every ping)
LOCATION_LOG_INTERVAL_SECONDS = 60

# How often a location report also sweeps stale agents out of the store
DEFAULT_EVICTION_INTERVAL_SECONDS = 60


class Subscription:
    """
    One consumer's view of the hub.

    Iterating blocks until events arrive and ends once the subscription is
    closed and its buffer drained. Use as a context manager to guarantee the
    hub forgets it when the consumer goes away.
    """

    def __init__(
        self,
        hub: LocationBroadcastHub,
        *,
        agent_ids: Optional[Iterable[Any]] = None,
        order_id: Optional[Any] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        if buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        self._hub = hub
        self.agent_ids: Optional[Set[Any]] = set(agent_ids) if agent_ids is not None else None
        self.order_id = order_id
        # agent currently delivering `order_id`; learned from lookups and assignment events
        self._order_agent_id: Optional[Any] = None

        self._buffer: deque = deque(maxlen=buffer_size)
        self._cond = threading.Condition()
        self._closed = False
        self.dropped = 0

    # --- Filtering ---

    @property
    def tracked_agent_id(self) -> Optional[Any]:
        with self._cond:
            return self._order_agent_id

    def _track_order_agent(self, agent_id: Any) -> None:
        with self._cond:
            # an assignment event that raced ahead of the lookup is newer; keep it
            if self._order_agent_id is None:
                self._order_agent_id = agent_id

    def _matches(self, event: TrackingEvent) -> bool:
        # caller holds self._cond
        if self.agent_ids is not None and event.agent_id not in self.agent_ids:
            return False

        if self.order_id is None:
            return True

        if isinstance(event, OrderAssignedEvent):
            if str(event.order_id) != str(self.order_id):
                return False
            self._order_agent_id = event.agent_id
            return True

        return self._order_agent_id is not None and event.agent_id == self._order_agent_id

    # --- Producer side (called by the hub) ---

    def _offer(self, event: TrackingEvent) -> None:
        with self._cond:
            if self._closed or not self._matches(event):
                return
            if len(self._buffer) == self._buffer.maxlen:
                self.dropped += 1
            self._buffer.append(event)
            self._cond.notify_all()

    # --- Consumer side ---

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def get(self, timeout: Optional[float] = None) -> Optional[TrackingEvent]:
        """
        Next event, oldest first.
        Returns None on timeout, or once the subscription is closed and drained.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._buffer:
                if self._closed:
                    return None
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return None
                self._cond.wait(remaining)
            return self._buffer.popleft()

    def drain(self) -> List[TrackingEvent]:
        """Everything buffered right now, without blocking."""
        with self._cond:
            events = list(self._buffer)
            self._buffer.clear()
            return events

    def pending(self) -> int:
        with self._cond:
            return len(self._buffer)

    def close(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._cond.notify_all()
        self._hub._unsubscribe(self)

    def __iter__(self) -> Iterator[TrackingEvent]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class LocationBroadcastHub:
    """
    Keeps the AgentLocationStore current and fans events out to subscribers.

    `agent_id_parser` normalises ids coming off the wire ("7" -> 7 for a
    database backed by integer keys); anything it rejects is an invalid report.
    `order_agent_lookup(order_id)` lets order-filtered subscriptions find the
    agent already assigned before they subscribed.
    Every `eviction_interval_seconds` (store clock) a report also evicts agents
    that went stale, so ids that stop reporting do not pile up. None disables it.
    """

    def __init__(
        self,
        location_store: Optional[AgentLocationStore] = None,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        agent_id_parser: Optional[Callable[[Any], Any]] = None,
        order_agent_lookup: Optional[Callable[[Any], Optional[Any]]] = None,
        eviction_interval_seconds: Optional[float] = DEFAULT_EVICTION_INTERVAL_SECONDS,
    ):
        if eviction_interval_seconds is not None and eviction_interval_seconds < 0:
            raise ValueError("eviction_interval_seconds must be >= 0 or None")

        self.location_store = location_store if location_store is not None else AgentLocationStore()
        self.buffer_size = buffer_size
        self.agent_id_parser = agent_id_parser
        self.order_agent_lookup = order_agent_lookup
        self.eviction_interval_seconds = eviction_interval_seconds

        self._subscribers: List[Subscription] = []
        self._subscribers_lock = threading.Lock()
        # serialises "record + enqueue" so per-agent order matches the store
        self._publish_lock = threading.Lock()

        self._last_location_log_time = {}  # agent_id -> last log timestamp
        self._log_lock = threading.Lock()

        self._next_eviction_at: Optional[datetime] = None
        self._eviction_lock = threading.Lock()

    # --- Producers ---

    def report_location(
        self,
        agent_id: Any,
        lat: Any,
        lng: Any,
        timestamp: Optional[datetime] = None,
    ) -> LocationEvent:
        """
        Validate, record, fan out. On any validation failure nothing changes.
        Raises InvalidLocationReport (bad agent id) or InvalidCoordinate.
        """
        agent_id = self._parse_agent_id(agent_id)
        coordinate = Coordinate.parse(lat, lng)

        with self._publish_lock:
            entry = self.location_store.upsert(agent_id, coordinate, timestamp)
            event = LocationEvent(agent_id=agent_id, coordinate=coordinate, timestamp=entry.timestamp)
            self._fan_out(event)

        if self._should_log_location(agent_id):
            logger.info(f"[Tracking] Agent {agent_id} at ({coordinate.lat:.6f}, {coordinate.lng:.6f})")

        self._maybe_evict()
        return event

    def publish(self, event: TrackingEvent) -> None:
        with self._publish_lock:
            self._fan_out(event)

        if isinstance(event, OrderAssignedEvent):
            logger.info(f"[Tracking] Order {event.order_id} -> agent {event.agent_id} broadcast")
        elif isinstance(event, AgentStatusEvent):
            logger.info(f"[Tracking] Agent {event.agent_id} status -> {event.status.value} broadcast")

    def _fan_out(self, event: TrackingEvent) -> None:
        with self._subscribers_lock:
            subscribers = list(self._subscribers)
        for subscription in subscribers:
            subscription._offer(event)

    # --- Consumers ---

    def subscribe(
        self,
        agent_ids: Optional[Iterable[Any]] = None,
        order_id: Optional[Any] = None,
        buffer_size: Optional[int] = None,
    ) -> Subscription:
        subscription = Subscription(
            self,
            agent_ids=agent_ids,
            order_id=order_id,
            buffer_size=buffer_size or self.buffer_size,
        )
        # register before the lookup so an assignment racing with us is not missed
        with self._subscribers_lock:
            self._subscribers.append(subscription)

        if order_id is not None and self.order_agent_lookup is not None:
            try:
                agent_id = self.order_agent_lookup(order_id)
            except Exception:
                subscription.close()
                raise
            if agent_id is not None:
                subscription._track_order_agent(agent_id)

        logger.debug(f"[Tracking] Subscriber added (agents={agent_ids}, order={order_id}); total={self.subscriber_count}")
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._subscribers_lock:
            try:
                self._subscribers.remove(subscription)
            except ValueError:
                return
        if subscription.dropped:
            logger.warning(f"[Tracking] Subscriber closed after dropping {subscription.dropped} event(s)")

    @property
    def subscriber_count(self) -> int:
        with self._subscribers_lock:
            return len(self._subscribers)

    # --- Reads ---

    def snapshot(self, fresh_only: bool = True, now: Optional[datetime] = None):
        if fresh_only:
            return self.location_store.fresh_snapshot(as_utc(now) if now is not None else None)
        return self.location_store.snapshot()

    # --- Housekeeping ---

    def evict_stale(self, now: Optional[datetime] = None) -> List[Any]:
        """
        Drop agents whose last report is older than the store's staleness
        window, together with their log-throttle bookkeeping.
        """
        evicted = self.location_store.evict_stale(as_utc(now) if now is not None else None)
        if evicted:
            with self._log_lock:
                for agent_id in evicted:
                    self._last_location_log_time.pop(agent_id, None)
        return evicted

    def _maybe_evict(self) -> None:
        if self.eviction_interval_seconds is None or self.location_store.stale_after_seconds is None:
            return

        now = self.location_store.now()
        with self._eviction_lock:
            if self._next_eviction_at is not None and now < self._next_eviction_at:
                return
            self._next_eviction_at = now + timedelta(seconds=self.eviction_interval_seconds)

        self.evict_stale(now)

    # --- Helpers ---

    def _parse_agent_id(self, agent_id: Any) -> Any:
        if agent_id is None or isinstance(agent_id, bool) or (isinstance(agent_id, str) and not agent_id.strip()):
            raise InvalidLocationReport("agentId is required")
        if self.agent_id_parser is None:
            return agent_id
        try:
            return self.agent_id_parser(agent_id)
        except (TypeError, ValueError):
            raise InvalidLocationReport(f"agentId {agent_id!r} is not a valid agent id") from None

    def _should_log_location(self, agent_id: Any) -> bool:
        """Check if we should log this agent's location update (throttled)"""
        now = time.monotonic()
        with self._log_lock:
            last_log = self._last_location_log_time.get(agent_id)

            if last_log is None or now - last_log >= LOCATION_LOG_INTERVAL_SECONDS:
                self._last_location_log_time[agent_id] = now
                return True
            return False
