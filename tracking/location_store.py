"""
Purpose: Process-wide registry of each agent's latest known position.
What it does:
- upsert: replace the agent's entry, unconditionally (last arrival wins,
  even if the reported timestamp is older than the one already stored).
- snapshot: point-in-time copy of every entry.
- Optional staleness: entries not refreshed within stale_after_seconds
  stop counting as live and can be evicted.

Thread-safe. An entry is one frozen AgentLocation, swapped under the lock, so
readers never see a coordinate from one report paired with another's timestamp.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from agents.models import AgentId
from routing.geo import Coordinate

from .events import as_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentLocation:
    coordinate: Coordinate
    timestamp: datetime     # what the device reported
    received_at: datetime   # when we got it; staleness is measured from here

    def to_wire(self, agent_id: AgentId) -> dict:
        return {
            "agent_id": agent_id,
            "lat": self.coordinate.lat,
            "lng": self.coordinate.lng,
            "updatedAt": self.received_at.isoformat(),
        }


class AgentLocationStore:
    """
    One entry per agent id, never more.
    """

    def __init__(self, stale_after_seconds: Optional[float] = None, clock: Callable[[], datetime] = utcnow):
        if stale_after_seconds is not None and stale_after_seconds <= 0:
            raise ValueError("stale_after_seconds must be > 0 or None")
        self.stale_after_seconds = stale_after_seconds
        self._clock = clock
        self._entries: Dict[AgentId, AgentLocation] = {}
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return as_utc(self._clock())

    def upsert(self, agent_id: AgentId, coordinate: Coordinate, timestamp: Optional[datetime] = None) -> AgentLocation:
        received_at = self.now()
        entry = AgentLocation(
            coordinate=coordinate,
            timestamp=as_utc(timestamp) if timestamp is not None else received_at,
            received_at=received_at,
        )
        with self._lock:
            self._entries[agent_id] = entry
        return entry

    def get(self, agent_id: AgentId) -> Optional[AgentLocation]:
        with self._lock:
            return self._entries.get(agent_id)

    def discard(self, agent_id: AgentId) -> bool:
        with self._lock:
            return self._entries.pop(agent_id, None) is not None

    def snapshot(self) -> Dict[AgentId, AgentLocation]:
        with self._lock:
            return dict(self._entries)

    # --- Staleness ---

    def is_stale(self, entry: AgentLocation, now: Optional[datetime] = None) -> bool:
        if self.stale_after_seconds is None:
            return False
        now = as_utc(now) if now is not None else as_utc(self._clock())
        return now - entry.received_at > timedelta(seconds=self.stale_after_seconds)

    def fresh_snapshot(self, now: Optional[datetime] = None) -> Dict[AgentId, AgentLocation]:
        """
        Like snapshot(), minus agents that went quiet. This is what "live" means for assignment.
        """
        return {
            agent_id: entry
            for agent_id, entry in self.snapshot().items()
            if not self.is_stale(entry, now)
        }

    def evict_stale(self, now: Optional[datetime] = None) -> List[AgentId]:
        if self.stale_after_seconds is None:
            return []

        now = as_utc(now) if now is not None else self.now()
        with self._lock:
            evicted = [agent_id for agent_id, entry in self._entries.items() if self.is_stale(entry, now)]
            for agent_id in evicted:
                del self._entries[agent_id]

        if evicted:
            logger.info(f"[Tracking] Evicted {len(evicted)} stale agent location(s)")
            logger.debug(f"[Tracking] Evicted agents: {evicted}")
        return evicted

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, agent_id: AgentId) -> bool:
        with self._lock:
            return agent_id in self._entries
