import threading
from datetime import datetime, timedelta, timezone

import pytest

from routing.geo import Coordinate
from tracking.location_store import AgentLocationStore


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def location_store(clock):
    return AgentLocationStore(stale_after_seconds=300, clock=clock)


def test_last_write_wins(location_store):
    location_store.upsert(7, Coordinate(17.38, 78.48))
    location_store.upsert(7, Coordinate(17.39, 78.49))

    assert len(location_store) == 1
    assert location_store.get(7).coordinate == Coordinate(17.39, 78.49)


def test_arrival_order_wins_over_device_timestamp(location_store, clock):
    # a late-arriving ping with an older device timestamp still replaces the entry
    location_store.upsert(7, Coordinate(17.38, 78.48), timestamp=clock.now)
    location_store.upsert(7, Coordinate(17.30, 78.40), timestamp=clock.now - timedelta(minutes=5))

    assert location_store.get(7).coordinate == Coordinate(17.30, 78.40)


def test_unknown_agent(location_store):
    assert location_store.get(404) is None
    assert 404 not in location_store
    assert location_store.discard(404) is False


def test_to_wire(location_store, clock):
    entry = location_store.upsert(7, Coordinate(17.38, 78.48))
    assert entry.to_wire(7) == {
        "agent_id": 7,
        "lat": 17.38,
        "lng": 78.48,
        "updatedAt": clock.now.isoformat(),
    }


def test_naive_timestamps_are_treated_as_utc(location_store):
    entry = location_store.upsert(7, Coordinate(17.38, 78.48), timestamp=datetime(2024, 1, 1, 11, 59))
    assert entry.timestamp.tzinfo == timezone.utc


def test_staleness_is_measured_from_arrival(location_store, clock):
    location_store.upsert(1, Coordinate(17.38, 78.48))
    clock.advance(200)
    location_store.upsert(2, Coordinate(17.39, 78.49))
    clock.advance(101)

    fresh = location_store.fresh_snapshot()
    assert set(fresh) == {2}
    # stale entries stay readable until evicted
    assert set(location_store.snapshot()) == {1, 2}

    assert location_store.evict_stale() == [1]
    assert set(location_store.snapshot()) == {2}


def test_exactly_at_the_threshold_is_still_fresh(location_store, clock):
    location_store.upsert(1, Coordinate(17.38, 78.48))
    clock.advance(300)
    assert 1 in location_store.fresh_snapshot()


def test_expiry_can_be_disabled(clock):
    location_store = AgentLocationStore(stale_after_seconds=None, clock=clock)
    location_store.upsert(1, Coordinate(17.38, 78.48))
    clock.advance(10 ** 6)

    assert set(location_store.fresh_snapshot()) == {1}
    assert location_store.evict_stale() == []


def test_invalid_staleness_window():
    with pytest.raises(ValueError):
        AgentLocationStore(stale_after_seconds=0)


def test_snapshot_is_a_copy(location_store):
    location_store.upsert(1, Coordinate(17.38, 78.48))
    snapshot = location_store.snapshot()
    location_store.upsert(2, Coordinate(17.39, 78.49))
    assert set(snapshot) == {1}


def test_concurrent_upserts_keep_one_entry_per_agent():
    location_store = AgentLocationStore()
    agents = range(20)

    def report(agent_id):
        for step in range(200):
            location_store.upsert(agent_id, Coordinate(17.0 + step * 0.001, 78.0))

    threads = [threading.Thread(target=report, args=(agent_id,)) for agent_id in agents]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snapshot = location_store.snapshot()
    assert set(snapshot) == set(agents)
    for entry in snapshot.values():
        assert entry.coordinate.lat == pytest.approx(17.199)
