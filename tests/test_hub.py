import threading
from datetime import datetime, timedelta, timezone

import pytest

from agents.models import AgentStatus
from dispatch.errors import InvalidLocationReport
from routing.geo import Coordinate, InvalidCoordinate
from tracking.events import AgentStatusEvent, LocationEvent, OrderAssignedEvent
from tracking.hub import LocationBroadcastHub
from tracking.location_store import AgentLocationStore


@pytest.fixture
def hub():
    return LocationBroadcastHub(AgentLocationStore(), buffer_size=16)


def test_report_records_and_broadcasts(hub):
    with hub.subscribe() as subscription:
        event = hub.report_location(7, 17.3850, 78.4867)

        assert hub.location_store.get(7).coordinate == Coordinate(17.3850, 78.4867)
        assert subscription.get(timeout=1) == event
        assert event.to_wire() == {"agentId": 7, "lat": 17.3850, "lng": 78.4867}


@pytest.mark.parametrize("lat,lng", [(95, 78.0), (17.0, -181), (None, 78.0), ("abc", 1)])
def test_invalid_coordinates_change_nothing(hub, lat, lng):
    hub.report_location(7, 17.0, 78.0)

    with hub.subscribe() as subscription:
        with pytest.raises(InvalidCoordinate):
            hub.report_location(7, lat, lng)

        assert subscription.pending() == 0
    assert hub.location_store.get(7).coordinate == Coordinate(17.0, 78.0)


@pytest.mark.parametrize("agent_id", [None, "", "   ", True])
def test_missing_agent_id_is_rejected(hub, agent_id):
    with pytest.raises(InvalidLocationReport):
        hub.report_location(agent_id, 17.0, 78.0)
    assert len(hub.location_store) == 0


def test_agent_id_parser_normalises_wire_ids():
    hub = LocationBroadcastHub(agent_id_parser=int)

    hub.report_location("7", 17.0, 78.0)
    assert 7 in hub.location_store

    with pytest.raises(InvalidLocationReport):
        hub.report_location("seven", 17.0, 78.0)


def test_every_subscriber_sees_every_event(hub):
    first = hub.subscribe()
    second = hub.subscribe()

    hub.report_location(1, 17.0, 78.0)
    hub.publish(AgentStatusEvent(agent_id=2, status=AgentStatus.ACTIVE))

    assert [type(e) for e in first.drain()] == [LocationEvent, AgentStatusEvent]
    assert [type(e) for e in second.drain()] == [LocationEvent, AgentStatusEvent]


def test_per_agent_order_is_preserved_under_concurrency():
    hub = LocationBroadcastHub(buffer_size=10_000)
    subscription = hub.subscribe()

    def report(agent_id):
        for step in range(300):
            hub.report_location(agent_id, step * 0.01, 78.0)

    threads = [threading.Thread(target=report, args=(agent_id,)) for agent_id in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    seen = {}
    for event in subscription.drain():
        seen.setdefault(event.agent_id, []).append(event.coordinate.lat)

    for agent_id in range(4):
        assert seen[agent_id] == sorted(seen[agent_id])
        assert len(seen[agent_id]) == 300
        # the store agrees with the last event delivered
        assert hub.location_store.get(agent_id).coordinate.lat == seen[agent_id][-1]


def test_slow_subscriber_drops_oldest_without_blocking_others(hub):
    slow = hub.subscribe(buffer_size=3)
    fast = hub.subscribe()

    for step in range(5):
        hub.report_location(1, 17.0 + step, 78.0)

    assert [e.coordinate.lat for e in slow.drain()] == [19.0, 20.0, 21.0]
    assert slow.dropped == 2
    assert len(fast.drain()) == 5


def test_agent_filter(hub):
    subscription = hub.subscribe(agent_ids=[2])

    hub.report_location(1, 17.0, 78.0)
    hub.report_location(2, 17.1, 78.1)

    assert [e.agent_id for e in subscription.drain()] == [2]


def test_order_subscription_follows_the_assigned_agent(hub):
    subscription = hub.subscribe(order_id="42")

    hub.report_location(7, 17.0, 78.0)
    hub.publish(OrderAssignedEvent(order_id=41, agent_id=8, distance_km=1.0))
    hub.publish(OrderAssignedEvent(order_id=42, agent_id=7, distance_km=1.2))
    hub.report_location(8, 17.2, 78.2)
    hub.report_location(7, 17.1, 78.1)

    events = subscription.drain()
    assert [type(e) for e in events] == [OrderAssignedEvent, LocationEvent]
    assert events[1].agent_id == 7
    assert subscription.tracked_agent_id == 7


def test_order_subscription_uses_lookup_for_already_assigned_orders():
    hub = LocationBroadcastHub(order_agent_lookup=lambda order_id: 7 if order_id == 42 else None)
    subscription = hub.subscribe(order_id=42)

    hub.report_location(7, 17.0, 78.0)
    hub.report_location(8, 17.0, 78.0)

    assert [e.agent_id for e in subscription.drain()] == [7]


def test_close_deregisters_and_ends_iteration(hub):
    subscription = hub.subscribe()
    assert hub.subscriber_count == 1

    hub.report_location(1, 17.0, 78.0)
    subscription.close()
    hub.report_location(1, 17.1, 78.1)

    assert hub.subscriber_count == 0
    # what was buffered before closing is still delivered, then iteration stops
    assert [e.coordinate.lat for e in subscription] == [17.0]


def test_get_times_out_when_idle(hub):
    with hub.subscribe() as subscription:
        assert subscription.get(timeout=0.01) is None


def test_blocking_get_wakes_on_publish(hub):
    subscription = hub.subscribe()
    received = []

    consumer = threading.Thread(target=lambda: received.append(subscription.get(timeout=5)))
    consumer.start()
    hub.report_location(3, 17.0, 78.0)
    consumer.join(timeout=5)

    assert received and received[0].agent_id == 3


def test_snapshot_excludes_stale_entries():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    hub = LocationBroadcastHub(AgentLocationStore(stale_after_seconds=60, clock=lambda: start))
    hub.report_location(1, 17.0, 78.0)

    assert set(hub.snapshot()) == {1}
    assert hub.snapshot(now=start + timedelta(seconds=61)) == {}
    assert set(hub.snapshot(fresh_only=False, now=start + timedelta(seconds=61))) == {1}


def test_reports_evict_agents_that_went_quiet():
    now = [datetime(2024, 1, 1, tzinfo=timezone.utc)]
    hub = LocationBroadcastHub(AgentLocationStore(stale_after_seconds=300, clock=lambda: now[0]))

    for agent_id in range(1000):
        hub.report_location(agent_id, 17.0, 78.0)
    assert len(hub.location_store) == 1000

    now[0] += timedelta(hours=5)
    hub.report_location(5000, 17.0, 78.0)

    assert len(hub.location_store) == 1
    assert 5000 in hub.location_store
    assert set(hub._last_location_log_time) == {5000}


def test_eviction_sweeps_run_at_most_once_per_interval():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    now = [start]
    hub = LocationBroadcastHub(
        AgentLocationStore(stale_after_seconds=60, clock=lambda: now[0]),
        eviction_interval_seconds=600,
    )
    hub.report_location(1, 17.0, 78.0)

    now[0] = start + timedelta(seconds=120)
    hub.report_location(2, 17.0, 78.0)
    # stale, so not live, but not swept yet
    assert 1 in hub.location_store
    assert set(hub.snapshot()) == {2}

    now[0] = start + timedelta(seconds=600)
    hub.report_location(2, 17.0, 78.0)
    assert 1 not in hub.location_store


def test_eviction_can_be_disabled():
    now = [datetime(2024, 1, 1, tzinfo=timezone.utc)]
    hub = LocationBroadcastHub(
        AgentLocationStore(stale_after_seconds=60, clock=lambda: now[0]),
        eviction_interval_seconds=None,
    )
    hub.report_location(1, 17.0, 78.0)
    now[0] += timedelta(hours=1)
    hub.report_location(2, 17.0, 78.0)

    assert len(hub.location_store) == 2
    assert hub.evict_stale() == [1]
    assert set(hub._last_location_log_time) == {2}
