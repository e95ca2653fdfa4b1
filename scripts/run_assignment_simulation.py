import os
import random
import time

import pandas as pd

from agents.models import Agent
from dispatch.dispatcher import AssignmentService
from dispatch.errors import BusinessRuleFailure, DispatchError
from dispatch.policy import DispatchPolicy
from orders.models import Order, OrderStatus, Restaurant
from orders.store import InMemoryOrderStore
from routing.geo import coordinate_or_none
from tracking.hub import LocationBroadcastHub
from tracking.location_store import AgentLocationStore
from tracking.events import OrderAssignedEvent


def _none_if_nan(value):
    return None if pd.isna(value) else float(value)


def load_store(data_dir: str) -> InMemoryOrderStore:
    store = InMemoryOrderStore()

    restaurants = pd.read_csv(os.path.join(data_dir, "restaurants.csv"))
    for row in restaurants.itertuples(index=False):
        store.add_restaurant(Restaurant(
            id=int(row.restaurant_id),
            name=row.name,
            location=coordinate_or_none(_none_if_nan(row.lat), _none_if_nan(row.lng)),
        ))

    agents = pd.read_csv(os.path.join(data_dir, "agents.csv"))
    for row in agents.itertuples(index=False):
        store.add_agent(Agent.new(int(row.agent_id), _none_if_nan(row.lat), _none_if_nan(row.lng), row.status, row.name))

    orders = pd.read_csv(os.path.join(data_dir, "orders.csv"))
    for row in orders.itertuples(index=False):
        store.add_order(Order(
            id=int(row.order_id),
            restaurant_id=int(row.restaurant_id),
            destination=coordinate_or_none(_none_if_nan(row.delivery_lat), _none_if_nan(row.delivery_lng)),
            status=OrderStatus(row.status),
        ))
    return store


def run_simulation(data_dir="sampledata", output_file="assignment_results.csv", delivery_rate=0.3):
    print("=== STARTING ASSIGNMENT SIMULATION ===")

    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    data_dir = os.path.join(base_dir, data_dir)

    # 1. Load Data
    store = load_store(data_dir)
    orders = pd.read_csv(os.path.join(data_dir, "orders.csv"))
    print(f"Loaded {len(orders)} orders and {len(store.list_agents())} agents ({len(store.list_active_agents())} active).\n")

    # 2. Configure System (store calls inline; there is no I/O to bound here)
    policy = DispatchPolicy(collaborator_timeout_seconds=None)
    policy.validate()
    location_store = AgentLocationStore(stale_after_seconds=policy.stale_after_seconds)
    hub = LocationBroadcastHub(location_store, buffer_size=len(orders) + 1)
    service = AssignmentService(store, location_store=location_store, hub=hub, policy=policy)

    # Every active agent pings once, as the agent app does on login
    for agent in store.list_active_agents():
        if agent.location is not None:
            hub.report_location(agent.id, agent.location.lat, agent.location.lng)

    # 3. Assign every order; some deliveries complete along the way and free their agents
    results = []
    assigned = []
    start_time = time.time()
    with hub.subscribe() as announcements:
        for order_id in orders["order_id"]:
            order_id = int(order_id)
            try:
                result = service.assign(order_id)
            except BusinessRuleFailure as exc:
                results.append({"order_id": order_id, "agent_id": None, "distance_km": None, "workload": None, "outcome": exc.code})
                print(f"[SKIPPED] Order {order_id} -> {exc}")
                continue
            except DispatchError as exc:
                results.append({"order_id": order_id, "agent_id": None, "distance_km": None, "workload": None, "outcome": exc.code})
                print(f"[FAILED] Order {order_id} -> {exc}")
                continue

            assigned.append(order_id)
            results.append({
                "order_id": order_id,
                "agent_id": result.agent_id,
                "distance_km": result.distance_km,
                "workload": result.workload,
                "outcome": "assigned",
            })
            print(f"[SUCCESS] Order {order_id} -> Agent {result.agent_id} ({result.distance_km} km, load {result.workload})")

            if assigned and random.random() < delivery_rate:
                store.set_order_status(assigned.pop(0), OrderStatus.DELIVERED)

        broadcasts = [event for event in announcements.drain() if isinstance(event, OrderAssignedEvent)]
    service.close()
    elapsed = time.time() - start_time

    # 4. Report
    df = pd.DataFrame(results)
    output_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), output_file)
    df.to_csv(output_path, index=False)

    print("\n=== SIMULATION COMPLETE ===")
    print(f"Processed {len(df)} orders in {elapsed:.2f}s; {len(broadcasts)} assignment broadcasts seen.")
    print("\nOutcomes:")
    for outcome, count in df["outcome"].value_counts().items():
        print(f"  {outcome}: {count}")

    placed = df[df["outcome"] == "assigned"]
    if not placed.empty:
        print(f"\nMean pickup distance: {placed['distance_km'].mean():.2f} km")
        print("Busiest agents:")
        for agent_id, count in placed["agent_id"].value_counts().head(5).items():
            print(f"  Agent {int(agent_id)}: {count} orders")
    print(f"\nResults written to '{output_path}'.")


if __name__ == "__main__":
    run_simulation()
