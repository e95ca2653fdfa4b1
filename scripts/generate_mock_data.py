import pandas as pd
import numpy as np
import os


def generate_mock_data(num_orders=200, num_restaurants=25, num_agents=60, output_dir="sampledata", seed=None):
    """
    Generates restaurants, pending orders and delivery agents for the assignment simulation.
    Restaurants are fixed pickups so several orders compete for the same nearby agents,
    which is what exercises the load-then-distance ranking.
    """
    rng = np.random.default_rng(seed)

    # Center around Hyderabad, India
    CENTER_LAT = 17.3850
    CENTER_LNG = 78.4867

    os.makedirs(output_dir, exist_ok=True)

    # 1. Restaurants within ~5km of the center (roughly 0.05 degrees)
    restaurants = pd.DataFrame({
        "restaurant_id": np.arange(1, num_restaurants + 1),
        "name": [f"Restaurant {i + 1}" for i in range(num_restaurants)],
        "lat": np.round(CENTER_LAT + rng.uniform(-0.05, 0.05, num_restaurants), 6),
        "lng": np.round(CENTER_LNG + rng.uniform(-0.05, 0.05, num_restaurants), 6),
    })
    # A few restaurants never set their pin; those orders cannot be assigned
    missing = rng.random(num_restaurants) < 0.05
    restaurants.loc[missing, ["lat", "lng"]] = np.nan

    # 2. Agents scattered wider (~15km) so some fall outside the radius
    statuses = rng.choice(["Active", "Pending", "Rejected"], size=num_agents, p=[0.8, 0.15, 0.05])
    agents = pd.DataFrame({
        "agent_id": np.arange(1, num_agents + 1),
        "name": [f"Agent {i + 1}" for i in range(num_agents)],
        "status": statuses,
        "lat": np.round(CENTER_LAT + rng.uniform(-0.15, 0.15, num_agents), 6),
        "lng": np.round(CENTER_LNG + rng.uniform(-0.15, 0.15, num_agents), 6),
    })

    # 3. Pending orders, each dropped off within ~8km of its restaurant
    order_restaurants = rng.choice(restaurants["restaurant_id"].to_numpy(), size=num_orders)
    pickup = restaurants.set_index("restaurant_id").loc[order_restaurants]
    orders = pd.DataFrame({
        "order_id": np.arange(1, num_orders + 1),
        "restaurant_id": order_restaurants,
        "delivery_lat": np.round(pickup["lat"].fillna(CENTER_LAT).to_numpy() + rng.uniform(-0.08, 0.08, num_orders), 6),
        "delivery_lng": np.round(pickup["lng"].fillna(CENTER_LNG).to_numpy() + rng.uniform(-0.08, 0.08, num_orders), 6),
        "total_amount": np.round(rng.uniform(150.0, 1200.0, num_orders), 2),
        "status": "Pending",
    })

    restaurants.to_csv(os.path.join(output_dir, "restaurants.csv"), index=False)
    agents.to_csv(os.path.join(output_dir, "agents.csv"), index=False)
    orders.to_csv(os.path.join(output_dir, "orders.csv"), index=False)

    print(f"✅ Generated {num_restaurants} restaurants, {num_agents} agents and {num_orders} orders in '{output_dir}/'")
    print(f"   Active agents: {(agents['status'] == 'Active').sum()}, restaurants without location: {missing.sum()}")

    # Print a quick preview of pickup density
    print("\nTop 5 Restaurants (competing orders):")
    counts = orders["restaurant_id"].value_counts().head(5)
    for restaurant_id, count in counts.items():
        print(f"  Restaurant {restaurant_id}: {count} orders")


if __name__ == "__main__":
    generate_mock_data()
