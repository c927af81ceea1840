"""
Demo script to show territory being revealed by check-ins.

This script walks a handful of users around Silver Spring, MD and checks
each of them in every few steps. It demonstrates:
1. How each check-in lands in one resolution-9 hexagon (~350m across)
2. How repeat check-ins in the same hexagon do not reveal anything new
3. How the revealed territory comes back as a GeoJSON FeatureCollection

Run the event_consumer.py in another terminal to see the events:
    Terminal 1: python scripts/event_consumer.py
    Terminal 2: python scripts/demo_check_ins.py

Usage:
    python scripts/demo_check_ins.py
    python scripts/demo_check_ins.py --collection team_a --steps 40
    python scripts/demo_check_ins.py --geojson territory.geojson
"""
import argparse
import json
import random
import time

import requests

# Silver Spring, MD
DEMO_LOCATION = {
    "lat": 38.9907,
    "lon": -77.0261
}

API_URL = "http://localhost:8000"

# ~100m per step in latitude; longitude step scaled for ~39°N
STEP_LAT = 0.0009
STEP_LON = 0.00116


def main():
    parser = argparse.ArgumentParser(description="Demo territory reveal")
    parser.add_argument("--collection", default="demo", help="Territory collection (default: demo)")
    parser.add_argument("--users", type=int, default=3, help="Number of walking users (default: 3)")
    parser.add_argument("--steps", type=int, default=20, help="Steps per user (default: 20)")
    parser.add_argument("--seed", type=int, default=7, help="Random seed for the walks")
    parser.add_argument("--geojson", help="Write the revealed FeatureCollection to this file")
    args = parser.parse_args()

    random.seed(args.seed)

    print("=" * 60)
    print("TERRITORY DEMO - Fog of War on H3 resolution 9")
    print("=" * 60)
    print()
    print(f"Start:      Silver Spring, MD {DEMO_LOCATION['lat']}, {DEMO_LOCATION['lon']}")
    print(f"Collection: {args.collection}")
    print(f"Users:      {args.users} x {args.steps} steps")
    print()
    print("-" * 60)

    # Check API is running
    try:
        response = requests.get(f"{API_URL}/health", timeout=5)
        if response.status_code != 200:
            print("ERROR: API not healthy")
            return
        print("API is running")
    except requests.ConnectionError:
        print("ERROR: Cannot connect to API at", API_URL)
        print("Make sure to run: uvicorn src.territory.main:app --reload")
        return

    print()
    new_cells = 0
    for u in range(1, args.users + 1):
        user_id = f"walker_{u:02d}"
        lat, lon = DEMO_LOCATION["lat"], DEMO_LOCATION["lon"]

        for step in range(1, args.steps + 1):
            lat += random.choice((-1, 0, 1)) * STEP_LAT
            lon += random.choice((-1, 0, 1)) * STEP_LON

            response = requests.post(
                f"{API_URL}/v1/check-ins",
                json={
                    "user_id": user_id,
                    "lat": round(lat, 6),
                    "lon": round(lon, 6),
                    "collection": args.collection,
                }
            )
            data = response.json()

            marker = "NEW " if data["newly_revealed"] else "    "
            new_cells += data["newly_revealed"]
            print(f"  {user_id} step {step:2d}: {marker}{data['cell_id']}  revealed={data['revealed_count']}")

            # Small delay so consumer can keep up
            time.sleep(0.05)

    print()
    print("-" * 60)

    stats = requests.get(f"{API_URL}/v1/territory/{args.collection}/stats").json()
    territory = requests.get(f"{API_URL}/v1/territory/{args.collection}").json()

    print()
    print("TERRITORY:")
    print(f"  Collection:    {stats['collection']}")
    print(f"  Revealed:      {stats['revealed_cells']} cells")
    print(f"  New this run:  {new_cells}")
    print(f"  Features:      {len(territory['features'])}")

    if args.geojson:
        with open(args.geojson, "w") as f:
            json.dump(territory, f)
        print(f"  Written to:    {args.geojson}")
    print("=" * 60)


if __name__ == "__main__":
    main()
