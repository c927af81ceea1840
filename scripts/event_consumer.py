"""
Event Consumer - Listens to the territory Redis Stream and prints events.

Run this in a separate terminal while sending check-ins to watch cells being
revealed in real time.

Usage:
    python scripts/event_consumer.py
    python scripts/event_consumer.py --from-start

The consumer will print events as they arrive. Press Ctrl+C to stop.
"""
import argparse
import os
import sys
from datetime import datetime

import redis

# Add project root to path so we can import our modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.territory.events import STREAM_NAME, read_events, get_stream_length


def format_timestamp(iso_string: str) -> str:
    """Convert ISO timestamp to readable format."""
    try:
        dt = datetime.fromisoformat(iso_string.replace('Z', '+00:00'))
        return dt.strftime("%H:%M:%S")
    except ValueError:
        return iso_string


def print_event(event_id: str, event_data: dict):
    """Print an event in a readable format."""
    event_type = event_data.get("event_type", "unknown")
    timestamp = format_timestamp(event_data.get("timestamp", ""))

    if event_type == "check_in":
        user = event_data.get("user_id", "?")
        cell = event_data.get("cell_id", "?")
        collection = event_data.get("collection", "?")
        print(f"  [{timestamp}] CHECK-IN: user={user}, cell={cell}, collection={collection}")

    elif event_type == "cell_revealed":
        cell = event_data.get("cell_id", "?")
        collection = event_data.get("collection", "?")
        count = event_data.get("revealed_count", "?")
        print(f"  [{timestamp}] REVEALED: {cell} in '{collection}' ({count} cells total)")

    else:
        print(f"  [{timestamp}] {event_type}: {event_data}")


def main():
    """Main consumer loop."""
    parser = argparse.ArgumentParser(description="Print territory events")
    parser.add_argument("--from-start", action="store_true", help="Replay all events in the stream first")
    args = parser.parse_args()

    redis_host = os.getenv("REDIS_HOST", "127.0.0.1")
    redis_port = int(os.getenv("REDIS_PORT", "6379"))

    print("=" * 60)
    print("TERRITORY MAP - Event Consumer")
    print("=" * 60)
    print(f"Connecting to Redis at {redis_host}:{redis_port}...")

    try:
        r = redis.Redis(host=redis_host, port=redis_port, decode_responses=True)
        r.ping()
        print("Connected!")
    except redis.ConnectionError:
        print("ERROR: Could not connect to Redis.")
        print("Make sure Redis is running: docker-compose up -d")
        sys.exit(1)

    print(f"Stream '{STREAM_NAME}' has {get_stream_length(r)} events")
    print()
    print("Listening for events... (press Ctrl+C to stop)")
    print("-" * 60)

    # "0" replays history, "$" starts from now
    last_id = "0" if args.from_start else "$"

    try:
        while True:
            for event_id, event_data in read_events(r, last_id=last_id, count=10, block_ms=1000):
                print_event(event_id, event_data)
                last_id = event_id

    except KeyboardInterrupt:
        print()
        print("-" * 60)
        print("Consumer stopped.")
        print(f"Final stream length: {get_stream_length(r)} events")


if __name__ == "__main__":
    main()
