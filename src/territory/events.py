"""
Event publishing using Redis Streams.

Every check-in is appended to the stream, and so is every cell that a
check-in reveals for the first time. Consumers (push fan-out, leaderboards,
map clients) read the stream instead of polling the territory sets.

Stream name: "territory:events"
Event types: "check_in", "cell_revealed"
"""
import redis
from datetime import datetime, timezone
from typing import Optional


# Stream configuration
STREAM_NAME = "territory:events"
MAX_STREAM_LENGTH = 10000  # Keep last 10k events (prevents unbounded growth)


def _publish(redis_client: redis.Redis, event_data: dict) -> str:
    event_data["timestamp"] = datetime.now(timezone.utc).isoformat()
    # MAXLEN ~ trims approximately, which is cheaper than exact trimming
    return redis_client.xadd(
        STREAM_NAME,
        event_data,
        maxlen=MAX_STREAM_LENGTH,
        approximate=True
    )


def publish_check_in_event(
    redis_client: redis.Redis,
    user_id: str,
    cell_id: str,
    collection: str,
    lat: float,
    lon: float,
    event_type: str = "check_in"
) -> str:
    """
    Publish a check-in to the Redis stream.

    Args:
        redis_client: Redis connection
        user_id: User who checked in
        cell_id: H3 cell the check-in landed in
        collection: Territory collection the check-in counts towards
        lat: Latitude
        lon: Longitude
        event_type: Application-level kind of check-in

    Returns:
        Event ID assigned by Redis (e.g., "1234567890123-0")
    """
    return _publish(redis_client, {
        "event_type": "check_in",
        "check_in_type": event_type,
        "user_id": user_id,
        "cell_id": cell_id,
        "collection": collection,
        "lat": str(lat),
        "lon": str(lon),
    })


def publish_cell_revealed_event(
    redis_client: redis.Redis,
    cell_id: str,
    collection: str,
    revealed_count: int
) -> str:
    """
    Publish that a cell was revealed for the first time in a collection.

    Args:
        redis_client: Redis connection
        cell_id: Newly revealed H3 cell
        collection: Collection it was revealed in
        revealed_count: Size of the collection after the reveal

    Returns:
        Event ID assigned by Redis
    """
    return _publish(redis_client, {
        "event_type": "cell_revealed",
        "cell_id": cell_id,
        "collection": collection,
        "revealed_count": str(revealed_count),
    })


def read_events(
    redis_client: redis.Redis,
    last_id: str = "0",
    count: int = 100,
    block_ms: Optional[int] = None
) -> list:
    """
    Read events from the stream.

    Args:
        redis_client: Redis connection
        last_id: Read events after this ID ("0" for all, "$" for only new)
        count: Maximum number of events to return
        block_ms: If set, block for this many milliseconds waiting for new events

    Returns:
        List of (event_id, event_data) tuples
    """
    if block_ms is not None:
        result = redis_client.xread({STREAM_NAME: last_id}, count=count, block=block_ms)
    else:
        result = redis_client.xread({STREAM_NAME: last_id}, count=count)

    # xread returns: [(stream_name, [(id, data), (id, data), ...])]
    if not result:
        return []
    return result[0][1]


def get_stream_length(redis_client: redis.Redis) -> int:
    """Get the current number of events in the stream."""
    return redis_client.xlen(STREAM_NAME)
