"""
Territory Map API
FastAPI application for revealing "fog of war" territory using the H3 hexagonal grid system.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, Response, HTTPException, Path, Query
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from src.territory.redis_client import get_redis_client
from src.territory.models import CheckIn, BatchCheckInRequest, RegionRequest, COLLECTION_PATTERN
from src.territory.errors import GridError
from src.territory.grid import (
    H3_RESOLUTION,
    latlon_to_cell,
    normalize_cell,
    cell_to_center,
    cell_resolution,
    get_neighbor_cells,
    is_pentagon,
)
from src.territory.geojson import cell_to_feature, cells_to_region_collection
from src.territory.territory import (
    reveal_cell,
    get_revealed_cells,
    count_revealed_cells,
    is_revealed,
    get_territory_key,
)
from src.territory.database import save_check_in
from src.territory import metrics
from src.territory import events

logger = logging.getLogger(__name__)

# Rate limiting configuration
RATE_LIMIT_WINDOW_SECONDS = 60  # 1-minute window
RATE_LIMIT_MAX_REQUESTS = 100   # Max check-ins per user per minute

MAX_NEIGHBOR_RADIUS = 5  # 91 cells


def check_rate_limit(r, user_id: str) -> bool:
    """
    Check if a user has exceeded the check-in rate limit.

    Uses Redis INCR with TTL as a fixed-window counter.

    Args:
        r: Redis client
        user_id: User identifier

    Returns:
        True if within rate limit, False if exceeded
    """
    key = f"ratelimit:checkin:{user_id}"

    # Increment counter, set TTL on first request
    count = r.incr(key)
    if count == 1:
        r.expire(key, RATE_LIMIT_WINDOW_SECONDS)

    return count <= RATE_LIMIT_MAX_REQUESTS


def _point_json(point) -> dict:
    return {"lat": point.latitude, "lon": point.longitude}


# Initialize FastAPI application
app = FastAPI(
    title="Territory Map",
    description="Check-in driven territory reveal on the H3 hexagonal grid",
    version="1.0.0"
)


@app.exception_handler(GridError)
async def grid_error_handler(request: Request, exc: GridError):
    """Bad coordinates, resolutions or cell indices are the caller's fault: 422."""
    error = type(exc).__name__
    metrics.grid_errors_total.labels(error=error).inc()
    return JSONResponse(status_code=422, content={"error": error, "detail": str(exc)})


@app.get("/metrics")
def get_metrics():
    """
    Prometheus metrics endpoint.

    Returns:
        Response: Prometheus-formatted metrics
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
        dict: API status and Redis connection status
    """
    try:
        redis_client = get_redis_client()
        redis_client.ping()
        redis_status = "connected"
        metrics.redis_operations_total.labels(operation="ping", status="success").inc()
    except RedisError:
        redis_status = "disconnected"
        metrics.redis_operations_total.labels(operation="ping", status="error").inc()

    return {"status": "healthy", "redis": redis_status}


@app.get("/v1/cells")
def locate_cell(lat: float, lon: float, collection: Optional[str] = Query(default=None, pattern=COLLECTION_PATTERN)):
    """
    Find the H3 cell containing a point.

    Args:
        lat: Latitude
        lon: Longitude
        collection: If set, also report whether the cell is revealed there

    Returns:
        dict: Cell ID, center, and GeoJSON outline of the cell
    """
    start_time = time.time()
    cell_id = latlon_to_cell(lat, lon)

    response = {
        "cell_id": cell_id,
        "resolution": H3_RESOLUTION,
        "center": _point_json(cell_to_center(cell_id)),
        "is_pentagon": is_pentagon(cell_id),
        "feature": cell_to_feature(cell_id),
    }

    if collection is not None:
        r = get_redis_client()
        response["collection"] = collection
        response["revealed"] = is_revealed(r, collection, cell_id)
        metrics.redis_operations_total.labels(operation="sismember", status="success").inc()

    metrics.cell_requests_total.labels(endpoint="locate_cell", status="success").inc()
    metrics.request_duration_seconds.labels(endpoint="locate_cell").observe(time.time() - start_time)
    return response


@app.get("/v1/cells/{cell_id}")
def describe_cell(cell_id: str):
    """
    Get the center and outline of an H3 cell.

    Raises:
        422 InvalidCellIndex: If cell_id is not a valid H3 cell
    """
    cell = normalize_cell(cell_id)
    metrics.cell_requests_total.labels(endpoint="describe_cell", status="success").inc()

    return {
        "cell_id": cell,
        "resolution": cell_resolution(cell),
        "center": _point_json(cell_to_center(cell)),
        "is_pentagon": is_pentagon(cell),
        "feature": cell_to_feature(cell),
    }


@app.get("/v1/cells/{cell_id}/neighbors")
def cell_neighbors(cell_id: str, k: int = Query(default=1, ge=0, le=MAX_NEIGHBOR_RADIUS)):
    """
    Get the hexagons within k hops of a cell, e.g. the fog surrounding a user.

    Examples:
        k=0: 1 hexagon, k=1: 7 hexagons, k=2: 19 hexagons
    """
    cell = normalize_cell(cell_id)
    area_cells = get_neighbor_cells(cell, k=k)
    metrics.cell_requests_total.labels(endpoint="cell_neighbors", status="success").inc()

    return {
        "center_cell": cell,
        "k": k,
        "total_cells": len(area_cells),
        "region": cells_to_region_collection(area_cells),
    }


@app.post("/v1/regions")
def render_region(body: RegionRequest):
    """
    Render a set of H3 cells as a GeoJSON FeatureCollection.

    Duplicates collapse; an empty list renders an empty FeatureCollection.
    """
    metrics.cell_requests_total.labels(endpoint="render_region", status="success").inc()
    return cells_to_region_collection(body.cells)


@app.post("/v1/check-ins")
def create_check_in(check_in: CheckIn):
    """
    Record a check-in and reveal the cell it lands in.

    Process:
    1. Check rate limit for this user
    2. Convert lat/lon to H3 cell ID (resolution 9)
    3. Add the cell to the collection's revealed set (SADD, idempotent)
    4. Append the check-in to the history table (if configured)
    5. Publish check_in, and cell_revealed if the cell was new

    Args:
        check_in: CheckIn with user_id, lat, lon and optional collection

    Returns:
        dict: cell_id, whether it was newly revealed, and the territory size

    Raises:
        HTTPException 429: If user exceeds rate limit (100 check-ins/minute)
    """
    start_time = time.time()
    r = get_redis_client()

    if not check_rate_limit(r, check_in.user_id):
        metrics.check_in_requests_total.labels(status="rate_limited").inc()
        logger.warning("Rate limit exceeded for user %s", check_in.user_id)
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Max {RATE_LIMIT_MAX_REQUESTS} check-ins per minute per user."
        )

    ts = check_in.timestamp or datetime.now(timezone.utc)
    cell_id = latlon_to_cell(check_in.lat, check_in.lon)

    newly_revealed = reveal_cell(r, check_in.collection, cell_id)
    metrics.redis_operations_total.labels(operation="sadd", status="success").inc()

    revealed_count = count_revealed_cells(r, check_in.collection)
    metrics.redis_operations_total.labels(operation="scard", status="success").inc()

    history_saved = save_check_in(
        user_id=check_in.user_id,
        h3_index=cell_id,
        collection=check_in.collection,
        lat=check_in.lat,
        lon=check_in.lon,
        event_type=check_in.event_type,
        region=check_in.region,
        created_at=ts,
    )

    events.publish_check_in_event(
        redis_client=r,
        user_id=check_in.user_id,
        cell_id=cell_id,
        collection=check_in.collection,
        lat=check_in.lat,
        lon=check_in.lon,
        event_type=check_in.event_type,
    )

    if newly_revealed:
        metrics.cells_revealed_total.labels(collection=check_in.collection).inc()
        events.publish_cell_revealed_event(
            redis_client=r,
            cell_id=cell_id,
            collection=check_in.collection,
            revealed_count=revealed_count,
        )

    metrics.check_in_requests_total.labels(status="success").inc()
    metrics.request_duration_seconds.labels(endpoint="create_check_in").observe(time.time() - start_time)

    return {
        "message": "Area revealed" if newly_revealed else "Already revealed",
        "user_id": check_in.user_id,
        "cell_id": cell_id,
        "collection": check_in.collection,
        "newly_revealed": newly_revealed,
        "revealed_count": revealed_count,
        "history_saved": history_saved,
    }


@app.post("/v1/check-ins/batch")
def create_check_ins_batch(batch: BatchCheckInRequest):
    """
    Record multiple check-ins in a single request.

    Uses Redis pipelines so the reveals, the territory counts and the stream
    events each take one round-trip. Duplicate cells within the batch are
    revealed once; every check-in still gets its own check_in event.

    Args:
        batch: BatchCheckInRequest (max 500 check-ins)

    Returns:
        dict: Summary with newly revealed cells per collection

    Raises:
        HTTPException 429: If any user in the batch exceeds the rate limit
    """
    start_time = time.time()
    r = get_redis_client()

    unique_users = set(c.user_id for c in batch.check_ins)
    rate_limited_users = [u for u in sorted(unique_users) if not check_rate_limit(r, u)]

    if rate_limited_users:
        metrics.check_in_requests_total.labels(status="rate_limited").inc()
        logger.warning("Rate limit exceeded for %d users in batch", len(rate_limited_users))
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded for users: {rate_limited_users[:5]}{'...' if len(rate_limited_users) > 5 else ''}"
        )

    # Queue one SADD per check-in; results line up with batch.check_ins
    cell_ids = [latlon_to_cell(c.lat, c.lon) for c in batch.check_ins]
    pipe = r.pipeline()
    for check_in, cell_id in zip(batch.check_ins, cell_ids):
        pipe.sadd(get_territory_key(check_in.collection), cell_id)
    added = pipe.execute()
    metrics.redis_operations_total.labels(operation="pipeline_batch", status="success").inc()

    newly_revealed = {}
    for check_in, cell_id, result in zip(batch.check_ins, cell_ids, added):
        if int(result or 0) == 1:
            newly_revealed.setdefault(check_in.collection, []).append(cell_id)

    collections = sorted(set(c.collection for c in batch.check_ins))
    count_pipe = r.pipeline()
    for collection in collections:
        count_pipe.scard(get_territory_key(collection))
    counts = dict(zip(collections, (int(c or 0) for c in count_pipe.execute())))

    history_saved = 0
    for check_in, cell_id in zip(batch.check_ins, cell_ids):
        if save_check_in(
            user_id=check_in.user_id,
            h3_index=cell_id,
            collection=check_in.collection,
            lat=check_in.lat,
            lon=check_in.lon,
            event_type=check_in.event_type,
            region=check_in.region,
            created_at=check_in.timestamp,
        ):
            history_saved += 1

    # One check_in event per check-in, then one cell_revealed per new cell.
    # A reveal's count is the collection size right after it, as on the
    # single check-in path: the last reveal in a collection sees the final
    # SCARD, each earlier one sees one fewer.
    event_pipe = r.pipeline()
    for check_in, cell_id in zip(batch.check_ins, cell_ids):
        events.publish_check_in_event(
            redis_client=event_pipe,
            user_id=check_in.user_id,
            cell_id=cell_id,
            collection=check_in.collection,
            lat=check_in.lat,
            lon=check_in.lon,
            event_type=check_in.event_type,
        )

    for collection, cells in newly_revealed.items():
        metrics.cells_revealed_total.labels(collection=collection).inc(len(cells))
        for i, cell_id in enumerate(cells):
            events.publish_cell_revealed_event(
                redis_client=event_pipe,
                cell_id=cell_id,
                collection=collection,
                revealed_count=counts[collection] - (len(cells) - 1 - i),
            )

    event_pipe.execute()
    metrics.redis_operations_total.labels(operation="pipeline_events", status="success").inc()

    metrics.check_in_requests_total.labels(status="success").inc()
    metrics.request_duration_seconds.labels(endpoint="create_check_ins_batch").observe(time.time() - start_time)

    return {
        "message": "Batch processed",
        "total_check_ins": len(batch.check_ins),
        "unique_users": len(unique_users),
        "unique_cells": len(set(cell_ids)),
        "newly_revealed": newly_revealed,
        "revealed_counts": counts,
        "history_saved": history_saved,
        "processing_time_ms": round((time.time() - start_time) * 1000, 2)
    }


@app.get("/v1/territory/{collection}")
def get_territory(collection: str = Path(..., pattern=COLLECTION_PATTERN)):
    """
    Get a collection's revealed territory as a GeoJSON FeatureCollection.

    Features are sorted by cell ID; an unknown collection renders empty.
    """
    start_time = time.time()
    r = get_redis_client()

    cells = get_revealed_cells(r, collection)
    metrics.redis_operations_total.labels(operation="smembers", status="success").inc()

    region = cells_to_region_collection(cells)

    metrics.cell_requests_total.labels(endpoint="get_territory", status="success").inc()
    metrics.request_duration_seconds.labels(endpoint="get_territory").observe(time.time() - start_time)
    return region


@app.get("/v1/territory/{collection}/stats")
def get_territory_stats(collection: str = Path(..., pattern=COLLECTION_PATTERN)):
    """Number of revealed cells in a collection."""
    r = get_redis_client()
    revealed = count_revealed_cells(r, collection)
    metrics.redis_operations_total.labels(operation="scard", status="success").inc()

    return {
        "collection": collection,
        "revealed_cells": revealed,
        "resolution": H3_RESOLUTION,
    }
