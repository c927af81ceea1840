"""
Revealed-territory storage in Redis.

Each collection (a party, a team, or "global") owns one Redis set of H3 cell
IDs. Cells are only ever added: a check-in reveals the cell it lands in and
nothing un-reveals it. SADD gives us deduplication and tells us atomically
whether a reveal was new, even under concurrent check-ins.

Key layout: territory:<collection>:cells
"""
import logging

from redis import Redis

from .grid import normalize_cell

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "global"


def get_territory_key(collection: str) -> str:
    """Get Redis key for a collection's revealed cells."""
    return f"territory:{collection}:cells"


def reveal_cell(r: Redis, collection: str, cell_id: str) -> bool:
    """
    Add a cell to a collection's revealed territory.

    Args:
        r: Redis client
        collection: Collection name
        cell_id: H3 cell ID

    Returns:
        True if the cell was newly revealed, False if it already was
    """
    cell = normalize_cell(cell_id)
    added = int(r.sadd(get_territory_key(collection), cell) or 0)
    if added:
        logger.info("Revealed cell %s in collection %s", cell, collection)
    return added == 1


def get_revealed_cells(r: Redis, collection: str) -> set[str]:
    """Get every revealed cell ID for a collection (empty set if none)."""
    members = r.smembers(get_territory_key(collection))
    return set(members) if members else set()


def count_revealed_cells(r: Redis, collection: str) -> int:
    return int(r.scard(get_territory_key(collection)) or 0)


def is_revealed(r: Redis, collection: str, cell_id: str) -> bool:
    return bool(r.sismember(get_territory_key(collection), normalize_cell(cell_id)))
