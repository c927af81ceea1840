"""
Spatial indexing using H3 hexagonal grid system.
Resolution 9 = ~174m hexagon edge length (~0.1 km² area, ~350m across)
"""
import math
from dataclasses import dataclass

import h3

from .errors import (
    InvalidCellIndex,
    InvalidCoordinate,
    InvalidGridDistance,
    UnsupportedResolution,
)

# H3 resolution level
# 8 = ~460m edge (~0.74km² area)
# 9 = ~174m edge (~0.10km² area) ← 3-4 city blocks, one check-in reveals one cell
# 10 = ~66m edge (~0.015km² area)
H3_RESOLUTION = 9

MIN_RESOLUTION = 0
MAX_RESOLUTION = 15

# Upper bound on the distance between a point and the center of its
# resolution-9 cell (the cell is ~350m across)
MAX_CENTER_DISTANCE_M = 350.0


@dataclass(frozen=True)
class GeoPoint:
    """A (latitude, longitude) pair in degrees."""
    latitude: float
    longitude: float

    def as_lnglat(self) -> list[float]:
        """GeoJSON position order: [longitude, latitude]."""
        return [self.longitude, self.latitude]


def _check_coordinate(value, name: str, limit: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidCoordinate(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidCoordinate(f"{name} must be finite, got {value!r}")
    if not -limit <= value <= limit:
        raise InvalidCoordinate(f"{name} {value} outside [-{limit:g}, {limit:g}]")
    return float(value)


def validate_point(point: GeoPoint) -> GeoPoint:
    """
    Check that a point has finite, in-range coordinates.

    Raises:
        InvalidCoordinate: latitude outside [-90, 90], longitude outside
            [-180, 180], or either value non-finite / non-numeric
    """
    lat = _check_coordinate(point.latitude, "latitude", 90.0)
    lon = _check_coordinate(point.longitude, "longitude", 180.0)
    return GeoPoint(lat, lon)


def validate_resolution(resolution) -> int:
    """Raises UnsupportedResolution unless resolution is an int in 0-15."""
    if isinstance(resolution, bool) or not isinstance(resolution, int):
        raise UnsupportedResolution(f"resolution must be an integer, got {resolution!r}")
    if not MIN_RESOLUTION <= resolution <= MAX_RESOLUTION:
        raise UnsupportedResolution(
            f"resolution {resolution} outside [{MIN_RESOLUTION}, {MAX_RESOLUTION}]"
        )
    return resolution


def normalize_cell(cell_id) -> str:
    """
    Validate an H3 cell ID and return its canonical (lowercase) form.

    Raises:
        InvalidCellIndex: not a string, not hexadecimal, or not a valid H3 cell
    """
    if not isinstance(cell_id, str):
        raise InvalidCellIndex(f"cell index must be a string, got {type(cell_id).__name__}")
    cell = cell_id.lower()
    if not cell or not h3.is_valid_cell(cell):
        raise InvalidCellIndex(f"not a valid H3 cell index: {cell_id!r}")
    return cell


def point_to_cell(point: GeoPoint, resolution: int = H3_RESOLUTION) -> str:
    """
    Convert a point to the H3 cell containing it.

    Args:
        point: Location to index
        resolution: H3 resolution (0-15), defaults to H3_RESOLUTION

    Returns:
        H3 cell ID (e.g., "892a100d2c3ffff" at resolution 9)

    Raises:
        InvalidCoordinate: If the point is out of range or non-finite
        UnsupportedResolution: If the resolution is not 0-15
    """
    point = validate_point(point)
    resolution = validate_resolution(resolution)
    return h3.latlng_to_cell(point.latitude, point.longitude, resolution)


def latlon_to_cell(lat: float, lon: float) -> str:
    """
    Convert lat/lon to an H3 cell ID at the working resolution.

    Args:
        lat: Latitude
        lon: Longitude

    Returns:
        H3 cell ID (15 hex characters)
    """
    return point_to_cell(GeoPoint(lat, lon), H3_RESOLUTION)


def cell_to_center(cell_id: str) -> GeoPoint:
    """
    Convert H3 cell ID back to its center point.

    Args:
        cell_id: H3 cell ID

    Returns:
        GeoPoint at the cell's center

    Raises:
        InvalidCellIndex: If cell_id is not a valid H3 cell
    """
    lat, lon = h3.cell_to_latlng(normalize_cell(cell_id))
    return GeoPoint(lat, lon)


def cell_to_boundary(cell_id: str) -> list[GeoPoint]:
    """
    Get the outline of an H3 cell as a closed ring.

    The ring is built from the cell's topological vertices, so hexagons
    always yield 7 points and pentagons 6 (first vertex repeated last).
    h3.cell_to_boundary would add distortion vertices where a cell crosses
    an icosahedron edge, which happens at Class III resolutions such as 9.
    Vertices are in counter-clockwise order.

    Args:
        cell_id: H3 cell ID

    Returns:
        List of GeoPoints, first == last

    Raises:
        InvalidCellIndex: If cell_id is not a valid H3 cell
    """
    vertices = [
        GeoPoint(*h3.vertex_to_latlng(vertex))
        for vertex in h3.cell_to_vertexes(normalize_cell(cell_id))
    ]
    vertices.append(vertices[0])
    return vertices


def get_neighbor_cells(cell_id: str, k: int = 1) -> list[str]:
    """
    Get all hexagons within k hops of the given cell.

    Args:
        cell_id: H3 cell ID
        k: Number of hops (1 = immediate neighbors, 2 = 2-ring, etc.)

    Raises:
        InvalidGridDistance: If k is not a non-negative integer
        InvalidCellIndex: If cell_id is not a valid H3 cell

    Returns:
        Sorted list of H3 cell IDs including the center cell

    Examples:
        k=0: 1 cell (just the center)
        k=1: 7 cells (center + 6 neighbors)
        k=2: 19 cells (center + 2-ring)
    """
    if isinstance(k, bool) or not isinstance(k, int) or k < 0:
        raise InvalidGridDistance(f"k must be a non-negative integer, got {k!r}")
    return sorted(h3.grid_disk(normalize_cell(cell_id), k))


def is_pentagon(cell_id: str) -> bool:
    return h3.is_pentagon(normalize_cell(cell_id))


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in meters."""
    return h3.great_circle_distance(
        (a.latitude, a.longitude), (b.latitude, b.longitude), unit="m"
    )


def cell_resolution(cell_id: str) -> int:
    return h3.get_resolution(normalize_cell(cell_id))
