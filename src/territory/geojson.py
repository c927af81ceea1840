"""
GeoJSON rendering of H3 cells for the map layer.

Internally points are (latitude, longitude); GeoJSON positions are
[longitude, latitude]. The swap happens in cell_to_feature and nowhere else.
"""
from typing import Iterable

from .grid import cell_to_boundary, normalize_cell


def cell_to_feature(cell_id: str) -> dict:
    """
    Convert an H3 cell to a GeoJSON Polygon feature.

    Args:
        cell_id: H3 cell ID

    Returns:
        Feature with properties.cellIndex and a closed [lng, lat] ring

    Raises:
        InvalidCellIndex: If cell_id is not a valid H3 cell
    """
    cell = normalize_cell(cell_id)
    ring = [vertex.as_lnglat() for vertex in cell_to_boundary(cell)]

    return {
        "type": "Feature",
        "properties": {"cellIndex": cell},
        "geometry": {
            "type": "Polygon",
            "coordinates": [ring],
        },
    }


def cells_to_region_collection(cell_ids: Iterable[str]) -> dict:
    """
    Convert a set of H3 cells to a GeoJSON FeatureCollection.

    Duplicates collapse and features come out sorted by cell ID, so the same
    set always renders identically. An empty input gives an empty
    FeatureCollection, never None.

    Raises:
        InvalidCellIndex: If any member is not a valid H3 cell
    """
    cells = sorted({normalize_cell(cell_id) for cell_id in cell_ids})
    return {
        "type": "FeatureCollection",
        "features": [cell_to_feature(cell) for cell in cells],
    }
