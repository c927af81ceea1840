"""
Typed failures raised by the geo-cell indexer.

All of these are local validation failures: bad input from the caller,
never transient, never worth retrying.
"""


class GridError(ValueError):
    """Base class for indexer input errors."""


class InvalidCoordinate(GridError):
    """Latitude/longitude is non-finite or outside the valid range."""


class UnsupportedResolution(GridError):
    """Resolution is not one of the H3 levels (0-15)."""


class InvalidCellIndex(GridError):
    """Cell index is malformed or not a valid H3 cell."""


class InvalidGridDistance(GridError):
    """Grid distance k is not a non-negative integer."""
