from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

from .territory import DEFAULT_COLLECTION

MAX_BATCH_CHECK_INS = 500
MAX_REGION_CELLS = 5000

COLLECTION_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


class CheckIn(BaseModel):
    """A user checking in at a location, revealing the cell it falls in."""
    user_id: str = Field(..., min_length=1, max_length=64)
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    event_type: str = Field(default="check_in", min_length=1, max_length=32)
    region: Optional[str] = Field(default=None, max_length=64)
    collection: str = Field(default=DEFAULT_COLLECTION, pattern=COLLECTION_PATTERN)
    timestamp: Optional[datetime] = Field(default=None)


class BatchCheckInRequest(BaseModel):
    """Batch of check-ins, e.g. replayed by a client after being offline."""
    check_ins: List[CheckIn] = Field(
        ..., min_length=1, max_length=MAX_BATCH_CHECK_INS,
        description=f"List of check-ins (max {MAX_BATCH_CHECK_INS})"
    )


class RegionRequest(BaseModel):
    """Set of H3 cells to render as one FeatureCollection."""
    cells: List[str] = Field(default_factory=list, max_length=MAX_REGION_CELLS)
