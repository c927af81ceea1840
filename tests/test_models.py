"""
Unit tests for Pydantic models.
"""
import pytest
from datetime import datetime, timezone
from pydantic import ValidationError
from src.territory.models import (
    CheckIn,
    BatchCheckInRequest,
    RegionRequest,
    MAX_BATCH_CHECK_INS,
)


@pytest.mark.unit
class TestCheckInModel:
    """Test suite for CheckIn model."""

    def test_check_in_valid_data(self):
        """Test creating CheckIn with defaults."""
        check_in = CheckIn(user_id="user123", lat=38.9907, lon=-77.0261)

        assert check_in.user_id == "user123"
        assert check_in.lat == 38.9907
        assert check_in.lon == -77.0261
        assert check_in.event_type == "check_in"
        assert check_in.collection == "global"
        assert check_in.region is None
        assert check_in.timestamp is None

    def test_check_in_all_fields(self):
        ts = datetime(2024, 11, 5, 10, 0, 0, tzinfo=timezone.utc)
        check_in = CheckIn(
            user_id="user123",
            lat=38.9907,
            lon=-77.0261,
            event_type="rally",
            region="MD-08",
            collection="hard-party_1",
            timestamp=ts,
        )

        assert check_in.collection == "hard-party_1"
        assert check_in.region == "MD-08"
        assert check_in.timestamp == ts

    def test_check_in_missing_user_id(self):
        with pytest.raises(ValidationError) as exc_info:
            CheckIn(lat=38.9907, lon=-77.0261)

        errors = exc_info.value.errors()
        assert any(error["loc"] == ("user_id",) for error in errors)

    def test_check_in_empty_user_id(self):
        with pytest.raises(ValidationError):
            CheckIn(user_id="", lat=38.9907, lon=-77.0261)

    def test_check_in_latitude_out_of_range(self):
        with pytest.raises(ValidationError) as exc_info:
            CheckIn(user_id="user123", lat=91, lon=0)

        errors = exc_info.value.errors()
        assert any(error["loc"] == ("lat",) for error in errors)

    def test_check_in_longitude_out_of_range(self):
        with pytest.raises(ValidationError):
            CheckIn(user_id="user123", lat=0, lon=-180.1)

    def test_check_in_nan_rejected(self):
        with pytest.raises(ValidationError):
            CheckIn(user_id="user123", lat=float("nan"), lon=0)

    def test_check_in_invalid_collection(self):
        for collection in ["", "has space", "a:b", "x" * 65]:
            with pytest.raises(ValidationError):
                CheckIn(user_id="user123", lat=0, lon=0, collection=collection)


@pytest.mark.unit
class TestBatchCheckInRequest:
    """Test suite for BatchCheckInRequest model."""

    def test_batch_valid(self):
        batch = BatchCheckInRequest(check_ins=[{"user_id": "u1", "lat": 0, "lon": 0}])
        assert len(batch.check_ins) == 1

    def test_batch_empty_rejected(self):
        with pytest.raises(ValidationError):
            BatchCheckInRequest(check_ins=[])

    def test_batch_too_large_rejected(self):
        check_ins = [{"user_id": "u1", "lat": 0, "lon": 0}] * (MAX_BATCH_CHECK_INS + 1)
        with pytest.raises(ValidationError):
            BatchCheckInRequest(check_ins=check_ins)


@pytest.mark.unit
class TestRegionRequest:
    """Test suite for RegionRequest model."""

    def test_region_defaults_to_empty(self):
        assert RegionRequest().cells == []

    def test_region_cells(self):
        assert RegionRequest(cells=["892aa8b2b27ffff"]).cells == ["892aa8b2b27ffff"]
