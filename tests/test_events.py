"""
Tests for Redis Stream event publishing.
"""
import pytest
from unittest.mock import Mock
from src.territory.events import (
    publish_check_in_event,
    publish_cell_revealed_event,
    read_events,
    get_stream_length,
    STREAM_NAME,
    MAX_STREAM_LENGTH
)


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    return Mock()


@pytest.mark.unit
class TestPublishCheckInEvent:
    """Tests for publish_check_in_event function."""

    def test_publish_check_in_event_returns_event_id(self, mock_redis):
        """Test that publishing returns an event ID."""
        mock_redis.xadd.return_value = "1234567890123-0"

        event_id = publish_check_in_event(
            redis_client=mock_redis,
            user_id="user_001",
            cell_id="892aa8b2b27ffff",
            collection="global",
            lat=38.9907,
            lon=-77.0261
        )

        assert event_id == "1234567890123-0"

    def test_publish_check_in_event_fields(self, mock_redis):
        """Test that XADD is called with string-valued fields."""
        mock_redis.xadd.return_value = "1234567890123-0"

        publish_check_in_event(
            redis_client=mock_redis,
            user_id="user_001",
            cell_id="892aa8b2b27ffff",
            collection="team_a",
            lat=38.9907,
            lon=-77.0261,
            event_type="rally"
        )

        mock_redis.xadd.assert_called_once()
        stream_name, event_data = mock_redis.xadd.call_args[0]

        assert stream_name == STREAM_NAME
        assert event_data["event_type"] == "check_in"
        assert event_data["check_in_type"] == "rally"
        assert event_data["user_id"] == "user_001"
        assert event_data["cell_id"] == "892aa8b2b27ffff"
        assert event_data["collection"] == "team_a"
        assert event_data["lat"] == "38.9907"
        assert event_data["lon"] == "-77.0261"
        assert "timestamp" in event_data

    def test_publish_check_in_event_sets_maxlen(self, mock_redis):
        """Test that XADD is capped to prevent unbounded growth."""
        mock_redis.xadd.return_value = "1234567890123-0"

        publish_check_in_event(mock_redis, "user_001", "892aa8b2b27ffff", "global", 0.0, 0.0)

        call_kwargs = mock_redis.xadd.call_args[1]
        assert call_kwargs["maxlen"] == MAX_STREAM_LENGTH
        assert call_kwargs["approximate"] is True


@pytest.mark.unit
class TestPublishCellRevealedEvent:
    """Tests for publish_cell_revealed_event function."""

    def test_publish_cell_revealed_event_fields(self, mock_redis):
        mock_redis.xadd.return_value = "1234567890124-0"

        event_id = publish_cell_revealed_event(
            redis_client=mock_redis,
            cell_id="892aa8b2b27ffff",
            collection="team_a",
            revealed_count=12
        )

        assert event_id == "1234567890124-0"
        stream_name, event_data = mock_redis.xadd.call_args[0]
        assert stream_name == STREAM_NAME
        assert event_data["event_type"] == "cell_revealed"
        assert event_data["cell_id"] == "892aa8b2b27ffff"
        assert event_data["collection"] == "team_a"
        assert event_data["revealed_count"] == "12"
        assert "timestamp" in event_data


@pytest.mark.unit
class TestReadEvents:
    """Tests for read_events and get_stream_length."""

    def test_read_events_empty(self, mock_redis):
        mock_redis.xread.return_value = []

        assert read_events(mock_redis) == []

    def test_read_events_returns_event_list(self, mock_redis):
        events = [("1-0", {"event_type": "check_in"}), ("2-0", {"event_type": "cell_revealed"})]
        mock_redis.xread.return_value = [(STREAM_NAME, events)]

        assert read_events(mock_redis, last_id="0", count=10) == events
        mock_redis.xread.assert_called_once_with({STREAM_NAME: "0"}, count=10)

    def test_read_events_blocking(self, mock_redis):
        mock_redis.xread.return_value = None

        assert read_events(mock_redis, last_id="$", count=5, block_ms=1000) == []
        mock_redis.xread.assert_called_once_with({STREAM_NAME: "$"}, count=5, block=1000)

    def test_get_stream_length(self, mock_redis):
        mock_redis.xlen.return_value = 7

        assert get_stream_length(mock_redis) == 7
        mock_redis.xlen.assert_called_once_with(STREAM_NAME)
