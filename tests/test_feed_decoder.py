"""Tests for the GTFS-RT feed decoder."""

import pytest

from tcat_api.exceptions import DecodeError
from tcat_api.models.realtime import RealtimeEntity
from tcat_api.services.gtfs_rt.decoder import FeedDecoder

from .fixtures.gtfs_rt_fixture import (
    NO_DATA,
    SKIPPED,
    new_feed,
    add_trip_update,
    add_vehicle_position,
    build_empty_feed,
    build_mixed_feed,
    build_multi_entity_trip_update_feed,
    build_trip_update_feed,
)


class TestFeedDecoder:
    """Unit tests for FeedDecoder.decode."""

    def test_decode_trip_update_feed(self) -> None:
        data = build_trip_update_feed(feed_timestamp=1700000000)
        snapshot = FeedDecoder.decode(data)

        assert snapshot == {
            "1001": RealtimeEntity(
                route_id="10",
                stop_delays={"1350": 60, "1351": 120},
                vehicle_id="1702",
            )
        }

    def test_entity_without_trip_update_is_skipped(self) -> None:
        snapshot = FeedDecoder.decode(build_mixed_feed(feed_timestamp=1700000000))

        assert list(snapshot) == ["trip_entity"]
        entity = snapshot["trip_entity"]
        assert entity.route_id == "10"
        assert entity.stop_delays == {"1350": 30}
        assert entity.vehicle_id is None

    def test_no_data_stop_updates_are_dropped(self) -> None:
        feed = new_feed(1700000000)
        add_trip_update(
            feed,
            "e1",
            stop_updates=[
                {"stop_id": "A", "arrival_delay": 10},
                {"stop_id": "B", "schedule_relationship": NO_DATA},
                {"stop_id": "C", "arrival_delay": -20, "schedule_relationship": SKIPPED},
            ],
        )
        snapshot = FeedDecoder.decode(feed.SerializeToString())

        assert snapshot["e1"].stop_delays == {"A": 10, "C": -20}

    def test_trip_update_with_only_no_data_stops_is_still_emitted(self) -> None:
        feed = new_feed(1700000000)
        add_trip_update(
            feed,
            "e1",
            route_id="30",
            stop_updates=[{"stop_id": "B", "schedule_relationship": NO_DATA}],
        )
        snapshot = FeedDecoder.decode(feed.SerializeToString())

        assert snapshot == {"e1": RealtimeEntity(route_id="30", stop_delays={})}

    def test_missing_arrival_falls_back_to_departure_delay(self) -> None:
        feed = new_feed(1700000000)
        add_trip_update(feed, "e1", stop_updates=[{"stop_id": "A", "departure_delay": 45}])
        snapshot = FeedDecoder.decode(feed.SerializeToString())

        assert snapshot["e1"].stop_delays == {"A": 45}

    def test_duplicate_entity_id_last_write_wins(self) -> None:
        feed = new_feed(1700000000)
        add_trip_update(feed, "dup", route_id="10", stop_updates=[])
        add_trip_update(feed, "dup", route_id="11", stop_updates=[])
        snapshot = FeedDecoder.decode(feed.SerializeToString())

        assert snapshot["dup"].route_id == "11"

    def test_decode_is_deterministic(self) -> None:
        data = build_multi_entity_trip_update_feed(count=10, feed_timestamp=1700000000)

        assert FeedDecoder.decode(data) == FeedDecoder.decode(data)
        assert len(FeedDecoder.decode(data)) == 10

    def test_decode_empty_feed(self) -> None:
        assert FeedDecoder.decode(build_empty_feed(feed_timestamp=1700000000)) == {}

    def test_decode_vehicle_only_feed(self) -> None:
        feed = new_feed(1700000000)
        add_vehicle_position(feed, "v1")

        assert FeedDecoder.decode(feed.SerializeToString()) == {}

    def test_decode_invalid_protobuf_raises(self) -> None:
        with pytest.raises(DecodeError):
            FeedDecoder.decode(b"not a protobuf")

    def test_decode_truncated_payload_raises(self) -> None:
        data = build_multi_entity_trip_update_feed(count=3, feed_timestamp=1700000000)

        with pytest.raises(DecodeError):
            FeedDecoder.decode(data[:-5])
