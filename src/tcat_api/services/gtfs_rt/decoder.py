"""GTFS-RT protobuf decode layer."""

from __future__ import annotations

from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.transit import gtfs_realtime_pb2

from tcat_api.exceptions import DecodeError
from tcat_api.models.realtime import RealtimeEntity, RealtimeSnapshot

NO_DATA = gtfs_realtime_pb2.TripUpdate.StopTimeUpdate.NO_DATA


class FeedDecoder:
    """Turns raw ``FeedMessage`` bytes into per-entity stop delays."""

    @staticmethod
    def parse(data: bytes) -> gtfs_realtime_pb2.FeedMessage:
        """Parse protobuf bytes into a FeedMessage.

        Raises:
            DecodeError: If the payload is malformed or truncated.
        """
        feed = gtfs_realtime_pb2.FeedMessage()
        try:
            feed.ParseFromString(data)
        except (ProtobufDecodeError, RuntimeError, ValueError) as exc:
            msg = f"Failed to decode GTFS-RT feed ({len(data)} bytes)"
            raise DecodeError(msg, source="realtime") from exc
        return feed

    @classmethod
    def decode(cls, data: bytes) -> RealtimeSnapshot:
        """Decode a feed into a mapping of entity id to trip update.

        Entities without a trip update are skipped. Stop-time updates
        marked NO_DATA are dropped; a trip update left with no stops is
        still returned with an empty mapping.

        Raises:
            DecodeError: If the payload is malformed or truncated.
        """
        feed = cls.parse(data)
        snapshot: RealtimeSnapshot = {}

        for entity in feed.entity:
            if not entity.HasField("trip_update"):
                continue

            tu = entity.trip_update
            vehicle_id = tu.vehicle.id if tu.HasField("vehicle") else None
            snapshot[entity.id] = RealtimeEntity(
                route_id=tu.trip.route_id,
                stop_delays={
                    stu.stop_id: _arrival_delay(stu)
                    for stu in tu.stop_time_update
                    if stu.schedule_relationship != NO_DATA
                },
                vehicle_id=vehicle_id,
            )

        return snapshot


def _arrival_delay(stu: gtfs_realtime_pb2.TripUpdate.StopTimeUpdate) -> int:
    """Arrival delay in seconds, falling back to the departure delay."""
    if stu.HasField("arrival"):
        return stu.arrival.delay
    if stu.HasField("departure"):
        return stu.departure.delay
    return 0
