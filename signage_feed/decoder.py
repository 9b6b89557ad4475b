"""
GTFS-Realtime decode layer.

Parses a protobuf FeedMessage into plain, immutable records. Only the
fields the arrival selector needs are kept; no filtering happens here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2

logger = logging.getLogger(__name__)


class FeedDecodeError(Exception):
    """Raised when the feed payload is not a valid FeedMessage."""


@dataclass(frozen=True)
class StopTimeUpdate:
    """Predicted arrival at one stop. Missing fields are None."""

    stop_id: Optional[str]
    arrival_time: Optional[int]  # epoch seconds


@dataclass(frozen=True)
class TripUpdateRecord:
    route_id: Optional[str]
    trip_id: Optional[str] = None
    stop_time_updates: list[StopTimeUpdate] = field(default_factory=list)


@dataclass(frozen=True)
class FeedEntity:
    entity_id: str
    trip_update: Optional[TripUpdateRecord] = None


def _decode_stop_time_update(stu) -> StopTimeUpdate:
    arrival_time: Optional[int] = None
    if stu.HasField("arrival") and stu.arrival.time:
        # int64 on the wire; always a plain int from here on
        arrival_time = int(stu.arrival.time)
    return StopTimeUpdate(stop_id=stu.stop_id or None, arrival_time=arrival_time)


def _decode_trip_update(trip_update) -> TripUpdateRecord:
    trip = trip_update.trip
    return TripUpdateRecord(
        route_id=trip.route_id or None,
        trip_id=trip.trip_id or None,
        stop_time_updates=[
            _decode_stop_time_update(stu) for stu in trip_update.stop_time_update
        ],
    )


def decode_feed(data: bytes) -> list[FeedEntity]:
    """
    Decode protobuf bytes into a list of FeedEntity records.

    Raises:
        FeedDecodeError: If the payload cannot be parsed.
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(data)
    except DecodeError as exc:
        raise FeedDecodeError(f"Failed to decode feed payload: {exc}") from exc

    entities = []
    for entity in feed.entity:
        trip_update = None
        if entity.HasField("trip_update"):
            trip_update = _decode_trip_update(entity.trip_update)
        entities.append(FeedEntity(entity_id=entity.id, trip_update=trip_update))

    logger.debug(
        "Decoded feed: %d entities (gtfs-rt %s, header timestamp %s)",
        len(entities),
        feed.header.gtfs_realtime_version,
        feed.header.timestamp,
    )
    return entities
