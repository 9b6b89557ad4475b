"""
Pure selection logic for train arrivals.

No I/O. Takes decoded feed entities and returns the nearest arrivals per
direction as DirectionalArrivals models.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from signage_feed.config import DirectionConfig
from signage_feed.decoder import FeedEntity
from signage_feed.models import ArrivalEvent, DirectionalArrivals

ARRIVING_LABEL = "Arriving"
DEFAULT_LIMIT = 3


def compute_minutes(arrival_epoch: int, now: int) -> int:
    """
    Compute minutes until arrival.

    Rounds (arrival - now) / 60 to the nearest minute, halves rounding up
    (90s -> 2, 150s -> 3, -30s -> 0).
    """
    return math.floor((arrival_epoch - now) / 60 + 0.5)


def minutes_label(minutes: int) -> str:
    """Display label for a minutes-away value."""
    if minutes <= 0:
        return ARRIVING_LABEL
    return f"{minutes} min"


def select_arrivals(
    entities: Iterable[FeedEntity],
    route_id: str,
    directions: Sequence[DirectionConfig],
    now: int,
    limit: int = DEFAULT_LIMIT,
) -> list[DirectionalArrivals]:
    """
    Filter, sort, and window arrivals for each direction.

    Args:
        entities: Decoded feed entities.
        route_id: Only trips on this route are considered.
        directions: Directions to fill, each bound to one stop id.
        now: Reference timestamp (epoch seconds), sampled once by the caller.
        limit: Maximum arrivals kept per direction.

    Returns:
        One DirectionalArrivals per direction, in the order given.
    """
    by_stop: dict[str, list[ArrivalEvent]] = {}
    for direction in directions:
        if direction.stop_id in by_stop:
            raise ValueError(
                f"Stop id {direction.stop_id!r} is bound to more than one direction"
            )
        by_stop[direction.stop_id] = []

    for entity in entities:
        trip = entity.trip_update
        if trip is None or trip.route_id != route_id:
            continue

        for stu in trip.stop_time_updates:
            if stu.arrival_time is None or stu.stop_id is None:
                continue

            bucket = by_stop.get(stu.stop_id)
            if bucket is None:
                continue

            minutes = compute_minutes(stu.arrival_time, now)
            if minutes < 0:
                continue  # Already departed

            bucket.append(
                ArrivalEvent(
                    minutes_away=minutes_label(minutes),
                    arrival_epoch=stu.arrival_time,
                )
            )

    result = []
    for direction in directions:
        events = sorted(by_stop[direction.stop_id], key=lambda e: e.arrival_epoch)
        result.append(
            DirectionalArrivals(
                key=direction.key,
                label=direction.label,
                stop_id=direction.stop_id,
                next_three_trains=events[:limit],
            )
        )
    return result
