"""
Pydantic models for arrivals, catalog items and publish results.

Field names are snake_case in Python and camelCase on the wire, matching
the keys the signage creatives reference (e.g. ``queens_1.minutesAway``).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ArrivalEvent(_WireModel):
    """A single upcoming train arrival at one stop."""

    minutes_away: str = Field(
        alias="minutesAway", description='"Arriving" or "<N> min"'
    )
    arrival_epoch: int = Field(
        alias="arrivalTime", description="Predicted arrival, epoch seconds"
    )


class DirectionalArrivals(_WireModel):
    """The nearest arrivals for one direction, ascending by arrival time."""

    key: str
    label: str
    stop_id: str
    next_three_trains: list[ArrivalEvent] = Field(
        default_factory=list, alias="nextThreeTrains"
    )


class CatalogItem(_WireModel):
    """One catalog item slot as rendered on the display."""

    minutes_away: str = Field(alias="minutesAway")


class PublishResult(_WireModel):
    """Outcome of a successful catalog push."""

    success: bool = True
    items_updated: int = Field(alias="itemsUpdated", ge=0)
    timestamp: datetime
    response: Any = None


class CycleState(str, Enum):
    idle = "idle"
    cycle_running = "cycle_running"


class SchedulerStatus(_WireModel):
    """Snapshot of the update scheduler for the status endpoint."""

    running: bool
    state: CycleState
    interval_seconds: float
    cycles_started: int = 0
    cycles_succeeded: int = 0
    cycles_failed: int = 0
    cycles_skipped: int = 0
    last_success_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None
