"""
Schedule reconstruction utilities for DelivHub.

A saved tour only carries its departure time and a sequence of service
and travel durations. This module rebuilds the wall-clock itinerary from
them: the arrival and departure time of every stop. It has no rendering
dependency and can be used on its own.

Times are handled as seconds since midnight. Formatting wraps at 24h, so
a tour running past midnight displays correctly but the day is not
tracked; a warning is logged when that happens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from delivhub.models import Leg, TourPoint

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 3600


@dataclass
class StopSchedule:
    index: int
    arrival: float
    departure: float

    @property
    def arrival_text(self) -> str:
        return format_clock(self.arrival)

    @property
    def departure_text(self) -> str:
        return format_clock(self.departure)


def _clock_part(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


def parse_time_string(t: Optional[str]) -> int:
    """Parse a HH:MM formatted time string into seconds since midnight.

    Missing or malformed parts count as zero, so ``"8"`` is 08:00 and
    ``"xx:30"`` is 00:30.
    """
    if not isinstance(t, str):
        return 0
    parts = t.split(":")
    hours = _clock_part(parts[0]) if parts else 0
    minutes = _clock_part(parts[1]) if len(parts) > 1 else 0
    return hours * 3600 + minutes * 60


def format_clock(seconds: float) -> str:
    """Format seconds since midnight as HH:MM, wrapping at 24h."""
    sec = max(0, int(seconds))
    hours = (sec // 3600) % 24
    minutes = (sec % 3600) // 60
    return f"{hours:02d}:{minutes:02d}"


def _duration(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number or number < 0:  # NaN or negative
        return 0.0
    return number


def reconstruct(
    departure_time: Optional[str],
    stops: Sequence[TourPoint],
    legs: Sequence[Leg],
) -> List[StopSchedule]:
    """Rebuild arrival and departure times for every stop of a tour.

    Args:
        departure_time: Departure from the first stop as a HH:MM string.
        stops: Ordered tour points; their ``service_duration`` is in seconds.
        legs: Ordered legs; leg ``i`` links stop ``i`` to stop ``i + 1`` and
            its ``travel_time`` is in seconds.

    Returns:
        One ``StopSchedule`` per stop, aligned with ``stops``.
    """
    current_time = float(parse_time_string(departure_time))
    schedule: List[StopSchedule] = []
    for idx, stop in enumerate(stops):
        arrival_time = current_time
        departure = arrival_time + _duration(getattr(stop, "service_duration", 0))
        schedule.append(StopSchedule(index=idx, arrival=arrival_time, departure=departure))
        # Stops past the last leg are reached with no travel time.
        current_time = departure
        if idx < len(legs):
            current_time += _duration(getattr(legs[idx], "travel_time", 0))

    if schedule and schedule[-1].departure >= SECONDS_PER_DAY:
        logger.warning(
            "Schedule departing %s runs past midnight; times wrap at 24h", departure_time
        )
    return schedule
