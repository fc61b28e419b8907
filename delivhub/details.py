"""
Read-only projections of tours for tables and lists.

``tour_detail_rows`` turns a tour into one row per stop with its
reconstructed arrival and departure times. ``render_history_list`` turns
saved-tour summary records into clickable list items.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from delivhub.models import HistoryRecord, Tour
from delivhub.schedule import reconstruct

logger = logging.getLogger(__name__)

EMPTY_HISTORY_MESSAGE = "No saved tours found."


def seconds_to_minutes(seconds: float) -> int:
    """Round seconds to whole minutes, halves rounding up."""
    return int(math.floor(seconds / 60 + 0.5))


def meters_to_km(meters: float) -> str:
    return f"{meters / 1000:.2f}"


@dataclass
class TourDetailRow:
    index: int
    type: str
    node_id: str
    demand_id: str
    arrival: str
    service_minutes: int
    departure: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "#": self.index,
            "Type": self.type,
            "Node": self.node_id,
            "Demand": self.demand_id,
            "Arrival": self.arrival,
            "Service (min)": self.service_minutes,
            "Departure": self.departure,
        }


def tour_detail_rows(tour: Optional[Tour]) -> List[TourDetailRow]:
    if tour is None:
        return []
    schedule = reconstruct(tour.departure_time, tour.stops, tour.legs)
    rows = []
    for stop, times in zip(tour.stops, schedule):
        rows.append(
            TourDetailRow(
                index=times.index + 1,
                type=stop.type.value if stop.type is not None else "",
                node_id=stop.node.id if stop.node is not None else "",
                demand_id=stop.demand.id if stop.demand is not None else "",
                arrival=times.arrival_text,
                service_minutes=seconds_to_minutes(times.departure - times.arrival),
                departure=times.departure_text,
            )
        )
    return rows


def tour_summary(tour: Optional[Tour]) -> str:
    if tour is None:
        return ""
    return (
        f"Tour {tour.id} - departure {tour.departure_time}, "
        f"total distance {meters_to_km(tour.total_distance)} km, "
        f"total duration ~{seconds_to_minutes(tour.total_duration)} min"
    )


@dataclass
class HistoryItem:
    title: str
    meta: str
    record: HistoryRecord
    on_select: Optional[Callable[[HistoryRecord], Any]] = None

    def select(self) -> Any:
        if self.on_select is None:
            return None
        return self.on_select(self.record)


def history_meta(record: HistoryRecord) -> str:
    parts = []
    if record.departure_time:
        parts.append(record.departure_time)
    if record.courier:
        parts.append(record.courier)
    if record.total_duration is not None:
        parts.append(f"{seconds_to_minutes(record.total_duration)} min")
    if record.total_distance is not None:
        parts.append(f"{meters_to_km(record.total_distance)} km")
    return " · ".join(parts)


def render_history_list(
    records: Optional[Iterable[Any]],
    on_select: Optional[Callable[[HistoryRecord], Any]] = None,
) -> List[HistoryItem]:
    """Build one clickable item per saved tour summary.

    Args:
        records: Summary records as dicts or ``HistoryRecord`` objects.
        on_select: Called with the record when its item is selected.

    Returns:
        The items, in input order. Records that are not mappings are skipped.
    """
    items = []
    for raw in records or []:
        record = HistoryRecord.from_json(raw)
        if record is None:
            logger.warning("Invalid history record skipped: %r", raw)
            continue
        items.append(HistoryItem(title=record.title, meta=history_meta(record), record=record, on_select=on_select))
    return items
