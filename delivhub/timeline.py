"""
Timeline view of a tour.

One step per stop, left to right: a badge (warehouse, ``P{n}`` or
``D{n}``), the arrival time and a short description. Pickup and delivery
of the same demand share their number. At most one step is selected at a
time; the selected step is the scroll target of the rendered markup.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from delivhub.models import StopType, Tour, TourPoint
from delivhub.schedule import reconstruct

logger = logging.getLogger(__name__)

WAREHOUSE_BADGE = "🏠"


@dataclass
class TimelineStep:
    index: int
    stop_type: Optional[StopType]
    badge: str
    time: str
    description: str
    selected: bool = False


def demand_key(stop: TourPoint) -> Optional[str]:
    if stop.demand is not None and stop.demand.id:
        return stop.demand.id
    if stop.node is not None and stop.node.id:
        return f"node-{stop.node.id}"
    return None


def pair_numbers(stops: Sequence[TourPoint]) -> Dict[str, int]:
    """Number pickup/delivery pairs from 1, in sorted demand key order."""
    keys = sorted(
        {
            key
            for key in (demand_key(s) for s in stops if s.type in (StopType.PICKUP, StopType.DELIVERY))
            if key
        }
    )
    return {key: number for number, key in enumerate(keys, start=1)}


class TimelineView:
    def __init__(self, address_lookup: Optional[Callable[[float, float], str]] = None):
        self.address_lookup = address_lookup
        self.steps: List[TimelineStep] = []
        self.tour_id: Optional[str] = None
        self.selected_index: Optional[int] = None
        self.scroll_target: Optional[int] = None
        self.visible = False

    def render(self, tour: Optional[Tour]) -> List[TimelineStep]:
        if tour is None:
            logger.error("No tour for the timeline")
            return self.steps
        schedule = reconstruct(tour.departure_time, tour.stops, tour.legs)
        numbers = pair_numbers(tour.stops)
        self.steps = [
            TimelineStep(
                index=index,
                stop_type=stop.type,
                badge=self._badge(stop, numbers),
                time=times.arrival_text,
                description=self._describe(stop, index),
            )
            for index, (stop, times) in enumerate(zip(tour.stops, schedule))
        ]
        self.tour_id = tour.id
        self.selected_index = None
        self.scroll_target = None
        self.visible = True
        return self.steps

    def hide(self) -> None:
        # Multi-tour and cluster scenes have no single timeline.
        self.steps = []
        self.tour_id = None
        self.selected_index = None
        self.scroll_target = None
        self.visible = False

    def _badge(self, stop: TourPoint, numbers: Dict[str, int]) -> str:
        if stop.type is StopType.WAREHOUSE:
            return WAREHOUSE_BADGE
        if stop.type is StopType.PICKUP or stop.type is StopType.DELIVERY:
            prefix = "P" if stop.type is StopType.PICKUP else "D"
            number = numbers.get(demand_key(stop) or "")
            return f"{prefix}{number}" if number else f"{prefix}?"
        return "?"

    def _describe(self, stop: TourPoint, index: int) -> str:
        if stop.type is StopType.WAREHOUSE:
            return "Departure" if index == 0 else "Arrival"
        node = stop.node
        if node is None or not node.located:
            return "Unknown position"
        if self.address_lookup is not None:
            return self.address_lookup(node.latitude, node.longitude)
        return f"{node.latitude:.3f}, {node.longitude:.3f}"

    def emphasize_step(self, index: int) -> bool:
        if not 0 <= index < len(self.steps):
            return False
        for step in self.steps:
            step.selected = step.index == index
        self.selected_index = index
        self.scroll_target = index
        return True

    def restore_step(self, index: int) -> bool:
        if not 0 <= index < len(self.steps):
            return False
        self.steps[index].selected = False
        if self.selected_index == index:
            self.selected_index = None
            self.scroll_target = None
        return True

    def to_html(self) -> str:
        """Timeline markup with the selected step scrolled into view."""
        if not self.visible:
            return ""
        parts = ['<div class="timeline-scroll">']
        for step in self.steps:
            css = "step step-selected" if step.selected else "step"
            kind = step.stop_type.value.lower() if step.stop_type is not None else "unknown"
            description = html.escape(step.description)
            parts.append(
                f'<div class="{css}" data-stop-index="{step.index}">'
                f'<div class="step-icon step-{kind}">{html.escape(step.badge)}</div>'
                f'<div class="step-time">{step.time}</div>'
                f'<div class="step-desc" title="{description}">{description}</div>'
                "</div>"
            )
        parts.append("</div>")
        if self.scroll_target is not None:
            parts.append(
                "<script>"
                f"var step = document.querySelectorAll('.step')[{self.scroll_target}];"
                "if (step) { step.scrollIntoView({behavior: 'smooth', block: 'nearest', inline: 'center'}); }"
                "</script>"
            )
        return "".join(parts)
