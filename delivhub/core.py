"""
Entry point used by the UI glue.

``DeliveryMap`` wires the renderers together: the Folium map view, the
timeline, the selection coordinator, the multi-tour/cluster overlay and
the node picker. Every operation accepts the JSON documents as loaded
from disk or already parsed model objects, and degrades to a logged no-op
on bad input instead of raising.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

import folium

from delivhub.details import HistoryItem, TourDetailRow, render_history_list, tour_detail_rows, tour_summary
from delivhub.models import Cluster, Demand, HistoryRecord, Node, Plan, Tour
from delivhub.overlay import OverlayManager
from delivhub.picker import NodePicker
from delivhub.selection import SelectionCoordinator
from delivhub.timeline import TimelineView
from delivhub.visualisation import MapView

logger = logging.getLogger(__name__)

STOP_TOOLTIP = re.compile(r"^Stop\s+(\d+)$")


def _parse_all(items: Optional[Iterable[Any]], parser: Callable[[Any], Any], what: str) -> List[Any]:
    parsed = []
    for raw in items or []:
        item = parser(raw)
        if item is None:
            logger.warning("Invalid %s skipped", what)
        parsed.append(item)
    return parsed


class DeliveryMap:
    """Map, timeline and their shared selection for one page.

    Args:
        mount: Name of the map mount point; see ``MapView``.
        address_lookup: Optional ``(lat, lon) -> str`` used for timeline
            step descriptions, e.g. ``delivhub.geocode.short_address``.
        plan_under_tour: Keep the plan drawn underneath a single tour.
    """

    def __init__(
        self,
        mount: Optional[str] = "map",
        address_lookup: Optional[Callable[[float, float], str]] = None,
        plan_under_tour: bool = False,
    ):
        self.view = MapView(mount)
        self.timeline = TimelineView(address_lookup)
        self.selection = SelectionCoordinator(self.view, self.timeline)
        self.overlay = OverlayManager(self.view)
        self.picker = NodePicker(self.view)
        self.plan_under_tour = plan_under_tour
        self.plan: Optional[Plan] = None
        self.tour: Optional[Tour] = None

    @property
    def map(self) -> Optional[folium.Map]:
        return self.view.map

    def _new_scene(self) -> None:
        self.picker.deactivate()
        self.selection.clear()
        self.tour = None

    def load_plan(self, plan_json: Any) -> Optional[Plan]:
        plan = Plan.from_json(plan_json)
        if plan is None:
            logger.error("No plan to load")
            return None
        self._new_scene()
        self.plan = plan
        self.view.display_plan(plan)
        self.timeline.hide()
        return plan

    def render_tour(self, tour_json: Any) -> Optional[Tour]:
        tour = Tour.from_json(tour_json)
        if tour is None:
            logger.error("No tour to render")
            return None
        self._new_scene()
        self.view.display_tour(tour, background=self.plan_under_tour)
        self.timeline.render(tour)
        self.tour = tour
        return tour

    def render_tours(self, tours_json: Optional[Iterable[Any]]) -> List[str]:
        tours = _parse_all(tours_json, Tour.from_json, "tour")
        if not tours:
            logger.warning("No tours to display")
            return []
        self._new_scene()
        self.timeline.hide()
        return self.overlay.render_tours(tours)

    def render_clusters(self, clusters_json: Optional[Iterable[Any]]) -> List[str]:
        clusters = _parse_all(clusters_json, Cluster.from_json, "cluster")
        if not clusters:
            logger.warning("No clusters to display")
            return []
        if self.plan is None:
            logger.error("A plan is required to display clusters")
            return []
        self._new_scene()
        self.timeline.hide()
        return self.overlay.render_clusters(clusters, self.plan)

    def render_demands(self, demands_json: Optional[Iterable[Any]], plan_json: Any = None) -> None:
        demands = [d for d in _parse_all(demands_json, Demand.from_json, "demand") if d is not None]
        plan = Plan.from_json(plan_json) if plan_json is not None else self.plan
        self.view.display_demands(demands, plan)

    def set_node_picker_mode(
        self,
        active: bool,
        kind: Any = None,
        on_select: Optional[Callable[[Node], None]] = None,
    ) -> int:
        if not active:
            self.picker.deactivate()
            return 0
        return self.picker.activate(kind, on_select)

    def select_stop(self, index: int) -> bool:
        return self.selection.select(index)

    def render_history_list(
        self,
        records: Optional[Iterable[Any]],
        on_select: Optional[Callable[[HistoryRecord], Any]] = None,
    ) -> List[HistoryItem]:
        return render_history_list(records, on_select)

    def tour_details(self) -> List[TourDetailRow]:
        return tour_detail_rows(self.tour)

    def tour_summary(self) -> str:
        return tour_summary(self.tour)

    def handle_map_click(self, click: Optional[Dict[str, Any]]) -> Any:
        """Dispatch a click reported by ``st_folium``.

        While the picker is active the click picks a node; otherwise a
        click on a stop marker selects that stop.

        Returns:
            The picked ``Node``, the selected stop index, or ``None``.
        """
        if not click:
            return None
        tooltip = (click.get("last_object_clicked_tooltip") or "").strip()
        if self.picker.active:
            node = self.picker.click_tooltip(tooltip)
            position = click.get("last_object_clicked") or {}
            if node is None and "lat" in position and "lng" in position:
                node = self.picker.click_at(position["lat"], position["lng"])
            return node
        match = STOP_TOOLTIP.match(tooltip)
        if match is not None:
            index = int(match.group(1)) - 1
            if self.select_stop(index):
                return index
        return None
