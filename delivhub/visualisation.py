"""
Map visualisation utilities for DelivHub.

This module provides ``MapView``, the owner of the interactive Folium map.
It draws the background road network (plan), a single tour (legs as
polylines following each leg's routed path, numbered stop markers colored
by stop type) and demand pickup/delivery markers. It also exposes the
drawing primitives used by the multi-tour and cluster overlays, the
emphasis hooks used by the selection coordinator and the clickable node
layer used by the node picker.

Every overlay drawn on the map is created and released here. ``clear_map``
is the only way to go from one scene to the next: it removes everything
except the base tile layer and resets all marker tracking. The resulting
map can be embedded in a Streamlit app via ``streamlit_folium``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import folium
from branca.element import MacroElement
from jinja2 import Template

from delivhub.details import seconds_to_minutes
from delivhub.models import Centroid, Demand, Leg, Node, Plan, StopType, Tour, TourPoint

logger = logging.getLogger(__name__)

TILES = "OpenStreetMap"
MAX_ZOOM = 19

PLAN_PADDING = (20, 20)
SCENE_PADDING = (50, 50)

# Single tour marker colors and popup labels, by stop type.
STOP_STYLES = {
    StopType.WAREHOUSE: ("#2C3E50", "🏠 Warehouse"),
    StopType.PICKUP: ("#FFA500", "📦 Pickup"),
    StopType.DELIVERY: ("#4CAF50", "🏠 Delivery"),
}

HIGHLIGHT_COLOR = "#3498db"
HIGHLIGHT_GLOW = "0 0 20px rgba(52, 152, 219, 0.8)"
STOP_SIZE = 30
HIGHLIGHT_SIZE = 40

PICKUP_DEMAND_COLOR = "#e67e22"
DELIVERY_DEMAND_COLOR = "#27ae60"

PICKER_RADIUS = 6
PICKER_HOVER_RADIUS = 8
PICKER_OPACITY = 0.7


def stop_icon(
    label: object,
    color: str,
    size: int = STOP_SIZE,
    border: int = 2,
    shadow: Optional[str] = None,
) -> folium.DivIcon:
    """Round numbered marker icon."""
    html = (
        f'<div class="tour-marker" style="background-color: {color}; '
        f"width: {size}px; height: {size}px; border-radius: 50%; "
        f"border: {border}px solid white; display: flex; align-items: center; "
        f"justify-content: center; font-weight: bold; color: white; "
        f'box-shadow: {shadow or "none"};">{label}</div>'
    )
    return folium.DivIcon(
        html=html,
        icon_size=(size, size),
        icon_anchor=(size // 2, size // 2),
        class_name="custom-div-icon",
    )


class _CenterOn(MacroElement):
    """Re-centres the map on a location without touching the zoom level."""

    _template = Template(
        """
        {% macro script(this, kwargs) %}
            {{ this._parent.get_name() }}.setView(
                {{ this.location|tojson }},
                {{ this._parent.get_name() }}.getZoom()
            );
        {% endmacro %}
        """
    )

    def __init__(self, location: Sequence[float]):
        super().__init__()
        self._name = "CenterOn"
        self.location = list(location)


class _NodePickerBehaviour(MacroElement):
    """Crosshair cursor and hover emphasis for the clickable node layer."""

    _template = Template(
        """
        {% macro script(this, kwargs) %}
            {{ this._parent.get_name() }}.getContainer().style.cursor = 'crosshair';
            {% for name in this.marker_names %}
            {{ name }}.on('mouseover', function() {
                this.setStyle({radius: {{ this.hover_radius }}, fillOpacity: 1});
            });
            {{ name }}.on('mouseout', function() {
                this.setStyle({radius: {{ this.radius }}, fillOpacity: {{ this.opacity }}});
            });
            {% endfor %}
        {% endmacro %}
        """
    )

    def __init__(self, marker_names: Sequence[str]):
        super().__init__()
        self._name = "NodePickerBehaviour"
        self.marker_names = list(marker_names)
        self.radius = PICKER_RADIUS
        self.hover_radius = PICKER_HOVER_RADIUS
        self.opacity = PICKER_OPACITY


def _detach(element) -> None:
    parent = getattr(element, "_parent", None)
    if parent is not None:
        parent._children.pop(element.get_name(), None)
        element._parent = None


@dataclass
class StopMarker:
    """A drawn tour stop and the visual state needed to restore it."""

    index: int
    node: Node
    tour_point: TourPoint
    original_color: str
    marker: folium.Marker
    icon: folium.DivIcon
    popup: folium.Popup
    tour_index: Optional[int] = None
    emphasized: bool = False


@dataclass
class LegLine:
    index: int
    coordinates: List[List[float]]
    line: folium.PolyLine
    tour_index: Optional[int] = None


@dataclass
class DemandMarker:
    label: str
    demand: Demand
    node: Node
    marker: folium.Marker


class MapView:
    """Geospatial renderer backed by a Folium map.

    Args:
        mount: Name of the element the map is mounted in. Without a mount
            point no map is created and every drawing call is a logged no-op.
        tiles: Base tile layer.
    """

    def __init__(self, mount: Optional[str] = "map", tiles: str = TILES):
        self.mount = mount
        self.tiles = tiles
        self.map: Optional[folium.Map] = None
        self.plan: Optional[Plan] = None

        self.tour_markers: List[StopMarker] = []
        self.leg_lines: List[LegLine] = []
        self.demand_markers: List[DemandMarker] = []
        self.cluster_markers: List[folium.CircleMarker] = []
        self.centroid_markers: List[folium.Marker] = []
        self.selectable_nodes: Dict[str, folium.CircleMarker] = {}
        self.selected_index: Optional[int] = None
        self.cursor = ""
        self.drawn: List[Tuple[float, float]] = []
        self.bounds: Optional[List[List[float]]] = None
        self.center: Optional[List[float]] = None
        # Bumped on every clear so holders of an index can detect a new scene.
        self.generation = 0

        self._center: Optional[_CenterOn] = None
        self._picker_behaviour: Optional[_NodePickerBehaviour] = None

        if mount:
            self.init_map()

    def init_map(self) -> folium.Map:
        self.map = folium.Map(location=[0, 0], zoom_start=2, tiles=self.tiles, max_zoom=MAX_ZOOM)
        logger.info("Map initialised on %s", self.mount)
        return self.map

    def _ready(self) -> bool:
        if self.map is None:
            logger.error("Map is not mounted; nothing drawn")
            return False
        return True

    # Scene management

    def clear_map(self) -> None:
        """Remove every overlay except the base tile layer and reset tracking."""
        if self.map is not None:
            for name, child in list(self.map._children.items()):
                if isinstance(child, folium.TileLayer):
                    continue
                del self.map._children[name]
                child._parent = None
        self.tour_markers = []
        self.leg_lines = []
        self.demand_markers = []
        self.cluster_markers = []
        self.centroid_markers = []
        self.selectable_nodes = {}
        self.selected_index = None
        self.cursor = ""
        self.drawn = []
        self.bounds = None
        self.center = None
        self._center = None
        self._picker_behaviour = None
        self.generation += 1

    def fit_to_drawn(self, padding: Tuple[int, int] = SCENE_PADDING) -> Optional[List[List[float]]]:
        """Fit the viewport to the bounding box of everything drawn so far."""
        if self.map is None or not self.drawn:
            return None
        lats = [lat for lat, _ in self.drawn]
        lons = [lon for _, lon in self.drawn]
        self.bounds = [[min(lats), min(lons)], [max(lats), max(lons)]]
        self.map.fit_bounds(self.bounds, padding=padding)
        return self.bounds

    def resolve(self, node: Optional[Node]) -> Optional[Node]:
        """Return a located node, looking bare ids up in the current plan."""
        if node is None:
            return None
        if node.located:
            return node
        return self.plan.get_node(node.id) if self.plan is not None else None

    # Plan

    def display_plan(self, plan: Optional[Plan]) -> None:
        """Display the road network: light node dots and thin segment lines."""
        if plan is None:
            logger.error("No plan to display")
            return
        if not self._ready():
            return
        self.clear_map()
        self.plan = plan
        self._draw_plan(track=True)
        self.fit_to_drawn(PLAN_PADDING)
        logger.info("Plan displayed: %d nodes, %d segments", len(plan.nodes), len(plan.segments))

    def _draw_plan(self, track: bool) -> None:
        for seg in self.plan.segments:
            origin = self.plan.get_node(seg.origin)
            dest = self.plan.get_node(seg.destination)
            if origin is None or dest is None:
                continue
            folium.PolyLine(
                [origin.coords, dest.coords], color="#bdc3c7", weight=2, opacity=0.4
            ).add_to(self.map)
        for node in self.plan.nodes.values():
            folium.CircleMarker(
                node.coords,
                radius=2,
                color="#7f8c8d",
                weight=1,
                opacity=0.4,
                fill=True,
                fill_color="#95a5a6",
                fill_opacity=0.3,
            ).add_to(self.map)
            if track:
                self.drawn.append((node.latitude, node.longitude))

    # Drawing primitives

    def draw_leg(
        self,
        leg: Leg,
        index: int,
        color: str,
        weight: int = 4,
        opacity: float = 0.7,
        dashed: bool = False,
        tour_index: Optional[int] = None,
        popup_html: Optional[str] = None,
    ) -> Optional[LegLine]:
        """Draw one leg along its routed path, node by node."""
        if not leg.path:
            return None
        path = [self.resolve(node) for node in leg.path]
        if any(node is None for node in path):
            logger.warning("Leg %d references a node missing from the plan; skipped", index + 1)
            return None
        coordinates = [node.coords for node in path]
        line = folium.PolyLine(
            coordinates,
            color=color,
            weight=weight,
            opacity=opacity,
            dash_array="5, 5" if dashed else None,
            popup=folium.Popup(popup_html, max_width=260) if popup_html else None,
        )
        line.add_to(self.map)
        self.drawn.extend((lat, lon) for lat, lon in coordinates)
        leg_line = LegLine(index=index, coordinates=coordinates, line=line, tour_index=tour_index)
        self.leg_lines.append(leg_line)
        return leg_line

    def draw_stop(
        self,
        tour_point: TourPoint,
        index: int,
        color: str,
        popup_html: str,
        size: int = STOP_SIZE,
        border: int = 2,
        shadow: Optional[str] = None,
        tour_index: Optional[int] = None,
    ) -> Optional[StopMarker]:
        """Draw a numbered stop marker and start tracking it."""
        if tour_point.type is None:
            logger.warning("Stop %d has no known type; skipped", index + 1)
            return None
        node = self.resolve(tour_point.node)
        if node is None:
            logger.warning("Stop %d references a node missing from the plan; skipped", index + 1)
            return None
        icon = stop_icon(index + 1, color, size=size, border=border, shadow=shadow)
        popup = folium.Popup(popup_html, max_width=260)
        if tour_index is None:
            tooltip = f"Stop {index + 1}"
        else:
            tooltip = f"Tour {tour_index + 1} · Stop {index + 1}"
        marker = folium.Marker(node.coords, icon=icon, popup=popup, tooltip=tooltip)
        marker.add_to(self.map)
        self.drawn.append((node.latitude, node.longitude))
        stop = StopMarker(
            index=index,
            node=node,
            tour_point=tour_point,
            original_color=color,
            marker=marker,
            icon=icon,
            popup=popup,
            tour_index=tour_index,
        )
        self.tour_markers.append(stop)
        return stop

    def draw_cluster_point(self, node: Node, color: str, popup_html: str) -> folium.CircleMarker:
        marker = folium.CircleMarker(
            node.coords,
            radius=8,
            color="white",
            weight=2,
            fill=True,
            fill_color=color,
            fill_opacity=1,
            popup=folium.Popup(popup_html, max_width=260),
        )
        marker.add_to(self.map)
        self.drawn.append((node.latitude, node.longitude))
        self.cluster_markers.append(marker)
        return marker

    def draw_centroid(self, centroid: Centroid, color: str, popup_html: str) -> folium.Marker:
        html = (
            f'<div style="background-color: {color}; width: 40px; height: 40px; '
            "border-radius: 50%; border: 3px solid white; display: flex; "
            "align-items: center; justify-content: center; color: white; "
            'font-size: 22px; font-weight: bold; box-shadow: 0 3px 8px rgba(0,0,0,0.6);">★</div>'
        )
        icon = folium.DivIcon(html=html, icon_size=(46, 46), icon_anchor=(23, 23), class_name="centroid-marker")
        marker = folium.Marker(
            [centroid.lat, centroid.lon],
            icon=icon,
            popup=folium.Popup(popup_html, max_width=260),
        )
        marker.add_to(self.map)
        self.drawn.append((centroid.lat, centroid.lon))
        self.centroid_markers.append(marker)
        return marker

    # Single tour

    def display_tour(self, tour: Optional[Tour], background: bool = False) -> None:
        """Display one tour: its legs, then its stops colored by type.

        Args:
            tour: Tour to draw.
            background: Also draw the loaded plan underneath the tour.
        """
        if tour is None:
            logger.error("No tour provided")
            return
        if not self._ready():
            return
        self.clear_map()
        if background and self.plan is not None:
            self._draw_plan(track=False)

        for index, leg in enumerate(tour.legs):
            popup_html = (
                f"<strong>Segment {index + 1}</strong><br>"
                f"Distance: {leg.distance / 1000:.2f} km<br>"
                f"Duration: {seconds_to_minutes(leg.travel_time)} min"
            )
            self.draw_leg(leg, index, color="#ff0000", popup_html=popup_html)

        for index, tour_point in enumerate(tour.stops):
            if tour_point.type is None:
                logger.warning("Stop %d has no known type; skipped", index + 1)
                continue
            color, label = STOP_STYLES[tour_point.type]
            node_id = tour_point.node.id if tour_point.node is not None else "?"
            popup_html = (
                f"<strong>{label} #{index + 1}</strong><br>"
                f"Type: {tour_point.type.value}<br>"
                f"Duration: {tour_point.service_duration:g}s<br>"
                f"Node ID: {node_id}"
            )
            if tour_point.demand is not None:
                popup_html += f"<br>Demand ID: {tour_point.demand.id or 'N/A'}"
            self.draw_stop(tour_point, index, color, popup_html)

        self.fit_to_drawn(SCENE_PADDING)
        logger.info(
            "Tour %s displayed: %d legs, %d/%d stops",
            tour.id, len(self.leg_lines), len(self.tour_markers), len(tour.stops),
        )

    # Demands

    def display_demands(self, demands: Sequence[Demand], plan: Optional[Plan] = None) -> None:
        """Display pickup (P{n}) and delivery (D{n}) markers, numbered by position."""
        if not demands:
            logger.info("No demands to display")
            return
        plan = plan or self.plan
        if plan is None:
            logger.error("A plan is required to display demands")
            return
        if not self._ready():
            return

        for index, demand in enumerate(demands):
            for prefix, address, duration, color, title in (
                ("P", demand.pickup_address, demand.pickup_duration, PICKUP_DEMAND_COLOR, "📦 Pickup"),
                ("D", demand.delivery_address, demand.delivery_duration, DELIVERY_DEMAND_COLOR, "🏠 Delivery"),
            ):
                node = plan.get_node(address)
                if node is None:
                    logger.warning("%s node %s of demand %s not found", title, address, demand.id)
                    continue
                label = f"{prefix}{index + 1}"
                icon = folium.DivIcon(
                    html=(
                        f'<div style="background-color: {color}; width: 28px; height: 28px; '
                        "border-radius: 50%; border: 3px solid white; "
                        "box-shadow: 0 2px 8px rgba(0,0,0,0.3); display: flex; "
                        "align-items: center; justify-content: center; font-weight: bold; "
                        f'font-size: 11px; color: white;">{label}</div>'
                    ),
                    icon_size=(28, 28),
                    icon_anchor=(14, 14),
                    class_name="demand-marker",
                )
                popup_html = (
                    f"<strong>{title} {index + 1}</strong><br>"
                    f"Client: {demand.client_name or 'N/A'}<br>"
                    f"Duration: {seconds_to_minutes(duration)} min<br>"
                    f"Node ID: {node.id}<br>"
                    f"Coords: ({node.latitude:.4f}, {node.longitude:.4f})"
                )
                marker = folium.Marker(
                    node.coords,
                    icon=icon,
                    popup=folium.Popup(popup_html, max_width=260),
                    z_index_offset=1000,
                )
                marker.add_to(self.map)
                self.demand_markers.append(DemandMarker(label=label, demand=demand, node=node, marker=marker))

        logger.info("%d demands displayed on map", len(demands))

    # Selection hooks

    def stop_marker(self, index: int) -> Optional[StopMarker]:
        """Tracked marker of the single-tour scene for ``index``, if drawn."""
        for stop in self.tour_markers:
            if stop.tour_index is None and stop.index == index:
                return stop
        return None

    def _set_icon(self, stop: StopMarker, icon: folium.DivIcon) -> None:
        _detach(stop.icon)
        stop.marker.add_child(icon)
        stop.marker.icon = icon
        stop.icon = icon

    def emphasize_stop(self, index: int) -> bool:
        """Enlarge and light up a stop, centre the map on it and open its popup."""
        stop = self.stop_marker(index)
        if stop is None or self.map is None:
            return False
        if not stop.emphasized:
            self._set_icon(stop, stop_icon(index + 1, HIGHLIGHT_COLOR, size=HIGHLIGHT_SIZE, shadow=HIGHLIGHT_GLOW))
            stop.emphasized = True
        stop.popup.show = True
        self._center_on(stop.node)
        self.selected_index = index
        return True

    def restore_stop(self, index: int) -> bool:
        stop = self.stop_marker(index)
        if stop is None:
            return False
        if stop.emphasized:
            self._set_icon(stop, stop_icon(index + 1, stop.original_color))
            stop.emphasized = False
        stop.popup.show = False
        if self.selected_index == index:
            self.selected_index = None
            self._clear_center()
        return True

    def _center_on(self, node: Node) -> None:
        if self.center == node.coords and self._center is not None:
            return
        self._clear_center()
        self._center = _CenterOn(node.coords)
        self._center.add_to(self.map)
        self.center = node.coords

    def _clear_center(self) -> None:
        if self._center is not None:
            _detach(self._center)
        self._center = None
        self.center = None

    # Node picker hooks

    def add_selectable_nodes(self, color: str) -> int:
        """Materialise one clickable circle per plan node.

        Returns:
            The number of clickable nodes created.
        """
        self.remove_selectable_nodes()
        if not self._ready():
            return 0
        if self.plan is None or len(self.plan) == 0:
            logger.warning("No nodes available for selection")
            return 0
        for node_id, node in self.plan.nodes.items():
            marker = folium.CircleMarker(
                node.coords,
                radius=PICKER_RADIUS,
                color="#fff",
                weight=2,
                opacity=1,
                fill=True,
                fill_color=color,
                fill_opacity=PICKER_OPACITY,
                tooltip=folium.Tooltip(f"Point {node_id}", direction="top", sticky=False),
            )
            marker.add_to(self.map)
            self.selectable_nodes[node_id] = marker
        self._picker_behaviour = _NodePickerBehaviour(
            [marker.get_name() for marker in self.selectable_nodes.values()]
        )
        self._picker_behaviour.add_to(self.map)
        self.cursor = "crosshair"
        logger.info("%d nodes made selectable", len(self.selectable_nodes))
        return len(self.selectable_nodes)

    def remove_selectable_nodes(self) -> None:
        for marker in self.selectable_nodes.values():
            _detach(marker)
        self.selectable_nodes = {}
        if self._picker_behaviour is not None:
            _detach(self._picker_behaviour)
        self._picker_behaviour = None
        self.cursor = ""

    def selectable_node(self, node_id: object) -> Optional[Node]:
        if node_id is None or str(node_id) not in self.selectable_nodes:
            return None
        return self.plan.get_node(node_id) if self.plan is not None else None

    def render_html(self) -> str:
        """Full standalone HTML page of the current scene."""
        if not self._ready():
            return ""
        return self.map.get_root().render()
