"""
Multi-tour and cluster overlays for DelivHub.

Several tours (one per courier) or several demand clusters are drawn on
the same map, each in its own color. Colors come from a fixed palette of
four high-contrast colors assigned by position: group ``i`` gets
``PALETTE[i % 4]``. The assignment is stable for a given input order and
repeats past four groups.

The overlay manager never touches the map directly; it delegates every
primitive to the ``MapView`` it was given.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from delivhub.models import Cluster, Plan, StopType, Tour
from delivhub.visualisation import SCENE_PADDING, MapView

logger = logging.getLogger(__name__)

PALETTE = (
    "#FF0000",  # red
    "#0066FF",  # blue
    "#00CC00",  # green
    "#FFB300",  # orange
)

# Warehouses keep one dark tone across all tours.
WAREHOUSE_COLOR = "#2C3E50"

_STOP_LABELS = {
    StopType.WAREHOUSE: ("🏠", "Warehouse"),
    StopType.PICKUP: ("📦", "Pickup"),
    StopType.DELIVERY: ("✓", "Delivery"),
}


def palette_color(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def tour_stop_color(stop_type: StopType, tour_color: str) -> str:
    if stop_type is StopType.WAREHOUSE:
        return WAREHOUSE_COLOR
    if stop_type is StopType.PICKUP or stop_type is StopType.DELIVERY:
        return tour_color
    raise ValueError(f"Unhandled stop type: {stop_type!r}")


class OverlayManager:
    def __init__(self, view: MapView):
        self.view = view

    def render_tours(self, tours: Sequence[Optional[Tour]]) -> List[str]:
        """Draw every tour in its palette color and fit the map to all of them.

        Returns:
            The color assigned to each tour, in input order.
        """
        if not tours:
            logger.warning("No tours to display")
            return []
        self.view.clear_map()
        colors = []
        for tour_index, tour in enumerate(tours):
            color = palette_color(tour_index)
            colors.append(color)
            if tour is None:
                logger.warning("Tour %d is invalid", tour_index + 1)
                continue
            logger.info("Tour %d (%s): %s", tour_index + 1, tour.courier or "unknown courier", color)
            self._draw_tour(tour, color, tour_index)
        self.view.fit_to_drawn(SCENE_PADDING)
        logger.info("%d tours displayed", len(tours))
        return colors

    def _draw_tour(self, tour: Tour, color: str, tour_index: int) -> None:
        for leg_index, leg in enumerate(tour.legs):
            if len(leg.path) < 2:
                continue
            self.view.draw_leg(
                leg, leg_index, color, weight=3, opacity=0.8, dashed=True, tour_index=tour_index
            )

        if not tour.stops:
            logger.warning("Tour %d has no stops", tour_index + 1)
        for stop_index, tour_point in enumerate(tour.stops):
            if tour_point.type is None:
                logger.warning("Tour %d stop %d has no known type; skipped", tour_index + 1, stop_index + 1)
                continue
            emoji, label = _STOP_LABELS[tour_point.type]
            node_id = tour_point.node.id if tour_point.node is not None else "?"
            popup_html = (
                '<div style="font-family: system-ui; font-size: 12px;">'
                f"<strong>{emoji} {label}</strong><br>"
                f"ID: {node_id}<br>"
                f"Tour: {tour_index + 1}<br>"
                f"Stop: {stop_index + 1}</div>"
            )
            self.view.draw_stop(
                tour_point,
                stop_index,
                tour_stop_color(tour_point.type, color),
                popup_html,
                size=32,
                border=3,
                shadow="0 2px 8px rgba(0,0,0,0.4)",
                tour_index=tour_index,
            )

    def render_clusters(self, clusters: Sequence[Optional[Cluster]], plan: Optional[Plan] = None) -> List[str]:
        """Draw demand clusters: one dot per pickup/delivery node, one star per centroid.

        A demand address that is not in the plan only drops that point.

        Returns:
            The color assigned to each cluster, in input order.
        """
        if not clusters:
            logger.warning("No clusters to display")
            return []
        plan = plan or self.view.plan
        if plan is None:
            logger.error("A plan is required to display clusters")
            return []
        self.view.clear_map()
        colors = []
        for cluster_index, cluster in enumerate(clusters):
            color = palette_color(cluster_index)
            colors.append(color)
            if cluster is None or cluster.centroid is None:
                logger.warning("Cluster %d has no centroid", cluster_index + 1)
                continue

            point_count = 0
            for demand in cluster.demands:
                for label, address in (("📦 Pickup", demand.pickup_address), ("✓ Delivery", demand.delivery_address)):
                    node = plan.get_node(address)
                    if node is None:
                        logger.warning(
                            "%s node not found for demand %s, node id: %s", label, demand.id, address
                        )
                        continue
                    popup_html = (
                        f"<strong>● {label}</strong><br>Cluster {cluster_index + 1}<br>"
                        f"Demand: {demand.id}<br>Node: {node.id}"
                    )
                    self.view.draw_cluster_point(node, color, popup_html)
                    point_count += 1

            centroid = cluster.centroid
            popup_html = (
                f"<strong>★ Centroid {cluster_index + 1}</strong><br>"
                f"<strong>Color:</strong> {color}<br>"
                f"<strong>Demands:</strong> {len(cluster.demands)}<br>"
                f"<strong>Points:</strong> {point_count}<br>"
                f"<strong>Lat:</strong> {centroid.lat:.4f}<br>"
                f"<strong>Lon:</strong> {centroid.lon:.4f}"
            )
            self.view.draw_centroid(centroid, color, popup_html)
            logger.info(
                "Cluster %d %s: %d demands, %d points, centroid (%.4f, %.4f)",
                cluster_index + 1, color, len(cluster.demands), point_count, centroid.lat, centroid.lon,
            )

        self.view.fit_to_drawn(SCENE_PADDING)
        return colors
