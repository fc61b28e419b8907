"""
Node picker used to build new demands from the map.

While active, every node of the plan is a clickable circle on the map.
A click hands the chosen node to the callback given at activation; the
picker stays active until the caller turns it off, typically once both a
pickup and a delivery node have been chosen.

The Streamlit map reports clicks as the tooltip (``Point {id}``) and the
coordinates of the last clicked object, so both are accepted here.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Callable, Optional

from delivhub.models import Node
from delivhub.visualisation import MapView

logger = logging.getLogger(__name__)

POINT_TOOLTIP = re.compile(r"^Point\s+(\S+)$")
CLICK_TOLERANCE = 1e-6


class PickerKind(str, Enum):
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"

    @classmethod
    def parse(cls, value: Any) -> Optional["PickerKind"]:
        if isinstance(value, PickerKind):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


PICKER_COLORS = {
    PickerKind.PICKUP: "#4caf50",
    PickerKind.DELIVERY: "#2196f3",
}


class NodePicker:
    def __init__(self, view: MapView):
        self.view = view
        self.kind: Optional[PickerKind] = None
        self._on_select: Optional[Callable[[Node], None]] = None

    @property
    def active(self) -> bool:
        return self.kind is not None

    def activate(self, kind: Any, on_select: Optional[Callable[[Node], None]] = None) -> int:
        """Turn every plan node into a clickable target.

        Args:
            kind: ``PICKUP`` or ``DELIVERY``; decides the marker color.
            on_select: Called with the full node on each click.

        Returns:
            The number of clickable nodes.
        """
        picker_kind = PickerKind.parse(kind)
        if picker_kind is None:
            logger.error("Unknown node selection kind %r", kind)
            return 0
        self.view.remove_selectable_nodes()
        self.kind = picker_kind
        self._on_select = on_select
        count = self.view.add_selectable_nodes(PICKER_COLORS[picker_kind])
        logger.info("Node selection enabled: %s", picker_kind.value)
        return count

    def deactivate(self) -> None:
        self.view.remove_selectable_nodes()
        if self.active:
            logger.info("Node selection disabled")
        self.kind = None
        self._on_select = None

    def click(self, node_id: Any) -> Optional[Node]:
        if not self.active:
            return None
        node = self.view.selectable_node(node_id)
        if node is None:
            logger.warning("Clicked node %r is not selectable", node_id)
            return None
        logger.info("Node selected: %s", node.id)
        if self._on_select is not None:
            self._on_select(node)
        return node

    def click_tooltip(self, text: Optional[str]) -> Optional[Node]:
        match = POINT_TOOLTIP.match((text or "").strip())
        if match is None:
            return None
        return self.click(match.group(1))

    def click_at(self, lat: float, lng: float, tolerance: float = CLICK_TOLERANCE) -> Optional[Node]:
        """Handle a click reported as coordinates of the clicked circle."""
        if not self.active or self.view.plan is None:
            return None
        for node_id in self.view.selectable_nodes:
            node = self.view.plan.get_node(node_id)
            if node is not None and abs(node.latitude - lat) <= tolerance and abs(node.longitude - lng) <= tolerance:
                return self.click(node_id)
        return None
