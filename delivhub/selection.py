"""
Stop selection shared by the map and the timeline.

The coordinator is the single source of truth for which stop is
highlighted. It keeps only the stop index and the map scene it was taken
in; the visual state itself lives in the renderers, which it asks to
restore or emphasize a stop.
"""

from __future__ import annotations

import logging
from typing import Optional

from delivhub.timeline import TimelineView
from delivhub.visualisation import MapView

logger = logging.getLogger(__name__)


class SelectionCoordinator:
    def __init__(self, view: MapView, timeline: Optional[TimelineView] = None):
        self.view = view
        self.timeline = timeline
        self.selected_index: Optional[int] = None
        self._generation: Optional[int] = None

    @property
    def current(self) -> Optional[int]:
        """Selected index, or ``None`` when nothing is selected on the current scene."""
        if self.selected_index is not None and self._generation != self.view.generation:
            # The scene was redrawn since; the old index means nothing now.
            self.selected_index = None
            self._generation = None
        return self.selected_index

    def select(self, index: int) -> bool:
        """Highlight stop ``index`` on both views.

        Returns:
            ``False`` when the index is not a stop of the current scene, in
            which case nothing changes.
        """
        if isinstance(index, bool) or not isinstance(index, int) or self.view.stop_marker(index) is None:
            logger.info("Stop %r is not on the current scene; selection ignored", index)
            return False

        previous = self.current
        if previous is not None and previous != index:
            self.view.restore_stop(previous)
            if self.timeline is not None:
                self.timeline.restore_step(previous)

        self.view.emphasize_stop(index)
        if self.timeline is not None:
            self.timeline.emphasize_step(index)
        self.selected_index = index
        self._generation = self.view.generation
        logger.info("Stop %d highlighted", index)
        return True

    def clear(self) -> None:
        previous = self.current
        if previous is not None:
            self.view.restore_stop(previous)
            if self.timeline is not None:
                self.timeline.restore_step(previous)
        self.selected_index = None
        self._generation = None
