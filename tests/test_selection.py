import unittest

from delivhub.models import Tour
from delivhub.overlay import OverlayManager
from delivhub.selection import SelectionCoordinator
from delivhub.timeline import TimelineView
from delivhub.visualisation import MapView
from tests.samples import tour_json


class TestSelection(unittest.TestCase):
    def setUp(self):
        self.view = MapView()
        self.timeline = TimelineView()
        self.selection = SelectionCoordinator(self.view, self.timeline)
        self.tour = Tour.from_json(tour_json())
        self.view.display_tour(self.tour)
        self.timeline.render(self.tour)

    def emphasized(self):
        return [s.index for s in self.view.tour_markers if s.emphasized]

    def test_select_highlights_both_views(self):
        self.assertTrue(self.selection.select(1))
        self.assertEqual(self.selection.current, 1)
        self.assertEqual(self.emphasized(), [1])
        self.assertEqual(self.view.center, [45.755, 4.86])
        self.assertTrue(self.view.stop_marker(1).popup.show)
        self.assertEqual([s.index for s in self.timeline.steps if s.selected], [1])
        self.assertEqual(self.timeline.scroll_target, 1)

    def test_select_is_idempotent(self):
        self.selection.select(2)
        self.selection.select(2)
        self.assertEqual(self.emphasized(), [2])
        self.assertEqual(self.selection.current, 2)

    def test_only_one_stop_emphasized(self):
        for index in (0, 2, 1, 0):
            self.selection.select(index)
            self.assertEqual(self.emphasized(), [index])
            self.assertEqual([s.index for s in self.timeline.steps if s.selected], [index])
        self.assertFalse(self.view.stop_marker(2).popup.show)

    def test_out_of_range_is_a_no_op(self):
        self.selection.select(1)
        for bad in (-1, 3, 99, None, "1", True):
            self.assertFalse(self.selection.select(bad))
        self.assertEqual(self.selection.current, 1)
        self.assertEqual(self.emphasized(), [1])

    def test_selection_goes_stale_after_redraw(self):
        self.selection.select(1)
        self.view.display_tour(self.tour)
        self.assertIsNone(self.selection.current)
        self.assertEqual(self.emphasized(), [])
        self.assertTrue(self.selection.select(1))
        self.assertEqual(self.emphasized(), [1])

    def test_multi_tour_stops_cannot_be_selected(self):
        OverlayManager(self.view).render_tours([self.tour, self.tour])
        self.assertFalse(self.selection.select(0))
        self.assertEqual(self.emphasized(), [])

    def test_clear(self):
        self.selection.select(1)
        self.selection.clear()
        self.assertIsNone(self.selection.current)
        self.assertEqual(self.emphasized(), [])
        self.assertIsNone(self.view.center)
        self.assertIsNone(self.timeline.selected_index)

    def test_without_timeline(self):
        selection = SelectionCoordinator(self.view)
        self.assertTrue(selection.select(0))
        self.assertEqual(self.emphasized(), [0])


if __name__ == "__main__":
    unittest.main()
