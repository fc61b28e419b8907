import unittest

import folium

from delivhub.models import Demand, Plan, StopType, Tour
from delivhub.visualisation import HIGHLIGHT_COLOR, STOP_STYLES, MapView
from tests.samples import demand_json, plan_json, tour_json


def overlays(view):
    return [child for child in view.map._children.values() if not isinstance(child, folium.TileLayer)]


class TestMapView(unittest.TestCase):
    def setUp(self):
        self.view = MapView()
        self.plan = Plan.from_json(plan_json())

    def test_display_plan_fits_all_nodes(self):
        self.view.display_plan(self.plan)
        self.assertIs(self.view.plan, self.plan)
        self.assertEqual(self.view.bounds, [[45.75, 4.85], [45.77, 4.89]])
        self.assertEqual(len(self.view.drawn), 5)
        self.assertEqual(self.view.tour_markers, [])

    def test_display_tour_tracks_every_stop(self):
        self.view.display_tour(Tour.from_json(tour_json()))
        self.assertEqual([m.index for m in self.view.tour_markers], [0, 1, 2])
        self.assertEqual(
            [m.original_color for m in self.view.tour_markers],
            [STOP_STYLES[StopType.WAREHOUSE][0], STOP_STYLES[StopType.PICKUP][0], STOP_STYLES[StopType.DELIVERY][0]],
        )

    def test_legs_follow_path_nodes(self):
        self.view.display_tour(Tour.from_json(tour_json()))
        self.assertEqual(len(self.view.leg_lines), 2)
        self.assertEqual(
            self.view.leg_lines[1].coordinates,
            [[45.755, 4.86], [45.76, 4.87], [45.765, 4.88]],
        )
        self.assertEqual(self.view.bounds, [[45.75, 4.85], [45.765, 4.88]])

    def test_bare_ids_are_resolved_through_plan(self):
        self.view.display_plan(self.plan)
        data = tour_json()
        data["stops"][2]["node"] = "5"
        data["legs"][1]["pathNode"] = ["2", "3", "404"]
        with self.assertLogs("delivhub.visualisation", level="WARNING"):
            self.view.display_tour(Tour.from_json(data))
        self.assertEqual(self.view.tour_markers[2].node.latitude, 45.77)
        # The leg with an unknown node is skipped, the rest of the scene is drawn.
        self.assertEqual([l.index for l in self.view.leg_lines], [0])
        self.assertEqual(len(self.view.tour_markers), 3)

    def test_unresolved_stop_is_not_tracked(self):
        data = tour_json()
        data["stops"][1]["node"] = "404"
        with self.assertLogs("delivhub.visualisation", level="WARNING"):
            self.view.display_tour(Tour.from_json(data))
        self.assertEqual([m.index for m in self.view.tour_markers], [0, 2])
        self.assertIsNone(self.view.stop_marker(1))

    def test_display_tour_replaces_previous_scene(self):
        self.view.display_tour(Tour.from_json(tour_json()))
        first = len(overlays(self.view))
        self.view.display_tour(Tour.from_json(tour_json("t2")))
        self.assertEqual(len(overlays(self.view)), first)
        self.assertEqual(len(self.view.tour_markers), 3)

    def test_clear_map_on_empty_scene(self):
        self.view.clear_map()
        self.assertEqual(self.view.tour_markers, [])
        self.assertEqual(self.view.selectable_nodes, {})
        self.assertEqual(overlays(self.view), [])
        tiles = [c for c in self.view.map._children.values() if isinstance(c, folium.TileLayer)]
        self.assertEqual(len(tiles), 1)

    def test_clear_map_keeps_plan_lookup(self):
        self.view.display_plan(self.plan)
        generation = self.view.generation
        self.view.clear_map()
        self.assertEqual(overlays(self.view), [])
        self.assertIs(self.view.plan, self.plan)
        self.assertEqual(self.view.generation, generation + 1)

    def test_demand_labels_follow_list_position(self):
        demands = [Demand.from_json(demand_json("zz")), Demand.from_json(demand_json("aa", pickup="1", delivery="404"))]
        with self.assertLogs("delivhub.visualisation", level="WARNING"):
            self.view.display_demands(demands, self.plan)
        self.assertEqual([m.label for m in self.view.demand_markers], ["P1", "D1", "P2"])

    def test_demands_need_a_plan(self):
        with self.assertLogs("delivhub.visualisation", level="ERROR"):
            self.view.display_demands([Demand.from_json(demand_json())])
        self.assertEqual(self.view.demand_markers, [])

    def test_emphasize_and_restore(self):
        self.view.display_tour(Tour.from_json(tour_json()))
        self.assertTrue(self.view.emphasize_stop(1))
        stop = self.view.stop_marker(1)
        self.assertTrue(stop.emphasized)
        self.assertTrue(stop.popup.show)
        self.assertIn(HIGHLIGHT_COLOR, self.view.render_html())
        self.assertEqual(self.view.center, [45.755, 4.86])
        self.assertTrue(self.view.restore_stop(1))
        self.assertFalse(stop.emphasized)
        self.assertFalse(stop.popup.show)
        self.assertIsNone(self.view.center)
        self.assertFalse(self.view.emphasize_stop(9))

    def test_popup_minutes_round_half_up(self):
        data = tour_json()
        data["legs"][0]["travelTime"] = 150
        self.view.display_tour(Tour.from_json(data))
        demand = demand_json()
        demand["pickupDuration"] = 90
        self.view.display_demands([Demand.from_json(demand)], self.plan)
        html = self.view.render_html()
        self.assertIn("Duration: 3 min", html)
        self.assertIn("Duration: 2 min", html)
        self.assertNotIn("Duration: 1 min", html)

    def test_unmounted_view_draws_nothing(self):
        view = MapView(mount=None)
        with self.assertLogs("delivhub.visualisation", level="ERROR"):
            view.display_tour(Tour.from_json(tour_json()))
        self.assertEqual(view.tour_markers, [])
        view.clear_map()

    def test_rendered_html_contains_scene(self):
        self.view.display_tour(Tour.from_json(tour_json()))
        self.view.emphasize_stop(0)
        html = self.view.render_html()
        self.assertIn("Stop 1", html)
        self.assertIn("getZoom()", html)


if __name__ == "__main__":
    unittest.main()
