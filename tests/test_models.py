import unittest

from delivhub.models import Cluster, Demand, HistoryRecord, Node, Plan, StopType, Tour
from tests.samples import cluster_json, demand_json, plan_json, tour_json


class TestModels(unittest.TestCase):
    def test_plan_lookup_normalises_ids(self):
        data = plan_json()
        data["nodes"].append({"id": 42, "latitude": 45.0, "longitude": 4.0})
        plan = Plan.from_json(data)
        self.assertEqual(len(plan), 6)
        self.assertEqual(plan.get_node(42), plan.get_node("42"))
        self.assertIsNone(plan.get_node("missing"))
        self.assertEqual(len(plan.segments), 5)

    def test_plan_skips_nodes_without_coordinates(self):
        data = plan_json()
        data["nodes"].append({"id": "bad"})
        with self.assertLogs("delivhub.models", level="WARNING"):
            plan = Plan.from_json(data)
        self.assertIsNone(plan.get_node("bad"))

    def test_tour_from_json(self):
        tour = Tour.from_json(tour_json())
        self.assertEqual(tour.id, "t1")
        self.assertEqual(tour.courier, "Alice")
        self.assertEqual([s.type for s in tour.stops], [StopType.WAREHOUSE, StopType.PICKUP, StopType.DELIVERY])
        self.assertEqual(tour.stops[1].demand.id, "d1")
        self.assertEqual([n.id for n in tour.legs[1].path], ["2", "3", "4"])
        self.assertEqual(tour.legs[0].travel_time, 600)

    def test_leg_count_mismatch_is_logged(self):
        data = tour_json()
        data["legs"] = data["legs"][:1]
        with self.assertLogs("delivhub.models", level="WARNING"):
            tour = Tour.from_json(data)
        self.assertEqual(len(tour.legs), 1)

    def test_unknown_stop_type_is_kept_untyped(self):
        data = tour_json()
        data["stops"][1]["type"] = "TELEPORT"
        with self.assertLogs("delivhub.models", level="WARNING"):
            tour = Tour.from_json(data)
        self.assertIsNone(tour.stops[1].type)
        self.assertEqual(len(tour.stops), 3)

    def test_bare_id_node_is_unlocated(self):
        node = Node.from_json(7)
        self.assertEqual(node.id, "7")
        self.assertFalse(node.located)

    def test_demand_address_accepts_node_object(self):
        demand = Demand.from_json(demand_json(pickup={"id": 2, "latitude": 1, "longitude": 2}))
        self.assertEqual(demand.pickup_address, "2")
        self.assertEqual(demand.delivery_address, "4")

    def test_cluster_without_centroid(self):
        cluster = Cluster.from_json({"demands": [demand_json()]})
        self.assertIsNone(cluster.centroid)
        cluster = Cluster.from_json(cluster_json([demand_json()]))
        self.assertEqual(cluster.centroid.lat, 45.76)

    def test_history_record(self):
        record = HistoryRecord.from_json(
            {"filename": "t1.json", "tourId": "t1", "totalDuration": "n/a", "totalDistance": 1500}
        )
        self.assertEqual(record.title, "t1")
        self.assertIsNone(record.total_duration)
        self.assertEqual(record.total_distance, 1500.0)

    def test_invalid_documents(self):
        self.assertIsNone(Plan.from_json(None))
        self.assertIsNone(Tour.from_json("not a tour"))
        self.assertIsNone(Cluster.from_json(3))


if __name__ == "__main__":
    unittest.main()
