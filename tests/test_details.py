import unittest

from delivhub.details import (
    EMPTY_HISTORY_MESSAGE,
    history_meta,
    meters_to_km,
    render_history_list,
    seconds_to_minutes,
    tour_detail_rows,
    tour_summary,
)
from delivhub.models import HistoryRecord, Tour
from tests.samples import tour_json


class TestConversions(unittest.TestCase):
    def test_seconds_to_minutes_rounds_halves_up(self):
        self.assertEqual(seconds_to_minutes(0), 0)
        self.assertEqual(seconds_to_minutes(29), 0)
        self.assertEqual(seconds_to_minutes(30), 1)
        self.assertEqual(seconds_to_minutes(90), 2)
        self.assertEqual(seconds_to_minutes(1920), 32)

    def test_meters_to_km(self):
        self.assertEqual(meters_to_km(3450), "3.45")
        self.assertEqual(meters_to_km(0), "0.00")


class TestTourDetails(unittest.TestCase):
    def test_rows(self):
        rows = tour_detail_rows(Tour.from_json(tour_json()))
        self.assertEqual([r.type for r in rows], ["WAREHOUSE", "PICKUP", "DELIVERY"])
        self.assertEqual([r.arrival for r in rows], ["08:00", "08:10", "08:30"])
        self.assertEqual([r.departure for r in rows], ["08:00", "08:15", "08:32"])
        self.assertEqual([r.service_minutes for r in rows], [0, 5, 2])
        self.assertEqual(rows[1].as_dict()["Demand"], "d1")
        self.assertEqual(rows[0].as_dict()["#"], 1)

    def test_no_tour(self):
        self.assertEqual(tour_detail_rows(None), [])
        self.assertEqual(tour_summary(None), "")

    def test_summary(self):
        self.assertEqual(
            tour_summary(Tour.from_json(tour_json())),
            "Tour t1 - departure 08:00, total distance 3.45 km, total duration ~32 min",
        )


class TestHistoryList(unittest.TestCase):
    def test_items_in_order(self):
        records = [
            {"filename": "tour_2.json", "tourId": "tour_2", "departureTime": "09:00", "courier": "Bob",
             "totalDuration": 3600, "totalDistance": 12346},
            {"filename": "tour_1.json", "tourId": "tour_1"},
        ]
        items = render_history_list(records)
        self.assertEqual([i.title for i in items], ["tour_2", "tour_1"])
        self.assertEqual(items[0].meta, "09:00 · Bob · 60 min · 12.35 km")
        self.assertEqual(items[1].meta, "")

    def test_select_calls_back_with_record(self):
        chosen = []
        items = render_history_list([{"filename": "a.json", "tourId": "a"}], chosen.append)
        items[0].select()
        self.assertEqual(len(chosen), 1)
        self.assertIsInstance(chosen[0], HistoryRecord)
        self.assertEqual(chosen[0].filename, "a.json")

    def test_non_numeric_totals_are_hidden(self):
        record = HistoryRecord.from_json({"tourId": "x", "totalDuration": "long", "totalDistance": None})
        self.assertEqual(history_meta(record), "")

    def test_empty_and_invalid(self):
        self.assertEqual(render_history_list(None), [])
        with self.assertLogs("delivhub.details", level="WARNING"):
            items = render_history_list(["nope", {"tourId": "ok"}])
        self.assertEqual([i.title for i in items], ["ok"])
        self.assertTrue(EMPTY_HISTORY_MESSAGE)


if __name__ == "__main__":
    unittest.main()
