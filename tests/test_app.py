import unittest

from delivhub.app import read_click


def stop_click(n):
    return {
        "last_object_clicked_tooltip": f"Stop {n}",
        "last_object_clicked": {"lat": 45.755, "lng": 4.86},
    }


class TestReadClick(unittest.TestCase):
    def test_no_click(self):
        self.assertIsNone(read_click(None, None))
        self.assertIsNone(read_click({"last_object_clicked_tooltip": None, "last_object_clicked": None}, None))

    def test_repeated_report_is_ignored(self):
        click = read_click(stop_click(1), None)
        self.assertEqual(click["last_object_clicked_tooltip"], "Stop 1")
        self.assertIsNone(read_click(stop_click(1), click))
        self.assertEqual(read_click(stop_click(2), click)["last_object_clicked_tooltip"], "Stop 2")

    def test_same_stop_after_handled_click(self):
        # A handled click resets the last click along with the map component.
        first = read_click(stop_click(1), None)
        self.assertIsNotNone(first)
        self.assertEqual(read_click(stop_click(1), None), first)


if __name__ == "__main__":
    unittest.main()
