import unittest

from sideline.models import PlayTimeRecord
from sideline.services import DuplicateOpenInterval, InMemoryRecordStore, TimeLedger
from sideline.services.time_ledger import (
    calculate_play_time_by_position, count_games_played, is_player_currently_playing
)


class TimeLedgerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryRecordStore()
        self.ledger = TimeLedger(self.store, "g1")

    def test_second_open_interval_is_rejected(self) -> None:
        self.ledger.open_interval("p1", "pos-cm", 0)
        with self.assertRaises(DuplicateOpenInterval):
            self.ledger.open_interval("p1", "pos-st", 120)
        self.assertEqual(len(self.store.list_play_time_records("g1")), 1)

    def test_closing_a_closed_interval_is_a_no_op(self) -> None:
        self.ledger.open_interval("p1", "pos-cm", 0)
        closed = self.ledger.close_interval("p1", 600)
        self.assertEqual(closed.end_game_seconds, 600)

        self.assertIsNone(self.ledger.close_interval("p1", 900))
        records = self.store.list_play_time_records("g1")
        self.assertEqual(records[0].end_game_seconds, 600)

    def test_close_never_precedes_start(self) -> None:
        self.ledger.open_interval("p1", "pos-cm", 600)
        closed = self.ledger.close_interval("p1", 580)
        self.assertEqual(closed.end_game_seconds, 600)
        self.assertEqual(closed.duration(), 0)

    def test_total_play_time_sums_closed_and_open_intervals(self) -> None:
        self.ledger.open_interval("p1", "pos-cm", 0)
        self.assertEqual(self.ledger.total_play_time("p1", 300), 300)
        self.ledger.close_interval("p1", 400)
        self.ledger.open_interval("p1", "pos-st", 500)
        self.assertEqual(self.ledger.total_play_time("p1", 700), 600)
        self.assertEqual(self.ledger.total_play_time("p2", 700), 0)

    def test_play_time_grows_only_while_on_field(self) -> None:
        self.ledger.open_interval("p1", "pos-cm", 0)
        previous = 0
        for second in range(0, 301, 30):
            total = self.ledger.total_play_time("p1", second)
            self.assertGreaterEqual(total, previous)
            previous = total

        self.ledger.close_interval("p1", 300)
        self.assertFalse(self.ledger.is_on_field("p1"))
        for second in (300, 450, 900):
            self.assertEqual(self.ledger.total_play_time("p1", second), 300)

    def test_close_all(self) -> None:
        for index, player_id in enumerate(["p1", "p2", "p3"]):
            self.ledger.open_interval(player_id, f"pos-{index}", 0)
        closed = self.ledger.close_all(1800)
        self.assertEqual(len(closed), 3)
        self.assertEqual(self.ledger.on_field_player_ids(), [])
        self.assertEqual(self.ledger.play_time_totals(["p1", "p2", "p3"], 2000),
                         {"p1": 1800, "p2": 1800, "p3": 1800})

    def test_records_are_scoped_to_the_game(self) -> None:
        other = TimeLedger(self.store, "g2")
        other.open_interval("p1", "pos-cm", 0)
        self.ledger.open_interval("p1", "pos-cm", 0)
        self.assertEqual(len(self.ledger.records()), 1)

    def test_play_time_by_position(self) -> None:
        self.ledger.open_interval("p1", "pos-cm", 0)
        self.ledger.close_interval("p1", 300)
        self.ledger.open_interval("p1", "pos-xx", 300)
        by_position = self.ledger.play_time_by_position("p1", {"pos-cm": "Center Mid"}, 420)
        self.assertEqual(by_position, {"Center Mid": 300, "Unknown": 120})


class LedgerHelperTests(unittest.TestCase):
    def test_helpers_over_record_lists(self) -> None:
        records = [
            PlayTimeRecord("g1", "p1", "pos-cm", 0, 600),
            PlayTimeRecord("g2", "p1", "pos-cm", 0, None),
            PlayTimeRecord("g2", "p2", "pos-st", 0, 60),
        ]
        self.assertEqual(count_games_played("p1", records), 2)
        self.assertTrue(is_player_currently_playing("p1", records))
        self.assertFalse(is_player_currently_playing("p2", records))
        self.assertEqual(calculate_play_time_by_position("p2", records, {}), {"Unknown": 60})


if __name__ == "__main__":
    unittest.main()
