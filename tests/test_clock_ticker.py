import threading
import unittest

from sideline.models import FieldPosition, Game, GameConfig, GameStatus, RosterPlayer
from sideline.services import ClockTicker, GameSession, InMemoryRecordStore, StaticRosterProvider


class ClockTickerTests(unittest.TestCase):
    def setUp(self) -> None:
        roster = StaticRosterProvider.for_team(
            "t1",
            [RosterPlayer(f"p{n}", number=n) for n in range(1, 5)],
            [FieldPosition(f"pos-{n}") for n in range(1, 5)],
        )
        store = InMemoryRecordStore()
        store.save_game(Game("g1", team_id="t1"))
        self.session = GameSession.load(store, roster, "g1", GameConfig(max_players_on_field=4))

    def test_ticker_advances_clock_and_stops(self) -> None:
        ticked = threading.Event()

        def listener(result):
            if result.state.elapsed_seconds >= 3:
                ticked.set()

        self.session.start_game()
        ticker = ClockTicker(self.session, interval=0.01, listener=listener)
        ticker.start()
        self.addCleanup(ticker.stop)

        self.assertTrue(ticked.wait(timeout=5))
        self.assertTrue(ticker.running)
        self.assertIsNotNone(self.session.checkpoint_executor)
        ticker.stop()
        self.assertFalse(ticker.running)
        self.assertIsNone(self.session.checkpoint_executor)
        self.assertGreaterEqual(self.session.current_elapsed(), 3)

    def test_loop_exits_once_game_is_over(self) -> None:
        self.session.start_game()
        self.session.end_game()
        ticker = ClockTicker(self.session, interval=0.01)
        ticker.start()
        self.addCleanup(ticker.stop)
        ticker.thread.join(timeout=5)
        self.assertFalse(ticker.running)
        self.assertEqual(self.session.clock.status, GameStatus.COMPLETED)


if __name__ == "__main__":
    unittest.main()
