"""
Unit tests for GameSession.

A 7-a-side team with ten players (goalkeeper slot pos-1) plays 30 minute
halves. Wall-clock time is pinned by patching ``now_ts`` so the clock only
moves when the tests tick it.
"""
import unittest
from unittest.mock import patch

from sideline.models import (
    AvailabilityStatus, FieldPosition, Game, GameConfig, GameStatus, LineupSlot, RosterPlayer
)
from sideline.services import (
    ClockEvent, GameSession, InMemoryRecordStore, InvalidTransition, PersistenceError,
    RecalculationBlocked, StaleOperation, StaticRosterProvider, copy_game_plan
)

NOW = "sideline.services.game_session.now_ts"


class GameSessionTestCase(unittest.TestCase):
    """Shared fixtures: roster, store and a scheduled game."""

    def setUp(self) -> None:
        players = [RosterPlayer(f"p{n}", number=n, first_name=f"Player{n}") for n in range(1, 11)]
        positions = [FieldPosition(f"pos-{n}", name=f"Position {n}", sort_order=n) for n in range(1, 8)]
        self.roster = StaticRosterProvider.for_team("t1", players, positions)
        self.config = GameConfig(half_length_minutes=30, max_players_on_field=7,
                                 goalie_position_id="pos-1")
        self.store = InMemoryRecordStore()
        self.store.save_game(Game("g1", team_id="t1", opponent="Rovers"))
        self.starters = [LineupSlot(f"p{n}", f"pos-{n}") for n in range(1, 8)]

        patcher = patch(NOW, return_value=1000.0)
        self.now = patcher.start()
        self.addCleanup(patcher.stop)
        self.session = GameSession.load(self.store, self.roster, "g1", self.config)

    def assign_starters(self) -> None:
        for slot in self.starters:
            self.session.assign_position(slot.player_id, slot.position_id)

    def tick(self, count: int):
        events = []
        for _ in range(count):
            events.extend(self.session.tick().events)
        return events

    def open_records(self, player_id: str):
        return [r for r in self.session.ledger.records() if r.player_id == player_id and r.is_open]


class TestGameLifecycle(GameSessionTestCase):
    def test_unknown_game(self) -> None:
        with self.assertRaises(KeyError):
            GameSession.load(self.store, self.roster, "missing", self.config)

    def test_pre_game_assignments_are_starters_without_play_time(self) -> None:
        self.assign_starters()
        lineup = self.store.list_lineup("g1")
        self.assertEqual(len(lineup), 7)
        self.assertTrue(all(a.is_starter for a in lineup))
        self.assertEqual(self.session.ledger.records(), [])

    def test_substitution_at_ten_minutes(self) -> None:
        self.assign_starters()
        self.session.start_game()
        self.assertEqual(len(self.session.ledger.on_field_player_ids()), 7)

        self.tick(600)
        self.assertEqual(self.session.current_elapsed(), 600)
        self.session.substitute("p4", "p8", "pos-4")

        self.assertEqual(self.session.play_time("p4"), 600)
        self.assertFalse(self.session.is_on_field("p4"))
        self.assertTrue(self.session.is_on_field("p8"))
        self.assertEqual(self.open_records("p8")[0].start_game_seconds, 600)
        self.assertEqual(self.session.lineup()["pos-4"], "p8")
        self.assertEqual(self.session.substitution_history()[0].half, 1)

    def test_automatic_halftime_closes_at_boundary(self) -> None:
        self.assign_starters()
        self.session.start_game()
        self.tick(600)
        self.session.substitute("p4", "p8", "pos-4")

        events = self.tick(1200)

        self.assertIn(ClockEvent.HALFTIME_DUE, events)
        self.assertEqual(self.session.clock.status, GameStatus.HALFTIME)
        self.assertEqual(self.session.current_elapsed(), 1800)
        self.assertEqual(self.session.ledger.on_field_player_ids(), [])
        for record in self.session.ledger.records():
            self.assertLessEqual(record.end_game_seconds, 1800)
        totals = self.session.ledger.play_time_totals([f"p{n}" for n in range(1, 11)], 1800)
        self.assertEqual(sum(totals.values()), 1800 * 7)

        # Ticks during halftime change nothing
        self.tick(5)
        self.assertEqual(self.session.current_elapsed(), 1800)

    def test_second_half_reopens_lineup(self) -> None:
        self.assign_starters()
        self.session.start_game()
        self.tick(1800)

        self.now.return_value = 2000.0
        opened = self.session.start_second_half()
        self.assertEqual(opened, 7)
        self.assertEqual(self.session.clock.current_half, 2)
        self.tick(60)
        self.assertEqual(self.session.play_time("p1"), 1860)
        self.assertEqual(self.store.get_game("g1").current_half, 2)

        with self.assertRaises(StaleOperation):
            self.session.start_second_half()

    def test_end_game_twice_is_safe(self) -> None:
        self.assign_starters()
        self.session.start_game()
        self.tick(300)
        self.session.end_game()
        records = [r.to_dict() for r in self.session.ledger.records()]

        with self.assertRaises(StaleOperation):
            self.session.end_game()

        self.assertEqual([r.to_dict() for r in self.session.ledger.records()], records)
        self.assertEqual(self.store.get_game("g1").status, GameStatus.COMPLETED)
        self.assertEqual(self.store.get_game("g1").elapsed_seconds, 300)
        with self.assertRaises(InvalidTransition):
            self.session.substitute("p1", "p8", "pos-1")

    def test_pause_and_resume(self) -> None:
        self.assign_starters()
        self.session.start_game()
        self.tick(100)
        self.session.pause()

        stored = self.store.get_game("g1")
        self.assertIsNone(stored.last_resume_ts)
        self.assertEqual(stored.elapsed_seconds, 100)
        self.assertFalse(self.session.clock.manual_pause)
        self.tick(50)
        self.assertEqual(self.session.current_elapsed(), 100)
        self.assertEqual(self.session.play_time("p1"), 100)

        self.now.return_value = 2000.0
        self.session.resume()
        self.tick(20)
        self.assertEqual(self.session.current_elapsed(), 120)
        with self.assertRaises(StaleOperation):
            self.session.resume()

    def test_pause_stays_paused_when_save_fails(self) -> None:
        self.assign_starters()
        self.session.start_game()
        self.tick(30)
        with patch.object(self.store, "save_game", side_effect=RuntimeError("offline")):
            with self.assertRaises(PersistenceError):
                self.session.pause()
        self.assertFalse(self.session.clock.running)
        self.assertTrue(self.session.clock.manual_pause)

        # The store still says in-progress; that snapshot must not restart the clock
        self.session.apply_external_snapshot(self.store.get_game("g1"))
        self.assertFalse(self.session.clock.running)
        self.session.resume()
        self.assertFalse(self.session.clock.manual_pause)

    def test_failed_end_keeps_play_time_running(self) -> None:
        self.assign_starters()
        self.session.start_game()
        self.tick(600)

        save_game = self.store.save_game

        def refuse_full_time(game):
            if game.status == GameStatus.COMPLETED:
                raise RuntimeError("offline")
            return save_game(game)

        with patch.object(self.store, "save_game", side_effect=refuse_full_time):
            with self.assertRaises(PersistenceError):
                self.session.end_game()

        self.tick(300)
        self.assertEqual(self.session.clock.status, GameStatus.IN_PROGRESS)
        self.assertTrue(self.session.clock.running)
        self.assertEqual(self.session.current_elapsed(), 900)
        self.assertTrue(self.session.is_on_field("p1"))
        self.assertEqual(len(self.open_records("p1")), 1)
        self.assertEqual(self.session.play_time("p1"), 900)

        self.session.end_game()
        self.assertEqual(self.session.play_time("p1"), 900)
        self.assertEqual(self.session.ledger.on_field_player_ids(), [])

    def test_failed_start_can_be_retried(self) -> None:
        self.assign_starters()
        with patch.object(self.store, "save_game", side_effect=RuntimeError("offline")):
            with self.assertRaises(PersistenceError):
                self.session.start_game()
        self.assertEqual(self.session.clock.status, GameStatus.SCHEDULED)

        self.session.start_game()
        self.assertEqual(self.session.clock.status, GameStatus.IN_PROGRESS)
        for slot in self.starters:
            self.assertEqual(len(self.open_records(slot.player_id)), 1)

    def test_checkpoints_store_elapsed_time(self) -> None:
        self.assign_starters()
        self.session.start_game()
        self.now.return_value = 1012.0
        self.tick(12)
        stored = self.store.get_game("g1")
        self.assertEqual(stored.elapsed_seconds, 10)
        self.assertEqual(stored.last_resume_ts, 1012.0)

    def test_failed_checkpoint_does_not_stop_the_clock(self) -> None:
        self.assign_starters()
        self.session.start_game()
        with patch.object(self.store, "save_game", side_effect=RuntimeError("offline")):
            with self.assertLogs("sideline.services.game_session", level="ERROR"):
                self.tick(5)
        self.assertTrue(self.session.clock.running)
        self.tick(5)
        self.assertEqual(self.store.get_game("g1").elapsed_seconds, 10)

    def test_pause_during_checkpoint_write_is_not_undone(self) -> None:
        self.session.attach()
        self.addCleanup(self.session.detach)
        self.assign_starters()
        self.session.start_game()
        self.tick(9)

        get_game = self.store.get_game
        paused = []

        def pause_mid_write(game_id):
            game = get_game(game_id)
            if not paused:
                paused.append(True)
                self.session.pause()
            return game

        with patch.object(self.store, "get_game", side_effect=pause_mid_write):
            self.tick(1)

        self.assertEqual(paused, [True])
        self.assertFalse(self.session.clock.running)
        stored = self.store.get_game("g1")
        self.assertEqual(stored.elapsed_seconds, 10)
        self.assertIsNone(stored.last_resume_ts)
        self.tick(5)
        self.assertEqual(self.session.current_elapsed(), 10)

    def test_queued_checkpoint_is_dropped_after_pause(self) -> None:
        class CollectingExecutor:
            def __init__(self):
                self.jobs = []

            def submit(self, fn, *args):
                self.jobs.append((fn, args))

        executor = CollectingExecutor()
        self.session.checkpoint_executor = executor
        self.session.attach()
        self.addCleanup(self.session.detach)
        self.assign_starters()
        self.session.start_game()
        self.tick(10)
        self.assertEqual(len(executor.jobs), 2)

        self.session.pause()
        for fn, args in executor.jobs:
            fn(*args)

        self.assertFalse(self.session.clock.running)
        self.assertIsNone(self.store.get_game("g1").last_resume_ts)

    def test_observer_follows_the_stored_clock(self) -> None:
        observer = GameSession.load(self.store, self.roster, "g1", self.config)
        observer.attach()
        self.addCleanup(observer.detach)
        self.assign_starters()
        self.session.start_game()
        self.assertTrue(observer.clock.running)

        self.now.return_value = 1030.0
        late = GameSession.load(self.store, self.roster, "g1", self.config)
        self.assertEqual(late.current_elapsed(), 30)
        self.assertTrue(late.clock.running)

        self.tick(1800)
        self.assertEqual(observer.clock.status, GameStatus.HALFTIME)
        self.assertEqual(observer.current_elapsed(), 1800)


class TestPlanAndAvailability(GameSessionTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.plan = self.session.create_game_plan(self.starters)

    def test_plan_has_rotation_slots(self) -> None:
        rotations = self.session.rotations()
        self.assertEqual([r.game_minute for r in rotations], [10, 20, 40, 50])
        self.assertEqual(self.plan.total_rotations, 4)
        self.assertEqual([s.player_in_id for s in rotations[0].substitutions], ["p8", "p9", "p10"])

    def test_start_copies_planned_starters(self) -> None:
        warnings = self.session.start_game()
        self.assertEqual(warnings, [])
        self.assertEqual(self.session.lineup(), {s.position_id: s.player_id for s in self.starters})
        self.assertEqual(len(self.session.ledger.on_field_player_ids()), 7)

    def test_absent_starter_is_a_start_warning(self) -> None:
        self.session.set_availability("p3", AvailabilityStatus.ABSENT)
        warnings = self.session.start_game()
        self.assertEqual([w.player_id for w in warnings], ["p3"])

    def test_injury_mid_game(self) -> None:
        self.session.start_game()
        self.tick(300)

        affected = self.session.mark_injured("p5")

        self.assertEqual(affected, [2, 3])
        self.assertFalse(self.session.is_on_field("p5"))
        self.assertEqual(self.session.play_time("p5"), 300)
        self.assertNotIn("pos-5", self.session.lineup())
        self.assertEqual(self.session.availability.status_of("p5"), AvailabilityStatus.INJURED)
        self.assertEqual(self.session.availability.records()["p5"].reason, "Injured at 5' (1st Half)")

        conflict = [c for c in self.session.conflicts() if c.player_id == "p5"][0]
        self.assertEqual(conflict.status, AvailabilityStatus.INJURED)
        self.assertEqual(conflict.rotation_numbers, [2, 3])

    def test_recalculate_drops_injured_player(self) -> None:
        self.session.start_game()
        self.tick(300)
        self.session.mark_injured("p5")

        first = self.session.recalculate_rotations()
        second = self.session.recalculate_rotations()

        self.assertEqual([r.substitutions for r in first], [r.substitutions for r in second])
        for rotation in first:
            self.assertFalse(rotation.references("p5"))
        conflict = [c for c in self.session.conflicts() if c.player_id == "p5"][0]
        self.assertEqual(conflict.rotation_numbers, [])

    def test_recalculation_blocked(self) -> None:
        for n in range(1, 8):
            self.session.set_availability(f"p{n}", AvailabilityStatus.ABSENT)
        with self.assertRaises(RecalculationBlocked):
            self.session.recalculate_rotations()

        self.store.delete_game_plan(self.plan.plan_id)
        with self.assertRaises(RecalculationBlocked):
            self.session.recalculate_rotations()

    def test_rotation_warning_one_minute_ahead(self) -> None:
        self.session.start_game()
        events = self.tick(600)
        self.assertEqual(events.count(ClockEvent.ROTATION_UPCOMING), 1)
        self.assertEqual(self.session.last_upcoming_rotation.rotation_number, 1)
        self.assertIsNotNone(self.session.rotations()[0].viewed_at)

    def test_next_rotation_allows_two_minutes_late(self) -> None:
        self.session.start_game()
        self.assertEqual(self.session.next_rotation().rotation_number, 1)
        self.tick(720)
        self.assertEqual(self.session.next_rotation().rotation_number, 1)
        self.tick(60)
        self.assertEqual(self.session.next_rotation().rotation_number, 2)

    def test_queue_and_execute_rotation(self) -> None:
        self.session.start_game()
        self.tick(600)
        self.session.set_availability("p9", AvailabilityStatus.INJURED)

        queued = self.session.queue_rotation(1)
        self.assertEqual([e.player_id for e in queued], ["p8", "p10"])
        result = self.session.execute_queue()

        self.assertTrue(result.complete)
        self.assertEqual(self.session.lineup()["pos-2"], "p8")
        self.assertEqual(self.session.lineup()["pos-4"], "p10")
        self.assertEqual(self.session.play_time("p2"), 600)
        self.assertEqual(len(self.session.queue), 0)
        with self.assertRaises(KeyError):
            self.session.queue_rotation(9)

    def test_queue_rotation_waits_for_late_arrival(self) -> None:
        self.session.start_game()
        self.tick(600)
        self.session.set_availability("p9", AvailabilityStatus.LATE_ARRIVAL)

        queued = self.session.queue_rotation(1)
        self.assertEqual([e.player_id for e in queued], ["p8", "p10"])

        self.session.mark_late_arrival_available("p9")
        queued = self.session.queue_rotation(1)
        self.assertEqual([e.player_id for e in queued], ["p9"])

    def test_late_arrival_becomes_available(self) -> None:
        self.session.set_availability("p10", AvailabilityStatus.LATE_ARRIVAL, available_from_minute=30)
        rotations = self.session.recalculate_rotations()
        for rotation in rotations[:2]:
            self.assertFalse(rotation.references("p10"))

        self.session.mark_late_arrival_available("p10")
        self.assertEqual(self.session.availability.status_of("p10"), AvailabilityStatus.AVAILABLE)

    def test_copy_game_plan(self) -> None:
        self.store.save_game(Game("g2", team_id="t1"))
        copied = copy_game_plan(self.store, "g1", "g2")
        self.assertNotEqual(copied.plan_id, self.plan.plan_id)
        self.assertEqual(copied.starting_lineup, self.plan.starting_lineup)
        source = self.store.list_planned_rotations(self.plan.plan_id)
        target = self.store.list_planned_rotations(copied.plan_id)
        self.assertEqual([r.substitutions for r in target], [r.substitutions for r in source])
        self.assertIsNone(copy_game_plan(self.store, "missing", "g2"))

    def test_snapshot_is_serializable(self) -> None:
        self.session.start_game()
        self.tick(90)
        snapshot = self.session.snapshot()
        self.assertEqual(snapshot["display_time"], "1' (1st Half)")
        self.assertEqual(snapshot["next_rotation"]["rotation_number"], 1)
        report = {row["player_id"]: row for row in snapshot["play_time"]}
        self.assertEqual(report["p1"]["play_time_seconds"], 90)
        self.assertEqual(report["p1"]["by_position"], {"Position 1": 90})
        self.assertFalse(report["p8"]["on_field"])


if __name__ == "__main__":
    unittest.main()
