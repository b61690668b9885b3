"""
Unit tests for the rotation planner.

Roster used throughout: ten players numbered 1-10 and a 7-a-side formation
with the goalkeeper at pos-1. Thirty minute halves with a ten minute interval
give rotation points at 10', 20', 40' and 50'.
"""
import unittest

from sideline.models import LineupSlot, PlannedRotation, PlannedSubstitution, RosterPlayer
from sideline.services.rotation_planner import (
    build_rotation_slots, calculate_fair_rotations, calculate_projected_play_time,
    calculate_rotation_minute, compute_lineup_at_rotation, compute_lineup_diff,
    rotations_per_half, validate_rotation_plan
)


def make_roster(preferences=None):
    preferences = preferences or {}
    return [
        RosterPlayer(f"p{n}", number=n, preferred_positions=preferences.get(f"p{n}", ""))
        for n in range(1, 11)
    ]


STARTERS = [LineupSlot(f"p{n}", f"pos-{n}") for n in range(1, 8)]
MINUTES = [10, 20, 40, 50]


class TestScheduleArithmetic(unittest.TestCase):
    def test_rotations_per_half(self) -> None:
        self.assertEqual(rotations_per_half(30, 10), 2)
        self.assertEqual(rotations_per_half(30, 5), 5)
        self.assertEqual(rotations_per_half(10, 15), 0)
        self.assertEqual(rotations_per_half(30, 0), 0)

    def test_rotation_minutes(self) -> None:
        self.assertEqual(calculate_rotation_minute(1, 2, 10, 30), 10)
        self.assertEqual(calculate_rotation_minute(3, 2, 10, 30), 40)
        self.assertEqual(calculate_rotation_minute(4, 2, 10, 30), 50)
        self.assertEqual(calculate_rotation_minute(2, 1, 15, 30), 45)
        self.assertEqual(calculate_rotation_minute(6, 5, 5, 30), 35)
        self.assertEqual(calculate_rotation_minute(10, 5, 5, 30), 55)

    def test_build_rotation_slots(self) -> None:
        slots = build_rotation_slots("plan-1", 30, 10)
        self.assertEqual([s.game_minute for s in slots], MINUTES)
        self.assertEqual([s.half for s in slots], [1, 1, 2, 2])
        self.assertEqual([s.rotation_number for s in slots], [1, 2, 3, 4])
        self.assertTrue(all(s.substitutions == () for s in slots))


class TestFairRotations(unittest.TestCase):
    def _plan(self, **kwargs):
        args = dict(
            available_players=make_roster(),
            starting_lineup=STARTERS,
            total_rotations=4,
            per_half=2,
            max_players_on_field=7,
            goalie_position_id="pos-1",
            rotation_minutes=MINUTES,
            total_minutes=60,
        )
        args.update(kwargs)
        return calculate_fair_rotations(**args)

    def test_least_played_come_on_first(self) -> None:
        rotations = self._plan()
        self.assertEqual(rotations[0], [
            PlannedSubstitution("p2", "p8", "pos-2"),
            PlannedSubstitution("p3", "p9", "pos-3"),
            PlannedSubstitution("p4", "p10", "pos-4"),
        ])
        self.assertEqual(rotations[1], [
            PlannedSubstitution("p5", "p2", "pos-5"),
            PlannedSubstitution("p6", "p3", "pos-6"),
            PlannedSubstitution("p7", "p4", "pos-7"),
        ])

    def test_goalkeeper_only_changes_at_halftime(self) -> None:
        rotations = self._plan()
        for index in (0, 1, 3):
            self.assertNotIn("pos-1", [s.position_id for s in rotations[index]])
            self.assertLessEqual(len(rotations[index]), 3)
        self.assertIn("p1", [s.player_out_id for s in rotations[2]])

    def test_plan_is_deterministic(self) -> None:
        self.assertEqual(self._plan(), self._plan())

    def test_spread_of_projected_minutes_is_small(self) -> None:
        rotations = [
            PlannedRotation("plan-1", n, minute, 1 if n <= 2 else 2, tuple(subs))
            for n, (minute, subs) in enumerate(zip(MINUTES, self._plan()), start=1)
        ]
        projected = calculate_projected_play_time(rotations, STARTERS, 60)
        self.assertEqual(sum(projected.values()), 7 * 60)
        self.assertLessEqual(max(projected.values()) - min(projected.values()), 20)

    def test_drift_threshold_suppresses_regular_swaps(self) -> None:
        rotations = self._plan(drift_threshold=100)
        self.assertEqual(rotations[0], [])
        self.assertEqual(rotations[1], [])
        self.assertEqual(rotations[3], [])
        self.assertNotEqual(rotations[2], [])

    def test_preferred_positions_are_honoured(self) -> None:
        rotations = self._plan(available_players=make_roster({"p8": "pos-4"}))
        self.assertEqual(rotations[0], [
            PlannedSubstitution("p2", "p9", "pos-2"),
            PlannedSubstitution("p3", "p10", "pos-3"),
            PlannedSubstitution("p4", "p8", "pos-4"),
        ])

    def test_halftime_lineup_is_applied(self) -> None:
        halftime = [LineupSlot(f"p{n}", f"pos-{n}") for n in range(1, 8)]
        halftime[1] = LineupSlot("p8", "pos-2")
        rotations = self._plan(halftime_lineup=halftime, drift_threshold=100)
        self.assertEqual(rotations[2], [PlannedSubstitution("p2", "p8", "pos-2")])

    def test_late_arrivals_wait_for_their_minute(self) -> None:
        rotations = self._plan(arrival_minutes={"p10": 30})
        self.assertEqual(rotations[0], [
            PlannedSubstitution("p2", "p8", "pos-2"),
            PlannedSubstitution("p3", "p9", "pos-3"),
        ])
        for subs in rotations[:2]:
            self.assertNotIn("p10", [s.player_in_id for s in subs])

    def test_rotation_minutes_must_cover_every_rotation(self) -> None:
        with self.assertRaises(ValueError):
            self._plan(rotation_minutes=[10, 20])

    def test_counts_rotations_without_minute_marks(self) -> None:
        rotations = self._plan(rotation_minutes=None, total_minutes=None)
        self.assertEqual(len(rotations), 4)
        self.assertEqual(len(rotations[0]), 3)


class TestPlanAnalysis(unittest.TestCase):
    def setUp(self) -> None:
        self.start = {"pos-a": "p1", "pos-b": "p2"}
        self.rotations = [
            PlannedRotation("plan-1", 1, 10, 1, (PlannedSubstitution("p1", "p3", "pos-a"),)),
            PlannedRotation("plan-1", 2, 20, 1, (PlannedSubstitution("p2", "p1", "pos-b"),)),
        ]

    def test_lineup_at_rotation(self) -> None:
        self.assertEqual(compute_lineup_at_rotation(self.start, self.rotations, 0), self.start)
        self.assertEqual(compute_lineup_at_rotation(self.start, self.rotations, 1),
                         {"pos-a": "p3", "pos-b": "p2"})
        self.assertEqual(compute_lineup_at_rotation(self.start, reversed(self.rotations), 2),
                         {"pos-a": "p3", "pos-b": "p1"})

    def test_lineup_diff(self) -> None:
        diff = compute_lineup_diff({"pos-a": "p1", "pos-b": "p2"}, {"pos-a": "p1", "pos-b": "p5"})
        self.assertEqual(diff, [PlannedSubstitution("p2", "p5", "pos-b")])

    def test_projected_play_time(self) -> None:
        starters = [LineupSlot("p1", "pos-a"), LineupSlot("p2", "pos-b")]
        projected = calculate_projected_play_time(self.rotations[:1], starters, 60)
        self.assertEqual(projected, {"p1": 10, "p2": 60, "p3": 50})

    def test_validate_rotation_plan(self) -> None:
        starters = [LineupSlot("p1", "pos-a"), LineupSlot("p2", "pos-b")]
        self.assertEqual(validate_rotation_plan([], 2), ["No rotations planned"])
        self.assertEqual(validate_rotation_plan(self.rotations, 2, starters), [])

        broken = [
            PlannedRotation("plan-1", 1, 10, 1, (
                PlannedSubstitution("p1", "p3", "pos-a"),
                PlannedSubstitution("p1", "p4", "pos-b"),
            )),
            PlannedRotation("plan-1", 2, 20, 1, (PlannedSubstitution("p9", "p5", "pos-a"),)),
            PlannedRotation("plan-1", 3, 40, 2, decode_error="bad blob"),
        ]
        errors = validate_rotation_plan(broken, 2, starters)
        self.assertIn("Rotation 1: Duplicate players being subbed out", errors)
        self.assertIn("Rotation 2: Player p9 not on field", errors)
        self.assertTrue(any("Too many players on field" in e for e in errors))
        self.assertIn("Rotation 3: Failed to parse substitutions data", errors)

        swap_back = [PlannedRotation("plan-1", 1, 10, 1, (
            PlannedSubstitution("p1", "p2", "pos-a"),
            PlannedSubstitution("p2", "p1", "pos-b"),
        ))]
        self.assertIn("Rotation 1: Player p1 subbed in and out at once",
                      validate_rotation_plan(swap_back, 2, starters))


if __name__ == "__main__":
    unittest.main()
