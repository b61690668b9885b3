"""
Rotation planner for the Sideline Rotation Engine.

Builds a pre-game substitution schedule that evens out projected play time.
Everything here is a pure function of its inputs: the same roster, lineup and
settings always produce the same plan, so a plan can be recalculated as often
as the coach likes.

Schedule shape: with 30 minute halves and a 10 minute interval there are two
rotation points per half, at 10', 20', 40' and 50'. The first point of the
second half carries the halftime changes.
"""
import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..models import LineupSlot, PlannedRotation, PlannedSubstitution, RosterPlayer
from ..utils.constants import MIN_PLAYERS_PER_GROUP

logger = logging.getLogger(__name__)


# ---------- Schedule arithmetic ---------- #

def rotations_per_half(half_length_minutes: int, rotation_interval_minutes: int) -> int:
    """Number of rotation points inside one half (the half boundary itself excluded)."""
    if rotation_interval_minutes <= 0:
        return 0
    return max(0, half_length_minutes // rotation_interval_minutes - 1)


def rotation_half(rotation_number: int, per_half: int) -> int:
    return 1 if rotation_number <= per_half else 2


def calculate_rotation_minute(
    rotation_number: int,
    per_half: int,
    rotation_interval_minutes: int,
    half_length_minutes: int,
) -> int:
    """
    Game minute of a rotation point.

    Args:
        rotation_number: 1-based rotation number
        per_half: Rotation points per half
        rotation_interval_minutes: Minutes between rotations
        half_length_minutes: Length of each half

    Returns:
        Minute mark counted from kickoff
    """
    if rotation_half(rotation_number, per_half) == 1:
        return rotation_number * rotation_interval_minutes
    return half_length_minutes + (rotation_number - per_half) * rotation_interval_minutes


def build_rotation_slots(
    plan_id: str,
    half_length_minutes: int,
    rotation_interval_minutes: int,
) -> List[PlannedRotation]:
    """Create the empty rotation points of a plan."""
    per_half = rotations_per_half(half_length_minutes, rotation_interval_minutes)
    return [
        PlannedRotation(
            plan_id=plan_id,
            rotation_number=n,
            game_minute=calculate_rotation_minute(
                n, per_half, rotation_interval_minutes, half_length_minutes
            ),
            half=rotation_half(n, per_half),
        )
        for n in range(1, per_half * 2 + 1)
    ]


# ---------- Fair rotation allocator ---------- #

def _segment_lengths(
    total_rotations: int,
    rotation_minutes: Optional[Sequence[int]],
    total_minutes: Optional[int],
) -> List[int]:
    """Length of the stretch before rotation 1, after rotation 1, ... after the last one."""
    if rotation_minutes is None:
        return [1] * (total_rotations + 1)
    if len(rotation_minutes) < total_rotations:
        raise ValueError("A minute mark is required for every rotation")
    marks = [0] + list(rotation_minutes[:total_rotations])
    end = total_minutes if total_minutes is not None else marks[-1]
    return [max(0, b - a) for a, b in zip(marks, marks[1:] + [end])]


def _match_positions(
    positions: Sequence[str],
    candidates: Sequence[str],
    preferences: Mapping[str, Set[str]],
) -> Dict[str, str]:
    """
    Match incoming players to vacated positions.

    First pass gives each candidate (least time first) a position they
    prefer; the second pass fills what is left in order.
    """
    assignments: Dict[str, str] = {}
    used: Set[str] = set()
    for player_id in candidates:
        for position_id in positions:
            if position_id not in assignments and position_id in preferences.get(player_id, ()):
                assignments[position_id] = player_id
                used.add(player_id)
                break
    for player_id in candidates:
        if player_id in used:
            continue
        for position_id in positions:
            if position_id not in assignments:
                assignments[position_id] = player_id
                used.add(player_id)
                break
    return assignments


def calculate_fair_rotations(
    available_players: Sequence[RosterPlayer],
    starting_lineup: Sequence[LineupSlot],
    total_rotations: int,
    per_half: int,
    max_players_on_field: int,
    goalie_position_id: Optional[str] = None,
    halftime_lineup: Optional[Sequence[LineupSlot]] = None,
    rotation_minutes: Optional[Sequence[int]] = None,
    drift_threshold: int = 0,
    arrival_minutes: Optional[Mapping[str, int]] = None,
    total_minutes: Optional[int] = None,
) -> List[List[PlannedSubstitution]]:
    """
    Plan substitutions for every rotation point.

    At each regular rotation the bench players with the least projected time
    replace the field players with the most, up to a third of the field per
    rotation, and only while the outgoing player's time exceeds the incoming
    player's by more than ``drift_threshold``. The goalkeeper stays put except
    at halftime, where either the coach's halftime lineup is applied or up to a
    full team of fresh legs comes on. Ties go to the lower jersey number.

    Args:
        available_players: Players that can be planned (absent and injured removed)
        starting_lineup: Planned starters
        total_rotations: Number of rotation points to fill
        per_half: Rotation points per half; point ``per_half + 1`` is halftime
        max_players_on_field: Number of on-field positions
        goalie_position_id: Goalkeeper slot, rotated only at halftime
        halftime_lineup: Coach-chosen second-half lineup, if any
        rotation_minutes: Minute mark of each rotation; projected time is counted
                          in minutes when given, otherwise in rotation stretches
        drift_threshold: Projected-time gap tolerated without a swap
        arrival_minutes: Expected arrival minute of late arrivals; they are not
                         brought on at rotations before it (needs rotation_minutes)
        total_minutes: Full game length, used for the last stretch

    Returns:
        One list of substitutions per rotation point, in rotation order
    """
    roster = {p.player_id: p for p in available_players}
    preferences = {p.player_id: set(p.preferred_list()) for p in available_players}
    arrivals = dict(arrival_minutes or {})

    def jersey(player_id: str) -> Tuple[int, str]:
        player = roster.get(player_id)
        return (player.number if player else 10 ** 6, player_id)

    lineup: Dict[str, str] = {slot.position_id: slot.player_id for slot in starting_lineup}
    projected: Dict[str, int] = {pid: 0 for pid in roster}
    segments = _segment_lengths(total_rotations, rotation_minutes, total_minutes)

    def accrue(amount: int) -> None:
        for player_id in lineup.values():
            projected[player_id] = projected.get(player_id, 0) + amount

    def swap(field_ids: Iterable[str], bench_ids: Iterable[str], limit: int,
             threshold: Optional[int]) -> List[PlannedSubstitution]:
        field_sorted = sorted(field_ids, key=lambda pid: (-projected.get(pid, 0), jersey(pid)))
        bench_sorted = sorted(bench_ids, key=lambda pid: (projected.get(pid, 0), jersey(pid)))
        pairs = 0
        for out_id, in_id in zip(field_sorted, bench_sorted):
            if pairs >= limit:
                break
            if threshold is not None and projected.get(out_id, 0) - projected.get(in_id, 0) <= threshold:
                break
            pairs += 1

        position_of = {pid: pos for pos, pid in lineup.items()}
        outgoing = field_sorted[:pairs]
        assignments = _match_positions(
            [position_of[pid] for pid in outgoing], bench_sorted[:pairs], preferences
        )
        subs = []
        for out_id in outgoing:
            position_id = position_of[out_id]
            in_id = assignments[position_id]
            subs.append(PlannedSubstitution(out_id, in_id, position_id))
            lineup[position_id] = in_id
        return subs

    accrue(segments[0])
    regular_limit = math.ceil(max_players_on_field / MIN_PLAYERS_PER_GROUP)
    rotations: List[List[PlannedSubstitution]] = []

    for rot_num in range(1, total_rotations + 1):
        minute = rotation_minutes[rot_num - 1] if rotation_minutes is not None else None
        on_field = set(lineup.values())
        bench = [
            pid for pid in roster
            if pid not in on_field
            and (minute is None or pid not in arrivals or minute >= arrivals[pid])
        ]

        if rot_num == per_half + 1:
            if halftime_lineup:
                subs = []
                target: Dict[str, str] = {}
                for slot in halftime_lineup:
                    current = lineup.get(slot.position_id)
                    if current and current != slot.player_id:
                        subs.append(PlannedSubstitution(current, slot.player_id, slot.position_id))
                    target[slot.position_id] = slot.player_id
                lineup.clear()
                lineup.update(target)
            else:
                subs = swap(list(lineup.values()), bench, max_players_on_field, None)
        else:
            field_ids = [pid for pos, pid in lineup.items() if pos != goalie_position_id]
            subs = swap(field_ids, bench, regular_limit, drift_threshold)

        rotations.append(subs)
        accrue(segments[rot_num])

    logger.debug("Planned %d rotations; projected time %s", len(rotations), projected)
    return rotations


# ---------- Plan analysis ---------- #

def apply_substitutions(lineup: Dict[str, str], substitutions: Iterable[PlannedSubstitution]) -> None:
    """
    Apply substitutions to a position -> player lineup in place.

    A player coming in leaves any other position they were listed at.
    """
    for sub in substitutions:
        for position_id in [pos for pos, pid in lineup.items() if pid == sub.player_in_id]:
            if position_id != sub.position_id:
                del lineup[position_id]
        lineup[sub.position_id] = sub.player_in_id


def _ordered(rotations: Iterable[PlannedRotation]) -> List[PlannedRotation]:
    return sorted(rotations, key=lambda r: r.rotation_number)


def compute_lineup_at_rotation(
    starting_lineup: Mapping[str, str],
    rotations: Iterable[PlannedRotation],
    target_rotation: int,
) -> Dict[str, str]:
    """
    Lineup (position -> player) after applying rotations up to ``target_rotation``.

    Rotation 0 is the starting lineup. Rotations whose stored substitutions
    could not be decoded contribute nothing.
    """
    lineup = dict(starting_lineup)
    for rotation in _ordered(rotations):
        if rotation.rotation_number > target_rotation:
            break
        apply_substitutions(lineup, rotation.substitutions)
    return lineup


def compute_lineup_diff(
    previous: Mapping[str, str],
    new: Mapping[str, str],
) -> List[PlannedSubstitution]:
    """Substitutions turning one lineup into another, one per changed position."""
    subs = []
    for position_id, new_id in new.items():
        old_id = previous.get(position_id)
        if old_id and new_id and old_id != new_id:
            subs.append(PlannedSubstitution(old_id, new_id, position_id))
    return subs


def calculate_projected_play_time(
    rotations: Iterable[PlannedRotation],
    starting_lineup: Sequence[LineupSlot],
    total_game_minutes: int,
) -> Dict[str, int]:
    """
    Minutes each player would play if the plan were followed.

    Args:
        rotations: Planned rotations (any order)
        starting_lineup: Planned starters
        total_game_minutes: Length of the game

    Returns:
        Projected minutes by player id, for every player the plan mentions
    """
    lineup = {slot.position_id: slot.player_id for slot in starting_lineup}
    totals: Dict[str, int] = {pid: 0 for pid in lineup.values()}
    last_minute = 0

    for rotation in _ordered(rotations):
        if rotation.decode_error:
            logger.warning("Rotation %s has unreadable substitutions: %s",
                           rotation.rotation_number, rotation.decode_error)
        minute = max(rotation.game_minute, last_minute)
        for player_id in lineup.values():
            totals[player_id] = totals.get(player_id, 0) + minute - last_minute
        apply_substitutions(lineup, rotation.substitutions)
        for sub in rotation.substitutions:
            totals.setdefault(sub.player_in_id, 0)
        last_minute = minute

    for player_id in lineup.values():
        totals[player_id] = totals.get(player_id, 0) + max(0, total_game_minutes - last_minute)
    return totals


def validate_rotation_plan(
    rotations: Sequence[PlannedRotation],
    max_players_on_field: int,
    starting_lineup: Optional[Sequence[LineupSlot]] = None,
) -> List[str]:
    """
    Check a plan for common mistakes.

    Without a starting lineup the first rotation's outgoing players cannot
    be checked against the field and are taken on trust.

    Returns:
        Human-readable problems; empty when the plan is sound
    """
    if not rotations:
        return ["No rotations planned"]

    errors: List[str] = []
    known = starting_lineup is not None
    field: Set[str] = {slot.player_id for slot in starting_lineup or []}

    for index, rotation in enumerate(_ordered(rotations)):
        label = f"Rotation {rotation.rotation_number}"
        if rotation.decode_error:
            errors.append(f"{label}: Failed to parse substitutions data")
            continue

        out_ids = [s.player_out_id for s in rotation.substitutions]
        in_ids = [s.player_in_id for s in rotation.substitutions]
        if len(set(out_ids)) != len(out_ids):
            errors.append(f"{label}: Duplicate players being subbed out")
        if len(set(in_ids)) != len(in_ids):
            errors.append(f"{label}: Duplicate players being subbed in")
        for player_id in sorted(set(out_ids) & set(in_ids)):
            errors.append(f"{label}: Player {player_id} subbed in and out at once")

        for sub in rotation.substitutions:
            if (known or index > 0) and sub.player_out_id not in field:
                errors.append(f"{label}: Player {sub.player_out_id} not on field")
            field.discard(sub.player_out_id)
            field.add(sub.player_in_id)

        if len(field) > max_players_on_field:
            errors.append(f"{label}: Too many players on field ({len(field)})")
    return errors
