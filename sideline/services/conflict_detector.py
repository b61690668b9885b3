"""
Conflict detector for the Sideline Rotation Engine.

Cross-references a game plan with live availability and reports players the
plan relies on who are absent or injured. Conflicts are warnings for the
coach; nothing here blocks an operation or edits the plan.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..models import AvailabilityStatus, LineupSlot, PlannedRotation

StatusLookup = Callable[[str], AvailabilityStatus]

CONFLICT_STARTER = "starter"
CONFLICT_ROTATION = "rotation"


@dataclass
class PlanConflict:
    """
    An unavailable player referenced by the plan.

    Attributes:
        player_id: Player in question
        type: "starter" when the player is a planned starter, else "rotation"
        status: The player's current availability
        rotation_numbers: Rotations that move the player in or out, ascending
    """
    player_id: str
    type: str
    status: AvailabilityStatus
    rotation_numbers: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "player_id": self.player_id,
            "type": self.type,
            "status": self.status.value,
            "rotation_numbers": list(self.rotation_numbers),
        }


def detect_plan_conflicts(
    starting_lineup: Sequence[LineupSlot],
    rotations: Iterable[PlannedRotation],
    status_of: StatusLookup,
) -> List[PlanConflict]:
    """
    Find every absent or injured player the plan references.

    Args:
        starting_lineup: Planned starters
        rotations: Planned rotations in any order
        status_of: Current availability of a player

    Returns:
        One conflict per player: starters first in lineup order, then
        rotation-only players in order of first reference
    """
    conflicts: Dict[str, PlanConflict] = {}

    for slot in starting_lineup:
        status = status_of(slot.player_id)
        if status.is_unavailable and slot.player_id not in conflicts:
            conflicts[slot.player_id] = PlanConflict(slot.player_id, CONFLICT_STARTER, status)

    for rotation in sorted(rotations, key=lambda r: r.rotation_number):
        for sub in rotation.substitutions:
            for player_id in (sub.player_out_id, sub.player_in_id):
                status = status_of(player_id)
                if not status.is_unavailable:
                    continue
                conflict = conflicts.get(player_id)
                if conflict is None:
                    conflict = conflicts[player_id] = PlanConflict(player_id, CONFLICT_ROTATION, status)
                if rotation.rotation_number not in conflict.rotation_numbers:
                    conflict.rotation_numbers.append(rotation.rotation_number)

    return list(conflicts.values())


def rotation_conflicts(rotation: PlannedRotation, status_of: StatusLookup) -> List[str]:
    """Unavailable players moved by a single rotation, in substitution order."""
    found: List[str] = []
    for sub in rotation.substitutions:
        for player_id in (sub.player_out_id, sub.player_in_id):
            if player_id not in found and status_of(player_id).is_unavailable:
                found.append(player_id)
    return found


def rotations_referencing_player(
    rotations: Iterable[PlannedRotation],
    player_id: str,
    after_minute: Optional[int] = None,
) -> List[int]:
    """
    Rotation numbers that move a player in or out.

    Args:
        rotations: Planned rotations
        player_id: Player to look for
        after_minute: Only count rotations strictly after this game minute

    Returns:
        Matching rotation numbers, ascending
    """
    return sorted(
        r.rotation_number for r in rotations
        if (after_minute is None or r.game_minute > after_minute) and r.references(player_id)
    )
