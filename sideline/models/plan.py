"""
Game plan models for the Sideline Rotation Engine.

A GamePlan carries the starting lineup and an ordered list of PlannedRotation
slots, each suggesting substitutions at a minute mark. Plans are advisory:
nothing here mutates the live lineup.

Older records stored each rotation's substitutions as a JSON string. Those
blobs are decoded through ``decode_substitutions`` which reports malformed data
as a DecodeResult instead of raising, so a damaged rotation shows up empty with
an error message rather than breaking the game screen.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
import json

from .play_time import new_record_id


@dataclass(frozen=True)
class PlannedSubstitution:
    """A suggested swap at one position."""
    player_out_id: str
    player_in_id: str
    position_id: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "playerOutId": self.player_out_id,
            "playerInId": self.player_in_id,
            "positionId": self.position_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlannedSubstitution':
        """Accept both snake_case and the legacy camelCase keys."""
        return cls(
            player_out_id=str(data.get("player_out_id", data.get("playerOutId"))),
            player_in_id=str(data.get("player_in_id", data.get("playerInId"))),
            position_id=str(data.get("position_id", data.get("positionId"))),
        )


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding a stored substitution list."""
    substitutions: Tuple[PlannedSubstitution, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def decode_substitutions(raw: Any) -> DecodeResult:
    """
    Decode a stored substitution list.

    Args:
        raw: JSON string, list of dicts, list of PlannedSubstitution, or None

    Returns:
        DecodeResult with the substitutions, or with an error message when the
        data is malformed
    """
    if raw is None or raw == "":
        return DecodeResult()

    data = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            return DecodeResult(error=f"Failed to parse substitutions data: {e}")

    if not isinstance(data, (list, tuple)):
        return DecodeResult(error="Substitutions data is not a list")

    subs: List[PlannedSubstitution] = []
    for item in data:
        if isinstance(item, PlannedSubstitution):
            subs.append(item)
            continue
        if not isinstance(item, dict):
            return DecodeResult(error="Substitution entry is not an object")
        keys_ok = all(
            item.get(snake) is not None or item.get(camel) is not None
            for snake, camel in (
                ("player_out_id", "playerOutId"),
                ("player_in_id", "playerInId"),
                ("position_id", "positionId"),
            )
        )
        if not keys_ok:
            return DecodeResult(error="Substitution entry is missing a player or position")
        subs.append(PlannedSubstitution.from_dict(item))
    return DecodeResult(substitutions=tuple(subs))


def encode_substitutions(substitutions: Iterable[PlannedSubstitution]) -> str:
    """Encode substitutions in the legacy JSON string form."""
    return json.dumps([s.to_dict() for s in substitutions])


@dataclass
class PlannedRotation:
    """
    A rotation point in the plan.

    Attributes:
        plan_id: Owning game plan
        rotation_number: 1-based order of the rotation
        game_minute: Minute mark the rotation is planned for
        half: Half the rotation belongs to
        substitutions: Ordered suggested substitutions
        viewed_at: When the coach was first warned about it (epoch seconds)
        decode_error: Set when stored substitutions could not be decoded
        rotation_id: Unique record identifier
    """
    plan_id: str
    rotation_number: int
    game_minute: int
    half: int
    substitutions: Tuple[PlannedSubstitution, ...] = ()
    viewed_at: Optional[float] = None
    decode_error: Optional[str] = None
    rotation_id: str = field(default_factory=new_record_id)

    def references(self, player_id: str) -> bool:
        """Return True when any substitution moves the player in or out."""
        return any(
            s.player_out_id == player_id or s.player_in_id == player_id
            for s in self.substitutions
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "rotation_id": self.rotation_id,
            "plan_id": self.plan_id,
            "rotation_number": self.rotation_number,
            "game_minute": self.game_minute,
            "half": self.half,
            "substitutions": [s.to_dict() for s in self.substitutions],
            "viewed_at": self.viewed_at,
            "decode_error": self.decode_error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlannedRotation':
        """
        Create from dictionary for JSON deserialization.

        Accepts ``substitutions`` as a list or ``planned_substitutions`` as a
        legacy JSON string; undecodable data yields an empty rotation with
        ``decode_error`` set.
        """
        raw = data.get("substitutions", data.get("planned_substitutions"))
        decoded = decode_substitutions(raw)
        return cls(
            plan_id=data.get("plan_id", ""),
            rotation_number=int(data["rotation_number"]),
            game_minute=int(data.get("game_minute") or 0),
            half=int(data.get("half") or 1),
            substitutions=decoded.substitutions,
            viewed_at=data.get("viewed_at"),
            decode_error=decoded.error or data.get("decode_error"),
            rotation_id=data.get("rotation_id") or new_record_id(),
        )


@dataclass
class LineupSlot:
    """A (player, position) pair of a planned lineup."""
    player_id: str
    position_id: str

    def to_dict(self) -> Dict[str, str]:
        return {"player_id": self.player_id, "position_id": self.position_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineupSlot':
        return cls(
            player_id=str(data.get("player_id", data.get("playerId"))),
            position_id=str(data.get("position_id", data.get("positionId"))),
        )


def _slots_from(raw: Any) -> List[LineupSlot]:
    if not raw:
        return []
    if isinstance(raw, str):
        raw = json.loads(raw)
    return [s if isinstance(s, LineupSlot) else LineupSlot.from_dict(s) for s in raw]


@dataclass
class GamePlan:
    """
    Pre-game rotation plan.

    Attributes:
        game_id: Game the plan is for
        rotation_interval_minutes: Minutes between rotations
        total_rotations: Number of rotation slots in the plan
        starting_lineup: Planned starters
        halftime_lineup: Lineup the coach wants after halftime, if set
        plan_id: Unique record identifier
    """
    game_id: str
    rotation_interval_minutes: int
    total_rotations: int = 0
    starting_lineup: List[LineupSlot] = field(default_factory=list)
    halftime_lineup: List[LineupSlot] = field(default_factory=list)
    plan_id: str = field(default_factory=new_record_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "plan_id": self.plan_id,
            "game_id": self.game_id,
            "rotation_interval_minutes": self.rotation_interval_minutes,
            "total_rotations": self.total_rotations,
            "starting_lineup": [s.to_dict() for s in self.starting_lineup],
            "halftime_lineup": [s.to_dict() for s in self.halftime_lineup],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GamePlan':
        """Create from dictionary for JSON deserialization."""
        return cls(
            game_id=data["game_id"],
            rotation_interval_minutes=int(data.get("rotation_interval_minutes") or 0),
            total_rotations=int(data.get("total_rotations") or 0),
            starting_lineup=_slots_from(data.get("starting_lineup")),
            halftime_lineup=_slots_from(data.get("halftime_lineup")),
            plan_id=data.get("plan_id") or new_record_id(),
        )
