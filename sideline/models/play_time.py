"""
Lineup and play-time models for the Sideline Rotation Engine.

This module contains the records the live engine mutates during a game:
lineup assignments, play-time intervals (the time ledger), the substitution
history, and transient substitution queue entries.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import uuid


def new_record_id() -> str:
    """Generate a unique record identifier."""
    return uuid.uuid4().hex


@dataclass
class LineupAssignment:
    """
    Current occupant of a field position.

    Attributes:
        game_id: Game the assignment belongs to
        player_id: Player occupying the position
        position_id: Field position
        is_starter: Whether the assignment was made before kickoff
        assignment_id: Unique record identifier
    """
    game_id: str
    player_id: str
    position_id: str
    is_starter: bool = False
    assignment_id: str = field(default_factory=new_record_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "assignment_id": self.assignment_id,
            "game_id": self.game_id,
            "player_id": self.player_id,
            "position_id": self.position_id,
            "is_starter": self.is_starter,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineupAssignment':
        """Create from dictionary for JSON deserialization."""
        return cls(
            game_id=data["game_id"],
            player_id=data["player_id"],
            position_id=data["position_id"],
            is_starter=bool(data.get("is_starter", False)),
            assignment_id=data.get("assignment_id") or new_record_id(),
        )


@dataclass
class PlayTimeRecord:
    """
    One interval a player spent on the field, in game-elapsed seconds.

    An interval with no end time is open: the player is currently playing.
    """
    game_id: str
    player_id: str
    position_id: str
    start_game_seconds: int
    end_game_seconds: Optional[int] = None
    record_id: str = field(default_factory=new_record_id)

    @property
    def is_open(self) -> bool:
        return self.end_game_seconds is None

    def duration(self, current_seconds: Optional[int] = None) -> int:
        """
        Seconds covered by this interval.

        Args:
            current_seconds: Current game time, used for an open interval

        Returns:
            Closed duration, live duration of an open interval, or 0 for an
            open interval when no current time is given
        """
        if self.end_game_seconds is not None:
            return self.end_game_seconds - self.start_game_seconds
        if current_seconds is None:
            return 0
        return max(0, current_seconds - self.start_game_seconds)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "record_id": self.record_id,
            "game_id": self.game_id,
            "player_id": self.player_id,
            "position_id": self.position_id,
            "start_game_seconds": self.start_game_seconds,
            "end_game_seconds": self.end_game_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlayTimeRecord':
        """Create from dictionary for JSON deserialization."""
        end = data.get("end_game_seconds")
        return cls(
            game_id=data["game_id"],
            player_id=data["player_id"],
            position_id=data.get("position_id", ""),
            start_game_seconds=int(data.get("start_game_seconds") or 0),
            end_game_seconds=int(end) if end is not None else None,
            record_id=data.get("record_id") or new_record_id(),
        )


@dataclass
class Substitution:
    """Executed substitution, kept as game history."""
    game_id: str
    position_id: str
    player_out_id: str
    player_in_id: str
    half: int
    game_seconds: int
    substitution_id: str = field(default_factory=new_record_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "substitution_id": self.substitution_id,
            "game_id": self.game_id,
            "position_id": self.position_id,
            "player_out_id": self.player_out_id,
            "player_in_id": self.player_in_id,
            "half": self.half,
            "game_seconds": self.game_seconds,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Substitution':
        """Create from dictionary for JSON deserialization."""
        return cls(
            game_id=data["game_id"],
            position_id=data["position_id"],
            player_out_id=data["player_out_id"],
            player_in_id=data["player_in_id"],
            half=int(data.get("half") or 1),
            game_seconds=int(data.get("game_seconds") or 0),
            substitution_id=data.get("substitution_id") or new_record_id(),
        )


@dataclass(frozen=True)
class QueueEntry:
    """Declared intent to bring a player on at a position (not persisted)."""
    player_id: str
    position_id: str

    def to_dict(self) -> Dict[str, str]:
        return {"player_id": self.player_id, "position_id": self.position_id}
