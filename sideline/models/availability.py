"""
Player availability model for the Sideline Rotation Engine.

A game can mark each player available, absent, injured or arriving late.
No record at all means the player is available.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class AvailabilityStatus(Enum):
    """Per-game availability of a player."""
    AVAILABLE = "available"
    ABSENT = "absent"
    LATE_ARRIVAL = "late-arrival"
    INJURED = "injured"

    @property
    def is_unavailable(self) -> bool:
        """Absent and injured players cannot take part in the game."""
        return self in (AvailabilityStatus.ABSENT, AvailabilityStatus.INJURED)


@dataclass
class PlayerAvailability:
    """
    Availability record for one player in one game.

    Attributes:
        game_id: Game the record applies to
        player_id: Player the record applies to
        status: Availability status
        reason: Free-text note (e.g. "Injured at 15' (1st Half)")
        marked_at: When the status was set (epoch seconds)
        available_from_minute: Expected arrival minute for late arrivals
    """
    game_id: str
    player_id: str
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE
    reason: Optional[str] = None
    marked_at: Optional[float] = None
    available_from_minute: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "game_id": self.game_id,
            "player_id": self.player_id,
            "status": self.status.value,
            "reason": self.reason,
            "marked_at": self.marked_at,
            "available_from_minute": self.available_from_minute,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlayerAvailability':
        """Create from dictionary for JSON deserialization."""
        arrival = data.get("available_from_minute")
        return cls(
            game_id=data["game_id"],
            player_id=data["player_id"],
            status=AvailabilityStatus(data.get("status", AvailabilityStatus.AVAILABLE.value)),
            reason=data.get("reason"),
            marked_at=data.get("marked_at"),
            available_from_minute=int(arrival) if arrival is not None else None,
        )
