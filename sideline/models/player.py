"""
Roster models for the Sideline Rotation Engine.

The engine only reads the roster: players with their jersey numbers and
preferred positions, and the field positions of the team's formation.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class RosterPlayer:
    """
    A player on the team roster.

    Attributes:
        player_id: Unique identifier (used everywhere the engine refers to a player)
        number: Jersey number, also the planner's tie-breaker
        first_name: Given name
        last_name: Family name
        preferred_positions: Comma-separated position ids (e.g. "pos-cm,pos-st")
    """
    player_id: str
    number: int = 0
    first_name: str = ""
    last_name: str = ""
    preferred_positions: Optional[str] = ""

    def preferred_list(self) -> List[str]:
        """
        Parse preferred positions into a list.

        Returns:
            List of preferred position ids in the order given
        """
        return [p.strip() for p in (self.preferred_positions or "").split(",") if p.strip()]

    def display_name(self) -> str:
        """Return a sideline label such as ``#7 Sam``."""
        name = self.first_name or self.last_name or self.player_id
        return f"#{self.number} {name}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "player_id": self.player_id,
            "number": self.number,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "preferred_positions": self.preferred_positions,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RosterPlayer':
        """Create from dictionary for JSON deserialization."""
        return cls(
            player_id=data["player_id"],
            number=int(data.get("number") or 0),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            preferred_positions=data.get("preferred_positions", ""),
        )


@dataclass
class FieldPosition:
    """A position of the team's formation."""
    position_id: str
    name: str = ""
    abbreviation: str = ""
    sort_order: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position_id": self.position_id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "sort_order": self.sort_order,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldPosition':
        return cls(
            position_id=data["position_id"],
            name=data.get("name", ""),
            abbreviation=data.get("abbreviation", ""),
            sort_order=int(data.get("sort_order") or 0),
        )
