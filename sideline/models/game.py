"""
Game model for the Sideline Rotation Engine.

This module contains the Game dataclass, which is the record-store view of a
scheduled match, and the GameConfig dataclass holding the per-team timing and
rotation settings that drive the clock and the planner.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.constants import (
    CHECKPOINT_INTERVAL_TICKS, DEFAULT_DRIFT_THRESHOLD, DEFAULT_HALF_LENGTH_MIN,
    DEFAULT_MAX_PLAYERS_ON_FIELD, DEFAULT_ROTATION_INTERVAL_MIN, MAX_FIELD_SIZE,
    MAX_GAME_SECONDS, MIN_FIELD_SIZE, ROTATION_WARNING_MIN
)


class GameStatus(Enum):
    """Lifecycle states of a game."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    HALFTIME = "halftime"
    COMPLETED = "completed"


@dataclass
class Game:
    """
    Represents a scheduled match as persisted in the record store.

    Attributes:
        game_id: Unique identifier of the game
        team_id: Owning team
        opponent: Opponent name (display only)
        status: Current lifecycle state
        current_half: Active half (1 or 2)
        elapsed_seconds: Authoritative game clock value at the last checkpoint
        last_resume_ts: Wall-clock anchor (epoch seconds) of the last checkpoint
                        while running; None while paused or stopped
        our_score: Goals scored by the team
        their_score: Goals conceded
    """
    game_id: str
    team_id: str = ""
    opponent: str = ""
    status: GameStatus = GameStatus.SCHEDULED
    current_half: int = 1
    elapsed_seconds: int = 0
    last_resume_ts: Optional[float] = None
    our_score: int = 0
    their_score: int = 0

    def elapsed_at(self, now: float) -> int:
        """
        Reconstruct elapsed game time for an observer.

        While the game is running the checkpoint is extended by the wall-clock
        time since its anchor; otherwise the checkpoint is the answer.

        Args:
            now: Current timestamp in epoch seconds

        Returns:
            Elapsed game seconds
        """
        if self.status == GameStatus.IN_PROGRESS and self.last_resume_ts is not None:
            return self.elapsed_seconds + max(0, int(now - self.last_resume_ts))
        return self.elapsed_seconds

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "game_id": self.game_id,
            "team_id": self.team_id,
            "opponent": self.opponent,
            "status": self.status.value,
            "current_half": self.current_half,
            "elapsed_seconds": self.elapsed_seconds,
            "last_resume_ts": self.last_resume_ts,
            "our_score": self.our_score,
            "their_score": self.their_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Game':
        """Create from dictionary for JSON deserialization."""
        return cls(
            game_id=data["game_id"],
            team_id=data.get("team_id", ""),
            opponent=data.get("opponent", ""),
            status=GameStatus(data.get("status", GameStatus.SCHEDULED.value)),
            current_half=int(data.get("current_half") or 1),
            elapsed_seconds=int(data.get("elapsed_seconds") or 0),
            last_resume_ts=data.get("last_resume_ts"),
            our_score=int(data.get("our_score") or 0),
            their_score=int(data.get("their_score") or 0),
        )


@dataclass
class GameConfig:
    """
    Timing and rotation settings for a game.

    Attributes:
        half_length_minutes: Regulation length of each half
        max_players_on_field: Number of on-field positions
        rotation_interval_minutes: Minutes between planned rotations
        goalie_position_id: Goalkeeper slot, only rotated at halftime
        checkpoint_interval_ticks: Ticks between elapsed-time checkpoints
        max_game_seconds: Safety cap after which the game is force-ended
        rotation_warning_minutes: Lead time of the upcoming-rotation event
        drift_threshold: Projected-time spread the planner tolerates before swapping
    """
    half_length_minutes: int = DEFAULT_HALF_LENGTH_MIN
    max_players_on_field: int = DEFAULT_MAX_PLAYERS_ON_FIELD
    rotation_interval_minutes: int = DEFAULT_ROTATION_INTERVAL_MIN
    goalie_position_id: Optional[str] = None
    checkpoint_interval_ticks: int = CHECKPOINT_INTERVAL_TICKS
    max_game_seconds: int = MAX_GAME_SECONDS
    rotation_warning_minutes: int = ROTATION_WARNING_MIN
    drift_threshold: int = DEFAULT_DRIFT_THRESHOLD

    @property
    def half_length_seconds(self) -> int:
        return self.half_length_minutes * 60

    @property
    def total_game_minutes(self) -> int:
        return self.half_length_minutes * 2

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ValueError: If any setting is out of range
        """
        if self.half_length_minutes <= 0:
            raise ValueError("Half length must be a positive number of minutes")
        if not MIN_FIELD_SIZE <= self.max_players_on_field <= MAX_FIELD_SIZE:
            raise ValueError(
                f"Players on field must be between {MIN_FIELD_SIZE} and {MAX_FIELD_SIZE}"
            )
        if self.rotation_interval_minutes <= 0:
            raise ValueError("Rotation interval must be a positive number of minutes")
        if self.checkpoint_interval_ticks <= 0:
            raise ValueError("Checkpoint interval must be at least one tick")
        if self.max_game_seconds < self.half_length_seconds * 2:
            raise ValueError("Safety cap cannot be shorter than regulation time")
        if self.rotation_warning_minutes < 0 or self.drift_threshold < 0:
            raise ValueError("Rotation warning and drift threshold cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "half_length_minutes": self.half_length_minutes,
            "max_players_on_field": self.max_players_on_field,
            "rotation_interval_minutes": self.rotation_interval_minutes,
            "goalie_position_id": self.goalie_position_id,
            "checkpoint_interval_ticks": self.checkpoint_interval_ticks,
            "max_game_seconds": self.max_game_seconds,
            "rotation_warning_minutes": self.rotation_warning_minutes,
            "drift_threshold": self.drift_threshold,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'GameConfig':
        """Create a validated config from a dictionary, using defaults for missing keys."""
        if not data:
            return cls()
        config = cls(
            half_length_minutes=int(data.get("half_length_minutes", DEFAULT_HALF_LENGTH_MIN)),
            max_players_on_field=int(data.get("max_players_on_field", DEFAULT_MAX_PLAYERS_ON_FIELD)),
            rotation_interval_minutes=int(
                data.get("rotation_interval_minutes", DEFAULT_ROTATION_INTERVAL_MIN)
            ),
            goalie_position_id=data.get("goalie_position_id"),
            checkpoint_interval_ticks=int(
                data.get("checkpoint_interval_ticks", CHECKPOINT_INTERVAL_TICKS)
            ),
            max_game_seconds=int(data.get("max_game_seconds", MAX_GAME_SECONDS)),
            rotation_warning_minutes=int(data.get("rotation_warning_minutes", ROTATION_WARNING_MIN)),
            drift_threshold=int(data.get("drift_threshold", DEFAULT_DRIFT_THRESHOLD)),
        )
        config.validate()
        return config
