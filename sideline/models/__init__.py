"""
Models package for the Sideline Rotation Engine.

This package contains the core data models used throughout the application.
"""
from .game import Game, GameConfig, GameStatus
from .play_time import LineupAssignment, PlayTimeRecord, Substitution, QueueEntry
from .availability import AvailabilityStatus, PlayerAvailability
from .plan import (
    DecodeResult, GamePlan, LineupSlot, PlannedRotation, PlannedSubstitution,
    decode_substitutions, encode_substitutions
)
from .player import FieldPosition, RosterPlayer

__all__ = [
    "Game", "GameConfig", "GameStatus",
    "LineupAssignment", "PlayTimeRecord", "Substitution", "QueueEntry",
    "AvailabilityStatus", "PlayerAvailability",
    "DecodeResult", "GamePlan", "LineupSlot", "PlannedRotation", "PlannedSubstitution",
    "decode_substitutions", "encode_substitutions",
    "FieldPosition", "RosterPlayer",
]
