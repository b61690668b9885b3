"""
Services package for the Sideline Rotation Engine.

This package contains the clock state machine, the play-time ledger, the
substitution engine, the rotation planner and the session that ties them
together for one game.
"""
from .errors import (
    EngineError, InvalidTransition, StaleOperation, NoCurrentOccupant,
    DuplicateOpenInterval, RecalculationBlocked, QueueConflict, PositionOccupied,
    PlayerAlreadyAssigned, PersistenceError, SubstitutionFailed
)
from .record_store import ChangeEvent, RecordStore, InMemoryRecordStore
from .roster_provider import RosterProvider, StaticRosterProvider
from .time_ledger import TimeLedger
from .availability_service import AvailabilityTracker
from .substitution_service import BatchResult, SubstitutionEngine, SubstitutionQueue
from .game_clock import ClockEvent, ClockState, TickResult
from .conflict_detector import PlanConflict, detect_plan_conflicts
from .game_session import GameSession, copy_game_plan
from .game_commands import GameCommandManager, build_command
from .clock_ticker import ClockTicker
from .persistence_service import PersistenceService

__all__ = [
    "EngineError", "InvalidTransition", "StaleOperation", "NoCurrentOccupant",
    "DuplicateOpenInterval", "RecalculationBlocked", "QueueConflict", "PositionOccupied",
    "PlayerAlreadyAssigned", "PersistenceError", "SubstitutionFailed",
    "ChangeEvent", "RecordStore", "InMemoryRecordStore",
    "RosterProvider", "StaticRosterProvider",
    "TimeLedger", "AvailabilityTracker",
    "BatchResult", "SubstitutionEngine", "SubstitutionQueue",
    "ClockEvent", "ClockState", "TickResult",
    "PlanConflict", "detect_plan_conflicts",
    "GameSession", "copy_game_plan",
    "GameCommandManager", "build_command",
    "ClockTicker", "PersistenceService",
]
