"""
Error types raised by the Sideline Rotation Engine services.

Every error carries a short ``kind`` string so API layers can report the
failure without matching on class names.
"""
from typing import List, Optional


class EngineError(Exception):
    """Base class for all engine errors."""
    kind = "engine_error"


class InvalidTransition(EngineError):
    """Clock action attempted from a state it can never run from."""
    kind = "invalid_transition"


class StaleOperation(EngineError):
    """Clock action whose target state has already been reached or passed."""
    kind = "stale_operation"


class NoCurrentOccupant(EngineError):
    """Substitution target position is empty or held by someone else."""
    kind = "no_current_occupant"


class DuplicateOpenInterval(EngineError):
    """Attempted to start a second open play-time interval for a player."""
    kind = "duplicate_open_interval"


class RecalculationBlocked(EngineError):
    """Rotation recalculation has no starting lineup or no available players."""
    kind = "recalculation_blocked"


class QueueConflict(EngineError):
    """Player or position already has a queued substitution."""
    kind = "queue_conflict"


class PositionOccupied(EngineError):
    """Direct assignment to a position that is already filled."""
    kind = "position_occupied"


class PlayerAlreadyAssigned(EngineError):
    """Player already holds a lineup assignment."""
    kind = "player_already_assigned"


class PersistenceError(EngineError):
    """The record store rejected a write during a transition."""
    kind = "persistence_error"


class SubstitutionFailed(EngineError):
    """
    A substitution stopped part-way through.

    Attributes:
        step: Name of the step that failed
        completed_steps: Steps that were applied before the failure
        retryable: Whether calling the substitution again is safe
    """
    kind = "substitution_failed"

    def __init__(
        self,
        step: str,
        completed_steps: Optional[List[str]] = None,
        cause: Optional[BaseException] = None,
        retryable: bool = True,
    ):
        self.step = step
        self.completed_steps = list(completed_steps or [])
        self.cause = cause
        self.retryable = retryable
        done = ", ".join(self.completed_steps) or "none"
        super().__init__(f"Substitution failed at step '{step}' (completed: {done}): {cause}")
