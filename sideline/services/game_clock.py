"""
Game clock state machine for the Sideline Rotation Engine.

The clock of a game is an immutable ClockState value. Every transition is a
plain function that takes a state and returns a new one, so several games (or
several simulated copies of one game) can run side by side without sharing
anything. Side effects such as closing play-time intervals or writing
checkpoints belong to the caller; ``tick`` only reports them as events.

    scheduled -> in-progress -> halftime -> in-progress (half 2) -> completed
                 in-progress ------------------------------------> completed
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from ..models import Game, GameStatus
from ..utils.constants import CHECKPOINT_INTERVAL_TICKS, MAX_GAME_SECONDS
from .errors import InvalidTransition, StaleOperation


class ClockEvent(Enum):
    """Side effects a tick asks the caller to perform."""
    HALFTIME_DUE = "halftime_due"
    FORCE_END_DUE = "force_end_due"
    CHECKPOINT_DUE = "checkpoint_due"
    ROTATION_UPCOMING = "rotation_upcoming"


@dataclass(frozen=True)
class ClockState:
    """
    Clock of a single game.

    Attributes:
        status: Lifecycle state
        current_half: Active half (1 or 2)
        elapsed_seconds: Game-elapsed seconds; never reset between halves
        running: Whether ticks advance the clock
        anchor_ts: Wall-clock time the clock last started running
        manual_pause: Set the moment the coach pauses, so an incoming external
                      snapshot cannot restart the clock before the pause is stored
        halftime_triggered: Automatic halftime already fired
        end_triggered: Automatic end already fired
        ticks_since_checkpoint: Ticks since elapsed time was last checkpointed
    """
    status: GameStatus = GameStatus.SCHEDULED
    current_half: int = 1
    elapsed_seconds: int = 0
    running: bool = False
    anchor_ts: Optional[float] = None
    manual_pause: bool = False
    halftime_triggered: bool = False
    end_triggered: bool = False
    ticks_since_checkpoint: int = 0

    @classmethod
    def from_game(cls, game: Game, now: float) -> 'ClockState':
        """Rebuild a clock from a stored game, as a newly connected observer would."""
        return apply_external_snapshot(cls(), game, now)

    @property
    def is_live(self) -> bool:
        """In progress and running."""
        return self.status == GameStatus.IN_PROGRESS and self.running

    @property
    def current_minute(self) -> int:
        return self.elapsed_seconds // 60

    def to_dict(self):
        return {
            "status": self.status.value,
            "current_half": self.current_half,
            "elapsed_seconds": self.elapsed_seconds,
            "running": self.running,
            "manual_pause": self.manual_pause,
        }


@dataclass(frozen=True)
class TickResult:
    state: ClockState
    events: Tuple[ClockEvent, ...] = ()


# ---------- Transitions ---------- #

def start_clock(state: ClockState, now: float) -> ClockState:
    """Kick off: scheduled -> in-progress, first half, running."""
    if state.status != GameStatus.SCHEDULED:
        raise StaleOperation(f"Game already started (status {state.status.value})")
    return replace(
        state,
        status=GameStatus.IN_PROGRESS,
        current_half=1,
        running=True,
        anchor_ts=now,
        manual_pause=False,
        ticks_since_checkpoint=0,
    )


def pause_clock(state: ClockState) -> ClockState:
    """
    Stop the clock at its current value.

    The manual-pause flag is raised immediately; the caller clears it once
    the pause has been stored.
    """
    if state.status == GameStatus.COMPLETED:
        raise StaleOperation("Game is already over")
    if state.status != GameStatus.IN_PROGRESS:
        raise InvalidTransition(f"Cannot pause a game that is {state.status.value}")
    if not state.running:
        raise StaleOperation("Clock is already paused")
    return replace(state, running=False, anchor_ts=None, manual_pause=True)


def clear_manual_pause(state: ClockState) -> ClockState:
    return replace(state, manual_pause=False)


def resume_clock(state: ClockState, now: float) -> ClockState:
    """Restart a paused clock from its stored elapsed value."""
    if state.status == GameStatus.COMPLETED:
        raise StaleOperation("Game is already over")
    if state.status == GameStatus.SCHEDULED:
        raise InvalidTransition("Game has not started")
    if state.status == GameStatus.HALFTIME:
        raise InvalidTransition("Start the second half to resume from halftime")
    if state.running:
        raise StaleOperation("Clock is already running")
    return replace(state, running=True, anchor_ts=now, manual_pause=False)


def tick(
    state: ClockState,
    half_length_seconds: int,
    max_seconds: int = MAX_GAME_SECONDS,
    checkpoint_interval: int = CHECKPOINT_INTERVAL_TICKS,
) -> TickResult:
    """
    Advance a running clock by one second.

    When the first half runs out the clock stops at the half boundary (not
    one second past it) and HALFTIME_DUE is reported once. Reaching the
    safety cap stops the clock at the cap and reports FORCE_END_DUE once.
    Every ``checkpoint_interval`` ticks CHECKPOINT_DUE is reported.

    Returns:
        TickResult with the new state; the state is unchanged when the clock
        is not running
    """
    if not state.is_live:
        return TickResult(state)

    advanced = state.elapsed_seconds + 1

    if state.current_half == 1 and advanced >= half_length_seconds and not state.halftime_triggered:
        boundary = max(half_length_seconds, state.elapsed_seconds)
        return TickResult(
            replace(state, elapsed_seconds=boundary, running=False, anchor_ts=None,
                    halftime_triggered=True, ticks_since_checkpoint=0),
            (ClockEvent.HALFTIME_DUE,),
        )

    if advanced >= max_seconds and not state.end_triggered:
        cap = max(max_seconds, state.elapsed_seconds)
        return TickResult(
            replace(state, elapsed_seconds=cap, running=False, anchor_ts=None,
                    end_triggered=True, ticks_since_checkpoint=0),
            (ClockEvent.FORCE_END_DUE,),
        )

    ticks = state.ticks_since_checkpoint + 1
    events: Tuple[ClockEvent, ...] = ()
    if ticks >= checkpoint_interval:
        events = (ClockEvent.CHECKPOINT_DUE,)
        ticks = 0
    return TickResult(replace(state, elapsed_seconds=advanced, ticks_since_checkpoint=ticks), events)


def mark_checkpoint(state: ClockState) -> ClockState:
    """Restart the checkpoint countdown after elapsed time was stored."""
    return replace(state, ticks_since_checkpoint=0)


def enter_halftime(state: ClockState) -> ClockState:
    """First half over: freeze the clock without resetting elapsed time."""
    if state.status == GameStatus.SCHEDULED:
        raise InvalidTransition("Game has not started")
    if (
        state.status in (GameStatus.HALFTIME, GameStatus.COMPLETED)
        or state.current_half != 1
    ):
        raise StaleOperation("First half is already over")
    return replace(
        state,
        status=GameStatus.HALFTIME,
        running=False,
        anchor_ts=None,
        manual_pause=False,
        halftime_triggered=True,
    )


def begin_second_half(state: ClockState, now: float) -> ClockState:
    """Halftime -> in-progress, second half, clock running from the frozen value."""
    if state.status == GameStatus.COMPLETED or (
        state.status == GameStatus.IN_PROGRESS and state.current_half == 2
    ):
        raise StaleOperation("Second half already started")
    if state.status != GameStatus.HALFTIME:
        raise InvalidTransition(f"Second half can only start from halftime (status {state.status.value})")
    return replace(
        state,
        status=GameStatus.IN_PROGRESS,
        current_half=2,
        running=True,
        anchor_ts=now,
        manual_pause=False,
        ticks_since_checkpoint=0,
    )


def end_clock(state: ClockState) -> ClockState:
    """Full time. A second call raises StaleOperation."""
    if state.status == GameStatus.COMPLETED:
        raise StaleOperation("Game has already ended")
    if state.status != GameStatus.IN_PROGRESS:
        raise InvalidTransition(f"Cannot end a game that is {state.status.value}")
    return replace(
        state,
        status=GameStatus.COMPLETED,
        running=False,
        anchor_ts=None,
        manual_pause=False,
        end_triggered=True,
    )


# ---------- External snapshots ---------- #

def apply_external_snapshot(state: ClockState, game: Game, now: float) -> ClockState:
    """
    Merge a stored game record into the local clock.

    Rules, in order:
      * a clock running locally for the same half keeps its own time
      * a game that is now completed adopts the final stored elapsed time
      * an in-progress game with a wall-clock anchor resumes at
        ``checkpoint + (now - anchor)``, unless the coach just paused locally
      * anything else adopts the stored checkpoint, paused

    Args:
        state: Local clock
        game: Authoritative game record
        now: Current wall-clock time

    Returns:
        The merged clock state
    """
    if (
        state.running
        and game.status == GameStatus.IN_PROGRESS
        and game.current_half == state.current_half
    ):
        return state

    guards = dict(
        halftime_triggered=state.halftime_triggered or game.current_half > 1
        or game.status in (GameStatus.HALFTIME, GameStatus.COMPLETED),
        end_triggered=state.end_triggered or game.status == GameStatus.COMPLETED,
    )

    if game.status == GameStatus.COMPLETED:
        return replace(
            state, status=game.status, current_half=game.current_half,
            elapsed_seconds=game.elapsed_seconds, running=False, anchor_ts=None,
            manual_pause=False, **guards,
        )

    if game.status == GameStatus.IN_PROGRESS and state.manual_pause:
        return replace(
            state, status=game.status, current_half=game.current_half,
            elapsed_seconds=max(state.elapsed_seconds, game.elapsed_seconds),
            running=False, anchor_ts=None, **guards,
        )

    if game.status == GameStatus.IN_PROGRESS and game.last_resume_ts is not None:
        return replace(
            state, status=game.status, current_half=game.current_half,
            elapsed_seconds=game.elapsed_at(now), running=True, anchor_ts=now,
            ticks_since_checkpoint=0, **guards,
        )

    return replace(
        state, status=game.status, current_half=game.current_half,
        elapsed_seconds=game.elapsed_seconds, running=False, anchor_ts=None, **guards,
    )
