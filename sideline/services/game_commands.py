"""
Command pattern implementation for game actions.

Every action of the game command surface is a Command object built from a
name and a JSON payload, so the web layer (or any other caller) can run
actions uniformly and keep a readable history of what the coach did.
"""
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Mapping, Optional, Type

from ..models import AvailabilityStatus, LineupSlot
from ..utils import fmt_mmss, now_ts
from .game_session import GameSession


class Command(ABC):
    """Abstract base class for all game commands - Command pattern."""

    def __init__(self, session: GameSession, payload: Optional[Mapping[str, Any]] = None):
        self.session = session
        self.payload = dict(payload or {})

    @abstractmethod
    def execute(self) -> Any:
        """
        Execute the command.

        Returns:
            JSON-serializable result of the action

        Raises:
            EngineError: If the engine rejects the action
        """

    @property
    @abstractmethod
    def description(self) -> str:
        """Get human-readable description of the command."""

    def _require(self, key: str) -> Any:
        value = self.payload.get(key)
        if value is None or value == "":
            raise ValueError(f"Missing required field '{key}'")
        return value

    def _at(self) -> str:
        return fmt_mmss(self.session.current_elapsed())


class StartGameCommand(Command):
    def execute(self) -> Any:
        warnings = self.session.start_game()
        return {"warnings": [w.to_dict() for w in warnings]}

    @property
    def description(self) -> str:
        return "Start game"


class PauseGameCommand(Command):
    def execute(self) -> Any:
        self.session.pause()
        return {"elapsed_seconds": self.session.current_elapsed()}

    @property
    def description(self) -> str:
        return f"Pause game at {self._at()}"


class ResumeGameCommand(Command):
    def execute(self) -> Any:
        self.session.resume()
        return {"elapsed_seconds": self.session.current_elapsed()}

    @property
    def description(self) -> str:
        return f"Resume game at {self._at()}"


class HalftimeCommand(Command):
    def execute(self) -> Any:
        return {"closed_intervals": self.session.halftime()}

    @property
    def description(self) -> str:
        return f"Halftime at {self._at()}"


class StartSecondHalfCommand(Command):
    def execute(self) -> Any:
        return {"opened_intervals": self.session.start_second_half()}

    @property
    def description(self) -> str:
        return "Start second half"


class EndGameCommand(Command):
    def execute(self) -> Any:
        return {"closed_intervals": self.session.end_game()}

    @property
    def description(self) -> str:
        return f"End game at {self._at()}"


class SubstituteCommand(Command):
    """Swap a player out for another at a position."""

    def execute(self) -> Any:
        substitution = self.session.substitute(
            self._require("player_out_id"), self._require("player_in_id"), self._require("position_id")
        )
        return substitution.to_dict()

    @property
    def description(self) -> str:
        return (f"Substitute {self.payload.get('player_in_id')} for "
                f"{self.payload.get('player_out_id')} at {self.payload.get('position_id')}")


class QueueSubstitutionCommand(Command):
    def execute(self) -> Any:
        return self.session.queue_substitution(
            self._require("player_id"), self._require("position_id")
        ).to_dict()

    @property
    def description(self) -> str:
        return f"Queue {self.payload.get('player_id')} for {self.payload.get('position_id')}"


class RemoveFromQueueCommand(Command):
    def execute(self) -> Any:
        return {"removed": self.session.remove_from_queue(self._require("player_id"))}

    @property
    def description(self) -> str:
        return f"Remove {self.payload.get('player_id')} from queue"


class QueueRotationCommand(Command):
    def execute(self) -> Any:
        number = int(self._require("rotation_number"))
        return {"queued": [e.to_dict() for e in self.session.queue_rotation(number)]}

    @property
    def description(self) -> str:
        return f"Queue rotation {self.payload.get('rotation_number')}"


class ExecuteQueueCommand(Command):
    def execute(self) -> Any:
        return self.session.execute_queue().to_dict()

    @property
    def description(self) -> str:
        return f"Execute substitution queue at {self._at()}"


class AssignPositionCommand(Command):
    def execute(self) -> Any:
        return self.session.assign_position(
            self._require("player_id"), self._require("position_id")
        ).to_dict()

    @property
    def description(self) -> str:
        return f"Assign {self.payload.get('player_id')} to {self.payload.get('position_id')}"


class MarkInjuredCommand(Command):
    def execute(self) -> Any:
        affected = self.session.mark_injured(self._require("player_id"), self.payload.get("note"))
        return {"affected_rotations": affected}

    @property
    def description(self) -> str:
        return f"Mark {self.payload.get('player_id')} injured at {self._at()}"


class SetAvailabilityCommand(Command):
    def execute(self) -> Any:
        status = AvailabilityStatus(self._require("status"))
        minute = self.payload.get("available_from_minute")
        return self.session.set_availability(
            self._require("player_id"), status, self.payload.get("reason"),
            int(minute) if minute is not None else None,
        ).to_dict()

    @property
    def description(self) -> str:
        return f"Set {self.payload.get('player_id')} {self.payload.get('status')}"


class MarkLateArrivalAvailableCommand(Command):
    def execute(self) -> Any:
        return self.session.mark_late_arrival_available(
            self._require("player_id"), self.payload.get("note")
        ).to_dict()

    @property
    def description(self) -> str:
        return f"{self.payload.get('player_id')} arrived"


class CreatePlanCommand(Command):
    def execute(self) -> Any:
        lineup = [LineupSlot.from_dict(s) for s in self._require("starting_lineup")]
        halftime = [LineupSlot.from_dict(s) for s in self.payload.get("halftime_lineup") or []]
        interval = self.payload.get("rotation_interval_minutes")
        plan = self.session.create_game_plan(lineup, int(interval) if interval else None, halftime)
        return {
            "plan": plan.to_dict(),
            "rotations": [r.to_dict() for r in self.session.rotations()],
        }

    @property
    def description(self) -> str:
        return "Create game plan"


class RecalculateRotationsCommand(Command):
    def execute(self) -> Any:
        return {"rotations": [r.to_dict() for r in self.session.recalculate_rotations()]}

    @property
    def description(self) -> str:
        return "Recalculate rotations"


COMMANDS: Dict[str, Type[Command]] = {
    "start": StartGameCommand,
    "pause": PauseGameCommand,
    "resume": ResumeGameCommand,
    "halftime": HalftimeCommand,
    "start-second-half": StartSecondHalfCommand,
    "end": EndGameCommand,
    "substitute": SubstituteCommand,
    "queue-substitution": QueueSubstitutionCommand,
    "remove-from-queue": RemoveFromQueueCommand,
    "queue-rotation": QueueRotationCommand,
    "execute-queue": ExecuteQueueCommand,
    "assign-position": AssignPositionCommand,
    "mark-injured": MarkInjuredCommand,
    "set-availability": SetAvailabilityCommand,
    "mark-late-arrival-available": MarkLateArrivalAvailableCommand,
    "create-plan": CreatePlanCommand,
    "recalculate-rotations": RecalculateRotationsCommand,
}


def build_command(name: str, session: GameSession, payload: Optional[Mapping[str, Any]] = None) -> Command:
    """
    Build a command from its surface name.

    Raises:
        KeyError: If no command has that name
    """
    try:
        command_cls = COMMANDS[name]
    except KeyError:
        raise KeyError(f"Unknown command '{name}'") from None
    return command_cls(session, payload)


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: float
    elapsed_seconds: int
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "elapsed_seconds": self.elapsed_seconds,
            "description": self.description,
        }


class GameCommandManager:
    """
    Runs commands and remembers the ones that succeeded.

    Only the most recent ``max_history`` commands are kept.
    """

    def __init__(self, max_history: int = 50):
        """
        Initialize command manager.

        Args:
            max_history: Maximum number of commands to keep in history
        """
        self.max_history = max_history
        self._history: Deque[HistoryEntry] = deque(maxlen=max_history)

    def execute_command(self, command: Command) -> Any:
        """
        Execute a command and add it to history.

        Errors propagate to the caller and leave no history entry.
        """
        result = command.execute()
        self._history.append(
            HistoryEntry(now_ts(), command.session.current_elapsed(), command.description)
        )
        return result

    def get_command_history(self) -> List[str]:
        """Get history of command descriptions, oldest first."""
        return [entry.description for entry in self._history]

    def entries(self) -> List[HistoryEntry]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
