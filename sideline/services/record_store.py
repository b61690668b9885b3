"""
Record store contract and in-memory implementation.

The engine never talks to a database directly. It reads and writes games,
lineup assignments, play-time records, availability and plans through a
RecordStore, and observes other writers through ``subscribe``. Each call is
atomic on its own; the store offers no multi-record transactions.
"""
from __future__ import annotations

import copy
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..models import (
    Game, GamePlan, LineupAssignment, PlannedRotation, PlayerAvailability,
    PlayTimeRecord, Substitution
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """
    Snapshot of a single write, delivered to subscribers.

    Attributes:
        model: Record type name (e.g. "Game", "PlayTimeRecord")
        action: "create", "update" or "delete"
        game_id: Game the record belongs to
        record: Copy of the record after the write (before it, for deletes)
    """
    model: str
    action: str
    game_id: str
    record: Any


ChangeCallback = Callable[[ChangeEvent], None]


class RecordStore(ABC):
    """Storage collaborator used by every engine service."""

    # ---------- Games ---------- #

    @abstractmethod
    def get_game(self, game_id: str) -> Optional[Game]:
        """Return the game or None."""

    @abstractmethod
    def save_game(self, game: Game) -> Game:
        """Create or replace a game."""

    # ---------- Lineup ---------- #

    @abstractmethod
    def list_lineup(self, game_id: str) -> List[LineupAssignment]:
        """Return the current lineup assignments of a game."""

    @abstractmethod
    def create_lineup_assignment(self, assignment: LineupAssignment) -> LineupAssignment:
        """Store a new lineup assignment."""

    @abstractmethod
    def update_lineup_assignment(self, assignment: LineupAssignment) -> LineupAssignment:
        """Replace an existing lineup assignment."""

    @abstractmethod
    def delete_lineup_assignment(self, assignment_id: str) -> None:
        """Remove a lineup assignment."""

    # ---------- Time ledger ---------- #

    @abstractmethod
    def list_play_time_records(self, game_id: str) -> List[PlayTimeRecord]:
        """Return every play-time record of a game."""

    @abstractmethod
    def create_play_time_record(self, record: PlayTimeRecord) -> PlayTimeRecord:
        """Store a new play-time record."""

    @abstractmethod
    def update_play_time_record(self, record: PlayTimeRecord) -> PlayTimeRecord:
        """Replace an existing play-time record."""

    @abstractmethod
    def list_substitutions(self, game_id: str) -> List[Substitution]:
        """Return the substitution history of a game."""

    @abstractmethod
    def create_substitution(self, substitution: Substitution) -> Substitution:
        """Append a substitution to the history."""

    # ---------- Availability ---------- #

    @abstractmethod
    def list_availability(self, game_id: str) -> List[PlayerAvailability]:
        """Return availability records of a game."""

    @abstractmethod
    def save_availability(self, availability: PlayerAvailability) -> PlayerAvailability:
        """Create or replace the availability record of a player in a game."""

    # ---------- Plans ---------- #

    @abstractmethod
    def get_game_plan(self, game_id: str) -> Optional[GamePlan]:
        """Return the plan of a game or None."""

    @abstractmethod
    def save_game_plan(self, plan: GamePlan) -> GamePlan:
        """Create or replace a game plan."""

    @abstractmethod
    def delete_game_plan(self, plan_id: str) -> None:
        """Remove a game plan and its rotations."""

    @abstractmethod
    def list_planned_rotations(self, plan_id: str) -> List[PlannedRotation]:
        """Return the rotations of a plan ordered by rotation number."""

    @abstractmethod
    def save_planned_rotation(self, rotation: PlannedRotation) -> PlannedRotation:
        """Create or replace a planned rotation."""

    # ---------- Change notification ---------- #

    @abstractmethod
    def subscribe(self, game_id: str, callback: ChangeCallback) -> Callable[[], None]:
        """
        Observe writes belonging to a game.

        Returns:
            Function that cancels the subscription
        """


class InMemoryRecordStore(RecordStore):
    """
    Thread-safe dictionary-backed RecordStore.

    Records are copied on the way in and on the way out so callers never share
    mutable state with the store, just like a remote store would behave.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._games: Dict[str, Game] = {}
        self._lineup: Dict[str, LineupAssignment] = {}
        self._records: Dict[str, PlayTimeRecord] = {}
        self._substitutions: Dict[str, Substitution] = {}
        self._availability: Dict[tuple, PlayerAvailability] = {}
        self._plans: Dict[str, GamePlan] = {}
        self._rotations: Dict[str, PlannedRotation] = {}
        self._subscribers: Dict[str, List[ChangeCallback]] = {}

    # ---------- Games ---------- #

    def get_game(self, game_id: str) -> Optional[Game]:
        with self._lock:
            game = self._games.get(game_id)
            return copy.deepcopy(game) if game else None

    def save_game(self, game: Game) -> Game:
        with self._lock:
            action = "update" if game.game_id in self._games else "create"
            self._games[game.game_id] = copy.deepcopy(game)
        self._notify("Game", action, game.game_id, game)
        return copy.deepcopy(game)

    def list_games(self) -> List[Game]:
        with self._lock:
            return [copy.deepcopy(g) for g in self._games.values()]

    # ---------- Lineup ---------- #

    def list_lineup(self, game_id: str) -> List[LineupAssignment]:
        with self._lock:
            return [copy.deepcopy(a) for a in self._lineup.values() if a.game_id == game_id]

    def create_lineup_assignment(self, assignment: LineupAssignment) -> LineupAssignment:
        with self._lock:
            self._lineup[assignment.assignment_id] = copy.deepcopy(assignment)
        self._notify("LineupAssignment", "create", assignment.game_id, assignment)
        return copy.deepcopy(assignment)

    def update_lineup_assignment(self, assignment: LineupAssignment) -> LineupAssignment:
        with self._lock:
            if assignment.assignment_id not in self._lineup:
                raise KeyError(f"Lineup assignment not found: {assignment.assignment_id}")
            self._lineup[assignment.assignment_id] = copy.deepcopy(assignment)
        self._notify("LineupAssignment", "update", assignment.game_id, assignment)
        return copy.deepcopy(assignment)

    def delete_lineup_assignment(self, assignment_id: str) -> None:
        with self._lock:
            removed = self._lineup.pop(assignment_id, None)
        if removed is not None:
            self._notify("LineupAssignment", "delete", removed.game_id, removed)

    # ---------- Time ledger ---------- #

    def list_play_time_records(self, game_id: str) -> List[PlayTimeRecord]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._records.values() if r.game_id == game_id]

    def create_play_time_record(self, record: PlayTimeRecord) -> PlayTimeRecord:
        with self._lock:
            self._records[record.record_id] = copy.deepcopy(record)
        self._notify("PlayTimeRecord", "create", record.game_id, record)
        return copy.deepcopy(record)

    def update_play_time_record(self, record: PlayTimeRecord) -> PlayTimeRecord:
        with self._lock:
            if record.record_id not in self._records:
                raise KeyError(f"Play time record not found: {record.record_id}")
            self._records[record.record_id] = copy.deepcopy(record)
        self._notify("PlayTimeRecord", "update", record.game_id, record)
        return copy.deepcopy(record)

    def list_substitutions(self, game_id: str) -> List[Substitution]:
        with self._lock:
            return [copy.deepcopy(s) for s in self._substitutions.values() if s.game_id == game_id]

    def create_substitution(self, substitution: Substitution) -> Substitution:
        with self._lock:
            self._substitutions[substitution.substitution_id] = copy.deepcopy(substitution)
        self._notify("Substitution", "create", substitution.game_id, substitution)
        return copy.deepcopy(substitution)

    # ---------- Availability ---------- #

    def list_availability(self, game_id: str) -> List[PlayerAvailability]:
        with self._lock:
            return [copy.deepcopy(a) for a in self._availability.values() if a.game_id == game_id]

    def save_availability(self, availability: PlayerAvailability) -> PlayerAvailability:
        key = (availability.game_id, availability.player_id)
        with self._lock:
            action = "update" if key in self._availability else "create"
            self._availability[key] = copy.deepcopy(availability)
        self._notify("PlayerAvailability", action, availability.game_id, availability)
        return copy.deepcopy(availability)

    # ---------- Plans ---------- #

    def get_game_plan(self, game_id: str) -> Optional[GamePlan]:
        with self._lock:
            for plan in self._plans.values():
                if plan.game_id == game_id:
                    return copy.deepcopy(plan)
            return None

    def save_game_plan(self, plan: GamePlan) -> GamePlan:
        with self._lock:
            action = "update" if plan.plan_id in self._plans else "create"
            self._plans[plan.plan_id] = copy.deepcopy(plan)
        self._notify("GamePlan", action, plan.game_id, plan)
        return copy.deepcopy(plan)

    def delete_game_plan(self, plan_id: str) -> None:
        with self._lock:
            removed = self._plans.pop(plan_id, None)
            for rotation_id in [r.rotation_id for r in self._rotations.values() if r.plan_id == plan_id]:
                del self._rotations[rotation_id]
        if removed is not None:
            self._notify("GamePlan", "delete", removed.game_id, removed)

    def list_planned_rotations(self, plan_id: str) -> List[PlannedRotation]:
        with self._lock:
            rotations = [copy.deepcopy(r) for r in self._rotations.values() if r.plan_id == plan_id]
        return sorted(rotations, key=lambda r: r.rotation_number)

    def save_planned_rotation(self, rotation: PlannedRotation) -> PlannedRotation:
        with self._lock:
            action = "update" if rotation.rotation_id in self._rotations else "create"
            self._rotations[rotation.rotation_id] = copy.deepcopy(rotation)
            plan = self._plans.get(rotation.plan_id)
        self._notify("PlannedRotation", action, plan.game_id if plan else "", rotation)
        return copy.deepcopy(rotation)

    # ---------- Change notification ---------- #

    def subscribe(self, game_id: str, callback: ChangeCallback) -> Callable[[], None]:
        with self._lock:
            self._subscribers.setdefault(game_id, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(game_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def _notify(self, model: str, action: str, game_id: str, record: Any) -> None:
        with self._lock:
            callbacks = list(self._subscribers.get(game_id, []))
        for callback in callbacks:
            try:
                callback(ChangeEvent(model, action, game_id, copy.deepcopy(record)))
            except Exception:
                # A broken observer must not fail the write that already happened
                logger.exception("Change subscriber failed for %s %s", model, action)

    # ---------- Snapshots ---------- #

    def export_snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        """Return every record as JSON-serializable dictionaries."""
        with self._lock:
            return {
                "games": [g.to_dict() for g in self._games.values()],
                "lineup": [a.to_dict() for a in self._lineup.values()],
                "play_time_records": [r.to_dict() for r in self._records.values()],
                "substitutions": [s.to_dict() for s in self._substitutions.values()],
                "availability": [a.to_dict() for a in self._availability.values()],
                "plans": [p.to_dict() for p in self._plans.values()],
                "rotations": [r.to_dict() for r in self._rotations.values()],
            }

    @classmethod
    def from_snapshot(cls, data: Dict[str, List[Dict[str, Any]]]) -> 'InMemoryRecordStore':
        """Build a store from ``export_snapshot`` output."""
        store = cls()
        for item in data.get("games", []):
            game = Game.from_dict(item)
            store._games[game.game_id] = game
        for item in data.get("lineup", []):
            assignment = LineupAssignment.from_dict(item)
            store._lineup[assignment.assignment_id] = assignment
        for item in data.get("play_time_records", []):
            record = PlayTimeRecord.from_dict(item)
            store._records[record.record_id] = record
        for item in data.get("substitutions", []):
            substitution = Substitution.from_dict(item)
            store._substitutions[substitution.substitution_id] = substitution
        for item in data.get("availability", []):
            availability = PlayerAvailability.from_dict(item)
            store._availability[(availability.game_id, availability.player_id)] = availability
        for item in data.get("plans", []):
            plan = GamePlan.from_dict(item)
            store._plans[plan.plan_id] = plan
        for item in data.get("rotations", []):
            rotation = PlannedRotation.from_dict(item)
            store._rotations[rotation.rotation_id] = rotation
        return store
