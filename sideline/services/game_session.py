"""
Game session for the Sideline Rotation Engine.

A GameSession is the command and query surface of one live game. It owns
the game's ClockState and wires the time ledger, availability tracker,
substitution engine, substitution queue and rotation planner around it.

Every command runs under the session lock, so a pause requested from one
thread takes effect before the next tick is processed on another.
"""
import logging
import threading
from concurrent.futures import Executor
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..models import (
    AvailabilityStatus, Game, GameConfig, GamePlan, GameStatus, LineupAssignment,
    LineupSlot, PlannedRotation, PlayerAvailability, PlayTimeRecord, QueueEntry, Substitution
)
from ..utils import format_game_time_display, format_play_time, now_ts
from ..utils.constants import ROTATION_LOOKBACK_MIN
from . import game_clock
from .availability_service import AvailabilityTracker
from .conflict_detector import PlanConflict, detect_plan_conflicts, rotations_referencing_player
from .errors import EngineError, InvalidTransition, PersistenceError, RecalculationBlocked
from .game_clock import ClockEvent, ClockState, TickResult
from .record_store import ChangeEvent, RecordStore
from .roster_provider import RosterProvider
from .rotation_planner import build_rotation_slots, calculate_fair_rotations, rotations_per_half
from .substitution_service import BatchResult, SubstitutionEngine, SubstitutionQueue
from .time_ledger import TimeLedger

logger = logging.getLogger(__name__)


class GameSession:
    """
    Runs a single game: clock, lineup, play time and rotation plan.

    Attributes:
        game_id: Game being run
        team_id: Team whose roster is used
        config: Timing and rotation settings
        clock: Current clock state (replaced, never mutated)
        ledger: Play-time ledger of the game
        availability: Availability tracker of the game
        engine: Substitution engine of the game
        queue: Pending substitutions
    """

    def __init__(
        self,
        game: Game,
        store: RecordStore,
        roster: RosterProvider,
        config: Optional[GameConfig] = None,
        checkpoint_executor: Optional[Executor] = None,
    ):
        """
        Initialize the session.

        Args:
            game: Stored game record to run
            store: Record store collaborator
            roster: Roster collaborator
            config: Game settings; defaults are used when omitted
            checkpoint_executor: Where elapsed-time checkpoints are written;
                                 synchronously on the ticking thread when omitted
        """
        self.game_id = game.game_id
        self.team_id = game.team_id
        self.store = store
        self.roster = roster
        self.config = config or GameConfig()
        self.config.validate()

        self.ledger = TimeLedger(store, self.game_id)
        self.availability = AvailabilityTracker(store, self.game_id)
        self.engine = SubstitutionEngine(store, self.ledger, self.game_id)
        self.queue = SubstitutionQueue()

        self._lock = threading.RLock()
        self._generation = 0
        self.checkpoint_executor = checkpoint_executor
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.clock = ClockState.from_game(game, now_ts())
        self.last_upcoming_rotation: Optional[PlannedRotation] = None

    @classmethod
    def load(
        cls,
        store: RecordStore,
        roster: RosterProvider,
        game_id: str,
        config: Optional[GameConfig] = None,
        checkpoint_executor: Optional[Executor] = None,
    ) -> 'GameSession':
        """
        Open a session for a stored game.

        Raises:
            KeyError: If the game does not exist
        """
        game = store.get_game(game_id)
        if game is None:
            raise KeyError(f"Game {game_id} not found")
        return cls(game, store, roster, config, checkpoint_executor)

    # ---------- Persistence helpers ---------- #

    def _write_game(self, state: ClockState, now: float, generation: Optional[int] = None) -> Optional[Game]:
        game = self.store.get_game(self.game_id) or Game(self.game_id, team_id=self.team_id)
        if generation is not None and generation != self._generation:
            return None
        game.status = state.status
        game.current_half = state.current_half
        game.elapsed_seconds = state.elapsed_seconds
        game.last_resume_ts = now if state.is_live else None
        return self.store.save_game(game)

    def _save(self, state: ClockState, now: float) -> Game:
        """Store a transition, reporting any store failure as PersistenceError."""
        # Checkpoints queued before this transition are now stale
        self._generation += 1
        try:
            return self._write_game(state, now)
        except EngineError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to save game {self.game_id}: {e}") from e

    def _save_or_reopen(self, state: ClockState, closed: List[PlayTimeRecord]) -> None:
        """Store a transition that closed intervals; reopen them if it was not stored."""
        try:
            self._save(state, now_ts())
        except PersistenceError:
            try:
                self.ledger.reopen(closed)
            except Exception:
                logger.exception("Could not reopen %d intervals of game %s", len(closed), self.game_id)
            raise

    def _checkpoint(self, state: ClockState) -> None:
        now = now_ts()
        if self.checkpoint_executor is not None:
            self.checkpoint_executor.submit(self._write_checkpoint, state, now, self._generation)
        else:
            self._write_checkpoint(state, now, self._generation)

    def _write_checkpoint(self, state: ClockState, now: float, generation: int) -> None:
        with self._lock:
            if not self.clock.is_live or generation != self._generation:
                logger.debug("Dropping stale checkpoint at %ss", state.elapsed_seconds)
                return
            try:
                if self._write_game(state, now, generation) is None:
                    logger.debug("Dropping checkpoint at %ss overtaken by a transition",
                                 state.elapsed_seconds)
            except Exception:
                logger.exception("Failed to save game time at %ss; retrying at next checkpoint",
                                 state.elapsed_seconds)

    def _open_lineup_intervals(self, at_seconds: int) -> int:
        opened = 0
        for assignment in self.store.list_lineup(self.game_id):
            if not self.ledger.is_on_field(assignment.player_id):
                self.ledger.open_interval(assignment.player_id, assignment.position_id, at_seconds)
                opened += 1
        return opened

    # ---------- Clock commands ---------- #

    def start_game(self) -> List[PlanConflict]:
        """
        Kick off the game and open play time for every player in the lineup.

        Starters that already have an open interval (a retried start) are not
        opened twice.

        Returns:
            Starters who are absent or injured, as warnings

        Raises:
            StaleOperation: If the game has already started
            PersistenceError: If the game could not be stored; the clock stays scheduled
        """
        with self._lock:
            now = now_ts()
            started = game_clock.start_clock(self.clock, now)
            self.sync_starting_lineup()

            lineup = self.store.list_lineup(self.game_id)
            warnings = detect_plan_conflicts(
                [LineupSlot(a.player_id, a.position_id) for a in lineup], [],
                self.availability.status_of,
            )
            for conflict in warnings:
                logger.warning("Starter %s is %s", conflict.player_id, conflict.status.value)

            opened = self._open_lineup_intervals(started.elapsed_seconds)
            self._save(started, now)
            self.clock = started
            logger.info("Game %s started with %d players on the field", self.game_id, opened)
            return warnings

    def pause(self) -> None:
        """
        Stop the clock.

        The clock stops before anything is stored. If storing fails the clock
        stays paused, keeps its manual-pause flag so a stale running snapshot
        cannot restart it, and PersistenceError is raised.
        """
        with self._lock:
            self.clock = game_clock.pause_clock(self.clock)
            self._save(self.clock, now_ts())
            self.clock = game_clock.clear_manual_pause(self.clock)
            logger.info("Game %s paused at %ss", self.game_id, self.clock.elapsed_seconds)

    def resume(self) -> None:
        """Restart a paused clock."""
        with self._lock:
            now = now_ts()
            resumed = game_clock.resume_clock(self.clock, now)
            self._save(resumed, now)
            self.clock = game_clock.mark_checkpoint(resumed)
            logger.info("Game %s resumed at %ss", self.game_id, resumed.elapsed_seconds)

    def halftime(self) -> int:
        """
        End the first half: close every open interval at the frozen clock value.

        Returns:
            Number of intervals closed
        """
        with self._lock:
            state = game_clock.enter_halftime(self.clock)
            closed = self.ledger.close_all(state.elapsed_seconds)
            self._save_or_reopen(state, closed)
            self.clock = state
            logger.info("Halftime in game %s at %ss", self.game_id, state.elapsed_seconds)
            return len(closed)

    def start_second_half(self) -> int:
        """
        Start the second half: open intervals for the current lineup.

        Returns:
            Number of intervals opened
        """
        with self._lock:
            now = now_ts()
            state = game_clock.begin_second_half(self.clock, now)
            opened = self._open_lineup_intervals(state.elapsed_seconds)
            self._save(state, now)
            self.clock = state
            logger.info("Second half of game %s started at %ss", self.game_id, state.elapsed_seconds)
            return opened

    def end_game(self) -> int:
        """
        Full time: close every open interval and freeze the ledger.

        Returns:
            Number of intervals closed

        Raises:
            StaleOperation: If the game has already ended; nothing changes
            PersistenceError: If the game could not be stored; the clock keeps running
                              and the intervals it closed are reopened
        """
        with self._lock:
            state = game_clock.end_clock(self.clock)
            closed = self.ledger.close_all(state.elapsed_seconds)
            self._save_or_reopen(state, closed)
            self.clock = state
            self.queue.clear()
            logger.info("Game %s completed at %ss", self.game_id, state.elapsed_seconds)
            return len(closed)

    def tick(self) -> TickResult:
        """
        Advance the clock one second and run whatever the tick asks for.

        Automatic halftime and end run here. A failed checkpoint is logged and
        retried at the next checkpoint. ROTATION_UPCOMING is reported once per
        rotation, shortly before it is due.
        """
        with self._lock:
            result = game_clock.tick(
                self.clock,
                self.config.half_length_seconds,
                self.config.max_game_seconds,
                self.config.checkpoint_interval_ticks,
            )
            self.clock = result.state
            events = list(result.events)

            for event in result.events:
                if event == ClockEvent.HALFTIME_DUE:
                    self._run_automatic(self.halftime, "halftime")
                elif event == ClockEvent.FORCE_END_DUE:
                    logger.warning("Game %s reached the safety cap; ending it", self.game_id)
                    self._run_automatic(self.end_game, "end")
                elif event == ClockEvent.CHECKPOINT_DUE:
                    self._checkpoint(self.clock)

            if self.clock.is_live:
                upcoming = self._warn_upcoming_rotation()
                if upcoming is not None:
                    events.append(ClockEvent.ROTATION_UPCOMING)
            return TickResult(self.clock, tuple(events))

    def _run_automatic(self, transition: Callable[[], Any], name: str) -> None:
        try:
            transition()
        except EngineError as e:
            logger.error("Automatic %s failed for game %s: %s", name, self.game_id, e)

    def _warn_upcoming_rotation(self) -> Optional[PlannedRotation]:
        plan = self.store.get_game_plan(self.game_id)
        if plan is None:
            return None
        warn_minute = self.clock.current_minute + self.config.rotation_warning_minutes
        for rotation in self.store.list_planned_rotations(plan.plan_id):
            if (
                rotation.half == self.clock.current_half
                and rotation.viewed_at is None
                and rotation.game_minute == warn_minute
            ):
                rotation.viewed_at = now_ts()
                try:
                    self.store.save_planned_rotation(rotation)
                except Exception:
                    logger.exception("Failed to mark rotation %s viewed", rotation.rotation_number)
                self.last_upcoming_rotation = rotation
                logger.info("Rotation %s coming up at %s'", rotation.rotation_number, rotation.game_minute)
                return rotation
        return None

    # ---------- Lineup and substitution commands ---------- #

    @property
    def _tracking_time(self) -> bool:
        return self.clock.status == GameStatus.IN_PROGRESS

    def _require_not_completed(self) -> None:
        if self.clock.status == GameStatus.COMPLETED:
            raise InvalidTransition("Game is over; the lineup is frozen")

    def sync_starting_lineup(self) -> List[LineupAssignment]:
        """
        Copy the plan's starting lineup into an empty pre-game lineup.

        Returns:
            Assignments created (empty when the lineup was already set)
        """
        with self._lock:
            if self.clock.status != GameStatus.SCHEDULED or self.store.list_lineup(self.game_id):
                return []
            plan = self.store.get_game_plan(self.game_id)
            if plan is None:
                return []
            created = [
                self.store.create_lineup_assignment(
                    LineupAssignment(self.game_id, slot.player_id, slot.position_id, is_starter=True)
                )
                for slot in plan.starting_lineup
            ]
            logger.info("Copied %d planned starters into the lineup", len(created))
            return created

    def assign_position(self, player_id: str, position_id: str) -> LineupAssignment:
        """Put a player into an empty position (pre-game this makes them a starter)."""
        with self._lock:
            self._require_not_completed()
            return self.engine.assign_to_empty_position(
                player_id, position_id, self.clock.elapsed_seconds,
                track_time=self._tracking_time,
                is_starter=self.clock.status == GameStatus.SCHEDULED,
            )

    def substitute(self, outgoing_player_id: str, incoming_player_id: str, position_id: str) -> Substitution:
        """Swap the occupant of a position now."""
        with self._lock:
            self._require_not_completed()
            substitution = self.engine.execute_substitution(
                outgoing_player_id, incoming_player_id, position_id,
                self.clock.elapsed_seconds, self.clock.current_half,
                track_time=self._tracking_time,
            )
            self.queue.remove(incoming_player_id)
            return substitution

    def queue_substitution(self, player_id: str, position_id: str) -> QueueEntry:
        with self._lock:
            self._require_not_completed()
            return self.queue.add(player_id, position_id)

    def remove_from_queue(self, player_id: str) -> bool:
        with self._lock:
            return self.queue.remove(player_id)

    def queue_rotation(self, rotation_number: int) -> List[QueueEntry]:
        """
        Queue the incoming players of a planned rotation.

        Only players marked available are queued; absent, injured and
        not-yet-arrived players are left out, as are players already in the
        lineup or already queued.

        Raises:
            KeyError: If the plan has no such rotation
        """
        with self._lock:
            self._require_not_completed()
            rotation = self._rotation(rotation_number)
            in_lineup = {a.player_id for a in self.store.list_lineup(self.game_id)}
            added = []
            for sub in rotation.substitutions:
                if (
                    sub.player_in_id in in_lineup
                    or self.availability.status_of(sub.player_in_id) != AvailabilityStatus.AVAILABLE
                    or self.queue.is_queued(sub.player_in_id)
                ):
                    continue
                added.append(self.queue.add(sub.player_in_id, sub.position_id))
            logger.info("Queued %d substitutions from rotation %s", len(added), rotation_number)
            return added

    def execute_queue(self) -> BatchResult:
        """Make every queued substitution now."""
        with self._lock:
            self._require_not_completed()
            return self.engine.execute_queue(
                self.queue, self.clock.elapsed_seconds, self.clock.current_half,
                track_time=self._tracking_time,
            )

    # ---------- Availability commands ---------- #

    def mark_injured(self, player_id: str, note: Optional[str] = None) -> List[int]:
        """
        Take an injured player off: close their interval and empty their position.

        Returns:
            Future rotation numbers that still reference the player
        """
        with self._lock:
            elapsed = self.clock.elapsed_seconds
            reason = note or f"Injured at {format_game_time_display(elapsed, self.clock.current_half)}"
            self.availability.set_status(player_id, AvailabilityStatus.INJURED, reason)
            if self._tracking_time:
                self.ledger.close_interval(player_id, elapsed)
            removed = self.engine.remove_from_lineup(player_id)
            self.queue.remove(player_id)

            affected: List[int] = []
            plan = self.store.get_game_plan(self.game_id)
            if plan is not None:
                affected = rotations_referencing_player(
                    self.store.list_planned_rotations(plan.plan_id), player_id,
                    after_minute=self.clock.current_minute,
                )
            logger.info(
                "Player %s injured%s; referenced by rotations %s", player_id,
                f" (position {removed.position_id} now empty)" if removed else "", affected,
            )
            return affected

    def set_availability(
        self,
        player_id: str,
        status: AvailabilityStatus,
        reason: Optional[str] = None,
        available_from_minute: Optional[int] = None,
    ) -> PlayerAvailability:
        with self._lock:
            return self.availability.set_status(player_id, status, reason, available_from_minute)

    def mark_late_arrival_available(self, player_id: str, note: Optional[str] = None) -> PlayerAvailability:
        with self._lock:
            return self.availability.mark_late_arrival_available(player_id, note)

    # ---------- Plan commands ---------- #

    def create_game_plan(
        self,
        starting_lineup: Sequence[LineupSlot],
        rotation_interval_minutes: Optional[int] = None,
        halftime_lineup: Optional[Sequence[LineupSlot]] = None,
    ) -> GamePlan:
        """
        Create (or replace) the game's plan and fill its rotations.

        Args:
            starting_lineup: Planned starters
            rotation_interval_minutes: Minutes between rotations; config default otherwise
            halftime_lineup: Coach-chosen second-half lineup

        Returns:
            The stored plan
        """
        with self._lock:
            interval = rotation_interval_minutes or self.config.rotation_interval_minutes
            if interval <= 0:
                raise ValueError("Rotation interval must be a positive number of minutes")
            existing = self.store.get_game_plan(self.game_id)
            if existing is not None:
                self.store.delete_game_plan(existing.plan_id)

            plan = GamePlan(
                game_id=self.game_id,
                rotation_interval_minutes=interval,
                starting_lineup=list(starting_lineup),
                halftime_lineup=list(halftime_lineup or []),
            )
            slots = build_rotation_slots(plan.plan_id, self.config.half_length_minutes, interval)
            plan.total_rotations = len(slots)
            plan = self.store.save_game_plan(plan)

            lineup = [s for s in plan.starting_lineup if not self.availability.is_unavailable(s.player_id)]
            generated = self._generate(plan, slots, lineup) if lineup else [[] for _ in slots]
            for slot, subs in zip(slots, generated):
                slot.substitutions = tuple(subs)
                self.store.save_planned_rotation(slot)
            logger.info("Created plan with %d rotations for game %s", len(slots), self.game_id)
            return plan

    def recalculate_rotations(self) -> List[PlannedRotation]:
        """
        Refill every rotation of the plan from current availability.

        Safe to repeat: the same roster and availability give the same plan.

        Raises:
            RecalculationBlocked: Without a plan, rotation slots, a starting
                                  lineup, or any available starter
        """
        with self._lock:
            plan = self.store.get_game_plan(self.game_id)
            if plan is None:
                raise RecalculationBlocked("No game plan to recalculate")
            rotations = self.store.list_planned_rotations(plan.plan_id)
            if not rotations:
                raise RecalculationBlocked("The game plan has no rotations")
            if not plan.starting_lineup:
                raise RecalculationBlocked("No starting lineup found in the game plan")
            lineup = [s for s in plan.starting_lineup if not self.availability.is_unavailable(s.player_id)]
            if not lineup:
                raise RecalculationBlocked("No available players in the starting lineup")

            generated = self._generate(plan, rotations, lineup)
            updated = []
            for rotation, subs in zip(rotations, generated):
                rotation.substitutions = tuple(subs)
                rotation.decode_error = None
                updated.append(self.store.save_planned_rotation(rotation))
            logger.info("Recalculated %d rotations for game %s", len(updated), self.game_id)
            return updated

    def _generate(self, plan: GamePlan, rotations: Sequence[PlannedRotation],
                  lineup: Sequence[LineupSlot]):
        players = self.availability.eligible_players(self.roster.list_players(self.team_id))
        halftime = [s for s in plan.halftime_lineup if not self.availability.is_unavailable(s.player_id)]
        return calculate_fair_rotations(
            players,
            lineup,
            len(rotations),
            rotations_per_half(self.config.half_length_minutes, plan.rotation_interval_minutes),
            self.config.max_players_on_field,
            goalie_position_id=self.config.goalie_position_id,
            halftime_lineup=halftime or None,
            rotation_minutes=[r.game_minute for r in rotations],
            drift_threshold=self.config.drift_threshold,
            arrival_minutes=self.availability.arrival_minutes(),
            total_minutes=self.config.total_game_minutes,
        )

    def _rotation(self, rotation_number: int) -> PlannedRotation:
        for rotation in self.rotations():
            if rotation.rotation_number == rotation_number:
                return rotation
        raise KeyError(f"Rotation {rotation_number} not found")

    # ---------- External changes ---------- #

    def apply_external_snapshot(self, game: Game) -> ClockState:
        """Merge a game record written elsewhere into the local clock."""
        with self._lock:
            self.clock = game_clock.apply_external_snapshot(self.clock, game, now_ts())
            return self.clock

    def _on_change(self, event: ChangeEvent) -> None:
        if event.model == "Game":
            self.apply_external_snapshot(event.record)

    def attach(self) -> None:
        """Follow game changes made by other writers."""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.game_id, self._on_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ---------- Queries ---------- #

    def current_elapsed(self) -> int:
        return self.clock.elapsed_seconds

    def play_time(self, player_id: str) -> int:
        return self.ledger.total_play_time(player_id, self.clock.elapsed_seconds)

    def is_on_field(self, player_id: str) -> bool:
        return self.ledger.is_on_field(player_id)

    def lineup(self) -> Dict[str, str]:
        """Current lineup as position id -> player id."""
        return {pos: a.player_id for pos, a in self.engine.current_lineup().items()}

    def rotations(self) -> List[PlannedRotation]:
        plan = self.store.get_game_plan(self.game_id)
        return self.store.list_planned_rotations(plan.plan_id) if plan else []

    def next_rotation(self) -> Optional[PlannedRotation]:
        """First rotation of the current half that is at most two minutes overdue."""
        earliest = self.clock.current_minute - ROTATION_LOOKBACK_MIN
        for rotation in self.rotations():
            if rotation.half == self.clock.current_half and rotation.game_minute >= earliest:
                return rotation
        return None

    def conflicts(self) -> List[PlanConflict]:
        plan = self.store.get_game_plan(self.game_id)
        if plan is None:
            return []
        return detect_plan_conflicts(
            plan.starting_lineup, self.store.list_planned_rotations(plan.plan_id),
            self.availability.status_of,
        )

    def substitution_history(self) -> List[Substitution]:
        return sorted(self.store.list_substitutions(self.game_id), key=lambda s: s.game_seconds)

    def play_time_report(self) -> List[Dict[str, Any]]:
        """Per-player play time for the sideline display, ordered by jersey number."""
        elapsed = self.clock.elapsed_seconds
        players = self.roster.list_players(self.team_id)
        position_names = {p.position_id: p.name for p in self.roster.list_positions(self.team_id)}
        totals = self.ledger.play_time_totals([p.player_id for p in players], elapsed)
        on_field = set(self.ledger.on_field_player_ids())
        statuses = self.availability.statuses()
        return [
            {
                "player_id": p.player_id,
                "name": p.display_name(),
                "number": p.number,
                "play_time_seconds": totals[p.player_id],
                "play_time": format_play_time(totals[p.player_id]),
                "on_field": p.player_id in on_field,
                "availability": statuses.get(p.player_id, AvailabilityStatus.AVAILABLE).value,
                "by_position": self.ledger.play_time_by_position(p.player_id, position_names, elapsed),
            }
            for p in players
        ]

    def snapshot(self) -> Dict[str, Any]:
        """Everything a sideline screen needs, as JSON-serializable data."""
        with self._lock:
            upcoming = self.next_rotation()
            return {
                "game_id": self.game_id,
                "clock": self.clock.to_dict(),
                "display_time": format_game_time_display(self.clock.elapsed_seconds, self.clock.current_half),
                "lineup": self.lineup(),
                "queue": [e.to_dict() for e in self.queue],
                "next_rotation": upcoming.to_dict() if upcoming else None,
                "play_time": self.play_time_report(),
            }


def copy_game_plan(store: RecordStore, source_game_id: str, target_game_id: str) -> Optional[GamePlan]:
    """
    Copy one game's plan and rotations onto another game.

    Returns:
        The new plan, or None when the source game has no plan
    """
    source = store.get_game_plan(source_game_id)
    if source is None:
        logger.info("No game plan found for game %s", source_game_id)
        return None
    existing = store.get_game_plan(target_game_id)
    if existing is not None:
        store.delete_game_plan(existing.plan_id)

    plan = store.save_game_plan(GamePlan(
        game_id=target_game_id,
        rotation_interval_minutes=source.rotation_interval_minutes,
        total_rotations=source.total_rotations,
        starting_lineup=list(source.starting_lineup),
        halftime_lineup=list(source.halftime_lineup),
    ))
    rotations = store.list_planned_rotations(source.plan_id)
    for rotation in rotations:
        store.save_planned_rotation(PlannedRotation(
            plan_id=plan.plan_id,
            rotation_number=rotation.rotation_number,
            game_minute=rotation.game_minute,
            half=rotation.half,
            substitutions=rotation.substitutions,
        ))
    logger.info("Copied %d rotations to game %s", len(rotations), target_game_id)
    return plan
