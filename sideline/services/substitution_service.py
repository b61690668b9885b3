"""
Substitution service for the Sideline Rotation Engine.

A substitution touches three records that the store cannot update together:
the outgoing player's play-time interval, the lineup assignment of the
position, and the incoming player's new interval. The engine applies them in
a fixed order and, when a step fails, raises SubstitutionFailed naming the
step. Calling the substitution again re-reads the lineup and the ledger and
only applies what is still missing. Repeating a completed swap returns its
history entry; repeating one whose outgoing player has since moved to another
position raises NoCurrentOccupant.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from ..models import LineupAssignment, QueueEntry, Substitution
from .errors import (
    DuplicateOpenInterval, NoCurrentOccupant, PlayerAlreadyAssigned, PositionOccupied,
    QueueConflict, SubstitutionFailed
)
from .record_store import RecordStore
from .time_ledger import TimeLedger

logger = logging.getLogger(__name__)

STEP_CLOSE_OUTGOING = "close_outgoing"
STEP_REASSIGN_LINEUP = "reassign_lineup"
STEP_OPEN_INCOMING = "open_incoming"
STEP_RECORD_HISTORY = "record_history"


class SubstitutionQueue:
    """
    Substitutions the coach has lined up but not yet made.

    Entries are keyed by incoming player; a player and a position can each
    appear at most once.
    """

    def __init__(self):
        self._entries: List[QueueEntry] = []

    def add(self, player_id: str, position_id: str) -> QueueEntry:
        """
        Queue a player to come on at a position.

        Raises:
            QueueConflict: If the player or the position is already queued
        """
        for entry in self._entries:
            if entry.player_id == player_id:
                if entry.position_id == position_id:
                    raise QueueConflict("This player is already queued for this position")
                raise QueueConflict("This player is already queued for another position")
            if entry.position_id == position_id:
                raise QueueConflict("Another player is already queued for this position")
        entry = QueueEntry(player_id, position_id)
        self._entries.append(entry)
        return entry

    def remove(self, player_id: str) -> bool:
        """Drop the player's queued substitution. Returns False if none was queued."""
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.player_id != player_id]
        return len(self._entries) != before

    def clear(self) -> None:
        self._entries.clear()

    def is_queued(self, player_id: str, position_id: Optional[str] = None) -> bool:
        return any(
            e.player_id == player_id and (position_id is None or e.position_id == position_id)
            for e in self._entries
        )

    @property
    def entries(self) -> List[QueueEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[QueueEntry]:
        return iter(list(self._entries))


@dataclass
class BatchResult:
    """
    Outcome of executing the substitution queue.

    Attributes:
        executed: Substitutions that were made, in queue order
        skipped: Entries that could not apply, with the reason
        failed: Entry whose substitution failed part-way, stopping the batch
    """
    executed: List[Substitution] = field(default_factory=list)
    skipped: List[Tuple[QueueEntry, str]] = field(default_factory=list)
    failed: Optional[Tuple[QueueEntry, SubstitutionFailed]] = None

    @property
    def complete(self) -> bool:
        return self.failed is None and not self.skipped

    def to_dict(self) -> Dict[str, object]:
        return {
            "executed": [s.to_dict() for s in self.executed],
            "skipped": [dict(entry.to_dict(), reason=reason) for entry, reason in self.skipped],
            "failed": (
                dict(self.failed[0].to_dict(), step=self.failed[1].step, error=str(self.failed[1]))
                if self.failed else None
            ),
        }


class SubstitutionEngine:
    """Executes substitutions and lineup assignments for one game."""

    def __init__(self, store: RecordStore, ledger: TimeLedger, game_id: str):
        self.store = store
        self.ledger = ledger
        self.game_id = game_id

    # ---------- Lineup queries ---------- #

    def current_lineup(self) -> Dict[str, LineupAssignment]:
        """Lineup assignments keyed by position id."""
        return {a.position_id: a for a in self.store.list_lineup(self.game_id)}

    def occupant(self, position_id: str) -> Optional[LineupAssignment]:
        return self.current_lineup().get(position_id)

    def assignment_for(self, player_id: str) -> Optional[LineupAssignment]:
        for assignment in self.store.list_lineup(self.game_id):
            if assignment.player_id == player_id:
                return assignment
        return None

    # ---------- Substitutions ---------- #

    def execute_substitution(
        self,
        outgoing_player_id: str,
        incoming_player_id: str,
        position_id: str,
        at_seconds: int,
        half: int,
        track_time: bool = True,
    ) -> Substitution:
        """
        Swap the occupant of a position.

        Args:
            outgoing_player_id: Player currently at the position
            incoming_player_id: Player replacing them
            position_id: Position being changed
            at_seconds: Game time of the substitution
            half: Current half, stored in the history
            track_time: Whether the game is live; when False only the lineup changes

        Returns:
            The recorded Substitution

        Raises:
            NoCurrentOccupant: If the outgoing player is not at the position
            PlayerAlreadyAssigned: If the incoming player holds another position
            DuplicateOpenInterval: If the incoming player is already on the field
            SubstitutionFailed: If a step failed after earlier steps were applied
        """
        lineup = self.store.list_lineup(self.game_id)
        at_position = next((a for a in lineup if a.position_id == position_id), None)
        if at_position is None:
            raise NoCurrentOccupant(f"No player currently in position {position_id}")

        # A previous attempt that failed after reassigning the lineup is resumed
        resuming = at_position.player_id == incoming_player_id
        close_outgoing = track_time
        if not resuming:
            if at_position.player_id != outgoing_player_id:
                raise NoCurrentOccupant(
                    f"Player {outgoing_player_id} is not in position {position_id}"
                )
            if any(a.player_id == incoming_player_id for a in lineup):
                raise PlayerAlreadyAssigned(
                    f"Player {incoming_player_id} already holds another position"
                )
            if track_time and self.ledger.is_on_field(incoming_player_id):
                raise DuplicateOpenInterval(f"Player {incoming_player_id} is already on the field")
        elif track_time:
            at_seconds, close_outgoing = self._resume_point(
                outgoing_player_id, incoming_player_id, position_id
            )
            logger.info(
                "Resuming substitution %s -> %s at %s (%ss)",
                outgoing_player_id, incoming_player_id, position_id, at_seconds,
            )

        logger.info(
            "Executing substitution: %s OUT, %s IN at position %s (%ss)",
            outgoing_player_id, incoming_player_id, position_id, at_seconds,
        )
        completed: List[str] = []

        if track_time:
            if close_outgoing:
                try:
                    closed = self.ledger.close_interval(outgoing_player_id, at_seconds)
                except Exception as e:
                    raise SubstitutionFailed(STEP_CLOSE_OUTGOING, completed, e) from e
                if closed is None:
                    logger.warning("No active play time record found for player %s", outgoing_player_id)
            completed.append(STEP_CLOSE_OUTGOING)

        if not resuming:
            at_position.player_id = incoming_player_id
            at_position.is_starter = False
            try:
                self.store.update_lineup_assignment(at_position)
            except Exception as e:
                raise SubstitutionFailed(STEP_REASSIGN_LINEUP, completed, e) from e
        completed.append(STEP_REASSIGN_LINEUP)

        if track_time:
            try:
                if not self.ledger.is_on_field(incoming_player_id):
                    self.ledger.open_interval(incoming_player_id, position_id, at_seconds)
            except Exception as e:
                raise SubstitutionFailed(STEP_OPEN_INCOMING, completed, e) from e
            completed.append(STEP_OPEN_INCOMING)

        substitution = Substitution(
            game_id=self.game_id,
            position_id=position_id,
            player_out_id=outgoing_player_id,
            player_in_id=incoming_player_id,
            half=half,
            game_seconds=at_seconds,
        )
        if resuming:
            for previous in self.store.list_substitutions(self.game_id):
                if (previous.position_id, previous.player_out_id, previous.player_in_id) == (
                    position_id, outgoing_player_id, incoming_player_id
                ) and previous.game_seconds == at_seconds:
                    return previous
        try:
            return self.store.create_substitution(substitution)
        except Exception as e:
            raise SubstitutionFailed(STEP_RECORD_HISTORY, completed, e) from e

    def _resume_point(self, outgoing_player_id: str, incoming_player_id: str,
                      position_id: str) -> Tuple[int, bool]:
        """
        Work out where an interrupted swap stopped, using the ledger.

        Returns:
            (game second of the swap, whether the outgoing interval still needs closing)

        Raises:
            NoCurrentOccupant: If the ledger shows no interrupted swap of these
                               players at this position
        """
        not_here = NoCurrentOccupant(f"Player {outgoing_player_id} is not in position {position_id}")
        outgoing = self.ledger.open_record(outgoing_player_id)
        if outgoing is not None and outgoing.position_id != position_id:
            raise not_here

        incoming = self.ledger.open_record(incoming_player_id)
        if incoming is not None:
            if incoming.position_id != position_id:
                raise not_here
            return incoming.start_game_seconds, outgoing is not None
        if outgoing is not None:
            # The outgoing interval closes before the lineup changes
            raise not_here

        closed = [
            r for r in self.ledger.records()
            if r.player_id == outgoing_player_id and r.position_id == position_id and not r.is_open
        ]
        if not closed:
            raise not_here
        return max(r.end_game_seconds for r in closed), False

    def assign_to_empty_position(
        self,
        player_id: str,
        position_id: str,
        at_seconds: int,
        track_time: bool,
        is_starter: bool = False,
    ) -> LineupAssignment:
        """
        Put a player into an empty position.

        When the game is live the player's interval opens immediately.

        Raises:
            PositionOccupied: If the position already has a player
            PlayerAlreadyAssigned: If the player already holds a position
            SubstitutionFailed: If the interval could not be opened after assigning
        """
        lineup = self.store.list_lineup(self.game_id)
        for assignment in lineup:
            if assignment.position_id == position_id:
                raise PositionOccupied(
                    f"Position {position_id} is held by {assignment.player_id}; substitute instead"
                )
            if assignment.player_id == player_id:
                raise PlayerAlreadyAssigned(
                    f"Player {player_id} already holds position {assignment.position_id}"
                )
        if track_time and self.ledger.is_on_field(player_id):
            raise DuplicateOpenInterval(f"Player {player_id} is already on the field")

        assignment = self.store.create_lineup_assignment(
            LineupAssignment(
                game_id=self.game_id,
                player_id=player_id,
                position_id=position_id,
                is_starter=is_starter,
            )
        )
        if track_time:
            try:
                self.ledger.open_interval(player_id, position_id, at_seconds)
            except Exception as e:
                raise SubstitutionFailed(STEP_OPEN_INCOMING, [STEP_REASSIGN_LINEUP], e) from e
        return assignment

    def remove_from_lineup(self, player_id: str) -> Optional[LineupAssignment]:
        """Remove a player's lineup assignment, leaving the position empty."""
        assignment = self.assignment_for(player_id)
        if assignment is not None:
            self.store.delete_lineup_assignment(assignment.assignment_id)
        return assignment

    def _interrupted_outgoing(self, entry: QueueEntry) -> Optional[Tuple[str, int]]:
        """
        Find a queued swap that stopped after the lineup was reassigned.

        Returns:
            (outgoing player, seconds their interval closed) when the incoming
            player holds the position but was never put on the field
        """
        if self.ledger.is_on_field(entry.player_id):
            return None
        closed = [
            r for r in self.ledger.records()
            if r.position_id == entry.position_id and r.player_id != entry.player_id and not r.is_open
        ]
        if not closed:
            return None
        last = max(closed, key=lambda r: r.end_game_seconds)
        return last.player_id, last.end_game_seconds

    def execute_queue(
        self,
        queue: SubstitutionQueue,
        at_seconds: int,
        half: int,
        track_time: bool = True,
    ) -> BatchResult:
        """
        Apply every queued substitution in queue order.

        Entries whose position is empty are skipped and reported without
        stopping the batch. A substitution that fails part-way stops the batch;
        it and the entries after it stay queued, and the next run resumes it.
        """
        result = BatchResult()
        for entry in queue:
            occupant = self.occupant(entry.position_id)
            if occupant is None:
                logger.warning("Skipping queued substitution for %s: position %s is empty",
                               entry.player_id, entry.position_id)
                result.skipped.append((entry, "No player currently in this position"))
                continue
            outgoing_id, sub_seconds = occupant.player_id, at_seconds
            if occupant.player_id == entry.player_id:
                interrupted = self._interrupted_outgoing(entry) if track_time else None
                if interrupted is None:
                    queue.remove(entry.player_id)
                    result.skipped.append((entry, "Player is already in this position"))
                    continue
                outgoing_id, sub_seconds = interrupted
            try:
                substitution = self.execute_substitution(
                    outgoing_id, entry.player_id, entry.position_id,
                    sub_seconds, half, track_time,
                )
            except SubstitutionFailed as e:
                logger.error("Queued substitution for %s failed: %s", entry.player_id, e)
                result.failed = (entry, e)
                break
            except (PlayerAlreadyAssigned, DuplicateOpenInterval, NoCurrentOccupant) as e:
                result.skipped.append((entry, str(e)))
                continue
            queue.remove(entry.player_id)
            result.executed.append(substitution)
        return result
