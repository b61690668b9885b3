"""Availability tracking for a single game."""

from typing import Dict, Iterable, List, Optional

from ..models import AvailabilityStatus, PlayerAvailability, RosterPlayer
from ..utils import now_ts
from .record_store import RecordStore


class AvailabilityTracker:
    """
    Per-game player availability, consulted by the planner and the live engine.

    A player without a record is available.
    """

    def __init__(self, store: RecordStore, game_id: str):
        self.store = store
        self.game_id = game_id

    def records(self) -> Dict[str, PlayerAvailability]:
        return {a.player_id: a for a in self.store.list_availability(self.game_id)}

    def statuses(self) -> Dict[str, AvailabilityStatus]:
        """Status of every player that has a record."""
        return {pid: a.status for pid, a in self.records().items()}

    def status_of(self, player_id: str) -> AvailabilityStatus:
        record = self.records().get(player_id)
        return record.status if record else AvailabilityStatus.AVAILABLE

    def set_status(
        self,
        player_id: str,
        status: AvailabilityStatus,
        reason: Optional[str] = None,
        available_from_minute: Optional[int] = None,
    ) -> PlayerAvailability:
        """
        Record a player's availability for this game.

        Args:
            player_id: Player to update
            status: New status
            reason: Free-text note shown to the coach
            available_from_minute: Expected arrival minute (late arrivals only)

        Returns:
            The stored availability record
        """
        if status != AvailabilityStatus.LATE_ARRIVAL:
            available_from_minute = None
        record = PlayerAvailability(
            game_id=self.game_id,
            player_id=player_id,
            status=status,
            reason=reason,
            marked_at=now_ts(),
            available_from_minute=available_from_minute,
        )
        return self.store.save_availability(record)

    def mark_late_arrival_available(self, player_id: str, note: Optional[str] = None) -> PlayerAvailability:
        """A late-arriving player has turned up and can be substituted in."""
        return self.set_status(player_id, AvailabilityStatus.AVAILABLE, note)

    def is_unavailable(self, player_id: str) -> bool:
        """Absent or injured."""
        return self.status_of(player_id).is_unavailable

    def is_eligible(self, player_id: str, minute: Optional[int] = None) -> bool:
        """
        Whether a player can be planned onto the field.

        Late arrivals count as eligible unless an expected arrival minute is
        known and ``minute`` falls before it.
        """
        record = self.records().get(player_id)
        if record is None or record.status == AvailabilityStatus.AVAILABLE:
            return True
        if record.status == AvailabilityStatus.LATE_ARRIVAL:
            if minute is None or record.available_from_minute is None:
                return True
            return minute >= record.available_from_minute
        return False

    def eligible_players(self, players: Iterable[RosterPlayer]) -> List[RosterPlayer]:
        """Players that are available or arriving late."""
        statuses = self.statuses()
        return [
            p for p in players
            if not statuses.get(p.player_id, AvailabilityStatus.AVAILABLE).is_unavailable
        ]

    def arrival_minutes(self) -> Dict[str, int]:
        """Expected arrival minute of each late arrival that has one."""
        return {
            pid: a.available_from_minute
            for pid, a in self.records().items()
            if a.status == AvailabilityStatus.LATE_ARRIVAL and a.available_from_minute is not None
        }
