"""
Time ledger service for the Sideline Rotation Engine.

Play time is an append-only list of intervals per player, measured in
game-elapsed seconds, so pausing the clock pauses everyone's play time for
free. A player is on the field exactly when they have an open interval.
"""
import logging
import threading
from typing import Dict, Iterable, List, Mapping, Optional

from ..models import PlayTimeRecord
from .errors import DuplicateOpenInterval
from .record_store import RecordStore

logger = logging.getLogger(__name__)


# ---------- Pure helpers over record lists ---------- #

def calculate_player_play_time(
    player_id: str,
    records: Iterable[PlayTimeRecord],
    current_seconds: Optional[int] = None,
) -> int:
    """
    Total play time of a player.

    Args:
        player_id: Player to total
        records: Play-time records (any mix of players and games)
        current_seconds: Current game time; open intervals count as 0 without it

    Returns:
        Sum of closed durations plus the live duration of any open interval
    """
    return sum(r.duration(current_seconds) for r in records if r.player_id == player_id)


def calculate_play_time_by_position(
    player_id: str,
    records: Iterable[PlayTimeRecord],
    position_names: Mapping[str, str],
    current_seconds: Optional[int] = None,
) -> Dict[str, int]:
    """Play time of a player grouped by position name ("Unknown" for unmapped ids)."""
    totals: Dict[str, int] = {}
    for record in records:
        if record.player_id != player_id:
            continue
        name = position_names.get(record.position_id) or "Unknown"
        totals[name] = totals.get(name, 0) + record.duration(current_seconds)
    return totals


def is_player_currently_playing(player_id: str, records: Iterable[PlayTimeRecord]) -> bool:
    """Return True when the player has an open interval."""
    return any(r.player_id == player_id and r.is_open for r in records)


def count_games_played(player_id: str, records: Iterable[PlayTimeRecord]) -> int:
    """Number of distinct games the player has at least one interval in."""
    return len({r.game_id for r in records if r.player_id == player_id})


# ---------- Store-backed ledger ---------- #

class TimeLedger:
    """
    Play-time ledger of a single game.

    The check for an existing open interval and the creation of a new one run
    under one lock, so a re-synced starter list cannot open a player twice.
    """

    def __init__(self, store: RecordStore, game_id: str):
        self.store = store
        self.game_id = game_id
        self._lock = threading.Lock()

    def records(self) -> List[PlayTimeRecord]:
        """All records of the game, oldest interval first."""
        return sorted(
            self.store.list_play_time_records(self.game_id),
            key=lambda r: (r.start_game_seconds, r.end_game_seconds is None),
        )

    def open_record(self, player_id: str) -> Optional[PlayTimeRecord]:
        """Return the player's open interval, if any."""
        for record in self.store.list_play_time_records(self.game_id):
            if record.player_id == player_id and record.is_open:
                return record
        return None

    def open_interval(self, player_id: str, position_id: str, at_seconds: int) -> PlayTimeRecord:
        """
        Put a player on the field.

        Args:
            player_id: Player entering the field
            position_id: Position they fill
            at_seconds: Game time the interval starts

        Returns:
            The new open record

        Raises:
            DuplicateOpenInterval: If the player already has an open interval
        """
        with self._lock:
            existing = self.open_record(player_id)
            if existing is not None:
                raise DuplicateOpenInterval(
                    f"Player {player_id} already has an open interval at "
                    f"{existing.position_id} since {existing.start_game_seconds}s"
                )
            record = PlayTimeRecord(
                game_id=self.game_id,
                player_id=player_id,
                position_id=position_id,
                start_game_seconds=at_seconds,
            )
            return self.store.create_play_time_record(record)

    def close_interval(self, player_id: str, at_seconds: int) -> Optional[PlayTimeRecord]:
        """
        Take a player off the field.

        Does nothing when the player has no open interval. The end time never
        precedes the start time.

        Returns:
            The closed record, or None if nothing was open
        """
        with self._lock:
            record = self.open_record(player_id)
            if record is None:
                return None
            record.end_game_seconds = max(at_seconds, record.start_game_seconds)
            logger.debug(
                "Closing interval for %s at %ss (duration %ss)",
                player_id, record.end_game_seconds, record.duration(),
            )
            return self.store.update_play_time_record(record)

    def close_all(self, at_seconds: int) -> List[PlayTimeRecord]:
        """Close every open interval of the game (halftime and full time)."""
        closed = []
        with self._lock:
            open_records = [r for r in self.store.list_play_time_records(self.game_id) if r.is_open]
            for record in open_records:
                record.end_game_seconds = max(at_seconds, record.start_game_seconds)
                closed.append(self.store.update_play_time_record(record))
        logger.info("Closed %d open play time records at %ss", len(closed), at_seconds)
        return closed

    def reopen(self, records: Iterable[PlayTimeRecord]) -> int:
        """Undo ``close_all`` for the given records, e.g. when the transition was not stored."""
        reopened = 0
        with self._lock:
            for record in records:
                if self.open_record(record.player_id) is not None:
                    continue
                record.end_game_seconds = None
                self.store.update_play_time_record(record)
                reopened += 1
        logger.info("Reopened %d play time records", reopened)
        return reopened

    def total_play_time(self, player_id: str, current_seconds: int) -> int:
        """Closed durations plus the live duration of an open interval."""
        return calculate_player_play_time(
            player_id, self.store.list_play_time_records(self.game_id), current_seconds
        )

    def is_on_field(self, player_id: str) -> bool:
        return self.open_record(player_id) is not None

    def on_field_player_ids(self) -> List[str]:
        return sorted({r.player_id for r in self.store.list_play_time_records(self.game_id) if r.is_open})

    def play_time_by_position(
        self,
        player_id: str,
        position_names: Mapping[str, str],
        current_seconds: int,
    ) -> Dict[str, int]:
        return calculate_play_time_by_position(
            player_id, self.store.list_play_time_records(self.game_id), position_names, current_seconds
        )

    def play_time_totals(self, player_ids: Iterable[str], current_seconds: int) -> Dict[str, int]:
        """Play time of several players from a single read of the ledger."""
        records = self.store.list_play_time_records(self.game_id)
        return {pid: calculate_player_play_time(pid, records, current_seconds) for pid in player_ids}
