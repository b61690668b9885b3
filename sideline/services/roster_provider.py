"""Read-only roster and formation access for the engine."""

from typing import Dict, Iterable, List, Optional, Protocol

from ..models import FieldPosition, RosterPlayer


class RosterProvider(Protocol):
    """Source of a team's players and field positions."""

    def list_players(self, team_id: str) -> List[RosterPlayer]:
        ...

    def list_positions(self, team_id: str) -> List[FieldPosition]:
        ...


class StaticRosterProvider:
    """RosterProvider backed by fixed lists, keyed by team."""

    def __init__(
        self,
        players: Optional[Dict[str, Iterable[RosterPlayer]]] = None,
        positions: Optional[Dict[str, Iterable[FieldPosition]]] = None,
    ):
        self._players = {team: list(items) for team, items in (players or {}).items()}
        self._positions = {team: list(items) for team, items in (positions or {}).items()}

    @classmethod
    def for_team(
        cls,
        team_id: str,
        players: Iterable[RosterPlayer],
        positions: Iterable[FieldPosition],
    ) -> 'StaticRosterProvider':
        """Build a provider holding a single team."""
        return cls({team_id: players}, {team_id: positions})

    def set_team(
        self,
        team_id: str,
        players: Iterable[RosterPlayer],
        positions: Iterable[FieldPosition],
    ) -> None:
        """Replace a team's players and positions."""
        self._players[team_id] = list(players)
        self._positions[team_id] = list(positions)

    def has_team(self, team_id: str) -> bool:
        return team_id in self._players or team_id in self._positions

    def list_players(self, team_id: str) -> List[RosterPlayer]:
        return sorted(self._players.get(team_id, []), key=lambda p: (p.number, p.player_id))

    def list_positions(self, team_id: str) -> List[FieldPosition]:
        return sorted(self._positions.get(team_id, []), key=lambda p: (p.sort_order, p.position_id))
