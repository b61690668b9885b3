"""
Web application module for the Sideline Rotation Engine.

This module contains the Flask web server exposing the game command and
query surface as JSON API endpoints.
"""
import logging
import os
import uuid
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from ..models import FieldPosition, Game, GameConfig, RosterPlayer
from ..services import (
    ClockTicker, EngineError, GameCommandManager, GameSession, InMemoryRecordStore,
    PersistenceError, PersistenceService, StaticRosterProvider, SubstitutionFailed,
    build_command
)
from ..utils import APP_TITLE

logger = logging.getLogger(__name__)

# Commands after which the clock should be ticking
TICKING_COMMANDS = ("start", "resume", "start-second-half")


class WebAppState:
    """
    State holder for the web application.

    Keeps the record store, the rosters and one session (with its command
    history) per game that has been touched.
    """

    def __init__(
        self,
        store: Optional[InMemoryRecordStore] = None,
        roster: Optional[StaticRosterProvider] = None,
        auto_tick: bool = False,
    ):
        self.store = store or InMemoryRecordStore()
        self.roster = roster or StaticRosterProvider()
        self.auto_tick = auto_tick
        self.configs: Dict[str, GameConfig] = {}
        self.sessions: Dict[str, GameSession] = {}
        self.command_managers: Dict[str, GameCommandManager] = {}
        self.tickers: Dict[str, ClockTicker] = {}

    def register_team(self, team_id: str, players, positions, config: Optional[GameConfig] = None) -> None:
        self.roster.set_team(team_id, players, positions)
        self.configs[team_id] = config or GameConfig()

    def create_game(self, team_id: str, opponent: str = "", game_id: Optional[str] = None) -> Game:
        game = Game(game_id=game_id or uuid.uuid4().hex, team_id=team_id, opponent=opponent)
        return self.store.save_game(game)

    def session_for(self, game_id: str) -> GameSession:
        """
        Get (or open) the session of a game.

        Raises:
            KeyError: If the game does not exist
        """
        session = self.sessions.get(game_id)
        if session is None:
            game = self.store.get_game(game_id)
            if game is None:
                raise KeyError(f"Game {game_id} not found")
            session = GameSession(game, self.store, self.roster, self.configs.get(game.team_id))
            session.attach()
            self.sessions[game_id] = session
            self.command_managers[game_id] = GameCommandManager()
        return session

    def ensure_ticking(self, session: GameSession) -> None:
        if not self.auto_tick:
            return
        ticker = self.tickers.get(session.game_id)
        if ticker is None or not ticker.running:
            ticker = ClockTicker(session)
            self.tickers[session.game_id] = ticker
            ticker.start()

    def replace_store(self, store: InMemoryRecordStore) -> None:
        """Swap in a loaded store, dropping every open session."""
        self.shutdown()
        self.store = store

    def shutdown(self) -> None:
        for ticker in self.tickers.values():
            ticker.stop()
        for session in self.sessions.values():
            session.detach()
        self.tickers.clear()
        self.sessions.clear()
        self.command_managers.clear()


def _error(message: str, kind: str, status: int, **extra: Any) -> Tuple[Any, int]:
    body = {"success": False, "error": message, "kind": kind}
    body.update(extra)
    return jsonify(body), status


def _message(e: BaseException) -> str:
    if isinstance(e, KeyError) and e.args:
        return str(e.args[0])
    return str(e)


def create_app(state: Optional[WebAppState] = None) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        state: Application state; a fresh in-memory one when omitted

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app_state = state or WebAppState()
    app.config["APP_STATE"] = app_state

    def _payload() -> Dict[str, Any]:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    # ==================== API Endpoints ==================== #

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"success": True, "app": APP_TITLE})

    @app.route("/api/teams", methods=["POST"])
    def register_team():
        """Register a team's roster, formation and game settings."""
        data = _payload()
        team_id = data.get("team_id")
        if not team_id:
            return _error("team_id is required", "invalid_input", 400)
        try:
            players = [RosterPlayer.from_dict(p) for p in data.get("players", [])]
            positions = [FieldPosition.from_dict(p) for p in data.get("positions", [])]
            config = GameConfig.from_dict(data.get("config"))
        except (KeyError, TypeError, ValueError) as e:
            return _error(f"Invalid team data: {_message(e)}", "invalid_input", 400)
        app_state.register_team(team_id, players, positions, config)
        return jsonify({"success": True, "team_id": team_id, "config": config.to_dict()})

    @app.route("/api/games", methods=["GET"])
    def list_games():
        return jsonify({"success": True, "games": [g.to_dict() for g in app_state.store.list_games()]})

    @app.route("/api/games", methods=["POST"])
    def create_game():
        data = _payload()
        team_id = data.get("team_id")
        if not team_id:
            return _error("team_id is required", "invalid_input", 400)
        if not app_state.roster.has_team(team_id):
            return _error(f"Team {team_id} not found", "not_found", 404)
        game = app_state.create_game(team_id, data.get("opponent", ""), data.get("game_id"))
        return jsonify({"success": True, "game": game.to_dict()}), 201

    @app.route("/api/games/<game_id>/state", methods=["GET"])
    def get_state(game_id: str):
        """Current clock, lineup, queue, next rotation and play time."""
        try:
            session = app_state.session_for(game_id)
        except KeyError as e:
            return _error(_message(e), "not_found", 404)
        return jsonify({"success": True, "state": session.snapshot()})

    @app.route("/api/games/<game_id>/commands/<name>", methods=["POST"])
    def run_command(game_id: str, name: str):
        """Run one action of the command surface."""
        try:
            session = app_state.session_for(game_id)
            command = build_command(name, session, _payload())
        except KeyError as e:
            return _error(_message(e), "not_found", 404)

        manager = app_state.command_managers[game_id]
        try:
            result = manager.execute_command(command)
        except SubstitutionFailed as e:
            logger.error("Substitution failed in game %s: %s", game_id, e)
            return _error(str(e), e.kind, 500, step=e.step,
                          completed_steps=e.completed_steps, retryable=e.retryable)
        except PersistenceError as e:
            logger.error("Persistence failed in game %s: %s", game_id, e)
            return _error(str(e), e.kind, 500)
        except EngineError as e:
            return _error(str(e), e.kind, 409)
        except KeyError as e:
            return _error(_message(e), "not_found", 404)
        except (TypeError, ValueError) as e:
            return _error(_message(e), "invalid_input", 400)

        if name in TICKING_COMMANDS:
            app_state.ensure_ticking(session)
        return jsonify({
            "success": True,
            "message": command.description,
            "result": result,
            "state": session.snapshot(),
        })

    @app.route("/api/games/<game_id>/conflicts", methods=["GET"])
    def get_conflicts(game_id: str):
        try:
            session = app_state.session_for(game_id)
        except KeyError as e:
            return _error(_message(e), "not_found", 404)
        return jsonify({"success": True, "conflicts": [c.to_dict() for c in session.conflicts()]})

    @app.route("/api/games/<game_id>/history", methods=["GET"])
    def get_history(game_id: str):
        """Command history and substitution history of a game."""
        try:
            session = app_state.session_for(game_id)
        except KeyError as e:
            return _error(_message(e), "not_found", 404)
        manager = app_state.command_managers[game_id]
        return jsonify({
            "success": True,
            "history": manager.get_command_history(),
            "substitutions": [s.to_dict() for s in session.substitution_history()],
        })

    @app.route("/api/save", methods=["POST"])
    def save_store():
        """Return every record for client-side saving."""
        return jsonify({"success": True, "data": app_state.store.export_snapshot()})

    @app.route("/api/load", methods=["POST"])
    def load_store():
        """Replace the store with uploaded records."""
        data = _payload().get("data")
        if not isinstance(data, dict):
            return _error("No store data provided", "invalid_input", 400)
        try:
            store = InMemoryRecordStore.from_snapshot(data)
        except (KeyError, TypeError, ValueError) as e:
            return _error(f"Invalid store data: {_message(e)}", "invalid_input", 400)
        app_state.replace_store(store)
        return jsonify({"success": True, "games": len(store.list_games())})

    return app


def run_web_app(host: str = "127.0.0.1", port: int = 7122, store_file: Optional[str] = None) -> None:
    """
    Run the web application.

    Args:
        host: Host address to bind to (default: localhost only)
        port: Port number to listen on
        store_file: JSON file to load records from and auto-save to on exit
    """
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    store = None
    if store_file and os.path.exists(store_file):
        store = PersistenceService.load_store_from_file(store_file)
        logger.info("Loaded records from %s", store_file)

    state = WebAppState(store=store, auto_tick=True)
    app = create_app(state)
    try:
        app.run(host=host, port=port, debug=False)
    finally:
        state.shutdown()
        if store_file:
            PersistenceService.save_store_to_file(state.store, store_file)
