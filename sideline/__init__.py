"""
Sideline Rotation Engine

Game clock, play-time tracking and rotation planning for youth sports teams.

This package provides the engine services that run a game from the sideline
and a Flask web interface exposing them as a JSON API.
"""
from .models import Game, GameConfig, GameStatus
from .services import GameSession, InMemoryRecordStore, PersistenceService, StaticRosterProvider
from .ui import create_app, run_web_app
from .utils import fmt_mmss, now_ts, APP_TITLE

__version__ = "0.1.0"

__all__ = [
    "Game", "GameConfig", "GameStatus",
    "GameSession", "InMemoryRecordStore", "PersistenceService", "StaticRosterProvider",
    "create_app", "run_web_app",
    "fmt_mmss", "now_ts", "APP_TITLE"
]
