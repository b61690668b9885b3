"""
Utilities package for the Sideline Rotation Engine.

This package contains utility functions used throughout the application.
"""
from .time_utils import fmt_mmss, now_ts, format_game_time_display, format_play_time
from .constants import (
    APP_TITLE, DEFAULT_HALF_LENGTH_MIN, DEFAULT_MAX_PLAYERS_ON_FIELD,
    DEFAULT_ROTATION_INTERVAL_MIN, MAX_GAME_SECONDS, CHECKPOINT_INTERVAL_TICKS,
    MIN_PLAYERS_PER_GROUP, ROTATION_LOOKBACK_MIN, ROTATION_WARNING_MIN
)

__all__ = [
    "fmt_mmss", "now_ts", "format_game_time_display", "format_play_time",
    "APP_TITLE", "DEFAULT_HALF_LENGTH_MIN", "DEFAULT_MAX_PLAYERS_ON_FIELD",
    "DEFAULT_ROTATION_INTERVAL_MIN", "MAX_GAME_SECONDS", "CHECKPOINT_INTERVAL_TICKS",
    "MIN_PLAYERS_PER_GROUP", "ROTATION_LOOKBACK_MIN", "ROTATION_WARNING_MIN"
]
