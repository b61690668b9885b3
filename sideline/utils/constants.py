"""
Constants for the Sideline Rotation Engine.

This module contains configuration defaults used throughout the application.
"""

# Application metadata
APP_TITLE = "Sideline Rotation Engine"

# Game timing defaults
DEFAULT_HALF_LENGTH_MIN = 30
MIN_HALF_LENGTH_MIN = 5
MAX_HALF_LENGTH_MIN = 60
HALF_COUNT = 2

# Hard safety cap: a game that is still running after two hours is ended
MAX_GAME_SECONDS = 7200

# Elapsed time is checkpointed to the record store every N ticks
CHECKPOINT_INTERVAL_TICKS = 5
TICK_INTERVAL_SECONDS = 1.0

# Field size configuration (small-sided youth formats up to 11v11)
DEFAULT_MAX_PLAYERS_ON_FIELD = 7
MIN_FIELD_SIZE = 4
MAX_FIELD_SIZE = 11

# Rotation planning
DEFAULT_ROTATION_INTERVAL_MIN = 10
MIN_PLAYERS_PER_GROUP = 3
DEFAULT_DRIFT_THRESHOLD = 0
ROTATION_WARNING_MIN = 1
ROTATION_LOOKBACK_MIN = 2

# Game status values
STATUS_SCHEDULED = "scheduled"
STATUS_IN_PROGRESS = "in-progress"
STATUS_HALFTIME = "halftime"
STATUS_COMPLETED = "completed"

# Availability status values
AVAILABLE = "available"
ABSENT = "absent"
LATE_ARRIVAL = "late-arrival"
INJURED = "injured"
UNAVAILABLE_STATUSES = (ABSENT, INJURED)
