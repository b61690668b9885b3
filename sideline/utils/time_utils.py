"""
Utility functions for the Sideline Rotation Engine.

This module contains the wall-clock source and the time formatting helpers
used throughout the application.
"""
import time


def fmt_mmss(seconds: int) -> str:
    """
    Format seconds as MM:SS string.

    Args:
        seconds: Number of seconds to format

    Returns:
        Formatted time string in MM:SS format

    Example:
        >>> fmt_mmss(90)
        '01:30'
        >>> fmt_mmss(3661)
        '61:01'
    """
    m = seconds // 60
    s = seconds % 60
    return f"{m:02d}:{s:02d}"


def now_ts() -> float:
    """
    Get current timestamp in epoch seconds.

    Returns:
        Current time as floating point epoch seconds
    """
    return time.time()


def format_game_time_display(seconds: int, half: int) -> str:
    """Format game time the way the sideline shows it, e.g. ``15' (1st Half)``."""
    minutes = seconds // 60
    half_text = "1st" if half == 1 else "2nd"
    return f"{minutes}' ({half_text} Half)"


def format_play_time(seconds: int, style: str = "short") -> str:
    """
    Format a play-time total for reports.

    Args:
        seconds: Total seconds played
        style: ``short`` (M:SS, total minutes), ``long`` (``1h 23m``)
               or ``verbose`` (``1 hour 23 minutes``)

    Returns:
        Formatted play-time string
    """
    seconds = max(0, int(seconds))
    hours = seconds // 3600
    minutes_in_hour = (seconds % 3600) // 60
    total_minutes = seconds // 60
    secs = seconds % 60

    if style == "long":
        if hours > 0:
            return f"{hours}h {minutes_in_hour}m"
        return f"{total_minutes}m"

    if style == "verbose":
        parts = []
        if hours > 0:
            parts.append(f"{hours} {'hour' if hours == 1 else 'hours'}")
        if minutes_in_hour > 0:
            parts.append(f"{minutes_in_hour} {'minute' if minutes_in_hour == 1 else 'minutes'}")
        if hours == 0 and minutes_in_hour == 0:
            parts.append(f"{secs} {'second' if secs == 1 else 'seconds'}")
        return " ".join(parts)

    return f"{total_minutes}:{secs:02d}"
