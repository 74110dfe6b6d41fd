"""Time arithmetic for focus sessions.

Pure functions over non-negative integer seconds. Negative input is a caller
error and raises ``ValueError``.
"""

from __future__ import annotations

import math


def _require_non_negative(value: float, name: str = "seconds") -> None:
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positive values.

    Python's built-in ``round`` uses banker's rounding (``round(2.5) == 2``);
    recorded durations use the half-up rule so 150 seconds is 3 minutes.
    """
    _require_non_negative(value, "value")
    return int(math.floor(value + 0.5))


def minutes_to_seconds(minutes: float) -> int:
    """Convert minutes to whole seconds."""
    _require_non_negative(minutes, "minutes")
    return round_half_up(minutes * 60)


def seconds_to_minutes(seconds: float) -> int:
    """Convert seconds to whole minutes, rounding half up."""
    _require_non_negative(seconds)
    return round_half_up(seconds / 60)


def milliseconds_to_minutes(milliseconds: float) -> int:
    """Convert a millisecond span to whole minutes, rounding half up."""
    _require_non_negative(milliseconds, "milliseconds")
    return round_half_up(milliseconds / 60000)


def to_clock(seconds: int) -> str:
    """Format seconds as ``MM:SS``, or ``HH:MM:SS`` from one hour up.

    Examples:
        >>> to_clock(65)
        '01:05'
        >>> to_clock(3725)
        '01:02:05'
    """
    _require_non_negative(seconds)
    seconds = int(seconds)
    hrs, rest = divmod(seconds, 3600)
    mins, secs = divmod(rest, 60)
    if hrs > 0:
        return f"{hrs:02d}:{mins:02d}:{secs:02d}"
    return f"{mins:02d}:{secs:02d}"


def session_duration_minutes(focus_seconds: int, break_seconds: int) -> int:
    """Total recorded duration of a session in minutes (focus plus breaks)."""
    _require_non_negative(focus_seconds, "focus_seconds")
    _require_non_negative(break_seconds, "break_seconds")
    return seconds_to_minutes(focus_seconds + break_seconds)


def progress_percent(total_seconds: int, remaining_seconds: int) -> int:
    """Percentage of a countdown already consumed, clamped to 0..100."""
    _require_non_negative(total_seconds, "total_seconds")
    _require_non_negative(remaining_seconds, "remaining_seconds")
    if total_seconds == 0:
        return 0
    elapsed = total_seconds - remaining_seconds
    return max(0, min(100, int(elapsed / total_seconds * 100)))
