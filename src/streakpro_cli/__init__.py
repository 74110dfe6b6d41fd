"""StreakPro CLI - focus/break streak sessions with reconciled history."""

__version__ = "0.3.0"
