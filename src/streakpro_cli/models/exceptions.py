"""Custom exceptions for StreakPro."""

from streakpro_cli.utils import exit_codes


class StreakProError(Exception):
    """Base exception for all StreakPro errors."""

    exit_code = exit_codes.ERROR_GENERAL


class InvalidTransition(StreakProError):
    """Raised by a strict engine when an operation's preconditions do not hold."""

    exit_code = exit_codes.ERROR_INVALID_ARGS

    def __init__(self, operation: str, reason: str):
        super().__init__(f"Cannot {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class ValidationError(StreakProError):
    """Raised when caller input is rejected before touching storage."""

    exit_code = exit_codes.ERROR_INVALID_ARGS


class NotFoundError(StreakProError):
    """Raised when an activity or history record does not exist."""

    exit_code = exit_codes.ERROR_NOT_FOUND


class ForbiddenError(StreakProError):
    """Raised when the activity is not owned by the calling principal."""

    exit_code = exit_codes.ERROR_PERMISSION_DENIED


class ClassifierUnavailable(StreakProError):
    """Raised when the verification classifier cannot be reached or returns garbage."""

    exit_code = exit_codes.ERROR_NETWORK


class NetworkTransientError(StreakProError):
    """Raised when a boundary call fails for a reason worth retrying."""

    exit_code = exit_codes.ERROR_NETWORK


class SessionAlreadyActive(StreakProError):
    """Raised when a second session is started for an activity with a live one."""

    exit_code = exit_codes.ERROR_CONFLICT
