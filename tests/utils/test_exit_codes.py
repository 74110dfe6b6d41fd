"""Unit tests for streakpro_cli.utils.exit_codes."""

from __future__ import annotations

import pytest

from streakpro_cli.models.exceptions import (
    ClassifierUnavailable,
    ForbiddenError,
    InvalidTransition,
    NetworkTransientError,
    NotFoundError,
    SessionAlreadyActive,
    StreakProError,
    ValidationError,
)
from streakpro_cli.utils.exit_codes import (
    ERROR_CONFLICT,
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_NETWORK,
    ERROR_NOT_FOUND,
    ERROR_PERMISSION_DENIED,
    SUCCESS,
    get_exit_code_description,
    get_exit_code_name,
)


class TestExitCodeConstants:
    def test_values_are_distinct(self):
        codes = [
            SUCCESS,
            ERROR_GENERAL,
            ERROR_INVALID_ARGS,
            ERROR_CONFLICT,
            ERROR_NETWORK,
            ERROR_NOT_FOUND,
            ERROR_PERMISSION_DENIED,
        ]
        assert codes == [0, 1, 2, 3, 4, 5, 6]


class TestHelpers:
    def test_name(self):
        assert get_exit_code_name(ERROR_NOT_FOUND) == "ERROR_NOT_FOUND"

    def test_unknown_name(self):
        assert get_exit_code_name(99) == "UNKNOWN(99)"

    def test_description(self):
        assert get_exit_code_description(SUCCESS) == "Command executed successfully"
        assert get_exit_code_description(99) == "Unknown error"


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (StreakProError("x"), ERROR_GENERAL),
        (InvalidTransition("start", "finished"), ERROR_INVALID_ARGS),
        (ValidationError("x"), ERROR_INVALID_ARGS),
        (NotFoundError("x"), ERROR_NOT_FOUND),
        (ForbiddenError("x"), ERROR_PERMISSION_DENIED),
        (ClassifierUnavailable("x"), ERROR_NETWORK),
        (NetworkTransientError("x"), ERROR_NETWORK),
        (SessionAlreadyActive("x"), ERROR_CONFLICT),
    ],
)
def test_exception_exit_codes(error, code):
    assert error.exit_code == code


def test_invalid_transition_message():
    error = InvalidTransition("take break", "no breaks left")
    assert str(error) == "Cannot take break: no breaks left"
    assert error.operation == "take break"
