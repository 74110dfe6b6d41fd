"""Tests for configuration commands."""

import json

from typer.testing import CliRunner

from streakpro_cli.main import app

runner = CliRunner()


def test_show(tmp_config):
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert json.loads(result.output)["classifier"]["model"] == "gpt-3.5-turbo"


def test_set_and_get(tmp_config):
    result = runner.invoke(app, ["config", "set", "session.record_retries", "5"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["config", "get", "session.record_retries"])
    assert result.exit_code == 0
    assert result.output.strip() == "5"


def test_set_unknown_key(tmp_config):
    result = runner.invoke(app, ["config", "set", "nope.key", "1"])
    assert result.exit_code == 2


def test_set_invalid_value(tmp_config):
    result = runner.invoke(app, ["config", "set", "session.tick_seconds", "abc"])
    assert result.exit_code == 2


def test_reset(tmp_config):
    runner.invoke(app, ["config", "set", "classifier.model", "other"])
    result = runner.invoke(app, ["config", "reset", "--yes"])
    assert result.exit_code == 0
    result = runner.invoke(app, ["config", "get", "classifier.model"])
    assert result.output.strip() == "gpt-3.5-turbo"
