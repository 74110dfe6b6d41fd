"""Tests for focus session commands."""

# pylint: disable=redefined-outer-name

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from streakpro_cli.main import app
from streakpro_cli.models import VerificationResult

runner = CliRunner()


@pytest.fixture
def cli(tmp_config):
    def invoke(*args, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def activity_id(cli):
    result = cli("activity", "add", "Reading", "--minutes", "10", "-o", "json")
    assert result.exit_code == 0, result.output
    return json.loads(result.output[result.output.index("{"):])["id"]


def _fake_display(status: str):
    display = MagicMock()
    display.run = AsyncMock(return_value=status)
    return MagicMock(return_value=display)


def test_start_and_end_records_session(cli, activity_id):
    with patch("streakpro_cli.commands.focus.TimerDisplay", _fake_display("ended")):
        result = cli("focus", "start", str(activity_id), "-d", "Chapter 1")

    assert result.exit_code == 0, result.output
    assert "Session recorded" in result.output

    history = json.loads(cli("history", "list", str(activity_id), "-o", "json").output)
    assert len(history) == 1
    assert history[0]["reconciled"] is True
    assert history[0]["description"] == "Chapter 1"

    assert "1 recorded session" in cli("focus", "streak", str(activity_id)).output


def test_start_with_verify(cli, activity_id):
    classifier = MagicMock()
    classifier.classify = AsyncMock(
        return_value=VerificationResult(verified=True, confidence=0.9, reasoning="fine")
    )
    with (
        patch("streakpro_cli.commands.focus.TimerDisplay", _fake_display("ended")),
        patch(
            "streakpro_cli.services.api.classifier.OpenAIClassifier", return_value=classifier
        ),
    ):
        result = cli("focus", "start", str(activity_id), "-d", "Chapter 2", "--verify")

    assert result.exit_code == 0, result.output
    assert "Session verified" in result.output
    history = json.loads(cli("history", "list", str(activity_id), "-o", "json").output)
    assert history[0]["verified"] is True


def test_start_missing_activity(cli):
    result = cli("focus", "start", "404")
    assert result.exit_code == 5


def test_end_open_without_open_session(cli, activity_id):
    result = cli("focus", "end-open", str(activity_id))
    assert result.exit_code == 5


def test_verify_classifier_unavailable(cli, activity_id, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with patch("streakpro_cli.commands.focus.TimerDisplay", _fake_display("ended")):
        cli("focus", "start", str(activity_id))

    result = cli("focus", "verify", str(activity_id), "-d", "Read")
    assert result.exit_code == 4
    assert "API key missing" in result.output


def test_snapshots_empty(cli):
    result = cli("focus", "snapshots")
    assert result.exit_code == 0
    assert "No saved sessions" in result.output


def test_snapshots_purge(cli, tmp_config):
    tmp_config.snapshot_dir.mkdir(parents=True, exist_ok=True)
    result = cli("focus", "snapshots", "--purge", "--older-than", "1")
    assert result.exit_code == 0
    assert "Purged 0 snapshot(s)" in result.output
