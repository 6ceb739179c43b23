"""
Tests for the project-events CLI.

The publisher is patched so no real transport or sleep is involved.
"""

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from conftest import ScriptedTransport
from project_events.cli import app

runner = CliRunner()


@pytest.fixture
def payload_file(tmp_path):
    def _write(data):
        path = tmp_path / "payload.json"
        path.write_text(json.dumps(data))
        return str(path)

    return _write


@pytest.fixture
def cli_publisher(make_publisher):
    """Patch the CLI's publisher factory around a given transport."""

    def _patch(transport):
        return patch("project_events.cli._build_publisher", return_value=make_publisher(transport))

    return _patch


def test_list_events_shows_every_event():
    result = runner.invoke(app, ["list-events"])

    assert result.exit_code == 0
    for name in ("project.created", "project.updated", "project.archived", "project.deleted"):
        assert name in result.stdout


def test_publish_success(cli_publisher, payload_file, created_event):
    transport = ScriptedTransport(fail_times=1)

    with cli_publisher(transport):
        result = runner.invoke(
            app,
            ["publish", "project.created", "-f", payload_file(created_event), "-c", "req-1"],
        )

    assert result.exit_code == 0, result.stdout
    assert "Published project.created (2 attempt(s))" in result.stdout
    assert transport.calls[-1]["options"].correlation_id == "req-1"
    assert transport.closed


def test_publish_dry_run_does_not_publish(cli_publisher, payload_file, updated_event):
    transport = ScriptedTransport()

    with cli_publisher(transport):
        result = runner.invoke(
            app, ["publish", "project.updated", "-f", payload_file(updated_event), "--dry-run"]
        )

    assert result.exit_code == 0
    assert "Dry run" in result.stdout
    assert "eventMetadata" in result.stdout
    assert transport.calls == []


def test_publish_unknown_event_type(payload_file):
    result = runner.invoke(app, ["publish", "project.exploded", "-f", payload_file({})])

    assert result.exit_code == 1
    assert "Unknown event type" in result.stdout


def test_publish_invalid_payload(payload_file):
    result = runner.invoke(
        app, ["publish", "project.created", "-f", payload_file({"projectId": "p"})]
    )

    assert result.exit_code == 1
    assert "Invalid payload" in result.stdout


def test_publish_unreadable_payload_file(tmp_path):
    result = runner.invoke(app, ["publish", "project.created", "-f", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "Error reading payload file" in result.stdout


def test_publish_high_priority_failure_exits_nonzero(cli_publisher, payload_file, deleted_event):
    with cli_publisher(ScriptedTransport(fail_times=None)):
        result = runner.invoke(
            app,
            [
                "publish",
                "project.deleted",
                "-f",
                payload_file(deleted_event),
                "--max-retries",
                "2",
            ],
        )

    assert result.exit_code == 1
    assert "Error publishing event" in result.stdout


def test_publish_best_effort_failure_is_reported(cli_publisher, payload_file, archived_event):
    with cli_publisher(ScriptedTransport(fail_times=None)):
        result = runner.invoke(app, ["publish", "project.archived", "-f", payload_file(archived_event)])

    assert result.exit_code == 1
    assert "could not be delivered" in result.stdout


def test_health_healthy(cli_publisher):
    with cli_publisher(ScriptedTransport()):
        result = runner.invoke(app, ["health"])

    assert result.exit_code == 0
    status = json.loads(result.stdout)
    assert status["status"] == "healthy"
    assert status["circuit_breaker_state"] == "closed"


def test_health_unhealthy(cli_publisher):
    with cli_publisher(ScriptedTransport(healthy=False)):
        result = runner.invoke(app, ["health"])

    assert result.exit_code == 1
