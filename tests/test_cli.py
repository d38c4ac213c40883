"""Tests for the beacon command line."""

from unittest.mock import Mock, patch

import pytest
from typer.testing import CliRunner

from beacon.array.client import ArrayClient
from beacon.cli import app
from beacon.config import BeaconConfig
from beacon.errors import InvalidResponseError
from beacon.models.array import ArrayStatus, IngestResponse, QueueResponse
from beacon.secret_store import MemorySecretStore
from beacon.services import build_services

runner = CliRunner()


@pytest.fixture
def services(tmp_path, fake_recorder, fake_recognizer):
    config = BeaconConfig(log_dir=tmp_path / "logs")
    built = build_services(
        config,
        secret_store=MemorySecretStore(),
        recorder=fake_recorder,
        recognizer=fake_recognizer,
    )
    built.array_client = Mock(spec=ArrayClient)
    built.notes.array_client = built.array_client
    return built


@pytest.fixture
def cli(services):
    with patch("beacon.cli._services", return_value=services):
        yield services


def test_status_online(cli):
    cli.array_client.get_status.return_value = ArrayStatus(
        status="online",
        version="1.4.0",
        hostname="array-01",
        uptime_seconds=42,
    )

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "ONLINE" in result.output
    assert "ARRAY-01" in result.output


def test_status_offline(cli):
    cli.array_client.get_status.side_effect = InvalidResponseError()

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 1
    assert "OFFLINE" in result.output


def test_queue_empty(cli):
    cli.array_client.get_queue.return_value = QueueResponse(count=0, items=[])

    result = runner.invoke(app, ["queue"])

    assert result.exit_code == 0
    assert "INBOX EMPTY" in result.output


def test_note_saves_text(cli):
    cli.array_client.save_note.return_value = IngestResponse(success=True, message="Saved", item_id="abc")

    result = runner.invoke(app, ["note", "--title", "Idea", "--content", "body", "--tags", "a, b"])

    assert result.exit_code == 0
    cli.array_client.save_note.assert_called_once_with(title="Idea", content="body", tags=["a", "b"])
    assert "Saved to Array inbox" in result.output


def test_note_without_content_fails(cli):
    result = runner.invoke(app, ["note", "--title", "Idea"])

    assert result.exit_code == 1
    cli.array_client.save_note.assert_not_called()


def test_chat_requires_api_key(cli):
    result = runner.invoke(app, ["chat", "-m", "hello"])

    assert result.exit_code == 1
    assert "API Key not found" in result.output


def test_key_set_and_status(cli):
    result = runner.invoke(app, ["key", "set", "--value", "sk-ant-123456"])

    assert result.exit_code == 0
    assert cli.api_keys.get_api_key() == "sk-ant-123456"

    result = runner.invoke(app, ["key", "status"])
    assert "*********3456" in result.output

    runner.invoke(app, ["key", "clear"])
    assert cli.api_keys.has_api_key is False


def test_version():
    from beacon import __version__

    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
