"""Pytest fixtures for Beacon tests."""

import threading
from pathlib import Path
from unittest.mock import Mock

import pytest

from beacon.array.client import ArrayClient
from beacon.config import ChatConfig
from beacon.llm.client import ChatClient
from beacon.secret_store import ApiKeyManager, MemorySecretStore
from beacon.voice.pipeline import VoiceCapturePipeline
from beacon.voice.recognizer import AuthorizationStatus, RecognitionResult


def make_response(status_code=200, json_data=None, json_error=None):
    """Build a Mock requests.Response.

    Args:
        status_code: HTTP status to report
        json_data: Value returned by response.json()
        json_error: Exception raised by response.json() instead

    Returns:
        Mock response
    """
    response = Mock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


class FakeRecorder:
    """Recorder that writes a few bytes instead of touching audio hardware."""

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.started: list[Path] = []
        self.stop_calls = 0
        self._recording = False

    @property
    def is_recording(self) -> bool:
        return self._recording

    def start(self, output_path: Path) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        output_path.write_bytes(b"RIFF fake wav")
        self.started.append(output_path)
        self._recording = True

    def stop(self) -> None:
        self.stop_calls += 1
        self._recording = False


class FakeRecognizer:
    """Recognizer driven by a scripted list of handler calls."""

    def __init__(
        self,
        events=None,
        available=True,
        authorization=AuthorizationStatus.AUTHORIZED,
        threaded=False,
    ):
        self.events = events if events is not None else [
            (RecognitionResult(text="hello", is_final=False), None),
            (RecognitionResult(text="hello world", is_final=True), None),
        ]
        self.available = available
        self.authorization = authorization
        self.threaded = threaded
        self.recognized: list[Path] = []

    @property
    def is_available(self) -> bool:
        return self.available

    def request_authorization(self, handler) -> None:
        handler(self.authorization)

    def recognize(self, audio_path: Path, handler) -> None:
        self.recognized.append(audio_path)

        def _emit():
            for result, error in self.events:
                handler(result, error)

        if self.threaded:
            threading.Thread(target=_emit).start()
        else:
            _emit()


@pytest.fixture
def mock_session():
    """A Mock standing in for requests.Session."""
    return Mock()


@pytest.fixture
def array_client(mock_session):
    return ArrayClient(base_url="https://array.example", timeout=30, session=mock_session)


@pytest.fixture
def secret_store():
    return MemorySecretStore()


@pytest.fixture
def api_keys(secret_store):
    return ApiKeyManager(secret_store, "anthropic_api_key")


@pytest.fixture
def chat_session():
    """Separate transport for the chat-completion provider."""
    return Mock()


@pytest.fixture
def chat_client(api_keys, chat_session):
    array = Mock(spec=ArrayClient)
    array.get_recent_sessions.return_value = []
    return ChatClient(array, api_keys, config=ChatConfig(), session=chat_session)


@pytest.fixture
def fake_recorder():
    return FakeRecorder()


@pytest.fixture
def fake_recognizer():
    return FakeRecognizer()


@pytest.fixture
def voice_pipeline(tmp_path, fake_recorder, fake_recognizer):
    array = Mock(spec=ArrayClient)
    return VoiceCapturePipeline(
        array_client=array,
        recorder=fake_recorder,
        recognizer=fake_recognizer,
        recordings_dir=tmp_path / "recordings",
        transcription_timeout=5,
        authorization_timeout=5,
    )
