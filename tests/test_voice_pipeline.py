"""Tests for the voice capture pipeline."""

from unittest.mock import Mock, patch

import pytest

from conftest import FakeRecognizer, FakeRecorder

from beacon.array.client import ArrayClient
from beacon.errors import HttpError, NoRecordingError, NotAuthorizedError, RecognizerUnavailableError
from beacon.models.array import IngestResponse
from beacon.voice.pipeline import SingleShot, VoiceCapturePipeline, VoiceState
from beacon.voice.recognizer import AuthorizationStatus, RecognitionResult


def test_transcribe_before_recording_fails(voice_pipeline):
    with pytest.raises(NoRecordingError):
        voice_pipeline.transcribe_recording()

    assert voice_pipeline.status.state == VoiceState.IDLE


def test_start_recording_allocates_file(voice_pipeline, fake_recorder, tmp_path):
    path = voice_pipeline.start_recording()

    assert path.parent == tmp_path / "recordings"
    assert path.name.startswith("voice_note_")
    assert path.suffix == ".wav"
    assert fake_recorder.started == [path]
    assert voice_pipeline.status.state == VoiceState.RECORDING
    assert voice_pipeline.status.audio_path == path


def test_start_failure_leaves_pipeline_idle(tmp_path):
    pipeline = VoiceCapturePipeline(
        array_client=Mock(spec=ArrayClient),
        recorder=FakeRecorder(fail_with=OSError("no input device")),
        recognizer=FakeRecognizer(),
        recordings_dir=tmp_path / "recordings",
    )

    with pytest.raises(OSError, match="no input device"):
        pipeline.start_recording()

    assert pipeline.status.state == VoiceState.IDLE
    assert pipeline.status.audio_path is None
    with pytest.raises(NoRecordingError):
        pipeline.transcribe_recording()


def test_stop_when_not_recording_is_a_no_op(voice_pipeline, fake_recorder):
    voice_pipeline.stop_recording()

    assert fake_recorder.stop_calls == 0
    assert voice_pipeline.status.state == VoiceState.IDLE


def test_stop_transitions_to_stopped(voice_pipeline, fake_recorder):
    voice_pipeline.start_recording()
    voice_pipeline.stop_recording()
    voice_pipeline.stop_recording()

    assert fake_recorder.stop_calls == 1
    assert voice_pipeline.status.state == VoiceState.STOPPED


def test_new_recording_deletes_previous_file(voice_pipeline):
    """Test the pipeline owns at most one temporary file."""
    with patch.object(voice_pipeline, "_clock", side_effect=[1000.0, 1001.0]):
        first = voice_pipeline.start_recording()
        voice_pipeline.stop_recording()
        second = voice_pipeline.start_recording()

    assert first != second
    assert not first.exists()
    assert second.exists()


def test_transcribe_ignores_partial_results(voice_pipeline, fake_recognizer):
    voice_pipeline.start_recording()
    voice_pipeline.stop_recording()

    transcript = voice_pipeline.transcribe_recording()

    assert transcript == "hello world"
    assert voice_pipeline.status.state == VoiceState.TRANSCRIBED
    assert voice_pipeline.status.transcript == "hello world"


def test_transcribe_stops_active_recording(voice_pipeline, fake_recorder):
    voice_pipeline.start_recording()

    voice_pipeline.transcribe_recording()

    assert fake_recorder.stop_calls == 1


def test_transcribe_settles_once_when_callback_repeats(voice_pipeline, fake_recognizer):
    """Test a final result followed by a late error still yields the first outcome."""
    fake_recognizer.events = [
        (RecognitionResult(text="first final", is_final=True), None),
        (RecognitionResult(text="second final", is_final=True), None),
        (None, RuntimeError("late error")),
    ]
    voice_pipeline.start_recording()

    assert voice_pipeline.transcribe_recording() == "first final"


def test_transcribe_waits_for_threaded_recognizer(voice_pipeline, fake_recognizer):
    fake_recognizer.threaded = True
    voice_pipeline.start_recording()

    assert voice_pipeline.transcribe_recording() == "hello world"


def test_recognizer_error_marks_failed(voice_pipeline, fake_recognizer):
    fake_recognizer.events = [(None, RuntimeError("decoder crashed"))]
    voice_pipeline.start_recording()

    with pytest.raises(RuntimeError, match="decoder crashed"):
        voice_pipeline.transcribe_recording()

    assert voice_pipeline.status.state == VoiceState.FAILED
    assert voice_pipeline.status.error == "decoder crashed"


def test_recognizer_unavailable(voice_pipeline, fake_recognizer):
    fake_recognizer.available = False
    voice_pipeline.start_recording()

    with pytest.raises(RecognizerUnavailableError):
        voice_pipeline.transcribe_recording()


def test_authorization_denied(voice_pipeline, fake_recognizer):
    fake_recognizer.authorization = AuthorizationStatus.DENIED
    voice_pipeline.start_recording()

    with pytest.raises(NotAuthorizedError):
        voice_pipeline.transcribe_recording()
    assert fake_recognizer.recognized == []


def test_submit_audio_note_ingests_and_cleans_up(voice_pipeline):
    voice_pipeline.array_client.ingest.return_value = IngestResponse(success=True, message="Saved")
    path = voice_pipeline.start_recording()
    voice_pipeline.stop_recording()

    response = voice_pipeline.submit_audio_note("Walk thoughts", tags=["idea"])

    assert response.success is True
    request = voice_pipeline.array_client.ingest.call_args.args[0]
    assert request.source_type == "voice_note"
    assert request.device == "beacon-ios"
    assert request.title == "Walk thoughts"
    assert request.content == "hello world"
    assert request.tags == ["idea"]
    assert not path.exists()
    assert voice_pipeline.status.audio_path is None


def test_submit_audio_note_cleans_up_on_ingest_failure(voice_pipeline):
    voice_pipeline.array_client.ingest.side_effect = HttpError(500)
    path = voice_pipeline.start_recording()

    with pytest.raises(HttpError):
        voice_pipeline.submit_audio_note("Walk thoughts")

    assert not path.exists()


def test_cleanup_errors_are_swallowed(voice_pipeline):
    voice_pipeline.array_client.ingest.return_value = IngestResponse(success=True, message="Saved")
    voice_pipeline.start_recording()

    with patch("pathlib.Path.unlink", side_effect=PermissionError("locked")):
        response = voice_pipeline.submit_audio_note("Walk thoughts")

    assert response.success is True


def test_discard_recording(voice_pipeline):
    path = voice_pipeline.start_recording()

    voice_pipeline.discard_recording()

    assert not path.exists()
    assert voice_pipeline.status.state == VoiceState.IDLE


def test_single_shot_ignores_later_settlements():
    shot = SingleShot()

    assert shot.resolve("a") is True
    assert shot.resolve("b") is False
    assert shot.reject(RuntimeError("c")) is False
    assert shot.wait(timeout=1) == "a"
