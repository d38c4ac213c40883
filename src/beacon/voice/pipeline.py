"""Voice note capture: record, transcribe, submit, clean up."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from enum import Enum
from pathlib import Path
from typing import Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

from ..array.client import ArrayClient
from ..errors import NoRecordingError, NotAuthorizedError, RecognizerUnavailableError
from ..models.array import IngestRequest, IngestResponse
from ..state import StateChannel
from .recognizer import AuthorizationStatus, RecognitionResult, SpeechRecognizer
from .recorder import Recorder

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VoiceState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"
    TRANSCRIBING = "transcribing"
    TRANSCRIBED = "transcribed"
    FAILED = "failed"


class VoiceStatus(BaseModel):
    """Snapshot of the pipeline for the presentation layer."""

    state: VoiceState = VoiceState.IDLE
    audio_path: Optional[Path] = None
    transcript: str = ""
    error: Optional[str] = None

    model_config = {"frozen": True}


class SingleShot(Generic[T]):
    """A future that settles exactly once.

    Bridges callback APIs that may fire more than once (partial results,
    late errors) to a blocking wait; every call after the first is ignored.
    """

    def __init__(self) -> None:
        self._future: Future = Future()
        self._lock = threading.Lock()

    @property
    def done(self) -> bool:
        return self._future.done()

    def resolve(self, value: T) -> bool:
        with self._lock:
            if self._future.done():
                logger.debug("Ignoring extra resolution")
                return False
            self._future.set_result(value)
            return True

    def reject(self, error: BaseException) -> bool:
        with self._lock:
            if self._future.done():
                logger.debug("Ignoring extra rejection: %s", error)
                return False
            self._future.set_exception(error)
            return True

    def wait(self, timeout: float | None = None) -> T:
        return self._future.result(timeout=timeout)


class VoiceCapturePipeline:
    """Drives one record -> transcribe -> submit cycle at a time.

    The pipeline owns at most one temporary audio file. Starting a new
    recording deletes the previous uncommitted file; submission deletes the
    file whether or not it succeeded.
    """

    def __init__(
        self,
        array_client: ArrayClient,
        recorder: Recorder,
        recognizer: SpeechRecognizer,
        recordings_dir: Path,
        transcription_timeout: float = 300.0,
        authorization_timeout: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self.array_client = array_client
        self.recorder = recorder
        self.recognizer = recognizer
        self.recordings_dir = recordings_dir
        self.transcription_timeout = transcription_timeout
        self.authorization_timeout = authorization_timeout
        self._clock = clock
        self._lock = threading.RLock()
        self._channel: StateChannel[VoiceStatus] = StateChannel(VoiceStatus())

    @property
    def status(self) -> VoiceStatus:
        return self._channel.current

    @property
    def is_recording(self) -> bool:
        return self.status.state == VoiceState.RECORDING

    def subscribe(self, listener: Callable[[VoiceStatus], None]) -> Callable[[], None]:
        return self._channel.subscribe(listener)

    def _update(self, **changes) -> VoiceStatus:
        snapshot = self.status.model_copy(update=changes)
        self._channel.publish(snapshot)
        return snapshot

    # Recording ------------------------------------------------------------

    def _new_audio_path(self) -> Path:
        stamp = f"{self._clock():.6f}"
        path = self.recordings_dir / f"voice_note_{stamp}.wav"
        counter = 1
        while path.exists():
            path = self.recordings_dir / f"voice_note_{stamp}_{counter}.wav"
            counter += 1
        return path

    def start_recording(self) -> Path:
        """Begin capturing to a fresh temporary file.

        Any previous uncommitted file is deleted first. If the recorder fails
        the pipeline stays IDLE and the error propagates.
        """
        with self._lock:
            if self.recorder.is_recording:
                self.recorder.stop()
            self._delete_audio_file()

            self.recordings_dir.mkdir(parents=True, exist_ok=True)
            path = self._new_audio_path()
            try:
                self.recorder.start(path)
            except Exception as e:
                self._remove_quietly(path)
                self._update(state=VoiceState.IDLE, audio_path=None, error=str(e))
                raise

            self._update(state=VoiceState.RECORDING, audio_path=path, transcript="", error=None)
            return path

    def stop_recording(self) -> None:
        """Stop capturing. Does nothing when not recording."""
        with self._lock:
            if self.status.state != VoiceState.RECORDING:
                return
            self.recorder.stop()
            self._update(state=VoiceState.STOPPED)

    def discard_recording(self) -> None:
        """Stop any capture, delete the temporary file and return to IDLE."""
        with self._lock:
            if self.recorder.is_recording:
                self.recorder.stop()
            self._delete_audio_file()
            self._update(state=VoiceState.IDLE, transcript="", error=None)

    # Transcription --------------------------------------------------------

    def transcribe_recording(self) -> str:
        """Transcribe the last recording and return the final transcript.

        Raises:
            NoRecordingError: Nothing has been recorded
            RecognizerUnavailableError: Speech recognition cannot run
            NotAuthorizedError: The user has not allowed transcription
        """
        with self._lock:
            if self.status.state == VoiceState.RECORDING:
                self.stop_recording()

            audio_path = self.status.audio_path
            if audio_path is None:
                raise NoRecordingError()

            if not self.recognizer.is_available:
                error = RecognizerUnavailableError()
                self._update(error=str(error))
                raise error

            auth: SingleShot[AuthorizationStatus] = SingleShot()
            self.recognizer.request_authorization(auth.resolve)
            if auth.wait(timeout=self.authorization_timeout) != AuthorizationStatus.AUTHORIZED:
                error = NotAuthorizedError()
                self._update(error=str(error))
                raise error

            self._update(state=VoiceState.TRANSCRIBING, error=None)
            logger.info("Transcribing %s", audio_path)

            outcome: SingleShot[str] = SingleShot()

            def _handle(result: Optional[RecognitionResult], error: Optional[Exception]) -> None:
                if error is not None:
                    outcome.reject(error)
                elif result is not None and result.is_final:
                    outcome.resolve(result.text)

            try:
                self.recognizer.recognize(audio_path, _handle)
                transcript = outcome.wait(timeout=self.transcription_timeout)
            except Exception as e:
                self._update(state=VoiceState.FAILED, error=str(e) or type(e).__name__)
                raise

            self._update(state=VoiceState.TRANSCRIBED, transcript=transcript)
            logger.info("Transcribed %d characters", len(transcript))
            return transcript

    # Submission -----------------------------------------------------------

    def submit_audio_note(self, title: str, tags: list[str] | None = None) -> IngestResponse:
        """Transcribe the recording and ingest it as a voice note.

        The temporary audio file is deleted afterwards whether or not
        transcription and ingest succeeded; deletion errors are only logged.
        """
        with self._lock:
            try:
                transcript = self.transcribe_recording()
                request = IngestRequest(
                    source_type="voice_note",
                    title=title,
                    content=transcript,
                    device="beacon-ios",
                    tags=list(tags or []),
                )
                return self.array_client.ingest(request)
            finally:
                self._delete_audio_file()

    # Helpers --------------------------------------------------------------

    def _delete_audio_file(self) -> None:
        path = self.status.audio_path
        if path is None:
            return
        self._remove_quietly(path)
        self._update(audio_path=None)

    @staticmethod
    def _remove_quietly(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not delete temporary audio file %s: %s", path, e)
