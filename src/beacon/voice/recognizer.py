"""Speech recognition with Faster-Whisper behind a callback interface."""

from __future__ import annotations

import importlib.util
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class AuthorizationStatus(str, Enum):
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    is_final: bool


RecognitionHandler = Callable[[Optional[RecognitionResult], Optional[Exception]], None]


class SpeechRecognizer(Protocol):
    """Callback-based speech recognition.

    recognize() may invoke its handler several times: zero or more partial
    results, then a final result or an error.
    """

    @property
    def is_available(self) -> bool:
        ...

    def request_authorization(self, handler: Callable[[AuthorizationStatus], None]) -> None:
        ...

    def recognize(self, audio_path: Path, handler: RecognitionHandler) -> None:
        ...


class WhisperRecognizer:
    """Local transcription with faster-whisper on a worker thread.

    Reports one partial result per decoded segment and a final result with
    the full transcript. Authorization reflects the user's transcription
    consent setting.
    """

    def __init__(
        self,
        model_name: str = "small",
        language: str | None = None,
        consent: bool = True,
        device: str | None = None,
        compute_type: str | None = None,
    ):
        self.model_name = model_name
        self.language = language or None
        self.consent = consent
        self.device = device
        self.compute_type = compute_type
        self._model = None
        self._model_lock = threading.Lock()

    @property
    def is_available(self) -> bool:
        return importlib.util.find_spec("faster_whisper") is not None

    def request_authorization(self, handler: Callable[[AuthorizationStatus], None]) -> None:
        handler(AuthorizationStatus.AUTHORIZED if self.consent else AuthorizationStatus.DENIED)

    def recognize(self, audio_path: Path, handler: RecognitionHandler) -> None:
        thread = threading.Thread(
            target=self._run,
            args=(audio_path, handler),
            name="beacon-transcriber",
            daemon=True,
        )
        thread.start()

    def _load_model(self):
        with self._model_lock:
            if self._model is None:
                from faster_whisper import WhisperModel

                kwargs = {}
                if self.device:
                    kwargs["device"] = self.device
                if self.compute_type:
                    kwargs["compute_type"] = self.compute_type
                self._model = WhisperModel(self.model_name, **kwargs)
            return self._model

    def _run(self, audio_path: Path, handler: RecognitionHandler) -> None:
        try:
            model = self._load_model()
            segments, _info = model.transcribe(str(audio_path), language=self.language)
            parts: list[str] = []
            for seg in segments:
                parts.append(seg.text.strip())
                handler(RecognitionResult(text=" ".join(parts), is_final=False), None)
        except Exception as exc:
            logger.error("Transcription of %s failed: %s", audio_path, exc)
            handler(None, exc)
            return
        handler(RecognitionResult(text=" ".join(p for p in parts if p), is_final=True), None)
