"""Note submission: text notes and voice notes to The Array inbox."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field

from .array.client import ArrayClient
from .errors import BeaconError, NoteValidationError
from .models.array import IngestResponse
from .state import StateChannel
from .voice.pipeline import VoiceCapturePipeline

logger = logging.getLogger(__name__)


class NoteMode(str, Enum):
    TEXT = "text"
    VOICE = "voice"


class NoteDraft(BaseModel):
    """What the user filled in on the create-note form."""

    title: str = ""
    content: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    mode: NoteMode = NoteMode.TEXT


class NoteOutcome(BaseModel):
    """Terminal result of one submission."""

    success: bool
    message: str
    response: Optional[IngestResponse] = None

    model_config = {"frozen": True}


class NoteStatus(BaseModel):
    is_submitting: bool = False
    outcome: Optional[NoteOutcome] = None

    model_config = {"frozen": True}


def parse_tags(text: str | None) -> list[str]:
    """Split a comma separated tag string, dropping blanks."""
    if not text:
        return []
    return [tag.strip() for tag in text.split(",") if tag.strip()]


def validate_draft(draft: NoteDraft) -> None:
    """Raise NoteValidationError if the draft cannot be submitted."""
    if not draft.title.strip():
        raise NoteValidationError("A title is required")
    if draft.mode == NoteMode.TEXT and not (draft.content or "").strip():
        raise NoteValidationError("Content is required for a text note")


class NoteSubmissionFlow:
    """Submits a note draft and reports a single terminal outcome.

    Text drafts go straight to ArrayClient.save_note; voice drafts run the
    voice pipeline's transcribe-and-submit step on the current recording.
    """

    def __init__(self, array_client: ArrayClient, voice_pipeline: VoiceCapturePipeline | None = None):
        self.array_client = array_client
        self.voice_pipeline = voice_pipeline
        self._channel: StateChannel[NoteStatus] = StateChannel(NoteStatus())

    @property
    def status(self) -> NoteStatus:
        return self._channel.current

    def subscribe(self, listener: Callable[[NoteStatus], None]) -> Callable[[], None]:
        return self._channel.subscribe(listener)

    def submit(self, draft: NoteDraft) -> NoteOutcome:
        """Validate and submit the draft. Failures come back as an outcome, never raised."""
        try:
            validate_draft(draft)
        except NoteValidationError as e:
            return self._complete(NoteOutcome(success=False, message=str(e)))

        self._channel.publish(NoteStatus(is_submitting=True))
        try:
            if draft.mode == NoteMode.VOICE:
                response = self._submit_voice(draft)
            else:
                response = self.array_client.save_note(
                    title=draft.title,
                    content=draft.content or "",
                    tags=draft.tags,
                )
        except BeaconError as e:
            logger.error("Note %r failed: %s", draft.title, e)
            return self._complete(NoteOutcome(success=False, message=str(e)))
        except Exception as e:
            # Recorder and recognizer failures come from the platform untyped.
            logger.exception("Note %r failed", draft.title)
            return self._complete(NoteOutcome(success=False, message=str(e) or type(e).__name__))

        return self._complete(
            NoteOutcome(success=response.success, message=response.message, response=response)
        )

    def quick_note(self) -> NoteOutcome:
        """Send a system-check note tagged beacon/test."""
        draft = NoteDraft(
            title="Test from Beacon",
            content=f"System check initiated at {datetime.now().strftime('%Y-%m-%d %H:%M')}",
            tags=["beacon", "test"],
        )
        return self.submit(draft)

    def _submit_voice(self, draft: NoteDraft) -> IngestResponse:
        if self.voice_pipeline is None:
            raise NoteValidationError("Voice notes are not available")
        return self.voice_pipeline.submit_audio_note(title=draft.title, tags=draft.tags)

    def _complete(self, outcome: NoteOutcome) -> NoteOutcome:
        self._channel.publish(NoteStatus(is_submitting=False, outcome=outcome))
        return outcome
