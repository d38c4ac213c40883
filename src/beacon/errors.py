"""Beacon error hierarchy.

All project exceptions inherit from BeaconError, so the CLI can catch one
type at its boundary while the core raises precise failures:

    BeaconError
    ├── ArrayError                  # The Array HTTP API
    │   ├── InvalidResponseError
    │   ├── HttpError
    │   └── DecodingError
    ├── ChatError                   # chat-completion provider
    │   ├── NoAPIKeyError
    │   ├── ChatInvalidResponseError
    │   ├── ChatHttpError
    │   ├── ApiError
    │   └── EmptyResponseError
    ├── VoiceError                  # recording and transcription
    │   ├── NoRecordingError
    │   ├── RecognizerUnavailableError
    │   └── NotAuthorizedError
    └── NoteValidationError
"""

from __future__ import annotations


class BeaconError(Exception):
    """Base class for all Beacon errors."""


class ArrayError(BeaconError):
    """Failure talking to The Array."""


class InvalidResponseError(ArrayError):
    def __init__(self, detail: str | None = None):
        self.detail = detail
        message = "Invalid response from The Array"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class HttpError(ArrayError):
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"HTTP error {status_code}")


class DecodingError(ArrayError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Failed to decode response: {detail}")


class ChatError(BeaconError):
    """Failure talking to the chat-completion provider."""


class NoAPIKeyError(ChatError):
    def __init__(self):
        super().__init__("Anthropic API Key not found. Please add it with 'beacon key set'.")


class ChatInvalidResponseError(ChatError):
    def __init__(self, detail: str | None = None):
        self.detail = detail
        message = "Invalid response from server"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ChatHttpError(ChatError):
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Claude API Error: {status_code}")


class ApiError(ChatError):
    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Claude API Error: {message}")


class EmptyResponseError(ChatError):
    def __init__(self):
        super().__init__("Claude returned an empty response")


class VoiceError(BeaconError):
    """Failure in the voice capture pipeline."""


class NoRecordingError(VoiceError):
    def __init__(self):
        super().__init__("No recording found")


class RecognizerUnavailableError(VoiceError):
    def __init__(self):
        super().__init__("Speech recognition is not available")


class NotAuthorizedError(VoiceError):
    def __init__(self):
        super().__init__("Speech recognition not authorized. Enable transcription consent in the config.")


class NoteValidationError(BeaconError):
    """A note draft is missing a required field."""
