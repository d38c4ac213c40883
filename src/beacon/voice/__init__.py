"""Voice note capture for Beacon.

Records audio, transcribes it and forwards the transcript to The Array.
"""

from .pipeline import SingleShot, VoiceCapturePipeline, VoiceState, VoiceStatus
from .recognizer import AuthorizationStatus, RecognitionResult, SpeechRecognizer, WhisperRecognizer
from .recorder import Recorder, SoundDeviceRecorder

__all__ = [
    "VoiceCapturePipeline",
    "VoiceState",
    "VoiceStatus",
    "SingleShot",
    # Platform seams
    "Recorder",
    "SoundDeviceRecorder",
    "SpeechRecognizer",
    "WhisperRecognizer",
    "AuthorizationStatus",
    "RecognitionResult",
]
