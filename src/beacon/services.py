"""Construction and wiring of Beacon's components."""

from __future__ import annotations

from dataclasses import dataclass

from .array.client import ArrayClient
from .chat.orchestrator import ConversationOrchestrator
from .config import BeaconConfig
from .llm.client import ChatClient
from .notes import NoteSubmissionFlow
from .secret_store import ApiKeyManager, SecretStore, create_secret_store
from .voice.pipeline import VoiceCapturePipeline
from .voice.recognizer import SpeechRecognizer, WhisperRecognizer
from .voice.recorder import Recorder, SoundDeviceRecorder


@dataclass
class BeaconServices:
    """One instance of each component, built once and passed to consumers."""

    config: BeaconConfig
    secret_store: SecretStore
    api_keys: ApiKeyManager
    array_client: ArrayClient
    chat_client: ChatClient
    voice_pipeline: VoiceCapturePipeline
    notes: NoteSubmissionFlow

    def new_orchestrator(self) -> ConversationOrchestrator:
        return ConversationOrchestrator(self.chat_client, self.array_client)


def build_services(
    config: BeaconConfig,
    *,
    secret_store: SecretStore | None = None,
    recorder: Recorder | None = None,
    recognizer: SpeechRecognizer | None = None,
) -> BeaconServices:
    """Build every component from config.

    Args:
        config: Effective configuration
        secret_store: Override the configured secret backend
        recorder: Override the sounddevice recorder
        recognizer: Override the faster-whisper recognizer
    """
    store = secret_store or create_secret_store(config.secrets)
    api_keys = ApiKeyManager(store, config.secrets.api_key_name)

    array_client = ArrayClient(
        base_url=config.array.base_url,
        timeout=config.array.timeout_seconds,
    )
    chat_client = ChatClient(array_client, api_keys, config=config.chat)

    voice_pipeline = VoiceCapturePipeline(
        array_client=array_client,
        recorder=recorder or SoundDeviceRecorder(
            sample_rate_hz=config.voice.sample_rate_hz,
            channels=config.voice.channels,
            device_name=config.voice.device_name,
        ),
        recognizer=recognizer or WhisperRecognizer(
            model_name=config.voice.whisper_model,
            language=config.voice.language,
            consent=config.voice.transcription_consent,
        ),
        recordings_dir=config.voice.recordings_dir,
        transcription_timeout=config.voice.transcription_timeout_seconds,
    )

    return BeaconServices(
        config=config,
        secret_store=store,
        api_keys=api_keys,
        array_client=array_client,
        chat_client=chat_client,
        voice_pipeline=voice_pipeline,
        notes=NoteSubmissionFlow(array_client, voice_pipeline),
    )
