"""Configuration management for Beacon."""

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11


DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant for The Array knowledge system."


def _default_home() -> Path:
    return Path(os.environ.get("BEACON_HOME", str(Path.home() / ".beacon"))).expanduser()


def _config_file_path() -> Path:
    """Location of the TOML config file ($BEACON_CONFIG or ~/.beacon/config.toml)."""
    env_path = os.environ.get("BEACON_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return _default_home() / "config.toml"


def _load_config_data(config_file: Path) -> Optional[dict]:
    """Load config data from a TOML file if it exists."""
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except Exception:
        # If config file is malformed, ignore it
        return None


def _get_config_value(data: Optional[dict], keys: list[str]):
    """Safely get a nested config value."""
    if not data:
        return None
    current = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _toml_str(value) -> str:
    """Quote a value as a TOML basic string (JSON string escapes are valid TOML)."""
    return json.dumps(str(value), ensure_ascii=False)


class ArrayConfig(BaseModel):
    """Connection settings for The Array backend."""

    base_url: str = Field(default="https://array.baldlygo.uk")
    timeout_seconds: float = Field(default=30.0)
    recent_sessions_limit: int = Field(default=5)


class ChatConfig(BaseModel):
    """Settings for the chat-completion provider."""

    api_url: str = Field(default="https://api.anthropic.com/v1/messages")
    api_version: str = Field(default="2023-06-01")
    model: str = Field(default="claude-3-5-sonnet-20241022")
    max_tokens: int = Field(default=4096)
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    context_sessions: int = Field(default=3)
    timeout_seconds: float = Field(default=60.0)


class SecretsConfig(BaseModel):
    """Where the chat API key lives."""

    service_name: str = Field(default="uk.baldlygo.beacon")
    api_key_name: str = Field(default="anthropic_api_key")
    backend: str = Field(default="auto", description="auto, keyring, file or memory")
    directory: Path = Field(default_factory=lambda: _default_home() / "secrets")


class VoiceConfig(BaseModel):
    """Recording and transcription settings."""

    recordings_dir: Path = Field(default_factory=lambda: _default_home() / "recordings")
    sample_rate_hz: int = Field(default=44100)
    channels: int = Field(default=1)
    device_name: Optional[str] = Field(default=None)
    whisper_model: str = Field(default="small")
    language: Optional[str] = Field(default="en")
    transcription_consent: bool = Field(default=True)
    transcription_timeout_seconds: float = Field(default=300.0)


class BeaconConfig(BaseModel):
    """Configuration for the Beacon client."""

    array: ArrayConfig = Field(default_factory=ArrayConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)
    voice: VoiceConfig = Field(default_factory=VoiceConfig)
    log_dir: Path = Field(default_factory=lambda: _default_home() / "logs")
    log_level: str = Field(default="INFO")

    model_config = {"frozen": False}

    @classmethod
    def from_env(cls, config_file: Optional[Path] = None) -> "BeaconConfig":
        """Load configuration from environment variables, the TOML file or defaults.

        Precedence: BEACON_* environment variables, then the config file
        ($BEACON_CONFIG or ~/.beacon/config.toml), then built-in defaults.

        Args:
            config_file: Explicit config file path (overrides $BEACON_CONFIG)
        """
        path = config_file or _config_file_path()
        data = _load_config_data(path)
        defaults = cls()

        def pick(env_name: str, keys: list[str], default):
            env_value = os.environ.get(env_name)
            if env_value is not None and env_value != "":
                return env_value
            file_value = _get_config_value(data, keys)
            if file_value is not None:
                return file_value
            return default

        consent_default = _get_config_value(data, ["voice", "transcription_consent"])
        if consent_default is None:
            consent_default = defaults.voice.transcription_consent

        return cls(
            array=ArrayConfig(
                base_url=pick("BEACON_ARRAY_URL", ["array", "base_url"], defaults.array.base_url),
                timeout_seconds=float(pick("BEACON_ARRAY_TIMEOUT", ["array", "timeout_seconds"], defaults.array.timeout_seconds)),
                recent_sessions_limit=int(pick("BEACON_RECENT_SESSIONS_LIMIT", ["array", "recent_sessions_limit"], defaults.array.recent_sessions_limit)),
            ),
            chat=ChatConfig(
                api_url=pick("BEACON_CHAT_API_URL", ["chat", "api_url"], defaults.chat.api_url),
                api_version=pick("BEACON_CHAT_API_VERSION", ["chat", "api_version"], defaults.chat.api_version),
                model=pick("BEACON_CHAT_MODEL", ["chat", "model"], defaults.chat.model),
                max_tokens=int(pick("BEACON_CHAT_MAX_TOKENS", ["chat", "max_tokens"], defaults.chat.max_tokens)),
                system_prompt=pick("BEACON_CHAT_SYSTEM_PROMPT", ["chat", "system_prompt"], defaults.chat.system_prompt),
                context_sessions=int(pick("BEACON_CHAT_CONTEXT_SESSIONS", ["chat", "context_sessions"], defaults.chat.context_sessions)),
                timeout_seconds=float(pick("BEACON_CHAT_TIMEOUT", ["chat", "timeout_seconds"], defaults.chat.timeout_seconds)),
            ),
            secrets=SecretsConfig(
                service_name=pick("BEACON_SECRET_SERVICE", ["secrets", "service_name"], defaults.secrets.service_name),
                api_key_name=pick("BEACON_API_KEY_NAME", ["secrets", "api_key_name"], defaults.secrets.api_key_name),
                backend=pick("BEACON_SECRET_BACKEND", ["secrets", "backend"], defaults.secrets.backend),
                directory=Path(str(pick("BEACON_SECRETS_DIR", ["secrets", "directory"], defaults.secrets.directory))).expanduser(),
            ),
            voice=VoiceConfig(
                recordings_dir=Path(str(pick("BEACON_RECORDINGS_DIR", ["voice", "recordings_dir"], defaults.voice.recordings_dir))).expanduser(),
                sample_rate_hz=int(pick("BEACON_SAMPLE_RATE", ["voice", "sample_rate_hz"], defaults.voice.sample_rate_hz)),
                channels=int(pick("BEACON_CHANNELS", ["voice", "channels"], defaults.voice.channels)),
                device_name=pick("BEACON_INPUT_DEVICE", ["voice", "device_name"], defaults.voice.device_name),
                whisper_model=pick("BEACON_WHISPER_MODEL", ["voice", "whisper_model"], defaults.voice.whisper_model),
                language=pick("BEACON_SPEECH_LANGUAGE", ["voice", "language"], defaults.voice.language),
                transcription_consent=_env_bool("BEACON_TRANSCRIPTION_CONSENT", bool(consent_default)),
                transcription_timeout_seconds=float(pick(
                    "BEACON_TRANSCRIPTION_TIMEOUT",
                    ["voice", "transcription_timeout_seconds"],
                    defaults.voice.transcription_timeout_seconds,
                )),
            ),
            log_dir=Path(str(pick("BEACON_LOG_DIR", ["log_dir"], defaults.log_dir))).expanduser(),
            log_level=str(pick("BEACON_LOG_LEVEL", ["log_level"], defaults.log_level)).upper(),
        )

    def to_toml_str(self) -> str:
        """Generate TOML configuration string."""
        q = _toml_str
        return f"""# Beacon Configuration

log_dir = {q(self.log_dir)}
log_level = {q(self.log_level)}

# The Array backend
[array]
base_url = {q(self.array.base_url)}
timeout_seconds = {self.array.timeout_seconds}
recent_sessions_limit = {self.array.recent_sessions_limit}

# Chat-completion provider
[chat]
api_url = {q(self.chat.api_url)}
api_version = {q(self.chat.api_version)}
model = {q(self.chat.model)}
max_tokens = {self.chat.max_tokens}
system_prompt = {q(self.chat.system_prompt)}
context_sessions = {self.chat.context_sessions}
timeout_seconds = {self.chat.timeout_seconds}

# API key storage
[secrets]
service_name = {q(self.secrets.service_name)}
api_key_name = {q(self.secrets.api_key_name)}
backend = {q(self.secrets.backend)}
directory = {q(self.secrets.directory)}

# Voice notes
[voice]
recordings_dir = {q(self.voice.recordings_dir)}
sample_rate_hz = {self.voice.sample_rate_hz}
channels = {self.voice.channels}
device_name = {q(self.voice.device_name or "")}
whisper_model = {q(self.voice.whisper_model)}
language = {q(self.voice.language or "")}
transcription_consent = {str(self.voice.transcription_consent).lower()}
transcription_timeout_seconds = {self.voice.transcription_timeout_seconds}
"""
