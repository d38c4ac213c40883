"""Audio recording to a local WAV file."""

from __future__ import annotations

import logging
import threading
import wave
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Recorder(Protocol):
    """Captures microphone audio to a file until stopped."""

    @property
    def is_recording(self) -> bool:
        ...

    def start(self, output_path: Path) -> None:
        """Begin capture into output_path. Raises if the audio device fails."""
        ...

    def stop(self) -> None:
        """Stop capture and close the file. No-op when not recording."""
        ...


def list_input_devices() -> List[Dict[str, Any]]:
    try:
        import sounddevice as sd
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise RuntimeError("sounddevice is required for device detection.") from exc

    devices = sd.query_devices()
    return [d for d in devices if d.get("max_input_channels", 0) > 0]


def select_input_device(
    candidates: List[Dict[str, Any]],
    prefer_name: Optional[str] = None,
) -> Dict[str, Any]:
    if not candidates:
        raise RuntimeError("No input devices found.")
    if prefer_name:
        preferred = [
            d for d in candidates if prefer_name.lower() in d.get("name", "").lower()
        ]
        if preferred:
            return preferred[0]
    return candidates[0]


class SoundDeviceRecorder:
    """Records 16-bit PCM WAV through sounddevice on a background thread.

    The input stream runs in duplex-capable default mode, so playback on the
    same device keeps working while recording.
    """

    def __init__(
        self,
        sample_rate_hz: int = 44100,
        channels: int = 1,
        device_name: Optional[str] = None,
    ):
        self.sample_rate_hz = sample_rate_hz
        self.channels = channels
        self.device_name = device_name or None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()
        self._error: Optional[BaseException] = None
        self.frames_written = 0

    @property
    def is_recording(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, output_path: Path) -> None:
        if self.is_recording:
            self.stop()

        try:
            import sounddevice as sd
        except Exception as exc:  # pragma: no cover - environment-dependent
            raise RuntimeError("sounddevice is required for recording.") from exc

        device = select_input_device(list_input_devices(), prefer_name=self.device_name)
        device_index = device.get("index")

        self._stop_event.clear()
        self._started.clear()
        self._error = None
        self.frames_written = 0

        self._thread = threading.Thread(
            target=self._run,
            args=(sd, output_path, device_index),
            name="beacon-recorder",
            daemon=True,
        )
        self._thread.start()
        self._started.wait(timeout=5)
        if self._error is not None:
            error = self._error
            self._thread.join(timeout=1)
            self._thread = None
            raise error
        logger.info("Recording to %s (device=%s)", output_path, device.get("name"))

    def _run(self, sd, output_path: Path, device_index) -> None:
        try:
            with wave.open(str(output_path), "wb") as handle:
                handle.setnchannels(self.channels)
                handle.setsampwidth(2)
                handle.setframerate(self.sample_rate_hz)

                def _callback(indata, frames, _time, status):
                    if status:
                        return
                    handle.writeframes(indata.tobytes())
                    self.frames_written += frames

                with sd.InputStream(
                    samplerate=self.sample_rate_hz,
                    channels=self.channels,
                    dtype="int16",
                    device=device_index,
                    callback=_callback,
                ):
                    self._started.set()
                    while not self._stop_event.is_set():
                        sd.sleep(100)
        except Exception as exc:
            self._error = exc
            logger.error("Recording failed: %s", exc)
        finally:
            self._started.set()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=5)
        self._thread = None
        logger.info(
            "Recording stopped (%.1fs)", self.frames_written / float(self.sample_rate_hz)
        )
