"""Microphone recording sessions that yield one finalized clip per recording."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum

from dyslu.errors import DeviceError, EmptyCaptureError, PipelineError
from dyslu.models import AudioClip

from .interfaces import MicrophoneStream
from .wav import encode_pcm16_wav, pcm16_level


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


@dataclass(slots=True)
class RecordingSession:
    """Fragments buffered between a start and a stop."""

    state: RecordingState = RecordingState.IDLE
    chunks: list[bytes] = field(default_factory=list)

    @property
    def byte_count(self) -> int:
        return sum(len(chunk) for chunk in self.chunks)


class AudioCapture:
    """Owns the microphone stream for one recording session at a time."""

    def __init__(
        self,
        microphone: MicrophoneStream,
        *,
        sample_rate: int = 16_000,
        channels: int = 1,
        level_interval_seconds: float = 0.1,
        logger: logging.Logger | None = None,
    ) -> None:
        self._microphone = microphone
        self._sample_rate = sample_rate
        self._channels = channels
        self._level_interval_seconds = level_interval_seconds
        self._logger = logger or logging.getLogger("dyslu.voice.capture")

        self._lock = threading.Lock()
        self._session: RecordingSession | None = None
        self._level = 0.0

    @property
    def is_recording(self) -> bool:
        session = self._session
        return session is not None and session.state == RecordingState.RECORDING

    @property
    def level(self) -> float:
        """Latest amplitude sample; advisory only."""
        return self._level

    def start_session(self) -> None:
        """Open the microphone and begin buffering fragments."""
        if self.is_recording:
            return

        session = RecordingSession(state=RecordingState.RECORDING)
        self._session = session
        self._level = 0.0
        try:
            self._microphone.open(self._on_chunk, sample_rate=self._sample_rate, channels=self._channels)
        except PipelineError:
            self._session = None
            raise
        except Exception as exc:  # noqa: BLE001 - any device failure means no usable input.
            self._session = None
            self._logger.exception("capture_device_failed")
            raise DeviceError("Could not access microphone") from exc

        self._logger.info(
            "capture_started",
            extra={"sample_rate": self._sample_rate, "channels": self._channels},
        )

    def stop_session(self) -> AudioClip:
        """Close the microphone and return the buffered audio as one WAV clip."""
        session = self._session
        if session is None:
            raise EmptyCaptureError("No recording in progress")

        self._release()
        with self._lock:
            session.state = RecordingState.STOPPED
            pcm = b"".join(session.chunks)
        self._session = None
        self._level = 0.0

        self._logger.info("capture_stopped", extra={"bytes": len(pcm), "chunks": len(session.chunks)})
        if not pcm:
            raise EmptyCaptureError("Nothing was recorded. Check your microphone and try again.")

        frame_count = len(pcm) // (2 * self._channels)
        return AudioClip(
            data=encode_pcm16_wav(pcm, sample_rate=self._sample_rate, channels=self._channels),
            mime_type="audio/wav",
            filename="audio.wav",
            duration_seconds=frame_count / self._sample_rate,
        )

    def close(self) -> None:
        """Release the device if a session is still open."""
        if self._session is None:
            return
        self._release()
        self._session = None
        self._level = 0.0

    async def levels(self) -> AsyncIterator[float]:
        """Yield amplitude samples at a fixed cadence while recording."""
        while self.is_recording:
            yield self._level
            await asyncio.sleep(self._level_interval_seconds)

    def _on_chunk(self, chunk: bytes) -> None:
        if not chunk:
            return
        with self._lock:
            session = self._session
            if session is None or session.state != RecordingState.RECORDING:
                return
            session.chunks.append(bytes(chunk))
        self._level = pcm16_level(chunk)

    def _release(self) -> None:
        try:
            self._microphone.close()
        except Exception:  # noqa: BLE001 - closing must not mask the recorded audio.
            self._logger.exception("capture_release_failed")
