from __future__ import annotations

import asyncio

import numpy as np
import pytest

from dyslu.errors import DeviceError, EmptyCaptureError
from dyslu.models import PipelineStage
from dyslu.voice.capture import AudioCapture
from dyslu.voice.wav import decode_wav


class StubMicrophone:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.on_chunk = None
        self.opened_with: dict | None = None
        self.closed = 0

    def open(self, on_chunk, *, sample_rate: int, channels: int) -> None:
        if self.fail:
            raise OSError("permission denied")
        self.on_chunk = on_chunk
        self.opened_with = {"sample_rate": sample_rate, "channels": channels}

    def close(self) -> None:
        self.closed += 1

    def feed(self, samples: int, value: int = 1000) -> None:
        self.on_chunk(np.full(samples, value, dtype=np.int16).tobytes())


def test_session_finalizes_chunks_into_one_wav_clip() -> None:
    microphone = StubMicrophone()
    capture = AudioCapture(microphone)

    capture.start_session()
    assert capture.is_recording
    assert microphone.opened_with == {"sample_rate": 16_000, "channels": 1}

    microphone.feed(8_000)
    microphone.feed(8_000)
    clip = capture.stop_session()

    frames, sample_rate = decode_wav(clip.data)
    assert sample_rate == 16_000
    assert len(frames) == 16_000
    assert clip.duration_seconds == 1.0
    assert clip.mime_type == "audio/wav"
    assert microphone.closed == 1
    assert capture.is_recording is False


def test_stop_without_audio_raises_empty_capture() -> None:
    microphone = StubMicrophone()
    capture = AudioCapture(microphone)
    capture.start_session()

    with pytest.raises(EmptyCaptureError) as excinfo:
        capture.stop_session()

    assert excinfo.value.stage == PipelineStage.CAPTURE
    assert microphone.closed == 1
    assert capture.is_recording is False


def test_device_failure_is_reported_as_device_error() -> None:
    capture = AudioCapture(StubMicrophone(fail=True))

    with pytest.raises(DeviceError, match="Could not access microphone"):
        capture.start_session()

    assert capture.is_recording is False


def test_chunks_after_stop_are_ignored() -> None:
    microphone = StubMicrophone()
    capture = AudioCapture(microphone)
    capture.start_session()
    microphone.feed(160)
    late_callback = microphone.on_chunk

    clip = capture.stop_session()
    late_callback(b"\x00\x01" * 160)

    assert len(decode_wav(clip.data)[0]) == 160


def test_levels_are_sampled_while_recording() -> None:
    async def _run() -> list[float]:
        microphone = StubMicrophone()
        capture = AudioCapture(microphone, level_interval_seconds=0.001)
        capture.start_session()
        microphone.feed(160, value=16_384)

        samples: list[float] = []
        async for level in capture.levels():
            samples.append(level)
            if len(samples) == 3:
                capture.stop_session()
        return samples

    samples = asyncio.run(_run())

    assert len(samples) == 3
    assert all(abs(level - 0.5) < 1e-6 for level in samples)
