"""PCM16 and WAV helpers shared by capture, synthesis and playback."""

from __future__ import annotations

import io

import numpy as np
import soundfile as sf

_INT16_FULL_SCALE = 32768.0


def _int16_frames(pcm: bytes, channels: int) -> np.ndarray:
    frame_bytes = 2 * channels
    usable = len(pcm) - len(pcm) % frame_bytes
    samples = np.frombuffer(pcm[:usable], dtype=np.int16)
    if channels > 1:
        samples = samples.reshape(-1, channels)
    return samples


def encode_pcm16_wav(pcm: bytes, *, sample_rate: int, channels: int = 1) -> bytes:
    """Wrap raw little-endian int16 PCM in a WAV container."""
    buffer = io.BytesIO()
    sf.write(buffer, _int16_frames(pcm, channels), sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


def decode_wav(data: bytes) -> tuple[np.ndarray, int]:
    """Return float32 frames and sample rate for an encoded clip."""
    frames, sample_rate = sf.read(io.BytesIO(data), dtype="float32")
    return frames, sample_rate


def wav_duration(data: bytes) -> float | None:
    """Duration in seconds, or ``None`` when the payload cannot be parsed."""
    if not data:
        return None
    try:
        return float(sf.info(io.BytesIO(data)).duration)
    except RuntimeError:
        return None


def pcm16_level(chunk: bytes) -> float:
    """Normalized RMS amplitude (0..1) of an int16 PCM fragment."""
    samples = _int16_frames(chunk, 1).astype(np.float32)
    if samples.size == 0:
        return 0.0
    rms = float(np.sqrt(np.mean(np.square(samples)))) / _INT16_FULL_SCALE
    return min(1.0, rms)
