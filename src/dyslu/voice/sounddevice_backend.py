"""Microphone capture and speaker playback powered by ``sounddevice``."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from dyslu.errors import DeviceError
from dyslu.models import AudioClip

from .interfaces import AudioPlayer, MicrophoneStream
from .wav import decode_wav


def _import_sounddevice(purpose: str) -> Any:
    try:
        import sounddevice as sd
    except (ImportError, OSError) as exc:  # pragma: no cover - import guard
        raise RuntimeError(
            f"{purpose} backend unavailable. Install extras with: pip install 'dyslu[audio]'"
        ) from exc
    return sd


class SoundDeviceMicrophone(MicrophoneStream):
    """Stream int16 PCM fragments from an input device."""

    def __init__(self, *, device: int | str | None = None, blocksize: int = 1600) -> None:
        self._sd = _import_sounddevice("Microphone")
        self._device = device
        self._blocksize = blocksize
        self._stream: Any = None

    def open(self, on_chunk: Callable[[bytes], None], *, sample_rate: int, channels: int) -> None:
        def _callback(indata, frames, time_info, status) -> None:
            on_chunk(bytes(indata))

        try:
            stream = self._sd.RawInputStream(
                samplerate=sample_rate,
                channels=channels,
                dtype="int16",
                blocksize=self._blocksize,
                device=self._device,
                callback=_callback,
            )
            stream.start()
        except self._sd.PortAudioError as exc:
            raise DeviceError("Could not access microphone") from exc
        self._stream = stream

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        stream.stop()
        stream.close()


class SoundDevicePlayer(AudioPlayer):
    """Speaker playback of decoded clips on the default output device."""

    def __init__(self, *, device: int | str | None = None) -> None:
        self._sd = _import_sounddevice("Audio output")
        self._device = device

    async def play(self, clip: AudioClip) -> None:
        frames, sample_rate = decode_wav(clip.data)
        self._sd.play(frames, sample_rate, device=self._device)
        await asyncio.to_thread(self._sd.wait)

    def stop(self) -> None:
        self._sd.stop()
