"""Contracts for capture, recognition, completion, synthesis and playback."""

from __future__ import annotations

from typing import Callable, Protocol

from dyslu.models import AudioClip


class MicrophoneStream(Protocol):
    """Represents a microphone-backed audio source."""

    def open(self, on_chunk: Callable[[bytes], None], *, sample_rate: int, channels: int) -> None:
        """Start delivering int16 PCM fragments to ``on_chunk``."""

    def close(self) -> None:
        """Stop the stream and release the device."""


class SpeechRecognizer(Protocol):
    """Converts a recorded clip into text."""

    async def transcribe(self, clip: AudioClip) -> str:
        """Return recognized text from the clip."""


class ChatCompleter(Protocol):
    """Produces the assistant reply for an ordered message list."""

    async def complete(self, messages: list[dict[str, str]]) -> str:
        """Return the assistant text for the given messages."""


class SpeechSynthesizer(Protocol):
    """Converts text responses into audio output."""

    async def synthesize(self, text: str) -> AudioClip:
        """Return a playable clip for the given text."""


class AudioPlayer(Protocol):
    """Interface for a speaker/audio sink."""

    async def play(self, clip: AudioClip) -> None:
        """Play the clip, returning when playback reaches its end."""

    def stop(self) -> None:
        """Halt playback immediately."""
