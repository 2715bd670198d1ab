"""Hosted transcription, chat completion and speech synthesis via the OpenAI API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI

from dyslu.config import Settings
from dyslu.errors import CompletionError, TranscribeError
from dyslu.models import AudioClip

from .interfaces import ChatCompleter, SpeechRecognizer, SpeechSynthesizer
from .wav import wav_duration

_SPEECH_MIME_TYPES = {
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
    "flac": "audio/flac",
    "opus": "audio/ogg",
    "aac": "audio/aac",
}


def build_openai_client(config: Settings) -> AsyncOpenAI:
    """Construct the single API client; fails fast when the credential is missing."""
    return AsyncOpenAI(
        api_key=config.require_api_key(),
        base_url=config.openai_base_url,
        timeout=config.request_timeout_seconds,
        max_retries=0,
    )


@dataclass(slots=True)
class OpenAITranscriber(SpeechRecognizer):
    """Speech-to-text through the audio transcription endpoint."""

    client: Any
    model: str = "whisper-1"
    language: str | None = None

    async def transcribe(self, clip: AudioClip) -> str:
        kwargs: dict[str, Any] = {
            "file": (clip.filename, clip.data, clip.mime_type),
            "model": self.model,
        }
        if self.language:
            kwargs["language"] = self.language

        result = await self.client.audio.transcriptions.create(**kwargs)
        text = (getattr(result, "text", None) or "").strip()
        if not text:
            raise TranscribeError("No speech was recognized in the recording.")
        return text


@dataclass(slots=True)
class OpenAIChatCompleter(ChatCompleter):
    """Assistant replies through the chat completions endpoint."""

    client: Any
    model: str = "gpt-3.5-turbo"

    async def complete(self, messages: list[dict[str, str]]) -> str:
        response = await self.client.chat.completions.create(model=self.model, messages=messages)
        if not response.choices:
            raise CompletionError("Chat completion returned no choices.")
        content = response.choices[0].message.content
        if content is None:
            raise CompletionError("Chat completion returned no text.")
        return content.strip()


@dataclass(slots=True)
class OpenAISpeechSynthesizer(SpeechSynthesizer):
    """Text-to-speech through the audio speech endpoint."""

    client: Any
    model: str = "tts-1"
    voice: str = "alloy"
    response_format: str = "wav"

    async def synthesize(self, text: str) -> AudioClip:
        response = await self.client.audio.speech.create(
            model=self.model,
            voice=self.voice,
            input=text,
            response_format=self.response_format,
        )
        data = response.content
        duration = wav_duration(data) if self.response_format == "wav" else None
        return AudioClip(
            data=data,
            mime_type=_SPEECH_MIME_TYPES.get(self.response_format, "application/octet-stream"),
            filename=f"speech.{self.response_format}",
            duration_seconds=duration,
        )
