from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class RevealState(str, Enum):
    NOT_STARTED = "not_started"
    REVEALING = "revealing"
    COMPLETE = "complete"


class PipelineStage(str, Enum):
    CAPTURE = "capture"
    TRANSCRIBE = "transcribe"
    COMPLETE = "complete"
    SYNTHESIZE = "synthesize"
    PLAYBACK = "playback"


@dataclass(frozen=True, slots=True)
class AudioClip:
    """Finalized audio payload, either captured or synthesized."""

    data: bytes
    mime_type: str = "audio/wav"
    filename: str = "audio.wav"
    duration_seconds: float | None = None

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class TurnRecord:
    """One transcript entry; only the reveal fields ever change."""

    role: Role
    text: str
    audio: AudioClip | None = None
    reveal_state: RevealState = RevealState.COMPLETE
    revealed_chars: int = 0

    @classmethod
    def user(cls, text: str) -> TurnRecord:
        return cls(role=Role.USER, text=text, revealed_chars=len(text))

    @classmethod
    def assistant(cls, text: str, audio: AudioClip | None = None) -> TurnRecord:
        if audio is None:
            return cls(role=Role.ASSISTANT, text=text, revealed_chars=len(text))
        return cls(role=Role.ASSISTANT, text=text, audio=audio, reveal_state=RevealState.NOT_STARTED)

    @property
    def visible_text(self) -> str:
        return self.text[: self.revealed_chars]


@dataclass(frozen=True, slots=True)
class TurnError:
    """Current error surfaced to the UI for the last failed stage."""

    stage: PipelineStage
    message: str
