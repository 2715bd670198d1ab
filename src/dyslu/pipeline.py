"""Sequential turn pipeline: clip -> transcript -> reply text -> reply audio."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

from dyslu.conversation import ConversationLog
from dyslu.errors import (
    CompletionError,
    PipelineError,
    SynthesisError,
    TranscribeError,
    TurnInProgressError,
)
from dyslu.models import AudioClip, TurnError, TurnRecord
from dyslu.persona import DEFAULT_PERSONA, Persona
from dyslu.voice.interfaces import AudioPlayer, ChatCompleter, SpeechRecognizer, SpeechSynthesizer
from dyslu.voice.playback import PlaybackSync, stall_timeout_for

T = TypeVar("T")


class TurnPipeline:
    """Runs one conversational turn at a time against the hosted services."""

    def __init__(
        self,
        *,
        log: ConversationLog,
        recognizer: SpeechRecognizer,
        completer: ChatCompleter,
        synthesizer: SpeechSynthesizer,
        player: AudioPlayer,
        persona: Persona = DEFAULT_PERSONA,
        include_history: bool = True,
        reveal_interval_seconds: float = 0.05,
        playback_grace_seconds: float = 5.0,
        playback_timeout_seconds: float = 120.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._log = log
        self._recognizer = recognizer
        self._completer = completer
        self._synthesizer = synthesizer
        self._player = player
        self._persona = persona
        self._include_history = include_history
        self._reveal_interval_seconds = reveal_interval_seconds
        self._playback_grace_seconds = playback_grace_seconds
        self._playback_timeout_seconds = playback_timeout_seconds
        self._logger = logger or logging.getLogger("dyslu.pipeline")

        self._processing = False
        self._current_error: TurnError | None = None
        self._active_playback: PlaybackSync | None = None

    @property
    def log(self) -> ConversationLog:
        return self._log

    @property
    def persona(self) -> Persona:
        return self._persona

    @property
    def is_processing(self) -> bool:
        return self._processing

    @property
    def current_error(self) -> TurnError | None:
        return self._current_error

    @property
    def active_playback(self) -> PlaybackSync | None:
        return self._active_playback

    def report(self, error: PipelineError) -> None:
        """Make ``error`` the single current error shown to the user."""
        self._current_error = error.to_turn_error()
        self._logger.warning("stage_failed", extra={"stage": error.stage.value, "error": str(error)})

    def clear_error(self) -> None:
        self._current_error = None

    def reset(self) -> None:
        """Tear down any active reveal and drop the current error."""
        if self._active_playback is not None:
            self._active_playback.cancel()
        self._current_error = None

    def build_messages(self) -> list[dict[str, str]]:
        """Persona system message(s) followed by the conversation."""
        conversation = self._log.chat_messages()
        if not self._include_history:
            conversation = conversation[-1:]
        return [*self._persona.system_messages(), *conversation]

    async def run_turn(self, clip: AudioClip) -> TurnRecord | None:
        """Run every stage for ``clip``.

        Returns the appended assistant record, even when synthesis or playback
        failed afterwards, or ``None`` when the turn ended before one was added.
        """
        if self._processing:
            raise TurnInProgressError("A turn is already being processed")

        self._processing = True
        self._current_error = None
        self._logger.info("turn_started", extra={"clip_bytes": len(clip), "log_size": len(self._log)})
        try:
            return await self._run_stages(clip)
        except PipelineError as exc:
            self.report(exc)
            return None
        finally:
            self._processing = False
            self._logger.info("turn_finished", extra={"error": self._current_error is not None})

    async def _run_stages(self, clip: AudioClip) -> TurnRecord:
        transcript = await self._stage(self._recognizer.transcribe(clip), TranscribeError)
        transcript = transcript.strip()
        if not transcript:
            raise TranscribeError("No speech was recognized in the recording.")
        self._log.append(TurnRecord.user(transcript))

        reply = await self._stage(self._completer.complete(self.build_messages()), CompletionError)

        try:
            audio = await self._stage(self._synthesizer.synthesize(reply), SynthesisError)
        except SynthesisError as exc:
            index = self._log.append(TurnRecord.assistant(reply))
            self.report(exc)
            return self._log[index]

        index = self._log.append(TurnRecord.assistant(reply, audio))
        playback_error = await self._play(index, audio)
        if playback_error is not None:
            self.report(playback_error)
        return self._log[index]

    async def _play(self, index: int, audio: AudioClip) -> PipelineError | None:
        sync = PlaybackSync(
            self._log,
            index,
            self._player,
            reveal_interval_seconds=self._reveal_interval_seconds,
            stall_timeout_seconds=stall_timeout_for(
                audio,
                grace_seconds=self._playback_grace_seconds,
                fallback_seconds=self._playback_timeout_seconds,
            ),
        )
        self._active_playback = sync
        try:
            sync.start()
            await sync.wait()
        finally:
            sync.cancel()
            self._active_playback = None
        return sync.error

    async def _stage(self, call: Awaitable[T], error_type: type[PipelineError]) -> T:
        try:
            return await call
        except PipelineError:
            raise
        except Exception as exc:  # noqa: BLE001 - vendor failures end the turn at this stage.
            self._logger.exception("external_call_failed", extra={"stage": error_type.stage.value})
            raise error_type(f"{type(exc).__name__}: {exc}") from exc
