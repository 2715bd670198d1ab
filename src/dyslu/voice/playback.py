"""Reveal an assistant reply character by character in step with its audio.

Two independent clocks drive an assistant record: a fixed-cadence reveal task
and the audio player's natural end. Each sets one flag; the record is only
complete once both ``text_done`` and ``audio_done`` are set. A single
``cancel()`` stops both clocks and the player.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from dyslu.conversation import ConversationLog
from dyslu.errors import PlaybackStallError
from dyslu.models import AudioClip, RevealState

from .interfaces import AudioPlayer


def stall_timeout_for(clip: AudioClip, *, grace_seconds: float, fallback_seconds: float) -> float:
    """Longest wait for the player before playback counts as stalled."""
    if clip.duration_seconds is None:
        return fallback_seconds
    return clip.duration_seconds + grace_seconds


class PlaybackSync:
    """Drives the reveal of one assistant record until text and audio both finish."""

    def __init__(
        self,
        log: ConversationLog,
        index: int,
        player: AudioPlayer,
        *,
        reveal_interval_seconds: float = 0.05,
        stall_timeout_seconds: float | None = None,
        on_complete: Callable[[PlaybackSync], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        record = log[index]
        self._log = log
        self._index = index
        self._text = record.text
        self._clip = record.audio
        self._player = player
        self._reveal_interval_seconds = reveal_interval_seconds
        self._stall_timeout_seconds = stall_timeout_seconds
        self._on_complete = on_complete
        self._logger = logger or logging.getLogger("dyslu.voice.playback")

        self._revealed = record.revealed_chars
        self._text_done = False
        self._audio_done = False
        self._completed = False
        self._cancelled = False
        self._finished = asyncio.Event()
        self._tasks: list[asyncio.Task[None]] = []
        self.error: PlaybackStallError | None = None

    @property
    def index(self) -> int:
        return self._index

    @property
    def text_done(self) -> bool:
        return self._text_done

    @property
    def audio_done(self) -> bool:
        return self._audio_done

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def finished(self) -> bool:
        return self._completed or self._cancelled

    @property
    def revealed_chars(self) -> int:
        return self._revealed

    def start(self) -> None:
        """Begin audio playback and the reveal clock concurrently."""
        if self._tasks or self.finished:
            return

        self._log.update_reveal_state(self._index, RevealState.REVEALING, revealed_chars=self._revealed)
        self._logger.info("reveal_started", extra={"index": self._index, "chars": len(self._text)})

        if self._revealed >= len(self._text):
            self._set_text_done()
        else:
            self._tasks.append(asyncio.create_task(self._run_reveal(), name=f"reveal-{self._index}"))

        if self._clip is None:
            self.audio_ended()
        else:
            self._tasks.append(asyncio.create_task(self._run_audio(self._clip), name=f"audio-{self._index}"))

    def tick(self) -> None:
        """Reveal exactly one more character."""
        if self._cancelled or self._text_done:
            return

        self._revealed += 1
        self._log.update_reveal_state(self._index, RevealState.REVEALING, revealed_chars=self._revealed)
        if self._revealed >= len(self._text):
            self._set_text_done()

    def audio_ended(self) -> None:
        """Handler for the player's natural end (or its failure fallback)."""
        if self._cancelled or self._audio_done:
            return
        self._audio_done = True
        self._maybe_complete()

    async def wait(self) -> None:
        """Wait until the reveal completes or is cancelled."""
        await self._finished.wait()

    def cancel(self) -> None:
        """Stop both clocks and the player; nothing fires afterwards."""
        if self.finished:
            return

        self._cancelled = True
        for task in self._tasks:
            task.cancel()
        self._stop_player()
        self._log.update_reveal_state(self._index, RevealState.COMPLETE)
        self._finished.set()
        self._logger.info("reveal_cancelled", extra={"index": self._index, "revealed": self._revealed})

    def _set_text_done(self) -> None:
        self._text_done = True
        self._maybe_complete()

    def _maybe_complete(self) -> None:
        if self._completed or self._cancelled:
            return
        if not (self._text_done and self._audio_done):
            return

        self._completed = True
        self._log.update_reveal_state(self._index, RevealState.COMPLETE, revealed_chars=len(self._text))
        self._finished.set()
        self._logger.info("reveal_completed", extra={"index": self._index})
        if self._on_complete is not None:
            self._on_complete(self)

    async def _run_reveal(self) -> None:
        while not self._text_done and not self._cancelled:
            await asyncio.sleep(self._reveal_interval_seconds)
            self.tick()

    async def _run_audio(self, clip: AudioClip) -> None:
        try:
            await asyncio.wait_for(self._player.play(clip), timeout=self._stall_timeout_seconds)
        except asyncio.TimeoutError:
            self._stop_player()
            self.error = PlaybackStallError(
                f"Audio playback did not finish within {self._stall_timeout_seconds:.1f}s"
            )
            self._logger.warning(
                "playback_stalled",
                extra={"index": self._index, "timeout_seconds": self._stall_timeout_seconds},
            )
        except Exception as exc:  # noqa: BLE001 - a broken clip must not hang the reveal.
            self._stop_player()
            self.error = PlaybackStallError(f"Audio playback failed: {exc}")
            self._logger.exception("playback_failed", extra={"index": self._index})
        self.audio_ended()

    def _stop_player(self) -> None:
        try:
            self._player.stop()
        except Exception:  # noqa: BLE001
            self._logger.exception("player_stop_failed", extra={"index": self._index})


class SilentPlayer:
    """Player that waits out the clip duration without producing sound."""

    async def play(self, clip: AudioClip) -> None:
        await asyncio.sleep(clip.duration_seconds or 0.0)

    def stop(self) -> None:
        return None
