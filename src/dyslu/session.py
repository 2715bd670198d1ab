"""Record/stop toggle and turn lifecycle behind the chat screen."""

from __future__ import annotations

import asyncio
import logging

from dyslu.errors import PipelineError
from dyslu.models import TurnError
from dyslu.pipeline import TurnPipeline
from dyslu.voice.capture import AudioCapture

IDLE_LABEL = "Give it a try!"
RECORDING_LABEL = "Recording... press Enter to stop"
PROCESSING_LABEL = "Processing..."


class VoiceChatSession:
    """Tracks whether the user is recording and whether a turn is in flight."""

    def __init__(
        self,
        *,
        capture: AudioCapture,
        pipeline: TurnPipeline,
        logger: logging.Logger | None = None,
    ) -> None:
        self._capture = capture
        self._pipeline = pipeline
        self._logger = logger or logging.getLogger("dyslu.session")
        self._turn_task: asyncio.Task | None = None

    @property
    def capture(self) -> AudioCapture:
        return self._capture

    @property
    def pipeline(self) -> TurnPipeline:
        return self._pipeline

    @property
    def is_recording(self) -> bool:
        return self._capture.is_recording

    @property
    def is_processing(self) -> bool:
        task_running = self._turn_task is not None and not self._turn_task.done()
        return task_running or self._pipeline.is_processing

    @property
    def current_error(self) -> TurnError | None:
        return self._pipeline.current_error

    @property
    def status_label(self) -> str:
        if self.is_processing:
            return PROCESSING_LABEL
        if self.is_recording:
            return RECORDING_LABEL
        return IDLE_LABEL

    def toggle(self) -> None:
        """Start recording when idle; stop and hand the clip off when recording."""
        if self.is_processing:
            self._logger.debug("toggle_ignored_while_processing")
            return

        if not self.is_recording:
            self._pipeline.clear_error()
            try:
                self._capture.start_session()
            except PipelineError as exc:
                self._pipeline.report(exc)
            return

        try:
            clip = self._capture.stop_session()
        except PipelineError as exc:
            self._pipeline.report(exc)
            return
        self._turn_task = asyncio.create_task(self._pipeline.run_turn(clip), name="dyslu-turn")

    async def wait_idle(self) -> None:
        """Wait for the in-flight turn, if any, to finish."""
        if self._turn_task is not None:
            await self._turn_task

    async def close(self) -> None:
        """Cancel the in-flight turn and release the microphone."""
        task, self._turn_task = self._turn_task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
            if not task.cancelled():
                task.result()
        self._pipeline.reset()
        self._capture.close()
