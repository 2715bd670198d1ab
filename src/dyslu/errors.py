"""Error taxonomy for capture, turn processing and playback."""

from __future__ import annotations

from typing import ClassVar

from dyslu.models import PipelineStage, TurnError


class DysluError(RuntimeError):
    """Base class for application errors."""


class MissingCredentialError(DysluError):
    """Raised at startup when no API credential is configured."""


class TurnInProgressError(DysluError):
    """Raised when a turn is started while another one is still running."""


class PipelineError(DysluError):
    """Failure of one stage of a conversational turn."""

    stage: ClassVar[PipelineStage]

    def to_turn_error(self) -> TurnError:
        return TurnError(stage=self.stage, message=str(self))


class DeviceError(PipelineError):
    """No usable input device, or microphone permission was denied."""

    stage = PipelineStage.CAPTURE


class EmptyCaptureError(PipelineError):
    """A recording session ended without any captured audio."""

    stage = PipelineStage.CAPTURE


class TranscribeError(PipelineError):
    stage = PipelineStage.TRANSCRIBE


class CompletionError(PipelineError):
    stage = PipelineStage.COMPLETE


class SynthesisError(PipelineError):
    stage = PipelineStage.SYNTHESIZE


class PlaybackStallError(PipelineError):
    """Reply audio failed to play or never reported its end."""

    stage = PipelineStage.PLAYBACK
