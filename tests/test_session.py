from __future__ import annotations

import asyncio

import numpy as np
import pytest

from dyslu.conversation import ConversationLog
from dyslu.models import AudioClip, PipelineStage, Role
from dyslu.pipeline import TurnPipeline
from dyslu.session import IDLE_LABEL, PROCESSING_LABEL, RECORDING_LABEL, VoiceChatSession
from dyslu.voice.capture import AudioCapture


class StubMicrophone:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.on_chunk = None
        self.closed = 0

    def open(self, on_chunk, *, sample_rate: int, channels: int) -> None:
        if self.fail:
            raise OSError("no input device")
        self.on_chunk = on_chunk

    def close(self) -> None:
        self.closed += 1


class EchoServices:
    def __init__(self) -> None:
        self.transcribed: list[AudioClip] = []

    async def transcribe(self, clip: AudioClip) -> str:
        self.transcribed.append(clip)
        return "hello"

    async def complete(self, messages: list[dict[str, str]]) -> str:
        return "hi!"

    async def synthesize(self, text: str) -> AudioClip:
        return AudioClip(data=b"RIFF", duration_seconds=0.01)

    async def play(self, clip: AudioClip) -> None:
        await asyncio.sleep(clip.duration_seconds or 0)

    def stop(self) -> None:
        return None


def _session(microphone: StubMicrophone) -> tuple[VoiceChatSession, EchoServices]:
    services = EchoServices()
    pipeline = TurnPipeline(
        log=ConversationLog(),
        recognizer=services,
        completer=services,
        synthesizer=services,
        player=services,
        reveal_interval_seconds=0.001,
    )
    capture = AudioCapture(microphone)
    return VoiceChatSession(capture=capture, pipeline=pipeline), services


def test_toggle_records_then_runs_a_turn() -> None:
    async def _run() -> None:
        microphone = StubMicrophone()
        session, services = _session(microphone)
        assert session.status_label == IDLE_LABEL

        session.toggle()
        assert session.is_recording
        assert session.status_label == RECORDING_LABEL
        microphone.on_chunk(np.ones(1600, dtype=np.int16).tobytes())

        session.toggle()
        assert session.is_recording is False
        assert session.is_processing is True
        assert session.status_label == PROCESSING_LABEL

        session.toggle()
        assert session.is_recording is False

        await session.wait_idle()
        assert session.is_processing is False
        assert [record.role for record in session.pipeline.log.all()] == [Role.USER, Role.ASSISTANT]
        assert len(services.transcribed) == 1

    asyncio.run(_run())


def test_microphone_failure_is_surfaced_as_capture_error() -> None:
    async def _run() -> None:
        session, _ = _session(StubMicrophone(fail=True))
        session.toggle()

        assert session.is_recording is False
        assert session.current_error is not None
        assert session.current_error.stage == PipelineStage.CAPTURE
        assert session.current_error.message == "Could not access microphone"

    asyncio.run(_run())


def test_empty_recording_is_surfaced_and_no_turn_runs() -> None:
    async def _run() -> None:
        session, services = _session(StubMicrophone())
        session.toggle()
        session.toggle()

        assert session.current_error.stage == PipelineStage.CAPTURE
        assert session.is_processing is False
        assert services.transcribed == []

        session.toggle()
        assert session.current_error is None
        assert session.is_recording is True
        await session.close()

    asyncio.run(_run())


def test_close_cancels_turn_and_releases_microphone() -> None:
    async def _run() -> None:
        microphone = StubMicrophone()
        session, _ = _session(microphone)
        session.toggle()
        microphone.on_chunk(b"\x01\x00" * 160)
        session.toggle()
        await asyncio.sleep(0)

        await session.close()

        assert session.is_processing is False
        assert session.pipeline.log.revealing() == []

    asyncio.run(_run())


def test_close_while_recording_releases_microphone() -> None:
    async def _run() -> None:
        microphone = StubMicrophone()
        session, services = _session(microphone)
        session.toggle()
        microphone.on_chunk(b"\x01\x00" * 160)

        await session.close()

        assert microphone.closed == 1
        assert session.is_recording is False
        assert services.transcribed == []

    asyncio.run(_run())


def test_close_propagates_its_own_cancellation() -> None:
    async def _run() -> None:
        microphone = StubMicrophone()
        session, _ = _session(microphone)
        session.toggle()
        microphone.on_chunk(b"\x01\x00" * 160)
        session.toggle()
        await asyncio.sleep(0)

        closer = asyncio.create_task(session.close())
        await asyncio.sleep(0)
        closer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await closer

    asyncio.run(_run())
