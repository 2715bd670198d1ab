"""CLI startup entrypoint for Dyslu."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich import print

from dyslu.config import Settings, settings
from dyslu.conversation import ConversationLog
from dyslu.errors import MissingCredentialError
from dyslu.models import AudioClip
from dyslu.persona import Persona, load_persona
from dyslu.pipeline import TurnPipeline
from dyslu.telemetry import configure_logging
from dyslu.voice.interfaces import AudioPlayer
from dyslu.voice.openai_backend import (
    OpenAIChatCompleter,
    OpenAISpeechSynthesizer,
    OpenAITranscriber,
    build_openai_client,
)
from dyslu.voice.playback import SilentPlayer
from dyslu.voice.wav import wav_duration

app = typer.Typer(help="Dyslu voice chat assistant")


def _device_arg(value: str | None) -> int | str | None:
    if value is None or not value.strip():
        return None
    return int(value) if value.strip().isdigit() else value.strip()


def _load_persona_or_exit(config: Settings, persona_file: str | None) -> Persona:
    try:
        return load_persona(persona_file or config.persona_file, name=config.assistant_name)
    except (FileNotFoundError, ValueError) as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)


def _build_pipeline(
    config: Settings,
    *,
    log: ConversationLog,
    player: AudioPlayer,
    persona: Persona,
) -> TurnPipeline:
    try:
        client = build_openai_client(config)
    except MissingCredentialError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    return TurnPipeline(
        log=log,
        recognizer=OpenAITranscriber(client, model=config.transcription_model),
        completer=OpenAIChatCompleter(client, model=config.chat_model),
        synthesizer=OpenAISpeechSynthesizer(client, model=config.speech_model, voice=config.speech_voice),
        player=player,
        persona=persona,
        include_history=config.include_history,
        reveal_interval_seconds=config.reveal_interval_seconds,
        playback_grace_seconds=config.playback_grace_seconds,
        playback_timeout_seconds=config.playback_timeout_seconds,
    )


def _build_player(mute: bool) -> AudioPlayer:
    if mute:
        return SilentPlayer()
    from dyslu.voice.sounddevice_backend import SoundDevicePlayer

    return SoundDevicePlayer()


@app.command("show-config")
def show_config() -> None:
    """Show runtime configuration with the credential redacted."""
    payload = settings.model_dump()
    payload["openai_api_key"] = "***" if settings.openai_api_key is not None else None
    print(payload)


@app.command()
def chat(
    persona_file: str = typer.Option(None, help="Text file with the persona system prompt"),
    mute: bool = typer.Option(False, help="Reveal replies without playing audio"),
) -> None:
    """Run the interactive voice chat loop."""
    configure_logging(settings.log_level)
    try:
        settings.require_api_key()
    except MissingCredentialError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    persona = _load_persona_or_exit(settings, persona_file)

    from dyslu.session import VoiceChatSession
    from dyslu.ui import ConsoleShell
    from dyslu.voice.capture import AudioCapture

    try:
        from dyslu.voice.sounddevice_backend import SoundDeviceMicrophone

        microphone = SoundDeviceMicrophone(device=_device_arg(settings.input_device))
        player = _build_player(mute)
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    log = ConversationLog()
    pipeline = _build_pipeline(settings, log=log, player=player, persona=persona)
    capture = AudioCapture(
        microphone,
        sample_rate=settings.sample_rate,
        channels=settings.channels,
        level_interval_seconds=settings.level_interval_seconds,
    )
    session = VoiceChatSession(capture=capture, pipeline=pipeline)
    shell = ConsoleShell(session, assistant_name=persona.name)

    print({"voice_chat": "started", "hint": "Press Enter to start/stop recording; type q then Enter to quit."})
    try:
        asyncio.run(shell.run())
    except KeyboardInterrupt:
        pass
    print({"voice_chat": "stopped"})


@app.command()
def replay(
    wav_file: Path = typer.Argument(..., help="Recorded WAV clip to use as the user's turn"),
    persona_file: str = typer.Option(None, help="Text file with the persona system prompt"),
    mute: bool = typer.Option(False, help="Reveal the reply without playing audio"),
) -> None:
    """Run a single turn from a WAV file and print the transcript."""
    configure_logging(settings.log_level)
    if not wav_file.exists():
        raise typer.BadParameter(f"WAV file not found: {wav_file}")

    persona = _load_persona_or_exit(settings, persona_file)
    try:
        player = _build_player(mute)
    except RuntimeError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    log = ConversationLog()
    pipeline = _build_pipeline(settings, log=log, player=player, persona=persona)
    data = wav_file.read_bytes()
    clip = AudioClip(data=data, mime_type="audio/wav", filename=wav_file.name, duration_seconds=wav_duration(data))

    asyncio.run(pipeline.run_turn(clip))
    print({"transcript": [{"role": record.role.value, "text": record.text} for record in log.all()]})
    if pipeline.current_error is not None:
        print({"error": pipeline.current_error.message, "stage": pipeline.current_error.stage.value})
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
