"""Voice capture, playback and hosted speech backends."""

from .capture import AudioCapture, RecordingSession, RecordingState
from .interfaces import AudioPlayer, ChatCompleter, MicrophoneStream, SpeechRecognizer, SpeechSynthesizer
from .playback import PlaybackSync, SilentPlayer

__all__ = [
    "AudioCapture",
    "AudioPlayer",
    "ChatCompleter",
    "MicrophoneStream",
    "PlaybackSync",
    "RecordingSession",
    "RecordingState",
    "SilentPlayer",
    "SpeechRecognizer",
    "SpeechSynthesizer",
]
