"""Dyslu voice chat assistant."""

from .conversation import ConversationLog
from .models import AudioClip, PipelineStage, RevealState, Role, TurnError, TurnRecord
from .pipeline import TurnPipeline
from .session import VoiceChatSession

__all__ = [
    "AudioClip",
    "ConversationLog",
    "PipelineStage",
    "RevealState",
    "Role",
    "TurnError",
    "TurnPipeline",
    "TurnRecord",
    "VoiceChatSession",
]
