"""Persona prompt loaded as static configuration data."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_PERSONA_PROMPT = (
    "You are an experienced therapist who specializes in helping dyslexic people, especially children. "
    "Your tone is gentle, joyful and therapeutic, so every conversation feels warm and supportive. "
    "Build confidence with positive reinforcement and simple explanations, and use stories and metaphors "
    "when they help. Always respond with empathy and patience so the person feels understood. "
    "Talk like a caring person in a real conversation: do not answer with numbered lists or bullet points "
    "of steps, and do not simply send the person to talk to someone else. Try to understand the actual "
    "problem in depth and treat the person with care. After every answer, ask a gentle, open-ended "
    "question to keep the conversation flowing."
)


@dataclass(frozen=True, slots=True)
class Persona:
    """Fixed system instructions prepended to every completion request."""

    name: str
    system_prompt: str

    def system_messages(self) -> list[dict[str, str]]:
        return [{"role": "system", "content": self.system_prompt}]


DEFAULT_PERSONA = Persona(name="Dyslu", system_prompt=DEFAULT_PERSONA_PROMPT)


def load_persona(path: str | Path | None, *, name: str | None = None) -> Persona:
    """Read a persona prompt from a text file, or return the built-in one."""
    if path is None:
        if name is None:
            return DEFAULT_PERSONA
        return Persona(name=name, system_prompt=DEFAULT_PERSONA_PROMPT)

    target = Path(path).expanduser()
    if not target.exists():
        raise FileNotFoundError(f"Persona file not found: {target}")

    prompt = target.read_text(encoding="utf-8").strip()
    if not prompt:
        raise ValueError(f"Persona file is empty: {target}")
    return Persona(name=name or target.stem, system_prompt=prompt)
