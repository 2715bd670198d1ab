from __future__ import annotations

from pathlib import Path

import pytest

from dyslu.persona import DEFAULT_PERSONA, load_persona


def test_default_persona_is_a_single_system_message() -> None:
    persona = load_persona(None)

    assert persona is DEFAULT_PERSONA
    messages = persona.system_messages()
    assert len(messages) == 1
    assert messages[0]["role"] == "system"
    assert "dyslexic" in messages[0]["content"]


def test_persona_file_replaces_prompt(tmp_path: Path) -> None:
    path = tmp_path / "coach.txt"
    path.write_text("You are a calm reading coach.\n", encoding="utf-8")

    persona = load_persona(path)

    assert persona.name == "coach"
    assert persona.system_prompt == "You are a calm reading coach."


def test_missing_or_empty_persona_file_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_persona(tmp_path / "missing.txt")

    empty = tmp_path / "empty.txt"
    empty.write_text("  \n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_persona(empty)
