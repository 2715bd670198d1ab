from __future__ import annotations

import importlib

import pytest

from dyslu.config import Settings


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("dyslu.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_chat_exits_when_credential_is_missing(monkeypatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from dyslu import main

    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("DYSLU_OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(main, "settings", Settings(_env_file=None))

    result = typer_testing.CliRunner().invoke(main.app, ["chat"], catch_exceptions=False)

    assert result.exit_code == 1
    assert "Missing OpenAI API key" in result.stdout


def test_show_config_redacts_credential(monkeypatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from dyslu import main

    monkeypatch.setattr(main, "settings", Settings(_env_file=None, openai_api_key="sk-secret"))

    result = typer_testing.CliRunner().invoke(main.app, ["show-config"], catch_exceptions=False)

    assert result.exit_code == 0
    assert "sk-secret" not in result.stdout
    assert "gpt-3.5-turbo" in result.stdout
