from __future__ import annotations

import importlib

import pytest


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("nav_voice.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_start_prints_runtime_configuration() -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from nav_voice.main import app

    result = typer_testing.CliRunner().invoke(app, ["start"], catch_exceptions=False)

    assert result.exit_code == 0
    assert "nav-voice" in result.stdout
    assert "ko-KR" in result.stdout
