from __future__ import annotations

from pathlib import Path

import pytest

from labelscan.config import (
    DEFAULT_GATEWAY_MODEL,
    DEFAULT_GATEWAY_URL,
    DEFAULT_TIMEOUT_SECONDS,
    load_analysis_config,
    load_chat_config,
)

_KEYS = (
    "AI_GATEWAY_API_KEY",
    "LOVABLE_API_KEY",
    "AI_GATEWAY_URL",
    "AI_GATEWAY_MODEL",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_BASE_URL",
    "LABELSCAN_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_env(tmp_path: Path) -> None:
    cfg = load_analysis_config(str(tmp_path))
    assert cfg.api_key is None
    assert cfg.endpoint == DEFAULT_GATEWAY_URL
    assert cfg.model_name == DEFAULT_GATEWAY_MODEL
    assert cfg.timeout_seconds == DEFAULT_TIMEOUT_SECONDS


def test_dotenv_found_from_subdirectory(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "# deployment secrets\nLOVABLE_API_KEY='abc123'\nGEMINI_API_KEY=gem-key\nGEMINI_MODEL=gemini-2.0-flash\n",
        encoding="utf-8",
    )
    sub = tmp_path / "src" / "deep"
    sub.mkdir(parents=True)

    analysis = load_analysis_config(str(sub))
    chat = load_chat_config(str(sub))
    assert analysis.api_key == "abc123"
    assert chat.api_key == "gem-key"
    assert chat.endpoint.endswith("/models/gemini-2.0-flash:generateContent")


def test_environment_wins_over_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("AI_GATEWAY_API_KEY=from-file\n", encoding="utf-8")
    monkeypatch.setenv("AI_GATEWAY_API_KEY", "from-env")
    assert load_analysis_config(str(tmp_path)).api_key == "from-env"


def test_invalid_timeout_falls_back(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LABELSCAN_TIMEOUT", "soon")
    assert load_chat_config(str(tmp_path)).timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    monkeypatch.setenv("LABELSCAN_TIMEOUT", "15")
    assert load_chat_config(str(tmp_path)).timeout_seconds == 15
