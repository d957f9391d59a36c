"""Shared test fixtures: isolated config snapshots and env scrubbing."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType

import pytest

from second_opinion.config import (
    ENV_ALLOWED_MODELS,
    ENV_CODEX_REASONING_EFFORT,
    ENV_DEFAULT_MODEL,
    ENV_SYSTEM_PROMPT_PATH,
    Config,
)
from second_opinion.models import DEFAULT_MODELS


@pytest.fixture(autouse=True)
def _scrub_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own overrides out of config-dependent tests."""
    for key in (
        ENV_DEFAULT_MODEL,
        ENV_ALLOWED_MODELS,
        ENV_SYSTEM_PROMPT_PATH,
        ENV_CODEX_REASONING_EFFORT,
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    """Default snapshot whose system prompt path points at a missing file."""
    return Config(
        models=MappingProxyType(dict(DEFAULT_MODELS)),
        system_prompt_path=tmp_path / "SYSTEM_PROMPT.md",
    )


@pytest.fixture()
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "src" / "main.py"
    path.parent.mkdir()
    path.write_text("print('hello')\n")
    return path
