"""Tests for the system prompt override."""

import logging

import pytest

from second_opinion.system_prompt import (
    DEFAULT_SYSTEM_PROMPT,
    SYSTEM_PROMPT_FILENAME,
    get_system_prompt,
    init_system_prompt,
    is_custom_prompt_active,
)


def test_default_prompt_content():
    assert DEFAULT_SYSTEM_PROMPT.startswith("You are an expert engineering consultant.")
    assert DEFAULT_SYSTEM_PROMPT.endswith(
        "IMPORTANT: Do not edit files yourself, only provide recommendations and code examples"
    )
    assert "Respond in Markdown." in DEFAULT_SYSTEM_PROMPT


def test_none_path_uses_default():
    assert get_system_prompt(None) == DEFAULT_SYSTEM_PROMPT


def test_missing_file_uses_default(tmp_path):
    assert get_system_prompt(tmp_path / "absent.md") == DEFAULT_SYSTEM_PROMPT


def test_custom_file_is_trimmed(tmp_path):
    path = tmp_path / "prompt.md"
    path.write_text("\n\n  Be terse.  \n")
    assert get_system_prompt(path) == "Be terse."
    assert is_custom_prompt_active(path)


def test_blank_file_uses_default(tmp_path):
    path = tmp_path / "prompt.md"
    path.write_text("   \n\t\n")
    assert get_system_prompt(path) == DEFAULT_SYSTEM_PROMPT
    assert not is_custom_prompt_active(path)


def test_directory_uses_default(tmp_path):
    assert get_system_prompt(tmp_path) == DEFAULT_SYSTEM_PROMPT


def test_undecodable_file_uses_default(tmp_path, caplog):
    path = tmp_path / "prompt.md"
    path.write_bytes(b"\xff\xfe\xfa broken")
    with caplog.at_level(logging.WARNING, logger="second_opinion.system_prompt"):
        assert get_system_prompt(path) == DEFAULT_SYSTEM_PROMPT
    assert "Failed to read custom system prompt" in caplog.text


def test_prompt_reread_on_every_call(tmp_path):
    path = tmp_path / "prompt.md"
    path.write_text("first")
    assert get_system_prompt(path) == "first"
    path.write_text("second")
    assert get_system_prompt(path) == "second"


def test_init_writes_default(tmp_path):
    config_dir = tmp_path / "second-opinion"
    path = init_system_prompt(config_dir)
    assert path == config_dir / SYSTEM_PROMPT_FILENAME
    assert path.read_text() == DEFAULT_SYSTEM_PROMPT


def test_init_refuses_to_overwrite(tmp_path):
    existing = tmp_path / SYSTEM_PROMPT_FILENAME
    existing.write_text("mine")
    with pytest.raises(FileExistsError, match="already exists"):
        init_system_prompt(tmp_path)
    assert existing.read_text() == "mine"
