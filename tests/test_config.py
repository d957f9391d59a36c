"""Tests for config loading, merging and environment overrides."""

import logging
import tomllib
from pathlib import Path

import pytest

from second_opinion.config import (
    ENV_ALLOWED_MODELS,
    ENV_CODEX_REASONING_EFFORT,
    ENV_DEFAULT_MODEL,
    ENV_SYSTEM_PROMPT_PATH,
    Config,
    build_config,
    load_config,
    read_config_file,
    render_default_config,
    write_default_config,
)
from second_opinion.errors import ConfigError
from second_opinion.models import ALL_ALIASES, DEFAULT_MODELS, ModelAlias
from second_opinion.paths import DEFAULT_SYSTEM_PROMPT_PATH

# -- Config snapshot --


def test_defaults():
    config = Config.defaults()
    assert config.default_alias is ModelAlias.GEMINI
    assert config.codex_reasoning_effort is None
    assert config.system_prompt_path == DEFAULT_SYSTEM_PROMPT_PATH
    assert config.enabled_aliases() == list(ALL_ALIASES)
    for alias in ALL_ALIASES:
        assert config.model_for(alias) == DEFAULT_MODELS[alias]


def test_to_dict_is_json_friendly():
    data = Config.defaults().to_dict()
    assert data["default_model"] == "gemini"
    assert data["models"]["kilo"] == "openrouter/moonshotai/kimi-k2.5"
    assert data["allowed_models"] == ["gemini", "claude", "codex", "kilo"]
    assert data["codex_reasoning_effort"] is None
    assert isinstance(data["system_prompt_path"], str)


# -- build_config --


def test_empty_document_gives_defaults():
    assert build_config({}, env={}) == Config.defaults()


def test_models_merge_over_defaults():
    config = build_config({"models": {"codex": "gpt-5.4-codex", "Claude": " claude-x "}}, env={})
    assert config.model_for(ModelAlias.CODEX) == "gpt-5.4-codex"
    assert config.model_for(ModelAlias.CLAUDE) == "claude-x"
    assert config.model_for(ModelAlias.GEMINI) == DEFAULT_MODELS[ModelAlias.GEMINI]


def test_unknown_model_keys_and_blank_values_ignored(caplog):
    with caplog.at_level(logging.WARNING, logger="second_opinion.config"):
        config = build_config({"models": {"llama": "x", "gemini": "  "}}, env={})
    assert config.model_for(ModelAlias.GEMINI) == DEFAULT_MODELS[ModelAlias.GEMINI]
    assert "llama" in caplog.text


def test_models_not_a_table_ignored():
    config = build_config({"models": "gemini"}, env={})
    assert dict(config.models) == dict(DEFAULT_MODELS)


def test_models_mapping_is_read_only():
    config = build_config({}, env={})
    with pytest.raises(TypeError):
        config.models[ModelAlias.GEMINI] = "other"  # type: ignore[index]


def test_default_model_from_file():
    assert build_config({"default_model": "codex"}, env={}).default_alias is ModelAlias.CODEX


def test_invalid_default_model_falls_back():
    assert build_config({"default_model": "gpt"}, env={}).default_alias is ModelAlias.GEMINI


def test_env_default_model_wins():
    config = build_config({"default_model": "codex"}, env={ENV_DEFAULT_MODEL: "KILO"})
    assert config.default_alias is ModelAlias.KILO


def test_invalid_env_default_keeps_file_value():
    config = build_config({"default_model": "codex"}, env={ENV_DEFAULT_MODEL: "nope"})
    assert config.default_alias is ModelAlias.CODEX


def test_allowed_models_from_file():
    config = build_config({"allowed_models": ["codex", "claude"]}, env={})
    assert config.enabled_aliases() == [ModelAlias.CLAUDE, ModelAlias.CODEX]
    assert not config.is_allowed(ModelAlias.GEMINI)


def test_default_moves_to_first_enabled_alias():
    config = build_config({"allowed_models": ["kilo", "codex"]}, env={})
    assert config.default_alias is ModelAlias.CODEX


def test_allowed_models_env_overrides_file():
    config = build_config(
        {"allowed_models": ["codex"]},
        env={ENV_ALLOWED_MODELS: "claude, kilo"},
    )
    assert config.enabled_aliases() == [ModelAlias.CLAUDE, ModelAlias.KILO]


def test_allowed_models_skips_unknown_entries():
    config = build_config({"allowed_models": ["claude", "bogus"]}, env={})
    assert config.enabled_aliases() == [ModelAlias.CLAUDE]


def test_allowed_models_empty_list_means_all():
    assert build_config({"allowed_models": []}, env={}).enabled_aliases() == list(ALL_ALIASES)


def test_allowed_models_none_valid_is_error():
    with pytest.raises(ConfigError, match="no valid models enabled"):
        build_config({"allowed_models": ["bogus"]}, env={})


def test_allowed_models_env_none_valid_is_error():
    with pytest.raises(ConfigError):
        build_config({}, env={ENV_ALLOWED_MODELS: "x,y"})


@pytest.mark.parametrize("effort", ["none", "minimal", "low", "medium", "high", "xhigh"])
def test_valid_efforts(effort):
    config = build_config({"codex_reasoning_effort": effort.upper()}, env={})
    assert config.codex_reasoning_effort == effort


def test_invalid_effort_is_dropped():
    assert build_config({"codex_reasoning_effort": "max"}, env={}).codex_reasoning_effort is None


def test_env_effort_wins():
    config = build_config(
        {"codex_reasoning_effort": "low"}, env={ENV_CODEX_REASONING_EFFORT: "high"}
    )
    assert config.codex_reasoning_effort == "high"


def test_invalid_env_effort_keeps_file_value():
    config = build_config(
        {"codex_reasoning_effort": "low"}, env={ENV_CODEX_REASONING_EFFORT: "extreme"}
    )
    assert config.codex_reasoning_effort == "low"


def test_system_prompt_path_from_file_and_env(tmp_path):
    file_value = tmp_path / "file.md"
    env_value = tmp_path / "env.md"
    config = build_config({"system_prompt_path": str(file_value)}, env={})
    assert config.system_prompt_path == file_value
    config = build_config(
        {"system_prompt_path": str(file_value)}, env={ENV_SYSTEM_PROMPT_PATH: str(env_value)}
    )
    assert config.system_prompt_path == env_value


def test_system_prompt_path_expands_user():
    config = build_config({"system_prompt_path": "~/prompt.md"}, env={})
    assert config.system_prompt_path == Path.home() / "prompt.md"


def test_blank_env_values_are_ignored():
    config = build_config(
        {"default_model": "claude"},
        env={ENV_DEFAULT_MODEL: "  ", ENV_ALLOWED_MODELS: "", ENV_CODEX_REASONING_EFFORT: " "},
    )
    assert config.default_alias is ModelAlias.CLAUDE
    assert config.enabled_aliases() == list(ALL_ALIASES)


def test_build_config_reads_process_env_by_default(monkeypatch):
    monkeypatch.setenv(ENV_DEFAULT_MODEL, "codex")
    assert build_config({}).default_alias is ModelAlias.CODEX


# -- default file and reading --


def test_default_config_parses_back_to_defaults():
    raw = tomllib.loads(render_default_config())
    assert raw["default_model"] == "gemini"
    assert raw["models"] == {str(a): DEFAULT_MODELS[a] for a in ALL_ALIASES}
    assert build_config(raw, env={}) == Config.defaults()


def test_write_default_config_creates_parents(tmp_path):
    path = tmp_path / "nested" / "dir" / "config.toml"
    assert write_default_config(path) is True
    assert path.read_text() == render_default_config()


def test_write_default_config_failure_is_reported(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    assert write_default_config(blocker / "config.toml") is False


def test_read_missing_file_is_empty(tmp_path):
    assert read_config_file(tmp_path / "absent.toml") == {}


def test_read_malformed_file_is_empty(tmp_path, caplog):
    path = tmp_path / "config.toml"
    path.write_text("default_model = \n[[[")
    with caplog.at_level(logging.WARNING, logger="second_opinion.config"):
        assert read_config_file(path) == {}
    assert "Ignoring unreadable config" in caplog.text


# -- load_config --


def test_load_config_bootstraps_missing_file(tmp_path):
    path = tmp_path / "config.toml"
    config = load_config(path, env={})
    assert path.exists()
    assert config == Config.defaults()


def test_load_config_without_bootstrap_leaves_disk_alone(tmp_path):
    path = tmp_path / "config.toml"
    load_config(path, env={}, bootstrap=False)
    assert not path.exists()


def test_load_config_reads_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        'default_model = "claude"\n'
        'codex_reasoning_effort = "medium"\n'
        "[models]\n"
        'claude = "claude-sonnet-4-5"\n'
    )
    config = load_config(path, env={})
    assert config.default_alias is ModelAlias.CLAUDE
    assert config.codex_reasoning_effort == "medium"
    assert config.model_for(ModelAlias.CLAUDE) == "claude-sonnet-4-5"


def test_load_config_never_overwrites_malformed_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("not = = toml")
    config = load_config(path, env={})
    assert config == Config.defaults()
    assert path.read_text() == "not = = toml"
