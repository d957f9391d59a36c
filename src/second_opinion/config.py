"""Configuration snapshot loaded once per process.

The config lives in ``~/.config/second-opinion/config.toml``::

    default_model = "gemini"
    codex_reasoning_effort = "high"
    system_prompt_path = "~/prompts/review.md"
    allowed_models = ["gemini", "codex"]

    [models]
    gemini = "gemini-3-pro-preview"
    codex = "gpt-5.3-codex"

Every key is optional. Model names are merged over the built-in defaults so
each alias always resolves to a model. Environment overrides win over the file:

  SECOND_OPINION_DEFAULT_MODEL       default alias
  SECOND_OPINION_ALLOWED_MODELS      comma-separated aliases to enable
  SECOND_OPINION_SYSTEM_PROMPT_PATH  custom system prompt file
  CODEX_REASONING_EFFORT             codex ``model_reasoning_effort``
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from types import MappingProxyType
from typing import Any

from second_opinion.errors import ConfigError, UnknownModelAlias
from second_opinion.models import (
    ALL_ALIASES,
    DEFAULT_ALIAS,
    DEFAULT_MODELS,
    VALID_EFFORTS,
    ModelAlias,
)
from second_opinion.paths import CONFIG_PATH, DEFAULT_SYSTEM_PROMPT_PATH

log = logging.getLogger(__name__)

ENV_DEFAULT_MODEL = "SECOND_OPINION_DEFAULT_MODEL"
ENV_ALLOWED_MODELS = "SECOND_OPINION_ALLOWED_MODELS"
ENV_SYSTEM_PROMPT_PATH = "SECOND_OPINION_SYSTEM_PROMPT_PATH"
ENV_CODEX_REASONING_EFFORT = "CODEX_REASONING_EFFORT"

_DEFAULT_CONFIG_TEMPLATE = Template(
    """# second-opinion configuration

# Alias used when a request does not name one: ${aliases}
default_model = "${default_alias}"

# Reasoning effort passed to codex (${efforts}).
# codex_reasoning_effort = "high"

# Custom system prompt file (run `second-opinion init-prompt` to create one).
# system_prompt_path = "${system_prompt_path}"

# Restrict which aliases callers may use.
# allowed_models = [${quoted_aliases}]

[models]
${model_lines}
"""
)


@dataclass(frozen=True)
class Config:
    """Immutable snapshot shared by every request."""

    models: Mapping[ModelAlias, str] = field(default_factory=lambda: DEFAULT_MODELS)
    default_alias: ModelAlias = DEFAULT_ALIAS
    codex_reasoning_effort: str | None = None
    system_prompt_path: Path = DEFAULT_SYSTEM_PROMPT_PATH
    allowed_aliases: frozenset[ModelAlias] = frozenset(ALL_ALIASES)

    @classmethod
    def defaults(cls) -> Config:
        return cls()

    def model_for(self, alias: ModelAlias) -> str:
        return self.models.get(alias) or DEFAULT_MODELS[alias]

    def is_allowed(self, alias: ModelAlias) -> bool:
        return alias in self.allowed_aliases

    def enabled_aliases(self) -> list[ModelAlias]:
        """Allowed aliases in declaration order."""
        return [a for a in ALL_ALIASES if a in self.allowed_aliases]

    def to_dict(self) -> dict[str, Any]:
        return {
            "models": {str(a): self.model_for(a) for a in ALL_ALIASES},
            "default_model": str(self.default_alias),
            "codex_reasoning_effort": self.codex_reasoning_effort,
            "system_prompt_path": str(self.system_prompt_path),
            "allowed_models": [str(a) for a in self.enabled_aliases()],
        }


# -- Default file --


def render_default_config() -> str:
    """Return the text written when no config file exists yet."""
    width = max(len(str(a)) for a in ALL_ALIASES)
    model_lines = "\n".join(
        f'{str(alias).ljust(width)} = "{DEFAULT_MODELS[alias]}"' for alias in ALL_ALIASES
    )
    return _DEFAULT_CONFIG_TEMPLATE.substitute(
        aliases=", ".join(str(a) for a in ALL_ALIASES),
        default_alias=str(DEFAULT_ALIAS),
        efforts=", ".join(sorted(VALID_EFFORTS)),
        system_prompt_path=str(DEFAULT_SYSTEM_PROMPT_PATH),
        quoted_aliases=", ".join(f'"{a}"' for a in ALL_ALIASES),
        model_lines=model_lines,
    )


def write_default_config(path: Path) -> bool:
    """Create *path* with the default config. Best-effort, returns success."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        path.write_text(render_default_config())
    except OSError as exc:
        log.warning("Could not write default config to %s: %s", path, exc)
        return False
    log.info("Wrote default config to %s", path)
    return True


# -- Reading --


def parse_config_file(path: Path) -> dict[str, Any]:
    """Parse a config file. Raises ``OSError`` or ``tomllib.TOMLDecodeError``."""
    with path.open("rb") as handle:
        return tomllib.load(handle)


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse *path*, returning an empty dict if it is missing or malformed."""
    try:
        return parse_config_file(path)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as exc:
        log.warning("Ignoring unreadable config %s (using defaults): %s", path, exc)
        return {}


def _env_value(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key, "").strip()
    return value or None


def _parse_alias(value: object, source: str) -> ModelAlias | None:
    if not isinstance(value, str):
        log.warning("%s: expected an alias string, got %r", source, value)
        return None
    try:
        return ModelAlias.parse(value)
    except UnknownModelAlias as exc:
        log.warning("%s: %s", source, exc)
        return None


def _merge_models(raw_models: object) -> dict[ModelAlias, str]:
    models = dict(DEFAULT_MODELS)
    if raw_models is None:
        return models
    if not isinstance(raw_models, dict):
        log.warning("config: [models] must be a table, ignoring")
        return models
    for key, value in raw_models.items():
        alias = _parse_alias(key, "config [models]")
        if alias is None:
            continue
        if not isinstance(value, str) or not value.strip():
            log.warning("config [models]: model for '%s' must be a non-empty string", key)
            continue
        models[alias] = value.strip()
    return models


def _resolve_effort(value: object, source: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or value.strip().lower() not in VALID_EFFORTS:
        log.warning(
            "%s: invalid reasoning effort %r (valid: %s)",
            source,
            value,
            ", ".join(sorted(VALID_EFFORTS)),
        )
        return None
    return value.strip().lower()


def _resolve_allowed(raw_allowed: object, source: str) -> frozenset[ModelAlias]:
    if raw_allowed is None:
        return frozenset(ALL_ALIASES)
    if isinstance(raw_allowed, str):
        names = [n.strip() for n in raw_allowed.split(",") if n.strip()]
    elif isinstance(raw_allowed, list):
        names = raw_allowed
    else:
        log.warning("%s: expected a list of aliases, ignoring", source)
        return frozenset(ALL_ALIASES)

    if not names:
        return frozenset(ALL_ALIASES)

    allowed = {a for a in (_parse_alias(n, source) for n in names) if a is not None}
    if not allowed:
        raise ConfigError(f"{source}: no valid models enabled (got {names!r})")
    return frozenset(allowed)


def build_config(raw: Mapping[str, Any], env: Mapping[str, str] | None = None) -> Config:
    """Merge a parsed config document and environment overrides into a snapshot."""
    env = os.environ if env is None else env

    models = _merge_models(raw.get("models"))

    allowed = _resolve_allowed(raw.get("allowed_models"), "config allowed_models")
    env_allowed = _env_value(env, ENV_ALLOWED_MODELS)
    if env_allowed:
        allowed = _resolve_allowed(env_allowed, ENV_ALLOWED_MODELS)

    default_alias = DEFAULT_ALIAS
    if raw.get("default_model") is not None:
        default_alias = _parse_alias(raw["default_model"], "config default_model") or default_alias
    env_default = _env_value(env, ENV_DEFAULT_MODEL)
    if env_default:
        default_alias = _parse_alias(env_default, ENV_DEFAULT_MODEL) or default_alias
    if default_alias not in allowed:
        fallback = next(a for a in ALL_ALIASES if a in allowed)
        log.info("Default model '%s' is not enabled, using '%s'", default_alias, fallback)
        default_alias = fallback

    effort = _resolve_effort(raw.get("codex_reasoning_effort"), "config codex_reasoning_effort")
    env_effort = _env_value(env, ENV_CODEX_REASONING_EFFORT)
    if env_effort:
        effort = _resolve_effort(env_effort, ENV_CODEX_REASONING_EFFORT) or effort

    system_prompt_path = DEFAULT_SYSTEM_PROMPT_PATH
    raw_prompt_path = raw.get("system_prompt_path")
    if isinstance(raw_prompt_path, str) and raw_prompt_path.strip():
        system_prompt_path = Path(raw_prompt_path.strip()).expanduser()
    env_prompt_path = _env_value(env, ENV_SYSTEM_PROMPT_PATH)
    if env_prompt_path:
        system_prompt_path = Path(env_prompt_path).expanduser()

    return Config(
        models=MappingProxyType(models),
        default_alias=default_alias,
        codex_reasoning_effort=effort,
        system_prompt_path=system_prompt_path,
        allowed_aliases=allowed,
    )


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    bootstrap: bool = True,
) -> Config:
    """Load the config snapshot, creating the default file on first run.

    A malformed file is logged and ignored (built-in defaults apply); it is
    never overwritten. Raises ``ConfigError`` only when the allow-list
    leaves no usable alias.
    """
    config_path = path or CONFIG_PATH
    if bootstrap and not config_path.exists():
        write_default_config(config_path)
    return build_config(read_config_file(config_path), env)
