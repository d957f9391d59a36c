"""Command construction for each backend CLI.

Each alias maps to exactly one executable and argument shape. The prompt is
always passed as a single argv element and never goes through a shell, so
its contents cannot inject commands.

    gemini   gemini -m MODEL -p PROMPT
    codex    codex exec --skip-git-repo-check -m MODEL [-c model_reasoning_effort="E"] PROMPT
    claude   claude --print --model MODEL PROMPT          (ANTHROPIC_API_KEY removed)
    kilo     kilo run -m MODEL PROMPT
"""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import assert_never

from second_opinion.config import Config
from second_opinion.models import ModelAlias

# Stripped from the claude child environment; that CLI runs on subscription auth.
CLAUDE_API_KEY_VAR = "ANTHROPIC_API_KEY"


class EnvAction(enum.Enum):
    REMOVE = "remove"


@dataclass(frozen=True)
class CliSpec:
    """Executable, argv and environment changes for one backend invocation."""

    executable: str
    arguments: tuple[str, ...]
    env_overrides: tuple[tuple[str, EnvAction], ...] = ()

    def child_env(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Return a copy of *base* (default ``os.environ``) with overrides applied."""
        env = dict(os.environ if base is None else base)
        for key, action in self.env_overrides:
            if action is EnvAction.REMOVE:
                env.pop(key, None)
        return env

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.arguments]


def build_cli_spec(
    alias: ModelAlias,
    model: str,
    full_prompt: str,
    config: Config,
) -> CliSpec:
    """Map (alias, model, prompt, config) to the command for that backend."""
    match alias:
        case ModelAlias.GEMINI:
            return CliSpec("gemini", ("-m", model, "-p", full_prompt))
        case ModelAlias.CODEX:
            args = ["exec", "--skip-git-repo-check", "-m", model]
            if config.codex_reasoning_effort:
                args += ["-c", f'model_reasoning_effort="{config.codex_reasoning_effort}"']
            args.append(full_prompt)
            return CliSpec("codex", tuple(args))
        case ModelAlias.CLAUDE:
            return CliSpec(
                "claude",
                ("--print", "--model", model, full_prompt),
                env_overrides=((CLAUDE_API_KEY_VAR, EnvAction.REMOVE),),
            )
        case ModelAlias.KILO:
            return CliSpec("kilo", ("run", "-m", model, full_prompt))
        case _:
            assert_never(alias)


def executable_for(alias: ModelAlias) -> str:
    """Name of the executable a given alias spawns (used by doctor)."""
    return build_cli_spec(alias, "", "", Config.defaults()).executable
