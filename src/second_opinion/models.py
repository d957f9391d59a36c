"""Model aliases, built-in defaults, and per-request value types."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType

from second_opinion.errors import UnknownModelAlias


class ModelAlias(enum.Enum):
    """Backend-agnostic name a caller uses to pick an external AI CLI."""

    GEMINI = "gemini"
    CLAUDE = "claude"
    CODEX = "codex"
    KILO = "kilo"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> ModelAlias:
        """Map a case-insensitive alias string to a member.

        Raises ``UnknownModelAlias`` for anything else.
        """
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise UnknownModelAlias(text, [a.value for a in cls]) from None


ALL_ALIASES: tuple[ModelAlias, ...] = tuple(ModelAlias)

DEFAULT_ALIAS = ModelAlias.GEMINI

DEFAULT_MODELS: MappingProxyType[ModelAlias, str] = MappingProxyType(
    {
        ModelAlias.GEMINI: "gemini-3-pro-preview",
        ModelAlias.CLAUDE: "claude-opus-4-6",
        ModelAlias.CODEX: "gpt-5.3-codex",
        ModelAlias.KILO: "openrouter/moonshotai/kimi-k2.5",
    }
)

VALID_EFFORTS = frozenset({"none", "minimal", "low", "medium", "high", "xhigh"})

DEFAULT_BASE_REF = "HEAD"


@dataclass(frozen=True)
class DiffSpec:
    """Which files to diff, against which ref, in which repository."""

    files: tuple[str, ...]
    repo_path: str | None = None
    base_ref: str = DEFAULT_BASE_REF


@dataclass(frozen=True)
class ConsultRequest:
    """One incoming ``consult`` tool call, as received from the caller."""

    prompt: str
    model: str | None = None
    files: tuple[str, ...] | None = None
    git_diff: DiffSpec | None = None
