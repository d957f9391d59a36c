"""Error taxonomy for the consultation pipeline.

Every failure a request can hit is a ``SecondOpinionError`` subclass with a
stable ``code``. None of them are fatal: the MCP server turns each one into
an error tool result (see :func:`second_opinion.consult.describe_failure`).
"""

from __future__ import annotations

from collections.abc import Iterable


class SecondOpinionError(Exception):
    """Base class for expected, request-level failures."""

    code = "INTERNAL"


class ConfigError(SecondOpinionError):
    """Configuration cannot produce a usable snapshot (startup only)."""

    code = "CONFIG"


# -- Model alias resolution --


class UnknownModelAlias(SecondOpinionError):
    code = "UNKNOWN_MODEL"

    def __init__(self, alias: str, choices: Iterable[str]) -> None:
        self.alias = alias
        super().__init__(f"Unknown model alias: {alias}. Use one of: {', '.join(choices)}")


class ModelNotAllowed(SecondOpinionError):
    code = "MODEL_NOT_ALLOWED"

    def __init__(self, alias: str, allowed: list[str]) -> None:
        self.alias = alias
        super().__init__(
            f"Model alias '{alias}' is disabled by configuration. "
            f"Enabled: {', '.join(allowed)}"
        )


# -- Context file validation --


class FileCheckError(SecondOpinionError):
    code = "FILE_CHECK"

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class ContextFileNotFound(FileCheckError):
    code = "NOT_FOUND"

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}", path)


class SensitiveFile(FileCheckError):
    code = "SENSITIVE"

    def __init__(self, path: str) -> None:
        super().__init__(f"Blocked sensitive file: {path}", path)


class FileTooLarge(FileCheckError):
    code = "TOO_LARGE"

    def __init__(self, path: str, limit: int) -> None:
        super().__init__(f"File exceeds max context size ({limit} bytes): {path}", path)
        self.limit = limit


class BinaryFile(FileCheckError):
    code = "BINARY"

    def __init__(self, path: str) -> None:
        super().__init__(f"Binary file is not allowed in context: {path}", path)


class FileReadError(FileCheckError):
    code = "IO"

    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(f"IO error reading {path}: {cause}", path)
        self.cause = cause


# -- git diff --


class GitDiffError(SecondOpinionError):
    code = "GIT_DIFF"


class NoDiffFiles(GitDiffError):
    code = "NO_FILES"

    def __init__(self) -> None:
        super().__init__("No files specified for git diff")


class InvalidRef(GitDiffError):
    code = "INVALID_REF"

    def __init__(self, ref: str) -> None:
        super().__init__(f"Invalid git ref: {ref}")
        self.ref = ref


class InvalidPath(GitDiffError):
    code = "INVALID_PATH"

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid file path: {path}")
        self.path = path


class DiffCommandFailed(GitDiffError):
    code = "COMMAND_FAILED"

    def __init__(self, stderr: str) -> None:
        super().__init__(f"git diff failed: {stderr}")
        self.stderr = stderr


# -- Backend CLI execution --


class CliError(SecondOpinionError):
    code = "CLI"

    def __init__(self, message: str, cli: str) -> None:
        super().__init__(message)
        self.cli = cli


class SpawnFailed(CliError):
    code = "SPAWN_FAILED"

    def __init__(self, cli: str, cause: OSError) -> None:
        super().__init__(
            f"Failed to spawn {cli} CLI. Is it installed and in PATH? Error: {cause}", cli
        )
        self.cause = cause


class NonZeroExit(CliError):
    code = "NON_ZERO_EXIT"

    def __init__(self, cli: str, exit_code: int, stderr: str) -> None:
        super().__init__(f"{cli} CLI exited with code {exit_code}. Error: {stderr}", cli)
        self.exit_code = exit_code
        self.stderr = stderr


class GeminiQuotaExhausted(CliError):
    code = "QUOTA_EXHAUSTED"

    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Gemini quota exceeded. Consider using gemini-2.0-flash model. Error: {detail}",
            "gemini",
        )
        self.detail = detail


class EmptyResponse(CliError):
    code = "EMPTY_RESPONSE"

    def __init__(self, cli: str) -> None:
        super().__init__(f"No response from {cli} CLI (empty stdout)", cli)
