"""Git diff generation from caller-supplied refs and paths.

The ref and every path are validated before any command is built, and the
command runs without a shell with ``--`` separating the ref from the paths.
Functions raise ``GitDiffError`` subclasses on failure.
"""

from __future__ import annotations

import logging
import os
import string
import subprocess
from collections.abc import Sequence

from second_opinion.errors import DiffCommandFailed, InvalidPath, InvalidRef, NoDiffFiles
from second_opinion.models import DEFAULT_BASE_REF

log = logging.getLogger(__name__)

_REF_ALPHABET = frozenset(string.ascii_letters + string.digits + "_./-~^{}")
_UNSAFE_PATH_CHARS = frozenset(";|&$`\\(){}<>!#'\"")


def validate_ref(ref: str) -> None:
    """Raise ``InvalidRef`` unless *ref* is option-safe and in the ref alphabet."""
    if not ref or ref.startswith("-"):
        raise InvalidRef(ref)
    if not set(ref) <= _REF_ALPHABET:
        raise InvalidRef(ref)


def validate_diff_path(path: str) -> None:
    """Raise ``InvalidPath`` for option-like paths or shell metacharacters."""
    if path.startswith("-"):
        raise InvalidPath(path)
    if any(ch in _UNSAFE_PATH_CHARS for ch in path):
        raise InvalidPath(path)


def build_diff_command(files: Sequence[str], base_ref: str = DEFAULT_BASE_REF) -> list[str]:
    """Validate inputs and return the argv for ``git diff <ref> -- <files>``."""
    if not files:
        raise NoDiffFiles()
    validate_ref(base_ref)
    for path in files:
        validate_diff_path(path)
    return ["git", "diff", base_ref, "--", *files]


def generate_git_diff(
    repo_path: str | None,
    files: Sequence[str],
    base_ref: str = DEFAULT_BASE_REF,
) -> str:
    """Run ``git diff`` and return its stdout verbatim.

    Runs in *repo_path*, or the current directory when it is None.
    Raises ``NoDiffFiles``, ``InvalidRef``, ``InvalidPath`` before spawning,
    or ``DiffCommandFailed`` when git cannot run or exits non-zero.
    """
    cmd = build_diff_command(files, base_ref)
    try:
        cwd = repo_path or os.getcwd()
    except OSError as exc:
        raise DiffCommandFailed(f"cannot determine working directory: {exc}") from exc

    log.debug("Running %s in %s", cmd, cwd)
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        raise DiffCommandFailed(str(exc)) from exc

    if result.returncode != 0:
        log.warning("git diff exited %d in %s", result.returncode, cwd)
        raise DiffCommandFailed(result.stderr)

    return result.stdout
