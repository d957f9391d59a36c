"""Assembly of the single prompt string handed to a backend CLI.

File *paths* are appended as ``@relative/path`` references; the CLIs read
the files themselves. File contents are never loaded here.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

SECTION_SEPARATOR = "\n\n"


def _canonical(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        return path


def relative_path(path: str, base: str | os.PathLike[str]) -> str:
    """Express *path* relative to *base*, walking up with ``..`` as needed.

    Best effort: returns *path* unchanged when the two share no leading
    component or anything goes wrong while resolving.
    """
    try:
        path_parts = _canonical(Path(path)).parts
        base_parts = _canonical(Path(base)).parts

        common = 0
        for a, b in zip(path_parts, base_parts):
            if a != b:
                break
            common += 1

        if common == 0:
            return path

        rel_parts = [".."] * (len(base_parts) - common) + list(path_parts[common:])
        if not rel_parts:
            return "."
        return str(Path(*rel_parts))
    except (OSError, ValueError, RuntimeError):
        return path


def format_diff_section(diff: str) -> str:
    return f"## Git Diff\n```diff\n{diff}\n```"


def format_file_references(file_paths: Sequence[str], cwd: str | os.PathLike[str]) -> str:
    refs = " ".join(f"@{relative_path(p, cwd)}" for p in file_paths)
    return f"Files: {refs}"


def build_full_prompt(
    system_prompt: str,
    user_prompt: str,
    file_paths: Sequence[str] | None = None,
    git_diff: str | None = None,
    cwd: str | os.PathLike[str] | None = None,
) -> str:
    """Join system prompt, diff, user prompt and file references.

    Order is fixed; absent or blank parts are skipped and each present part
    is separated by a blank line. *cwd* defaults to the process working
    directory and is only used to relativize file paths.
    """
    parts = [system_prompt]

    if git_diff is not None and git_diff.strip():
        parts.append(format_diff_section(git_diff))

    parts.append(user_prompt)

    if file_paths:
        if cwd is None:
            try:
                cwd = os.getcwd()
            except OSError:
                cwd = "."
        parts.append(format_file_references(file_paths, cwd))

    return SECTION_SEPARATOR.join(parts)
