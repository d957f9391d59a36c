"""Built-in consultant system prompt and its file-based override."""

from __future__ import annotations

import logging
from pathlib import Path

log = logging.getLogger(__name__)

SYSTEM_PROMPT_FILENAME = "SYSTEM_PROMPT.md"

DEFAULT_SYSTEM_PROMPT = """\
You are an expert engineering consultant. You will provide a second opinion and advice in solving a difficult problem.

Communication style:
- Skip pleasantries and praise

Your role is to:
- Identify architectural problems
- Point out edge cases and risks
- Challenge design decisions when suboptimal
- Focus on what needs improvement
- Provide specific solutions with code examples

When reviewing code changes, prioritize:
1. Thinking deeply about overall system, subsystem or solution architecture for cleanness, readability, extensibility
2. Prefer functional style of programming for ease of unit testing, observability and integration
3. Advise of any potential security vulnerabilities
4. Warn of bugs and correctness issues
5. Warn of any obvious performance problems
6. Notice code smells and anti-patterns
7. Notice inconsistencies with codebase conventions

Be critical and thorough. Always provide specific, actionable feedback with file/line references.

Respond in Markdown.

IMPORTANT: Do not edit files yourself, only provide recommendations and code examples"""  # noqa: E501


def get_system_prompt(custom_path: Path | None) -> str:
    """Return the custom prompt at *custom_path*, or the default.

    The default applies when the file is absent, blank, or unreadable.
    """
    if custom_path is None or not custom_path.is_file():
        return DEFAULT_SYSTEM_PROMPT
    try:
        text = custom_path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        log.warning("Failed to read custom system prompt from %s: %s", custom_path, exc)
        return DEFAULT_SYSTEM_PROMPT
    return text or DEFAULT_SYSTEM_PROMPT


def is_custom_prompt_active(custom_path: Path | None) -> bool:
    return get_system_prompt(custom_path) != DEFAULT_SYSTEM_PROMPT


def init_system_prompt(config_dir: Path) -> Path:
    """Write the default prompt to ``<config_dir>/SYSTEM_PROMPT.md`` for editing.

    Raises ``FileExistsError`` rather than overwriting an existing file.
    """
    prompt_path = config_dir / SYSTEM_PROMPT_FILENAME
    if prompt_path.exists():
        raise FileExistsError(
            f"System prompt already exists at: {prompt_path}\n"
            "Remove it first if you want to reinitialize."
        )
    config_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
    prompt_path.write_text(DEFAULT_SYSTEM_PROMPT)
    return prompt_path
