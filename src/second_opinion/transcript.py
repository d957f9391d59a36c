"""Append-only diagnostic log of tool calls, prompts and responses.

Everything goes through stdlib ``logging``. ``configure_logging`` attaches
an append-mode file handler to the ``second_opinion`` logger; the handler's
lock serializes writes, so concurrent requests interleave whole entries and
never tear a line. Stdout is left alone: it carries the MCP stdio transport.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from second_opinion.paths import LOG_PATH

log = logging.getLogger("second_opinion.transcript")

_PACKAGE_LOGGER = "second_opinion"
_RULE = "=" * 80
_FILE_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_STDERR_FORMAT = "%(asctime)s %(levelname)s %(message)s"
_HANDLER_TAG = "_second_opinion_handler"


def configure_logging(
    log_path: Path | None = LOG_PATH,
    *,
    level: int = logging.INFO,
    stderr: bool = True,
) -> logging.Logger:
    """Attach file (and optionally stderr) handlers to the package logger.

    Idempotent: handlers added by an earlier call are replaced. A log file
    that cannot be opened is reported on stderr and skipped.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)

    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        except OSError as exc:
            print(f"second-opinion: cannot open log file {log_path}: {exc}", file=sys.stderr)
        else:
            file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
            setattr(file_handler, _HANDLER_TAG, True)
            logger.addHandler(file_handler)

    if stderr:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(logging.WARNING)
        stream_handler.setFormatter(logging.Formatter(_STDERR_FORMAT))
        setattr(stream_handler, _HANDLER_TAG, True)
        logger.addHandler(stream_handler)

    return logger


def _entry(title: str, body: str | None = None) -> str:
    if body is None:
        return f"{title}\n{_RULE}"
    return f"{title}\n{body}\n{_RULE}"


def log_server_start(version: str) -> None:
    log.info(_entry(f"MCP SERVER STARTED - second-opinion v{version}"))


def log_tool_call(name: str, arguments: dict[str, Any]) -> None:
    args_json = json.dumps(arguments, indent=2, default=str)
    log.info(_entry(f"TOOL CALL: {name}", f"Arguments: {args_json}"))


def log_prompt(alias: str, prompt: str) -> None:
    log.info(_entry(f"PROMPT (model: {alias}):", prompt))


def log_response(alias: str, response: str, duration_ms: float | None = None) -> None:
    title = f"RESPONSE (model: {alias}):"
    if duration_ms is not None:
        title = f"RESPONSE (model: {alias}, {duration_ms:.0f}ms):"
    log.info(_entry(title, response))


def log_failure(alias: str | None, message: str) -> None:
    log.warning(_entry(f"FAILED (model: {alias or 'unresolved'}):", message))
