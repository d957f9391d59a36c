"""The consultation pipeline: validate, diff, compose, run.

    request -> resolve alias -> validate context files -> git diff (optional)
            -> compose prompt -> build backend command -> run backend CLI

No step keeps state between requests; the only shared input is the
immutable ``Config`` snapshot.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict

from second_opinion.backends import build_cli_spec
from second_opinion.config import Config
from second_opinion.errors import (
    CliError,
    FileCheckError,
    GitDiffError,
    ModelNotAllowed,
    SecondOpinionError,
)
from second_opinion.executor import execute_cli
from second_opinion.file_check import validate_context_files
from second_opinion.git_ops import generate_git_diff
from second_opinion.models import ConsultRequest, ModelAlias
from second_opinion.prompt import build_full_prompt
from second_opinion.system_prompt import get_system_prompt
from second_opinion.transcript import log_prompt, log_response, log_tool_call

log = logging.getLogger(__name__)

TOOL_NAME = "consult"


def resolve_alias(raw: str | None, config: Config) -> ModelAlias:
    """Resolve the caller's alias text, falling back to the configured default."""
    if raw is None or not raw.strip():
        return config.default_alias
    alias = ModelAlias.parse(raw)
    if not config.is_allowed(alias):
        raise ModelNotAllowed(str(alias), [str(a) for a in config.enabled_aliases()])
    return alias


async def run_consultation(request: ConsultRequest, config: Config) -> str:
    """Run one request end to end and return the backend's answer.

    Raises a ``SecondOpinionError`` subclass for every expected failure.
    Validation and diff errors are raised before any backend is spawned.
    """
    log_tool_call(TOOL_NAME, asdict(request))

    alias = resolve_alias(request.model, config)
    model = config.model_for(alias)

    if request.files:
        await asyncio.to_thread(validate_context_files, request.files)

    diff_text: str | None = None
    if request.git_diff is not None:
        spec = request.git_diff
        diff_text = await asyncio.to_thread(
            generate_git_diff, spec.repo_path, spec.files, spec.base_ref
        )

    system_prompt = await asyncio.to_thread(get_system_prompt, config.system_prompt_path)
    full_prompt = build_full_prompt(
        system_prompt,
        request.prompt,
        file_paths=request.files,
        git_diff=diff_text,
    )
    log_prompt(str(alias), full_prompt)

    cli_spec = build_cli_spec(alias, model, full_prompt, config)
    start = time.perf_counter()
    response = await execute_cli(alias, cli_spec)
    log_response(str(alias), response, (time.perf_counter() - start) * 1000)
    return response


def describe_failure(exc: SecondOpinionError) -> str:
    """Caller-facing message for a failed request, prefixed by pipeline stage."""
    if isinstance(exc, FileCheckError):
        return f"File validation error: {exc}"
    if isinstance(exc, GitDiffError):
        return f"Git diff failed: {exc}"
    if isinstance(exc, CliError):
        return f"LLM query failed: {exc}"
    return str(exc)
