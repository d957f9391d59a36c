"""Run a backend CLI once and classify the outcome.

One process per call: stdin is closed so a CLI can never wait for input,
stdout/stderr are captured in full, and there is no retry and no timeout.
A successful call returns trimmed stdout; every failure raises a
``CliError`` subclass.
"""

from __future__ import annotations

import asyncio
import logging
import time

from second_opinion.backends import CliSpec
from second_opinion.errors import EmptyResponse, GeminiQuotaExhausted, NonZeroExit, SpawnFailed
from second_opinion.models import ModelAlias

log = logging.getLogger(__name__)

QUOTA_EXHAUSTED_MARKER = "RESOURCE_EXHAUSTED"


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def classify_outcome(
    alias: ModelAlias,
    cli: str,
    returncode: int,
    stdout: str,
    stderr: str,
) -> str:
    """Turn a finished process into its response text or a ``CliError``."""
    if returncode != 0:
        if alias is ModelAlias.GEMINI and QUOTA_EXHAUSTED_MARKER in stderr:
            raise GeminiQuotaExhausted(stderr.strip())
        raise NonZeroExit(cli, returncode, stderr.strip())

    text = stdout.strip()
    if not text:
        raise EmptyResponse(cli)
    return text


async def execute_cli(alias: ModelAlias, spec: CliSpec) -> str:
    """Spawn *spec*, wait for it to exit, and return its trimmed stdout."""
    log.info(
        "Spawning %s CLI: alias=%s, args=%d, prompt_len=%d",
        spec.executable,
        alias,
        len(spec.arguments),
        len(spec.arguments[-1]) if spec.arguments else 0,
    )

    start = time.perf_counter()
    try:
        process = await asyncio.create_subprocess_exec(
            spec.executable,
            *spec.arguments,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=spec.child_env(),
        )
    except OSError as exc:
        log.warning("Failed to spawn %s CLI: %s", spec.executable, exc)
        raise SpawnFailed(spec.executable, exc) from exc

    raw_stdout, raw_stderr = await process.communicate()
    duration_ms = (time.perf_counter() - start) * 1000
    stdout = _decode(raw_stdout)
    stderr = _decode(raw_stderr)
    returncode = process.returncode if process.returncode is not None else -1

    log.info(
        "%s CLI finished: code=%d, duration=%.0fms, stdout_len=%d, stderr_len=%d",
        spec.executable,
        returncode,
        duration_ms,
        len(stdout),
        len(stderr),
    )

    return classify_outcome(alias, spec.executable, returncode, stdout, stderr)
