"""Health checks for second-opinion prerequisites."""

from __future__ import annotations

import shutil
import tomllib
from pathlib import Path
from typing import Literal, TypedDict

from second_opinion.backends import executable_for
from second_opinion.config import Config, parse_config_file
from second_opinion.paths import CONFIG_PATH
from second_opinion.system_prompt import is_custom_prompt_active

Status = Literal["pass", "warning", "fail"]
_STATUS_RANK: dict[Status, int] = {"pass": 0, "warning": 1, "fail": 2}


class _CheckFindingRequired(TypedDict):
    status: Status
    message: str


class CheckFinding(_CheckFindingRequired, total=False):
    details: dict[str, object]


class CheckReport(TypedDict):
    name: str
    status: Status
    summary: str
    findings: list[CheckFinding]


class DoctorReport(TypedDict):
    status: Status
    summary: str
    checks: list[CheckReport]


def run_doctor(config: Config, config_path: Path | None = None) -> DoctorReport:
    """Run all health checks against *config*."""
    checks = [
        _check_config(config_path or CONFIG_PATH),
        _check_backends(config),
        _check_git(),
        _check_system_prompt(config),
    ]
    return {
        "status": _worst_status([check["status"] for check in checks]),
        "summary": _report_summary(checks),
        "checks": checks,
    }


def _worst_status(statuses: list[Status]) -> Status:
    if not statuses:
        return "pass"
    return max(statuses, key=lambda s: _STATUS_RANK[s])


def _report_summary(checks: list[CheckReport]) -> str:
    counts: dict[Status, int] = {"pass": 0, "warning": 0, "fail": 0}
    for check in checks:
        counts[check["status"]] += 1
    return f"{counts['pass']} checks passed, {counts['warning']} warnings, {counts['fail']} failed."


def _check_config(config_path: Path) -> CheckReport:
    try:
        parse_config_file(config_path)
    except FileNotFoundError:
        return {
            "name": "config",
            "status": "warning",
            "summary": f"No config file at {config_path}; built-in defaults apply.",
            "findings": [],
        }
    except (OSError, tomllib.TOMLDecodeError) as exc:
        return {
            "name": "config",
            "status": "fail",
            "summary": f"Config file {config_path} is unreadable; built-in defaults apply.",
            "findings": [
                {
                    "status": "fail",
                    "message": str(exc),
                    "details": {"path": str(config_path)},
                }
            ],
        }
    return {
        "name": "config",
        "status": "pass",
        "summary": f"Config loaded from {config_path}.",
        "findings": [],
    }


def _check_backends(config: Config) -> CheckReport:
    """Check whether each enabled backend CLI is on PATH."""
    findings: list[CheckFinding] = []
    available = 0

    for alias in config.enabled_aliases():
        executable = executable_for(alias)
        location = shutil.which(executable)
        details: dict[str, object] = {
            "alias": str(alias),
            "executable": executable,
            "model": config.model_for(alias),
        }
        if location:
            available += 1
            findings.append(
                {
                    "status": "pass",
                    "message": f"{alias}: {location}",
                    "details": {**details, "path": location},
                }
            )
        else:
            findings.append(
                {
                    "status": "warning",
                    "message": f"{alias}: {executable} not found on PATH",
                    "details": details,
                }
            )

    if available == 0:
        return {
            "name": "backends",
            "status": "fail",
            "summary": "No backend CLIs available. Install gemini, claude, codex or kilo.",
            "findings": findings,
        }

    missing = len(findings) - available
    return {
        "name": "backends",
        "status": "warning" if missing else "pass",
        "summary": f"{available} backend(s) available, {missing} missing.",
        "findings": findings,
    }


def _check_git() -> CheckReport:
    location = shutil.which("git")
    if location is None:
        return {
            "name": "git",
            "status": "warning",
            "summary": "git not found on PATH; git_diff requests will fail.",
            "findings": [],
        }
    return {
        "name": "git",
        "status": "pass",
        "summary": f"git available at {location}.",
        "findings": [],
    }


def _check_system_prompt(config: Config) -> CheckReport:
    path = config.system_prompt_path
    if is_custom_prompt_active(path):
        summary = f"Using custom system prompt from {path}."
    else:
        summary = "Using built-in system prompt."
    return {
        "name": "system_prompt",
        "status": "pass",
        "summary": summary,
        "findings": [],
    }
