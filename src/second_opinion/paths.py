"""Canonical filesystem paths for second-opinion configuration and state."""

from __future__ import annotations

import os
from pathlib import Path

_env_config_dir = os.environ.get("SECOND_OPINION_CONFIG_DIR")
CONFIG_DIR = (
    Path(_env_config_dir).expanduser()
    if _env_config_dir
    else Path.home() / ".config" / "second-opinion"
)

CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_SYSTEM_PROMPT_PATH = CONFIG_DIR / "SYSTEM_PROMPT.md"

_env_state_home = os.environ.get("XDG_STATE_HOME")
STATE_DIR = (
    Path(_env_state_home).expanduser() if _env_state_home else Path.home() / ".local" / "state"
) / "second-opinion"

LOG_PATH = STATE_DIR / "mcp.log"
