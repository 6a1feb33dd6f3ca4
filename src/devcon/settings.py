from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping


SHARE_HOME_ENV = "DEVCON_SHARE_HOME"
HOME_READONLY_ENV = "DEVCON_HOME_READONLY"
TOOLS_FILE_ENV = "DEVCON_TOOLS_FILE"
RUNTIME_ENV = "DEVCON_RUNTIME"
LOG_LEVEL_ENV = "DEVCON_LOG_LEVEL"
DEFAULT_RUNTIME = "docker"
DEFAULT_LOG_LEVEL = "warning"
LOG_LEVEL_CHOICES = ("debug", "info", "warning", "error")
TRUTHY_VALUES = {"1", "true", "yes"}


def parse_boolean_env(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUTHY_VALUES


def normalize_log_level(value: str | None) -> str:
    normalized = str(value or "").strip().lower()
    if normalized in LOG_LEVEL_CHOICES:
        return normalized
    return DEFAULT_LOG_LEVEL


def default_tools_file() -> Path:
    return Path.home() / ".config" / "devcon" / "tools.json"


@dataclass(frozen=True)
class Settings:
    """Process-wide defaults, read from the environment once at startup."""

    share_home_default: bool = False
    home_read_only_default: bool = False
    tools_file: Path | None = None
    runtime: str = DEFAULT_RUNTIME
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        source = os.environ if env is None else env
        tools_file_raw = str(source.get(TOOLS_FILE_ENV, "")).strip()
        runtime = str(source.get(RUNTIME_ENV, "")).strip().lower() or DEFAULT_RUNTIME
        return cls(
            share_home_default=parse_boolean_env(source.get(SHARE_HOME_ENV)),
            home_read_only_default=parse_boolean_env(source.get(HOME_READONLY_ENV)),
            tools_file=Path(tools_file_raw).expanduser() if tools_file_raw else default_tools_file(),
            runtime=runtime,
            log_level=normalize_log_level(source.get(LOG_LEVEL_ENV)),
        )
