from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from devcon.settings import Settings


LOGGER = logging.getLogger(__name__)

DEFAULT_WORKSPACE_TARGET = "/workspace"
DEVCONTAINER_BASE_IMAGE = "mcr.microsoft.com/devcontainers/base:ubuntu"


@dataclass(frozen=True)
class ToolDefinition:
    image: str
    command: tuple[str, ...] = ()
    description: str = ""
    workdir: str = DEFAULT_WORKSPACE_TARGET
    env: dict[str, str] = field(default_factory=dict)
    share_home: bool | None = None
    home_read_only: bool | None = None
    writable_paths: tuple[str, ...] = ()


BUILT_IN_TOOLS: dict[str, ToolDefinition] = {
    "codex": ToolDefinition(
        image=DEVCONTAINER_BASE_IMAGE,
        command=("codex",),
        description="Launches the Codex CLI inside a devcontainers base image",
        share_home=False,
        writable_paths=("~/.codex",),
    ),
    "claude": ToolDefinition(
        image=DEVCONTAINER_BASE_IMAGE,
        command=("claude",),
        description="Runs Claude Code inside a container and mounts your workspace",
    ),
}


class ToolDefinitionError(ValueError):
    pass


def _string_list(raw_value: object, field_name: str) -> tuple[str, ...]:
    if raw_value is None:
        return ()
    if not isinstance(raw_value, list) or not all(isinstance(item, str) for item in raw_value):
        raise ToolDefinitionError(f"'{field_name}' must be a list of strings")
    return tuple(raw_value)


def _optional_bool(raw_value: object, field_name: str) -> bool | None:
    if raw_value is None:
        return None
    if not isinstance(raw_value, bool):
        raise ToolDefinitionError(f"'{field_name}' must be true or false")
    return raw_value


def parse_tool_definition(raw: Any) -> ToolDefinition:
    if not isinstance(raw, dict):
        raise ToolDefinitionError("definition must be a JSON object")

    image = raw.get("image")
    if not isinstance(image, str) or not image.strip():
        raise ToolDefinitionError("'image' is required and must be a non-empty string")

    workdir = raw.get("workdir", DEFAULT_WORKSPACE_TARGET)
    if not isinstance(workdir, str) or not workdir.startswith("/"):
        raise ToolDefinitionError("'workdir' must be an absolute container path")

    env = raw.get("env") or {}
    if not isinstance(env, dict):
        raise ToolDefinitionError("'env' must be an object")
    env_vars: dict[str, str] = {}
    for key, value in env.items():
        if not key or "=" in key:
            raise ToolDefinitionError(f"invalid environment variable name {key!r}")
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ToolDefinitionError(f"environment variable {key} must be a string")
        env_vars[key] = str(value)

    description = raw.get("description", "")
    return ToolDefinition(
        image=image.strip(),
        command=_string_list(raw.get("command"), "command"),
        description=description if isinstance(description, str) else "",
        workdir=workdir,
        env=env_vars,
        share_home=_optional_bool(raw.get("shareHome"), "shareHome"),
        home_read_only=_optional_bool(raw.get("homeReadOnly"), "homeReadOnly"),
        writable_paths=_string_list(raw.get("writablePaths"), "writablePaths"),
    )


def load_custom_tools(config_path: Path | None) -> dict[str, ToolDefinition]:
    if config_path is None or not config_path.exists():
        return {}

    try:
        parsed = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeError, json.JSONDecodeError) as exc:
        LOGGER.warning("Failed to load custom tools from %s: %s", config_path, exc)
        return {}

    if not isinstance(parsed, dict):
        LOGGER.warning("Failed to load custom tools from %s: top-level value must be a JSON object", config_path)
        return {}

    tools: dict[str, ToolDefinition] = {}
    for name, raw in parsed.items():
        try:
            tools[str(name)] = parse_tool_definition(raw)
        except ToolDefinitionError as exc:
            LOGGER.warning("Ignoring tool %r from %s: %s", name, config_path, exc)
    return tools


def read_tools(settings: Settings) -> dict[str, ToolDefinition]:
    return {**BUILT_IN_TOOLS, **load_custom_tools(settings.tools_file)}
