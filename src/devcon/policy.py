from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

import click

from devcon.errors import WritablePathResolutionFailed
from devcon.paths import ensure_within_home, path_kind, resolve_user_path
from devcon.sensitive import SensitivePath, discover_sensitive_paths
from devcon.settings import Settings
from devcon.tools import ToolDefinition


LOGGER = logging.getLogger(__name__)

WRITABLE_PATHS_IGNORED_WARNING = (
    "Writable paths were provided but the home directory is not mounted read-only. Ignoring writablePaths."
)


@dataclass(frozen=True)
class MountDecision:
    share_home: bool
    home_read_only: bool
    mount_writable_paths: bool
    writable_paths: tuple[str, ...] = ()
    sensitive_paths: tuple[SensitivePath, ...] = ()
    warnings: tuple[str, ...] = field(default=(), compare=False)


def merge_override(*layers: bool | None) -> bool | None:
    """Return the last layer that is explicitly set."""
    resolved: bool | None = None
    for layer in layers:
        if layer is not None:
            resolved = layer
    return resolved


def resolve_writable_paths(entries: tuple[str, ...], home_dir: str) -> tuple[str, ...]:
    """Resolve every entry or fail with all problems listed; never a partial result."""
    resolved: list[str] = []
    failures: list[str] = []
    for entry in entries:
        try:
            target = resolve_user_path(entry, home_dir)
            ensure_within_home(target, home_dir)
            if os.path.lexists(target):
                path_kind(target)
        except click.ClickException as exc:
            failures.append(f"{entry!r}: {exc.message}")
            continue
        resolved.append(target)
    if failures:
        raise WritablePathResolutionFailed(failures)
    return tuple(resolved)


def resolve_mount_decision(
    tool: ToolDefinition,
    *,
    cli_share_home: bool | None,
    settings: Settings,
    home_dir: str,
    workspace_dir: str,
) -> MountDecision:
    warnings: list[str] = []
    writable_entries = tuple(tool.writable_paths)

    share_home = bool(merge_override(settings.share_home_default, tool.share_home, cli_share_home))
    if share_home:
        home_read_only = bool(merge_override(settings.home_read_only_default, tool.home_read_only))
        mount_writable = home_read_only and bool(writable_entries)
        if not home_read_only and writable_entries:
            LOGGER.warning(WRITABLE_PATHS_IGNORED_WARNING)
            warnings.append(WRITABLE_PATHS_IGNORED_WARNING)
    else:
        home_read_only = False
        mount_writable = bool(writable_entries)

    writable_paths: tuple[str, ...] = ()
    if mount_writable:
        writable_paths = resolve_writable_paths(writable_entries, home_dir)

    # Masking does not depend on the home policy.
    sensitive_paths = discover_sensitive_paths(workspace_dir, tool.workdir)

    return MountDecision(
        share_home=share_home,
        home_read_only=home_read_only,
        mount_writable_paths=mount_writable,
        writable_paths=writable_paths,
        sensitive_paths=tuple(sensitive_paths),
        warnings=tuple(warnings),
    )
