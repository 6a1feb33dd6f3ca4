from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass

from devcon.paths import PATH_KIND_DIR, PATH_KIND_FILE


LOGGER = logging.getLogger(__name__)

ENV_FILE_PREFIX = ".env"
# Checked by exact path, no globbing.
KNOWN_CREDENTIAL_PATHS = (
    ".git/config",
    ".git/credentials",
    ".git-credentials",
    ".git/HEAD",
    ".git/index",
)


@dataclass(frozen=True)
class SensitivePath:
    host_path: str
    container_path: str
    kind: str


def _root_env_files(workspace_dir: str) -> list[str]:
    try:
        with os.scandir(workspace_dir) as entries:
            names = [
                entry.name
                for entry in entries
                if entry.name.startswith(ENV_FILE_PREFIX)
                and (entry.is_symlink() or entry.is_file(follow_symlinks=False))
            ]
    except OSError as exc:
        LOGGER.warning("Unable to inspect workspace %s for sensitive files: %s", workspace_dir, exc)
        return []
    return sorted(names)


def discover_sensitive_paths(workspace_dir: str, container_base: str) -> list[SensitivePath]:
    """Find credential-looking files in the workspace that must be masked.

    This is a denylist meant to stop accidental leakage into the container. It
    is not a security boundary against a hostile workspace.
    """
    sensitive: list[SensitivePath] = []
    for name in _root_env_files(workspace_dir):
        sensitive.append(
            SensitivePath(
                host_path=os.path.join(workspace_dir, name),
                container_path=posixpath.join(container_base, name),
                kind=PATH_KIND_FILE,
            )
        )

    for rel_path in KNOWN_CREDENTIAL_PATHS:
        host_path = os.path.join(workspace_dir, *rel_path.split("/"))
        if not os.path.exists(host_path):
            continue
        sensitive.append(
            SensitivePath(
                host_path=host_path,
                container_path=posixpath.join(container_base, rel_path),
                kind=PATH_KIND_DIR if os.path.isdir(host_path) else PATH_KIND_FILE,
            )
        )

    LOGGER.debug("Discovered %d sensitive path(s) in %s", len(sensitive), workspace_dir)
    return sensitive
