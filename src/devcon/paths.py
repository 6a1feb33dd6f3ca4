from __future__ import annotations

import os
import stat

from devcon.errors import InvalidPath, PathEscapesHome


PATH_KIND_FILE = "file"
PATH_KIND_DIR = "dir"


def resolve_user_path(expr: str, home_dir: str) -> str:
    """Resolve a home-relative (``~``, ``~/...``) or absolute path expression.

    Relative expressions resolve against the current directory; they are never
    implicitly placed under the home directory. Symlinks are left untouched.
    """
    value = str(expr or "").strip()
    if not value:
        raise InvalidPath("Writable path entries must not be empty.")
    if value == "~":
        return home_dir
    if value.startswith("~/"):
        return os.path.normpath(os.path.join(home_dir, value[2:].lstrip("/")))
    return os.path.abspath(value)


def ensure_within_home(target: str, home_dir: str) -> None:
    normalized_home = os.path.abspath(home_dir)
    normalized_target = os.path.abspath(target)
    # commonpath compares whole segments, so /home/alice2 is not under /home/alice.
    if normalized_target == normalized_home or os.path.commonpath([normalized_home, normalized_target]) == normalized_home:
        return
    raise PathEscapesHome(
        f"Writable path {target} must live within the mounted home directory ({home_dir})."
    )


def path_kind(target: str) -> str:
    try:
        mode = os.stat(target).st_mode
    except OSError as exc:
        raise InvalidPath(f"Unable to inspect {target}: {exc}") from exc
    if stat.S_ISDIR(mode):
        return PATH_KIND_DIR
    if stat.S_ISREG(mode):
        return PATH_KIND_FILE
    raise InvalidPath(f"Writable path {target} must be a file or directory.")
