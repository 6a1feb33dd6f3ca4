from __future__ import annotations

import logging
import os
import shlex
import tempfile
from dataclasses import dataclass, field
from typing import Iterable

from devcon.cleanup import CleanupRegistry
from devcon.errors import WritablePathResolutionFailed
from devcon.paths import PATH_KIND_DIR
from devcon.policy import MountDecision
from devcon.runtimes import ContainerRuntime
from devcon.tools import ToolDefinition


LOGGER = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "devcon-hide-"
PLACEHOLDER_FILE_NAME = "placeholder"
WORKSPACE_ENV = "DEVCON_WORKSPACE"
TOOL_ENV = "DEVCON_TOOL"

MOUNT_WORKSPACE = "workspace"
MOUNT_HOME = "home"
MOUNT_WRITABLE = "writable"
MOUNT_MASK = "mask"


@dataclass(frozen=True)
class Mount:
    source: str
    target: str
    read_only: bool
    purpose: str


@dataclass
class Invocation:
    executable: str
    args: list[str]
    mounts: list[Mount] = field(default_factory=list)
    cleanup: CleanupRegistry = field(default_factory=CleanupRegistry)

    @property
    def command(self) -> list[str]:
        return [self.executable, *self.args]

    def render(self) -> str:
        return shlex.join(self.command)


def _host_identity() -> tuple[int, int] | None:
    if not hasattr(os, "getuid") or not hasattr(os, "getgid"):
        return None
    return os.getuid(), os.getgid()


def _ensure_writable_path(target: str) -> None:
    # Existing files and directories are mounted as they are; only a missing path is created.
    if os.path.lexists(target):
        return
    try:
        os.makedirs(target, exist_ok=True)
    except OSError as exc:
        raise WritablePathResolutionFailed([f"{target}: unable to create directory ({exc})"]) from exc
    LOGGER.info("Created writable path %s", target)


def _create_placeholder(kind: str, cleanup: CleanupRegistry) -> str:
    base = cleanup.register(tempfile.mkdtemp(prefix=PLACEHOLDER_PREFIX))
    if kind == PATH_KIND_DIR:
        return base

    file_path = os.path.join(base, PLACEHOLDER_FILE_NAME)
    with open(file_path, "w", encoding="utf-8"):
        pass
    return file_path


def build_invocation(
    decision: MountDecision,
    tool: ToolDefinition,
    tool_name: str,
    tool_args: Iterable[str],
    *,
    cwd: str,
    home_dir: str,
    runtime: ContainerRuntime,
    image_override: str | None = None,
) -> Invocation:
    """Assemble the container run command for one tool invocation.

    Mounts are emitted in a fixed order: workspace, home, writable paths, then
    masks. Runtimes apply bind mounts in order, so masks shadow anything they
    overlap. Placeholders created here are owned by ``Invocation.cleanup``.
    """
    invocation = Invocation(executable=runtime.executable, args=runtime.base_run_flags())
    args = invocation.args

    def add_mount(source: str, target: str, *, read_only: bool, purpose: str) -> None:
        invocation.mounts.append(Mount(source=source, target=target, read_only=read_only, purpose=purpose))
        args.extend(runtime.mount_flag(source, target, read_only=read_only))

    identity = _host_identity()
    if identity is not None:
        args.extend(runtime.identity_flags(*identity))

    workspace_target = tool.workdir
    add_mount(cwd, workspace_target, read_only=False, purpose=MOUNT_WORKSPACE)
    args.extend(["-w", workspace_target])
    args.extend(["-e", f"{WORKSPACE_ENV}={workspace_target}"])
    args.extend(["-e", f"{TOOL_ENV}={tool_name}"])

    normalized_home = os.path.abspath(home_dir)
    if decision.share_home:
        if os.path.isdir(normalized_home):
            add_mount(normalized_home, normalized_home, read_only=decision.home_read_only, purpose=MOUNT_HOME)
        else:
            LOGGER.warning("Home directory %s does not exist; it will not be mounted.", normalized_home)
    args.extend(["-e", f"HOME={normalized_home}"])

    try:
        if decision.mount_writable_paths:
            for target in decision.writable_paths:
                _ensure_writable_path(target)
                add_mount(target, target, read_only=False, purpose=MOUNT_WRITABLE)

        for sensitive in decision.sensitive_paths:
            placeholder = _create_placeholder(sensitive.kind, invocation.cleanup)
            add_mount(placeholder, sensitive.container_path, read_only=True, purpose=MOUNT_MASK)
    except BaseException:
        invocation.cleanup.release()
        raise

    for key, value in tool.env.items():
        args.extend(["-e", f"{key}={value}"])

    args.append(image_override or tool.image)
    args.extend(tool.command)
    args.extend(str(arg) for arg in tool_args)
    return invocation
