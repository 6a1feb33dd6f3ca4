from __future__ import annotations

import abc
import shutil
import subprocess

import click

from devcon.errors import RuntimeUnavailable


RUNTIME_PROBE_TIMEOUT_SECONDS = 20.0


class ContainerRuntime(abc.ABC):
    @property
    @abc.abstractmethod
    def name(self) -> str:
        """The identifier used in DEVCON_RUNTIME / --runtime (e.g., 'docker', 'podman')."""
        pass

    @property
    def executable(self) -> str:
        return self.name

    def base_run_flags(self) -> list[str]:
        """Flags for an ephemeral, interactive run that removes the container on exit."""
        return ["run", "--rm", "-it"]

    @abc.abstractmethod
    def identity_flags(self, uid: int, gid: int) -> list[str]:
        """Returns the flags that run the container process as the given host identity."""
        pass

    def mount_flag(self, source: str, target: str, *, read_only: bool = False) -> list[str]:
        spec = f"type=bind,source={source},target={target}"
        if read_only:
            spec += ",readonly"
        return ["--mount", spec]

    def ensure_available(self) -> None:
        if shutil.which(self.executable) is None:
            raise RuntimeUnavailable(
                f"{self.name} is required but was not found. Please install {self.name} and ensure it is in your PATH."
            )
        try:
            result = subprocess.run(
                [self.executable, "version"],
                check=False,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=RUNTIME_PROBE_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired as exc:
            raise RuntimeUnavailable(
                f"{self.name} is installed but not responding (`{self.executable} version` "
                f"did not finish within {RUNTIME_PROBE_TIMEOUT_SECONDS:g}s)."
            ) from exc
        if result.returncode != 0:
            raise RuntimeUnavailable(
                f"{self.name} is installed but not reachable (`{self.executable} version` exited with {result.returncode})."
            )


class DockerRuntime(ContainerRuntime):
    @property
    def name(self) -> str:
        return "docker"

    def identity_flags(self, uid: int, gid: int) -> list[str]:
        return ["-u", f"{uid}:{gid}"]


class PodmanRuntime(ContainerRuntime):
    @property
    def name(self) -> str:
        return "podman"

    def identity_flags(self, uid: int, gid: int) -> list[str]:
        # keep-id maps the caller's uid into the rootless user namespace.
        return ["--userns=keep-id", "-u", f"{uid}:{gid}"]


RUNTIMES: dict[str, type[ContainerRuntime]] = {
    "docker": DockerRuntime,
    "podman": PodmanRuntime,
}


def runtime_for_name(name: str) -> ContainerRuntime:
    normalized = str(name or "").strip().lower()
    runtime_cls = RUNTIMES.get(normalized)
    if runtime_cls is None:
        raise click.UsageError(
            f"Unsupported container runtime {name!r} (expected one of: {', '.join(sorted(RUNTIMES))})."
        )
    return runtime_cls()
