from __future__ import annotations

import logging
import os
import shutil
from types import TracebackType


LOGGER = logging.getLogger(__name__)


class CleanupRegistry:
    """Temporary host paths created for one invocation.

    ``release()`` drains the registry, so calling it from several exit paths
    still removes each path only once.
    """

    def __init__(self) -> None:
        self._paths: list[str] = []

    def register(self, path: str) -> str:
        self._paths.append(path)
        return path

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(self._paths)

    def __len__(self) -> int:
        return len(self._paths)

    def release(self) -> None:
        targets, self._paths = self._paths, []
        for target in targets:
            try:
                if os.path.isdir(target) and not os.path.islink(target):
                    shutil.rmtree(target)
                elif os.path.lexists(target):
                    os.unlink(target)
            except OSError as exc:
                LOGGER.warning("Failed to clean temporary artifact %s: %s", target, exc)

    def __enter__(self) -> CleanupRegistry:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.release()
