from __future__ import annotations

import contextlib
import logging
import signal
import subprocess
from typing import Any, Iterable, Iterator

import click


LOGGER = logging.getLogger(__name__)

FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _exit_code(returncode: int | None) -> int:
    if returncode is None:
        return 1
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


@contextlib.contextmanager
def exit_on_sigterm() -> Iterator[None]:
    """Turn SIGTERM into ``SystemExit(128 + SIGTERM)`` so ``finally`` blocks run."""

    def terminate(signum: int, _frame: Any) -> None:
        LOGGER.debug("Received signal %s, exiting", signum)
        raise SystemExit(_exit_code(-signum))

    previous = signal.signal(signal.SIGTERM, terminate)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous if previous is not None else signal.SIG_DFL)


def run_foreground(executable: str, args: Iterable[str]) -> int:
    """Run the container command in the foreground and return its exit code.

    SIGINT and SIGTERM received while the child runs are relayed to it so the
    runtime tears the container down instead of orphaning it.
    """
    cmd = [executable, *[str(arg) for arg in args]]
    LOGGER.debug("Launching: %s", cmd)
    try:
        process = subprocess.Popen(cmd)
    except OSError as exc:
        raise click.ClickException(f"Failed to start {executable}: {exc}") from exc

    def forward(signum: int, _frame: Any) -> None:
        if process.poll() is None:
            LOGGER.debug("Forwarding signal %s to pid %s", signum, process.pid)
            process.send_signal(signum)

    previous_handlers = {signum: signal.signal(signum, forward) for signum in FORWARDED_SIGNALS}
    try:
        returncode = process.wait()
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
    return _exit_code(returncode)
