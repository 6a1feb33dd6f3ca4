from __future__ import annotations

import signal
from pathlib import Path
from unittest.mock import MagicMock, patch

import click
import pytest

import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from devcon.launcher import exit_on_sigterm, run_foreground


pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal semantics")


def test_exit_code_is_forwarded() -> None:
    assert run_foreground(sys.executable, ["-c", "raise SystemExit(3)"]) == 3
    assert run_foreground(sys.executable, ["-c", "pass"]) == 0


def test_child_killed_by_signal_maps_to_shell_convention() -> None:
    code = run_foreground(sys.executable, ["-c", "import os, signal; os.kill(os.getpid(), signal.SIGTERM)"])
    assert code == 128 + signal.SIGTERM


def test_missing_executable_raises_click_exception() -> None:
    with pytest.raises(click.ClickException, match="Failed to start"):
        run_foreground("/nonexistent/devcon-runtime", ["run"])


def test_signal_handlers_restored_after_child_exits() -> None:
    before = {signum: signal.getsignal(signum) for signum in (signal.SIGINT, signal.SIGTERM)}
    run_foreground(sys.executable, ["-c", "pass"])
    after = {signum: signal.getsignal(signum) for signum in (signal.SIGINT, signal.SIGTERM)}
    assert after == before


def test_termination_signals_are_relayed_to_child() -> None:
    process = MagicMock()
    process.pid = 4242
    process.poll.return_value = None

    def wait() -> int:
        handler = signal.getsignal(signal.SIGTERM)
        handler(signal.SIGTERM, None)
        signal.getsignal(signal.SIGINT)(signal.SIGINT, None)
        return -signal.SIGTERM

    process.wait.side_effect = wait

    with patch("devcon.launcher.subprocess.Popen", return_value=process) as popen:
        code = run_foreground("docker", ["run", "--rm", "-it", "img"])

    popen.assert_called_once_with(["docker", "run", "--rm", "-it", "img"])
    assert process.send_signal.call_args_list[0].args == (signal.SIGTERM,)
    assert process.send_signal.call_args_list[1].args == (signal.SIGINT,)
    assert code == 128 + signal.SIGTERM


def test_signal_after_child_exit_is_not_relayed() -> None:
    process = MagicMock()
    process.poll.return_value = 0

    def wait() -> int:
        signal.getsignal(signal.SIGINT)(signal.SIGINT, None)
        return 0

    process.wait.side_effect = wait

    with patch("devcon.launcher.subprocess.Popen", return_value=process):
        assert run_foreground("docker", ["run"]) == 0

    process.send_signal.assert_not_called()


def test_sigterm_becomes_system_exit_while_active() -> None:
    before = signal.getsignal(signal.SIGTERM)
    with pytest.raises(SystemExit) as excinfo:
        with exit_on_sigterm():
            signal.raise_signal(signal.SIGTERM)
    assert excinfo.value.code == 128 + signal.SIGTERM
    assert signal.getsignal(signal.SIGTERM) == before


def test_child_relay_takes_over_and_hands_back_sigterm() -> None:
    with exit_on_sigterm():
        terminate = signal.getsignal(signal.SIGTERM)
        run_foreground(sys.executable, ["-c", "pass"])
        assert signal.getsignal(signal.SIGTERM) is terminate
