from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Iterator

import pytest

import sys

ROOT = Path(__file__).resolve().parents[2]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

INTEGRATION_IMAGE = "alpine:3.20"


def _docker_daemon_available() -> bool:
    if shutil.which("docker") is None:
        return False
    result = subprocess.run(
        ["docker", "info", "--format", "{{.ServerVersion}}"],
        check=False,
        text=True,
        capture_output=True,
    )
    return result.returncode == 0 and bool(result.stdout.strip())


def _docker_image_exists(tag: str) -> bool:
    result = subprocess.run(
        ["docker", "image", "inspect", tag],
        check=False,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    return result.returncode == 0


@pytest.fixture(scope="session")
def integration_image() -> str:
    if not _docker_daemon_available():
        pytest.skip("docker daemon is not reachable")
    if not _docker_image_exists(INTEGRATION_IMAGE):
        pull = subprocess.run(["docker", "pull", INTEGRATION_IMAGE], check=False, capture_output=True, text=True)
        if pull.returncode != 0:
            pytest.skip(f"unable to pull {INTEGRATION_IMAGE}: {pull.stderr.strip()}")
    return INTEGRATION_IMAGE


@pytest.fixture()
def integration_tmp_dir() -> Iterator[Path]:
    tmp = tempfile.TemporaryDirectory(prefix="devcon-int-")
    try:
        yield Path(tmp.name)
    finally:
        tmp.cleanup()
