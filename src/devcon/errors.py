from __future__ import annotations

from typing import Iterable

import click


class InvalidPath(click.ClickException):
    """A path expression is empty or does not name a usable file or directory."""


class PathEscapesHome(click.ClickException):
    """A writable path resolves outside of the host home directory."""


class WritablePathResolutionFailed(click.ClickException):
    """One or more writable path entries could not be resolved.

    Collects every failing entry so the user sees all of them at once.
    """

    def __init__(self, failures: Iterable[str]) -> None:
        self.failures = [str(failure) for failure in failures]
        super().__init__("Unable to resolve writable paths: " + "; ".join(self.failures))


class UnknownTool(click.ClickException):
    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f'Unknown tool "{tool_name}". Run `devcon --list` to see the available tools.')


class RuntimeUnavailable(click.ClickException):
    pass
