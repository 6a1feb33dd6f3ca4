from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import click

from devcon.errors import UnknownTool
from devcon.invocation import build_invocation
from devcon.launcher import exit_on_sigterm, run_foreground
from devcon.policy import resolve_mount_decision
from devcon.runtimes import runtime_for_name
from devcon.settings import LOG_LEVEL_CHOICES, Settings, normalize_log_level
from devcon.tools import ToolDefinition, read_tools


LOGGER = logging.getLogger("devcon")
LOGGER.addHandler(logging.NullHandler())

TOOL_NAME_WIDTH = 10
SHORT_HELP_META = "devcon.short_help"
FORWARDED_META = "devcon.forwarded_args"
HELP_FLAGS = (
    ("--dry-run", "Print the container command without executing it"),
    ("--home", "Share your host home directory with the container (disabled by default)"),
    ("--no-home", "Do not share your host home directory with the container"),
    ("--image=IMG", "Override the container image for this run"),
    ("--runtime=NAME", "Container runtime to use (docker or podman)"),
    ("--log-level=LVL", "Log verbosity (debug, info, warning, error)"),
    ("-h, --help", "Show this message and the available tools"),
)


def configure_logging(level: str) -> None:
    normalized = normalize_log_level(level)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    LOGGER.handlers.clear()
    LOGGER.addHandler(handler)
    LOGGER.setLevel(getattr(logging, normalized.upper(), logging.WARNING))
    LOGGER.propagate = False


def _home_dir() -> str:
    return str(Path.home())


def _split_tool_arguments(arguments: tuple[str, ...]) -> tuple[str | None, list[str]]:
    """The first bare word names the tool; dash options and other words pass through in order."""
    tool_name = None
    tool_args: list[str] = []
    for arg in arguments:
        if tool_name is None and (arg == "-" or not arg.startswith("-")):
            tool_name = arg
            continue
        tool_args.append(arg)
    return tool_name, tool_args


class DevconCommand(click.Command):
    """Reads ``-h`` only as a whole token and keeps everything after ``--`` verbatim."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        args = list(args)
        forwarded: list[str] = []
        if "--" in args:
            split = args.index("--")
            args, forwarded = args[:split], args[split + 1 :]
        ctx.meta[SHORT_HELP_META] = "-h" in args
        ctx.meta[FORWARDED_META] = tuple(forwarded)
        return super().parse_args(ctx, [arg for arg in args if arg != "-h"])


def _print_help(tools: dict[str, ToolDefinition], *, err: bool = False) -> None:
    lines = ["Usage: devcon [FLAGS] <tool> [-- tool args]", "", "Flags:"]
    flag_width = max(len(flag) for flag, _ in HELP_FLAGS)
    for flag, description in HELP_FLAGS:
        lines.append(f"  {flag.ljust(flag_width)}  {description}")
    lines.extend(["", "Tools:"])
    for name, tool in tools.items():
        lines.append(f"  {name.ljust(TOOL_NAME_WIDTH)} {tool.description}".rstrip())
    click.echo("\n".join(lines), err=err)


@click.command(
    cls=DevconCommand,
    add_help_option=False,
    context_settings={"ignore_unknown_options": True},
)
@click.option("--dry-run", is_flag=True, default=False, help="Print the container command without executing it")
@click.option(
    "--home/--no-home",
    "share_home",
    default=None,
    help="Force sharing (or not sharing) the host home directory for this run",
)
@click.option("--image", "image_override", default=None, metavar="IMG", help="Override the container image")
@click.option("--runtime", "runtime_name", default=None, help="Container runtime (docker or podman)")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVEL_CHOICES, case_sensitive=False),
    default=None,
    help="Log verbosity",
)
@click.option("--help", "--list", "help_requested", is_flag=True, default=False, help="Show help and tools")
@click.argument("arguments", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def main(
    ctx: click.Context,
    dry_run: bool,
    share_home: bool | None,
    image_override: str | None,
    runtime_name: str | None,
    log_level: str | None,
    help_requested: bool,
    arguments: tuple[str, ...],
) -> None:
    """Launch a CLI agent inside a disposable container."""
    settings = Settings.from_env()
    configure_logging(log_level or settings.log_level)
    tools = read_tools(settings)

    if help_requested or ctx.meta.get(SHORT_HELP_META, False):
        _print_help(tools)
        return

    tool_name, tool_args = _split_tool_arguments(arguments)
    tool_args.extend(ctx.meta.get(FORWARDED_META, ()))

    if not tool_name:
        click.echo("No tool specified.", err=True)
        _print_help(tools, err=True)
        ctx.exit(1)

    tool = tools.get(tool_name)
    if tool is None:
        raise UnknownTool(tool_name)

    runtime = runtime_for_name(runtime_name or settings.runtime)
    runtime.ensure_available()

    home_dir = _home_dir()
    cwd = os.getcwd()
    decision = resolve_mount_decision(
        tool,
        cli_share_home=share_home,
        settings=settings,
        home_dir=home_dir,
        workspace_dir=cwd,
    )
    with exit_on_sigterm():
        invocation = build_invocation(
            decision,
            tool,
            tool_name,
            tool_args,
            cwd=cwd,
            home_dir=home_dir,
            runtime=runtime,
            image_override=image_override,
        )
        with invocation.cleanup:
            if dry_run:
                click.echo(invocation.render())
                return
            exit_code = run_foreground(invocation.executable, invocation.args)

    ctx.exit(exit_code)


if __name__ == "__main__":
    main()
