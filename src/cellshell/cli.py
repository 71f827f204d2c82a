"""Command-line interface for cellshell."""

from __future__ import annotations

import argparse
import asyncio
import os
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from cellshell import __version__
from cellshell.config import load_config
from cellshell.logging import get_logger, setup_logging
from cellshell.terminal.engine import CommandEngine
from cellshell.terminal.errors import SpawnError
from cellshell.terminal.session import ShellKind

log = get_logger("cli")

err_console = Console(stderr=True)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cellshell",
        description="Run shell commands one slot at a time",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (can be repeated)",
    )
    parser.add_argument(
        "--shell",
        help="Shell kind: primary (cmd, sh) or alternate (powershell, pwsh)",
    )
    parser.add_argument(
        "--cwd",
        type=Path,
        help="Starting working directory (default: home)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds before a command's process tree is killed",
    )
    parser.add_argument(
        "--project",
        type=Path,
        help="Project directory with a .cellshell/config.yaml",
    )
    parser.add_argument(
        "--history",
        type=Path,
        help="Prompt history file",
    )
    parser.add_argument(
        "-c", "--command",
        help="Run one command to completion, print its output and exit",
    )
    return parser


def build_engine(parsed: argparse.Namespace) -> CommandEngine:
    """Load config, apply command-line overrides, set up logging."""
    config = load_config(project_root=str(parsed.project) if parsed.project else None)

    if parsed.verbose:
        config.logging.verbose = min(4, 2 + parsed.verbose)
    if parsed.shell:
        config.shell.kind = ShellKind.parse(parsed.shell).value
    if parsed.cwd:
        config.session.start_directory = os.fspath(parsed.cwd)
    if parsed.timeout is not None:
        config.execution.default_timeout = parsed.timeout

    setup_logging(config.logging)
    return CommandEngine.from_config(config)


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    try:
        engine = build_engine(parsed)
    except ValueError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        return 2

    if parsed.command is not None:
        try:
            output = asyncio.run(engine.run_batch(parsed.command))
        except SpawnError as e:
            err_console.print(f"[red]{e}[/red]")
            return 1
        if output:
            print(output)
        return 0

    from cellshell.repl import InteractiveRepl

    repl = InteractiveRepl(engine, history_file=parsed.history)
    try:
        asyncio.run(repl.run())
    except KeyboardInterrupt:
        pass
    return 0
