"""Argument parsing, context construction and process plumbing shared by all commands."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, NoReturn

from rich.console import Console

from .. import __version__
from ..config import Settings
from ..context import ExitCode, RunContext
from ..system.host import is_root
from ..system.runner import CommandRunner
from ..utils.logging import get_log_path, setup_logging


logger = logging.getLogger(__name__)


class ScriptArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on bad arguments."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(ExitCode.FAILURE, f"{self.prog}: error: {message}\n")


def add_common_arguments(parser: argparse.ArgumentParser, verbose: bool = True) -> None:
    """Flags every command accepts."""
    if verbose:
        parser.add_argument(
            "-v", "--verbose",
            action="store_true",
            help="Also log to the console",
        )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the commands that would run without making changes",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output",
    )
    parser.add_argument(
        "--log",
        action="store_true",
        help="Write a log file under DEVSETUP_LOG_DIR",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        metavar="PATH",
        help="Write the log to PATH",
    )


def build_context(
    args: argparse.Namespace,
    name: str,
    non_interactive: bool = False,
    force: bool = False,
    settings: Settings | None = None,
) -> RunContext:
    """Configure logging and output for a command invocation."""
    settings = settings or Settings.from_env()
    verbose = getattr(args, "verbose", False)
    quiet = getattr(args, "quiet", False)
    dry_run = getattr(args, "dry_run", False)

    log_file = getattr(args, "log_file", None)
    if log_file is None and (getattr(args, "log", False) or settings.log_enabled):
        try:
            log_file = get_log_path(name, settings.log_dir)
        except OSError as e:
            Console(stderr=True).print(f"[yellow]Warning:[/] cannot create log directory {settings.log_dir}: {e}")
    try:
        setup_logging(verbose=verbose, log_file=log_file)
    except OSError as e:
        Console(stderr=True).print(f"[yellow]Warning:[/] cannot open log file {log_file}: {e}")
        setup_logging(verbose=verbose)

    console = Console(quiet=quiet, emoji=False)
    ctx = RunContext(
        console=console,
        runner=CommandRunner(console=console, dry_run=dry_run, quiet=quiet),
        settings=settings,
        err_console=Console(stderr=True, emoji=False),
        prompt_console=Console(emoji=False) if quiet else console,
        quiet=quiet,
        non_interactive=non_interactive,
        force=force,
        verbose=verbose,
    )
    logger.debug("Started %s (dry_run=%s, quiet=%s)", name, dry_run, quiet)
    return ctx


def require_root(ctx: RunContext) -> bool:
    """True when running as root; dry runs are allowed without it."""
    if ctx.dry_run or is_root():
        return True
    ctx.error("Please run as root or use sudo.")
    return False


def run_async(main: Callable[[], Awaitable[int]], ctx: RunContext | None = None) -> int:
    """Run a coroutine to completion, mapping interrupts to exit codes."""
    try:
        return int(asyncio.run(main()))
    except KeyboardInterrupt:
        console = ctx.err_console if ctx else Console(stderr=True)
        console.print("\n[yellow]Interrupted[/]")
        return ExitCode.INTERRUPTED
    except EOFError:
        logger.info("Input closed")
        return ExitCode.FAILURE
