"""Typed command vectors and an async runner that executes them without a shell."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
from dataclasses import dataclass, field
from typing import Iterable

from rich.console import Console
from rich.markup import escape


logger = logging.getLogger(__name__)

# Exit status reported when the executable is missing, as a shell would
EXIT_NOT_FOUND = 127


@dataclass
class Command:
    """A single external command.

    Attributes:
        argv: Argument vector, argv[0] is the executable
        elevate: Run through sudo when not already root
        best_effort: A non-zero exit status does not stop the surrounding steps
        stdin: Text fed to the process on standard input
        env: Extra environment variables
        cwd: Working directory
        description: Short human readable label for logs
    """

    argv: tuple[str, ...]
    elevate: bool = False
    best_effort: bool = False
    stdin: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    description: str = ""

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("Command requires at least one argument")
        self.argv = tuple(str(a) for a in self.argv)

    def __str__(self) -> str:
        text = shlex.join(self.argv)
        if self.elevate:
            text = f"sudo {text}"
        return text


def elevated(*argv: str, **kwargs) -> Command:
    """Build a command that needs root privileges."""
    return Command(argv=tuple(argv), elevate=True, **kwargs)


def plain(*argv: str, **kwargs) -> Command:
    """Build a command that runs as the invoking user."""
    return Command(argv=tuple(argv), **kwargs)


def write_file(path: str, content: str, append: bool = False) -> Command:
    """Write content to a root-owned file through tee."""
    argv = ("tee", "-a", path) if append else ("tee", path)
    return Command(argv=argv, elevate=True, stdin=content, description=f"write {path}")


@dataclass
class CommandResult:
    """Result of running a command."""
    command: Command
    returncode: int
    output: str = ""
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs commands one at a time.

    In dry-run mode mutating commands are printed instead of executed;
    read-only queries made through capture() still run.
    """

    def __init__(
        self,
        console: Console | None = None,
        dry_run: bool = False,
        quiet: bool = False,
        is_root: bool | None = None,
    ) -> None:
        self.console = console or Console()
        self.dry_run = dry_run
        self.quiet = quiet
        self.is_root = (os.geteuid() == 0) if is_root is None else is_root

    def argv_for(self, command: Command) -> list[str]:
        """Final argument vector, with sudo prepended when needed."""
        argv = list(command.argv)
        if command.elevate and not self.is_root:
            prefix = ["sudo", "-E"] if command.env else ["sudo"]
            argv = prefix + argv
        return argv

    async def run(self, command: Command, capture: bool = False) -> CommandResult:
        """Run a command, honouring dry-run mode."""
        if self.dry_run:
            self.console.print(f"[dim]would run:[/] {escape(str(command))}", highlight=False)
            logger.info("Dry run: %s", command)
            return CommandResult(command=command, returncode=0, skipped=True)
        return await self._execute(command, capture)

    async def capture(self, command: Command) -> CommandResult:
        """Run a read-only query and collect its combined output."""
        return await self._execute(command, capture=True)

    async def run_steps(self, commands: Iterable[Command]) -> int:
        """
        Run commands in order.

        Stops at the first failing step unless that step is best-effort.

        Returns:
            0 on success, otherwise the exit status of the failing step
        """
        for command in commands:
            result = await self.run(command)
            if result.ok:
                continue
            if command.best_effort:
                logger.warning("Ignoring failure of best-effort step (%d): %s", result.returncode, command)
                continue
            logger.error("Step failed (%d): %s", result.returncode, command)
            return result.returncode
        return 0

    async def _execute(self, command: Command, capture: bool) -> CommandResult:
        argv = self.argv_for(command)
        logger.debug("Running: %s", shlex.join(argv))

        env = None
        if command.env:
            env = {**os.environ, **command.env}

        if capture:
            stdout = asyncio.subprocess.PIPE
            stderr = asyncio.subprocess.STDOUT
        elif self.quiet:
            stdout = asyncio.subprocess.DEVNULL
            stderr = asyncio.subprocess.DEVNULL
        else:
            stdout = None
            stderr = None

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if command.stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=stdout,
                stderr=stderr,
                env=env,
                cwd=command.cwd,
            )
            data = command.stdin.encode() if command.stdin is not None else None
            out, _ = await proc.communicate(data)
        except FileNotFoundError:
            logger.error("Executable not found: %s", argv[0])
            return CommandResult(command=command, returncode=EXIT_NOT_FOUND)
        except PermissionError as e:
            logger.error("Cannot execute %s: %s", argv[0], e)
            return CommandResult(command=command, returncode=EXIT_NOT_FOUND - 1)

        returncode = proc.returncode if proc.returncode is not None else 1
        output = out.decode(errors="replace") if out else ""
        logger.debug("Exit status %d: %s", returncode, command)
        return CommandResult(command=command, returncode=returncode, output=output)
