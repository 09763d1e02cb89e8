"""Per-invocation state shared by every handler."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Sequence

from rich.console import Console

from .config import Settings
from .system.packages import (
    UNSUPPORTED_MESSAGE,
    PackageManager,
    detect_package_manager,
    ensure_packages,
    install_packages,
)
from .system.runner import CommandRunner
from .utils import prompt


logger = logging.getLogger(__name__)

RULE = "=" * 38


class ExitCode(IntEnum):
    """Process exit statuses."""
    OK = 0
    FAILURE = 1
    NO_DOWNLOADER = 3
    INTERRUPTED = 130


@dataclass
class RunContext:
    """Flags, output and the cached package manager for one run."""

    console: Console
    runner: CommandRunner
    settings: Settings = field(default_factory=Settings)
    err_console: Console = field(default_factory=lambda: Console(stderr=True, emoji=False))
    prompt_console: Console | None = None
    quiet: bool = False
    non_interactive: bool = False
    force: bool = False
    verbose: bool = False
    detector: Callable[[], PackageManager] = detect_package_manager
    _package_manager: PackageManager | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.prompt_console is None:
            self.prompt_console = self.console

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run

    @property
    def assume_yes(self) -> bool:
        return self.force or self.non_interactive

    def package_manager(self) -> PackageManager:
        """Detect the package manager once and reuse it for the rest of the run."""
        if self._package_manager is None:
            self._package_manager = self.detector()
        return self._package_manager

    # Output

    def say(self, message: str = "", style: str | None = None) -> None:
        self.console.print(message, style=style, highlight=False, emoji=False)

    def success(self, message: str) -> None:
        self.console.print(f"[green]{message}[/]", highlight=False, emoji=False)

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]{message}[/]", highlight=False, emoji=False)

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error:[/] {message}", highlight=False, emoji=False)

    def banner(self, title: str) -> None:
        self.console.print(f"[green]{RULE}[/]")
        self.console.print(f"[bold green] {title}[/]")
        self.console.print(f"[green]{RULE}[/]")

    # Prompts

    async def confirm(self, question: str) -> bool:
        return await prompt.confirm(self.prompt_console, question, assume_yes=self.assume_yes)

    async def ask(self, question: str, default: str = "", require_input: bool = False) -> str:
        if self.non_interactive and not require_input:
            return default
        return await prompt.ask(self.prompt_console, question, default=default)

    async def pause(self) -> None:
        if self.non_interactive:
            return
        await prompt.ask(self.prompt_console, "Press [Enter] to return to the menu...")

    # Packages

    async def install_packages(self, packages: Sequence[str]) -> int:
        manager = self.package_manager()
        if not manager.supported:
            self.error(UNSUPPORTED_MESSAGE)
            return ExitCode.FAILURE
        return await install_packages(self.runner, manager, packages)

    async def ensure_packages(self, *packages: str) -> int:
        manager = self.package_manager()
        if packages and not manager.supported:
            self.error(UNSUPPORTED_MESSAGE)
            return ExitCode.FAILURE
        return await ensure_packages(self.runner, manager, *packages)
