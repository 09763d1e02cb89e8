"""Numbered menu loop and shared handlers for the installer commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from rich.markup import escape
from rich.table import Table

from .context import RULE, ExitCode, RunContext
from .installers.base import ServiceInstaller, ToolInstaller
from .utils.versions import ToolVersion


logger = logging.getLogger(__name__)

Handler = Callable[[], Awaitable[int]]


@dataclass
class MenuEntry:
    """One numbered menu line."""
    number: int
    label: str
    handler: Handler
    description: str = ""
    tool: ToolInstaller | None = None


def parse_selection(raw: str, maximum: int, minimum: int = 0, multiple: bool = True) -> list[int] | None:
    """
    Parse a menu answer such as "3 5 9".

    Returns:
        The selected numbers in input order, or None if the whole answer is invalid
        (empty, a non-integer, out of range, or several numbers when only one is allowed)
    """
    tokens = raw.split()
    if not tokens:
        return None
    if not multiple and len(tokens) > 1:
        return None
    numbers = []
    for token in tokens:
        if not (token.isascii() and token.isdigit()):
            return None
        number = int(token)
        if number < minimum or number > maximum:
            return None
        numbers.append(number)
    return numbers


def version_label(tool: ToolInstaller, info: ToolVersion) -> str:
    """Menu text for a tool: Install, Install (current) or Update (current -> latest)."""
    name = escape(tool.label)
    if not info.installed:
        return f"Install {name}"
    if info.update_available:
        return f"[yellow]Update {name} ({escape(info.current)} → {escape(info.latest)})[/]"
    return f"Install {name} [green]({escape(info.current)})[/]"


class SetupApp:
    """Interactive menu with a fixed exit number."""

    def __init__(
        self,
        ctx: RunContext,
        title: str,
        entries: Sequence[MenuEntry],
        exit_number: int = 0,
        multiple: bool = False,
        version_labels: bool = False,
        tip: str = "",
    ) -> None:
        self.ctx = ctx
        self.title = title
        self.entries = {entry.number: entry for entry in entries}
        self.exit_number = exit_number
        self.multiple = multiple
        self.version_labels = version_labels
        self.tip = tip
        numbers = [*self.entries, exit_number]
        self.minimum = min(numbers)
        self.maximum = max(numbers)

    @property
    def range_text(self) -> str:
        return f"{self.minimum}-{self.maximum}"

    async def render(self) -> None:
        ctx = self.ctx
        ctx.banner(self.title)
        for number in sorted(self.entries):
            entry = self.entries[number]
            label = entry.label
            if self.version_labels and entry.tool is not None:
                label = version_label(entry.tool, await entry.tool.version_info(ctx))
            ctx.say(f"{f'{number})':<4}{label}")
        ctx.say(f"{f'{self.exit_number})':<4}Exit")
        ctx.say(RULE)
        if self.tip:
            ctx.say(self.tip)

    async def dispatch(self, number: int) -> int:
        """Run one handler; failures are reported and never escape."""
        entry = self.entries[number]
        try:
            status = await entry.handler()
        except Exception as e:
            logger.exception("Menu option %d (%s) failed", number, entry.label)
            self.ctx.error(f"{entry.label} failed: {e}")
            return ExitCode.FAILURE
        if status:
            logger.warning("Menu option %d (%s) returned %d", number, entry.label, status)
        return status

    async def run(self) -> int:
        """Loop until the exit number is chosen."""
        ctx = self.ctx
        suffix = " (space-separated)" if self.multiple else ""
        question = f"Choose option(s) [{self.range_text}]{suffix}" if self.multiple else f"Choose an option [{self.range_text}]"

        while True:
            await self.render()
            raw = await ctx.ask(question, require_input=True)
            selection = parse_selection(raw, self.maximum, self.minimum, multiple=self.multiple)
            if selection is None:
                ctx.warn(f"Invalid input. Please enter {'numbers' if self.multiple else 'a number'} between {self.minimum} and {self.maximum}.")
                continue
            for number in selection:
                if number == self.exit_number:
                    ctx.say("Exiting...")
                    logger.info("Exited by user")
                    return ExitCode.OK
                await self.dispatch(number)


async def install_all(ctx: RunContext, tools: Sequence[ToolInstaller], what: str) -> int:
    """Confirm once, then install every tool in order."""
    ctx.banner(f"Installing All {what}")
    names = ", ".join(tool.label for tool in tools)
    logger.info("Starting installation of all %s", what.lower())
    if not await ctx.confirm(f"This will install {names}. Continue?"):
        ctx.say("Installation canceled.")
        logger.info("Installation canceled by user")
        await ctx.pause()
        return ExitCode.OK

    failures = []
    for tool in tools:
        if await tool.install(ctx, pause=False) != 0:
            failures.append(tool.label)

    if failures:
        ctx.error(f"Failed: {', '.join(failures)}")
        logger.error("Install all finished with failures: %s", ", ".join(failures))
    else:
        ctx.banner(f"All {what} Installed!")
        logger.info("All %s installation complete", what.lower())
    await ctx.pause()
    return ExitCode.FAILURE if failures else ExitCode.OK


async def show_versions(ctx: RunContext, tools: Sequence[ToolInstaller], what: str) -> int:
    """Table of installed and available versions."""
    ctx.banner(f"Installed {what} Versions")
    table = Table(show_header=True, header_style="dim", box=None, padding=(0, 3), collapse_padding=True)
    table.add_column("Tool", style="white")
    table.add_column("Installed", justify="right")
    table.add_column("Latest", style="dim")
    show_service = any(isinstance(tool, ServiceInstaller) for tool in tools)
    if show_service:
        table.add_column("Service")

    for tool in tools:
        info = await tool.version_info(ctx)
        if not info.installed:
            installed = "[dim]Not installed[/]"
        elif info.update_available:
            installed = f"[yellow]{escape(info.current)}[/]"
        else:
            installed = f"[green]{escape(info.current)}[/]"
        row = [escape(tool.label), installed, escape(info.latest or "-")]
        if show_service:
            state = await tool.service_state(ctx) if isinstance(tool, ServiceInstaller) else ""
            row.append(escape(state or "-"))
        table.add_row(*row)

    ctx.console.print(table)
    ctx.say(RULE)
    await ctx.pause()
    return ExitCode.OK


def tool_entries(tools: Sequence[ToolInstaller], ctx: RunContext, start: int = 1) -> list[MenuEntry]:
    """Numbered 'Install X' entries for a tool list."""
    entries = []
    for offset, tool in enumerate(tools):
        entries.append(MenuEntry(
            number=start + offset,
            label=f"Install {escape(tool.label)}",
            handler=_bind_install(tool, ctx),
            description=tool.description,
            tool=tool,
        ))
    return entries


def _bind_install(tool: ToolInstaller, ctx: RunContext) -> Handler:
    async def handler() -> int:
        return await tool.install(ctx)
    return handler


def render_help(ctx: RunContext, usage: str, entries: Sequence[MenuEntry], exit_number: int = 0) -> None:
    """Print CLI usage followed by a description of every menu entry."""
    ctx.console.print(usage, markup=False, highlight=False)
    ctx.say("Menu Options:")
    for entry in sorted(entries, key=lambda e: e.number):
        ctx.say(f"  {f'{entry.number})':<4}{entry.label:<32} - {escape(entry.description)}")
    ctx.say(f"  {f'{exit_number})':<4}{'Exit':<32} - Quit")
