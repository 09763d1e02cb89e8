"""Shared flag table and menu for the installer commands."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence

from ..app import MenuEntry, SetupApp, install_all, render_help, show_versions, tool_entries
from ..context import ExitCode, RunContext
from ..installers.base import ToolInstaller
from .common import ScriptArgumentParser, add_common_arguments, build_context, require_root, run_async


logger = logging.getLogger(__name__)

ExtraHandler = Callable[[RunContext], Awaitable[int]]


@dataclass
class ExtraAction:
    """A non-installer action reachable by flag and optionally by menu."""
    key: str
    flag: str
    label: str
    description: str
    handler: ExtraHandler
    menu: bool = True


@dataclass
class InstallerCommand:
    """One installer command: its flags, its menu and their dispatch.

    Attributes:
        prog: Command name
        title: Menu banner
        tools: Menu order of the installers
        what: Plural noun for "install all" and "versions" screens
        install_order: Order for "install all" (defaults to tools)
        cli_tools: Installers reachable only by flag
        extras: Additional actions; menu ones are numbered after "Help"
        multiple: Accept several menu numbers at once
        version_labels: Show Install/Update labels with versions
        package_list: Offer --install-packages
    """

    prog: str
    title: str
    description: str
    tools: Sequence[ToolInstaller]
    what: str
    install_order: Sequence[ToolInstaller] = ()
    cli_tools: Sequence[ToolInstaller] = ()
    extras: Sequence[ExtraAction] = ()
    multiple: bool = False
    version_labels: bool = False
    package_list: bool = False
    tip: str = ""
    _by_key: dict[str, ToolInstaller] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        for tool in [*self.tools, *self.cli_tools]:
            self._by_key[tool.key] = tool

    def build_parser(self) -> ScriptArgumentParser:
        parser = ScriptArgumentParser(
            prog=self.prog,
            description=self.description,
            epilog="Run without options to open the interactive menu.",
        )
        add_common_arguments(parser)
        actions = parser.add_mutually_exclusive_group()
        actions.add_argument(
            "--install-all",
            dest="action", action="store_const", const="all",
            help=f"Install all {self.what.lower()}",
        )
        for tool in [*self.tools, *self.cli_tools]:
            actions.add_argument(
                tool.flag,
                dest="action", action="store_const", const=tool.key,
                help=f"Install {tool.label}",
            )
        for extra in self.extras:
            actions.add_argument(
                extra.flag,
                dest="action", action="store_const", const=extra.key,
                help=extra.description,
            )
        if self.package_list:
            actions.add_argument(
                "--install-packages",
                dest="packages", nargs="*", metavar="PKG",
                help="Install a list of packages (space-separated)",
            )
        parser.set_defaults(action=None, packages=None)
        return parser

    def menu_entries(self, ctx: RunContext, parser: argparse.ArgumentParser) -> list[MenuEntry]:
        entries = tool_entries(self.tools, ctx)
        number = len(entries) + 1
        order = self.install_order or self.tools

        async def do_all() -> int:
            return await install_all(ctx, order, self.what)

        async def do_versions() -> int:
            return await show_versions(ctx, self.tools, self.what)

        async def do_help() -> int:
            render_help(ctx, parser.format_help(), entries)
            await ctx.pause()
            return ExitCode.OK

        entries.append(MenuEntry(number, f"Install All {self.what}", do_all, "Install everything at once"))
        entries.append(MenuEntry(number + 1, "Show Installed Versions", do_versions, "Display versions of installed tools"))
        entries.append(MenuEntry(number + 2, "Help", do_help, "Show this help message"))
        number += 3
        for extra in self.extras:
            if not extra.menu:
                continue
            entries.append(MenuEntry(number, extra.label, _bind_extra(extra, ctx), extra.description))
            number += 1
        return entries

    async def dispatch(self, ctx: RunContext, args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
        if args.packages is not None:
            return await install_package_list(ctx, args.packages)
        if args.action == "all":
            return await install_all(ctx, self.install_order or self.tools, self.what)
        for extra in self.extras:
            if args.action == extra.key:
                return await extra.handler(ctx)
        if args.action in self._by_key:
            return await self._by_key[args.action].install(ctx)

        app = SetupApp(
            ctx,
            title=self.title,
            entries=self.menu_entries(ctx, parser),
            multiple=self.multiple,
            version_labels=self.version_labels,
            tip=self.tip,
        )
        return await app.run()

    def main(self, argv: Sequence[str] | None = None) -> int:
        parser = self.build_parser()
        args = parser.parse_args(argv)
        cli_mode = args.action is not None or args.packages is not None
        ctx = build_context(args, self.prog, non_interactive=cli_mode)
        if not require_root(ctx):
            return ExitCode.FAILURE
        return run_async(lambda: self.dispatch(ctx, args, parser), ctx)


def _bind_extra(extra: ExtraAction, ctx: RunContext):
    async def handler() -> int:
        return await extra.handler(ctx)
    return handler


async def install_package_list(ctx: RunContext, packages: Sequence[str]) -> int:
    """Install an arbitrary package list with the detected package manager."""
    if not packages:
        ctx.error("No packages provided.")
        logger.error("Package list installation failed - no packages provided")
        return ExitCode.FAILURE

    ctx.banner("Installing Package List")
    logger.info("Starting package list installation: %s", " ".join(packages))
    status = await ctx.install_packages(packages)
    if status == 0:
        ctx.success("Package list installation complete!")
        logger.info("Package list installation complete")
    else:
        ctx.error(f"Package list installation failed (exit status {status})")
    return status
