"""system-update: standard update, full upgrade and release upgrade."""

from __future__ import annotations

import argparse
import logging
import re
from typing import Sequence

from rich.markup import escape

from ..app import MenuEntry, SetupApp
from ..context import RULE, ExitCode, RunContext
from ..system.packages import (
    UNSUPPORTED_MESSAGE,
    PackageManager,
    package_names,
    parse_simulated_installs,
    standard_update_commands,
)
from ..system.runner import elevated, plain
from .common import ScriptArgumentParser, add_common_arguments, build_context, require_root, run_async


logger = logging.getLogger(__name__)

TITLE = "System Update Manager"
EXIT_NUMBER = 5

MENU_HELP = (
    ("Standard Update & Cleanup", "Update, upgrade and clean up packages"),
    ("Upgrade to Latest Ubuntu Version", "Uses do-release-upgrade for LTS upgrades"),
    ("Full Upgrade", "Runs apt-get dist-upgrade after a preview"),
    ("Help", "Show this usage summary"),
)


def parse_new_release(output: str) -> str:
    """Version named on the 'New release ... available' line, or ''."""
    for line in output.splitlines():
        if "New release" in line:
            match = re.search(r"New release '?([^' ]+)'?", line)
            if match:
                return match.group(1)
            _, _, rest = line.partition(": ")
            return rest.strip()
    return ""


async def standard_update(ctx: RunContext, quiet: bool = False) -> int:
    """Update, upgrade and clean up with the detected package manager."""
    manager = ctx.package_manager()
    ctx.banner("Running System Update")
    logger.info("Starting standard update and cleanup")
    if not manager.supported:
        ctx.error(UNSUPPORTED_MESSAGE)
        logger.error("System update failed - unsupported package manager")
        return ExitCode.FAILURE

    status = await ctx.runner.run_steps(standard_update_commands(manager, quiet=quiet))
    if status == 0:
        ctx.success("Standard update complete.")
        logger.info("Standard update complete")
    else:
        ctx.error(f"System update failed (exit status {status})")
    return status


async def current_release(ctx: RunContext) -> str:
    result = await ctx.runner.capture(plain("lsb_release", "-rs"))
    return result.output.strip() if result.ok else "unknown"


async def next_release(ctx: RunContext) -> str:
    result = await ctx.runner.capture(plain("do-release-upgrade", "-c"))
    return parse_new_release(result.output)


async def pending_full_upgrade(ctx: RunContext) -> list[str]:
    result = await ctx.runner.capture(plain("apt-get", "-s", "dist-upgrade"))
    return parse_simulated_installs(result.output) if result.ok else []


def _require_apt(ctx: RunContext, what: str) -> bool:
    if ctx.package_manager() is PackageManager.APT:
        return True
    ctx.error(f"{what} requires apt (Ubuntu/Debian).")
    return False


async def release_upgrade(ctx: RunContext) -> int:
    """Offer do-release-upgrade when a new release exists."""
    if not _require_apt(ctx, "Release upgrade"):
        await ctx.pause()
        return ExitCode.FAILURE

    ctx.say("Checking current Ubuntu version...")
    current = await current_release(ctx)
    ctx.say(f"You are currently running Ubuntu {escape(current)}.")
    new = await next_release(ctx)
    status = 0
    if not new:
        ctx.say("You are already running the latest supported version.")
        logger.info("OS upgrade check: already at latest version (%s)", current)
    else:
        ctx.say(f"A new Ubuntu version is available: {escape(new)}")
        if await ctx.confirm(f"Would you like to upgrade to Ubuntu {new}?"):
            logger.info("User confirmed upgrade from %s to %s", current, new)
            status = (await ctx.runner.run(elevated("do-release-upgrade"))).returncode
            logger.info("OS upgrade finished with status %d", status)
        else:
            ctx.say("OS upgrade canceled.")
            logger.info("OS upgrade canceled by user")
    await ctx.pause()
    return status


async def full_upgrade(ctx: RunContext) -> int:
    """Preview dist-upgrade and run it after confirmation."""
    if not _require_apt(ctx, "Full upgrade"):
        await ctx.pause()
        return ExitCode.FAILURE

    logger.info("Checking for packages requiring full upgrade")
    ctx.say("Checking for packages requiring full upgrade...")
    pending = await pending_full_upgrade(ctx)
    status = 0
    if not pending:
        ctx.say("No packages require a full upgrade. System is up to date.")
        logger.info("Full upgrade skipped - no packages pending")
    else:
        ctx.say("The following packages are eligible for full upgrade:")
        for line in pending:
            ctx.say(escape(line))
        ctx.say()
        if await ctx.confirm("Would you like to proceed with the full upgrade?"):
            logger.info("User confirmed full upgrade")
            ctx.say("Running full upgrade...")
            status = (await ctx.runner.run(elevated("apt-get", "-y", "dist-upgrade"))).returncode
            logger.info("Full upgrade finished with status %d", status)
        else:
            ctx.say("Full upgrade canceled.")
            logger.info("Full upgrade canceled by user")
    await ctx.pause()
    return status


async def show_summary(ctx: RunContext) -> None:
    """Release, upgradable packages and release-upgrade availability."""
    manager = ctx.package_manager()
    ctx.banner("System Summary")
    ctx.say(f"Package manager: {manager.value}")
    if manager is not PackageManager.APT:
        ctx.say(RULE)
        return

    ctx.say(f"Current Ubuntu Version: {escape(await current_release(ctx))}")
    ctx.say()
    ctx.say("Checking for upgradeable packages...")
    result = await ctx.runner.capture(plain("apt-get", "-s", "upgrade"))
    upgradable = parse_simulated_installs(result.output) if result.ok else []
    ctx.say(f"Packages available for upgrade: {len(upgradable)}")
    if upgradable:
        ctx.say("Sample upgradeable packages:")
        for name in package_names(upgradable)[:5]:
            ctx.say(f"  {escape(name)}")

    ctx.say()
    ctx.say("Checking full-upgrade impact...")
    pending = await pending_full_upgrade(ctx)
    if not pending:
        ctx.say("No packages require full-upgrade.")
    else:
        ctx.say("Packages affected by full-upgrade:")
        for line in pending[:5]:
            ctx.say(escape(line))

    ctx.say()
    ctx.say("Checking for Ubuntu release upgrade...")
    new = await next_release(ctx)
    if new:
        ctx.say(f"New Ubuntu release available: {escape(new)}")
    else:
        ctx.say("You are running the latest supported release.")
    ctx.say(RULE)
    await ctx.pause()


def build_parser() -> ScriptArgumentParser:
    parser = ScriptArgumentParser(
        prog="system-update",
        description="Update and upgrade the system packages (apt, yum, dnf).",
        epilog="Run without options to open the interactive menu.",
    )
    add_common_arguments(parser)
    actions = parser.add_mutually_exclusive_group()
    actions.add_argument(
        "--update-only",
        dest="action", action="store_const", const="update",
        help="Run a quiet standard update and cleanup",
    )
    actions.add_argument(
        "--full-upgrade",
        dest="action", action="store_const", const="full",
        help="Preview and run apt-get dist-upgrade",
    )
    actions.add_argument(
        "--ubuntuUpdateOS",
        dest="action", action="store_const", const="release",
        help="Upgrade to the next Ubuntu release",
    )
    parser.set_defaults(action=None)
    return parser


def menu_entries(ctx: RunContext, parser: argparse.ArgumentParser) -> list[MenuEntry]:
    async def do_update() -> int:
        status = await standard_update(ctx)
        await ctx.pause()
        return status

    async def do_release() -> int:
        return await release_upgrade(ctx)

    async def do_full() -> int:
        return await full_upgrade(ctx)

    async def do_help() -> int:
        ctx.console.print(parser.format_help(), markup=False, highlight=False)
        ctx.say("Menu Options:")
        for number, (label, description) in enumerate(MENU_HELP, start=1):
            ctx.say(f"  {number}) {label} - {description}")
        ctx.say(f"  {EXIT_NUMBER}) Exit - Quit")
        await ctx.pause()
        return ExitCode.OK

    handlers = (do_update, do_release, do_full, do_help)
    return [
        MenuEntry(number, label, handler, description)
        for number, ((label, description), handler) in enumerate(zip(MENU_HELP, handlers), start=1)
    ]


async def _run(ctx: RunContext, args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    if args.action == "update":
        return await standard_update(ctx, quiet=True)
    if args.action == "full":
        return await full_upgrade(ctx)
    if args.action == "release":
        return await release_upgrade(ctx)

    await show_summary(ctx)
    app = SetupApp(ctx, title=TITLE, entries=menu_entries(ctx, parser), exit_number=EXIT_NUMBER)
    return await app.run()


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for system-update."""
    parser = build_parser()
    args = parser.parse_args(argv)
    ctx = build_context(
        args,
        "system-update",
        non_interactive=args.action == "update",
    )
    if not require_root(ctx):
        return ExitCode.FAILURE
    return run_async(lambda: _run(ctx, args, parser), ctx)
