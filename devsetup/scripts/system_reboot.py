"""system-reboot: schedule, cancel or inspect a reboot."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Sequence

from rich.markup import escape

from ..context import RULE, ExitCode, RunContext
from ..system.runner import Command, elevated, plain
from .common import ScriptArgumentParser, add_common_arguments, build_context, run_async


logger = logging.getLogger(__name__)

TITLE = "System Restart Manager"
SCHEDULE_FILE = Path("/run/systemd/shutdown/scheduled")
TIME_FORMAT = "%a %Y-%m-%d %H:%M:%S %Z"

# unit -> (minimum, maximum, minutes per unit, range message)
TIME_LIMITS = {
    "minutes": (1, 1440, 1, "Minutes must be between 1 and 1440 (24 hours)"),
    "hours": (1, 24, 60, "Hours must be between 1 and 24"),
    "days": (1, 7, 24 * 60, "Days must be between 1 and 7"),
}

EPILOG = """\
Examples:
  system-reboot -m 20        Restart in 20 minutes
  system-reboot -h 1         Restart in 1 hour
  system-reboot -d 1         Restart in 1 day
  system-reboot -n           Restart now
  system-reboot -c           Cancel restart
  system-reboot -s           Show status
  system-reboot -t -m 30     Test: show what a 30-minute restart would do

Time Limits:
  Minutes: 1-1440 (24 hours max)
  Hours:   1-24
  Days:    1-7

Run without options to be asked whether to reboot now."""


class DelayAction(argparse.Action):
    """Store (value, unit); the last delay flag given wins."""

    def __init__(self, option_strings, dest, unit: str, **kwargs) -> None:
        self.unit = unit
        super().__init__(option_strings, "delay", **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        namespace.delay = (values, self.unit)


def to_minutes(value: str, unit: str) -> int:
    """
    Validate a delay and convert it to minutes.

    Raises:
        ValueError: With the message to show when the value is not a
            number or is outside the unit's range
    """
    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"'{value}' is not a valid number")
    minimum, maximum, factor, message = TIME_LIMITS[unit]
    number = int(value)
    if number < minimum or number > maximum:
        raise ValueError(message)
    return number * factor


def shutdown_command(minutes: int) -> Command:
    return elevated("shutdown", "-r", f"+{minutes}")


def format_time(moment: datetime) -> str:
    return moment.astimezone().strftime(TIME_FORMAT)


def restart_time(minutes: int, now: datetime | None = None) -> str:
    now = now or datetime.now()
    return format_time(now + timedelta(minutes=minutes))


def read_schedule(path: Path = SCHEDULE_FILE) -> dict[str, str]:
    """KEY=VALUE pairs from the systemd shutdown schedule file, empty if absent."""
    try:
        content = path.read_text()
    except OSError:
        return {}
    schedule = {}
    for line in content.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            schedule[key.strip()] = value.strip()
    return schedule


def describe_schedule(schedule: dict[str, str]) -> str:
    """Human readable form of a schedule such as {'USEC': ..., 'MODE': 'reboot'}."""
    mode = schedule.get("MODE", "shutdown")
    usec = schedule.get("USEC", "")
    if usec.isascii() and usec.isdigit():
        when = datetime.fromtimestamp(int(usec) / 1_000_000)
        return f"{mode} at {format_time(when)}"
    return mode


def _matching_lines(output: str, *words: str) -> list[str]:
    return [line for line in output.splitlines() if any(word in line.lower() for word in words)]


def build_parser() -> ScriptArgumentParser:
    parser = ScriptArgumentParser(
        prog="system-reboot",
        description="Restart the system now or on a schedule.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("-m", "--minutes", action=DelayAction, unit="minutes", metavar="N",
                        help="Schedule restart in N minutes (1-1440)")
    parser.add_argument("-h", "--hours", action=DelayAction, unit="hours", metavar="N",
                        help="Schedule restart in N hours (1-24)")
    parser.add_argument("-d", "--days", action=DelayAction, unit="days", metavar="N",
                        help="Schedule restart in N days (1-7)")
    parser.add_argument("-n", "--now", action="store_true", help="Restart immediately (no confirmation)")
    parser.add_argument("-c", "--cancel", action="store_true", help="Cancel any scheduled restart")
    parser.add_argument("-s", "--status", action="store_true", help="Show current restart status")
    parser.add_argument("--check", action="store_true", help="Quick status check with multiple methods")
    parser.add_argument("-t", "--test", action="store_true",
                        help="Test mode (show what would happen, don't execute)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--help", action="store_true", help="Show this help message")
    add_common_arguments(parser, verbose=False)
    parser.set_defaults(delay=None)
    return parser


async def show_status(ctx: RunContext, schedule_file: Path = SCHEDULE_FILE) -> int:
    """Report whether a reboot is scheduled."""
    ctx.banner("System Restart Status")
    details = []

    schedule = read_schedule(schedule_file)
    if schedule:
        details.append(f"Systemd shutdown scheduled - {describe_schedule(schedule)}")

    jobs = await ctx.runner.capture(plain("systemctl", "list-jobs", "--no-pager"))
    if _matching_lines(jobs.output, "shutdown.target", "reboot.target"):
        details.append("System shutdown/reboot job active")

    process = await ctx.runner.capture(plain("pgrep", "-f", "shutdown.*-r"))
    if process.ok:
        details.append("Shutdown process detected")

    if details:
        ctx.say("Status: Restart is [bold]SCHEDULED[/]")
        for detail in details:
            ctx.say(f"Details: {escape(detail)}")
    else:
        ctx.say("Status: No restart scheduled")
        ctx.say("Note: If you just scheduled a restart, it may take a moment to appear in status")
    ctx.say(f"Current time: {format_time(datetime.now())}")
    ctx.say(RULE)
    return ExitCode.OK


async def quick_check(ctx: RunContext) -> int:
    """Processes, systemd jobs and recent journal entries mentioning a reboot."""
    ctx.say("Quick status check methods:")

    ctx.say("1. Check for shutdown processes:")
    processes = await ctx.runner.capture(plain("ps", "aux"))
    lines = _matching_lines(processes.output, "shutdown", "reboot")
    lines = [line for line in lines if "system-reboot" not in line]
    ctx.say(escape("\n".join(lines)) if lines else "No shutdown processes")
    ctx.say()

    ctx.say("2. Check systemd jobs:")
    jobs = await ctx.runner.capture(plain("systemctl", "list-jobs", "--no-pager"))
    lines = _matching_lines(jobs.output, "shutdown", "reboot")
    ctx.say(escape("\n".join(lines)) if lines else "No shutdown/reboot jobs")
    ctx.say()

    ctx.say("3. Check recent logs:")
    journal = await ctx.runner.capture(plain("journalctl", "--no-pager", "-n", "5", "--since", "2 minutes ago"))
    lines = _matching_lines(journal.output, "shutdown", "reboot", "restart")
    ctx.say(escape("\n".join(lines)) if lines else "No recent shutdown logs")
    return ExitCode.OK


def show_test(ctx: RunContext, minutes: int, now: datetime | None = None) -> int:
    now = now or datetime.now()
    ctx.banner("TEST MODE - No actual restart")
    ctx.say(f"Would schedule restart in: {minutes} minutes")
    ctx.say(f"Current time: {format_time(now)}")
    ctx.say(f"Scheduled restart time: {restart_time(minutes, now)}")
    ctx.say(f"Command that would be executed: {escape(str(shutdown_command(minutes)))}")
    ctx.say(RULE)
    return ExitCode.OK


async def schedule_reboot(ctx: RunContext, minutes: int, verbose: bool = False) -> int:
    command = shutdown_command(minutes)
    if verbose:
        ctx.say(f"Executing: {escape(str(command))}")
    logger.info("Scheduling restart in %d minutes", minutes)
    result = await ctx.runner.run(command, capture=True)
    if not result.ok:
        ctx.error(f"shutdown failed (exit status {result.returncode})")
        if result.output:
            ctx.say(escape(result.output.strip()))
        return result.returncode

    now = datetime.now()
    ctx.say()
    ctx.warn(f"The computer will restart in {minutes} minutes.")
    ctx.say(f"Current system time: {format_time(now)}")
    ctx.say(f"Scheduled restart time: {restart_time(minutes, now)}")
    output = result.output.replace(", use 'shutdown -c' to cancel.", "").strip()
    if verbose and output:
        ctx.say(escape(output))
    ctx.say()
    ctx.say("Use 'system-reboot -c' to cancel.")
    ctx.say("Use 'system-reboot -s' to check status.")
    return ExitCode.OK


async def cancel_reboot(ctx: RunContext) -> int:
    ctx.success("Cancelling any scheduled restart...")
    logger.info("Cancelling scheduled restart")
    return (await ctx.runner.run(elevated("shutdown", "-c"))).returncode


async def reboot_now(ctx: RunContext) -> int:
    ctx.say()
    ctx.say(f"[red]Current system time: {format_time(datetime.now())}[/]")
    ctx.say("[red]Restarting system immediately...[/]")
    logger.info("Rebooting now")
    return (await ctx.runner.run(elevated("reboot", "now"))).returncode


async def _run(ctx: RunContext, args: argparse.Namespace, minutes: int, bare: bool = False) -> int:
    if args.status:
        return await show_status(ctx)
    if args.check:
        return await quick_check(ctx)
    if args.cancel:
        return await cancel_reboot(ctx)
    if args.now:
        return await reboot_now(ctx)
    if minutes:
        if args.test:
            return show_test(ctx, minutes)
        return await schedule_reboot(ctx, minutes, verbose=args.verbose)

    if not bare:
        ctx.error("No action given. Use -m, -h or -d to schedule a restart, or --help for usage.")
        return ExitCode.FAILURE
    if await ctx.confirm("Do you want to reboot now?"):
        return await reboot_now(ctx)
    ctx.say("Restart cancelled.")
    return ExitCode.OK


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for system-reboot."""
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else list(argv)
    args = parser.parse_args(argv)
    if args.help:
        parser.print_help()
        return ExitCode.OK

    ctx = build_context(args, "system-reboot")
    minutes = 0
    if args.delay is not None:
        value, unit = args.delay
        try:
            minutes = to_minutes(value, unit)
        except ValueError as e:
            ctx.err_console.print(f"Error: {escape(str(e))}", highlight=False)
            logger.error("Rejected %s value %r: %s", unit, value, e)
            return ExitCode.FAILURE

    return run_async(lambda: _run(ctx, args, minutes, bare=not argv), ctx)
