"""Umbrella entry point: devsetup <command> [args...]."""

import argparse
import sys

from . import __version__
from .scripts import go_install, setup_database, setup_dev_env, setup_env, system_groups, system_reboot, system_update


COMMANDS = {
    "setup-env": (setup_env.main, "Install development tools (full catalogue)"),
    "setup-dev-env": (setup_dev_env.main, "Install the core development tools"),
    "setup-database": (setup_database.main, "Install database servers"),
    "system-update": (system_update.main, "Update and upgrade system packages"),
    "system-reboot": (system_reboot.main, "Schedule, cancel or inspect a reboot"),
    "system-groups": (system_groups.main, "Manage admin rights, groups and ownership"),
    "go-install": (go_install.main, "Install a pinned Go release"),
}


def main(argv=None) -> int:
    """Main entry point for devsetup."""
    parser = argparse.ArgumentParser(
        prog="devsetup",
        description="Developer workstation and server setup for apt, yum and dnf based systems.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", help="Available commands")
    for name, (_, help_text) in COMMANDS.items():
        subparsers.add_parser(name, help=help_text, add_help=False)

    args, rest = parser.parse_known_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    handler, _ = COMMANDS[args.command]
    return handler(rest)


if __name__ == "__main__":
    sys.exit(main())
