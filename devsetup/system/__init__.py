"""Host interaction: command execution, package managers and host facts."""

from .runner import Command, CommandResult, CommandRunner, elevated, plain
from .packages import PackageManager, detect_package_manager

__all__ = [
    "Command",
    "CommandResult",
    "CommandRunner",
    "PackageManager",
    "detect_package_manager",
    "elevated",
    "plain",
]
