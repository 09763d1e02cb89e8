"""setup-database: database servers."""

from __future__ import annotations

from typing import Sequence

from ..installers import DATABASES
from .installer_cli import InstallerCommand


COMMAND = InstallerCommand(
    prog="setup-database",
    title="Database Setup Menu",
    description="Install and start database servers.",
    tools=DATABASES,
    what="Databases",
)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for setup-database."""
    return COMMAND.main(argv)
