"""setup-dev-env: the core developer tool subset."""

from __future__ import annotations

from typing import Sequence

from ..installers import CORE_DEV_TOOLS
from .installer_cli import InstallerCommand


COMMAND = InstallerCommand(
    prog="setup-dev-env",
    title="Development Environment Setup",
    description="Install the core development tools.",
    tools=CORE_DEV_TOOLS,
    what="Development Tools",
)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for setup-dev-env."""
    return COMMAND.main(argv)
