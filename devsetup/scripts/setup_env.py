"""setup-env: the full developer tool catalogue."""

from __future__ import annotations

from typing import Sequence

from .. import __version__
from ..context import RunContext
from ..installers import DEV_TOOLS, INSTALL_ALL_ORDER, OPENSSH, clone_repository
from .installer_cli import ExtraAction, InstallerCommand
from .system_update import standard_update


async def _system_update(ctx: RunContext) -> int:
    return await standard_update(ctx)


COMMAND = InstallerCommand(
    prog="setup-env",
    title=f"Dev Environment Setup - v{__version__}",
    description="Install development tools on apt, yum or dnf based systems.",
    tools=DEV_TOOLS,
    what="Development Tools",
    install_order=INSTALL_ALL_ORDER,
    cli_tools=(OPENSSH,),
    extras=(
        ExtraAction(
            key="github-clone",
            flag="--github-clone",
            label="Clone GitHub Repo (HTTPS)",
            description="Clone a GitHub repository over HTTPS",
            handler=clone_repository,
        ),
        ExtraAction(
            key="system-update",
            flag="--system-update",
            label="System Update",
            description="Update and clean up system packages",
            handler=_system_update,
            menu=False,
        ),
    ),
    multiple=True,
    version_labels=True,
    package_list=True,
    tip="Tip: Enter one or more numbers separated by spaces (e.g., 3 5 9 11 19).",
)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for setup-env."""
    return COMMAND.main(argv)
