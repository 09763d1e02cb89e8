"""go-install: install a pinned Go release."""

from __future__ import annotations

import dataclasses
import logging
from typing import Sequence

from ..config import DEFAULT_GO_VERSION
from ..context import ExitCode, RunContext
from ..installers import GOLANG, GoInstaller
from .common import ScriptArgumentParser, add_common_arguments, build_context, run_async


logger = logging.getLogger(__name__)


def build_parser() -> ScriptArgumentParser:
    parser = ScriptArgumentParser(
        prog="go-install",
        description="Download and install a Go release into /usr/local/go.",
    )
    add_common_arguments(parser)
    parser.add_argument(
        "go_version",
        nargs="?",
        default=DEFAULT_GO_VERSION,
        metavar="VERSION",
        help=f"Go version to install (default: {DEFAULT_GO_VERSION})",
    )
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Ask before installing",
    )
    return parser


def installer_for(version: str) -> GoInstaller:
    return dataclasses.replace(GOLANG, version=version.removeprefix("go"), install_downloader=False)


async def install_go(ctx: RunContext, version: str, ask: bool = False) -> int:
    if ask and not await ctx.confirm(f"Would you like to install Go {version} now?"):
        ctx.say("Installation canceled.")
        logger.info("Go %s installation canceled by user", version)
        return ExitCode.OK
    return await installer_for(version).install(ctx, pause=False)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for go-install."""
    parser = build_parser()
    args = parser.parse_args(argv)
    ctx = build_context(args, "go-install", non_interactive=not args.confirm)
    return run_async(lambda: install_go(ctx, args.go_version, ask=args.confirm), ctx)
