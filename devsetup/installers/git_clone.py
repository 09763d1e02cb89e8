"""Interactive HTTPS clone of a GitHub repository."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from rich.markup import escape

from ..context import ExitCode, RunContext
from ..system.runner import plain
from ..utils import command_available


logger = logging.getLogger(__name__)

URL_PROMPT = "Enter the HTTPS repo URL (e.g., https://github.com/owner/repo.git)"
FAILURE_CHOICES = (
    "  1) Retry clone",
    "  2) Change URL",
    "  3) Change target folder",
    "  4) Cancel",
)


class Cancelled(Exception):
    """Raised when the user types 'q' at a prompt."""


def is_cancel(answer: str) -> bool:
    return answer in ("q", "Q")


def url_error(url: str) -> str:
    """Why a URL is unacceptable, or '' if it is fine."""
    if not url:
        return "Please enter a URL or 'q' to cancel."
    if url.startswith("-"):
        return "Input must not start with '-'."
    if not url.startswith("https://"):
        return "URL must start with https://"
    return ""


def target_error(target: str) -> str:
    if target.startswith("-"):
        return "Folder name must not start with '-'."
    if Path(target).exists():
        return f"Target path '{target}' already exists. Choose another folder or 'q' to cancel."
    return ""


def repo_name_from_url(url: str) -> str:
    """Last path component of the URL without a trailing '.git'."""
    name = PurePosixPath(url.rstrip("/")).name
    if name.endswith(".git"):
        name = name[:-4]
    return name


async def prompt_url(ctx: RunContext) -> str:
    while True:
        url = await ctx.ask(URL_PROMPT, require_input=True)
        if is_cancel(url):
            raise Cancelled
        problem = url_error(url)
        if not problem:
            return url
        ctx.say(escape(problem))


async def prompt_target(ctx: RunContext, default: str) -> str:
    while True:
        target = await ctx.ask(f"Target folder [{default}]", require_input=True) or default
        if is_cancel(target):
            raise Cancelled
        problem = target_error(target)
        if not problem:
            return target
        ctx.say(escape(problem))


async def clone_repository(ctx: RunContext) -> int:
    """Prompt for a repository and folder, then clone it."""
    from .dev_tools import GIT

    ctx.banner("GitHub HTTPS Clone")
    ctx.say("Tip: Type 'q' at any prompt to cancel.")

    if not await command_available("git", "--version"):
        ctx.say("Git is not installed.")
        if not await ctx.confirm("Install Git now?"):
            ctx.say("Canceled.")
            return ExitCode.FAILURE
        status = await GIT.install(ctx, pause=False)
        if status != 0:
            return status

    try:
        url = await prompt_url(ctx)
        default = repo_name_from_url(url)
        if not default:
            ctx.error("Could not determine repo name from URL.")
            return ExitCode.FAILURE
        target = await prompt_target(ctx, default)

        ctx.say("About to clone:")
        ctx.say(f"  URL:  {escape(url)}")
        ctx.say(f"  Dest: {escape(target)}")

        while True:
            if not await ctx.confirm("Continue?"):
                ctx.say("Canceled.")
                return ExitCode.OK

            result = await ctx.runner.run(plain("git", "clone", "--", url, target))
            if result.ok:
                logger.info("Cloned %s into %s", url, target)
                ctx.success("Clone complete.")
                ctx.say("Next steps:")
                ctx.say(f'  cd "{escape(target)}"')
                ctx.say("  git status")
                ctx.say()
                ctx.say("Tip: If prompted for credentials, use a GitHub token or sign in via VS Code.")
                return ExitCode.OK

            logger.warning("Clone of %s failed (%d)", url, result.returncode)
            ctx.say("Clone failed. Choose an option:")
            for line in FAILURE_CHOICES:
                ctx.say(line)
            action = await ctx.ask("Select [1-4]", require_input=True)
            if action == "1":
                continue
            if action == "2":
                url = await prompt_url(ctx)
                default = repo_name_from_url(url)
                if not default:
                    ctx.error("Could not determine repo name from URL.")
                    return ExitCode.FAILURE
                target = await prompt_target(ctx, default)
            elif action == "3":
                target = await prompt_target(ctx, default)
            elif action == "4":
                ctx.say("Canceled.")
                return ExitCode.OK
            else:
                ctx.say("Invalid option.")
    except Cancelled:
        ctx.say("Canceled.")
        return ExitCode.OK
