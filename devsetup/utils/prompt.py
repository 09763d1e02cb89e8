"""Yes/no confirmation and free-text prompts."""

from __future__ import annotations

import asyncio

from rich.console import Console
from rich.prompt import Prompt
from rich.text import Text


def is_affirmative(answer: str | None) -> bool:
    """Return True when the answer starts with 'y' or 'Y'."""
    return bool(answer) and answer[0] in "yY"


async def ask(console: Console, question: str, default: str = "") -> str:
    """Read one line of text without blocking the event loop.

    Raises:
        EOFError: If standard input is closed
    """
    loop = asyncio.get_running_loop()

    def _read() -> str:
        return Prompt.ask(Text(question), console=console, default=default, show_default=bool(default))

    answer = await loop.run_in_executor(None, _read)
    return (answer or "").strip()


async def confirm(console: Console, question: str, assume_yes: bool = False) -> bool:
    """
    Ask a yes/no question.

    Args:
        console: Console used for the prompt
        question: Question text, '[y/N]' is appended
        assume_yes: Skip the prompt and answer yes (force or non-interactive mode)

    Returns:
        True only for answers beginning with y/Y
    """
    if assume_yes:
        return True
    answer = await ask(console, f"{question} [y/N]")
    return is_affirmative(answer)
