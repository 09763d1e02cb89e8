"""Utility modules for probing, logging, prompts and versions."""

from __future__ import annotations

import asyncio

from .logging import setup_logging, get_log_path

__all__ = ["command_available", "setup_logging", "get_log_path"]


_availability_cache: dict[tuple[str, tuple[str, ...]], bool] = {}


async def command_available(cmd: str, *args: str) -> bool:
    """
    Check whether a probe command runs successfully.

    Results are cached per (cmd, args) for the lifetime of the process.

    Args:
        cmd: Executable to run, e.g. 'which'
        *args: Arguments passed to the executable

    Returns:
        True if the command exited with status 0
    """
    key = (cmd, args)
    if key in _availability_cache:
        return _availability_cache[key]

    try:
        proc = await asyncio.create_subprocess_exec(
            cmd, *args,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        await proc.wait()
        available = proc.returncode == 0
    except (FileNotFoundError, PermissionError):
        available = False

    _availability_cache[key] = available
    return available
