"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .utils.logging import DEFAULT_LOG_DIR


DEFAULT_GO_VERSION = "1.25.1"
DEFAULT_HTTP_TIMEOUT = 30.0

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """User-tunable settings.

    Attributes:
        log_dir: Directory for log files
        log_enabled: Write a log file even without --log
        git_name: Identity applied by the Git installer in non-interactive mode
        git_email: Identity applied by the Git installer in non-interactive mode
        go_version: Pinned Go version for the Go installer, empty means latest
        http_timeout: Timeout in seconds for release metadata requests
    """

    log_dir: Path = DEFAULT_LOG_DIR
    log_enabled: bool = False
    git_name: str = ""
    git_email: str = ""
    go_version: str = ""
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from DEVSETUP_* environment variables."""
        env = os.environ if environ is None else environ

        try:
            timeout = float(env.get("DEVSETUP_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT))
        except ValueError:
            timeout = DEFAULT_HTTP_TIMEOUT
        if timeout <= 0:
            timeout = DEFAULT_HTTP_TIMEOUT

        return cls(
            log_dir=Path(env.get("DEVSETUP_LOG_DIR") or DEFAULT_LOG_DIR),
            log_enabled=env.get("DEVSETUP_LOG", "").strip().lower() in _TRUTHY,
            git_name=env.get("DEVSETUP_GIT_NAME", "").strip(),
            git_email=env.get("DEVSETUP_GIT_EMAIL", "").strip(),
            go_version=env.get("DEVSETUP_GO_VERSION", "").strip(),
            http_timeout=timeout,
        )
