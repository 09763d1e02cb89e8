"""Facts about the host: distribution, architecture, users."""

from __future__ import annotations

import os
import platform
import pwd
from enum import Enum
from pathlib import Path


OS_RELEASE = Path("/etc/os-release")
REDHAT_RELEASE = Path("/etc/redhat-release")
DEBIAN_VERSION = Path("/etc/debian_version")

# uname -m -> release asset naming for each download source
GO_ARCHITECTURES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "armv6l",
}
COMPOSE_ARCHITECTURES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "armv7l": "armv7",
}
AWS_ARCHITECTURES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}


class Distribution(Enum):
    """Linux distribution families that change group naming."""
    UBUNTU = "ubuntu"
    DEBIAN = "debian"
    AMAZON = "amazon-linux"
    REDHAT = "redhat-family"
    FEDORA = "fedora"
    UNKNOWN = "unknown"

    @property
    def debian_family(self) -> bool:
        return self in (Distribution.UBUNTU, Distribution.DEBIAN)

    @property
    def admin_group(self) -> str:
        return "sudo" if self.debian_family else "wheel"

    @property
    def web_user(self) -> str:
        return "www-data" if self.debian_family else "apache"


def parse_os_release(content: str) -> dict[str, str]:
    """Parse KEY=value lines of /etc/os-release, dropping quotes."""
    values: dict[str, str] = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def read_os_release(path: Path = OS_RELEASE) -> dict[str, str]:
    try:
        return parse_os_release(path.read_text())
    except OSError:
        return {}


def distribution_from_release(release: dict[str, str]) -> Distribution:
    distro_id = release.get("ID", "").lower()
    like = release.get("ID_LIKE", "").lower()

    if distro_id == "ubuntu":
        return Distribution.UBUNTU
    if distro_id == "amzn":
        return Distribution.AMAZON
    if distro_id in ("centos", "rhel"):
        return Distribution.REDHAT
    if distro_id == "debian":
        return Distribution.DEBIAN
    if distro_id == "fedora":
        return Distribution.FEDORA
    if "rhel" in like or "fedora" in like:
        return Distribution.REDHAT
    if "debian" in like:
        return Distribution.DEBIAN
    return Distribution.UNKNOWN


def detect_distribution(
    os_release: Path = OS_RELEASE,
    redhat_release: Path = REDHAT_RELEASE,
    debian_version: Path = DEBIAN_VERSION,
) -> Distribution:
    """Identify the distribution from the usual marker files."""
    if os_release.exists():
        return distribution_from_release(read_os_release(os_release))
    if redhat_release.exists():
        return Distribution.REDHAT
    if debian_version.exists():
        return Distribution.DEBIAN
    return Distribution.UNKNOWN


def map_architecture(table: dict[str, str], machine: str | None = None) -> str:
    """Translate `uname -m` into a download's architecture name.

    Raises:
        RuntimeError: If the architecture is not in the table
    """
    machine = (machine or platform.machine()).lower()
    arch = table.get(machine)
    if arch is None:
        raise RuntimeError(f"Unsupported architecture: {machine}")
    return arch


def is_root() -> bool:
    return os.geteuid() == 0


def current_user() -> str:
    """Login name of the invoking user, looking through sudo."""
    sudo_user = os.environ.get("SUDO_USER")
    if sudo_user:
        return sudo_user
    for var in ("USER", "LOGNAME"):
        if os.environ.get(var):
            return os.environ[var]
    try:
        return pwd.getpwuid(os.geteuid()).pw_name
    except KeyError:
        return "root" if is_root() else ""


def target_home() -> Path:
    """Home directory of the user who invoked sudo, or of the current user."""
    sudo_user = os.environ.get("SUDO_USER")
    if sudo_user and sudo_user != "root":
        try:
            return Path(pwd.getpwnam(sudo_user).pw_dir)
        except KeyError:
            pass
    return Path.home()


def user_exists(name: str) -> bool:
    try:
        pwd.getpwnam(name)
    except KeyError:
        return False
    return True
