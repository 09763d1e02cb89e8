"""Package manager detection, generic installs and metadata queries."""

from __future__ import annotations

import logging
import re
import shutil
from enum import Enum
from typing import Callable, Iterable, Sequence

from ..utils.versions import version_sort_key
from .runner import Command, CommandRunner, elevated, plain


logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Unsupported package manager"


class PackageManager(Enum):
    """Package managers understood by the installers."""
    APT = "apt"
    YUM = "yum"
    DNF = "dnf"
    UNKNOWN = "unknown"

    @property
    def rhel_family(self) -> bool:
        return self in (PackageManager.YUM, PackageManager.DNF)

    @property
    def supported(self) -> bool:
        return self is not PackageManager.UNKNOWN


# dnf wins over yum because modern RHEL ships yum as a dnf alias
DETECTION_ORDER = (PackageManager.DNF, PackageManager.YUM, PackageManager.APT)


def detect_package_manager(which: Callable[[str], str | None] = shutil.which) -> PackageManager:
    """Return the first package manager found on PATH, or UNKNOWN."""
    for manager in DETECTION_ORDER:
        if which(manager.value):
            logger.debug("Detected package manager: %s", manager.value)
            return manager
    logger.warning("No supported package manager found")
    return PackageManager.UNKNOWN


def install_commands(manager: PackageManager, packages: Sequence[str]) -> list[Command]:
    """
    Build the non-interactive install commands for a package list.

    apt refreshes its index first.

    Raises:
        ValueError: If packages is empty or the manager is unsupported
    """
    if not packages:
        raise ValueError("install_commands requires at least one package")
    if manager is PackageManager.APT:
        return [
            elevated("apt", "update"),
            elevated("apt", "install", "-y", *packages),
        ]
    if manager.rhel_family:
        return [elevated(manager.value, "install", "-y", *packages)]
    raise ValueError(UNSUPPORTED_MESSAGE)


async def install_packages(
    runner: CommandRunner,
    manager: PackageManager,
    packages: Sequence[str],
) -> int:
    """Install packages with the detected manager and return the exit status."""
    if not manager.supported:
        logger.error("Package installation failed - %s", UNSUPPORTED_MESSAGE.lower())
        return 1
    logger.info("Installing packages: %s", " ".join(packages))
    return await runner.run_steps(install_commands(manager, packages))


async def ensure_packages(
    runner: CommandRunner,
    manager: PackageManager,
    *packages: str,
) -> int:
    """Like install_packages, but an empty list is a no-op."""
    if not packages:
        return 0
    return await install_packages(runner, manager, packages)


def service_commands(service: str, start: bool = True) -> list[Command]:
    """Enable a systemd service, starting it first."""
    commands = []
    if start:
        commands.append(elevated("systemctl", "start", service))
    commands.append(elevated("systemctl", "enable", service))
    return commands


def standard_update_commands(manager: PackageManager, quiet: bool = False) -> list[Command]:
    """Update, upgrade and clean up steps for a standard system update."""
    if manager is PackageManager.APT:
        flags = ("-y", "-qq") if quiet else ("-y",)
        return [
            elevated("apt", "update", *flags[1:]),
            elevated("apt", "upgrade", *flags),
            elevated("apt", "dist-upgrade", *flags),
            elevated("apt", "autoremove", *flags),
            elevated("apt", "autoclean", *flags),
        ]
    if manager is PackageManager.YUM:
        return [
            elevated("yum", "update", "-y"),
            elevated("yum", "autoremove", "-y", best_effort=True),
            elevated("yum", "clean", "all"),
        ]
    if manager is PackageManager.DNF:
        return [
            elevated("dnf", "upgrade", "-y"),
            elevated("dnf", "autoremove", "-y", best_effort=True),
            elevated("dnf", "clean", "all"),
        ]
    return []


def parse_apt_candidate(output: str) -> str:
    """
    Extract the candidate version from `apt-cache policy` output.

    The epoch ('1:') is stripped; '(none)' yields an empty string.
    """
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("Candidate:"):
            candidate = line.split(":", 1)[1].strip()
            if candidate == "(none)":
                return ""
            if re.match(r"^\d+:", candidate):
                candidate = candidate.split(":", 1)[1]
            return candidate
    return ""


def parse_rpm_info_versions(output: str) -> list[str]:
    """Collect every 'Version : x' value from `yum info` / `dnf info` output."""
    versions = []
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if sep and key.strip() == "Version" and value.strip():
            versions.append(value.strip())
    return versions


def latest_version_command(manager: PackageManager, package: str) -> Command | None:
    if manager is PackageManager.APT:
        return plain("apt-cache", "policy", package)
    if manager.rhel_family:
        return plain(manager.value, "info", package)
    return None


async def query_latest_version(
    runner: CommandRunner,
    manager: PackageManager,
    package: str,
) -> str:
    """Latest version the package manager offers, or '' when unknown."""
    command = latest_version_command(manager, package)
    if command is None:
        return ""
    result = await runner.capture(command)
    if not result.ok:
        logger.debug("Version query failed for %s (%d)", package, result.returncode)
        return ""
    if manager is PackageManager.APT:
        return parse_apt_candidate(result.output)
    versions = parse_rpm_info_versions(result.output)
    if not versions:
        return ""
    return max(versions, key=version_sort_key)


def parse_simulated_installs(output: str) -> list[str]:
    """Return the 'Inst ' lines of an apt-get simulation."""
    return [line for line in output.splitlines() if line.startswith("Inst ")]


def package_names(lines: Iterable[str]) -> list[str]:
    """Second field of each 'Inst <name> ...' line."""
    names = []
    for line in lines:
        parts = line.split()
        if len(parts) > 1:
            names.append(parts[1])
    return names
