"""Version string extraction and comparison.

Used only for display: deciding whether a menu entry reads "Install" or
"Update". Any failure degrades to "not comparable" rather than raising.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from packaging.version import InvalidVersion, Version


_VERSION_TOKEN = re.compile(r"\d+(?:\.\d+)+")
_NATURAL_CHUNK = re.compile(r"(\d+)")


class VersionComparison(Enum):
    """Outcome of comparing an installed version against the latest one."""
    NEWER = "newer"
    OLDER_OR_EQUAL = "older_or_equal"
    NOT_COMPARABLE = "not_comparable"


@dataclass
class ToolVersion:
    """Installed and latest known versions of a tool."""
    name: str
    current: str = ""
    latest: str = ""

    @property
    def installed(self) -> bool:
        return bool(self.current)

    @property
    def comparison(self) -> VersionComparison:
        return compare_versions(self.current, self.latest)

    @property
    def update_available(self) -> bool:
        return self.comparison is VersionComparison.NEWER


def extract_version(output: str) -> str:
    """
    Pull the first dotted version number out of command output.

    Examples:
        >>> extract_version("git version 2.43.0")
        '2.43.0'
        >>> extract_version("go version go1.22.1 linux/amd64")
        '1.22.1'
    """
    match = _VERSION_TOKEN.search(output or "")
    return match.group(0) if match else ""


def normalize_version(value: str) -> str:
    """
    Strip one leading 'v' or 'go' prefix and drop any '-' or ':' suffix.

    Examples:
        >>> normalize_version("go1.25.1")
        '1.25.1'
        >>> normalize_version("v2.3.0-rc1")
        '2.3.0'
    """
    value = (value or "").strip()
    if value.startswith("go"):
        value = value[2:]
    elif value.startswith("v"):
        value = value[1:]
    return re.split(r"[-:]", value, maxsplit=1)[0]


def version_sort_key(value: str) -> tuple:
    """Sort key that orders digit runs numerically, like `sort -V`."""
    key = []
    for chunk in _NATURAL_CHUNK.split(value):
        if not chunk:
            continue
        if chunk.isascii() and chunk.isdigit():
            key.append((0, int(chunk), ""))
        else:
            key.append((1, 0, chunk))
    return tuple(key)


def compare_versions(current: str, latest: str) -> VersionComparison:
    """Compare an installed version with the latest available one.

    Args:
        current: Installed version (may carry a 'v'/'go' prefix)
        latest: Latest available version

    Returns:
        NEWER if latest is strictly newer, OLDER_OR_EQUAL otherwise,
        NOT_COMPARABLE when either side is missing
    """
    current = normalize_version(current)
    latest = normalize_version(latest)
    if not current or not latest:
        return VersionComparison.NOT_COMPARABLE

    try:
        newer = Version(latest) > Version(current)
    except InvalidVersion:
        # Fall back to natural ordering for non-PEP 440 strings
        newer = version_sort_key(latest) > version_sort_key(current)

    return VersionComparison.NEWER if newer else VersionComparison.OLDER_OR_EQUAL
