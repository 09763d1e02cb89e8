"""Release metadata lookups and artifact verification."""

from .checksum import compute_sha256, expected_checksum, parse_sha256sums, verify_checksum
from .client import GitHubRelease, GoFile, GoRelease, ReleaseClient

__all__ = [
    "GitHubRelease",
    "GoFile",
    "GoRelease",
    "ReleaseClient",
    "compute_sha256",
    "expected_checksum",
    "parse_sha256sums",
    "verify_checksum",
]
