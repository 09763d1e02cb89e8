"""SHA-256 verification of downloaded release artifacts."""

import hashlib
import re
from pathlib import Path


_HEX_DIGEST = re.compile(r"^[0-9a-fA-F]{64}$")
CHUNK_SIZE = 64 * 1024


def parse_sha256sums(content: str) -> dict[str, str]:
    """Map file names to hashes from `sha256sum` style output.

    Both the text ("<hash>  <file>") and binary ("<hash> *<file>") markers
    are accepted; blank lines and comments are skipped.

    Examples:
        >>> parse_sha256sums("abc123 *docker-compose-linux-x86_64")
        {'docker-compose-linux-x86_64': 'abc123'}
    """
    checksums: dict[str, str] = {}
    for raw in content.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        digest, _, name = line.partition(" ")
        name = name.strip().lstrip("*")
        if name:
            checksums[name] = digest.lower()
    return checksums


def expected_checksum(content: str, filename: str) -> str:
    """Hash published for filename, or '' when the listing has none.

    A listing that is just a bare digest applies to the one file it was
    published next to.
    """
    bare = content.strip()
    if _HEX_DIGEST.match(bare):
        return bare.lower()
    return parse_sha256sums(content).get(filename, "")


def compute_sha256(file_path: Path) -> str:
    """Hex digest of a file, read in chunks.

    Raises:
        FileNotFoundError: If file does not exist
        PermissionError: If file cannot be read
    """
    digest = hashlib.sha256()
    with file_path.open("rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()


def verify_checksum(file_path: Path, expected_hash: str) -> bool:
    """True if the file matches expected_hash, ignoring case and surrounding whitespace."""
    return compute_sha256(file_path) == expected_hash.strip().lower()
