"""Tests for release metadata and checksum helpers."""

import asyncio
import hashlib
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from devsetup.releases.checksum import compute_sha256, expected_checksum, parse_sha256sums, verify_checksum
from devsetup.releases.client import ReleaseClient, parse_go_releases


GO_LISTING = [
    {
        "version": "go1.25.1",
        "stable": True,
        "files": [
            {"filename": "go1.25.1.src.tar.gz", "os": "", "arch": "", "kind": "source", "sha256": "aaa"},
            {"filename": "go1.25.1.linux-amd64.tar.gz", "os": "linux", "arch": "amd64", "kind": "archive", "sha256": "bbb"},
            {"filename": "go1.25.1.linux-arm64.tar.gz", "os": "linux", "arch": "arm64", "kind": "archive", "sha256": "ccc"},
        ],
    },
    {
        "version": "go1.26rc1",
        "stable": False,
        "files": [],
    },
]


def mock_session_returning(status=200, data=None, side_effect=None):
    """Patch aiohttp.ClientSession so get() yields a canned response."""
    patcher = patch("aiohttp.ClientSession")
    mock_session_class = patcher.start()
    mock_session = MagicMock()
    mock_session_class.return_value = mock_session

    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=data)

    mock_get_cm = AsyncMock()
    mock_get_cm.__aenter__.return_value = mock_response
    mock_get_cm.__aexit__.return_value = None
    mock_session.get.return_value = mock_get_cm
    if side_effect is not None:
        mock_session.get.side_effect = side_effect
    mock_session.close = AsyncMock()
    return patcher, mock_session


class TestParseSha256sums:
    """Tests for parse_sha256sums."""

    def test_text_and_binary_markers(self):
        content = "ABC123  go.tar.gz\ndef456 *docker-compose-linux-x86_64\n"
        assert parse_sha256sums(content) == {
            "go.tar.gz": "abc123",
            "docker-compose-linux-x86_64": "def456",
        }

    def test_comments_and_blank_lines(self):
        assert parse_sha256sums("# header\n\nabc  file\n") == {"file": "abc"}

    def test_malformed_line_skipped(self):
        assert parse_sha256sums("justonefield\n") == {}


class TestExpectedChecksum:
    """Tests for expected_checksum."""

    def test_listing(self):
        listing = "aaa  docker-compose-linux-aarch64\nbbb  docker-compose-linux-x86_64\n"
        assert expected_checksum(listing, "docker-compose-linux-x86_64") == "bbb"

    def test_bare_digest(self):
        digest = "A" * 64
        assert expected_checksum(f"{digest}\n", "anything") == "a" * 64

    def test_missing(self):
        assert expected_checksum("aaa  other-file\n", "docker-compose-linux-x86_64") == ""


class TestChecksum:
    """Tests for compute_sha256 and verify_checksum."""

    def test_compute(self, tmp_path):
        path = tmp_path / "file"
        path.write_bytes(b"hello")
        assert compute_sha256(path) == hashlib.sha256(b"hello").hexdigest()

    def test_verify_case_insensitive(self, tmp_path):
        path = tmp_path / "file"
        path.write_bytes(b"hello")
        expected = hashlib.sha256(b"hello").hexdigest().upper()
        assert verify_checksum(path, f" {expected}\n") is True

    def test_verify_mismatch(self, tmp_path):
        path = tmp_path / "file"
        path.write_bytes(b"hello")
        assert verify_checksum(path, "0" * 64) is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            compute_sha256(tmp_path / "missing")


class TestParseGoReleases:
    """Tests for parse_go_releases."""

    def test_archive_lookup(self):
        releases = parse_go_releases(GO_LISTING)
        assert [r.version for r in releases] == ["go1.25.1", "go1.26rc1"]
        archive = releases[0].archive_for("arm64")
        assert archive.filename == "go1.25.1.linux-arm64.tar.gz"
        assert archive.sha256 == "ccc"

    def test_missing_archive(self):
        releases = parse_go_releases(GO_LISTING)
        assert releases[0].archive_for("riscv64") is None
        assert releases[1].archive_for("amd64") is None


class TestReleaseClient:
    """Tests for ReleaseClient."""

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        client = ReleaseClient()
        with pytest.raises(RuntimeError):
            await client.get_go_releases()

    @pytest.mark.asyncio
    async def test_latest_go_release_skips_unstable(self):
        patcher, session = mock_session_returning(data=list(reversed(GO_LISTING)))
        try:
            async with ReleaseClient() as client:
                release = await client.get_latest_go_release()
        finally:
            patcher.stop()
        assert release.version == "go1.25.1"
        assert session.get.call_args.kwargs["params"] == {"mode": "json"}

    @pytest.mark.asyncio
    async def test_pinned_go_release_includes_all(self):
        patcher, session = mock_session_returning(data=GO_LISTING)
        try:
            async with ReleaseClient() as client:
                release = await client.get_go_release("1.25.1")
        finally:
            patcher.stop()
        assert release is not None and release.version == "go1.25.1"
        assert session.get.call_args.kwargs["params"] == {"mode": "json", "include": "all"}

    @pytest.mark.asyncio
    async def test_pinned_go_release_not_found(self):
        patcher, _ = mock_session_returning(data=GO_LISTING)
        try:
            async with ReleaseClient() as client:
                assert await client.get_go_release("go1.0.0") is None
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_github_release(self):
        data = {
            "tag_name": "v2.29.2",
            "assets": [
                {"name": "docker-compose-linux-x86_64", "browser_download_url": "https://example.com/bin", "size": 10},
                {"name": "docker-compose-linux-x86_64.sha256", "browser_download_url": "https://example.com/sum", "size": 1},
            ],
        }
        patcher, session = mock_session_returning(data=data)
        try:
            async with ReleaseClient() as client:
                release = await client.get_latest_github_release("docker", "compose")
        finally:
            patcher.stop()
        assert release.tag_name == "v2.29.2"
        assert release.asset("docker-compose-linux-x86_64.sha256").download_url == "https://example.com/sum"
        assert release.asset("missing") is None
        assert session.get.call_args.args[0] == "https://api.github.com/repos/docker/compose/releases/latest"

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self):
        patcher, _ = mock_session_returning(status=404)
        try:
            async with ReleaseClient() as client:
                assert await client.get_latest_github_release("docker", "compose") is None
                assert await client.get_go_releases() == []
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_network_error_returns_none(self):
        patcher, _ = mock_session_returning(side_effect=aiohttp.ClientError("Network error"))
        try:
            async with ReleaseClient() as client:
                assert await client.get_latest_go_release() is None
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self):
        patcher, _ = mock_session_returning(side_effect=asyncio.TimeoutError())
        try:
            async with ReleaseClient() as client:
                assert await client.get_latest_github_release("docker", "compose") is None
        finally:
            patcher.stop()

    @pytest.mark.asyncio
    async def test_unexpected_payload(self):
        patcher, _ = mock_session_returning(data={"message": "rate limited"})
        try:
            async with ReleaseClient() as client:
                assert await client.get_latest_github_release("docker", "compose") is None
                assert await client.get_go_releases() == []
        finally:
            patcher.stop()
