"""Async client for Go and GitHub release metadata."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

import aiohttp


logger = logging.getLogger(__name__)

GO_DOWNLOADS_URL = "https://go.dev/dl/"
GITHUB_API_BASE = "https://api.github.com"
GITHUB_DOWNLOAD_BASE = "https://github.com"


@dataclass
class GoFile:
    """One downloadable file of a Go release."""
    filename: str
    os: str
    arch: str
    kind: str
    sha256: str


@dataclass
class GoRelease:
    """A Go release as listed on go.dev."""
    version: str
    stable: bool
    files: list[GoFile] = field(default_factory=list)

    def archive_for(self, arch: str, os_name: str = "linux") -> GoFile | None:
        """The .tar.gz archive for a platform, if published."""
        for f in self.files:
            if f.os == os_name and f.arch == arch and f.kind == "archive":
                return f
        return None


@dataclass
class GitHubAsset:
    """GitHub release asset information."""
    name: str
    download_url: str
    size: int


@dataclass
class GitHubRelease:
    """GitHub release information."""
    tag_name: str
    assets: list[GitHubAsset] = field(default_factory=list)

    def asset(self, name: str) -> GitHubAsset | None:
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None


def parse_go_releases(data: list) -> list[GoRelease]:
    """Turn the go.dev JSON listing into GoRelease objects."""
    releases = []
    for item in data:
        files = [
            GoFile(
                filename=f.get("filename", ""),
                os=f.get("os", ""),
                arch=f.get("arch", ""),
                kind=f.get("kind", ""),
                sha256=f.get("sha256", ""),
            )
            for f in item.get("files", [])
        ]
        releases.append(GoRelease(
            version=item["version"],
            stable=bool(item.get("stable", False)),
            files=files,
        ))
    return releases


class ReleaseClient:
    """Async HTTP client for release metadata."""

    def __init__(self, timeout: float = 30.0):
        """
        Args:
            timeout: Request timeout in seconds
        """
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> ReleaseClient:
        self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if not self._session:
            raise RuntimeError("ReleaseClient must be used as async context manager")
        return self._session

    async def _get_json(self, url: str, params: dict[str, str] | None = None):
        session = self._require_session()
        try:
            async with session.get(url, params=params) as response:
                if response.status != 200:
                    logger.warning("GET %s returned HTTP %d", url, response.status)
                    return None
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("GET %s failed: %s", url, e)
            return None

    async def get_go_releases(self, include_all: bool = False) -> list[GoRelease]:
        """List Go releases, newest first."""
        params = {"mode": "json"}
        if include_all:
            params["include"] = "all"
        data = await self._get_json(GO_DOWNLOADS_URL, params)
        if not isinstance(data, list):
            return []
        try:
            return parse_go_releases(data)
        except KeyError:
            logger.warning("Unexpected go.dev release listing format")
            return []

    async def get_latest_go_release(self) -> GoRelease | None:
        """The newest stable Go release."""
        for release in await self.get_go_releases():
            if release.stable:
                return release
        return None

    async def get_go_release(self, version: str) -> GoRelease | None:
        """A specific Go release such as 'go1.25.1'."""
        if not version.startswith("go"):
            version = f"go{version}"
        for release in await self.get_go_releases(include_all=True):
            if release.version == version:
                return release
        return None

    async def get_latest_github_release(self, owner: str, repo: str) -> GitHubRelease | None:
        """Latest published release of a GitHub repository."""
        data = await self._get_json(f"{GITHUB_API_BASE}/repos/{owner}/{repo}/releases/latest")
        if not isinstance(data, dict):
            return None
        try:
            return GitHubRelease(
                tag_name=data["tag_name"],
                assets=[
                    GitHubAsset(
                        name=asset["name"],
                        download_url=asset["browser_download_url"],
                        size=asset.get("size", 0),
                    )
                    for asset in data.get("assets", [])
                ],
            )
        except KeyError:
            return None

    async def download_text(self, url: str) -> str:
        """Download text content from URL.

        Raises:
            aiohttp.ClientError: On network errors
            asyncio.TimeoutError: On timeout
        """
        session = self._require_session()
        async with session.get(url) as response:
            response.raise_for_status()
            return await response.text()
