"""Go toolchain installer (latest release or a pinned version)."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from ..context import ExitCode, RunContext
from ..releases.checksum import verify_checksum
from ..releases.client import ReleaseClient
from ..system.host import GO_ARCHITECTURES, map_architecture, target_home
from ..system.packages import PackageManager
from ..system.runner import Command, elevated, plain, write_file
from .base import ToolInstaller


logger = logging.getLogger(__name__)

GO_DOWNLOAD_BASE = "https://go.dev/dl"
INSTALL_DIR = Path("/usr/local")
GO_ROOT = INSTALL_DIR / "go"
GO_BIN = GO_ROOT / "bin"
STAGING_DIR = Path("/usr/local/src")
PATH_LINE = "export PATH=$PATH:/usr/local/go/bin"


def tarball_name(version: str, arch: str) -> str:
    """Archive name for a version such as '1.25.1' or 'go1.25.1'."""
    if not version.startswith("go"):
        version = f"go{version}"
    return f"{version}.linux-{arch}.tar.gz"


def profile_files(home: Path) -> list[Path]:
    return [Path("/etc/profile"), home / ".profile", home / ".bashrc"]


def path_entry_commands(files: list[Path]) -> list[Command]:
    """Append the Go PATH entry to each existing file that lacks it."""
    commands = []
    for profile in files:
        try:
            content = profile.read_text(errors="replace")
        except OSError:
            continue
        if str(GO_BIN) in content:
            continue
        commands.append(write_file(
            str(profile),
            f"\n# Go programming language\n{PATH_LINE}\n",
            append=True,
        ))
    return commands


def download_command(downloader: str, url: str, dest: Path) -> Command:
    if downloader == "wget":
        return plain("wget", "-q", "-O", str(dest), url)
    return plain("curl", "-fSL", "-o", str(dest), url)


def find_downloader() -> str | None:
    """Prefer wget, fall back to curl."""
    for tool in ("wget", "curl"):
        if shutil.which(tool):
            return tool
    return None


@dataclass
class GoInstaller(ToolInstaller):
    """Downloads the official tarball into /usr/local/go.

    Attributes:
        version: Version to install; empty means DEVSETUP_GO_VERSION or the latest release
        install_downloader: Install curl when neither wget nor curl is present
    """

    version: str = ""
    install_downloader: bool = True

    async def run(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> int:
        downloader = find_downloader()
        if downloader is None and self.install_downloader and manager.supported:
            await ctx.ensure_packages("curl")
            downloader = find_downloader()
        if downloader is None:
            ctx.error("neither wget nor curl is installed.")
            return ExitCode.NO_DOWNLOADER

        arch = map_architecture(GO_ARCHITECTURES)
        pinned = self.version or ctx.settings.go_version

        async with ReleaseClient(timeout=ctx.settings.http_timeout) as client:
            if pinned:
                release = await client.get_go_release(pinned)
                version = release.version if release else f"go{pinned.removeprefix('go')}"
            else:
                ctx.say("Fetching latest Go version...")
                release = await client.get_latest_go_release()
                if release is None:
                    ctx.error("Failed to fetch latest Go version")
                    return ExitCode.FAILURE
                version = release.version
                ctx.say(f"Latest Go version: {version}")

        tarball = tarball_name(version, arch)
        expected = ""
        if release is not None:
            archive = release.archive_for(arch)
            if archive is not None:
                tarball = archive.filename
                expected = archive.sha256
        if not expected:
            ctx.warn(f"No published checksum found for {tarball}; skipping verification")

        staged = STAGING_DIR / tarball
        ctx.say(f"Downloading {tarball} with {downloader}...")
        status = await ctx.runner.run_steps([
            elevated("mkdir", "-p", str(STAGING_DIR)),
            elevated("chown", f"{os.getuid()}:{os.getgid()}", str(STAGING_DIR), best_effort=True),
            download_command(downloader, f"{GO_DOWNLOAD_BASE}/{tarball}", staged),
        ])
        if status != 0:
            ctx.error("Failed to download Go")
            return status

        if expected and not ctx.dry_run:
            if not verify_checksum(staged, expected):
                ctx.error(f"Checksum verification failed for {tarball}")
                await ctx.runner.run(elevated("rm", "-f", str(staged)))
                return ExitCode.FAILURE
            ctx.say("Checksum verified.")

        ctx.say(f"Installing Go to {GO_ROOT}...")
        status = await ctx.runner.run_steps([
            elevated("rm", "-rf", str(GO_ROOT)),
            elevated("tar", "-C", str(INSTALL_DIR), "-xzf", str(staged)),
            elevated("rm", "-f", str(staged)),
            *path_entry_commands(profile_files(target_home())),
        ])
        if status == 0:
            logger.info("Installed %s", version)
        return status


GOLANG = GoInstaller(
    key="golang", label="Golang",
    description="Go programming language",
    binary="go", version_args=("version",),
    version_commands=((str(GO_BIN / "go"), "version"),),
    notes=("Note: You may need to restart your terminal or run 'source ~/.profile' for PATH changes to take effect.",),
    needs_package_manager=False,
)
