"""Installer template shared by every tool and database."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from rich.markup import escape

from ..context import ExitCode, RunContext
from ..system.packages import PackageManager, install_commands, query_latest_version
from ..system.runner import Command, elevated, plain
from ..utils.versions import ToolVersion, extract_version


logger = logging.getLogger(__name__)


@dataclass
class ToolInstaller:
    """Installs one tool.

    Subclasses provide steps() for the common case of a fixed command list,
    or override run() when later steps depend on earlier results.

    Attributes:
        key: Stable identifier, also the flag suffix (--install-<key>)
        label: Display name
        description: One-line help text
        binary: Executable used to read the installed version
        version_args: Arguments that make the binary print its version
        package: Package name used to query the latest available version
        version_commands: Commands whose output is shown after installing
        version_env: Extra environment for the version commands
        notes: Lines printed after a successful install
    """

    key: str
    label: str
    description: str = ""
    binary: str | None = None
    version_args: tuple[str, ...] = ("--version",)
    package: str | None = None
    version_commands: tuple[tuple[str, ...], ...] = ()
    version_env: dict[str, str] = field(default_factory=dict)
    notes: tuple[str, ...] = ()
    flag_name: str | None = None
    title: str | None = None
    needs_package_manager: bool = True

    @property
    def flag(self) -> str:
        return f"--install-{self.flag_name or self.key}"

    @property
    def banner_title(self) -> str:
        return self.title or f"Installing {self.label}"

    async def steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        return []

    async def run(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> int:
        return await ctx.runner.run_steps(await self.steps(ctx, manager, workdir))

    async def install(self, ctx: RunContext, pause: bool = True) -> int:
        """Run the installation and report the outcome."""
        ctx.banner(self.banner_title)
        logger.info("Starting %s installation", self.label)

        manager = ctx.package_manager()
        if self.needs_package_manager and not manager.supported:
            ctx.error("Unsupported package manager")
            logger.error("%s installation failed - unsupported package manager", self.label)
            if pause:
                await ctx.pause()
            return ExitCode.FAILURE

        try:
            with tempfile.TemporaryDirectory(prefix="devsetup-") as tmp:
                status = await self.run(ctx, manager, Path(tmp))
        except RuntimeError as e:
            ctx.error(str(e))
            logger.error("%s installation failed - %s", self.label, e)
            status = ExitCode.FAILURE

        if status != 0:
            ctx.error(f"{self.label} installation failed (exit status {status})")
            logger.error("%s installation failed with status %d", self.label, status)
        else:
            ctx.success(f"{self.label} installation complete!")
            await self.show_version(ctx)
            for note in self.notes:
                ctx.say(note)
            logger.info("%s installation complete", self.label)

        if pause:
            await ctx.pause()
        return status

    async def current_version(self, ctx: RunContext) -> str:
        """Installed version, or '' when the tool is missing."""
        if not self.binary:
            return ""
        result = await ctx.runner.capture(plain(self.binary, *self.version_args, env=self.version_env))
        if not result.ok:
            return ""
        return extract_version(result.output)

    async def version_info(self, ctx: RunContext) -> ToolVersion:
        """Installed and latest available versions."""
        info = ToolVersion(name=self.label, current=await self.current_version(ctx))
        if self.package:
            manager = ctx.package_manager()
            info.latest = await query_latest_version(ctx.runner, manager, self.package)
        return info

    async def show_version(self, ctx: RunContext) -> None:
        """Print the first line of each version command."""
        commands = self.version_commands
        if not commands and self.binary:
            commands = ((self.binary, *self.version_args),)
        for argv in commands:
            result = await ctx.runner.capture(plain(*argv, env=self.version_env))
            line = result.output.strip().splitlines()[0] if result.output.strip() else ""
            if result.ok and line:
                ctx.say(escape(line))
            else:
                ctx.say(f"{argv[0]}: Not installed")


@dataclass
class PackageInstaller(ToolInstaller):
    """Installs a fixed package list, then runs optional extra steps."""

    apt_packages: tuple[str, ...] = ()
    rpm_packages: tuple[str, ...] = ()

    def packages_for(self, manager: PackageManager) -> tuple[str, ...]:
        if manager is PackageManager.APT:
            return self.apt_packages
        return self.rpm_packages or self.apt_packages

    async def steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        commands = await self.pre_steps(ctx, manager, workdir)
        packages = self.packages_for(manager)
        if packages:
            commands += install_commands(manager, packages)
        commands += await self.post_steps(ctx, manager, workdir)
        return commands

    async def pre_steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        return []

    async def post_steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        return []


@dataclass
class ServiceInstaller(PackageInstaller):
    """Package install followed by enabling a systemd service."""

    apt_service: str = ""
    rpm_service: str = ""

    def service_for(self, manager: PackageManager) -> str:
        if manager is PackageManager.APT:
            return self.apt_service
        return self.rpm_service or self.apt_service

    async def post_steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        service = self.service_for(manager)
        if not service:
            return []
        return [
            elevated("systemctl", "start", service),
            elevated("systemctl", "enable", service),
        ]

    async def service_state(self, ctx: RunContext) -> str:
        """`systemctl is-active` for the service, or '' if unknown."""
        manager = ctx.package_manager()
        candidates = [s for s in (self.service_for(manager), self.apt_service, self.rpm_service) if s]
        for service in dict.fromkeys(candidates):
            result = await ctx.runner.capture(plain("systemctl", "is-active", service))
            if result.ok:
                return result.output.strip()
        return ""

    async def show_version(self, ctx: RunContext) -> None:
        service = self.service_for(ctx.package_manager())
        if service:
            ctx.say("Service status:")
            result = await ctx.runner.capture(plain("systemctl", "status", service, "--no-pager"))
            for line in result.output.strip().splitlines()[:5]:
                ctx.say(escape(line))
        await super().show_version(ctx)


async def query_output(ctx: RunContext, *argv: str, fallback: str = "") -> str:
    """First line of a read-only query, or fallback on failure."""
    result = await ctx.runner.capture(plain(*argv))
    lines = result.output.strip().splitlines()
    if result.ok and lines:
        return lines[0].strip()
    return fallback


async def deb_architecture(ctx: RunContext) -> str:
    return await query_output(ctx, "dpkg", "--print-architecture", fallback="amd64")


async def release_codename(ctx: RunContext) -> str:
    """Distribution codename from lsb_release.

    Raises:
        RuntimeError: If the codename cannot be determined
    """
    codename = await query_output(ctx, "lsb_release", "-cs")
    if not codename:
        raise RuntimeError("Could not determine the release codename (is lsb-release installed?)")
    return codename


def fetch_key_commands(url: str, keyring: str, workdir: Path) -> list[Command]:
    """Download an ASCII armoured key and store it dearmored in a keyring."""
    key_file = workdir / Path(keyring).with_suffix(".asc").name
    return [
        elevated("mkdir", "-p", str(Path(keyring).parent)),
        plain("curl", "-fsSL", url, "-o", str(key_file)),
        elevated("gpg", "--dearmor", "--yes", "-o", keyring, str(key_file)),
    ]
