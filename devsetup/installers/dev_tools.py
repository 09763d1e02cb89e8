"""Developer tool installers."""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

import aiohttp
from rich.markup import escape

from ..context import ExitCode, RunContext
from ..releases.checksum import expected_checksum, verify_checksum
from ..releases.client import ReleaseClient
from ..system.host import COMPOSE_ARCHITECTURES, current_user, map_architecture, read_os_release
from ..system.packages import PackageManager, install_commands
from ..system.runner import Command, elevated, plain, write_file
from ..utils import command_available
from .base import (
    PackageInstaller,
    ToolInstaller,
    deb_architecture,
    fetch_key_commands,
    release_codename,
)


logger = logging.getLogger(__name__)

NODESOURCE_DEB_SETUP = "https://deb.nodesource.com/setup_lts.x"
NODESOURCE_RPM_SETUP = "https://rpm.nodesource.com/setup_lts.x"

DOCKER_KEYRING = "/etc/apt/keyrings/docker.gpg"
DOCKER_RPM_REPO = "https://download.docker.com/linux/centos/docker-ce.repo"
DOCKER_PACKAGES = ("docker-ce", "docker-ce-cli", "containerd.io", "docker-buildx-plugin", "docker-compose-plugin")
DOCKER_LEGACY_APT = ("docker", "docker-engine", "docker.io", "containerd", "runc")
DOCKER_LEGACY_RPM = (
    "docker", "docker-client", "docker-client-latest", "docker-common",
    "docker-latest", "docker-latest-logrotate", "docker-logrotate", "docker-engine",
)

COMPOSE_OWNER = "docker"
COMPOSE_REPO = "compose"
COMPOSE_TARGET = "/usr/local/bin/docker-compose"

POSTMAN_WRAPPER = "/usr/local/bin/postman"
POSTMAN_JS = "/usr/local/lib/node_modules/postman-cli/bin/postman.js"

SSHD_CONFIG = "/etc/ssh/sshd_config"
SSHD_EDITS = (
    "s/#PermitRootLogin prohibit-password/PermitRootLogin yes/",
    "s/PasswordAuthentication no/PasswordAuthentication yes/",
    "s/UsePAM yes/UsePAM no/",
)

GIT_IDENTITY_HINT = (
    "You can set it later with:",
    '  git config --global user.name "Your Name"',
    '  git config --global user.email "you@example.com"',
    "Defaults come from DEVSETUP_GIT_NAME / DEVSETUP_GIT_EMAIL.",
)


@dataclass
class NodeJSInstaller(PackageInstaller):
    """Node.js LTS from the NodeSource repository."""

    async def pre_steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        url = NODESOURCE_DEB_SETUP if manager is PackageManager.APT else NODESOURCE_RPM_SETUP
        script = workdir / "nodesource_setup.sh"
        return install_commands(manager, ("curl",)) + [
            plain("curl", "-fsSL", url, "-o", str(script)),
            elevated("bash", str(script)),
        ]

    def packages_for(self, manager: PackageManager) -> tuple[str, ...]:
        return ("nodejs",)


@dataclass
class GitInstaller(PackageInstaller):
    """Git, plus optional global identity."""

    async def run(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> int:
        status = await super().run(ctx, manager, workdir)
        if status != 0:
            return status
        await self.configure_identity(ctx)
        return 0

    async def configure_identity(self, ctx: RunContext) -> None:
        name = ctx.settings.git_name
        email = ctx.settings.git_email

        if ctx.non_interactive:
            if not name and not email:
                logger.info("Git identity setup skipped - no identity configured")
                return
            await self._apply_identity(ctx, name, email)
            return

        if not await ctx.confirm("Would you like to set your Git identity now?"):
            ctx.say("Skipped Git identity setup.")
            for line in GIT_IDENTITY_HINT:
                ctx.say(escape(line))
            logger.info("Git identity setup skipped")
            return

        if name or email:
            ctx.say("Git identity defaults:")
            ctx.say(f"  Name:  {escape(name)}")
            ctx.say(f"  Email: {escape(email)}")
            if await ctx.confirm("Is this your info?"):
                await self._apply_identity(ctx, name, email)
                return

        name_input = await ctx.ask("Enter your name (leave blank to skip)")
        email_input = await ctx.ask("Enter your email (leave blank to skip)")
        if name_input or email_input:
            await self._apply_identity(ctx, name_input or name, email_input or email)

    async def _apply_identity(self, ctx: RunContext, name: str, email: str) -> None:
        commands = []
        if name:
            commands.append(plain("git", "config", "--global", "user.name", name))
        if email:
            commands.append(plain("git", "config", "--global", "user.email", email))
        await ctx.runner.run_steps(commands)
        logger.info("Git identity configured")


@dataclass
class MakeInstaller(PackageInstaller):
    """make, gcc and friends."""

    async def steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        if manager is PackageManager.APT:
            return install_commands(manager, ("build-essential",))
        return [
            elevated(manager.value, "groupinstall", "-y", "Development Tools"),
            *install_commands(manager, ("make", "gcc", "gcc-c++")),
        ]


@dataclass
class DockerInstaller(ToolInstaller):
    """Docker Engine from the vendor repository."""

    async def steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        user = current_user()
        if manager is PackageManager.APT:
            distro = "debian" if read_os_release().get("ID") == "debian" else "ubuntu"
            arch = await deb_architecture(ctx)
            codename = await release_codename(ctx)
            repo_line = (
                f"deb [arch={arch} signed-by={DOCKER_KEYRING}] "
                f"https://download.docker.com/linux/{distro} {codename} stable\n"
            )
            commands = [
                elevated("apt", "remove", "-y", *DOCKER_LEGACY_APT, best_effort=True),
                *install_commands(manager, ("ca-certificates", "curl", "gnupg", "lsb-release")),
                *fetch_key_commands(f"https://download.docker.com/linux/{distro}/gpg", DOCKER_KEYRING, workdir),
                write_file("/etc/apt/sources.list.d/docker.list", repo_line),
                *install_commands(manager, DOCKER_PACKAGES),
            ]
        else:
            tool = manager.value
            if manager is PackageManager.YUM:
                add_repo = [
                    *install_commands(manager, ("yum-utils",)),
                    elevated("yum-config-manager", "--add-repo", DOCKER_RPM_REPO),
                ]
            else:
                add_repo = [
                    *install_commands(manager, ("dnf-plugins-core",)),
                    elevated("dnf", "config-manager", "--add-repo", DOCKER_RPM_REPO),
                ]
            commands = [
                elevated(tool, "remove", "-y", *DOCKER_LEGACY_RPM, best_effort=True),
                *add_repo,
                *install_commands(manager, DOCKER_PACKAGES),
                elevated("systemctl", "start", "docker"),
                elevated("systemctl", "enable", "docker"),
            ]
        if user:
            commands.append(elevated("usermod", "-aG", "docker", user))
        return commands


@dataclass
class DockerComposeInstaller(ToolInstaller):
    """Standalone docker-compose binary from GitHub releases, checksum verified."""

    async def run(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> int:
        status = await ctx.ensure_packages("curl")
        if status != 0:
            return status

        arch = map_architecture(COMPOSE_ARCHITECTURES)
        asset_name = f"docker-compose-linux-{arch}"

        ctx.say("Fetching latest Docker Compose version...")
        async with ReleaseClient(timeout=ctx.settings.http_timeout) as client:
            release = await client.get_latest_github_release(COMPOSE_OWNER, COMPOSE_REPO)
            if release is None:
                ctx.error("Failed to fetch latest Docker Compose version")
                return ExitCode.FAILURE
            ctx.say(f"Latest Docker Compose version: {release.tag_name}")

            asset = release.asset(asset_name)
            url = asset.download_url if asset else (
                f"https://github.com/{COMPOSE_OWNER}/{COMPOSE_REPO}/releases/download/{release.tag_name}/{asset_name}"
            )

            expected = ""
            checksum_asset = release.asset(f"{asset_name}.sha256")
            if checksum_asset:
                try:
                    listing = await client.download_text(checksum_asset.download_url)
                    expected = expected_checksum(listing, asset_name)
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    logger.warning("Could not fetch checksum for %s: %s", asset_name, e)

        download = workdir / asset_name
        result = await ctx.runner.run(plain("curl", "-fSL", url, "-o", str(download)))
        if not result.ok:
            ctx.error("Failed to download Docker Compose")
            return result.returncode

        if not ctx.dry_run:
            if not expected:
                ctx.error("No published checksum found for Docker Compose; refusing to install")
                return ExitCode.FAILURE
            if not verify_checksum(download, expected):
                ctx.error("Docker Compose checksum verification failed")
                return ExitCode.FAILURE
            ctx.say("Checksum verified.")

        return await ctx.runner.run_steps([
            elevated("install", "-m", "0755", str(download), COMPOSE_TARGET),
        ])


@dataclass
class OpenSSHInstaller(PackageInstaller):
    """OpenSSH server with password login enabled and the service started."""

    async def run(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> int:
        commands = install_commands(manager, ("openssh-server",))
        commands.append(elevated("mkdir", "-p", "/var/run/sshd"))
        commands += [elevated("sed", "-i", edit, SSHD_CONFIG) for edit in SSHD_EDITS]
        if shutil.which("ufw"):
            commands.append(elevated("ufw", "allow", "ssh", best_effort=True))

        status = await ctx.runner.run_steps(commands)
        if status != 0:
            return status

        if shutil.which("systemctl"):
            attempts = [elevated("systemctl", "enable", "--now", name) for name in ("ssh", "sshd")]
        else:
            attempts = [elevated("service", name, "start") for name in ("ssh", "sshd")]
        for command in attempts:
            result = await ctx.runner.run(command)
            if result.ok:
                return 0
        return result.returncode


@dataclass
class PostmanInstaller(ToolInstaller):
    """Postman CLI through npm, with a wrapper pinned to the local node binary."""

    async def run(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> int:
        if not await command_available("npm", "--version"):
            status = await NODEJS.install(ctx, pause=False)
            if status != 0:
                return status

        status = await ctx.runner.run_steps([elevated("npm", "install", "-g", "postman-cli")])
        if status != 0:
            return status

        node_path = shutil.which("node")
        if not node_path:
            if not ctx.dry_run:
                ctx.error("Node.js not found after installation.")
                return ExitCode.FAILURE
            node_path = "/usr/bin/node"

        commands = []
        wrapper = Path(POSTMAN_WRAPPER)
        if wrapper.exists() and "postman-cli/bin/postman.js" not in _read_text(wrapper):
            commands.append(elevated("rm", "-f", POSTMAN_WRAPPER))
        script = f'#!/usr/bin/env bash\nexec "{node_path}" "{POSTMAN_JS}" "$@"\n'
        commands.append(write_file(POSTMAN_WRAPPER, script))
        commands.append(elevated("chmod", "+x", POSTMAN_WRAPPER))
        return await ctx.runner.run_steps(commands)


@dataclass
class LaravelDepsInstaller(ToolInstaller):
    """PHP, Node.js, Composer, zip and the PHP extensions Laravel needs."""

    async def run(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> int:
        for installer in (PHP, NODEJS, COMPOSER, ZIP):
            status = await installer.install(ctx, pause=False)
            if status != 0:
                return status
        return await ctx.ensure_packages(*LARAVEL_PHP_EXTENSIONS)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(errors="replace")
    except OSError:
        return ""


LARAVEL_PHP_EXTENSIONS = ("php-xml", "php-mbstring", "php-curl", "php-zip", "php-intl", "php-bcmath", "php-gd")

PYTHON = PackageInstaller(
    key="python", label="Python",
    description="Python 3, pip, and development tools",
    binary="python3", package="python3",
    version_commands=(("python3", "--version"), ("pip3", "--version")),
    apt_packages=("python3", "python3-pip", "python3-venv", "python3-dev"),
    rpm_packages=("python3", "python3-pip", "python3-devel"),
)
NODEJS = NodeJSInstaller(
    key="nodejs", label="Node.js", title="Installing Node.js and npm",
    description="Node.js LTS and npm package manager",
    binary="node", package="nodejs",
    version_commands=(("node", "--version"), ("npm", "--version")),
)
GIT = GitInstaller(
    key="git", label="Git",
    description="Git version control system",
    binary="git", package="git",
    apt_packages=("git",),
)
CURL = PackageInstaller(
    key="curl", label="curl",
    description="Command-line tool for HTTP requests",
    binary="curl", package="curl",
    apt_packages=("curl",),
)
WGET = PackageInstaller(
    key="wget", label="wget",
    description="File download utility",
    binary="wget", package="wget",
    apt_packages=("wget",),
)
MAKE = MakeInstaller(
    key="make", label="make", title="Installing make and build tools",
    description="Build tools (make, gcc, g++)",
    binary="make", package="make",
    version_commands=(("make", "--version"), ("gcc", "--version")),
)
DOCKER = DockerInstaller(
    key="docker", label="Docker",
    description="Docker Engine",
    binary="docker", package="docker-ce",
    notes=("Note: You may need to log out and back in for Docker group changes to take effect.",),
)
DOCKER_COMPOSE = DockerComposeInstaller(
    key="docker-compose", label="Docker Compose", title="Installing Docker Compose (standalone)",
    description="Docker Compose (standalone)",
    binary="docker-compose",
    needs_package_manager=False,
)
ZIP = PackageInstaller(
    key="zip", label="zip/unzip", title="Installing zip and unzip",
    description="Archive utilities",
    binary="zip", version_args=("-v",), package="zip",
    apt_packages=("zip", "unzip"),
)
PHP = PackageInstaller(
    key="php", label="PHP",
    description="PHP and common extensions",
    binary="php", package="php",
    apt_packages=("php", "php-cli", "php-common", "php-mbstring", "php-xml", "php-curl", "php-zip", "php-mysql", "php-json"),
    rpm_packages=("php", "php-cli", "php-common", "php-mbstring", "php-xml", "php-curl", "php-zip", "php-mysqlnd", "php-json"),
)
OPENSSL = PackageInstaller(
    key="openssl", label="OpenSSL",
    description="OpenSSL toolkit",
    binary="openssl", version_args=("version",), package="openssl",
    apt_packages=("openssl",),
)
OPENSSH = OpenSSHInstaller(
    key="openssh", label="OpenSSH server",
    description="OpenSSH server with password login",
    binary="ssh", version_args=("-V",), package="openssh-server",
)
COMPOSER = PackageInstaller(
    key="composer", label="Composer",
    description="PHP dependency manager",
    binary="composer", package="composer",
    version_env={"COMPOSER_ALLOW_SUPERUSER": "1"},
    apt_packages=("curl", "php-cli", "composer"),
)
LARAVEL_DEPS = LaravelDepsInstaller(
    key="laravel-deps", label="Laravel dependencies", title="Installing Laravel Dependencies",
    description="PHP, Node.js, Composer, zip and PHP extensions",
)
VIM = PackageInstaller(
    key="vim", label="Vim",
    description="Vim text editor",
    binary="vim", package="vim",
    apt_packages=("vim",),
)
POSTMAN = PostmanInstaller(
    key="postman", label="Postman CLI",
    description="Postman CLI via npm",
    binary="postman",
)
