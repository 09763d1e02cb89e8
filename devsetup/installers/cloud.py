"""Cloud and infrastructure CLI installers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..context import RunContext
from ..system.host import AWS_ARCHITECTURES, map_architecture
from ..system.packages import PackageManager, install_commands
from ..system.runner import Command, elevated, plain, write_file
from .base import PackageInstaller, ToolInstaller, deb_architecture, fetch_key_commands, release_codename


MICROSOFT_KEY = "https://packages.microsoft.com/keys/microsoft.asc"
MICROSOFT_KEYRING = "/etc/apt/keyrings/microsoft.gpg"
GOOGLE_KEY = "https://packages.cloud.google.com/apt/doc/apt-key.gpg"
GOOGLE_KEYRING = "/usr/share/keyrings/cloud.google.gpg"
HASHICORP_KEY = "https://apt.releases.hashicorp.com/gpg"
HASHICORP_KEYRING = "/usr/share/keyrings/hashicorp-archive-keyring.gpg"

AZURE_RPM_REPO = """[azure-cli]
name=Azure CLI
baseurl=https://packages.microsoft.com/yumrepos/azure-cli
enabled=1
gpgcheck=1
gpgkey=https://packages.microsoft.com/keys/microsoft.asc
"""

GOOGLE_RPM_REPO = """[google-cloud-sdk]
name=Google Cloud SDK
baseurl=https://packages.cloud.google.com/yum/repos/cloud-sdk-el8-x86_64
enabled=1
gpgcheck=1
repo_gpgcheck=0
gpgkey=https://packages.cloud.google.com/yum/doc/yum-key.gpg
       https://packages.cloud.google.com/yum/doc/rpm-package-key.gpg
"""


@dataclass
class AWSCLIInstaller(ToolInstaller):
    """AWS CLI v2 through the official zip installer."""

    async def steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        arch = map_architecture(AWS_ARCHITECTURES)
        archive = workdir / "awscliv2.zip"
        return [
            *install_commands(manager, ("curl", "unzip")),
            plain("curl", "-fsSL", f"https://awscli.amazonaws.com/awscli-exe-linux-{arch}.zip", "-o", str(archive)),
            plain("unzip", "-q", str(archive), "-d", str(workdir)),
            elevated(str(workdir / "aws" / "install"), "--update"),
        ]


@dataclass
class AzureCLIInstaller(PackageInstaller):
    """Azure CLI from the Microsoft repository."""

    async def pre_steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        if manager is PackageManager.APT:
            arch = await deb_architecture(ctx)
            codename = await release_codename(ctx)
            return [
                *install_commands(manager, ("ca-certificates", "curl", "apt-transport-https", "lsb-release", "gnupg")),
                *fetch_key_commands(MICROSOFT_KEY, MICROSOFT_KEYRING, workdir),
                elevated("chmod", "go+r", MICROSOFT_KEYRING),
                write_file(
                    "/etc/apt/sources.list.d/azure-cli.list",
                    f"deb [arch={arch} signed-by={MICROSOFT_KEYRING}] "
                    f"https://packages.microsoft.com/repos/azure-cli/ {codename} main\n",
                ),
            ]
        return [
            elevated("rpm", "--import", MICROSOFT_KEY),
            write_file("/etc/yum.repos.d/azure-cli.repo", AZURE_RPM_REPO),
        ]


@dataclass
class GoogleCloudInstaller(PackageInstaller):
    """Google Cloud SDK from the Google repository."""

    async def pre_steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        commands = install_commands(manager, ("curl", "gnupg"))
        if manager is PackageManager.APT:
            return commands + [
                write_file(
                    "/etc/apt/sources.list.d/google-cloud-sdk.list",
                    f"deb [signed-by={GOOGLE_KEYRING}] https://packages.cloud.google.com/apt cloud-sdk main\n",
                ),
                elevated("rm", "-f", GOOGLE_KEYRING),
                *fetch_key_commands(GOOGLE_KEY, GOOGLE_KEYRING, workdir),
            ]
        return commands + [write_file("/etc/yum.repos.d/google-cloud-sdk.repo", GOOGLE_RPM_REPO)]


@dataclass
class TerraformInstaller(PackageInstaller):
    """Terraform from the HashiCorp repository."""

    async def pre_steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        commands = install_commands(manager, ("wget",))
        if manager is PackageManager.APT:
            codename = await release_codename(ctx)
            key_file = workdir / "hashicorp.asc"
            return commands + [
                plain("wget", "-q", "-O", str(key_file), HASHICORP_KEY),
                elevated("gpg", "--dearmor", "--yes", "-o", HASHICORP_KEYRING, str(key_file)),
                write_file(
                    "/etc/apt/sources.list.d/hashicorp.list",
                    f"deb [signed-by={HASHICORP_KEYRING}] https://apt.releases.hashicorp.com {codename} main\n",
                ),
            ]
        if manager is PackageManager.YUM:
            return commands + [
                *install_commands(manager, ("yum-utils",)),
                elevated("yum-config-manager", "--add-repo", "https://rpm.releases.hashicorp.com/RHEL/hashicorp.repo"),
            ]
        return commands + [
            *install_commands(manager, ("dnf-plugins-core",)),
            elevated("dnf", "config-manager", "--add-repo", "https://rpm.releases.hashicorp.com/fedora/hashicorp.repo"),
        ]


AWS = AWSCLIInstaller(
    key="aws", label="AWS CLI",
    description="Amazon Web Services CLI",
    binary="aws",
)
AZURE = AzureCLIInstaller(
    key="azure", label="Azure CLI",
    description="Microsoft Azure CLI",
    binary="az", version_args=("version",), package="azure-cli",
    apt_packages=("azure-cli",),
)
GCLOUD = GoogleCloudInstaller(
    key="gcloud", label="Google Cloud SDK",
    description="Google Cloud Platform tools",
    binary="gcloud", version_args=("version",), package="google-cloud-sdk",
    apt_packages=("google-cloud-sdk",),
)
TERRAFORM = TerraformInstaller(
    key="terraform", label="Terraform",
    description="Infrastructure as Code tool",
    binary="terraform", package="terraform",
    apt_packages=("terraform",),
)
