"""Tool and database installers."""

from .base import PackageInstaller, ServiceInstaller, ToolInstaller
from .cloud import AWS, AZURE, GCLOUD, TERRAFORM
from .databases import MONGODB, MYSQL, POSTGRESQL, REDIS, SQLITE
from .dev_tools import (
    COMPOSER,
    CURL,
    DOCKER,
    DOCKER_COMPOSE,
    GIT,
    LARAVEL_DEPS,
    MAKE,
    NODEJS,
    OPENSSH,
    OPENSSL,
    PHP,
    POSTMAN,
    PYTHON,
    VIM,
    WGET,
    ZIP,
)
from .git_clone import clone_repository
from .golang import GOLANG, GoInstaller

# Menu order of the full developer catalogue
DEV_TOOLS: tuple[ToolInstaller, ...] = (
    PYTHON, NODEJS, GIT, CURL, WGET, MAKE, DOCKER, DOCKER_COMPOSE, ZIP, GOLANG,
    PHP, AWS, AZURE, GCLOUD, TERRAFORM, OPENSSL, COMPOSER, LARAVEL_DEPS, VIM, POSTMAN,
)

# Order used by "install all"
INSTALL_ALL_ORDER: tuple[ToolInstaller, ...] = (
    CURL, WGET, GIT, MAKE, ZIP, PYTHON, NODEJS, GOLANG, PHP, DOCKER, DOCKER_COMPOSE,
    AWS, AZURE, GCLOUD, TERRAFORM, OPENSSL, COMPOSER, LARAVEL_DEPS, VIM, POSTMAN,
)

CORE_DEV_TOOLS: tuple[ToolInstaller, ...] = DEV_TOOLS[:15]

DATABASES: tuple[ToolInstaller, ...] = (POSTGRESQL, MYSQL, MONGODB, REDIS, SQLITE)

__all__ = [
    "CORE_DEV_TOOLS",
    "DATABASES",
    "DEV_TOOLS",
    "GOLANG",
    "INSTALL_ALL_ORDER",
    "OPENSSH",
    "GoInstaller",
    "PackageInstaller",
    "ServiceInstaller",
    "ToolInstaller",
    "clone_repository",
]
