"""Database server installers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..context import RunContext
from ..system.packages import PackageManager
from ..system.runner import Command, elevated, write_file
from .base import PackageInstaller, ServiceInstaller, fetch_key_commands, release_codename


MONGODB_SERIES = "7.0"
MONGODB_KEY = f"https://www.mongodb.org/static/pgp/server-{MONGODB_SERIES}.asc"
MONGODB_KEYRING = f"/usr/share/keyrings/mongodb-server-{MONGODB_SERIES}.gpg"
MONGODB_RPM_REPO = f"""[mongodb-org-{MONGODB_SERIES}]
name=MongoDB Repository
baseurl=https://repo.mongodb.org/yum/redhat/$releasever/mongodb-org/{MONGODB_SERIES}/x86_64/
gpgcheck=1
enabled=1
gpgkey={MONGODB_KEY}
"""


@dataclass
class PostgreSQLInstaller(ServiceInstaller):
    """PostgreSQL; RHEL-family hosts need an explicit initdb."""

    async def post_steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        commands = []
        if manager.rhel_family:
            commands.append(elevated("postgresql-setup", "--initdb", best_effort=True))
        return commands + await super().post_steps(ctx, manager, workdir)


@dataclass
class MongoDBInstaller(ServiceInstaller):
    """MongoDB Community from the MongoDB repository."""

    async def pre_steps(self, ctx: RunContext, manager: PackageManager, workdir: Path) -> list[Command]:
        if manager is PackageManager.APT:
            codename = await release_codename(ctx)
            return [
                *fetch_key_commands(MONGODB_KEY, MONGODB_KEYRING, workdir),
                write_file(
                    f"/etc/apt/sources.list.d/mongodb-org-{MONGODB_SERIES}.list",
                    f"deb [ arch=amd64,arm64 signed-by={MONGODB_KEYRING} ] "
                    f"https://repo.mongodb.org/apt/ubuntu {codename}/mongodb-org/{MONGODB_SERIES} multiverse\n",
                ),
            ]
        return [write_file(f"/etc/yum.repos.d/mongodb-org-{MONGODB_SERIES}.repo", MONGODB_RPM_REPO)]


POSTGRESQL = PostgreSQLInstaller(
    key="postgresql", flag_name="postgres", label="PostgreSQL",
    description="PostgreSQL database server and client",
    binary="psql", package="postgresql",
    apt_packages=("postgresql", "postgresql-contrib", "postgresql-client"),
    rpm_packages=("postgresql-server", "postgresql-contrib"),
    apt_service="postgresql",
    notes=("Note: Default user is 'postgres'. Use 'sudo -u postgres psql' to connect.",),
)
MYSQL = ServiceInstaller(
    key="mysql", label="MySQL",
    description="MySQL database server and client",
    binary="mysql", package="mysql-server",
    apt_packages=("mysql-server", "mysql-client"),
    rpm_packages=("mysql-server", "mysql"),
    apt_service="mysql",
    rpm_service="mysqld",
    notes=("Note: Run 'sudo mysql_secure_installation' to secure your MySQL installation.",),
)
MONGODB = MongoDBInstaller(
    key="mongodb", label="MongoDB",
    description="MongoDB NoSQL database",
    binary="mongod", package="mongodb-org",
    apt_packages=("mongodb-org",),
    apt_service="mongod",
    notes=("Note: MongoDB is running on default port 27017. Use 'mongosh' to connect.",),
)
REDIS = ServiceInstaller(
    key="redis", label="Redis",
    description="Redis in-memory data store",
    binary="redis-server", package="redis",
    apt_packages=("redis-server",),
    rpm_packages=("redis",),
    apt_service="redis-server",
    rpm_service="redis",
    notes=("Note: Redis is running on default port 6379. Use 'redis-cli' to connect.",),
)
SQLITE = PackageInstaller(
    key="sqlite", label="SQLite",
    description="SQLite lightweight database",
    binary="sqlite3", package="sqlite3",
    apt_packages=("sqlite3", "libsqlite3-dev"),
    rpm_packages=("sqlite", "sqlite-devel"),
    notes=("Note: SQLite is a file-based database. Use 'sqlite3 <database-file>' to create/open a database.",),
)
