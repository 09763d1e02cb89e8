"""Pytest configuration and fixtures."""

from io import StringIO

import pytest
from rich.console import Console

from devsetup.config import Settings
from devsetup.context import RunContext
from devsetup.system.packages import PackageManager
from devsetup.system.runner import Command, CommandResult, CommandRunner


class RecordingRunner(CommandRunner):
    """CommandRunner that records argument vectors instead of spawning processes.

    Canned results are looked up by the longest matching argv prefix.
    """

    def __init__(self, console=None, dry_run=False, is_root=True):
        super().__init__(console=console or Console(file=StringIO()), dry_run=dry_run, is_root=is_root)
        self.commands: list[Command] = []
        self.responses: dict[tuple[str, ...], tuple[int, str]] = {}

    def respond(self, *argv: str, returncode: int = 0, output: str = "") -> None:
        self.responses[tuple(argv)] = (returncode, output)

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        return [c.argv for c in self.commands]

    async def _execute(self, command: Command, capture: bool) -> CommandResult:
        self.commands.append(command)
        best = None
        for prefix, response in self.responses.items():
            if command.argv[:len(prefix)] == prefix and (best is None or len(prefix) > len(best[0])):
                best = (prefix, response)
        returncode, output = best[1] if best else (0, "")
        return CommandResult(command=command, returncode=returncode, output=output)


@pytest.fixture(autouse=True)
def clear_availability_cache():
    """Clear the command availability cache before each test."""
    from devsetup.utils import _availability_cache
    _availability_cache.clear()
    yield
    _availability_cache.clear()


@pytest.fixture
def output():
    """Buffer capturing everything printed by the test context."""
    return StringIO()


@pytest.fixture
def runner(output):
    return RecordingRunner(console=Console(file=output, width=200))


@pytest.fixture
def make_ctx(output, runner):
    """Factory for a RunContext bound to the recording runner."""

    def _make(manager=PackageManager.APT, **kwargs):
        console = Console(file=output, width=200)
        return RunContext(
            console=console,
            runner=kwargs.pop("runner", runner),
            settings=kwargs.pop("settings", Settings()),
            err_console=console,
            detector=lambda: manager,
            **kwargs,
        )

    return _make


@pytest.fixture
def ctx(make_ctx):
    """Non-interactive apt context."""
    return make_ctx(non_interactive=True)


@pytest.fixture
def apt_upgrade_simulation():
    """Sample `apt-get -s dist-upgrade` output."""
    return """Reading package lists... Done
Building dependency tree... Done
Reading state information... Done
Calculating upgrade... Done
The following packages will be upgraded:
  libssl3 openssl wget
3 upgraded, 0 newly installed, 0 to remove and 0 not upgraded.
Inst libssl3 [3.0.2-0ubuntu1.14] (3.0.2-0ubuntu1.15 Ubuntu:22.04/jammy-updates [amd64])
Inst openssl [3.0.2-0ubuntu1.14] (3.0.2-0ubuntu1.15 Ubuntu:22.04/jammy-updates [amd64])
Inst wget [1.21.2-2ubuntu1] (1.21.2-2ubuntu1.1 Ubuntu:22.04/jammy-updates [amd64])
Conf libssl3 (3.0.2-0ubuntu1.15 Ubuntu:22.04/jammy-updates [amd64])
Conf openssl (3.0.2-0ubuntu1.15 Ubuntu:22.04/jammy-updates [amd64])
Conf wget (1.21.2-2ubuntu1.1 Ubuntu:22.04/jammy-updates [amd64])
"""


@pytest.fixture
def apt_policy_output():
    """Sample `apt-cache policy git` output."""
    return """git:
  Installed: 1:2.34.1-1ubuntu1.10
  Candidate: 1:2.34.1-1ubuntu1.11
  Version table:
     1:2.34.1-1ubuntu1.11 500
        500 http://archive.ubuntu.com/ubuntu jammy-updates/main amd64 Packages
"""


@pytest.fixture
def dnf_info_output():
    """Sample `dnf info git` output listing installed and available versions."""
    return """Installed Packages
Name         : git
Version      : 2.43.0
Release      : 1.fc39
Architecture : x86_64

Available Packages
Name         : git
Version      : 2.44.0
Release      : 1.fc39
Architecture : x86_64
"""
