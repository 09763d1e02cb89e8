"""Tests for system-update."""

from unittest.mock import AsyncMock, patch

import pytest

from devsetup.scripts.system_update import (
    _run,
    build_parser,
    full_upgrade,
    menu_entries,
    parse_new_release,
    release_upgrade,
    show_summary,
    standard_update,
)
from devsetup.system.packages import PackageManager


RELEASE_CHECK = """Checking for a new Ubuntu release
New release '24.04.1 LTS' available.
Run 'do-release-upgrade' to upgrade to it.
"""


class TestParseNewRelease:
    """Tests for parse_new_release."""

    def test_quoted(self):
        assert parse_new_release(RELEASE_CHECK) == "24.04.1"

    def test_none(self):
        assert parse_new_release("Checking for a new Ubuntu release\nNo new release found.\n") == ""


class TestStandardUpdate:
    """Tests for standard_update."""

    @pytest.mark.asyncio
    async def test_apt(self, ctx, runner):
        assert await standard_update(ctx) == 0
        assert runner.argvs == [
            ("apt", "update"),
            ("apt", "upgrade", "-y"),
            ("apt", "dist-upgrade", "-y"),
            ("apt", "autoremove", "-y"),
            ("apt", "autoclean", "-y"),
        ]

    @pytest.mark.asyncio
    async def test_dnf_autoremove_best_effort(self, make_ctx, runner):
        runner.respond("dnf", "autoremove", returncode=1)
        ctx = make_ctx(manager=PackageManager.DNF, non_interactive=True)
        assert await standard_update(ctx) == 0
        assert runner.argvs[-1] == ("dnf", "clean", "all")

    @pytest.mark.asyncio
    async def test_stops_on_failure(self, ctx, runner):
        runner.respond("apt", "upgrade", returncode=100)
        assert await standard_update(ctx) == 100
        assert len(runner.commands) == 2

    @pytest.mark.asyncio
    async def test_unsupported(self, make_ctx, runner, output):
        ctx = make_ctx(manager=PackageManager.UNKNOWN, non_interactive=True)
        assert await standard_update(ctx) == 1
        assert runner.commands == []
        assert "Unsupported package manager" in output.getvalue()

    @pytest.mark.asyncio
    async def test_update_only_is_quiet(self, ctx, runner):
        parser = build_parser()
        assert await _run(ctx, parser.parse_args(["--update-only"]), parser) == 0
        assert ("apt", "upgrade", "-y", "-qq") in runner.argvs
        assert ("apt", "update", "-qq") in runner.argvs


class TestFullUpgrade:
    """Tests for full_upgrade."""

    @pytest.mark.asyncio
    async def test_previews_then_upgrades(self, ctx, runner, output, apt_upgrade_simulation):
        runner.respond("apt-get", "-s", "dist-upgrade", output=apt_upgrade_simulation)
        assert await full_upgrade(ctx) == 0
        assert runner.argvs[-1] == ("apt-get", "-y", "dist-upgrade")
        text = output.getvalue()
        assert "eligible for full upgrade" in text
        assert "Inst wget" in text

    @pytest.mark.asyncio
    async def test_nothing_pending(self, ctx, runner, output):
        assert await full_upgrade(ctx) == 0
        assert runner.argvs == [("apt-get", "-s", "dist-upgrade")]
        assert "System is up to date." in output.getvalue()

    @pytest.mark.asyncio
    async def test_declined(self, make_ctx, runner, apt_upgrade_simulation):
        runner.respond("apt-get", "-s", "dist-upgrade", output=apt_upgrade_simulation)
        ctx = make_ctx()
        with patch("devsetup.utils.prompt.ask", new=AsyncMock(side_effect=["n", ""])):
            assert await full_upgrade(ctx) == 0
        assert ("apt-get", "-y", "dist-upgrade") not in runner.argvs

    @pytest.mark.asyncio
    async def test_requires_apt(self, make_ctx, runner, output):
        ctx = make_ctx(manager=PackageManager.DNF, non_interactive=True)
        assert await full_upgrade(ctx) == 1
        assert runner.commands == []
        assert "Full upgrade requires apt" in output.getvalue()


class TestReleaseUpgrade:
    """Tests for release_upgrade."""

    @pytest.mark.asyncio
    async def test_upgrade_available(self, ctx, runner, output):
        runner.respond("lsb_release", "-rs", output="22.04\n")
        runner.respond("do-release-upgrade", "-c", output=RELEASE_CHECK)
        assert await release_upgrade(ctx) == 0
        assert runner.argvs[-1] == ("do-release-upgrade",)
        text = output.getvalue()
        assert "You are currently running Ubuntu 22.04." in text
        assert "A new Ubuntu version is available: 24.04.1" in text

    @pytest.mark.asyncio
    async def test_already_latest(self, ctx, runner, output):
        runner.respond("do-release-upgrade", "-c", returncode=1, output="No new release found.\n")
        assert await release_upgrade(ctx) == 0
        assert ("do-release-upgrade",) not in runner.argvs
        assert "already running the latest supported version" in output.getvalue()


class TestMenu:
    """Tests for the summary screen and menu."""

    @pytest.mark.asyncio
    async def test_summary(self, ctx, runner, output, apt_upgrade_simulation):
        runner.respond("apt-get", "-s", output=apt_upgrade_simulation)
        runner.respond("lsb_release", "-rs", output="22.04\n")
        await show_summary(ctx)
        text = output.getvalue()
        assert "Current Ubuntu Version: 22.04" in text
        assert "Packages available for upgrade: 3" in text
        assert "  libssl3" in text

    def test_entries(self, ctx):
        entries = menu_entries(ctx, build_parser())
        assert [e.number for e in entries] == [1, 2, 3, 4]
        assert entries[0].label == "Standard Update & Cleanup"

    def test_actions_exclusive(self):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--update-only", "--full-upgrade"])
        assert exc_info.value.code == 1
