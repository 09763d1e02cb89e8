"""Tests for the command-line entry points."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from devsetup import __main__ as cli
from devsetup.config import DEFAULT_GO_VERSION
from devsetup.installers import GOLANG
from devsetup.scripts import go_install, setup_database, setup_dev_env, setup_env


class TestInstallerParsers:
    """Tests for the installer command flags."""

    def test_tool_flags(self):
        parser = setup_env.COMMAND.build_parser()
        assert parser.parse_args(["--install-golang"]).action == "golang"
        assert parser.parse_args(["--install-docker-compose"]).action == "docker-compose"
        assert parser.parse_args(["--install-openssh"]).action == "openssh"
        assert parser.parse_args(["--github-clone"]).action == "github-clone"
        assert parser.parse_args(["--system-update"]).action == "system-update"
        assert parser.parse_args(["--install-all"]).action == "all"

    def test_package_list(self):
        args = setup_env.COMMAND.build_parser().parse_args(["--install-packages", "htop", "jq"])
        assert args.packages == ["htop", "jq"]

    def test_database_flags(self):
        parser = setup_database.COMMAND.build_parser()
        assert parser.parse_args(["--install-postgres"]).action == "postgresql"
        assert parser.parse_args(["--install-sqlite"]).action == "sqlite"

    def test_unknown_flag_exits_1(self):
        with pytest.raises(SystemExit) as exc_info:
            setup_dev_env.COMMAND.build_parser().parse_args(["--install-postgres"])
        assert exc_info.value.code == 1

    def test_one_action_at_a_time(self):
        with pytest.raises(SystemExit) as exc_info:
            setup_env.COMMAND.build_parser().parse_args(["--install-git", "--install-vim"])
        assert exc_info.value.code == 1

    @pytest.mark.parametrize("command", [setup_env.COMMAND, setup_dev_env.COMMAND, setup_database.COMMAND])
    def test_help_exits_0(self, command, capsys):
        with pytest.raises(SystemExit) as exc_info:
            command.build_parser().parse_args(["--help"])
        assert exc_info.value.code == 0
        assert "--dry-run" in capsys.readouterr().out


class TestInstallerMenus:
    """Tests for menu numbering."""

    @pytest.mark.parametrize("command,last", [
        (setup_env.COMMAND, 24),
        (setup_dev_env.COMMAND, 18),
        (setup_database.COMMAND, 8),
    ])
    def test_numbering(self, command, last, ctx):
        entries = command.menu_entries(ctx, command.build_parser())
        assert [e.number for e in entries] == list(range(1, last + 1))

    def test_setup_env_extras(self, ctx):
        entries = setup_env.COMMAND.menu_entries(ctx, setup_env.COMMAND.build_parser())
        labels = {e.number: e.label for e in entries}
        assert labels[10] == "Install Golang"
        assert labels[21] == "Install All Development Tools"
        assert labels[22] == "Show Installed Versions"
        assert labels[23] == "Help"
        assert labels[24] == "Clone GitHub Repo (HTTPS)"

    def test_database_entries(self, ctx):
        entries = setup_database.COMMAND.menu_entries(ctx, setup_database.COMMAND.build_parser())
        assert [e.label for e in entries[:5]] == [
            "Install PostgreSQL", "Install MySQL", "Install MongoDB", "Install Redis", "Install SQLite",
        ]
        assert entries[5].label == "Install All Databases"


class TestInstallerDispatch:
    """Tests for flag dispatch."""

    @pytest.mark.asyncio
    async def test_install_packages(self, ctx, runner):
        command = setup_env.COMMAND
        parser = command.build_parser()
        assert await command.dispatch(ctx, parser.parse_args(["--install-packages", "htop", "jq"]), parser) == 0
        assert runner.argvs == [("apt", "update"), ("apt", "install", "-y", "htop", "jq")]

    @pytest.mark.asyncio
    async def test_empty_package_list(self, ctx, runner, output):
        command = setup_env.COMMAND
        parser = command.build_parser()
        assert await command.dispatch(ctx, parser.parse_args(["--install-packages"]), parser) == 1
        assert "No packages provided." in output.getvalue()
        assert runner.commands == []

    @pytest.mark.asyncio
    async def test_single_tool(self, ctx, runner):
        command = setup_database.COMMAND
        parser = command.build_parser()
        assert await command.dispatch(ctx, parser.parse_args(["--install-sqlite"]), parser) == 0
        assert ("apt", "install", "-y", "sqlite3", "libsqlite3-dev") in runner.argvs

    @pytest.mark.asyncio
    async def test_system_update_flag(self, ctx, runner):
        command = setup_env.COMMAND
        parser = command.build_parser()
        assert await command.dispatch(ctx, parser.parse_args(["--system-update"]), parser) == 0
        assert runner.argvs[0] == ("apt", "update")
        assert runner.argvs[-1] == ("apt", "autoclean", "-y")

    def test_requires_root(self, capsys):
        with patch("devsetup.scripts.common.is_root", return_value=False):
            assert setup_env.main(["--install-git"]) == 1
        assert "Please run as root or use sudo." in capsys.readouterr().err


class TestGoInstall:
    """Tests for go-install."""

    def test_default_version(self):
        assert go_install.build_parser().parse_args([]).go_version == DEFAULT_GO_VERSION

    def test_installer_for(self):
        installer = go_install.installer_for("go1.22.0")
        assert installer.version == "1.22.0"
        assert installer.install_downloader is False
        assert GOLANG.version == ""

    @pytest.mark.asyncio
    async def test_confirm_declined(self, make_ctx, runner, output):
        ctx = make_ctx()
        with patch("devsetup.utils.prompt.ask", new=AsyncMock(return_value="n")):
            assert await go_install.install_go(ctx, "1.22.0", ask=True) == 0
        assert "Installation canceled." in output.getvalue()
        assert runner.commands == []

    @pytest.mark.asyncio
    async def test_no_downloader(self, ctx):
        with patch("devsetup.installers.golang.find_downloader", return_value=None):
            assert await go_install.install_go(ctx, "1.22.0") == 3

    def test_runs_without_root(self):
        with patch("devsetup.scripts.common.is_root", return_value=False), \
                patch.object(go_install, "run_async", return_value=0) as run_async:
            assert go_install.main(["1.22.0"]) == 0
        run_async.assert_called_once()


class TestUmbrella:
    """Tests for the devsetup umbrella command."""

    def test_no_command(self, capsys):
        assert cli.main([]) == 1
        assert "setup-env" in capsys.readouterr().out

    def test_forwards_arguments(self):
        handler = MagicMock(return_value=0)
        with patch.dict(cli.COMMANDS, {"go-install": (handler, "Install Go")}):
            assert cli.main(["go-install", "1.22.0", "--confirm"]) == 0
        handler.assert_called_once_with(["1.22.0", "--confirm"])

    def test_exit_status_propagates(self):
        handler = MagicMock(return_value=3)
        with patch.dict(cli.COMMANDS, {"system-reboot": (handler, "Reboot")}):
            assert cli.main(["system-reboot", "-s"]) == 3
