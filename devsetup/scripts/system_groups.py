"""system-groups: admin rights, group membership and file ownership."""

from __future__ import annotations

import argparse
import logging
import platform
from pathlib import Path
from typing import Sequence

from rich.markup import escape

from ..app import MenuEntry, SetupApp
from ..context import RULE, ExitCode, RunContext
from ..system.host import Distribution, current_user, detect_distribution, read_os_release, user_exists
from ..system.runner import elevated, plain
from .common import ScriptArgumentParser, add_common_arguments, build_context, run_async


logger = logging.getLogger(__name__)

TITLE = "System Administration Tool"
EXIT_NUMBER = 10
GROUP_FILE = Path("/etc/group")

# Ownership changes are refused at and below these paths
PROTECTED_PATHS = tuple(Path(p) for p in (
    "/bin", "/sbin", "/usr/bin", "/usr/sbin", "/usr/lib", "/usr/lib64",
    "/etc", "/boot", "/sys", "/proc", "/dev", "/run",
    "/root", "/lib", "/lib64", "/opt/aws", "/opt/amazon",
    "/usr", "/var/lib/dpkg", "/var/lib/rpm",
))
ROOT_PATH = Path("/")

CUSTOM_GROUPS = ("frontEnd", "appDev", "dataBase", "webmasters")

EPILOG = """\
Operations run in the order given, for example:
  system-groups --makeAdmin                         Make the current user an admin
  system-groups --addGroup developers               Create 'developers'
  system-groups --addUser mike docker               Add 'mike' to 'docker'
  system-groups --takeOwnership /var/www/html       Take ownership for the current user
  system-groups --force --addGroup dev --addUser mike dev
  system-groups --force --makeAdmin mike --takeOwnership /var/www/html

Run without options to show system info and open the interactive menu."""


class OperationAction(argparse.Action):
    """Append (operation, arguments) to namespace.operations in command-line order."""

    def __init__(self, option_strings, dest, max_args: int | None = None, **kwargs) -> None:
        self.max_args = max_args
        super().__init__(option_strings, dest, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        if values is None:
            args: list[str] = []
        elif isinstance(values, str):
            args = [values]
        else:
            args = list(values)
        if self.max_args is not None and len(args) > self.max_args:
            parser.error(f"{option_string} accepts at most {self.max_args} arguments")
        operations = list(getattr(namespace, "operations", None) or [])
        operations.append((self.dest, args))
        namespace.operations = operations


def is_protected(path: Path) -> bool:
    """True when path resolves to '/' or to a protected directory or anything below one."""
    resolved = path.resolve()
    if resolved == ROOT_PATH:
        return True
    return any(resolved == entry or entry in resolved.parents for entry in PROTECTED_PATHS)


def build_parser() -> ScriptArgumentParser:
    parser = ScriptArgumentParser(
        prog="system-groups",
        description="Manage admin rights, groups and file ownership.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_common_arguments(parser)
    op = parser.add_argument
    op("--makeAdmin", dest="make_admin", action=OperationAction, nargs="?", metavar="USER",
       help="Make user an admin (default: current user)")
    op("--takeOwnership", dest="take_ownership", action=OperationAction, nargs="+", max_args=2,
       metavar="ARG", help="PATH [USER]: take ownership of files/folders")
    op("--addUser", dest="add_user", action=OperationAction, nargs=2, metavar=("USER", "GROUP"),
       help="Add user to group")
    op("--removeUser", dest="remove_user", action=OperationAction, nargs=2, metavar=("USER", "GROUP"),
       help="Remove user from group")
    op("--addGroup", dest="add_group", action=OperationAction, nargs=1, metavar="GROUP",
       help="Create new group")
    op("--deleteGroup", dest="delete_group", action=OperationAction, nargs=1, metavar="GROUP",
       help="Delete group")
    op("--viewUser", dest="view_user", action=OperationAction, nargs="?", metavar="USER",
       help="View user's groups (default: current user)")
    op("--viewGroups", dest="view_groups", action=OperationAction, nargs=0, help="View all groups")
    op("--createCustomGroups", dest="create_custom_groups", action=OperationAction, nargs=0,
       help=f"Create the groups {', '.join(CUSTOM_GROUPS)}")
    op("--addCustomGroups", dest="add_custom_groups", action=OperationAction, nargs="?", metavar="USER",
       help="Add user to the custom groups (default: current user)")
    op("--info", dest="info", action=OperationAction, nargs=0, help="Show system info")
    op("--menu", dest="menu", action=OperationAction, nargs=0, help="Launch interactive menu")
    parser.add_argument("--force", action="store_true", help="Silent mode (no prompts for automation)")
    parser.set_defaults(operations=[])
    return parser


class GroupManager:
    """Group and ownership operations for one invocation."""

    def __init__(self, ctx: RunContext, distribution: Distribution | None = None, group_file: Path = GROUP_FILE) -> None:
        self.ctx = ctx
        self.distribution = distribution if distribution is not None else detect_distribution()
        self.group_file = group_file

    @property
    def admin_group(self) -> str:
        return self.distribution.admin_group

    @property
    def web_user(self) -> str:
        return self.distribution.web_user

    async def group_exists(self, group: str) -> bool:
        result = await self.ctx.runner.capture(plain("getent", "group", group))
        return result.ok

    async def add_to_group(self, user: str, group: str) -> int:
        return (await self.ctx.runner.run(elevated("usermod", "--append", "--groups", group, user))).returncode

    def _group_lines(self, needle: str = "") -> list[str]:
        try:
            lines = self.group_file.read_text().splitlines()
        except OSError as e:
            self.ctx.error(f"Cannot read {self.group_file}: {e}")
            return []
        return [line for line in lines if needle in line]

    def show_distribution(self) -> None:
        ctx = self.ctx
        if self.distribution is Distribution.UNKNOWN:
            ctx.warn("Warning: Unknown distribution. Using generic settings.")
        ctx.say(f"Detected distribution: {self.distribution.value}")
        ctx.say(f"Admin group: {self.admin_group}")
        ctx.say(f"Web user: {self.web_user}")

    async def show_info(self) -> int:
        ctx = self.ctx
        ctx.banner("System Groups Management Tool")
        ctx.say(f"Current user: {escape(current_user())}")
        ctx.say(f"Current system: {platform.system()} {platform.release()}")
        pretty = read_os_release().get("PRETTY_NAME")
        if pretty:
            ctx.say(f"Distribution: {escape(pretty)}")
        self.show_distribution()
        ctx.say(RULE)
        return ExitCode.OK

    async def make_admin(self, user: str | None = None) -> int:
        ctx = self.ctx
        user = user or current_user()
        ctx.say(f"Making user '{escape(user)}' an administrator...")
        logger.info("Making %s an admin via %s", user, self.admin_group)

        if not await self.group_exists(self.admin_group):
            ctx.error(f"Admin group '{self.admin_group}' not found on this system")
            return ExitCode.FAILURE
        ctx.say(f"Adding {escape(user)} to admin group: {self.admin_group}")
        status = await self.add_to_group(user, self.admin_group)
        if status != 0:
            ctx.error(f"Failed to add '{user}' to '{self.admin_group}'")
            return status
        ctx.success(f"SUCCESS: User '{escape(user)}' now has admin privileges")

        if await self.group_exists(self.web_user):
            if self.ctx.force:
                ctx.say(f"Adding {escape(user)} to web group: {self.web_user} (force mode)")
                return await self.add_to_group(user, self.web_user)
            if await ctx.confirm(f"Also add {user} to web group '{self.web_user}'?"):
                ctx.say(f"Adding {escape(user)} to web group: {self.web_user}")
                return await self.add_to_group(user, self.web_user)
        return ExitCode.OK

    async def take_ownership(self, path: str, user: str | None = None) -> int:
        ctx = self.ctx
        user = user or current_user()
        if not path:
            ctx.error("takeOwnership requires a path")
            return ExitCode.FAILURE

        target = Path(path)
        if is_protected(target):
            ctx.error(f"Cannot change ownership of system directory '{path}'")
            ctx.say("This could break your system. Blocked for safety.")
            ctx.say("If you really need to do this, use chown directly with extreme caution.")
            logger.warning("Blocked ownership change of protected path %s", path)
            return ExitCode.FAILURE
        if not target.exists():
            ctx.error(f"Path '{path}' does not exist")
            return ExitCode.FAILURE
        if user == "root" and not ctx.runner.is_root:
            ctx.error("Cannot change ownership to root user unless you are root")
            return ExitCode.FAILURE

        ctx.say(f"Taking ownership of '{escape(path)}' for user '{escape(user)}'...")
        listing = await ctx.runner.capture(plain("ls", "-la", path))
        if listing.ok:
            ctx.say("Current ownership:")
            ctx.say(escape("\n".join(listing.output.splitlines()[:5])))

        if not ctx.force and not await ctx.confirm(f"Change ownership of '{path}' to '{user}'?"):
            ctx.say("Operation cancelled.")
            return ExitCode.FAILURE

        logger.info("Changing ownership of %s to %s", path, user)
        status = (await ctx.runner.run(elevated("chown", "-R", f"{user}:{user}", path))).returncode
        if status != 0:
            ctx.error("Failed to change ownership")
            return status
        ctx.success(f"SUCCESS: Successfully changed ownership of '{escape(path)}' to '{escape(user)}'")

        if not ctx.force and await ctx.confirm("Set full read/write permissions for owner?"):
            status = (await ctx.runner.run(elevated("chmod", "-R", "755", path))).returncode
            if status == 0:
                ctx.success("SUCCESS: Set permissions to 755 (owner: read/write/execute, others: read/execute)")
        return status

    async def add_user(self, user: str, group: str) -> int:
        ctx = self.ctx
        if not user or not group:
            ctx.error("addUser requires a username and a group name")
            return ExitCode.FAILURE
        if not user_exists(user):
            ctx.error(f"User '{user}' does not exist")
            return ExitCode.FAILURE

        if not await self.group_exists(group):
            if ctx.force:
                ctx.say(f"Creating group '{escape(group)}' (force mode)...")
            else:
                ctx.error(f"Group '{group}' does not exist")
                if not await ctx.confirm(f"Create group '{group}'?"):
                    return ExitCode.FAILURE
            status = await self.add_group(group)
            if status != 0:
                return status

        ctx.say(f"Adding user '{escape(user)}' to group '{escape(group)}'...")
        status = await self.add_to_group(user, group)
        if status != 0:
            ctx.error("Failed to add user to group")
            return status
        ctx.success(f"SUCCESS: Successfully added '{escape(user)}' to group '{escape(group)}'")
        groups = await ctx.runner.capture(plain("groups", user))
        if groups.ok:
            ctx.say(f"User '{escape(user)}' is now in these groups:")
            ctx.say(escape(groups.output.strip()))
        return ExitCode.OK

    async def remove_user(self, user: str, group: str) -> int:
        if not user or not group:
            self.ctx.error("removeUser requires a username and a group name")
            return ExitCode.FAILURE
        self.ctx.say(f"Removing user '{escape(user)}' from group '{escape(group)}'...")
        return (await self.ctx.runner.run(elevated("gpasswd", "--delete", user, group))).returncode

    async def add_group(self, group: str) -> int:
        if not group:
            self.ctx.error("addGroup requires a group name")
            return ExitCode.FAILURE
        self.ctx.say(f"Creating group '{escape(group)}'...")
        status = (await self.ctx.runner.run(elevated("groupadd", group))).returncode
        if status == 0:
            self.ctx.success(f"SUCCESS: Created group '{escape(group)}'")
        return status

    async def delete_group(self, group: str) -> int:
        if not group:
            self.ctx.error("deleteGroup requires a group name")
            return ExitCode.FAILURE
        if not await self.group_exists(group):
            self.ctx.say(f"Group '{escape(group)}' does not exist")
            return ExitCode.OK
        self.ctx.say(f"Deleting group: {escape(group)}")
        return (await self.ctx.runner.run(elevated("groupdel", group))).returncode

    async def view_user(self, user: str | None = None) -> int:
        ctx = self.ctx
        user = user or current_user()
        ctx.say(f"Groups for user '{escape(user)}':")
        result = await ctx.runner.capture(plain("groups", user))
        ctx.say(escape(result.output.strip()) if result.ok else f"User '{escape(user)}' not found")
        ctx.say()
        ctx.say("Detailed group membership:")
        for line in self._group_lines(user):
            ctx.say(escape(line))
        return ExitCode.OK

    async def view_groups(self) -> int:
        self.ctx.say("All system groups and their members:")
        self.ctx.say(RULE)
        for line in self._group_lines():
            self.ctx.say(escape(line))
        return ExitCode.OK

    async def create_custom_groups(self) -> int:
        self.ctx.say("Creating custom development groups...")
        status = 0
        for group in CUSTOM_GROUPS:
            if await self.group_exists(group):
                self.ctx.say(f"Group '{group}' already exists")
                continue
            status = await self.add_group(group) or status
        return status

    async def add_custom_groups(self, user: str | None = None) -> int:
        user = user or current_user()
        self.ctx.say(f"Adding user '{escape(user)}' to custom development groups...")
        status = 0
        for group in CUSTOM_GROUPS:
            if not await self.group_exists(group):
                self.ctx.warn(f"Warning: Group '{group}' does not exist. Create it first.")
                continue
            self.ctx.say(f"Adding {escape(user)} to {group}")
            status = await self.add_to_group(user, group) or status
        return status

    # Interactive menu

    def menu_entries(self) -> list[MenuEntry]:
        ctx = self.ctx

        async def ask_user() -> str:
            return await ctx.ask("Enter username (or press Enter for current user)", require_input=True)

        async def then_pause(status: int) -> int:
            await ctx.pause()
            return status

        async def make_admin() -> int:
            return await then_pause(await self.make_admin(await ask_user()))

        async def take_ownership() -> int:
            path = await ctx.ask("Enter path to take ownership of", require_input=True)
            return await then_pause(await self.take_ownership(path, await ask_user()))

        async def add_user() -> int:
            user = await ctx.ask("Enter username", require_input=True)
            group = await ctx.ask("Enter group name", require_input=True)
            return await then_pause(await self.add_user(user, group))

        async def remove_user() -> int:
            user = await ctx.ask("Enter username", require_input=True)
            group = await ctx.ask("Enter group name", require_input=True)
            return await then_pause(await self.remove_user(user, group))

        async def add_group() -> int:
            return await then_pause(await self.add_group(await ctx.ask("Enter new group name", require_input=True)))

        async def delete_group() -> int:
            return await then_pause(await self.delete_group(await ctx.ask("Enter group name to delete", require_input=True)))

        async def view_user() -> int:
            return await then_pause(await self.view_user(await ask_user()))

        async def view_groups() -> int:
            return await then_pause(await self.view_groups())

        async def show_info() -> int:
            return await then_pause(await self.show_info())

        return [
            MenuEntry(1, "Make user an admin", make_admin),
            MenuEntry(2, "Take ownership of files/folders", take_ownership),
            MenuEntry(3, "Add user to group", add_user),
            MenuEntry(4, "Remove user from group", remove_user),
            MenuEntry(5, "Create new group", add_group),
            MenuEntry(6, "Delete group", delete_group),
            MenuEntry(7, "View user's groups", view_user),
            MenuEntry(8, "View all groups", view_groups),
            MenuEntry(9, "Show system info", show_info),
        ]

    async def menu(self) -> int:
        app = SetupApp(self.ctx, title=TITLE, entries=self.menu_entries(), exit_number=EXIT_NUMBER)
        return await app.run()

    async def apply(self, operation: str, args: Sequence[str]) -> int:
        """Run one command-line operation."""
        if operation == "make_admin":
            return await self.make_admin(*args)
        if operation == "take_ownership":
            return await self.take_ownership(*args)
        if operation == "add_user":
            return await self.add_user(*args)
        if operation == "remove_user":
            return await self.remove_user(*args)
        if operation == "add_group":
            return await self.add_group(*args)
        if operation == "delete_group":
            return await self.delete_group(*args)
        if operation == "view_user":
            return await self.view_user(*args)
        if operation == "view_groups":
            return await self.view_groups()
        if operation == "create_custom_groups":
            return await self.create_custom_groups()
        if operation == "add_custom_groups":
            return await self.add_custom_groups(*args)
        if operation == "info":
            return await self.show_info()
        if operation == "menu":
            await self.show_info()
            return await self.menu()
        raise ValueError(f"Unknown operation: {operation}")

    async def run(self, operations: Sequence[tuple[str, Sequence[str]]]) -> int:
        """Run operations in order; the result is 1 if any of them failed."""
        if not operations:
            await self.show_info()
            return await self.menu()

        if self.ctx.force:
            self.ctx.say("Force mode enabled - no prompts for automation")
        self.show_distribution()
        failed = False
        for operation, args in operations:
            status = await self.apply(operation, args)
            if status != 0:
                logger.warning("Operation %s %s returned %d", operation, list(args), status)
                failed = True
        return ExitCode.FAILURE if failed else ExitCode.OK


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for system-groups."""
    parser = build_parser()
    args = parser.parse_args(argv)
    ctx = build_context(args, "system-groups", force=args.force)
    manager = GroupManager(ctx)
    return run_async(lambda: manager.run(args.operations), ctx)
