"""Command resolution and dispatch into a project's cache directory."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from tooldeps.core.errors import ToolDepsError
from tooldeps.domain.listing import format_listing
from tooldeps.infra.tools.command_runner import run_passthrough
from tooldeps.logging.console import Colors, log, log_error, print_listing

if TYPE_CHECKING:
    from tooldeps.core.models import Descriptor
    from tooldeps.infra.cache_store import CacheStore
    from tooldeps.pipeline.installer import Installer

logger = logging.getLogger(__name__)

# Exit code for a command that is not installed in the cache
COMMAND_NOT_FOUND_EXIT_CODE = 1

Executor = Callable[[Path, list[str], Path], int]


class CommandResolver:
    """Maps command names to binaries in a project's cache directory.

    Args:
        store: Cache store that owns the installed-binaries folder.
        platform: Platform kind, as in sys.platform. On win32 binaries are
            `.cmd` shims.
    """

    def __init__(self, store: CacheStore, platform: str = sys.platform) -> None:
        self.store = store
        self.platform = platform

    def binary_path(self, name: str, command: str) -> Path:
        """Where the command's binary lives, whether or not it exists."""
        binary = self.store.bin_dir(name) / command
        if self.platform == "win32":
            binary = binary.with_name(binary.name + ".cmd")
        return binary

    def resolve(self, name: str, command: str) -> Path | None:
        """The command's binary path, or None if it is not installed."""
        binary = self.binary_path(name, command)
        return binary if binary.exists() else None

    def available_commands(self, name: str) -> list[str] | None:
        """Names in the installed-binaries folder, or None if unreadable."""
        try:
            return self.store.list_binaries(name)
        except OSError as e:
            logger.debug("Could not list %s: %s", self.store.bin_dir(name), e)
            return None


class Dispatcher:
    """Runs a resolved command, or explains why it could not be found.

    Args:
        resolver: Resolves command names to binaries.
        installer: Used for the integrity check on a miss.
        executor: Runs the binary; defaults to run_passthrough.
    """

    def __init__(
        self,
        resolver: CommandResolver,
        installer: Installer,
        executor: Executor = run_passthrough,
    ) -> None:
        self.resolver = resolver
        self.installer = installer
        self.executor = executor

    def dispatch(
        self, descriptor: Descriptor, command: str, args: list[str], cwd: Path
    ) -> int:
        """Run command with args in cwd and return its exit code.

        Returns COMMAND_NOT_FOUND_EXIT_CODE after printing diagnostics if the
        command is not installed.
        """
        binary = self.resolver.resolve(descriptor.name, command)
        if binary is None:
            self.report_missing(descriptor, command)
            return COMMAND_NOT_FOUND_EXIT_CODE
        return self.executor(binary, args, cwd)

    def report_missing(self, descriptor: Descriptor, command: str) -> None:
        """Print what went wrong and which commands do exist."""
        name = descriptor.name
        log_error(f"ERROR Could not find command: {command}")
        log_error(
            f"ERROR The file {self.resolver.binary_path(name, command)} does not exist."
        )

        log("●", "Checking installed tools integrity with npm ls", stream=sys.stderr)
        try:
            intact = self.installer.verify_integrity(descriptor)
        except ToolDepsError as e:
            logger.warning("Integrity check skipped: %s", e)
        else:
            if intact is False:
                log_error(
                    "integrity check failed; cache invalidated, the next run reinstalls"
                )

        names = self.resolver.available_commands(name)
        if names:
            log("●", "The following commands DO exist.", Colors.GREEN, stream=sys.stderr)
            print_listing(format_listing(names))
