"""npm adapter: command lines and console streaming for the package manager.

install: `npm install --save-exact --loglevel http` pins exact versions and
    reports per-request progress. Adding packages also passes --save-prod so
    they land in the manifest's `dependencies`.
remove:  `npm rm <packages> --save-exact --save-prod --loglevel http`
ls:      `npm ls [args]`, echoed without prefixes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tooldeps.core.errors import PackageManagerNotFoundError
from tooldeps.infra.tools.command_runner import CommandRunner
from tooldeps.logging.console import log_subprocess_line

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

INSTALL_FLAGS = ("--save-exact", "--loglevel", "http")
SAVE_FLAGS = ("--save-exact", "--save-prod")
LOGLEVEL_FLAGS = ("--loglevel", "http")


class NpmPackageManager:
    """Runs npm (or a compatible executable) inside a cache directory.

    Args:
        executable: The package manager executable, e.g. "npm".
        runner: CommandRunner used to spawn it.
    """

    def __init__(self, executable: str, runner: CommandRunner | None = None) -> None:
        self.executable = executable
        self.runner = runner or CommandRunner()

    def install(self, cache_dir: Path, packages: list[str] | None = None) -> int:
        if packages:
            args = ["install", *packages, *SAVE_FLAGS, *LOGLEVEL_FLAGS]
        else:
            args = ["install", *INSTALL_FLAGS]
        return self._run(cache_dir, args, prefix=True)

    def remove(self, cache_dir: Path, packages: list[str]) -> int:
        args = ["rm", *packages, *SAVE_FLAGS, *LOGLEVEL_FLAGS]
        return self._run(cache_dir, args, prefix=True)

    def list_installed(
        self, cache_dir: Path, args: list[str] | None = None, silent: bool = False
    ) -> int:
        return self._run(cache_dir, ["ls", *(args or [])], prefix=False, silent=silent)

    def _run(
        self,
        cache_dir: Path,
        args: list[str],
        prefix: bool,
        silent: bool = False,
    ) -> int:
        """Run the package manager and echo its output line by line.

        Raises:
            PackageManagerNotFoundError: If the executable cannot be spawned.
        """
        subcommand = args[0]
        cmd = [self.executable, *args]
        try:
            process = self.runner.stream(cmd, cwd=cache_dir)
        except FileNotFoundError as e:
            raise PackageManagerNotFoundError(self.executable) from e

        for line in process.lines():
            if silent:
                logger.debug("npm %s %s: %s", subcommand, line.stream, line.text)
                continue
            log_subprocess_line(subcommand, line.stream, line.text, prefix=prefix)

        returncode = process.wait()
        logger.debug("%s exited with %d", cmd, returncode)
        return returncode
