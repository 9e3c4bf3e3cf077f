"""Installer: keeps a project's cache directory in sync with its declared tools.

Every operation that mutates a cache directory runs while holding the
project's lock record:

1. Decide whether to install: always when the cache is absent, otherwise only
   when the declared set differs from the manifest's dependencies.
2. Write the manifest derived from the descriptor.
3. Run the package manager in the cache directory, streaming its output.
4. On a non-zero exit, delete the manifest so the next run starts from an
   absent cache, and raise InstallError. There is no automatic retry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tooldeps.core.errors import CacheError, InstallError, PackageManagerNotFoundError
from tooldeps.core.models import InstallOutcome
from tooldeps.domain.changes import have_dependencies_changed
from tooldeps.domain.manifest import derive_manifest
from tooldeps.infra.io.descriptor import require_tool_dependencies
from tooldeps.logging.console import Colors, log

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from tooldeps.core.models import Descriptor
    from tooldeps.core.protocols import PackageManagerPort
    from tooldeps.infra.cache_store import CacheStore
    from tooldeps.infra.tools.locking import LockManager

logger = logging.getLogger(__name__)


class Installer:
    """Installs, adds and removes tools in a project's cache directory.

    Args:
        store: Cache store holding the project's directory and manifest.
        package_manager: Package manager used to perform installs.
        lock_manager: Lock manager serializing mutations across processes.
    """

    def __init__(
        self,
        store: CacheStore,
        package_manager: PackageManagerPort,
        lock_manager: LockManager,
    ) -> None:
        self.store = store
        self.package_manager = package_manager
        self.lock_manager = lock_manager

    def ensure_installed(self, descriptor: Descriptor) -> InstallOutcome:
        """Install the declared tools if the cache is absent or out of date.

        Returns:
            Which path was taken (fresh install, reinstall or up to date).

        Raises:
            MissingToolDependenciesError: If the descriptor declares no tools.
            LockTimeoutError: If another process holds the lock too long.
            InstallError: If the package manager exits non-zero.
            PackageManagerNotFoundError: If the package manager is missing.
        """
        declared = require_tool_dependencies(descriptor)
        name = descriptor.name
        self.store.ensure_dir(name)

        with self.lock_manager.held(self.store.lock_path(name)):
            manifest = self.store.read_manifest(name)
            if manifest is None:
                log("●", "first time npm install", Colors.GREEN)
                outcome = InstallOutcome.FRESH_INSTALL
            elif have_dependencies_changed(declared, manifest.dependencies):
                log("●", "tool-dependencies changed => npm install", Colors.GREEN)
                outcome = InstallOutcome.REINSTALLED
            else:
                logger.debug("Cache for %s is up to date", name)
                return InstallOutcome.UP_TO_DATE

            self.store.write_manifest(name, derive_manifest(descriptor))
            self._run_checked(name, "install", self.package_manager.install)
            return outcome

    def add(self, descriptor: Descriptor, packages: list[str]) -> dict[str, str]:
        """Add packages to the cache and return the resulting dependency set.

        Works on descriptors that do not declare any tools yet.

        Returns:
            The manifest's dependencies after the package manager saved the
            new packages; callers copy these into the descriptor.
        """
        log("●", "Installing new tool dependency", Colors.GREEN)
        return self._modify(
            descriptor,
            "install",
            lambda cache_dir: self.package_manager.install(cache_dir, packages),
        )

    def remove(self, descriptor: Descriptor, packages: list[str]) -> dict[str, str]:
        """Remove packages from the cache and return the resulting dependency set."""
        require_tool_dependencies(descriptor)
        log("●", "Removing a tool dependency", Colors.GREEN)
        return self._modify(
            descriptor,
            "rm",
            lambda cache_dir: self.package_manager.remove(cache_dir, packages),
        )

    def list_installed(self, descriptor: Descriptor, args: list[str]) -> int:
        """Run the package manager's listing in the cache, returning its exit code.

        A failing listing means the installed tree is inconsistent, so the
        cache is invalidated as for any other package manager failure.
        """
        require_tool_dependencies(descriptor)
        name = descriptor.name
        self.store.ensure_dir(name)
        with self.lock_manager.held(self.store.lock_path(name)):
            returncode = self.package_manager.list_installed(
                self.store.cache_dir(name), args
            )
            if returncode != 0:
                self._invalidate_after_failure(name, "ls", returncode)
            return returncode

    def verify_integrity(self, descriptor: Descriptor) -> bool | None:
        """Silently check the installed tree; invalidate the cache if broken.

        Returns:
            True if the package manager reports a consistent tree, False if it
            does not, None if there is no cache directory to check.
        """
        name = descriptor.name
        with self.lock_manager.held(self.store.lock_path(name)):
            cache_dir = self.store.cache_dir(name)
            if not cache_dir.is_dir():
                return None
            returncode = self.package_manager.list_installed(cache_dir, silent=True)
            if returncode != 0:
                self.store.invalidate(name)
                return False
            return True

    def clean(self, descriptor: Descriptor) -> bool:
        """Delete the project's cache directory.

        Returns:
            True if a cache directory existed and was removed.
        """
        name = descriptor.name
        with self.lock_manager.held(self.store.lock_path(name)):
            log("●", "cache clean", Colors.GREEN)
            return self.store.clean(name)

    def _modify(
        self,
        descriptor: Descriptor,
        subcommand: str,
        call: Callable[[Path], int],
    ) -> dict[str, str]:
        name = descriptor.name
        self.store.ensure_dir(name)
        with self.lock_manager.held(self.store.lock_path(name)):
            if not self.store.exists(name):
                self.store.write_manifest(name, derive_manifest(descriptor))
            self._run_checked(name, subcommand, call)
            manifest = self.store.read_manifest(name)
            if manifest is None:
                raise CacheError(
                    f"Manifest missing after npm {subcommand}: "
                    f"{self.store.manifest_path(name)}"
                )
            return manifest.dependencies

    def _run_checked(
        self, name: str, subcommand: str, call: Callable[[Path], int]
    ) -> None:
        """Run a package manager call, invalidating the cache on failure."""
        try:
            returncode = call(self.store.cache_dir(name))
        except PackageManagerNotFoundError:
            self.store.invalidate(name)
            raise
        if returncode != 0:
            self._invalidate_after_failure(name, subcommand, returncode)
            raise InstallError(subcommand, returncode)
        log("✓", f"npm {subcommand} finished", Colors.GREEN)

    def _invalidate_after_failure(
        self, name: str, subcommand: str, returncode: int
    ) -> None:
        log("✗", f"npm {subcommand} exited non-zero {returncode}", Colors.RED)
        self.store.invalidate(name)
        logger.info("Cache for %s invalidated after npm %s failure", name, subcommand)
