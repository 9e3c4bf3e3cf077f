"""Protocol definitions for tooldeps.

Lets the pipeline layer depend on interfaces rather than on the subprocess
backed implementations in tooldeps.infra, so tests can substitute fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path


@runtime_checkable
class PackageManagerPort(Protocol):
    """Protocol for the external package manager.

    The canonical implementation is NpmPackageManager in
    tooldeps/infra/package_manager.py. Every method runs in the given cache
    directory and returns the package manager's exit code; 0 means success.
    """

    def install(self, cache_dir: Path, packages: list[str] | None = None) -> int:
        """Install the manifest's dependencies, or add packages when given.

        Args:
            cache_dir: Cache directory holding the manifest.
            packages: Package specs to add and save to the manifest. When None,
                installs exactly what the manifest declares.

        Returns:
            The package manager's exit code.

        Raises:
            PackageManagerNotFoundError: If the executable cannot be spawned.
        """
        ...

    def remove(self, cache_dir: Path, packages: list[str]) -> int:
        """Remove packages and drop them from the manifest."""
        ...

    def list_installed(
        self, cache_dir: Path, args: list[str] | None = None, silent: bool = False
    ) -> int:
        """List the installed tree, echoing output unless silent."""
        ...
