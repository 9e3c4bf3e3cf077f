"""Exception hierarchy for tooldeps.

Every error that the CLI turns into a non-zero exit code derives from
ToolDepsError, so callers can catch the whole family in one place.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class ToolDepsError(Exception):
    """Base class for all tooldeps errors."""


class DescriptorError(ToolDepsError):
    """Raised when the project descriptor is missing, unreadable or invalid.

    Attributes:
        path: Location of the descriptor that failed to load.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class MissingToolDependenciesError(DescriptorError):
    """Raised when an operation needs `tool-dependencies` and it is absent."""

    def __init__(self, path: Path) -> None:
        super().__init__(path, 'the "tool-dependencies" field is missing')


class CacheError(ToolDepsError):
    """Raised when the cache directory cannot be read or written."""


class LockTimeoutError(ToolDepsError):
    """Raised when a lock could not be acquired within the wait timeout.

    Attributes:
        lock_path: Path of the contended lock record.
        holder_id: Holder recorded in the lock at the time of the timeout,
            if it could be read.
    """

    def __init__(self, lock_path: Path, holder_id: str | None = None) -> None:
        self.lock_path = lock_path
        self.holder_id = holder_id
        holder = f" (held by {holder_id})" if holder_id else ""
        super().__init__(f"Could not acquire lock {lock_path}{holder}")


class PackageManagerNotFoundError(ToolDepsError):
    """Raised when the package manager executable cannot be spawned."""

    def __init__(self, executable: str) -> None:
        self.executable = executable
        super().__init__(f"Package manager not found: {executable}")


class InstallError(ToolDepsError):
    """Raised when a package manager command exits non-zero.

    Attributes:
        command: The package manager subcommand that failed (e.g. "install").
        returncode: Exit code reported by the package manager.
    """

    def __init__(self, command: str, returncode: int) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(f"npm {command} exited non-zero {returncode}")


class ExecutionError(ToolDepsError):
    """Raised when a resolved tool binary cannot be spawned."""
