"""Configuration dataclass for tooldeps.

Provides ToolDepsConfig for centralized configuration management. This allows
programmatic users (and tests) to construct configuration without relying on
environment variables, while CLI users can continue using env vars via
from_env().

Environment Variables:
    TOOLDEPS_CACHE_DIR: Root of the per-project caches (default: ~/.config/tooldeps)
    TOOLDEPS_PACKAGE_MANAGER: Package manager executable (default: npm, npm.cmd on Windows)
    TOOLDEPS_DESCRIPTOR: Descriptor file name inside the project (default: package.json)
    TOOLDEPS_LOCK_WAIT: Seconds to wait for a held lock (default: 60)
    TOOLDEPS_LOCK_POLL: Seconds between lock polls (default: 0.5)
    TOOLDEPS_LOCK_STALE: Age in seconds after which a lock is reclaimed (default: 300)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from tooldeps.infra.tools.env import (
    USER_CONFIG_DIR,
    default_package_manager,
    get_cache_root,
    get_package_manager,
)
from tooldeps.infra.tools.locking import (
    DEFAULT_LOCK_POLL_SECONDS,
    DEFAULT_LOCK_STALE_SECONDS,
    DEFAULT_LOCK_WAIT_SECONDS,
)

DEFAULT_DESCRIPTOR_NAME = "package.json"


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        message = "Configuration validation failed:\n" + "\n".join(
            f"  - {e}" for e in errors
        )
        super().__init__(message)


def _parse_seconds(name: str, default: float, errors: list[str]) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        errors.append(f"{name} must be a number of seconds, got: {raw!r}")
        return default


@dataclass(frozen=True)
class ToolDepsConfig:
    """Centralized configuration for one tooldeps invocation.

    Attributes:
        cache_root: Directory holding one cache subdirectory per project name.
            Env: TOOLDEPS_CACHE_DIR (default: ~/.config/tooldeps)
        package_manager: Executable used to install tools.
            Env: TOOLDEPS_PACKAGE_MANAGER (default: npm)
        descriptor_name: File name of the project descriptor.
            Env: TOOLDEPS_DESCRIPTOR (default: package.json)
        lock_wait_seconds: How long to wait for a lock held by another process.
            Env: TOOLDEPS_LOCK_WAIT (default: 60)
        lock_poll_seconds: Interval between lock re-checks.
            Env: TOOLDEPS_LOCK_POLL (default: 0.5)
        lock_stale_seconds: Lock age after which the holder is presumed dead.
            Env: TOOLDEPS_LOCK_STALE (default: 300)

    Example:
        # Programmatic construction (no env vars needed):
        config = ToolDepsConfig(cache_root=Path("/tmp/tool-cache"))

        # Load from environment:
        config = ToolDepsConfig.from_env()
    """

    cache_root: Path = field(default_factory=lambda: USER_CONFIG_DIR)
    package_manager: str = field(default_factory=default_package_manager)
    descriptor_name: str = DEFAULT_DESCRIPTOR_NAME
    lock_wait_seconds: float = DEFAULT_LOCK_WAIT_SECONDS
    lock_poll_seconds: float = DEFAULT_LOCK_POLL_SECONDS
    lock_stale_seconds: float = DEFAULT_LOCK_STALE_SECONDS

    @classmethod
    def from_env(cls, *, validate: bool = True) -> ToolDepsConfig:
        """Create ToolDepsConfig by loading from environment variables.

        Args:
            validate: If True (default), run validation and raise
                ConfigurationError on any errors.

        Returns:
            ToolDepsConfig instance with values from environment or defaults.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed, or if
                validate=True and the resulting configuration is invalid.
        """
        parse_errors: list[str] = []
        config = cls(
            cache_root=get_cache_root(),
            package_manager=get_package_manager(),
            descriptor_name=os.environ.get("TOOLDEPS_DESCRIPTOR")
            or DEFAULT_DESCRIPTOR_NAME,
            lock_wait_seconds=_parse_seconds(
                "TOOLDEPS_LOCK_WAIT", DEFAULT_LOCK_WAIT_SECONDS, parse_errors
            ),
            lock_poll_seconds=_parse_seconds(
                "TOOLDEPS_LOCK_POLL", DEFAULT_LOCK_POLL_SECONDS, parse_errors
            ),
            lock_stale_seconds=_parse_seconds(
                "TOOLDEPS_LOCK_STALE", DEFAULT_LOCK_STALE_SECONDS, parse_errors
            ),
        )

        if parse_errors:
            raise ConfigurationError(parse_errors)

        if validate:
            errors = config.validate()
            if errors:
                raise ConfigurationError(errors)

        return config

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors.

        Checks:
            - cache_root is absolute
            - descriptor_name is a bare file name
            - package_manager is set
            - lock wait is not negative, poll and stale are positive

        Returns:
            List of error messages. Empty list if configuration is valid.
        """
        errors: list[str] = []

        if not self.cache_root.is_absolute():
            errors.append(
                f"cache_root should be an absolute path, got: {self.cache_root}"
            )
        if not self.package_manager:
            errors.append("package_manager must not be empty")
        if not self.descriptor_name or Path(self.descriptor_name).name != (
            self.descriptor_name
        ):
            errors.append(
                f"descriptor_name should be a file name, got: {self.descriptor_name!r}"
            )

        if self.lock_wait_seconds < 0:
            errors.append(
                f"lock_wait_seconds must not be negative, got: {self.lock_wait_seconds}"
            )
        if self.lock_poll_seconds <= 0:
            errors.append(
                f"lock_poll_seconds must be positive, got: {self.lock_poll_seconds}"
            )
        if self.lock_stale_seconds <= 0:
            errors.append(
                f"lock_stale_seconds must be positive, got: {self.lock_stale_seconds}"
            )

        return errors
