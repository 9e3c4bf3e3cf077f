"""ToolDepsRunner: one invocation's worth of tooldeps operations.

Each public method maps to a CLI subcommand. The runner loads the project
descriptor on demand and delegates to the Installer and Dispatcher; it never
turns errors into exit codes (that is the CLI's job).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tooldeps.core.models import InstallOutcome
from tooldeps.infra.io.descriptor import (
    load_descriptor,
    require_tool_dependencies,
    save_descriptor,
)
from tooldeps.logging.console import Colors, log

if TYPE_CHECKING:
    from pathlib import Path

    from tooldeps.core.models import Descriptor
    from tooldeps.infra.cache_store import CacheStore
    from tooldeps.infra.io.config import ToolDepsConfig
    from tooldeps.pipeline.dispatcher import CommandResolver, Dispatcher
    from tooldeps.pipeline.installer import Installer


@dataclass(frozen=True)
class ToolStatus:
    """Declared versus cached constraint for one tool.

    Attributes:
        tool: Tool (package) name.
        declared: Constraint in the descriptor, None if not declared.
        cached: Constraint in the cache manifest, None if not installed.
        binary_present: Whether a binary of the same name is installed.
    """

    tool: str
    declared: str | None
    cached: str | None
    binary_present: bool

    @property
    def state(self) -> str:
        if self.declared is None:
            return "removed"
        if self.cached is None:
            return "missing"
        if self.declared != self.cached:
            return "changed"
        return "ok"


class ToolDepsRunner:
    """Runs tooldeps operations for the project in project_dir."""

    def __init__(
        self,
        config: ToolDepsConfig,
        project_dir: Path,
        store: CacheStore,
        installer: Installer,
        resolver: CommandResolver,
        dispatcher: Dispatcher,
    ) -> None:
        self.config = config
        self.project_dir = project_dir
        self.store = store
        self.installer = installer
        self.resolver = resolver
        self.dispatcher = dispatcher

    def load(self) -> Descriptor:
        return load_descriptor(self.project_dir, self.config.descriptor_name)

    def exec(self, command: str, args: list[str]) -> int:
        """Bring the cache up to date, then run command with args.

        Returns:
            The command's exit code, or 1 if it is not installed.
        """
        descriptor = self.load()
        outcome = self.installer.ensure_installed(descriptor)
        if outcome is not InstallOutcome.UP_TO_DATE:
            log("✓", f"install finished, running {command}", Colors.GREEN)
        return self.dispatcher.dispatch(descriptor, command, args, self.project_dir)

    def which(self, command: str) -> Path:
        """Bring the cache up to date and return where command's binary lives."""
        descriptor = self.load()
        self.installer.ensure_installed(descriptor)
        return self.resolver.binary_path(descriptor.name, command)

    def install(self, packages: list[str]) -> dict[str, str]:
        """Add packages as tool dependencies and record them in the descriptor."""
        descriptor = self.load()
        dependencies = self.installer.add(descriptor, packages)
        save_descriptor(descriptor.with_tool_dependencies(dependencies))
        return dependencies

    def remove(self, packages: list[str]) -> dict[str, str]:
        """Remove tool dependencies and record the result in the descriptor."""
        descriptor = self.load()
        dependencies = self.installer.remove(descriptor, packages)
        save_descriptor(descriptor.with_tool_dependencies(dependencies))
        return dependencies

    def list_installed(self, args: list[str]) -> int:
        return self.installer.list_installed(self.load(), args)

    def clean_cache(self) -> bool:
        descriptor = self.load()
        require_tool_dependencies(descriptor)
        return self.installer.clean(descriptor)

    def status(self) -> list[ToolStatus]:
        """Compare declared tools with the cache manifest, without installing."""
        descriptor = self.load()
        declared = require_tool_dependencies(descriptor)
        manifest = self.store.read_manifest(descriptor.name)
        cached = manifest.dependencies if manifest is not None else {}

        rows = []
        for tool in sorted(set(declared) | set(cached)):
            binary = self.resolver.binary_path(descriptor.name, tool.split("/")[-1])
            rows.append(
                ToolStatus(
                    tool=tool,
                    declared=declared.get(tool),
                    cached=cached.get(tool),
                    binary_present=binary.exists(),
                )
            )
        return rows
