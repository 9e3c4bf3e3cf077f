"""Shared dataclasses for tooldeps.

Types:
- Descriptor: The project's declared document (name + tool-dependencies)
- Manifest: The document stored in a cache directory describing what is installed
- InstallOutcome: Whether ensure_installed ran the package manager
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

TOOL_DEPENDENCIES_FIELD = "tool-dependencies"


class InstallOutcome(Enum):
    """Outcome of ensure_installed."""

    FRESH_INSTALL = "fresh_install"
    REINSTALLED = "reinstalled"
    UP_TO_DATE = "up_to_date"

    @property
    def installed(self) -> bool:
        return self is not InstallOutcome.UP_TO_DATE


@dataclass(frozen=True)
class Descriptor:
    """A project's declared descriptor document.

    The document is treated as an opaque key/value mapping; only `name` and
    `tool-dependencies` are interpreted.

    Attributes:
        path: File the descriptor was read from.
        document: The parsed JSON object.
    """

    path: Path
    document: dict[str, Any]

    @property
    def name(self) -> str:
        return self.document["name"]

    @property
    def tool_dependencies(self) -> dict[str, str] | None:
        """The declared tool set, or None if the field is absent."""
        return self.document.get(TOOL_DEPENDENCIES_FIELD)

    def with_tool_dependencies(self, dependencies: dict[str, str]) -> Descriptor:
        """Return a copy whose tool-dependencies field is replaced."""
        document = dict(self.document)
        document[TOOL_DEPENDENCIES_FIELD] = dict(dependencies)
        return Descriptor(path=self.path, document=document)


@dataclass(frozen=True)
class Manifest:
    """The document kept in a cache directory.

    Attributes:
        document: The full JSON object handed to the package manager.
    """

    document: dict[str, Any]

    @property
    def dependencies(self) -> dict[str, str]:
        deps = self.document.get("dependencies")
        return dict(deps) if isinstance(deps, dict) else {}
