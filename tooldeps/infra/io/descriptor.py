"""Loading and saving of the project descriptor.

The descriptor is a JSON object in the project directory (package.json by
default). tooldeps reads `name` and `tool-dependencies` and otherwise leaves
the document alone; write-back only replaces `tool-dependencies`.

Key functions:
- load_descriptor: Read and validate the descriptor from a project directory
- require_tool_dependencies: Check the declared set is present
- save_descriptor: Write the descriptor back (2-space indented, trailing newline)
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from tooldeps.core.errors import DescriptorError, MissingToolDependenciesError
from tooldeps.core.models import TOOL_DEPENDENCIES_FIELD, Descriptor
from tooldeps.infra.io.config import DEFAULT_DESCRIPTOR_NAME

if TYPE_CHECKING:
    from pathlib import Path


def load_descriptor(
    project_dir: Path, descriptor_name: str = DEFAULT_DESCRIPTOR_NAME
) -> Descriptor:
    """Load and validate the descriptor from the project directory.

    Args:
        project_dir: Directory of the invoking project.
        descriptor_name: File name of the descriptor.

    Returns:
        The parsed Descriptor.

    Raises:
        DescriptorError: If the file is missing, unreadable, not a JSON object,
            lacks a string `name`, or has a malformed `tool-dependencies`.
    """
    path = project_dir / descriptor_name

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise DescriptorError(path, "file not found") from e
    except OSError as e:
        raise DescriptorError(path, f"could not read file: {e}") from e
    except UnicodeDecodeError as e:
        raise DescriptorError(path, f"could not decode file: {e}") from e

    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise DescriptorError(path, f"invalid JSON: {e}") from e

    _validate_document(path, document)
    return Descriptor(path=path, document=document)


def _validate_document(path: Path, document: Any) -> None:  # noqa: ANN401
    if not isinstance(document, dict):
        raise DescriptorError(path, "expected a JSON object")

    name = document.get("name")
    if not isinstance(name, str) or not name.strip():
        raise DescriptorError(path, 'the "name" field must be a non-empty string')

    deps = document.get(TOOL_DEPENDENCIES_FIELD)
    if deps is None:
        return
    if not isinstance(deps, dict):
        raise DescriptorError(
            path, f'the "{TOOL_DEPENDENCIES_FIELD}" field must be an object'
        )
    for tool, constraint in deps.items():
        if not isinstance(constraint, str):
            raise DescriptorError(
                path,
                f'"{TOOL_DEPENDENCIES_FIELD}.{tool}" must be a version string, '
                f"got {type(constraint).__name__}",
            )


def require_tool_dependencies(descriptor: Descriptor) -> dict[str, str]:
    """Return the declared tool set.

    Raises:
        MissingToolDependenciesError: If the descriptor has no tool-dependencies.
    """
    deps = descriptor.tool_dependencies
    if deps is None:
        raise MissingToolDependenciesError(descriptor.path)
    return deps


def save_descriptor(descriptor: Descriptor) -> None:
    """Write the descriptor document back to its file.

    Raises:
        DescriptorError: If the file cannot be written.
    """
    try:
        descriptor.path.write_text(
            json.dumps(descriptor.document, indent=2) + "\n", encoding="utf-8"
        )
    except OSError as e:
        raise DescriptorError(descriptor.path, f"could not write file: {e}") from e
