"""Derivation of the cache manifest from a project descriptor."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from tooldeps.core.models import Manifest

if TYPE_CHECKING:
    from tooldeps.core.models import Descriptor

# Fields emptied in the manifest so the package manager never runs project
# scripts or resolves the project's own dependency graph.
CLEARED_FIELDS = ("devDependencies", "peerDependencies", "scripts")


def derive_manifest(descriptor: Descriptor) -> Manifest:
    """Build the installable manifest for a descriptor.

    The manifest is a copy of the descriptor whose `dependencies` are the
    declared tool dependencies and whose CLEARED_FIELDS are empty objects.
    The descriptor itself is not modified.
    """
    document = copy.deepcopy(descriptor.document)
    document["dependencies"] = dict(descriptor.tool_dependencies or {})
    for name in CLEARED_FIELDS:
        document[name] = {}
    return Manifest(document=document)
