"""Change detection between the declared and installed tool sets."""

from __future__ import annotations

from collections.abc import Mapping


def have_dependencies_changed(
    declared: Mapping[str, str], cached: Mapping[str, str]
) -> bool:
    """Return True if the declared set differs from the cached one.

    Every declared key must map to exactly the same constraint string in the
    cached set, and both sets must have the same size (so removals are seen
    too). Constraints are compared as plain strings: `^1.0.0` and `1.0.0`
    differ.
    """
    for name, constraint in declared.items():
        if cached.get(name) != constraint:
            return True
    return len(declared) != len(cached)
