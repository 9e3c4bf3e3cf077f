"""Layout of the "available commands" listing shown on a command miss."""

from __future__ import annotations

from collections.abc import Iterable

LISTING_WIDTH = 80


def pack_names(names: Iterable[str], width: int = LISTING_WIDTH) -> list[list[str]]:
    """Greedily group names into lines.

    A name joins the current line only while the line's rendered length
    (names plus single-space separators) stays under width. A name that is
    longer than width on its own still gets a line of its own.
    """
    lines: list[list[str]] = []
    current: list[str] = []
    current_len = 0
    for name in names:
        if current and current_len + 1 + len(name) >= width:
            lines.append(current)
            current = []
            current_len = 0
        current_len = current_len + 1 + len(name) if current else len(name)
        current.append(name)
    if current:
        lines.append(current)
    return lines


def format_listing(names: Iterable[str], width: int = LISTING_WIDTH) -> list[str]:
    """Render pack_names groups as space-joined lines."""
    return [" ".join(group) for group in pack_names(names, width)]
