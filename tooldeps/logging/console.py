"""Console logging helpers for tooldeps.

Colored, prefixed console output. Every line tooldeps itself prints carries a
`tooldeps:` label so it can be told apart from the output of the wrapped tool.
"""

import logging
import sys
from typing import TextIO

LABEL = "tooldeps:"


def set_verbose(enabled: bool) -> None:
    """Enable or disable verbose output globally.

    Verbose mode also routes stdlib logging debug records to stderr.
    """
    root = logging.getLogger("tooldeps")
    if enabled:
        if not root.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter(f"{Colors.GRAY}%(name)s: %(message)s{Colors.RESET}")
            )
            root.addHandler(handler)
        root.setLevel(logging.DEBUG)
    else:
        root.setLevel(logging.WARNING)


class Colors:
    """ANSI color codes for terminal output (bright variants)."""

    RESET = "\033[0m"
    GREEN = "\033[92m"
    RED = "\033[91m"
    GRAY = "\033[90m"
    MUTED = "\033[90m"


def log(
    icon: str,
    message: str,
    color: str = Colors.RESET,
    dim: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Print a labelled status line.

    Args:
        icon: Single glyph shown before the message.
        message: Text to print.
        color: ANSI color for icon and message.
        dim: Render the message in the muted style.
        stream: Target stream. Defaults to stdout.
    """
    style = Colors.MUTED if dim else ""
    print(
        f"{Colors.GREEN}{LABEL}{Colors.RESET} {style}{color}{icon} {message}{Colors.RESET}",
        file=stream or sys.stdout,
    )


def log_error(message: str) -> None:
    """Print an error line to stderr."""
    log("✗", message, Colors.RED, stream=sys.stderr)


def log_subprocess_line(
    command: str, stream_name: str, line: str, prefix: bool = True
) -> None:
    """Echo one line of package manager output.

    stdout lines go to stdout and stderr lines to stderr. With prefix=True
    each line is tagged `npm <command> STDOUT: ` (or STDERR) so install noise
    is distinguishable from the wrapped tool's own output.
    """
    target = sys.stderr if stream_name == "stderr" else sys.stdout
    if not line:
        print("", file=target)
        return
    if prefix:
        tag = f"npm {command} {stream_name.upper()}: "
        print(f"{Colors.GREEN}{tag}{Colors.RESET}{line}", file=target)
    else:
        print(line, file=target)


def print_listing(lines: list[str]) -> None:
    """Print pre-formatted listing lines with the `--  ` gutter."""
    for line in lines:
        print(f"--  {line}")
