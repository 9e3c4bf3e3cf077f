"""Subprocess execution for tooldeps.

Two shapes of execution are needed:

- Package manager commands, whose stdout/stderr are consumed line by line
  while the process runs (StreamingProcess / CommandRunner).
- The wrapped tool itself, which inherits this process's stdio untouched and
  whose exit code becomes ours (run_passthrough).
"""

from __future__ import annotations

import logging
import queue
import subprocess
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Literal, cast

from tooldeps.core.errors import ExecutionError

__all__ = [
    "CommandRunner",
    "OutputLine",
    "StreamingProcess",
    "run_passthrough",
]

logger = logging.getLogger(__name__)

StreamName = Literal["stdout", "stderr"]


@dataclass(frozen=True)
class OutputLine:
    """One line of subprocess output, without its trailing newline."""

    stream: StreamName
    text: str


_EOF = object()


class StreamingProcess:
    """A running subprocess whose output is read as a sequence of lines.

    lines() is a lazy, finite, single-use iterator over both pipes; wait() is
    the join point that returns the exit code. Each pipe is drained by its own
    reader thread so a chatty stderr can never block stdout.
    """

    def __init__(self, proc: subprocess.Popen[str], command: list[str]) -> None:
        self.command = command
        self._proc = proc
        self._queue: queue.Queue[object] = queue.Queue()
        self._consumed = False
        self._readers = [
            threading.Thread(
                target=self._pump, args=(proc.stdout, "stdout"), daemon=True
            ),
            threading.Thread(
                target=self._pump, args=(proc.stderr, "stderr"), daemon=True
            ),
        ]
        for reader in self._readers:
            reader.start()

    def _pump(self, pipe: IO[str] | None, stream: StreamName) -> None:
        if pipe is None:
            self._queue.put(_EOF)
            return
        try:
            for raw in pipe:
                self._queue.put(OutputLine(stream, raw.rstrip("\r\n")))
        finally:
            pipe.close()
            self._queue.put(_EOF)

    def lines(self) -> Iterator[OutputLine]:
        """Yield output lines until both pipes are closed.

        Raises:
            RuntimeError: If called a second time.
        """
        if self._consumed:
            raise RuntimeError("output lines of a StreamingProcess can only be read once")
        self._consumed = True
        open_pipes = len(self._readers)
        while open_pipes:
            item = self._queue.get()
            if item is _EOF:
                open_pipes -= 1
                continue
            yield cast(OutputLine, item)

    def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""
        returncode = self._proc.wait()
        for reader in self._readers:
            reader.join()
        return returncode


class CommandRunner:
    """Spawns commands with piped stdout and stderr."""

    def stream(self, cmd: list[str], cwd: Path) -> StreamingProcess:
        """Start cmd in cwd and return a StreamingProcess over its output.

        Raises:
            FileNotFoundError: If the executable does not exist.
        """
        logger.debug("Spawning %s in %s", cmd, cwd)
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        return StreamingProcess(proc, cmd)


def _exit_code(returncode: int) -> int:
    """Map a Popen return code to a shell-style exit code.

    A child killed by signal N reports -N; shells report 128 + N.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def run_passthrough(path: Path, args: list[str], cwd: Path) -> int:
    """Run path with args, inheriting stdin/stdout/stderr.

    Returns:
        The child's exit code (128 + N if it was killed by signal N).

    Raises:
        ExecutionError: If the binary cannot be spawned.
    """
    logger.debug("Executing %s %s in %s", path, args, cwd)
    try:
        proc = subprocess.Popen([str(path), *args], cwd=cwd)
    except OSError as e:
        raise ExecutionError(f"Could not execute {path}: {e}") from e

    try:
        returncode = proc.wait()
    except KeyboardInterrupt:
        # The child shares our process group and got the same SIGINT.
        returncode = proc.wait()
    return _exit_code(returncode)
