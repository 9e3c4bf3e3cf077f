"""File-based locking for concurrent tooldeps invocations.

Two build jobs on the same machine may try to install the same project's tools
at the same time. The lock record serializes every mutation of a cache
directory. It is a small JSON document:

    {"holder_id": "<hostname>:<pid>", "acquired_at": <unix timestamp>}

created with an atomic create-if-absent primitive (a fully written temp file
hard-linked into place), so a visible lock always has a complete record.
"""

from __future__ import annotations

import json
import logging
import os
import socket
import tempfile
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from pathlib import Path

from tooldeps.core.errors import LockTimeoutError

__all__ = ["LockManager", "LockPolicy", "LockRecord", "default_holder_id"]

logger = logging.getLogger(__name__)

SECOND = 1.0
MINUTE = 60 * SECOND

DEFAULT_LOCK_WAIT_SECONDS = 1 * MINUTE
DEFAULT_LOCK_POLL_SECONDS = 0.5
DEFAULT_LOCK_STALE_SECONDS = 5 * MINUTE


def default_holder_id() -> str:
    """Identify this process as `<hostname>:<pid>`."""
    return f"{socket.gethostname()}:{os.getpid()}"


@dataclass(frozen=True)
class LockRecord:
    """Contents of a lock file.

    Attributes:
        holder_id: Identity of the process holding the lock.
        acquired_at: UNIX timestamp at which the lock was taken.
    """

    holder_id: str
    acquired_at: float

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, text: str) -> LockRecord | None:
        """Parse a record, returning None if the text is not a valid record."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None
        holder_id = data.get("holder_id")
        acquired_at = data.get("acquired_at")
        if not isinstance(holder_id, str) or not isinstance(
            acquired_at, (int, float)
        ):
            return None
        return cls(holder_id=holder_id, acquired_at=float(acquired_at))

    def age(self, now: float) -> float:
        return now - self.acquired_at


@dataclass(frozen=True)
class LockPolicy:
    """Wait/poll/stale policy for lock acquisition.

    Attributes:
        wait_seconds: Give up after waiting this long for a live holder.
        poll_seconds: Re-check interval while waiting.
        stale_seconds: A record older than this is presumed abandoned and is
            reclaimed regardless of wait_seconds.
    """

    wait_seconds: float = DEFAULT_LOCK_WAIT_SECONDS
    poll_seconds: float = DEFAULT_LOCK_POLL_SECONDS
    stale_seconds: float = DEFAULT_LOCK_STALE_SECONDS


class LockManager:
    """Acquire and release lock records under a LockPolicy.

    Args:
        policy: Timing policy. Defaults to 1 minute wait, 500 ms poll and a
            5 minute stale threshold.
        holder_id: Identity written into records. Defaults to hostname:pid.
        clock: Wall-clock source used for record timestamps and staleness.
        sleep: Sleep function used between polls.
    """

    def __init__(
        self,
        policy: LockPolicy | None = None,
        holder_id: str | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.policy = policy or LockPolicy()
        self.holder_id = holder_id or default_holder_id()
        self._clock = clock
        self._sleep = sleep

    def try_acquire(self, path: Path) -> LockRecord | None:
        """Try once to create the lock record at path.

        Returns:
            The written record if the lock was acquired, None if it is held.
        """
        lock_dir = path.parent
        lock_dir.mkdir(parents=True, exist_ok=True)

        # Fast-path if already locked
        if path.exists():
            return None

        record = LockRecord(holder_id=self.holder_id, acquired_at=self._clock())
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".locktmp.{os.getpid()}.", dir=lock_dir, text=True
        )
        try:
            os.write(fd, record.to_json().encode())
        finally:
            os.close(fd)

        # Atomic hardlink attempt
        try:
            os.link(tmp_path, path)
        except FileExistsError:
            return None
        finally:
            os.unlink(tmp_path)
        logger.debug("Lock acquired: %s by %s", path, record.holder_id)
        return record

    def read_record(self, path: Path) -> LockRecord | None:
        """Read the record at path, or None if missing or unparsable."""
        try:
            return LockRecord.from_json(path.read_text())
        except OSError:
            return None

    def lock_age(self, path: Path) -> float | None:
        """Age of the lock at path in seconds, or None if there is no lock.

        Uses the recorded acquisition time, falling back to the file mtime for
        records that cannot be parsed (e.g. a holder that crashed mid-write).
        """
        now = self._clock()
        record = self.read_record(path)
        if record is not None:
            return record.age(now)
        try:
            return now - path.stat().st_mtime
        except FileNotFoundError:
            return None

    def is_stale(self, path: Path) -> bool:
        age = self.lock_age(path)
        return age is not None and age > self.policy.stale_seconds

    def _unlink_if(self, path: Path, matches: Callable[[Path], bool]) -> bool:
        """Delete the lock at path only if matches() holds for it.

        The lock is first moved aside, so the check and the delete apply to
        the same file even if another process replaces the lock meanwhile. A
        file that fails the check is linked back into place.

        Returns:
            True if the lock was deleted.
        """
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".lockaside.{os.getpid()}.", dir=path.parent
        )
        os.close(fd)
        aside = Path(tmp_path)
        try:
            try:
                os.replace(path, aside)
            except FileNotFoundError:
                return False
            if matches(aside):
                return True
            try:
                os.link(aside, path)
            except FileExistsError:
                logger.warning("Lock %s was taken while it was being checked", path)
            return False
        finally:
            aside.unlink(missing_ok=True)

    def _reclaim(self, path: Path) -> bool:
        """Delete the lock at path if it is still stale once moved aside."""
        record = self.read_record(path)
        reclaimed = self._unlink_if(path, self.is_stale)
        if reclaimed:
            logger.warning(
                "Reclaimed stale lock %s (holder %s)",
                path,
                record.holder_id if record else "unknown",
            )
        return reclaimed

    def acquire(self, path: Path) -> LockRecord:
        """Wait for and acquire the lock at path.

        Polls every policy.poll_seconds until the lock becomes available,
        reclaiming it immediately if it is stale.

        Raises:
            LockTimeoutError: If a live holder keeps the lock longer than
                policy.wait_seconds.
        """
        deadline = time.monotonic() + self.policy.wait_seconds

        while True:
            record = self.try_acquire(path)
            if record is not None:
                return record

            if self.is_stale(path):
                self._reclaim(path)
                continue

            if time.monotonic() >= deadline:
                holder = self.read_record(path)
                raise LockTimeoutError(path, holder.holder_id if holder else None)

            logger.debug("Lock %s is held, retrying in %ss", path, self.policy.poll_seconds)
            self._sleep(self.policy.poll_seconds)

    def release(self, path: Path, record: LockRecord) -> None:
        """Release the lock at path if it still holds record.

        Best-effort and idempotent: a missing lock is not an error, a lock
        that was reclaimed by another holder is left in place, and an OS
        error is only logged.
        """
        if not path.exists():
            return
        try:
            released = self._unlink_if(path, lambda p: self.read_record(p) == record)
        except OSError as e:
            logger.warning("Failed to release lock %s: %s", path, e)
            return
        if released:
            logger.debug("Lock released: %s", path)
            return
        current = self.read_record(path)
        if current is not None:
            logger.warning(
                "Lock %s is now held by %s, leaving it in place",
                path,
                current.holder_id,
            )

    @contextmanager
    def held(self, path: Path) -> Iterator[LockRecord]:
        """Hold the lock at path for the duration of the with-block.

        Usage:
            with lock_manager.held(store.lock_path("proj")):
                # mutate the cache directory safely
        """
        record = self.acquire(path)
        try:
            yield record
        finally:
            self.release(path, record)
