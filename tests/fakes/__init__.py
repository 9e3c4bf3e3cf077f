"""In-memory fake implementations for testing.

Fakes are preferred over mocks because they:

1. Implement real protocol contracts, catching interface mismatches at test time
2. Provide deterministic, predictable behavior without call-order dependencies
3. Enable behavior-based testing (assert outputs/state) over interaction testing

Available fakes:
- FakePackageManager: Package manager that edits the cache manifest and bin
  folder directly and records every call
- RecordingExecutor: Process executor that records runs instead of spawning

Usage:
    from tests.fakes import FakePackageManager

    def test_something(tmp_path):
        pm = FakePackageManager()
        installer = Installer(CacheStore(tmp_path), pm, LockManager())
"""

from tests.fakes.package_manager import FakePackageManager, RecordingExecutor

__all__ = ["FakePackageManager", "RecordingExecutor"]
