"""On-disk cache of per-project tool installations.

Layout under the cache root:

    <root>/<project name>/package.json          the manifest
    <root>/<project name>/node_modules/.bin/    installed tool binaries
    <root>/<project name>.lock                  the project lock record

A cache directory is absent (no manifest), valid (manifest matches the last
installed declared set) or invalidated (manifest deleted after a failed
install, which reads the same as absent).

Usage:
    store = CacheStore(config.cache_root)
    manifest = store.read_manifest("proj")
    if manifest is None:
        store.write_manifest("proj", derive_manifest(descriptor))
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from tooldeps.core.errors import CacheError
from tooldeps.core.models import Manifest

# Manifest file name (the package manager reads it from the cache directory)
MANIFEST_FILE = "package.json"

# Installed binaries, relative to the cache directory
BIN_DIR = Path("node_modules") / ".bin"

LOCK_SUFFIX = ".lock"

logger = logging.getLogger(__name__)


@dataclass
class CacheStore:
    """Per-project cache directories under a root.

    Attributes:
        root: Cache root, normally ToolDepsConfig.cache_root.
    """

    root: Path

    def cache_dir(self, name: str) -> Path:
        """Cache directory for a project name.

        Scoped names such as "@org/app" become nested directories.

        Raises:
            CacheError: If name is empty, absolute, or escapes the root.
        """
        parts = PurePosixPath(name.replace("\\", "/")).parts
        if not parts or PurePosixPath(name).is_absolute() or ".." in parts:
            raise CacheError(f"Invalid project name for cache directory: {name!r}")
        return self.root.joinpath(*parts)

    def manifest_path(self, name: str) -> Path:
        return self.cache_dir(name) / MANIFEST_FILE

    def bin_dir(self, name: str) -> Path:
        return self.cache_dir(name) / BIN_DIR

    def lock_path(self, name: str) -> Path:
        """Lock record for a project, kept alongside its cache directory."""
        cache_dir = self.cache_dir(name)
        return cache_dir.with_name(cache_dir.name + LOCK_SUFFIX)

    def ensure_dir(self, name: str) -> Path:
        """Create the cache directory (and parents) if needed."""
        cache_dir = self.cache_dir(name)
        try:
            cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(f"Could not create cache directory {cache_dir}: {e}") from e
        return cache_dir

    def exists(self, name: str) -> bool:
        """True if a manifest is present (the cache is not absent)."""
        return self.manifest_path(name).is_file()

    def read_manifest(self, name: str) -> Manifest | None:
        """Read the manifest, or None if it is missing or corrupt.

        A manifest that fails to parse (e.g. after a crash mid-write) is
        treated as absent so the next install rewrites it.
        """
        path = self.manifest_path(name)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read manifest %s: %s", path, e)
            return None

        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring corrupt manifest %s: %s", path, e)
            return None
        if not isinstance(document, dict):
            logger.warning("Ignoring manifest %s: expected a JSON object", path)
            return None
        return Manifest(document=document)

    def write_manifest(self, name: str, manifest: Manifest) -> None:
        """Replace the manifest with a single whole-document write.

        Raises:
            CacheError: If the manifest cannot be written.
        """
        cache_dir = self.ensure_dir(name)
        path = cache_dir / MANIFEST_FILE
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{MANIFEST_FILE}.", dir=cache_dir, text=True
            )
        except OSError as e:
            raise CacheError(f"Could not write manifest {path}: {e}") from e
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(manifest.document, f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise CacheError(f"Could not write manifest {path}: {e}") from e

    def invalidate(self, name: str) -> None:
        """Delete the manifest so the next run reinstalls.

        Installed binaries are left in place; the next install overwrites them.

        Raises:
            CacheError: If the manifest exists but cannot be removed.
        """
        path = self.manifest_path(name)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise CacheError(f"Could not remove manifest {path}: {e}") from e
        logger.debug("Invalidated cache manifest %s", path)

    def list_binaries(self, name: str) -> list[str]:
        """Sorted entries of the installed-binaries folder.

        Raises:
            OSError: If the folder cannot be enumerated.
        """
        return sorted(entry.name for entry in self.bin_dir(name).iterdir())

    def clean(self, name: str) -> bool:
        """Delete the whole cache directory.

        Returns:
            True if a directory was removed, False if there was none.

        Raises:
            CacheError: If removal fails.
        """
        cache_dir = self.cache_dir(name)
        if not cache_dir.exists():
            return False
        try:
            shutil.rmtree(cache_dir)
        except OSError as e:
            raise CacheError(f"Could not remove cache directory {cache_dir}: {e}") from e
        return True
