"""Environment configuration and loading for tooldeps.

Centralizes config paths and dotenv loading. Call load_user_env() early so
values from ~/.config/tooldeps/.env are visible before ToolDepsConfig is built.
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# User config directory (stores .env and, by default, the tool caches)
USER_CONFIG_DIR = Path.home() / ".config" / "tooldeps"


# Cache root for per-project tool installations
# Can be overridden via TOOLDEPS_CACHE_DIR environment variable
def get_cache_root() -> Path:
    """Get the cache root, respecting TOOLDEPS_CACHE_DIR env var.

    This function evaluates the env var at call time, so it respects
    values loaded from .env via load_user_env().
    """
    return Path(os.environ.get("TOOLDEPS_CACHE_DIR", str(USER_CONFIG_DIR)))


def default_package_manager() -> str:
    """Return the package manager executable for the current platform."""
    return "npm.cmd" if sys.platform == "win32" else "npm"


def get_package_manager() -> str:
    """Get the package manager executable, respecting TOOLDEPS_PACKAGE_MANAGER."""
    return os.environ.get("TOOLDEPS_PACKAGE_MANAGER") or default_package_manager()


def load_user_env() -> None:
    """Load environment from user config directory.

    Loads ${USER_CONFIG_DIR}/.env (typically ~/.config/tooldeps/.env).
    Existing environment variables win over values in the file.
    """
    load_dotenv(dotenv_path=USER_CONFIG_DIR / ".env")

