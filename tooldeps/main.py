#!/usr/bin/env python3
"""
tooldeps: run a project's tool dependencies from an isolated cache.

This module is a thin shim that exposes the CLI from tooldeps.cli.
The actual implementation lives in tooldeps/cli/cli.py.

Usage:
    tooldeps <command> [ARGS]...
    tooldeps which <command>
    tooldeps cache clean
"""

from .cli.cli import bootstrap

# Call bootstrap at module import time so the console entrypoint
# (tooldeps.main:main) loads ~/.config/tooldeps/.env before anything else
bootstrap()

from .cli.cli import app, main  # noqa: E402

__all__ = ["app", "main"]

if __name__ == "__main__":
    main()
