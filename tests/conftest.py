"""Pytest configuration for tooldeps tests."""

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Configure test environment before collection.

    Sets up environment variables to:
    - Redirect the tool cache to /tmp to avoid polluting ~/.config/tooldeps/
    - Drop user overrides that would change defaults under test
    """
    test_cache = Path("/tmp/tooldeps-test-cache")
    os.environ["TOOLDEPS_CACHE_DIR"] = str(test_cache)

    for name in (
        "TOOLDEPS_PACKAGE_MANAGER",
        "TOOLDEPS_DESCRIPTOR",
        "TOOLDEPS_LOCK_WAIT",
        "TOOLDEPS_LOCK_POLL",
        "TOOLDEPS_LOCK_STALE",
    ):
        os.environ.pop(name, None)


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Default unmarked tests to unit category."""
    for item in items:
        if any(marker in item.keywords for marker in ("unit", "integration", "e2e")):
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _reset_tooldeps_logger() -> Iterator[None]:
    """Drop handlers added by --verbose so they never outlive a captured stream."""
    yield
    logger = logging.getLogger("tooldeps")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
