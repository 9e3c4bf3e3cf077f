"""Factory for ToolDepsRunner.

Usage:
    runner = create_runner(ToolDepsConfig.from_env(), Path.cwd())
    sys.exit(runner.exec("eslint", ["src/"]))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from tooldeps.infra.cache_store import CacheStore
from tooldeps.infra.package_manager import NpmPackageManager
from tooldeps.infra.tools.locking import LockManager, LockPolicy
from tooldeps.orchestration.runner import ToolDepsRunner
from tooldeps.pipeline.dispatcher import CommandResolver, Dispatcher
from tooldeps.pipeline.installer import Installer

if TYPE_CHECKING:
    from pathlib import Path

    from tooldeps.core.protocols import PackageManagerPort
    from tooldeps.infra.io.config import ToolDepsConfig
    from tooldeps.pipeline.dispatcher import Executor


def create_runner(
    config: ToolDepsConfig,
    project_dir: Path,
    *,
    package_manager: PackageManagerPort | None = None,
    lock_manager: LockManager | None = None,
    executor: Executor | None = None,
    platform: str | None = None,
) -> ToolDepsRunner:
    """Wire a ToolDepsRunner from configuration.

    Keyword-only arguments override the production collaborators; tests use
    them to inject fakes.
    """
    store = CacheStore(config.cache_root)
    if lock_manager is None:
        lock_manager = LockManager(
            LockPolicy(
                wait_seconds=config.lock_wait_seconds,
                poll_seconds=config.lock_poll_seconds,
                stale_seconds=config.lock_stale_seconds,
            )
        )
    if package_manager is None:
        package_manager = NpmPackageManager(config.package_manager)

    installer = Installer(store, package_manager, lock_manager)
    resolver = (
        CommandResolver(store, platform) if platform else CommandResolver(store)
    )
    dispatcher = (
        Dispatcher(resolver, installer, executor)
        if executor
        else Dispatcher(resolver, installer)
    )
    return ToolDepsRunner(
        config=config,
        project_dir=project_dir,
        store=store,
        installer=installer,
        resolver=resolver,
        dispatcher=dispatcher,
    )
