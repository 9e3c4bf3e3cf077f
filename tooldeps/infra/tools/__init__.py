"""Tools package: command execution, environment, and locking utilities."""

from tooldeps.infra.tools.command_runner import CommandRunner, run_passthrough
from tooldeps.infra.tools.env import get_cache_root, load_user_env
from tooldeps.infra.tools.locking import LockManager, LockPolicy, LockRecord

__all__ = [
    "CommandRunner",
    "LockManager",
    "LockPolicy",
    "LockRecord",
    "get_cache_root",
    "load_user_env",
    "run_passthrough",
]
