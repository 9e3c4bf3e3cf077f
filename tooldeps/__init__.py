"""tooldeps: run a project's tool dependencies from an isolated cache."""

from .orchestration.factory import create_runner
from .orchestration.runner import ToolDepsRunner

__version__ = "0.1.0"
__all__ = ["ToolDepsRunner", "__version__", "create_runner"]
