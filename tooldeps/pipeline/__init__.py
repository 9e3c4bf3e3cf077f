"""Pipeline components: installing tools and dispatching commands."""

from tooldeps.pipeline.dispatcher import CommandResolver, Dispatcher
from tooldeps.pipeline.installer import Installer

__all__ = ["CommandResolver", "Dispatcher", "Installer"]
