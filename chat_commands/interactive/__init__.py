"""Interactive output rendering and REPL session."""

from .output import OutputCoordinator
from .session import InteractiveSession

__all__ = ['OutputCoordinator', 'InteractiveSession']
