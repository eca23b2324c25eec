"""Local directory backend."""

from .backend import LocalBackend

# Auto-register with backend registry
from ..registry import BackendRegistry
BackendRegistry.register("local", LocalBackend)

__all__ = ["LocalBackend"]
