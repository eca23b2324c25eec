"""git-lfs backend: bundles stored as tagged commits in a git repository."""

from .backend import GitLfsBackend

# Auto-register with backend registry
from ..registry import BackendRegistry
BackendRegistry.register("git-lfs", GitLfsBackend)

__all__ = ["GitLfsBackend"]
