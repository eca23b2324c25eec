"""Backend synchronization engine: push orchestrator, pull loop, install cycle."""

from .progress import BackendCall, BackendCallTools, provide_backend_call_tools
from .push import PushService, push_backends
from .pull import PullService, pull_backends
from .install import InstallService, InstallResult, InstallSource, install

__all__ = [
    "BackendCall",
    "BackendCallTools",
    "provide_backend_call_tools",
    "PushService",
    "push_backends",
    "PullService",
    "pull_backends",
    "InstallService",
    "InstallResult",
    "InstallSource",
    "install",
]
