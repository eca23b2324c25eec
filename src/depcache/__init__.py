"""
depcache - Content-addressed cache for node_modules bundles.
"""

__version__ = "0.1.0"

# Lazy imports - keep `depcache --help` free of backend imports
def __getattr__(name):
    if name == "install":
        from .sync.install import install
        return install
    elif name == "push_backends":
        from .sync.push import push_backends
        return push_backends
    elif name == "load_config":
        from .storage.config import load_config
        return load_config
    elif name == "compute_workspace_fingerprint":
        from .core.hash import compute_workspace_fingerprint
        return compute_workspace_fingerprint
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = ["__version__"]
