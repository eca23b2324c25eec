"""Core primitives for depcache."""

from .hash import (
    compute_fingerprint,
    compute_workspace_fingerprint,
)
from .errors import (
    DepcacheError,
    CommandReturnedNonZeroError,
    BundleAlreadyExistsError,
    BundleNotFoundError,
    RefAlreadyExistsError,
    RePullNeeded,
    InternalError,
)

__all__ = [
    "compute_fingerprint",
    "compute_workspace_fingerprint",
    "DepcacheError",
    "CommandReturnedNonZeroError",
    "BundleAlreadyExistsError",
    "BundleNotFoundError",
    "RefAlreadyExistsError",
    "RePullNeeded",
    "InternalError",
]
