"""
depcache backends.

This file ensures all backends are auto-registered on import.
"""

from .registry import BackendRegistry
from .base import Backend, EnvironmentValidation

# Force import of all backends to trigger auto-registration
from . import git_lfs
from . import local

__all__ = [
    'BackendRegistry',
    'Backend',
    'EnvironmentValidation',
]
