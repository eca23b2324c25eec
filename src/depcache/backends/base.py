"""
Abstract backend interface.
All bundle storage backends (git-lfs, local directory, future S3) implement this.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from ..storage.archive import COMPRESSION_MODES, DEFAULT_COMPRESSION
from ..storage.config import ValidationError


@dataclass
class EnvironmentValidation:
    """Environment check result."""
    is_valid: bool
    backend_name: str
    errors: List[str]
    warnings: List[str]
    info: Dict[str, Any]


class Backend(ABC):
    """
    Abstract backend interface.

    The push orchestrator depends only on this class. Every call receives
    the backend's validated options, a clean scratch directory it owns for
    the duration of the call, and a `BackendCallTools` handle.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name (e.g., 'git-lfs', 'local')."""
        pass

    @abstractmethod
    def validate_environment(self) -> EnvironmentValidation:
        """
        Check if this backend can run on current system.
        Returns errors/warnings/info.
        """
        pass

    @abstractmethod
    def validate_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and normalize backend options.

        Raises:
            ValidationError
        """
        pass

    @abstractmethod
    async def push(
        self,
        fingerprint: str,
        options: Dict[str, Any],
        cache_dir: Path,
        tools,
    ) -> None:
        """
        Publish the workspace's node_modules as the bundle for `fingerprint`.

        Raises:
            BundleAlreadyExistsError: bundle is already stored
        """
        pass

    @abstractmethod
    async def pull(
        self,
        fingerprint: str,
        options: Dict[str, Any],
        cache_dir: Path,
        tools,
    ) -> None:
        """
        Restore the bundle for `fingerprint` into the workspace.

        Raises:
            BundleNotFoundError
        """
        pass


def validate_compression(options: Dict[str, Any]) -> str:
    compression = options.get("compression", DEFAULT_COMPRESSION)
    if compression not in COMPRESSION_MODES:
        raise ValidationError(
            f"Invalid compression '{compression}'. "
            f"Available: {', '.join(COMPRESSION_MODES)}"
        )
    return compression
