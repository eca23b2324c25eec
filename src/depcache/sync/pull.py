"""
Pull-side backend selection.

Backends are tried in configuration order; the first one holding the
bundle wins.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from rich.progress import Progress

from ..core.errors import BundleNotFoundError
from ..storage.cache_dir import CacheDirectoryManager
from ..storage.config import BackendConfig
from .progress import BackendCall, provide_backend_call_tools

logger = logging.getLogger(__name__)


class PullService:

    def __init__(
        self,
        cache_dirs: CacheDirectoryManager,
        workspace: Path,
        progress: Optional[Progress] = None,
    ):
        self.cache_dirs = cache_dirs
        self.workspace = Path(workspace)
        self.progress = progress

    async def pull_first(
        self,
        backend_configs: Sequence[BackendConfig],
        fingerprint: str,
    ) -> str:
        """
        Returns the alias of the backend that provided the bundle.

        Raises:
            BundleNotFoundError: no backend has it
        """
        logger.debug(f"Pulling '{fingerprint}' from backends")

        for config in backend_configs:
            logger.info(f"Trying backend '{config.alias}' with hash '{fingerprint}'")

            cache_dir = await self.cache_dirs.create_clean_cache_dir(config)
            tools = provide_backend_call_tools(
                config, BackendCall.PULL, self.workspace, self.progress,
            )

            try:
                await config.backend.pull(fingerprint, config.options, cache_dir, tools)
            except BundleNotFoundError:
                logger.info(f"Couldn't find bundle '{fingerprint}' in '{config.alias}'")
                tools.finish()
                continue

            tools.finish()
            logger.info(f"Pulled '{fingerprint}' from backend '{config.alias}'")
            return config.alias

        raise BundleNotFoundError(
            f"Couldn't find bundle with hash '{fingerprint}'",
            fingerprint=fingerprint,
        )


async def pull_backends(
    backend_configs: Sequence[BackendConfig],
    fingerprint: str,
    *,
    cache_dirs: Optional[CacheDirectoryManager] = None,
    workspace: Optional[Path] = None,
    progress: Optional[Progress] = None,
) -> str:
    workspace = Path(workspace) if workspace else Path.cwd()
    service = PullService(cache_dirs or CacheDirectoryManager(), workspace, progress)
    return await service.pull_first(backend_configs, fingerprint)
