"""
Scratch and shared cache directories.

Each backend gets `<root>/<alias>`, wiped and recreated before every push
or pull, so no state leaks between cycles. The shared cache
(`node_modules/.cache` by default) is only ever removed here.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CACHE_ROOT = Path.home() / ".depcache"


class CacheDirectoryManager:

    def __init__(
        self,
        root: Optional[Path] = None,
        shared_cache_dir: Optional[Path] = None,
    ):
        self.root = Path(root) if root else DEFAULT_CACHE_ROOT
        self.shared_cache_dir = Path(shared_cache_dir) if shared_cache_dir else None

    def cache_dir_for(self, alias: str) -> Path:
        return self.root / alias

    async def create_clean_cache_dir(self, backend_config) -> Path:
        """Return an empty directory owned by `backend_config.alias`."""
        path = self.cache_dir_for(backend_config.alias)
        await asyncio.to_thread(self._recreate, path)
        logger.debug(f"Prepared clean cache dir {path} for '{backend_config.alias}'")
        return path

    async def clear_shared_cache(self) -> bool:
        """
        Remove the shared cache directory.

        Returns False when there was nothing to remove. Only "not found"
        is tolerated; other OSErrors propagate.
        """
        if self.shared_cache_dir is None:
            return False

        try:
            await asyncio.to_thread(shutil.rmtree, self.shared_cache_dir)
        except FileNotFoundError:
            logger.debug(f"No shared cache directory at '{self.shared_cache_dir}'")
            return False

        logger.info(f"Removed shared cache directory '{self.shared_cache_dir}'")
        return True

    @staticmethod
    def _recreate(path: Path) -> None:
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True, exist_ok=True)
