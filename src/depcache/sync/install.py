"""
Install cycle: pull → (git history) → npm install → push → re-pull.

The push orchestrator never retries. This module owns the only retry:
when a push reports `RePullNeeded`, the local node_modules is discarded
and the cycle restarts once with `re_pull=True`.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from rich.progress import Progress

from ..core.errors import (
    BundleNotFoundError,
    NodeModulesAlreadyExistError,
    RePullNeeded,
    TooOldRevisionError,
    WorkspaceError,
)
from ..core.hash import (
    LOCKFILE_NAME,
    MANIFEST_NAME,
    compute_fingerprint,
    compute_workspace_fingerprint,
)
from ..storage.archive import NODE_MODULES
from ..storage.cache_dir import CacheDirectoryManager
from ..storage.config import DepcacheConfig
from ..wrappers import git, npm
from .pull import PullService
from .push import PushService

logger = logging.getLogger(__name__)


class InstallSource(str, Enum):
    PULL = "pull"
    GIT_HISTORY = "git_history"
    NPM = "npm"


@dataclass
class InstallResult:
    fingerprint: str
    source: InstallSource
    backend: Optional[str] = None
    re_pulled: bool = False


class InstallService:

    def __init__(
        self,
        config: DepcacheConfig,
        workspace: Path,
        progress: Optional[Progress] = None,
        cache_dirs: Optional[CacheDirectoryManager] = None,
    ):
        self.config = config
        self.workspace = Path(workspace)
        self.progress = progress
        self.cache_dirs = cache_dirs or CacheDirectoryManager(
            root=config.cache_root,
            shared_cache_dir=self.workspace / NODE_MODULES / ".cache",
        )
        self.pull_service = PullService(self.cache_dirs, self.workspace, progress)
        self.push_service = PushService(self.cache_dirs, self.workspace, progress)

    @property
    def node_modules(self) -> Path:
        return self.workspace / NODE_MODULES

    # -------------------------
    # Public API
    # -------------------------

    async def install(self, force: bool = False, re_pull: bool = False) -> InstallResult:
        if self.node_modules.exists():
            if not force:
                raise NodeModulesAlreadyExistError()
            logger.info(f"Removing existing {self.node_modules}")
            await asyncio.to_thread(shutil.rmtree, self.node_modules)

        fingerprint = compute_workspace_fingerprint(
            self.workspace, self.config.package_hash_suffix,
        )
        logger.info(f"Got hash: {fingerprint}")

        try:
            alias = await self.pull_service.pull_first(self.config.backends, fingerprint)
            return InstallResult(fingerprint, InstallSource.PULL, alias, re_pulled=re_pull)
        except BundleNotFoundError as exc:
            not_found = exc

        source = InstallSource.NPM
        alias = None

        if self.config.use_git_history:
            alias = await self._pull_from_history()
            if alias is not None:
                source = InstallSource.GIT_HISTORY

        if alias is None and not self.config.fallback_to_npm:
            raise not_found

        await npm.install(self.workspace)

        try:
            await self.push_service.push_all(
                self.config.backends,
                fingerprint,
                re_pull=re_pull,
                clear_cache=self.config.clear_shared_cache,
            )
        except RePullNeeded:
            await asyncio.to_thread(shutil.rmtree, self.node_modules)
            return await self.install(force=False, re_pull=True)

        return InstallResult(fingerprint, source, alias, re_pulled=re_pull)

    async def push(self) -> str:
        """Push the current node_modules under the current fingerprint."""
        if not self.node_modules.exists():
            raise WorkspaceError(f"{NODE_MODULES} not found", path=str(self.node_modules))

        fingerprint = compute_workspace_fingerprint(
            self.workspace, self.config.package_hash_suffix,
        )
        await self.push_service.push_all(
            self.config.backends,
            fingerprint,
            re_pull=True,
            clear_cache=self.config.clear_shared_cache,
        )
        return fingerprint

    # -------------------------
    # Git History
    # -------------------------

    async def _pull_from_history(self) -> Optional[str]:
        """
        Pull the bundle of an older package.json/package-lock.json revision.

        Returns the backend alias on success, None when history runs out.
        """
        if not await git.is_git_repo(self.workspace):
            logger.warning(f"{self.workspace} is not a git repository, skipping git history lookup")
            return None

        lockfile = LOCKFILE_NAME if (self.workspace / LOCKFILE_NAME).exists() else None

        for age in range(1, self.config.use_git_history + 1):
            try:
                manifest, older_lockfile = await git.older_revision(
                    self.workspace, [MANIFEST_NAME, lockfile], age,
                )
            except TooOldRevisionError:
                logger.info(f"No more git history after {age - 1} revision(s)")
                return None

            try:
                fingerprint = compute_fingerprint(
                    manifest, older_lockfile, self.config.package_hash_suffix,
                )
            except WorkspaceError as exc:
                logger.warning(f"Skipping revision {age} back: {exc}")
                continue

            logger.info(f"Trying {age} revision(s) back, hash '{fingerprint}'")

            try:
                return await self.pull_service.pull_first(self.config.backends, fingerprint)
            except BundleNotFoundError:
                continue

        return None


async def install(
    config: DepcacheConfig,
    *,
    workspace: Optional[Path] = None,
    force: bool = False,
    re_pull: bool = False,
    progress: Optional[Progress] = None,
    cache_dirs: Optional[CacheDirectoryManager] = None,
) -> InstallResult:
    service = InstallService(
        config,
        Path(workspace) if workspace else Path.cwd(),
        progress=progress,
        cache_dirs=cache_dirs,
    )
    return await service.install(force=force, re_pull=re_pull)
