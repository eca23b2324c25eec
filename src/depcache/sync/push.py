"""
Push orchestrator.

Delivers one bundle to every backend configured with `push: true`:
- scratch directories prepared concurrently, fail-fast
- pushes run concurrently and are always awaited as a batch
- `push_may_fail` backends never fail the cycle
- a bundle-already-exists conflict becomes `RePullNeeded` unless the
  caller is already re-pulling
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from rich.progress import Progress

from ..core.errors import BundleAlreadyExistsError, RePullNeeded
from ..storage.cache_dir import CacheDirectoryManager
from ..storage.config import BackendConfig
from .progress import BackendCall, provide_backend_call_tools

logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# Outcomes
# ---------------------------------------------------------

@dataclass
class PushOutcome:
    config: BackendConfig
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def unrecovered_failures(outcomes: Sequence[PushOutcome]) -> List[Tuple[str, BaseException]]:
    """
    Apply the tolerance policy to collected outcomes.

    Failures of `push_may_fail` backends are logged and dropped. The rest
    are returned as (alias, error) in configuration order.
    """
    failures = []

    for outcome in outcomes:
        if outcome.ok:
            continue

        if outcome.config.push_may_fail:
            logger.warning(
                f"Pushing to '{outcome.config.alias}' failed, ignoring (push_may_fail): "
                f"{outcome.error}"
            )
            continue

        failures.append((outcome.config.alias, outcome.error))

    return failures


# ---------------------------------------------------------
# Push Service (Testable)
# ---------------------------------------------------------

class PushService:

    def __init__(
        self,
        cache_dirs: CacheDirectoryManager,
        workspace: Path,
        progress: Optional[Progress] = None,
    ):
        self.cache_dirs = cache_dirs
        self.workspace = Path(workspace)
        self.progress = progress

    async def push_all(
        self,
        backend_configs: Sequence[BackendConfig],
        fingerprint: str,
        re_pull: bool = False,
        clear_cache: bool = False,
    ) -> None:
        logger.debug(f"Pushing '{fingerprint}' to backends")

        targets = [config for config in backend_configs if config.push]
        if not targets and backend_configs:
            logger.info("No backends with push: true found. Exiting")
            return

        if clear_cache:
            await self.cache_dirs.clear_shared_cache()

        cache_dirs = await asyncio.gather(
            *(self.cache_dirs.create_clean_cache_dir(config) for config in targets)
        )

        results = await asyncio.gather(
            *(
                self._push_one(config, fingerprint, cache_dir)
                for config, cache_dir in zip(targets, cache_dirs)
            ),
            return_exceptions=True,
        )

        outcomes = []
        for config, result in zip(targets, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            outcomes.append(PushOutcome(config, result if isinstance(result, Exception) else None))

        failures = unrecovered_failures(outcomes)

        if not failures:
            logger.debug("Pushing to all backends completed successfully")
            return

        for alias, error in failures:
            logger.error(f"Pushing '{fingerprint}' to '{alias}' failed: {error}")

        conflict = next(
            (error for _, error in failures if isinstance(error, BundleAlreadyExistsError)),
            None,
        )

        if conflict is not None and not re_pull:
            message = f"Bundle '{fingerprint}' already exists in remote repo! Re-pulling it"
            logger.error(message)
            raise RePullNeeded(message, fingerprint=fingerprint) from conflict

        raise failures[0][1]

    async def _push_one(
        self,
        config: BackendConfig,
        fingerprint: str,
        cache_dir: Path,
    ) -> None:
        logger.info(f"Pushing '{fingerprint}' to '{config.alias}' backend")

        tools = provide_backend_call_tools(
            config, BackendCall.PUSH, self.workspace, self.progress,
        )
        await config.backend.push(fingerprint, config.options, cache_dir, tools)
        tools.finish()

        logger.info(f"Pushing '{fingerprint}' to '{config.alias}' backend completed successfully")


async def push_backends(
    backend_configs: Sequence[BackendConfig],
    fingerprint: str,
    re_pull: bool = False,
    clear_cache: bool = False,
    *,
    cache_dirs: Optional[CacheDirectoryManager] = None,
    workspace: Optional[Path] = None,
    progress: Optional[Progress] = None,
) -> None:
    """
    Push `fingerprint` to every backend with `push: true`.

    Raises:
        RePullNeeded: a mandatory backend already has this bundle and
            `re_pull` is False
        Exception: the first unrecovered backend error otherwise
    """
    workspace = Path(workspace) if workspace else Path.cwd()
    if cache_dirs is None:
        cache_dirs = CacheDirectoryManager(
            shared_cache_dir=workspace / "node_modules" / ".cache",
        )

    service = PushService(cache_dirs, workspace, progress)
    await service.push_all(backend_configs, fingerprint, re_pull, clear_cache)
