"""npm command wrapper."""

from __future__ import annotations

import logging

from . import process
from .process import PathLike

logger = logging.getLogger(__name__)


async def install(workspace: PathLike) -> str:
    """Run `npm install` in `workspace`, returning its stdout."""
    logger.info(f"Running npm install in {workspace}")
    return await process.get_output("npm", ["install"], cwd=workspace)
