"""
Per-backend-call tools handed to backends.

The engine builds one `BackendCallTools` per call and forwards it; only the
backend decides what to report through it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from rich.progress import Progress, TaskID


class BackendCall(str, Enum):
    PUSH = "push"
    PULL = "pull"


@dataclass
class BackendCallTools:
    alias: str
    call: BackendCall
    workspace: Path
    logger: logging.Logger
    progress: Optional[Progress] = None
    task_id: Optional[TaskID] = None

    def update(
        self,
        description: Optional[str] = None,
        total: Optional[float] = None,
        completed: Optional[float] = None,
    ) -> None:
        if description:
            self.logger.debug(description)

        if self.progress is None or self.task_id is None:
            return

        self.progress.update(
            self.task_id,
            description=f"{self.alias}: {description}" if description else None,
            total=total,
            completed=completed,
        )

    def advance(self, amount: float = 1) -> None:
        if self.progress is not None and self.task_id is not None:
            self.progress.advance(self.task_id, amount)

    def finish(self) -> None:
        if self.progress is None or self.task_id is None:
            return

        for task in self.progress.tasks:
            if task.id == self.task_id:
                total = task.total or 1
                self.progress.update(self.task_id, total=total, completed=total)


def provide_backend_call_tools(
    backend_config,
    call: BackendCall,
    workspace: Path,
    progress: Optional[Progress] = None,
) -> BackendCallTools:
    logger = logging.getLogger(f"depcache.backend.{backend_config.alias}")

    task_id = None
    if progress is not None:
        task_id = progress.add_task(f"{backend_config.alias}: {call.value}", total=None)

    return BackendCallTools(
        alias=backend_config.alias,
        call=call,
        workspace=Path(workspace),
        logger=logger,
        progress=progress,
        task_id=task_id,
    )
