"""
Async external process invocation.

All external tools (git, npm) are run through `get_output`, so tests
can stub a single seam.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from ..core.errors import CommandNotFoundError, CommandReturnedNonZeroError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def format_command(executable: str, args: Sequence[str]) -> str:
    return " ".join(shlex.quote(str(part)) for part in [executable, *args])


async def get_output(
    executable: str,
    args: Sequence[str],
    cwd: Optional[PathLike] = None,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Run `executable` with `args` and return captured stdout.

    Raises:
        CommandNotFoundError: executable is not on PATH
        CommandReturnedNonZeroError: non-zero exit (stderr in `.output`)
    """
    command = format_command(executable, args)
    logger.debug(f"Running [{command}] in {cwd or os.getcwd()}")

    full_env = None
    if env is not None:
        full_env = os.environ.copy()
        full_env.update(env)

    try:
        proc = await asyncio.create_subprocess_exec(
            executable,
            *[str(a) for a in args],
            cwd=str(cwd) if cwd is not None else None,
            env=full_env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise CommandNotFoundError(
            f"Command [{command}] failed: {executable} not found",
            output=str(exc),
        ) from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise CommandReturnedNonZeroError(
            f"Command [{command}] timed out after {timeout}s",
        )

    out = stdout.decode("utf-8", errors="replace")
    err = stderr.decode("utf-8", errors="replace")

    if proc.returncode != 0:
        logger.debug(f"Command [{command}] returned {proc.returncode}: {err.strip()}")
        raise CommandReturnedNonZeroError(
            f"Command [{command}] returned {proc.returncode}",
            output=err,
            details={"returncode": proc.returncode},
        )

    return out
