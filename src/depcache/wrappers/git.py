"""
Git command wrapper.

git output is written for humans and drifts between versions. This module
is the only place that reads it: failures are classified into the closed
taxonomy in `core.errors`, so callers only ever see typed errors.

    RefAlreadyExistsError      tag/push collided with an existing ref
    TooOldRevisionError        not enough history for `older_revision`
    GitLfsNotAvailableError    git-lfs missing or its filter hooks absent
    CommandReturnedNonZeroError  anything else, re-raised unchanged
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from . import process
from .process import PathLike
from ..core.errors import (
    CommandReturnedNonZeroError,
    GitLfsNotAvailableError,
    RefAlreadyExistsError,
    TooOldRevisionError,
)

logger = logging.getLogger(__name__)

LFS_FILTER_HOOKS = (
    "filter.lfs.clean",
    "filter.lfs.smudge",
    "filter.lfs.process",
)


# ============================================================
# Failure Classification
# ============================================================

class GitFailureKind(str, Enum):
    REF_ALREADY_EXISTS = "ref_already_exists"
    GENERIC = "generic"


@dataclass(frozen=True)
class ClassifiedFailure:
    kind: GitFailureKind
    ref: Optional[str] = None


# Order matters: first match wins.
_REF_EXISTS_PATTERNS = (
    # git tag: fatal: tag 'name' already exists
    re.compile(r"tag '(?P<ref>[^']+)' already exists"),
    # git push: ! [rejected]  name -> name (already exists)
    re.compile(r"(?P<ref>\S+)\s+\(already exists\)"),
    # git push, newer servers: (cannot lock ref 'refs/tags/name': reference already exists)
    re.compile(r"cannot lock ref '(?P<ref>[^']+)': reference already exists"),
)


def classify_failure(stderr: str) -> ClassifiedFailure:
    """Pure classification of captured git stderr."""
    for pattern in _REF_EXISTS_PATTERNS:
        match = pattern.search(stderr or "")
        if match:
            return ClassifiedFailure(GitFailureKind.REF_ALREADY_EXISTS, match.group("ref"))

    return ClassifiedFailure(GitFailureKind.GENERIC)


def raise_classified(error: CommandReturnedNonZeroError) -> None:
    """Re-raise `error` as its classified type (or unchanged)."""
    failure = classify_failure(error.output)

    if failure.kind is GitFailureKind.REF_ALREADY_EXISTS:
        raise RefAlreadyExistsError(failure.ref) from error

    raise error


async def _git(args: Sequence[str], cwd: Optional[PathLike] = None) -> str:
    return await process.get_output("git", args, cwd=cwd)


async def _git_classified(args: Sequence[str], cwd: Optional[PathLike] = None) -> str:
    try:
        return await _git(args, cwd=cwd)
    except CommandReturnedNonZeroError as exc:
        raise_classified(exc)


# ============================================================
# Availability
# ============================================================

async def is_git_lfs_available(directory: Optional[PathLike] = None) -> bool:
    """
    Resolve True when `git lfs` runs and all LFS filter hooks are configured.

    Raises:
        GitLfsNotAvailableError
    """
    try:
        await _git(["lfs"], cwd=directory)
    except Exception as exc:
        raise GitLfsNotAvailableError(
            "git-lfs is not available. Install it and run `git lfs install`."
        ) from exc

    config = await _git(["config", "--list"], cwd=directory)

    configured = {
        line.split("=", 1)[0].strip()
        for line in config.splitlines()
        if "=" in line
    }
    missing = [hook for hook in LFS_FILTER_HOOKS if hook not in configured]

    if missing:
        raise GitLfsNotAvailableError(
            "git-lfs hooks are not installed. Run `git lfs install`.",
            details={"missing": ", ".join(missing)},
        )

    return True


# ============================================================
# Repository Queries
# ============================================================

async def top_level(directory: PathLike) -> Path:
    output = await _git(["rev-parse", "--show-toplevel"], cwd=directory)
    return Path(output.strip())


async def is_git_repo(directory: PathLike) -> bool:
    try:
        await top_level(directory)
    except CommandReturnedNonZeroError:
        return False
    return True


def _relative_to_top(top: Path, directory: PathLike, file_path: str) -> str:
    # The file itself is never dereferenced: git tracks the link, not its target.
    if os.path.isabs(file_path):
        head, tail = os.path.split(os.path.normpath(file_path))
        path = os.path.join(os.path.realpath(head), tail)
    else:
        path = os.path.normpath(os.path.join(os.path.realpath(directory), file_path))

    relative = os.path.relpath(path, os.path.realpath(top))
    return Path(relative).as_posix()


async def show(directory: PathLike, revision: str, file_path: str) -> str:
    return await _git(["show", f"{revision}:{file_path}"], cwd=directory)


async def older_revision(
    directory: PathLike,
    file_paths: Sequence[Optional[str]],
    revisions_back: int,
) -> List[Optional[str]]:
    """
    Contents of `file_paths` as of `revisions_back` commits ago.

    The revision is the oldest of the last `revisions_back` commits that
    touched any of the files. `None` entries stay `None` in the result and
    are never passed to git.

    Raises:
        TooOldRevisionError: the files have fewer than `revisions_back` commits
    """
    if revisions_back < 1:
        raise ValueError("revisions_back must be >= 1")

    if all(p is None for p in file_paths):
        return [None] * len(file_paths)

    top = await top_level(directory)

    resolved = [
        None if p is None else _relative_to_top(top, directory, p)
        for p in file_paths
    ]
    present = [p for p in resolved if p is not None]

    output = await _git(
        ["log", "--pretty=format:%h", "-n", str(revisions_back), "--", *present],
        cwd=top,
    )
    revisions = [line.strip() for line in output.splitlines() if line.strip()]

    if len(revisions) < revisions_back:
        raise TooOldRevisionError(
            f"{', '.join(present)} has only {len(revisions)} revision(s), "
            f"{revisions_back} requested",
            revisions_back=revisions_back,
        )

    revision = revisions[-1]
    logger.debug(f"Resolved {revisions_back} revision(s) back to {revision}")

    contents = iter(await asyncio.gather(*(show(top, revision, p) for p in present)))

    return [None if p is None else next(contents) for p in resolved]


# ============================================================
# Writing
# ============================================================

async def tag(directory: PathLike, name: str) -> None:
    await _git_classified(["tag", name], cwd=directory)


async def remote_name(directory: PathLike) -> str:
    output = await _git(["remote"], cwd=directory)
    remotes = [line.strip() for line in output.splitlines() if line.strip()]
    if not remotes:
        raise CommandReturnedNonZeroError(
            f"No git remote configured in {directory}",
        )
    return remotes[0]


async def push(directory: PathLike, name: str) -> None:
    remote = await remote_name(directory)
    logger.debug(f"Pushing '{name}' to remote '{remote}'")
    await _git_classified(["push", remote, name], cwd=directory)


async def clone(
    url: str,
    directory: PathLike,
    ref: Optional[str] = None,
    depth: Optional[int] = None,
) -> None:
    args = ["clone"]
    if depth:
        args += ["--depth", str(depth)]
    if ref:
        args += ["--branch", ref, "--single-branch"]
    args += [url, str(directory)]

    await _git(args)


async def remote_tag_exists(url: str, name: str) -> bool:
    output = await _git(["ls-remote", "--tags", url, f"refs/tags/{name}"])
    return bool(output.strip())


async def add_all(directory: PathLike) -> None:
    await _git(["add", "--all"], cwd=directory)


async def commit(directory: PathLike, message: str) -> None:
    await _git(["commit", "--message", message], cwd=directory)


async def lfs_track(directory: PathLike, pattern: str) -> None:
    await _git(["lfs", "track", pattern], cwd=directory)
