"""
Deterministic bundle fingerprints.

Goals:
- Same declared dependencies + same lockfile → same fingerprint.
- Independent of key order and whitespace in package.json.
- Platform-specific bundles are separated by an optional suffix.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .errors import WorkspaceError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"
LOCKFILE_NAME = "package-lock.json"

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies")


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def compute_fingerprint(
    manifest: str,
    lockfile: Optional[str] = None,
    suffix: Optional[str] = None,
) -> str:
    """
    SHA1 of the dependency sections of `manifest` plus the raw lockfile.

    Args:
        manifest: package.json contents.
        lockfile: package-lock.json contents, if the workspace has one.
        suffix: Appended as `-<suffix>` (e.g. platform name).
    """
    deps = _dependency_sections(_parse_manifest(manifest))

    canonical_json = json.dumps(
        deps,
        sort_keys=True,
        separators=(",", ":"),
    )

    h = hashlib.sha1(canonical_json.encode("utf-8"))
    if lockfile is not None:
        h.update(lockfile.encode("utf-8"))

    fingerprint = h.hexdigest()
    if suffix:
        fingerprint = f"{fingerprint}-{suffix}"

    return fingerprint


def read_workspace_files(workspace: Path) -> Tuple[str, Optional[str]]:
    """
    Read (manifest, lockfile) from a project directory.
    Lockfile is None when absent.
    """
    workspace = Path(workspace)
    manifest_path = workspace / MANIFEST_NAME
    lockfile_path = workspace / LOCKFILE_NAME

    if not manifest_path.exists():
        raise WorkspaceError(
            f"{MANIFEST_NAME} not found",
            path=str(manifest_path),
        )

    manifest = manifest_path.read_text(encoding="utf-8")
    lockfile = lockfile_path.read_text(encoding="utf-8") if lockfile_path.exists() else None

    return manifest, lockfile


def compute_workspace_fingerprint(workspace: Path, suffix: Optional[str] = None) -> str:
    manifest, lockfile = read_workspace_files(workspace)
    fingerprint = compute_fingerprint(manifest, lockfile, suffix)
    logger.debug(f"Fingerprint for {workspace}: {fingerprint}")
    return fingerprint


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _parse_manifest(manifest: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(manifest)
    except ValueError as exc:
        raise WorkspaceError(f"{MANIFEST_NAME} is not valid JSON: {exc}") from exc

    if not isinstance(parsed, dict):
        raise WorkspaceError(f"{MANIFEST_NAME} must contain a JSON object")

    return parsed


def _dependency_sections(manifest: Dict[str, Any]) -> Dict[str, Any]:
    return {section: manifest.get(section) or {} for section in DEPENDENCY_SECTIONS}
