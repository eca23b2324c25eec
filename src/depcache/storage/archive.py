from __future__ import annotations

import logging
import os
import tarfile
from pathlib import Path
from typing import Optional

from ..core.errors import InternalError, WorkspaceError

logger = logging.getLogger(__name__)

# ============================================================
# Constants
# ============================================================

NODE_MODULES = "node_modules"

COMPRESSION_MODES = {
    "gzip": ("gz", ".tar.gz"),
    "bzip2": ("bz2", ".tar.bz2"),
    "xz": ("xz", ".tar.xz"),
}
DEFAULT_COMPRESSION = "gzip"


# ============================================================
# Utility Functions
# ============================================================

def bundle_suffix(compression: str = DEFAULT_COMPRESSION) -> str:
    return COMPRESSION_MODES[compression][1]


def bundle_name(fingerprint: str, compression: str = DEFAULT_COMPRESSION) -> str:
    return f"{fingerprint}{bundle_suffix(compression)}"


def tar_filter(member: tarfile.TarInfo) -> Optional[tarfile.TarInfo]:
    if member.isdev():
        return None
    if member.name.startswith("/"):
        return None
    if member.issym():
        target = os.path.normpath(
            os.path.join(os.path.dirname(member.name), member.linkname)
        )
        if os.path.isabs(member.linkname) or target.startswith(".."):
            logger.debug(f"Skipping symlink leaving the bundle: {member.name} -> {member.linkname}")
            return None
    return member


def safe_extract(tar: tarfile.TarFile, destination: Path) -> None:
    destination = destination.resolve()

    for member in tar.getmembers():
        member_path = (destination / member.name).resolve()
        if os.path.commonpath([destination, member_path]) != str(destination):
            raise InternalError(f"Unsafe tar member path detected: {member.name}")

        if member.isdev():
            raise InternalError("Device files not allowed in bundle.")

    if hasattr(tarfile, "data_filter"):
        tar.extractall(destination, filter="data")
    else:
        tar.extractall(destination)


# ============================================================
# Bundles
# ============================================================

def create_bundle(
    workspace: Path,
    bundle_path: Path,
    compression: str = DEFAULT_COMPRESSION,
) -> Path:
    """
    Archive `<workspace>/node_modules` into `bundle_path`.

    Symlinks are stored as links (npm uses them for .bin entries).
    """
    source = Path(workspace) / NODE_MODULES
    if not source.is_dir():
        raise WorkspaceError(f"{NODE_MODULES} not found", path=str(source))

    mode, _ = COMPRESSION_MODES[compression]
    bundle_path.parent.mkdir(parents=True, exist_ok=True)

    with tarfile.open(bundle_path, f"w:{mode}") as tar:
        tar.add(
            source,
            arcname=NODE_MODULES,
            recursive=True,
            filter=tar_filter,
        )

    logger.debug(f"Created bundle {bundle_path} ({bundle_path.stat().st_size} bytes)")
    return bundle_path


def extract_bundle(bundle_path: Path, destination: Path) -> None:
    """Unpack a bundle; `node_modules` lands directly under `destination`."""
    destination.mkdir(parents=True, exist_ok=True)

    with tarfile.open(bundle_path, "r:*") as tar:
        safe_extract(tar, destination)

    logger.debug(f"Extracted {bundle_path} into {destination}")
