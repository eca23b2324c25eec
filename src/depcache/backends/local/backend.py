"""
Local directory backend.

Bundles live at `<directory>/<fingerprint>.tar.<ext>`. Useful for a shared
CI volume or an NFS mount.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from ..base import Backend, EnvironmentValidation, validate_compression
from ...core.errors import BundleAlreadyExistsError, BundleNotFoundError
from ...storage.archive import bundle_name, create_bundle, extract_bundle
from ...storage.config import ValidationError


class LocalBackend(Backend):

    @property
    def name(self) -> str:
        return "local"

    def validate_environment(self) -> EnvironmentValidation:
        return EnvironmentValidation(
            is_valid=True,
            backend_name=self.name,
            errors=[],
            warnings=[],
            info={},
        )

    def validate_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        directory = options.get("directory")
        if not directory:
            raise ValidationError("Local backend requires 'directory'.")

        return {
            **options,
            "directory": Path(directory).expanduser().resolve(),
            "compression": validate_compression(options),
        }

    # --------------------------------------------------------
    # Push
    # --------------------------------------------------------

    async def push(self, fingerprint, options, cache_dir, tools) -> None:
        tools.update(description="packing bundle")
        await asyncio.to_thread(
            self._store, fingerprint, options, tools.workspace,
        )

    def _store(self, fingerprint: str, options: Dict[str, Any], workspace: Path) -> Path:
        directory = Path(options["directory"])
        directory.mkdir(parents=True, exist_ok=True)

        compression = options["compression"]
        dest = directory / bundle_name(fingerprint, compression)

        if dest.exists():
            raise BundleAlreadyExistsError(
                f"Bundle '{fingerprint}' already exists in {directory}",
                fingerprint=fingerprint,
            )

        tmp_fd, tmp_name = tempfile.mkstemp(dir=directory, suffix=".partial")
        os.close(tmp_fd)
        tmp_path = Path(tmp_name)

        try:
            create_bundle(workspace, tmp_path, compression)

            # link() fails if dest exists
            try:
                os.link(tmp_path, dest)
            except FileExistsError:
                raise BundleAlreadyExistsError(
                    f"Bundle '{fingerprint}' already exists in {directory}",
                    fingerprint=fingerprint,
                )
        finally:
            tmp_path.unlink(missing_ok=True)

        return dest

    # --------------------------------------------------------
    # Pull
    # --------------------------------------------------------

    async def pull(self, fingerprint, options, cache_dir, tools) -> None:
        directory = Path(options["directory"])
        source = directory / bundle_name(fingerprint, options["compression"])

        if not source.exists():
            raise BundleNotFoundError(
                f"Bundle '{fingerprint}' not found in {directory}",
                fingerprint=fingerprint,
            )

        tools.update(description="unpacking bundle")
        await asyncio.to_thread(extract_bundle, source, tools.workspace)
