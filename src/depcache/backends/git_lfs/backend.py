"""
git-lfs backend.

Each bundle is a commit holding one archive, addressed by the tag
`<tag_prefix>-<fingerprint>`. Only tags are pushed, never branches, so the
remote's default branch stays untouched and tags are the index.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any, Dict

from ..base import Backend, EnvironmentValidation, validate_compression
from ...core.errors import BundleNotFoundError, InternalError
from ...storage.archive import NODE_MODULES, bundle_suffix, create_bundle, extract_bundle
from ...storage.config import ValidationError
from ...wrappers import git

DEFAULT_TAG_PREFIX = "depcache"
REPO_DIR = "repo"


class GitLfsBackend(Backend):

    @property
    def name(self) -> str:
        return "git-lfs"

    def validate_environment(self) -> EnvironmentValidation:
        errors = []
        info = {}

        git_path = shutil.which("git")
        if git_path:
            info["git"] = git_path
        else:
            errors.append("git executable not found on PATH")

        return EnvironmentValidation(
            is_valid=not errors,
            backend_name=self.name,
            errors=errors,
            warnings=[],
            info=info,
        )

    def validate_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        repo = options.get("repo")
        if not repo or not isinstance(repo, str):
            raise ValidationError("git-lfs backend requires 'repo'.")

        tag_prefix = options.get("tag_prefix", DEFAULT_TAG_PREFIX)
        if not tag_prefix or any(c.isspace() for c in tag_prefix):
            raise ValidationError(f"Invalid tag_prefix '{tag_prefix}'.")

        return {
            **options,
            "repo": repo,
            "compression": validate_compression(options),
            "tag_prefix": tag_prefix,
            "check_lfs_availability": bool(options.get("check_lfs_availability", False)),
        }

    @staticmethod
    def tag_name(fingerprint: str, options: Dict[str, Any]) -> str:
        return f"{options['tag_prefix']}-{fingerprint}"

    @staticmethod
    def bundle_file(repo_dir: Path, options: Dict[str, Any]) -> Path:
        return repo_dir / f"{NODE_MODULES}{bundle_suffix(options['compression'])}"

    # --------------------------------------------------------
    # Push
    # --------------------------------------------------------

    async def push(self, fingerprint, options, cache_dir, tools) -> None:
        if options["check_lfs_availability"]:
            await git.is_git_lfs_available()

        repo_dir = Path(cache_dir) / REPO_DIR
        tag = self.tag_name(fingerprint, options)

        tools.update(description="cloning repository")
        await git.clone(options["repo"], repo_dir, depth=1)

        tools.update(description="packing bundle")
        bundle = self.bundle_file(repo_dir, options)
        await asyncio.to_thread(create_bundle, tools.workspace, bundle, options["compression"])

        if options["check_lfs_availability"]:
            await git.lfs_track(repo_dir, bundle.name)

        await git.add_all(repo_dir)
        await git.commit(repo_dir, f"depcache bundle {fingerprint}")
        await git.tag(repo_dir, tag)

        tools.update(description=f"pushing {tag}")
        await git.push(repo_dir, tag)

    # --------------------------------------------------------
    # Pull
    # --------------------------------------------------------

    async def pull(self, fingerprint, options, cache_dir, tools) -> None:
        tag = self.tag_name(fingerprint, options)

        if not await git.remote_tag_exists(options["repo"], tag):
            raise BundleNotFoundError(
                f"Tag '{tag}' not found in {options['repo']}",
                fingerprint=fingerprint,
            )

        if options["check_lfs_availability"]:
            await git.is_git_lfs_available()

        repo_dir = Path(cache_dir) / REPO_DIR

        tools.update(description=f"cloning {tag}")
        await git.clone(options["repo"], repo_dir, ref=tag, depth=1)

        bundle = self.bundle_file(repo_dir, options)
        if not bundle.exists():
            raise InternalError(
                f"Tag '{tag}' does not contain {bundle.name}",
                context={"repo": options["repo"]},
            )

        tools.update(description="unpacking bundle")
        await asyncio.to_thread(extract_bundle, bundle, tools.workspace)
