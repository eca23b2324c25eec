"""
Tests for the git wrapper.

git's stderr is the only signal for ref conflicts, so the samples below
are taken verbatim from real git runs.
"""

import asyncio

import pytest

from conftest import git_failure
from depcache.core.errors import (
    BundleAlreadyExistsError,
    CommandNotFoundError,
    CommandReturnedNonZeroError,
    GitLfsNotAvailableError,
    RefAlreadyExistsError,
    TooOldRevisionError,
)
from depcache.wrappers import git
from depcache.wrappers.git import GitFailureKind, classify_failure


LFS_CONFIG = (
    "user.name=Jane\n"
    "filter.lfs.clean=git-lfs clean -- %f\n"
    "filter.lfs.smudge=git-lfs smudge -- %f\n"
    "filter.lfs.process=git-lfs filter-process\n"
    "filter.lfs.required=true\n"
)

TAG_EXISTS = "fatal: tag 'depcache-0123abcd-linux' already exists\n"

PUSH_REJECTED = (
    "To github.com:example/bundles.git\n"
    " ! [rejected]        depcache-0123abcd-linux -> depcache-0123abcd-linux (already exists)\n"
    "error: failed to push some refs to 'github.com:example/bundles.git'\n"
    "hint: Updates were rejected because the tag already exists in the remote.\n"
)

PUSH_CANNOT_LOCK = (
    "To github.com:example/bundles.git\n"
    " ! [remote rejected] depcache-0123abcd-linux -> depcache-0123abcd-linux "
    "(cannot lock ref 'refs/tags/depcache-0123abcd-linux': reference already exists)\n"
    "error: failed to push some refs to 'github.com:example/bundles.git'\n"
)


class TestGitLfsAvailability:
    """`git lfs` probe and filter hook check."""

    def test_lfs_command_failure(self, fake_process):
        fake_process.on("git", "lfs", error=git_failure("git: 'lfs' is not a git command.\n"))

        with pytest.raises(GitLfsNotAvailableError) as excinfo:
            asyncio.run(git.is_git_lfs_available())

        assert isinstance(excinfo.value.__cause__, CommandReturnedNonZeroError)

    def test_git_not_installed(self, fake_process):
        fake_process.on("git", error=CommandNotFoundError("git not found"))

        with pytest.raises(GitLfsNotAvailableError):
            asyncio.run(git.is_git_lfs_available())

    def test_missing_hooks(self, fake_process):
        fake_process.on("git", "config", "--list", output="user.name=Jane\nfilter.lfs.clean=git-lfs clean -- %f\n")

        with pytest.raises(GitLfsNotAvailableError) as excinfo:
            asyncio.run(git.is_git_lfs_available())

        assert "filter.lfs.smudge" in excinfo.value.details["missing"]
        assert "filter.lfs.process" in excinfo.value.details["missing"]
        assert "filter.lfs.clean" not in excinfo.value.details["missing"]

    def test_available(self, fake_process):
        fake_process.on("git", "config", "--list", output=LFS_CONFIG)

        assert asyncio.run(git.is_git_lfs_available()) is True
        assert fake_process.args_of("git") == [["lfs"], ["config", "--list"]]


class TestOlderRevision:
    """Reading files as they were N commits ago."""

    @pytest.fixture
    def repo(self, tmp_path, fake_process):
        fake_process.on("git", "rev-parse", "--show-toplevel", output=f"{tmp_path}\n")
        return tmp_path

    def test_not_enough_history(self, repo, fake_process):
        fake_process.on("git", "log", output="aaaa111\nbbbb222")

        with pytest.raises(TooOldRevisionError):
            asyncio.run(git.older_revision(repo, ["test_file"], 3))

        assert not [a for a in fake_process.args_of("git") if a[0] == "show"]

    def test_selects_oldest_revision(self, repo, fake_process):
        fake_process.on("git", "log", output="aaaa111\nbbbb222\ncccc333")
        fake_process.on("git", "show", "cccc333:test_file", output="old contents")

        result = asyncio.run(git.older_revision(repo, ["test_file"], 3))

        assert result == ["old contents"]
        assert ["show", "cccc333:test_file"] in fake_process.args_of("git")

    def test_exactly_one_revision(self, repo, fake_process):
        fake_process.on("git", "log", output="aaaa111")
        fake_process.on("git", "show", "aaaa111:test_file", output="contents")

        assert asyncio.run(git.older_revision(repo, ["test_file"], 1)) == ["contents"]

    def test_log_arguments(self, repo, fake_process):
        fake_process.on("git", "log", output="aaaa111\nbbbb222")

        asyncio.run(git.older_revision(repo, ["package.json", "package-lock.json"], 2))

        log_args = [a for a in fake_process.args_of("git") if a[0] == "log"]
        assert log_args == [[
            "log", "--pretty=format:%h", "-n", "2", "--",
            "package.json", "package-lock.json",
        ]]
        assert str(fake_process.cwd_of("log")) == str(repo)

    def test_absolute_path_same_as_relative(self, repo, fake_process):
        fake_process.on("git", "log", output="aaaa111")

        asyncio.run(git.older_revision(repo, ["test_file"], 1))
        asyncio.run(git.older_revision(repo, [str(repo / "test_file")], 1))

        shows = [a for a in fake_process.args_of("git") if a[0] == "show"]
        assert shows == [["show", "aaaa111:test_file"], ["show", "aaaa111:test_file"]]

    def test_nested_directory(self, repo, fake_process):
        nested = repo / "packages" / "web"
        nested.mkdir(parents=True)
        fake_process.on("git", "log", output="aaaa111")

        asyncio.run(git.older_revision(nested, ["package.json"], 1))

        shows = [a for a in fake_process.args_of("git") if a[0] == "show"]
        assert shows == [["show", "aaaa111:packages/web/package.json"]]

    def test_symlinked_file_keeps_its_own_path(self, repo, fake_process):
        (repo / "shared").mkdir()
        (repo / "shared" / "package.json").write_text('{"name": "shared"}')
        (repo / "package.json").symlink_to(repo / "shared" / "package.json")
        fake_process.on("git", "log", output="aaaa111")

        asyncio.run(git.older_revision(repo, ["package.json"], 1))
        asyncio.run(git.older_revision(repo, [str(repo / "package.json")], 1))

        log_args = [a for a in fake_process.args_of("git") if a[0] == "log"]
        assert [a[-1] for a in log_args] == ["package.json", "package.json"]
        shows = [a for a in fake_process.args_of("git") if a[0] == "show"]
        assert shows == [["show", "aaaa111:package.json"], ["show", "aaaa111:package.json"]]

    def test_none_paths_pass_through(self, repo, fake_process):
        fake_process.on("git", "log", output="aaaa111")
        fake_process.on("git", "show", "aaaa111:package.json", output='{"name": "demo"}')

        result = asyncio.run(git.older_revision(repo, [None, "package.json", None], 1))

        assert result == [None, '{"name": "demo"}', None]
        log_args = [a for a in fake_process.args_of("git") if a[0] == "log"][0]
        assert log_args[-2:] == ["--", "package.json"]
        assert len([a for a in fake_process.args_of("git") if a[0] == "show"]) == 1

    def test_all_none_skips_git(self, repo, fake_process):
        assert asyncio.run(git.older_revision(repo, [None, None], 2)) == [None, None]
        assert fake_process.calls == []

    def test_invalid_depth(self, repo):
        with pytest.raises(ValueError):
            asyncio.run(git.older_revision(repo, ["test_file"], 0))


class TestFailureClassification:
    """Pure classification of git stderr."""

    def test_tag_already_exists(self):
        failure = classify_failure(TAG_EXISTS)
        assert failure.kind is GitFailureKind.REF_ALREADY_EXISTS
        assert failure.ref == "depcache-0123abcd-linux"

    def test_push_rejected(self):
        failure = classify_failure(PUSH_REJECTED)
        assert failure.kind is GitFailureKind.REF_ALREADY_EXISTS
        assert failure.ref == "depcache-0123abcd-linux"

    def test_cannot_lock_ref(self):
        failure = classify_failure(PUSH_CANNOT_LOCK)
        assert failure.kind is GitFailureKind.REF_ALREADY_EXISTS
        assert failure.ref == "refs/tags/depcache-0123abcd-linux"

    def test_generic(self):
        failure = classify_failure("fatal: unable to access 'https://example.com/': Could not resolve host\n")
        assert failure.kind is GitFailureKind.GENERIC
        assert failure.ref is None

    def test_empty_output(self):
        assert classify_failure("").kind is GitFailureKind.GENERIC


class TestTagAndPush:
    """Classified errors surface from tag and push."""

    def test_tag_conflict(self, tmp_path, fake_process):
        original = git_failure(TAG_EXISTS)
        fake_process.on("git", "tag", error=original)

        with pytest.raises(RefAlreadyExistsError) as excinfo:
            asyncio.run(git.tag(tmp_path, "depcache-0123abcd-linux"))

        assert isinstance(excinfo.value, BundleAlreadyExistsError)
        assert excinfo.value.ref == "depcache-0123abcd-linux"
        assert excinfo.value.__cause__ is original

    @pytest.mark.parametrize("stderr", [PUSH_REJECTED, PUSH_CANNOT_LOCK])
    def test_push_conflict(self, tmp_path, fake_process, stderr):
        fake_process.on("git", "remote", output="origin\n")
        fake_process.on("git", "push", error=git_failure(stderr))

        with pytest.raises(RefAlreadyExistsError):
            asyncio.run(git.push(tmp_path, "depcache-0123abcd-linux"))

    def test_push_generic_failure_unchanged(self, tmp_path, fake_process):
        original = git_failure("fatal: Authentication failed\n")
        fake_process.on("git", "remote", output="origin\n")
        fake_process.on("git", "push", error=original)

        with pytest.raises(CommandReturnedNonZeroError) as excinfo:
            asyncio.run(git.push(tmp_path, "depcache-0123abcd-linux"))

        assert excinfo.value is original

    def test_push_uses_first_remote(self, tmp_path, fake_process):
        fake_process.on("git", "remote", output="origin\nupstream\n")

        asyncio.run(git.push(tmp_path, "depcache-0123abcd-linux"))

        assert ["push", "origin", "depcache-0123abcd-linux"] in fake_process.args_of("git")

    def test_push_without_remote(self, tmp_path, fake_process):
        with pytest.raises(CommandReturnedNonZeroError):
            asyncio.run(git.push(tmp_path, "depcache-0123abcd-linux"))
