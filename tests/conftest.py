"""
Shared pytest fixtures for depcache tests.
"""

import asyncio
import json
from pathlib import Path

import pytest

from depcache.backends.base import Backend, EnvironmentValidation
from depcache.core.errors import BundleNotFoundError, CommandReturnedNonZeroError
from depcache.storage.cache_dir import CacheDirectoryManager
from depcache.storage.config import BackendConfig
from depcache.wrappers import process


MANIFEST = {
    "name": "demo",
    "version": "1.0.0",
    "dependencies": {"left-pad": "^1.3.0"},
    "devDependencies": {"mocha": "^10.0.0"},
}
LOCKFILE = '{"name": "demo", "lockfileVersion": 3}\n'


# ---------------------------------------------------------------------
# External processes
# ---------------------------------------------------------------------

class FakeProcess:
    """
    Stand-in for `process.get_output`.

    Responses are registered by argument prefix; the longest matching
    prefix wins. A response is stdout text, an exception to raise, or a
    callable `(args, cwd) -> str`. Unmatched commands print nothing.
    """

    def __init__(self):
        self.calls = []
        self.responses = {}

    def on(self, executable, *args, output="", error=None, handler=None):
        key = (executable, *args)
        if error is not None:
            self.responses[key] = error
        elif handler is not None:
            self.responses[key] = handler
        else:
            self.responses[key] = output

    async def __call__(self, executable, args, cwd=None, env=None, timeout=None):
        args = [str(a) for a in args]
        key = (executable, *args)
        self.calls.append((key, cwd))

        match = None
        for prefix in self.responses:
            if key[:len(prefix)] == prefix and (match is None or len(prefix) > len(match)):
                match = prefix

        if match is None:
            return ""

        response = self.responses[match]
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(args, cwd)
        return response

    def args_of(self, executable="git"):
        """Argument lists of every call to `executable`, in call order."""
        return [list(key[1:]) for key, _ in self.calls if key[0] == executable]

    def cwd_of(self, *args):
        """cwd of the first call whose arguments start with `args`."""
        for key, cwd in self.calls:
            if key[1:1 + len(args)] == args:
                return cwd
        raise AssertionError(f"no call with args {args}")


def git_failure(stderr: str) -> CommandReturnedNonZeroError:
    return CommandReturnedNonZeroError(
        "Command [git] returned 1",
        output=stderr,
        details={"returncode": 1},
    )


@pytest.fixture
def fake_process(monkeypatch) -> FakeProcess:
    fake = FakeProcess()
    monkeypatch.setattr(process, "get_output", fake)
    return fake


# ---------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------

class StubBackend(Backend):
    """
    In-memory backend.

    `bundles` is the set of fingerprints it holds. Errors given at
    construction are raised from the corresponding call.
    """

    def __init__(self, bundles=(), push_error=None, pull_error=None, delay=0.0):
        self.bundles = set(bundles)
        self.push_error = push_error
        self.pull_error = pull_error
        self.delay = delay
        self.pushed = []
        self.pulled = []
        self.cache_dirs = []

    @property
    def name(self) -> str:
        return "stub"

    def validate_environment(self) -> EnvironmentValidation:
        return EnvironmentValidation(True, self.name, [], [], {})

    def validate_options(self, options):
        return dict(options)

    async def push(self, fingerprint, options, cache_dir, tools):
        self.cache_dirs.append(Path(cache_dir))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.push_error is not None:
            raise self.push_error
        self.pushed.append(fingerprint)
        self.bundles.add(fingerprint)

    async def pull(self, fingerprint, options, cache_dir, tools):
        self.cache_dirs.append(Path(cache_dir))
        if self.pull_error is not None:
            raise self.pull_error
        if fingerprint not in self.bundles:
            raise BundleNotFoundError(f"'{fingerprint}' not in stub", fingerprint=fingerprint)
        self.pulled.append(fingerprint)
        (tools.workspace / "node_modules").mkdir(exist_ok=True)


@pytest.fixture
def make_backend_config():
    """Factory for BackendConfig entries wrapping a StubBackend."""

    def factory(alias, backend=None, push=True, push_may_fail=False, options=None):
        return BackendConfig(
            alias=alias,
            backend=backend if backend is not None else StubBackend(),
            options=options or {},
            push=push,
            push_may_fail=push_may_fail,
        )

    return factory


# ---------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------

@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A project directory with package.json and package-lock.json."""
    ws = tmp_path / "project"
    ws.mkdir()
    (ws / "package.json").write_text(json.dumps(MANIFEST, indent=2))
    (ws / "package-lock.json").write_text(LOCKFILE)
    return ws


@pytest.fixture
def node_modules(workspace: Path) -> Path:
    nm = workspace / "node_modules"
    (nm / "left-pad").mkdir(parents=True)
    (nm / "left-pad" / "index.js").write_text("module.exports = leftPad;\n")
    (nm / "left-pad" / "package.json").write_text('{"name": "left-pad"}\n')
    return nm


@pytest.fixture
def cache_dirs(tmp_path: Path, workspace: Path) -> CacheDirectoryManager:
    return CacheDirectoryManager(
        root=tmp_path / "cache",
        shared_cache_dir=workspace / "node_modules" / ".cache",
    )
