"""
Shared fixtures and test doubles for vanillabuild tests.

FakeGitClient and RecordingRunner record every call in order, so tests
can assert on the sequence of git and build-tool operations directly.
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from vanillabuild.config import BuildConfig
from vanillabuild.errors import SyncError
from vanillabuild.infra.git_client import GitClient, GitRepository
from vanillabuild.infra.process_runner import CommandInvocation, ProcessRunner


GIT_AVAILABLE = shutil.which("git") is not None

requires_git = pytest.mark.skipif(not GIT_AVAILABLE, reason="git executable not found")


class FakeGitClient(GitClient):
    """
    GitClient double that records calls instead of running git.

    Args:
        submodules: Maps a working copy path to its submodule paths
        failures: Maps an operation name to the SyncError it raises
    """

    def __init__(self, submodules: Optional[Dict[Path, List[Path]]] = None,
                 failures: Optional[Dict[str, SyncError]] = None):
        super().__init__()
        self.submodules = {Path(k): [Path(p) for p in v] for k, v in (submodules or {}).items()}
        self.failures = failures or {}
        self.calls: List[tuple] = []
        self.handles: List[GitRepository] = []
        self.gitmodules_reads: List[Path] = []

    def _record(self, name: str, *args) -> None:
        self.calls.append((name,) + args)
        if name in self.failures:
            raise self.failures[name]

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    def clone(self, uri, destination, branch, recursive=True):
        self._record("clone", uri, Path(destination), branch, recursive)
        repo = GitRepository(Path(destination), is_base=True)
        self.handles.append(repo)
        return repo

    def open(self, path, is_base=True):
        self._record("open", Path(path))
        repo = GitRepository(Path(path), is_base=is_base)
        self.handles.append(repo)
        return repo

    def hard_reset(self, repo, ref="HEAD"):
        self._record("hard_reset", repo.path, ref)

    def fetch(self, repo, remote="origin"):
        self._record("fetch", repo.path, remote)

    def checkout(self, repo, ref, start_point=None):
        self._record("checkout", repo.path, ref, start_point)

    def head_revision(self, repo):
        return "0123456789abcdef"

    def submodule_paths(self, repo):
        self.gitmodules_reads.append(repo.path)
        return list(self.submodules.get(repo.path, []))

    def submodule_init(self, repo):
        self._record("submodule_init", repo.path)

    def submodule_update(self, repo, paths=None):
        self._record("submodule_update", repo.path)
        if paths is None:
            paths = self.submodule_paths(repo)
        return list(paths)


class RecordingRunner(ProcessRunner):
    """ProcessRunner double that records invocations and returns canned exit codes."""

    def __init__(self, exit_codes: Optional[List[int]] = None, error: Optional[Exception] = None):
        self.exit_codes = list(exit_codes or [])
        self.error = error
        self.invocations: List[CommandInvocation] = []

    def run(self, invocation):
        self.invocations.append(invocation)
        if self.error is not None:
            raise self.error
        return self.exit_codes.pop(0) if self.exit_codes else 0


@pytest.fixture
def build_config(tmp_path):
    """BuildConfig rooted in a temporary directory."""
    return BuildConfig(
        repository_uri="https://example.invalid/SpongeVanilla.git",
        workspace_dir=tmp_path / "SpongeVanilla",
        error_log=tmp_path / "error.log",
        windows=False,
    )


@pytest.fixture
def fake_git():
    return FakeGitClient()


@pytest.fixture
def runner():
    return RecordingRunner()


# ---------------------------------------------------------------------------
# Real git repositories
# ---------------------------------------------------------------------------

@pytest.fixture
def git_env(monkeypatch, tmp_path):
    """Isolate git from the user's configuration and allow file:// submodules."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_CONFIG_COUNT", "1")
    monkeypatch.setenv("GIT_CONFIG_KEY_0", "protocol.file.allow")
    monkeypatch.setenv("GIT_CONFIG_VALUE_0", "always")
    monkeypatch.delenv("GIT_DIR", raising=False)
    monkeypatch.delenv("GIT_WORK_TREE", raising=False)
    return os.environ


def git(*args, cwd):
    """Run git for test setup and return stripped stdout."""
    result = subprocess.run(
        ["git"] + list(args),
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    (repo / name).write_text(content)
    git("add", name, cwd=repo)
    git("commit", "-q", "-m", message, cwd=repo)
    return git("rev-parse", "HEAD", cwd=repo)


@pytest.fixture
def upstream(git_env, tmp_path):
    """
    An upstream repository on master with one submodule ("lib").

    Returns a dict with the upstream and library paths.
    """
    lib = tmp_path / "remotes" / "lib"
    lib.mkdir(parents=True)
    git("init", "-q", "--initial-branch=master", cwd=lib)
    commit_file(lib, "lib.txt", "lib v1\n", "lib v1")

    origin = tmp_path / "remotes" / "SpongeVanilla"
    origin.mkdir(parents=True)
    git("init", "-q", "--initial-branch=master", cwd=origin)
    commit_file(origin, "README.md", "vanilla\n", "initial")
    git("submodule", "add", "-q", str(lib), "lib", cwd=origin)
    git("commit", "-q", "-m", "add lib", cwd=origin)

    return {"origin": origin, "lib": lib}
