"""
Git client infrastructure for vanillabuild.

Every git command vanillabuild runs goes through GitClient, so tests can
swap in a recording double.

Failed commands raise a SyncError subclass chosen from git's stderr,
so callers can tell network trouble from checkout conflicts.

When an on_progress callback is given, clone, fetch and submodule update
run with --progress and their output is forwarded line by line while
the command is still running.
"""

import re
import subprocess
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Type
import logging

from ..errors import (
    SyncError,
    TransportError,
    CheckoutConflictError,
    SubrepositoryError,
    SyncIOError,
)

logger = logging.getLogger(__name__)


TRANSPORT_MARKERS = (
    "could not resolve host",
    "unable to access",
    "authentication failed",
    "could not read username",
    "repository not found",
    "could not read from remote repository",
    "does not appear to be a git repository",
    "connection refused",
    "connection timed out",
    "network is unreachable",
    "early eof",
)

IO_MARKERS = (
    "permission denied",
    "no space left on device",
    "read-only file system",
    "not a git repository",
    "unable to create",
    "could not create",
    "already exists and is not an empty directory",
)

CHECKOUT_MARKERS = (
    "would be overwritten",
    "did not match any file(s) known to git",
    "pathspec",
    "unknown revision",
    "invalid reference",
    "not a commit",
    "conflict",
)


def classify_git_error(stderr: str, default: Type[SyncError] = SyncError) -> Type[SyncError]:
    """
    Pick the SyncError subclass that matches git's error output.

    Args:
        stderr: Captured standard error of the failed command
        default: Class to use when nothing matches

    Returns:
        SyncError subclass
    """
    text = (stderr or "").lower()
    if any(marker in text for marker in TRANSPORT_MARKERS):
        return TransportError
    if any(marker in text for marker in IO_MARKERS):
        return SyncIOError
    if any(marker in text for marker in CHECKOUT_MARKERS):
        return CheckoutConflictError
    return default


# "Receiving objects:  45% (450/1000), 1.20 MiB | 300 KiB/s"
PROGRESS_LINE = re.compile(r"^(?P<phase>(?:remote: )?[A-Za-z][\w ]*?):\s+(?P<percent>\d{1,3})%")


class TransferProgress:
    """
    Thins git's --progress output.

    git redraws a counter line for every object; only the first line of
    each phase, every `step` percent and the final ", done." line are
    kept. Lines that are not counters always pass.
    """

    def __init__(self, step: int = 10):
        self.step = step
        self.phase: Optional[str] = None
        self.bucket = -1

    def wants(self, line: str) -> bool:
        match = PROGRESS_LINE.match(line)
        if not match:
            return True
        phase = match.group("phase")
        bucket = int(match.group("percent")) // self.step
        if phase != self.phase or bucket > self.bucket or line.endswith("done."):
            self.phase = phase
            self.bucket = bucket
            return True
        return False


class GitRepository:
    """
    Handle to a working copy on disk.

    The base handle is kept open by the caller for the whole run;
    submodule handles are used as context managers and closed once
    their subtree has been processed.
    """

    def __init__(self, path: Path, is_base: bool = True):
        self.path = Path(path)
        self.is_base = is_base
        self.closed = False

    def close(self) -> None:
        if not self.closed:
            logger.debug(f"Closing repository handle {self.path}")
        self.closed = True

    def __enter__(self) -> 'GitRepository':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"GitRepository({str(self.path)!r}, {state})"


class GitClient:
    """
    Abstraction over git commands.

    Provides the clone/open/reset/fetch/checkout/submodule operations
    the synchronizer needs, raising typed SyncError subclasses on failure.

    Example:
        client = GitClient()
        repo = client.open(Path("SpongeVanilla"))
        client.fetch(repo)
        client.checkout(repo, "master", start_point="origin/master")
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        git: str = "git",
        on_progress: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (None waits forever)
            git: Git executable to invoke
            on_progress: Receives transfer progress of clone, fetch and
                submodule update, one indented line at a time
        """
        self.timeout = timeout
        self.git = git
        self.on_progress = on_progress

    def _progress_flag(self) -> List[str]:
        return ["--progress"] if self.on_progress is not None else []

    def _exec(self, args: List[str], cwd: Path) -> Tuple[str, str, int]:
        """
        Run a git command and return (stdout, stderr, returncode).

        Raises:
            TransportError: If the command timed out
            SyncIOError: If git or the working directory could not be used
        """
        cmd = [self.git] + list(args)
        cmd_str = " ".join(cmd)
        logger.debug(f"Running in '{cwd}': {cmd_str}")

        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {cmd_str}")
            raise TransportError(
                f"Git command timed out after {self.timeout}s: {cmd_str}",
                command=cmd_str,
            )
        except OSError as e:
            raise SyncIOError(f"Could not run {cmd_str} in {cwd}: {e}", command=cmd_str)

        return result.stdout or "", result.stderr or "", result.returncode

    def _stream(self, args: List[str], cwd: Path) -> Tuple[str, int]:
        """
        Run a git command, forwarding its output to on_progress as it arrives.

        stderr is merged into stdout. Counter lines are thinned by
        TransferProgress and left out of the returned text; everything
        else is kept so failures can still be classified.

        Returns:
            (output, returncode)

        Raises:
            TransportError: If the command timed out
            SyncIOError: If git or the working directory could not be used
        """
        cmd = [self.git] + list(args)
        cmd_str = " ".join(cmd)
        logger.debug(f"Running in '{cwd}': {cmd_str}")

        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(cwd),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise SyncIOError(f"Could not run {cmd_str} in {cwd}: {e}", command=cmd_str)

        expired = threading.Event()
        timer = None
        if self.timeout:
            def expire():
                expired.set()
                proc.kill()
            timer = threading.Timer(self.timeout, expire)
            timer.daemon = True
            timer.start()

        throttle = TransferProgress()
        kept = []
        try:
            # Text mode splits on "\r" too, so each counter redraw is a line
            for raw in proc.stdout:
                line = raw.strip()
                if not line:
                    continue
                if not PROGRESS_LINE.match(line):
                    kept.append(line)
                if throttle.wants(line):
                    self.on_progress(f"  {line}")
            code = proc.wait()
        finally:
            if timer is not None:
                timer.cancel()
            if proc.poll() is None:
                proc.kill()
                proc.wait()
            proc.stdout.close()

        if expired.is_set():
            logger.warning(f"Git command timed out: {cmd_str}")
            raise TransportError(
                f"Git command timed out after {self.timeout}s: {cmd_str}",
                command=cmd_str,
            )
        return "\n".join(kept), code

    def _run(
        self,
        args: List[str],
        cwd: Path,
        default: Type[SyncError] = SyncError,
        classify: bool = True,
        stream: bool = False,
    ) -> str:
        """
        Run a git command, raising on a nonzero exit.

        Args:
            args: Arguments after the git executable
            cwd: Working directory
            default: Error class when stderr matches no known failure
            classify: If False, always raise `default`
            stream: Forward output to on_progress while the command runs

        Returns:
            Stripped stdout (empty when streamed)
        """
        cmd_str = " ".join([self.git] + list(args))
        try:
            if stream and self.on_progress is not None:
                stdout = ""
                stderr, code = self._stream(args, cwd)
            else:
                stdout, stderr, code = self._exec(args, cwd)
        except SyncError as e:
            if classify:
                raise
            raise default(str(e), command=cmd_str) from e

        if code != 0:
            error_cls = classify_git_error(stderr, default) if classify else default
            message = stderr.strip() or f"exit status {code}"
            logger.error(f"Git command failed: {cmd_str} - {message}")
            raise error_cls(
                f"{cmd_str} failed (exit {code}): {message}",
                command=cmd_str,
                stderr=stderr,
            )
        return stdout.strip()

    def clone(
        self,
        uri: str,
        destination: Path,
        branch: str,
        recursive: bool = True,
    ) -> GitRepository:
        """
        Clone `uri` into `destination` with `branch` checked out.

        Args:
            uri: Remote repository URI
            destination: Directory to create
            branch: Branch to check out after cloning
            recursive: Also clone all submodules

        Returns:
            Open handle to the new working copy
        """
        destination = Path(destination)
        parent = destination.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SyncIOError(f"Cannot create {parent}: {e}")

        args = ["clone"] + self._progress_flag() + ["--branch", branch]
        if recursive:
            args.append("--recurse-submodules")
        args += [uri, str(destination)]

        self._run(args, cwd=parent, default=TransportError, stream=True)
        return GitRepository(destination, is_base=True)

    def open(self, path: Path, is_base: bool = True) -> GitRepository:
        """
        Open an existing working copy.

        Raises:
            SyncIOError: If the path is missing or is not a working copy
        """
        path = Path(path)
        if not path.is_dir():
            raise SyncIOError(f"Working copy not found: {path}")
        # Submodules keep a .git file pointing into the parent's git dir
        if not (path / ".git").exists():
            raise SyncIOError(f"Not a git working copy: {path}")
        return GitRepository(path, is_base=is_base)

    def close(self, repo: GitRepository) -> None:
        repo.close()

    def hard_reset(self, repo: GitRepository, ref: str = "HEAD") -> None:
        """Discard all local modifications."""
        self._run(["reset", "--hard", ref], cwd=repo.path, default=SyncIOError)

    def fetch(self, repo: GitRepository, remote: str = "origin") -> None:
        """Fetch from remote without merging."""
        args = ["fetch"] + self._progress_flag() + [remote]
        self._run(args, cwd=repo.path, default=TransportError, stream=True)

    def checkout(
        self,
        repo: GitRepository,
        ref: str,
        start_point: Optional[str] = None,
    ) -> None:
        """
        Check out `ref`.

        With start_point, the local branch `ref` is created or reset to
        point at start_point first (git checkout -B).
        """
        if start_point:
            args = ["checkout", "-B", ref, start_point]
        else:
            args = ["checkout", ref]
        self._run(args, cwd=repo.path, default=CheckoutConflictError)

    def head_revision(self, repo: GitRepository) -> Optional[str]:
        """Commit hash of HEAD, or None if it cannot be read."""
        stdout, _, code = self._exec(["rev-parse", "HEAD"], cwd=repo.path)
        if code == 0 and stdout.strip():
            return stdout.strip()
        return None

    def submodule_paths(self, repo: GitRepository) -> List[Path]:
        """
        Submodule directories recorded in the repository's .gitmodules.

        Returns an empty list for a leaf repository.
        """
        if not (repo.path / ".gitmodules").is_file():
            return []

        stdout, stderr, code = self._exec(
            ["config", "--file", ".gitmodules", "--get-regexp", r"^submodule\..*\.path$"],
            cwd=repo.path,
        )
        # Exit 1 means the file has no path entries
        if code == 1:
            return []
        if code != 0:
            raise SubrepositoryError(
                f"Cannot read .gitmodules in {repo.path}: {stderr.strip()}",
                stderr=stderr,
            )

        paths = []
        for line in stdout.splitlines():
            parts = line.strip().split(None, 1)
            if len(parts) == 2:
                paths.append(repo.path / parts[1])
        return paths

    def submodule_init(self, repo: GitRepository) -> None:
        """Register the submodules listed in .gitmodules in the local config."""
        self._run(["submodule", "init"], cwd=repo.path, default=SubrepositoryError, classify=False)

    def submodule_update(self, repo: GitRepository, paths: Optional[List[Path]] = None) -> List[Path]:
        """
        Check out each immediate submodule at the revision recorded by `repo`.

        Args:
            repo: Parent working copy
            paths: Result of submodule_paths(repo) when the caller already
                has it; .gitmodules is read again otherwise

        Returns:
            Paths of the submodules that now hold a working copy
        """
        args = ["submodule", "update"] + self._progress_flag()
        self._run(args, cwd=repo.path, default=SubrepositoryError, classify=False, stream=True)
        if paths is None:
            paths = self.submodule_paths(repo)
        return [path for path in paths if (path / ".git").exists()]
