"""
Repository synchronization service for vanillabuild.

Brings the local working copy, and every submodule below it, to the
revision implied by a RevisionTarget. An absent working copy is cloned;
a present one is hard-reset, fetched and checked out. Either way the
outcome is reported as a SyncOutcome instead of an exception.
"""

import logging
from pathlib import Path
from typing import Generator, List, Optional

from ..config import BuildConfig
from ..domain.operation import SyncOutcome, SyncPath
from ..domain.revision import RevisionTarget
from ..domain.workspace import WorkspaceClassification
from ..errors import SyncError, SyncIOError, SubrepositoryError
from ..infra.git_client import GitClient, GitRepository

logger = logging.getLogger(__name__)


class RepositorySync:
    """
    Synchronizes the working copy described by a BuildConfig.

    Example:
        sync = RepositorySync(config)
        for message in sync.synchronize(target, classification):
            print(message)

        if sync.last_outcome.success:
            build(sync.repository)
    """

    def __init__(self, config: BuildConfig, git_client: Optional[GitClient] = None):
        """
        Initialize RepositorySync.

        Args:
            config: Build configuration
            git_client: GitClient instance (creates new if None)
        """
        self.config = config
        self.git = git_client or GitClient(timeout=config.git_timeout)
        self.repository: Optional[GitRepository] = None
        self.last_outcome: Optional[SyncOutcome] = None

    def synchronize(
        self,
        target: RevisionTarget,
        classification: WorkspaceClassification,
        dry_run: bool = False,
    ) -> Generator[str, None, SyncOutcome]:
        """
        Clone or update the working copy to `target`.

        Exactly one of the clone path and the update path runs, chosen by
        `classification`. Any SyncError aborts the whole synchronization.

        Args:
            target: Revision to end up at
            classification: Whether the working copy exists
            dry_run: Only report the git commands that would run

        Yields:
            Progress messages

        Returns:
            SyncOutcome describing what happened
        """
        path = SyncPath.CLONE if classification is WorkspaceClassification.ABSENT else SyncPath.UPDATE
        ref = target.checkout_ref(self.config.default_branch)
        logger.debug(
            f"Synchronizing {self.config.workspace_dir} ({path.value}) "
            f"to {target.describe(self.config.default_branch)}"
        )

        if dry_run:
            for step in self.plan(target, classification):
                yield f"[DRY RUN] Would run: {step}"
            outcome = SyncOutcome.succeeded(path, ref, dry_run=True)
            self.last_outcome = outcome
            return outcome

        try:
            if path is SyncPath.CLONE:
                yield from self._clone(target)
            else:
                yield from self._update(target)
            outcome = SyncOutcome.succeeded(path, ref)
        except SyncError as e:
            logger.error(f"Synchronization of {self.config.workspace_dir} failed: {e}")
            outcome = SyncOutcome.failed(path, e, ref=ref)

        self.last_outcome = outcome
        return outcome

    def plan(self, target: RevisionTarget, classification: WorkspaceClassification) -> List[str]:
        """Describe the git commands synchronize() would run, in order."""
        cfg = self.config
        steps = []
        if classification is WorkspaceClassification.ABSENT:
            steps.append(
                f"git clone --branch {cfg.default_branch} --recurse-submodules "
                f"{cfg.repository_uri} {cfg.workspace_dir}"
            )
            if target.is_pinned:
                steps.append(f"git checkout {target.identifier}")
                steps.append("git submodule init && git submodule update (recursive)")
        else:
            steps.append("git reset --hard HEAD")
            steps.append(f"git fetch {cfg.remote}")
            if target.is_pinned:
                steps.append(f"git checkout {target.identifier}")
            else:
                steps.append(f"git checkout -B {cfg.default_branch} {cfg.remote}/{cfg.default_branch}")
            steps.append("git submodule init && git submodule update (recursive)")
        return steps

    def _clone(self, target: RevisionTarget) -> Generator[str, None, None]:
        cfg = self.config
        yield f"Cloning {cfg.repository_uri} into {cfg.workspace_dir}"
        repo = self.git.clone(
            cfg.repository_uri,
            cfg.workspace_dir,
            branch=cfg.default_branch,
            recursive=True,
        )
        self.repository = repo

        if target.is_pinned:
            # The clone's submodules match the branch tip, not the pinned commit
            yield f"Checking out {target.identifier}"
            self.git.checkout(repo, target.identifier)
            yield from self._sync_submodules(repo)

    def _update(self, target: RevisionTarget) -> Generator[str, None, None]:
        cfg = self.config
        repo = self.git.open(cfg.workspace_dir)
        self.repository = repo

        yield "Discarding local changes"
        self.git.hard_reset(repo)

        yield f"Fetching updates from {cfg.remote}"
        self.git.fetch(repo, cfg.remote)

        if target.is_pinned:
            yield f"Checking out {target.identifier}"
            self.git.checkout(repo, target.identifier)
        else:
            yield f"Checking out latest {cfg.default_branch}"
            self.git.checkout(
                repo,
                cfg.default_branch,
                start_point=f"{cfg.remote}/{cfg.default_branch}",
            )

        yield from self._sync_submodules(repo)

    def _sync_submodules(self, repo: GitRepository, depth: int = 0) -> Generator[str, None, None]:
        """
        Initialize and update the submodules of `repo`, then recurse.

        Walks depth-first; only the handles on the current path are open.
        The handle passed in is left open for the caller.
        """
        paths = self.git.submodule_paths(repo)
        if not paths:
            return

        indent = "  " * depth
        yield f"{indent}Updating submodules of {self._display(repo.path)}"
        self.git.submodule_init(repo)
        children = self.git.submodule_update(repo, paths)

        for child_path in children:
            try:
                child = self.git.open(child_path, is_base=False)
            except SyncIOError as e:
                raise SubrepositoryError(f"Cannot open submodule {child_path}: {e}") from e

            with child:
                yield from self._sync_submodules(child, depth + 1)

    def _display(self, path: Path) -> str:
        try:
            relative = Path(path).relative_to(self.config.workspace_dir)
        except ValueError:
            return str(path)
        return str(relative) if str(relative) != "." else self.config.workspace_dir.name
