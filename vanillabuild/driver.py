"""
Top-level driver for vanillabuild.

Composes the pipeline in strict order: resolve the revision, classify
the working copy, synchronize it, run workspace setup, run the build,
report where the artifacts are. A failed synchronization returns before
any build process is launched.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generator, Optional

from .config import BuildConfig
from .domain.operation import RunReport, SyncPath
from .domain.revision import RevisionTarget, resolve_revision
from .domain.workspace import WorkspaceClassification, WorkspaceProfile
from .infra.git_client import GitClient
from .infra.process_runner import ProcessRunner
from .services.artifact_service import ARTIFACT_HINT, find_primary_artifacts
from .services.build_service import BuildOrchestrator
from .services.sync_service import RepositorySync
from .services.workspace_service import classify_workspace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOptions:
    """Per-invocation choices made on the command line."""
    profile: WorkspaceProfile = WorkspaceProfile.CI
    commit: Optional[str] = None
    keep_going: bool = False
    dry_run: bool = False
    sync_only: bool = False


def describe_sync_failure(report: RunReport, target: RevisionTarget) -> str:
    """Terminal error message for a failed synchronization."""
    if report.sync.path is SyncPath.CLONE:
        base = "An error occurred while cloning the repository"
    elif target.is_pinned:
        base = "An error occurred while updating the repository to the specified commit"
    else:
        base = "An error occurred while updating the repository"
    if report.sync.message:
        return f"{base}: {report.sync.message}"
    return f"{base}."


class Driver:
    """
    Runs one full synchronize-and-build pass.

    Example:
        driver = Driver(BuildConfig.from_dict(load_config()))
        for message in driver.run(BuildOptions(commit="abc123")):
            print(message)

        report = driver.last_report
    """

    def __init__(
        self,
        config: BuildConfig,
        git_client: Optional[GitClient] = None,
        runner: Optional[ProcessRunner] = None,
        on_progress: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            config: Build configuration
            git_client: GitClient to use (one is created when None)
            runner: ProcessRunner for the Gradle stages
            on_progress: Receives git transfer progress when the client is created here
        """
        self.config = config
        self.git = git_client or GitClient(timeout=config.git_timeout, on_progress=on_progress)
        self.sync = RepositorySync(config, self.git)
        self.orchestrator = BuildOrchestrator(config, runner)
        self.target: Optional[RevisionTarget] = None
        self.last_report: Optional[RunReport] = None

    def run(self, options: BuildOptions) -> Generator[str, None, RunReport]:
        """
        Synchronize the working copy and build it.

        Yields:
            Progress messages

        Returns:
            RunReport for the whole run

        Raises:
            LaunchError: If a build command could not be started
        """
        cfg = self.config
        name = cfg.workspace_dir.name
        target = resolve_revision(options.commit)
        self.target = target

        classification = classify_workspace(cfg.workspace_dir)
        if classification is WorkspaceClassification.ABSENT:
            yield f"{name} repository not found, cloning now."
        elif target.is_pinned:
            yield f"Checking out custom commit {target.identifier}."
        else:
            yield f"Checking for updates to existing {name} repository."

        try:
            outcome = yield from self.sync.synchronize(target, classification, dry_run=options.dry_run)
            report = RunReport(sync=outcome, target=target)
            self.last_report = report

            if not outcome.success:
                return report

            if self.sync.repository is not None:
                revision = self.git.head_revision(self.sync.repository)
                if revision:
                    yield f"{name} is at {revision}"

            if options.sync_only:
                return report

            if options.dry_run:
                yield f"[DRY RUN] Would run: {self.orchestrator.setup_invocation(options.profile).command_line()}"
                yield f"[DRY RUN] Would run: {self.orchestrator.build_invocation().command_line()}"
                return report

            stop_on_failure = False if options.keep_going else None
            build = yield from self.orchestrator.run(options.profile, stop_on_failure=stop_on_failure)
            report.build = build
            report.artifact_dir = cfg.artifact_dir
            report.artifacts = find_primary_artifacts(cfg.artifact_dir)

            if build.success:
                yield f"The built jar can be found inside {cfg.artifact_dir}"
                yield ARTIFACT_HINT
            return report
        finally:
            if self.sync.repository is not None:
                self.git.close(self.sync.repository)
