"""
Build orchestration service for vanillabuild.

Runs the Gradle wrapper twice: once to set up the workspace for the
selected profile, once to build. Standard output goes to the console;
standard error goes to a single log file that setup truncates and the
build appends to.
"""

import logging
from typing import Generator, List, Optional

from ..config import BuildConfig
from ..domain.operation import BuildReport, StageResult
from ..domain.workspace import WorkspaceProfile
from ..infra.process_runner import CommandInvocation, OutputPolicy, ProcessRunner

logger = logging.getLogger(__name__)

SETUP_STAGE = "setup"
BUILD_STAGE = "build"


class BuildOrchestrator:
    """
    Sequences the workspace setup and build commands.

    Example:
        orchestrator = BuildOrchestrator(config)
        for message in orchestrator.run(WorkspaceProfile.CI):
            print(message)

        report = orchestrator.last_report
    """

    def __init__(self, config: BuildConfig, runner: Optional[ProcessRunner] = None):
        self.config = config
        self.runner = runner or ProcessRunner()
        self.last_report: Optional[BuildReport] = None

    def setup_args(self, profile: WorkspaceProfile) -> List[str]:
        """Gradle arguments for the workspace setup stage."""
        if profile is WorkspaceProfile.DECOMPILED:
            return [self.config.decomp_setup_task, "--refresh-dependencies"]
        return [self.config.ci_setup_task]

    def build_args(self) -> List[str]:
        """Gradle arguments for the build stage, excluding style checks."""
        args = [self.config.build_task]
        for task in self.config.excluded_tasks:
            args += ["-x", task]
        return args

    def setup_invocation(self, profile: WorkspaceProfile) -> CommandInvocation:
        return CommandInvocation(
            executable=str(self.config.gradle_wrapper),
            args=tuple(self.setup_args(profile)),
            cwd=self.config.workspace_dir,
            stdout=OutputPolicy.INHERIT,
            # First write of the run: drop the previous run's errors
            stderr=OutputPolicy.TRUNCATE,
            log_file=self.config.error_log,
        )

    def build_invocation(self) -> CommandInvocation:
        return CommandInvocation(
            executable=str(self.config.gradle_wrapper),
            args=tuple(self.build_args()),
            cwd=self.config.workspace_dir,
            stdout=OutputPolicy.INHERIT,
            stderr=OutputPolicy.APPEND,
            log_file=self.config.error_log,
        )

    def run(
        self,
        profile: WorkspaceProfile,
        stop_on_failure: Optional[bool] = None,
    ) -> Generator[str, None, BuildReport]:
        """
        Run setup, then build.

        Args:
            profile: Workspace profile for the setup stage
            stop_on_failure: Skip the build when setup exits nonzero
                (defaults to the configured value)

        Yields:
            Progress messages

        Returns:
            BuildReport with one StageResult per stage that ran

        Raises:
            LaunchError: If a command could not be started
        """
        if stop_on_failure is None:
            stop_on_failure = self.config.stop_on_failure

        report = BuildReport()
        self.last_report = report

        if profile is WorkspaceProfile.DECOMPILED:
            yield "Setting up decompiled workspace"
        else:
            yield "Setting up CI workspace"
        setup = self._run_stage(SETUP_STAGE, self.setup_invocation(profile))
        report.add_stage(setup)

        if not setup.success:
            logger.warning(
                f"Workspace setup exited with {setup.exit_code}; "
                f"see {self.config.error_log}"
            )
            if stop_on_failure:
                report.skipped.append(BUILD_STAGE)
                yield "Skipping build because workspace setup failed"
                return report

        yield f"Building {self.config.workspace_dir.name}"
        build = self._run_stage(BUILD_STAGE, self.build_invocation())
        report.add_stage(build)

        if not build.success:
            logger.warning(f"Build exited with {build.exit_code}; see {self.config.error_log}")

        return report

    def _run_stage(self, name: str, invocation: CommandInvocation) -> StageResult:
        exit_code = self.runner.run(invocation)
        return StageResult(name=name, command=invocation.argv, exit_code=exit_code)
