"""
Tests for the top-level Driver.

Each scenario drives a full run against FakeGitClient and
RecordingRunner and checks the messages, the git call log and the
build invocations together.
"""

import pytest

from vanillabuild.domain import RevisionTarget, SyncFailureCause, WorkspaceProfile
from vanillabuild.domain.operation import RunReport, SyncOutcome, SyncPath
from vanillabuild.driver import BuildOptions, Driver, describe_sync_failure
from vanillabuild.errors import CheckoutConflictError, LaunchError, TransportError
from vanillabuild.infra.process_runner import OutputPolicy
from vanillabuild.services.artifact_service import ARTIFACT_HINT

from conftest import FakeGitClient, RecordingRunner


def run_driver(driver, options):
    """Drain Driver.run() and return (messages, report)."""
    messages = []
    gen = driver.run(options)
    try:
        while True:
            messages.append(next(gen))
    except StopIteration as stop:
        return messages, stop.value


# ============================================================================
# Fresh clone
# ============================================================================

class TestFreshClone:
    """Runs where the working copy does not exist yet."""

    def test_clone_then_build(self, build_config, fake_git, runner):
        driver = Driver(build_config, fake_git, runner)

        messages, report = run_driver(driver, BuildOptions())

        assert messages[0] == "SpongeVanilla repository not found, cloning now."
        assert fake_git.call_names() == ["clone"]
        assert [inv.args[0] for inv in runner.invocations] == ["setupCIWorkspace", "build"]
        assert report.success
        assert report is driver.last_report

    def test_success_reports_artifact_location(self, build_config, fake_git, runner):
        driver = Driver(build_config, fake_git, runner)

        messages, _ = run_driver(driver, BuildOptions())

        assert messages[-2] == f"The built jar can be found inside {build_config.artifact_dir}"
        assert messages[-1] == ARTIFACT_HINT

    def test_clone_transport_failure_launches_nothing(self, build_config, runner):
        fake_git = FakeGitClient(failures={"clone": TransportError("Could not resolve host")})
        driver = Driver(build_config, fake_git, runner)

        messages, report = run_driver(driver, BuildOptions())

        assert report.success is False
        assert report.sync.cause is SyncFailureCause.TRANSPORT
        assert report.build is None
        assert runner.invocations == []
        assert not any("built jar" in m for m in messages)

    def test_pinned_clone_checks_out_after_clone(self, build_config, fake_git, runner):
        driver = Driver(build_config, fake_git, runner)

        run_driver(driver, BuildOptions(commit="v1.12"))

        assert fake_git.call_names()[:2] == ["clone", "checkout"]
        assert fake_git.calls[1][2] == "v1.12"


# ============================================================================
# Existing working copy
# ============================================================================

class TestExistingWorkingCopy:
    """Runs where the working copy is already present."""

    @pytest.fixture(autouse=True)
    def working_copy(self, build_config):
        build_config.workspace_dir.mkdir()

    def test_update_to_latest(self, build_config, fake_git, runner):
        driver = Driver(build_config, fake_git, runner)

        messages, report = run_driver(driver, BuildOptions())

        assert messages[0] == "Checking for updates to existing SpongeVanilla repository."
        assert fake_git.call_names() == ["open", "hard_reset", "fetch", "checkout"]
        assert fake_git.calls[-1][2:] == ("master", "origin/master")
        assert report.success
        assert report.target.is_default

    def test_pinned_commit_with_decompiled_workspace(self, build_config, fake_git, runner):
        driver = Driver(build_config, fake_git, runner)

        messages, report = run_driver(
            driver, BuildOptions(profile=WorkspaceProfile.DECOMPILED, commit="abc123"),
        )

        assert messages[0] == "Checking out custom commit abc123."
        assert ("checkout", build_config.workspace_dir, "abc123", None) in fake_git.calls
        assert runner.invocations[0].args == ("setupDecompWorkspace", "--refresh-dependencies")
        assert runner.invocations[0].stderr is OutputPolicy.TRUNCATE
        assert runner.invocations[1].stderr is OutputPolicy.APPEND
        assert report.sync.ref == "abc123"
        assert report.target == RevisionTarget.pinned("abc123")
        assert report.to_dict()['target']['kind'] == "pinned"

    def test_checkout_conflict_stops_before_build(self, build_config, runner):
        fake_git = FakeGitClient(failures={"checkout": CheckoutConflictError("bad ref")})
        driver = Driver(build_config, fake_git, runner)

        _, report = run_driver(driver, BuildOptions(commit="nope"))

        assert report.sync.cause is SyncFailureCause.CHECKOUT_CONFLICT
        assert runner.invocations == []

    def test_base_handle_closed_after_run(self, build_config, fake_git, runner):
        driver = Driver(build_config, fake_git, runner)

        run_driver(driver, BuildOptions())

        assert fake_git.handles[0].closed

    def test_base_handle_closed_on_launch_error(self, build_config, fake_git):
        driver = Driver(build_config, fake_git, RecordingRunner(error=LaunchError("gradlew missing")))

        with pytest.raises(LaunchError):
            run_driver(driver, BuildOptions())
        assert fake_git.handles[0].closed

    def test_revision_reported(self, build_config, fake_git, runner):
        messages, _ = run_driver(Driver(build_config, fake_git, runner), BuildOptions())
        assert "SpongeVanilla is at 0123456789abcdef" in messages


# ============================================================================
# Build stage outcomes
# ============================================================================

class TestBuildOutcomes:
    """How build-stage results shape the run."""

    def test_failed_setup_skips_build(self, build_config, fake_git):
        runner = RecordingRunner(exit_codes=[1])

        messages, report = run_driver(Driver(build_config, fake_git, runner), BuildOptions())

        assert len(runner.invocations) == 1
        assert report.failed_stage == "setup"
        assert not any("built jar" in m for m in messages)

    def test_keep_going_runs_build(self, build_config, fake_git):
        runner = RecordingRunner(exit_codes=[1, 0])

        _, report = run_driver(Driver(build_config, fake_git, runner), BuildOptions(keep_going=True))

        assert len(runner.invocations) == 2
        assert report.success is False

    def test_primary_artifacts_collected(self, build_config, fake_git, runner):
        libs = build_config.artifact_dir
        libs.mkdir(parents=True)
        for name in ["spongevanilla-1.12.jar", "spongevanilla-1.12-sources.jar"]:
            (libs / name).write_bytes(b"PK")

        _, report = run_driver(Driver(build_config, fake_git, runner), BuildOptions())

        assert [p.name for p in report.artifacts] == ["spongevanilla-1.12.jar"]


# ============================================================================
# Partial runs
# ============================================================================

class TestPartialRuns:
    """Dry runs and sync-only runs."""

    def test_dry_run_touches_nothing(self, build_config, fake_git, runner):
        messages, report = run_driver(Driver(build_config, fake_git, runner), BuildOptions(dry_run=True))

        assert fake_git.calls == []
        assert runner.invocations == []
        assert report.sync.dry_run
        assert any("setupCIWorkspace" in m for m in messages if m.startswith("[DRY RUN]"))
        assert any("-x checkstyleMain" in m for m in messages)

    def test_sync_only_skips_build(self, build_config, fake_git, runner):
        _, report = run_driver(Driver(build_config, fake_git, runner), BuildOptions(sync_only=True))

        assert fake_git.call_names() == ["clone"]
        assert runner.invocations == []
        assert report.build is None
        assert report.success


# ============================================================================
# describe_sync_failure
# ============================================================================

class TestDescribeSyncFailure:
    """Tests for the terminal sync error message."""

    def test_clone(self):
        report = RunReport(sync=SyncOutcome.failed(SyncPath.CLONE, TransportError("offline")))
        message = describe_sync_failure(report, RevisionTarget.default())
        assert message == "An error occurred while cloning the repository: offline"

    def test_update_to_commit(self):
        report = RunReport(sync=SyncOutcome.failed(SyncPath.UPDATE, CheckoutConflictError("bad")))
        message = describe_sync_failure(report, RevisionTarget.pinned("abc123"))
        assert message.startswith("An error occurred while updating the repository to the specified commit")

    def test_update_without_message(self):
        report = RunReport(sync=SyncOutcome.failed(SyncPath.UPDATE, TransportError("")))
        message = describe_sync_failure(report, RevisionTarget.default())
        assert message == "An error occurred while updating the repository."


class TestGitProgress:
    """Tests for handing git transfer progress to the caller."""

    def test_callback_reaches_created_client(self, build_config):
        lines = []
        driver = Driver(build_config, on_progress=lines.append)

        assert driver.git.on_progress == lines.append
        assert driver.sync.git is driver.git

    def test_injected_client_is_kept(self, build_config, fake_git):
        driver = Driver(build_config, fake_git, on_progress=print)
        assert driver.git is fake_git
