"""
Tests for vanillabuild domain objects.
"""

import pytest
from pathlib import Path

from vanillabuild.domain import (
    RevisionTarget,
    resolve_revision,
    WorkspaceClassification,
    WorkspaceProfile,
    SyncFailureCause,
    SyncPath,
    SyncOutcome,
    StageResult,
    BuildReport,
    RunReport,
)
from vanillabuild.errors import (
    TransportError,
    CheckoutConflictError,
    SubrepositoryError,
    SyncIOError,
)


# ============================================================================
# RevisionTarget
# ============================================================================

class TestResolveRevision:
    """Tests for resolve_revision."""

    def test_no_commit_is_default(self):
        target = resolve_revision(None)
        assert target.is_default
        assert not target.is_pinned
        assert target == RevisionTarget.default()

    def test_commit_is_pinned_verbatim(self):
        target = resolve_revision("abc123")
        assert target.is_pinned
        assert target.identifier == "abc123"

    def test_identifier_is_not_interpreted(self):
        """Whitespace, case and odd refs are passed through untouched."""
        for raw in ["HEAD~3", "  v1.2 ", "ABC123", "refs/tags/1.0", ""]:
            assert resolve_revision(raw).identifier == raw

    def test_empty_string_is_still_pinned(self):
        assert resolve_revision("").is_pinned

    def test_target_is_immutable(self):
        target = resolve_revision("abc123")
        with pytest.raises(AttributeError):
            target.identifier = "other"


class TestCheckoutRef:
    """Tests for RevisionTarget.checkout_ref."""

    def test_default_uses_branch_name(self):
        assert RevisionTarget.default().checkout_ref("master") == "master"

    def test_pinned_uses_identifier(self):
        assert RevisionTarget.pinned("abc123").checkout_ref("master") == "abc123"

    def test_to_dict(self):
        assert RevisionTarget.default().to_dict() == {'kind': 'default', 'identifier': None}
        assert RevisionTarget.pinned("x").to_dict() == {'kind': 'pinned', 'identifier': 'x'}


# ============================================================================
# Enums
# ============================================================================

class TestWorkspaceEnums:
    """Tests for workspace enums."""

    def test_profile_from_flag(self):
        assert WorkspaceProfile.from_flag(False) is WorkspaceProfile.CI
        assert WorkspaceProfile.from_flag(True) is WorkspaceProfile.DECOMPILED

    def test_classification_values(self):
        assert WorkspaceClassification.ABSENT.value == "absent"
        assert WorkspaceClassification.PRESENT.value == "present"


# ============================================================================
# SyncOutcome
# ============================================================================

class TestSyncOutcome:
    """Tests for SyncOutcome."""

    @pytest.mark.parametrize("error, cause", [
        (TransportError("no route"), SyncFailureCause.TRANSPORT),
        (CheckoutConflictError("conflict"), SyncFailureCause.CHECKOUT_CONFLICT),
        (SubrepositoryError("sub"), SyncFailureCause.SUBREPOSITORY),
        (SyncIOError("disk"), SyncFailureCause.IO),
    ])
    def test_failed_maps_error_to_cause(self, error, cause):
        outcome = SyncOutcome.failed(SyncPath.UPDATE, error, ref="master")

        assert outcome.success is False
        assert outcome.cause is cause
        assert outcome.message == str(error)

    def test_succeeded(self):
        outcome = SyncOutcome.succeeded(SyncPath.CLONE, "master")

        assert outcome.success is True
        assert outcome.cause is None
        assert outcome.to_dict() == {
            'stage': 'sync',
            'path': 'clone',
            'success': True,
            'ref': 'master',
        }

    def test_failed_to_dict(self):
        outcome = SyncOutcome.failed(SyncPath.CLONE, TransportError("offline"))
        d = outcome.to_dict()

        assert d['success'] is False
        assert d['cause'] == 'transport'
        assert d['message'] == 'offline'


# ============================================================================
# Build results
# ============================================================================

class TestBuildReport:
    """Tests for StageResult and BuildReport."""

    def test_stage_success_follows_exit_code(self):
        assert StageResult("setup", ["gradlew"], 0).success
        assert not StageResult("setup", ["gradlew"], 1).success

    def test_empty_report_is_successful(self):
        assert BuildReport().success is True
        assert BuildReport().failed_stage is None

    def test_failed_stage_is_first_failure(self):
        report = BuildReport()
        report.add_stage(StageResult("setup", ["gradlew"], 0))
        report.add_stage(StageResult("build", ["gradlew"], 2))

        assert report.success is False
        assert report.failed_stage.name == "build"

    def test_skipped_stage_makes_report_unsuccessful(self):
        report = BuildReport(stages=[StageResult("setup", ["gradlew"], 0)], skipped=["build"])
        assert report.success is False


class TestRunReport:
    """Tests for RunReport."""

    def test_sync_failure(self):
        outcome = SyncOutcome.failed(SyncPath.CLONE, TransportError("offline"))
        report = RunReport(sync=outcome)

        assert report.success is False
        assert report.failed_stage == "clone"
        assert 'build' not in report.to_dict()

    def test_sync_only_success(self):
        report = RunReport(sync=SyncOutcome.succeeded(SyncPath.UPDATE, "master"))
        assert report.success is True
        assert report.failed_stage is None

    def test_build_failure(self):
        build = BuildReport(stages=[StageResult("setup", ["gradlew"], 1)], skipped=["build"])
        report = RunReport(
            sync=SyncOutcome.succeeded(SyncPath.UPDATE, "master"),
            build=build,
            artifact_dir=Path("SpongeVanilla/build/libs"),
        )

        d = report.to_dict()
        assert d['success'] is False
        assert d['failed_stage'] == "setup"
        assert d['build']['skipped'] == ["build"]
        assert d['artifact_dir'] == str(Path("SpongeVanilla/build/libs"))

    def test_target_in_dict(self):
        report = RunReport(
            sync=SyncOutcome.succeeded(SyncPath.UPDATE, "abc123"),
            target=RevisionTarget.pinned("abc123"),
        )

        assert report.to_dict()['target'] == {'kind': 'pinned', 'identifier': 'abc123'}
        assert 'target' not in RunReport(sync=report.sync).to_dict()
