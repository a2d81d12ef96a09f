"""
Operation result domain objects for vanillabuild.

Provides standardized result types for the synchronization and build
stages, so each stage reports success or failure as a value instead of
an exception escaping to the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Any, List, Optional

from ..errors import (
    SyncError,
    TransportError,
    CheckoutConflictError,
    SubrepositoryError,
)
from .revision import RevisionTarget


class SyncFailureCause(Enum):
    """Why a synchronization attempt failed."""
    TRANSPORT = "transport"
    CHECKOUT_CONFLICT = "checkout_conflict"
    IO = "io"
    SUBREPOSITORY = "subrepository"

    @classmethod
    def from_error(cls, error: SyncError) -> 'SyncFailureCause':
        if isinstance(error, TransportError):
            return cls.TRANSPORT
        if isinstance(error, CheckoutConflictError):
            return cls.CHECKOUT_CONFLICT
        if isinstance(error, SubrepositoryError):
            return cls.SUBREPOSITORY
        return cls.IO


class SyncPath(Enum):
    """Which branch of the synchronization state machine ran."""
    CLONE = "clone"
    UPDATE = "update"


@dataclass(frozen=True)
class SyncOutcome:
    """
    Result of one synchronization attempt.

    Produced by RepositorySync, consumed by the driver to decide whether
    the build stages may start.
    """
    path: SyncPath
    success: bool
    ref: Optional[str] = None
    cause: Optional[SyncFailureCause] = None
    message: Optional[str] = None
    dry_run: bool = False

    @classmethod
    def succeeded(cls, path: SyncPath, ref: str, dry_run: bool = False) -> 'SyncOutcome':
        return cls(path=path, success=True, ref=ref, dry_run=dry_run)

    @classmethod
    def failed(cls, path: SyncPath, error: SyncError, ref: Optional[str] = None) -> 'SyncOutcome':
        return cls(
            path=path,
            success=False,
            ref=ref,
            cause=SyncFailureCause.from_error(error),
            message=str(error),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'stage': 'sync',
            'path': self.path.value,
            'success': self.success,
            'ref': self.ref,
        }
        if self.cause:
            result['cause'] = self.cause.value
        if self.message:
            result['message'] = self.message
        if self.dry_run:
            result['dry_run'] = True
        return result


@dataclass(frozen=True)
class StageResult:
    """Result of a single build-tool invocation."""
    name: str  # "setup" or "build"
    command: List[str]
    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'stage': self.name,
            'command': self.command,
            'exit_code': self.exit_code,
            'success': self.success,
        }


@dataclass
class BuildReport:
    """
    Aggregated results of the build stages that ran.

    A stage that was not started (because an earlier one failed with
    stop_on_failure set) is listed in skipped.
    """
    stages: List[StageResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if every stage ran and exited zero."""
        return not self.skipped and all(stage.success for stage in self.stages)

    @property
    def failed_stage(self) -> Optional[StageResult]:
        for stage in self.stages:
            if not stage.success:
                return stage
        return None

    def add_stage(self, stage: StageResult) -> None:
        self.stages.append(stage)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'stages': [stage.to_dict() for stage in self.stages],
            'skipped': list(self.skipped),
        }


@dataclass
class RunReport:
    """Terminal result of a full driver run."""
    sync: SyncOutcome
    build: Optional[BuildReport] = None
    artifact_dir: Optional[Path] = None
    artifacts: List[Path] = field(default_factory=list)
    target: Optional[RevisionTarget] = None

    @property
    def success(self) -> bool:
        """True if sync succeeded and the build, when it ran, succeeded too."""
        return self.sync.success and (self.build is None or self.build.success)

    @property
    def failed_stage(self) -> Optional[str]:
        """Name of the first stage that failed, or None."""
        if not self.sync.success:
            return self.sync.path.value
        if self.build is None:
            return None
        failed = self.build.failed_stage
        return failed.name if failed else None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'success': self.success,
            'sync': self.sync.to_dict(),
        }
        if self.target is not None:
            result['target'] = self.target.to_dict()
        if self.build is not None:
            result['build'] = self.build.to_dict()
        if self.artifact_dir is not None:
            result['artifact_dir'] = str(self.artifact_dir)
            result['artifacts'] = [str(p) for p in self.artifacts]
        if self.failed_stage:
            result['failed_stage'] = self.failed_stage
        return result
