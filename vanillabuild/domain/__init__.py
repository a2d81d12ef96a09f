"""
Domain layer for vanillabuild.

Contains pure domain objects with no I/O or side effects:
- RevisionTarget: Which revision the working copy should end up at
- WorkspaceClassification / WorkspaceProfile: Run-time enums
- SyncOutcome, StageResult, BuildReport, RunReport: Stage results

These objects are immutable where possible and provide
serialization methods for JSON output.
"""

from .revision import RevisionTarget, resolve_revision
from .workspace import WorkspaceClassification, WorkspaceProfile
from .operation import (
    SyncFailureCause,
    SyncPath,
    SyncOutcome,
    StageResult,
    BuildReport,
    RunReport,
)

__all__ = [
    'RevisionTarget',
    'resolve_revision',
    'WorkspaceClassification',
    'WorkspaceProfile',
    'SyncFailureCause',
    'SyncPath',
    'SyncOutcome',
    'StageResult',
    'BuildReport',
    'RunReport',
]
