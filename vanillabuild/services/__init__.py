"""
Service layer for vanillabuild.

Contains business logic that orchestrates domain objects and infrastructure:
- classify_workspace: Absent/present check for the working copy
- RepositorySync: Clone or update to a revision, submodules included
- BuildOrchestrator: Workspace setup and build subprocesses
- find_primary_artifacts: Pick the runnable jar out of the build output

Services are the primary API for the driver and commands to use.
"""

from .workspace_service import classify_workspace
from .sync_service import RepositorySync
from .build_service import BuildOrchestrator
from .artifact_service import find_primary_artifacts, list_artifacts, ARTIFACT_HINT

__all__ = [
    'classify_workspace',
    'RepositorySync',
    'BuildOrchestrator',
    'find_primary_artifacts',
    'list_artifacts',
    'ARTIFACT_HINT',
]
