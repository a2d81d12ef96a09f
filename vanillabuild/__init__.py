"""
vanillabuild - Build SpongeVanilla from its upstream git repository.

vanillabuild keeps a local working copy (and every submodule below it)
synchronized with the upstream repository, then runs the Gradle wrapper
to set up a workspace and build the server jar.

Quick Start:
    from vanillabuild import BuildConfig, BuildOptions, Driver, load_config

    driver = Driver(BuildConfig.from_dict(load_config()))
    for message in driver.run(BuildOptions(commit="abc123")):
        print(message)

    report = driver.last_report
    if report.success:
        print(report.artifacts)

Domain Objects:
    RevisionTarget - Default branch tip or a pinned ref
    WorkspaceProfile - CI or decompiled Gradle workspace
    SyncOutcome / BuildReport / RunReport - Stage results

Services:
    RepositorySync - Clone or update, submodules included
    BuildOrchestrator - Workspace setup and build subprocesses
"""

__version__ = "0.3.0"

from .config import BuildConfig, load_config, save_config

from .domain import (
    RevisionTarget,
    resolve_revision,
    WorkspaceClassification,
    WorkspaceProfile,
    SyncFailureCause,
    SyncOutcome,
    BuildReport,
    RunReport,
)

from .services import (
    classify_workspace,
    RepositorySync,
    BuildOrchestrator,
)

from .driver import Driver, BuildOptions

__all__ = [
    "__version__",
    # Configuration
    "BuildConfig",
    "load_config",
    "save_config",
    # Domain objects
    "RevisionTarget",
    "resolve_revision",
    "WorkspaceClassification",
    "WorkspaceProfile",
    "SyncFailureCause",
    "SyncOutcome",
    "BuildReport",
    "RunReport",
    # Services
    "classify_workspace",
    "RepositorySync",
    "BuildOrchestrator",
    # Driver
    "Driver",
    "BuildOptions",
]
