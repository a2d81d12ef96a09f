"""
Error types for vanillabuild.

Synchronization errors are raised by the git client and converted
into a SyncOutcome by RepositorySync. LaunchError is raised by the
process runner when a build command cannot be started at all.
"""

from typing import Optional


class SyncError(Exception):
    """Base class for failures while synchronizing the working copy."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class TransportError(SyncError):
    """Network, authentication or remote-not-found failure during clone/fetch."""


class CheckoutConflictError(SyncError):
    """The requested ref cannot be checked out against the current state."""


class SubrepositoryError(SyncError):
    """A submodule could not be initialized, updated or opened."""


class SyncIOError(SyncError):
    """Filesystem access failed (missing directory, permissions, no git binary)."""


class LaunchError(Exception):
    """A build-tool subprocess could not be started."""

    def __init__(self, message: str, executable: str = "", cause: Optional[BaseException] = None):
        self.executable = executable
        self.cause = cause
        super().__init__(message)
