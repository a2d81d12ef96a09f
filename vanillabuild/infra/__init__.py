"""
Infrastructure layer for vanillabuild.

Contains abstractions for external systems:
- GitClient: Git command execution
- ProcessRunner: Blocking build-tool subprocesses

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitRepository, classify_git_error
from .process_runner import ProcessRunner, CommandInvocation, OutputPolicy

__all__ = [
    'GitClient',
    'GitRepository',
    'classify_git_error',
    'ProcessRunner',
    'CommandInvocation',
    'OutputPolicy',
]
