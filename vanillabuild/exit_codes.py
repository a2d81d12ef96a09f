"""
Exit codes for vanillabuild commands.

0-2 follow the usual POSIX meaning; each stage of the pipeline that can
fail gets its own code from the 64-113 range so scripts can tell a
network outage from a broken build.
"""
from typing import Any, Dict, Optional, Type

from .errors import (
    SyncError,
    TransportError,
    LaunchError,
)

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2          # click usage errors, e.g. --commit without a value

SYNC_ERROR = 64          # Checkout conflict, submodule or filesystem failure
CONFIG_ERROR = 66        # Configuration file has a wrong value
PERMISSION_ERROR = 67
NETWORK_ERROR = 68       # Clone or fetch could not reach the remote
BUILD_ERROR = 72         # A Gradle stage exited nonzero
LAUNCH_ERROR = 73        # The Gradle wrapper could not be started
INTERRUPTED = 130        # Ctrl+C

# Most specific class first
EXCEPTION_EXIT_CODES: Dict[Type[BaseException], int] = {
    TransportError: NETWORK_ERROR,
    SyncError: SYNC_ERROR,
    LaunchError: LAUNCH_ERROR,
    PermissionError: PERMISSION_ERROR,
    ConnectionError: NETWORK_ERROR,
    TimeoutError: NETWORK_ERROR,
    KeyboardInterrupt: INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """Exit code for an exception that escaped a command."""
    if isinstance(exc, CommandError):
        return exc.exit_code
    for exc_type, code in EXCEPTION_EXIT_CODES.items():
        if isinstance(exc, exc_type):
            return code
    return GENERAL_ERROR


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.

    report, when given, is the JSON-serializable RunReport of the run so
    far and is included in the --json error payload.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR,
                 report: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.exit_code = exit_code
        self.report = report


class SyncFailedError(CommandError):
    """The working copy could not be cloned or updated."""
    def __init__(self, message: str, cause: Optional[str] = None,
                 report: Optional[Dict[str, Any]] = None):
        super().__init__(message, NETWORK_ERROR if cause == "transport" else SYNC_ERROR, report)
        self.cause = cause


class BuildFailedError(CommandError):
    """The setup or build stage exited with a nonzero status."""
    def __init__(self, message: str, stage: str = "",
                 report: Optional[Dict[str, Any]] = None):
        super().__init__(message, BUILD_ERROR, report)
        self.stage = stage


class LaunchFailedError(CommandError):
    """The Gradle wrapper could not be started."""
    def __init__(self, message: str):
        super().__init__(message, LAUNCH_ERROR)


class ConfigError(CommandError):
    """A configuration value cannot be used."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)
