"""
Shared decorators for vanillabuild commands.

standard_command gives every command the same contract: a progress
reporter on stderr, an optional single-line JSON result on stdout, and
one terminal error line plus a stage-specific exit code on failure.
"""

import json
import sys
import click
from functools import wraps
from typing import Any, Dict
from .progress import get_progress
from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)


def _emit_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False), flush=True)


def standard_command(func):
    """
    Wrap a click command with progress, --json output and exit codes.

    The command receives a `progress` keyword argument and may return a
    dict, which is printed as JSON when --json was given.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        as_json = kwargs.get('json_output', False)
        progress = get_progress(enabled=True if kwargs.get('verbose') else None)
        kwargs['progress'] = progress

        try:
            result = func(*args, **kwargs)
        except KeyboardInterrupt:
            progress.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except Exception as e:
            message = str(e) if isinstance(e, CommandError) else f"Command failed: {e}"
            progress.error(message)
            if as_json:
                _emit_json(error_payload(e))
            sys.exit(get_exit_code_for_exception(e))

        if as_json and isinstance(result, dict):
            _emit_json(result)
        sys.exit(SUCCESS)

    return wrapper


def error_payload(exc: Exception) -> Dict[str, Any]:
    """JSON-serializable description of a command failure."""
    payload: Dict[str, Any] = {
        "error": str(exc),
        "type": type(exc).__name__,
        "exit_code": get_exit_code_for_exception(exc),
    }
    report = getattr(exc, 'report', None)
    if report is not None:
        payload["report"] = report
    return payload


# Options shared by build and sync
common_options = {
    'verbose': click.option('-v', '--verbose', is_flag=True,
                           help='Show debug logging and force progress output'),
    'dry_run': click.option('--dry-run', is_flag=True,
                           help='Print the git and Gradle commands without running them'),
    'json_output': click.option('--json', 'json_output', is_flag=True,
                               help='Print a JSON summary of the run on stdout'),
    'commit': click.option('--commit', metavar='ID',
                          help='Pin the working copy to a commit, tag or branch'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command, in the order given.

    Example:
        @add_common_options('commit', 'dry_run')
        def sync_handler(commit, dry_run, ...):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            func = common_options[name](func)
        return func
    return decorator
