"""
Handles the 'build' command: synchronize the working copy, then run the
workspace setup and build tasks.
"""

import click

from ..config import BuildConfig, load_config, configure_logging
from ..cli_utils import standard_command, add_common_options
from ..domain.operation import RunReport
from ..domain.workspace import WorkspaceProfile
from ..driver import BuildOptions, Driver, describe_sync_failure
from ..errors import LaunchError
from ..exit_codes import SyncFailedError, BuildFailedError, LaunchFailedError, ConfigError
from ..render import render_run_summary


def load_build_config(verbose: bool = False) -> BuildConfig:
    """
    Load the merged configuration and apply its logging section.

    Raises:
        ConfigError: If a setting has the wrong type
    """
    config = load_config()
    configure_logging(config, verbose)
    try:
        return BuildConfig.from_dict(config)
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def make_driver(config: BuildConfig, progress=None) -> Driver:
    """Construct the driver used by the commands, streaming git progress to `progress`."""
    return Driver(config, on_progress=progress)


def execute(driver: Driver, options: BuildOptions, progress) -> RunReport:
    """
    Run the driver, streaming its messages to the progress reporter.

    Raises:
        SyncFailedError: If the working copy could not be synchronized
        BuildFailedError: If the setup or build stage exited nonzero
        LaunchFailedError: If a build command could not be started
    """
    try:
        for message in driver.run(options):
            progress(message)
    except LaunchError as e:
        raise LaunchFailedError(str(e)) from e

    report = driver.last_report

    if not report.sync.success:
        cause = report.sync.cause.value if report.sync.cause else None
        raise SyncFailedError(
            describe_sync_failure(report, driver.target),
            cause=cause,
            report=report.to_dict(),
        )

    if report.build is not None and not report.build.success:
        failed = report.build.failed_stage
        raise BuildFailedError(
            f"The {failed.name} stage exited with status {failed.exit_code}; "
            f"see {driver.config.error_log}",
            stage=failed.name,
            report=report.to_dict(),
        )

    return report


@click.command("build")
@click.option("--decomp", is_flag=True,
              help="Set up the full decompiled workspace (slower, for development)")
@add_common_options('commit')
@click.option("--keep-going", is_flag=True,
              help="Run the build even if workspace setup exits nonzero")
@add_common_options('dry_run', 'verbose', 'json_output')
@standard_command
def build_handler(decomp, commit, keep_going, dry_run, verbose, json_output, progress, **kwargs):
    """
    Synchronize the working copy and build it.

    Clones the repository if the working copy is missing, otherwise
    discards local changes and updates it. Then sets up the Gradle
    workspace and runs the build without checkstyle.

    Examples:

    \b
        vanillabuild build                      # Latest master, CI workspace
        vanillabuild build --commit abc123      # Pin to a commit
        vanillabuild build --decomp             # Decompiled workspace
    """
    driver = make_driver(load_build_config(verbose), progress)
    options = BuildOptions(
        profile=WorkspaceProfile.from_flag(decomp),
        commit=commit,
        keep_going=keep_going,
        dry_run=dry_run,
    )

    report = execute(driver, options, progress)

    if not json_output and not dry_run:
        render_run_summary(report)
    return report.to_dict()
