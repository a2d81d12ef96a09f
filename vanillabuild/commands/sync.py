"""
Handles the 'sync' command: clone or update the working copy without
building it.
"""

import click

from ..cli_utils import standard_command, add_common_options
from ..driver import BuildOptions
from .build import execute, load_build_config, make_driver


@click.command("sync")
@add_common_options('commit', 'dry_run', 'verbose', 'json_output')
@standard_command
def sync_handler(commit, dry_run, verbose, json_output, progress, **kwargs):
    """
    Synchronize the working copy only.

    Same clone-or-update logic as 'build', stopping before any Gradle
    command runs.
    """
    driver = make_driver(load_build_config(verbose), progress)
    report = execute(driver, BuildOptions(commit=commit, dry_run=dry_run, sync_only=True), progress)

    if not dry_run:
        progress.success(f"{driver.config.workspace_dir} is up to date ({report.sync.ref})")
    return report.to_dict()
