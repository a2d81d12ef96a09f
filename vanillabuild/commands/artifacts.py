"""
Handles the 'artifacts' command: show what the last build produced.
"""

import click

from ..cli_utils import standard_command, add_common_options
from ..render import render_artifacts_table
from ..services.artifact_service import ARTIFACT_HINT, find_primary_artifacts, list_artifacts
from .build import load_build_config


@click.command("artifacts")
@click.option("--primary", is_flag=True, help="Only print the path of the jar to run")
@add_common_options('json_output')
@standard_command
def artifacts_handler(primary, json_output, progress, **kwargs):
    """
    List the jars in the build output directory.

    Jars with javadoc, release or sources in their name are marked as
    byproducts.
    """
    build_config = load_build_config()
    artifact_dir = build_config.artifact_dir
    jars = list_artifacts(artifact_dir)
    primaries = find_primary_artifacts(artifact_dir)

    if primary:
        for jar in primaries:
            click.echo(str(jar))
    elif not json_output:
        render_artifacts_table(jars, artifact_dir)
        progress(ARTIFACT_HINT)

    return {
        'artifact_dir': str(artifact_dir),
        'artifacts': [str(p) for p in jars],
        'primary': [str(p) for p in primaries],
    }
