#!/usr/bin/env python3

import click

from vanillabuild import __version__
from vanillabuild.commands.build import build_handler
from vanillabuild.commands.sync import sync_handler
from vanillabuild.commands.artifacts import artifacts_handler
from vanillabuild.commands.config import config_cmd


# Option names are case-insensitive (--DECOMP works like --decomp)
CONTEXT_SETTINGS = dict(token_normalize_func=lambda token: token.lower())


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__)
def cli():
    """vanillabuild - Clone, update and build SpongeVanilla.

    Keeps a local working copy (submodules included) in sync with the
    upstream repository, then drives its Gradle wrapper to produce the
    server jar.
    """
    pass


cli.add_command(build_handler, name='build')
cli.add_command(sync_handler, name='sync')
cli.add_command(artifacts_handler, name='artifacts')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
