"""
Handles the 'config' command group: write a starter config file and
show the configuration a run would use.
"""

import json
from pathlib import Path

import click

from ..cli_utils import standard_command
from ..config import BuildConfig, get_config_path, get_default_config, load_config, save_config
from ..exit_codes import ConfigError


def _dump(data, pretty: bool) -> None:
    click.echo(json.dumps(data, indent=2 if pretty else None, ensure_ascii=False))


@click.group("config")
def config_cmd():
    """Inspect or create the vanillabuild configuration."""
    pass


@config_cmd.command("generate")
@click.option("--format", "fmt", type=click.Choice(["json", "toml", "yaml"]), default="json",
              help="File format to write")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def generate_config(fmt, force):
    """Write the default configuration to ~/.vanillabuild/config.<format>."""
    config_path = Path.home() / '.vanillabuild' / f"config.{fmt}"
    if config_path.exists() and not force:
        click.echo(f"Configuration already exists at {config_path}. Use --force to overwrite.")
        return
    save_config(get_default_config(), config_path)
    click.echo(f"Default configuration written to {config_path}")


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Indent the JSON output")
@click.option("--path", is_flag=True, help="Only show which config file is read")
@click.option("--resolved", is_flag=True,
              help="Show absolute working copy, error log and artifact paths for this directory")
@standard_command
def show_config(pretty, path, resolved, progress, **kwargs):
    """
    Print the merged configuration as JSON.

    Defaults, the config file and VANILLABUILD_* environment overrides
    are all applied. A malformed config file exits with status 66.
    """
    if path:
        config_path = get_config_path()
        _dump({"config_path": str(config_path), "exists": config_path.exists()}, pretty)
        return

    config = load_config()
    if resolved:
        try:
            config = BuildConfig.from_dict(config).to_dict()
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
    _dump(config, pretty)
