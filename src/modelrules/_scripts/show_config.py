# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0

import pathlib

import click
import yaml

import modelrules
from modelrules import config, exceptions


@click.command()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=pathlib.Path),
    help="Show the settings from this YAML file",
)
def main(config_path: pathlib.Path | None) -> None:
    """Show where settings are read from, and their effective values."""
    user_config = modelrules.dirs.user_config_path / "config.yml"
    click.echo("Settings are searched in:")
    click.echo()
    click.echo("   the file passed with --config")
    click.echo(f"   ${config.CONFIG_ENV}")
    click.echo(f"   {user_config}")
    click.echo()

    try:
        cfg = config.load_config(config_path)
    except exceptions.ConfigError as err:
        raise click.BadParameter(str(err), param_hint="--config") from None

    if cfg.source is None:
        click.echo("No config file found, the defaults are:")
    else:
        click.echo(f"Settings read from {cfg.source}:")
    click.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False), nl=False)
