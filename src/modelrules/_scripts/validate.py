# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0

import logging
import pathlib
import typing as t

import click

from modelrules import cli_helpers, config, exceptions, validation

LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


@click.command()
@click.option(
    "-m",
    "--model",
    "model_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=pathlib.Path),
    help="The XMI file to validate",
)
@click.option(
    "-r",
    "--rule-set",
    "rule_sets",
    multiple=True,
    help="A rule set to run, may be repeated. Defaults to all rule sets.",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=pathlib.Path),
    help="Read settings from this YAML file",
)
@click.option(
    "-f",
    "--format",
    type=click.Choice(validation.FORMATS),
    help="The report format, defaults to text",
)
@click.option(
    "-o",
    "--output",
    type=click.File("w", encoding="utf-8", atomic=True),
    default="-",
    help="Output file to write the report into",
)
@click.option(
    "-t",
    "--template",
    type=click.Path(exists=True, dir_okay=False, path_type=pathlib.Path),
    help="An optional custom template to render",
)
@click.option(
    "--scope",
    help="Only check namespaces whose name contains this string",
)
@click.option(
    "--category",
    "categories",
    multiple=True,
    type=click.Choice(config.CATEGORIES, case_sensitive=False),
    help="Only run rules of this category, may be repeated",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with status 1 if there are any findings of severity ERROR",
)
@click.option("-v", "--verbose", count=True, help="Increase log verbosity")
def main(
    model_path: pathlib.Path,
    rule_sets: tuple[str, ...],
    config_path: pathlib.Path | None,
    format: str | None,
    output: t.IO[str],
    template: pathlib.Path | None,
    scope: str | None,
    categories: tuple[str, ...],
    strict: bool,
    verbose: int,
) -> None:
    """Validate a model against the registered rule sets."""
    logging.basicConfig(level=LOG_LEVELS[min(verbose, len(LOG_LEVELS) - 1)])

    try:
        cfg = config.load_config(config_path)
    except exceptions.ConfigError as err:
        raise click.BadParameter(str(err), param_hint="--config") from None
    cfg = cfg.merge(
        rule_sets=rule_sets,
        categories=tuple(i.upper() for i in categories),
        scope=scope,
        format=format,
    )

    try:
        selected = [validation.get_rule_set(i) for i in cfg.rule_sets]
    except KeyError as err:
        raise click.BadParameter(
            err.args[0], param_hint="--rule-set"
        ) from None
    if not selected:
        selected = list(validation.rule_sets().values())
    selected = [i.subset(cfg.categories) for i in selected]

    try:
        model = cli_helpers.loadcli(model_path, max_depth=cfg.max_depth)
    except exceptions.XMILoadError as err:
        raise click.BadParameter(str(err), param_hint="--model") from None

    nodes = None
    if cfg.scope:
        try:
            nodes = cli_helpers.find_scope(model, cfg.scope)
        except ValueError as err:
            raise click.BadParameter(str(err), param_hint="--scope") from None

    session = validation.Session()
    try:
        session.run(selected, model, nodes)
    except exceptions.NotFoundError as err:
        raise click.UsageError(str(err)) from None

    rules = {r.id: r for s in selected for r in s.values()}
    report = session.sink.render(
        cfg.format,
        template=template,
        model_name=model.name,
        rules=rules,
        rule_sets=[i.name for i in selected],
    )
    with output:
        output.write(report)

    if strict and session.sink.has_errors:
        raise SystemExit(1)
