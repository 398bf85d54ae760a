# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0

import click

from modelrules import validation


@click.command()
@click.option(
    "-r",
    "--rule-set",
    "names",
    multiple=True,
    help="Only show this rule set, may be repeated",
)
@click.option(
    "--rationale/--no-rationale",
    default=False,
    help="Also show why each rule exists and how to fix violations",
)
def main(names: tuple[str, ...], rationale: bool) -> None:
    """Show the registered rule sets and their rules."""
    try:
        rule_sets = [validation.get_rule_set(i) for i in names]
    except KeyError as err:
        raise click.BadParameter(
            err.args[0], param_hint="--rule-set"
        ) from None
    if not rule_sets:
        rule_sets = list(validation.rule_sets().values())

    for rule_set in rule_sets:
        click.echo(f"{rule_set.name}: {rule_set.description}")
        for rule in rule_set.values():
            click.echo(f"  - {rule.id} ({rule.category}): {rule.name}")
            if rationale and rule.rationale:
                click.echo(f"      Rationale: {rule.rationale}")
            if rationale and rule.action:
                click.echo(f"      Action: {rule.action}")
        click.echo()
