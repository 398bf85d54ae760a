# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Main entry point for the modelrules CLI scripts."""

import importlib
import importlib.resources as imr

import click

import modelrules

from . import _scripts


class LazyGroup(click.Group):
    """A group that imports its commands from the _scripts package."""

    def list_commands(self, ctx):
        scripts = (
            i.name.removesuffix(".py").replace("_", "-")
            for i in imr.files(_scripts).iterdir()
            if i.name.endswith(".py") and not i.name.startswith("_")
        )
        return super().list_commands(ctx) + sorted(scripts)

    def get_command(self, ctx, name):
        if cmd := super().get_command(ctx, name):
            return cmd

        modname = f"{_scripts.__name__}.{name.replace('-', '_')}"
        try:
            module = importlib.import_module(modname)
        except ImportError:
            return None
        cmd = module.main
        assert isinstance(cmd, click.Command)
        cmd.name = name
        return cmd


@click.group(cls=LazyGroup, no_args_is_help=True)
@click.version_option(modelrules.__version__, prog_name="modelrules")
def main():
    """Check UML/SysML models against declarative style-guide rules."""


if __name__ == "__main__":
    main()
