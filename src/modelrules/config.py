# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Configuration of validation runs.

A configuration file is a YAML mapping with any of these keys:

.. code-block:: yaml

   rule_sets: [iml, common]
   categories: [REQUIRED, RECOMMENDED]
   scope: IML
   format: html
   max_depth: 200

The file is looked up in this order:

1. The path passed explicitly, for example with ``--config``
2. The path in the ``MODELRULES_CONFIG`` environment variable
3. ``config.yml`` in the user's configuration directory, see
   :data:`modelrules.dirs`

If none of these exist, the defaults of :class:`RunConfig` are used.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_ENV",
    "RunConfig",
    "find_config",
    "load_config",
    "parse_config",
]

import dataclasses
import logging
import os
import pathlib
import typing as t

import typing_extensions as te
import yaml

import modelrules
from modelrules import exceptions
from modelrules.model import MAX_DEPTH
from modelrules.validation import FORMATS, Category

LOGGER = logging.getLogger(__name__)

CONFIG_ENV: t.Final = "MODELRULES_CONFIG"
CATEGORIES: t.Final = tuple(i.name for i in Category)


@dataclasses.dataclass(frozen=True)
class RunConfig:
    """Settings for a validation run.

    Attributes
    ----------
    rule_sets
        Names of the rule sets to run. If empty, all registered sets
        are run.
    categories
        Only run rules of these categories.
    scope
        Only check nodes in a namespace whose name contains this.
    format
        The report format.
    max_depth
        Maximum depth of the ownership tree.
    """

    rule_sets: tuple[str, ...] = ()
    categories: tuple[str, ...] = CATEGORIES
    scope: str | None = None
    format: str = "text"
    max_depth: int = MAX_DEPTH
    source: pathlib.Path | None = dataclasses.field(
        default=None, compare=False
    )

    def merge(self, **overrides: t.Any) -> te.Self:
        """Return a copy with all non-empty ``overrides`` applied."""
        changes: dict[str, t.Any] = {}
        for k, v in overrides.items():
            if isinstance(v, list | tuple):
                v = tuple(v) or None
            if v is not None:
                changes[k] = v
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "rule_sets": list(self.rule_sets),
            "categories": list(self.categories),
            "scope": self.scope,
            "format": self.format,
            "max_depth": self.max_depth,
        }


def find_config(
    explicit: str | os.PathLike[str] | None = None,
) -> pathlib.Path | None:
    """Find the configuration file to use.

    Raises
    ------
    modelrules.exceptions.ConfigError
        If a path was given explicitly or through the environment, but
        does not exist.
    """
    if explicit is not None:
        path = pathlib.Path(explicit)
        if not path.is_file():
            raise exceptions.ConfigError(f"Config file not found: {path}")
        return path

    if env := os.getenv(CONFIG_ENV):
        path = pathlib.Path(env)
        if not path.is_file():
            raise exceptions.ConfigError(
                f"Config file from ${CONFIG_ENV} not found: {path}"
            )
        return path

    path = modelrules.dirs.user_config_path / "config.yml"
    if path.is_file():
        return path
    return None


def load_config(
    explicit: str | os.PathLike[str] | None = None,
) -> RunConfig:
    """Find and load the configuration file.

    See the module documentation for the lookup order.
    """
    path = find_config(explicit)
    if path is None:
        LOGGER.debug("No config file found, using defaults")
        return RunConfig()

    LOGGER.debug("Loading config from %s", path)
    try:
        with path.open(encoding="utf-8") as file:
            data = yaml.safe_load(file)
    except OSError as err:
        raise exceptions.ConfigError(f"Cannot read {path}: {err}") from err
    except yaml.YAMLError as err:
        raise exceptions.ConfigError(
            f"Invalid YAML in {path}: {err}"
        ) from err
    return parse_config(data, source=path)


def parse_config(
    data: t.Any, *, source: pathlib.Path | None = None
) -> RunConfig:
    """Validate the contents of a configuration file.

    An empty document is valid and results in the defaults.
    """
    where = str(source) if source is not None else "config"
    if data is None:
        return RunConfig(source=source)
    if not isinstance(data, dict):
        raise exceptions.ConfigError(f"{where}: Expected a mapping")

    known = {i.name for i in dataclasses.fields(RunConfig)} - {"source"}
    unknown = set(data) - known
    if unknown:
        raise exceptions.ConfigError(
            f"{where}: Unknown keys: {', '.join(sorted(map(str, unknown)))}"
        )

    kw: dict[str, t.Any] = {}
    for key in ("rule_sets", "categories"):
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(
            isinstance(i, str) for i in value
        ):
            raise exceptions.ConfigError(
                f"{where}: {key!r} must be a list of strings"
            )
        kw[key] = tuple(value)

    if "categories" in kw:
        categories = tuple(i.upper() for i in kw["categories"])
        if bad := [i for i in categories if i not in CATEGORIES]:
            raise exceptions.ConfigError(
                f"{where}: Unknown categories: {', '.join(bad)}"
            )
        kw["categories"] = categories

    if (scope := data.get("scope")) is not None:
        if not isinstance(scope, str):
            raise exceptions.ConfigError(f"{where}: 'scope' must be a string")
        kw["scope"] = scope

    if (format := data.get("format")) is not None:
        if format not in FORMATS:
            raise exceptions.ConfigError(
                f"{where}: Unknown format {format!r},"
                f" expected one of: {', '.join(FORMATS)}"
            )
        kw["format"] = format

    if (max_depth := data.get("max_depth")) is not None:
        if (
            not isinstance(max_depth, int)
            or isinstance(max_depth, bool)
            or max_depth < 1
        ):
            raise exceptions.ConfigError(
                f"{where}: 'max_depth' must be a positive integer"
            )
        kw["max_depth"] = max_depth

    return RunConfig(source=source, **kw)
