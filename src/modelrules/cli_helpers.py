# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Helpers for working with models in CLI scripts."""

from __future__ import annotations

__all__ = [
    "find_scope",
    "loadcli",
]

import logging
import os
import typing as t

from modelrules import loader
from modelrules.model import Kind, Model, ModelNode

LOGGER = logging.getLogger(__name__)

NAMESPACE_KINDS: t.Final = frozenset({Kind.MODEL, Kind.PACKAGE, Kind.PROFILE})


def loadcli(
    value: str | os.PathLike[str], *, max_depth: int | None = None
) -> Model:
    """Load a model from a path given on the command line.

    Examples
    --------
    .. code-block:: python

       def main():
           model = modelrules.cli_helpers.loadcli(sys.argv[1])
    """
    LOGGER.info("Loading model from %s", value)
    return loader.load(value, max_depth=max_depth)


def find_scope(model: Model, name: str) -> list[ModelNode]:
    """Collect the nodes in all namespaces whose name contains ``name``.

    Each matching namespace contributes itself and everything it owns.
    Nested matches are only visited once.

    Raises
    ------
    ValueError
        If no namespace matches.
    """
    roots: list[ModelNode] = []
    for node in model.nodes_of_kind(None):
        if node.kind not in NAMESPACE_KINDS or not node.name:
            continue
        if name not in node.name:
            continue
        if any(i in roots for i in node.owner_chain()):
            continue
        roots.append(node)

    if not roots:
        raise ValueError(f"No namespace named like {name!r}")
    LOGGER.debug("Scope %r matches %d namespaces", name, len(roots))
    return [i for root in roots for i in model.nodes_of_kind(within=root)]
