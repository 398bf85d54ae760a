# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Loaders that build a :class:`~modelrules.model.Model` from files."""

from __future__ import annotations

__all__ = ["SUPPORTED_SUFFIXES", "load", "load_xmi"]

import os
import pathlib
import typing as t

from modelrules import exceptions
from modelrules.model import Model

from .xmi import load_xmi

SUPPORTED_SUFFIXES: t.Final = frozenset({".xmi", ".uml", ".xml"})


def load(
    path: str | os.PathLike[str], *, max_depth: int | None = None
) -> Model:
    """Load a model from a file, choosing the loader by file suffix.

    Raises
    ------
    modelrules.exceptions.XMILoadError
        If the file does not exist, has an unsupported suffix, or
        cannot be loaded.
    """
    path = pathlib.Path(path)
    if not path.is_file():
        raise exceptions.XMILoadError(f"No such file: {path}")
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise exceptions.XMILoadError(
            f"Unsupported file type {path.suffix!r}, expected one of:"
            f" {', '.join(sorted(SUPPORTED_SUFFIXES))}"
        )
    return load_xmi(path, max_depth=max_depth)
