# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Read-only access to a UML/SysML model graph.

The classes in this package form the boundary between the rule engine
and wherever a model comes from. A :class:`Model` holds a tree of
:class:`ModelNode` objects, connected by ownership, and a set of typed
:class:`Relation` objects between them. Rules only ever read from it.
"""

from __future__ import annotations

import enum


def stringy_enum(et: type[enum.Enum]) -> type[enum.Enum]:
    """Make an Enum stringy.

    This decorator makes an Enum's members compare equal to their
    respective ``name``.
    """

    def __eq__(self, other):
        if isinstance(other, type(self)):
            return self is other
        if isinstance(other, str):
            return self.name == other
        return NotImplemented

    def __str__(self):
        return str(self.name)

    def __hash__(self):
        return hash(self.name)

    et.__eq__ = __eq__  # type: ignore[method-assign]
    et.__str__ = __str__  # type: ignore[method-assign]
    et.__hash__ = __hash__  # type: ignore[method-assign]
    return et


from ._node import *
from ._model import *
