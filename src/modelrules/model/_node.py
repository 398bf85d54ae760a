# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

__all__ = [
    "MAX_DEPTH",
    "Kind",
    "ModelNode",
    "Relation",
    "RelationKind",
    "StereotypeRef",
]

import collections.abc as cabc
import dataclasses
import enum
import types
import typing as t
import weakref

from modelrules import exceptions

from . import stringy_enum

if t.TYPE_CHECKING:
    from ._model import Model

MAX_DEPTH = 1000
"""Maximum number of owners that will be followed upwards from a node."""


@stringy_enum
class Kind(enum.Enum):
    """The closed set of element kinds known to the rule engine."""

    ELEMENT = enum.auto()
    """Anything that does not fit one of the other kinds."""
    MODEL = enum.auto()
    PACKAGE = enum.auto()
    PROFILE = enum.auto()
    CLASS = enum.auto()
    INTERFACE = enum.auto()
    COMPONENT = enum.auto()
    DATA_TYPE = enum.auto()
    ENUMERATION = enum.auto()
    ENUMERATION_LITERAL = enum.auto()
    SIGNAL = enum.auto()
    PORT = enum.auto()
    PROPERTY = enum.auto()
    ASSOCIATION = enum.auto()
    ASSOCIATION_END = enum.auto()
    CONNECTOR = enum.auto()
    DEPENDENCY = enum.auto()
    OPERATION = enum.auto()
    PARAMETER = enum.auto()
    ACTIVITY = enum.auto()
    ACTION = enum.auto()
    PIN = enum.auto()
    CONSTRAINT = enum.auto()


@stringy_enum
class RelationKind(enum.Enum):
    """Kinds of relationships between two nodes."""

    TYPE = enum.auto()
    """The source is typed by the target."""
    ASSOCIATION = enum.auto()
    CONNECTOR = enum.auto()
    DEPENDENCY = enum.auto()
    USAGE = enum.auto()
    REALIZATION = enum.auto()
    GENERALIZATION = enum.auto()


@dataclasses.dataclass(frozen=True)
class StereotypeRef:
    """A stereotype applied to a node.

    Two references are equal if their qualified names are, which gives
    the stereotypes of a node set semantics.
    """

    name: str
    qualified_name: str = ""
    defining_profile: str | None = dataclasses.field(
        default=None, compare=False
    )

    def __post_init__(self) -> None:
        if not self.qualified_name:
            if self.defining_profile:
                qname = f"{self.defining_profile}::{self.name}"
            else:
                qname = self.name
            object.__setattr__(self, "qualified_name", qname)

    def __str__(self) -> str:
        return f"«{self.name}»"


@dataclasses.dataclass(frozen=True)
class Relation:
    """A typed, directed relationship between two nodes.

    ``via`` is the node that carries the relationship in the model, for
    example the association or connector element, if there is one.
    """

    kind: RelationKind
    source: ModelNode
    target: ModelNode
    via: ModelNode | None = None


class ModelNode:
    """A single element of the model graph.

    Nodes are created by a :class:`~modelrules.model.Model` and are not
    supposed to be changed afterwards. The owner is only referenced
    weakly, the model itself keeps all of its nodes alive.
    """

    id: str
    kind: Kind
    name: str | None
    documentation: str | None

    def __init__(
        self,
        id: str,
        kind: Kind | str,
        name: str | None = None,
        *,
        documentation: str | None = None,
        stereotypes: cabc.Iterable[StereotypeRef] = (),
        tagged_values: cabc.Mapping[str, t.Any] | None = None,
    ) -> None:
        if isinstance(kind, str):
            kind = Kind[kind]
        self.id = id
        self.kind = kind
        self.name = name
        self.documentation = documentation
        self._stereotypes = frozenset(stereotypes)
        self._tagged_values: dict[str, t.Any] = dict(tagged_values or {})
        self._owner: weakref.ref[ModelNode] | None = None
        self._owned: list[ModelNode] = []
        self._model: weakref.ref[Model] | None = None

    def __repr__(self) -> str:
        return self._short_repr_()

    def _short_repr_(self) -> str:
        kind = self.kind.name.title().replace("_", "")
        return f"<{kind} {self.name!r} ({self.id})>"

    @property
    def stereotypes(self) -> frozenset[StereotypeRef]:
        return self._stereotypes

    @property
    def tagged_values(self) -> cabc.Mapping[str, t.Any]:
        return types.MappingProxyType(self._tagged_values)

    @property
    def owner(self) -> ModelNode | None:
        if self._owner is None:
            return None
        return self._owner()

    @property
    def owned_elements(self) -> tuple[ModelNode, ...]:
        return tuple(self._owned)

    @property
    def model(self) -> Model:
        """The model this node belongs to.

        Raises
        ------
        modelrules.exceptions.NotFoundError
            If the node is not part of a model, or the model is gone.
        """
        model = self._model() if self._model is not None else None
        if model is None:
            raise exceptions.NotFoundError(
                f"{self._short_repr_()} is not part of a loaded model"
            )
        return model

    @property
    def qualified_name(self) -> str:
        """The ``::`` separated names of all owners and this node."""
        names = [i.name or "" for i in reversed(list(self.owner_chain()))]
        names.append(self.name or "")
        return "::".join(names)

    def owner_chain(
        self, max_depth: int | None = None
    ) -> cabc.Iterator[ModelNode]:
        """Iterate over the owners of this node, nearest first.

        Parameters
        ----------
        max_depth
            The maximum number of owners to follow. Defaults to the
            model's setting, or :data:`MAX_DEPTH` for detached nodes.

        Raises
        ------
        modelrules.exceptions.IntegrityError
            If the chain does not reach a root within ``max_depth``
            steps.
        """
        if max_depth is None:
            model = self._model() if self._model is not None else None
            max_depth = model.max_depth if model is not None else MAX_DEPTH

        node = self.owner
        depth = 0
        while node is not None:
            depth += 1
            if depth > max_depth:
                raise exceptions.IntegrityError(self, max_depth)
            yield node
            node = node.owner

    def _adopt(self, child: ModelNode) -> None:
        if child.owner is not None:
            raise exceptions.BrokenModelError(
                f"{child._short_repr_()} is already owned by"
                f" {child.owner._short_repr_()}"
            )
        child._owner = weakref.ref(self)
        self._owned.append(child)

    def _apply_stereotype(
        self,
        stereotype: StereotypeRef,
        tagged_values: cabc.Mapping[str, t.Any] | None = None,
    ) -> None:
        self._stereotypes = self._stereotypes | {stereotype}
        for key, value in (tagged_values or {}).items():
            self._tagged_values.setdefault(key, value)
