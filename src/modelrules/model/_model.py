# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

__all__ = ["Model"]

import collections
import collections.abc as cabc
import logging
import typing as t
import weakref

from modelrules import exceptions, helpers

from ._node import (
    MAX_DEPTH,
    Kind,
    ModelNode,
    Relation,
    RelationKind,
    StereotypeRef,
)

LOGGER = logging.getLogger(__name__)


class Model:
    """A model graph, as seen by the rule engine.

    The model owns a tree of :class:`ModelNode` objects rooted at
    :attr:`root`, and a list of typed relations between them. Nodes and
    relations are added by whoever builds the model, usually a loader
    like :func:`modelrules.loader.load_xmi`. Everything else only ever
    reads from it.

    Once :meth:`close` was called, all query methods raise
    :class:`~modelrules.exceptions.NotFoundError`.

    Examples
    --------
    >>> model = Model("Example")
    >>> pkg = model.create("PACKAGE", "IML")
    >>> iface = model.create("INTERFACE", "Foo", owner=pkg)
    >>> [i.name for i in model.owner_chain(iface)]
    ['IML', 'Example']
    """

    def __init__(
        self,
        name: str | None = None,
        *,
        root: ModelNode | None = None,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be positive, not {max_depth}")
        self.max_depth = max_depth
        self.__nodes: dict[str, ModelNode] = {}
        self.__relations: list[Relation] = []
        self.__relations_by_node: dict[str, list[Relation]] = (
            collections.defaultdict(list)
        )

        if root is None:
            root = ModelNode(helpers.generate_id(), Kind.MODEL, name)
        self.__root: ModelNode | None = root
        self._register(root)

    def __repr__(self) -> str:
        if self.__root is None:
            return f"<{type(self).__name__} (closed)>"
        return f"<{type(self).__name__} {self.__root.name!r}>"

    @property
    def root(self) -> ModelNode:
        """The root node of the ownership tree."""
        if self.__root is None:
            raise exceptions.NotFoundError("The model has been closed")
        return self.__root

    @property
    def name(self) -> str | None:
        return self.root.name

    @property
    def is_open(self) -> bool:
        return self.__root is not None

    def ensure_open(self) -> None:
        """Raise NotFoundError if the model has been closed."""
        if self.__root is None:
            raise exceptions.NotFoundError("The model has been closed")

    def close(self) -> None:
        """End the session, dropping all nodes and relations."""
        self.__root = None
        self.__nodes.clear()
        self.__relations.clear()
        self.__relations_by_node.clear()

    # Building the graph
    def create(
        self,
        kind: Kind | str,
        name: str | None = None,
        *,
        owner: ModelNode | None = None,
        id: str | None = None,
        documentation: str | None = None,
        stereotypes: cabc.Iterable[StereotypeRef | str] = (),
        tagged_values: cabc.Mapping[str, t.Any] | None = None,
        type: ModelNode | None = None,
    ) -> ModelNode:
        """Create a new node and insert it into the ownership tree.

        Parameters
        ----------
        kind
            The kind of node to create.
        name
            The node's name.
        owner
            The owner of the new node. Defaults to the root.
        id
            A unique ID for the node. A random one is generated if not
            given.
        documentation
            Documentation text.
        stereotypes
            Stereotypes to apply. Plain strings are converted to a
            :class:`StereotypeRef` without profile.
        tagged_values
            Tagged values of the node.
        type
            The node that types the new node.
        """
        if owner is None:
            owner = self.root
        elif owner.model is not self:
            raise ValueError(f"Owner {owner._short_repr_()} is not in {self}")

        node = ModelNode(
            id or helpers.generate_id(),
            kind,
            name,
            documentation=documentation,
            tagged_values=tagged_values,
        )
        for i in stereotypes:
            if isinstance(i, str):
                i = StereotypeRef(i)
            node._apply_stereotype(i)
        self._register(node)
        owner._adopt(node)
        if type is not None:
            self.relate(RelationKind.TYPE, node, type)
        return node

    def apply_stereotype(
        self,
        node: ModelNode,
        stereotype: StereotypeRef | str,
        tagged_values: cabc.Mapping[str, t.Any] | None = None,
    ) -> None:
        """Apply a stereotype and its tagged values to a node."""
        if isinstance(stereotype, str):
            stereotype = StereotypeRef(stereotype)
        node._apply_stereotype(stereotype, tagged_values)

    def relate(
        self,
        kind: RelationKind | str,
        source: ModelNode,
        target: ModelNode,
        *,
        via: ModelNode | None = None,
    ) -> Relation:
        """Add a typed relation between two nodes of this model."""
        if isinstance(kind, str):
            kind = RelationKind[kind]
        for i in (source, target):
            if self.__nodes.get(i.id) is not i:
                raise ValueError(f"{i._short_repr_()} is not in {self}")
        relation = Relation(kind, source, target, via)
        self.__relations.append(relation)
        self.__relations_by_node[source.id].append(relation)
        if target is not source:
            self.__relations_by_node[target.id].append(relation)
        return relation

    def _register(self, node: ModelNode) -> None:
        if node.id in self.__nodes:
            raise exceptions.BrokenModelError(
                f"Duplicate node ID {node.id!r}: {node._short_repr_()}"
                f" and {self.__nodes[node.id]._short_repr_()}"
            )
        self.__nodes[node.id] = node
        node._model = weakref.ref(self)

    # Querying the graph
    def by_id(self, id: str) -> ModelNode:
        """Find a node by its ID.

        Raises
        ------
        KeyError
            If there is no node with the given ID.
        """
        self.ensure_open()
        return self.__nodes[id]

    def __len__(self) -> int:
        return len(self.__nodes)

    def __contains__(self, node: object) -> bool:
        if not isinstance(node, ModelNode):
            return False
        return self.__nodes.get(node.id) is node

    def nodes_of_kind(
        self,
        kind: Kind | str | None = None,
        recursive: bool = True,
        *,
        within: ModelNode | None = None,
    ) -> cabc.Iterator[ModelNode]:
        """Iterate over the nodes of a kind, in depth-first order.

        Parameters
        ----------
        kind
            Only yield nodes of this kind. If None, yield all nodes.
        recursive
            If False, only look at the direct children of ``within``.
        within
            The node to start from. Defaults to the root. The start
            node itself is yielded too, if it matches.
        """
        if isinstance(kind, str):
            kind = Kind[kind]
        start = within if within is not None else self.root
        return self.__walk(start, kind, recursive)

    def __walk(
        self, start: ModelNode, kind: Kind | None, recursive: bool
    ) -> cabc.Iterator[ModelNode]:
        seen: set[str] = set()
        stack = [start]
        while stack:
            node = stack.pop()
            if node.id in seen:
                LOGGER.warning("Ownership cycle at %s", node._short_repr_())
                continue
            seen.add(node.id)
            if kind is None or node.kind == kind:
                yield node
            if recursive or node is start:
                stack.extend(reversed(node.owned_elements))

    def stereotypes_of(self, node: ModelNode) -> frozenset[StereotypeRef]:
        self.ensure_open()
        return node.stereotypes

    def tagged_value(self, node: ModelNode, tag_name: str) -> t.Any | None:
        self.ensure_open()
        return node.tagged_values.get(tag_name)

    def owner_chain(self, node: ModelNode) -> cabc.Iterator[ModelNode]:
        """Iterate over the owners of ``node``, nearest first.

        Raises
        ------
        modelrules.exceptions.IntegrityError
            If the chain is longer than :attr:`max_depth`.
        """
        self.ensure_open()
        return node.owner_chain(self.max_depth)

    def relations_of(
        self,
        node: ModelNode,
        relation_kind: RelationKind | str | None = None,
    ) -> list[Relation]:
        """Return all relations that have ``node`` on either end."""
        self.ensure_open()
        if isinstance(relation_kind, str):
            relation_kind = RelationKind[relation_kind]
        return [
            i
            for i in self.__relations_by_node.get(node.id, ())
            if relation_kind is None or i.kind == relation_kind
        ]

    def typed_relations_of(
        self,
        node: ModelNode,
        relation_kind: RelationKind | str | None = None,
    ) -> list[tuple[ModelNode, str]]:
        """Return the nodes related to ``node``, with their role.

        The role is ``"target"`` for nodes that ``node`` points to, and
        ``"source"`` for nodes that point to ``node``. Undirected
        relations like associations and connectors are reported with
        the role ``"end"``.
        """
        undirected = {RelationKind.ASSOCIATION, RelationKind.CONNECTOR}
        related: list[tuple[ModelNode, str]] = []
        for rel in self.relations_of(node, relation_kind):
            if rel.source is node:
                other, role = rel.target, "target"
            else:
                other, role = rel.source, "source"
            if rel.kind in undirected:
                role = "end"
            related.append((other, role))
        return related

    def type_of(self, node: ModelNode) -> ModelNode | None:
        """Return the node that types ``node``, if any."""
        for rel in self.relations_of(node, RelationKind.TYPE):
            if rel.source is node:
                return rel.target
        return None
