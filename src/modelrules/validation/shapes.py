# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Constraints for the rule shapes that keep coming up in style guides.

Every function in this module returns a constraint, which can be used
directly as the ``constraint`` of a :class:`~modelrules.validation.Rule`
or decorated with :meth:`RuleSet.rule()
<modelrules.validation.RuleSet.rule>`:

.. code-block:: python

   iml.rule("IML-001", name="...", applies_to=...)(
       exactly_one_stereotype(CONCEPTUAL, label="Conceptual")
   )
"""

from __future__ import annotations

__all__ = [
    "exactly_one_stereotype",
    "ownership_allow_list",
    "relational_pair",
    "typed_by_cardinality",
]

import collections.abc as cabc

from modelrules import model as m
from modelrules import predicates

from ._validate import PASS, ConstraintResult, Fail, Severity, Warn

NodePredicate = cabc.Callable[[m.ModelNode], bool]


def _describe(node: m.ModelNode) -> str:
    kind = node.kind.name.replace("_", " ").lower()
    if node.name:
        return f"{kind} {node.name!r}"
    return f"unnamed {kind} ({node.id})"


def exactly_one_stereotype(
    names: cabc.Iterable[str],
    *,
    label: str,
    ambiguous: Severity = Severity.ERROR,
) -> cabc.Callable[[m.ModelNode], ConstraintResult]:
    """Require exactly one stereotype out of a set of names.

    Parameters
    ----------
    names
        The stereotype names that count. They are matched with
        :func:`~modelrules.predicates.has_stereotype` semantics.
    label
        How to call these stereotypes in messages.
    ambiguous
        The severity to report if more than one stereotype matches.

    Returns
    -------
    cabc.Callable
        The constraint. It fails with code ``missing`` if no stereotype
        matches, and with code ``ambiguous`` if more than one does.
    """
    names = tuple(names)
    on_ambiguous = Fail if ambiguous == Severity.ERROR else Warn

    def constraint(node: m.ModelNode) -> ConstraintResult:
        found = predicates.matching_stereotypes(node, names)
        if not found:
            return Fail(
                f"does not have any {label} stereotype", code="missing"
            )
        if len(found) > 1:
            applied = ", ".join(str(i) for i in found)
            return on_ambiguous(
                f"has more than one {label} stereotype: {applied}",
                code="ambiguous",
            )
        return PASS

    return constraint


def ownership_allow_list(
    *allowed: NodePredicate, label: str = "allowed"
) -> cabc.Callable[[m.ModelNode], list[ConstraintResult]]:
    """Require every direct child to satisfy one of ``allowed``.

    Each offending child is reported separately, against the owner.
    """

    def constraint(node: m.ModelNode) -> list[ConstraintResult]:
        results: list[ConstraintResult] = []
        for child in node.owned_elements:
            if not any(check(child) for check in allowed):
                results.append(
                    Fail(
                        f"owns {_describe(child)}, which is not {label}",
                        code="disallowed child",
                    )
                )
        return results or [PASS]

    return constraint


def relational_pair(
    relation_kind: m.RelationKind | str | None,
    predicate: NodePredicate,
    *,
    label: str,
    applies_to: NodePredicate | None = None,
) -> cabc.Callable[[m.ModelNode], list[ConstraintResult]]:
    """Require both ends of a relation to satisfy ``predicate``.

    The checked node is reported at most once, no matter how many
    related nodes there are. Each related node that fails is reported
    against itself.

    Parameters
    ----------
    relation_kind
        The kind of relation to follow, or None for all kinds.
    predicate
        The predicate that both ends have to satisfy.
    label
        Describes the expected ends in messages.
    applies_to
        The applicability of the rule using this constraint. Related
        nodes that match it are checked on their own, so they are not
        reported again from the other end.
    """

    def constraint(node: m.ModelNode) -> list[ConstraintResult]:
        results: list[ConstraintResult] = []
        related = node.model.typed_relations_of(node, relation_kind)
        if not related:
            return [PASS]

        if not predicate(node):
            first = related[0][0]
            results.append(
                Fail(
                    f"is related to {_describe(first)}, but is not {label}",
                    code="pair",
                )
            )
        seen: set[str] = set()
        for other, _ in related:
            if other.id in seen or other is node:
                continue
            seen.add(other.id)
            if applies_to is not None and applies_to(other):
                continue
            if not predicate(other):
                results.append(
                    Fail(
                        f"is related to {_describe(node)}, but is not {label}",
                        code="pair",
                        subject=other,
                    )
                )
        return results or [PASS]

    return constraint



def typed_by_cardinality(
    predicate: NodePredicate,
    *,
    label: str,
    slots: NodePredicate | None = None,
    slot_label: str = "slots",
    exactly: int = 1,
) -> cabc.Callable[[m.ModelNode], ConstraintResult]:
    """Require a node's type, or the types of its slots, to fit.

    Parameters
    ----------
    predicate
        The predicate that the type has to satisfy.
    label
        Describes the expected type in messages.
    slots
        If given, the node is not checked itself. Instead, its owned
        elements that match ``slots`` (for example parameters or pins)
        are, and exactly ``exactly`` of them have to be typed by
        something that satisfies ``predicate``.
    slot_label
        How to call the slots in messages.
    exactly
        The number of slots that have to match.
    """

    def constraint(node: m.ModelNode) -> ConstraintResult:
        model = node.model
        if slots is None:
            type_ = model.type_of(node)
            if type_ is None:
                return Fail("is not typed", code="not typed")
            if not predicate(type_):
                return Fail(
                    f"is typed by {_describe(type_)}, which is not {label}",
                    code="wrong type",
                )
            return PASS

        count = 0
        for child in node.owned_elements:
            if not slots(child):
                continue
            type_ = model.type_of(child)
            if type_ is not None and predicate(type_):
                count += 1
        if count != exactly:
            return Fail(
                f"has {count} {slot_label} typed by {label},"
                f" expected exactly {exactly}",
                code="cardinality",
            )
        return PASS

    return constraint
