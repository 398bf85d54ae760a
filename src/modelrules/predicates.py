# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Composable predicates over model nodes.

The plain functions in this module take a node and return a result.
The factories (:func:`of_kind`, :func:`stereotyped`,
:func:`in_namespace`, :func:`named`) return :class:`Predicate` objects,
which can be combined with ``&``, ``|`` and ``~``:

>>> conceptual_port = of_kind("PORT") & stereotyped("Conceptual Port")

Predicates must not have side effects. They may raise, in which case
the rule runner reports the failure and carries on.
"""

from __future__ import annotations

__all__ = [
    "ALWAYS",
    "Predicate",
    "has_stereotype",
    "in_namespace",
    "in_namespace_named",
    "matches_naming_convention",
    "matching_stereotypes",
    "named",
    "normalize_name",
    "of_kind",
    "predicate",
    "stereotyped",
    "typed_relation_count",
]

import collections.abc as cabc
import dataclasses
import re

from modelrules.model import Kind, ModelNode, RelationKind, StereotypeRef

_RE_IGNORED = re.compile(r"[\s_-]+")


@dataclasses.dataclass(frozen=True)
class Predicate:
    """A named boolean function over model nodes."""

    name: str
    func: cabc.Callable[[ModelNode], bool] = dataclasses.field(repr=False)

    def __call__(self, node: ModelNode, /) -> bool:
        return bool(self.func(node))

    def __and__(self, other: cabc.Callable[[ModelNode], bool]) -> Predicate:
        other = _as_predicate(other)
        return Predicate(
            f"({self.name} & {other.name})",
            lambda node: self(node) and other(node),
        )

    def __or__(self, other: cabc.Callable[[ModelNode], bool]) -> Predicate:
        other = _as_predicate(other)
        return Predicate(
            f"({self.name} | {other.name})",
            lambda node: self(node) or other(node),
        )

    def __invert__(self) -> Predicate:
        return Predicate(f"~{self.name}", lambda node: not self(node))


def _as_predicate(func: cabc.Callable[[ModelNode], bool]) -> Predicate:
    if isinstance(func, Predicate):
        return func
    return Predicate(getattr(func, "__name__", repr(func)), func)


def predicate(func: cabc.Callable[[ModelNode], bool]) -> Predicate:
    """Turn a function into a :class:`Predicate` named after it."""
    return Predicate(func.__name__, func)


ALWAYS = Predicate("always", lambda _: True)


def normalize_name(text: str) -> str:
    """Normalize a name for comparison.

    Case is folded, and whitespace, hyphens and underscores are removed,
    so that "Conceptual Port", "conceptual-port" and "CONCEPTUAL_PORT"
    all compare equal.
    """
    return _RE_IGNORED.sub("", text).casefold()


def _stereotype_matches(stereotype: StereotypeRef, name: str) -> bool:
    if "::" in name:
        return normalize_name(stereotype.qualified_name) == normalize_name(
            name
        )
    return normalize_name(stereotype.name) == normalize_name(name)


def matching_stereotypes(
    node: ModelNode, names: str | cabc.Iterable[str]
) -> list[StereotypeRef]:
    """Return the stereotypes of ``node`` that match any of ``names``.

    A name that contains ``::`` is compared against the stereotype's
    qualified name, other names against the plain name. The result is
    sorted by qualified name.
    """
    if isinstance(names, str):
        names = (names,)
    names = tuple(names)
    return sorted(
        (
            i
            for i in node.stereotypes
            if any(_stereotype_matches(i, n) for n in names)
        ),
        key=lambda i: i.qualified_name,
    )


def has_stereotype(node: ModelNode, name: str) -> bool:
    """Check whether a stereotype matching ``name`` is applied to ``node``.

    Names are compared after :func:`normalize_name`.
    """
    return any(_stereotype_matches(i, name) for i in node.stereotypes)


def in_namespace_named(
    node: ModelNode, substring: str, *, case_sensitive: bool = True
) -> bool:
    """Check whether any owner of ``node`` has ``substring`` in its name.

    Raises
    ------
    modelrules.exceptions.IntegrityError
        If the owner chain exceeds the model's depth limit.
    """
    if not case_sensitive:
        substring = substring.casefold()
    for owner in node.owner_chain():
        if owner.name is None:
            continue
        name = owner.name if case_sensitive else owner.name.casefold()
        if substring in name:
            return True
    return False


def matches_naming_convention(
    node: ModelNode,
    prefix: str | None = None,
    suffix: str | None = None,
    substrings: cabc.Iterable[str] = (),
    *,
    case_sensitive: bool = True,
) -> bool:
    """Check the node's name against a simple naming convention.

    All given parts must match. A node without a name never matches.
    """
    if node.name is None:
        return False

    def fold(text: str) -> str:
        return text if case_sensitive else text.casefold()

    name = fold(node.name)
    if prefix is not None and not name.startswith(fold(prefix)):
        return False
    if suffix is not None and not name.endswith(fold(suffix)):
        return False
    return all(fold(i) in name for i in substrings)


def typed_relation_count(
    node: ModelNode,
    relation_kind: RelationKind | str | None,
    filter: cabc.Callable[[ModelNode], bool] | None = None,
) -> int:
    """Count the nodes related to ``node`` that satisfy ``filter``."""
    related = node.model.typed_relations_of(node, relation_kind)
    if filter is None:
        return len(related)
    return sum(1 for other, _ in related if filter(other))


def of_kind(*kinds: Kind | str) -> Predicate:
    """Match nodes of any of the given kinds."""
    wanted = frozenset(Kind[i] if isinstance(i, str) else i for i in kinds)
    label = "|".join(sorted(i.name for i in wanted))
    return Predicate(f"kind={label}", lambda node: node.kind in wanted)


def stereotyped(*names: str) -> Predicate:
    """Match nodes that have at least one of the given stereotypes."""
    return Predicate(
        f"stereotype={'|'.join(names)}",
        lambda node: any(has_stereotype(node, i) for i in names),
    )


def in_namespace(substring: str, *, case_sensitive: bool = True) -> Predicate:
    """Match nodes owned, directly or not, by a namespace named like this."""
    return Predicate(
        f"in_namespace={substring!r}",
        lambda node: in_namespace_named(
            node, substring, case_sensitive=case_sensitive
        ),
    )


def named(
    prefix: str | None = None,
    suffix: str | None = None,
    substrings: cabc.Iterable[str] = (),
    *,
    case_sensitive: bool = True,
) -> Predicate:
    """Match nodes following a naming convention.

    See :func:`matches_naming_convention`.
    """
    substrings = tuple(substrings)
    parts = [
        f"{k}={v!r}"
        for k, v in (("prefix", prefix), ("suffix", suffix))
        if v is not None
    ]
    parts.extend(f"contains={i!r}" for i in substrings)
    return Predicate(
        f"named({', '.join(parts)})",
        lambda node: matches_naming_convention(
            node, prefix, suffix, substrings, case_sensitive=case_sensitive
        ),
    )
