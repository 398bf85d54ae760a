# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import random

import pytest

from modelrules import exceptions
from modelrules import predicates as p
from modelrules.model import Kind, Model, RelationKind, StereotypeRef

STEREOTYPE_NAMES = (
    "Conceptual Port",
    "Logical Interface",
    "Conceptual Dataset",
    "Physical Service Provider",
)
SEPARATORS = (" ", "-", "_", "", "  ", " - ", "__")


def random_spelling(rng: random.Random, name: str) -> str:
    text = rng.choice(SEPARATORS).join(name.split())
    return "".join(
        c.upper() if rng.random() < 0.5 else c.lower() for c in text
    )


@pytest.mark.parametrize("seed", range(25))
def test_has_stereotype_ignores_case_and_separators(seed: int) -> None:
    rng = random.Random(seed)
    name = rng.choice(STEREOTYPE_NAMES)
    applied = random_spelling(rng, name)
    queried = random_spelling(rng, name)
    model = Model()
    node = model.create(Kind.CLASS, "C", stereotypes=[applied])

    assert p.normalize_name(applied) == p.normalize_name(name)
    assert p.has_stereotype(node, queried)
    assert not p.has_stereotype(node, queried + "s")


def test_has_stereotype_is_false_without_stereotypes() -> None:
    model = Model()
    node = model.create(Kind.CLASS, "C")

    assert not p.has_stereotype(node, "Conceptual")


def test_has_stereotype_compares_qualified_names_if_given() -> None:
    model = Model()
    node = model.create(
        Kind.PORT,
        "P",
        stereotypes=[StereotypeRef("ConceptualPort", defining_profile="IML")],
    )

    assert p.has_stereotype(node, "Conceptual Port")
    assert p.has_stereotype(node, "iml::conceptual-port")
    assert not p.has_stereotype(node, "SAM::ConceptualPort")


def test_matching_stereotypes_are_sorted_by_qualified_name() -> None:
    model = Model()
    node = model.create(
        Kind.INTERFACE,
        "I",
        stereotypes=["Conceptual Interface", "Conceptual", "Other"],
    )

    found = p.matching_stereotypes(
        node, ["Conceptual", "Conceptual Interface", "Conceptual Port"]
    )

    assert [i.name for i in found] == ["Conceptual", "Conceptual Interface"]


def test_in_namespace_named_checks_all_owners() -> None:
    model = Model("Root")
    iml = model.create(Kind.PACKAGE, "The IML library")
    sub = model.create(Kind.PACKAGE, "Services", owner=iml)
    node = model.create(Kind.INTERFACE, "Foo", owner=sub)
    outside = model.create(Kind.INTERFACE, "IML Bar")

    assert p.in_namespace_named(node, "IML")
    assert not p.in_namespace_named(node, "iml")
    assert p.in_namespace_named(node, "iml", case_sensitive=False)
    assert not p.in_namespace_named(outside, "IML")


def test_in_namespace_named_ignores_unnamed_owners() -> None:
    model = Model()
    node = model.create(Kind.CLASS, "C")

    assert not p.in_namespace_named(node, "")


def test_in_namespace_named_raises_IntegrityError_past_the_depth_cap():
    model = Model("IML", max_depth=10)
    node = model.root
    for i in range(11):
        node = model.create(Kind.PACKAGE, f"P{i}", owner=node)

    with pytest.raises(exceptions.IntegrityError):
        p.in_namespace_named(node, "IML")


@pytest.mark.parametrize(
    ("kwargs", "expected"),
    [
        pytest.param({}, True, id="no-constraints"),
        pytest.param({"prefix": "IML_"}, True, id="prefix"),
        pytest.param({"prefix": "iml_"}, False, id="prefix-case"),
        pytest.param(
            {"prefix": "iml_", "case_sensitive": False},
            True,
            id="prefix-nocase",
        ),
        pytest.param({"suffix": "Service"}, True, id="suffix"),
        pytest.param({"suffix": "Port"}, False, id="wrong-suffix"),
        pytest.param(
            {"substrings": ["Brake", "Service"]}, True, id="substrings"
        ),
        pytest.param(
            {"substrings": ["Brake", "Port"]}, False, id="missing-substring"
        ),
    ],
)
def test_matches_naming_convention(kwargs, expected: bool) -> None:
    model = Model()
    node = model.create(Kind.INTERFACE, "IML_BrakeService")

    assert p.matches_naming_convention(node, **kwargs) is expected


def test_unnamed_nodes_never_match_a_naming_convention() -> None:
    model = Model()
    node = model.create(Kind.INTERFACE)

    assert not p.matches_naming_convention(node)
    assert not p.matches_naming_convention(node, prefix="")


def test_typed_relation_count_applies_the_filter() -> None:
    model = Model()
    node = model.create(Kind.INTERFACE, "L")
    conceptual = model.create(Kind.INTERFACE, "C", stereotypes=["Conceptual"])
    other = model.create(Kind.INTERFACE, "O")
    model.relate(RelationKind.REALIZATION, node, conceptual)
    model.relate(RelationKind.REALIZATION, node, other)
    model.relate(RelationKind.USAGE, node, conceptual)

    assert p.typed_relation_count(node, RelationKind.REALIZATION) == 2
    assert p.typed_relation_count(node, None) == 3
    assert (
        p.typed_relation_count(
            node, "REALIZATION", p.stereotyped("Conceptual")
        )
        == 1
    )


def test_predicates_can_be_combined() -> None:
    model = Model()
    port = model.create(Kind.PORT, "P", stereotypes=["Conceptual Port"])
    iface = model.create(Kind.INTERFACE, "I", stereotypes=["Conceptual"])
    is_port = p.of_kind(Kind.PORT)
    is_conceptual = p.stereotyped("Conceptual", "Conceptual Port")

    both = is_port & is_conceptual
    either = is_port | p.of_kind("INTERFACE")
    neither = ~either

    assert both(port) and not both(iface)
    assert either(port) and either(iface)
    assert not neither(port)
    assert both.name == f"({is_port.name} & {is_conceptual.name})"
    assert neither.name == f"~{either.name}"


def test_plain_functions_can_be_combined_with_predicates() -> None:
    model = Model()
    node = model.create(Kind.CLASS, "Foo")

    @p.predicate
    def is_foo(node) -> bool:
        return node.name == "Foo"

    combined = p.of_kind("CLASS") & (lambda node: node.name.startswith("F"))

    assert is_foo.name == "is_foo"
    assert is_foo(node)
    assert combined(node)
    assert p.ALWAYS(node)


def test_in_namespace_and_named_factories() -> None:
    model = Model()
    iml = model.create(Kind.PACKAGE, "IML")
    inside = model.create(Kind.INTERFACE, "Foo", owner=iml)
    named = model.create(Kind.INTERFACE, "IML Foo")

    in_iml = p.in_namespace("IML")
    named_iml = p.named(substrings=["IML"])

    assert in_iml(inside) and not in_iml(named)
    assert named_iml(named) and not named_iml(inside)
    assert (in_iml | named_iml)(iml) is True
