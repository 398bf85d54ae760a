# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pytest

from modelrules import predicates as p
from modelrules import validation
from modelrules.model import Kind, Model, RelationKind
from modelrules.validation import PASS, Fail, Severity, Warn, shapes

CONCEPTUAL = ("Conceptual", "Conceptual Interface", "Conceptual Port")


@pytest.mark.parametrize(
    ("stereotypes", "expected"),
    [
        pytest.param(
            [],
            Fail("does not have any Conceptual stereotype", code="missing"),
            id="none",
        ),
        pytest.param(["Conceptual Interface"], PASS, id="one"),
        pytest.param(["Conceptual Interface", "Logical"], PASS, id="other"),
        pytest.param(
            ["Conceptual", "Conceptual Interface"],
            Fail(
                "has more than one Conceptual stereotype:"
                " «Conceptual», «Conceptual Interface»",
                code="ambiguous",
            ),
            id="two",
        ),
    ],
)
def test_exactly_one_stereotype(stereotypes, expected) -> None:
    model = Model()
    node = model.create(Kind.INTERFACE, "Foo", stereotypes=stereotypes)
    constraint = shapes.exactly_one_stereotype(CONCEPTUAL, label="Conceptual")

    result = constraint(node)

    assert result == expected
    assert type(result) is type(expected)


def test_exactly_one_stereotype_can_warn_about_ambiguity() -> None:
    model = Model()
    node = model.create(
        Kind.INTERFACE, "Foo", stereotypes=["Conceptual", "Conceptual Port"]
    )
    constraint = shapes.exactly_one_stereotype(
        CONCEPTUAL, label="Conceptual", ambiguous=Severity.WARNING
    )

    result = constraint(node)

    assert isinstance(result, Warn)
    assert result.code == "ambiguous"


def test_ownership_allow_list_passes_if_all_children_are_allowed() -> None:
    model = Model()
    iface = model.create(Kind.INTERFACE, "I")
    model.create(Kind.OPERATION, "op", owner=iface)
    model.create(Kind.PROPERTY, "prop", owner=iface)
    constraint = shapes.ownership_allow_list(
        p.of_kind(Kind.OPERATION), p.of_kind(Kind.PROPERTY)
    )

    assert constraint(iface) == [PASS]


def test_ownership_allow_list_reports_each_offending_child() -> None:
    model = Model()
    iface = model.create(Kind.INTERFACE, "I")
    model.create(Kind.OPERATION, "op", owner=iface)
    model.create(Kind.PORT, "Nested", owner=iface)
    constraint = shapes.ownership_allow_list(
        p.of_kind(Kind.OPERATION), label="an operation"
    )

    results = constraint(iface)

    assert results == [
        Fail(
            "owns port 'Nested', which is not an operation",
            code="disallowed child",
        )
    ]


def test_relational_pair_reports_each_failing_side() -> None:
    model = Model()
    good = model.create(Kind.CLASS, "Good", stereotypes=["Conceptual"])
    bad1 = model.create(Kind.CLASS, "Bad1")
    bad2 = model.create(Kind.CLASS, "Bad2")
    model.relate(RelationKind.ASSOCIATION, good, bad1)
    model.relate(RelationKind.ASSOCIATION, bad2, good)
    constraint = shapes.relational_pair(
        RelationKind.ASSOCIATION,
        p.stereotyped("Conceptual"),
        label="Conceptual",
    )

    results = constraint(good)

    assert [i.subject for i in results] == [bad1, bad2]
    assert all(i.code == "pair" for i in results)
    assert results[0].reason == (
        "is related to class 'Good', but is not Conceptual"
    )


def test_relational_pair_reports_the_checked_node_only_once() -> None:
    model = Model()
    node = model.create(Kind.CLASS, "Node")
    for i in range(3):
        other = model.create(Kind.CLASS, f"Other{i}", stereotypes=["C"])
        model.relate(RelationKind.ASSOCIATION, node, other)
    constraint = shapes.relational_pair(
        RelationKind.ASSOCIATION, p.stereotyped("C"), label="C"
    )

    results = constraint(node)

    assert len(results) == 1
    assert results[0].subject is None


def test_relational_pair_reports_each_side_once_if_both_are_checked() -> None:
    model = Model()
    a = model.create(Kind.CLASS, "A")
    b = model.create(Kind.CLASS, "B")
    model.relate(RelationKind.ASSOCIATION, a, b)
    applies_to = p.of_kind(Kind.CLASS)
    rules = validation.RuleSet("test")
    rules.rule("PAIR", name="pair", applies_to=applies_to)(
        shapes.relational_pair(
            RelationKind.ASSOCIATION,
            p.stereotyped("Conceptual"),
            label="Conceptual",
            applies_to=applies_to,
        )
    )

    findings = validation.run(rules, model)

    assert [i.node_id for i in findings] == [a.id, b.id]
    assert all(i.reason == "pair" for i in findings)



def test_relational_pair_passes_without_relations() -> None:
    model = Model()
    node = model.create(Kind.CLASS, "Node")
    constraint = shapes.relational_pair(
        None, p.stereotyped("C"), label="C"
    )

    assert constraint(node) == [PASS]


def test_typed_by_cardinality_on_the_node_itself() -> None:
    model = Model()
    iface = model.create(Kind.INTERFACE, "I", stereotypes=["Conceptual"])
    other = model.create(Kind.CLASS, "Other")
    good = model.create(Kind.PORT, "Good", type=iface)
    wrong = model.create(Kind.PORT, "Wrong", type=other)
    untyped = model.create(Kind.PORT, "Untyped")
    constraint = shapes.typed_by_cardinality(
        p.stereotyped("Conceptual"), label="a Conceptual Interface"
    )

    assert constraint(good) == PASS
    assert constraint(wrong) == Fail(
        "is typed by class 'Other', which is not a Conceptual Interface",
        code="wrong type",
    )
    assert constraint(untyped) == Fail("is not typed", code="not typed")


@pytest.mark.parametrize(
    ("matching", "passes"), [(0, False), (1, True), (2, False)]
)
def test_typed_by_cardinality_counts_matching_slots(
    matching: int, passes: bool
) -> None:
    model = Model()
    dataset = model.create(Kind.DATA_TYPE, "D", stereotypes=["Dataset"])
    plain = model.create(Kind.DATA_TYPE, "X")
    op = model.create(Kind.OPERATION, "op")
    model.create(Kind.PARAMETER, "unrelated", owner=op, type=plain)
    for i in range(matching):
        model.create(Kind.PARAMETER, f"p{i}", owner=op, type=dataset)
    model.create(Kind.PROPERTY, "not a slot", owner=op, type=dataset)
    constraint = shapes.typed_by_cardinality(
        p.stereotyped("Dataset"),
        label="a Dataset",
        slots=p.of_kind(Kind.PARAMETER),
        slot_label="parameters",
    )

    result = constraint(op)

    assert result.passed is passes
    if not passes:
        assert result.code == "cardinality"
        assert result.reason == (
            f"has {matching} parameters typed by a Dataset,"
            " expected exactly 1"
        )
