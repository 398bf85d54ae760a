# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""The built-in rule sets."""

from __future__ import annotations

import modelrules.model as m
from modelrules import predicates as p

from . import _validate, shapes
from ._validate import Category, Fail, Warn

LEVELS = ("Conceptual", "Logical", "Physical")


def _level_stereotypes(level: str) -> tuple[str, ...]:
    return (
        level,
        f"{level} Interface",
        f"{level} Port",
        f"{level} Service",
        f"{level} Dataset",
    )


CONCEPTUAL = _level_stereotypes("Conceptual")
LOGICAL = _level_stereotypes("Logical")
PHYSICAL = _level_stereotypes("Physical")
LEVEL_STEREOTYPES = dict(zip(LEVELS, (CONCEPTUAL, LOGICAL, PHYSICAL)))

is_iml_element = p.in_namespace("IML") | p.named(substrings=["IML"])
is_iml_service_element = (
    p.of_kind(m.Kind.INTERFACE, m.Kind.COMPONENT) & is_iml_element
)
is_conceptual = p.stereotyped(*CONCEPTUAL)
is_conceptual_interface = p.of_kind(m.Kind.INTERFACE) & is_conceptual
is_conceptual_iml_classifier = (
    p.of_kind(m.Kind.CLASS, m.Kind.INTERFACE, m.Kind.COMPONENT)
    & is_iml_element
    & is_conceptual
)


# 00. Common
common = _validate.rule_set(
    "common", "Naming and documentation hygiene for all models"
)

NAMED_KINDS = (
    m.Kind.PACKAGE,
    m.Kind.CLASS,
    m.Kind.INTERFACE,
    m.Kind.COMPONENT,
    m.Kind.SIGNAL,
    m.Kind.DATA_TYPE,
    m.Kind.ENUMERATION,
    m.Kind.PORT,
    m.Kind.OPERATION,
    m.Kind.ACTIVITY,
)


@common.rule(
    "COMMON-001",
    Category.REQUIRED,
    name="Element has a name",
    applies_to=p.of_kind(*NAMED_KINDS),
    rationale=(
        "Unnamed elements cannot be referred to in reviews, generated"
        " documents or interface control documents."
    ),
    action="give the element a meaningful name",
)
def has_name(node: m.ModelNode) -> _validate.ConstraintResult:
    if node.name and node.name.strip():
        return _validate.PASS
    return Fail("has no name", code="missing")


@common.rule(
    "COMMON-002",
    Category.RECOMMENDED,
    name="Element has documentation",
    applies_to=p.of_kind(
        m.Kind.CLASS, m.Kind.INTERFACE, m.Kind.COMPONENT, m.Kind.SIGNAL
    ),
    rationale=(
        "A short description of an element's purpose avoids ambiguity"
        " and makes the model usable without its authors at hand."
    ),
    action="fill the documentation of the element",
)
def has_documentation(node: m.ModelNode) -> _validate.ConstraintResult:
    if node.documentation and node.documentation.strip():
        return _validate.PASS
    return Warn("has no documentation", code="missing")


@common.rule(
    "COMMON-003",
    Category.SUGGESTED,
    name="Name has no surrounding whitespace",
    applies_to=p.of_kind(*NAMED_KINDS),
    action="remove leading and trailing whitespace from the name",
)
def name_is_trimmed(node: m.ModelNode) -> _validate.ConstraintResult:
    if node.name is None or node.name == node.name.strip():
        return _validate.PASS
    return Warn("has leading or trailing whitespace in its name")


# 01. IML - Interfaces Modeling Library
iml = _validate.rule_set("iml", "Interfaces Modeling Library style guide")

iml.rule(
    "IML-001",
    Category.REQUIRED,
    name="IML service element has exactly one Conceptual stereotype",
    applies_to=is_iml_service_element,
    rationale=(
        "Elements of the IML describe services at the conceptual level."
        " The Conceptual stereotype carries the tagged values that tools"
        " further down the line rely on, so it must be applied exactly"
        " once."
    ),
    action="apply exactly one Conceptual stereotype",
)(shapes.exactly_one_stereotype(CONCEPTUAL, label="Conceptual"))

iml.rule(
    "IML-002",
    Category.REQUIRED,
    name="Conceptual IML Port is typed by a Conceptual IML Interface",
    applies_to=p.of_kind(m.Kind.PORT) & is_iml_element & is_conceptual,
    rationale=(
        "A port without a type, or typed by an interface of another"
        " abstraction level, leaves the offered service undefined."
    ),
    action="type the port with a Conceptual Interface",
)(
    shapes.typed_by_cardinality(
        is_conceptual_interface, label="a Conceptual Interface"
    )
)

iml.rule(
    "IML-003",
    Category.REQUIRED,
    name="Conceptual IML Interface only owns features",
    applies_to=is_conceptual_interface & is_iml_element,
    rationale=(
        "Conceptual interfaces describe what is exchanged, not how. They"
        " may own operations, properties and constraints, but no ports"
        " or nested classifiers."
    ),
    action="move the offending elements out of the interface",
)(
    shapes.ownership_allow_list(
        p.of_kind(m.Kind.OPERATION),
        p.of_kind(m.Kind.PROPERTY, m.Kind.ASSOCIATION_END),
        p.of_kind(m.Kind.CONSTRAINT),
        label="an operation, property or constraint",
    )
)

iml.rule(
    "IML-004",
    Category.REQUIRED,
    name="Conceptual IML elements are only associated with each other",
    applies_to=is_conceptual_iml_classifier,
    rationale=(
        "Associations across abstraction levels hide the realization"
        " relationships that connect the levels."
    ),
    action=(
        "associate the element with its counterpart on the same level"
        " or apply the Conceptual stereotype to the associated element"
    ),
)(
    shapes.relational_pair(
        m.RelationKind.ASSOCIATION,
        is_conceptual,
        label="Conceptual",
        applies_to=is_conceptual_iml_classifier,
    )
)

iml.rule(
    "IML-005",
    Category.RECOMMENDED,
    name="IML service operation takes exactly one Conceptual Dataset",
    applies_to=p.of_kind(m.Kind.OPERATION) & p.in_namespace("IML"),
    rationale=(
        "Service operations exchange a single dataset, which makes the"
        " payload of each call explicit."
    ),
    action="type exactly one parameter by a Conceptual Dataset",
)(
    shapes.typed_by_cardinality(
        p.stereotyped("Conceptual Dataset"),
        label="a Conceptual Dataset",
        slots=p.of_kind(m.Kind.PARAMETER, m.Kind.PIN),
        slot_label="parameters",
    )
)


@iml.rule(
    "IML-006",
    Category.REQUIRED,
    name="Logical Interface realizes exactly one Conceptual Interface",
    applies_to=p.of_kind(m.Kind.INTERFACE) & p.stereotyped(*LOGICAL),
    rationale=(
        "Each logical interface refines one conceptual interface, which"
        " keeps the levels traceable."
    ),
    action="add a realization to the Conceptual Interface",
)
def realizes_one_conceptual_interface(
    node: m.ModelNode,
) -> _validate.ConstraintResult:
    count = p.typed_relation_count(
        node, m.RelationKind.REALIZATION, is_conceptual_interface
    )
    if count == 1:
        return _validate.PASS
    return Fail(
        f"realizes {count} Conceptual Interfaces, expected exactly 1",
        code="cardinality",
    )


@iml.rule(
    "IML-007",
    Category.REQUIRED,
    name="Element has a single abstraction level",
    applies_to=p.stereotyped(*CONCEPTUAL, *LOGICAL, *PHYSICAL),
    action="remove the stereotypes of all but one abstraction level",
)
def single_level(node: m.ModelNode) -> _validate.ConstraintResult:
    levels = [
        level
        for level, names in LEVEL_STEREOTYPES.items()
        if any(p.has_stereotype(node, i) for i in names)
    ]
    if len(levels) <= 1:
        return _validate.PASS
    return Fail(
        "has stereotypes of several abstraction levels: "
        + ", ".join(levels),
        code="ambiguous",
    )


@iml.rule(
    "IML-008",
    Category.SUGGESTED,
    name="Name matches the applied abstraction level",
    applies_to=(
        p.of_kind(
            m.Kind.CLASS, m.Kind.INTERFACE, m.Kind.COMPONENT, m.Kind.PORT
        )
        & is_iml_element
        & p.Predicate(
            "names_a_level",
            lambda node: any(
                p.matches_naming_convention(
                    node, substrings=[i], case_sensitive=False
                )
                for i in LEVELS
            ),
        )
    ),
    rationale=(
        "A name that mentions an abstraction level suggests that the"
        " matching stereotype was forgotten. This is only a hint, the"
        " name never replaces the stereotype."
    ),
    action="apply the stereotype of the level, or rename the element",
)
def name_matches_level(
    node: m.ModelNode,
) -> list[_validate.ConstraintResult]:
    results: list[_validate.ConstraintResult] = []
    for level in LEVELS:
        mentioned = p.matches_naming_convention(
            node, substrings=[level], case_sensitive=False
        )
        if not mentioned:
            continue
        names = LEVEL_STEREOTYPES[level]
        if not any(p.has_stereotype(node, i) for i in names):
            results.append(
                Warn(
                    f"is named like a {level} element,"
                    f" but has no {level} stereotype",
                    code="heuristic",
                )
            )
    return results or [_validate.PASS]
