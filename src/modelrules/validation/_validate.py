# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

__all__ = [
    "EVALUATION_FAILED",
    "PASS",
    "Category",
    "ConstraintResult",
    "Fail",
    "Finding",
    "Pass",
    "Rule",
    "RuleSet",
    "RuleSets",
    "Session",
    "Severity",
    "Warn",
    "get_rule_set",
    "rule_set",
    "rule_sets",
    "run",
]

import collections.abc as cabc
import dataclasses
import enum
import logging
import threading
import typing as t
import weakref

import markupsafe
import typing_extensions as te

from modelrules import exceptions
from modelrules import model as m
from modelrules import predicates

from ._sink import FindingSink

LOGGER = logging.getLogger(__name__)

EVALUATION_FAILED = "RuleEvaluationFailed"
"""Reason code of findings produced by rules that raised an exception."""


@m.stringy_enum
class Category(enum.Enum):
    """A category for a rule."""

    REQUIRED = enum.auto()
    RECOMMENDED = enum.auto()
    SUGGESTED = enum.auto()


@m.stringy_enum
class Severity(enum.Enum):
    """The severity of a finding."""

    ERROR = enum.auto()
    WARNING = enum.auto()


@dataclasses.dataclass(frozen=True)
class ConstraintResult:
    """The outcome of checking a constraint on a single node.

    Attributes
    ----------
    reason
        Human readable explanation, phrased so that it can follow the
        node's name, for example "is not typed".
    code
        A short, stable tag for the kind of violation, like "missing".
    subject
        The node the violation should be reported against, if it is not
        the node that was checked.
    """

    reason: str = ""
    code: str = ""
    subject: m.ModelNode | None = dataclasses.field(
        default=None, compare=False
    )

    severity: t.ClassVar[Severity | None] = None

    @property
    def passed(self) -> bool:
        return self.severity is None


@dataclasses.dataclass(frozen=True)
class Pass(ConstraintResult):
    """The constraint holds."""


@dataclasses.dataclass(frozen=True)
class Fail(ConstraintResult):
    """The constraint is violated."""

    severity: t.ClassVar[Severity | None] = Severity.ERROR


@dataclasses.dataclass(frozen=True)
class Warn(ConstraintResult):
    """The constraint is probably violated, or violated in a minor way."""

    severity: t.ClassVar[Severity | None] = Severity.WARNING


PASS = Pass()

ConstraintOutcome = (
    ConstraintResult | bool | cabc.Iterable[ConstraintResult | bool]
)
Constraint = cabc.Callable[[m.ModelNode], ConstraintOutcome]


@dataclasses.dataclass(frozen=True)
class Finding:
    """A violation of a rule, found on a specific node.

    The node is only referenced weakly, a finding does not keep the
    model alive. Its ID and name are copied, so that findings can still
    be reported after the model was closed.
    """

    rule_id: str
    node_id: str
    node_name: str | None
    severity: Severity
    message: str
    reason: str = ""
    rule_name: str = ""
    category: Category | None = None
    node_ref: weakref.ref[m.ModelNode] | None = dataclasses.field(
        default=None, compare=False, repr=False
    )

    @classmethod
    def from_node(
        cls,
        rule: Rule,
        node: m.ModelNode,
        severity: Severity,
        message: str,
        reason: str = "",
    ) -> Finding:
        return cls(
            rule_id=rule.id,
            node_id=node.id,
            node_name=node.name,
            severity=severity,
            message=message,
            reason=reason,
            rule_name=rule.name,
            category=rule.category,
            node_ref=weakref.ref(node),
        )

    @property
    def node(self) -> m.ModelNode | None:
        """The node this finding is about, if it is still alive."""
        if self.node_ref is None:
            return None
        return self.node_ref()

    def _short_html_(self) -> markupsafe.Markup:
        name = markupsafe.Markup.escape(self.node_name or "<unnamed>")
        id = markupsafe.Markup.escape(self.node_id)
        return markupsafe.Markup(f"<b>{name}</b> (id: <code>{id}</code>)")


@dataclasses.dataclass(frozen=True)
class Rule:
    """A validation rule.

    Attributes
    ----------
    id
        The unique ID of this rule.
    name
        Human-readable short name for the rule.
    applicability
        Predicate selecting the nodes this rule checks.
    constraint
        Called with every applicable node. It returns a
        :class:`ConstraintResult`, an iterable of them, or a plain bool
        where False means that the rule failed.
    message
        Format string for the findings. It may use the fields ``name``,
        ``label``, ``id``, ``kind``, ``kind_title``, ``qualified_name``,
        ``reason``, ``code``, ``rule`` and ``rule_name``.
    category
        The category of severity for this rule.
    rationale
        Text describing why the rule is useful.
    action
        Human-readable short description of what needs to be changed for
        the rule to pass.
    """

    id: str
    name: str
    applicability: cabc.Callable[[m.ModelNode], bool]
    constraint: Constraint
    message: str = "{kind_title} {label} {reason}"
    category: Category = Category.REQUIRED
    rationale: str = ""
    action: str = ""

    def applies_to(self, node: m.ModelNode) -> bool:
        """Check whether this Rule applies to a specific node."""
        return bool(self.applicability(node))

    def check(self, node: m.ModelNode) -> list[ConstraintResult]:
        """Evaluate the constraint, normalizing its outcome to a list."""
        outcome = self.constraint(node)
        if isinstance(outcome, bool | ConstraintResult):
            outcome = [outcome]
        results: list[ConstraintResult] = []
        for i in outcome:
            if i is True:
                results.append(PASS)
            elif i is False:
                results.append(Fail(self.name))
            elif isinstance(i, ConstraintResult):
                results.append(i)
            else:
                raise TypeError(
                    f"Rule {self.id} returned {type(i).__name__},"
                    " expected a ConstraintResult or bool"
                )
        return results

    def render(self, node: m.ModelNode, result: ConstraintResult) -> str:
        """Render the message template for a result on a node."""
        kind_title = node.kind.name.replace("_", " ").title()
        if node.name:
            label = repr(node.name)
        else:
            label = f"<unnamed> ({node.id})"
        return self.message.format_map(
            {
                "id": node.id,
                "name": node.name or "",
                "label": label,
                "kind": node.kind.name,
                "kind_title": kind_title,
                "qualified_name": node.qualified_name,
                "reason": result.reason or self.name,
                "code": result.code,
                "rule": self.id,
                "rule_name": self.name,
            }
        )


class RuleSet(dict[str, Rule]):
    """A named, ordered collection of rules, indexed by their ID.

    Rules are evaluated in the order they were registered in. Once
    registered, a rule can neither be replaced nor removed.
    """

    def __init__(self, name: str, description: str = "") -> None:
        super().__init__()
        self.name = name
        self.description = description
        self._catalogue: RuleSets | None = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} ({len(self)} rules)>"

    def __setitem__(self, key: str, value: Rule) -> None:
        if key != value.id:
            raise ValueError(
                f"Key {key!r} does not match rule ID {value.id!r}"
            )
        self.register(value)

    def update(self, *args: t.Any, **kwargs: Rule) -> None:
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def setdefault(  # type: ignore[override]
        self, key: str, default: Rule
    ) -> Rule:
        if key not in self:
            self[key] = default
        return self[key]

    def __ior__(self, other: t.Any) -> te.Self:  # type: ignore[override]
        self.update(other)
        return self

    def __delitem__(self, key: str) -> None:
        raise TypeError(f"Cannot remove rules from {self!r}")

    def pop(self, *_: t.Any) -> t.NoReturn:
        raise TypeError(f"Cannot remove rules from {self!r}")

    def popitem(self) -> t.NoReturn:
        raise TypeError(f"Cannot remove rules from {self!r}")

    def clear(self) -> t.NoReturn:
        raise TypeError(f"Cannot remove rules from {self!r}")

    def register(self, rule_: Rule) -> Rule:
        """Add a rule to this set.

        Raises
        ------
        modelrules.exceptions.DuplicateRuleIdError
            If this set, or any other registered set, already contains a
            rule with the same ID.
        """
        if rule_.id in self:
            raise exceptions.DuplicateRuleIdError(rule_.id, self.name)
        if self._catalogue is not None:
            self._catalogue.check_id(rule_.id)
        super().__setitem__(rule_.id, rule_)
        return rule_

    def rule(
        self,
        id: str,
        category: Category = Category.REQUIRED,
        *,
        name: str,
        applies_to: cabc.Callable[[m.ModelNode], bool] = predicates.ALWAYS,
        message: str | None = None,
        rationale: str = "",
        action: str = "",
    ) -> cabc.Callable[[Constraint], Rule]:
        """Create a rule from the decorated constraint function.

        Parameters
        ----------
        id
            The unique ID of this rule.

            If another rule with this ID already exists, an error is
            raised.
        category
            The category of severity for this rule.
        name
            Human-readable short name for the rule.
        applies_to
            Predicate selecting the nodes that the rule checks.
        message
            Format string for findings, see :class:`Rule`.
        rationale
            Text describing why the rule is useful.
        action
            Human-readable short description of what needs to be
            changed for the rule to pass.
        """
        if id in self:
            raise exceptions.DuplicateRuleIdError(id, self.name)

        def rule_decorator(constraint: Constraint, /) -> Rule:
            kw: dict[str, t.Any] = {}
            if message is not None:
                kw["message"] = message
            return self.register(
                Rule(
                    id,
                    name,
                    applies_to,
                    constraint,
                    category=category,
                    rationale=rationale,
                    action=action,
                    **kw,
                )
            )

        return rule_decorator

    def by_category(self, category: Category | str) -> list[Rule]:
        """Filter the rules by category."""
        if isinstance(category, str):
            category = Category[category]
        return [i for i in self.values() if i.category == category]

    def subset(
        self, categories: cabc.Iterable[Category | str], /
    ) -> RuleSet:
        """Return a new, unregistered set with rules of some categories."""
        wanted = {Category[i] if isinstance(i, str) else i for i in categories}
        new = RuleSet(self.name, self.description)
        for i in self.values():
            if i.category in wanted:
                new.register(i)
        return new


class RuleSets(dict[str, RuleSet]):
    """The catalogue of known rule sets, indexed by name."""

    def add(self, rule_set_: RuleSet) -> RuleSet:
        if rule_set_.name in self:
            raise ValueError(f"Duplicate rule set name: {rule_set_.name}")
        for i in rule_set_:
            self.check_id(i)
        rule_set_._catalogue = self
        self[rule_set_.name] = rule_set_
        return rule_set_

    def check_id(self, rule_id: str) -> None:
        for i in self.values():
            if rule_id in i:
                raise exceptions.DuplicateRuleIdError(rule_id, i.name)


_RULE_SETS = RuleSets()


def rule_set(name: str, description: str = "") -> RuleSet:
    """Create a new rule set and add it to the global catalogue."""
    return _RULE_SETS.add(RuleSet(name, description))


def rule_sets() -> RuleSets:
    """Return the global catalogue of rule sets."""
    return _RULE_SETS


def get_rule_set(name: str) -> RuleSet:
    """Look up a registered rule set by its name.

    Raises
    ------
    KeyError
        If no rule set with that name was registered.
    """
    try:
        return _RULE_SETS[name]
    except KeyError:
        known = ", ".join(sorted(_RULE_SETS)) or "none"
        raise KeyError(f"Unknown rule set {name!r}, known: {known}") from None


def _scope_nodes(
    model: m.Model,
    scope: m.ModelNode | cabc.Iterable[m.ModelNode] | None,
) -> list[m.ModelNode]:
    if scope is None:
        return list(model.nodes_of_kind(None))
    if isinstance(scope, m.ModelNode):
        return list(model.nodes_of_kind(None, within=scope))
    return list(scope)


def _evaluate(rule_: Rule, node: m.ModelNode) -> list[Finding]:
    findings: list[Finding] = []
    try:
        if not rule_.applies_to(node):
            return findings
        for result in rule_.check(node):
            if result.severity is None:
                continue
            subject = result.subject or node
            findings.append(
                Finding.from_node(
                    rule_,
                    subject,
                    result.severity,
                    rule_.render(subject, result),
                    result.code or result.reason,
                )
            )
    except exceptions.NotFoundError:
        raise
    except Exception as err:
        failure = exceptions.RuleEvaluationFailed(rule_.id, node, err)
        LOGGER.exception("%s", failure)
        findings.append(
            Finding.from_node(
                rule_, node, Severity.ERROR, str(failure), EVALUATION_FAILED
            )
        )
    return findings


def run(
    rule_set_: RuleSet | cabc.Iterable[Rule],
    model: m.Model,
    scope: m.ModelNode | cabc.Iterable[m.ModelNode] | None = None,
    *,
    cancel: threading.Event | None = None,
) -> list[Finding]:
    """Check all nodes in scope against a set of rules.

    Parameters
    ----------
    rule_set_
        The rules to evaluate, in order.
    model
        The model to check.
    scope
        The nodes to check. If None, all nodes of the model are checked.
        If a single node is given, it and everything it owns is checked.
    cancel
        If given and set, the run stops before the next rule and
        returns the findings so far.

    Returns
    -------
    list[Finding]
        The findings, grouped by rule in evaluation order.

    Raises
    ------
    modelrules.exceptions.NotFoundError
        If the model is not loaded. No partial results are returned.
    """
    model.ensure_open()
    if isinstance(rule_set_, RuleSet):
        rules = list(rule_set_.values())
    else:
        rules = list(rule_set_)
    nodes = _scope_nodes(model, scope)

    findings: list[Finding] = []
    for rule_ in rules:
        if cancel is not None and cancel.is_set():
            LOGGER.info("Validation cancelled before rule %s", rule_.id)
            break
        LOGGER.debug("Evaluating rule %s on %d nodes", rule_.id, len(nodes))
        before = len(findings)
        for node in nodes:
            findings.extend(_evaluate(rule_, node))
        LOGGER.debug(
            "Rule %s produced %d findings", rule_.id, len(findings) - before
        )
    return findings


class Session:
    """A validation session that collects findings into a sink.

    Examples
    --------
    .. code-block:: python

       session = Session()
       findings = session.run(get_rule_set("iml"), model)
       print(session.sink.render())
    """

    def __init__(self, sink: FindingSink | None = None) -> None:
        self.sink = sink if sink is not None else FindingSink()

    def run(
        self,
        rule_sets_: RuleSet | cabc.Iterable[RuleSet],
        model: m.Model,
        scope: m.ModelNode | cabc.Iterable[m.ModelNode] | None = None,
        *,
        cancel: threading.Event | None = None,
    ) -> list[Finding]:
        """Start a new session, clearing the sink, and run the rule sets."""
        if isinstance(rule_sets_, RuleSet):
            rule_sets_ = [rule_sets_]
        model.ensure_open()
        self.sink.clear()
        if scope is not None and not isinstance(scope, m.ModelNode):
            scope = list(scope)

        findings: list[Finding] = []
        for i in rule_sets_:
            LOGGER.debug("Running rule set %r", i.name)
            findings.extend(run(i, model, scope, cancel=cancel))
        self.sink.extend(findings)
        return findings
