# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Exceptions that may be raised by modelrules."""

from __future__ import annotations

__all__ = [
    "BrokenModelError",
    "ConfigError",
    "DuplicateRuleIdError",
    "IntegrityError",
    "NotFoundError",
    "RuleEvaluationFailed",
    "XMILoadError",
]


class NotFoundError(LookupError):
    """Raised when there is no loaded model to work on."""

    def __str__(self) -> str:
        if not self.args:
            return "No model is loaded"
        return super().__str__()


class BrokenModelError(RuntimeError):
    """Raised when the model is invalid."""


class IntegrityError(BrokenModelError):
    """Raised when the ownership tree is cyclic or too deep."""

    node = property(lambda self: self.args[0])
    limit = property(lambda self: self.args[1])

    def __str__(self) -> str:
        if len(self.args) != 2:
            return super().__str__()
        return (
            f"Owner chain of {self.node._short_repr_()} did not terminate"
            f" within {self.limit} levels"
        )


class DuplicateRuleIdError(ValueError):
    """Raised when a rule ID is registered twice."""

    rule_id = property(lambda self: self.args[0])

    def __str__(self) -> str:
        if len(self.args) != 2:
            return super().__str__()
        return f"Duplicate rule ID {self.args[0]!r} in {self.args[1]!r}"


class RuleEvaluationFailed(RuntimeError):
    """Raised when a rule's predicate fails on an element."""

    rule_id = property(lambda self: self.args[0])
    node = property(lambda self: self.args[1])

    def __str__(self) -> str:
        if len(self.args) != 3:
            return super().__str__()
        rule_id, node, cause = self.args
        return (
            f"Rule {rule_id} failed on {node._short_repr_()}:"
            f" {type(cause).__name__}: {cause}"
        )


class XMILoadError(ValueError):
    """Raised when an XMI file cannot be loaded."""


class ConfigError(ValueError):
    """Raised when a configuration file is invalid."""
