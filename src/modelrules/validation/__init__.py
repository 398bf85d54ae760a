# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Declarative conformance rules and their evaluation.

Validation rules are conditions ensuring that specific modeling
guidelines are followed. Each rule applies to the model nodes selected
by its applicability predicate, and checks them with a constraint. By
evaluating the rules of a :class:`RuleSet`, the runner produces
:class:`Finding` objects for every violation, which a
:class:`FindingSink` collects and renders into a report.

The built-in rule sets are defined in :mod:`modelrules.validation.rules`
and registered on import.
"""

from ._sink import *
from ._validate import *

from . import shapes as shapes  # isort: skip
from . import rules as rules  # isort: skip
