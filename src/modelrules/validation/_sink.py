# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

__all__ = ["FORMATS", "FindingSink"]

import collections
import collections.abc as cabc
import csv
import io
import json
import os
import pathlib
import threading
import typing as t

import jinja2

if t.TYPE_CHECKING:
    from modelrules.model import ModelNode

    from ._validate import Finding, Severity

FORMATS: t.Final = ("text", "html", "json", "csv")
TEMPLATES: t.Final = {
    "text": "report-template.txt.jinja",
    "html": "report-template.html.jinja",
}
COLUMNS: t.Final = (
    "rule_id",
    "rule_name",
    "category",
    "severity",
    "node_id",
    "node_name",
    "reason",
    "message",
)


class FindingSink:
    """Collects the findings of a validation session.

    The sink is append-only: recording the same finding twice stores
    it twice. Recording is serialized with a lock, so a sink can be fed
    from several threads.
    """

    def __init__(self) -> None:
        self.__findings: list[Finding] = []
        self.__lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.__findings)

    def __iter__(self) -> cabc.Iterator[Finding]:
        with self.__lock:
            return iter(list(self.__findings))

    def __bool__(self) -> bool:
        return bool(self.__findings)

    def record(self, finding: Finding) -> None:
        with self.__lock:
            self.__findings.append(finding)

    def extend(self, findings: cabc.Iterable[Finding]) -> None:
        findings = list(findings)
        with self.__lock:
            self.__findings.extend(findings)

    def clear(self) -> None:
        with self.__lock:
            self.__findings.clear()

    @property
    def has_errors(self) -> bool:
        return any(i.severity == "ERROR" for i in self)

    def summary_by_category(self) -> dict[str, int]:
        """Count the findings per rule ID, in order of first appearance."""
        return dict(collections.Counter(i.rule_id for i in self))

    def summary_by_severity(self) -> dict[str, int]:
        return dict(collections.Counter(str(i.severity) for i in self))

    def by_rule(self, rule_id: str, /) -> list[Finding]:
        return [i for i in self if i.rule_id == rule_id]

    def by_severity(self, severity: Severity | str, /) -> list[Finding]:
        return [i for i in self if i.severity == severity]

    def by_node(self, node: ModelNode | str, /) -> list[Finding]:
        """Filter the findings by the node they are about."""
        if not isinstance(node, str):
            node = node.id
        return [i for i in self if i.node_id == node]

    def grouped(self) -> dict[str, list[Finding]]:
        """Group the findings by rule ID, in order of first appearance."""
        groups: dict[str, list[Finding]] = {}
        for i in self:
            groups.setdefault(i.rule_id, []).append(i)
        return groups

    def rows(self) -> list[dict[str, str]]:
        """Return the findings as a table of plain strings."""
        rows = []
        for i in self:
            row = {k: getattr(i, k) for k in COLUMNS}
            rows.append(
                {k: "" if v is None else str(v) for k, v in row.items()}
            )
        return rows

    def render(
        self,
        format: str = "text",
        *,
        template: str | os.PathLike[str] | None = None,
        **context: t.Any,
    ) -> str:
        """Render a report of the recorded findings.

        Parameters
        ----------
        format
            One of ``text``, ``html``, ``json`` or ``csv``.
        template
            Path to a custom jinja2 template. Overrides ``format``.
        context
            Additional variables passed to the template.
        """
        if template is not None:
            path = pathlib.Path(template)
            env = _environment(
                jinja2.FileSystemLoader(path.parent),
                autoescape=jinja2.select_autoescape(
                    ["html", "htm", "xml", "html.jinja"]
                ),
            )
            return env.get_template(path.name).render(
                sink=self, findings=list(self), **context
            )

        if format == "json":
            return json.dumps(self.rows(), indent=2)
        if format == "csv":
            buffer = io.StringIO()
            writer = csv.DictWriter(buffer, COLUMNS, lineterminator="\n")
            writer.writeheader()
            writer.writerows(self.rows())
            return buffer.getvalue()
        if format not in TEMPLATES:
            raise ValueError(
                f"Unknown format {format!r}, expected one of: {FORMATS}"
            )

        loader = jinja2.PackageLoader("modelrules", "validation")
        env = _environment(loader, autoescape=format == "html")
        return env.get_template(TEMPLATES[format]).render(
            sink=self, findings=list(self), **context
        )


def _environment(
    loader: jinja2.BaseLoader,
    *,
    autoescape: bool | cabc.Callable[[str | None], bool] = False,
) -> jinja2.Environment:
    return jinja2.Environment(
        loader=loader,
        autoescape=autoescape,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
