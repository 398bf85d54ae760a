# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""XML namespaces used in XMI interchange files."""

from __future__ import annotations

__all__ = [
    "NAMESPACES",
    "UML_NAMESPACES",
    "XMI_NAMESPACES",
    "is_uml_namespace",
    "is_xmi_namespace",
]

import re
import typing as t

XMI_NAMESPACES: t.Final = (
    "http://www.omg.org/spec/XMI/20131001",
    "http://www.omg.org/spec/XMI/20110701",
    "http://www.omg.org/spec/XMI/20100901",
    "http://schema.omg.org/spec/XMI/2.1",
    "http://www.omg.org/XMI",
)
UML_NAMESPACES: t.Final = (
    "http://www.omg.org/spec/UML/20131001",
    "http://www.omg.org/spec/UML/20110701",
    "http://www.omg.org/spec/UML/20090901",
    "http://schema.omg.org/spec/UML/2.1",
    "http://www.eclipse.org/uml2/5.0.0/UML",
)

NAMESPACES: t.Final = {
    "xmi": XMI_NAMESPACES[0],
    "uml": UML_NAMESPACES[0],
    "xsi": "http://www.w3.org/2001/XMLSchema-instance",
}

_RE_XMI = re.compile(r"(?i)/XMI(?:/|$)")
_RE_UML = re.compile(r"(?i)/UML(?:/|$)|/uml2/")


def is_xmi_namespace(uri: str | None) -> bool:
    """Check whether ``uri`` is one of the known XMI namespace URIs."""
    if not uri:
        return False
    return uri in XMI_NAMESPACES or bool(_RE_XMI.search(uri))


def is_uml_namespace(uri: str | None) -> bool:
    """Check whether ``uri`` is one of the known UML namespace URIs."""
    if not uri:
        return False
    return uri in UML_NAMESPACES or bool(_RE_UML.search(uri))
