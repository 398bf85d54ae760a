# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Load a model graph from an XMI interchange file.

Only the parts of UML that the rule engine can make use of are read:
the ownership tree of named elements, their documentation, what they
are typed by, the relationships between them, and the stereotypes
applied to them.

Stereotype applications are expected in the usual XMI form, as
top-level elements next to the ``uml:Model``, which point at the
stereotyped element with a ``base_*`` attribute::

    <IML:ConceptualInterface xmi:id="_s1" base_Interface="_foo"
        level="conceptual"/>

All attributes other than the ``base_*`` and ``xmi:*`` ones, as well as
child elements, become tagged values of the element.
"""

from __future__ import annotations

__all__ = ["load_xmi"]

import collections.abc as cabc
import logging
import os
import typing as t

from lxml import etree

import modelrules._namespaces as _n
from modelrules import exceptions, helpers
from modelrules.model import Kind, Model, ModelNode, RelationKind
from modelrules.model import StereotypeRef

LOGGER = logging.getLogger(__name__)

KINDS: t.Final[dict[str, Kind]] = {
    "Model": Kind.MODEL,
    "Package": Kind.PACKAGE,
    "Profile": Kind.PROFILE,
    "Class": Kind.CLASS,
    "Interface": Kind.INTERFACE,
    "Component": Kind.COMPONENT,
    "DataType": Kind.DATA_TYPE,
    "PrimitiveType": Kind.DATA_TYPE,
    "Enumeration": Kind.ENUMERATION,
    "EnumerationLiteral": Kind.ENUMERATION_LITERAL,
    "Signal": Kind.SIGNAL,
    "Port": Kind.PORT,
    "Property": Kind.PROPERTY,
    "Association": Kind.ASSOCIATION,
    "AssociationClass": Kind.ASSOCIATION,
    "Connector": Kind.CONNECTOR,
    "Dependency": Kind.DEPENDENCY,
    "Usage": Kind.DEPENDENCY,
    "Abstraction": Kind.DEPENDENCY,
    "Realization": Kind.DEPENDENCY,
    "Operation": Kind.OPERATION,
    "Parameter": Kind.PARAMETER,
    "Activity": Kind.ACTIVITY,
    "InputPin": Kind.PIN,
    "OutputPin": Kind.PIN,
    "ValuePin": Kind.PIN,
    "ActionInputPin": Kind.PIN,
    "Constraint": Kind.CONSTRAINT,
}
"""Maps UML metaclass names to node kinds.

Any metaclass ending in ``Action`` is an :attr:`Kind.ACTION`, all
others not listed here are plain :attr:`Kind.ELEMENT` nodes.
"""
DEPENDENCY_RELATIONS: t.Final[dict[str, RelationKind]] = {
    "Dependency": RelationKind.DEPENDENCY,
    "Abstraction": RelationKind.DEPENDENCY,
    "Usage": RelationKind.USAGE,
    "Realization": RelationKind.REALIZATION,
}
SKIPPED_TYPES: t.Final = frozenset(
    {
        "Comment",
        "ConnectorEnd",
        "ElementImport",
        "Generalization",
        "InstanceValue",
        "InterfaceRealization",
        "LiteralBoolean",
        "LiteralInteger",
        "LiteralNull",
        "LiteralReal",
        "LiteralString",
        "LiteralUnlimitedNatural",
        "OpaqueExpression",
        "PackageImport",
        "ProfileApplication",
    }
)
"""Metaclasses that are never turned into nodes."""
SKIPPED_TAGS: t.Final = frozenset({"eAnnotations", "extension", "Extension"})
ASSOCIATION_TYPES: t.Final = frozenset({"Association", "AssociationClass"})


def kind_of(xtype: str | None) -> Kind:
    """Map a UML metaclass name to a node kind."""
    if not xtype:
        return Kind.ELEMENT
    try:
        return KINDS[xtype]
    except KeyError:
        pass
    if xtype.endswith("Action"):
        return Kind.ACTION
    return Kind.ELEMENT


def load_xmi(
    source: str | os.PathLike[str] | t.IO[bytes],
    *,
    max_depth: int | None = None,
) -> Model:
    """Load a model from an XMI file.

    Parameters
    ----------
    source
        A path to the file, or an open binary file object.
    max_depth
        Passed on to the :class:`~modelrules.model.Model`.

    Raises
    ------
    modelrules.exceptions.XMILoadError
        If the file cannot be read, is not well-formed XML, or does not
        contain a UML model.
    """
    if isinstance(source, os.PathLike):
        source = os.fspath(source)
    parser = etree.XMLParser(remove_blank_text=True, huge_tree=True)
    try:
        tree = etree.parse(source, parser)
    except OSError as err:
        raise exceptions.XMILoadError(f"Cannot read {source}: {err}") from err
    except etree.XMLSyntaxError as err:
        raise exceptions.XMILoadError(
            f"Invalid XML in {source}: {err}"
        ) from err

    return _XMIReader(tree.getroot(), max_depth=max_depth).read()


class _XMIReader:
    def __init__(
        self, root: etree._Element, *, max_depth: int | None
    ) -> None:
        self.root = root
        self.max_depth = max_depth
        self.elements: dict[str, etree._Element] = {}
        self.model: Model | None = None

    def read(self) -> Model:
        model_elem = self._find_model_element()
        model_id = helpers.xmi_attr(model_elem, "id") or helpers.generate_id()
        root = ModelNode(
            model_id,
            Kind.MODEL,
            _name_of(model_elem),
            documentation=_documentation_of(model_elem),
        )
        kwargs: dict[str, t.Any] = {}
        if self.max_depth is not None:
            kwargs["max_depth"] = self.max_depth
        self.model = Model(root=root, **kwargs)
        self.elements[model_id] = model_elem

        self._read_children(model_elem, root)
        nodes = [(self.model.by_id(k), v) for k, v in self.elements.items()]
        for node, elem in nodes:
            for type_ in self._refs(elem, "type", node)[:1]:
                self.model.relate(RelationKind.TYPE, node, type_)
        for node, elem in nodes:
            self._read_relations(node, elem)
        self._read_stereotypes()
        LOGGER.debug("Loaded %d nodes from XMI", len(self.model))
        return self.model

    def _find_model_element(self) -> etree._Element:
        candidates = [self.root]
        if _n.is_xmi_namespace(etree.QName(self.root).namespace):
            candidates = list(self.root)
        for elem in candidates:
            if not isinstance(elem.tag, str):
                continue
            tag = etree.QName(elem)
            if _n.is_uml_namespace(tag.namespace) and tag.localname in {
                "Model",
                "Package",
            }:
                return elem
        raise exceptions.XMILoadError("No uml:Model found in XMI file")

    def _read_children(
        self, parent_elem: etree._Element, parent: ModelNode
    ) -> None:
        assert self.model is not None
        stack = [(parent_elem, parent)]
        while stack:
            elem, node = stack.pop()
            children: list[tuple[etree._Element, ModelNode]] = []
            for child in elem.iterchildren(tag=etree.Element):
                if etree.QName(child).localname in SKIPPED_TAGS:
                    continue
                child_id = helpers.xmi_attr(child, "id")
                xtype = helpers.xtype_of(child)
                if not child_id or xtype in SKIPPED_TYPES:
                    continue
                if not helpers.is_id_string(child_id):
                    raise exceptions.XMILoadError(
                        f"Invalid xmi:id {child_id!r}"
                        f" on line {child.sourceline}"
                    )

                kind = kind_of(xtype)
                if kind == Kind.PROPERTY and (
                    child.get("association")
                    or helpers.xtype_of(elem) in ASSOCIATION_TYPES
                ):
                    kind = Kind.ASSOCIATION_END
                if kind == Kind.ELEMENT:
                    LOGGER.debug("Reading %r as plain element", xtype)

                try:
                    child_node = self.model.create(
                        kind,
                        _name_of(child),
                        owner=node,
                        id=child_id,
                        documentation=_documentation_of(child),
                    )
                except exceptions.BrokenModelError as err:
                    raise exceptions.XMILoadError(str(err)) from err
                self.elements[child_id] = child
                children.append((child, child_node))
            stack.extend(reversed(children))

    def _resolve(self, ref: str, origin: ModelNode) -> ModelNode | None:
        assert self.model is not None
        try:
            return self.model.by_id(ref)
        except KeyError:
            LOGGER.debug(
                "Unresolved reference %r from %s", ref, origin._short_repr_()
            )
            return None

    def _refs(
        self, elem: etree._Element, name: str, origin: ModelNode
    ) -> list[ModelNode]:
        try:
            refs = list(_raw_refs(elem, name))
        except ValueError as err:
            raise exceptions.XMILoadError(
                f"Bad '{name}' on {origin._short_repr_()}: {err}"
            ) from err
        found: list[ModelNode] = []
        for ref in refs:
            if (node := self._resolve(ref, origin)) is not None:
                found.append(node)
        return found

    def _read_relations(self, node: ModelNode, elem: etree._Element) -> None:
        assert self.model is not None
        xtype = helpers.xtype_of(elem)
        if xtype in ASSOCIATION_TYPES:
            ends = self._refs(elem, "memberEnd", node)
            types = [self.model.type_of(i) for i in ends]
            if len(types) == 2 and None not in types:
                source, target = t.cast(list[ModelNode], types)
                self.model.relate(
                    RelationKind.ASSOCIATION, source, target, via=node
                )
            else:
                LOGGER.warning(
                    "Cannot determine associated types of %s",
                    node._short_repr_(),
                )

        elif xtype == "Connector":
            roles: list[ModelNode] = []
            for end in elem.iterchildren("end", "{*}end"):
                roles.extend(self._refs(end, "role", node))
            if len(roles) == 2:
                self.model.relate(
                    RelationKind.CONNECTOR, roles[0], roles[1], via=node
                )

        elif xtype in DEPENDENCY_RELATIONS:
            kind = DEPENDENCY_RELATIONS[xtype]
            for client in self._refs(elem, "client", node):
                for supplier in self._refs(elem, "supplier", node):
                    self.model.relate(kind, client, supplier, via=node)

        for child in elem.iterchildren(tag=etree.Element):
            ctype = helpers.xtype_of(child)
            localname = etree.QName(child).localname
            if ctype == "Generalization" or localname == "generalization":
                for general in self._refs(child, "general", node):
                    self.model.relate(
                        RelationKind.GENERALIZATION, node, general
                    )
            elif (
                ctype == "InterfaceRealization"
                or localname == "interfaceRealization"
            ):
                for contract in self._refs(child, "contract", node):
                    self.model.relate(
                        RelationKind.REALIZATION, node, contract
                    )

    def _read_stereotypes(self) -> None:
        assert self.model is not None
        if not _n.is_xmi_namespace(etree.QName(self.root).namespace):
            return

        for elem in self.root.iterchildren(tag=etree.Element):
            tag = etree.QName(elem)
            if _n.is_uml_namespace(tag.namespace) or _n.is_xmi_namespace(
                tag.namespace
            ):
                continue

            bases: list[str] = []
            tagged_values: dict[str, t.Any] = {}
            for key, value in elem.attrib.items():
                qkey = etree.QName(key)
                if qkey.namespace:
                    continue
                if qkey.localname.startswith("base_"):
                    try:
                        bases.extend(helpers.split_references(value))
                    except ValueError as err:
                        raise exceptions.XMILoadError(
                            f"Bad stereotype application {tag.localname}:"
                            f" {err}"
                        ) from err
                else:
                    tagged_values[qkey.localname] = value
            if not bases:
                continue
            for child in elem.iterchildren(tag=etree.Element):
                _add_tagged_value(tagged_values, child)

            stereotype = StereotypeRef(
                tag.localname, defining_profile=elem.prefix
            )
            for base in bases:
                try:
                    node = self.model.by_id(base)
                except KeyError:
                    LOGGER.warning(
                        "Stereotype %s applied to unknown element %r",
                        stereotype.qualified_name,
                        base,
                    )
                    continue
                self.model.apply_stereotype(node, stereotype, tagged_values)


def _name_of(elem: etree._Element) -> str | None:
    if (name := elem.get("name")) is not None:
        return name
    for child in elem.iterchildren("name", "{*}name"):
        return child.text or ""
    return None


def _documentation_of(elem: etree._Element) -> str | None:
    bodies: list[str] = []
    for comment in elem.iterchildren("ownedComment", "{*}ownedComment"):
        body = comment.get("body")
        if body is None:
            for child in comment.iterchildren("body", "{*}body"):
                body = child.text
                break
        if body:
            bodies.append(body)
    if not bodies:
        return None
    text = "\n".join(bodies)
    if text.lstrip().startswith("<"):
        text = helpers.flatten_html_string(text)
    return text


def _raw_refs(elem: etree._Element, name: str) -> cabc.Iterator[str]:
    if value := elem.get(name):
        yield from helpers.split_references(value)
    for child in elem.iterchildren(name, f"{{*}}{name}"):
        ref = helpers.xmi_attr(child, "idref") or child.get("href")
        if ref:
            yield from helpers.split_references(ref)


def _add_tagged_value(
    tagged_values: dict[str, t.Any], child: etree._Element
) -> None:
    key = etree.QName(child).localname
    value: t.Any = helpers.xmi_attr(child, "idref") or child.get("href")
    if value is None:
        value = child.text
    if key not in tagged_values:
        tagged_values[key] = value
    elif isinstance(tagged_values[key], list):
        tagged_values[key].append(value)
    else:
        tagged_values[key] = [tagged_values[key], value]
