# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Miscellaneous utility functions used throughout the modules."""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import logging
import os
import random
import re
import typing as t
import uuid

import lxml.html
from lxml import etree

import modelrules._namespaces as _n

LOGGER = logging.getLogger(__name__)

LINEBREAK_AFTER = frozenset({"br", "p", "ul", "li"})
TABS_BEFORE = frozenset({"li"})
RE_VALID_ID = re.compile(r"[A-Za-z0-9_.-]+")
RE_REFERENCE = re.compile(r"^(?:[^#\s]*#)?(?P<id>[A-Za-z0-9_.-]+)$")

_ID_GENERATOR = random.Random(os.getenv("MODELRULES_ID_SEED") or None)


def flatten_html_string(text: str) -> str:
    """Convert an HTML-string to plain text."""
    frags = lxml.html.fragments_fromstring(text)
    if not frags:
        return ""

    text_container: list[str] = []
    if isinstance(frags[0], str):
        text_container.append(frags[0])
        frags.pop(0)

    for frag in frags:
        assert isinstance(frag, lxml.html.HtmlElement)
        text_container.extend(_flatten_subtree(frag))

    return "".join(text_container).rstrip()


def _flatten_subtree(element: etree._Element) -> cabc.Iterator[str]:
    def remove_whitespace(text: str):
        return re.sub("[\n\t]", "", text).lstrip()

    if element.tag in TABS_BEFORE:
        yield "  • "

    if element.text:
        yield remove_whitespace(element.text)

    for child in element:
        yield from _flatten_subtree(child)

    if element.tag in LINEBREAK_AFTER:
        yield "\n"

    if element.tail:
        yield remove_whitespace(element.tail)


def is_id_string(string: t.Any) -> bool:
    """Validate that ``string`` is usable as an element ID."""
    return isinstance(string, str) and bool(RE_VALID_ID.fullmatch(string))


def generate_id() -> str:
    """Generate a new, random ID for a model node."""
    return str(uuid.UUID(bytes=_ID_GENERATOR.randbytes(16), version=4))


@contextlib.contextmanager
def deterministic_ids(*, seed: t.Any = None) -> cabc.Iterator[None]:
    """Enter a context during which generated IDs are deterministic.

    This function is primarily intended for testing.

    >>> with deterministic_ids():
    ...     first = generate_id()
    >>> with deterministic_ids():
    ...     second = generate_id()
    >>> first == second
    True
    """
    global _ID_GENERATOR

    if seed is None:
        seed = 0
    orig_generator = _ID_GENERATOR
    _ID_GENERATOR = random.Random(seed)
    try:
        yield
    finally:
        _ID_GENERATOR = orig_generator


def split_references(refs: str) -> cabc.Iterator[str]:
    """Split a space separated list of references into plain IDs.

    A reference is either a bare ID, or a link into another document
    of the form ``file.xmi#ID``. Only the ID part is yielded.

    Raises
    ------
    ValueError
        If one of the references is malformed.
    """
    for part in refs.split():
        match = RE_REFERENCE.fullmatch(part)
        if match is None:
            raise ValueError(f"Malformed reference: {part!r} in {refs!r}")
        yield match.group("id")


def xmi_attr(element: etree._Element, name: str) -> str | None:
    """Get an attribute in any of the known XMI namespaces.

    Attributes without namespace are accepted as well, as some tools
    write a plain ``id`` or ``type`` instead of ``xmi:id``.
    """
    for key, value in element.attrib.items():
        qname = etree.QName(key)
        if qname.localname == name and _n.is_xmi_namespace(qname.namespace):
            return value
    return None


def xtype_of(element: etree._Element) -> str | None:
    """Return the type name of an element, without namespace prefix.

    The ``xmi:type`` attribute is used if present, then ``xsi:type``.
    Elements that have neither are typed by their tag, if that is in a
    UML namespace.
    """
    xtype = xmi_attr(element, "type")
    if not xtype:
        xtype = element.get(f"{{{_n.NAMESPACES['xsi']}}}type")
    if xtype:
        return xtype.rsplit(":", 1)[-1]

    if not isinstance(element.tag, str):
        return None
    tag = etree.QName(element)
    if _n.is_uml_namespace(tag.namespace):
        return tag.localname
    return None
