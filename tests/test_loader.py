# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import io
import pathlib

import pytest

import modelrules
from modelrules import exceptions, loader
from modelrules.model import Kind, Model, RelationKind, StereotypeRef

from .conftest import Models

MINIMAL_XMI = b"""\
<xmi:XMI xmlns:xmi="http://www.omg.org/spec/XMI/20131001"
    xmlns:uml="http://www.omg.org/spec/UML/20131001">
  <uml:Model xmi:id="_m" name="Minimal">
    <packagedElement xmi:type="uml:Class" xmi:id="_c" name="C"/>
  </uml:Model>
</xmi:XMI>
"""


def test_loaded_model_has_the_ownership_tree(xmi_model: Model):
    foo = xmi_model.by_id("_foo")

    assert xmi_model.name == "Example"
    assert xmi_model.root.id == "_model"
    assert foo.kind == Kind.INTERFACE
    assert foo.name == "Foo"
    assert foo.owner is xmi_model.by_id("_iml")
    assert foo.qualified_name == "Example::IML::Foo"


def test_element_kinds_are_derived_from_the_metaclass(xmi_model: Model):
    expected = {
        "_iml": Kind.PACKAGE,
        "_ctrl": Kind.COMPONENT,
        "_p": Kind.PORT,
        "_state": Kind.PROPERTY,
        "_end_ctrl": Kind.ASSOCIATION_END,
        "_assoc": Kind.ASSOCIATION,
        "_brake": Kind.OPERATION,
        "_brake_cmd": Kind.PARAMETER,
        "_cmd": Kind.DATA_TYPE,
        "_use": Kind.DEPENDENCY,
        "_act": Kind.ACTIVITY,
        "_call": Kind.ACTION,
        "_call_arg": Kind.PIN,
    }

    actual = {k: xmi_model.by_id(k).kind for k in expected}

    assert actual == expected


def test_comments_and_realizations_do_not_become_nodes(xmi_model: Model):
    for id in ("_model_doc", "_braking_doc", "_brake_if_real"):
        with pytest.raises(KeyError):
            xmi_model.by_id(id)


def test_documentation_is_read_from_comments(xmi_model: Model):
    assert xmi_model.root.documentation == "Example model for the IML rules"
    assert (
        xmi_model.by_id("_braking").documentation == "Commands the brakes."
    )
    assert xmi_model.by_id("_foo").documentation is None


def test_typed_by_is_read_from_attributes_and_child_elements(
    xmi_model: Model,
):
    braking = xmi_model.by_id("_braking")
    cmd = xmi_model.by_id("_cmd")

    assert xmi_model.type_of(xmi_model.by_id("_q")) is braking
    assert xmi_model.type_of(xmi_model.by_id("_brake_cmd")) is cmd
    assert xmi_model.type_of(xmi_model.by_id("_call_arg")) is cmd
    assert xmi_model.type_of(xmi_model.by_id("_p")) is None


def test_associations_relate_the_types_of_their_ends(xmi_model: Model):
    ctrl = xmi_model.by_id("_ctrl")
    legacy = xmi_model.by_id("_legacy")

    (relation,) = xmi_model.relations_of(ctrl, RelationKind.ASSOCIATION)

    assert relation.source is ctrl
    assert relation.target is legacy
    assert relation.via is xmi_model.by_id("_assoc")
    assert xmi_model.typed_relations_of(legacy, "ASSOCIATION") == [
        (ctrl, "end")
    ]


def test_dependencies_and_realizations_are_read(xmi_model: Model):
    legacy = xmi_model.by_id("_legacy")
    cmd = xmi_model.by_id("_cmd")
    brake_if = xmi_model.by_id("_brake_if")
    braking = xmi_model.by_id("_braking")

    assert xmi_model.typed_relations_of(legacy, RelationKind.USAGE) == [
        (cmd, "target")
    ]
    assert xmi_model.typed_relations_of(
        legacy, RelationKind.GENERALIZATION
    ) == [(cmd, "target")]
    assert xmi_model.typed_relations_of(
        brake_if, RelationKind.REALIZATION
    ) == [(braking, "target")]


def test_stereotype_applications_are_read(xmi_model: Model):
    braking = xmi_model.by_id("_braking")

    assert braking.stereotypes == {
        StereotypeRef("ConceptualInterface", defining_profile="IML")
    }
    assert xmi_model.tagged_value(braking, "level") == "conceptual"


def test_child_elements_of_stereotype_applications_are_tagged_values(
    xmi_model: Model,
):
    brake_if = xmi_model.by_id("_brake_if")

    assert xmi_model.tagged_value(brake_if, "owner") == "Brake team"
    assert xmi_model.tagged_value(brake_if, "reviewer") == ["Alice", "Bob"]


def test_load_xmi_accepts_file_objects():
    model = modelrules.load_xmi(io.BytesIO(MINIMAL_XMI))

    assert model.name == "Minimal"
    assert [i.name for i in model.nodes_of_kind(Kind.CLASS)] == ["C"]


def test_load_xmi_accepts_a_bare_uml_model():
    xml = b"""\
<uml:Model xmlns:xmi="http://www.omg.org/spec/XMI/20131001"
    xmlns:uml="http://www.omg.org/spec/UML/20131001"
    xmi:id="_m" name="Bare">
  <packagedElement xmi:type="uml:Package" xmi:id="_p" name="P"/>
</uml:Model>
"""

    model = modelrules.load_xmi(io.BytesIO(xml))

    assert model.name == "Bare"
    assert model.by_id("_p").kind == Kind.PACKAGE


def test_load_xmi_passes_on_max_depth():
    model = modelrules.load_xmi(io.BytesIO(MINIMAL_XMI), max_depth=7)

    assert model.max_depth == 7


DUPLICATE_ID_XMI = b"""\
<uml:Model xmlns:xmi="http://www.omg.org/spec/XMI/20131001"
    xmlns:uml="http://www.omg.org/spec/UML/20131001"
    xmi:id="_m" name="Duplicates">
  <packagedElement xmi:type="uml:Interface" xmi:id="x" name="A"/>
  <packagedElement xmi:type="uml:Interface" xmi:id="x" name="B"/>
</uml:Model>
"""
INVALID_ID_XMI = b"""\
<uml:Model xmlns:xmi="http://www.omg.org/spec/XMI/20131001"
    xmlns:uml="http://www.omg.org/spec/UML/20131001"
    xmi:id="_m" name="Invalid">
  <packagedElement xmi:type="uml:Interface" xmi:id="a b" name="A"/>
</uml:Model>
"""


@pytest.mark.parametrize(
    ("content", "message"),
    [
        pytest.param(b"<xmi:XMI", "Invalid XML", id="malformed"),
        pytest.param(
            b'<xmi:XMI xmlns:xmi="http://www.omg.org/spec/XMI/20131001"/>',
            "No uml:Model",
            id="no-model",
        ),
        pytest.param(
            DUPLICATE_ID_XMI, "Duplicate node ID 'x'", id="duplicate-id"
        ),
        pytest.param(
            INVALID_ID_XMI, "Invalid xmi:id 'a b' on line 4", id="bad-id"
        ),
    ],
)
def test_invalid_files_raise_XMILoadError(content: bytes, message: str):
    with pytest.raises(exceptions.XMILoadError, match=message):
        modelrules.load_xmi(io.BytesIO(content))


def test_malformed_references_raise_XMILoadError():
    xml = MINIMAL_XMI.replace(
        b'name="C"/>', b'name="C" type="not a#valid#ref"/>'
    )

    with pytest.raises(exceptions.XMILoadError, match="Bad 'type'"):
        modelrules.load_xmi(io.BytesIO(xml))


def test_load_chooses_the_loader_by_suffix():
    model = loader.load(Models.iml)

    assert model.name == "Example"


def test_load_rejects_unknown_suffixes(tmp_path: pathlib.Path):
    path = tmp_path / "model.txt"
    path.write_bytes(MINIMAL_XMI)

    with pytest.raises(exceptions.XMILoadError, match="Unsupported"):
        loader.load(path)


def test_load_rejects_missing_files(tmp_path: pathlib.Path):
    with pytest.raises(exceptions.XMILoadError, match="No such file"):
        loader.load(tmp_path / "missing.xmi")
