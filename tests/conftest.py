# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""Global fixtures for pytest."""

import pathlib
import types

import pytest

import modelrules
from modelrules import config, helpers, validation
from modelrules.model import Kind, Model, RelationKind

TEST_DATA = pathlib.Path(__file__).parent / "data"


class Models:
    iml = TEST_DATA.joinpath("models", "iml.xmi")


@pytest.fixture
def model() -> Model:
    """Build a small model with an IML package.

    The model contains:

    - Package ``IML`` (``iml``)
      - Interface ``Foo`` (``foo``) without any stereotypes
      - Interface ``Braking`` (``braking``), a Conceptual Interface
        which owns Operation ``brake`` (``brake``)
      - Port ``P`` (``p``), a Conceptual Port without type
      - Port ``Q`` (``q``), a Conceptual Port typed by ``Braking``
    - Package ``Logical`` (``logical``)
      - Class ``Legacy`` (``legacy``), associated with ``Braking``
    """
    with helpers.deterministic_ids():
        model = Model("Example")
        iml = model.create(Kind.PACKAGE, "IML", id="iml")
        model.create(Kind.INTERFACE, "Foo", owner=iml, id="foo")
        braking = model.create(
            Kind.INTERFACE,
            "Braking",
            owner=iml,
            id="braking",
            stereotypes=["Conceptual Interface"],
            documentation="Commands the brakes.",
        )
        model.create(Kind.OPERATION, "brake", owner=braking, id="brake")
        model.create(
            Kind.PORT,
            "P",
            owner=iml,
            id="p",
            stereotypes=["Conceptual Port"],
        )
        model.create(
            Kind.PORT,
            "Q",
            owner=iml,
            id="q",
            stereotypes=["Conceptual Port"],
            type=braking,
        )
        logical = model.create(Kind.PACKAGE, "Logical", id="logical")
        legacy = model.create(Kind.CLASS, "Legacy", owner=logical, id="legacy")
        model.relate(RelationKind.ASSOCIATION, braking, legacy)
    return model


@pytest.fixture
def xmi_model() -> Model:
    """Load the IML test model from XMI."""
    return modelrules.load_xmi(Models.iml)


@pytest.fixture
def fake_catalogue(monkeypatch: pytest.MonkeyPatch) -> validation.RuleSets:
    """Replace the global catalogue of rule sets with an empty one."""
    catalogue = validation.RuleSets()
    monkeypatch.setattr(validation._validate, "_RULE_SETS", catalogue)
    return catalogue


@pytest.fixture(autouse=True)
def user_config_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path
) -> pathlib.Path:
    """Keep the user's own configuration out of the tests."""
    path = tmp_path / "user-config"
    path.mkdir()
    monkeypatch.setattr(
        modelrules, "dirs", types.SimpleNamespace(user_config_path=path)
    )
    monkeypatch.delenv(config.CONFIG_ENV, raising=False)
    return path
