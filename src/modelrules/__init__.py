# SPDX-FileCopyrightText: Copyright DB InfraGO AG
# SPDX-License-Identifier: Apache-2.0
"""The modelrules package."""

import platformdirs

dirs = platformdirs.PlatformDirs("modelrules")
del platformdirs

from importlib import metadata

try:
    __version__ = metadata.version("modelrules")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0+unknown"
del metadata

from ._namespaces import *
from .exceptions import *
from .loader import load as load
from .loader import load_xmi as load_xmi
from .model import Kind as Kind
from .model import Model as Model
from .model import ModelNode as ModelNode
from .model import RelationKind as RelationKind
from .model import StereotypeRef as StereotypeRef
