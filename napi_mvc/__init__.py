# File: napi_mvc/__init__.py
"""
napi-mvc — Database-driven Express scaffolding
===============================================

Inspects a table and generates the route, model and controller files of
an Express + mysql2 REST resource, then wires the route into ``app.js``.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ RouteGenerator │────▶│ TemplateRenderer │
    │   (cli.py)   │     │ (generator.py) │     │  (templates.py)  │
    └──────┬───────┘     └───────┬────────┘     └──────────────────┘
           │                     │
           ▼              ┌──────┴───────┐
    ┌────────────┐        ▼              ▼
    │ Registrar  │  ┌───────────┐  ┌───────────┐
    │(registrar) │  │ inspector │  │ exporters │
    └────────────┘  └───────────┘  └───────────┘

Usage::

    # As a library
    from napi_mvc import ConnectionSettings, OutputPaths, SchemaInspector
    from napi_mvc import RouteGenerator, Registrar

    generator = RouteGenerator(
        SchemaInspector(ConnectionSettings.resolve(name="shop")),
        OutputPaths.resolve(),
    )
    generator.generate_route("product")
    Registrar(OutputPaths.resolve().app_path).register_route("product")

    # From the command line
    napi-mvc generate route product
    napi-mvc register route product
"""

from __future__ import annotations

from typing import List

__version__: str = "2.0.0"
__license__: str = "MIT"

from napi_mvc.config import ConnectionSettings, OutputPaths
from napi_mvc.errors import (
    ArtifactConflictError,
    NapiMvcError,
    TableNotFoundError,
    WiringFileNotFoundError,
)
from napi_mvc.exporters import ArtifactWriter, FileRecord
from napi_mvc.generator import GenerationReport, RouteGenerator
from napi_mvc.inspector import SchemaFileInspector, SchemaInspector
from napi_mvc.models import (
    ColumnMetadata,
    DocField,
    DocType,
    ForeignKeyMetadata,
    GeneratedArtifact,
    ResourceDescriptor,
    TableSchema,
)
from napi_mvc.registrar import Registrar, RegistrationResult
from napi_mvc.templates import TemplateRenderer

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: List[str] = [
    # Version info
    "__version__",
    "__license__",
    # Orchestration
    "RouteGenerator",
    "GenerationReport",
    "Registrar",
    "RegistrationResult",
    # Components
    "SchemaInspector",
    "SchemaFileInspector",
    "TemplateRenderer",
    "ArtifactWriter",
    "FileRecord",
    # Configuration
    "ConnectionSettings",
    "OutputPaths",
    # Models
    "ColumnMetadata",
    "ForeignKeyMetadata",
    "TableSchema",
    "ResourceDescriptor",
    "DocField",
    "DocType",
    "GeneratedArtifact",
    # Errors
    "NapiMvcError",
    "TableNotFoundError",
    "ArtifactConflictError",
    "WiringFileNotFoundError",
]
