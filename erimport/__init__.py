# File: erimport/__init__.py
"""
ERImport — OpenAPI Schema Import & Relationship Inference
===========================================================

Turns the schema definitions of an OpenAPI 3.x or Swagger 2.0 document
(JSON/YAML) into an entity-relationship design model: entities with typed,
validated fields, inferred relations with cardinality and join metadata,
and a list of human-readable warnings.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ OpenApiImporter│────▶│  ModelExporter   │
    │   (cli.py)   │     │  (importer.py) │     │  (exporters.py)  │
    └──────────────┘     └───────┬────────┘     └──────────────────┘
                                 │
         ┌──────────┬────────────┼────────────┬────────────┐
         ▼          ▼            ▼            ▼            ▼
    ┌─────────┐ ┌──────────┐ ┌────────┐ ┌───────────┐ ┌─────────┐
    │document │ │classifier│ │ fields │ │references │ │relations│
    └─────────┘ └──────────┘ └────────┘ └───────────┘ └─────────┘

Usage::

    # As a library
    from erimport import parse_openapi, validate_openapi
    result = parse_openapi(text)
    for relation in result.relations:
        print(relation.type, relation.source_field_name)

    # From the command line
    python -m erimport --schema openapi.yaml --output model.json --verbose

Public API:
    - parse_openapi      — Lenient import entry point
    - validate_openapi   — Strict validation entry point
    - OpenApiImporter    — Reusable importer bound to ImportOptions
    - ImportResult       — Root output model
    - ModelExporter      — File-system writer
"""

from __future__ import annotations

__version__: str = "1.0.0"
__author__: str = "NexaFlow Team"
__license__: str = "MIT"

from erimport.models import (
    CanonicalType,
    Cardinality,
    DocumentFormat,
    EndpointInfo,
    EntityInfo,
    FieldInfo,
    ForeignKeyInfo,
    ImportOptions,
    ImportResult,
    JoinTableInfo,
    Position,
    RelationInfo,
    ValidationMessage,
    ValidationReport,
)
from erimport.document import FormatError, detect_format
from erimport.diagnostics import ValidationResult
from erimport.typemap import map_type
from erimport.importer import OpenApiImporter, load_options_file, parse_openapi
from erimport.validators import validate_document, validate_openapi
from erimport.exporters import ExportRecord, ModelExporter, render_result
from erimport.utils import Timer, to_camel_case, to_pascal_case, to_snake_case

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Entry points
    "parse_openapi",
    "validate_openapi",
    "validate_document",
    "OpenApiImporter",
    "load_options_file",
    # Models
    "CanonicalType",
    "Cardinality",
    "DocumentFormat",
    "EndpointInfo",
    "EntityInfo",
    "FieldInfo",
    "ForeignKeyInfo",
    "ImportOptions",
    "ImportResult",
    "JoinTableInfo",
    "Position",
    "RelationInfo",
    "ValidationMessage",
    "ValidationReport",
    # Document handling
    "FormatError",
    "detect_format",
    "map_type",
    # Diagnostics
    "ValidationResult",
    # Exporters
    "ModelExporter",
    "ExportRecord",
    "render_result",
    # Utilities
    "Timer",
    "to_snake_case",
    "to_pascal_case",
    "to_camel_case",
]
