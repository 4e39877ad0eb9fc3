# File: erimport/importer.py
"""
ERImport - Import Pipeline (Orchestrator)
===========================================

Connects every stage of the import::

    1. Decode text and normalise the schema map (document.py).
    2. Flatten and classify schemas into entity views (classifier.py).
    3. Lay entities out on a grid (layout.py).
    4. Per entity view: build fields (fields.py) and collect reference
       edges (references.py).
    5. Resolve edges into relations (relations.py).
    6. List endpoints (endpoints.py).
    7. Assemble the immutable ``ImportResult``.

Every stage returns its own diagnostics, merged here in pipeline order.
The result is constructed only after all stages finished, so a caller
never sees a partially built model.

Error handling strategy:
    - Undecodable text raises ``FormatError`` before any stage runs.
    - Everything else the document gets wrong becomes a warning.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from erimport.classifier import SchemaView, classify_schemas
from erimport.diagnostics import ValidationResult
from erimport.document import (
    DocumentSource,
    ParsedDocument,
    check_document,
    load_document,
)
from erimport.endpoints import extract_endpoints
from erimport.fields import build_fields
from erimport.layout import grid_positions
from erimport.models import (
    DocumentFormat,
    EndpointInfo,
    EntityInfo,
    FieldInfo,
    ImportOptions,
    ImportResult,
    Position,
)
from erimport.references import ReferenceEdge, extract_references
from erimport.relations import resolve_relations
from erimport.utils import (
    Timer,
    new_id,
    read_file,
    sanitize_name,
    to_pascal_case,
    to_project_name,
    to_snake_case,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.importer")

DEFAULT_PROJECT_NAME: str = "ApiProject"
DEFAULT_VERSION: str = "1.0.0"


# ---------------------------------------------------------------------------
# Options loader
# ---------------------------------------------------------------------------


def load_options_file(path: Path) -> ImportOptions:
    """
    Load ``ImportOptions`` from a JSON or YAML file.

    Dispatches on the file extension; anything that is not ``.json`` is
    read as YAML (a superset of JSON).

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed or holds invalid options.
    """
    if not path.exists():
        raise FileNotFoundError(f"Options file not found: {path}")

    text: str = read_file(path)
    data: Any
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"Invalid options file {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a mapping at top level of {path}, got {type(data).__name__}."
        )

    try:
        return ImportOptions.model_validate(data)
    except Exception as exc:
        raise ValueError(f"Options validation failed: {exc}") from exc


# ---------------------------------------------------------------------------
# OpenApiImporter — orchestrator
# ---------------------------------------------------------------------------


class OpenApiImporter:
    """
    Imports OpenAPI 3.x / Swagger 2.0 documents into an ER design model.

    Usage::

        importer = OpenApiImporter(ImportOptions(include_defaults=False))
        result = importer.import_source(text)
        for entity in result.entities:
            print(entity.name, [f.name for f in entity.fields])

    The importer holds only its options; it is reusable and safe to share.
    """

    def __init__(self, options: Optional[ImportOptions] = None) -> None:
        self._options: ImportOptions = options or ImportOptions()
        logger.debug(
            "OpenApiImporter initialised: descriptions=%s, defaults=%s, "
            "includes=%d, extra_patterns=%d.",
            self._options.include_descriptions,
            self._options.include_defaults,
            len(self._options.include_schemas),
            len(self._options.exclude_patterns),
        )

    @property
    def options(self) -> ImportOptions:
        return self._options

    # -----------------------------------------------------------------
    # Public entry points
    # -----------------------------------------------------------------

    def import_source(
        self,
        source: DocumentSource,
        fmt: Optional[DocumentFormat] = None,
    ) -> ImportResult:
        """
        Decode *source* (text, bytes or mapping) and import it.

        Raises:
            FormatError: If the text is neither valid JSON nor valid YAML.
        """
        with Timer("decode document"):
            doc: ParsedDocument = load_document(source, fmt)
        return self.import_document(doc)

    def import_document(self, doc: ParsedDocument) -> ImportResult:
        """Run the pipeline on an already-decoded document."""
        logger.info(
            "Importing %s document (%s %s): %d schema(s) from %s.",
            doc.format.value,
            doc.version_field or "unknown",
            doc.version or "-",
            doc.schema_count,
            doc.schema_source or "nowhere",
        )

        diagnostics: ValidationResult = ValidationResult()
        diagnostics.merge(check_document(doc))

        with Timer("classify schemas"):
            entity_views, views, classify_diag = classify_schemas(doc.schemas, self._options)
        diagnostics.merge(classify_diag)

        positions: List[Position] = grid_positions(len(entity_views), self._options)

        entities: List[EntityInfo] = []
        entities_by_schema: Dict[str, EntityInfo] = {}
        edges: List[ReferenceEdge] = []

        with Timer("build entities"):
            for view, position in zip(entity_views, positions):
                fields, field_diag = build_fields(view, self._options)
                diagnostics.merge(field_diag)

                view_edges, edge_diag = extract_references(view)
                diagnostics.merge(edge_diag)
                edges.extend(view_edges)

                entity: EntityInfo = self._build_entity(view, position, fields)
                entities.append(entity)
                entities_by_schema[view.name] = entity

        with Timer("resolve relations"):
            relations, relation_diag = resolve_relations(edges, views, entities_by_schema)
        diagnostics.merge(relation_diag)

        endpoints: List[EndpointInfo] = extract_endpoints(doc.paths)

        result: ImportResult = ImportResult(
            entities=entities,
            relations=relations,
            warnings=diagnostics.warning_messages,
            project_name=self._project_name(doc),
            version=self._version(doc),
            description=self._description(doc),
            endpoints=endpoints,
            source_format=doc.format,
        )

        logger.info(
            "Import complete: %d entities, %d fields, %d relations, "
            "%d endpoints, %d warning(s).",
            result.entity_count,
            result.total_fields,
            result.relation_count,
            len(result.endpoints),
            len(result.warnings),
        )
        return result

    # -----------------------------------------------------------------
    # Internal builders
    # -----------------------------------------------------------------

    def _build_entity(
        self,
        view: SchemaView,
        position: Position,
        fields: List[FieldInfo],
    ) -> EntityInfo:
        name: str = to_pascal_case(sanitize_name(view.name)) or "Unknown"
        return EntityInfo(
            id=new_id(),
            name=name,
            table_name=to_snake_case(name),
            description=view.description if self._options.include_descriptions else None,
            position=position,
            fields=fields,
        )

    @staticmethod
    def _project_name(doc: ParsedDocument) -> str:
        title: Any = doc.info.get("title")
        if isinstance(title, str) and title.strip():
            return to_project_name(title)
        return DEFAULT_PROJECT_NAME

    @staticmethod
    def _version(doc: ParsedDocument) -> str:
        version: Any = doc.info.get("version")
        if version is None or str(version).strip() == "":
            return DEFAULT_VERSION
        return str(version)

    def _description(self, doc: ParsedDocument) -> Optional[str]:
        if not self._options.include_descriptions:
            return None
        description: Any = doc.info.get("description")
        return description if isinstance(description, str) and description.strip() else None


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------


def parse_openapi(
    source: DocumentSource,
    *,
    fmt: Optional[DocumentFormat] = None,
    options: Optional[ImportOptions] = None,
) -> ImportResult:
    """
    Import an OpenAPI 3.x / Swagger 2.0 document in one call.

    Args:
        source: JSON or YAML text, UTF-8 bytes, or a decoded mapping.
        fmt: Force the input format instead of detecting it.
        options: Import options (defaults when omitted).

    Returns:
        The immutable ``ImportResult``.

    Raises:
        FormatError: If the text is neither valid JSON nor valid YAML.
    """
    return OpenApiImporter(options).import_source(source, fmt)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DEFAULT_PROJECT_NAME",
    "DEFAULT_VERSION",
    "load_options_file",
    "OpenApiImporter",
    "parse_openapi",
]

logger.debug("erimport.importer loaded — %d public symbols.", len(__all__))
