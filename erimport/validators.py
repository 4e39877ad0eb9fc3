# File: erimport/validators.py
"""
ERImport - Strict Document Validation
=======================================
Pre-flight validation for import UIs and CI checks.  Unlike the import
path, which degrades gracefully and reports warnings, the strict validator
turns structural problems into errors and never builds a model.

Each ``validate_*`` function inspects one section of a decoded document and
returns its own ``ValidationResult``; ``validate_document`` merges them and
``validate_openapi`` wraps everything (decoding included) into a
``ValidationReport``.  None of these functions raise.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple

from erimport.classifier import classify_schemas
from erimport.diagnostics import (
    EMPTY_OBJECT_SCHEMA,
    INFO_INCOMPLETE,
    INVALID_FORMAT,
    INVALID_PATH,
    INVALID_SCHEMA,
    INVALID_VERSION,
    MISSING_INFO,
    MISSING_VERSION,
    NO_ENTITIES,
    NO_PATHS,
    NO_SCHEMAS,
    UNSUPPORTED_VERSION,
    UNTYPED_SCHEMA,
    ValidationError,
    ValidationResult,
)
from erimport.document import (
    DocumentSource,
    FormatError,
    decode_document,
    extract_schemas,
    is_supported_version,
)
from erimport.models import (
    DocumentFormat,
    ImportOptions,
    ValidationMessage,
    ValidationReport,
)
from erimport.typemap import primary_type

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.validators")

_COMPOSITION_KEYWORDS: Tuple[str, ...] = ("$ref", "allOf", "oneOf", "anyOf")


# ---------------------------------------------------------------------------
# Section validators
# ---------------------------------------------------------------------------


def validate_version(raw: Dict[str, Any]) -> ValidationResult:
    """The ``openapi`` (3.x) or ``swagger`` (2.x) version field."""
    result: ValidationResult = ValidationResult()

    version_field: Optional[str] = None
    for key in ("openapi", "swagger"):
        if key in raw:
            version_field = key
            break

    if version_field is None:
        result.add_error(
            MISSING_VERSION,
            "Missing version field: expected 'openapi' (3.x) or 'swagger' (2.0)",
            {"path": "openapi"},
        )
        return result

    value: Any = raw[version_field]
    if value is None or isinstance(value, (bool, Mapping, list)):
        result.add_error(
            INVALID_VERSION,
            f"'{version_field}' must be a version string, got {type(value).__name__}",
            {"path": version_field},
        )
        return result

    version: str = str(value)
    if not is_supported_version(version_field, version):
        expected: str = "3.x" if version_field == "openapi" else "2.x"
        result.add_error(
            UNSUPPORTED_VERSION,
            f"Unsupported {version_field} version \"{version}\": expected {expected}",
            {"path": version_field, "version": version},
        )
    return result


def validate_info(raw: Dict[str, Any]) -> ValidationResult:
    """The ``info`` section and its recommended fields."""
    result: ValidationResult = ValidationResult()

    if "info" not in raw:
        result.add_error(MISSING_INFO, "Missing required 'info' section", {"path": "info"})
        return result

    info: Any = raw["info"]
    if not isinstance(info, Mapping):
        result.add_error(
            MISSING_INFO,
            f"'info' must be an object, got {type(info).__name__}",
            {"path": "info"},
        )
        return result

    for key in ("title", "version", "description"):
        if not info.get(key):
            result.add_warning(
                INFO_INCOMPLETE,
                f"'info.{key}' is missing",
                {"path": f"info.{key}"},
            )
    return result


def validate_paths(raw: Dict[str, Any]) -> ValidationResult:
    """The ``paths`` section: keys start with '/', items are objects."""
    result: ValidationResult = ValidationResult()
    paths: Any = raw.get("paths")

    if paths is None or (isinstance(paths, Mapping) and not paths):
        result.add_warning(NO_PATHS, "Document declares no paths", {"path": "paths"})
        return result

    if not isinstance(paths, Mapping):
        result.add_error(
            INVALID_PATH,
            f"'paths' must be an object, got {type(paths).__name__}",
            {"path": "paths"},
        )
        return result

    for path, item in paths.items():
        if not isinstance(path, str) or not path.startswith("/"):
            result.add_error(
                INVALID_PATH,
                f"Path '{path}' must start with '/'",
                {"path": f"paths.{path}"},
            )
        if not isinstance(item, Mapping):
            result.add_error(
                INVALID_PATH,
                f"Path item '{path}' must be an object",
                {"path": f"paths.{path}"},
            )
    return result


def _schema_map_location(raw: Dict[str, Any]) -> Tuple[Optional[str], Any]:
    components: Any = raw.get("components")
    if isinstance(components, Mapping) and "schemas" in components:
        return "components.schemas", components["schemas"]
    if "definitions" in raw:
        return "definitions", raw["definitions"]
    return None, None


def validate_schema(name: str, schema: Any, location: str) -> ValidationResult:
    """One named schema."""
    result: ValidationResult = ValidationResult()
    path: str = f"{location}.{name}"
    ctx: Dict[str, Any] = {"path": path, "schema": name}

    if not isinstance(schema, Mapping):
        result.add_error(INVALID_SCHEMA, f"Schema '{name}' must be an object", ctx)
        return result

    declared: Optional[str] = primary_type(schema.get("type"))
    has_composition: bool = any(k in schema for k in _COMPOSITION_KEYWORDS)

    if declared is None and not has_composition and "properties" not in schema:
        result.add_warning(
            UNTYPED_SCHEMA,
            f"Schema '{name}' has no type, reference or composition",
            ctx,
        )
    if declared == "object" and not schema.get("properties") and not has_composition:
        result.add_warning(
            EMPTY_OBJECT_SCHEMA,
            f"Object schema '{name}' declares no properties",
            ctx,
        )
    if declared == "array" and "items" not in schema:
        result.add_error(
            INVALID_SCHEMA,
            f"Array schema '{name}' is missing 'items'",
            ctx,
        )
    return result


def validate_schema_map(raw: Dict[str, Any]) -> ValidationResult:
    """The schema map must exist, be non-empty and hold object schemas."""
    result: ValidationResult = ValidationResult()
    location, schemas = _schema_map_location(raw)

    if location is None:
        result.add_error(
            NO_SCHEMAS,
            "No schema definitions found (expected components.schemas or definitions)",
            {"path": "components.schemas"},
        )
        return result

    if not isinstance(schemas, Mapping):
        result.add_error(
            NO_SCHEMAS,
            f"'{location}' must be an object, got {type(schemas).__name__}",
            {"path": location},
        )
        return result

    if not schemas:
        result.add_error(NO_SCHEMAS, f"Schema map '{location}' is empty", {"path": location})
        return result

    for name, schema in schemas.items():
        result.merge(validate_schema(str(name), schema, location))
    return result


def validate_entities(
    raw: Dict[str, Any],
    options: Optional[ImportOptions] = None,
) -> ValidationResult:
    """At least one schema must survive entity classification."""
    result: ValidationResult = ValidationResult()
    schemas, location = extract_schemas(raw)
    if not schemas:
        return result

    entities, _views, _diagnostics = classify_schemas(schemas, options)
    if not entities:
        result.add_error(
            NO_ENTITIES,
            "No entity schemas found after filtering",
            {"path": location, "schemas": len(schemas)},
        )
    return result


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def validate_document(
    raw: Dict[str, Any],
    options: Optional[ImportOptions] = None,
) -> ValidationResult:
    """
    **Master validation entry point** for an already-decoded document.

    Runs every section validator and merges the results in section order.
    """
    result: ValidationResult = ValidationResult()

    validators: List[Callable[[Dict[str, Any]], ValidationResult]] = [
        validate_version,
        validate_info,
        validate_paths,
        validate_schema_map,
    ]
    for validator_fn in validators:
        logger.debug("Running validator: %s", validator_fn.__name__)
        result.merge(validator_fn(raw))

    result.merge(validate_entities(raw, options))

    if result.has_errors:
        logger.info(
            "Validation FAILED with %d error(s). %s",
            result.error_count,
            result.summary(),
        )
    else:
        logger.info("Validation PASSED. %s", result.summary())
    return result


def _to_message(item: ValidationError) -> ValidationMessage:
    path: Any = item.context.get("path")
    return ValidationMessage(
        message=item.message,
        code=item.code,
        path=str(path) if path is not None else None,
    )


def build_report(result: ValidationResult) -> ValidationReport:
    """Convert an accumulator into the public ``ValidationReport``."""
    return ValidationReport(
        valid=result.is_valid,
        errors=[_to_message(e) for e in result.errors],
        warnings=[_to_message(w) for w in result.warnings],
    )


def validate_openapi(
    source: DocumentSource,
    fmt: Optional[DocumentFormat] = None,
    options: Optional[ImportOptions] = None,
) -> ValidationReport:
    """
    Strictly validate an OpenAPI / Swagger document without importing it.

    Undecodable input is reported as an ``INVALID_FORMAT`` error rather
    than raised.
    """
    try:
        raw, _used = decode_document(source, fmt)
    except FormatError as exc:
        result: ValidationResult = ValidationResult()
        result.add_error(INVALID_FORMAT, str(exc), {"format": exc.format.value})
        logger.info("Validation FAILED: %s", exc)
        return build_report(result)

    return build_report(validate_document(raw, options))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "validate_version",
    "validate_info",
    "validate_paths",
    "validate_schema",
    "validate_schema_map",
    "validate_entities",
    "validate_document",
    "build_report",
    "validate_openapi",
]

logger.debug("erimport.validators loaded — %d public symbols.", len(__all__))
