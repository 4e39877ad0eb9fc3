# File: erimport/document.py
"""
ERImport - Document Loading
=============================
Format detection and decoding of OpenAPI 3.x / Swagger 2.0 documents.

The two decoders (``json.loads`` and PyYAML's ``safe_load``) both build
insertion-ordered ``dict`` objects, so the schema map handed to the rest of
the pipeline iterates in source order.  Every ordering guarantee downstream
(entity order, relation order, layout) rests on that.

Undecodable input raises ``FormatError``; everything else about a document
is reported as diagnostics, never raised.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from erimport.diagnostics import (
    MISSING_VERSION,
    NO_SCHEMAS,
    UNSUPPORTED_VERSION,
    ValidationResult,
)
from erimport.models import DocumentFormat

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.document")

DocumentSource = Union[str, bytes, Mapping]

_YAML_PREFIXES: Tuple[str, ...] = ("---", "#", "openapi:", "swagger:")
_SUPPORTED_MAJOR: Dict[str, str] = {"openapi": "3.", "swagger": "2."}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FormatError(ValueError):
    """
    Raised when a document cannot be decoded as JSON or YAML.

    The message is caller-displayable and starts with ``Invalid JSON`` or
    ``Invalid YAML`` depending on the attempted format.
    """

    def __init__(self, message: str, fmt: DocumentFormat) -> None:
        super().__init__(message)
        self.format: DocumentFormat = fmt


# ---------------------------------------------------------------------------
# Parsed document
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsedDocument:
    """A decoded document with its version and schema map normalised."""

    raw: Dict[str, Any]
    format: DocumentFormat
    version_field: Optional[str] = None
    version: Optional[str] = None
    info: Dict[str, Any] = field(default_factory=dict)
    schemas: Dict[str, Any] = field(default_factory=dict)
    schema_source: Optional[str] = None
    paths: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_swagger(self) -> bool:
        return self.version_field == "swagger"

    @property
    def schema_count(self) -> int:
        return len(self.schemas)


# ---------------------------------------------------------------------------
# Format detection & decoding
# ---------------------------------------------------------------------------


def _strip_text(text: str) -> str:
    return text.lstrip("\ufeff").lstrip()


def detect_format(text: str) -> DocumentFormat:
    """
    Classify raw text as JSON or YAML.

    Total function: anything that is not recognisably JSON is YAML.
    """
    stripped: str = _strip_text(text)
    if stripped.startswith(("{", "[")):
        return DocumentFormat.JSON
    if stripped.startswith(_YAML_PREFIXES):
        return DocumentFormat.YAML
    try:
        json.loads(stripped)
    except ValueError:
        return DocumentFormat.YAML
    return DocumentFormat.JSON


def _coerce_text(source: Union[str, bytes], fmt: Optional[DocumentFormat]) -> str:
    if isinstance(source, bytes):
        try:
            return source.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            attempted: DocumentFormat = fmt or DocumentFormat.JSON
            raise FormatError(
                f"Invalid {attempted.name}: input is not valid UTF-8 ({exc})",
                attempted,
            ) from exc
    return source


def decode_document(
    source: DocumentSource,
    fmt: Optional[DocumentFormat] = None,
) -> Tuple[Dict[str, Any], DocumentFormat]:
    """
    Decode *source* into a generic mapping.

    Args:
        source: Document text, UTF-8 bytes, or an already-decoded mapping.
        fmt: Force a format instead of detecting it.

    Returns:
        Tuple of (document mapping, format used).

    Raises:
        FormatError: If the text is empty, undecodable, or not a mapping.
    """
    if fmt is not None:
        fmt = DocumentFormat(fmt)

    if isinstance(source, Mapping):
        return dict(source), fmt or DocumentFormat.JSON

    text: str = _coerce_text(source, fmt)
    used: DocumentFormat = fmt or detect_format(text)
    label: str = used.name

    if not _strip_text(text):
        raise FormatError(f"Invalid {label}: document is empty", used)

    data: Any
    if used == DocumentFormat.JSON:
        try:
            data = json.loads(_strip_text(text))
        except json.JSONDecodeError as exc:
            raise FormatError(f"Invalid JSON: {exc}", used) from exc
    else:
        try:
            data = yaml.safe_load(text.lstrip("\ufeff"))
        except yaml.YAMLError as exc:
            raise FormatError(f"Invalid YAML: {exc}", used) from exc

    if not isinstance(data, dict):
        raise FormatError(
            f"Invalid {label}: expected a mapping at top level, "
            f"got {type(data).__name__}",
            used,
        )

    logger.debug("Decoded %s document with %d top-level keys.", label, len(data))
    return data, used


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def _version_of(raw: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    for key in ("openapi", "swagger"):
        if key in raw and raw[key] is not None:
            return key, str(raw[key])
    return None, None


def extract_schemas(raw: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Return the ordered schema map and where it was found.

    OpenAPI 3 ``components.schemas`` wins over Swagger 2 ``definitions``.
    """
    components: Any = raw.get("components")
    if isinstance(components, Mapping):
        schemas: Any = components.get("schemas")
        if isinstance(schemas, Mapping):
            return dict(schemas), "components.schemas"
    definitions: Any = raw.get("definitions")
    if isinstance(definitions, Mapping):
        return dict(definitions), "definitions"
    return {}, None


def parse_document(raw: Dict[str, Any], fmt: DocumentFormat) -> ParsedDocument:
    """Normalise a decoded mapping into a ``ParsedDocument``."""
    version_field, version = _version_of(raw)
    schemas, schema_source = extract_schemas(raw)
    info: Any = raw.get("info")
    paths: Any = raw.get("paths")
    return ParsedDocument(
        raw=raw,
        format=fmt,
        version_field=version_field,
        version=version,
        info=dict(info) if isinstance(info, Mapping) else {},
        schemas=schemas,
        schema_source=schema_source,
        paths=dict(paths) if isinstance(paths, Mapping) else {},
    )


def load_document(
    source: DocumentSource,
    fmt: Optional[DocumentFormat] = None,
) -> ParsedDocument:
    """Decode and normalise *source* in one step."""
    raw, used = decode_document(source, fmt)
    return parse_document(raw, used)


def is_supported_version(version_field: Optional[str], version: Optional[str]) -> bool:
    """True for ``openapi: 3.x`` and ``swagger: 2.x``."""
    if version_field is None or version is None:
        return False
    return version.startswith(_SUPPORTED_MAJOR[version_field])


def check_document(doc: ParsedDocument) -> ValidationResult:
    """
    Lenient document checks for the import path.

    Emits warnings for a missing or unrecognised version string and for a
    document without any schema map.
    """
    result: ValidationResult = ValidationResult()

    if doc.version_field is None:
        result.add_warning(
            MISSING_VERSION,
            "Document declares neither an 'openapi' nor a 'swagger' version",
        )
    elif not is_supported_version(doc.version_field, doc.version):
        label: str = "OpenAPI" if doc.version_field == "openapi" else "Swagger"
        result.add_warning(
            UNSUPPORTED_VERSION,
            f'{label} version "{doc.version}" may not be fully supported',
            {"version": doc.version},
        )

    if doc.schema_source is None:
        result.add_warning(
            NO_SCHEMAS,
            "No schema definitions found (expected components.schemas or definitions)",
        )
    elif not doc.schemas:
        result.add_warning(
            NO_SCHEMAS,
            f"Schema map '{doc.schema_source}' is empty",
        )

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DocumentSource",
    "FormatError",
    "ParsedDocument",
    "detect_format",
    "decode_document",
    "extract_schemas",
    "parse_document",
    "load_document",
    "is_supported_version",
    "check_document",
]

logger.debug("erimport.document loaded — %d public symbols.", len(__all__))
