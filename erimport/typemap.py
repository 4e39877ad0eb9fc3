# File: erimport/typemap.py
"""
ERImport - Type Mapping
=========================
Pure lookup table from an OpenAPI ``(type, format)`` pair to the canonical
field type.  Unknown combinations fall back to ``String``; there is no
error path.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from erimport.models import CanonicalType

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.typemap")

# ---------------------------------------------------------------------------
# Lookup table, keyed "type:format" ("type:" when there is no format)
# ---------------------------------------------------------------------------

TYPE_TABLE: Dict[str, CanonicalType] = {
    "string:": CanonicalType.STRING,
    "string:date": CanonicalType.LOCAL_DATE,
    "string:date-time": CanonicalType.LOCAL_DATE_TIME,
    "string:time": CanonicalType.LOCAL_TIME,
    "string:uuid": CanonicalType.UUID,
    "string:byte": CanonicalType.BYTE_ARRAY,
    "string:binary": CanonicalType.BYTE_ARRAY,
    "string:email": CanonicalType.STRING,
    "string:password": CanonicalType.STRING,
    "string:uri": CanonicalType.STRING,
    "string:hostname": CanonicalType.STRING,
    "string:ipv4": CanonicalType.STRING,
    "string:ipv6": CanonicalType.STRING,
    "integer:": CanonicalType.INTEGER,
    "integer:int32": CanonicalType.INTEGER,
    "integer:int64": CanonicalType.LONG,
    "number:": CanonicalType.DOUBLE,
    "number:double": CanonicalType.DOUBLE,
    "number:float": CanonicalType.FLOAT,
    "boolean:": CanonicalType.BOOLEAN,
}

DEFAULT_TYPE: CanonicalType = CanonicalType.STRING


def primary_type(type_value: Any) -> Optional[str]:
    """
    The effective ``type`` keyword of a schema.

    OpenAPI 3.1 allows a list such as ``["string", "null"]``; the first
    non-null member wins.
    """
    if isinstance(type_value, list):
        for member in type_value:
            if isinstance(member, str) and member.lower() != "null":
                return member
        return None
    if isinstance(type_value, str):
        return type_value
    return None


def map_type(type_: Optional[str], fmt: Optional[str] = None) -> CanonicalType:
    """
    Map an OpenAPI primitive type and format to a ``CanonicalType``.

    Examples:
        >>> map_type("integer", "int64")
        <CanonicalType.LONG: 'Long'>
        >>> map_type("foo", "bar")
        <CanonicalType.STRING: 'String'>
    """
    base: str = (type_ or "string").strip().lower()
    suffix: str = (fmt or "").strip().lower()
    canonical: Optional[CanonicalType] = TYPE_TABLE.get(f"{base}:{suffix}")
    if canonical is None:
        canonical = TYPE_TABLE.get(f"{base}:", DEFAULT_TYPE)
    return canonical


def map_schema_type(schema: Dict[str, Any]) -> CanonicalType:
    """``map_type`` applied to a property schema."""
    fmt: Any = schema.get("format")
    return map_type(
        primary_type(schema.get("type")),
        fmt if isinstance(fmt, str) else None,
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TYPE_TABLE",
    "DEFAULT_TYPE",
    "primary_type",
    "map_type",
    "map_schema_type",
]

logger.debug("erimport.typemap loaded — %d public symbols.", len(__all__))
