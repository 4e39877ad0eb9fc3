# File: erimport/properties.py
"""
ERImport - Property Shapes
============================
Every property of an entity schema is classified exactly once into one of
five shapes.  The field builder and the reference extractor both dispatch
on this closed set; neither re-inspects the raw schema to decide what a
property *is*.

    ScalarProperty          → becomes a Field
    ReferenceProperty       → becomes a non-array reference edge
    ReferenceArrayProperty  → becomes an array reference edge
    PrimitiveArrayProperty  → dropped with a warning
    UnsupportedProperty     → dropped with a warning (oneOf/anyOf, garbage)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from erimport.typemap import primary_type

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.properties")


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScalarProperty:
    name: str
    schema: Dict[str, Any]


@dataclass(frozen=True, slots=True)
class ReferenceProperty:
    name: str
    target: str


@dataclass(frozen=True, slots=True)
class ReferenceArrayProperty:
    name: str
    target: str


@dataclass(frozen=True, slots=True)
class PrimitiveArrayProperty:
    name: str
    schema: Dict[str, Any]


@dataclass(frozen=True, slots=True)
class UnsupportedProperty:
    name: str
    reason: str


PropertyShape = Union[
    ScalarProperty,
    ReferenceProperty,
    ReferenceArrayProperty,
    PrimitiveArrayProperty,
    UnsupportedProperty,
]


# ---------------------------------------------------------------------------
# Reference helpers
# ---------------------------------------------------------------------------


def ref_name(ref: str) -> str:
    """
    Schema name a local ``$ref`` points at.

    A reference into another file is returned unchanged so it never matches
    a schema of this document.

    Examples:
        >>> ref_name("#/components/schemas/Pet")
        'Pet'
        >>> ref_name("#/definitions/a~1b")
        'a/b'
        >>> ref_name("common.yaml#/components/schemas/Pet")
        'common.yaml#/components/schemas/Pet'
    """
    if not ref.startswith("#"):
        return ref
    segment: str = ref.rsplit("/", 1)[-1]
    return segment.replace("~1", "/").replace("~0", "~")


def reference_target(schema: Any) -> Optional[str]:
    """
    Target schema name when *schema* is a reference, else ``None``.

    Accepts a bare ``$ref`` and the ``allOf: [{$ref}]`` wrapper some
    generators emit to attach a description to a reference.
    """
    if not isinstance(schema, Mapping):
        return None
    ref: Any = schema.get("$ref")
    if isinstance(ref, str) and ref:
        return ref_name(ref)
    all_of: Any = schema.get("allOf")
    if isinstance(all_of, list) and len(all_of) == 1:
        return reference_target(all_of[0])
    return None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify_property(name: str, schema: Any) -> PropertyShape:
    """Classify one property schema into its shape."""
    if not isinstance(schema, Mapping):
        return UnsupportedProperty(name, "property schema is not an object")

    target: Optional[str] = reference_target(schema)
    if target is not None:
        return ReferenceProperty(name, target)

    if primary_type(schema.get("type")) == "array":
        items: Any = schema.get("items")
        item_target: Optional[str] = reference_target(items)
        if item_target is not None:
            return ReferenceArrayProperty(name, item_target)
        return PrimitiveArrayProperty(name, dict(schema))

    for keyword in ("oneOf", "anyOf"):
        if keyword in schema:
            return UnsupportedProperty(name, f"polymorphic '{keyword}' property")

    return ScalarProperty(name, dict(schema))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ScalarProperty",
    "ReferenceProperty",
    "ReferenceArrayProperty",
    "PrimitiveArrayProperty",
    "UnsupportedProperty",
    "PropertyShape",
    "ref_name",
    "reference_target",
    "classify_property",
]

logger.debug("erimport.properties loaded — %d public symbols.", len(__all__))
