# File: erimport/references.py
"""
ERImport - Reference Extraction
=================================
Collects the directed reference edges of entity views.  An edge is one
property pointing at another schema, either directly or as an array of
references.  Arrays of primitives have no relational meaning here and are
reported as omitted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from erimport.classifier import SchemaView
from erimport.diagnostics import PRIMITIVE_ARRAY_OMITTED, ValidationResult
from erimport.properties import (
    PrimitiveArrayProperty,
    ReferenceArrayProperty,
    ReferenceProperty,
    ScalarProperty,
    UnsupportedProperty,
)
from erimport.utils import to_field_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.references")


@dataclass(frozen=True, slots=True)
class ReferenceEdge:
    """``source.property_name`` points at ``target``."""

    source: str
    property_name: str
    target: str
    is_array: bool

    @property
    def field_name(self) -> str:
        return to_field_name(self.property_name)

    @property
    def pair_key(self) -> str:
        """Order-independent key of the schema pair."""
        return ":".join(sorted((self.source, self.target)))

    @property
    def is_self_reference(self) -> bool:
        return self.source == self.target


@dataclass(frozen=True, slots=True)
class BackReference:
    """A property on the target schema that points back at the source."""

    property_name: str
    is_array: bool

    @property
    def field_name(self) -> str:
        return to_field_name(self.property_name)


def extract_references(view: SchemaView) -> Tuple[List[ReferenceEdge], ValidationResult]:
    """Reference edges of one view, in property order."""
    result: ValidationResult = ValidationResult()
    edges: List[ReferenceEdge] = []

    for shape in view.shapes:
        if isinstance(shape, ReferenceProperty):
            edges.append(ReferenceEdge(view.name, shape.name, shape.target, False))
        elif isinstance(shape, ReferenceArrayProperty):
            edges.append(ReferenceEdge(view.name, shape.name, shape.target, True))
        elif isinstance(shape, PrimitiveArrayProperty):
            result.add_warning(
                PRIMITIVE_ARRAY_OMITTED,
                f"Array of primitives omitted for field '{shape.name}' in '{view.name}'",
                {"schema": view.name, "property": shape.name},
            )
        elif isinstance(shape, (ScalarProperty, UnsupportedProperty)):
            continue
        else:
            raise TypeError(f"Unhandled property shape: {type(shape).__name__}")

    logger.debug("Schema '%s': %d reference edge(s).", view.name, len(edges))
    return edges, result


def extract_all_references(
    views: Sequence[SchemaView],
) -> Tuple[List[ReferenceEdge], ValidationResult]:
    """Edges of every view, concatenated in view order."""
    result: ValidationResult = ValidationResult()
    edges: List[ReferenceEdge] = []
    for view in views:
        view_edges, view_result = extract_references(view)
        edges.extend(view_edges)
        result.merge(view_result)
    return edges, result


def find_back_reference(
    source: str,
    target_view: SchemaView,
    exclude_property: Optional[str] = None,
) -> Optional[BackReference]:
    """
    First property of *target_view* that references *source*.

    *exclude_property* lets a self-referencing edge skip its own property.
    """
    for shape in target_view.shapes:
        if shape.name == exclude_property:
            continue
        if isinstance(shape, ReferenceProperty) and shape.target == source:
            return BackReference(shape.name, False)
        if isinstance(shape, ReferenceArrayProperty) and shape.target == source:
            return BackReference(shape.name, True)
    return None


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ReferenceEdge",
    "BackReference",
    "extract_references",
    "extract_all_references",
    "find_back_reference",
]

logger.debug("erimport.references loaded — %d public symbols.", len(__all__))
