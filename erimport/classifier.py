# File: erimport/classifier.py
"""
ERImport - Schema Classification
==================================
Decides which named schemas describe persistent entities.

Each schema is first flattened into a ``SchemaView``: ``allOf`` members
(inline or local ``$ref``) contribute their properties and ``required``
names ahead of the schema's own properties.  A view is an entity when:

1. its ``type`` is absent or ``"object"``;
2. it has at least one property after flattening;
3. its name does not look like a transport wrapper (``...Request``,
   ``...Response``, ``Paginated...`` and so on).

Names listed in ``ImportOptions.include_schemas`` skip check 3 only.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from erimport.diagnostics import NO_ENTITIES, ValidationResult
from erimport.models import ImportOptions
from erimport.properties import PropertyShape, classify_property, ref_name
from erimport.typemap import primary_type

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.classifier")

# ---------------------------------------------------------------------------
# Non-entity name patterns (case-insensitive)
# ---------------------------------------------------------------------------

NON_ENTITY_PATTERNS: Tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"Request$",
        r"Response$",
        r"DTO$",
        r"Input$",
        r"Output$",
        r"Payload$",
        r"Error$",
        r"Exception$",
        r"Page$",
        r"Pageable$",
        r"Paginated",
        r"List$",
        r"Collection$",
        r"Wrapper$",
        r"Envelope$",
        r"Result$",
        r"ApiResponse",
        r"^Link$",
        r"^Links$",
        r"^Meta$",
        r"^Metadata$",
    )
)


# ---------------------------------------------------------------------------
# Schema view
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SchemaView:
    """A named schema with ``allOf`` flattened into one property map."""

    name: str
    schema: Dict[str, Any]
    properties: Dict[str, Any] = field(default_factory=dict)
    required: FrozenSet[str] = frozenset()
    shapes: Tuple[PropertyShape, ...] = ()

    @property
    def declared_type(self) -> Optional[str]:
        return primary_type(self.schema.get("type"))

    @property
    def description(self) -> Optional[str]:
        value: Any = self.schema.get("description")
        return value if isinstance(value, str) and value.strip() else None

    def is_required(self, property_name: str) -> bool:
        return property_name in self.required


def _flatten(
    schema: Dict[str, Any],
    schemas: Dict[str, Any],
    seen: Set[str],
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Merge ``allOf`` members and own properties, members first.

    *seen* holds schema names already on the current ``$ref`` chain so a
    cyclic ``allOf`` terminates.
    """
    properties: Dict[str, Any] = {}
    required: List[str] = []

    all_of: Any = schema.get("allOf")
    if isinstance(all_of, list):
        for member in all_of:
            if not isinstance(member, Mapping):
                continue
            ref: Any = member.get("$ref")
            if isinstance(ref, str):
                target: str = ref_name(ref)
                target_schema: Any = schemas.get(target)
                if target in seen or not isinstance(target_schema, Mapping):
                    logger.debug("allOf member '%s' skipped (cyclic or unknown).", target)
                    continue
                sub_props, sub_required = _flatten(
                    dict(target_schema), schemas, seen | {target}
                )
            else:
                sub_props, sub_required = _flatten(dict(member), schemas, seen)
            properties.update(sub_props)
            required.extend(r for r in sub_required if r not in required)

    # YAML keys such as ``on``, ``100`` or ``~`` decode to bool / int / None.
    own: Any = schema.get("properties")
    if isinstance(own, Mapping):
        properties.update((str(key), value) for key, value in own.items())

    own_required: Any = schema.get("required")
    if isinstance(own_required, list):
        for entry in own_required:
            if isinstance(entry, (list, dict)):
                continue
            if str(entry) not in required:
                required.append(str(entry))

    return properties, required


def build_schema_view(
    name: str,
    schema: Dict[str, Any],
    schemas: Dict[str, Any],
) -> SchemaView:
    """Flatten one named schema and classify its properties."""
    properties, required = _flatten(schema, schemas, {name})
    shapes: Tuple[PropertyShape, ...] = tuple(
        classify_property(prop_name, prop_schema)
        for prop_name, prop_schema in properties.items()
    )
    return SchemaView(
        name=name,
        schema=schema,
        properties=properties,
        required=frozenset(required),
        shapes=shapes,
    )


def build_schema_views(schemas: Dict[str, Any]) -> Dict[str, SchemaView]:
    """Views for every mapping-valued schema, in source order."""
    views: Dict[str, SchemaView] = {}
    for name, schema in schemas.items():
        if not isinstance(schema, Mapping):
            logger.debug("Schema '%s' is not an object; ignored.", name)
            continue
        views[str(name)] = build_schema_view(str(name), dict(schema), schemas)
    return views


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def matches_non_entity_name(
    name: str,
    extra_patterns: Sequence[str] = (),
) -> bool:
    """True when *name* looks like a transport wrapper rather than an entity."""
    if any(pattern.search(name) for pattern in NON_ENTITY_PATTERNS):
        return True
    return any(re.search(pattern, name, re.IGNORECASE) for pattern in extra_patterns)


def rejection_reason(
    view: SchemaView,
    options: Optional[ImportOptions] = None,
) -> Optional[str]:
    """Why *view* is not an entity, or ``None`` when it is one."""
    opts: ImportOptions = options or ImportOptions()

    declared: Optional[str] = view.declared_type
    if "type" in view.schema and declared is not None and declared != "object":
        return f"type '{declared}' is not an object"
    if "type" in view.schema and declared is None:
        return "type is not an object"
    if not view.properties:
        return "no properties"
    if view.name in opts.include_schemas:
        return None
    if matches_non_entity_name(view.name, opts.exclude_patterns):
        return "name matches a non-entity pattern"
    return None


def is_entity_schema(view: SchemaView, options: Optional[ImportOptions] = None) -> bool:
    return rejection_reason(view, options) is None


def classify_schemas(
    schemas: Dict[str, Any],
    options: Optional[ImportOptions] = None,
) -> Tuple[List[SchemaView], Dict[str, SchemaView], ValidationResult]:
    """
    Split the schema map into entity views.

    Returns:
        Tuple of (entity views in source order, all views by name,
        diagnostics).
    """
    result: ValidationResult = ValidationResult()
    views: Dict[str, SchemaView] = build_schema_views(schemas)
    entities: List[SchemaView] = []

    for view in views.values():
        reason: Optional[str] = rejection_reason(view, options)
        if reason is None:
            entities.append(view)
        else:
            logger.debug("Schema '%s' is not an entity: %s.", view.name, reason)

    if schemas and not entities:
        result.add_warning(
            NO_ENTITIES,
            "No entity schemas found after filtering",
            {"schemas": len(schemas)},
        )

    logger.info(
        "Classified %d schema(s): %d entit%s.",
        len(schemas),
        len(entities),
        "y" if len(entities) == 1 else "ies",
    )
    return entities, views, result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "NON_ENTITY_PATTERNS",
    "SchemaView",
    "build_schema_view",
    "build_schema_views",
    "matches_non_entity_name",
    "rejection_reason",
    "is_entity_schema",
    "classify_schemas",
]

logger.debug("erimport.classifier loaded — %d public symbols.", len(__all__))
