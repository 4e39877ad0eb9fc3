# File: erimport/fields.py
"""
ERImport - Field Builder
==========================
Turns the scalar properties of an entity view into ``FieldInfo`` models and
derives their validation rules.

Rule derivation is deterministic and always emits rules in this order:

1. ``NotBlank`` (required string with ``minLength > 0``) or ``NotNull``
   (any other required property)
2. ``Size`` (string with ``minLength`` and/or ``maxLength``)
3. ``Email`` (``format: email``)
4. ``Pattern`` (``pattern`` keyword, raw)
5. ``Min`` / ``Max`` (``minimum`` / ``maximum``)
6. ``Positive`` (``exclusiveMinimum: 0``, or ``exclusiveMinimum: true``
   together with ``minimum: 0``)

``PositiveOrZero`` is part of the rule vocabulary but never derived.
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from erimport.classifier import SchemaView
from erimport.diagnostics import DUPLICATE_FIELD, UNSUPPORTED_PROPERTY, ValidationResult
from erimport.models import (
    CanonicalType,
    EmailRule,
    FieldInfo,
    ImportOptions,
    MaxRule,
    MinRule,
    NotBlankRule,
    NotNullRule,
    PatternRule,
    PositiveRule,
    SizeRule,
    ValidationRule,
)
from erimport.properties import (
    PrimitiveArrayProperty,
    ReferenceArrayProperty,
    ReferenceProperty,
    ScalarProperty,
    UnsupportedProperty,
)
from erimport.typemap import map_schema_type, primary_type
from erimport.utils import new_id, to_field_name, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.fields")

ID_FIELD_NAME: str = "id"
DEFAULT_MAX_LENGTH: int = 255


# ---------------------------------------------------------------------------
# Small predicates
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _length(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


def _is_string_schema(schema: Dict[str, Any]) -> bool:
    return primary_type(schema.get("type")) in (None, "string")


def stringify_default(value: Any) -> str:
    """
    String form of a schema ``default``.

    Examples:
        >>> stringify_default(True)
        'true'
        >>> stringify_default(["a", "b"])
        '["a", "b"]'
        >>> stringify_default(datetime.date(2024, 1, 1))
        '2024-01-01'
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=str)
    return str(value)


# ---------------------------------------------------------------------------
# Validation rule derivation
# ---------------------------------------------------------------------------


def derive_validations(schema: Dict[str, Any], required: bool) -> List[ValidationRule]:
    """Derive the ordered validation rules for one property schema."""
    rules: List[ValidationRule] = []
    is_string: bool = _is_string_schema(schema)
    min_length: Optional[int] = _length(schema.get("minLength"))
    max_length: Optional[int] = _length(schema.get("maxLength"))

    if required:
        if is_string and min_length is not None and min_length > 0:
            rules.append(NotBlankRule())
        else:
            rules.append(NotNullRule())

    if is_string and (min_length is not None or max_length is not None):
        rules.append(
            SizeRule(
                min=min_length if min_length is not None else 0,
                max=max_length if max_length is not None else DEFAULT_MAX_LENGTH,
            )
        )

    if schema.get("format") == "email":
        rules.append(EmailRule())

    pattern: Any = schema.get("pattern")
    if isinstance(pattern, str) and pattern:
        rules.append(PatternRule(regex=pattern))

    minimum: Any = schema.get("minimum")
    if _is_number(minimum):
        rules.append(MinRule(value=minimum))

    maximum: Any = schema.get("maximum")
    if _is_number(maximum):
        rules.append(MaxRule(value=maximum))

    exclusive_minimum: Any = schema.get("exclusiveMinimum")
    if (_is_number(exclusive_minimum) and exclusive_minimum == 0) or (
        exclusive_minimum is True and _is_number(minimum) and minimum == 0
    ):
        rules.append(PositiveRule())

    return rules


# ---------------------------------------------------------------------------
# Field construction
# ---------------------------------------------------------------------------


def synthetic_id_field(options: Optional[ImportOptions] = None) -> FieldInfo:
    """The ``id`` field prepended to entities that declare none."""
    opts: ImportOptions = options or ImportOptions()
    return FieldInfo(
        id=new_id(),
        name=ID_FIELD_NAME,
        column_name=ID_FIELD_NAME,
        type=CanonicalType.LONG,
        nullable=False,
        unique=True,
        validations=[],
        description="Primary key (auto-generated)" if opts.include_descriptions else None,
    )


def build_field(
    property_name: str,
    schema: Dict[str, Any],
    required: bool,
    options: Optional[ImportOptions] = None,
) -> Optional[FieldInfo]:
    """
    Build a ``FieldInfo`` for one scalar property.

    Returns ``None`` for ``readOnly`` properties other than ``id``, which
    are assumed to be server-computed.
    """
    opts: ImportOptions = options or ImportOptions()

    if schema.get("readOnly") is True and property_name.lower() != ID_FIELD_NAME:
        logger.debug("Property '%s' is readOnly; skipped.", property_name)
        return None

    name: str = to_field_name(property_name)
    nullable: bool = False if required else schema.get("nullable") is not False

    description: Optional[str] = None
    if opts.include_descriptions:
        raw_description: Any = schema.get("description")
        if isinstance(raw_description, str) and raw_description.strip():
            description = raw_description

    default_value: Optional[str] = None
    if opts.include_defaults and schema.get("default") is not None:
        default_value = stringify_default(schema["default"])

    return FieldInfo(
        id=new_id(),
        name=name,
        column_name=to_snake_case(name),
        type=map_schema_type(schema),
        nullable=nullable,
        unique=False,
        validations=derive_validations(schema, required),
        description=description,
        default_value=default_value,
    )


def build_fields(
    view: SchemaView,
    options: Optional[ImportOptions] = None,
) -> Tuple[List[FieldInfo], ValidationResult]:
    """
    Build all fields of an entity view, in property order.

    Reference shapes belong to the reference extractor and primitive arrays
    are reported there too; both are skipped here.  An ``id`` field is
    prepended when none was built.
    """
    result: ValidationResult = ValidationResult()
    fields: List[FieldInfo] = []
    seen: Set[str] = set()

    for shape in view.shapes:
        if isinstance(shape, ScalarProperty):
            field_info: Optional[FieldInfo] = build_field(
                shape.name,
                shape.schema,
                view.is_required(shape.name),
                options,
            )
            if field_info is None:
                continue
            if field_info.name in seen:
                result.add_warning(
                    DUPLICATE_FIELD,
                    f"Field '{shape.name}' in '{view.name}' omitted: "
                    f"name '{field_info.name}' is already used",
                    {"schema": view.name, "property": shape.name},
                )
                continue
            seen.add(field_info.name)
            fields.append(field_info)
        elif isinstance(shape, (ReferenceProperty, ReferenceArrayProperty)):
            continue
        elif isinstance(shape, PrimitiveArrayProperty):
            continue
        elif isinstance(shape, UnsupportedProperty):
            result.add_warning(
                UNSUPPORTED_PROPERTY,
                f"Field '{shape.name}' in '{view.name}' omitted: {shape.reason}",
                {"schema": view.name, "property": shape.name},
            )
        else:
            raise TypeError(f"Unhandled property shape: {type(shape).__name__}")

    if ID_FIELD_NAME not in seen:
        fields.insert(0, synthetic_id_field(options))
        logger.debug("Synthetic id field prepended to '%s'.", view.name)

    return fields, result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ID_FIELD_NAME",
    "DEFAULT_MAX_LENGTH",
    "stringify_default",
    "derive_validations",
    "synthetic_id_field",
    "build_field",
    "build_fields",
]

logger.debug("erimport.fields loaded — %d public symbols.", len(__all__))
