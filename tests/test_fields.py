"""
tests/test_fields.py
Unit tests for erimport.fields (field construction and validation rules).
"""

from __future__ import annotations

import datetime
from typing import Any, Callable, Dict, List

import pytest

from erimport.classifier import build_schema_views
from erimport.diagnostics import DUPLICATE_FIELD, UNSUPPORTED_PROPERTY
from erimport.fields import (
    build_field,
    build_fields,
    derive_validations,
    stringify_default,
    synthetic_id_field,
)
from erimport.models import CanonicalType, ImportOptions


def _rule_types(schema: Dict[str, Any], required: bool) -> List[str]:
    return [rule.type for rule in derive_validations(schema, required)]


# ===========================================================================
# derive_validations
# ===========================================================================


class TestDeriveValidations:
    """Tests for validation rule derivation and ordering."""

    def test_required_string_with_min_length_is_not_blank(self) -> None:
        assert _rule_types({"type": "string", "minLength": 1}, True) == ["NotBlank", "Size"]

    def test_required_string_without_min_length_is_not_null(self) -> None:
        assert _rule_types({"type": "string"}, True) == ["NotNull"]

    def test_required_string_with_zero_min_length(self) -> None:
        assert _rule_types({"type": "string", "minLength": 0}, True) == ["NotNull", "Size"]

    def test_required_integer_is_not_null(self) -> None:
        assert _rule_types({"type": "integer"}, True) == ["NotNull"]

    def test_optional_has_no_presence_rule(self) -> None:
        types = _rule_types({"type": "string", "minLength": 1}, False)
        assert "NotNull" not in types and "NotBlank" not in types

    def test_size_defaults(self) -> None:
        rules = derive_validations({"type": "string", "maxLength": 50}, False)
        assert (rules[0].min, rules[0].max) == (0, 50)
        rules = derive_validations({"type": "string", "minLength": 3}, False)
        assert (rules[0].min, rules[0].max) == (3, 255)

    def test_min_length_above_default_max_does_not_raise(self) -> None:
        rules = derive_validations({"type": "string", "minLength": 300}, False)
        assert (rules[0].min, rules[0].max) == (300, 255)

    def test_negative_length_ignored(self) -> None:
        assert _rule_types({"type": "string", "minLength": -1}, False) == []

    def test_size_only_for_strings(self) -> None:
        assert _rule_types({"type": "array", "minLength": 1}, False) == []

    def test_email_and_pattern(self) -> None:
        rules = derive_validations(
            {"type": "string", "format": "email", "pattern": r"^\S+@\S+$"}, False
        )
        assert [r.type for r in rules] == ["Email", "Pattern"]
        assert rules[1].regex == r"^\S+@\S+$"

    def test_min_max(self) -> None:
        rules = derive_validations({"type": "number", "minimum": 0, "maximum": 5.5}, False)
        assert [(r.type, r.value) for r in rules] == [("Min", 0), ("Max", 5.5)]

    def test_positive_from_numeric_exclusive_minimum(self) -> None:
        assert _rule_types({"type": "integer", "exclusiveMinimum": 0}, False) == ["Positive"]

    def test_positive_from_boolean_exclusive_minimum(self) -> None:
        types = _rule_types({"type": "number", "minimum": 0, "exclusiveMinimum": True}, False)
        assert types == ["Min", "Positive"]

    def test_positive_or_zero_never_derived(self) -> None:
        types = _rule_types({"type": "integer", "minimum": 0}, True)
        assert "PositiveOrZero" not in types

    def test_full_ordering(self) -> None:
        schema = {
            "type": "string",
            "minLength": 2,
            "maxLength": 10,
            "format": "email",
            "pattern": ".+",
        }
        assert _rule_types(schema, True) == ["NotBlank", "Size", "Email", "Pattern"]


# ===========================================================================
# build_field
# ===========================================================================


class TestBuildField:
    """Tests for single field construction."""

    def test_required_field(self) -> None:
        field_info = build_field("first-name", {"type": "string", "minLength": 1}, True)
        assert field_info is not None
        assert field_info.name == "firstName"
        assert field_info.column_name == "first_name"
        assert field_info.nullable is False
        assert field_info.has_rule("NotBlank")

    def test_optional_field_is_nullable(self) -> None:
        field_info = build_field("bio", {"type": "string"}, False)
        assert field_info is not None and field_info.nullable is True
        assert field_info.validations == []

    def test_optional_field_with_nullable_false(self) -> None:
        field_info = build_field("bio", {"type": "string", "nullable": False}, False)
        assert field_info is not None and field_info.nullable is False

    def test_read_only_skipped(self) -> None:
        assert build_field("createdAt", {"type": "string", "readOnly": True}, False) is None

    def test_read_only_id_kept(self) -> None:
        field_info = build_field("id", {"type": "integer", "format": "int64", "readOnly": True}, False)
        assert field_info is not None
        assert field_info.type == CanonicalType.LONG.value

    def test_description_and_default(self) -> None:
        schema = {"type": "boolean", "default": False, "description": "Visible?"}
        field_info = build_field("published", schema, False)
        assert field_info is not None
        assert field_info.default_value == "false"
        assert field_info.description == "Visible?"

    def test_options_suppress_description_and_default(self) -> None:
        schema = {"type": "boolean", "default": True, "description": "Visible?"}
        options = ImportOptions(include_descriptions=False, include_defaults=False)
        field_info = build_field("published", schema, False, options)
        assert field_info is not None
        assert field_info.default_value is None
        assert field_info.description is None

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, "true"),
            ("NEW", "NEW"),
            (3, "3"),
            (2.5, "2.5"),
            ([1, 2], "[1, 2]"),
            (datetime.date(2024, 1, 1), "2024-01-01"),
            (datetime.datetime(2024, 1, 1, 12, 30), "2024-01-01T12:30:00"),
        ],
    )
    def test_stringify_default(self, value: Any, expected: str) -> None:
        assert stringify_default(value) == expected


# ===========================================================================
# build_fields
# ===========================================================================


class TestBuildFields:
    """Tests for per-entity field lists."""

    def test_synthetic_id_prepended(self) -> None:
        view = build_schema_views({"Pet": {"properties": {"name": {"type": "string"}}}})["Pet"]
        fields, diag = build_fields(view)
        assert [f.name for f in fields] == ["id", "name"]
        id_field = fields[0]
        assert id_field.type == CanonicalType.LONG.value
        assert id_field.nullable is False
        assert id_field.unique is True
        assert len(diag) == 0

    def test_declared_id_not_duplicated(self) -> None:
        view = build_schema_views(
            {"Pet": {"properties": {"name": {}, "id": {"type": "string", "format": "uuid"}}}}
        )["Pet"]
        fields, _diag = build_fields(view)
        assert [f.name for f in fields] == ["name", "id"]
        assert fields[1].type == CanonicalType.UUID.value

    def test_references_and_arrays_are_not_fields(
        self, ref: Callable[[str], Dict[str, str]]
    ) -> None:
        view = build_schema_views(
            {
                "Post": {
                    "properties": {
                        "title": {"type": "string"},
                        "author": ref("Author"),
                        "tags": {"type": "array", "items": {"type": "string"}},
                        "comments": {"type": "array", "items": ref("Comment")},
                    }
                }
            }
        )["Post"]
        fields, diag = build_fields(view)
        assert [f.name for f in fields] == ["id", "title"]
        assert len(diag) == 0, "Primitive arrays are reported by the reference extractor."

    def test_unsupported_property_warning(self) -> None:
        view = build_schema_views(
            {"Pet": {"properties": {"kind": {"anyOf": [{"type": "string"}]}, "name": {}}}}
        )["Pet"]
        fields, diag = build_fields(view)
        assert [f.name for f in fields] == ["id", "name"]
        assert diag.has_code(UNSUPPORTED_PROPERTY)

    def test_colliding_names_deduplicated(self) -> None:
        view = build_schema_views(
            {"Pet": {"properties": {"first_name": {}, "first-name": {}}}}
        )["Pet"]
        fields, diag = build_fields(view)
        assert [f.name for f in fields] == ["id", "firstName"]
        assert diag.has_code(DUPLICATE_FIELD)

    def test_yaml_scalar_property_keys(self) -> None:
        # ``on`` and ``100`` decode as bool and int keys under YAML 1.1.
        view = build_schema_views(
            {
                "Switch": {
                    "required": [True],
                    "properties": {"name": {"type": "string"}, True: {"type": "boolean"}},
                },
                "Metric": {"properties": {100: {"type": "integer"}}},
            }
        )
        fields, diag = build_fields(view["Switch"])
        assert [f.name for f in fields] == ["id", "name", "true"]
        assert fields[2].nullable is False
        assert len(diag) == 0
        metric_fields, _diag = build_fields(view["Metric"])
        assert [f.name for f in metric_fields] == ["id", "unknown"]

    def test_synthetic_id_description_follows_options(self) -> None:
        assert synthetic_id_field().description == "Primary key (auto-generated)"
        assert synthetic_id_field(ImportOptions(include_descriptions=False)).description is None
