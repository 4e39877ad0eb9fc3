"""
tests/test_importer.py
Integration tests for erimport.importer (the full import pipeline), the
grid layout and the endpoint inventory.
"""

from __future__ import annotations

import json
import pathlib
from typing import Any, Callable, Dict, List

import pytest
import yaml

from erimport import parse_openapi
from erimport.document import FormatError
from erimport.endpoints import extract_endpoints, infer_entity_name
from erimport.importer import OpenApiImporter, load_options_file
from erimport.layout import grid_columns, grid_positions
from erimport.models import Cardinality, DocumentFormat, ImportOptions, ImportResult


def _strip_ids(value: Any) -> Any:
    """Drop generated identifiers so two results can be compared deeply."""
    if isinstance(value, dict):
        return {
            k: _strip_ids(v)
            for k, v in value.items()
            if k not in {"id", "sourceEntityId", "targetEntityId"}
        }
    if isinstance(value, list):
        return [_strip_ids(v) for v in value]
    return value


# ===========================================================================
# Reference document
# ===========================================================================


class TestReferenceDocument:
    """Import of openapi_example.yaml."""

    @pytest.fixture()
    def result(self, openapi_yaml_text: str) -> ImportResult:
        return parse_openapi(openapi_yaml_text)

    def test_entities_in_source_order(self, result: ImportResult) -> None:
        assert [e.name for e in result.entities] == [
            "Author",
            "Post",
            "Student",
            "Course",
            "Order",
            "Address",
        ]

    def test_table_names(self, result: ImportResult) -> None:
        assert [e.table_name for e in result.entities] == [
            "author",
            "post",
            "student",
            "course",
            "order",
            "address",
        ]

    def test_author_fields(self, result: ImportResult) -> None:
        author = result.get_entity("Author")
        assert author is not None
        assert [f.name for f in author.fields] == ["id", "name", "email", "bio"]
        assert author.description == "A person who writes posts"
        name = author.get_field("name")
        assert name is not None
        assert name.nullable is False
        assert [r.type for r in name.validations] == ["NotBlank", "Size"]
        email = author.get_field("email")
        assert email is not None and email.has_rule("Email") and email.has_rule("NotNull")
        bio = author.get_field("bio")
        assert bio is not None and bio.nullable is True and bio.description == "Short biography"

    def test_post_fields(self, result: ImportResult) -> None:
        post = result.get_entity("Post")
        assert post is not None
        assert [f.name for f in post.fields] == [
            "id",
            "title",
            "body",
            "published",
            "publishedAt",
            "rating",
        ]
        published_at = post.get_field("publishedAt")
        assert published_at is not None
        assert published_at.column_name == "published_at"
        assert published_at.type == "LocalDateTime"
        published = post.get_field("published")
        assert published is not None and published.default_value == "false"

    def test_synthetic_ids(self, result: ImportResult) -> None:
        for name in ("Student", "Course", "Address"):
            entity = result.get_entity(name)
            assert entity is not None
            first = entity.fields[0]
            assert (first.name, first.type, first.nullable, first.unique) == (
                "id",
                "Long",
                False,
                True,
            ), f"{name} should start with a synthetic id"

    def test_order_fields(self, result: ImportResult) -> None:
        order = result.get_entity("Order")
        assert order is not None
        assert [f.name for f in order.fields] == ["id", "total", "status"]
        assert order.fields[0].type == "UUID"
        total = order.get_field("total")
        assert total is not None
        assert [r.type for r in total.validations] == ["Min", "Positive"]
        status = order.get_field("status")
        assert status is not None and status.default_value == "NEW"

    def test_relations(self, result: ImportResult) -> None:
        assert [r.type for r in result.relations] == [
            Cardinality.MANY_TO_ONE.value,
            Cardinality.MANY_TO_MANY.value,
            Cardinality.MANY_TO_ONE.value,
        ]
        post_author, student_course, order_address = result.relations
        assert post_author.bidirectional and post_author.target_field_name == "posts"
        assert student_course.join_table is not None
        assert student_course.join_table.name == "student_course"
        assert order_address.foreign_key.column_name == "shipping_address_id"
        assert not order_address.bidirectional

    def test_warnings(self, result: ImportResult) -> None:
        assert result.warnings == ["Array of primitives omitted for field 'tags' in 'Post'"]

    def test_metadata(self, result: ImportResult) -> None:
        assert result.project_name == "BlogPlatformApi"
        assert result.version == "2.1.0"
        assert result.description is not None
        assert result.source_format == DocumentFormat.YAML.value

    def test_layout(self, result: ImportResult) -> None:
        positions = [(e.position.x, e.position.y) for e in result.entities]
        assert positions == [
            (100, 100),
            (400, 100),
            (700, 100),
            (100, 350),
            (400, 350),
            (700, 350),
        ]

    def test_endpoints(self, result: ImportResult) -> None:
        summary = [(e.method, e.path, e.entity_name) for e in result.endpoints]
        assert summary == [
            ("GET", "/authors", "Author"),
            ("POST", "/authors", "Author"),
            ("GET", "/authors/{authorId}", "Author"),
            ("GET", "/posts", "Post"),
            ("GET", "/courses/{courseId}/students", "Student"),
        ]
        assert result.endpoints[2].summary == "Fetch a single author"

    def test_counts(self, result: ImportResult) -> None:
        assert result.entity_count == 6
        assert result.relation_count == 3
        assert result.total_fields == 4 + 6 + 2 + 3 + 3 + 3

    def test_relation_endpoints_exist(self, result: ImportResult) -> None:
        for relation in result.relations:
            assert result.get_entity_by_id(relation.source_entity_id) is not None
            assert result.get_entity_by_id(relation.target_entity_id) is not None


# ===========================================================================
# Pipeline properties
# ===========================================================================


class TestPipelineProperties:
    """Whole-pipeline guarantees."""

    def test_idempotent_modulo_ids(self, openapi_yaml_text: str) -> None:
        first = parse_openapi(openapi_yaml_text).to_dict()
        second = parse_openapi(openapi_yaml_text).to_dict()
        assert _strip_ids(first) == _strip_ids(second)

    def test_json_and_yaml_agree(self, openapi_yaml_text: str, openapi_json_text: str) -> None:
        from_yaml = _strip_ids(parse_openapi(openapi_yaml_text).to_dict())
        from_json = _strip_ids(parse_openapi(openapi_json_text).to_dict())
        from_yaml.pop("sourceFormat")
        from_json.pop("sourceFormat")
        assert from_yaml == from_json

    def test_ids_unique(self, openapi_yaml_text: str) -> None:
        result = parse_openapi(openapi_yaml_text)
        ids: List[str] = [e.id for e in result.entities]
        ids += [f.id for e in result.entities for f in e.fields]
        ids += [r.id for r in result.relations]
        assert len(ids) == len(set(ids))

    def test_every_entity_schema_becomes_entity(
        self, make_document: Callable[..., Dict[str, Any]]
    ) -> None:
        schemas = {
            f"Thing{i}": {"type": "object", "properties": {"value": {"type": "integer"}}}
            for i in range(7)
        }
        result = parse_openapi(make_document(schemas))
        assert len(result.entities) == len(schemas)
        assert all(len(e.fields) >= 1 for e in result.entities)

    def test_key_order_preserved(self, make_document: Callable[..., Dict[str, Any]]) -> None:
        names = ["Zebra", "Apple", "Mango"]
        text = json.dumps(
            make_document({n: {"properties": {"label": {"type": "string"}}} for n in names})
        )
        assert [e.name for e in parse_openapi(text).entities] == names

    def test_swagger_document(self, swagger_dict: Dict[str, Any]) -> None:
        result = parse_openapi(yaml.safe_dump(swagger_dict, sort_keys=False))
        assert [e.name for e in result.entities] == ["Customer", "Invoice"]
        assert result.relations[0].type == Cardinality.MANY_TO_ONE.value
        assert result.get_entity("Invoice").get_field("amount").type == "Float"
        assert result.endpoints[0].entity_name == "Customer"
        assert result.version == "0.9"

    def test_no_schemas_is_empty_result(self, make_document: Callable[..., Dict[str, Any]]) -> None:
        result = parse_openapi(make_document(None))
        assert result.entities == [] and result.relations == []
        assert len(result.warnings) == 1
        assert "No schema definitions" in result.warnings[0]

    def test_only_wrappers(self, make_document: Callable[..., Dict[str, Any]]) -> None:
        result = parse_openapi(
            make_document({"UserResponse": {"properties": {"user": {"type": "string"}}}})
        )
        assert result.entities == []
        assert result.warnings == ["No entity schemas found after filtering"]

    def test_missing_info_uses_defaults(self) -> None:
        result = parse_openapi({"openapi": "3.0.0", "components": {"schemas": {}}})
        assert result.project_name == "ApiProject"
        assert result.version == "1.0.0"

    def test_invalid_text_raises(self) -> None:
        with pytest.raises(FormatError, match="Invalid JSON"):
            parse_openapi('{"openapi": "3.0.0",')

    def test_bytes_input(self, openapi_yaml_text: str) -> None:
        result = parse_openapi(openapi_yaml_text.encode("utf-8"))
        assert result.entity_count == 6

    def test_yaml_non_string_keys_and_dates(self) -> None:
        text = (
            "openapi: 3.0.0\n"
            "info: {title: Devices, version: '1.0'}\n"
            "components:\n"
            "  schemas:\n"
            "    Switch:\n"
            "      type: object\n"
            "      required: [on]\n"
            "      properties:\n"
            "        name: {type: string}\n"
            "        on: {type: boolean}\n"
            "        100: {type: integer}\n"
            "        day: {type: string, format: date, default: 2024-01-01}\n"
        )
        result = parse_openapi(text, fmt=DocumentFormat.YAML)
        (switch,) = result.entities
        assert [f.name for f in switch.fields] == ["id", "name", "true", "unknown", "day"]
        assert switch.fields[2].nullable is False
        assert switch.fields[4].default_value == "2024-01-01"

    def test_to_dict_uses_camel_case(self, openapi_yaml_text: str) -> None:
        data = parse_openapi(openapi_yaml_text).to_dict()
        assert list(data) == [
            "entities",
            "relations",
            "warnings",
            "projectName",
            "version",
            "description",
            "endpoints",
            "sourceFormat",
        ]
        assert "tableName" in data["entities"][0]
        assert "sourceFieldName" in data["relations"][0]
        assert "joinTable" not in data["relations"][0], "None values are omitted."


# ===========================================================================
# Options
# ===========================================================================


class TestImportOptions:
    """ImportOptions flowing through the importer."""

    def test_no_descriptions(self, openapi_yaml_text: str) -> None:
        result = OpenApiImporter(ImportOptions(include_descriptions=False)).import_source(
            openapi_yaml_text
        )
        assert result.description is None
        assert all(e.description is None for e in result.entities)
        assert all(f.description is None for e in result.entities for f in e.fields)

    def test_no_defaults(self, openapi_yaml_text: str) -> None:
        result = parse_openapi(openapi_yaml_text, options=ImportOptions(include_defaults=False))
        assert all(f.default_value is None for e in result.entities for f in e.fields)

    def test_include_schema_keeps_wrapper(self, openapi_yaml_text: str) -> None:
        result = parse_openapi(
            openapi_yaml_text, options=ImportOptions(include_schemas=["OrderResponse"])
        )
        order_response = result.get_entity("OrderResponse")
        assert order_response is not None
        assert result.relation_count == 4

    def test_exclude_pattern_drops_target(self, openapi_yaml_text: str) -> None:
        result = parse_openapi(
            openapi_yaml_text, options=ImportOptions(exclude_patterns=["^Address$"])
        )
        assert result.get_entity("Address") is None
        assert result.relation_count == 2
        assert any("schema 'Address' is not an entity" in w for w in result.warnings)

    def test_custom_layout(self) -> None:
        options = ImportOptions(start_x=0, start_y=10, spacing_x=50, spacing_y=20)
        assert [(p.x, p.y) for p in grid_positions(5, options)] == [
            (0, 10),
            (50, 10),
            (100, 10),
            (0, 30),
            (50, 30),
        ]

    def test_invalid_options_rejected(self) -> None:
        with pytest.raises(ValueError):
            ImportOptions(spacing_x=0)
        with pytest.raises(ValueError):
            ImportOptions(exclude_patterns=["("])
        with pytest.raises(ValueError):
            ImportOptions(include_schemas=["A", "A"])

    def test_load_options_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "options.yaml"
        path.write_text("include_defaults: false\nexclude_patterns: ['^Legacy']\n")
        options = load_options_file(path)
        assert options.include_defaults is False
        assert options.exclude_patterns == ["^Legacy"]

    def test_load_options_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "options.json"
        path.write_text(json.dumps({"spacing_x": 120}))
        assert load_options_file(path).spacing_x == 120

    def test_load_options_errors(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_options_file(tmp_path / "missing.yaml")
        bad = tmp_path / "bad.yaml"
        bad.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="mapping"):
            load_options_file(bad)
        unknown = tmp_path / "unknown.json"
        unknown.write_text('{"colour": "blue"}')
        with pytest.raises(ValueError, match="Options validation failed"):
            load_options_file(unknown)


# ===========================================================================
# Layout & endpoints
# ===========================================================================


class TestLayout:
    """Grid geometry."""

    @pytest.mark.parametrize(("count", "columns"), [(0, 1), (1, 1), (2, 2), (4, 2), (5, 3), (10, 4)])
    def test_columns(self, count: int, columns: int) -> None:
        assert grid_columns(count) == columns

    def test_default_positions(self) -> None:
        assert [(p.x, p.y) for p in grid_positions(3)] == [(100, 100), (400, 100), (100, 350)]


class TestEndpoints:
    """Endpoint inventory and entity guessing."""

    def test_infer_from_tag(self) -> None:
        assert infer_entity_name("/anything", ["Categories"]) == "Category"

    def test_infer_from_path(self) -> None:
        assert infer_entity_name("/pets/{petId}", []) == "Pet"
        assert infer_entity_name("/order-items", []) == "OrderItem"

    def test_infer_none(self) -> None:
        assert infer_entity_name("/{id}", []) is None

    def test_methods_in_fixed_order(self) -> None:
        endpoints = extract_endpoints(
            {
                "/pets": {
                    "delete": {"operationId": "purge"},
                    "get": {"operationId": "list"},
                    "parameters": [],
                }
            }
        )
        assert [e.method for e in endpoints] == ["GET", "DELETE"]
        assert endpoints[0].operation_id == "list"

    def test_empty_paths(self) -> None:
        assert extract_endpoints({}) == []
