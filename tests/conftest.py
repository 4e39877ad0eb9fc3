"""
tests/conftest.py
Shared fixtures for the erimport test suite.

All fixtures are session-scoped or function-scoped as appropriate.
No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Callable, Dict, Optional

import pytest
import yaml


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
OPENAPI_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "openapi_example.yaml"

REF_PREFIX: str = "#/components/schemas/"


# ---------------------------------------------------------------------------
# Reference document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_openapi_dict() -> Dict[str, Any]:
    """Load the reference openapi_example.yaml once per session and return as dict."""
    assert OPENAPI_EXAMPLE_PATH.exists(), (
        f"Reference document not found at {OPENAPI_EXAMPLE_PATH}. "
        "Make sure openapi_example.yaml is in the project root."
    )
    with open(OPENAPI_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def openapi_dict(raw_openapi_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_openapi_dict)


@pytest.fixture(scope="session")
def openapi_yaml_text() -> str:
    """Raw text of the reference document."""
    return OPENAPI_EXAMPLE_PATH.read_text(encoding="utf-8")


@pytest.fixture()
def openapi_json_text(openapi_dict: Dict[str, Any]) -> str:
    """The reference document re-serialised as JSON (key order kept)."""
    return json.dumps(openapi_dict, indent=2)


@pytest.fixture()
def openapi_yaml_path(openapi_yaml_text: str, tmp_path: pathlib.Path) -> pathlib.Path:
    """Copy the reference document into a temporary directory."""
    path = tmp_path / "openapi.yaml"
    path.write_text(openapi_yaml_text, encoding="utf-8")
    return path


@pytest.fixture()
def openapi_json_path(openapi_json_text: str, tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the JSON rendition of the reference document to a temp file."""
    path = tmp_path / "openapi.json"
    path.write_text(openapi_json_text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Document factories
# ---------------------------------------------------------------------------


def _ref(name: str) -> Dict[str, str]:
    return {"$ref": f"{REF_PREFIX}{name}"}


@pytest.fixture()
def ref() -> Callable[[str], Dict[str, str]]:
    """Build a local ``$ref`` object: ``ref("Author")``."""
    return _ref


@pytest.fixture()
def make_document() -> Callable[..., Dict[str, Any]]:
    """
    Factory for OpenAPI 3 documents around a schema map.

    Usage::

        doc = make_document({"Pet": {"type": "object", "properties": {...}}})
    """

    def _make(
        schemas: Optional[Dict[str, Any]],
        version: str = "3.0.3",
        title: str = "Test API",
        paths: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "openapi": version,
            "info": {"title": title, "version": "1.0.0", "description": "Test document"},
            "paths": paths if paths is not None else {},
        }
        if schemas is not None:
            doc["components"] = {"schemas": schemas}
        return doc

    return _make


# ---------------------------------------------------------------------------
# Minimal / edge-case document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_openapi_dict(make_document: Callable[..., Dict[str, Any]]) -> Dict[str, Any]:
    """Smallest importable document: one entity schema with one property."""
    return make_document(
        {
            "Pet": {
                "type": "object",
                "properties": {"name": {"type": "string"}},
            }
        }
    )


@pytest.fixture()
def author_post_dict(make_document: Callable[..., Dict[str, Any]]) -> Dict[str, Any]:
    """Post references Author; Author has no back-reference."""
    return make_document(
        {
            "Author": {
                "type": "object",
                "properties": {"name": {"type": "string"}},
            },
            "Post": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "author": _ref("Author"),
                },
            },
        }
    )


@pytest.fixture()
def author_post_bidirectional_dict(author_post_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Same as author_post_dict plus ``Author.posts: array<Post>``."""
    data = copy.deepcopy(author_post_dict)
    data["components"]["schemas"]["Author"]["properties"]["posts"] = {
        "type": "array",
        "items": _ref("Post"),
    }
    return data


@pytest.fixture()
def student_course_dict(make_document: Callable[..., Dict[str, Any]]) -> Dict[str, Any]:
    """Students and courses referencing each other through arrays."""
    return make_document(
        {
            "Student": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "courses": {"type": "array", "items": _ref("Course")},
                },
            },
            "Course": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "students": {"type": "array", "items": _ref("Student")},
                },
            },
        }
    )


@pytest.fixture()
def unresolved_ref_dict(make_document: Callable[..., Dict[str, Any]]) -> Dict[str, Any]:
    """Order points at a schema that does not exist."""
    return make_document(
        {
            "Order": {
                "type": "object",
                "properties": {
                    "total": {"type": "number"},
                    "customer": _ref("NonExistentSchema"),
                },
            }
        }
    )


@pytest.fixture()
def swagger_dict() -> Dict[str, Any]:
    """Swagger 2.0 document with ``definitions``."""
    return {
        "swagger": "2.0",
        "info": {"title": "Legacy Store", "version": "0.9"},
        "paths": {"/customers": {"get": {"tags": ["Customers"]}}},
        "definitions": {
            "Customer": {
                "type": "object",
                "required": ["email"],
                "properties": {
                    "id": {"type": "integer", "format": "int64"},
                    "email": {"type": "string", "format": "email"},
                },
            },
            "Invoice": {
                "type": "object",
                "properties": {
                    "amount": {"type": "number", "format": "float"},
                    "customer": {"$ref": "#/definitions/Customer"},
                },
            },
        },
    }


# ---------------------------------------------------------------------------
# Output fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Return a fresh temporary output directory."""
    out = tmp_path / "output"
    out.mkdir()
    return out
