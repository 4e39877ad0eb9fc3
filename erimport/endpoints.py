# File: erimport/endpoints.py
"""
ERImport - Endpoint Inventory
===============================
Lists the HTTP operations declared under ``paths`` and guesses which entity
each one serves: the first tag, singularised, or else the last path segment
that is not a ``{parameter}``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from erimport.models import EndpointInfo, HttpMethod
from erimport.utils import sanitize_name, to_pascal_case, to_singular

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.endpoints")


def infer_entity_name(path: str, tags: List[str]) -> Optional[str]:
    """
    Entity an operation most likely belongs to.

    Examples:
        >>> infer_entity_name("/pets/{petId}", [])
        'Pet'
        >>> infer_entity_name("/anything", ["Categories"])
        'Category'
    """
    if tags:
        name: str = to_pascal_case(sanitize_name(to_singular(tags[0]), fallback=""))
        if name:
            return name
    for segment in reversed([part for part in path.split("/") if part]):
        if segment.startswith("{"):
            continue
        name = to_pascal_case(sanitize_name(to_singular(segment), fallback=""))
        if name:
            return name
    return None


def _optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def extract_endpoints(paths: Dict[str, Any]) -> List[EndpointInfo]:
    """One ``EndpointInfo`` per operation, in path then method order."""
    endpoints: List[EndpointInfo] = []

    if not paths:
        logger.debug("Document has no paths; no endpoints extracted.")
        return endpoints

    for path, path_item in paths.items():
        if not isinstance(path, str) or not path or not isinstance(path_item, Mapping):
            continue
        for method in HttpMethod:
            operation: Any = path_item.get(method.value.lower())
            if not isinstance(operation, Mapping):
                continue
            raw_tags: Any = operation.get("tags")
            tags: List[str] = (
                [str(tag) for tag in raw_tags] if isinstance(raw_tags, list) else []
            )
            endpoints.append(
                EndpointInfo(
                    path=path,
                    method=method,
                    operation_id=_optional_text(operation.get("operationId")),
                    summary=_optional_text(operation.get("summary"))
                    or _optional_text(operation.get("description")),
                    tags=tags,
                    entity_name=infer_entity_name(path, tags),
                )
            )

    logger.info("Extracted %d endpoint(s) from %d path(s).", len(endpoints), len(paths))
    return endpoints


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "infer_entity_name",
    "extract_endpoints",
]

logger.debug("erimport.endpoints loaded — %d public symbols.", len(__all__))
