# File: erimport/diagnostics.py
"""
ERImport - Diagnostics Accumulator
====================================
Every pipeline stage returns its own ``ValidationResult`` next to its value;
the orchestrator merges them at stage boundaries in pipeline order.  There
is no module-level collector, so concurrent imports never share state.

The same accumulator backs the strict validator, where ``error`` items make
a document invalid.  Under the lenient import path only ``warning`` items
are produced and they surface as ``ImportResult.warnings``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.diagnostics")

# ---------------------------------------------------------------------------
# Diagnostic codes
# ---------------------------------------------------------------------------

INVALID_FORMAT: str = "INVALID_FORMAT"
MISSING_VERSION: str = "MISSING_VERSION"
INVALID_VERSION: str = "INVALID_VERSION"
UNSUPPORTED_VERSION: str = "UNSUPPORTED_VERSION"
MISSING_INFO: str = "MISSING_INFO"
INFO_INCOMPLETE: str = "INFO_INCOMPLETE"
NO_PATHS: str = "NO_PATHS"
INVALID_PATH: str = "INVALID_PATH"
NO_SCHEMAS: str = "NO_SCHEMAS"
INVALID_SCHEMA: str = "INVALID_SCHEMA"
UNTYPED_SCHEMA: str = "UNTYPED_SCHEMA"
EMPTY_OBJECT_SCHEMA: str = "EMPTY_OBJECT_SCHEMA"
NO_ENTITIES: str = "NO_ENTITIES"
UNRESOLVED_RELATION: str = "UNRESOLVED_RELATION"
COLLAPSED_RELATION: str = "COLLAPSED_RELATION"
PRIMITIVE_ARRAY_OMITTED: str = "PRIMITIVE_ARRAY_OMITTED"
UNSUPPORTED_PROPERTY: str = "UNSUPPORTED_PROPERTY"
DUPLICATE_FIELD: str = "DUPLICATE_FIELD"


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight diagnostic descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """
    Accumulates ``ValidationError`` instances produced by a pipeline stage.

    Insertion order is preserved, so merged results read in pipeline order.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))
        logger.debug("Warning recorded [%s]: %s", code, message)

    def merge(self, other: "ValidationResult") -> None:
        """Merge another result into this one, keeping order."""
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def warning_messages(self) -> List[str]:
        return [e.message for e in self._items if e.is_warning]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def has_code(self, code: str) -> bool:
        return any(e.code == code for e in self._items)

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            if item.context:
                for k, v in item.context.items():
                    lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "INVALID_FORMAT",
    "MISSING_VERSION",
    "INVALID_VERSION",
    "UNSUPPORTED_VERSION",
    "MISSING_INFO",
    "INFO_INCOMPLETE",
    "NO_PATHS",
    "INVALID_PATH",
    "NO_SCHEMAS",
    "INVALID_SCHEMA",
    "UNTYPED_SCHEMA",
    "EMPTY_OBJECT_SCHEMA",
    "NO_ENTITIES",
    "UNRESOLVED_RELATION",
    "COLLAPSED_RELATION",
    "PRIMITIVE_ARRAY_OMITTED",
    "UNSUPPORTED_PROPERTY",
    "DUPLICATE_FIELD",
]

logger.debug("erimport.diagnostics loaded — %d public symbols.", len(__all__))
