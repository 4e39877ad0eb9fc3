# File: erimport/exporters.py
"""
ERImport - Model Exporter
===========================

Responsible for:
    1. Rendering an ``ImportResult`` as JSON or YAML text.
    2. Writing the rendered model to disk atomically (write-to-temp then
       rename), so readers never observe a half-written file.
    3. Returning an ``ExportRecord`` with size and checksum for
       reproducibility checks.

Re-running an export on the same path is always safe: the previous file is
replaced in one step.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

import yaml

from erimport.models import ImportResult, ValidationReport
from erimport.utils import Timer, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.exporters")

OUTPUT_FORMATS: Tuple[str, ...] = ("json", "yaml")

_YAML_SUFFIXES: FrozenSet[str] = frozenset({".yaml", ".yml"})


# ---------------------------------------------------------------------------
# Errors and records
# ---------------------------------------------------------------------------


class ExportError(RuntimeError):
    """Raised when a rendered model can't be written to disk."""


@dataclass(frozen=True, slots=True)
class ExportRecord:
    """Immutable record of a single exported model file."""

    path: str
    size_bytes: int
    sha256: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "size_bytes": self.size_bytes,
            "sha256": self.sha256,
        }


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_for_path(path: Path, default: str = "json") -> str:
    """
    Output format implied by a file extension.

    Examples:
        >>> format_for_path(Path("model.yml"))
        'yaml'
        >>> format_for_path(Path("model.out"))
        'json'
    """
    if path.suffix.lower() in _YAML_SUFFIXES:
        return "yaml"
    if path.suffix.lower() == ".json":
        return "json"
    return default


def render_result(
    result: Union[ImportResult, ValidationReport],
    fmt: str = "json",
    indent_size: int = 2,
) -> str:
    """
    Render an import result (or validation report) as text.

    Keys keep model order and use their camelCase aliases.

    Raises:
        ValueError: If *fmt* is not ``json`` or ``yaml``.
    """
    data: Dict[str, Any] = result.to_dict()
    if fmt == "json":
        return json.dumps(data, indent=indent_size, ensure_ascii=False) + "\n"
    if fmt == "yaml":
        return yaml.safe_dump(
            data,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            indent=indent_size,
        )
    raise ValueError(f"Unsupported output format '{fmt}'. Expected one of {OUTPUT_FORMATS}.")


# ---------------------------------------------------------------------------
# ModelExporter
# ---------------------------------------------------------------------------


class ModelExporter:
    """
    Writes a rendered ``ImportResult`` to the filesystem.

    Usage::

        exporter = ModelExporter(fmt="yaml")
        record = exporter.export(result, Path("./model.yaml"))
        print(record.sha256)
    """

    def __init__(self, fmt: Optional[str] = None, *, atomic_writes: bool = True) -> None:
        """
        Args:
            fmt: ``json`` or ``yaml``; inferred from the target path when None.
            atomic_writes: If True, use the write-to-temp+rename pattern.
        """
        if fmt is not None and fmt not in OUTPUT_FORMATS:
            raise ValueError(
                f"Unsupported output format '{fmt}'. Expected one of {OUTPUT_FORMATS}."
            )
        self._fmt: Optional[str] = fmt
        self._atomic_writes: bool = atomic_writes

    def export(self, result: ImportResult, path: Path) -> ExportRecord:
        """
        Render *result* and write it to *path*.

        Raises:
            ExportError: If the file can't be written.
        """
        target: Path = path.resolve()
        fmt: str = self._fmt or format_for_path(target)

        with Timer("export") as timer:
            content: str = render_result(result, fmt)
            try:
                size_bytes: int = write_file(target, content, atomic=self._atomic_writes)
            except OSError as exc:
                logger.error("Failed to write %s: %s", target, exc)
                raise ExportError(f"Failed to write {target}: {exc}") from exc

        record: ExportRecord = ExportRecord(
            path=str(target),
            size_bytes=size_bytes,
            sha256=sha256_hex(content),
        )
        logger.info(
            "Exported %d entities as %s to %s (%d bytes, %.3fs).",
            result.entity_count,
            fmt,
            target,
            size_bytes,
            timer.elapsed,
        )
        return record


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "OUTPUT_FORMATS",
    "ExportError",
    "ExportRecord",
    "format_for_path",
    "render_result",
    "ModelExporter",
]

logger.debug("erimport.exporters loaded — %d public symbols.", len(__all__))
