# File: erimport/cli.py
"""
ERImport - Command-Line Interface
===================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Import and print the model as JSON
    python -m erimport --schema petstore.yaml

    # Import and write YAML next to the document
    python -m erimport -s petstore.json -o ./model.yaml --verbose

    # Keep a schema the name filter would drop, drop another one
    python -m erimport -s api.yaml --include-schema AuditResult \\
        --exclude-pattern "^Legacy"

    # Strict validation only (no model output)
    python -m erimport -s api.yaml --validate-only

    # Show version
    python -m erimport --version

Exit codes:
    0 — success
    1 — validation error
    2 — import (format) error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, NoReturn, Optional, Sequence

if TYPE_CHECKING:
    from erimport.exporters import ExportRecord
    from erimport.models import DocumentFormat, ImportOptions, ImportResult

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_IMPORT_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root erimport logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt=datefmt)
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("erimport")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from erimport import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="erimport",
        description=(
            "ERImport — OpenAPI / Swagger schema importer.\n\n"
            "Turns the schema definitions of an OpenAPI 3.x or Swagger 2.0 "
            "document (JSON/YAML) into entities, fields and inferred relations."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s petstore.yaml\n"
            "  %(prog)s -s petstore.json -o ./model.yaml --verbose\n"
            "  %(prog)s -s api.yaml --validate-only\n"
            "  %(prog)s -s api.yaml --include-schema AuditResult\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ERImport v{__version__}",
    )

    # --- Required arguments ---
    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the OpenAPI / Swagger document (JSON or YAML).",
    )

    # --- Input / output ---
    io_group = parser.add_argument_group("input and output")
    io_group.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="PATH",
        help="Write the imported model to this file instead of stdout.",
    )
    io_group.add_argument(
        "--output-format",
        type=str,
        default=None,
        choices=["json", "yaml"],
        help="Model output format (default: from --output extension, else json).",
    )
    io_group.add_argument(
        "--input-format",
        type=str,
        default="auto",
        choices=["auto", "json", "yaml"],
        help="Document format (default: auto-detect).",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the document strictly, without importing it.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Import options file (JSON or YAML).",
    )
    config_group.add_argument(
        "--no-descriptions",
        action="store_true",
        default=False,
        help="Don't copy schema and property descriptions.",
    )
    config_group.add_argument(
        "--no-defaults",
        action="store_true",
        default=False,
        help="Don't copy property default values.",
    )
    config_group.add_argument(
        "--include-schema",
        dest="include_schemas",
        action="append",
        default=[],
        metavar="NAME",
        help="Import this schema even if its name looks like a DTO (repeatable).",
    )
    config_group.add_argument(
        "--exclude-pattern",
        dest="exclude_patterns",
        action="append",
        default=[],
        metavar="REGEX",
        help="Treat schema names matching this regex as non-entities (repeatable).",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Exit with a validation error when warnings were produced.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Options builder
# ---------------------------------------------------------------------------


def _build_options(args: argparse.Namespace) -> ImportOptions:
    """
    Merge the options file (if any) with CLI overrides.

    Raises:
        FileNotFoundError: If ``--config`` points nowhere.
        ValueError: If the options are invalid.
    """
    from erimport.importer import load_options_file
    from erimport.models import ImportOptions

    base: ImportOptions = (
        load_options_file(Path(args.config).resolve())
        if args.config is not None
        else ImportOptions()
    )

    overrides: Dict[str, Any] = {}
    if args.no_descriptions:
        overrides["include_descriptions"] = False
    if args.no_defaults:
        overrides["include_defaults"] = False
    if args.include_schemas:
        merged: List[str] = list(base.include_schemas)
        for name in args.include_schemas:
            if name not in merged:
                merged.append(name)
        overrides["include_schemas"] = merged
    if args.exclude_patterns:
        overrides["exclude_patterns"] = list(base.exclude_patterns) + list(
            args.exclude_patterns
        )

    if not overrides:
        return base

    data: Dict[str, Any] = base.model_dump()
    data.update(overrides)
    return ImportOptions.model_validate(data)


def _input_format(args: argparse.Namespace) -> Optional[DocumentFormat]:
    from erimport.models import DocumentFormat

    if args.input_format == "auto":
        return None
    return DocumentFormat(args.input_format)


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(
    schema_path: Path,
    text: str,
    args: argparse.Namespace,
    options: ImportOptions,
) -> int:
    """
    Run strict validation only (no import).

    Returns the appropriate exit code.
    """
    from erimport.utils import Timer
    from erimport.validators import validate_openapi

    logger.info("Running validation-only mode for: %s", schema_path)

    with Timer("validation") as t:
        report = validate_openapi(text, _input_format(args), options)

    if not args.quiet:
        print(f"\n{'='*50}")
        print(f"  OpenAPI Validation Report")
        print(f"{'='*50}")
        print(f"  File:     {schema_path.name}")
        print(f"  Time:     {t.elapsed:.3f}s")
        print(f"  Valid:    {'Yes' if report.valid else 'No'}")

        if report.errors:
            print(f"\n  Errors ({len(report.errors)}):")
            for err in report.errors:
                print(f"    ✗ [{err.code}] {err.message}")

        if report.warnings:
            print(f"\n  Warnings ({len(report.warnings)}):")
            for warn in report.warnings:
                print(f"    ⚠ [{warn.code}] {warn.message}")

        if report.valid and not report.warnings:
            print(f"\n  ✅ All validations passed!")

        print(f"{'='*50}\n")

    if not report.valid:
        return EXIT_VALIDATION_ERROR
    if args.fail_on_warnings and report.warnings:
        logger.error("Validation produced %d warning(s).", len(report.warnings))
        return EXIT_VALIDATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Import mode
# ---------------------------------------------------------------------------


def _print_summary(result: ImportResult, record: ExportRecord) -> None:
    print(f"\n{'='*50}")
    print(f"  Import Summary: {result.project_name} v{result.version}")
    print(f"{'='*50}")
    print(f"  Entities:   {result.entity_count}")
    print(f"  Fields:     {result.total_fields}")
    print(f"  Relations:  {result.relation_count}")
    print(f"  Endpoints:  {len(result.endpoints)}")
    print(f"  Warnings:   {len(result.warnings)}")
    print(f"  Output:     {record.path}")
    print(f"  SHA-256:    {record.sha256}")
    print(f"{'='*50}\n")


def _run_import(
    text: str,
    args: argparse.Namespace,
    options: ImportOptions,
) -> int:
    """
    Run the import pipeline and write (or print) the model.

    Returns the appropriate exit code.
    """
    from erimport.document import FormatError
    from erimport.exporters import (
        ExportError,
        ExportRecord,
        ModelExporter,
        render_result,
    )
    from erimport.importer import OpenApiImporter

    importer: OpenApiImporter = OpenApiImporter(options)
    try:
        result = importer.import_source(text, _input_format(args))
    except FormatError as exc:
        logger.error("Import failed: %s", exc)
        return EXIT_IMPORT_ERROR

    for warning in result.warnings:
        logger.warning("%s", warning)

    if args.output is None:
        sys.stdout.write(render_result(result, args.output_format or "json"))
    else:
        try:
            record: ExportRecord = ModelExporter(args.output_format).export(
                result, Path(args.output)
            )
        except ExportError as exc:
            logger.error("%s", exc)
            return EXIT_EXPORT_ERROR
        if not args.quiet:
            _print_summary(result, record)

    if args.fail_on_warnings and result.warnings:
        logger.error("Import produced %d warning(s).", len(result.warnings))
        return EXIT_VALIDATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    from erimport.utils import read_file

    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    # --- Verbosity ---
    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)
    if args.quiet:
        logging.getLogger("erimport").setLevel(logging.ERROR)

    # --- Schema path ---
    schema_path: Path = Path(args.schema).resolve()

    if not schema_path.exists():
        logger.error("Schema file not found: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if not schema_path.is_file():
        logger.error("Schema path is not a file: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    # --- Options ---
    try:
        options = _build_options(args)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Invalid options: %s", exc)
        sys.exit(EXIT_INPUT_ERROR)

    try:
        text: str = read_file(schema_path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Failed to read %s: %s", schema_path, exc)
        sys.exit(EXIT_INPUT_ERROR)

    # --- Validate-only mode ---
    if args.validate_only:
        sys.exit(_run_validate_only(schema_path, text, args, options))

    logger.info("Schema:  %s", schema_path)
    logger.info("Output:  %s", args.output or "<stdout>")

    exit_code: int = _run_import(text, args, options)

    if exit_code == EXIT_SUCCESS:
        logger.info("Import completed successfully.")
    else:
        logger.error("Import failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_IMPORT_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("erimport.cli loaded.")
