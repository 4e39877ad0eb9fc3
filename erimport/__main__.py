# File: erimport/__main__.py
"""
ERImport — Module entry point.

Allows running the importer directly via::

    python -m erimport --schema openapi.yaml --output model.json

This module simply delegates to the CLI entry point defined in ``erimport.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from erimport.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
