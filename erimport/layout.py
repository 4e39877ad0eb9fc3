# File: erimport/layout.py
"""
ERImport - Grid Layout
========================
Deterministic canvas positions: entities are laid out row by row on a
square-ish grid of ``ceil(sqrt(N))`` columns.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional

from erimport.models import ImportOptions, Position

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("erimport.layout")


def grid_columns(count: int) -> int:
    """Number of grid columns for *count* entities (at least 1)."""
    if count <= 0:
        return 1
    return math.ceil(math.sqrt(count))


def grid_positions(count: int, options: Optional[ImportOptions] = None) -> List[Position]:
    """
    Positions for *count* entities, in entity order.

    Examples:
        >>> [(p.x, p.y) for p in grid_positions(3)]
        [(100, 100), (400, 100), (100, 350)]
    """
    opts: ImportOptions = options or ImportOptions()
    columns: int = grid_columns(count)
    positions: List[Position] = [
        Position(
            x=opts.start_x + (index % columns) * opts.spacing_x,
            y=opts.start_y + (index // columns) * opts.spacing_y,
        )
        for index in range(count)
    ]
    logger.debug("Laid out %d entities on %d column(s).", count, columns)
    return positions


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "grid_columns",
    "grid_positions",
]

logger.debug("erimport.layout loaded — %d public symbols.", len(__all__))
