"""
Discrete pixel-grid apportionment.

Partitions a fixed ``cols x rows`` grid of unit cells across entities in
proportion to magnitude.  Cell counts use the largest-remainder method, so
they always sum to the grid capacity exactly; each entity then owns one
contiguous run of cells, largest magnitude first.

The ownership buffer is a flat numpy array in row-major order.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .entity import Entity, LayoutConfigError, sort_entities

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GridConfig:
    """Viewport-to-grid constants for the pixel map."""

    min_cell_size: int = 6          # CSS px
    max_cells: int = 9000           # rendering-cost cap
    header_reserve: int = 96        # px kept free above the grid
    min_cols: int = 20
    min_rows: int = 10
    scaled_min: int = 10            # floor after scaling down to max_cells
    label_cell_threshold: int = 80  # runs smaller than this get no label

    def validate(self) -> "GridConfig":
        if self.min_cell_size < 1:
            raise LayoutConfigError(f"min_cell_size must be >= 1, got {self.min_cell_size}")
        if self.max_cells < 1:
            raise LayoutConfigError(f"max_cells must be >= 1, got {self.max_cells}")
        if min(self.min_cols, self.min_rows, self.scaled_min) < 1:
            raise LayoutConfigError("grid minimums must be >= 1")
        return self


PIXEL_MAP_CONFIG = GridConfig()


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

@dataclass
class CellRun:
    """A contiguous block of cells owned by one entity."""

    entity: Entity
    index: int
    start_cell: int
    cell_count: int

    @property
    def end_cell(self) -> int:
        return self.start_cell + self.cell_count

    def to_dict(self) -> dict:
        return {
            "name": self.entity.name,
            "magnitude": self.entity.magnitude,
            "index": self.index,
            "start_cell": self.start_cell,
            "cell_count": self.cell_count,
        }


@dataclass
class PixelGrid:
    """
    Result of one apportionment pass.

    ``cell_owner[i]`` is the position in ``entities`` (magnitude-descending)
    of the entity owning cell *i*, or -1 for an empty grid.
    """

    cols: int
    rows: int
    cell_owner: np.ndarray
    runs: List[CellRun] = field(default_factory=list)
    entities: List[Entity] = field(default_factory=list)
    units_per_cell: float = 0.0

    @property
    def total_cells(self) -> int:
        return self.cols * self.rows

    def owner_at(self, col: int, row: int) -> int:
        return int(self.cell_owner[row * self.cols + col])

    def run_for(self, index: int) -> Optional[CellRun]:
        for run in self.runs:
            if run.index == index:
                return run
        return None

    def labelled_runs(self, threshold: int = PIXEL_MAP_CONFIG.label_cell_threshold) -> List[CellRun]:
        """Runs large enough to carry a label at their start cell."""
        return [r for r in self.runs if r.cell_count >= threshold]

    def to_dict(self) -> dict:
        return {
            "cols": self.cols,
            "rows": self.rows,
            "cell_owner": self.cell_owner.tolist(),
            "runs": [r.to_dict() for r in self.runs],
            "units_per_cell": self.units_per_cell,
        }


# ---------------------------------------------------------------------------
# Largest-remainder apportionment
# ---------------------------------------------------------------------------

def apportion_counts(magnitudes: Sequence[float], total_cells: int) -> List[int]:
    """
    Split *total_cells* across *magnitudes* so the counts sum exactly.

    Each share is floored, then the leftover cells go one at a time to the
    largest fractional remainders.  Equal remainders resolve by position,
    so callers pass magnitudes in display order.  Negative magnitudes count
    as zero; when every magnitude is zero the cells are split by count.
    """
    n = len(magnitudes)
    if n == 0 or total_cells <= 0:
        return [0] * n

    weights = [max(float(m), 0.0) for m in magnitudes]
    top = max(weights)
    if top > 0:
        # relative to the largest so the sum cannot overflow
        weights = [w / top for w in weights]
    total = sum(weights)
    if total <= 0:
        weights = [1.0] * n
        total = float(n)

    raw = [total_cells * w / total for w in weights]
    counts = [int(math.floor(r)) for r in raw]
    remaining = total_cells - sum(counts)

    order = sorted(range(n), key=lambda i: (-(raw[i] - counts[i]), i))
    for k in range(max(remaining, 0)):
        counts[order[k % n]] += 1
    return counts


def apportion(
    entities: Sequence[Entity],
    cols: int,
    rows: int,
    config: Optional[GridConfig] = None,
) -> PixelGrid:
    """
    Assign every cell of a *cols* x *rows* grid to exactly one entity.

    Parameters
    ----------
    entities : sequence[Entity]
        Validated entities, in any order.
    cols, rows : int
        Grid dimensions, both >= 1.

    Returns
    -------
    PixelGrid
        Ownership buffer plus one ``CellRun`` per entity with cells.
    """
    config = (config or PIXEL_MAP_CONFIG).validate()
    if cols < 1 or rows < 1:
        raise LayoutConfigError(f"Grid must be at least 1x1, got {cols}x{rows}")

    total_cells = cols * rows
    if total_cells > config.max_cells:
        logger.debug(f"Grid {cols}x{rows} exceeds the {config.max_cells}-cell cap")

    ordered = sort_entities(entities)
    if not ordered:
        return PixelGrid(cols, rows, np.full(total_cells, -1, dtype=np.int32))

    if total_cells < len(ordered):
        logger.warning(
            f"Grid capacity too small: {total_cells} cells for {len(ordered)} entities; "
            f"some entities get no cells"
        )

    counts = apportion_counts([e.magnitude for e in ordered], total_cells)
    owner = np.full(total_cells, -1, dtype=np.int32)
    runs: List[CellRun] = []

    cursor = 0
    for idx, (entity, count) in enumerate(zip(ordered, counts)):
        if count <= 0:
            continue
        end = min(total_cells, cursor + count)
        owner[cursor:end] = idx
        runs.append(CellRun(entity, idx, cursor, end - cursor))
        cursor = end

    if cursor < total_cells and runs:
        last = runs[-1]
        owner[cursor:] = last.index
        last.cell_count += total_cells - cursor
        logger.debug(f"Filled {total_cells - cursor} trailing cells with {last.entity.name!r}")

    units = sum(max(e.magnitude, 0.0) / total_cells for e in ordered)
    logger.debug(f"Apportioned {total_cells} cells across {len(runs)} runs")
    return PixelGrid(cols, rows, owner, runs, ordered, units)


# ---------------------------------------------------------------------------
# Viewport sizing
# ---------------------------------------------------------------------------

def grid_dimensions(
    viewport_width: float,
    viewport_height: float,
    config: Optional[GridConfig] = None,
) -> Tuple[int, int]:
    """
    Derive ``(cols, rows)`` for a viewport.

    Cells are at least ``min_cell_size`` px; if the grid would exceed
    ``max_cells`` both dimensions shrink by ``sqrt(max_cells / cells)``.
    """
    config = (config or PIXEL_MAP_CONFIG).validate()
    size = config.min_cell_size
    usable_height = max(viewport_height - config.header_reserve, size * 4)

    cols = max(config.min_cols, int(math.floor(viewport_width / size)))
    rows = max(config.min_rows, int(math.floor(usable_height / size)))

    if cols * rows > config.max_cells:
        scale = math.sqrt(config.max_cells / (cols * rows))
        cols = max(config.scaled_min, int(math.floor(cols * scale)))
        rows = max(config.scaled_min, int(math.floor(rows * scale)))
    return cols, rows


def build_pixel_grid(
    entities: Sequence[Entity],
    viewport_width: float,
    viewport_height: float,
    config: Optional[GridConfig] = None,
) -> PixelGrid:
    """Size the grid for a viewport, then apportion it."""
    cols, rows = grid_dimensions(viewport_width, viewport_height, config)
    return apportion(entities, cols, rows, config)
