"""
Layout Engine for magnitude-weighted maps.

Provides a column-based treemap packer (continuous rectangles) and a
largest-remainder pixel-grid apportioner (discrete cells).  Both are pure:
every call recomputes geometry from the full entity list.
"""

from .entity import (
    Entity,
    InvalidEntityError,
    LayoutConfigError,
    LayoutError,
    sort_entities,
)
from .column_packer import (
    SQUARISH_CONFIG,
    TREEMAP_CONFIG,
    PackerConfig,
    Placement,
    build_treemap,
    column_count,
    pack,
)
from .apportion import (
    PIXEL_MAP_CONFIG,
    CellRun,
    GridConfig,
    PixelGrid,
    apportion,
    apportion_counts,
    build_pixel_grid,
    grid_dimensions,
)
from .bars import Bar, scaled_bars
from .scoring import score_layout

__all__ = [
    "Entity",
    "InvalidEntityError",
    "LayoutConfigError",
    "LayoutError",
    "sort_entities",
    "SQUARISH_CONFIG",
    "TREEMAP_CONFIG",
    "PackerConfig",
    "Placement",
    "build_treemap",
    "column_count",
    "pack",
    "PIXEL_MAP_CONFIG",
    "CellRun",
    "GridConfig",
    "PixelGrid",
    "apportion",
    "apportion_counts",
    "build_pixel_grid",
    "grid_dimensions",
    "Bar",
    "scaled_bars",
    "score_layout",
]
