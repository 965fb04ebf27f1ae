"""
Column-based treemap packing.

Fills a container with vertical columns, left to right.  Each entity gets
a rectangle whose area is proportional to its magnitude (subject to a
minimum-area floor), shaped so it is never more than ``max_aspect_ratio``
times wider than it is tall.  This is a greedy single-pass heuristic, not
an optimal squarified treemap: identical inputs always give identical
geometry.  Outputs expose Shapely boxes for verification.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from shapely.geometry import Polygon, box

from .entity import Entity, LayoutConfigError, sort_entities

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PackerConfig:
    """
    Shape and spacing constants for one layout mode.

    Fractions are relative to the container; ``gap`` and
    ``overlap_compensation`` are in container units.
    """

    area_scale: float = 0.75
    min_area_fraction: float = 0.001
    min_width_fraction: float = 0.03
    min_height_fraction: float = 0.025
    max_aspect_ratio: float = 0.9
    width_tolerance: float = 0.2
    gap: float = 0.5
    overlap_compensation: float = 0.3

    def validate(self) -> "PackerConfig":
        if not 0 < self.area_scale <= 1:
            raise LayoutConfigError(f"area_scale must be in (0, 1], got {self.area_scale}")
        if self.max_aspect_ratio <= 0:
            raise LayoutConfigError(
                f"max_aspect_ratio must be positive, got {self.max_aspect_ratio}"
            )
        for name in ("min_width_fraction", "min_height_fraction"):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise LayoutConfigError(f"{name} must be in (0, 1], got {value}")
        for name in ("min_area_fraction", "width_tolerance", "gap", "overlap_compensation"):
            value = getattr(self, name)
            if value < 0:
                raise LayoutConfigError(f"{name} must be non-negative, got {value}")
        return self


# Portrait blocks (height >= width), as on the treemap page.
TREEMAP_CONFIG = PackerConfig()

# Blocks may be up to 1.5x wider than tall.
SQUARISH_CONFIG = PackerConfig(
    area_scale=0.9,
    max_aspect_ratio=1.5,
    width_tolerance=0.25,
    gap=0.25,
    overlap_compensation=0.0,
)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Placement:
    """A rectangle assigned to one entity."""

    entity: Entity
    x: float
    y: float
    width: float
    height: float
    column_index: int
    target_area: float

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        """width / height; ``inf`` for a degenerate zero-height block."""
        if self.height <= 0:
            return 0.0 if self.width <= 0 else float("inf")
        return self.width / self.height

    def to_polygon(self) -> Polygon:
        """Convert to a Shapely box."""
        return box(self.x, self.y, self.x + self.width, self.y + self.height)

    def to_percent(self, container_width: float, container_height: float) -> "Placement":
        """Express the rectangle as 0-100 fractions of the container."""
        sx = 100.0 / container_width
        sy = 100.0 / container_height
        return replace(
            self,
            x=self.x * sx,
            y=self.y * sy,
            width=self.width * sx,
            height=self.height * sy,
            target_area=self.target_area * sx * sy,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.entity.name,
            "magnitude": self.entity.magnitude,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "column_index": self.column_index,
            "target_area": self.target_area,
        }


# ---------------------------------------------------------------------------
# Column model
# ---------------------------------------------------------------------------

class _Column:
    """Vertical strip with a fixed x and width and a running y cursor."""

    __slots__ = ("index", "x", "width", "current_y", "count")

    def __init__(self, index: int, x: float, width: float):
        self.index = index
        self.x = x
        self.width = width
        self.current_y = 0.0
        self.count = 0

    def offset(self, gap: float) -> float:
        return gap if self.count else 0.0

    def fits(self, item_height: float, gap: float, container_height: float) -> bool:
        return self.current_y + self.offset(gap) + item_height <= container_height


class _ColumnPacker:
    """Mutable working state of one packing pass."""

    def __init__(self, width: float, height: float, config: PackerConfig):
        self.width = width
        self.height = height
        self.config = config
        self.min_width = width * config.min_width_fraction
        self.min_height = height * config.min_height_fraction
        self.columns: List[_Column] = []
        self.clipped = 0

    # --- sizing -----------------------------------------------------------

    def _height_for_width(self, area: float, width: float) -> float:
        """Height of a block of *area* in a strip of *width*, aspect-clamped."""
        h = max(area / width, self.min_height)
        if width / h > self.config.max_aspect_ratio:
            h = width / self.config.max_aspect_ratio
        return h

    def _ideal_size(self, area: float) -> Tuple[float, float]:
        """Square block clamped to the minimums, then tilted to the aspect bound."""
        max_ar = self.config.max_aspect_ratio
        side = math.sqrt(area)
        w = max(side, self.min_width)
        h = max(side, self.min_height)
        if w / h > max_ar:
            # same area, narrower and taller
            w = max(math.sqrt(area * max_ar), self.min_width)
            h = max(area / w, self.min_height, w / max_ar)
        return w, h

    # --- column search ----------------------------------------------------

    def _find_column(self, area: float, ideal_width: float) -> Optional[_Column]:
        """First-fit by width band, then first-fit by room alone."""
        gap = self.config.gap
        tolerance = ideal_width * self.config.width_tolerance
        for col in self.columns:
            if abs(col.width - ideal_width) <= tolerance:
                if col.fits(self._height_for_width(area, col.width), gap, self.height):
                    return col
        for col in self.columns:
            if col.fits(self._height_for_width(area, col.width), gap, self.height):
                return col
        return None

    def _open_column(self, area: float, ideal_width: float) -> Optional[_Column]:
        """Open a column right of the last one; None when no width is left."""
        if self.columns:
            last = self.columns[-1]
            spacing = max(self.config.gap - self.config.overlap_compensation, 0.0)
            x = last.x + last.width + spacing
        else:
            x = 0.0

        col_width = ideal_width
        if self._height_for_width(area, col_width) > self.height:
            col_width = max(
                col_width,
                min(area / self.height, self.height * self.config.max_aspect_ratio),
            )

        remaining = self.width - x
        if col_width > remaining:
            if remaining >= self.min_width or not self.columns:
                col_width = remaining
            else:
                return None

        col = _Column(len(self.columns), x, col_width)
        self.columns.append(col)
        return col

    # --- placement --------------------------------------------------------

    def place(self, entity: Entity, area: float) -> Placement:
        ideal_width, _ = self._ideal_size(area)
        col = self._find_column(area, ideal_width)
        if col is None:
            col = self._open_column(area, ideal_width)
        if col is None:
            # Right edge reached: the last column absorbs the overflow.
            col = self.columns[-1]
            logger.debug(f"No room for {entity.name!r}, appending to column {col.index}")

        w = col.width
        h = self._height_for_width(area, w)
        y = col.current_y + col.offset(self.config.gap)

        if y + h > self.height:
            y = min(y, self.height)
            h = self.height - y
            if h <= 0:
                w = h = 0.0
            elif w / h > self.config.max_aspect_ratio:
                w = h * self.config.max_aspect_ratio
            self.clipped += 1
            logger.debug(
                f"Clipped {entity.name!r} in column {col.index}: "
                f"{w:.3f}x{h:.3f} (wanted area {area:.3f})"
            )

        col.current_y = y + h
        col.count += 1
        return Placement(
            entity=entity,
            x=col.x,
            y=y,
            width=w,
            height=h,
            column_index=col.index,
            target_area=area,
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def pack(
    entities: Sequence[Entity],
    width: float,
    height: float,
    config: Optional[PackerConfig] = None,
) -> List[Placement]:
    """
    Pack *entities* into a *width* x *height* container.

    Parameters
    ----------
    entities : sequence[Entity]
        Validated entities, in any order.
    width, height : float
        Container size, any positive unit (percentages included).
    config : PackerConfig, optional
        Shape constants.  Defaults to ``TREEMAP_CONFIG``.

    Returns
    -------
    list[Placement]
        One placement per entity, largest magnitude first, in the
        container's unit system.
    """
    config = (config or TREEMAP_CONFIG).validate()
    if width <= 0 or height <= 0:
        raise LayoutConfigError(f"Container must be positive, got {width}x{height}")
    if not entities:
        return []

    ordered = sort_entities(entities)
    top = max(ordered[0].magnitude, 0.0) or 1.0
    total = sum(max(e.magnitude, 0.0) / top for e in ordered) or 1.0
    container_area = width * height
    min_area = container_area * config.min_area_fraction

    packer = _ColumnPacker(width, height, config)
    placements = []
    for entity in ordered:
        ideal = entity.magnitude / top / total * container_area * config.area_scale
        placements.append(packer.place(entity, max(ideal, min_area)))

    if packer.clipped:
        logger.warning(
            f"{packer.clipped} of {len(ordered)} entities clipped at the container edge"
        )
    logger.debug(
        f"Packed {len(placements)} entities into {len(packer.columns)} columns "
        f"({width}x{height})"
    )
    return placements


def build_treemap(
    entities: Sequence[Entity],
    width: float = 100.0,
    height: float = 100.0,
    config: Optional[PackerConfig] = None,
) -> List[Placement]:
    """Pack and express every placement in percent of the container."""
    return [p.to_percent(width, height) for p in pack(entities, width, height, config)]


def column_count(placements: Sequence[Placement]) -> int:
    if not placements:
        return 0
    return max(p.column_index for p in placements) + 1
