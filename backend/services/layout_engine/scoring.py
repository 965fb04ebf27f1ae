"""
Quality checks for continuous layouts.

Evaluates a packed layout on four axes:
  1. **Containment** — every block lies inside the container.
  2. **Overlap** — no two blocks share area.
  3. **Shape** — every block respects the aspect bound.
  4. **Area accuracy** — how close each block is to its target area.
"""

from typing import Dict, List, Optional, Sequence

from shapely.geometry import box
from shapely.ops import unary_union

from .column_packer import TREEMAP_CONFIG, PackerConfig, Placement


_EPS = 1e-9


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------

def containment_violations(placements: Sequence[Placement],
                           width: float, height: float) -> List[Placement]:
    """Placements that leave ``[0, width] x [0, height]`` or have negative size."""
    container = box(-_EPS, -_EPS, width + _EPS, height + _EPS)
    bad = []
    for p in placements:
        if p.width < 0 or p.height < 0:
            bad.append(p)
        elif p.area > 0 and not container.contains(p.to_polygon()):
            bad.append(p)
    return bad


def overlap_area(placements: Sequence[Placement]) -> float:
    """Total pairwise intersection area (0.0 for a valid layout)."""
    polys = [p.to_polygon() for p in placements if p.area > 0]
    total = 0.0
    for i in range(len(polys)):
        for j in range(i + 1, len(polys)):
            if polys[i].intersects(polys[j]):
                total += polys[i].intersection(polys[j]).area
    return total


def aspect_violations(placements: Sequence[Placement],
                      max_aspect_ratio: float) -> List[Placement]:
    """Blocks more than *max_aspect_ratio* times wider than tall."""
    return [
        p for p in placements
        if p.height > 0 and p.width / p.height > max_aspect_ratio + _EPS
    ]


def area_accuracy_score(placements: Sequence[Placement], min_area: float = 0.0) -> float:
    """
    Score ∈ [0, 1].  1.0 means every block hit its target area exactly.

    Uses: ``1 - mean(|actual - target| / target)`` clamped to [0, 1].
    Blocks whose target sits at the *min_area* floor are not scored.
    """
    errors = []
    for p in placements:
        if p.target_area <= min_area * (1 + _EPS):
            continue
        err = abs(p.area - p.target_area) / p.target_area
        errors.append(min(err, 1.0))  # cap individual error at 100 %
    if not errors:
        return 1.0
    return max(0.0, 1.0 - (sum(errors) / len(errors)))


def coverage(placements: Sequence[Placement], width: float, height: float) -> float:
    """Fraction of the container covered by the union of all blocks."""
    if width <= 0 or height <= 0:
        return 0.0
    polys = [p.to_polygon() for p in placements if p.area > 0]
    if not polys:
        return 0.0
    covered = unary_union(polys).intersection(box(0, 0, width, height)).area
    return max(0.0, min(1.0, covered / (width * height)))


# ---------------------------------------------------------------------------
# Combined report
# ---------------------------------------------------------------------------

def score_layout(
    placements: Sequence[Placement],
    width: float,
    height: float,
    config: Optional[PackerConfig] = None,
) -> Dict[str, float]:
    """
    Summarise a packed layout.

    Returns
    -------
    dict
        ``area``, ``coverage``, ``overlap``, ``containment_violations``,
        ``aspect_violations``.
    """
    config = config or TREEMAP_CONFIG
    floor = width * height * config.min_area_fraction
    return {
        "area": round(area_accuracy_score(placements, floor), 4),
        "coverage": round(coverage(placements, width, height), 4),
        "overlap": round(overlap_area(placements), 4),
        "containment_violations": len(containment_violations(placements, width, height)),
        "aspect_violations": len(aspect_violations(placements, config.max_aspect_ratio)),
    }
