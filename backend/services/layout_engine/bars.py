"""
Power-scaled bar lengths for the stacked-rows and vertical views.

A fractional power compresses the top of the range so the long tail stays
visible while ordering and monotonicity are kept.
"""

from dataclasses import dataclass
from typing import List, Sequence

from .entity import Entity, LayoutConfigError, sort_entities


@dataclass(frozen=True)
class Bar:
    entity: Entity
    percent: float

    def to_dict(self) -> dict:
        return {"name": self.entity.name, "magnitude": self.entity.magnitude,
                "percent": self.percent}


def scaled_bars(
    entities: Sequence[Entity],
    power: float = 0.25,
    scale: float = 1.0,
    max_percent: float = 100.0,
) -> List[Bar]:
    """
    Bar length per entity as ``(m / max_m) ** power * 100 * scale``.

    Lengths are clamped to *max_percent*; with a zero maximum every bar is 0.
    """
    if power <= 0 or scale <= 0:
        raise LayoutConfigError(f"power and scale must be positive, got {power}, {scale}")
    ordered = sort_entities(entities)
    if not ordered:
        return []
    top = ordered[0].magnitude
    bars = []
    for e in ordered:
        pct = (e.magnitude / top) ** power * 100.0 * scale if top > 0 else 0.0
        bars.append(Bar(e, min(pct, max_percent)))
    return bars
