"""
Entity model for magnitude-weighted layouts.

Each entity is a company with a monthly recurring revenue figure (its
*magnitude*).  Entities are immutable inputs to a layout pass; the engines
never mutate or persist them.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List


class LayoutError(Exception):
    """Base class for layout engine errors."""


class InvalidEntityError(LayoutError, ValueError):
    """An entity carries a negative or non-finite magnitude."""


class LayoutConfigError(LayoutError, ValueError):
    """Layout constants or grid dimensions are out of range."""


@dataclass(frozen=True)
class Entity:
    """A single weighted entity in a layout pass."""

    name: str
    magnitude: float
    link: str = ""
    logo: str = ""
    growth: float = 0.0

    def __post_init__(self):
        try:
            value = float(self.magnitude)
        except (TypeError, ValueError):
            raise InvalidEntityError(
                f"Entity {self.name!r} has non-numeric magnitude {self.magnitude!r}"
            ) from None
        if not math.isfinite(value) or value < 0:
            raise InvalidEntityError(
                f"Entity {self.name!r} has invalid magnitude {self.magnitude!r}"
            )
        object.__setattr__(self, "magnitude", value)

    def to_dict(self) -> dict:
        """Serialize using the record store's field names."""
        return {
            "name": self.name,
            "mrr": self.magnitude,
            "link": self.link,
            "logo": self.logo,
            "mom_growth": self.growth,
        }

    @staticmethod
    def from_dict(d: dict) -> "Entity":
        """
        Build an entity from a company record.

        Accepts either ``mrr`` (record store naming) or ``magnitude``.
        """
        magnitude = d.get("mrr", d.get("magnitude", 0.0))
        return Entity(
            name=str(d.get("name", "")),
            magnitude=magnitude,
            link=d.get("link") or "",
            logo=d.get("logo") or "",
            growth=float(d.get("mom_growth") or 0.0),
        )


def sort_entities(entities: Iterable[Entity]) -> List[Entity]:
    """Magnitude descending; ties keep their input order."""
    return sorted(entities, key=lambda e: e.magnitude, reverse=True)


def total_magnitude(entities: Iterable[Entity]) -> float:
    return sum(max(e.magnitude, 0.0) for e in entities)
