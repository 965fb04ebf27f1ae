"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, Field
from typing import Optional


# ---------- Records ----------
class CompanyRecord(BaseModel):
    """One entry of the company record store."""
    name: str
    mrr: Optional[float] = None
    link: str = ""
    logo: str = ""
    mom_growth: float = 0.0


class EntityIn(BaseModel):
    name: str = Field(..., min_length=1)
    magnitude: float = Field(..., ge=0, allow_inf_nan=False)
    link: str = ""
    logo: str = ""


# ---------- Treemap ----------
class PackerConfigIn(BaseModel):
    area_scale: float = 0.75
    min_area_fraction: float = 0.001
    min_width_fraction: float = 0.03
    min_height_fraction: float = 0.025
    max_aspect_ratio: float = 0.9
    width_tolerance: float = 0.2
    gap: float = 0.5
    overlap_compensation: float = 0.3


class TreemapRequest(BaseModel):
    entities: list[EntityIn]
    width: float = Field(100.0, gt=0)
    height: float = Field(100.0, gt=0)
    config: Optional[PackerConfigIn] = None


class PlacementOut(BaseModel):
    name: str
    magnitude: float
    x: float
    y: float
    width: float
    height: float
    column_index: int
    target_area: float
    tier: str
    color: str
    link: str = ""
    logo: str = ""


class TreemapResponse(BaseModel):
    width: float
    height: float
    columns: int
    placements: list[PlacementOut]
    tiers: dict[str, int]
    score: dict


# ---------- Pixel map ----------
class PixelMapRequest(BaseModel):
    entities: list[EntityIn]
    cols: int = Field(..., ge=1, le=1000)
    rows: int = Field(..., ge=1, le=1000)


class CellRunOut(BaseModel):
    name: str
    magnitude: float
    index: int
    start_cell: int
    cell_count: int
    labelled: bool
    color: str
    link: str = ""
    logo: str = ""


class PixelMapResponse(BaseModel):
    cols: int
    rows: int
    cell_owner: list[int]
    runs: list[CellRunOut]
    units_per_cell: float


# ---------- Bars ----------
class BarOut(BaseModel):
    name: str
    magnitude: float
    percent: float
    color: str
    link: str = ""
    logo: str = ""
