"""Layout routes consumed by the rendering front end.

Endpoints:
  GET  /api/layout/treemap     — Column treemap of the stored companies (percent units)
  POST /api/layout/treemap     — Column treemap of caller-supplied entities
  GET  /api/layout/pixel-map   — Pixel grid sized for a viewport
  POST /api/layout/pixel-map   — Pixel grid for caller-supplied entities and grid size
  GET  /api/layout/bars        — Power-scaled bar lengths
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from schemas import (
    BarOut,
    CellRunOut,
    EntityIn,
    PixelMapRequest,
    PixelMapResponse,
    PlacementOut,
    TreemapRequest,
    TreemapResponse,
)
from services.companies import load_companies
from services.layout_engine import (
    PIXEL_MAP_CONFIG,
    Entity,
    LayoutError,
    PackerConfig,
    PixelGrid,
    apportion,
    build_pixel_grid,
    column_count,
    pack,
    scaled_bars,
    score_layout,
)
from services.layout_engine.labels import label_tiers, tier_counts, with_referral
from services.layout_engine.palette import pick_gradient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/layout", tags=["layout"])


def _stored_entities() -> List[Entity]:
    try:
        return load_companies()
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Company records not found")


def _to_entities(items: List[EntityIn]) -> List[Entity]:
    names = [e.name for e in items]
    if len(set(names)) != len(names):
        raise HTTPException(status_code=400, detail="Entity names must be unique")
    return [Entity(name=e.name, magnitude=e.magnitude, link=e.link, logo=e.logo) for e in items]


def _treemap_response(entities: List[Entity], width: float, height: float,
                      config: Optional[PackerConfig] = None) -> TreemapResponse:
    try:
        placements = pack(entities, width, height, config)
    except LayoutError as e:
        raise HTTPException(status_code=400, detail=str(e))

    score = score_layout(placements, width, height, config)
    out = []
    for i, (p, tier) in enumerate(zip(placements, label_tiers(placements))):
        pct = p.to_percent(width, height)
        out.append(PlacementOut(
            **pct.to_dict(),
            tier=tier,
            color=pick_gradient(i),
            link=with_referral(p.entity.link),
            logo=p.entity.logo,
        ))
    return TreemapResponse(width=width, height=height, columns=column_count(placements),
                           placements=out, tiers=tier_counts(placements), score=score)


def _pixel_map_response(grid: PixelGrid) -> PixelMapResponse:
    labelled = {run.index for run in grid.labelled_runs()}
    runs = [
        CellRunOut(
            **run.to_dict(),
            labelled=run.index in labelled,
            color=pick_gradient(run.index, lighten=35),
            link=with_referral(run.entity.link),
            logo=run.entity.logo,
        )
        for run in grid.runs
    ]
    return PixelMapResponse(
        cols=grid.cols,
        rows=grid.rows,
        cell_owner=grid.cell_owner.tolist(),
        runs=runs,
        units_per_cell=grid.units_per_cell,
    )


# ---------- Treemap ----------

@router.get("/treemap", response_model=TreemapResponse)
async def stored_treemap(
    width: float = Query(100.0, gt=0),
    height: float = Query(100.0, gt=0),
):
    """Column treemap of the stored companies; placements are in percent."""
    return _treemap_response(_stored_entities(), width, height)


@router.post("/treemap", response_model=TreemapResponse)
async def custom_treemap(data: TreemapRequest):
    """Column treemap of the entities in the request body."""
    config = PackerConfig(**data.config.model_dump()) if data.config else None
    return _treemap_response(_to_entities(data.entities), data.width, data.height, config)


# ---------- Pixel map ----------

@router.get("/pixel-map", response_model=PixelMapResponse)
async def stored_pixel_map(
    viewport_width: int = Query(1280, ge=1),
    viewport_height: int = Query(800, ge=1),
):
    """Pixel grid of the stored companies sized for the caller's viewport."""
    grid = build_pixel_grid(_stored_entities(), viewport_width, viewport_height)
    return _pixel_map_response(grid)


@router.post("/pixel-map", response_model=PixelMapResponse)
async def custom_pixel_map(data: PixelMapRequest):
    """Pixel grid of the entities in the request body."""
    if data.cols * data.rows > PIXEL_MAP_CONFIG.max_cells:
        raise HTTPException(
            status_code=400,
            detail=f"Grid exceeds {PIXEL_MAP_CONFIG.max_cells} cells",
        )
    try:
        grid = apportion(_to_entities(data.entities), data.cols, data.rows)
    except LayoutError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _pixel_map_response(grid)


# ---------- Bars ----------

@router.get("/bars", response_model=List[BarOut])
async def stored_bars(
    scale: float = Query(1.0, gt=0),
    power: float = Query(0.25, gt=0),
):
    """Bar lengths for the stacked-rows (scale 3) and vertical (scale 1) views."""
    bars = scaled_bars(_stored_entities(), power=power, scale=scale)
    return [
        BarOut(**b.to_dict(), color=pick_gradient(i),
               link=with_referral(b.entity.link), logo=b.entity.logo)
        for i, b in enumerate(bars)
    ]
