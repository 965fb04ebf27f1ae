"""
Company record store.

Reads the fixed JSON list produced by the scraper, drops records the
layout engines cannot represent, deduplicates on ``(name, mrr)`` and returns
engine entities sorted by MRR descending.
"""

import json
import logging
import math
from pathlib import Path
from typing import Iterable, List, Optional

from pydantic import ValidationError

from schemas import CompanyRecord
from services.layout_engine import Entity, sort_entities

logger = logging.getLogger(__name__)


def parse_companies(records: Iterable[dict]) -> List[Entity]:
    """
    Validate raw records and convert them to entities.

    Records with an empty name or an unknown, negative or non-finite MRR
    are skipped with a warning.  The first record of each ``(name, mrr)``
    pair wins.
    """
    seen = set()
    entities: List[Entity] = []
    skipped = 0
    for raw in records:
        try:
            rec = CompanyRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Skipping malformed record {raw!r}: {e.error_count()} errors")
            skipped += 1
            continue
        name = rec.name.strip()
        if not name or rec.mrr is None or not math.isfinite(rec.mrr) or rec.mrr < 0:
            logger.warning(f"Skipping record {rec.name!r} with invalid MRR {rec.mrr!r}")
            skipped += 1
            continue
        key = (name, rec.mrr)
        if key in seen:
            logger.debug(f"Duplicate record {name!r} ({rec.mrr})")
            continue
        seen.add(key)
        entities.append(Entity(
            name=name,
            magnitude=rec.mrr,
            link=rec.link,
            logo=rec.logo,
            growth=rec.mom_growth,
        ))
    if skipped:
        logger.warning(f"Dropped {skipped} invalid company records")
    return sort_entities(entities)


def load_companies(path: Optional[Path] = None) -> List[Entity]:
    """Load entities from the JSON record store (``config.COMPANIES_PATH``)."""
    if path is None:
        from config import COMPANIES_PATH
        path = COMPANIES_PATH
    with open(path, "r", encoding="utf-8") as f:
        records = json.load(f)
    entities = parse_companies(records)
    logger.info(f"Loaded {len(entities)} companies from {path}")
    return entities
