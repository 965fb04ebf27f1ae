"""Label-density tiers for treemap blocks."""

from typing import Dict, List, Sequence
from urllib.parse import urlsplit

from .column_packer import Placement, column_count

FULL = "full"
COMPACT = "compact"
MINIMAL = "minimal"

COMPACT_FROM_COLUMN = 2
MINIMAL_TRAILING_COLUMNS = 4

REFERRAL_HOST = "trustmrr.com"
REFERRAL_TAG = "ref=gridmrr"


def label_tier(column_index: int, n_columns: int) -> str:
    """
    Full label in the first two columns, magnitude only from the third,
    logo only in the last four.
    """
    if column_index >= max(0, n_columns - MINIMAL_TRAILING_COLUMNS):
        return MINIMAL
    if column_index >= COMPACT_FROM_COLUMN:
        return COMPACT
    return FULL


def label_tiers(placements: Sequence[Placement]) -> List[str]:
    n = column_count(placements)
    return [label_tier(p.column_index, n) for p in placements]


def tier_counts(placements: Sequence[Placement]) -> Dict[str, int]:
    counts = {FULL: 0, COMPACT: 0, MINIMAL: 0}
    for tier in label_tiers(placements):
        counts[tier] += 1
    return counts


def with_referral(link: str) -> str:
    """Tag record-store links with the referral parameter."""
    if not link or REFERRAL_HOST not in urlsplit(link).netloc:
        return link
    sep = "&" if "?" in link else "?"
    return f"{link}{sep}{REFERRAL_TAG}"
