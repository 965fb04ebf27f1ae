"""
Tests for the column-based treemap packer.

Covers first-fit column selection, the aspect bound, containment,
determinism and the degenerate inputs (empty list, all-zero magnitudes).
"""
import sys
import os
import random
from dataclasses import replace

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(__file__))

from services.layout_engine import (
    SQUARISH_CONFIG,
    TREEMAP_CONFIG,
    Entity,
    LayoutConfigError,
    PackerConfig,
    build_treemap,
    column_count,
    pack,
)
from services.layout_engine.scoring import (
    aspect_violations,
    containment_violations,
    overlap_area,
)


def _power_law(n: int, top: float = 1_000_000.0, alpha: float = 1.3):
    return [Entity(f"co-{i:03d}", top / (i + 1) ** alpha) for i in range(n)]


# ============================================================================
# Ordering and area
# ============================================================================

class TestProportionalArea:
    def test_three_entities_half_quarter_quarter(self):
        config = replace(TREEMAP_CONFIG, area_scale=1.0)
        entities = [Entity("B", 50), Entity("A", 100), Entity("C", 50)]
        placements = pack(entities, 100, 100, config)

        assert [p.entity.name for p in placements] == ["A", "B", "C"]
        a, b, c = placements
        assert a.target_area == pytest.approx(5000)
        assert b.target_area == pytest.approx(2500)
        assert c.target_area == pytest.approx(2500)
        assert a.area == pytest.approx(5000, rel=1e-6)
        assert b.area == pytest.approx(2500, rel=1e-6)

    def test_right_edge_overflow_is_absorbed_by_last_column(self):
        config = replace(TREEMAP_CONFIG, area_scale=1.0)
        entities = [Entity("A", 100), Entity("B", 50), Entity("C", 50)]
        _, b, c = pack(entities, 100, 100, config)

        # C cannot reach its quarter once gaps eat into a fully scaled container
        assert c.column_index == b.column_index
        assert c.y + c.height == pytest.approx(100)
        assert c.area < c.target_area

    def test_huge_magnitudes_do_not_overflow(self):
        placements = pack([Entity("a", 1e308), Entity("b", 1e308), Entity("c", 1.0)], 100, 100)
        assert placements[0].target_area == pytest.approx(placements[1].target_area)
        assert placements[0].target_area == pytest.approx(100 * 100 * TREEMAP_CONFIG.area_scale / 2)
        assert containment_violations(placements, 100, 100) == []

    def test_ties_keep_input_order(self):
        entities = [Entity(n, 10) for n in ("x", "y", "z", "w")]
        assert [p.entity.name for p in pack(entities, 100, 100)] == ["x", "y", "z", "w"]

    def test_target_area_monotone(self):
        placements = pack(_power_law(60), 100, 100)
        targets = [p.target_area for p in placements]
        assert targets == sorted(targets, reverse=True)

    @pytest.mark.parametrize("width,height", [(100, 100), (160, 90), (40, 120)])
    def test_placed_area_monotone(self, width, height):
        rng = random.Random(width * 1000 + height)
        floor = width * height * TREEMAP_CONFIG.min_area_fraction
        for _ in range(100):
            n = rng.randint(2, 60)
            alpha = rng.uniform(0.5, 2.5)
            entities = [Entity(f"e{i}", rng.uniform(1, 1e6) / (i + 1) ** alpha) for i in range(n)]
            rng.shuffle(entities)
            placements = pack(entities, width, height)
            # floored and edge-clipped blocks are exempt
            sized = [
                p for p in placements
                if p.target_area > floor * (1 + 1e-9)
                and p.area > 0
                and p.area >= p.target_area * (1 - 1e-9)
            ]
            for bigger, smaller in zip(sized, sized[1:]):
                if bigger.entity.magnitude > smaller.entity.magnitude:
                    assert bigger.area >= smaller.area * (1 - 1e-9)

    def test_minimum_area_floor(self):
        entities = [Entity("big", 1_000_000), Entity("tiny", 1), Entity("zero", 0)]
        placements = pack(entities, 100, 100)
        floor = 100 * 100 * TREEMAP_CONFIG.min_area_fraction
        assert placements[1].target_area == pytest.approx(floor)
        assert placements[2].target_area == pytest.approx(floor)
        assert placements[2].area > 0


# ============================================================================
# Column selection
# ============================================================================

class TestColumnFilling:
    def test_equal_blocks_stack_then_open_new_column(self):
        entities = [Entity(n, 25) for n in "ABCD"]
        placements = pack(entities, 100, 100)

        assert [p.column_index for p in placements] == [0, 0, 1, 1]
        first, second, third, _ = placements
        assert second.y == pytest.approx(first.height + TREEMAP_CONFIG.gap)
        assert third.x == pytest.approx(
            first.width + TREEMAP_CONFIG.gap - TREEMAP_CONFIG.overlap_compensation
        )
        assert column_count(placements) == 2

    def test_columns_do_not_overlap_horizontally(self):
        placements = pack(_power_law(150), 100, 100)
        spans = {}
        for p in placements:
            spans.setdefault(p.column_index, (p.x, p.x + p.width))
        ordered = [spans[i] for i in sorted(spans)]
        for (_, right), (left, _) in zip(ordered, ordered[1:]):
            assert left >= right

    def test_items_in_a_column_do_not_overlap_vertically(self):
        placements = pack(_power_law(150), 100, 100)
        by_column = {}
        for p in placements:
            by_column.setdefault(p.column_index, []).append(p)
        for items in by_column.values():
            items.sort(key=lambda p: p.y)
            for upper, lower in zip(items, items[1:]):
                assert lower.y >= upper.y + upper.height - 1e-9


# ============================================================================
# Invariants over skewed inputs
# ============================================================================

class TestInvariants:
    @pytest.mark.parametrize("width,height", [(100, 100), (160, 90), (40, 120)])
    def test_containment_and_aspect(self, width, height):
        placements = pack(_power_law(200), width, height)
        assert len(placements) == 200
        assert containment_violations(placements, width, height) == []
        assert aspect_violations(placements, TREEMAP_CONFIG.max_aspect_ratio) == []
        assert all(p.width >= 0 and p.height >= 0 for p in placements)

    def test_no_overlap(self):
        placements = pack(_power_law(120), 100, 100)
        assert overlap_area(placements) == pytest.approx(0.0, abs=1e-9)

    def test_squarish_mode_respects_its_bound(self):
        placements = pack(_power_law(80), 100, 100, SQUARISH_CONFIG)
        assert aspect_violations(placements, SQUARISH_CONFIG.max_aspect_ratio) == []
        assert containment_violations(placements, 100, 100) == []

    def test_single_dominant_entity_in_wide_container(self):
        placements = pack([Entity("only", 42)], 200, 50)
        p = placements[0]
        assert p.y + p.height <= 50 + 1e-9
        assert p.width / p.height <= TREEMAP_CONFIG.max_aspect_ratio + 1e-9

    def test_every_entity_placed_once(self):
        entities = _power_law(75)
        names = [p.entity.name for p in pack(entities, 100, 100)]
        assert sorted(names) == sorted(e.name for e in entities)

    def test_deterministic(self):
        entities = _power_law(90)
        assert pack(entities, 100, 100) == pack(list(entities), 100, 100)


# ============================================================================
# Degenerate input and configuration
# ============================================================================

class TestDegenerate:
    def test_empty(self):
        assert pack([], 100, 100) == []
        assert column_count([]) == 0

    def test_all_zero_get_uniform_floor(self):
        placements = pack([Entity(n, 0) for n in "abcde"], 100, 100)
        floor = 100 * 100 * TREEMAP_CONFIG.min_area_fraction
        assert all(p.target_area == pytest.approx(floor) for p in placements)
        assert len({round(p.area, 9) for p in placements}) == 1

    def test_non_positive_container_rejected(self):
        with pytest.raises(LayoutConfigError):
            pack([Entity("a", 1)], 0, 100)

    @pytest.mark.parametrize("field,value", [
        ("area_scale", 0.0),
        ("area_scale", 1.5),
        ("max_aspect_ratio", 0.0),
        ("min_width_fraction", 0.0),
        ("gap", -1.0),
    ])
    def test_invalid_config_rejected(self, field, value):
        with pytest.raises(LayoutConfigError):
            pack([Entity("a", 1)], 100, 100, PackerConfig(**{field: value}))


# ============================================================================
# Percent output
# ============================================================================

class TestPercentOutput:
    def test_build_treemap_is_in_percent(self):
        placements = build_treemap(_power_law(50), 320, 180)
        for p in placements:
            assert 0 <= p.x and p.x + p.width <= 100 + 1e-6
            assert 0 <= p.y and p.y + p.height <= 100 + 1e-6

    def test_to_percent_scales_target_area(self):
        p = pack([Entity("a", 1)], 200, 50)[0]
        pct = p.to_percent(200, 50)
        assert pct.target_area == pytest.approx(p.target_area / (200 * 50) * 100 * 100)
        assert pct.to_dict()["name"] == "a"
