"""
Test grouping and sheet selection
=================================
Grupowanie detali po (rodzina, materiał, grubość, wykończenie) oraz dobór
formatu arkusza w trybie AUTO i MANUAL.
"""

import sys
import os
import logging

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.exceptions import PartDoesNotFitError, UnknownSheetError
from quotations.bom import FlatPart
from quotations.nesting.aggregator import NestingAggregator
from quotations.nesting.grouping import PartGrouper
from quotations.nesting.models import GroupKey
from quotations.nesting.packer import RectanglePacker
from quotations.nesting.selector import SheetCatalogSelector
from quotations.pricing.pricing_tables import SheetPolicy, default_sheet_catalog
from quotations.quote_warnings import WarningCode

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def make_part(part_id, w, h, qty=1, material="INOX304", thickness=1.0, finish="", family="bancada"):
    return FlatPart(
        id=part_id, label=part_id, width_mm=w, height_mm=h, quantity=qty,
        material=material, thickness_mm=thickness, family=family, finish=finish,
    )


# ============================================================
# PartGrouper
# ============================================================

def test_groups_are_sorted_and_disjoint():
    parts = [
        make_part("A", 100, 100, thickness=1.5),
        make_part("B", 100, 100, material="INOX430"),
        make_part("C", 100, 100, thickness=1.5, finish="2B"),
        make_part("D", 100, 100, thickness=1.5),
        make_part("E", 100, 100, family="cuba"),
    ]
    groups, warnings = PartGrouper().group(parts)

    assert warnings == []
    assert [g.key for g in groups] == sorted(g.key for g in groups)
    assert [[p.id for p in g.parts] for g in groups] == [
        ["A", "D"],     # bancada|INOX304|1.5
        ["C"],          # bancada|INOX304|1.5|2B
        ["B"],          # bancada|INOX430|1
        ["E"],          # cuba|INOX304|1
    ]
    all_ids = [p.id for g in groups for p in g.parts]
    assert sorted(all_ids) == ["A", "B", "C", "D", "E"]


def test_families_never_share_a_group():
    parts = [make_part("B1", 100, 100, family="bancada"), make_part("C1", 100, 100, family="cuba")]
    groups, _ = PartGrouper().group(parts)

    assert [g.key.family for g in groups] == ["bancada", "cuba"]
    assert [g.key.material for g in groups] == ["INOX304", "INOX304"]
    assert [[p.id for p in g.parts] for g in groups] == [["B1"], ["C1"]]


def test_non_positive_quantity_dropped_with_warning():
    parts = [make_part("OK", 100, 100, qty=2), make_part("ZERO", 100, 100, qty=0),
             make_part("NEG", 100, 100, qty=-1)]
    groups, warnings = PartGrouper().group(parts)

    assert [p.id for g in groups for p in g.parts] == ["OK"]
    assert [w.code for w in warnings] == [WarningCode.PART_DROPPED, WarningCode.PART_DROPPED]
    assert groups[0].copies == 2


# ============================================================
# SheetCatalogSelector
# ============================================================

def test_auto_selects_fewest_sheets():
    # Dwa detale 1400x1200: 2 arkusze 2000x1250 lub 1500x1250, jeden 3000x1250
    parts = [make_part("BIG", 1400, 1200, qty=2)]
    selector = SheetCatalogSelector(RectanglePacker(cutting_margin_mm=5))
    selection = selector.select(parts, default_sheet_catalog(), SheetPolicy.auto())

    assert selection.sheet.id == "CH-3000x1250"
    assert selection.sheet_count == 1
    assert selection.candidates_evaluated == 3


def test_auto_breaks_ties_on_waste():
    parts = [make_part("SMALL", 500, 500)]
    selector = SheetCatalogSelector(RectanglePacker(cutting_margin_mm=5))
    selection = selector.select(parts, default_sheet_catalog(), SheetPolicy.auto())

    assert selection.sheet.id == "CH-1500x1250"


def test_auto_skips_sheets_that_cannot_hold_a_part():
    parts = [make_part("WIDE", 2500, 1000)]
    selector = SheetCatalogSelector(RectanglePacker(cutting_margin_mm=5))
    selection = selector.select(parts, default_sheet_catalog(), SheetPolicy.auto())

    assert selection.sheet.id == "CH-3000x1250"
    assert selection.candidates_evaluated == 1


def test_auto_raises_when_nothing_fits():
    parts = [make_part("HUGE", 3500, 1300)]
    selector = SheetCatalogSelector(RectanglePacker(cutting_margin_mm=5))
    with pytest.raises(PartDoesNotFitError):
        selector.select(parts, default_sheet_catalog(), SheetPolicy.auto())


def test_manual_uses_requested_sheet():
    parts = [make_part("SMALL", 500, 500)]
    selector = SheetCatalogSelector(RectanglePacker(cutting_margin_mm=5))
    selection = selector.select(parts, default_sheet_catalog(), SheetPolicy.manual("CH-3000x1250"))

    assert selection.sheet.id == "CH-3000x1250"
    assert selection.sheet_count == 1


def test_manual_unknown_sheet_fails():
    selector = SheetCatalogSelector(RectanglePacker(cutting_margin_mm=5))
    with pytest.raises(UnknownSheetError):
        selector.select([make_part("A", 100, 100)], default_sheet_catalog(),
                        SheetPolicy.manual("CH-9999"))


# ============================================================
# NestingAggregator
# ============================================================

def test_aggregator_totals():
    parts = [make_part("P1", 1500, 700), make_part("P2", 1500, 100), make_part("P3", 674, 50, qty=2)]
    selector = SheetCatalogSelector(RectanglePacker(cutting_margin_mm=10))
    selection = selector.select(parts, default_sheet_catalog(), SheetPolicy.manual("CH-2000x1250"))

    aggregator = NestingAggregator(density_kg_m3=7900)
    key = GroupKey("bancada", "INOX304", 1.0)
    group = aggregator.group_result(key, selection)

    assert group.sheet_count == 1
    assert group.parts_area_m2 == pytest.approx(1.2674)
    assert group.sheet_area_m2 == pytest.approx(2.5)
    assert group.waste_m2 == pytest.approx(2.5 - 1.2674)
    assert group.utilization_pct == pytest.approx(1.2674 / 2.5 * 100)
    assert group.weight_kg == pytest.approx(1.2674 * 0.001 * 7900)


def test_overall_efficiency_is_area_weighted():
    catalog = default_sheet_catalog()
    selector = SheetCatalogSelector(RectanglePacker(cutting_margin_mm=5))
    aggregator = NestingAggregator(density_kg_m3=7900)

    # Grupa 1: duży arkusz słabo wykorzystany, grupa 2: mały arkusz dobrze wykorzystany
    g1 = aggregator.group_result(
        GroupKey("a", "INOX304", 1.0),
        selector.select([make_part("X", 500, 500)], catalog, SheetPolicy.manual("CH-3000x1250")))
    g2 = aggregator.group_result(
        GroupKey("b", "INOX304", 1.0),
        selector.select([make_part("Y", 1400, 1200)], catalog, SheetPolicy.manual("CH-1500x1250")))
    result = aggregator.summarize([g1, g2])

    expected = (0.25 + 1.68) / (3.75 + 1.875) * 100
    assert result.average_efficiency_pct == pytest.approx(expected)
    assert result.average_efficiency_pct != pytest.approx((g1.utilization_pct + g2.utilization_pct) / 2)
    assert result.total_sheets == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
