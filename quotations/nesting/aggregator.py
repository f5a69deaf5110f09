"""
Nesting Aggregator
==================
Agregacja wyników rozkroju: arkusz -> grupa -> całość.

- arkusz: wykorzystanie = pole detali / pole arkusza
- grupa: odpad = Σ pole arkuszy - Σ pole detali, masa = Σ pole detali × grubość × gęstość
- całość: efektywność ważona polem (nie liczbą grup)
"""

import logging
from typing import List

from quotations.nesting.models import GroupKey, GroupResult, NestingResult
from quotations.nesting.selector import SelectionResult
from quotations.utils.numbers import kg_from_area, mm2_to_m2

logger = logging.getLogger(__name__)


class NestingAggregator:
    """Czyste przeliczenia statystyk, bez stanu"""

    def __init__(self, density_kg_m3: float):
        self.density_kg_m3 = density_kg_m3

    def group_result(self, key: GroupKey, selection: SelectionResult) -> GroupResult:
        """Zbuduj GroupResult z wybranego rozkroju"""
        for instance in selection.sheets:
            instance.calculate_metrics()

        group = GroupResult(key=key, sheet=selection.sheet, sheets=list(selection.sheets))
        parts_mm2 = group.parts_area_mm2
        sheet_mm2 = group.sheet_area_mm2

        group.sheet_count = len(group.sheets)
        group.parts_area_m2 = mm2_to_m2(parts_mm2)
        group.sheet_area_m2 = mm2_to_m2(sheet_mm2)
        group.waste_m2 = mm2_to_m2(sheet_mm2 - parts_mm2)
        group.utilization_pct = parts_mm2 / sheet_mm2 * 100 if sheet_mm2 > 0 else 0.0
        group.weight_kg = kg_from_area(parts_mm2, key.thickness_mm, self.density_kg_m3)

        logger.debug(
            f"Group {key.label}: {group.sheet_count} sheet(s), "
            f"utilization {group.utilization_pct:.1f}%, weight {group.weight_kg:.2f} kg"
        )
        return group

    def summarize(self, groups: List[GroupResult]) -> NestingResult:
        """Podsumowanie wszystkich grup"""
        result = NestingResult(groups=list(groups))
        result.calculate_totals()
        logger.info(
            f"Nesting: {result.total_sheets} sheet(s) in {len(result.groups)} group(s), "
            f"efficiency {result.average_efficiency_pct:.1f}%"
        )
        return result
