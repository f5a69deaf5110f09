"""
Sheet Cost Calculator
=====================
Koszt materiału arkuszowego grupy wg polityki rozliczenia.

BOUGHT_WHOLE:
    koszt = liczba arkuszy × masa pełnego arkusza × cena/kg
    (resztki są odpadem, płacimy za arkusze, nie za detale)

USED_WITH_SCRAP:
    koszt = masa detali × (1 + scrap) × cena/kg
    (resztki wracają na magazyn, minimalny odpad zawsze doliczany)

The policy is dispatched once per group; layout is never touched here.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from core.exceptions import RequiredFieldError
from quotations.nesting.models import GroupResult
from quotations.pricing.pricing_tables import PricingTables, SheetCostMode, SheetPolicy
from quotations.quote_warnings import QuoteWarning, WarningCode

logger = logging.getLogger(__name__)


def cost_bought_whole(sheet_count: int, full_sheet_kg: float, price_per_kg: float) -> float:
    """Koszt kupionych całych arkuszy"""
    return sheet_count * full_sheet_kg * price_per_kg


def cost_used_with_scrap(useful_kg: float, scrap_fraction: float, price_per_kg: float) -> float:
    """Koszt kg użytych + minimalny naddatek odpadu"""
    return useful_kg * (1 + scrap_fraction) * price_per_kg


@dataclass
class SheetCost:
    """Wynik rozliczenia materiału jednej grupy"""
    cost_mode: SheetCostMode
    billed_kg: float
    cost: float
    price_per_kg: float
    warning: Optional[QuoteWarning] = None


class SheetCostCalculator:
    """
    Rozliczenie materiału arkuszowego.

    Użycie:
        calc = SheetCostCalculator(tables)
        cost = calc.calculate(group, policy)
    """

    def __init__(self, tables: PricingTables):
        self.tables = tables
        self._dispatch = {
            SheetCostMode.BOUGHT_WHOLE: self._bought_whole,
            SheetCostMode.USED_WITH_SCRAP: self._used_with_scrap,
        }

    def calculate(self, group: GroupResult, policy: SheetPolicy) -> SheetCost:
        """Policz koszt i zapisz go w GroupResult"""
        price_per_kg = self.tables.price_per_kg(group.key.material)
        result = self._dispatch[policy.cost_mode](group, policy, price_per_kg)

        group.cost_mode = result.cost_mode
        group.billed_kg = result.billed_kg
        group.sheet_cost = result.cost

        logger.debug(
            f"Group {group.key.label}: {policy.cost_mode.value} "
            f"{result.billed_kg:.2f} kg x {price_per_kg:.2f} = {result.cost:.2f}"
        )
        return result

    def _bought_whole(self, group: GroupResult, policy: SheetPolicy,
                      price_per_kg: float) -> SheetCost:
        full_sheet_kg = group.sheet.weight_kg(group.key.thickness_mm, self.tables.density_kg_m3)
        billed_kg = group.sheet_count * full_sheet_kg
        return SheetCost(
            cost_mode=SheetCostMode.BOUGHT_WHOLE,
            billed_kg=billed_kg,
            cost=cost_bought_whole(group.sheet_count, full_sheet_kg, price_per_kg),
            price_per_kg=price_per_kg,
        )

    def _used_with_scrap(self, group: GroupResult, policy: SheetPolicy,
                         price_per_kg: float) -> SheetCost:
        if policy.scrap_fraction is None:
            raise RequiredFieldError('scrap_fraction', f"SheetPolicy[{group.key.family}]")

        scrap = policy.scrap_fraction
        useful_kg = group.weight_kg
        warning = QuoteWarning(
            WarningCode.USED_MODE,
            f"Group {group.key.label}: USED mode (useful kg + {scrap * 100:.0f}% scrap), "
            f"leftover sheet material returns to stock",
            {'group': group.key.label, 'scrap_fraction': scrap},
        )
        return SheetCost(
            cost_mode=SheetCostMode.USED_WITH_SCRAP,
            billed_kg=useful_kg * (1 + scrap),
            cost=cost_used_with_scrap(useful_kg, scrap, price_per_kg),
            price_per_kg=price_per_kg,
            warning=warning,
        )
