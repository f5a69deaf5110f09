"""
Quote Engine - Cost Aggregator
==============================
Sumowanie kosztów wyceny i próg anty-stratny.

Składniki:
- Materiał arkuszowy (z SheetCostCalculator)
- Rury: metry × kg/m × cena/kg
- Kątowniki: metry × kg/m × cena/kg
- Akcesoria: ilość × cena jednostkowa
- Procesy: minuty / 60 × stawka godzinowa
- Narzut kosztów ogólnych: suma × overhead_pct

Cena:
    cost_base      = suma × (1 + overhead_pct)
    price_min_safe = cost_base / (1 - min_margin_pct)
    price_suggested = max(cost_base × markup, price_min_safe)

The floor holds for any markup: price_suggested × (1 - min_margin_pct) is
never below cost_base. Values are kept unrounded; rounding happens only when
the breakdown is serialized.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Any

from core.exceptions import InvalidFieldValueError
from quotations.bom import BOM
from quotations.pricing.pricing_tables import PricingRules, PricingTables
from quotations.quote_warnings import QuoteWarning, WarningCode
from quotations.utils.numbers import round_money

logger = logging.getLogger(__name__)


# ============================================================
# Anti-loss floor
# ============================================================

def price_min_safe(cost_base: float, min_margin_pct: float) -> float:
    """Najniższa cena gwarantująca minimalną marżę"""
    if not 0 <= min_margin_pct < 1:
        raise InvalidFieldValueError('min_margin_pct', min_margin_pct, "must be in [0, 1)")
    return cost_base / (1 - min_margin_pct)


def price_suggested(cost_base: float, markup: float, min_margin_pct: float) -> float:
    """Cena sugerowana: narzut, ale nigdy poniżej progu anty-stratnego"""
    return max(cost_base * markup, price_min_safe(cost_base, min_margin_pct))


# ============================================================
# Wyniki
# ============================================================

@dataclass
class CostBreakdown:
    """Rozbicie kosztów wyceny"""
    sheet: float = 0.0
    tube: float = 0.0
    angle: float = 0.0
    accessory: float = 0.0
    process: float = 0.0
    overhead: float = 0.0
    cost_base: float = 0.0
    price_min_safe: float = 0.0
    price_suggested: float = 0.0

    # Szczegóły per proces (ProcessKind.value -> koszt)
    process_by_kind: Dict[str, float] = field(default_factory=dict)

    @property
    def subtotal(self) -> float:
        return self.sheet + self.tube + self.angle + self.accessory + self.process

    @property
    def at_floor(self) -> bool:
        return self.cost_base > 0 and self.price_suggested <= self.price_min_safe

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sheet': round_money(self.sheet),
            'tube': round_money(self.tube),
            'angle': round_money(self.angle),
            'accessory': round_money(self.accessory),
            'process': round_money(self.process),
            'overhead': round_money(self.overhead),
            'cost_base': round_money(self.cost_base),
            'price_min_safe': round_money(self.price_min_safe),
            'price_suggested': round_money(self.price_suggested),
            'process_by_kind': {k: round_money(v) for k, v in sorted(self.process_by_kind.items())},
        }


# ============================================================
# Aggregator
# ============================================================

class CostAggregator:
    """
    Sumowanie kosztów i wyznaczenie ceny.

    Użycie:
        aggregator = CostAggregator(tables, rules)
        breakdown, warnings = aggregator.aggregate(sheet_cost_total, bom)
    """

    def __init__(self, tables: PricingTables, rules: PricingRules):
        self.tables = tables
        self.rules = rules

    def tube_cost(self, bom: BOM) -> float:
        total = 0.0
        for tube in bom.tubes:
            if tube.meters == 0:
                continue
            kg = tube.meters * self.tables.tube_weight_per_meter(tube.profile_key)
            total += kg * self.tables.price_per_kg(tube.material)
        return total

    def angle_cost(self, bom: BOM) -> float:
        total = 0.0
        for angle in bom.angles:
            if angle.meters == 0:
                continue
            kg = angle.meters * self.tables.angle_weight_per_meter(angle.profile_key)
            total += kg * self.tables.price_per_kg(angle.material)
        return total

    def accessory_cost(self, bom: BOM) -> float:
        total = 0.0
        for item in bom.accessories:
            if item.quantity == 0:
                continue
            total += item.quantity * self.tables.accessory_price(item.sku)
        return total

    def process_costs(self, bom: BOM) -> Dict[str, float]:
        by_kind: Dict[str, float] = {}
        for item in bom.processes:
            if item.minutes == 0:
                continue
            cost = item.minutes / 60 * self.tables.process_rate(item.kind)
            by_kind[item.kind.value] = by_kind.get(item.kind.value, 0.0) + cost
        return by_kind

    def aggregate(self, sheet_cost: float, bom: BOM) -> Tuple[CostBreakdown, List[QuoteWarning]]:
        """
        Złóż pełne rozbicie kosztów.

        Args:
            sheet_cost: suma kosztów materiału arkuszowego wszystkich grup
            bom: lista materiałowa (rury, kątowniki, akcesoria, procesy)

        Returns:
            (CostBreakdown, warnings)
        """
        warnings: List[QuoteWarning] = []
        process_by_kind = self.process_costs(bom)

        breakdown = CostBreakdown(
            sheet=sheet_cost,
            tube=self.tube_cost(bom),
            angle=self.angle_cost(bom),
            accessory=self.accessory_cost(bom),
            process=sum(process_by_kind[k] for k in sorted(process_by_kind)),
            process_by_kind=process_by_kind,
        )
        breakdown.overhead = breakdown.subtotal * self.tables.overhead_pct
        breakdown.cost_base = breakdown.subtotal + breakdown.overhead
        breakdown.price_min_safe = price_min_safe(breakdown.cost_base, self.rules.min_margin_pct)
        breakdown.price_suggested = price_suggested(
            breakdown.cost_base, self.rules.markup, self.rules.min_margin_pct
        )

        if breakdown.at_floor:
            warnings.append(QuoteWarning(
                WarningCode.PRICE_AT_FLOOR,
                f"Suggested price rests on the anti-loss floor "
                f"({round_money(breakdown.price_min_safe)}): markup {self.rules.markup:g} "
                f"is below the {self.rules.min_margin_pct * 100:.0f}% minimum margin",
                {'markup': self.rules.markup, 'min_margin_pct': self.rules.min_margin_pct},
            ))

        logger.info(
            f"Cost base {breakdown.cost_base:.2f}, floor {breakdown.price_min_safe:.2f}, "
            f"suggested {breakdown.price_suggested:.2f}"
        )
        return breakdown, warnings
