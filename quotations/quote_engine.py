"""
Quote Engine
============
Pełny przebieg wyceny: walidacja -> grupowanie -> dobór arkusza i nesting
-> agregacja -> koszt arkuszy -> koszty całkowite i cena.

The engine is a pure function of its inputs. Tables, rules and policies are
passed in explicitly and never mutated; every call owns its working data.

Użycie:
    engine = QuoteEngine(tables, rules, NestingParameters(cutting_margin_mm=10))
    try:
        result = engine.quote(bom, {"bancada": SheetPolicy.auto()})
        print(result.to_json())
    except QuoteRejectedError as e:
        for issue in e.issues:
            print(issue)
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from quotations.bom import BOM
from quotations.nesting.aggregator import NestingAggregator
from quotations.nesting.grouping import PartGrouper
from quotations.nesting.models import GroupResult, NestingResult
from quotations.nesting.packer import RectanglePacker
from quotations.nesting.selector import SheetCatalogSelector
from quotations.pricing.cost_calculator import CostAggregator, CostBreakdown
from quotations.pricing.pricing_tables import (
    DEFAULT_SHEET_POLICY,
    NestingParameters,
    PricingRules,
    PricingTables,
    SheetPolicy,
)
from quotations.pricing.sheet_cost import SheetCostCalculator
from quotations.quote_warnings import QuoteWarning, WarningCode
from quotations.utils.numbers import round_money
from quotations.validation import QuoteValidator, ValidationIssue

logger = logging.getLogger(__name__)


@dataclass
class QuoteResult:
    """Wynik wyceny dla warstwy prezentacji"""
    costs: CostBreakdown
    nesting: NestingResult
    warnings: List[QuoteWarning] = field(default_factory=list)

    @property
    def groups(self) -> List[GroupResult]:
        return self.nesting.groups

    def _body(self) -> Dict[str, Any]:
        return {
            'costs': self.costs.to_dict(),
            'nesting': self.nesting.to_dict(),
            'warnings': [w.to_dict() for w in self.warnings],
        }

    @property
    def snapshot_hash(self) -> str:
        """SHA-256 kanonicznego JSON wyniku (audyt / powtarzalność)"""
        canonical = json.dumps(self._body(), sort_keys=True, separators=(',', ':'),
                               ensure_ascii=False)
        return hashlib.sha256(canonical.encode('utf-8')).hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        data = self._body()
        data['snapshot_hash'] = self.snapshot_hash
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True, ensure_ascii=False)

    def summary(self) -> str:
        """Krótkie podsumowanie tekstowe"""
        lines = [
            f"Sheets: {self.nesting.total_sheets} "
            f"({self.nesting.average_efficiency_pct:.1f}% efficiency)",
            f"Cost base: {round_money(self.costs.cost_base):.2f}",
            f"Min safe price: {round_money(self.costs.price_min_safe):.2f}",
            f"Suggested price: {round_money(self.costs.price_suggested):.2f}",
        ]
        lines += [f"! {w}" for w in self.warnings]
        return "\n".join(lines)


class QuoteEngine:
    """
    Silnik wyceny blach i profili.

    Each quote() call creates its own validator, packer and accumulators.
    """

    def __init__(self, tables: PricingTables, rules: PricingRules,
                 nesting: Optional[NestingParameters] = None):
        self.tables = tables
        self.rules = rules
        self.nesting = nesting or NestingParameters()

    def validate(self, bom: BOM, policies: Dict[str, SheetPolicy]) -> List[ValidationIssue]:
        """Tylko walidacja (bez nestingu) - lista problemów"""
        return QuoteValidator(self.tables, self.rules, self.nesting).validate(bom, policies)

    def resolve_policies(self, bom: BOM, policies: Dict[str, SheetPolicy]):
        """Polityka dla każdej rodziny z detalami płaskimi (domyślna + ostrzeżenie)"""
        resolved: Dict[str, SheetPolicy] = {}
        warnings: List[QuoteWarning] = []
        for family in bom.families:
            if family in policies:
                resolved[family] = policies[family]
            else:
                resolved[family] = DEFAULT_SHEET_POLICY
                warnings.append(QuoteWarning(
                    WarningCode.DEFAULT_POLICY,
                    f"No sheet policy for family {family}: using auto selection, bought-whole billing",
                    {'family': family},
                ))
        return resolved, warnings

    def quote(self, bom: BOM, policies: Optional[Dict[str, SheetPolicy]] = None) -> QuoteResult:
        """
        Wykonaj pełną wycenę.

        Raises:
            QuoteRejectedError: walidacja nie przeszła (pełna lista problemów)
        """
        start_time = time.time()
        policies = dict(policies or {})

        validator = QuoteValidator(self.tables, self.rules, self.nesting)
        validator.validate(bom, policies)
        validator.raise_if_rejected()

        warnings: List[QuoteWarning] = []
        resolved, policy_warnings = self.resolve_policies(bom, policies)

        groups, group_warnings = PartGrouper().group(bom.flat_parts)
        warnings += group_warnings
        warnings += policy_warnings

        packer = RectanglePacker(self.nesting.cutting_margin_mm)
        selector = SheetCatalogSelector(packer)
        aggregator = NestingAggregator(self.tables.density_kg_m3)
        sheet_costs = SheetCostCalculator(self.tables)

        results: List[GroupResult] = []
        for group in groups:
            policy = resolved[group.key.family]
            selection = selector.select(group.parts, self.tables.sheet_catalog, policy)
            result = aggregator.group_result(group.key, selection)

            cost = sheet_costs.calculate(result, policy)
            if cost.warning:
                warnings.append(cost.warning)

            if result.utilization_pct < self.rules.min_utilization_pct:
                warnings.append(QuoteWarning(
                    WarningCode.LOW_UTILIZATION,
                    f"Group {group.key.label}: utilization {result.utilization_pct:.1f}% "
                    f"below minimum {self.rules.min_utilization_pct:g}%",
                    {'group': group.key.label, 'utilization_pct': result.utilization_pct},
                ))
            results.append(result)

        nesting = aggregator.summarize(results)
        sheet_total = sum(g.sheet_cost for g in results)
        costs, cost_warnings = CostAggregator(self.tables, self.rules).aggregate(sheet_total, bom)
        warnings += cost_warnings

        validator.mark_computed()
        elapsed = time.time() - start_time
        logger.info(
            f"Quote computed in {elapsed * 1000:.0f}ms: {len(results)} group(s), "
            f"suggested price {costs.price_suggested:.2f}, {len(warnings)} warning(s)"
        )
        return QuoteResult(costs=costs, nesting=nesting, warnings=warnings)
