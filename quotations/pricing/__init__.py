"""
Quote Engine Pricing Module
===========================
Cenniki, koszt materiału arkuszowego, sumowanie kosztów i próg anty-stratny.

- pricing_tables: katalog arkuszy, polityki, cenniki, reguły
- sheet_cost: SheetCostCalculator (BOUGHT_WHOLE / USED_WITH_SCRAP)
- cost_calculator: CostAggregator i cena minimalna
- xlsx_importer: import cenników z arkuszy Excel
"""

from .pricing_tables import (
    SheetCatalogEntry,
    SheetPolicy,
    SheetSelection,
    SheetCostMode,
    ProcessKind,
    PricingTables,
    PricingRules,
    NestingParameters,
    default_pricing_tables,
    default_sheet_catalog,
)

__all__ = [
    'SheetCatalogEntry',
    'SheetPolicy',
    'SheetSelection',
    'SheetCostMode',
    'ProcessKind',
    'PricingTables',
    'PricingRules',
    'NestingParameters',
    'default_pricing_tables',
    'default_sheet_catalog',
]
