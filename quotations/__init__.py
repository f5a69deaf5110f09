"""
Quote Engine - Quotations Module
================================
Moduł wycen z nestingiem i kalkulacją cen.

Główne wejście: QuoteEngine.quote(bom, policies) -> QuoteResult
"""

from quotations.bom import (
    BOM,
    FlatPart,
    TubePart,
    AnglePart,
    AccessoryItem,
    ProcessItem,
    Orientation,
)
from quotations.pricing.pricing_tables import (
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
from quotations.quote_engine import QuoteEngine, QuoteResult
from quotations.quote_warnings import QuoteWarning, WarningCode
from quotations.validation import QuoteValidator, ValidationIssue, ValidationState

__all__ = [
    # BOM
    'BOM',
    'FlatPart',
    'TubePart',
    'AnglePart',
    'AccessoryItem',
    'ProcessItem',
    'Orientation',
    # Pricing
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
    # Engine
    'QuoteEngine',
    'QuoteResult',
    'QuoteWarning',
    'WarningCode',
    'QuoteValidator',
    'ValidationIssue',
    'ValidationState',
]
