"""
Quote Engine Nesting Module
===========================
Nesting prostokątów obrysu detali na arkusze z katalogu.

Główny algorytm: RectanglePacker (MaxRects, best area fit)
- Grupowanie: rodzina + materiał + grubość + wykończenie
- Dobór arkusza: AUTO (pełne pakowanie na każdym formacie) lub MANUAL
- Agregacja: wykorzystanie, odpad, masa
"""

from .models import (
    GroupKey,
    PlacedPart,
    SheetInstance,
    GroupResult,
    NestingResult,
    PART_COLORS,
)
from .grouping import PartGroup, PartGrouper
from .packer import RectanglePacker, FreeRect
from .selector import SheetCatalogSelector, SelectionResult
from .aggregator import NestingAggregator

__all__ = [
    'GroupKey',
    'PlacedPart',
    'SheetInstance',
    'GroupResult',
    'NestingResult',
    'PART_COLORS',
    'PartGroup',
    'PartGrouper',
    'RectanglePacker',
    'FreeRect',
    'SheetCatalogSelector',
    'SelectionResult',
    'NestingAggregator',
]
