"""
Quotations Utils
================
Narzędzia pomocnicze dla modułu wycen.
- numbers: zaokrąglenia kwot, konwersje mm2/m2, masa blachy
"""

from .numbers import round_money, mm2_to_m2, kg_from_area, MM2_PER_M2

__all__ = [
    'round_money',
    'mm2_to_m2',
    'kg_from_area',
    'MM2_PER_M2',
]
