"""
Number helpers
==============
Zaokrąglenia kwot i konwersje jednostek używane w wynikach wyceny.
"""

from decimal import Decimal, ROUND_HALF_UP

from config.settings import MONEY_DECIMALS

MM2_PER_M2 = 1_000_000


def round_money(value: float, decimals: int = MONEY_DECIMALS) -> float:
    """Zaokrąglij kwotę (ROUND_HALF_UP) - tylko do prezentacji/serializacji"""
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def mm2_to_m2(area_mm2: float) -> float:
    return area_mm2 / MM2_PER_M2


def kg_from_area(area_mm2: float, thickness_mm: float, density_kg_m3: float) -> float:
    """Masa blachy: pole [mm2] × grubość [mm] × gęstość [kg/m3]"""
    return mm2_to_m2(area_mm2) * (thickness_mm / 1000) * density_kg_m3
