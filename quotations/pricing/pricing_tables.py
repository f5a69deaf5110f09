"""
Quote Engine - Pricing Tables
=============================
Cenniki, katalog arkuszy i polityki doboru arkusza.

Obsługuje:
- Katalog arkuszy (SheetCatalogEntry)
- Politykę arkusza per rodzina produktu (SheetPolicy)
- Tabele cen: materiał/kg, kg/m profili, akcesoria, stawki procesów
- Reguły cenowe: narzut i minimalna marża (anti-loss floor)

All objects are immutable and passed explicitly into every computation;
there is no module-level pricing state.

Użycie:
    tables = default_pricing_tables()
    rules = PricingRules(markup=2.0, min_margin_pct=0.25)
    policy = SheetPolicy.manual("CH-2000x1250")
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from config.settings import (
    DEFAULT_DENSITY_KG_M3,
    NESTING_CUTTING_MARGIN_MM,
    NESTING_MIN_UTILIZATION_PCT,
)
from core.exceptions import UnknownPricingKeyError, UnknownSheetError

logger = logging.getLogger(__name__)


# ============================================================
# Enums
# ============================================================

class SheetSelection(Enum):
    """Tryb doboru formatu arkusza"""
    AUTO = "auto"       # Najlepszy format z katalogu
    MANUAL = "manual"   # Format wskazany przez operatora


class SheetCostMode(Enum):
    """Model rozliczenia materiału arkuszowego"""
    BOUGHT_WHOLE = "bought_whole"        # Płacimy za całe zużyte arkusze
    USED_WITH_SCRAP = "used_with_scrap"  # Płacimy za kg użyte + minimalny odpad


class ProcessKind(Enum):
    """Rodzaje operacji robocizny"""
    CUT = "cut"
    BEND = "bend"
    WELD = "weld"
    FINISH = "finish"
    ASSEMBLY = "assembly"
    INSTALLATION = "installation"


# ============================================================
# Sheet catalog
# ============================================================

@dataclass(frozen=True)
class SheetCatalogEntry:
    """Format arkusza z katalogu"""
    id: str
    width_mm: float     # Długość arkusza (oś X)
    height_mm: float    # Szerokość arkusza (oś Y)
    label: str = ""

    @property
    def area_mm2(self) -> float:
        return self.width_mm * self.height_mm

    @property
    def area_m2(self) -> float:
        return self.area_mm2 / 1_000_000

    def weight_kg(self, thickness_mm: float, density_kg_m3: float) -> float:
        """Masa pełnego arkusza: pole × grubość × gęstość"""
        return self.area_m2 * (thickness_mm / 1000) * density_kg_m3

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'width_mm': self.width_mm,
            'height_mm': self.height_mm,
            'label': self.label,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SheetCatalogEntry':
        width = float(data['width_mm'])
        height = float(data['height_mm'])
        return cls(
            id=str(data['id']),
            width_mm=width,
            height_mm=height,
            label=data.get('label') or f"{width:g}x{height:g}",
        )


def find_sheet(catalog: Tuple[SheetCatalogEntry, ...], sheet_id: str) -> SheetCatalogEntry:
    """Znajdź format w katalogu lub rzuć UnknownSheetError"""
    for entry in catalog:
        if entry.id == sheet_id:
            return entry
    raise UnknownSheetError(sheet_id, [e.id for e in catalog])


# ============================================================
# Sheet policy
# ============================================================

@dataclass(frozen=True)
class SheetPolicy:
    """
    Polityka arkusza dla rodziny produktu.

    manual_sheet_id is required iff selection is MANUAL, scrap_fraction is
    required iff cost_mode is USED_WITH_SCRAP. Consistency is checked by
    QuoteValidator so that all problems are reported together.
    """
    selection: SheetSelection = SheetSelection.AUTO
    manual_sheet_id: Optional[str] = None
    cost_mode: SheetCostMode = SheetCostMode.BOUGHT_WHOLE
    scrap_fraction: Optional[float] = None

    @classmethod
    def auto(cls, cost_mode: SheetCostMode = SheetCostMode.BOUGHT_WHOLE,
             scrap_fraction: float = None) -> 'SheetPolicy':
        return cls(SheetSelection.AUTO, None, cost_mode, scrap_fraction)

    @classmethod
    def manual(cls, sheet_id: str, cost_mode: SheetCostMode = SheetCostMode.BOUGHT_WHOLE,
               scrap_fraction: float = None) -> 'SheetPolicy':
        return cls(SheetSelection.MANUAL, sheet_id, cost_mode, scrap_fraction)

    def to_dict(self) -> dict:
        return {
            'selection': self.selection.value,
            'manual_sheet_id': self.manual_sheet_id,
            'cost_mode': self.cost_mode.value,
            'scrap_fraction': self.scrap_fraction,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SheetPolicy':
        scrap = data.get('scrap_fraction')
        return cls(
            selection=SheetSelection(data.get('selection', SheetSelection.AUTO.value)),
            manual_sheet_id=data.get('manual_sheet_id'),
            cost_mode=SheetCostMode(data.get('cost_mode', SheetCostMode.BOUGHT_WHOLE.value)),
            scrap_fraction=float(scrap) if scrap is not None else None,
        )


DEFAULT_SHEET_POLICY = SheetPolicy()


# ============================================================
# Pricing tables
# ============================================================

def _frozen(mapping: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class PricingTables:
    """
    Cenniki dla jednej wyceny.

    material_price_per_kg: cena materiału [PLN/kg] wg gatunku
    tube_kg_per_meter / angle_kg_per_meter: masa liniowa profili wg klucza
    accessory_unit_price: cena jednostkowa wg SKU
    process_cost_per_hour: stawka godzinowa wg ProcessKind.value
    overhead_pct: narzut kosztów ogólnych (0..1)
    """
    material_price_per_kg: Mapping[str, float]
    sheet_catalog: Tuple[SheetCatalogEntry, ...]
    density_kg_m3: float = DEFAULT_DENSITY_KG_M3
    tube_kg_per_meter: Mapping[str, float] = field(default_factory=dict)
    angle_kg_per_meter: Mapping[str, float] = field(default_factory=dict)
    accessory_unit_price: Mapping[str, float] = field(default_factory=dict)
    process_cost_per_hour: Mapping[str, float] = field(default_factory=dict)
    overhead_pct: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'sheet_catalog', tuple(self.sheet_catalog))
        for name in ('material_price_per_kg', 'tube_kg_per_meter', 'angle_kg_per_meter',
                     'accessory_unit_price', 'process_cost_per_hour'):
            object.__setattr__(self, name, _frozen(getattr(self, name)))

    # === Lookups ===

    def price_per_kg(self, material: str) -> float:
        if material not in self.material_price_per_kg:
            raise UnknownPricingKeyError('material_price_per_kg', material)
        return self.material_price_per_kg[material]

    def tube_weight_per_meter(self, profile_key: str) -> float:
        if profile_key not in self.tube_kg_per_meter:
            raise UnknownPricingKeyError('tube_kg_per_meter', profile_key)
        return self.tube_kg_per_meter[profile_key]

    def angle_weight_per_meter(self, profile_key: str) -> float:
        if profile_key not in self.angle_kg_per_meter:
            raise UnknownPricingKeyError('angle_kg_per_meter', profile_key)
        return self.angle_kg_per_meter[profile_key]

    def accessory_price(self, sku: str) -> float:
        if sku not in self.accessory_unit_price:
            raise UnknownPricingKeyError('accessory_unit_price', sku)
        return self.accessory_unit_price[sku]

    def process_rate(self, kind: ProcessKind) -> float:
        if kind.value not in self.process_cost_per_hour:
            raise UnknownPricingKeyError('process_cost_per_hour', kind.value)
        return self.process_cost_per_hour[kind.value]

    # === Serialization ===

    def to_dict(self) -> dict:
        return {
            'material_price_per_kg': dict(self.material_price_per_kg),
            'density_kg_m3': self.density_kg_m3,
            'sheet_catalog': [s.to_dict() for s in self.sheet_catalog],
            'tube_kg_per_meter': dict(self.tube_kg_per_meter),
            'angle_kg_per_meter': dict(self.angle_kg_per_meter),
            'accessory_unit_price': dict(self.accessory_unit_price),
            'process_cost_per_hour': dict(self.process_cost_per_hour),
            'overhead_pct': self.overhead_pct,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PricingTables':
        tables = cls(
            material_price_per_kg={k: float(v) for k, v in data.get('material_price_per_kg', {}).items()},
            sheet_catalog=tuple(SheetCatalogEntry.from_dict(s) for s in data.get('sheet_catalog', [])),
            density_kg_m3=float(data.get('density_kg_m3', DEFAULT_DENSITY_KG_M3)),
            tube_kg_per_meter={k: float(v) for k, v in data.get('tube_kg_per_meter', {}).items()},
            angle_kg_per_meter={k: float(v) for k, v in data.get('angle_kg_per_meter', {}).items()},
            accessory_unit_price={k: float(v) for k, v in data.get('accessory_unit_price', {}).items()},
            process_cost_per_hour={k: float(v) for k, v in data.get('process_cost_per_hour', {}).items()},
            overhead_pct=float(data.get('overhead_pct', 0.0)),
        )
        logger.debug(f"Pricing tables: {len(tables.material_price_per_kg)} materials, "
                     f"{len(tables.sheet_catalog)} sheet formats")
        return tables


@dataclass(frozen=True)
class PricingRules:
    """Reguły handlowe: narzut i minimalna marża"""
    markup: float = 3.0                 # Mnożnik ceny sugerowanej
    min_margin_pct: float = 0.25        # Minimalna marża (0..1), próg anty-stratny
    min_utilization_pct: float = NESTING_MIN_UTILIZATION_PCT

    def to_dict(self) -> dict:
        return {
            'markup': self.markup,
            'min_margin_pct': self.min_margin_pct,
            'min_utilization_pct': self.min_utilization_pct,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PricingRules':
        return cls(
            markup=float(data.get('markup', 3.0)),
            min_margin_pct=float(data.get('min_margin_pct', 0.25)),
            min_utilization_pct=float(data.get('min_utilization_pct', NESTING_MIN_UTILIZATION_PCT)),
        )


@dataclass(frozen=True)
class NestingParameters:
    """Parametry pakowania"""
    cutting_margin_mm: float = NESTING_CUTTING_MARGIN_MM

    def to_dict(self) -> dict:
        return {'cutting_margin_mm': self.cutting_margin_mm}

    @classmethod
    def from_dict(cls, data: dict) -> 'NestingParameters':
        return cls(cutting_margin_mm=float(data.get('cutting_margin_mm', NESTING_CUTTING_MARGIN_MM)))


# ============================================================
# Defaults
# ============================================================

def default_sheet_catalog() -> Tuple[SheetCatalogEntry, ...]:
    """Standardowe formaty arkuszy"""
    return (
        SheetCatalogEntry("CH-2000x1250", 2000, 1250, "2000 x 1250"),
        SheetCatalogEntry("CH-3000x1250", 3000, 1250, "3000 x 1250"),
        SheetCatalogEntry("CH-1500x1250", 1500, 1250, "1500 x 1250"),
    )


def default_pricing_tables() -> PricingTables:
    """Domyślne cenniki (nowy obiekt przy każdym wywołaniu)"""
    return PricingTables(
        material_price_per_kg={"INOX304": 45.0, "INOX430": 32.0},
        sheet_catalog=default_sheet_catalog(),
        density_kg_m3=DEFAULT_DENSITY_KG_M3,
        tube_kg_per_meter={
            "TQ-25x25x1.2": 0.90,
            "TQ-40x40x1.2": 1.47,
            "TR-38.1x1.2": 1.10,
        },
        angle_kg_per_meter={
            "L-30x30x3": 1.36,
            "L-40x40x3": 1.84,
        },
        accessory_unit_price={
            "PE-NIV-38": 12.50,
            "RODIZIO-3P": 48.00,
        },
        process_cost_per_hour={
            ProcessKind.CUT.value: 120.0,
            ProcessKind.BEND.value: 110.0,
            ProcessKind.WELD.value: 140.0,
            ProcessKind.FINISH.value: 90.0,
            ProcessKind.ASSEMBLY.value: 80.0,
            ProcessKind.INSTALLATION.value: 100.0,
        },
        overhead_pct=0.10,
    )


def policies_from_dict(data: Dict[str, Any]) -> Dict[str, SheetPolicy]:
    """Zbuduj słownik polityk {rodzina: SheetPolicy}"""
    return {family: SheetPolicy.from_dict(p) for family, p in (data or {}).items()}
