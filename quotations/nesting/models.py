"""
Data Models for Nesting.

Defines the contract between the packer, the aggregator and the costing
stage. All areas are kept in mm² internally and exposed in m² in totals.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from quotations.pricing.pricing_tables import SheetCatalogEntry, SheetCostMode
from quotations.utils.numbers import round_money


# Paleta kolorów do wizualizacji rozkroju (kosmetyczna)
PART_COLORS = (
    '#3b82f6', '#10b981', '#f59e0b', '#ef4444', '#8b5cf6',
    '#ec4899', '#14b8a6', '#f97316', '#6366f1', '#84cc16',
)


def color_for_index(index: int) -> str:
    return PART_COLORS[index % len(PART_COLORS)]


@dataclass(frozen=True, order=True)
class GroupKey:
    """Klucz grupy: rodzina produktu + (materiał, grubość, wykończenie)"""
    family: str
    material: str
    thickness_mm: float
    finish: str = ""

    @property
    def label(self) -> str:
        finish = f"|{self.finish}" if self.finish else ""
        return f"{self.family}|{self.material}|{self.thickness_mm:g}{finish}"

    def to_dict(self) -> Dict:
        return {
            'family': self.family,
            'material': self.material,
            'thickness_mm': self.thickness_mm,
            'finish': self.finish,
        }


@dataclass
class PlacedPart:
    """Single part copy placed on a sheet."""
    part_id: str
    label: str
    x_mm: float
    y_mm: float
    width_mm: float     # po obrocie
    height_mm: float    # po obrocie
    rotated: bool = False
    color: str = PART_COLORS[0]

    @property
    def area_mm2(self) -> float:
        return self.width_mm * self.height_mm

    def to_dict(self) -> Dict:
        return {
            'part_id': self.part_id,
            'label': self.label,
            'x_mm': self.x_mm,
            'y_mm': self.y_mm,
            'width_mm': self.width_mm,
            'height_mm': self.height_mm,
            'rotated': self.rotated,
            'color': self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'PlacedPart':
        return cls(
            part_id=data.get('part_id', ''),
            label=data.get('label', ''),
            x_mm=data.get('x_mm', 0.0),
            y_mm=data.get('y_mm', 0.0),
            width_mm=data.get('width_mm', 0.0),
            height_mm=data.get('height_mm', 0.0),
            rotated=data.get('rotated', False),
            color=data.get('color', PART_COLORS[0]),
        )


@dataclass
class SheetInstance:
    """One physical sheet consumed by a group."""
    index: int
    width_mm: float
    height_mm: float
    placements: List[PlacedPart] = field(default_factory=list)
    utilization_pct: float = 0.0

    @property
    def area_mm2(self) -> float:
        return self.width_mm * self.height_mm

    @property
    def placed_area_mm2(self) -> float:
        return sum(p.area_mm2 for p in self.placements)

    def calculate_metrics(self):
        """Calculate utilization from placements."""
        if self.area_mm2 > 0:
            self.utilization_pct = self.placed_area_mm2 / self.area_mm2 * 100
        else:
            self.utilization_pct = 0.0

    def to_dict(self) -> Dict:
        return {
            'index': self.index,
            'width_mm': self.width_mm,
            'height_mm': self.height_mm,
            'utilization_pct': round_money(self.utilization_pct),
            'placements': [p.to_dict() for p in self.placements],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'SheetInstance':
        return cls(
            index=data.get('index', 0),
            width_mm=data.get('width_mm', 0.0),
            height_mm=data.get('height_mm', 0.0),
            placements=[PlacedPart.from_dict(p) for p in data.get('placements', [])],
            utilization_pct=data.get('utilization_pct', 0.0),
        )


@dataclass
class GroupResult:
    """Nesting (and, once costed, sheet cost) of one part group."""
    key: GroupKey
    sheet: SheetCatalogEntry
    sheets: List[SheetInstance] = field(default_factory=list)

    # Agregaty (NestingAggregator)
    sheet_count: int = 0
    parts_area_m2: float = 0.0
    sheet_area_m2: float = 0.0
    utilization_pct: float = 0.0
    waste_m2: float = 0.0
    weight_kg: float = 0.0

    # Koszt (SheetCostCalculator)
    cost_mode: Optional[SheetCostMode] = None
    billed_kg: float = 0.0
    sheet_cost: float = 0.0

    @property
    def placed_count(self) -> int:
        return sum(len(s.placements) for s in self.sheets)

    @property
    def parts_area_mm2(self) -> float:
        return sum(s.placed_area_mm2 for s in self.sheets)

    @property
    def sheet_area_mm2(self) -> float:
        return sum(s.area_mm2 for s in self.sheets)

    def to_dict(self) -> Dict:
        return {
            'key': self.key.to_dict(),
            'group': self.key.label,
            'sheet': self.sheet.to_dict(),
            'sheet_count': self.sheet_count,
            'parts_area_m2': round(self.parts_area_m2, 4),
            'sheet_area_m2': round(self.sheet_area_m2, 4),
            'utilization_pct': round_money(self.utilization_pct),
            'waste_m2': round(self.waste_m2, 4),
            'weight_kg': round_money(self.weight_kg),
            'cost_mode': self.cost_mode.value if self.cost_mode else None,
            'billed_kg': round_money(self.billed_kg),
            'sheet_cost': round_money(self.sheet_cost),
            'sheets': [s.to_dict() for s in self.sheets],
        }


@dataclass
class NestingResult:
    """Overall nesting summary across all groups."""
    groups: List[GroupResult] = field(default_factory=list)
    total_sheets: int = 0
    total_area_m2: float = 0.0          # pole kupionych arkuszy
    total_parts_area_m2: float = 0.0
    total_weight_kg: float = 0.0
    average_efficiency_pct: float = 0.0  # ważona polem

    def calculate_totals(self):
        """Roll group totals up; efficiency weighted by sheet area."""
        self.total_sheets = sum(g.sheet_count for g in self.groups)
        self.total_area_m2 = sum(g.sheet_area_m2 for g in self.groups)
        self.total_parts_area_m2 = sum(g.parts_area_m2 for g in self.groups)
        self.total_weight_kg = sum(g.weight_kg for g in self.groups)
        if self.total_area_m2 > 0:
            self.average_efficiency_pct = self.total_parts_area_m2 / self.total_area_m2 * 100
        else:
            self.average_efficiency_pct = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_sheets': self.total_sheets,
            'total_area_m2': round(self.total_area_m2, 4),
            'total_parts_area_m2': round(self.total_parts_area_m2, 4),
            'total_weight_kg': round_money(self.total_weight_kg),
            'average_efficiency_pct': round_money(self.average_efficiency_pct),
            'groups': [g.to_dict() for g in self.groups],
        }
