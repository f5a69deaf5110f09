"""
Quote Engine - Bill of Materials
================================
Zamknięte typy rekordów BOM: blachy, rury, kątowniki, akcesoria, procesy.

Each record kind has an explicit set of required and optional keys.
from_dict() rejects unknown and missing keys at construction time, so a
malformed record never reaches nesting or costing.

Użycie:
    bom = BOM.from_dict({
        "flat_parts": [{"id": "P1", "label": "Tampo", "width_mm": 1500,
                        "height_mm": 700, "quantity": 1, "material": "INOX304",
                        "thickness_mm": 1.0, "family": "bancada"}],
        "processes": [{"kind": "weld", "minutes": 30}],
    })
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Tuple

from core.exceptions import BOMFormatError, InvalidFieldValueError
from quotations.pricing.pricing_tables import ProcessKind

logger = logging.getLogger(__name__)


class Orientation(Enum):
    """Ograniczenie orientacji detalu na arkuszu"""
    FREE = "free"                             # Można obracać o 90°
    ALIGN_WITH_LENGTH = "align_with_length"   # Wzdłuż długości arkusza (np. szlif)


def _check_keys(kind: str, data: Dict[str, Any], required: FrozenSet[str],
                optional: FrozenSet[str]):
    if not isinstance(data, dict):
        raise BOMFormatError(kind, missing=sorted(required))
    keys = set(data)
    missing = required - keys
    unknown = keys - required - optional
    if missing or unknown:
        raise BOMFormatError(kind, missing=list(missing), unknown=list(unknown))


def _number(kind: str, data: Dict[str, Any], key: str, default=None) -> float:
    value = data.get(key, default)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidFieldValueError(f"{kind}.{key}", value, "not a number")
    if not math.isfinite(number):
        raise InvalidFieldValueError(f"{kind}.{key}", value, "not a finite number")
    return number


def _count(kind: str, data: Dict[str, Any], key: str) -> int:
    number = _number(kind, data, key)
    if not number.is_integer():
        raise InvalidFieldValueError(f"{kind}.{key}", data.get(key), "not a whole number")
    return int(number)


# ============================================================
# Record kinds
# ============================================================

@dataclass(frozen=True)
class FlatPart:
    """Detal płaski (prostokąt obrysu przed obrotem)"""
    id: str
    label: str
    width_mm: float
    height_mm: float
    quantity: int
    material: str
    thickness_mm: float
    family: str
    finish: str = ""
    orientation: Orientation = Orientation.FREE
    category: str = ""

    REQUIRED = frozenset({'id', 'width_mm', 'height_mm', 'quantity', 'material',
                          'thickness_mm', 'family'})
    OPTIONAL = frozenset({'label', 'finish', 'orientation', 'category'})

    @property
    def can_rotate(self) -> bool:
        return self.orientation is Orientation.FREE

    @property
    def area_mm2(self) -> float:
        return self.width_mm * self.height_mm

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'label': self.label,
            'width_mm': self.width_mm,
            'height_mm': self.height_mm,
            'quantity': self.quantity,
            'material': self.material,
            'thickness_mm': self.thickness_mm,
            'family': self.family,
            'finish': self.finish,
            'orientation': self.orientation.value,
            'category': self.category,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FlatPart':
        _check_keys('flat_part', data, cls.REQUIRED, cls.OPTIONAL)
        try:
            orientation = Orientation(data.get('orientation', Orientation.FREE.value))
        except ValueError:
            raise InvalidFieldValueError('flat_part.orientation', data.get('orientation'),
                                         "expected 'free' or 'align_with_length'")
        return cls(
            id=str(data['id']),
            label=str(data.get('label') or data['id']),
            width_mm=_number('flat_part', data, 'width_mm'),
            height_mm=_number('flat_part', data, 'height_mm'),
            quantity=_count('flat_part', data, 'quantity'),
            material=str(data['material']),
            thickness_mm=_number('flat_part', data, 'thickness_mm'),
            family=str(data['family']),
            finish=str(data.get('finish') or ""),
            orientation=orientation,
            category=str(data.get('category') or ""),
        )


@dataclass(frozen=True)
class TubePart:
    """Rura / profil zamknięty rozliczany w metrach"""
    id: str
    meters: float
    profile_key: str
    material: str
    family: str

    REQUIRED = frozenset({'id', 'meters', 'profile_key', 'material', 'family'})
    OPTIONAL = frozenset()

    def to_dict(self) -> dict:
        return {'id': self.id, 'meters': self.meters, 'profile_key': self.profile_key,
                'material': self.material, 'family': self.family}

    @classmethod
    def from_dict(cls, data: dict) -> 'TubePart':
        _check_keys('tube', data, cls.REQUIRED, cls.OPTIONAL)
        return cls(
            id=str(data['id']),
            meters=_number('tube', data, 'meters'),
            profile_key=str(data['profile_key']),
            material=str(data['material']),
            family=str(data['family']),
        )


@dataclass(frozen=True)
class AnglePart:
    """Kątownik rozliczany w metrach"""
    id: str
    meters: float
    profile_key: str
    material: str
    family: str

    REQUIRED = frozenset({'id', 'meters', 'profile_key', 'material', 'family'})
    OPTIONAL = frozenset()

    def to_dict(self) -> dict:
        return {'id': self.id, 'meters': self.meters, 'profile_key': self.profile_key,
                'material': self.material, 'family': self.family}

    @classmethod
    def from_dict(cls, data: dict) -> 'AnglePart':
        _check_keys('angle', data, cls.REQUIRED, cls.OPTIONAL)
        return cls(
            id=str(data['id']),
            meters=_number('angle', data, 'meters'),
            profile_key=str(data['profile_key']),
            material=str(data['material']),
            family=str(data['family']),
        )


@dataclass(frozen=True)
class AccessoryItem:
    """Akcesorium kupowane na sztuki"""
    sku: str
    quantity: float
    description: str = ""

    REQUIRED = frozenset({'sku', 'quantity'})
    OPTIONAL = frozenset({'description'})

    def to_dict(self) -> dict:
        return {'sku': self.sku, 'quantity': self.quantity, 'description': self.description}

    @classmethod
    def from_dict(cls, data: dict) -> 'AccessoryItem':
        _check_keys('accessory', data, cls.REQUIRED, cls.OPTIONAL)
        return cls(
            sku=str(data['sku']),
            quantity=_number('accessory', data, 'quantity'),
            description=str(data.get('description') or ""),
        )


@dataclass(frozen=True)
class ProcessItem:
    """Operacja robocizny rozliczana w minutach"""
    kind: ProcessKind
    minutes: float
    description: str = ""

    REQUIRED = frozenset({'kind', 'minutes'})
    OPTIONAL = frozenset({'description'})

    def to_dict(self) -> dict:
        return {'kind': self.kind.value, 'minutes': self.minutes, 'description': self.description}

    @classmethod
    def from_dict(cls, data: dict) -> 'ProcessItem':
        _check_keys('process', data, cls.REQUIRED, cls.OPTIONAL)
        try:
            kind = ProcessKind(data['kind'])
        except ValueError:
            raise InvalidFieldValueError('process.kind', data['kind'],
                                         f"expected one of {[k.value for k in ProcessKind]}")
        return cls(
            kind=kind,
            minutes=_number('process', data, 'minutes'),
            description=str(data.get('description') or ""),
        )


# ============================================================
# BOM
# ============================================================

@dataclass(frozen=True)
class BOM:
    """Kompletna lista materiałowa jednej wyceny"""
    flat_parts: Tuple[FlatPart, ...] = ()
    tubes: Tuple[TubePart, ...] = ()
    angles: Tuple[AnglePart, ...] = ()
    accessories: Tuple[AccessoryItem, ...] = ()
    processes: Tuple[ProcessItem, ...] = ()

    SECTIONS = {
        'flat_parts': FlatPart,
        'tubes': TubePart,
        'angles': AnglePart,
        'accessories': AccessoryItem,
        'processes': ProcessItem,
    }

    def __post_init__(self):
        for name in self.SECTIONS:
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @property
    def families(self) -> Tuple[str, ...]:
        """Rodziny produktów z detalami płaskimi (posortowane)"""
        return tuple(sorted({p.family for p in self.flat_parts}))

    def to_dict(self) -> dict:
        return {name: [item.to_dict() for item in getattr(self, name)]
                for name in self.SECTIONS}

    @classmethod
    def from_dict(cls, data: dict) -> 'BOM':
        unknown = set(data) - set(cls.SECTIONS)
        if unknown:
            raise BOMFormatError('bom', unknown=list(unknown))
        sections = {}
        for name, record_type in cls.SECTIONS.items():
            sections[name] = tuple(record_type.from_dict(item) for item in data.get(name) or [])
        bom = cls(**sections)
        logger.debug(
            f"BOM parsed: {len(bom.flat_parts)} flat, {len(bom.tubes)} tubes, "
            f"{len(bom.angles)} angles, {len(bom.accessories)} accessories, "
            f"{len(bom.processes)} processes"
        )
        return bom
