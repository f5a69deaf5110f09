"""
Rectangle Packer
================
Pakowanie prostokątów obrysu detali na arkusze (MaxRects, best area fit).

Algorytm:
1. Każdy detal rozwinięty do `quantity` kopii
2. Sortowanie: pole malejąco, dłuższy bok malejąco, kolejność wejściowa
3. Dla każdej kopii: przegląd wolnych prostokątów wszystkich otwartych
   arkuszy, wybór najmniejszej pozostałej powierzchni (obie orientacje,
   o ile detal może być obracany; przy remisie orientacja wejściowa,
   potem krótszy pozostały bok)
4. Brak miejsca -> nowy arkusz
5. Po umieszczeniu: podział wolnych prostokątów i usunięcie zawartych

The cutting margin is part of the working geometry: every free region starts
`margin` from the top/left sheet edge and every part is inflated by `margin`
on its right/bottom side. This reserves the margin on all four sheet edges
and between neighbours without charging it as a separate waste item.

No randomness: identical input gives identical placements.

Użycie:
    packer = RectanglePacker(cutting_margin_mm=10)
    sheets = packer.pack(group.parts, catalog_entry)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from config.settings import NESTING_CUTTING_MARGIN_MM
from core.exceptions import PartDoesNotFitError
from quotations.bom import FlatPart
from quotations.nesting.models import PlacedPart, SheetInstance, color_for_index
from quotations.pricing.pricing_tables import SheetCatalogEntry

logger = logging.getLogger(__name__)

EPS = 1e-6


# ============================================================
# Free rectangle bookkeeping
# ============================================================

@dataclass
class FreeRect:
    """Wolny obszar arkusza (współrzędne robocze, mm)"""
    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def can_hold(self, width: float, height: float) -> bool:
        return width <= self.width + EPS and height <= self.height + EPS

    def contains(self, other: 'FreeRect') -> bool:
        return (other.x >= self.x - EPS and other.y >= self.y - EPS and
                other.right <= self.right + EPS and other.bottom <= self.bottom + EPS)

    def intersects(self, x: float, y: float, width: float, height: float) -> bool:
        return (x + width > self.x + EPS and x < self.right - EPS and
                y + height > self.y + EPS and y < self.bottom - EPS)


def split_free_rects(free_rects: List[FreeRect], x: float, y: float,
                     width: float, height: float) -> List[FreeRect]:
    """
    Podziel wolne prostokąty kolidujące z umieszczonym obszarem.

    Every intersecting free rectangle is replaced by up to four maximal
    sub-rectangles (left, right, top, bottom of the used area).
    """
    result = []
    for fr in free_rects:
        if not fr.intersects(x, y, width, height):
            result.append(fr)
            continue

        # Lewy
        if x > fr.x + EPS:
            result.append(FreeRect(fr.x, fr.y, x - fr.x, fr.height))
        # Prawy
        if x + width < fr.right - EPS:
            result.append(FreeRect(x + width, fr.y, fr.right - (x + width), fr.height))
        # Górny
        if y > fr.y + EPS:
            result.append(FreeRect(fr.x, fr.y, fr.width, y - fr.y))
        # Dolny
        if y + height < fr.bottom - EPS:
            result.append(FreeRect(fr.x, y + height, fr.width, fr.bottom - (y + height)))

    return prune_free_rects(result)


def prune_free_rects(free_rects: List[FreeRect]) -> List[FreeRect]:
    """Usuń prostokąty zdegenerowane i zawarte w innych; kolejność (y, x)"""
    rects = [r for r in free_rects if r.width > EPS and r.height > EPS]
    kept = []
    for i, a in enumerate(rects):
        redundant = False
        for j, b in enumerate(rects):
            if i == j or not b.contains(a):
                continue
            # Identyczne prostokąty: zostaje pierwszy
            if not a.contains(b) or j < i:
                redundant = True
                break
        if not redundant:
            kept.append(a)
    kept.sort(key=lambda r: (r.y, r.x, r.width, r.height))
    return kept


# ============================================================
# Packer
# ============================================================

@dataclass
class _Copy:
    part: FlatPart
    order: int
    color: str


@dataclass
class _OpenSheet:
    instance: SheetInstance
    free: List[FreeRect] = field(default_factory=list)


@dataclass
class _Candidate:
    sheet_idx: int
    rect_idx: int
    width: float        # po obrocie, bez marginesu
    height: float
    rotated: bool
    score: Tuple


class RectanglePacker:
    """
    Pakowanie MaxRects z wyborem best-area-fit po wszystkich otwartych arkuszach.

    Użycie:
        packer = RectanglePacker(cutting_margin_mm=5)
        if packer.fits_on_sheet(part, sheet):
            sheets = packer.pack(parts, sheet)
    """

    def __init__(self, cutting_margin_mm: float = NESTING_CUTTING_MARGIN_MM):
        if cutting_margin_mm < 0:
            raise ValueError(f"cutting_margin_mm must be >= 0, got {cutting_margin_mm}")
        self.margin = cutting_margin_mm

    # === Geometry helpers ===

    def _orientations(self, part: FlatPart) -> List[Tuple[float, float, bool]]:
        options = [(part.width_mm, part.height_mm, False)]
        if part.can_rotate and abs(part.width_mm - part.height_mm) > EPS:
            options.append((part.height_mm, part.width_mm, True))
        return options

    def _empty_sheet_rect(self, sheet: SheetCatalogEntry) -> FreeRect:
        return FreeRect(self.margin, self.margin,
                        sheet.width_mm - self.margin, sheet.height_mm - self.margin)

    def fits_on_sheet(self, part: FlatPart, sheet: SheetCatalogEntry) -> bool:
        """Czy detal mieści się na pustym arkuszu w dozwolonej orientacji"""
        area = self._empty_sheet_rect(sheet)
        if area.width <= EPS or area.height <= EPS:
            return False
        return any(area.can_hold(w + self.margin, h + self.margin)
                   for w, h, _ in self._orientations(part))

    def all_fit(self, parts: Sequence[FlatPart], sheet: SheetCatalogEntry) -> bool:
        return all(self.fits_on_sheet(p, sheet) for p in parts)

    # === Packing ===

    def _expand(self, parts: Sequence[FlatPart]) -> List[_Copy]:
        copies = []
        for order, part in enumerate(parts):
            color = color_for_index(order)
            for _ in range(max(0, int(part.quantity))):
                copies.append(_Copy(part, order, color))
        copies.sort(key=lambda c: (-c.part.area_mm2,
                                   -max(c.part.width_mm, c.part.height_mm),
                                   c.order))
        return copies

    def _best_fit(self, copy: _Copy, sheets: List[_OpenSheet],
                  first_sheet: int = 0) -> Optional[_Candidate]:
        best = None
        for s_idx in range(first_sheet, len(sheets)):
            for r_idx, fr in enumerate(sheets[s_idx].free):
                for w, h, rotated in self._orientations(copy.part):
                    iw, ih = w + self.margin, h + self.margin
                    if not fr.can_hold(iw, ih):
                        continue
                    leftover_area = fr.area - iw * ih
                    short_side = min(fr.width - iw, fr.height - ih)
                    score = (leftover_area, rotated, short_side, s_idx, r_idx)
                    if best is None or score < best.score:
                        best = _Candidate(s_idx, r_idx, w, h, rotated, score)
        return best

    def _place(self, copy: _Copy, candidate: _Candidate, sheets: List[_OpenSheet]):
        open_sheet = sheets[candidate.sheet_idx]
        fr = open_sheet.free[candidate.rect_idx]
        open_sheet.instance.placements.append(PlacedPart(
            part_id=copy.part.id,
            label=copy.part.label,
            x_mm=fr.x,
            y_mm=fr.y,
            width_mm=candidate.width,
            height_mm=candidate.height,
            rotated=candidate.rotated,
            color=copy.color,
        ))
        open_sheet.free = split_free_rects(
            open_sheet.free, fr.x, fr.y,
            candidate.width + self.margin, candidate.height + self.margin,
        )

    def pack(self, parts: Sequence[FlatPart], sheet: SheetCatalogEntry) -> List[SheetInstance]:
        """
        Rozmieść wszystkie kopie detali na arkuszach formatu `sheet`.

        Args:
            parts: detale jednej grupy (quantity > 0)
            sheet: format arkusza z katalogu

        Returns:
            Lista SheetInstance z rozmieszczeniem i wykorzystaniem

        Raises:
            PartDoesNotFitError: detal nie mieści się na pustym arkuszu
        """
        start_time = time.time()

        for part in parts:
            if part.quantity > 0 and not self.fits_on_sheet(part, sheet):
                raise PartDoesNotFitError(part.id, part.width_mm, part.height_mm,
                                          sheet.width_mm, sheet.height_mm, self.margin)

        copies = self._expand(parts)
        sheets: List[_OpenSheet] = []

        for copy in copies:
            candidate = self._best_fit(copy, sheets)
            if candidate is None:
                sheets.append(_OpenSheet(
                    instance=SheetInstance(len(sheets), sheet.width_mm, sheet.height_mm),
                    free=[self._empty_sheet_rect(sheet)],
                ))
                candidate = self._best_fit(copy, sheets, first_sheet=len(sheets) - 1)
            self._place(copy, candidate, sheets)

        result = [s.instance for s in sheets]
        for instance in result:
            instance.calculate_metrics()

        elapsed = time.time() - start_time
        logger.debug(
            f"→ Packed {len(copies)} copies on {len(result)} sheet(s) "
            f"{sheet.width_mm:g}x{sheet.height_mm:g} in {elapsed * 1000:.1f}ms"
        )
        return result
