"""
Sheet Catalog Selector
======================
Dobór formatu arkusza dla grupy detali.

- MANUAL: format wskazany w polityce (musi istnieć w katalogu)
- AUTO: pełne pakowanie na każdym formacie z katalogu, wybór wg
  (liczba arkuszy, odpad, pozycja w katalogu)

The packing of the chosen format is returned with the selection and reused
by later stages.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from core.exceptions import PartDoesNotFitError
from quotations.bom import FlatPart
from quotations.nesting.models import SheetInstance
from quotations.nesting.packer import RectanglePacker
from quotations.pricing.pricing_tables import (
    SheetCatalogEntry,
    SheetPolicy,
    SheetSelection,
    find_sheet,
)

logger = logging.getLogger(__name__)


@dataclass
class SelectionResult:
    """Wybrany format i jego rozkrój"""
    sheet: SheetCatalogEntry
    sheets: List[SheetInstance]
    candidates_evaluated: int = 1

    @property
    def sheet_count(self) -> int:
        return len(self.sheets)

    @property
    def waste_mm2(self) -> float:
        return sum(s.area_mm2 - s.placed_area_mm2 for s in self.sheets)


class SheetCatalogSelector:
    """
    Wybór formatu arkusza.

    Użycie:
        selector = SheetCatalogSelector(RectanglePacker(10))
        selection = selector.select(group.parts, tables.sheet_catalog, policy)
    """

    def __init__(self, packer: RectanglePacker):
        self.packer = packer

    def select(self, parts: Sequence[FlatPart], catalog: Sequence[SheetCatalogEntry],
               policy: SheetPolicy) -> SelectionResult:
        if policy.selection is SheetSelection.MANUAL:
            return self._select_manual(parts, catalog, policy.manual_sheet_id)
        return self._select_auto(parts, catalog)

    def _select_manual(self, parts: Sequence[FlatPart], catalog: Sequence[SheetCatalogEntry],
                       sheet_id: str) -> SelectionResult:
        sheet = find_sheet(tuple(catalog), sheet_id)
        sheets = self.packer.pack(parts, sheet)
        logger.debug(f"Manual sheet {sheet.id}: {len(sheets)} sheet(s)")
        return SelectionResult(sheet, sheets)

    def _select_auto(self, parts: Sequence[FlatPart],
                     catalog: Sequence[SheetCatalogEntry]) -> SelectionResult:
        best = None
        best_score: Tuple = ()
        evaluated = 0

        for position, entry in enumerate(catalog):
            if not self.packer.all_fit(parts, entry):
                logger.debug(f"Skipping sheet {entry.id}: not every part fits")
                continue

            sheets = self.packer.pack(parts, entry)
            candidate = SelectionResult(entry, sheets)
            evaluated += 1
            score = (candidate.sheet_count, candidate.waste_mm2, position)
            logger.debug(
                f"Candidate {entry.id}: {candidate.sheet_count} sheet(s), "
                f"waste {candidate.waste_mm2 / 1e6:.3f} m2"
            )
            if best is None or score < best_score:
                best, best_score = candidate, score

        if best is None:
            largest_sheet = max(catalog, key=lambda e: e.area_mm2) if catalog else None
            offender = next(
                (p for p in parts
                 if largest_sheet is None or not self.packer.fits_on_sheet(p, largest_sheet)),
                max(parts, key=lambda p: p.area_mm2),
            )
            raise PartDoesNotFitError(
                offender.id, offender.width_mm, offender.height_mm,
                largest_sheet.width_mm if largest_sheet else 0.0,
                largest_sheet.height_mm if largest_sheet else 0.0,
                self.packer.margin,
            )

        best.candidates_evaluated = evaluated
        logger.debug(f"Auto-selected sheet {best.sheet.id} out of {evaluated} candidate(s)")
        return best
