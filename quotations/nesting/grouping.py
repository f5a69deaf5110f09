"""
Part Grouper
============
Podział detali płaskich na grupy nestingu.

Grupa = rodzina produktu + (materiał, grubość, wykończenie). Each group is
packed and costed independently and is governed by exactly one SheetPolicy.

The family is part of the key because sheet policies are set per family.
Parts of the same material and thickness from two families therefore never
share a sheet.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from quotations.bom import FlatPart
from quotations.nesting.models import GroupKey
from quotations.quote_warnings import QuoteWarning, WarningCode

logger = logging.getLogger(__name__)


@dataclass
class PartGroup:
    """Detale jednej grupy w kolejności wejściowej"""
    key: GroupKey
    parts: List[FlatPart] = field(default_factory=list)

    @property
    def copies(self) -> int:
        return sum(p.quantity for p in self.parts)


class PartGrouper:
    """
    Grupowanie detali płaskich.

    Użycie:
        groups, warnings = PartGrouper().group(bom.flat_parts)
    """

    @staticmethod
    def key_for(part: FlatPart) -> GroupKey:
        return GroupKey(
            family=part.family,
            material=part.material,
            thickness_mm=float(part.thickness_mm),
            finish=part.finish,
        )

    def group(self, parts: Iterable[FlatPart]) -> Tuple[List[PartGroup], List[QuoteWarning]]:
        """
        Rozdziel detale na grupy.

        Returns:
            (groups sorted by key, warnings for dropped parts)
        """
        warnings: List[QuoteWarning] = []
        by_key: Dict[GroupKey, PartGroup] = {}

        for part in parts:
            if part.quantity <= 0:
                warnings.append(QuoteWarning(
                    WarningCode.PART_DROPPED,
                    f"Part '{part.id}' dropped: quantity {part.quantity} is not positive",
                    {'part_id': part.id, 'quantity': part.quantity},
                ))
                logger.warning(f"Dropping part {part.id} with quantity {part.quantity}")
                continue

            key = self.key_for(part)
            if key not in by_key:
                by_key[key] = PartGroup(key)
            by_key[key].parts.append(part)

        groups = [by_key[k] for k in sorted(by_key)]
        logger.debug(f"Grouped parts into {len(groups)} group(s): {[g.key.label for g in groups]}")
        return groups, warnings
