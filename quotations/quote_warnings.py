"""
Quote warnings
==============
Ostrzeżenia nieblokujące dołączane do wyniku wyceny.

Warnings never change computed numbers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class WarningCode(Enum):
    PART_DROPPED = "PART_DROPPED"
    DEFAULT_POLICY = "DEFAULT_POLICY"
    USED_MODE = "USED_MODE"
    LOW_UTILIZATION = "LOW_UTILIZATION"
    PRICE_AT_FLOOR = "PRICE_AT_FLOOR"


@dataclass(frozen=True)
class QuoteWarning:
    code: WarningCode
    message: str
    details: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __str__(self):
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {'code': self.code.value, 'message': self.message}
