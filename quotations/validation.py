"""
Quote Validator
===============
Walidacja wyceny przed nestingiem i kalkulacją.

Stany:
    NOT_VALIDATED -> VALID -> COMPUTED
    NOT_VALIDATED -> REJECTED

Every check runs and every problem is collected, so the caller can report the
whole list at once. Nothing is packed or priced for a rejected request.

Użycie:
    validator = QuoteValidator(tables, rules, nesting)
    issues = validator.validate(bom, policies)
    if validator.state is ValidationState.REJECTED:
        show(issues)
"""

import logging
import math
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from core.exceptions import InvalidStateTransitionError, QuoteRejectedError
from quotations.bom import BOM, FlatPart
from quotations.nesting.grouping import PartGrouper
from quotations.nesting.packer import RectanglePacker
from quotations.pricing.pricing_tables import (
    NestingParameters,
    PricingRules,
    PricingTables,
    SheetCostMode,
    SheetPolicy,
    SheetSelection,
    DEFAULT_SHEET_POLICY,
)

logger = logging.getLogger(__name__)


class ValidationState(Enum):
    NOT_VALIDATED = "not_validated"
    VALID = "valid"
    REJECTED = "rejected"
    COMPUTED = "computed"


ALLOWED_TRANSITIONS = {
    ValidationState.NOT_VALIDATED: [ValidationState.VALID, ValidationState.REJECTED],
    ValidationState.VALID: [ValidationState.COMPUTED],
    ValidationState.REJECTED: [],
    ValidationState.COMPUTED: [],
}


def _is_amount(value: float) -> bool:
    """Skończona, nieujemna ilość (metry, sztuki, minuty)"""
    return math.isfinite(value) and value >= 0


def _is_dimension(value: float) -> bool:
    return math.isfinite(value) and value > 0


@dataclass(frozen=True)
class ValidationIssue:
    """Pojedynczy problem walidacji"""
    field: str
    message: str

    def __str__(self):
        return f"{self.field}: {self.message}"

    def to_dict(self) -> Dict[str, str]:
        return {'field': self.field, 'message': self.message}


class QuoteValidator:
    """Walidator jednego żądania wyceny (jednorazowy - stan nie wraca)"""

    def __init__(self, tables: PricingTables, rules: PricingRules,
                 nesting: Optional[NestingParameters] = None):
        self.tables = tables
        self.rules = rules
        self.nesting = nesting or NestingParameters()
        self.packer = RectanglePacker(self.nesting.cutting_margin_mm)
        self.state = ValidationState.NOT_VALIDATED
        self.issues: List[ValidationIssue] = []

    # === State machine ===

    def _transition(self, target: ValidationState):
        allowed = ALLOWED_TRANSITIONS[self.state]
        if target not in allowed:
            raise InvalidStateTransitionError(
                "QuoteValidation", self.state.value, target.value,
                [s.value for s in allowed]
            )
        logger.debug(f"Validation state {self.state.value} -> {target.value}")
        self.state = target

    def mark_computed(self):
        """Pipeline zakończony (tylko ze stanu VALID)"""
        self._transition(ValidationState.COMPUTED)

    def raise_if_rejected(self):
        if self.state is ValidationState.REJECTED:
            raise QuoteRejectedError(self.issues)

    # === Validation ===

    def validate(self, bom: BOM, policies: Dict[str, SheetPolicy]) -> List[ValidationIssue]:
        """
        Sprawdź kompletne żądanie wyceny.

        Returns:
            Pełna lista problemów (pusta = VALID)
        """
        if self.state is not ValidationState.NOT_VALIDATED:
            raise InvalidStateTransitionError(
                "QuoteValidation", self.state.value, "validate",
                [ValidationState.NOT_VALIDATED.value]
            )

        issues: List[ValidationIssue] = []
        issues += self._check_tables()
        issues += self._check_rules()
        issues += self._check_flat_parts(bom)
        issues += self._check_policies(bom, policies)
        issues += self._check_profiles(bom)
        issues += self._check_accessories(bom)
        issues += self._check_processes(bom)

        issues = self._unique(issues)
        self.issues = issues
        if issues:
            self._transition(ValidationState.REJECTED)
            logger.warning(f"Quote rejected with {len(issues)} issue(s)")
        else:
            self._transition(ValidationState.VALID)
        return list(issues)

    def _check_tables(self) -> List[ValidationIssue]:
        issues = []
        t = self.tables
        if not t.density_kg_m3 > 0:
            issues.append(ValidationIssue('density_kg_m3', "Density must be positive."))
        if not t.sheet_catalog:
            issues.append(ValidationIssue('sheet_catalog', "Sheet catalog is empty."))
        for entry in t.sheet_catalog:
            if not (entry.width_mm > 0 and entry.height_mm > 0):
                issues.append(ValidationIssue(
                    f"sheet_catalog:{entry.id}", f"Sheet {entry.id} has non-positive dimensions."))
        for material, price in sorted(t.material_price_per_kg.items()):
            if not price > 0:
                issues.append(ValidationIssue(
                    f"material_price:{material}", f"Price per kg for {material} must be positive."))
        if not 0 <= t.overhead_pct < 1:
            issues.append(ValidationIssue('overhead_pct', "Overhead must be in [0, 1)."))
        return issues

    def _check_rules(self) -> List[ValidationIssue]:
        issues = []
        if not self.rules.markup > 0:
            issues.append(ValidationIssue('markup', "Markup must be positive."))
        if not 0 <= self.rules.min_margin_pct < 1:
            issues.append(ValidationIssue('min_margin_pct', "Minimum margin must be in [0, 1)."))
        return issues

    def _check_material(self, field: str, material: str) -> List[ValidationIssue]:
        if material in self.tables.material_price_per_kg:
            return []
        return [ValidationIssue(field, f"No price per kg for material {material}.")]

    def _check_flat_parts(self, bom: BOM) -> List[ValidationIssue]:
        issues = []
        for part in bom.flat_parts:
            field = f"flat_part:{part.id}"
            if not (_is_dimension(part.width_mm) and _is_dimension(part.height_mm)):
                issues.append(ValidationIssue(field, f"Invalid blank size for {part.id}."))
            if not _is_dimension(part.thickness_mm):
                issues.append(ValidationIssue(field, f"Invalid thickness for {part.id}."))
            if not (math.isfinite(part.quantity) and float(part.quantity).is_integer()):
                issues.append(ValidationIssue(field, f"Quantity of {part.id} must be a whole number."))
            elif part.quantity > 0:
                issues += self._check_material(f"material:{part.material}", part.material)
        return issues

    def _check_policies(self, bom: BOM, policies: Dict[str, SheetPolicy]) -> List[ValidationIssue]:
        issues = []
        catalog = self.tables.sheet_catalog

        for family in bom.families:
            field = f"sheet_policy:{family}"
            policy = policies.get(family, DEFAULT_SHEET_POLICY)
            parts = [p for p in bom.flat_parts
                     if p.family == family and p.quantity > 0
                     and _is_dimension(p.width_mm) and _is_dimension(p.height_mm)]

            if policy.cost_mode is SheetCostMode.USED_WITH_SCRAP:
                if policy.scrap_fraction is None:
                    issues.append(ValidationIssue(
                        field, f"USED mode requires a scrap fraction for family {family}."))
                elif not 0 <= policy.scrap_fraction < 1:
                    issues.append(ValidationIssue(
                        field, f"Scrap fraction for family {family} must be in [0, 1)."))

            if policy.selection is SheetSelection.MANUAL:
                if not policy.manual_sheet_id:
                    issues.append(ValidationIssue(
                        field, f"Select a manual sheet for family {family}."))
                    continue
                sheet = next((e for e in catalog if e.id == policy.manual_sheet_id), None)
                if sheet is None:
                    issues.append(ValidationIssue(
                        field, f"Manual sheet {policy.manual_sheet_id} not in catalog for family {family}."))
                    continue
                for part in parts:
                    if not self.packer.fits_on_sheet(part, sheet):
                        issues.append(ValidationIssue(
                            f"flat_part:{part.id}",
                            f"Part {part.id} does not fit sheet {sheet.id}."))
            elif catalog:
                issues += self._check_auto_fit(family, parts)
        return issues

    def _check_auto_fit(self, family: str, parts: List[FlatPart]) -> List[ValidationIssue]:
        issues = []
        groups: Dict = OrderedDict()
        for part in parts:
            groups.setdefault(PartGrouper.key_for(part), []).append(part)

        for key in sorted(groups):
            group_parts = groups[key]
            if any(self.packer.all_fit(group_parts, e) for e in self.tables.sheet_catalog):
                continue
            misfits = [p for p in group_parts
                       if not any(self.packer.fits_on_sheet(p, e) for e in self.tables.sheet_catalog)]
            if misfits:
                for part in misfits:
                    issues.append(ValidationIssue(
                        f"flat_part:{part.id}",
                        f"Part {part.id} does not fit any catalog sheet."))
            else:
                issues.append(ValidationIssue(
                    f"sheet_policy:{family}",
                    f"No single catalog sheet holds every part of group {key.label}."))
        return issues

    def _check_profiles(self, bom: BOM) -> List[ValidationIssue]:
        issues = []
        for tube in bom.tubes:
            if not _is_amount(tube.meters):
                issues.append(ValidationIssue(f"tube:{tube.id}", f"Invalid length for {tube.id}."))
            elif tube.meters > 0:
                if tube.profile_key not in self.tables.tube_kg_per_meter:
                    issues.append(ValidationIssue(
                        f"tube_profile:{tube.profile_key}",
                        f"No kg/m registered for tube {tube.profile_key}."))
                issues += self._check_material(f"material:{tube.material}", tube.material)
        for angle in bom.angles:
            if not _is_amount(angle.meters):
                issues.append(ValidationIssue(f"angle:{angle.id}", f"Invalid length for {angle.id}."))
            elif angle.meters > 0:
                if angle.profile_key not in self.tables.angle_kg_per_meter:
                    issues.append(ValidationIssue(
                        f"angle_profile:{angle.profile_key}",
                        f"No kg/m registered for angle {angle.profile_key}."))
                issues += self._check_material(f"material:{angle.material}", angle.material)
        return issues

    def _check_accessories(self, bom: BOM) -> List[ValidationIssue]:
        issues = []
        for item in bom.accessories:
            if not _is_amount(item.quantity):
                issues.append(ValidationIssue(f"accessory:{item.sku}", f"Invalid quantity for {item.sku}."))
            elif item.quantity > 0 and item.sku not in self.tables.accessory_unit_price:
                issues.append(ValidationIssue(
                    f"accessory_price:{item.sku}", f"No unit price registered for accessory {item.sku}."))
        return issues

    def _check_processes(self, bom: BOM) -> List[ValidationIssue]:
        issues = []
        for item in bom.processes:
            if not _is_amount(item.minutes):
                issues.append(ValidationIssue(
                    f"process:{item.kind.value}", f"Invalid minutes for {item.kind.value}."))
            elif item.minutes > 0 and item.kind.value not in self.tables.process_cost_per_hour:
                issues.append(ValidationIssue(
                    f"process_rate:{item.kind.value}",
                    f"No hourly cost registered for process {item.kind.value}."))
        return issues

    @staticmethod
    def _unique(issues: List[ValidationIssue]) -> List[ValidationIssue]:
        return list(OrderedDict.fromkeys(issues))
