"""
Quote Engine - Exceptions
=========================
Hierarchia wyjątków silnika wyceny (nesting + koszty).

Validation errors are fatal and block the pipeline. Non-fatal observations
travel as warnings inside QuoteResult and are never raised.
"""

from typing import Any, List, Optional


class QuoteEngineError(Exception):
    """Bazowy wyjątek dla wszystkich błędów silnika wyceny"""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================
# Validation Errors
# ============================================================

class ValidationError(QuoteEngineError):
    """Błędy walidacji danych wejściowych"""
    pass


class RequiredFieldError(ValidationError):
    """Brak wymaganego pola"""

    def __init__(self, field: str, entity_type: str = None):
        msg = f"Field '{field}' is required"
        if entity_type:
            msg = f"{entity_type}: {msg}"
        super().__init__(
            msg,
            code="REQUIRED_FIELD",
            details={"field": field, "entity_type": entity_type}
        )


class InvalidFieldValueError(ValidationError):
    """Nieprawidłowa wartość pola"""

    def __init__(self, field: str, value: Any, reason: str = None):
        msg = f"Invalid value for '{field}': {value}"
        if reason:
            msg += f" ({reason})"
        super().__init__(
            msg,
            code="INVALID_FIELD_VALUE",
            details={"field": field, "value": str(value), "reason": reason}
        )


class BOMFormatError(ValidationError):
    """Rekord BOM z nieznanymi lub brakującymi kluczami"""

    def __init__(self, kind: str, missing: List[str] = None, unknown: List[str] = None):
        parts = []
        if missing:
            parts.append(f"missing {sorted(missing)}")
        if unknown:
            parts.append(f"unknown {sorted(unknown)}")
        super().__init__(
            f"Malformed {kind} record: {', '.join(parts)}",
            code="BOM_FORMAT",
            details={
                "kind": kind,
                "missing": sorted(missing or []),
                "unknown": sorted(unknown or []),
            }
        )


class QuoteRejectedError(ValidationError):
    """Wycena odrzucona przez walidator - zawiera pełną listę problemów"""

    def __init__(self, issues: List[Any]):
        self.issues = list(issues)
        super().__init__(
            f"Quote request rejected with {len(self.issues)} issue(s)",
            code="QUOTE_REJECTED",
            details={"issues": [str(i) for i in self.issues]}
        )


# ============================================================
# Pricing Errors
# ============================================================

class PricingError(QuoteEngineError):
    """Błędy tabel cenowych i katalogu arkuszy"""
    pass


class UnknownPricingKeyError(PricingError):
    """Brak klucza w tabeli cenowej (profil, SKU, proces)"""

    def __init__(self, table: str, key: str):
        super().__init__(
            f"No entry '{key}' in pricing table '{table}'",
            code="UNKNOWN_PRICING_KEY",
            details={"table": table, "key": key}
        )


class UnknownSheetError(PricingError):
    """Arkusz nie istnieje w katalogu"""

    def __init__(self, sheet_id: str, available: Optional[List[str]] = None):
        super().__init__(
            f"Sheet '{sheet_id}' not found in catalog",
            code="UNKNOWN_SHEET",
            details={"sheet_id": sheet_id, "available": available or []}
        )


# ============================================================
# Business Logic Errors
# ============================================================

class BusinessRuleError(QuoteEngineError):
    """Naruszenie reguły biznesowej"""

    def __init__(self, rule: str, message: str, details: dict = None):
        super().__init__(
            message,
            code=f"BUSINESS_RULE_{rule.upper()}",
            details=details or {}
        )


class PartDoesNotFitError(BusinessRuleError):
    """Detal nie mieści się na pustym arkuszu w żadnej dozwolonej orientacji"""

    def __init__(self, part_id: str, width_mm: float, height_mm: float,
                 sheet_width_mm: float, sheet_height_mm: float, margin_mm: float):
        super().__init__(
            "part_fits_sheet",
            f"Part '{part_id}' ({width_mm:g}x{height_mm:g} mm) does not fit "
            f"sheet {sheet_width_mm:g}x{sheet_height_mm:g} mm with margin {margin_mm:g} mm",
            details={
                "part_id": part_id,
                "part_size": [width_mm, height_mm],
                "sheet_size": [sheet_width_mm, sheet_height_mm],
                "margin_mm": margin_mm,
            }
        )


# ============================================================
# Workflow Errors
# ============================================================

class WorkflowError(QuoteEngineError):
    """Błędy przepływu wyceny"""
    pass


class InvalidStateTransitionError(WorkflowError):
    """Niedozwolone przejście stanu"""

    def __init__(self, entity_type: str, current_state: str, target_state: str,
                 allowed_states: List[str] = None):
        super().__init__(
            f"Cannot transition {entity_type} from '{current_state}' to '{target_state}'",
            code="INVALID_STATE_TRANSITION",
            details={
                "entity_type": entity_type,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_states": allowed_states or []
            }
        )
