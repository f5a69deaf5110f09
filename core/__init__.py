#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Quote Engine Core Module
========================
Wspólne komponenty dla wszystkich modułów.
"""

# Exceptions
from core.exceptions import (
    QuoteEngineError,
    ValidationError,
    RequiredFieldError,
    InvalidFieldValueError,
    BOMFormatError,
    QuoteRejectedError,
    PricingError,
    UnknownPricingKeyError,
    UnknownSheetError,
    BusinessRuleError,
    PartDoesNotFitError,
    WorkflowError,
    InvalidStateTransitionError,
)

__all__ = [
    # Exceptions
    'QuoteEngineError',
    'ValidationError',
    'RequiredFieldError',
    'InvalidFieldValueError',
    'BOMFormatError',
    'QuoteRejectedError',
    'PricingError',
    'UnknownPricingKeyError',
    'UnknownSheetError',
    'BusinessRuleError',
    'PartDoesNotFitError',
    'WorkflowError',
    'InvalidStateTransitionError',
]
