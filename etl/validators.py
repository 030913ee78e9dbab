# WORKFLOW: Inclusion rules for product rows.
# Used by: Record transformer, batch pipeline counters
# Functions:
# 1. extract_code() - Digits-only identifier from the first cell
# 2. has_per_100g_minimum() - Energy plus at least one macro per 100g
# 3. is_serving_complete() - All serving-basis fields present
# 4. validate_nutrients() - Apply the configured NutrientBasis policy
#
# Validation flow: Identifier check -> Policy (serving / per-100g) -> Accept or reject
# Rejections are expected outcomes, reported as a reason string, never raised.

"""
Inclusion rules for product rows.
"""

import re
from enum import Enum
from typing import Mapping, NamedTuple, Optional

NON_DIGIT_RE = re.compile(r"[^0-9]")

MACRO_KEYS = ("carbohydrates", "fat", "proteins")


class NutrientBasis(str, Enum):
    PER_100G = "per_100g"
    SERVING_WITH_FALLBACK = "serving_with_fallback"


class RejectReason(str, Enum):
    MISSING_CODE = "missing_code"
    MISSING_ENERGY = "missing_energy"
    MISSING_MACROS = "missing_macros"


class ValidationResult(NamedTuple):
    accepted: bool
    basis: Optional[str] = None
    reason: Optional[RejectReason] = None


def extract_code(cell: Optional[str]) -> str:
    """
    Strip every non-digit character from the identifier cell.

    Args:
        cell: Raw first cell (e.g. "abc123-45")

    Returns:
        Digits only ("12345"); empty string if nothing is left
    """
    if not cell:
        return ""
    return NON_DIGIT_RE.sub("", cell)


def has_per_100g_minimum(values: Mapping[str, Optional[float]]) -> bool:
    """Energy (kcal) present and at least one of carbohydrates, fat, proteins."""
    if values.get("energy_kcal") is None:
        return False
    return any(values.get(key) is not None for key in MACRO_KEYS)


def is_serving_complete(
    values: Mapping[str, Optional[float]],
    serving_size: Optional[float],
    serving_unit: Optional[str],
) -> bool:
    """Energy, serving size and unit, fiber, carbohydrates, fat and proteins all present."""
    if serving_size is None or serving_unit is None:
        return False
    return all(
        values.get(key) is not None
        for key in ("energy_kcal", "fiber", "carbohydrates", "fat", "proteins")
    )


def _per_100g_reason(values: Mapping[str, Optional[float]]) -> RejectReason:
    if values.get("energy_kcal") is None:
        return RejectReason.MISSING_ENERGY
    return RejectReason.MISSING_MACROS


def validate_nutrients(
    per_100g: Mapping[str, Optional[float]],
    per_serving: Mapping[str, Optional[float]],
    serving_size: Optional[float],
    serving_unit: Optional[str],
    policy: NutrientBasis = NutrientBasis.PER_100G,
) -> ValidationResult:
    """
    Decide whether a row carries enough nutrient data to be published.

    Args:
        per_100g: Parsed per-100g values keyed by attribute name
        per_serving: Parsed per-serving values keyed by attribute name
        serving_size: Parsed serving quantity
        serving_unit: Parsed serving unit
        policy: Which basis to evaluate

    Returns:
        ValidationResult with the accepted basis ("serving" or "100g")
    """
    if policy == NutrientBasis.SERVING_WITH_FALLBACK:
        if is_serving_complete(per_serving, serving_size, serving_unit):
            return ValidationResult(True, "serving")

    if has_per_100g_minimum(per_100g):
        return ValidationResult(True, "100g")

    return ValidationResult(False, reason=_per_100g_reason(per_100g))
