# WORKFLOW: Numeric and serving-size parsing for product rows.
# Used by: Record transformer, validators
# Functions:
# 1. parse_number() - Locale-tolerant float parsing ("12,5" -> 12.5)
# 2. quantity_from_text() - Leading numeral of a free-text serving size
# 3. unit_from_text() - Serving unit from a closed vocabulary (g, ml, ...)
# 4. parse_serving() - Quantity/unit fallback chain for one row
# 5. catalog_serving() - Defaults applied when emitting catalog records
#
# Parsing flow: Raw cell -> Cleanup -> float / regex match -> Optional value
# Every parser returns None on failure and never raises.

"""
Numeric and serving-size parsing for product rows.
"""

import math
import re
from typing import NamedTuple, Optional, Tuple

SERVING_QTY_RE = re.compile(r"([\d.,]+)\s*(g|gram|grams|ml|milliliter|milliliters)?")
# Units may be glued to the number ("30g", "250ml") but not inside a word ("mg", "bag")
SERVING_UNIT_RE = re.compile(r"(?<![a-z])(ml|milliliters?|g|grams?)\b", re.IGNORECASE)
WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_CATALOG_SERVING_SIZE = 100.0
DEFAULT_CATALOG_SERVING_UNIT = "g"


class ServingInfo(NamedTuple):
    raw_size: Optional[float]
    quantity: Optional[float]
    unit: Optional[str]


def parse_number(text: Optional[str]) -> Optional[float]:
    """
    Parse a locale-variant numeric string.

    Args:
        text: Raw cell value (e.g. "12,5", " 1 200.5")

    Returns:
        Finite float, or None if the text is missing or not a number
    """
    if not text:
        return None
    cleaned = WHITESPACE_RE.sub("", text).replace(",", ".")
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def quantity_from_text(size_text: Optional[str]) -> Optional[float]:
    """First run of digits/separators in a serving-size text ("30 g" -> 30.0)."""
    if not size_text:
        return None
    match = SERVING_QTY_RE.search(size_text)
    if not match:
        return None
    return parse_number(match.group(1))


def unit_from_text(size_text: Optional[str]) -> Optional[str]:
    """Serving unit found anywhere in the text, lowercased."""
    if not size_text:
        return None
    match = SERVING_UNIT_RE.search(size_text)
    if not match:
        return None
    return match.group(1).lower()


def first_present(*candidates):
    """Return the first candidate that is not None."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def parse_serving(size_text: Optional[str], quantity_text: Optional[str]) -> ServingInfo:
    """
    Resolve serving quantity and unit for one row.

    Quantity comes from the dedicated quantity column when numeric, otherwise
    from the leading numeral of the free-text size. The unit is matched
    independently anywhere in the size text.
    """
    quantity = parse_number(quantity_text)
    if quantity is None:
        quantity = quantity_from_text(size_text)
    return ServingInfo(
        raw_size=parse_number(size_text),
        quantity=quantity,
        unit=unit_from_text(size_text),
    )


def catalog_serving(quantity: Optional[float], unit: Optional[str]) -> Tuple[float, str]:
    """Serving size/unit as emitted in catalog records, with defaults applied."""
    return (
        first_present(quantity, DEFAULT_CATALOG_SERVING_SIZE),
        first_present(unit, DEFAULT_CATALOG_SERVING_UNIT),
    )
