"""
Numeric coercion for store data.

Machine and plan documents are edited by hand, so quantities and rates
arrive as numbers, numeric strings, empty strings, None or NaN.
"""

import math
from datetime import date, datetime
from typing import Any, Optional


def to_number(value: Any, default: float = 0.0) -> float:
    """
    Coerce a value to a finite, non-negative float.

    - 250 → 250.0
    - "1,200" → 1200.0
    - None / "" / "abc" / NaN / inf → default
    - -5 → default

    Args:
        value: Raw value from the store
        default: Returned when value is unusable

    Returns:
        Finite float >= 0
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return default

    try:
        number = float(value)
    except (TypeError, ValueError):
        return default

    if not math.isfinite(number) or number < 0:
        return default
    return number


def to_int(value: Any, default: int = 0) -> int:
    """Coerce to a non-negative int, rounding up fractional days."""
    number = to_number(value, float(default))
    return int(math.ceil(number))


def positive_or(value: Any, fallback: float) -> float:
    """Return value as float if it is strictly positive, otherwise fallback."""
    number = to_number(value)
    return number if number > 0 else fallback


def to_date(value: Any) -> Optional[date]:
    """
    Parse a store date.

    Accepts date/datetime objects and ISO strings ("2025-03-01",
    "2025-03-01T08:00:00Z"). Anything else becomes None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    return None
