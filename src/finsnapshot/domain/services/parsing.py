"""Numeric gate for every externally sourced value."""
from __future__ import annotations

import math
import re
from typing import Any, Optional

_YEAR_PREFIX = re.compile(r"^(\d{4})")


def parse_number(value: Any) -> Optional[float]:
    """Return a finite float, or ``None`` when the input is not a number.

    Strings have thousands separators and surrounding whitespace removed
    before parsing ("1,234.5" -> 1234.5). Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.replace(",", "").strip()
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
    return number if math.isfinite(number) else None


def extract_year(period_end_date: Any) -> Optional[str]:
    """Pull the four-digit fiscal year prefix out of a period-end date."""
    if period_end_date is None:
        return None
    match = _YEAR_PREFIX.match(str(period_end_date).strip())
    return match.group(1) if match else None
