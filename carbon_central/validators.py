"""
validators.py – Boundary normalisation for raw activity values.

Everything that arrives from the store or a request body passes through
here before reaching the calculator:

* Numeric quantities: None, non-numeric strings, NaN, infinities and
  negatives all become 0.0 (clamp-to-zero policy). Commas and whitespace
  are stripped from strings ("1,200 kWh" is not accepted, "1,200" is).
* Month labels: "January 2025", "Jan 2025", "2025-01", "2025-01-01" are
  all parsed to the first day of that calendar month.

None of these functions raise.
"""
from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any

from dateutil import parser as dateutil_parser

from carbon_central.constants import DEFAULT_INDUSTRY, UNKNOWN_MONTH

logger = logging.getLogger(__name__)

_DATEUTIL_DEFAULT = datetime(2000, 1, 1)
_YEAR_RE = re.compile(r"\d{4}")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}(-\d{2})?$")

_FULL_MONTH_NAMES = [date(2000, m, 1).strftime("%B") for m in range(1, 13)]
_MONTH_NAMES: dict[str, str] = {
    **{name.lower(): name for name in _FULL_MONTH_NAMES},
    **{name[:3].lower(): name for name in _FULL_MONTH_NAMES},
    "sept": "September",
}


def canonical_month_name(value: Any) -> str | None:
    """'jan' / 'JANUARY' → 'January'; None for anything that is not a month name."""
    if not isinstance(value, str):
        return None
    return _MONTH_NAMES.get(value.strip().rstrip(".").lower())


def to_quantity(value: Any) -> float:
    """
    Convert *value* to a non-negative float.

    Returns 0.0 for anything that is not a finite, non-negative number.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = re.sub(r"[,\s]", "", value)
        if not cleaned:
            return 0.0
        try:
            number = float(cleaned)
        except ValueError:
            logger.debug("Non-numeric quantity %r – treated as 0", value)
            return 0.0
    else:
        try:
            number = float(value)   # Decimal from psycopg2 NUMERIC columns
        except (TypeError, ValueError):
            return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        logger.debug("Out-of-domain quantity %r – clamped to 0", value)
        return 0.0
    return number


def parse_month_label(label: Any) -> date | None:
    """
    Parse a month label to the first day of its calendar month.

    Returns None when the label carries no recognisable month and year.
    """
    if isinstance(label, datetime):
        return date(label.year, label.month, 1)
    if isinstance(label, date):
        return date(label.year, label.month, 1)
    if not isinstance(label, str):
        return None
    text = label.strip()
    if not text or not _YEAR_RE.search(text):
        return None
    try:
        dt = dateutil_parser.parse(text, default=_DATEUTIL_DEFAULT)
    except (ValueError, OverflowError):
        return None
    return date(dt.year, dt.month, 1)


def month_sort_key(label: Any) -> date:
    """Sort key for chronological ordering; unparseable labels sort first."""
    return parse_month_label(label) or date.min


def format_month_label(raw: Any) -> str:
    """
    Convert ISO month values ("2025-11-01", "2025-11") to "November 2025".

    Labels that are already human-readable are returned unchanged.
    """
    if raw is None or raw == "":
        return UNKNOWN_MONTH
    if isinstance(raw, (date, datetime)):
        return raw.strftime("%B %Y")
    text = str(raw).strip()
    if _ISO_DATE_RE.match(text):
        parsed = parse_month_label(text)
        if parsed is not None:
            return parsed.strftime("%B %Y")
    return text


def normalise_industry(raw: str | None) -> str:
    """'Supply Chain' → 'supply_chain'; empty → 'other'."""
    if not raw or not raw.strip():
        return DEFAULT_INDUSTRY
    return re.sub(r"\s+", "_", raw.strip().lower())
