"""
shares.py – Percent-of-footprint shares that always sum to exactly 100.

Rounding each share independently can display 99.9 % or 100.1 %. Instead:

1. raw share = subtotal / Σ subtotals × 100   (Σ treated as 1 when zero)
2. round every share to ``decimals`` places
3. residual = 100 − Σ rounded, added to the largest raw share

Ties for the largest share follow ``priority`` (refrigerant > fuel >
electricity by default), then input order for keys outside it. All-zero
input yields all-zero shares.
"""
from __future__ import annotations

from typing import Mapping, Sequence

from carbon_central.constants import DEFAULT_SHARE_DECIMALS, HOTSPOT_PRIORITY
from carbon_central.validators import to_quantity


def raw_shares(subtotals: Mapping[str, float]) -> dict[str, float]:
    """Unrounded percentage of the total for every key (all zero when total is zero)."""
    cleaned = {key: to_quantity(value) for key, value in subtotals.items()}
    denominator = sum(cleaned.values()) or 1.0
    return {key: value / denominator * 100.0 for key, value in cleaned.items()}


def _largest_key(raw: dict[str, float], priority: Sequence[str]) -> str:
    top = max(raw.values())
    leaders = [key for key, value in raw.items() if value == top]
    for key in priority:
        if key in leaders:
            return key
    return leaders[0]


def normalise_shares(
    subtotals: Mapping[str, float],
    decimals: int = DEFAULT_SHARE_DECIMALS,
    priority: Sequence[str] = HOTSPOT_PRIORITY,
) -> dict[str, float]:
    """
    Return rounded shares keyed like *subtotals* that sum to 100.

    >>> normalise_shares({"electricity": 1, "fuel": 1, "refrigerant": 1})
    {'electricity': 33.3, 'fuel': 33.3, 'refrigerant': 33.4}
    """
    if not subtotals:
        return {}
    raw = raw_shares(subtotals)
    if not any(raw.values()):
        return {key: 0.0 for key in raw}

    rounded = {key: round(value, decimals) for key, value in raw.items()}
    largest = _largest_key(raw, priority)
    others = sum(value for key, value in rounded.items() if key != largest)
    rounded[largest] = round(100.0 - others, decimals)
    return rounded
