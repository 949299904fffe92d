"""
scope3.py – Scope 3 (value-chain) factor catalogue and record builder.

SME-friendly factors in kg CO₂e per unit. A caller may always supply its
own factor; the catalogue is used only when none is given.

 Category               Activity            Factor   Unit
 ──────────────────────────────────────────────────────────────
 employee_commuting     car (default)       0.18     km
                        train               0.041    km
                        bus                 0.082    km
                        bike_walk           0        km
 business_travel        short_haul_flight   0.15     km   (default)
                        long_haul_flight    0.12     km
                        taxi                0.19     km
                        train               0.041    km
 purchased_goods        spend (default)     0.35     GBP
 waste                  general_landfill    0.45     kg   (default)
                        mixed_recycling     0.02     kg
                        food                0.9      kg
 upstream_transport /   road (default)      0.12     tonne_km
 downstream_transport   sea                 0.015    tonne_km
                        air                 0.6      tonne_km
 other                  –                   caller-supplied only
"""
from __future__ import annotations

import logging

from carbon_central.constants import UNKNOWN_MONTH
from carbon_central.schemas import Scope3ActivityRecord, Scope3Data
from carbon_central.validators import format_month_label, to_quantity

logger = logging.getLogger(__name__)

SCOPE3_OTHER = "other"

SCOPE3_CATEGORIES = [
    "employee_commuting",
    "business_travel",
    "purchased_goods",
    "waste",
    "upstream_transport",
    "downstream_transport",
    SCOPE3_OTHER,
]

_FREIGHT: dict[str, tuple[float, str]] = {
    "road": (0.12, "tonne_km"),
    "sea": (0.015, "tonne_km"),
    "air": (0.6, "tonne_km"),
}

# category → activity → (kg CO₂e per unit, unit); first entry is the default
SCOPE3_FACTORS: dict[str, dict[str, tuple[float, str]]] = {
    "employee_commuting": {
        "car": (0.18, "km"),
        "train": (0.041, "km"),
        "bus": (0.082, "km"),
        "bike_walk": (0.0, "km"),
    },
    "business_travel": {
        "short_haul_flight": (0.15, "km"),
        "long_haul_flight": (0.12, "km"),
        "taxi": (0.19, "km"),
        "train": (0.041, "km"),
    },
    "purchased_goods": {
        "spend": (0.35, "GBP"),
    },
    "waste": {
        "general_landfill": (0.45, "kg"),
        "mixed_recycling": (0.02, "kg"),
        "food": (0.9, "kg"),
    },
    "upstream_transport": _FREIGHT,
    "downstream_transport": _FREIGHT,
}


def normalise_category(raw: str | None) -> str:
    """'Business Travel' → 'business_travel'; anything unrecognised → 'other'."""
    key = (raw or "").strip().lower().replace(" ", "_").replace("-", "_")
    return key if key in SCOPE3_CATEGORIES else SCOPE3_OTHER


def default_factor(category: str, activity: str | None = None) -> tuple[float, str]:
    """
    Catalogue factor and unit for a category / activity.

    Unknown activities use the category default; ``other`` has no factor.
    """
    options = SCOPE3_FACTORS.get(normalise_category(category))
    if not options:
        return 0.0, "unit"
    if activity:
        key = activity.strip().lower().replace(" ", "_")
        if key in options:
            return options[key]
    return next(iter(options.values()))


def commuting_km(one_way_km: float, days_per_month: float) -> float:
    """Monthly commuting distance: out and back on every working day."""
    return to_quantity(one_way_km) * to_quantity(days_per_month) * 2


def freight_tonne_km(weight_kg: float, distance_km: float) -> float:
    return to_quantity(weight_kg) / 1_000.0 * to_quantity(distance_km)


def build_scope3_record(
    month: str,
    category: str,
    activity_value: float,
    unit: str | None = None,
    factor_per_unit: float | None = None,
    *,
    label: str | None = None,
    activity: str | None = None,
) -> Scope3ActivityRecord:
    """
    Create a Scope 3 record with ``co2e_kg = activity_value × factor_per_unit``.

    The factor comes from the catalogue when *factor_per_unit* is None.
    """
    cat = normalise_category(category)
    if cat == SCOPE3_OTHER and category and category.strip().lower() != SCOPE3_OTHER:
        logger.warning("Unknown Scope 3 category %r – stored as 'other'", category)

    value = to_quantity(activity_value)
    if factor_per_unit is None:
        factor, catalogue_unit = default_factor(cat, activity)
        if cat == SCOPE3_OTHER:
            logger.warning("Scope 3 'other' activity without a factor – co2e is 0")
    else:
        factor, catalogue_unit = to_quantity(factor_per_unit), "unit"

    return Scope3ActivityRecord(
        month=month or UNKNOWN_MONTH,
        category=cat,
        label=label,
        data=Scope3Data(
            activity_value=value,
            unit=unit or catalogue_unit,
            factor_kg_per_unit=factor,
        ),
        co2e_kg=value * factor,
    )


def load_scope3_record(row: dict) -> Scope3ActivityRecord:
    """Build a Scope3ActivityRecord from a stored ``scope3_activities`` row."""
    data = row.get("data") or {}
    if not isinstance(data, dict):
        data = {}
    return Scope3ActivityRecord(
        id=row.get("id"),
        month=format_month_label(row.get("month")),
        category=normalise_category(row.get("category")),
        label=row.get("label"),
        data=Scope3Data(
            activity_value=data.get("activity_value"),
            unit=data.get("unit") or "unit",
            factor_kg_per_unit=data.get("factor_kg_per_unit"),
        ),
        co2e_kg=row.get("co2e_kg"),
    )
