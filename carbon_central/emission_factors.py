"""
emission_factors.py – Emission factor constants used in CO₂e calculations.

All factors are in kg CO₂e per unit unless noted. This module is the only
place factor values are defined; every calculation path imports from here.
Sources: UK Government GHG Conversion Factors (DEFRA), IPCC AR4 100-year GWPs.
"""
from __future__ import annotations

import logging

from carbon_central.constants import (
    SOURCE_DIESEL,
    SOURCE_ELECTRICITY,
    SOURCE_GAS,
    SOURCE_PETROL,
)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Scope 2 – Purchased Electricity (kg CO₂e / kWh)
# UK grid average.
# ─────────────────────────────────────────────────────────────
ELECTRICITY_KG_PER_KWH: float = 0.20705


# ─────────────────────────────────────────────────────────────
# Scope 1 – Fuel Combustion
# ─────────────────────────────────────────────────────────────
DIESEL_KG_PER_LITRE: float = 2.6        # average biofuel blend
PETROL_KG_PER_LITRE: float = 2.3        # average biofuel blend
NATURAL_GAS_KG_PER_KWH: float = 0.184   # boilers, space heating

ACTIVITY_FACTORS: dict[str, float] = {
    SOURCE_ELECTRICITY: ELECTRICITY_KG_PER_KWH,
    SOURCE_DIESEL: DIESEL_KG_PER_LITRE,
    SOURCE_PETROL: PETROL_KG_PER_LITRE,
    SOURCE_GAS: NATURAL_GAS_KG_PER_KWH,
}


def factor_for(activity_type: str | None) -> float:
    """
    Return kg CO₂e per unit for an activity type
    (electricity, diesel, petrol, gas).

    Unknown activity types have no factor and resolve to 0.0 with a warning;
    check membership in ACTIVITY_FACTORS to tell that apart from a real zero.
    """
    key = (activity_type or "").strip().lower()
    factor = ACTIVITY_FACTORS.get(key)
    if factor is None:
        logger.warning("No emission factor for activity type %r – using 0", activity_type)
        return 0.0
    return factor


# ─────────────────────────────────────────────────────────────
# Scope 1 – Refrigerants (GWP = kg CO₂e per kg leaked)
# ─────────────────────────────────────────────────────────────
GENERIC_REFRIGERANT_CODE = "GENERIC_HFC"

REFRIGERANT_GWP: dict[str, float] = {
    "R410A": 2088,
    "R134A": 1430,
    "R407C": 1774,
    "R404A": 3922,
    GENERIC_REFRIGERANT_CODE: 1300,   # unknown / unspecified HFC
}

_REFRIGERANT_PREFIXES: list[tuple[str, str]] = [
    ("R410", "R410A"),
    ("R134", "R134A"),
    ("R407", "R407C"),
    ("R404", "R404A"),
]

_REFRIGERANT_LABELS: dict[str, str] = {
    "R410A": "R410A (split AC – common)",
    "R134A": "R134a (chillers / older systems)",
    "R407C": "R407C (comfort cooling)",
    "R404A": "R404A (cold rooms / refrigeration)",
    GENERIC_REFRIGERANT_CODE: "Generic HFC (not specified)",
}


def normalise_refrigerant_code(raw: str | None) -> str:
    """
    Map a free-form refrigerant value ("r410a", "R-134a", "R407C blend")
    to a known code. Anything unrecognised becomes GENERIC_HFC.
    """
    if not raw or not isinstance(raw, str):
        return GENERIC_REFRIGERANT_CODE
    value = raw.strip().upper().replace("-", "").replace(" ", "")
    if value == GENERIC_REFRIGERANT_CODE:
        return value
    for prefix, code in _REFRIGERANT_PREFIXES:
        if value.startswith(prefix):
            return code
    return GENERIC_REFRIGERANT_CODE


def gwp_for(refrigerant_code: str | None) -> float:
    """Return the GWP for a refrigerant code, falling back to the generic HFC value."""
    code = normalise_refrigerant_code(refrigerant_code)
    if code == GENERIC_REFRIGERANT_CODE and refrigerant_code not in (None, "", code):
        logger.debug("Unrecognised refrigerant code %r – using %s", refrigerant_code, code)
    return float(REFRIGERANT_GWP[code])


def refrigerant_label(code: str | None) -> str:
    """Human-readable label for cards and reports."""
    if not code:
        return "Not specified"
    return _REFRIGERANT_LABELS.get(code.upper(), code)
