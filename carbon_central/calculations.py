"""
calculations.py – CO₂e calculation engine for monthly activity records.

Emission formula references
────────────────────────────
 Activity                  Scope  Formula
 ─────────────────────────────────────────────────────────────────────
 Purchased Electricity      2     kWh × grid_factor        (kg CO₂e/kWh)
 Diesel                     1     litres × diesel_factor   (kg CO₂e/L)
 Petrol                     1     litres × petrol_factor   (kg CO₂e/L)
 Natural Gas                1     kWh × gas_factor         (kg CO₂e/kWh)
 Refrigerant leakage        1     kg × GWP(refrigerant code)

Total = electricity + diesel + petrol + gas + refrigerant, summed unrounded.
Rounding happens only at display time.

Every function here is pure: no I/O, no hidden state.

Usage
──────
    from carbon_central.calculations import load_activity_record, calculate_record

    record = load_activity_record(row_from_store)
    breakdown = calculate_record(record)
    breakdown.total_co2e_kg
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Mapping

from carbon_central.emission_factors import (
    DIESEL_KG_PER_LITRE,
    ELECTRICITY_KG_PER_KWH,
    NATURAL_GAS_KG_PER_KWH,
    PETROL_KG_PER_LITRE,
    gwp_for,
)
from carbon_central.schemas import ActivityRecord
from carbon_central.validators import format_month_label, to_quantity

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Result dataclass
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Co2eBreakdown:
    """Per-source CO₂e for one activity record (kg)."""
    electricity_co2e_kg: float = 0.0
    diesel_co2e_kg: float = 0.0
    petrol_co2e_kg: float = 0.0
    gas_co2e_kg: float = 0.0
    refrigerant_co2e_kg: float = 0.0

    @property
    def fuel_co2e_kg(self) -> float:
        return self.diesel_co2e_kg + self.petrol_co2e_kg + self.gas_co2e_kg

    @property
    def total_co2e_kg(self) -> float:
        return (
            self.electricity_co2e_kg
            + self.diesel_co2e_kg
            + self.petrol_co2e_kg
            + self.gas_co2e_kg
            + self.refrigerant_co2e_kg
        )

    def as_dict(self) -> dict[str, float]:
        data = asdict(self)
        data["total_co2e_kg"] = self.total_co2e_kg
        return data


# ─────────────────────────────────────────────────────────────────────────────
# Calculator
# ─────────────────────────────────────────────────────────────────────────────

def calculate_co2e(
    *,
    electricity_kwh: Any = 0.0,
    diesel_litres: Any = 0.0,
    petrol_litres: Any = 0.0,
    gas_kwh: Any = 0.0,
    refrigerant_kg: Any = 0.0,
    refrigerant_code: str | None = None,
) -> Co2eBreakdown:
    """
    Convert raw activity quantities to a per-source CO₂e breakdown.

    Missing, non-numeric or negative quantities count as zero.
    Unknown refrigerant codes use the generic HFC GWP.
    """
    breakdown = Co2eBreakdown(
        electricity_co2e_kg=to_quantity(electricity_kwh) * ELECTRICITY_KG_PER_KWH,
        diesel_co2e_kg=to_quantity(diesel_litres) * DIESEL_KG_PER_LITRE,
        petrol_co2e_kg=to_quantity(petrol_litres) * PETROL_KG_PER_LITRE,
        gas_co2e_kg=to_quantity(gas_kwh) * NATURAL_GAS_KG_PER_KWH,
        refrigerant_co2e_kg=to_quantity(refrigerant_kg) * gwp_for(refrigerant_code),
    )
    logger.debug(
        "CO₂e | elec=%.4f diesel=%.4f petrol=%.4f gas=%.4f ref=%.4f total=%.4f",
        breakdown.electricity_co2e_kg,
        breakdown.diesel_co2e_kg,
        breakdown.petrol_co2e_kg,
        breakdown.gas_co2e_kg,
        breakdown.refrigerant_co2e_kg,
        breakdown.total_co2e_kg,
    )
    return breakdown


def calculate_record(record: ActivityRecord) -> Co2eBreakdown:
    """Calculator entry point for a canonical ActivityRecord."""
    return calculate_co2e(
        electricity_kwh=record.electricity_kwh,
        diesel_litres=record.diesel_litres,
        petrol_litres=record.petrol_litres,
        gas_kwh=record.gas_kwh,
        refrigerant_kg=record.refrigerant_kg,
        refrigerant_code=record.refrigerant_code,
    )


def recompute_total(record: ActivityRecord) -> ActivityRecord:
    """
    Return a copy of *record* whose cached total matches its current fields.

    Always a full recomputation – never an increment of the old total.
    """
    return record.model_copy(update={"total_co2e_kg": calculate_record(record).total_co2e_kg})


# ─────────────────────────────────────────────────────────────────────────────
# Load-time normalisation of stored rows
# ─────────────────────────────────────────────────────────────────────────────

def coalesce_fuel(row: Mapping[str, Any]) -> tuple[float, float, float]:
    """
    Return canonical (diesel_litres, petrol_litres, gas_kwh) for a stored row.

    Rows written before the diesel/petrol/gas split only carry the combined
    ``fuel_liters`` column. When none of the split fields is non-zero the
    legacy value is treated as diesel.
    """
    diesel = to_quantity(row.get("diesel_litres"))
    petrol = to_quantity(row.get("petrol_litres"))
    gas = to_quantity(row.get("gas_kwh"))
    if diesel or petrol or gas:
        return diesel, petrol, gas
    legacy = to_quantity(row.get("fuel_liters"))
    if legacy:
        logger.debug("Row %s: legacy fuel_liters=%.2f mapped to diesel", row.get("id"), legacy)
    return legacy, 0.0, 0.0


def load_activity_record(row: Mapping[str, Any]) -> ActivityRecord:
    """
    Build a canonical ActivityRecord from a stored ``emissions`` row.

    Expected keys: month, electricity_kw, diesel_litres, petrol_litres,
    gas_kwh, fuel_liters (legacy), refrigerant_kg, refrigerant_code
    (or legacy refrigerant_type), total_co2e, id.
    """
    diesel, petrol, gas = coalesce_fuel(row)
    return ActivityRecord(
        id=row.get("id"),
        month_label=format_month_label(row.get("month")),
        electricity_kwh=row.get("electricity_kw"),
        diesel_litres=diesel,
        petrol_litres=petrol,
        gas_kwh=gas,
        refrigerant_kg=row.get("refrigerant_kg"),
        refrigerant_code=row.get("refrigerant_code") or row.get("refrigerant_type"),
        total_co2e_kg=row.get("total_co2e"),
    )


def load_activity_records(rows: list[Mapping[str, Any]]) -> list[ActivityRecord]:
    return [load_activity_record(row) for row in rows]
