"""
schemas.py – Pydantic models for stored records, request bodies and the
AI collaborator's JSON contracts.

Quantity fields are coerced with ``validators.to_quantity`` before type
validation, so malformed numbers never fail validation – they become 0.0.
"""
from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

from carbon_central.constants import UNKNOWN_MONTH
from carbon_central.emission_factors import GENERIC_REFRIGERANT_CODE, normalise_refrigerant_code
from carbon_central.validators import (
    canonical_month_name,
    format_month_label,
    parse_month_label,
    to_quantity,
)


# ─────────────────────────────────────────────────────────────
# Scope 1 + 2 monthly activity
# ─────────────────────────────────────────────────────────────

class ActivityRecord(BaseModel):
    """One reporting month of Scope 1 + 2 activity for an account (canonical fields)."""

    id: Optional[Union[int, str]] = None
    month_label: str = Field(UNKNOWN_MONTH, description='Reporting month, e.g. "January 2025"')
    electricity_kwh: float = 0.0
    diesel_litres: float = 0.0
    petrol_litres: float = 0.0
    gas_kwh: float = 0.0
    refrigerant_kg: float = 0.0
    refrigerant_code: str = GENERIC_REFRIGERANT_CODE
    total_co2e_kg: float = Field(0.0, description="Cached Scope 1 + 2 total as stored")

    @field_validator(
        "electricity_kwh", "diesel_litres", "petrol_litres", "gas_kwh",
        "refrigerant_kg", "total_co2e_kg",
        mode="before",
    )
    @classmethod
    def _coerce_quantity(cls, value: Any) -> float:
        return to_quantity(value)

    @field_validator("refrigerant_code", mode="before")
    @classmethod
    def _coerce_refrigerant(cls, value: Any) -> str:
        return normalise_refrigerant_code(value)

    @field_validator("month_label", mode="before")
    @classmethod
    def _coerce_month(cls, value: Any) -> str:
        return str(value).strip() if value not in (None, "") else UNKNOWN_MONTH

    @property
    def fuel_litres(self) -> float:
        return self.diesel_litres + self.petrol_litres


class EmissionRowIn(BaseModel):
    """Body of POST /api/emissions/save – insert when ``id`` is absent, else overwrite."""

    id: Optional[Union[int, str]] = None
    month_name: str = Field(..., description='Month name, e.g. "January"')
    year: int = Field(..., ge=1900, le=2999)
    electricity_kwh: float = 0.0
    diesel_litres: float = 0.0
    petrol_litres: float = 0.0
    gas_kwh: float = 0.0
    refrigerant_kg: float = 0.0
    refrigerant_code: str = GENERIC_REFRIGERANT_CODE

    @field_validator(
        "electricity_kwh", "diesel_litres", "petrol_litres", "gas_kwh", "refrigerant_kg",
        mode="before",
    )
    @classmethod
    def _coerce_quantity(cls, value: Any) -> float:
        return to_quantity(value)

    @field_validator("refrigerant_code", mode="before")
    @classmethod
    def _coerce_refrigerant(cls, value: Any) -> str:
        return normalise_refrigerant_code(value)

    @field_validator("month_name", mode="before")
    @classmethod
    def _check_month_name(cls, value: Any) -> str:
        name = canonical_month_name(value)
        if name is None:
            raise ValueError(f"not a month name: {value!r}")
        return name

    @property
    def month_label(self) -> str:
        return f"{self.month_name} {self.year}"


# ─────────────────────────────────────────────────────────────
# Scope 3
# ─────────────────────────────────────────────────────────────

class Scope3Data(BaseModel):
    """Activity detail stored alongside a Scope 3 row."""

    activity_value: float = 0.0
    unit: str = "unit"
    factor_kg_per_unit: float = 0.0

    @field_validator("activity_value", "factor_kg_per_unit", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: Any) -> float:
        return to_quantity(value)


class Scope3ActivityRecord(BaseModel):
    """A single Scope 3 (value-chain) activity for a month."""

    id: Optional[Union[int, str]] = None
    month: str = UNKNOWN_MONTH
    category: str = "other"
    label: Optional[str] = None
    data: Scope3Data = Field(default_factory=Scope3Data)
    co2e_kg: float = 0.0

    @field_validator("co2e_kg", mode="before")
    @classmethod
    def _coerce_co2e(cls, value: Any) -> float:
        return to_quantity(value)


class Scope3In(BaseModel):
    """
    Body of POST /api/scope3/add.

    ``activity_value`` may be left at 0 for commuting or freight entries and
    derived from the helper fields instead.
    """

    month: str
    category: str
    activity_value: float = 0.0
    unit: Optional[str] = None
    factor_kg_per_unit: Optional[float] = None
    activity: Optional[str] = Field(None, description="Catalogue sub-type, e.g. 'train' or 'landfill'")
    label: Optional[str] = None
    one_way_km: Optional[float] = Field(None, description="Commuting: one-way distance per employee")
    days_per_month: Optional[float] = Field(None, description="Commuting: working days in the month")
    weight_kg: Optional[float] = Field(None, description="Freight: shipment weight")
    distance_km: Optional[float] = Field(None, description="Freight: shipment distance")

    @field_validator("activity_value", mode="before")
    @classmethod
    def _coerce_quantity(cls, value: Any) -> float:
        return to_quantity(value)

    @field_validator("month", mode="before")
    @classmethod
    def _check_month(cls, value: Any) -> str:
        parsed = parse_month_label(format_month_label(value))
        if parsed is None:
            raise ValueError(f"not a calendar month: {value!r}")
        return parsed.strftime("%B %Y")


# ─────────────────────────────────────────────────────────────
# AI collaborator contracts
# ─────────────────────────────────────────────────────────────

class AiNarrative(BaseModel):
    """Dashboard narrative: one headline plus 3–4 short insights."""

    headline: str
    insights: list[str] = Field(default_factory=list)


class AiAnalysis(BaseModel):
    """Per-month analysis returned by the analysis endpoint."""

    summary: str = ""
    risk_level: str = ""
    recommendations: list[Any] = Field(default_factory=list)
    anomalies: Union[dict[str, Any], list[Any]] = Field(default_factory=dict)
    regulatory_flags: list[Any] = Field(default_factory=list)
