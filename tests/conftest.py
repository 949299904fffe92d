"""
Shared fixtures: stored-row builders and an in-memory ActivityStore.

Rows use the same column names as the emissions / scope3_activities tables
so the tests exercise the real load-time normalisation.
"""
from __future__ import annotations

import pytest


def emission_row(month, elec=0, diesel=0, petrol=0, gas=0, ref_kg=0,
                 ref_code="R410A", fuel_liters=0, total=0, id=None):
    return {
        "id": id,
        "month": month,
        "electricity_kw": elec,
        "diesel_litres": diesel,
        "petrol_litres": petrol,
        "gas_kwh": gas,
        "fuel_liters": fuel_liters,
        "refrigerant_kg": ref_kg,
        "refrigerant_code": ref_code,
        "total_co2e": total,
    }


def scope3_row(month, co2e, category="business_travel", value=0, factor=0, id=None):
    return {
        "id": id,
        "month": month,
        "category": category,
        "label": None,
        "data": {"activity_value": value, "unit": "km", "factor_kg_per_unit": factor},
        "co2e_kg": co2e,
    }


MONTHS_2024 = [
    "January 2024", "February 2024", "March 2024", "April 2024",
    "May 2024", "June 2024", "July 2024", "August 2024",
    "September 2024", "October 2024", "November 2024", "December 2024",
]


class FakeStore:
    """In-memory stand-in for PostgresEmissionsStore."""

    def __init__(self, emissions=None, scope3=None):
        self.emissions = list(emissions or [])
        self.scope3 = list(scope3 or [])
        self.saved = []
        self.deleted = []
        self._next_id = 1000

    def fetch_emissions(self, user_id):
        return list(self.emissions)

    def fetch_scope3(self, user_id):
        return list(self.scope3)

    def save_emission(self, user_id, record):
        from carbon_central.calculations import recompute_total

        record = recompute_total(record)
        if record.id is not None and not any(r["id"] == record.id for r in self.emissions):
            return None
        row = {
            "id": record.id if record.id is not None else self._next_id,
            "month": record.month_label,
            "electricity_kw": record.electricity_kwh,
            "diesel_litres": record.diesel_litres,
            "petrol_litres": record.petrol_litres,
            "gas_kwh": record.gas_kwh,
            "fuel_liters": record.fuel_litres,
            "refrigerant_kg": record.refrigerant_kg,
            "refrigerant_code": record.refrigerant_code,
            "total_co2e": record.total_co2e_kg,
        }
        self._next_id += 1
        self.emissions = [r for r in self.emissions if r["id"] != row["id"]] + [row]
        self.saved.append((user_id, row))
        return row

    def delete_emission(self, user_id, record_id):
        before = len(self.emissions)
        self.emissions = [r for r in self.emissions if r["id"] != record_id]
        self.deleted.append(record_id)
        return len(self.emissions) < before

    def add_scope3(self, user_id, record):
        row = {
            "id": self._next_id,
            "month": record.month,
            "category": record.category,
            "label": record.label,
            "data": record.data.model_dump(),
            "co2e_kg": record.co2e_kg,
        }
        self._next_id += 1
        self.scope3.append(row)
        return row

    def delete_scope3(self, user_id, record_id):
        before = len(self.scope3)
        self.scope3 = [r for r in self.scope3 if r["id"] != record_id]
        return len(self.scope3) < before


@pytest.fixture
def year_of_rows():
    """Twelve months of 2024, electricity-heavy, one refrigerant top-up in July."""
    rows = []
    for i, month in enumerate(MONTHS_2024, start=1):
        rows.append(emission_row(
            month, elec=1000 + 10 * i, diesel=100, gas=200,
            ref_kg=1.0 if month == "July 2024" else 0, id=i,
        ))
    return rows
