"""
Unit tests for carbon_central/calculations.py

The calculator is pure, so no mocks are needed beyond patching a factor
constant for the worked example that uses a rounded grid factor.
"""
from decimal import Decimal

import pytest

from carbon_central.calculations import (
    Co2eBreakdown,
    calculate_co2e,
    calculate_record,
    coalesce_fuel,
    load_activity_record,
    load_activity_records,
    recompute_total,
)
from carbon_central.schemas import ActivityRecord
from tests.conftest import emission_row


# ─────────────────────────────────────────────────────────────────────────────
# 1. calculate_co2e
# Formula: quantity × factor per source, total = exact sum
# ─────────────────────────────────────────────────────────────────────────────

class TestCalculateCo2e:

    def test_worked_example_with_rounded_grid_factor(self, monkeypatch):
        # 1000 kWh × 0.207 + 100 L × 2.6
        monkeypatch.setattr("carbon_central.calculations.ELECTRICITY_KG_PER_KWH", 0.207)
        b = calculate_co2e(electricity_kwh=1000, diesel_litres=100,
                           petrol_litres=0, gas_kwh=0, refrigerant_kg=0)
        assert b.electricity_co2e_kg == pytest.approx(207.0)
        assert b.diesel_co2e_kg == pytest.approx(260.0)
        assert b.total_co2e_kg == pytest.approx(467.0)

    def test_every_source(self):
        b = calculate_co2e(electricity_kwh=1000, diesel_litres=10, petrol_litres=10,
                           gas_kwh=500, refrigerant_kg=0.5, refrigerant_code="R410A")
        assert b.electricity_co2e_kg == pytest.approx(207.05)
        assert b.diesel_co2e_kg == pytest.approx(26.0)
        assert b.petrol_co2e_kg == pytest.approx(23.0)
        assert b.gas_co2e_kg == pytest.approx(92.0)
        assert b.refrigerant_co2e_kg == pytest.approx(1044.0)
        assert b.fuel_co2e_kg == pytest.approx(141.0)

    def test_r404a_leak(self):
        b = calculate_co2e(refrigerant_kg=2.0, refrigerant_code="R404A")
        assert b.refrigerant_co2e_kg == pytest.approx(7844.0)

    def test_unknown_refrigerant_uses_generic_hfc(self):
        b = calculate_co2e(refrigerant_kg=1.0, refrigerant_code="R22")
        assert b.refrigerant_co2e_kg == pytest.approx(1300.0)

    @pytest.mark.parametrize("bad", [None, "", "n/a", -10, float("nan")])
    def test_malformed_quantities_count_as_zero(self, bad):
        b = calculate_co2e(electricity_kwh=bad, diesel_litres=bad, refrigerant_kg=bad)
        assert b.total_co2e_kg == 0.0

    def test_no_input_is_zero(self):
        assert calculate_co2e() == Co2eBreakdown()

    @pytest.mark.parametrize("elec, diesel, petrol, gas, ref_kg, code", [
        (0, 0, 0, 0, 0, None),
        (1234.56, 78.9, 12.3, 4567.8, 0.25, "R134A"),
        (1e7, 1e5, 3.3, 0.1, 12.0, "R404A"),
        (0.001, 0.002, 0.003, 0.004, 0.005, "weird"),
    ])
    def test_total_is_sum_of_components(self, elec, diesel, petrol, gas, ref_kg, code):
        b = calculate_co2e(electricity_kwh=elec, diesel_litres=diesel, petrol_litres=petrol,
                           gas_kwh=gas, refrigerant_kg=ref_kg, refrigerant_code=code)
        parts = (b.electricity_co2e_kg + b.diesel_co2e_kg + b.petrol_co2e_kg
                 + b.gas_co2e_kg + b.refrigerant_co2e_kg)
        assert b.total_co2e_kg == pytest.approx(parts, abs=1e-9)

    def test_as_dict_carries_total(self):
        d = calculate_co2e(diesel_litres=1).as_dict()
        assert d["diesel_co2e_kg"] == pytest.approx(2.6)
        assert d["total_co2e_kg"] == pytest.approx(2.6)


# ─────────────────────────────────────────────────────────────────────────────
# 2. Records and stale totals
# ─────────────────────────────────────────────────────────────────────────────

class TestRecords:

    def test_calculate_record(self):
        record = ActivityRecord(month_label="May 2024", gas_kwh=100)
        assert calculate_record(record).gas_co2e_kg == pytest.approx(18.4)

    def test_recompute_total_replaces_stale_value(self):
        stale = ActivityRecord(month_label="May 2024", diesel_litres=10, total_co2e_kg=9999)
        fresh = recompute_total(stale)
        assert fresh.total_co2e_kg == pytest.approx(26.0)
        assert stale.total_co2e_kg == 9999        # original untouched

    def test_recompute_is_not_incremental(self):
        record = ActivityRecord(month_label="May 2024", diesel_litres=10)
        once = recompute_total(record)
        twice = recompute_total(once)
        assert twice.total_co2e_kg == pytest.approx(once.total_co2e_kg)

    def test_model_coerces_bad_values(self):
        record = ActivityRecord(month_label=None, electricity_kwh="abc",
                                petrol_litres=-3, refrigerant_code="r-410a")
        assert record.month_label == "Unknown month"
        assert record.electricity_kwh == 0.0
        assert record.petrol_litres == 0.0
        assert record.refrigerant_code == "R410A"


# ─────────────────────────────────────────────────────────────────────────────
# 3. Load-time normalisation
# ─────────────────────────────────────────────────────────────────────────────

class TestLoadActivityRecord:

    def test_legacy_fuel_becomes_diesel(self):
        assert coalesce_fuel({"fuel_liters": 50}) == (50.0, 0.0, 0.0)

    def test_split_fields_win_over_legacy(self):
        assert coalesce_fuel({"diesel_litres": 10, "fuel_liters": 50}) == (10.0, 0.0, 0.0)
        assert coalesce_fuel({"gas_kwh": 5, "fuel_liters": 50}) == (0.0, 0.0, 5.0)

    def test_no_fuel_at_all(self):
        assert coalesce_fuel({}) == (0.0, 0.0, 0.0)

    def test_row_mapping(self):
        row = emission_row("June 2024", elec=Decimal("100.5"), petrol=4,
                           ref_kg=Decimal("0.2"), ref_code="R134a", total=Decimal("1.5"), id=7)
        record = load_activity_record(row)
        assert record.id == 7
        assert record.month_label == "June 2024"
        assert record.electricity_kwh == pytest.approx(100.5)
        assert record.petrol_litres == pytest.approx(4.0)
        assert record.refrigerant_kg == pytest.approx(0.2)
        assert record.refrigerant_code == "R134A"
        assert record.total_co2e_kg == pytest.approx(1.5)

    def test_legacy_refrigerant_type_column(self):
        row = {"month": "June 2024", "refrigerant_kg": 1, "refrigerant_type": "R404A"}
        assert load_activity_record(row).refrigerant_code == "R404A"

    def test_legacy_row_calculates_as_diesel(self):
        record = load_activity_record(emission_row("June 2024", fuel_liters=10))
        assert record.diesel_litres == 10.0
        assert record.fuel_litres == 10.0
        assert calculate_record(record).diesel_co2e_kg == pytest.approx(26.0)

    def test_load_many(self):
        rows = [emission_row("May 2024"), emission_row("June 2024")]
        assert [r.month_label for r in load_activity_records(rows)] == ["May 2024", "June 2024"]


def test_iso_month_from_store_is_formatted():
    record = load_activity_record(emission_row("2025-11-01", elec=1))
    assert record.month_label == "November 2025"
