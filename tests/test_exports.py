"""
Unit tests for carbon_central/exports.py
"""
from io import BytesIO

import openpyxl
import pytest

from carbon_central.calculations import load_activity_records
from carbon_central.constants import CSV_HEADER
from carbon_central.exports import export_rows, render_csv, render_xlsx
from carbon_central.periods import build_month_series
from tests.conftest import emission_row


@pytest.fixture
def months():
    rows = [
        emission_row("June 2024", diesel=10),
        emission_row("May 2024", elec=1000, gas=50, ref_kg=0.25, ref_code="R134A"),
    ]
    return build_month_series(load_activity_records(rows))


def test_export_rows_oldest_first(months):
    rows = export_rows(months)
    assert [r[0] for r in rows] == ["May 2024", "June 2024"]
    assert rows[1][-1] == 26.0


def test_render_csv(months):
    lines = render_csv(months).splitlines()
    assert lines[0] == ",".join(CSV_HEADER)
    assert lines[0] == "Month,Electricity_kWh,Diesel_L,Petrol_L,Gas_kWh,Refrigerant_kg,Total_CO2e_kg"
    # 1000 × 0.20705 + 50 × 0.184 + 0.25 × 1430 = 573.75
    assert lines[1] == "May 2024,1000.0,0.0,0.0,50.0,0.25,573.75"
    assert lines[2] == "June 2024,0.0,10.0,0.0,0.0,0.0,26.00"


def test_render_csv_empty():
    assert render_csv([]).splitlines() == [",".join(CSV_HEADER)]


def test_render_xlsx(months):
    workbook = openpyxl.load_workbook(BytesIO(render_xlsx(months)))
    sheet = workbook.active
    assert sheet.title == "Emissions"
    values = list(sheet.iter_rows(values_only=True))
    assert list(values[0]) == CSV_HEADER
    assert values[1][0] == "May 2024"
    assert values[1][-1] == pytest.approx(573.75)
    assert values[2][2] == pytest.approx(10.0)
