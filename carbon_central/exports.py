"""
exports.py – CSV and XLSX downloads of the windowed month rows.

Rows are written oldest first, one per month, with the Scope 1 + 2 and
Scope 3 total in the last column.
"""
from __future__ import annotations

import csv
import io
from typing import Iterable

import openpyxl
from openpyxl.utils import get_column_letter

from carbon_central.constants import CSV_HEADER, XLSX_SHEET_TITLE
from carbon_central.periods import MonthEntry


def export_rows(months: Iterable[MonthEntry]) -> list[list]:
    """One list per month, in CSV_HEADER column order."""
    return [
        [
            m.month_label,
            m.electricity_kwh,
            m.diesel_litres,
            m.petrol_litres,
            m.gas_kwh,
            m.refrigerant_kg,
            round(m.total_co2e_kg, 2),
        ]
        for m in months
    ]


def render_csv(months: Iterable[MonthEntry]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in export_rows(months):
        # Total always carries two decimals.
        writer.writerow(row[:-1] + [f"{row[-1]:.2f}"])
    return buffer.getvalue()


def render_xlsx(months: Iterable[MonthEntry]) -> bytes:
    """Workbook bytes with a single "Emissions" sheet."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = XLSX_SHEET_TITLE

    sheet.append(CSV_HEADER)
    for row in export_rows(months):
        sheet.append(row)

    for col, header in enumerate(CSV_HEADER, start=1):
        sheet.column_dimensions[get_column_letter(col)].width = max(len(header) + 2, 14)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
