"""
periods.py – Time-windowed aggregation of monthly activity records.

Pipeline
--------
1. Every ActivityRecord is run through the calculator and keyed by its
   calendar month. Scope 3 rows are added onto the matching month; a
   Scope 3 month with no activity record gets a zero-baseline entry.
2. Months are sorted oldest → newest by parsed month label.
3. The window is selected:
     * last N  – the N most recent months (all of them when fewer exist)
     * all     – every month
     * custom  – inclusive slice between two labels present in the data;
                 if either label is missing (or start is after end) the
                 full set is returned and ``range_fallback`` is set.
4. Totals, normalised shares, hotspot and month-over-month change are
   computed over the window.

Hotspot tie-break at equal share: refrigerant > fuel > electricity.
Percentage changes against a zero or missing month are "n/a".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence, Union

from carbon_central.calculations import Co2eBreakdown, calculate_record
from carbon_central.constants import (
    DEFAULT_SHARE_DECIMALS,
    HOTSPOT_PRIORITY,
    NOT_APPLICABLE,
    PERIOD_ALL,
    PERIOD_CUSTOM,
    PERIOD_MONTHS,
    PERIOD_TYPE_CUSTOM,
    SOURCE_DIESEL,
    SOURCE_ELECTRICITY,
    SOURCE_FUEL,
    SOURCE_GAS,
    SOURCE_PETROL,
    SOURCE_REFRIGERANT,
)
from carbon_central.emission_factors import GENERIC_REFRIGERANT_CODE, refrigerant_label
from carbon_central.schemas import ActivityRecord, Scope3ActivityRecord
from carbon_central.shares import normalise_shares, raw_shares
from carbon_central.validators import month_sort_key, parse_month_label

logger = logging.getLogger(__name__)

Percent = Union[float, str]   # a percentage, or NOT_APPLICABLE


# ─────────────────────────────────────────────────────────────────────────────
# Period selector
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PeriodSelector:
    """Which months to aggregate: last N, all, or an inclusive custom range."""
    kind: str = PERIOD_ALL            # "last" | "all" | "custom"
    months: int | None = None
    start: str | None = None
    end: str | None = None

    @classmethod
    def last(cls, months: int) -> "PeriodSelector":
        return cls(kind="last", months=max(int(months), 0))

    @classmethod
    def everything(cls) -> "PeriodSelector":
        return cls(kind=PERIOD_ALL)

    @classmethod
    def custom(cls, start: str | None, end: str | None) -> "PeriodSelector":
        return cls(kind=PERIOD_CUSTOM, start=start, end=end)

    @property
    def label(self) -> str:
        if self.kind == PERIOD_CUSTOM and self.start and self.end:
            return f"{self.start} – {self.end}"
        if self.kind == "last" and self.months is not None:
            return "Last 1 month" if self.months == 1 else f"Last {self.months} months"
        return "All data"


def parse_period_selector(
    period: str | None = None,
    period_type: str | None = None,
    start: str | None = None,
    end: str | None = None,
) -> PeriodSelector:
    """
    Build a selector from request parameters.

    ``period`` is one of 1m / 3m / 6m / 12m / all / custom. Unknown keys
    select all data. A custom period without both bounds selects all data.
    """
    key = (period or PERIOD_ALL).strip().lower()
    if period_type == PERIOD_TYPE_CUSTOM or key == PERIOD_CUSTOM:
        if start and end:
            return PeriodSelector.custom(start, end)
        return PeriodSelector.everything()
    if key in PERIOD_MONTHS:
        return PeriodSelector.last(PERIOD_MONTHS[key])
    if key != PERIOD_ALL:
        logger.warning("Unknown period %r – using all data", period)
    return PeriodSelector.everything()


# ─────────────────────────────────────────────────────────────────────────────
# Month entries
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class MonthEntry:
    """One calendar month of the aggregated series."""
    month_label: str
    electricity_kwh: float = 0.0
    diesel_litres: float = 0.0
    petrol_litres: float = 0.0
    gas_kwh: float = 0.0
    refrigerant_kg: float = 0.0
    refrigerant_code: str = GENERIC_REFRIGERANT_CODE
    breakdown: Co2eBreakdown = field(default_factory=Co2eBreakdown)
    scope3_co2e_kg: float = 0.0
    record_id: int | str | None = None
    synthetic: bool = False           # created only to carry Scope 3 data

    @property
    def fuel_litres(self) -> float:
        return self.diesel_litres + self.petrol_litres

    @property
    def scope1and2_co2e_kg(self) -> float:
        return self.breakdown.total_co2e_kg

    @property
    def total_co2e_kg(self) -> float:
        return self.scope1and2_co2e_kg + self.scope3_co2e_kg

    @property
    def month_date(self) -> date | None:
        return parse_month_label(self.month_label)

    def as_dict(self) -> dict:
        return {
            "monthLabel": self.month_label,
            "electricityKwh": self.electricity_kwh,
            "dieselLitres": self.diesel_litres,
            "petrolLitres": self.petrol_litres,
            "fuelLitres": self.fuel_litres,
            "gasKwh": self.gas_kwh,
            "refrigerantKg": self.refrigerant_kg,
            "refrigerantCode": self.refrigerant_code,
            "refrigerantLabel": refrigerant_label(self.refrigerant_code),
            "electricityCo2eKg": self.breakdown.electricity_co2e_kg,
            "fuelCo2eKg": self.breakdown.fuel_co2e_kg,
            "refrigerantCo2eKg": self.breakdown.refrigerant_co2e_kg,
            "scope1and2Co2eKg": self.scope1and2_co2e_kg,
            "scope3Co2eKg": self.scope3_co2e_kg,
            "totalCo2eKg": self.total_co2e_kg,
            "id": self.record_id,
        }


def _month_key(label: str) -> date | str:
    """Grouping key: calendar month when parseable, else the raw label."""
    return parse_month_label(label) or label


def _entry_from_record(record: ActivityRecord) -> MonthEntry:
    return MonthEntry(
        month_label=record.month_label,
        electricity_kwh=record.electricity_kwh,
        diesel_litres=record.diesel_litres,
        petrol_litres=record.petrol_litres,
        gas_kwh=record.gas_kwh,
        refrigerant_kg=record.refrigerant_kg,
        refrigerant_code=record.refrigerant_code,
        breakdown=calculate_record(record),
        record_id=record.id,
    )


def _fold_duplicate(entry: MonthEntry, record: ActivityRecord) -> None:
    """Add a second record for the same month onto an existing entry."""
    logger.warning("Duplicate activity records for %s – summing them", record.month_label)
    extra = calculate_record(record)
    entry.electricity_kwh += record.electricity_kwh
    entry.diesel_litres += record.diesel_litres
    entry.petrol_litres += record.petrol_litres
    entry.gas_kwh += record.gas_kwh
    entry.refrigerant_kg += record.refrigerant_kg
    entry.breakdown = Co2eBreakdown(
        electricity_co2e_kg=entry.breakdown.electricity_co2e_kg + extra.electricity_co2e_kg,
        diesel_co2e_kg=entry.breakdown.diesel_co2e_kg + extra.diesel_co2e_kg,
        petrol_co2e_kg=entry.breakdown.petrol_co2e_kg + extra.petrol_co2e_kg,
        gas_co2e_kg=entry.breakdown.gas_co2e_kg + extra.gas_co2e_kg,
        refrigerant_co2e_kg=entry.breakdown.refrigerant_co2e_kg + extra.refrigerant_co2e_kg,
    )


def build_month_series(
    records: Iterable[ActivityRecord],
    scope3_records: Iterable[Scope3ActivityRecord] = (),
) -> list[MonthEntry]:
    """
    Merge activity and Scope 3 rows into one entry per month, oldest first.

    Months whose labels cannot be parsed sort before every dated month and
    keep their input order.
    """
    by_month: dict[date | str, MonthEntry] = {}
    for record in records:
        key = _month_key(record.month_label)
        if key in by_month:
            _fold_duplicate(by_month[key], record)
        else:
            by_month[key] = _entry_from_record(record)

    for s3 in scope3_records:
        if not s3.co2e_kg:
            continue
        key = _month_key(s3.month)
        entry = by_month.get(key)
        if entry is None:
            entry = MonthEntry(month_label=s3.month, synthetic=True)
            by_month[key] = entry
            logger.debug("Scope 3 only month %s – zero-baseline entry added", s3.month)
        entry.scope3_co2e_kg += s3.co2e_kg

    return sorted(by_month.values(), key=lambda m: month_sort_key(m.month_label))


# ─────────────────────────────────────────────────────────────────────────────
# Windowing
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class Window:
    months: list[MonthEntry]
    range_fallback: bool = False


def _label_index(months: Sequence[MonthEntry], label: str) -> int | None:
    """Position of *label* in the series, matching on calendar month when parseable."""
    wanted = _month_key(label.strip())
    for idx, month in enumerate(months):
        if _month_key(month.month_label) == wanted:
            return idx
    return None


def select_window(months: Sequence[MonthEntry], selector: PeriodSelector) -> Window:
    """
    Apply *selector* to an oldest-first series and return the window, oldest first.
    """
    months = list(months)
    if selector.kind == "last":
        count = selector.months or 0
        return Window(months[-count:] if count else [])

    if selector.kind == PERIOD_CUSTOM:
        start_idx = _label_index(months, selector.start) if selector.start else None
        end_idx = _label_index(months, selector.end) if selector.end else None
        if start_idx is None or end_idx is None or start_idx > end_idx:
            logger.warning(
                "Custom range %r – %r not found in data – returning all %d months",
                selector.start, selector.end, len(months),
            )
            return Window(months, range_fallback=True)
        return Window(months[start_idx:end_idx + 1])

    return Window(months)


# ─────────────────────────────────────────────────────────────────────────────
# Window analytics
# ─────────────────────────────────────────────────────────────────────────────

def percent_change(latest: float | None, previous: float | None) -> Percent:
    """(latest − previous) / previous × 100, or "n/a" when previous is zero or missing."""
    if latest is None or not previous:
        return NOT_APPLICABLE
    return (latest - previous) / previous * 100.0


def select_hotspot(shares: dict[str, float]) -> str | None:
    """
    Source with the strictly largest share; ties resolved refrigerant > fuel > electricity.

    Returns None when every share is zero.
    """
    best: str | None = None
    best_value = 0.0
    for source in HOTSPOT_PRIORITY:
        value = shares.get(source, 0.0)
        if value > best_value:
            best, best_value = source, value
    return best


@dataclass
class PeriodTotals:
    """Window totals (kg CO₂e unless noted)."""
    total_co2e_kg: float = 0.0
    total_scope1and2_co2e_kg: float = 0.0
    total_scope3_co2e_kg: float = 0.0
    electricity_co2e_kg: float = 0.0
    diesel_co2e_kg: float = 0.0
    petrol_co2e_kg: float = 0.0
    gas_co2e_kg: float = 0.0
    refrigerant_co2e_kg: float = 0.0
    total_elec_kwh: float = 0.0
    total_diesel_litres: float = 0.0
    total_petrol_litres: float = 0.0
    total_gas_kwh: float = 0.0
    total_ref_kg: float = 0.0

    @property
    def fuel_co2e_kg(self) -> float:
        return self.diesel_co2e_kg + self.petrol_co2e_kg + self.gas_co2e_kg

    def as_dict(self) -> dict[str, float]:
        return {
            "totalCo2eKg": self.total_co2e_kg,
            "totalScope1and2Co2eKg": self.total_scope1and2_co2e_kg,
            "totalScope3Co2eKg": self.total_scope3_co2e_kg,
            "totalElecKwh": self.total_elec_kwh,
            "totalDieselLitres": self.total_diesel_litres,
            "totalPetrolLitres": self.total_petrol_litres,
            "totalGasKwh": self.total_gas_kwh,
            "totalRefKg": self.total_ref_kg,
            "electricityCo2eKg": self.electricity_co2e_kg,
            "fuelCo2eKg": self.fuel_co2e_kg,
            "refrigerantCo2eKg": self.refrigerant_co2e_kg,
        }


def sum_totals(months: Iterable[MonthEntry]) -> PeriodTotals:
    totals = PeriodTotals()
    for m in months:
        totals.total_scope1and2_co2e_kg += m.scope1and2_co2e_kg
        totals.total_scope3_co2e_kg += m.scope3_co2e_kg
        totals.electricity_co2e_kg += m.breakdown.electricity_co2e_kg
        totals.diesel_co2e_kg += m.breakdown.diesel_co2e_kg
        totals.petrol_co2e_kg += m.breakdown.petrol_co2e_kg
        totals.gas_co2e_kg += m.breakdown.gas_co2e_kg
        totals.refrigerant_co2e_kg += m.breakdown.refrigerant_co2e_kg
        totals.total_elec_kwh += m.electricity_kwh
        totals.total_diesel_litres += m.diesel_litres
        totals.total_petrol_litres += m.petrol_litres
        totals.total_gas_kwh += m.gas_kwh
        totals.total_ref_kg += m.refrigerant_kg
    totals.total_co2e_kg = totals.total_scope1and2_co2e_kg + totals.total_scope3_co2e_kg
    return totals


@dataclass
class PeriodSummary:
    """Everything the report, dashboard and insight views need for one window."""
    selector: PeriodSelector
    months: list[MonthEntry]                  # oldest first
    available_months: list[str]               # every label in the data, oldest first
    totals: PeriodTotals
    shares: dict[str, float]                  # electricity / fuel / refrigerant
    detailed_shares: dict[str, float]         # electricity / diesel / petrol / gas / refrigerant
    hotspot: str | None
    month_change_percent: Percent
    yoy_change_percent: Percent
    range_fallback: bool = False

    @property
    def period_label(self) -> str:
        return self.selector.label

    @property
    def months_latest_first(self) -> list[MonthEntry]:
        return list(reversed(self.months))

    @property
    def last_month(self) -> MonthEntry | None:
        return self.months[-1] if self.months else None

    @property
    def prev_month(self) -> MonthEntry | None:
        return self.months[-2] if len(self.months) > 1 else None

    def breakdown_by_source(self) -> dict[str, float]:
        return {
            "electricitySharePercent": self.shares[SOURCE_ELECTRICITY],
            "fuelSharePercent": self.shares[SOURCE_FUEL],
            "refrigerantSharePercent": self.shares[SOURCE_REFRIGERANT],
        }


def _year_over_year(all_months: Sequence[MonthEntry], latest: MonthEntry | None) -> Percent:
    """Latest month against the same calendar month one year earlier."""
    if latest is None or latest.month_date is None:
        return NOT_APPLICABLE
    current = latest.month_date
    target = date(current.year - 1, current.month, 1)
    for m in all_months:
        if m.month_date == target:
            return percent_change(latest.total_co2e_kg, m.total_co2e_kg)
    return NOT_APPLICABLE


def aggregate(
    records: Iterable[ActivityRecord],
    selector: PeriodSelector,
    scope3_records: Iterable[Scope3ActivityRecord] = (),
    *,
    decimals: int = DEFAULT_SHARE_DECIMALS,
) -> PeriodSummary:
    """
    Aggregate activity (and optional Scope 3) records over the selected window.

    Records may arrive in any order. Shares cover Scope 1 + 2 sources only;
    Scope 3 is reported as a separate total.
    """
    series = build_month_series(records, scope3_records)
    window = select_window(series, selector)
    totals = sum_totals(window.months)

    source_subtotals = {
        SOURCE_ELECTRICITY: totals.electricity_co2e_kg,
        SOURCE_FUEL: totals.fuel_co2e_kg,
        SOURCE_REFRIGERANT: totals.refrigerant_co2e_kg,
    }
    shares = normalise_shares(source_subtotals, decimals=decimals)
    detailed_shares = normalise_shares(
        {
            SOURCE_ELECTRICITY: totals.electricity_co2e_kg,
            SOURCE_DIESEL: totals.diesel_co2e_kg,
            SOURCE_PETROL: totals.petrol_co2e_kg,
            SOURCE_GAS: totals.gas_co2e_kg,
            SOURCE_REFRIGERANT: totals.refrigerant_co2e_kg,
        },
        decimals=decimals,
    )

    latest = window.months[-1] if window.months else None
    previous = window.months[-2] if len(window.months) > 1 else None
    summary = PeriodSummary(
        selector=selector,
        months=window.months,
        available_months=[m.month_label for m in series],
        totals=totals,
        shares=shares,
        detailed_shares=detailed_shares,
        hotspot=select_hotspot(raw_shares(source_subtotals)),
        month_change_percent=percent_change(
            latest.total_co2e_kg if latest else None,
            previous.total_co2e_kg if previous else None,
        ),
        yoy_change_percent=_year_over_year(series, latest),
        range_fallback=window.range_fallback,
    )
    logger.debug(
        "Aggregated %s: %d months, total=%.2f kg, hotspot=%s",
        summary.period_label, len(summary.months), totals.total_co2e_kg, summary.hotspot,
    )
    return summary
