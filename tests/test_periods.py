"""
Unit tests for carbon_central/periods.py
"""
import random

import pytest

from carbon_central.calculations import load_activity_records
from carbon_central.emission_factors import REFRIGERANT_GWP
from carbon_central.periods import (
    PeriodSelector,
    aggregate,
    build_month_series,
    parse_period_selector,
    percent_change,
    select_hotspot,
    select_window,
)
from carbon_central.scope3 import load_scope3_record
from tests.conftest import MONTHS_2024, emission_row, scope3_row


def records(rows):
    return load_activity_records(rows)


def thirteen_months():
    labels = ["December 2023"] + MONTHS_2024
    return [emission_row(label, elec=100 * (i + 1), id=i + 1) for i, label in enumerate(labels)]


# ─────────────────────────────────────────────────────────────────────────────
# 1. Period selector
# ─────────────────────────────────────────────────────────────────────────────

class TestPeriodSelector:

    @pytest.mark.parametrize("period, months", [("1m", 1), ("3m", 3), ("6m", 6), ("12m", 12)])
    def test_quick_periods(self, period, months):
        selector = parse_period_selector(period)
        assert selector.kind == "last"
        assert selector.months == months

    @pytest.mark.parametrize("period", [None, "all", "ALL", "bogus", "24m"])
    def test_all_and_unknown(self, period):
        assert parse_period_selector(period).kind == "all"

    def test_custom(self):
        selector = parse_period_selector("12m", "custom", "March 2024", "June 2024")
        assert selector == PeriodSelector.custom("March 2024", "June 2024")

    def test_custom_without_bounds_is_all(self):
        assert parse_period_selector("custom", None, "March 2024", None).kind == "all"

    @pytest.mark.parametrize("selector, label", [
        (PeriodSelector.last(1), "Last 1 month"),
        (PeriodSelector.last(6), "Last 6 months"),
        (PeriodSelector.everything(), "All data"),
        (PeriodSelector.custom("March 2024", "June 2024"), "March 2024 – June 2024"),
    ])
    def test_labels(self, selector, label):
        assert selector.label == label


# ─────────────────────────────────────────────────────────────────────────────
# 2. Month series
# ─────────────────────────────────────────────────────────────────────────────

class TestBuildMonthSeries:

    def test_sorted_oldest_first_regardless_of_input_order(self):
        rows = thirteen_months()
        random.Random(7).shuffle(rows)
        series = build_month_series(records(rows))
        assert [m.month_label for m in series] == ["December 2023"] + MONTHS_2024

    def test_duplicate_months_are_summed(self):
        rows = [emission_row("May 2024", elec=100), emission_row("2024-05-01", elec=50, diesel=1)]
        series = build_month_series(records(rows))
        assert len(series) == 1
        assert series[0].electricity_kwh == pytest.approx(150.0)
        assert series[0].breakdown.diesel_co2e_kg == pytest.approx(2.6)

    def test_scope3_added_to_matching_month(self):
        series = build_month_series(
            records([emission_row("May 2024", diesel=10)]),
            [load_scope3_record(scope3_row("May 2024", 40.0))],
        )
        assert series[0].scope1and2_co2e_kg == pytest.approx(26.0)
        assert series[0].scope3_co2e_kg == pytest.approx(40.0)
        assert series[0].total_co2e_kg == pytest.approx(66.0)

    def test_scope3_only_month_gets_zero_baseline_entry(self):
        series = build_month_series(
            records([emission_row("May 2024", diesel=10)]),
            [load_scope3_record(scope3_row("June 2024", 12.5))],
        )
        assert [m.month_label for m in series] == ["May 2024", "June 2024"]
        june = series[1]
        assert june.synthetic is True
        assert june.scope1and2_co2e_kg == 0.0
        assert june.total_co2e_kg == pytest.approx(12.5)

    def test_zero_scope3_rows_are_ignored(self):
        series = build_month_series([], [load_scope3_record(scope3_row("June 2024", 0))])
        assert series == []


# ─────────────────────────────────────────────────────────────────────────────
# 3. Windowing
# ─────────────────────────────────────────────────────────────────────────────

class TestSelectWindow:

    def test_last_twelve_of_thirteen_drops_oldest(self):
        summary = aggregate(records(thirteen_months()), PeriodSelector.last(12))
        assert [m.month_label for m in summary.months] == MONTHS_2024
        assert summary.available_months[0] == "December 2023"

    @pytest.mark.parametrize("n", [1, 3, 6, 12])
    def test_last_n_is_latest_n(self, n):
        series = build_month_series(records(thirteen_months()))
        window = select_window(series, PeriodSelector.last(n))
        assert window.months == series[-n:]
        assert not window.range_fallback

    def test_more_months_than_exist(self):
        series = build_month_series(records(thirteen_months()[:3]))
        assert select_window(series, PeriodSelector.last(12)).months == series

    def test_latest_first_ordering(self):
        summary = aggregate(records(thirteen_months()), PeriodSelector.last(3))
        assert [m.month_label for m in summary.months_latest_first] == [
            "December 2024", "November 2024", "October 2024",
        ]

    def test_custom_range_is_inclusive(self):
        summary = aggregate(records(thirteen_months()),
                            PeriodSelector.custom("March 2024", "June 2024"))
        labels = [m.month_label for m in summary.months]
        assert labels == ["March 2024", "April 2024", "May 2024", "June 2024"]
        assert summary.range_fallback is False

    def test_custom_range_matches_calendar_month(self):
        summary = aggregate(records(thirteen_months()),
                            PeriodSelector.custom("2024-03", "Jun 2024"))
        assert summary.months[0].month_label == "March 2024"
        assert summary.months[-1].month_label == "June 2024"

    def test_missing_custom_label_falls_back_to_everything(self):
        rows = [emission_row(label, elec=100) for label in MONTHS_2024[3:]]   # April–December
        summary = aggregate(records(rows), PeriodSelector.custom("March 2024", "March 2024"))
        assert len(summary.months) == 9
        assert summary.range_fallback is True

    def test_reversed_custom_range_falls_back(self):
        summary = aggregate(records(thirteen_months()),
                            PeriodSelector.custom("June 2024", "March 2024"))
        assert len(summary.months) == 13
        assert summary.range_fallback is True

    def test_empty_data(self):
        summary = aggregate([], PeriodSelector.last(3))
        assert summary.months == []
        assert summary.totals.total_co2e_kg == 0.0
        assert summary.hotspot is None
        assert summary.month_change_percent == "n/a"
        assert summary.last_month is None and summary.prev_month is None


# ─────────────────────────────────────────────────────────────────────────────
# 4. Window analytics
# ─────────────────────────────────────────────────────────────────────────────

class TestAnalytics:

    @pytest.mark.parametrize("latest, previous, expected", [
        (110, 100, 10.0),
        (50, 100, -50.0),
        (0, 100, -100.0),
    ])
    def test_percent_change(self, latest, previous, expected):
        assert percent_change(latest, previous) == pytest.approx(expected)

    @pytest.mark.parametrize("latest, previous", [(100, 0), (100, None), (None, 100), (0, 0)])
    def test_percent_change_sentinel(self, latest, previous):
        assert percent_change(latest, previous) == "n/a"

    def test_hotspot_strict_largest(self):
        assert select_hotspot({"electricity": 50.0, "fuel": 30.0, "refrigerant": 20.0}) == "electricity"

    def test_hotspot_tie_breaks_refrigerant_then_fuel(self):
        assert select_hotspot({"electricity": 50.0, "fuel": 50.0, "refrigerant": 0.0}) == "fuel"
        assert select_hotspot({"electricity": 40.0, "fuel": 20.0, "refrigerant": 40.0}) == "refrigerant"

    @pytest.fixture
    def unit_factors(self, monkeypatch):
        monkeypatch.setattr("carbon_central.calculations.ELECTRICITY_KG_PER_KWH", 1.0)
        monkeypatch.setattr("carbon_central.calculations.DIESEL_KG_PER_LITRE", 1.0)
        monkeypatch.setitem(REFRIGERANT_GWP, "R410A", 1.0)

    def test_three_way_tie_goes_to_refrigerant(self, unit_factors):
        rows = [emission_row("January 2024", elec=2000, diesel=2000, ref_kg=2000)]
        summary = aggregate(records(rows), PeriodSelector.everything())
        assert summary.hotspot == "refrigerant"
        assert summary.shares == {"electricity": 33.3, "fuel": 33.3, "refrigerant": 33.4}

    def test_hotspot_uses_unrounded_shares(self, unit_factors):
        # 40.03 / 40.02 / 19.95 round to 40.0 / 40.0 / ~20.0
        rows = [emission_row("January 2024", elec=4003, diesel=4002, ref_kg=1995)]
        summary = aggregate(records(rows), PeriodSelector.everything())
        assert summary.hotspot == "electricity"
        assert summary.shares["fuel"] == 40.0
        assert sum(summary.shares.values()) == pytest.approx(100.0)

    def test_hotspot_none_when_all_zero(self):
        assert select_hotspot({"electricity": 0.0, "fuel": 0.0, "refrigerant": 0.0}) is None

    def test_totals_and_shares(self):
        rows = [
            emission_row("January 2024", elec=1000, diesel=100),
            emission_row("February 2024", gas=500, ref_kg=0.5, ref_code="R410A"),
        ]
        summary = aggregate(records(rows), PeriodSelector.everything())
        t = summary.totals
        assert t.electricity_co2e_kg == pytest.approx(207.05)
        assert t.fuel_co2e_kg == pytest.approx(260.0 + 92.0)
        assert t.refrigerant_co2e_kg == pytest.approx(1044.0)
        assert t.total_co2e_kg == pytest.approx(207.05 + 352.0 + 1044.0)
        assert t.total_elec_kwh == 1000
        assert t.total_ref_kg == pytest.approx(0.5)
        assert sum(summary.shares.values()) == pytest.approx(100.0)
        assert sum(summary.detailed_shares.values()) == pytest.approx(100.0)
        assert summary.hotspot == "refrigerant"

    def test_shares_exclude_scope3(self):
        summary = aggregate(
            records([emission_row("May 2024", elec=1000)]),
            PeriodSelector.everything(),
            [load_scope3_record(scope3_row("May 2024", 5000.0))],
        )
        assert summary.shares["electricity"] == 100.0
        assert summary.totals.total_scope3_co2e_kg == pytest.approx(5000.0)
        assert summary.totals.total_co2e_kg == pytest.approx(5207.05)

    def test_stored_total_is_ignored(self):
        rows = [emission_row("May 2024", diesel=10, total=123456)]
        summary = aggregate(records(rows), PeriodSelector.everything())
        assert summary.totals.total_scope1and2_co2e_kg == pytest.approx(26.0)

    def test_month_change(self):
        rows = [emission_row("May 2024", diesel=10), emission_row("June 2024", diesel=15)]
        summary = aggregate(records(rows), PeriodSelector.everything())
        assert summary.month_change_percent == pytest.approx(50.0)

    def test_month_change_against_empty_month(self):
        rows = [emission_row("May 2024"), emission_row("June 2024", diesel=15)]
        summary = aggregate(records(rows), PeriodSelector.everything())
        assert summary.month_change_percent == "n/a"

    def test_year_over_year(self):
        rows = thirteen_months() + [emission_row("December 2022", elec=50)]
        # December 2024 elec=1300 vs December 2023 elec=100
        summary = aggregate(records(rows), PeriodSelector.last(1))
        assert summary.yoy_change_percent == pytest.approx(1200.0)

    def test_year_over_year_without_history(self):
        summary = aggregate(records(thirteen_months()[1:]), PeriodSelector.everything())
        assert summary.yoy_change_percent == "n/a"

    def test_breakdown_by_source_keys(self):
        summary = aggregate(records(thirteen_months()), PeriodSelector.everything())
        assert set(summary.breakdown_by_source()) == {
            "electricitySharePercent", "fuelSharePercent", "refrigerantSharePercent",
        }
