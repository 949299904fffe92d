"""
reports.py – Shapes aggregated periods into the payloads renderers consume.

Every consumer (dashboard, report view, per-source insight views, CSV/XLSX
export) goes through ``load_summary`` so shares, hotspot and totals come
from one aggregation instead of being recomputed per view.

Data access is passed in explicitly through an ``AccountContext``; nothing
here reaches for a global client or session.

Usage
──────
    ctx = AccountContext(user_id="u-123", store=PostgresEmissionsStore(conn))
    report = get_emissions_report(ctx, PeriodSelector.last(12))
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from carbon_central.calculations import load_activity_records
from carbon_central.constants import (
    BALANCED_SUGGESTION,
    BASELINE_MIN_MONTHS,
    DEFAULT_SHARE_DECIMALS,
    DETAILED_SOURCES,
    HOTSPOT_LABELS,
    PERIOD_ALL,
    SOURCE_ELECTRICITY,
    SOURCE_FUEL,
    SOURCE_REFRIGERANT,
    SPARKLINE_MONTHS,
    SUGGESTION_TEXT,
    SUGGESTION_THRESHOLDS,
    SUMMARY_SOURCES,
)
from carbon_central.performance import performance_score, risk_level, trend_label
from carbon_central.periods import MonthEntry, PeriodSelector, PeriodSummary, aggregate
from carbon_central.scope3 import load_scope3_record

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Explicit context
# ─────────────────────────────────────────────────────────────────────────────

class ActivityStore(Protocol):
    """Data-access capability the core reads through."""

    def fetch_emissions(self, user_id: str) -> list[dict[str, Any]]: ...

    def fetch_scope3(self, user_id: str) -> list[dict[str, Any]]: ...


@dataclass
class AccountContext:
    """Who the request is for, and how to read their data."""
    user_id: str
    store: ActivityStore
    industry: str | None = None
    share_decimals: int = DEFAULT_SHARE_DECIMALS


def load_summary(ctx: AccountContext, selector: PeriodSelector) -> PeriodSummary:
    """Fetch the account's rows and aggregate them over *selector*."""
    records = load_activity_records(ctx.store.fetch_emissions(ctx.user_id))
    scope3 = [load_scope3_record(row) for row in ctx.store.fetch_scope3(ctx.user_id)]
    logger.info(
        "user=%s period=%s: %d activity rows, %d scope 3 rows",
        ctx.user_id, selector.label, len(records), len(scope3),
    )
    return aggregate(records, selector, scope3, decimals=ctx.share_decimals)


# ─────────────────────────────────────────────────────────────────────────────
# Rule-based suggestions (deterministic – not AI)
# ─────────────────────────────────────────────────────────────────────────────

def build_suggestions(detailed_shares: dict[str, float]) -> list[str]:
    """
    One advisory per source whose share exceeds its threshold
    (electricity >25, diesel >20, petrol >15, gas >15, refrigerant >10);
    otherwise a single "balanced footprint" advisory.
    """
    suggestions = [
        SUGGESTION_TEXT[source]
        for source in DETAILED_SOURCES
        if detailed_shares.get(source, 0.0) > SUGGESTION_THRESHOLDS[source]
    ]
    return suggestions or [BALANCED_SUGGESTION]


def sparkline(months: list[MonthEntry], limit: int = SPARKLINE_MONTHS) -> dict[str, list]:
    """Parallel label / value arrays for the latest *limit* months, oldest first."""
    recent = months[-limit:] if limit else []
    return {
        "labels": [m.month_label for m in recent],
        "values": [m.total_co2e_kg for m in recent],
    }


# ─────────────────────────────────────────────────────────────────────────────
# Report payload
# ─────────────────────────────────────────────────────────────────────────────

def build_report_payload(summary: PeriodSummary) -> dict[str, Any]:
    return {
        "periodLabel": summary.period_label,
        "months": [m.as_dict() for m in summary.months_latest_first],
        "breakdownBySource": summary.breakdown_by_source(),
        "detailedBreakdownBySource": {
            f"{source}SharePercent": summary.detailed_shares[source]
            for source in DETAILED_SOURCES
        },
        "totals": summary.totals.as_dict(),
        "suggestions": build_suggestions(summary.detailed_shares),
        "availableMonths": summary.available_months,
        "trend": {
            "labels": [m.month_label for m in summary.months],
            "values": [m.total_co2e_kg for m in summary.months],
        },
        "hotspot": HOTSPOT_LABELS.get(summary.hotspot) if summary.hotspot else None,
        "monthChangePercent": summary.month_change_percent,
        "rangeFallback": summary.range_fallback,
        "aiNarrative": None,
    }


def get_emissions_report(ctx: AccountContext, selector: PeriodSelector) -> dict[str, Any]:
    return build_report_payload(load_summary(ctx, selector))


# ─────────────────────────────────────────────────────────────────────────────
# Dashboard payload
# ─────────────────────────────────────────────────────────────────────────────

_HOTSPOT_RECOMMENDATIONS = {
    SOURCE_ELECTRICITY: {
        "title": "Launch a quick electricity pilot",
        "description": (
            "Pick one site and trial 2–3 changes (AC setpoints, lighting timers, "
            "switching off idle loads). Track the impact over the next few months."
        ),
    },
    SOURCE_FUEL: {
        "title": "Run a driver & routing optimisation test",
        "description": (
            "Choose a small group of vehicles, optimise routes and reduce idling, "
            "then compare fuel-related CO₂e month-on-month."
        ),
    },
    SOURCE_REFRIGERANT: {
        "title": "Prioritise leak checks on critical units",
        "description": (
            "Identify AC or cold-room units with top-ups and schedule a focused leak "
            "inspection. Log any refrigerant use so leaks stay visible."
        ),
    },
}

_STANDING_RECOMMENDATIONS = [
    {
        "title": "Create a monthly update ritual",
        "description": (
            "Pick one fixed day each month to update this dashboard so leadership "
            "always sees an up-to-date footprint."
        ),
    },
    {
        "title": "Share a simple baseline report",
        "description": (
            "Use the emissions report view to walk finance and leadership through "
            "your current hotspots and agree on one or two priorities."
        ),
    },
]


def dashboard_recommendations(summary: PeriodSummary) -> list[dict[str, str]]:
    if not summary.months:
        return []
    recommendations: list[dict[str, str]] = []
    if summary.selector.kind == PERIOD_ALL and len(summary.months) < BASELINE_MIN_MONTHS:
        recommendations.append({
            "title": "Strengthen your baseline",
            "description": (
                "You have fewer than 6 months of data. Add older bills so your "
                "baseline is more robust before you set formal targets."
            ),
        })
    if summary.hotspot:
        recommendations.append(dict(_HOTSPOT_RECOMMENDATIONS[summary.hotspot]))
    recommendations.extend(dict(r) for r in _STANDING_RECOMMENDATIONS)
    return recommendations


def build_dashboard_payload(summary: PeriodSummary, industry: str | None = None) -> dict[str, Any]:
    refrigerant_share = summary.shares[SOURCE_REFRIGERANT]
    trend = trend_label(summary.month_change_percent)
    score = performance_score(
        summary.totals.total_co2e_kg, trend, refrigerant_share, industry=industry,
    )
    last_month, prev_month = summary.last_month, summary.prev_month
    return {
        "periodLabel": summary.period_label,
        "hasData": bool(summary.months),
        "months": [m.as_dict() for m in summary.months_latest_first],
        "lastMonth": last_month.as_dict() if last_month else None,
        "prevMonth": prev_month.as_dict() if prev_month else None,
        "totals": summary.totals.as_dict(),
        "breakdownBySource": summary.breakdown_by_source(),
        "hotspot": HOTSPOT_LABELS.get(summary.hotspot) if summary.hotspot else None,
        "monthChangePercent": summary.month_change_percent,
        "yoyChangePercent": summary.yoy_change_percent,
        "trendLabel": trend,
        "riskLevel": risk_level(refrigerant_share),
        "performance": score.as_dict(),
        "recommendations": dashboard_recommendations(summary),
        "sparkline": sparkline(summary.months),
        "aiNarrative": None,
    }


def get_dashboard(ctx: AccountContext, selector: PeriodSelector) -> dict[str, Any]:
    return build_dashboard_payload(load_summary(ctx, selector), industry=ctx.industry)


# ─────────────────────────────────────────────────────────────────────────────
# Per-source insight views
# ─────────────────────────────────────────────────────────────────────────────

INSIGHT_SOURCES = tuple(SUMMARY_SOURCES)


def _source_values(month: MonthEntry, source: str) -> tuple[float, float]:
    """(activity quantity, kg CO₂e) for one source in one month."""
    if source == SOURCE_ELECTRICITY:
        return month.electricity_kwh, month.breakdown.electricity_co2e_kg
    if source == SOURCE_FUEL:
        return month.fuel_litres, month.breakdown.fuel_co2e_kg
    return month.refrigerant_kg, month.breakdown.refrigerant_co2e_kg


def build_source_insight(summary: PeriodSummary, source: str) -> dict[str, Any]:
    """
    Per-month series for one source, latest first.

    Raises ValueError for a source outside electricity / fuel / refrigerant.
    """
    if source not in INSIGHT_SOURCES:
        raise ValueError(f"Unknown emission source: {source!r}")

    months = []
    for m in summary.months_latest_first:
        quantity, co2e = _source_values(m, source)
        months.append({"monthLabel": m.month_label, "quantity": quantity, "co2eKg": co2e})

    return {
        "source": source,
        "periodLabel": summary.period_label,
        "months": months,
        "totalQuantity": sum(m["quantity"] for m in months),
        "totalCo2eKg": sum(m["co2eKg"] for m in months),
        "lastMonth": months[0] if months else None,
        "prevMonth": months[1] if len(months) > 1 else None,
        "shareOfFootprintPercent": summary.shares[source],
    }


def get_source_insight(ctx: AccountContext, source: str, selector: PeriodSelector) -> dict[str, Any]:
    return build_source_insight(load_summary(ctx, selector), source)
