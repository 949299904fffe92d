"""
queries.py – Request-level glue between the API and carbon_central.

Each function takes an AccountContext plus already-validated request
values and returns a JSON-ready payload. No function here touches the
database directly; reads and writes go through ``ctx.store``.
"""
from __future__ import annotations

import logging
from typing import Any

from carbon_central import reports
from carbon_central.calculations import load_activity_record
from carbon_central.config import Config
from carbon_central.exports import render_csv, render_xlsx
from carbon_central.insights import analyse_month, generate_narrative
from carbon_central.periods import PeriodSelector, parse_period_selector, select_window
from carbon_central.reports import AccountContext
from carbon_central.schemas import ActivityRecord, AiAnalysis, AiNarrative, EmissionRowIn, Scope3In
from carbon_central.scope3 import (
    build_scope3_record,
    commuting_km,
    freight_tonne_km,
    load_scope3_record,
)

log = logging.getLogger(__name__)

ANALYSIS_HISTORY_MONTHS = 6


class NotFound(LookupError):
    """A record id that does not exist for the calling account."""


def selector_from_params(
    period: str | None,
    period_type: str | None = None,
    start: str | None = None,
    end: str | None = None,
) -> PeriodSelector:
    return parse_period_selector(period, period_type, start, end)


# ─── read views ───────────────────────────────────────────────────────────

def dashboard(ctx: AccountContext, selector: PeriodSelector) -> dict[str, Any]:
    return reports.get_dashboard(ctx, selector)


def report(ctx: AccountContext, selector: PeriodSelector) -> dict[str, Any]:
    return reports.get_emissions_report(ctx, selector)


def source_insight(ctx: AccountContext, source: str, selector: PeriodSelector) -> dict[str, Any]:
    return reports.get_source_insight(ctx, source, selector)


def export_csv(ctx: AccountContext, selector: PeriodSelector) -> str:
    return render_csv(reports.load_summary(ctx, selector).months)


def export_xlsx(ctx: AccountContext, selector: PeriodSelector) -> bytes:
    return render_xlsx(reports.load_summary(ctx, selector).months)


# ─── writes ───────────────────────────────────────────────────────────────

def save_emission(ctx: AccountContext, body: EmissionRowIn) -> dict[str, Any]:
    """
    Insert or overwrite one month; the stored total is recomputed from the
    submitted fields and returned alongside the stored row.
    """
    record = ActivityRecord(
        id=body.id,
        month_label=body.month_label,
        electricity_kwh=body.electricity_kwh,
        diesel_litres=body.diesel_litres,
        petrol_litres=body.petrol_litres,
        gas_kwh=body.gas_kwh,
        refrigerant_kg=body.refrigerant_kg,
        refrigerant_code=body.refrigerant_code,
    )
    row = ctx.store.save_emission(ctx.user_id, record)
    if row is None:
        raise NotFound(f"Emissions record {body.id} not found")
    saved = load_activity_record(row)
    log.info("user=%s saved %s", ctx.user_id, saved.month_label)
    return {"ok": True, "record": saved.model_dump()}


def delete_emission(ctx: AccountContext, record_id: int | str) -> dict[str, Any]:
    if not ctx.store.delete_emission(ctx.user_id, record_id):
        raise NotFound(f"Emissions record {record_id} not found")
    return {"ok": True, "id": record_id}


def _scope3_activity_value(body: Scope3In) -> float:
    """Explicit value, else commuting km or freight tonne-km from the helper fields."""
    if body.activity_value:
        return body.activity_value
    if body.one_way_km is not None and body.days_per_month is not None:
        return commuting_km(body.one_way_km, body.days_per_month)
    if body.weight_kg is not None and body.distance_km is not None:
        return freight_tonne_km(body.weight_kg, body.distance_km)
    return 0.0


def add_scope3(ctx: AccountContext, body: Scope3In) -> dict[str, Any]:
    record = build_scope3_record(
        body.month,
        body.category,
        _scope3_activity_value(body),
        body.unit,
        body.factor_kg_per_unit,
        label=body.label,
        activity=body.activity,
    )
    row = ctx.store.add_scope3(ctx.user_id, record)
    stored = load_scope3_record(row) if row else record
    return {"ok": True, "record": stored.model_dump()}


def delete_scope3(ctx: AccountContext, record_id: int | str) -> dict[str, Any]:
    if not ctx.store.delete_scope3(ctx.user_id, record_id):
        raise NotFound(f"Scope 3 record {record_id} not found")
    return {"ok": True, "id": record_id}


# ─── AI ───────────────────────────────────────────────────────────────────

def ai_narrative(ctx: AccountContext, selector: PeriodSelector, config: Config) -> AiNarrative:
    warnings: list[str] = []
    narrative = generate_narrative(reports.get_dashboard(ctx, selector), config, warnings)
    for w in warnings:
        log.warning("user=%s ai-insights: %s", ctx.user_id, w)
    return narrative


def ai_analysis(ctx: AccountContext, month_label: str, config: Config) -> AiAnalysis:
    """Analyse one stored month against the months before it."""
    series = reports.load_summary(ctx, PeriodSelector.everything()).months
    window = select_window(series, PeriodSelector.custom(month_label, month_label))
    if window.range_fallback or not window.months:
        raise NotFound(f"No data for {month_label}")
    target = window.months[0]
    idx = series.index(target)
    history = series[max(0, idx - ANALYSIS_HISTORY_MONTHS):idx]
    return analyse_month(
        target.as_dict(),
        [m.as_dict() for m in reversed(history)],
        config,
    )
