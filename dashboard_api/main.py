"""
main.py – FastAPI surface for Carbon Central.

Start:
    cd /path/to/repo
    uvicorn dashboard_api.main:app --reload --port 8000

Every /api route identifies the account with the ``X-User-Id`` header and
passes an explicit AccountContext into carbon_central.
"""
from __future__ import annotations

import logging

from fastapi import Body, Depends, FastAPI, Header, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware

from carbon_central import __version__
from carbon_central.config import Config, get_config
from carbon_central.constants import (
    CSV_MIME_TYPE,
    PERIOD_TYPE_CUSTOM,
    PERIOD_TYPE_QUICK,
    XLSX_MIME_TYPE,
)
from carbon_central.reports import INSIGHT_SOURCES, AccountContext
from carbon_central.schemas import EmissionRowIn, Scope3In

from . import queries
from .db import get_store

config = get_config()
logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
log = logging.getLogger(__name__)

app = FastAPI(
    title="Carbon Central – Dashboard API",
    version=__version__,
    description="Monthly Scope 1/2/3 footprint, reports and exports for SMEs.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_app_config() -> Config:
    return config


def get_account(
    x_user_id: str | None = Header(None),
    x_industry: str | None = Header(None),
    store=Depends(get_store),
    cfg: Config = Depends(get_app_config),
) -> AccountContext:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=400, detail="X-User-Id header is required")
    return AccountContext(
        user_id=x_user_id.strip(),
        store=store,
        industry=x_industry,
        share_decimals=cfg.share_decimals,
    )


def _record_id(body: dict) -> int | str:
    record_id = body.get("id")
    if record_id is None or record_id == "":
        raise HTTPException(status_code=400, detail="id is required")
    return record_id


# ─── read views ───────────────────────────────────────────────────────────

@app.get("/api/dashboard", summary="Dashboard payload for a quick period")
def dashboard(period: str = "12m", ctx: AccountContext = Depends(get_account)):
    """period: 3m | 6m | 12m | all (unknown values select all data)."""
    try:
        return queries.dashboard(ctx, queries.selector_from_params(period))
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.get("/api/report", summary="Emissions report for a quick or custom period")
def report(
    period_type: str = Query("quick", alias="periodType"),
    period: str = "12m",
    start: str | None = None,
    end: str | None = None,
    ctx: AccountContext = Depends(get_account),
):
    """
    Quick periods: 1m | 3m | 6m | 12m | all. Custom: start and end month
    labels, inclusive; a label missing from the data returns every month
    with ``rangeFallback: true``.
    """
    if period_type not in (PERIOD_TYPE_QUICK, PERIOD_TYPE_CUSTOM):
        raise HTTPException(status_code=400, detail="periodType must be quick or custom")
    try:
        selector = queries.selector_from_params(period, period_type, start, end)
        return queries.report(ctx, selector)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.get("/api/insights/{source}", summary="Per-source insight view")
def insights(source: str, period: str = "12m", ctx: AccountContext = Depends(get_account)):
    if source not in INSIGHT_SOURCES:
        raise HTTPException(
            status_code=400,
            detail=f"source must be one of: {', '.join(INSIGHT_SOURCES)}",
        )
    try:
        return queries.source_insight(ctx, source, queries.selector_from_params(period))
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ─── exports ──────────────────────────────────────────────────────────────

@app.get("/api/export/csv", summary="Download month rows as CSV")
def export_csv(period: str = "all", ctx: AccountContext = Depends(get_account)):
    try:
        content = queries.export_csv(ctx, queries.selector_from_params(period))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return Response(
        content=content,
        media_type=CSV_MIME_TYPE,
        headers={"Content-Disposition": 'attachment; filename="emissions.csv"'},
    )


@app.get("/api/export/xlsx", summary="Download month rows as an Excel workbook")
def export_xlsx(period: str = "all", ctx: AccountContext = Depends(get_account)):
    try:
        content = queries.export_xlsx(ctx, queries.selector_from_params(period))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return Response(
        content=content,
        media_type=XLSX_MIME_TYPE,
        headers={"Content-Disposition": 'attachment; filename="emissions.xlsx"'},
    )


# ─── writes ───────────────────────────────────────────────────────────────

@app.post("/api/emissions/save", summary="Insert or overwrite one month of activity")
def save_emission(body: EmissionRowIn, ctx: AccountContext = Depends(get_account)):
    """total_co2e is always recomputed from the submitted fields."""
    try:
        return queries.save_emission(ctx, body)
    except queries.NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/api/emissions/delete", summary="Delete one month of activity")
def delete_emission(body: dict = Body(...), ctx: AccountContext = Depends(get_account)):
    """Body: { "id": ... }"""
    record_id = _record_id(body)
    try:
        return queries.delete_emission(ctx, record_id)
    except queries.NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/api/scope3/add", summary="Add a Scope 3 activity")
def add_scope3(body: Scope3In, ctx: AccountContext = Depends(get_account)):
    try:
        return queries.add_scope3(ctx, body)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/api/scope3/delete", summary="Delete a Scope 3 activity")
def delete_scope3(body: dict = Body(...), ctx: AccountContext = Depends(get_account)):
    """Body: { "id": ... }"""
    record_id = _record_id(body)
    try:
        return queries.delete_scope3(ctx, record_id)
    except queries.NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ─── AI ───────────────────────────────────────────────────────────────────

@app.post("/api/ai-insights", summary="AI headline and insights for the dashboard")
def ai_insights(
    body: dict | None = Body(None),
    ctx: AccountContext = Depends(get_account),
    cfg: Config = Depends(get_app_config),
):
    """
    Body (optional): { "period": "12m" }. Always answers 200; when the model
    is unavailable the headline is "AI insights unavailable".
    """
    period = (body or {}).get("period") or "12m"
    try:
        narrative = queries.ai_narrative(ctx, queries.selector_from_params(period), cfg)
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return narrative.model_dump()


@app.post("/api/ai-analysis", summary="AI analysis of one stored month")
def ai_analysis(
    body: dict = Body(...),
    ctx: AccountContext = Depends(get_account),
    cfg: Config = Depends(get_app_config),
):
    """Body: { "month": "March 2025" }"""
    month = (body.get("month") or "").strip()
    if not month:
        raise HTTPException(status_code=400, detail="month is required")
    try:
        return queries.ai_analysis(ctx, month, cfg).model_dump()
    except queries.NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.get("/health")
def health():
    return {"status": "ok"}
