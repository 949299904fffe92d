"""
insights.py – AI narrative over a dashboard summary.

The model interprets numbers the core has already computed; it never
produces figures of its own. Every failure path returns fixed fallback
content so callers never see an exception:

    headline "AI insights unavailable", insights []

With no GEMINI_API_KEY the model is not contacted at all.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from carbon_central.config import Config
from carbon_central.constants import (
    AI_FALLBACK_HEADLINE,
    AI_FALLBACK_RISK_LEVEL,
    AI_FALLBACK_SUMMARY,
    AI_MAX_INSIGHTS,
)
from carbon_central.gemini_client import call_gemini, configure_gemini, parse_json_object
from carbon_central.schemas import AiAnalysis, AiNarrative

logger = logging.getLogger(__name__)


NARRATIVE_SYSTEM_PROMPT = (
    "You are a carbon-reporting co-pilot. You look at a small JSON summary of an "
    "SME carbon dashboard and return: (1) one short headline, and (2) 3–4 short, "
    "practical, ROI-focused insights. You do NOT repeat the raw numbers; you "
    "interpret them."
)

ANALYSIS_SYSTEM_PROMPT = (
    "You are a sustainability analyst for small businesses. Given one month of "
    "activity data and its calculated emissions, describe what stands out, flag "
    "anomalies against the recent history and note any regulatory reporting "
    "considerations."
)


def fallback_narrative() -> AiNarrative:
    return AiNarrative(headline=AI_FALLBACK_HEADLINE, insights=[])


def fallback_analysis() -> AiAnalysis:
    return AiAnalysis(summary=AI_FALLBACK_SUMMARY, risk_level=AI_FALLBACK_RISK_LEVEL)


# ─────────────────────────────────────────────────────────────────────────────
# Prompts
# ─────────────────────────────────────────────────────────────────────────────

def _compact_summary(dashboard: Mapping[str, Any]) -> dict[str, Any]:
    """The slice of a dashboard payload worth sending to the model."""
    keys = (
        "periodLabel", "totals", "breakdownBySource", "hotspot",
        "monthChangePercent", "yoyChangePercent", "trendLabel", "riskLevel",
    )
    compact = {k: dashboard[k] for k in keys if k in dashboard}
    performance = dashboard.get("performance") or {}
    if performance:
        compact["performanceScore"] = performance.get("score")
    return compact


def build_narrative_prompt(dashboard: Mapping[str, Any]) -> str:
    return (
        'Here is the JSON summary of the dashboard. Respond ONLY as JSON with keys '
        '"headline" (string) and "insights" (array of strings, length 3–4).\n\n'
        + json.dumps(_compact_summary(dashboard), indent=2, default=str)
    )


def build_analysis_prompt(month: Mapping[str, Any], history: list[Mapping[str, Any]]) -> str:
    return (
        'Respond ONLY as JSON with keys "summary" (string), "risk_level" '
        '("low" | "medium" | "high"), "recommendations" (array), "anomalies" '
        '(object or array) and "regulatory_flags" (array).\n\n'
        "Month under review:\n"
        + json.dumps(dict(month), indent=2, default=str)
        + "\n\nRecent history (latest first):\n"
        + json.dumps([dict(m) for m in history], indent=2, default=str)
    )


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────

def parse_narrative(raw: str | Mapping[str, Any] | None) -> AiNarrative:
    """
    Model output → AiNarrative, trimmed to at most four insights.

    A missing headline falls back to "AI insights"; anything that is not a
    JSON object falls back entirely.
    """
    data = dict(raw) if isinstance(raw, Mapping) else parse_json_object(raw)
    if data is None or "error" in data:
        return fallback_narrative()

    headline = data.get("headline")
    if not isinstance(headline, str) or not headline.strip():
        headline = "AI insights"

    insights = data.get("insights") or []
    if isinstance(insights, str):
        insights = [insights]
    if not isinstance(insights, list):
        insights = []
    cleaned = [str(item).strip() for item in insights if str(item).strip()]
    return AiNarrative(headline=headline.strip(), insights=cleaned[:AI_MAX_INSIGHTS])


def parse_analysis(raw: str | Mapping[str, Any] | None) -> AiAnalysis:
    """Model output → AiAnalysis; malformed output gives empty defaults."""
    data = dict(raw) if isinstance(raw, Mapping) else parse_json_object(raw)
    if data is None or "error" in data:
        return AiAnalysis()
    try:
        return AiAnalysis.model_validate(data)
    except ValidationError as exc:
        logger.warning("AI analysis did not match the expected shape: %s", exc)
        return AiAnalysis()


# ─────────────────────────────────────────────────────────────────────────────
# Entry points
# ─────────────────────────────────────────────────────────────────────────────

def generate_narrative(
    dashboard: Mapping[str, Any],
    config: Config,
    warnings: list[str] | None = None,
) -> AiNarrative:
    """Headline plus 3–4 insights for a dashboard payload, or the fallback."""
    if not config.ai_enabled:
        logger.info("GEMINI_API_KEY not set – returning fallback narrative")
        return fallback_narrative()
    if not dashboard.get("hasData", True):
        return fallback_narrative()

    warnings = warnings if warnings is not None else []
    try:
        configure_gemini(config)
        raw = call_gemini(
            build_narrative_prompt(dashboard),
            config,
            system_instruction=NARRATIVE_SYSTEM_PROMPT,
            warnings=warnings,
        )
    except Exception as exc:  # noqa: BLE001
        warnings.append(f"AI narrative failed: {exc}")
        logger.warning("AI narrative failed: %s", exc)
        return fallback_narrative()
    return parse_narrative(raw)


def analyse_month(
    month: Mapping[str, Any],
    history: list[Mapping[str, Any]],
    config: Config,
    warnings: list[str] | None = None,
) -> AiAnalysis:
    """Narrative analysis of one month against its recent history."""
    if not config.ai_enabled:
        return fallback_analysis()

    warnings = warnings if warnings is not None else []
    try:
        configure_gemini(config)
        raw = call_gemini(
            build_analysis_prompt(month, history),
            config,
            system_instruction=ANALYSIS_SYSTEM_PROMPT,
            warnings=warnings,
        )
    except Exception as exc:  # noqa: BLE001
        warnings.append(f"AI analysis failed: {exc}")
        logger.warning("AI analysis failed: %s", exc)
        return fallback_analysis()
    if "error" in raw:
        return fallback_analysis()
    return parse_analysis(raw)
