"""
performance.py – Dashboard trend, refrigerant risk and performance score.

Score (clamped 15–100) = industry score (0–40) + trend score (0–30)
                         + risk score (0–30)

 Component   Rule
 ──────────────────────────────────────────────────────────────────────
 industry    period tonnes ÷ UK SME baseline for the industry:
             ≤0.8 → 40, ≤1.0 → 35, ≤1.5 → 25, ≤2.0 → 15, else 5
 trend       Falling 30, Flat 20, Rising 10
 risk        30 − min(30, refrigerant share %)

Stars: ≥80 → 5, ≥60 → 4, ≥40 → 3, ≥20 → 2, else 1.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass

from carbon_central.constants import (
    DEFAULT_INDUSTRY,
    NOT_APPLICABLE,
    PERFORMANCE_MAX_SCORE,
    PERFORMANCE_MIN_SCORE,
    RISK_HIGH,
    RISK_HIGH_SHARE,
    RISK_LOW,
    RISK_MEDIUM,
    RISK_MEDIUM_SHARE,
    TREND_FALLING,
    TREND_FLAT,
    TREND_FLAT_BAND_PERCENT,
    TREND_RISING,
    UK_SME_BASELINES,
)
from carbon_central.validators import normalise_industry

_INDUSTRY_BANDS: list[tuple[float, int]] = [
    (0.8, 40),
    (1.0, 35),
    (1.5, 25),
    (2.0, 15),
]
_INDUSTRY_SCORE_ABOVE_BANDS = 5

_TREND_SCORES = {TREND_FALLING: 30, TREND_FLAT: 20, TREND_RISING: 10}

_STAR_BANDS: list[tuple[int, int]] = [(80, 5), (60, 4), (40, 3), (20, 2)]


@dataclass(frozen=True)
class PerformanceScore:
    score: int
    stars: int
    industry_score: int
    trend_score: int
    risk_score: float
    baseline_tonnes: float

    def as_dict(self) -> dict:
        return asdict(self)


def trend_label(change_percent: float | str) -> str:
    """Falling at ≤ −5 %, Flat within ±5 %, Rising above. No comparison → Flat."""
    if change_percent == NOT_APPLICABLE or not isinstance(change_percent, (int, float)):
        return TREND_FLAT
    if change_percent <= -TREND_FLAT_BAND_PERCENT:
        return TREND_FALLING
    if change_percent <= TREND_FLAT_BAND_PERCENT:
        return TREND_FLAT
    return TREND_RISING


def risk_level(refrigerant_share_percent: float) -> str:
    if refrigerant_share_percent >= RISK_HIGH_SHARE:
        return RISK_HIGH
    if refrigerant_share_percent >= RISK_MEDIUM_SHARE:
        return RISK_MEDIUM
    return RISK_LOW


def industry_baseline_tonnes(industry: str | None) -> float:
    key = normalise_industry(industry)
    return UK_SME_BASELINES.get(key, UK_SME_BASELINES[DEFAULT_INDUSTRY])


def performance_score(
    total_co2e_kg: float,
    trend: str,
    refrigerant_share_percent: float,
    industry: str | None = None,
) -> PerformanceScore:
    baseline = industry_baseline_tonnes(industry)
    ratio = (total_co2e_kg / 1_000.0) / baseline

    industry_score = _INDUSTRY_SCORE_ABOVE_BANDS
    for limit, points in _INDUSTRY_BANDS:
        if ratio <= limit:
            industry_score = points
            break

    trend_score = _TREND_SCORES.get(trend, _TREND_SCORES[TREND_FLAT])
    risk_score = 30 - min(30.0, max(refrigerant_share_percent, 0.0))

    raw = industry_score + trend_score + risk_score
    score = int(round(min(max(raw, PERFORMANCE_MIN_SCORE), PERFORMANCE_MAX_SCORE)))

    stars = 1
    for limit, value in _STAR_BANDS:
        if score >= limit:
            stars = value
            break

    return PerformanceScore(
        score=score,
        stars=stars,
        industry_score=industry_score,
        trend_score=trend_score,
        risk_score=risk_score,
        baseline_tonnes=baseline,
    )
