"""
constants.py – Shared labels, period keys, thresholds and advisory text.
"""

# ── Emission sources ──────────────────────────────────────────
SOURCE_ELECTRICITY = "electricity"
SOURCE_DIESEL = "diesel"
SOURCE_PETROL = "petrol"
SOURCE_GAS = "gas"
SOURCE_FUEL = "fuel"
SOURCE_REFRIGERANT = "refrigerant"

# Five-way split used by the report suggestion rules
DETAILED_SOURCES = [
    SOURCE_ELECTRICITY,
    SOURCE_DIESEL,
    SOURCE_PETROL,
    SOURCE_GAS,
    SOURCE_REFRIGERANT,
]

# Three-way summary split (fuel = diesel + petrol + gas)
SUMMARY_SOURCES = [SOURCE_ELECTRICITY, SOURCE_FUEL, SOURCE_REFRIGERANT]

# Hotspot tie-break: earlier wins at equal share. Refrigerant leaks are the
# most urgent operational signal, then fuel, then electricity.
HOTSPOT_PRIORITY = [SOURCE_REFRIGERANT, SOURCE_FUEL, SOURCE_ELECTRICITY]

HOTSPOT_LABELS = {
    SOURCE_ELECTRICITY: "Electricity",
    SOURCE_FUEL: "Fuel",
    SOURCE_REFRIGERANT: "Refrigerant",
}

# ── Period selectors ──────────────────────────────────────────
PERIOD_ALL = "all"
PERIOD_CUSTOM = "custom"
PERIOD_MONTHS = {
    "1m": 1,
    "3m": 3,
    "6m": 6,
    "12m": 12,
}
PERIOD_TYPE_QUICK = "quick"
PERIOD_TYPE_CUSTOM = "custom"

# ── Sentinels ─────────────────────────────────────────────────
NOT_APPLICABLE = "n/a"
UNKNOWN_MONTH = "Unknown month"

# ── Share normalisation ───────────────────────────────────────
DEFAULT_SHARE_DECIMALS = 1

# ── Report suggestion thresholds (percent of footprint, strict >) ──
SUGGESTION_THRESHOLDS = {
    SOURCE_ELECTRICITY: 25.0,
    SOURCE_DIESEL: 20.0,
    SOURCE_PETROL: 15.0,
    SOURCE_GAS: 15.0,
    SOURCE_REFRIGERANT: 10.0,
}

SUGGESTION_TEXT = {
    SOURCE_ELECTRICITY: (
        "Electricity is a major driver. Review lighting, HVAC setpoints "
        "and idle equipment."
    ),
    SOURCE_DIESEL: (
        "Diesel usage is high. Optimise routing, reduce idling and consider "
        "driver training."
    ),
    SOURCE_PETROL: (
        "Petrol vehicles are contributing significantly. Look at pooling, "
        "switching to diesel or EV where practical."
    ),
    SOURCE_GAS: (
        "Gas for heating is material. Check thermostat schedules, insulation "
        "and night/weekend setpoints."
    ),
    SOURCE_REFRIGERANT: (
        "Refrigerant leakage / top-ups are significant. Prioritise leak "
        "checks and preventative servicing."
    ),
}

BALANCED_SUGGESTION = (
    "Footprint is fairly balanced. Pick one source and run a 2–3 month pilot "
    "to see measurable change."
)

# ── Dashboard analytics ───────────────────────────────────────
SPARKLINE_MONTHS = 6
BASELINE_MIN_MONTHS = 6

TREND_FALLING = "Falling"
TREND_FLAT = "Flat"
TREND_RISING = "Rising"
TREND_FLAT_BAND_PERCENT = 5.0

RISK_LOW = "Low"
RISK_MEDIUM = "Medium"
RISK_HIGH = "High"
RISK_HIGH_SHARE = 60.0
RISK_MEDIUM_SHARE = 20.0

PERFORMANCE_MIN_SCORE = 15
PERFORMANCE_MAX_SCORE = 100

# Annual footprint of a typical UK SME by industry (t CO₂e / year)
UK_SME_BASELINES: dict[str, float] = {
    "logistics": 3.5,
    "supply_chain": 3.0,
    "manufacturing": 4.0,
    "retail": 2.2,
    "hospitality": 2.5,
    "office": 1.6,
    "education": 1.5,
    "healthcare": 2.0,
    "technology": 1.4,
    "other": 1.82,
}
DEFAULT_INDUSTRY = "other"

# ── Gemini defaults ───────────────────────────────────────────
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
GEMINI_MAX_RETRIES = 3
GEMINI_TEMPERATURE = 0.0
AI_MAX_INSIGHTS = 4

AI_FALLBACK_HEADLINE = "AI insights unavailable"
AI_FALLBACK_SUMMARY = "AI analysis unavailable"
AI_FALLBACK_RISK_LEVEL = "unknown"

# ── Exports ───────────────────────────────────────────────────
CSV_HEADER = [
    "Month",
    "Electricity_kWh",
    "Diesel_L",
    "Petrol_L",
    "Gas_kWh",
    "Refrigerant_kg",
    "Total_CO2e_kg",
]
XLSX_SHEET_TITLE = "Emissions"
CSV_MIME_TYPE = "text/csv; charset=utf-8"
XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
