"""
config.py – Load and validate environment configuration.

Values come from environment variables, optionally loaded from a .env file
at the repo root. Call `get_config()` once at startup.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from carbon_central.constants import DEFAULT_GEMINI_MODEL, DEFAULT_SHARE_DECIMALS

# Repo root: the directory holding carbon_central/
_REPO_ROOT = Path(__file__).resolve().parent.parent

# override=True so .env values win over stale OS-level env vars.
_env_file = _REPO_ROOT / ".env"
if _env_file.exists():
    load_dotenv(_env_file, override=True)


@dataclass
class Config:
    """Validated runtime configuration."""

    database_url: str | None = None
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    share_decimals: int = DEFAULT_SHARE_DECIMALS
    log_level: str = "INFO"

    @property
    def ai_enabled(self) -> bool:
        return bool(self.gemini_api_key)


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise EnvironmentError(f"{name} must be an integer, got {raw!r}") from exc


def get_config(require_database: bool = False, gemini_model: str | None = None) -> Config:
    """
    Read environment variables and return a Config.

    Parameters
    ----------
    require_database:
        Fail when DATABASE_URL is not set (API server, recompute runner).
    gemini_model:
        Override the Gemini model name (e.g. from a CLI flag).

    Raises
    ------
    EnvironmentError
        If a required variable is missing or malformed.
    """
    required = ["DATABASE_URL"] if require_database else []
    missing = [v for v in required if not os.environ.get(v)]
    if missing:
        raise EnvironmentError(
            f"Missing required environment variable(s): {', '.join(missing)}\n"
            "Copy .env.example → .env and fill in the values."
        )

    return Config(
        database_url=os.environ.get("DATABASE_URL") or None,
        gemini_api_key=os.environ.get("GEMINI_API_KEY") or None,
        gemini_model=gemini_model or os.environ.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        share_decimals=_int_env("SHARE_DECIMALS", DEFAULT_SHARE_DECIMALS),
        log_level=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
    )
