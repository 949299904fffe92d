"""
gemini_client.py – Thin wrapper around the Google Generative AI (Gemini) SDK.

* Configures the SDK with the key from Config.
* Sends a prompt in JSON response mode and returns the parsed object.
* Strips ```json fences the model sometimes wraps around its answer.
* Retries with exponential back-off; on total failure returns
  ``{"error": ..., "raw_response": ...}`` and records warnings instead of raising.
"""
from __future__ import annotations

import json
import logging
import re
import time
from typing import Any

import google.generativeai as genai

from carbon_central.config import Config
from carbon_central.constants import GEMINI_MAX_RETRIES, GEMINI_TEMPERATURE

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```\s*$", re.DOTALL | re.IGNORECASE)


def configure_gemini(config: Config) -> None:
    genai.configure(api_key=config.gemini_api_key)


def strip_code_fences(raw: str) -> str:
    match = _FENCE_RE.search(raw.strip())
    return match.group(1).strip() if match else raw.strip()


def parse_json_object(text: str | None) -> dict[str, Any] | None:
    """Parse *text* (fenced or bare) as a JSON object; None when it is not one."""
    if not text:
        return None
    try:
        data = json.loads(strip_code_fences(text))
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def call_gemini(
    prompt: str,
    config: Config,
    *,
    system_instruction: str | None = None,
    warnings: list[str] | None = None,
    backoff_seconds: float = 1.0,
) -> dict[str, Any]:
    """
    Send *prompt* to Gemini and return the parsed JSON object.

    Up to ``GEMINI_MAX_RETRIES`` attempts; API errors and non-JSON replies
    both count as a failed attempt. Warning strings are appended to
    *warnings* when given.
    """
    if warnings is None:
        warnings = []

    model = genai.GenerativeModel(
        model_name=config.gemini_model,
        system_instruction=system_instruction,
        generation_config=genai.types.GenerationConfig(
            temperature=GEMINI_TEMPERATURE,
            response_mime_type="application/json",
        ),
    )

    last_raw = ""
    for attempt in range(1, GEMINI_MAX_RETRIES + 1):
        try:
            response = model.generate_content(prompt)
            last_raw = response.text or ""
        except Exception as exc:  # noqa: BLE001
            last_raw = ""
            warnings.append(f"Gemini API error on attempt {attempt}: {exc}")
            logger.warning("Gemini API error on attempt %d: %s", attempt, exc)
        else:
            parsed = parse_json_object(last_raw)
            if parsed is not None:
                return parsed
            warnings.append(
                f"Gemini response was not valid JSON on attempt {attempt}. "
                f"Raw (first 300 chars): {last_raw[:300]}"
            )
            logger.warning("Gemini returned non-JSON on attempt %d", attempt)

        if attempt < GEMINI_MAX_RETRIES and backoff_seconds:
            time.sleep(backoff_seconds * 2 ** (attempt - 1))

    warnings.append("Gemini failed to return valid JSON after all retries.")
    return {"error": "json_parse_failed", "raw_response": last_raw[:2000]}
